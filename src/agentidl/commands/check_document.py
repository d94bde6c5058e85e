"""Command: validate a delegation context or execution record."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from agentidl.commands._base import AgentIdlCommand

if TYPE_CHECKING:
    from agentidl.commands._context import AppContext


@click.command(
    "check-document",
    cls=AgentIdlCommand,
    examples="""\
  agentidl check-document delegation-context ctx.json
  agentidl check-document execution-record record.json --rules audit.json""",
)
@click.argument("kind", type=click.Choice(["delegation-context", "execution-record"]))
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rule document for KIND (default: from [validation] rules_dir).",
)
@click.pass_obj
def check_document(
    app: AppContext,
    kind: str,
    document: Path,
    rules_path: Path | None,
) -> None:
    """Validate DOCUMENT as a KIND document."""
    from agentidl.services.validation import ValidationService

    app.emit(
        ValidationService(app.settings).validate_document(kind, document, rules_path=rules_path)
    )
