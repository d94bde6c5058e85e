"""Command: check an interface definition against the core rule set."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from agentidl.commands._base import AgentIdlCommand

if TYPE_CHECKING:
    from agentidl.commands._context import AppContext


@click.command(
    cls=AgentIdlCommand,
    examples="""\
  agentidl validate agenttask.json
  agentidl validate agenttask.json --rules validation-rules/core.json
  agentidl validate agenttask.json --profile delegation""",
)
@click.argument("ast_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Core rule document (default: [validation] rules_dir/core_rules).",
)
@click.option("--profile", default=None, help="Validation profile, e.g. 'delegation'.")
@click.pass_obj
def validate(
    app: AppContext,
    ast_file: Path,
    rules_path: Path | None,
    profile: str | None,
) -> None:
    """Validate the interface definitions in AST_FILE."""
    from agentidl.services.validation import ValidationService

    app.emit(
        ValidationService(app.settings).validate_definition(
            ast_file, rules_path=rules_path, profile=profile
        )
    )
