"""Command: compile a definition into bindings and ontology documents."""

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
  agentidl generate agenttask.json
  agentidl generate agenttask.json --out build/
  agentidl generate agenttask.json --flavor typed --no-ontology
  agentidl --json generate agenttask.json""",
)
@click.argument("ast_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: [codegen] out_dir).",
)
@click.option(
    "--flavor",
    type=click.Choice(["typed", "untyped", "all"]),
    default=None,
    help="Which binding module(s) to write (default: [codegen] flavors).",
)
@click.option("--no-ontology", is_flag=True, help="Skip JSON-LD and Turtle output.")
@click.pass_obj
def generate(
    app: AppContext,
    ast_file: Path,
    out_dir: Path | None,
    flavor: str | None,
    no_ontology: bool,
) -> None:
    """Generate client/handler modules and ontology documents from AST_FILE."""
    from agentidl.services.codegen import FLAVORS, GenerateService

    if flavor is None:
        flavors = None
    elif flavor == "all":
        flavors = FLAVORS
    else:
        flavors = (flavor,)

    app.emit(
        GenerateService(app.settings).generate_file(
            ast_file,
            out_dir=out_dir,
            flavors=flavors,
            with_ontology=not no_ontology,
        )
    )
