"""Command: run a conformance directory (vectors and scenarios)."""

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
  agentidl conformance
  agentidl conformance --suite invalid-idl
  agentidl conformance --scenario scenarios/revocation/scenario.json
  agentidl conformance --format junit > report.xml""",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Conformance directory (default: [conformance] root).",
)
@click.option(
    "--suite",
    type=click.Choice(
        ["valid-idl", "invalid-idl", "delegation-contexts", "execution-records", "scenarios"]
    ),
    default=None,
    help="Run a single suite.",
)
@click.option(
    "--scenario",
    type=click.Path(path_type=Path),
    default=None,
    help="Run a single scenario file (relative to the root).",
)
@click.option(
    "--format",
    "report_format",
    type=click.Choice(["text", "junit"]),
    default=None,
    help="Report format (default: [conformance] format).",
)
@click.option("--profile", default=None, help="Validation profile for definition vectors.")
@click.pass_obj
def conformance(
    app: AppContext,
    root: Path | None,
    suite: str | None,
    scenario: Path | None,
    report_format: str | None,
    profile: str | None,
) -> None:
    """Run conformance vectors and scenarios; exit 1 if any check fails."""
    from agentidl.output.reports import REPORT_FORMATTERS
    from agentidl.services.conformance import ConformanceService

    result = ConformanceService(app.settings, root=root).run(
        suite=suite, scenario=scenario, profile=profile
    )
    if app.settings.json_output or "results" not in result.data:
        app.emit(result)
        return

    formatter = REPORT_FORMATTERS[report_format or app.settings.conformance.format]
    app.emit_report(formatter(result.data["results"]), ok=result.ok)
