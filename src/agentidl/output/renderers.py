"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer. Validation
results carry their findings even when not ok, so their renderer also
handles failed results.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from agentidl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from agentidl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    renderer = _OP_RENDERERS.get(result.op)
    if result.ok:
        (renderer or _render_generic)(result, console, verbose=verbose)
    elif renderer is not None and result.data:
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    files = result.data.get("files")
    if files and isinstance(files, list):
        return "\n".join(str(f) for f in files)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/FAIL status line."""
    if result.ok:
        label = Text("OK", style="aidl.ok")
    else:
        label = Text("FAIL", style="aidl.error")
    op = Text(f"  {result.op}", style="aidl.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="aidl.key")
    if key in ("path", "out_dir"):
        v = Text(str(value), style="aidl.path")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="aidl.error")
    op = Text(f"  {result.op}", style="aidl.op")
    console.print(label, op, Text(" - "), Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Generate ──────────────────────────────────────────────────────────


def _render_generate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render generated files and the intent table."""
    data = result.data
    _status_line(console, result)
    _field(console, "interface", data.get("interface", ""))
    _field(console, "operations", data.get("operations", 0))

    intents = data.get("intents", {})
    if intents:
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Operation")
        table.add_column("Intent", style="aidl.intent")
        table.add_column("Proof")
        for name, binding in intents.items():
            table.add_row(name, binding.get("intent") or "", binding.get("proof") or "")
        console.print(table)

    if verbose and data.get("custom_types"):
        _field(console, "custom_types", ", ".join(data["custom_types"]))

    for path in data.get("files", []):
        console.print(Text(f"  wrote {path}", style="aidl.path"))


# ── Validation ────────────────────────────────────────────────────────


def _render_findings(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render validation findings, one per line."""
    findings = result.data.get("findings", [])
    _status_line(console, result)
    _field(console, "path", result.data.get("path", ""))

    if not findings:
        console.print("  [aidl.ok]No findings.[/aidl.ok]")
        return

    for finding in findings:
        code = Text(str(finding.get("code", "")), style="aidl.code")
        line = Text("  ")
        line.append_text(code)
        line.append(f": {finding.get('message', '')}")
        console.print(line)
        if verbose and finding.get("location"):
            console.print(Text(f"    at {finding['location']}", style="dim"))

    console.print(f"\n{len(findings)} finding(s)")


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "generate": _render_generate,
    "validate_definition": _render_findings,
    "validate_document": _render_findings,
}
