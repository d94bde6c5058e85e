"""Tests for result formatting and the Rich renderers."""

from __future__ import annotations

import json

from agentidl.output.formatters import OutputSettings, format_result
from agentidl.output.renderers import render_quiet, render_result
from agentidl.services.result import ServiceError, ServiceResult

GENERATED = ServiceResult(
    ok=True,
    op="generate",
    data={
        "interface": "AgentTask",
        "operations": 1,
        "intents": {"executePayment": {"intent": "agent:ExecutePayment", "proof": "ledger:tx"}},
        "custom_types": ["PaymentRequest", "Receipt"],
        "files": ["out/agenttask.py", "out/agenttask_untyped.py"],
    },
)

NONCONFORMANT = ServiceResult(
    ok=False,
    op="validate_definition",
    data={
        "path": "a.json",
        "findings": [
            {
                "code": "UnknownExtensionAttribute",
                "message": "Unknown extended attribute on A.run: Priority",
                "location": "A.run",
            }
        ],
        "count": 1,
    },
    error=ServiceError(code="NONCONFORMANT", message="1 conformance finding(s)"),
)

FAILED = ServiceResult.failure("generate", "NO_INTERFACE", "No interface definition found.")


class TestFormatResult:
    def test_json_wins(self) -> None:
        output = format_result(GENERATED, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["data"]["interface"] == "AgentTask"

    def test_quiet_lists_files(self) -> None:
        output = format_result(GENERATED, settings=OutputSettings(quiet=True))
        assert output == "out/agenttask.py\nout/agenttask_untyped.py"

    def test_default_is_rich(self) -> None:
        output = format_result(GENERATED)
        assert output.startswith("OK")
        assert "generate" in output.splitlines()[0]


class TestRenderQuiet:
    def test_ok_without_files(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="validate_document")) == (
            "OK: validate_document"
        )

    def test_error(self) -> None:
        assert render_quiet(FAILED) == "ERROR: generate - No interface definition found."


class TestRenderResult:
    def test_generate(self) -> None:
        output = render_result(GENERATED)
        assert "AgentTask" in output
        assert "agent:ExecutePayment" in output
        assert "wrote out/agenttask.py" in output
        assert "custom_types" not in output

    def test_generate_verbose(self) -> None:
        assert "PaymentRequest, Receipt" in render_result(GENERATED, verbose=True)

    def test_findings(self) -> None:
        output = render_result(NONCONFORMANT)
        assert output.startswith("FAIL")
        assert "UnknownExtensionAttribute: Unknown extended attribute on A.run: Priority" in output
        assert output.endswith("1 finding(s)")
        assert "at A.run" not in output

    def test_findings_verbose(self) -> None:
        assert "at A.run" in render_result(NONCONFORMANT, verbose=True)

    def test_no_findings(self) -> None:
        result = ServiceResult(
            ok=True, op="validate_document", data={"path": "c.json", "findings": [], "count": 0}
        )
        assert "No findings." in render_result(result)

    def test_error(self) -> None:
        output = render_result(FAILED)
        assert output.startswith("ERROR")
        assert "No interface definition found." in output

    def test_error_detail_when_verbose(self) -> None:
        result = ServiceResult.failure("generate", "NO_INTERFACE", "none", path="x.json")
        assert "path: x.json" in render_result(result, verbose=True)
        assert "detail" not in render_result(result)

    def test_generic(self) -> None:
        result = ServiceResult(ok=True, op="other", data={"count": 2, "items": [1, 2]})
        output = render_result(result)
        assert "count:" in output
        assert "[1,2]" in output
