"""Shared pytest fixtures and test helpers for agentidl tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from agentidl.config.settings import AgentIdlSettings
from agentidl.domain.model import InterfaceModel, build_interface_model

# ---------------------------------------------------------------------------
# webidl2-shaped AST builders
# ---------------------------------------------------------------------------


def ext_attr(name: str, value: str | None = None, *, quoted: bool = True) -> dict[str, Any]:
    """An extended attribute; string values are quoted the way webidl2 reports them."""
    rhs = None
    if value is not None:
        if quoted:
            rhs = {"type": "string", "value": f'"{value}"'}
        else:
            rhs = {"type": "identifier", "value": value}
    return {"type": "extended-attribute", "name": name, "rhs": rhs, "arguments": []}


def plain_type(name: str, kind: str = "argument-type") -> dict[str, Any]:
    return {
        "type": kind,
        "extAttrs": [],
        "generic": "",
        "nullable": False,
        "union": False,
        "idlType": name,
    }


def generic_type(kind: str, *inner: str, wrapper: str = "return-type") -> dict[str, Any]:
    return {
        "type": wrapper,
        "extAttrs": [],
        "generic": kind,
        "nullable": False,
        "union": False,
        "idlType": [plain_type(name, wrapper) for name in inner],
    }


def union_type(*members: str) -> dict[str, Any]:
    return {
        "type": "argument-type",
        "extAttrs": [],
        "generic": "",
        "nullable": False,
        "union": True,
        "idlType": [plain_type(name) for name in members],
    }


def argument(name: str, idl_type: str | dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "argument",
        "name": name,
        "extAttrs": [],
        "idlType": plain_type(idl_type) if isinstance(idl_type, str) else idl_type,
        "optional": False,
        "variadic": False,
    }


def operation(
    name: str,
    *,
    returns: str | dict[str, Any] = "any",
    arguments: list[dict[str, Any]] | None = None,
    ext_attrs: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "type": "operation",
        "name": name,
        "special": "",
        "extAttrs": ext_attrs or [],
        "idlType": plain_type(returns, "return-type") if isinstance(returns, str) else returns,
        "arguments": arguments or [],
    }


def interface(
    name: str,
    members: list[dict[str, Any]],
    ext_attrs: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "type": "interface",
        "name": name,
        "inheritance": None,
        "partial": False,
        "extAttrs": ext_attrs or [],
        "members": members,
    }


def agent_task_ast() -> list[dict[str, Any]]:
    """The AgentTask interface used throughout the suite."""
    return [
        interface(
            "AgentTask",
            [
                operation(
                    "proposeContract",
                    returns=generic_type("Promise", "Outcome"),
                    arguments=[argument("data", "ContractData")],
                    ext_attrs=[ext_attr("Intent", "agent:ProposeContract")],
                ),
                operation(
                    "executePayment",
                    returns=generic_type("Promise", "Receipt"),
                    arguments=[argument("payment", "PaymentRequest")],
                    ext_attrs=[
                        ext_attr("Intent", "agent:ExecutePayment"),
                        ext_attr("Proof", "ledger:tx"),
                    ],
                ),
            ],
            ext_attrs=[
                ext_attr("Context", "https://s-agent-comm.github.io/agent-ontology/context.jsonld"),
                ext_attr("Semantic", "agent:Task"),
            ],
        )
    ]


def delegated_task_ast() -> list[dict[str, Any]]:
    """An interface with one delegated operation taking a DelegationContext."""
    return [
        interface(
            "DelegatedTask",
            [
                operation(
                    "performTask",
                    returns=generic_type("Promise", "TaskResult"),
                    arguments=[
                        argument("ctx", "DelegationContext"),
                        argument("request", "TaskRequest"),
                    ],
                    ext_attrs=[
                        ext_attr("Intent", "agent:PerformTask"),
                        ext_attr("Delegation", "required"),
                    ],
                ),
            ],
        )
    ]


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def agent_task_model() -> InterfaceModel:
    return build_interface_model(agent_task_ast())


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AgentIdlSettings:
    """Settings rooted at a temp project directory with no config file."""
    monkeypatch.delenv("AGENTIDL_CONFIG", raising=False)
    return AgentIdlSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def agent_task_file(tmp_path: Path) -> Path:
    return write_json(tmp_path / "agenttask.json", agent_task_ast())


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI resolves paths there."""
    monkeypatch.delenv("AGENTIDL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


def build_conformance_root(root: Path) -> Path:
    """Lay out a small passing conformance directory under *root*."""
    rules = root / "validation-rules"
    write_json(
        rules / "core.json",
        {
            "allowedExtAttrs": ["Context", "Semantic", "Intent", "Proof", "Delegation"],
            "delegationParamType": "DelegationContext",
        },
    )
    write_json(
        rules / "delegation.json",
        {"requiredDelegationFields": ["issuer", "delegate"], "proofType": "Ed25519Signature2020"},
    )
    write_json(
        rules / "audit.json",
        {
            "requiredExecutionFields": ["intent", "executor", "timestamp"],
            "attestationType": "LedgerAttestation",
        },
    )

    vectors = root / "vectors"
    write_json(vectors / "valid-idl" / "agent-task.json", agent_task_ast())
    write_json(
        vectors / "invalid-idl" / "unknown-attr.json",
        [interface("A", [operation("run", ext_attrs=[ext_attr("Priority", "high")])])],
    )
    context = {
        "issuer": "did:example:alice",
        "delegate": "did:example:bob",
        "issuedAt": "2025-01-01T00:00:00Z",
        "proof": {"type": "Ed25519Signature2020", "signature": "z3F"},
    }
    write_json(vectors / "delegation-contexts" / "valid" / "signed.json", context)
    write_json(
        vectors / "delegation-contexts" / "invalid" / "revoked.json", {**context, "revoked": True}
    )
    record = {
        "intent": "agent:ExecutePayment",
        "executor": "did:example:seller",
        "timestamp": "2025-02-01T10:00:00Z",
        "attestation": {"type": "LedgerAttestation", "signature": "sig"},
    }
    write_json(vectors / "execution-records" / "valid" / "paid.json", record)
    write_json(
        vectors / "execution-records" / "invalid" / "no-executor.json",
        {k: v for k, v in record.items() if k != "executor"},
    )

    scenarios = root / "scenarios"
    write_json(scenarios / "shared" / "delegated.json", delegated_task_ast())
    write_json(scenarios / "shared" / "agent-task.json", agent_task_ast())
    write_json(scenarios / "shared" / "context.json", context)
    write_json(scenarios / "shared" / "revoked.json", {**context, "revoked": True})
    write_json(scenarios / "shared" / "record.json", record)
    write_json(
        scenarios / "basic-delegation" / "scenario.json",
        {
            "name": "basic-delegation",
            "idl": "../shared/delegated.json",
            "method": "performTask",
            "delegationContext": "../shared/context.json",
            "payload": {"task": "summarize"},
            "expected": {"status": "ok"},
        },
    )
    write_json(
        scenarios / "revocation" / "scenario.json",
        {
            "name": "revocation",
            "idl": "../shared/delegated.json",
            "method": "performTask",
            "delegationContext": "../shared/revoked.json",
            "payload": {"task": "summarize"},
            "expected": {"status": "revoked"},
        },
    )
    write_json(
        scenarios / "audit" / "scenario.json",
        {"name": "cross-implementation-audit", "executionRecord": "../shared/record.json"},
    )
    write_json(
        scenarios / "interop" / "scenario.json",
        {
            "name": "interop-generated-client",
            "idl": "../shared/agent-task.json",
            "method": "proposeContract",
            "payload": {"parties": ["did:example:seller"]},
            "expected": {"status": "accepted"},
        },
    )
    return root


@pytest.fixture
def conformance_root(tmp_path: Path) -> Path:
    return build_conformance_root(tmp_path / "conformance")
