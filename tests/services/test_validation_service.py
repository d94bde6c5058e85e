"""Tests for ValidationService."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentidl.config.models import ValidationConfig
from agentidl.config.settings import AgentIdlSettings
from agentidl.domain.errors import MalformedDocument
from agentidl.services.validation import RuleBook, ValidationService, load_rule_book
from tests.conftest import delegated_task_ast, ext_attr, interface, operation, write_json


def _context(**overrides: object) -> dict[str, object]:
    ctx: dict[str, object] = {
        "issuer": "did:example:alice",
        "delegate": "did:example:bob",
        "issuedAt": "2025-01-01T00:00:00Z",
        "proof": {"type": "Ed25519Signature2020"},
    }
    ctx.update(overrides)
    return ctx


class TestRuleBook:
    def test_missing_files_use_defaults(self, tmp_path: Path) -> None:
        book = load_rule_book(tmp_path / "nowhere", ValidationConfig())
        assert book == RuleBook()

    def test_loads_each_document(self, tmp_path: Path) -> None:
        write_json(tmp_path / "core.json", {"allowedExtAttrs": ["Intent"]})
        write_json(tmp_path / "delegation.json", {"requiredDelegationFields": ["issuer"]})
        write_json(tmp_path / "audit.json", {"attestationType": "LedgerAttestation"})
        book = load_rule_book(tmp_path, ValidationConfig())
        assert book.core.allowed_ext_attrs == frozenset({"Intent"})
        assert book.delegation.required_fields == ("issuer",)
        assert book.audit.proof_type == "LedgerAttestation"

    def test_wrong_shape_is_malformed(self, tmp_path: Path) -> None:
        write_json(tmp_path / "delegation.json", {"requiredDelegationFields": "issuer"})
        with pytest.raises(MalformedDocument, match="delegation.json"):
            load_rule_book(tmp_path, ValidationConfig())

    def test_for_kind(self) -> None:
        book = RuleBook()
        assert book.for_kind("delegation-context") is book.delegation
        assert book.for_kind("execution-record") is book.audit
        with pytest.raises(ValueError, match="Unknown document kind"):
            book.for_kind("receipt")


class TestValidateDefinitionService:
    def test_conformant(self, settings: AgentIdlSettings, agent_task_file: Path) -> None:
        result = ValidationService(settings).validate_definition(agent_task_file)
        assert result.ok
        assert result.op == "validate_definition"
        assert result.data["count"] == 0

    def test_findings_make_result_not_ok(
        self, settings: AgentIdlSettings, tmp_path: Path
    ) -> None:
        ast = [interface("A", [operation("run", ext_attrs=[ext_attr("Priority", "high")])])]
        path = write_json(tmp_path / "a.json", ast)
        result = ValidationService(settings).validate_definition(path)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NONCONFORMANT"
        assert result.data["findings"] == [
            {
                "code": "UnknownExtensionAttribute",
                "message": "Unknown extended attribute on A.run: Priority",
                "location": "A.run",
            }
        ]

    def test_project_rules_dir(self, settings: AgentIdlSettings, agent_task_file: Path) -> None:
        write_json(
            settings.project_root / "validation-rules" / "core.json",
            {"requiredInterfaceAttrs": ["Capability"]},
        )
        result = ValidationService(settings).validate_definition(agent_task_file)
        assert result.data["count"] == 1

    def test_explicit_rules_file(
        self, settings: AgentIdlSettings, agent_task_file: Path, tmp_path: Path
    ) -> None:
        rules = write_json(tmp_path / "strict.json", {"allowedExtAttrs": ["Intent", "Proof"]})
        result = ValidationService(settings).validate_definition(agent_task_file, rules_path=rules)
        assert result.data["count"] == 2

    def test_delegation_profile(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "d.json", delegated_task_ast())
        result = ValidationService(settings).validate_definition(path, profile="delegation")
        assert result.data["findings"][0]["code"] == "MissingProfileRule"

    def test_no_interface(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "none.json", [{"type": "dictionary", "name": "X"}])
        result = ValidationService(settings).validate_definition(path)
        assert result.error is not None
        assert result.error.code == "NO_INTERFACE"

    def test_malformed_rules(
        self, settings: AgentIdlSettings, agent_task_file: Path, tmp_path: Path
    ) -> None:
        rules = write_json(tmp_path / "rules.json", ["not", "an", "object"])
        result = ValidationService(settings).validate_definition(agent_task_file, rules_path=rules)
        assert result.error is not None
        assert result.error.code == "MALFORMED_DOCUMENT"

    def test_rule_field_with_wrong_shape(
        self, settings: AgentIdlSettings, agent_task_file: Path, tmp_path: Path
    ) -> None:
        rules = write_json(tmp_path / "core.json", {"allowedExtAttrs": "Intent"})
        result = ValidationService(settings).validate_definition(agent_task_file, rules_path=rules)
        assert result.error is not None
        assert result.error.code == "MALFORMED_DOCUMENT"
        assert "Invalid rule document" in result.error.message

    def test_project_rule_file_with_wrong_shape(
        self, settings: AgentIdlSettings, agent_task_file: Path
    ) -> None:
        write_json(
            settings.project_root / "validation-rules" / "core.json",
            {"requiredOperationAttrs": 3},
        )
        result = ValidationService(settings).validate_definition(agent_task_file)
        assert result.error is not None
        assert result.error.code == "MALFORMED_DOCUMENT"


class TestValidateDocumentService:
    def test_valid_delegation_context(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "ctx.json", _context())
        result = ValidationService(settings).validate_document("delegation-context", path)
        assert result.ok
        assert result.data["kind"] == "delegation-context"

    def test_revoked_context(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "ctx.json", _context(revoked=True))
        result = ValidationService(settings).validate_document("delegation-context", path)
        assert not result.ok
        assert result.data["findings"][0]["code"] == "RevokedDelegation"

    def test_rules_file_override(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "ctx.json", _context(proof={"type": "Rsa"}))
        rules = write_json(tmp_path / "delegation.json", {"proofType": "Ed25519Signature2020"})
        result = ValidationService(settings).validate_document(
            "delegation-context", path, rules_path=rules
        )
        assert [f["code"] for f in result.data["findings"]] == ["InvalidProofType"]

    def test_execution_record(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        write_json(
            settings.project_root / "validation-rules" / "audit.json",
            {"requiredExecutionFields": ["intent", "executor"]},
        )
        path = write_json(tmp_path / "record.json", {"intent": "agent:ExecutePayment"})
        result = ValidationService(settings).validate_document("execution-record", path)
        assert result.data["findings"][0]["message"] == (
            "Missing execution record field: executor"
        )

    def test_unknown_kind(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "x.json", {})
        result = ValidationService(settings).validate_document("receipt", path)
        assert result.error is not None
        assert result.error.code == "UNKNOWN_KIND"

    def test_document_must_be_object(self, settings: AgentIdlSettings, tmp_path: Path) -> None:
        path = write_json(tmp_path / "ctx.json", [1, 2])
        result = ValidationService(settings).validate_document("delegation-context", path)
        assert result.error is not None
        assert result.error.code == "MALFORMED_DOCUMENT"

    def test_document_rules_with_wrong_shape(
        self, settings: AgentIdlSettings, tmp_path: Path
    ) -> None:
        path = write_json(tmp_path / "ctx.json", _context())
        rules = write_json(tmp_path / "delegation.json", {"proofType": ["Ed25519Signature2020"]})
        result = ValidationService(settings).validate_document(
            "delegation-context", path, rules_path=rules
        )
        assert result.error is not None
        assert result.error.code == "MALFORMED_DOCUMENT"
