"""ValidationService: definition and document conformance from files.

Wraps the pure checks in :mod:`agentidl.domain.validation` with rule
loading and file reading. Violations are reported in ``data["findings"]``
and make the result not-ok; unreadable input yields a
``MALFORMED_DOCUMENT`` error instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from agentidl.domain.errors import MalformedDocument, NoInterfaceDefinition
from agentidl.domain.rules import (
    DOCUMENT_RULE_KINDS,
    DefinitionRuleSet,
    DelegationContextRules,
    DocumentRules,
    ExecutionRecordRules,
)
from agentidl.domain.validation import validate_definition, validate_document
from agentidl.infrastructure.documents import load_definition, load_object
from agentidl.services.base import BaseService
from agentidl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from agentidl.config.models import ValidationConfig
    from agentidl.domain.findings import Finding
    from agentidl.infrastructure.documents import DefinitionParser

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RuleBook:
    """The three rule sets a conformance run needs."""

    core: DefinitionRuleSet = field(default_factory=DefinitionRuleSet)
    delegation: DelegationContextRules = field(default_factory=DelegationContextRules)
    audit: ExecutionRecordRules = field(default_factory=ExecutionRecordRules)

    def for_kind(self, kind: str) -> DocumentRules:
        if kind == "delegation-context":
            return self.delegation
        if kind == "execution-record":
            return self.audit
        msg = f"Unknown document kind: {kind}"
        raise ValueError(msg)


def load_rules[R: DefinitionRuleSet | DocumentRules](rules_cls: type[R], path: Path) -> R:
    """Read one rule document into *rules_cls*.

    Raises:
        MalformedDocument: the file is unreadable or its fields have the wrong shape.
    """
    try:
        return rules_cls.model_validate(load_object(path))
    except ValidationError as exc:
        msg = f"Invalid rule document {path}: {exc.error_count()} error(s)"
        raise MalformedDocument(msg) from exc


def load_rule_book(rules_dir: Path, config: ValidationConfig) -> RuleBook:
    """Load ``core``/``delegation``/``audit`` rule documents; missing files use defaults."""

    def _load[R: DefinitionRuleSet | DocumentRules](rules_cls: type[R], name: str) -> R:
        path = rules_dir / name
        return load_rules(rules_cls, path) if path.is_file() else rules_cls()

    return RuleBook(
        core=_load(DefinitionRuleSet, config.core_rules),
        delegation=_load(DelegationContextRules, config.delegation_rules),
        audit=_load(ExecutionRecordRules, config.audit_rules),
    )


def _findings_payload(findings: list[Finding]) -> list[dict[str, Any]]:
    return [finding.model_dump(mode="json") for finding in findings]


class ValidationService(BaseService):
    """Validate definitions and runtime documents against rule files."""

    def rule_book(self, rules_dir: Path | None = None) -> RuleBook:
        cfg = self._settings.validation
        return load_rule_book(rules_dir or self._path(cfg.rules_dir), cfg)

    def validate_definition(
        self,
        definition: Path,
        *,
        rules_path: Path | None = None,
        profile: str | None = None,
        parser: DefinitionParser | None = None,
    ) -> ServiceResult:
        """Check one definition file against the core rule set."""
        op = "validate_definition"
        try:
            if rules_path is not None:
                rules = load_rules(DefinitionRuleSet, rules_path)
            else:
                rules = self.rule_book().core
            ast = load_definition(definition, parser=parser)
            findings = validate_definition(
                ast, rules, profile=profile or self._settings.validation.profile
            )
        except MalformedDocument as exc:
            return ServiceResult.failure(op, "MALFORMED_DOCUMENT", str(exc), path=str(definition))
        except NoInterfaceDefinition as exc:
            return ServiceResult.failure(op, "NO_INTERFACE", str(exc), path=str(definition))

        log.debug("definition.validated", path=str(definition), findings=len(findings))
        return self._report(op, definition, findings)

    def validate_document(
        self,
        kind: str,
        document: Path,
        *,
        rules_path: Path | None = None,
    ) -> ServiceResult:
        """Check a delegation context or execution record file."""
        op = "validate_document"
        rules_cls = DOCUMENT_RULE_KINDS.get(kind)
        if rules_cls is None:
            return ServiceResult.failure(op, "UNKNOWN_KIND", f"Unknown document kind: {kind}")
        try:
            if rules_path is not None:
                rules: DocumentRules = load_rules(rules_cls, rules_path)
            else:
                rules = self.rule_book().for_kind(kind)
            findings = validate_document(load_object(document), rules)
        except MalformedDocument as exc:
            return ServiceResult.failure(op, "MALFORMED_DOCUMENT", str(exc), path=str(document))

        log.debug("document.validated", kind=kind, path=str(document), findings=len(findings))
        return self._report(op, document, findings, kind=kind)

    @staticmethod
    def _report(op: str, path: Path, findings: list[Finding], **extra: Any) -> ServiceResult:
        data: dict[str, Any] = {
            "path": str(path),
            **extra,
            "findings": _findings_payload(findings),
            "count": len(findings),
        }
        if not findings:
            return ServiceResult(ok=True, op=op, data=data)
        return ServiceResult(
            ok=False,
            op=op,
            data=data,
            error=ServiceError(
                code="NONCONFORMANT", message=f"{len(findings)} conformance finding(s)"
            ),
        )
