"""Conformance validation: definition and document checks.

Pure functions, no infrastructure dependencies. Both checks are total:
every rule is evaluated and every violation is returned as a
:class:`~agentidl.domain.findings.Finding`. Only structural failures
raise (no interface to check, a document that is not an object).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from agentidl.domain.errors import MalformedDocument, NoInterfaceDefinition
from agentidl.domain.extattrs import DELEGATION, attribute_names, read_ext_attr
from agentidl.domain.findings import Finding, FindingCode
from agentidl.domain.model import (
    DefinitionAst,
    ast_nodes,
    find_interfaces,
    operation_members,
)
from agentidl.domain.rules import DefinitionRuleSet, DocumentRules
from agentidl.domain.typedesc import Generic, Primitive, TypeDescriptor, Union, decode_type

DELEGATION_PROFILE = "delegation"

_DOCUMENT_NOUNS: dict[str, str] = {
    "delegation-context": "delegation",
    "execution-record": "execution record",
}


# ---------------------------------------------------------------------------
# Definition check
# ---------------------------------------------------------------------------


def _type_name(descriptor: TypeDescriptor) -> str | None:
    """Flatten a descriptor to the bare name used for delegation matching."""
    match descriptor:
        case Primitive(name=name):
            return name
        case Generic(inner=inner) if len(inner) == 1:
            return _type_name(inner[0])
        case Union(members=members) | Generic(inner=members):
            names = [_type_name(member) or "" for member in members]
            return "|".join(names)
        case _:
            return None


def _check_attributes(
    attributes: Any,
    rules: DefinitionRuleSet,
    required: tuple[str, ...],
    *,
    owner: str,
    scope: str,
) -> list[Finding]:
    findings: list[Finding] = []
    for name in attribute_names(attributes):
        if name not in rules.allowed_ext_attrs:
            findings.append(
                Finding(
                    code=FindingCode.UNKNOWN_EXTENSION_ATTRIBUTE,
                    message=f"Unknown extended attribute on {owner}: {name}",
                    location=owner,
                )
            )
    for name in required:
        if not read_ext_attr(attributes, name):
            findings.append(
                Finding(
                    code=FindingCode.MISSING_REQUIRED_ATTRIBUTE,
                    message=f"Missing required {scope} attribute {name} on {owner}",
                    location=owner,
                )
            )
    return findings


def validate_definition(
    ast: DefinitionAst,
    rules: DefinitionRuleSet,
    *,
    profile: str | None = None,
) -> list[Finding]:
    """Check every interface and operation in *ast* against *rules*.

    Raises:
        NoInterfaceDefinition: *ast* contains no interface.
        MalformedDocument: an AST node that must be an object is not one.
    """
    interfaces = find_interfaces(ast)
    if not interfaces:
        raise NoInterfaceDefinition("No interface definitions found.")

    findings: list[Finding] = []
    delegation_type = rules.effective_delegation_param_type

    for interface in interfaces:
        iface_name = str(interface.get("name", ""))
        findings.extend(
            _check_attributes(
                interface.get("extAttrs"),
                rules,
                rules.required_interface_attrs,
                owner=f"interface {iface_name}",
                scope="interface",
            )
        )

        seen: set[str] = set()
        for member in operation_members(interface):
            op_name = str(member.get("name") or "")
            owner = f"{iface_name}.{op_name}"
            if op_name and op_name in seen:
                findings.append(
                    Finding(
                        code=FindingCode.DUPLICATE_OPERATION,
                        message=f"Operation {owner} is declared more than once",
                        location=owner,
                    )
                )
            seen.add(op_name)

            member_attrs = member.get("extAttrs")
            findings.extend(
                _check_attributes(
                    member_attrs,
                    rules,
                    rules.required_operation_attrs,
                    owner=owner,
                    scope="operation",
                )
            )

            if DELEGATION in attribute_names(member_attrs):
                has_param = any(
                    _type_name(decode_type(argument.get("idlType"))) == delegation_type
                    for argument in ast_nodes(member.get("arguments"), "arguments")
                )
                if not has_param:
                    findings.append(
                        Finding(
                            code=FindingCode.MISSING_DELEGATION_PARAMETER,
                            message=(
                                f"Delegation attribute requires {delegation_type} "
                                f"parameter on {owner}"
                            ),
                            location=owner,
                        )
                    )

    if profile == DELEGATION_PROFILE and not rules.delegation_param_type:
        findings.append(
            Finding(
                code=FindingCode.MISSING_PROFILE_RULE,
                message="Delegation profile requires delegation parameter type rule.",
            )
        )

    return findings


# ---------------------------------------------------------------------------
# Document check
# ---------------------------------------------------------------------------


def is_valid_timestamp(value: Any) -> bool:
    """True when *value* is an ISO 8601 date or date-time string."""
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def _check_proof(proof: Any, rules: DocumentRules) -> list[Finding]:
    field = rules.proof_field or "proof"
    if not isinstance(proof, Mapping):
        # A bare string or number carries neither fields nor a type.
        proof = {}

    findings: list[Finding] = []
    for name in rules.proof_required_fields:
        if proof.get(name) is None:
            findings.append(
                Finding(
                    code=FindingCode.MISSING_REQUIRED_FIELD,
                    message=f"Missing {field} field: {name}",
                    location=f"{field}.{name}",
                )
            )
    if rules.proof_type and proof.get("type") != rules.proof_type:
        findings.append(
            Finding(
                code=FindingCode.INVALID_PROOF_TYPE,
                message=f"Invalid {field}.type (expected {rules.proof_type}).",
                location=f"{field}.type",
            )
        )
    return findings


def validate_document(document: Any, rules: DocumentRules) -> list[Finding]:
    """Check a delegation context, execution record, or other document.

    Raises:
        MalformedDocument: *document* is not a JSON object.
    """
    if not isinstance(document, Mapping):
        msg = f"Expected a {rules.kind} object, got {type(document).__name__}"
        raise MalformedDocument(msg)

    noun = _DOCUMENT_NOUNS.get(rules.kind, rules.kind)
    findings: list[Finding] = []

    for name in rules.required_fields:
        if document.get(name) is None:
            findings.append(
                Finding(
                    code=FindingCode.MISSING_REQUIRED_FIELD,
                    message=f"Missing {noun} field: {name}",
                    location=name,
                )
            )

    for name in rules.timestamp_fields:
        value = document.get(name)
        if value and not is_valid_timestamp(value):
            findings.append(
                Finding(
                    code=FindingCode.INVALID_TIMESTAMP,
                    message=f"Invalid {name} timestamp.",
                    location=name,
                )
            )

    if rules.proof_field:
        proof = document.get(rules.proof_field)
        if proof:
            findings.extend(_check_proof(proof, rules))

    if rules.reject_revoked and document.get("revoked") is True:
        findings.append(
            Finding(
                code=FindingCode.REVOKED_DELEGATION,
                message=f"{rules.kind.replace('-', ' ').capitalize()} is revoked.",
                location="revoked",
            )
        )

    return findings
