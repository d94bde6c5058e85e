"""Declarative rule sets for the conformance validator.

Rule documents are flat JSON objects with camelCase keys (for example
``validation-rules/core.json``). The models below accept those documents
unchanged via alias generation and also accept snake_case keyword
arguments when constructed in code.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from agentidl.domain.extattrs import (
    CAPABILITY,
    CONTEXT,
    DELEGATION,
    INTENT,
    PROOF,
    SEMANTIC,
)

DEFAULT_DELEGATION_PARAM_TYPE = "DelegationContext"

DEFAULT_ALLOWED_EXT_ATTRS: frozenset[str] = frozenset(
    {CONTEXT, SEMANTIC, INTENT, PROOF, DELEGATION, CAPABILITY}
)


class DefinitionRuleSet(BaseModel):
    """Rules applied to interface definitions.

    Attributes:
        allowed_ext_attrs: Attribute names accepted anywhere.
        required_interface_attrs: Attributes every interface must carry.
        required_operation_attrs: Attributes every operation must carry.
        delegation_param_type: Parameter type name an operation marked
            ``[Delegation]`` must accept. Unset means the default name.
    """

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    allowed_ext_attrs: frozenset[str] = DEFAULT_ALLOWED_EXT_ATTRS
    required_interface_attrs: tuple[str, ...] = ()
    required_operation_attrs: tuple[str, ...] = ()
    delegation_param_type: str | None = None

    @property
    def effective_delegation_param_type(self) -> str:
        return self.delegation_param_type or DEFAULT_DELEGATION_PARAM_TYPE


class DocumentRules(BaseModel):
    """Structural rules for an externally supplied document.

    Attributes:
        required_fields: Top-level fields that must be present and non-null.
        timestamp_fields: Fields that, when set, must parse as ISO 8601.
        proof_field: Name of the nested proof/attestation object.
        proof_type: Expected ``type`` of the proof object, if enforced.
        proof_required_fields: Fields the proof object must carry.
        reject_revoked: Treat ``revoked: true`` as a violation. Fixed per
            document kind; rule documents cannot change it.
    """

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    kind: str = "document"
    required_fields: tuple[str, ...] = ()
    timestamp_fields: tuple[str, ...] = ()
    proof_field: str | None = None
    proof_type: str | None = None
    proof_required_fields: tuple[str, ...] = ()
    reject_revoked: ClassVar[bool] = False


class DelegationContextRules(DocumentRules):
    """Rules for delegation-context documents (``delegation.json``)."""

    kind: str = "delegation-context"
    required_fields: tuple[str, ...] = Field(default=(), alias="requiredDelegationFields")
    timestamp_fields: tuple[str, ...] = ("issuedAt", "expiresAt")
    proof_field: str | None = "proof"
    proof_type: str | None = Field(default=None, alias="proofType")
    reject_revoked: ClassVar[bool] = True


class ExecutionRecordRules(DocumentRules):
    """Rules for execution/audit records (``audit.json``)."""

    kind: str = "execution-record"
    required_fields: tuple[str, ...] = Field(default=(), alias="requiredExecutionFields")
    timestamp_fields: tuple[str, ...] = ("timestamp",)
    proof_field: str | None = "attestation"
    proof_type: str | None = Field(default=None, alias="attestationType")
    proof_required_fields: tuple[str, ...] = Field(default=(), alias="attestationFields")


DOCUMENT_RULE_KINDS: dict[str, type[DocumentRules]] = {
    "delegation-context": DelegationContextRules,
    "execution-record": ExecutionRecordRules,
}
