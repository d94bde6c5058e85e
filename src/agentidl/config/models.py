"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``agentidl.toml`` only holds
overrides. A project that publishes its own ontology usually needs just
an ``[ontology.prefixes]`` table.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ONTOLOGY_BASE = "https://s-agent-comm.github.io/agent-ontology/ontologies"

DEFAULT_PREFIXES: dict[str, str] = {
    "agent": f"{ONTOLOGY_BASE}/agent.ttl#",
    "intent": f"{ONTOLOGY_BASE}/intent.ttl#",
    "ledger": f"{ONTOLOGY_BASE}/ledger.ttl#",
    "capability": f"{ONTOLOGY_BASE}/capability.ttl#",
}

Flavor = Literal["typed", "untyped"]
ReportFormat = Literal["text", "junit"]


class OntologyConfig(BaseModel):
    """[ontology] section."""

    model_config = {"frozen": True}

    prefixes: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PREFIXES))
    class_comment: str = "AgentIDL interface"


class CodegenConfig(BaseModel):
    """[codegen] section."""

    model_config = {"frozen": True}

    flavors: tuple[Flavor, ...] = ("typed", "untyped")
    out_dir: str = "generated"
    ontology_dir: str = "generated/ontology"
    untyped_suffix: str = "_untyped"


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    rules_dir: str = "validation-rules"
    core_rules: str = "core.json"
    delegation_rules: str = "delegation.json"
    audit_rules: str = "audit.json"
    profile: str = "all"


class ConformanceConfig(BaseModel):
    """[conformance] section."""

    model_config = {"frozen": True}

    root: str = "conformance"
    format: ReportFormat = "text"
    caller_id: str = "did:example:caller"
    executor_id: str = "did:example:executor"


class AgentIdlConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    ontology: OntologyConfig = Field(default_factory=OntologyConfig)
    codegen: CodegenConfig = Field(default_factory=CodegenConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    conformance: ConformanceConfig = Field(default_factory=ConformanceConfig)
