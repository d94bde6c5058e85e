"""Ontology projection: JSON-LD graph and Turtle text from an InterfaceModel.

The projector builds one NetworkX digraph per model (a class node for
the interface, an intent node per operation, an ``agent:interface`` edge
from each intent to its class) and serializes it two ways. The prefix
table is an explicit constructor argument; there is no shared global.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import networkx as nx
import structlog

from agentidl.infrastructure.templates import build_template_environment

if TYPE_CHECKING:
    from jinja2 import Environment

    from agentidl.config.models import OntologyConfig
    from agentidl.domain.model import InterfaceModel

log = structlog.get_logger(__name__)

STANDARD_PREFIXES: dict[str, str] = {
    "owl": "http://www.w3.org/2002/07/owl#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
}

INTERFACE_PREDICATE = "agent:interface"
CLASS_TYPE = "owl:Class"
INTENT_TYPE = "agent:Intent"

type _Graph = nx.DiGraph


@dataclass(frozen=True)
class TurtleEntry:
    label: str
    intent_iri: str | None
    proof_iri: str | None


class OntologyProjector:
    """Project an interface model into linked-data serializations."""

    def __init__(
        self,
        prefixes: Mapping[str, str],
        *,
        class_comment: str = "AgentIDL interface",
        env: Environment | None = None,
    ) -> None:
        self._prefixes = dict(prefixes)
        self._class_comment = class_comment
        self._env = env or build_template_environment("ontology")

    @classmethod
    def from_config(cls, config: OntologyConfig) -> OntologyProjector:
        return cls(config.prefixes, class_comment=config.class_comment)

    @property
    def prefixes(self) -> dict[str, str]:
        return dict(self._prefixes)

    def expand_curie(self, value: str) -> str:
        """Expand ``prefix:local`` to a full IRI.

        Values without exactly one colon, or with an unknown prefix, are
        returned unchanged.
        """
        parts = value.split(":")
        if len(parts) != 2:
            return value
        prefix, local = parts
        base = self._prefixes.get(prefix)
        if base is None:
            return value
        return f"{base}{local}"

    @staticmethod
    def class_id(model: InterfaceModel) -> str:
        return f"agent:{model.name}"

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def build_graph(self, model: InterfaceModel) -> _Graph:
        """Class node plus one intent node per operation, in declaration order."""
        g: _Graph = nx.DiGraph(interface=model.name)
        class_id = self.class_id(model)
        g.add_node(
            class_id,
            **{
                "@type": CLASS_TYPE,
                "rdfs:label": model.name,
                "rdfs:comment": self._class_comment,
            },
        )
        for op in model.operations.values():
            node_id = op.intent or f"{model.name}.{op.name}"
            attrs: dict[str, Any] = {"@type": INTENT_TYPE, "rdfs:label": op.name}
            if op.intent:
                attrs["Intent"] = op.intent
            if op.proof:
                attrs["Proof"] = op.proof
            g.add_node(node_id, **attrs)
            g.add_edge(node_id, class_id, predicate=INTERFACE_PREDICATE)
        return g

    def context(self, model: InterfaceModel) -> list[Any]:
        """JSON-LD ``@context``: the interface context URI first, then the prefix table."""
        mapping = {**STANDARD_PREFIXES, **self._prefixes}
        return [model.context, mapping] if model.context else [mapping]

    def to_jsonld(self, model: InterfaceModel) -> dict[str, Any]:
        g = self.build_graph(model)
        nodes: list[dict[str, Any]] = []
        for node_id, attrs in g.nodes(data=True):
            node: dict[str, Any] = {"@id": node_id, **attrs}
            for _, target, edge in g.out_edges(node_id, data=True):
                node[edge["predicate"]] = target
            nodes.append(node)
        return {"@context": self.context(model), "@graph": nodes}

    # ------------------------------------------------------------------
    # Turtle
    # ------------------------------------------------------------------

    def to_turtle(self, model: InterfaceModel) -> str:
        entries = [
            TurtleEntry(
                label=op.name,
                intent_iri=self.expand_curie(op.intent) if op.intent else None,
                proof_iri=self.expand_curie(op.proof) if op.proof else None,
            )
            for op in model.operations.values()
        ]
        template = self._env.get_template("interface.ttl.j2")
        return template.render(
            prefixes=self._prefixes,
            class_id=self.class_id(model),
            interface=model.name,
            entries=entries,
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self, model: InterfaceModel, out_dir: Path) -> list[Path]:
        """Write ``<name>.jsonld`` and ``<name>.ttl`` into *out_dir*."""
        out_dir.mkdir(parents=True, exist_ok=True)
        stem = model.name.lower()
        jsonld_path = out_dir / f"{stem}.jsonld"
        ttl_path = out_dir / f"{stem}.ttl"
        jsonld_path.write_text(json.dumps(self.to_jsonld(model), indent=2), encoding="utf-8")
        ttl_path.write_text(self.to_turtle(model), encoding="utf-8")
        log.debug("ontology.written", interface=model.name, out_dir=str(out_dir))
        return [jsonld_path, ttl_path]
