"""Interface model: the normalized view every generator reads from.

A definition AST (webidl2 JSON shape) is turned into an
:class:`InterfaceModel` exactly once. Code generation, the ontology
projection, and the runtime all consume the model; none of them re-read
the AST.

INVARIANT: parameter order is the declaration order and defines the
positional payload mapping used by generated code and ``call_method``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from agentidl.domain.errors import MalformedDocument, NoInterfaceDefinition
from agentidl.domain.extattrs import ExtensionRecord
from agentidl.domain.typedesc import (
    IDL_DIALECT,
    TypeDescriptor,
    Unknown,
    decode_type,
    resolve,
)

type DefinitionAst = Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class ParameterModel:
    """One operation argument."""

    name: str
    type: str
    descriptor: TypeDescriptor = field(default_factory=Unknown, compare=False)


@dataclass(frozen=True)
class OperationModel:
    """One operation with its intent routing metadata."""

    name: str
    intent: str = ""
    proof: str | None = None
    params: tuple[ParameterModel, ...] = ()
    return_type: str = "any"
    return_descriptor: TypeDescriptor = field(default_factory=Unknown, compare=False)
    extensions: ExtensionRecord = field(default_factory=ExtensionRecord, compare=False)

    @property
    def param_names(self) -> list[str]:
        return [param.name for param in self.params]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "intent": self.intent,
            "proof": self.proof,
            "params": [{"name": p.name, "type": p.type} for p in self.params],
            "returnType": self.return_type,
        }


@dataclass(frozen=True)
class InterfaceModel:
    """A normalized interface: name, semantic URIs, and ordered operations."""

    name: str
    context: str | None = None
    semantic: str | None = None
    operations: dict[str, OperationModel] = field(default_factory=dict)

    def operation(self, name: str) -> OperationModel | None:
        return self.operations.get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "context": self.context,
            "semantic": self.semantic,
            "methods": {name: op.to_dict() for name, op in self.operations.items()},
        }


# ---------------------------------------------------------------------------
# AST navigation
# ---------------------------------------------------------------------------


def ast_nodes(nodes: Any, where: str) -> list[Mapping[str, Any]]:
    """The entries of an AST list, which must all be objects.

    Raises:
        MalformedDocument: *nodes* is not a list or holds a non-object entry.
    """
    if nodes is None:
        return []
    if isinstance(nodes, (str, bytes, Mapping)) or not isinstance(nodes, Sequence):
        msg = f"Expected a list of {where}, got {type(nodes).__name__}"
        raise MalformedDocument(msg)
    for node in nodes:
        if not isinstance(node, Mapping):
            msg = f"Expected each of {where} to be an object, got {type(node).__name__}"
            raise MalformedDocument(msg)
    return list(nodes)


def find_interfaces(ast: DefinitionAst) -> list[Mapping[str, Any]]:
    """All ``interface`` definitions in *ast*, in document order."""
    return [
        definition
        for definition in ast_nodes(ast, "definitions")
        if definition.get("type") == "interface"
    ]


def operation_members(interface: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """All ``operation`` members of *interface*, in declaration order."""
    return [
        member
        for member in ast_nodes(interface.get("members"), "interface members")
        if member.get("type") == "operation"
    ]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def _build_operation(member: Mapping[str, Any]) -> OperationModel:
    extensions = ExtensionRecord.read(member.get("extAttrs"))
    params: list[ParameterModel] = []
    for argument in ast_nodes(member.get("arguments"), "arguments"):
        descriptor = decode_type(argument.get("idlType"))
        params.append(
            ParameterModel(
                name=str(argument.get("name", "")),
                type=resolve(descriptor, IDL_DIALECT),
                descriptor=descriptor,
            )
        )
    return_descriptor = decode_type(member.get("idlType"))
    return OperationModel(
        name=str(member["name"]),
        intent=extensions.intent or "",
        proof=extensions.proof,
        params=tuple(params),
        return_type=resolve(return_descriptor, IDL_DIALECT),
        return_descriptor=return_descriptor,
        extensions=extensions,
    )


def build_interface_model(ast: DefinitionAst) -> InterfaceModel:
    """Build the model for the first interface in *ast*.

    Raises:
        NoInterfaceDefinition: *ast* contains no interface.
    """
    interfaces = find_interfaces(ast)
    if not interfaces:
        raise NoInterfaceDefinition("No interface definition found in IDL.")
    interface = interfaces[0]
    extensions = ExtensionRecord.read(interface.get("extAttrs"))

    operations: dict[str, OperationModel] = {}
    for member in operation_members(interface):
        # Anonymous special operations carry no routable name.
        if not member.get("name"):
            continue
        operation = _build_operation(member)
        # Redeclared names overwrite; the validator reports them.
        operations[operation.name] = operation

    return InterfaceModel(
        name=str(interface.get("name", "")),
        context=extensions.context,
        semantic=extensions.semantic,
        operations=operations,
    )
