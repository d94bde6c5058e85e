"""Type descriptors and the recursive type resolver.

Raw webidl2 type shapes (``str | list | dict`` with arbitrarily nested
``idlType`` wrappers) are decoded once into a closed tagged union::

    Primitive(name) | Union(members) | Generic(kind, inner) | Unknown

Resolution and custom-type collection are exhaustive ``match`` statements
over that union. Both are pure and never raise: anything the decoder does
not recognize becomes :class:`Unknown`, which resolves to the dialect's
"any" placeholder.

INVARIANT: descriptors form a tree (they come from a static grammar AST),
so every recursion here terminates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

PROMISE_KIND = "Promise"
SEQUENCE_KIND = "sequence"

# Names that mark wrapper types rather than nominal custom types.
WRAPPER_MARKERS: tuple[str, ...] = ("Promise", "Array")


# ---------------------------------------------------------------------------
# Descriptor union
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Primitive:
    """A bare type name: a recognized primitive or a nominal type reference."""

    name: str


@dataclass(frozen=True)
class Union:
    """Ordered alternatives. Duplicates are kept in declaration order."""

    members: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class Generic:
    """A parameterized type such as ``Promise<T>`` or ``sequence<T>``."""

    kind: str
    inner: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class Unknown:
    """A shape the decoder could not classify (or an absent type)."""


type TypeDescriptor = Primitive | Union | Generic | Unknown


def decode_type(raw: Any) -> TypeDescriptor:
    """Decode a webidl2 ``idlType`` value into a :data:`TypeDescriptor`.

    Single-inner wrapper objects (``{"idlType": {...}}`` without a generic
    kind or union flag) are unwrapped until a primitive, union, or generic
    is reached.
    """
    if raw is None:
        return Unknown()
    if isinstance(raw, str):
        return Primitive(raw)
    if isinstance(raw, list):
        return Union(tuple(decode_type(item) for item in raw))
    if not isinstance(raw, Mapping):
        return Unknown()

    inner = raw.get("idlType")
    if raw.get("union") and isinstance(inner, list):
        return Union(tuple(decode_type(item) for item in inner))

    kind = raw.get("generic")
    if kind:
        if isinstance(inner, list):
            members = tuple(decode_type(item) for item in inner)
        elif inner:
            members = (decode_type(inner),)
        else:
            members = (Unknown(),)
        return Generic(str(kind), members)

    if inner:
        return decode_type(inner)
    return Unknown()


# ---------------------------------------------------------------------------
# Primitive table
# ---------------------------------------------------------------------------


class PrimitiveKind(StrEnum):
    """Categories of recognized primitive type names."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ANY = "any"
    VOID = "void"


_STRING_NAMES = frozenset({"domstring", "usvstring", "bytestring", "string"})
_FLOAT_NAMES = frozenset({"double", "float", "unrestricted double", "unrestricted float"})
_VOID_NAMES = frozenset({"undefined", "void"})


def classify_primitive(name: str) -> PrimitiveKind | None:
    """Return the primitive category for *name*, or None for a nominal type."""
    lower = name.lower()
    if lower == "boolean":
        return PrimitiveKind.BOOLEAN
    if lower in ("byte", "octet") or "short" in lower or "long" in lower:
        return PrimitiveKind.NUMBER
    if lower in _FLOAT_NAMES:
        return PrimitiveKind.NUMBER
    if lower in _STRING_NAMES:
        return PrimitiveKind.STRING
    if lower == "any":
        return PrimitiveKind.ANY
    if lower in _VOID_NAMES:
        return PrimitiveKind.VOID
    return None


# ---------------------------------------------------------------------------
# Dialects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeDialect:
    """How resolved type expressions are spelled in one target notation.

    Attributes:
        name: Dialect identifier.
        primitives: Spelling per primitive category. Empty means primitive
            names are kept verbatim.
        any_type: Placeholder for absent or unknown types.
        union_separator: Combinator placed between union members.
        promise_template: Format string wrapping a ``Promise`` inner type.
        sequence_template: Format string wrapping a ``sequence`` inner type.
        generic_template: Format string for every other generic kind.
    """

    name: str
    any_type: str
    union_separator: str
    promise_template: str
    sequence_template: str
    generic_template: str
    primitives: Mapping[PrimitiveKind, str] = field(default_factory=dict)

    def primitive(self, name: str) -> str:
        if not self.primitives:
            return name
        kind = classify_primitive(name)
        if kind is None:
            return name
        return self.primitives[kind]

    def join(self, parts: Iterable[str]) -> str:
        return self.union_separator.join(parts)

    def wrap(self, kind: str, inner: str) -> str:
        if kind == PROMISE_KIND:
            return self.promise_template.format(inner=inner)
        if kind == SEQUENCE_KIND:
            return self.sequence_template.format(inner=inner)
        return self.generic_template.format(kind=kind, inner=inner)


IDL_DIALECT = TypeDialect(
    name="idl",
    any_type="any",
    union_separator=" or ",
    promise_template="Promise<{inner}>",
    sequence_template="sequence<{inner}>",
    generic_template="{kind}<{inner}>",
)

PYTHON_DIALECT = TypeDialect(
    name="python",
    any_type="Any",
    union_separator=" | ",
    promise_template="Awaitable[{inner}]",
    sequence_template="list[{inner}]",
    generic_template="{kind}[{inner}]",
    primitives={
        PrimitiveKind.BOOLEAN: "bool",
        PrimitiveKind.NUMBER: "float",
        PrimitiveKind.STRING: "str",
        PrimitiveKind.ANY: "Any",
        PrimitiveKind.VOID: "None",
    },
)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve(descriptor: TypeDescriptor | None, dialect: TypeDialect = IDL_DIALECT) -> str:
    """Resolve *descriptor* to a type expression in *dialect*."""
    match descriptor:
        case Primitive(name=name):
            return dialect.primitive(name)
        case Union(members=members):
            return dialect.join(resolve(member, dialect) for member in members)
        case Generic(kind=kind, inner=inner):
            return dialect.wrap(kind, dialect.join(resolve(item, dialect) for item in inner))
        case _:
            return dialect.any_type


def unwrap_promise(descriptor: TypeDescriptor) -> TypeDescriptor:
    """Strip one outer ``Promise`` wrapper, if present."""
    match descriptor:
        case Generic(kind=kind, inner=inner) if kind == PROMISE_KIND:
            return inner[0] if len(inner) == 1 else Union(inner)
        case _:
            return descriptor


def _collect(descriptor: TypeDescriptor | None, into: dict[str, None]) -> None:
    match descriptor:
        case Primitive(name=name):
            if classify_primitive(name) is None and not name.startswith(WRAPPER_MARKERS):
                into.setdefault(name)
        case Union(members=members):
            for member in members:
                _collect(member, into)
        case Generic(inner=inner):
            for item in inner:
                _collect(item, into)
        case _:
            return


def collect_referenced_types(descriptor: TypeDescriptor | None) -> set[str]:
    """Return every nominal (non-primitive) type name referenced by *descriptor*."""
    found: dict[str, None] = {}
    _collect(descriptor, found)
    return set(found)


def ordered_referenced_types(descriptors: Iterable[TypeDescriptor | None]) -> list[str]:
    """Like :func:`collect_referenced_types` across many descriptors, first-seen order."""
    found: dict[str, None] = {}
    for descriptor in descriptors:
        _collect(descriptor, found)
    return list(found)
