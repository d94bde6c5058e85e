"""Extension attribute reading.

:func:`read_ext_attr` is the single source of truth for semantic metadata.
The interface model builder and the conformance validator both read
attributes through it so they always see the same values.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from agentidl.domain.errors import MalformedDocument

# The closed set of recognized attribute names.
CONTEXT = "Context"
SEMANTIC = "Semantic"
INTENT = "Intent"
PROOF = "Proof"
DELEGATION = "Delegation"
CAPABILITY = "Capability"

INTERFACE_ATTRIBUTES: tuple[str, ...] = (CONTEXT, SEMANTIC)
OPERATION_ATTRIBUTES: tuple[str, ...] = (INTENT, PROOF, DELEGATION, CAPABILITY)

_DOUBLE_OPEN = re.compile(r"\[\[")
_DOUBLE_CLOSE = re.compile(r"\]\]")


def normalize_extended_attributes(source: str) -> str:
    """Collapse ``[[Attr]]`` brackets to the single-bracket base grammar form.

    Applied to raw definition text before it reaches the grammar parser.
    """
    return _DOUBLE_CLOSE.sub("]", _DOUBLE_OPEN.sub("[", source))


def _rhs_value(attribute: Mapping[str, Any]) -> str | None:
    rhs = attribute.get("rhs")
    if isinstance(rhs, str):
        return rhs
    if isinstance(rhs, Mapping) and isinstance(rhs.get("value"), str):
        return rhs["value"]
    return None


def _attribute_list(attributes: Any) -> list[Mapping[str, Any]]:
    if not attributes:
        return []
    if isinstance(attributes, (str, Mapping)) or not isinstance(attributes, Sequence):
        msg = f"Expected a list of extended attributes, got {type(attributes).__name__}"
        raise MalformedDocument(msg)
    for attr in attributes:
        if not isinstance(attr, Mapping):
            msg = f"Expected an extended attribute object, got {type(attr).__name__}"
            raise MalformedDocument(msg)
    return list(attributes)


def read_ext_attr(attributes: Sequence[Mapping[str, Any]] | None, name: str) -> str | None:
    """Return the string value of the attribute called *name*.

    Returns None when *attributes* is absent, no attribute matches, or the
    value is not string-shaped. A value wrapped in double quotes is
    unquoted; any other string is returned verbatim.

    Raises:
        MalformedDocument: *attributes* holds an entry that is not an object.
    """
    found = next(
        (attr for attr in _attribute_list(attributes) if attr.get("name") == name), None
    )
    if found is None:
        return None
    value = _rhs_value(found)
    if value is None:
        return None
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def attribute_names(attributes: Sequence[Mapping[str, Any]] | None) -> list[str]:
    """Names of all attributes in *attributes*, in declaration order."""
    return [str(attr.get("name")) for attr in _attribute_list(attributes)]


class ExtensionRecord(BaseModel):
    """Typed view of the recognized extension attributes on one declaration."""

    model_config = {"frozen": True}

    context: str | None = None
    semantic: str | None = None
    intent: str | None = None
    proof: str | None = None
    delegation: str | None = None
    capability: str | None = None

    @classmethod
    def read(cls, attributes: Sequence[Mapping[str, Any]] | None) -> ExtensionRecord:
        """Populate every recognized field from a raw attribute list."""
        return cls(
            context=read_ext_attr(attributes, CONTEXT),
            semantic=read_ext_attr(attributes, SEMANTIC),
            intent=read_ext_attr(attributes, INTENT),
            proof=read_ext_attr(attributes, PROOF),
            delegation=read_ext_attr(attributes, DELEGATION),
            capability=read_ext_attr(attributes, CAPABILITY),
        )
