"""Reading definitions, rule sets, and vector documents from disk.

Every reader raises :class:`~agentidl.domain.errors.MalformedDocument`
when a file cannot be read as structured data, keeping I/O failures
distinct from rule violations.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from agentidl.domain.errors import MalformedDocument
from agentidl.domain.extattrs import normalize_extended_attributes
from agentidl.domain.model import DefinitionAst


class DefinitionParser(Protocol):
    """A grammar parser turning definition source text into a webidl2-shaped AST."""

    def __call__(self, source: str) -> DefinitionAst: ...


def load_json(path: Path) -> Any:
    """Parse *path* as JSON."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise MalformedDocument(msg) from exc


def load_definition(path: Path, *, parser: DefinitionParser | None = None) -> DefinitionAst:
    """Load a definition AST.

    ``.json`` files hold a pre-parsed webidl2 AST. Any other file is
    treated as definition source and handed to *parser* after
    ``[[...]]`` normalization.
    """
    if path.suffix == ".json":
        data = load_json(path)
    else:
        if parser is None:
            msg = f"No definition parser configured for {path.name}"
            raise MalformedDocument(msg)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            msg = f"Cannot read {path}: {exc}"
            raise MalformedDocument(msg) from exc
        data = parser(normalize_extended_attributes(source))

    if not isinstance(data, list):
        msg = f"{path.name}: definition AST must be a list of definitions"
        raise MalformedDocument(msg)
    return data


def load_object(path: Path) -> dict[str, Any]:
    """Load a JSON document whose top level must be an object."""
    data = load_json(path)
    if not isinstance(data, dict):
        msg = f"{path.name}: expected a JSON object, got {type(data).__name__}"
        raise MalformedDocument(msg)
    return data


def collect_files(root: Path, suffix: str) -> list[Path]:
    """All files under *root* ending in *suffix*, sorted; empty if *root* is missing."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob(f"*{suffix}") if p.is_file())
