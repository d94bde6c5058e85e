"""Jinja2 environments for packaged emission templates.

Templates live under ``agentidl/templates/<group>/``. A project may
override any of them by placing a file with the same name in an override
directory, which is searched first.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader


def python_literal(value: Any) -> str:
    """Render *value* as a Python literal (double-quoted strings, ``None``)."""
    if value is None:
        return "None"
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def turtle_literal(value: str) -> str:
    """Render *value* as a quoted Turtle string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def build_template_environment(group: str, *, override_dir: Path | None = None) -> Environment:
    """Build a Jinja2 environment with overrides before packaged defaults."""
    loaders: list[BaseLoader] = []
    if override_dir is not None:
        loaders.append(FileSystemLoader([str(override_dir / group), str(override_dir)]))
    loaders.append(PackageLoader("agentidl", f"templates/{group}"))

    env = Environment(
        loader=ChoiceLoader(loaders),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pyliteral"] = python_literal
    env.filters["ttl_literal"] = turtle_literal
    return env
