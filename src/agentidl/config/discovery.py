"""Config file discovery and loading.

Walk-up finder locates ``agentidl.toml`` the way git finds ``.git/``.
``AGENTIDL_CONFIG`` and the ``--config`` CLI flag override discovery.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from agentidl.config.models import AgentIdlConfig

CONFIG_FILENAME = "agentidl.toml"
CONFIG_ENV_VAR = "AGENTIDL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``agentidl.toml``.

    An ``AGENTIDL_CONFIG`` path wins over the walk-up; if it names a
    missing file, no config is used.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> AgentIdlConfig:
    """Load and validate config from a TOML file.

    Returns the default :class:`AgentIdlConfig` when no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return AgentIdlConfig()

    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    return AgentIdlConfig.model_validate(data)
