"""BaseService: shared foundation for agentidl services.

Every service receives the resolved :class:`AgentIdlSettings` at
construction time and resolves relative paths against the project root.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentidl.config.settings import AgentIdlSettings


class BaseService:
    """Base for service-layer classes.

    Usage::

        class GenerateService(BaseService):
            def generate(self, definition: Path) -> ServiceResult:
                out_dir = self._path(self._settings.codegen.out_dir)
                ...
    """

    def __init__(self, settings: AgentIdlSettings) -> None:
        self._settings = settings

    def _path(self, value: str | Path) -> Path:
        return self._settings.resolve_path(value)
