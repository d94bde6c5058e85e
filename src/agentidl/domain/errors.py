"""Exception hierarchy for structural and dispatch failures.

Rule violations are never raised: validators collect them as
:class:`~agentidl.domain.findings.Finding` values. Only failures that
abort the current unit of work (no interface to compile, a call that
cannot be routed, a document that is not structured data) are exceptions.
"""

from __future__ import annotations


class AgentIdlError(Exception):
    """Base class for all agentidl exceptions."""


class NoInterfaceDefinition(AgentIdlError):
    """The definition AST contains no ``interface`` definition."""

    def __init__(self, message: str = "No interface definition found.") -> None:
        super().__init__(message)


class MalformedDocument(AgentIdlError):
    """A definition or rule/vector document could not be read as structured data."""


class UnhandledIntent(AgentIdlError):
    """A message arrived for an intent with no registered handler."""

    def __init__(self, intent: str, agent_id: str | None = None) -> None:
        self.intent = intent
        self.agent_id = agent_id
        super().__init__(f"No handler registered for intent: {intent}")


class UnknownMethod(AgentIdlError):
    """A method name is not declared by the caller's interface model."""

    def __init__(self, method_name: str, interface_name: str | None = None) -> None:
        self.method_name = method_name
        self.interface_name = interface_name
        super().__init__(f"Method not defined in interface: {method_name}")
