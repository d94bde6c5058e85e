"""agentidl: AgentIDL compiler, conformance validator, and intent runtime."""

__version__ = "0.3.0"
