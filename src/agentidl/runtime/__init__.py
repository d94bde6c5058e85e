"""Intent-addressed runtime: agents, messages, and transports.

The runtime depends on the domain layer only. Generated client and
handler modules run against it through :class:`RuntimeTransport` and
``AgentRuntime.register_intent``.
"""

from agentidl.runtime.agent import (
    AgentClient,
    AgentRuntime,
    Message,
    RuntimeTransport,
    create_agent_client,
)

__all__ = [
    "AgentClient",
    "AgentRuntime",
    "Message",
    "RuntimeTransport",
    "create_agent_client",
]
