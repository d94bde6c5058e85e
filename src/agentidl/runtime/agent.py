"""Intent-addressed agent runtime.

Each :class:`AgentRuntime` has an identity, an interface model, and an
intent → handler table. Messages are routed by intent string only.

Execution is single-threaded and cooperative: every cross-agent call is a
coroutine that suspends the caller until the callee's handler settles.
There is no cancellation and no timeout; a handler that never resolves
stalls its caller. The handler table is not locked: handlers are
registered before message exchange begins.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, Field

from agentidl.domain.errors import UnhandledIntent, UnknownMethod
from agentidl.domain.model import InterfaceModel

log = structlog.get_logger(__name__)


class Message(BaseModel):
    """A single intent invocation. Frozen once constructed."""

    model_config = {"frozen": True, "populate_by_name": True}

    intent: str
    proof: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


type IntentHandler = Callable[[Message], Awaitable[Any] | Any]


class AgentRuntime:
    """One agent: identity, interface model, and intent dispatch table."""

    def __init__(self, agent_id: str, interface: InterfaceModel) -> None:
        self.id = agent_id
        self.interface = interface
        self._handlers: dict[str, IntentHandler] = {}

    def __repr__(self) -> str:
        return f"AgentRuntime(id={self.id!r}, interface={self.interface.name!r})"

    @property
    def ready(self) -> bool:
        """Advisory: True once at least one intent is registered."""
        return bool(self._handlers)

    @property
    def intents(self) -> list[str]:
        return list(self._handlers)

    def register_intent(self, intent: str, handler: IntentHandler) -> None:
        """Bind *handler* to *intent*, replacing any earlier binding."""
        self._handlers[intent] = handler
        log.debug("intent.registered", agent=self.id, intent=intent)

    async def receive(self, message: Message) -> Any:
        """Dispatch *message* to its intent handler and return the result.

        Raises:
            UnhandledIntent: no handler is registered for ``message.intent``.
        """
        handler = self._handlers.get(message.intent)
        if handler is None:
            log.warning("intent.unhandled", agent=self.id, intent=message.intent)
            raise UnhandledIntent(message.intent, agent_id=self.id)

        log.debug("intent.dispatch", agent=self.id, intent=message.intent, sender=message.from_)
        result = handler(message)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def invoke_intent(
        self,
        target: AgentRuntime,
        intent: str,
        payload: Mapping[str, Any],
        proof: str | None = None,
    ) -> Any:
        """Send *payload* to *target* under *intent*, stamped with sender and time."""
        message = Message(
            intent=intent,
            proof=proof or None,
            payload=dict(payload),
            from_=self.id,
            to=target.id,
            timestamp=datetime.now(UTC).isoformat(),
        )
        return await target.receive(message)

    async def call_method(self, target: AgentRuntime, method_name: str, *args: Any) -> Any:
        """Invoke a declared operation on *target* with positional arguments.

        Arguments are mapped onto the operation's parameter names in
        declaration order; missing trailing arguments become None.

        Raises:
            UnknownMethod: *method_name* is not declared by this agent's interface.
        """
        operation = self.interface.operation(method_name)
        if operation is None:
            raise UnknownMethod(method_name, interface_name=self.interface.name)

        payload = {
            name: args[index] if index < len(args) else None
            for index, name in enumerate(operation.param_names)
        }
        return await self.invoke_intent(target, operation.intent, payload, operation.proof)


class RuntimeTransport:
    """Transport adapter binding one caller/target pair.

    Generated clients call ``send``; each call becomes exactly one
    ``caller.invoke_intent(target, ...)``.
    """

    def __init__(self, caller: AgentRuntime, target: AgentRuntime) -> None:
        self.caller = caller
        self.target = target

    async def send(self, message: Mapping[str, Any]) -> Any:
        return await self.caller.invoke_intent(
            self.target,
            message["intent"],
            message.get("payload") or {},
            message.get("proof"),
        )


class AgentClient:
    """Dynamic client exposing one coroutine per operation of the caller's interface."""

    def __init__(self, runtime: AgentRuntime, target: AgentRuntime) -> None:
        self._runtime = runtime
        self._target = target

    def __getattr__(self, name: str) -> Callable[..., Awaitable[Any]]:
        if name.startswith("_") or self._runtime.interface.operation(name) is None:
            raise AttributeError(name)

        async def call(*args: Any) -> Any:
            return await self._runtime.call_method(self._target, name, *args)

        call.__name__ = name
        return call

    def __dir__(self) -> list[str]:
        return [*super().__dir__(), *self._runtime.interface.operations]


def create_agent_client(runtime: AgentRuntime, target: AgentRuntime) -> AgentClient:
    """Build a client whose methods route through ``runtime.call_method``."""
    return AgentClient(runtime, target)
