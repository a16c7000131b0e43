# restatekit/endpoint.py
"""Ownership of the single listening endpoint.

The durable runtime's endpoint is an external collaborator; restatekit only
needs two things from it (see :class:`Endpoint`). :class:`EndpointBinder`
wraps one endpoint, starts it at most once and keeps track of what has been
attached to it.
"""

from __future__ import annotations

import logging
from enum import Enum
from threading import RLock
from typing import Protocol, runtime_checkable

from restatekit.binder import BoundDefinition
from restatekit.exceptions import DuplicateDefinitionError, EndpointAlreadyStartedError

logger = logging.getLogger(__name__)

DEFAULT_LISTEN_PORT = 9080


@runtime_checkable
class Endpoint(Protocol):
    """What the durable runtime's network endpoint must offer."""

    def bind(self, definition: BoundDefinition) -> None:
        ...

    async def listen(self, port: int) -> None:
        ...


class EndpointState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"


class EndpointBinder:
    """Starts the endpoint once and attaches bound definitions to it.

    - ``ensure_started`` is a no-op when already listening on the same port and
      raises :class:`EndpointAlreadyStartedError` for a different port.
    - ``attach`` works before or after the endpoint starts; attaching a second
      definition with an already used name raises :class:`DuplicateDefinitionError`.
    """

    def __init__(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        self._state = EndpointState.IDLE
        self._port: int | None = None
        self._attached: dict[str, BoundDefinition] = {}
        self._lock = RLock()

    @property
    def state(self) -> EndpointState:
        return self._state

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def is_listening(self) -> bool:
        return self._state is EndpointState.LISTENING

    async def ensure_started(self, port: int | None = None) -> bool:
        """Start listening on ``port``; return True only for the call that started it."""
        port = DEFAULT_LISTEN_PORT if port is None else int(port)
        with self._lock:
            if self._state is not EndpointState.IDLE:
                if port != self._port:
                    raise EndpointAlreadyStartedError(
                        f"endpoint already {self._state.value} on port {self._port}; refusing port {port}"
                    )
                return False
            self._state = EndpointState.STARTING
            self._port = port

        try:
            await self.endpoint.listen(port)
        except Exception:
            with self._lock:
                self._state = EndpointState.IDLE
                self._port = None
            raise

        with self._lock:
            self._state = EndpointState.LISTENING
        logger.info("endpoint listening on port %s", port)
        return True

    def attach(self, definition: BoundDefinition) -> None:
        with self._lock:
            if definition.name in self._attached:
                raise DuplicateDefinitionError(
                    f"a definition named {definition.name!r} is already attached "
                    f"({self._attached[definition.name].role.value})"
                )
            self.endpoint.bind(definition)
            self._attached[definition.name] = definition
        logger.info("attached %s %r (%s)", definition.role.value, definition.name, ", ".join(sorted(definition.handlers)))

    def attached(self) -> tuple[BoundDefinition, ...]:
        with self._lock:
            return tuple(self._attached.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._attached


__all__ = ["DEFAULT_LISTEN_PORT", "Endpoint", "EndpointBinder", "EndpointState"]
