# restatekit/contrib/restate_sdk.py
"""Endpoint backed by the Restate Python SDK.

Install with the ``sdk`` extra (``restate-sdk`` + ``uvicorn``). Each
:class:`~restatekit.binder.BoundDefinition` becomes a ``restate.Service``,
``restate.VirtualObject`` or ``restate.Workflow`` bound to one SDK endpoint;
``listen`` serves the endpoint's ASGI app with uvicorn on a daemon thread
so that callers (including sync host hooks) are never blocked by the server.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import restate
import uvicorn
from restate.endpoint import Endpoint as _SdkEndpoint

from restatekit.binder import BoundDefinition
from restatekit.roles import WORKFLOW_ENTRY_POINT, Role

logger = logging.getLogger(__name__)

STARTUP_POLL_INTERVAL = 0.05


def to_sdk_definition(definition: BoundDefinition) -> Any:
    """Build the SDK handler group equivalent of ``definition``."""
    if definition.role is Role.SERVICE:
        group = restate.Service(definition.name)
        for name, fn in definition.handlers.items():
            group.handler(name=name)(fn)
        return group

    if definition.role is Role.OBJECT:
        group = restate.VirtualObject(definition.name)
        for name, fn in definition.handlers.items():
            kind = definition.handler_options.get(name, {}).get("kind") or "exclusive"
            group.handler(name=name, kind=kind)(fn)
        return group

    group = restate.Workflow(definition.name)
    for name, fn in definition.handlers.items():
        # The SDK fixes workflow kinds: `run` is exclusive, everything else shared.
        expected = "exclusive" if name == WORKFLOW_ENTRY_POINT else "shared"
        kind = definition.handler_options.get(name, {}).get("kind")
        if kind is not None and kind != expected:
            logger.warning(
                "workflow %s handler %r declares kind=%r; the runtime always treats it as %r",
                definition.name,
                name,
                kind,
                expected,
            )
        if name == WORKFLOW_ENTRY_POINT:
            group.main(name=name)(fn)
        else:
            group.handler(name=name)(fn)
    return group


class SdkEndpoint:
    """:class:`~restatekit.endpoint.Endpoint` implementation over ``restate.endpoint.Endpoint``."""

    def __init__(self, *, host: str = "0.0.0.0", log_level: str = "info") -> None:
        self.host = host
        self.log_level = log_level
        self.sdk_endpoint = _SdkEndpoint()
        self.groups: dict[str, Any] = {}
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    def bind(self, definition: BoundDefinition) -> None:
        group = to_sdk_definition(definition)
        self.sdk_endpoint.bind(group)
        self.groups[definition.name] = group

    def asgi_app(self) -> Any:
        return self.sdk_endpoint.app()

    def _config(self, port: int) -> uvicorn.Config:
        return uvicorn.Config(self.asgi_app(), host=self.host, port=port, log_level=self.log_level)

    async def listen(self, port: int) -> None:
        if self._thread is not None:
            return
        server = uvicorn.Server(self._config(port))
        thread = threading.Thread(target=server.run, name=f"restatekit-endpoint-{port}", daemon=True)
        self._server, self._thread = server, thread
        thread.start()

        while not server.started:
            if not thread.is_alive():
                self._server = self._thread = None
                raise RuntimeError(f"restate endpoint could not start on {self.host}:{port}")
            await asyncio.sleep(STARTUP_POLL_INTERVAL)
        logger.debug("restate endpoint serving on %s:%s", self.host, port)

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True


__all__ = ["SdkEndpoint", "to_sdk_definition"]
