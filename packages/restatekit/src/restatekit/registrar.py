# restatekit/registrar.py
"""Announce this endpoint to the control plane.

The handshake is a single ``POST {admin_url}/deployments`` with the endpoint's
externally reachable URI. A 2xx response or a 409 (the control plane already
knows the deployment) flips the registrar to ``registered`` for good. Any
other status, a timeout, a connection error or an admin URL httpx cannot
parse is logged and leaves the state ``unregistered`` so the next drain cycle
tries again.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

import httpx

from restatekit.exceptions import RegistrationHandshakeError
from restatekit.tracing import service_span

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(10.0)
HTTP_CONFLICT = 409

ClientFactory = Callable[[], httpx.AsyncClient]


class DeploymentState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


def endpoint_uri(protocol: str, host: str, port: int) -> str:
    """Return ``"<protocol>://<host>:<port>"``."""
    protocol = (protocol or "http").strip().rstrip(":/")
    return f"{protocol}://{host}:{int(port)}"


class DeploymentRegistrar:
    """Performs the deployment handshake until it succeeds once."""

    def __init__(
        self,
        admin_url: str,
        *,
        protocol: str = "http",
        host: str = "localhost",
        force: bool = False,
        timeout: httpx.Timeout | float | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.admin_url = admin_url.rstrip("/")
        self.protocol = protocol
        self.host = host
        self.force = force
        self._timeout = DEFAULT_TIMEOUT if timeout is None else timeout
        self._client_factory = client_factory or self._default_client
        self._state = DeploymentState.UNREGISTERED
        self.attempts = 0

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    @property
    def state(self) -> DeploymentState:
        return self._state

    @property
    def is_registered(self) -> bool:
        return self._state is DeploymentState.REGISTERED

    @property
    def deployments_url(self) -> str:
        return f"{self.admin_url}/deployments"

    def payload(self, port: int) -> dict[str, Any]:
        body: dict[str, Any] = {"uri": endpoint_uri(self.protocol, self.host, port)}
        if self.force:
            body["force"] = True
        return body

    async def register(self, port: int) -> bool:
        """Run the handshake unless already registered; return the resulting registration flag.

        Never raises: failures are logged and reported as ``False``.
        """
        if self.is_registered:
            return True
        try:
            await self.handshake(port)
        except RegistrationHandshakeError as err:
            logger.error("deployment registration failed: %s", err, exc_info=err.status_code is None)
            return False
        return True

    async def handshake(self, port: int) -> httpx.Response:
        """Send the registration request, raising :class:`RegistrationHandshakeError` on failure."""
        body = self.payload(port)
        self.attempts += 1
        attrs = {"restatekit.uri": body["uri"], "restatekit.admin_url": self.admin_url}
        async with service_span("restatekit.deployment.register", attributes=attrs) as span:
            try:
                async with self._client_factory() as client:
                    response = await client.post(
                        self.deployments_url,
                        json=body,
                        headers={"Content-Type": "application/json"},
                    )
            except (httpx.HTTPError, httpx.InvalidURL) as err:
                raise RegistrationHandshakeError(
                    f"could not reach control plane at {self.deployments_url}: {err!r}"
                ) from err

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code < 300:
                logger.info("deployment %s registered with %s", body["uri"], self.admin_url)
            elif response.status_code == HTTP_CONFLICT:
                logger.warning("deployment %s already registered with %s", body["uri"], self.admin_url)
            else:
                raise RegistrationHandshakeError(
                    f"control plane answered {response.status_code} for {body['uri']}: {response.text[:500]}",
                    status_code=response.status_code,
                )

        self._state = DeploymentState.REGISTERED
        return response


__all__ = ["DeploymentRegistrar", "DeploymentState", "endpoint_uri"]
