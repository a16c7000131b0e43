# restatekit/app.py
"""The process-scoped restatekit application object.

Startup is explicitly two-phase:

1. ``register_features`` -> enqueue ``(class, role)`` intents; no instances needed
2. ``start``             -> start the endpoint (once per process)
3. ``finalize_registrations(resolver)`` -> resolve, bind, attach, then
   announce the deployment to the control plane

``bootstrap(resolver)`` runs 2 and 3 together and is what a host framework
calls from its "all dependencies constructed" hook.
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable

from .bootstrap import DrainReport, drain
from .conf.models import RestateKitSettings
from .conf.settings import Settings
from .endpoint import Endpoint, EndpointBinder
from .registrar import ClientFactory, DeploymentRegistrar, DeploymentState
from .registry import MetadataRegistry, RegistrationQueues, default_registry
from .resolvers import ResolverResult, construct
from .roles import ROLE_ORDER, Role

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _import_string(path: str):
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attr) if attr else module


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

@dataclass
class RestateApp:
    name: str = "restatekit"
    registry: MetadataRegistry = field(default_factory=lambda: default_registry)
    endpoint: Endpoint | None = None
    conf: Settings = field(default_factory=Settings)
    http_client_factory: ClientFactory | None = None

    queues: RegistrationQueues = field(default_factory=RegistrationQueues)
    drain_cycles: int = 0

    _settings: RestateKitSettings | None = field(default=None, repr=False)
    _endpoint_binder: EndpointBinder | None = field(default=None, repr=False)
    _registrar: DeploymentRegistrar | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.conf.load_environment()

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------
    def configure(self, mapping: dict | None = None, *, namespace: str | None = None) -> RestateApp:
        if mapping:
            self.conf.update_from_mapping(mapping, namespace=namespace)
        self._settings = None
        return self

    def config_from_object(self, obj: Any, *, namespace: str | None = None) -> RestateApp:
        self.conf.update_from_object(obj, namespace=namespace)
        self._settings = None
        return self

    @property
    def settings(self) -> RestateKitSettings:
        if self._settings is None:
            self._settings = self.conf.validated()
        return self._settings

    # ------------------------------------------------------------------
    # Collaborators (built lazily from settings)
    # ------------------------------------------------------------------
    @property
    def endpoint_binder(self) -> EndpointBinder:
        if self._endpoint_binder is None:
            if self.endpoint is None:
                endpoint_cls = _import_string(self.settings.ENDPOINT)
                self.endpoint = endpoint_cls()
            self._endpoint_binder = EndpointBinder(self.endpoint)
        return self._endpoint_binder

    @property
    def registrar(self) -> DeploymentRegistrar:
        if self._registrar is None:
            settings = self.settings
            self._registrar = DeploymentRegistrar(
                settings.ADMIN_URL,
                protocol=settings.ENDPOINT_PROTOCOL,
                host=settings.ENDPOINT_HOST,
                force=settings.DEPLOYMENT_FORCE,
                timeout=settings.ADMIN_TIMEOUT,
                client_factory=self.http_client_factory,
            )
        return self._registrar

    @property
    def deployment_state(self) -> DeploymentState:
        return self.registrar.state

    # ------------------------------------------------------------------
    # Phase 1: registration intents
    # ------------------------------------------------------------------
    def register(self, component: type[Any], role: Role | str) -> None:
        pending = self.queues.enqueue(component, role)
        logger.debug("queued %s %s", pending.role.value, pending.label)

    def register_features(
        self,
        *,
        services: Iterable[type[Any]] = (),
        objects: Iterable[type[Any]] = (),
        workflows: Iterable[type[Any]] = (),
    ) -> RestateApp:
        for role, components in zip(ROLE_ORDER, (services, objects, workflows)):
            for component in components:
                self.register(component, role)
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self, port: int | None = None) -> RestateApp:
        await self.endpoint_binder.ensure_started(self.settings.LISTEN_PORT if port is None else port)
        return self

    async def finalize_registrations(
        self,
        resolver: Callable[[type[Any]], ResolverResult] = construct,
    ) -> DrainReport:
        report = await drain(
            self.queues,
            resolver=resolver,
            registry=self.registry,
            endpoint=self.endpoint_binder,
        )
        self.drain_cycles += 1

        if report.attached and self.settings.REGISTER_DEPLOYMENT:
            port = self.endpoint_binder.port or self.settings.LISTEN_PORT
            report.registered = await self.registrar.register(port)
        else:
            report.registered = self._registrar is not None and self._registrar.is_registered

        if report.attached:
            logger.info("%s", self.report_text().rstrip())
        return report

    async def bootstrap(
        self,
        resolver: Callable[[type[Any]], ResolverResult] = construct,
        *,
        port: int | None = None,
    ) -> DrainReport:
        await self.start(port)
        return await self.finalize_registrations(resolver)

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------
    def report_text(self) -> str:
        attached = self.endpoint_binder.attached() if self._endpoint_binder is not None else ()
        lines = ["Registered handler groups:"]
        for role in ROLE_ORDER:
            names = sorted(
                f"{d.name}({', '.join(sorted(d.handlers))})" for d in attached if d.role is role
            )
            lines.append(f"- {role.value}s: {', '.join(names) if names else '<none>'}")
        state = self._registrar.state.value if self._registrar is not None else DeploymentState.UNREGISTERED.value
        lines.append(f"- deployment: {state}")
        return "\n".join(lines) + "\n"


__all__ = ["RestateApp"]
