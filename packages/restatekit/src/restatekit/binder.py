# restatekit/binder.py
"""Turn a live instance plus its class declarations into a bindable definition.

Binding is pure: it reads the metadata registry, wraps every declared
function so that it is invoked on ``instance``, and returns a fresh
:class:`BoundDefinition`. Calling it twice yields two independent
definitions with the same name, role and handler names.
"""

from __future__ import annotations

import functools
import inspect
import logging
import types
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from restatekit.exceptions import MissingEntryPointError, MissingMetadataError
from restatekit.registry import MetadataRegistry, default_registry
from restatekit.registry.records import HandlerRecord
from restatekit.roles import WORKFLOW_ENTRY_POINT, Role
from restatekit.tracing import service_span_sync

logger = logging.getLogger(__name__)

BoundHandler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class BoundDefinition:
    """A named handler group whose handlers are bound to one concrete instance.

    Every handler takes the runtime's context object as its first argument,
    followed by whatever the declared method accepts.
    """

    role: Role
    name: str
    handlers: Mapping[str, BoundHandler]
    handler_options: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: MappingProxyType({}))
    source: type[Any] | None = None

    @property
    def handler_names(self) -> frozenset[str]:
        return frozenset(self.handlers)

    def __repr__(self) -> str:
        return f"BoundDefinition(role={self.role.value!r}, name={self.name!r}, handlers={sorted(self.handlers)!r})"


def _bind_handler(instance: Any, record: HandlerRecord) -> BoundHandler:
    bound = types.MethodType(record.function, instance)

    @functools.wraps(bound)
    async def invoke(ctx: Any, *args: Any, **kwargs: Any) -> Any:
        result = bound(ctx, *args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result

    invoke.__name__ = record.handler_name
    return invoke


def bind(instance: Any, expected_role: Role | str, registry: MetadataRegistry | None = None) -> BoundDefinition:
    """Bind ``instance`` as a handler group of ``expected_role``.

    :raises MissingMetadataError: the class has no role descriptor, a role
        other than ``expected_role``, or no declared handlers.
    :raises MissingEntryPointError: a workflow without a ``run`` handler.
    """
    expected_role = Role.coerce(expected_role)
    cls = type(instance)
    entry = (registry or default_registry).lookup(cls)

    attrs = {"restatekit.class": cls.__qualname__, "restatekit.role": expected_role.value}
    with service_span_sync("restatekit.bind", attributes=attrs):
        if entry.role is None or entry.role.role is not expected_role:
            found = entry.role.role.value if entry.role is not None else None
            raise MissingMetadataError(
                f"{cls.__qualname__} is missing role/handler metadata: "
                f"expected a {expected_role.value!r} declaration, found {found!r}"
            )
        if not entry.handlers:
            raise MissingMetadataError(
                f"{cls.__qualname__} is missing role/handler metadata: no handlers declared"
            )
        if expected_role is Role.WORKFLOW and WORKFLOW_ENTRY_POINT not in entry.handlers:
            raise MissingEntryPointError(
                f"workflow {cls.__qualname__} must implement a {WORKFLOW_ENTRY_POINT!r} method"
            )

        handlers = {name: _bind_handler(instance, record) for name, record in entry.handlers.items()}
        options = {
            name: MappingProxyType({"kind": record.kind})
            for name, record in entry.handlers.items()
            if record.kind is not None
        }
        definition = BoundDefinition(
            role=expected_role,
            name=entry.role.explicit_name or cls.__name__,
            handlers=MappingProxyType(handlers),
            handler_options=MappingProxyType(options),
            source=cls,
        )

    logger.debug("bound %r", definition)
    return definition


def create_service(instance: Any, registry: MetadataRegistry | None = None) -> BoundDefinition:
    return bind(instance, Role.SERVICE, registry)


def create_virtual_object(instance: Any, registry: MetadataRegistry | None = None) -> BoundDefinition:
    return bind(instance, Role.OBJECT, registry)


def create_workflow(instance: Any, registry: MetadataRegistry | None = None) -> BoundDefinition:
    return bind(instance, Role.WORKFLOW, registry)


__all__ = ["BoundDefinition", "BoundHandler", "bind", "create_service", "create_virtual_object", "create_workflow"]
