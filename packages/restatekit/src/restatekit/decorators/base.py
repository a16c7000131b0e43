# restatekit/decorators/base.py
"""
Class and method decorators that populate the metadata registry.

Usage
-----
    @service(name="Greeter")
    class Greeter:
        @handler
        async def greet(self, ctx, name: str) -> str: ...

    @workflow
    class Signup:
        @handler
        async def run(self, ctx, email: str) -> None: ...

        @handler(kind="shared")
        async def status(self, ctx) -> str: ...

Key behaviors
-------------
- Decorators only *declare*. Nothing is instantiated or bound until the app's
  bootstrap drain resolves an instance for the class.
- ``@handler`` records the method when the owning class body is created
  (``__set_name__``) and then puts the plain function back on the class, so
  the method behaves exactly as if it were not decorated.
- Both decorator forms are supported: ``@service`` and ``@service(name=...)``.
- ``declare_role`` / ``declare_handler`` are the explicit equivalents for code
  that prefers registration calls over decorators.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional, Type, TypeVar, cast

from restatekit.registry import MetadataRegistry, default_registry
from restatekit.registry.records import HandlerRecord, RoleDescriptor
from restatekit.roles import Role
from restatekit.tracing import service_span_sync

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Type[Any])
F = TypeVar("F", bound=Callable[..., Any])


# ---------------- explicit registration calls ----------------
def declare_role(
    cls: type[Any],
    role: Role | str,
    name: str | None = None,
    *,
    registry: MetadataRegistry | None = None,
) -> RoleDescriptor:
    """Declare ``cls`` as a service, object or workflow."""
    return (registry or default_registry).set_role(cls, role, name)


def declare_handler(
    cls: type[Any],
    method_name: str,
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    kind: str | None = None,
    registry: MetadataRegistry | None = None,
) -> HandlerRecord:
    """Declare ``cls.method_name`` as a handler.

    ``func`` defaults to the raw attribute on the class, so static and class
    methods are rejected. ``name`` overrides the exposed handler name
    (defaults to ``method_name``).
    """
    if func is None:
        func = inspect.getattr_static(cls, method_name)
    return (registry or default_registry).add_handler(
        cls,
        name or method_name,
        func,
        attribute=method_name,
        kind=kind,
    )


# ---------------- class decorators ----------------
class RoleDecorator:
    """Dual-form class decorator attaching a fixed role to the decorated class."""

    role: Role = Role.SERVICE

    def __init__(self, role: Role | str | None = None, *, registry: MetadataRegistry | None = None) -> None:
        if role is not None:
            self.role = Role.coerce(role)
        self._registry = registry

    def get_registry(self) -> MetadataRegistry:
        return self._registry or default_registry

    def __call__(self, _cls: Optional[T] = None, *, name: Optional[str] = None) -> T | Callable[[T], T]:
        def _apply(cls: T) -> T:
            descriptor = declare_role(cls, self.role, name, registry=self.get_registry())
            attrs = {
                "restatekit.decorator": self.__class__.__name__,
                "restatekit.class": f"{cls.__module__}.{cls.__qualname__}",
                "restatekit.role": self.role.value,
                "restatekit.name": descriptor.explicit_name,
            }
            with service_span_sync(f"restatekit.decorator.apply ({cls.__name__})", attributes=attrs):
                logger.info(
                    "[%s] ✅ declared `%s`",
                    self.role.value.upper(),
                    descriptor.explicit_name or cls.__name__,
                )
            return cls

        if _cls is not None:
            return _apply(cast(T, _cls))
        return _apply


# ---------------- method decorator ----------------
class _HandlerMarker:
    """Placeholder that registers its function once the owning class exists."""

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None,
        kind: str | None,
        registry: MetadataRegistry | None,
    ) -> None:
        self.func = func
        self.name = name
        self.kind = kind
        self.registry = registry

    def __set_name__(self, owner: type[Any], attr: str) -> None:
        declare_handler(owner, attr, self.func, name=self.name, kind=self.kind, registry=self.registry)
        setattr(owner, attr, self.func)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        # Only reachable when the marker is used outside a class body.
        return self.func(*args, **kwargs)


def handler(
    _func: Optional[F] = None,
    *,
    name: str | None = None,
    kind: str | None = None,
    registry: MetadataRegistry | None = None,
) -> Any:
    """Mark a method as a handler of its class.

        @handler
        async def greet(self, ctx, name): ...

        @handler(name="greet", kind="shared")
        async def say_hello(self, ctx, name): ...
    """

    def _apply(func: F) -> Any:
        return _HandlerMarker(func, name=name, kind=kind, registry=registry)

    if _func is not None:
        return _apply(_func)
    return _apply


service = RoleDecorator(Role.SERVICE)
virtual_object = RoleDecorator(Role.OBJECT)
workflow = RoleDecorator(Role.WORKFLOW)

__all__ = [
    "RoleDecorator",
    "declare_handler",
    "declare_role",
    "handler",
    "service",
    "virtual_object",
    "workflow",
]
