"""Records stored by the metadata registry and the registration queue.

Declarations never touch live instances: they capture a class, its role and
the *unbound* functions that will later be bound to whatever instance the
host resolves at bootstrap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from restatekit.roles import Role


@dataclass(frozen=True, slots=True)
class RoleDescriptor:
    """Role attached to exactly one class, with an optional explicit name."""

    role: Role
    explicit_name: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerRecord:
    """One declared handler: exposed name + reference to the unbound method."""

    handler_name: str
    function: Callable[..., Any]
    attribute: str | None = None
    kind: str | None = None


@dataclass(frozen=True, slots=True)
class ClassMetadataEntry:
    """Snapshot of everything declared for one class."""

    role: RoleDescriptor | None = None
    handlers: Mapping[str, HandlerRecord] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_empty(self) -> bool:
        return self.role is None and not self.handlers


@dataclass(frozen=True, slots=True)
class PendingRegistration:
    """A ``(class, role)`` pair waiting for the bootstrap signal."""

    component: type[Any]
    role: Role

    @property
    def label(self) -> str:
        return f"{self.component.__module__}.{self.component.__qualname__}"


__all__ = ["RoleDescriptor", "HandlerRecord", "ClassMetadataEntry", "PendingRegistration"]
