# restatekit/registry/metadata.py
"""Class-keyed store of role descriptors and handler declarations."""

from __future__ import annotations

import inspect
import logging
from threading import RLock
from types import MappingProxyType
from typing import Any, Callable

from restatekit.exceptions import RoleConflictError
from restatekit.roles import Role

from .records import ClassMetadataEntry, HandlerRecord, RoleDescriptor

logger = logging.getLogger(__name__)


class MetadataRegistry:
    """Accumulates per-class declarations until bootstrap binds them.

    Entries are keyed by class identity and live as long as the registry.
    ``set_role`` and ``add_handler`` may be called in any order for the same
    class; both must have happened before binding is attempted.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._roles: dict[type[Any], RoleDescriptor] = {}
        self._handlers: dict[type[Any], dict[str, HandlerRecord]] = {}

    # --- declarations ---

    def set_role(self, cls: type[Any], role: Role | str, explicit_name: str | None = None) -> RoleDescriptor:
        """Attach (or overwrite) the role descriptor of ``cls``.

        Re-declaring the same role overwrites the explicit name. Declaring a
        different role raises :class:`RoleConflictError`.
        """
        role = Role.coerce(role)
        descriptor = RoleDescriptor(role=role, explicit_name=explicit_name or None)
        with self._lock:
            current = self._roles.get(cls)
            if current is not None and current.role is not role:
                raise RoleConflictError(
                    f"{cls.__qualname__} is already declared as {current.role.value!r}; "
                    f"cannot redeclare it as {role.value!r}"
                )
            self._roles[cls] = descriptor
        logger.debug("role %s -> %s", cls.__qualname__, role.value)
        return descriptor

    def add_handler(
        self,
        cls: type[Any],
        handler_name: str,
        function: Callable[..., Any],
        *,
        attribute: str | None = None,
        kind: str | None = None,
    ) -> HandlerRecord:
        """Add ``function`` under ``handler_name``; an existing name is overwritten."""
        if not handler_name:
            raise ValueError("handler name must be a non-empty string")
        if isinstance(function, (staticmethod, classmethod)) or inspect.ismethod(function):
            raise TypeError(
                f"handler {handler_name!r} of {cls.__qualname__} must be a plain instance method, "
                f"got {type(function).__name__}"
            )
        if not callable(function):
            raise TypeError(f"handler {handler_name!r} of {cls.__qualname__} is not callable")

        record = HandlerRecord(
            handler_name=handler_name,
            function=function,
            attribute=attribute,
            kind=kind,
        )
        with self._lock:
            self._handlers.setdefault(cls, {})[handler_name] = record
        return record

    # --- lookup ---

    def get(self, cls: type[Any]) -> ClassMetadataEntry:
        """Return the declarations made on ``cls`` itself; never raises."""
        with self._lock:
            role = self._roles.get(cls)
            handlers = dict(self._handlers.get(cls, {}))
        return ClassMetadataEntry(role=role, handlers=MappingProxyType(handlers))

    def lookup(self, cls: type[Any]) -> ClassMetadataEntry:
        """Return declarations merged along the MRO of ``cls``.

        The nearest class with a role wins; handlers from base classes are
        inherited and overridden by name in subclasses.
        """
        role: RoleDescriptor | None = None
        handlers: dict[str, HandlerRecord] = {}
        with self._lock:
            for klass in reversed(cls.__mro__):
                if klass in self._roles:
                    role = self._roles[klass]
                handlers.update(self._handlers.get(klass, {}))
        return ClassMetadataEntry(role=role, handlers=MappingProxyType(handlers))

    def __contains__(self, cls: object) -> bool:
        with self._lock:
            return cls in self._roles or cls in self._handlers

    def classes(self, role: Role | str | None = None) -> tuple[type[Any], ...]:
        """Classes with a role descriptor, optionally filtered by role."""
        wanted = Role.coerce(role) if role is not None else None
        with self._lock:
            return tuple(
                cls for cls, desc in self._roles.items() if wanted is None or desc.role is wanted
            )

    def forget(self, cls: type[Any]) -> None:
        """Drop every declaration made on ``cls``."""
        with self._lock:
            self._roles.pop(cls, None)
            self._handlers.pop(cls, None)

    def clear(self) -> None:
        with self._lock:
            self._roles.clear()
            self._handlers.clear()


# Process-wide registry that decorators and ``declare_*`` write into unless
# told otherwise.
default_registry = MetadataRegistry()

__all__ = ["MetadataRegistry", "default_registry"]
