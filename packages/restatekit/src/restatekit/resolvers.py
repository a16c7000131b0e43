# restatekit/resolvers.py
"""Instance resolvers: how the bootstrap drain gets a live object for a class.

A resolver is any callable ``resolver(cls) -> instance | None``; it may also
return an awaitable. ``None`` means "no instance available" and makes the
drain skip that class.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Mapping, Protocol, Union, runtime_checkable

ResolverResult = Union[Any, None, Awaitable[Any]]


@runtime_checkable
class Resolver(Protocol):
    def __call__(self, cls: type[Any]) -> ResolverResult:
        ...


def construct(cls: type[Any]) -> Any:
    """Instantiate ``cls`` with no arguments."""
    return cls()


class MappingResolver:
    """Resolve from an explicit ``class -> instance`` mapping; unknown classes resolve to ``None``."""

    def __init__(self, instances: Mapping[type[Any], Any] | None = None) -> None:
        self._instances: dict[type[Any], Any] = dict(instances or {})

    def provide(self, cls: type[Any], instance: Any) -> None:
        self._instances[cls] = instance

    def __call__(self, cls: type[Any]) -> Any:
        return self._instances.get(cls)


def chain(*resolvers: Callable[[type[Any]], ResolverResult]) -> Callable[[type[Any]], Awaitable[Any]]:
    """Try each resolver in turn; the first non-``None`` instance wins."""

    async def resolve(cls: type[Any]) -> Any:
        for resolver in resolvers:
            instance = await resolve_instance(resolver, cls)
            if instance is not None:
                return instance
        return None

    return resolve


async def resolve_instance(resolver: Callable[[type[Any]], ResolverResult], cls: type[Any]) -> Any:
    result = resolver(cls)
    if inspect.isawaitable(result):
        result = await result
    return result


__all__ = ["MappingResolver", "Resolver", "chain", "construct", "resolve_instance"]
