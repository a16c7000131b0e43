# restatekit/bootstrap.py
"""The bootstrap drain cycle (phase 2 of startup).

For every pending ``(class, role)`` pair, in enqueue order and role order
(services, then objects, then workflows):

1. ask the resolver for an instance; no instance -> warn and skip,
2. bind the instance against the class declarations,
3. attach the resulting definition to the endpoint.

A failure on one pair is logged and never stops the remaining pairs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from restatekit.binder import BoundDefinition, bind
from restatekit.endpoint import EndpointBinder
from restatekit.exceptions import InstanceResolutionError, RestateKitError
from restatekit.registry import MetadataRegistry, RegistrationQueues
from restatekit.registry.records import PendingRegistration
from restatekit.resolvers import ResolverResult, resolve_instance
from restatekit.tracing import service_span

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DrainReport:
    """Outcome of one drain cycle."""

    attached: list[BoundDefinition] = field(default_factory=list)
    skipped: list[PendingRegistration] = field(default_factory=list)
    failed: list[tuple[PendingRegistration, BaseException]] = field(default_factory=list)
    registered: bool = False

    @property
    def processed(self) -> int:
        return len(self.attached) + len(self.skipped) + len(self.failed)


async def _process(
    pending: PendingRegistration,
    *,
    resolver: Callable[[type[Any]], ResolverResult],
    registry: MetadataRegistry,
    endpoint: EndpointBinder,
    report: DrainReport,
) -> None:
    try:
        instance = await resolve_instance(resolver, pending.component)
    except Exception:
        logger.warning("could not resolve an instance of %s; skipping", pending.label, exc_info=True)
        report.skipped.append(pending)
        return
    if instance is None:
        err = InstanceResolutionError(f"resolver returned no instance for {pending.label}")
        logger.warning("%s; skipping %s registration", err, pending.role.value)
        report.skipped.append(pending)
        return

    try:
        definition = bind(instance, pending.role, registry)
        endpoint.attach(definition)
    except RestateKitError as err:
        logger.error("failed to register %s %s: %s", pending.role.value, pending.label, err)
        report.failed.append((pending, err))
        return
    except Exception as err:
        logger.exception("unexpected error registering %s %s", pending.role.value, pending.label)
        report.failed.append((pending, err))
        return

    report.attached.append(definition)


async def drain(
    queues: RegistrationQueues,
    *,
    resolver: Callable[[type[Any]], ResolverResult],
    registry: MetadataRegistry,
    endpoint: EndpointBinder,
) -> DrainReport:
    """Drain every role queue once and return what happened."""
    report = DrainReport()
    async with service_span("restatekit.drain") as span:
        for queue in queues:
            records = queue.begin_drain()
            try:
                for pending in records:
                    await _process(
                        pending,
                        resolver=resolver,
                        registry=registry,
                        endpoint=endpoint,
                        report=report,
                    )
            finally:
                queue.end_drain()
        span.set_attribute("restatekit.attached", len(report.attached))
        span.set_attribute("restatekit.skipped", len(report.skipped))
        span.set_attribute("restatekit.failed", len(report.failed))

    logger.debug(
        "drain complete: %d attached, %d skipped, %d failed",
        len(report.attached),
        len(report.skipped),
        len(report.failed),
    )
    return report


__all__ = ["DrainReport", "drain"]
