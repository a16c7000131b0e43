"""Queues for feature registrations made before the bootstrap signal."""

from __future__ import annotations

from enum import Enum
from threading import RLock
from typing import Any, Iterable

from restatekit.roles import ROLE_ORDER, Role

from .records import PendingRegistration


class QueueState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    DRAINING = "draining"


class RegistrationQueue:
    """Ordered, thread-safe queue of pending ``(class, role)`` pairs for one role.

    ``begin_drain`` hands out a snapshot and clears the queue in one step, so
    anything enqueued while a drain is running lands in the next cycle.
    """

    def __init__(self, role: Role | str) -> None:
        self.role = Role.coerce(role)
        self._records: list[PendingRegistration] = []
        self._lock = RLock()
        self._state = QueueState.EMPTY

    @property
    def state(self) -> QueueState:
        with self._lock:
            return self._state

    def enqueue(self, component: type[Any]) -> PendingRegistration:
        record = PendingRegistration(component=component, role=self.role)
        with self._lock:
            self._records.append(record)
            if self._state is QueueState.EMPTY:
                self._state = QueueState.ACCUMULATING
        return record

    def extend(self, components: Iterable[type[Any]]) -> None:
        for component in components:
            self.enqueue(component)

    def begin_drain(self) -> tuple[PendingRegistration, ...]:
        with self._lock:
            if self._state is QueueState.DRAINING:
                raise RuntimeError(f"{self.role.value} queue is already draining")
            records = tuple(self._records)
            self._records.clear()
            self._state = QueueState.DRAINING
        return records

    def end_drain(self) -> None:
        with self._lock:
            self._state = QueueState.ACCUMULATING if self._records else QueueState.EMPTY

    def snapshot(self) -> tuple[PendingRegistration, ...]:
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class RegistrationQueues:
    """One :class:`RegistrationQueue` per role, drained in service/object/workflow order."""

    def __init__(self) -> None:
        self._queues: dict[Role, RegistrationQueue] = {role: RegistrationQueue(role) for role in ROLE_ORDER}

    def queue(self, role: Role | str) -> RegistrationQueue:
        return self._queues[Role.coerce(role)]

    def enqueue(self, component: type[Any], role: Role | str) -> PendingRegistration:
        return self.queue(role).enqueue(component)

    def __iter__(self):
        return iter(self._queues[role] for role in ROLE_ORDER)

    def pending(self) -> tuple[PendingRegistration, ...]:
        return tuple(record for queue in self for record in queue.snapshot())

    @property
    def is_empty(self) -> bool:
        return all(queue.state is QueueState.EMPTY for queue in self)


__all__ = ["QueueState", "RegistrationQueue", "RegistrationQueues"]
