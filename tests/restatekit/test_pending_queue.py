import pytest

from restatekit.registry import QueueState, RegistrationQueue, RegistrationQueues
from restatekit.roles import Role


class A: ...
class B: ...
class C: ...


def test_queue_moves_through_states():
    queue = RegistrationQueue("service")
    assert queue.state is QueueState.EMPTY

    queue.enqueue(A)
    assert queue.state is QueueState.ACCUMULATING

    records = queue.begin_drain()
    assert [r.component for r in records] == [A]
    assert queue.state is QueueState.DRAINING
    assert len(queue) == 0

    queue.end_drain()
    assert queue.state is QueueState.EMPTY


def test_enqueue_during_drain_lands_in_next_cycle():
    queue = RegistrationQueue(Role.OBJECT)
    queue.extend([A, B])

    first = queue.begin_drain()
    queue.enqueue(C)
    assert queue.state is QueueState.DRAINING
    queue.end_drain()

    assert [r.component for r in first] == [A, B]
    assert queue.state is QueueState.ACCUMULATING
    assert [r.component for r in queue.begin_drain()] == [C]


def test_begin_drain_twice_is_rejected():
    queue = RegistrationQueue("workflow")
    queue.begin_drain()
    with pytest.raises(RuntimeError):
        queue.begin_drain()


def test_queues_iterate_in_role_order_and_keep_enqueue_order():
    queues = RegistrationQueues()
    queues.enqueue(C, "workflow")
    queues.enqueue(B, Role.OBJECT)
    queues.enqueue(A, "service")
    queues.enqueue(C, "service")

    assert [q.role for q in queues] == [Role.SERVICE, Role.OBJECT, Role.WORKFLOW]
    assert [(r.component, r.role) for r in queues.pending()] == [
        (A, Role.SERVICE),
        (C, Role.SERVICE),
        (B, Role.OBJECT),
        (C, Role.WORKFLOW),
    ]
    assert not queues.is_empty


def test_same_class_may_be_queued_twice():
    queues = RegistrationQueues()
    queues.enqueue(A, "service")
    queues.enqueue(A, "service")
    assert len(queues.queue("service")) == 2


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        RegistrationQueues().enqueue(A, "actor")
