import pytest

from throttled_queue.errors import InvalidPriorityError
from throttled_queue.queue import PriorityQueue
from throttled_queue.queue.models import Priority, QueueState, validate_priority


class DummyTask:
    def __init__(self, tid):
        self._id = tid

    def get_id(self):
        return self._id


def test_enqueue_updates_depth_and_peek_order():
    q = PriorityQueue()
    q.enqueue(DummyTask(1), priority=5)
    q.enqueue(DummyTask(2), priority=1)
    assert q.get_size(1) == 1
    assert q.get_size(5) == 1
    assert q.get_size(9) == 0
    assert q.size == 2
    assert len(q) == 2

    peek_task, peek_priority = q.peek()
    assert peek_task.get_id() == 2
    assert peek_priority == 1
    assert q.size == 2  # peek does not remove


def test_default_priority_is_five():
    q = PriorityQueue()
    q.enqueue("job")
    assert q.get_size(5) == 1


def test_dequeue_respects_priority_then_fifo():
    q = PriorityQueue()
    q.enqueue(DummyTask("h1"), priority=0)
    q.enqueue(DummyTask("n1"), priority=5)
    q.enqueue(DummyTask("h2"), priority=0)

    first = q.dequeue()
    second = q.dequeue()
    third = q.dequeue()

    assert first.get_id() == "h1"
    assert second.get_id() == "h2"
    assert third.get_id() == "n1"
    assert q.dequeue() is None


def test_dequeue_specific_priority():
    q = PriorityQueue()
    q.enqueue(DummyTask("low"), priority=9)
    q.enqueue(DummyTask("hi"), priority=2)

    assert q.dequeue(priority=5) is None

    high_task = q.dequeue(priority=2)
    assert high_task.get_id() == "hi"

    low_task = q.dequeue(priority=9)
    assert low_task.get_id() == "low"


def test_priority_zero_is_a_distinct_bucket():
    q = PriorityQueue()
    q.enqueue("five", priority=5)
    q.enqueue("zero", priority=0)

    # An explicit 0 must only look at bucket 0, not scan everything.
    assert q.get_size(0) == 1
    assert q.dequeue(priority=0) == "zero"
    assert q.dequeue(priority=0) is None
    assert q.get_size() == 1


def test_events_emitted_for_enqueue_and_dequeue():
    q = PriorityQueue()
    seen = []
    q.on("enqueue", lambda item, p: seen.append(("enqueue", item, p)))
    q.on("dequeue", lambda item, p: seen.append(("dequeue", item, p)))

    q.enqueue("a", priority=3)
    q.dequeue()
    q.dequeue()  # empty: no event

    assert seen == [("enqueue", "a", 3), ("dequeue", "a", 3)]


def test_clear_empties_all_buckets_without_events():
    q = PriorityQueue()
    dequeued = []
    q.on("dequeue", lambda item, p: dequeued.append(item))
    for p in range(10):
        q.enqueue(f"item-{p}", priority=p)

    dropped = q.clear()

    assert dropped == [f"item-{p}" for p in range(10)]
    assert q.size == 0
    assert q.is_empty()
    assert dequeued == []

    q.enqueue("after", priority=4)
    assert q.dequeue() == "after"


@pytest.mark.parametrize("bad", [-1, 10, 2.5, "5", None, True])
def test_enqueue_rejects_invalid_priority(bad):
    q = PriorityQueue()
    with pytest.raises(InvalidPriorityError):
        q.enqueue("x", priority=bad)
    assert q.size == 0


def test_get_state_reports_depth_per_bucket():
    q = PriorityQueue()
    q.enqueue("a", priority=1)
    q.enqueue("b", priority=1)
    q.enqueue("c", priority=8)

    state = q.get_state()
    assert isinstance(state, QueueState)
    assert state.depths[1] == 2
    assert state.depths[8] == 1
    assert state.total == 3


def test_priority_names():
    assert Priority.from_string("High") == Priority.HIGH
    assert Priority.from_string(" critical ") == Priority.HIGHEST
    assert Priority.from_string("mid") == Priority.NORMAL == 5
    assert Priority.from_string("background") == Priority.LOWEST == 9
    with pytest.raises(InvalidPriorityError):
        Priority.from_string("urgent-ish")


def test_validate_priority_accepts_enum():
    assert validate_priority(Priority.LOW) == 7
    assert type(validate_priority(Priority.LOW)) is int
