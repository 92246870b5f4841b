"""Tests for the ready/wait queues and the dispatch policies.

The scheduler holds processes waiting for a core or for the disk.
Policies only pick an index into the ready queue:

- FCFS and Round Robin: the head.
- Priority: lowest value first, FIFO among equals.
- Shortest Remaining Burst: least time left in the current burst.
"""

from collections import deque

import pytest

from py_sched.machine import Machine
from py_sched.process import (
    Burst,
    BurstKind,
    EmptyQueueError,
    FCFSPolicy,
    PolicyName,
    PriorityPolicy,
    Process,
    ProcessState,
    RoundRobinPolicy,
    Scheduler,
    ShortestRemainingBurstPolicy,
    create_policy,
)

DEFAULT_SLICE = 2


def _proc(pid: int, *, duration: int = 4, priority: int = 0) -> Process:
    """Create an admitted single-burst process."""
    process = Process(pid=pid, arrival=0, duration=duration, priority=priority)
    process.consume_burst()
    return process


class TestSchedulerQueues:
    """Verify ready and wait queue discipline."""

    def test_new_scheduler_is_empty(self) -> None:
        """Both queues start empty."""
        scheduler = Scheduler(capacity=3)
        assert scheduler.is_empty()
        assert scheduler.ready_count == 0
        assert scheduler.wait_count == 0

    def test_enqueue_ready_is_fifo(self) -> None:
        """Processes leave the ready queue in insertion order."""
        scheduler = Scheduler(capacity=3)
        for pid in (1, 2, 3):
            scheduler.enqueue_ready(_proc(pid))
        assert [scheduler.dequeue_ready().pid for _ in range(3)] == [1, 2, 3]

    def test_enqueue_ready_twice_is_noop(self) -> None:
        """A pid is never in the ready queue twice."""
        scheduler = Scheduler(capacity=2)
        process = _proc(1)
        assert scheduler.enqueue_ready(process)
        assert not scheduler.enqueue_ready(process)
        assert scheduler.ready_count == 1

    def test_enqueue_running_process_preempts_it(self) -> None:
        """A running process becomes READY when re-queued."""
        scheduler = Scheduler(capacity=1)
        process = _proc(1)
        process.dispatch()
        scheduler.enqueue_ready(process)
        assert process.state is ProcessState.READY

    def test_enqueue_waiting_process_wakes_it(self) -> None:
        """A waiting process becomes READY when re-queued."""
        scheduler = Scheduler(capacity=1)
        process = _proc(1)
        process.dispatch()
        process.block()
        scheduler.enqueue_ready(process)
        assert process.state is ProcessState.READY

    def test_enqueue_terminated_process_raises(self) -> None:
        """A terminated process can never be ready again."""
        scheduler = Scheduler(capacity=1)
        process = _proc(1)
        process.dispatch()
        process.terminate()
        with pytest.raises(RuntimeError, match="Cannot enqueue"):
            scheduler.enqueue_ready(process)

    def test_ready_queue_capacity_enforced(self) -> None:
        """No queue holds more than the process count."""
        scheduler = Scheduler(capacity=1)
        scheduler.enqueue_ready(_proc(1))
        with pytest.raises(RuntimeError, match="ready queue is full"):
            scheduler.enqueue_ready(_proc(2))

    def test_dequeue_by_index_keeps_order(self) -> None:
        """Removing from the middle shifts the tail forward in order."""
        scheduler = Scheduler(capacity=3)
        for pid in (1, 2, 3):
            scheduler.enqueue_ready(_proc(pid))
        assert scheduler.dequeue_ready(1).pid == 2  # noqa: PLR2004
        assert [p.pid for p in scheduler.ready_processes] == [1, 3]

    def test_dequeue_empty_raises(self) -> None:
        """Dequeuing from an empty queue is an error."""
        scheduler = Scheduler(capacity=1)
        with pytest.raises(EmptyQueueError):
            scheduler.dequeue_ready()
        with pytest.raises(EmptyQueueError):
            scheduler.dequeue_wait()

    def test_dequeue_bad_index_raises(self) -> None:
        """An index past the tail is an error."""
        scheduler = Scheduler(capacity=2)
        scheduler.enqueue_ready(_proc(1))
        with pytest.raises(EmptyQueueError, match="index 5"):
            scheduler.dequeue_ready(5)

    def test_wait_queue_blocks_and_is_fifo(self) -> None:
        """Wait entries become WAITING and leave in FIFO order."""
        scheduler = Scheduler(capacity=2)
        first, second = _proc(1), _proc(2)
        for process in (first, second):
            process.dispatch()
            scheduler.enqueue_wait(process)
        assert first.state is ProcessState.WAITING
        assert scheduler.dequeue_wait() is first
        assert scheduler.dequeue_wait() is second

    def test_contains(self) -> None:
        """Membership is by pid."""
        scheduler = Scheduler(capacity=1)
        scheduler.enqueue_ready(_proc(4))
        assert scheduler.contains(4)  # noqa: PLR2004
        assert not scheduler.contains(5)  # noqa: PLR2004


class TestFCFSPolicy:
    """Verify First Come, First Served selection."""

    def test_selects_head(self) -> None:
        """FCFS always picks index 0."""
        queue = deque([_proc(1), _proc(2)])
        assert FCFSPolicy().select_next(queue, Machine()) == 0

    def test_empty_queue_selects_nothing(self) -> None:
        """No candidate means no selection."""
        assert FCFSPolicy().select_next(deque(), Machine()) is None

    def test_never_preempts(self) -> None:
        """FCFS has no time slice."""
        assert FCFSPolicy().time_slice is None


class TestPriorityPolicy:
    """Verify priority selection and its FIFO tie-break."""

    def test_lowest_value_first(self) -> None:
        """The smallest priority value is moved to the head."""
        queue = deque([_proc(1, priority=3), _proc(2, priority=1), _proc(3, priority=2)])
        policy = PriorityPolicy()
        policy.prepare(queue)
        assert [p.pid for p in queue] == [2, 3, 1]
        assert policy.select_next(queue, Machine()) == 0

    def test_equal_priorities_keep_fifo_order(self) -> None:
        """Among equal priorities the earlier arrival runs first."""
        queue = deque([_proc(1, priority=2), _proc(2, priority=1), _proc(3, priority=2)])
        PriorityPolicy().prepare(queue)
        assert [p.pid for p in queue] == [2, 1, 3]


class TestShortestRemainingBurstPolicy:
    """Verify SRB selection."""

    def test_picks_smallest_remaining(self) -> None:
        """With remaining bursts [5, 2, 8] the middle process wins."""
        queue = deque([_proc(1, duration=5), _proc(2, duration=2), _proc(3, duration=8)])
        assert ShortestRemainingBurstPolicy().select_next(queue, Machine()) == 1

    def test_tie_goes_to_earliest(self) -> None:
        """Equal remainders pick the first in queue order."""
        queue = deque([_proc(1, duration=3), _proc(2, duration=3)])
        assert ShortestRemainingBurstPolicy().select_next(queue, Machine()) == 0

    def test_measures_current_burst_only(self) -> None:
        """A long process about to reach I/O counts its short burst."""
        long_job = Process(
            pid=1,
            arrival=0,
            duration=20,
            bursts=[Burst(BurstKind.CPU, 0), Burst(BurstKind.IO, 1), Burst(BurstKind.CPU, 2)],
        )
        long_job.consume_burst()
        queue = deque([_proc(2, duration=4), long_job])
        assert ShortestRemainingBurstPolicy().select_next(queue, Machine()) == 1

    def test_empty_queue_selects_nothing(self) -> None:
        """No candidate means no selection."""
        assert ShortestRemainingBurstPolicy().select_next(deque(), Machine()) is None


class TestRoundRobinPolicy:
    """Verify Round Robin construction and selection."""

    def test_selects_head(self) -> None:
        """Round Robin picks index 0 like FCFS."""
        queue = deque([_proc(1), _proc(2)])
        assert RoundRobinPolicy(time_slice=DEFAULT_SLICE).select_next(queue, Machine()) == 0

    def test_carries_time_slice(self) -> None:
        """The slice is exposed to the driver."""
        assert RoundRobinPolicy(time_slice=DEFAULT_SLICE).time_slice == DEFAULT_SLICE

    def test_zero_slice_rejected(self) -> None:
        """A slice shorter than one tick is invalid."""
        with pytest.raises(ValueError, match="time_slice"):
            RoundRobinPolicy(time_slice=0)


class TestCreatePolicy:
    """Verify the policy factory."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("fcfs", FCFSPolicy),
            ("priority", PriorityPolicy),
            ("srb", ShortestRemainingBurstPolicy),
        ],
    )
    def test_builds_by_name(self, name: str, expected: type) -> None:
        """Each name maps to its policy class."""
        assert isinstance(create_policy(name), expected)

    def test_round_robin_needs_slice(self) -> None:
        """Round Robin without a slice is rejected."""
        with pytest.raises(ValueError, match="time slice"):
            create_policy(PolicyName.ROUND_ROBIN)

    def test_round_robin_with_slice(self) -> None:
        """Round Robin is built with the given slice."""
        policy = create_policy("rr", time_slice=DEFAULT_SLICE)
        assert policy.time_slice == DEFAULT_SLICE

    def test_unknown_name_rejected(self) -> None:
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="lottery"):
            create_policy("lottery")
