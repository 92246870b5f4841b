"""CPU scheduler — ready/wait queues and the dispatch policies.

The scheduler owns two holding areas:

- the **ready queue**, processes waiting for a core;
- the **wait queue**, processes waiting for the disk.

Both are FIFO by insertion and bounded by the number of processes in
the workload, since no process can sit in a queue twice.

Which ready process a free core receives is decided by a pluggable
SchedulingPolicy.  Four policies ship out of the box:

- **FCFSPolicy** (First Come, First Served): always the queue head.
- **PriorityPolicy**: the queue is stably sorted by ascending priority
  value before assignment, so equal priorities keep their FIFO order.
- **ShortestRemainingBurstPolicy**: the process whose *current* burst
  has the fewest ticks left; ties go to the earliest queue position.
- **RoundRobinPolicy**: queue head, like FCFS.  The time slice it
  carries is enforced by the simulation driver, which preempts the
  running process back to the queue tail when the slice runs out.

Design: Strategy pattern
    The simulation is the *context*; SchedulingPolicy is the *strategy*.
    A policy only answers "which index?" — removing the process from the
    queue and loading it on a core stay with the scheduler and driver,
    so every policy shares the same queue discipline.
"""

from __future__ import annotations

from collections import deque
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from py_sched.process.pcb import Process, ProcessState

if TYPE_CHECKING:
    from collections.abc import Callable

    from py_sched.machine import Machine


class EmptyQueueError(IndexError):
    """Raise when a dequeue targets an empty queue or a missing index."""


class PolicyName(StrEnum):
    """Names accepted wherever a policy is configured."""

    FCFS = "fcfs"
    PRIORITY = "priority"
    SRB = "srb"
    ROUND_ROBIN = "rr"


class SchedulingPolicy(Protocol):
    """Interface that every dispatch algorithm must satisfy.

    - prepare: reorder the ready queue once per dispatch phase.
    - select_next: pick the index of the process for the next free core.
    - time_slice: ticks a process may hold a core, or None for no limit.
    """

    @property
    def name(self) -> PolicyName:
        """Return the policy identifier."""
        ...  # pragma: no cover

    @property
    def time_slice(self) -> int | None:
        """Return the slice length, or None if the policy never preempts."""
        ...  # pragma: no cover

    def prepare(self, ready_queue: deque[Process]) -> None:
        """Reorder the ready queue in place before any selection."""
        ...  # pragma: no cover

    def select_next(self, ready_queue: deque[Process], machine: Machine) -> int | None:
        """Return the ready-queue index to dispatch, or None to leave the core idle."""
        ...  # pragma: no cover


class FCFSPolicy:
    """First Come, First Served — processes run in arrival order.

    No reordering and no preemption: a process keeps its core until its
    CPU burst ends.
    """

    name = PolicyName.FCFS
    time_slice: int | None = None

    def prepare(self, ready_queue: deque[Process]) -> None:
        """Leave the queue in insertion order."""

    def select_next(self, ready_queue: deque[Process], machine: Machine) -> int | None:  # noqa: ARG002
        """Pick the queue head (oldest arrival)."""
        return 0 if ready_queue else None


class PriorityPolicy:
    """Priority scheduling — the smallest priority value runs first.

    Non-preemptive.  Sorting is stable, so processes with equal priority
    keep the order in which they joined the queue.
    """

    name = PolicyName.PRIORITY
    time_slice: int | None = None

    def prepare(self, ready_queue: deque[Process]) -> None:
        """Stably sort the whole ready queue by ascending priority."""
        ordered = sorted(ready_queue, key=lambda p: p.priority)
        ready_queue.clear()
        ready_queue.extend(ordered)

    def select_next(self, ready_queue: deque[Process], machine: Machine) -> int | None:  # noqa: ARG002
        """Pick the head of the sorted queue."""
        return 0 if ready_queue else None


class ShortestRemainingBurstPolicy:
    """Shortest Remaining Burst — the least work left in the current burst wins.

    The remaining time is measured against the burst the process is in
    right now, not its whole duration, so a long process that is about
    to reach an I/O burst can still be picked early.  Only strictly
    positive remainders are candidates; the scan is left-to-right so
    the first of several equal remainders wins.
    """

    name = PolicyName.SRB
    time_slice: int | None = None

    def prepare(self, ready_queue: deque[Process]) -> None:
        """Leave the queue in insertion order; selection scans it."""

    def select_next(self, ready_queue: deque[Process], machine: Machine) -> int | None:  # noqa: ARG002
        """Return the index of the smallest positive remaining burst."""
        best_idx: int | None = None
        best_left = 0
        for i, proc in enumerate(ready_queue):
            left = proc.burst_remaining
            if left <= 0:
                continue
            if best_idx is None or left < best_left:
                best_idx = i
                best_left = left
        return best_idx


class RoundRobinPolicy:
    """Round Robin — FIFO admission with a fixed time slice.

    Selection is identical to FCFS.  The driver reads ``time_slice`` to
    refill a core's slice counter on dispatch and preempts the process
    when the counter reaches zero.
    """

    name = PolicyName.ROUND_ROBIN

    def __init__(self, *, time_slice: int) -> None:
        """Create a Round Robin policy with the given slice.

        Args:
            time_slice: Number of ticks before forced preemption.

        Raises:
            ValueError: If the slice is not positive.

        """
        if time_slice < 1:
            msg = f"time_slice must be at least 1, got {time_slice}"
            raise ValueError(msg)
        self._time_slice = time_slice

    @property
    def time_slice(self) -> int:
        """Return the slice length in ticks."""
        return self._time_slice

    def prepare(self, ready_queue: deque[Process]) -> None:
        """Leave the queue in insertion order."""

    def select_next(self, ready_queue: deque[Process], machine: Machine) -> int | None:  # noqa: ARG002
        """Pick the queue head — same as FCFS for selection."""
        return 0 if ready_queue else None


_FACTORIES: dict[PolicyName, Callable[[], SchedulingPolicy]] = {
    PolicyName.FCFS: FCFSPolicy,
    PolicyName.PRIORITY: PriorityPolicy,
    PolicyName.SRB: ShortestRemainingBurstPolicy,
}


def create_policy(name: PolicyName | str, *, time_slice: int | None = None) -> SchedulingPolicy:
    """Build the policy registered under *name*.

    Args:
        name: A PolicyName or its string value (``"fcfs"``, ``"rr"``, ...).
        time_slice: Slice length, required for Round Robin.

    Raises:
        ValueError: If the name is unknown or Round Robin has no slice.

    """
    policy_name = PolicyName(name)
    if policy_name is PolicyName.ROUND_ROBIN:
        if time_slice is None:
            msg = "Round Robin needs a time slice"
            raise ValueError(msg)
        return RoundRobinPolicy(time_slice=time_slice)
    return _FACTORIES[policy_name]()


class Scheduler:
    """The ready and wait queues of the simulated machine.

    The scheduler keeps processes in order and enforces the queue
    invariants: a pid is never in the ready queue twice, and neither
    queue can hold more entries than there are processes.
    """

    def __init__(self, *, capacity: int) -> None:
        """Create empty queues sized to the workload.

        Args:
            capacity: Maximum entries per queue (the process count).

        """
        if capacity < 0:
            msg = f"capacity must not be negative, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._ready: deque[Process] = deque()
        self._wait: deque[Process] = deque()

    @property
    def capacity(self) -> int:
        """Return the per-queue capacity."""
        return self._capacity

    @property
    def ready_queue(self) -> deque[Process]:
        """Return the live ready queue (policies reorder it in place)."""
        return self._ready

    @property
    def ready_count(self) -> int:
        """Return the number of processes waiting for a core."""
        return len(self._ready)

    @property
    def wait_count(self) -> int:
        """Return the number of processes waiting for the disk."""
        return len(self._wait)

    @property
    def ready_processes(self) -> list[Process]:
        """Return a snapshot of the ready queue as a list."""
        return list(self._ready)

    @property
    def waiting_processes(self) -> list[Process]:
        """Return a snapshot of the wait queue as a list."""
        return list(self._wait)

    def is_empty(self) -> bool:
        """Return whether the ready queue is empty."""
        return not self._ready

    def contains(self, pid: int) -> bool:
        """Return whether *pid* is in the ready queue."""
        return any(p.pid == pid for p in self._ready)

    def enqueue_ready(self, process: Process) -> bool:
        """Append *process* to the ready tail and mark it READY.

        A process already in the ready queue is left where it is.

        Returns:
            True if the process was added, False if it was already queued.

        Raises:
            RuntimeError: If the queue is full or the process cannot
                become READY from its current state.

        """
        if self.contains(process.pid):
            return False
        self._check_room(self._ready, "ready")
        if process.state is ProcessState.RUNNING:
            process.preempt()
        elif process.state is ProcessState.WAITING:
            process.wake()
        elif process.state is not ProcessState.READY:
            msg = f"Cannot enqueue process {process.pid}: state is {process.state}"
            raise RuntimeError(msg)
        self._ready.append(process)
        return True

    def dequeue_ready(self, index: int = 0) -> Process:
        """Remove and return the ready entry at *index*.

        Entries behind it shift forward and keep their relative order.

        Raises:
            EmptyQueueError: If the queue is empty or *index* is out of range.

        """
        if not 0 <= index < len(self._ready):
            msg = f"No ready process at index {index} (queue holds {len(self._ready)})"
            raise EmptyQueueError(msg)
        process = self._ready[index]
        del self._ready[index]
        return process

    def enqueue_wait(self, process: Process) -> None:
        """Append a running *process* to the wait tail and mark it WAITING.

        Raises:
            RuntimeError: If the queue is full or the process is not running.

        """
        self._check_room(self._wait, "wait")
        process.block()
        self._wait.append(process)

    def dequeue_wait(self) -> Process:
        """Remove and return the process at the head of the wait queue.

        Raises:
            EmptyQueueError: If the wait queue is empty.

        """
        if not self._wait:
            msg = "Wait queue is empty"
            raise EmptyQueueError(msg)
        return self._wait.popleft()

    def _check_room(self, queue: deque[Process], label: str) -> None:
        """Raise if *queue* is already at capacity."""
        if len(queue) >= self._capacity:
            msg = f"The {label} queue is full ({self._capacity} entries)"
            raise RuntimeError(msg)
