"""Process and Process Control Block (PCB).

A simulated process is a fixed list of *bursts* — stretches of CPU work
or disk I/O — plus the runtime bookkeeping the simulation needs: its
lifecycle state, how many ticks it has consumed so far, and a cursor
pointing at the next burst that has not started yet.

Burst offsets are measured in elapsed ticks from the start of the
process.  A burst begins at its offset and ends where the next one
begins (the last burst ends at the process duration)::

    duration = 8, bursts = [(0, CPU), (3, IO), (5, CPU)]

    elapsed  0 1 2 | 3 4 | 5 6 7
             CPU   | IO  | CPU

State machine::

    READY ⇄ RUNNING → TERMINATED
              ↓  ↑
            WAITING → READY

Each transition method enforces its source state and raises
RuntimeError otherwise, so an illegal move is caught where it happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ProcessState(StrEnum):
    """Lifecycle states of a simulated process.

    - READY: known to the system and waiting for a core.
    - RUNNING: executing on a core.
    - WAITING: blocked on the disk (queued for it or being serviced).
    - TERMINATED: every burst consumed.
    """

    READY = "ready"
    RUNNING = "running"
    WAITING = "waiting"
    TERMINATED = "terminated"


class BurstKind(StrEnum):
    """The resource a burst needs."""

    CPU = "CPU"
    IO = "IO"


@dataclass(frozen=True)
class Burst:
    """A contiguous span of CPU or I/O demand.

    Attributes:
        kind: Which resource the burst needs.
        offset: Elapsed time at which the burst begins.

    """

    kind: BurstKind
    offset: int


def _validate_bursts(pid: int, duration: int, bursts: tuple[Burst, ...]) -> None:
    """Reject burst lists the simulation cannot replay."""
    if duration <= 0:
        msg = f"Process {pid}: duration must be positive, got {duration}"
        raise ValueError(msg)
    if not bursts:
        msg = f"Process {pid}: at least one burst is required"
        raise ValueError(msg)
    first = bursts[0]
    if first.kind is not BurstKind.CPU or first.offset != 0:
        msg = f"Process {pid}: first burst must be CPU at offset 0"
        raise ValueError(msg)
    for prev, cur in zip(bursts, bursts[1:], strict=False):
        if cur.offset <= prev.offset:
            msg = f"Process {pid}: burst offsets must be strictly increasing"
            raise ValueError(msg)
    if bursts[-1].offset >= duration:
        msg = f"Process {pid}: burst offset {bursts[-1].offset} is past duration {duration}"
        raise ValueError(msg)
    if bursts[-1].kind is not BurstKind.CPU:
        msg = f"Process {pid}: final burst must be CPU"
        raise ValueError(msg)


class Process:
    """A simulated process (the Process Control Block).

    Static facts (pid, arrival, duration, priority, bursts) never change
    after construction.  The runtime fields are mutated only by the
    simulation driver and the scheduler's queue operations.
    """

    def __init__(
        self,
        *,
        pid: int,
        arrival: int,
        duration: int,
        priority: int = 0,
        bursts: tuple[Burst, ...] | list[Burst] | None = None,
    ) -> None:
        """Create a process in the READY state with nothing consumed.

        Args:
            pid: Unique positive identifier.
            arrival: Tick at which the process becomes known.
            duration: Total ticks across all bursts.
            priority: Scheduling priority (lower = more urgent).
            bursts: Ordered bursts; defaults to one CPU burst.

        Raises:
            ValueError: If the identifiers or the burst list are invalid.

        """
        if pid <= 0:
            msg = f"pid must be positive, got {pid}"
            raise ValueError(msg)
        if arrival < 0:
            msg = f"Process {pid}: arrival must not be negative, got {arrival}"
            raise ValueError(msg)
        resolved = tuple(bursts) if bursts is not None else (Burst(BurstKind.CPU, 0),)
        _validate_bursts(pid, duration, resolved)

        self._pid = pid
        self._arrival = arrival
        self._duration = duration
        self._priority = priority
        self._bursts = resolved
        self._state = ProcessState.READY
        self._elapsed = 0
        self._cursor = 0

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def arrival(self) -> int:
        """Return the tick at which the process arrives."""
        return self._arrival

    @property
    def duration(self) -> int:
        """Return the total number of ticks the process needs."""
        return self._duration

    @property
    def priority(self) -> int:
        """Return the scheduling priority (lower = more urgent)."""
        return self._priority

    @property
    def bursts(self) -> tuple[Burst, ...]:
        """Return the full burst list."""
        return self._bursts

    @property
    def state(self) -> ProcessState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def elapsed(self) -> int:
        """Return the ticks consumed across all bursts so far."""
        return self._elapsed

    @property
    def next_burst(self) -> Burst | None:
        """Return the next burst that has not started, or None."""
        if self._cursor < len(self._bursts):
            return self._bursts[self._cursor]
        return None

    @property
    def admitted(self) -> bool:
        """Return whether the first burst has been consumed."""
        return self._cursor > 0

    @property
    def next_event_time(self) -> int:
        """Return the offset where the current burst ends."""
        burst = self.next_burst
        return self._duration if burst is None else burst.offset

    @property
    def burst_remaining(self) -> int:
        """Return the ticks left in the current burst."""
        return self.next_event_time - self._elapsed

    @property
    def finished(self) -> bool:
        """Return whether every burst is consumed and the duration reached."""
        return self.next_burst is None and self._elapsed >= self._duration

    def has_arrived(self, tick: int) -> bool:
        """Return whether the process is known to the system at *tick*."""
        return tick >= self._arrival

    def burst_due(self, tick: int) -> Burst | None:
        """Return the pending burst if its start has been reached at *tick*."""
        burst = self.next_burst
        if burst is None or not self.has_arrived(tick):
            return None
        return burst if self._elapsed >= burst.offset else None

    def consume_burst(self) -> Burst:
        """Move the cursor past the pending burst and return it.

        Raises:
            RuntimeError: If every burst has already been consumed.

        """
        burst = self.next_burst
        if burst is None:
            msg = f"Process {self._pid} has no pending burst"
            raise RuntimeError(msg)
        self._cursor += 1
        return burst

    def advance(self) -> None:
        """Consume one tick of the current burst.

        Raises:
            RuntimeError: If the process has already reached its duration.

        """
        if self._elapsed >= self._duration:
            msg = f"Process {self._pid} already consumed its {self._duration} ticks"
            raise RuntimeError(msg)
        self._elapsed += 1

    def _transition(self, action: str, expected: ProcessState, target: ProcessState) -> None:
        """Enforce a state transition.

        Args:
            action: Name of the transition (for error messages).
            expected: The state the process must be in.
            target: The state to move to.

        Raises:
            RuntimeError: If the process is not in the expected state.

        """
        if self._state is not expected:
            msg = f"Cannot {action}: process {self._pid} is {self._state}, expected {expected}"
            raise RuntimeError(msg)
        self._state = target

    def dispatch(self) -> None:
        """Transition READY → RUNNING. Give the process a core."""
        self._transition("dispatch", ProcessState.READY, ProcessState.RUNNING)

    def preempt(self) -> None:
        """Transition RUNNING → READY. Time slice exhausted."""
        self._transition("preempt", ProcessState.RUNNING, ProcessState.READY)

    def block(self) -> None:
        """Transition RUNNING → WAITING. An I/O burst has started."""
        self._transition("block", ProcessState.RUNNING, ProcessState.WAITING)

    def wake(self) -> None:
        """Transition WAITING → READY. The I/O burst has finished."""
        self._transition("wake", ProcessState.WAITING, ProcessState.READY)

    def terminate(self) -> None:
        """Transition RUNNING → TERMINATED. The final burst is done."""
        self._transition("terminate", ProcessState.RUNNING, ProcessState.TERMINATED)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Process(pid={self._pid}, state={self._state}, "
            f"elapsed={self._elapsed}/{self._duration})"
        )
