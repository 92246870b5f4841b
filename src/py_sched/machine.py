"""Simulated hardware — CPU cores, the disk, and the machine that holds them.

A **core** runs at most one process.  Moving processes on and off a
core is not free: evicting the previous occupant costs *switch-out*
ticks and loading the next one costs *switch-in* ticks.  Both are
plain countdowns on the core, and the core accepts no new process
until both have reached zero.  Switch-out always drains first::

    evict P1 ── switch_out 2,1 ── switch_in 1 ── load P2

The **disk** is the single I/O device.  It services one process at a
time and has no queue of its own; processes that want it wait in the
scheduler's wait queue.

The **Machine** bundles the cores and the disk into one context object
that is handed to the dispatch policies, so they can inspect resource
state without reaching into the driver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_sched.process.pcb import Process


class Core:
    """One CPU execution unit."""

    def __init__(self, index: int, *, switch_in: int = 0) -> None:
        """Create an idle core.

        Args:
            index: Position of the core in the machine (0-based).
            switch_in: Initial switch-in countdown (cold start cost).

        """
        self._index = index
        self._process: Process | None = None
        self.switch_in = switch_in
        self.switch_out = 0
        self.slice_left = 0

    @property
    def index(self) -> int:
        """Return the core number."""
        return self._index

    @property
    def process(self) -> Process | None:
        """Return the process on this core, or None."""
        return self._process

    @property
    def idle(self) -> bool:
        """Return whether no process is assigned."""
        return self._process is None

    @property
    def eligible(self) -> bool:
        """Return whether the core can accept a process this tick."""
        return self.idle and self.switch_in == 0 and self.switch_out == 0

    def load(self, process: Process, *, time_slice: int = 0) -> None:
        """Assign *process* to this core.

        Raises:
            RuntimeError: If the core already holds a process.

        """
        if self._process is not None:
            msg = f"Core {self._index} is busy with process {self._process.pid}"
            raise RuntimeError(msg)
        self._process = process
        self.slice_left = time_slice

    def release(self) -> Process:
        """Remove and return the process on this core.

        Raises:
            RuntimeError: If the core is idle.

        """
        if self._process is None:
            msg = f"Core {self._index} is idle"
            raise RuntimeError(msg)
        process, self._process = self._process, None
        self.slice_left = 0
        return process

    def arm_switch(self, *, switch_in: int, switch_out: int) -> None:
        """Start the switch-out/switch-in countdown pair after an eviction."""
        self.switch_in = switch_in
        self.switch_out = switch_out

    def tick_delays(self) -> None:
        """Count the switch delays down by one tick.

        Switch-in only moves on a tick that began with switch-out clear.
        """
        if self.switch_in and not self.switch_out:
            self.switch_in -= 1
        if self.switch_out:
            self.switch_out -= 1

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        pid = None if self._process is None else self._process.pid
        return f"Core({self._index}, pid={pid}, in={self.switch_in}, out={self.switch_out})"


class Disk:
    """The single shared I/O device."""

    def __init__(self) -> None:
        """Create an idle disk."""
        self._process: Process | None = None

    @property
    def process(self) -> Process | None:
        """Return the process being serviced, or None."""
        return self._process

    @property
    def idle(self) -> bool:
        """Return whether the disk is free."""
        return self._process is None

    def load(self, process: Process) -> None:
        """Start servicing *process*.

        Raises:
            RuntimeError: If the disk is already busy.

        """
        if self._process is not None:
            msg = f"Disk is busy with process {self._process.pid}"
            raise RuntimeError(msg)
        self._process = process

    def release(self) -> Process:
        """Stop servicing and return the process.

        Raises:
            RuntimeError: If the disk is idle.

        """
        if self._process is None:
            msg = "Disk is idle"
            raise RuntimeError(msg)
        process, self._process = self._process, None
        return process


class Machine:
    """The cores and the disk, passed to policies as one context."""

    def __init__(self, *, num_cores: int = 1, switch_in: int = 0) -> None:
        """Create a machine with *num_cores* cold cores and one disk.

        Args:
            num_cores: Number of cores (at least 1).
            switch_in: Initial switch-in countdown of every core.

        Raises:
            ValueError: If *num_cores* is less than 1.

        """
        if num_cores < 1:
            msg = "num_cores must be at least 1"
            raise ValueError(msg)
        self._cores = [Core(i, switch_in=switch_in) for i in range(num_cores)]
        self._disk = Disk()

    @property
    def cores(self) -> list[Core]:
        """Return the cores in index order."""
        return list(self._cores)

    @property
    def disk(self) -> Disk:
        """Return the disk."""
        return self._disk

    @property
    def num_cores(self) -> int:
        """Return the number of cores."""
        return len(self._cores)

    def core_of(self, pid: int) -> Core | None:
        """Return the core running *pid*, or None."""
        for core in self._cores:
            if core.process is not None and core.process.pid == pid:
                return core
        return None

    def eligible_cores(self) -> list[Core]:
        """Return the cores that can take a process this tick."""
        return [core for core in self._cores if core.eligible]

    def on_disk(self, pid: int) -> bool:
        """Return whether *pid* is the process on the disk."""
        return self._disk.process is not None and self._disk.process.pid == pid
