"""Event graph — the per-tick timeline of every process and the disk.

The recorder is write-only from the simulation's point of view: the
driver appends one state event per arrived process per tick and one
disk event per tick, and never reads anything back.  After the run the
timeline can be rendered as an ASCII Gantt chart::

    tick  0
          0123456789
    P1    -0000xxxxx
    P2    -----0000x
    disk  ..........

Legend: ``-`` ready, a digit is the core running the process, ``w``
waiting on I/O, ``#`` disk busy.  A terminated process keeps being
reported, so its row is ``x`` from the termination tick to the end.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass

from py_sched.process.pcb import ProcessState

_STATE_GLYPH = {
    ProcessState.READY: "-",
    ProcessState.WAITING: "w",
    ProcessState.TERMINATED: "x",
}


@dataclass(frozen=True)
class ProcessEvent:
    """The state of one process during one tick."""

    tick: int
    state: ProcessState
    core: int | None = None


@dataclass(frozen=True)
class DiskEvent:
    """Whether the disk was busy during one tick, and for whom."""

    tick: int
    busy: bool
    pid: int | None = None


class ProcessGraph:
    """Record process and disk events and render them."""

    def __init__(self) -> None:
        """Create an empty graph."""
        self._timelines: dict[int, list[ProcessEvent]] = {}
        self._disk: list[DiskEvent] = []

    def add_process(self, pid: int) -> None:
        """Create an empty timeline row for *pid*."""
        self._timelines.setdefault(pid, [])

    def add_process_event(
        self,
        pid: int,
        tick: int,
        state: ProcessState,
        core: int | None = None,
    ) -> None:
        """Append the state of *pid* at *tick*.

        Raises:
            KeyError: If *pid* has no timeline row.

        """
        if pid not in self._timelines:
            msg = f"Process {pid} is not in the graph"
            raise KeyError(msg)
        self._timelines[pid].append(ProcessEvent(tick=tick, state=state, core=core))

    def add_disk_event(self, tick: int, *, busy: bool, pid: int | None = None) -> None:
        """Append the disk state at *tick*."""
        self._disk.append(DiskEvent(tick=tick, busy=busy, pid=pid))

    @property
    def pids(self) -> list[int]:
        """Return the pids with a timeline row, in insertion order."""
        return list(self._timelines)

    def timeline(self, pid: int) -> list[ProcessEvent]:
        """Return the recorded events for *pid*."""
        return list(self._timelines[pid])

    def disk_timeline(self) -> list[DiskEvent]:
        """Return the recorded disk events."""
        return list(self._disk)

    def last_tick(self) -> int:
        """Return the highest tick recorded, or -1 if nothing was recorded."""
        ticks = [e.tick for events in self._timelines.values() for e in events]
        ticks.extend(e.tick for e in self._disk)
        return max(ticks, default=-1)

    def render_gantt(self) -> str:
        """Render the timelines as an ASCII Gantt chart."""
        width = self.last_tick() + 1
        label = max([len(f"P{pid}") for pid in self._timelines] + [len("disk")])
        tens = "".join(str(t // 10 % 10) if t % 10 == 0 else " " for t in range(width))
        units = "".join(str(t % 10) for t in range(width))
        lines = [f"{'tick':<{label}}  {tens}".rstrip(), f"{'':<{label}}  {units}"]
        for pid, events in self._timelines.items():
            row = [" "] * width
            for event in events:
                row[event.tick] = self._glyph(event)
            lines.append(f"{f'P{pid}':<{label}}  {''.join(row)}".rstrip())
        disk_row = ["."] * width
        for disk_event in self._disk:
            disk_row[disk_event.tick] = "#" if disk_event.busy else "."
        lines.append(f"{'disk':<{label}}  {''.join(disk_row)}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        """Return every recorded event as JSON-ready data."""
        return {
            "processes": {
                str(pid): [asdict(e) for e in events] for pid, events in self._timelines.items()
            },
            "disk": [asdict(e) for e in self._disk],
        }

    def to_json(self) -> str:
        """Return ``to_dict()`` serialised as indented JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @staticmethod
    def _glyph(event: ProcessEvent) -> str:
        """Return the chart character for one event."""
        if event.state is ProcessState.RUNNING:
            core = event.core if event.core is not None else 0
            return str(core) if core < 10 else "#"  # noqa: PLR2004
        return _STATE_GLYPH[event.state]
