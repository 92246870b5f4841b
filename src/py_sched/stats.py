"""Per-process performance statistics.

The driver reports every arrived process once per tick; the collector
turns those reports into the classic scheduling metrics:

- **cpu_time** — ticks spent RUNNING.
- **waiting_time** — ticks spent READY or WAITING, minus the switch
  ticks charged to the process (the cold-start switch-in, then
  switch-in plus switch-out for each preemption).
- **context_switches** — I/O evictions and slice preemptions.
- **finish_time** / **turnaround_time** — tick of termination and
  ``finish_time - arrival``.
- **mean_response_time** — ``waiting_time / (context_switches + 1)``,
  the average wait per stretch on a core.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from py_sched.process.pcb import ProcessState

if TYPE_CHECKING:
    from py_sched.process.pcb import Process

_CSV_FIELDS = (
    "pid",
    "priority",
    "arrival",
    "finish_time",
    "turnaround_time",
    "cpu_time",
    "waiting_time",
    "context_switches",
    "mean_response_time",
)


@dataclass
class ProcessStats:
    """Accumulated metrics for one process."""

    pid: int
    priority: int
    arrival: int
    finish_time: int | None = None
    turnaround_time: int | None = None
    cpu_time: int = 0
    waiting_time: int = 0
    context_switches: int = 0
    mean_response_time: float = 0.0
    switch_ticks: int = 0


@dataclass(frozen=True)
class StatsSummary:
    """Averages over the processes that finished."""

    finished: int
    total: int
    avg_turnaround: float
    avg_waiting: float
    avg_response: float
    total_context_switches: int


class StatsCollector:
    """Accumulate per-tick reports into ``ProcessStats`` records."""

    def __init__(self) -> None:
        """Create an empty collector."""
        self._stats: dict[int, ProcessStats] = {}
        self._last_tick: dict[int, int] = {}

    def register(self, process: Process) -> None:
        """Start tracking *process*.

        Raises:
            ValueError: If the pid is already registered.

        """
        if process.pid in self._stats:
            msg = f"Process {process.pid} is already registered"
            raise ValueError(msg)
        self._stats[process.pid] = ProcessStats(
            pid=process.pid,
            priority=process.priority,
            arrival=process.arrival,
        )

    def get(self, pid: int) -> ProcessStats:
        """Return the record for *pid*.

        Raises:
            KeyError: If the pid was never registered.

        """
        return self._stats[pid]

    @property
    def records(self) -> list[ProcessStats]:
        """Return all records ordered by pid."""
        return [self._stats[pid] for pid in sorted(self._stats)]

    def record(self, tick: int, process: Process) -> None:
        """Account one tick of *process* in its current state.

        Raises:
            RuntimeError: If the same process is reported twice for one tick.

        """
        if self._last_tick.get(process.pid) == tick:
            msg = f"Process {process.pid} already reported for tick {tick}"
            raise RuntimeError(msg)
        self._last_tick[process.pid] = tick
        stats = self._stats[process.pid]
        if process.state is ProcessState.RUNNING:
            stats.cpu_time += 1
        elif process.state in (ProcessState.READY, ProcessState.WAITING):
            stats.waiting_time += 1

    def record_context_switch(self, pid: int) -> None:
        """Count one context switch for *pid*."""
        self._stats[pid].context_switches += 1

    def charge_switch(self, pid: int, ticks: int) -> None:
        """Charge *ticks* of switch overhead that must not count as waiting."""
        self._stats[pid].switch_ticks += ticks

    def record_finish(self, pid: int, tick: int) -> None:
        """Close the record for *pid*, which terminated at *tick*."""
        stats = self._stats[pid]
        stats.finish_time = tick
        stats.turnaround_time = tick - stats.arrival
        stats.waiting_time = max(0, stats.waiting_time - stats.switch_ticks)
        stats.mean_response_time = stats.waiting_time / (stats.context_switches + 1)

    def summary(self) -> StatsSummary:
        """Return averages over the finished processes."""
        done = [s for s in self._stats.values() if s.finish_time is not None]
        count = len(done)

        def _avg(values: list[float]) -> float:
            return sum(values) / count if count else 0.0

        return StatsSummary(
            finished=count,
            total=len(self._stats),
            avg_turnaround=_avg([float(s.turnaround_time or 0) for s in done]),
            avg_waiting=_avg([float(s.waiting_time) for s in done]),
            avg_response=_avg([s.mean_response_time for s in done]),
            total_context_switches=sum(s.context_switches for s in self._stats.values()),
        )

    def to_table(self) -> str:
        """Render the records and summary as a fixed-width text table."""
        header = (
            f"{'PID':>5} {'PRIO':>5} {'ARR':>5} {'FIN':>5} {'TAT':>5} "
            f"{'CPU':>5} {'WAIT':>5} {'CSW':>5} {'RESP':>7}"
        )
        lines = [header, "-" * len(header)]
        for s in self.records:
            fin = "-" if s.finish_time is None else str(s.finish_time)
            tat = "-" if s.turnaround_time is None else str(s.turnaround_time)
            lines.append(
                f"{s.pid:>5} {s.priority:>5} {s.arrival:>5} {fin:>5} {tat:>5} "
                f"{s.cpu_time:>5} {s.waiting_time:>5} {s.context_switches:>5} "
                f"{s.mean_response_time:>7.2f}"
            )
        summary = self.summary()
        lines.append("-" * len(header))
        lines.append(
            f"finished {summary.finished}/{summary.total}  "
            f"avg turnaround {summary.avg_turnaround:.2f}  "
            f"avg waiting {summary.avg_waiting:.2f}  "
            f"avg response {summary.avg_response:.2f}"
        )
        return "\n".join(lines)

    def to_csv(self) -> str:
        """Return the records as CSV text with a header row."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for s in self.records:
            writer.writerow(asdict(s))
        return buffer.getvalue()

    def to_dict(self) -> dict[str, object]:
        """Return records and summary as JSON-ready data."""
        return {
            "processes": [
                {k: v for k, v in asdict(s).items() if k in _CSV_FIELDS} for s in self.records
            ],
            "summary": asdict(self.summary()),
        }

    def to_json(self) -> str:
        """Return ``to_dict()`` serialised as indented JSON."""
        return json.dumps(self.to_dict(), indent=2)
