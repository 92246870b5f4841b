"""Simulation driver — the time-stepped loop that ties everything together.

One call to ``Simulation.step()`` is one tick.  Every tick runs the same
six phases, in this order, for every process before the clock moves:

1. **Events** — arrivals join the ready queue; a process whose CPU
   burst has reached an I/O burst asks for the disk; the disk finishes
   a burst and raises an interrupt.
2. **Termination / slice** — finished processes leave their cores;
   under Round Robin an exhausted slice sends the process to the back
   of the ready queue (unless nothing else is waiting).
3. **Interrupt resolution** — processes whose interrupt was handled
   last tick rejoin the ready queue, pending interrupts are serviced,
   I/O requesters move from their cores to the wait queue, and an idle
   disk takes the head of the wait queue.
4. **Dispatch** — the policy picks a ready process for every core that
   is idle and past its switch delays.
5. **Observation** — every arrived process is reported to the
   statistics collector and the event graph.
6. **Advance** — switch delays count down and every process on a core
   or on the disk consumes one tick.

Interrupt replay:
    By default a disk interrupt costs a tick.  The handler runs on the
    tick the I/O finishes, which stalls that tick's dispatch and delay
    countdown, and the process rejoins the ready queue on the next
    tick.  ``SimulationConfig(interrupt_replay=False)`` re-admits it in
    the same tick instead.

The whole loop is single-threaded and deterministic: the same workload
and configuration always produce the same trace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from py_sched.config import SimulationConfig
from py_sched.graph import ProcessGraph
from py_sched.interrupts import VECTOR_DISK, InterruptController, InterruptRequest
from py_sched.logging import Logger, LogLevel
from py_sched.machine import Core, Machine
from py_sched.process.pcb import BurstKind, Process, ProcessState
from py_sched.process.scheduler import Scheduler, SchedulingPolicy
from py_sched.stats import StatsCollector

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass
class TickReport:
    """What changed during one tick."""

    tick: int
    arrived: list[int] = field(default_factory=lambda: [])  # noqa: PIE807
    dispatched: list[tuple[int, int]] = field(default_factory=lambda: [])  # noqa: PIE807
    blocked: list[int] = field(default_factory=lambda: [])  # noqa: PIE807
    preempted: list[int] = field(default_factory=lambda: [])  # noqa: PIE807
    terminated: list[int] = field(default_factory=lambda: [])  # noqa: PIE807
    interrupts: int = 0
    stalled: bool = False


@dataclass(frozen=True)
class SimulationResult:
    """The outcome of ``Simulation.run()``."""

    ticks: int
    completed: bool
    stats: StatsCollector
    graph: ProcessGraph
    logger: Logger


class Simulation:
    """Drive a workload through the scheduler, cores, and disk tick by tick."""

    def __init__(
        self,
        processes: Iterable[Process],
        config: SimulationConfig | None = None,
        *,
        stats: StatsCollector | None = None,
        graph: ProcessGraph | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Prepare a simulation over *processes*.

        Processes are ordered by arrival; ties keep their given order.

        Args:
            processes: The workload (fresh, unstarted PCBs).
            config: Run configuration; defaults to FCFS on one core.
            stats: Statistics collector to report into.
            graph: Event graph to report into.
            logger: Log buffer for the trace.

        Raises:
            ValueError: If two processes share a pid.

        """
        self._processes = sorted(processes, key=lambda p: p.arrival)
        pids = [p.pid for p in self._processes]
        if len(set(pids)) != len(pids):
            msg = "Process ids must be unique"
            raise ValueError(msg)

        self._config = config if config is not None else SimulationConfig()
        self._policy: SchedulingPolicy = self._config.build_policy()
        self._scheduler = Scheduler(capacity=len(self._processes))
        self._machine = Machine(
            num_cores=self._config.cores,
            switch_in=self._config.switch_in_delay,
        )
        self._stats = stats if stats is not None else StatsCollector()
        self._graph = graph if graph is not None else ProcessGraph()
        self._logger = logger if logger is not None else Logger()

        self._interrupts = InterruptController()
        self._interrupts.register(VECTOR_DISK, self._on_disk_interrupt)

        self._tick = 0
        self._io_requests: list[tuple[Process, Core]] = []
        self._replay: list[Process] = []
        self._stalled = False
        self._report = TickReport(tick=0)

        for process in self._processes:
            self._stats.register(process)
            self._stats.charge_switch(process.pid, self._config.switch_in_delay)
            self._graph.add_process(process.pid)

    # -- Accessors ------------------------------------------------------------

    @property
    def tick(self) -> int:
        """Return the tick the next ``step()`` will simulate."""
        return self._tick

    @property
    def config(self) -> SimulationConfig:
        """Return the run configuration."""
        return self._config

    @property
    def policy(self) -> SchedulingPolicy:
        """Return the dispatch policy in use."""
        return self._policy

    @property
    def processes(self) -> list[Process]:
        """Return the processes in arrival order."""
        return list(self._processes)

    @property
    def scheduler(self) -> Scheduler:
        """Return the ready/wait queues."""
        return self._scheduler

    @property
    def machine(self) -> Machine:
        """Return the cores and the disk."""
        return self._machine

    @property
    def held(self) -> list[Process]:
        """Return processes whose disk interrupt was handled this tick.

        They rejoin the ready queue at the start of the next tick.
        """
        return list(self._replay)

    @property
    def stats(self) -> StatsCollector:
        """Return the statistics collector."""
        return self._stats

    @property
    def graph(self) -> ProcessGraph:
        """Return the event graph."""
        return self._graph

    @property
    def logger(self) -> Logger:
        """Return the trace log."""
        return self._logger

    @property
    def done(self) -> bool:
        """Return whether every process has terminated."""
        return all(p.state is ProcessState.TERMINATED for p in self._processes)

    # -- Loop -----------------------------------------------------------------

    def run(self) -> SimulationResult:
        """Step until every process terminates or the tick budget runs out.

        The budget is inclusive: with ``max_ticks=50`` ticks 0..50 run.
        Running out of budget is not an error; ``completed`` is False.
        """
        budget = self._config.tick_budget
        self._log(
            LogLevel.INFO,
            f"starting {self._policy.name} on {self._machine.num_cores} core(s), "
            f"{len(self._processes)} process(es), budget {budget}",
            source="sim",
        )
        while self._tick <= budget:
            self.step()
            if self.done:
                break

        completed = self.done
        if completed:
            self._log(LogLevel.INFO, "all processes terminated", source="sim", tick=self._tick - 1)
        else:
            self._log(
                LogLevel.WARNING,
                f"tick budget {budget} exhausted before every process terminated",
                source="sim",
                tick=self._tick - 1,
            )
        return SimulationResult(
            ticks=self._tick,
            completed=completed,
            stats=self._stats,
            graph=self._graph,
            logger=self._logger,
        )

    def step(self) -> TickReport:
        """Simulate exactly one tick and return what happened in it."""
        tick = self._tick
        self._report = TickReport(tick=tick)
        self._stalled = False

        self._event_phase(tick)
        self._termination_phase(tick)
        self._interrupt_phase(tick)
        if not self._stalled:
            self._dispatch_phase(tick)
        self._observation_phase(tick)
        self._advance_phase()

        self._report.stalled = self._stalled
        self._tick += 1
        return self._report

    # -- Phases ---------------------------------------------------------------

    def _event_phase(self, tick: int) -> None:
        """Handle arrivals, I/O requests, and I/O completions."""
        for process in self._processes:
            if process.state is ProcessState.TERMINATED:
                continue
            burst = process.burst_due(tick)
            if burst is None:
                continue

            if burst.kind is BurstKind.CPU:
                if self._machine.on_disk(process.pid):
                    self._complete_io(process, tick)
                elif not process.admitted:
                    process.consume_burst()
                    self._scheduler.enqueue_ready(process)
                    self._report.arrived.append(process.pid)
                    self._log(LogLevel.INFO, f"P{process.pid} arrived", source="event", tick=tick)
                else:
                    process.consume_burst()
            elif self._machine.on_disk(process.pid):
                process.consume_burst()
            else:
                self._request_io(process, tick)

    def _termination_phase(self, tick: int) -> None:
        """Retire finished processes and enforce time slices."""
        requested = {p.pid for p, _ in self._io_requests}
        time_slice = self._policy.time_slice
        for core in self._machine.cores:
            process = core.process
            if process is None or process.pid in requested:
                continue
            if process.finished:
                core.release()
                process.terminate()
                self._stats.record_finish(process.pid, tick)
                self._report.terminated.append(process.pid)
                self._log(
                    LogLevel.INFO,
                    f"P{process.pid} terminated on core {core.index}",
                    source="event",
                    tick=tick,
                )
            elif time_slice is not None and core.slice_left <= 0:
                if self._scheduler.is_empty():
                    core.slice_left = time_slice
                    continue
                self._preempt(core, tick)

    def _interrupt_phase(self, tick: int) -> None:
        """Run the policy-independent work that precedes every dispatch."""
        for process in self._replay:
            self._scheduler.enqueue_ready(process)
            self._log(
                LogLevel.INFO,
                f"P{process.pid} back in ready queue after I/O",
                source="interrupt",
                tick=tick,
            )
        self._replay.clear()

        self._report.interrupts = self._interrupts.service_pending()

        for process, core in self._io_requests:
            core.release()
            self._scheduler.enqueue_wait(process)
            self._report.blocked.append(process.pid)
            self._log(
                LogLevel.INFO,
                f"P{process.pid} left core {core.index} to wait for the disk",
                source="disk",
                tick=tick,
            )
        self._io_requests.clear()

        disk = self._machine.disk
        if disk.idle and self._scheduler.wait_count:
            process = self._scheduler.dequeue_wait()
            disk.load(process)
            self._log(LogLevel.DEBUG, f"disk serving P{process.pid}", source="disk", tick=tick)

    def _dispatch_phase(self, tick: int) -> None:
        """Give every eligible core a process chosen by the policy."""
        ready = self._scheduler.ready_queue
        self._policy.prepare(ready)
        for core in self._machine.eligible_cores():
            index = self._policy.select_next(ready, self._machine)
            if index is None:
                break
            process = self._scheduler.dequeue_ready(index)
            process.dispatch()
            core.load(process, time_slice=self._policy.time_slice or 0)
            self._report.dispatched.append((process.pid, core.index))
            self._log(
                LogLevel.INFO,
                f"P{process.pid} dispatched on core {core.index}",
                source="dispatch",
                tick=tick,
            )

    def _observation_phase(self, tick: int) -> None:
        """Report every arrived process and the disk for this tick."""
        for process in self._processes:
            if not process.has_arrived(tick):
                continue
            core = self._machine.core_of(process.pid)
            self._stats.record(tick, process)
            self._graph.add_process_event(
                process.pid,
                tick,
                process.state,
                None if core is None else core.index,
            )
        on_disk = self._machine.disk.process
        self._graph.add_disk_event(
            tick,
            busy=on_disk is not None,
            pid=None if on_disk is None else on_disk.pid,
        )

    def _advance_phase(self) -> None:
        """Count delays down and consume one tick of every placed process."""
        time_slice = self._policy.time_slice
        for core in self._machine.cores:
            if not self._stalled:
                core.tick_delays()
            if core.process is not None:
                core.process.advance()
                if time_slice is not None:
                    core.slice_left -= 1
        on_disk = self._machine.disk.process
        if on_disk is not None:
            on_disk.advance()

    # -- Transitions ----------------------------------------------------------

    def _request_io(self, process: Process, tick: int) -> None:
        """Record that a running *process* reached an I/O burst.

        The core's switch delays start now; the move to the wait queue
        happens in the interrupt-resolution phase.

        Raises:
            RuntimeError: If the process is not on a core.

        """
        core = self._machine.core_of(process.pid)
        if core is None:
            msg = f"P{process.pid} reached an I/O burst while not on a core"
            raise RuntimeError(msg)
        process.consume_burst()
        core.arm_switch(
            switch_in=self._config.switch_in_delay,
            switch_out=self._config.switch_out_delay,
        )
        self._stats.record_context_switch(process.pid)
        self._io_requests.append((process, core))
        self._log(
            LogLevel.DEBUG,
            f"P{process.pid} requests I/O, context switch on core {core.index}",
            source="event",
            tick=tick,
        )

    def _complete_io(self, process: Process, tick: int) -> None:
        """Free the disk and raise the completion interrupt for *process*."""
        process.consume_burst()
        self._machine.disk.release()
        self._interrupts.raise_interrupt(VECTOR_DISK, data=process)
        self._log(
            LogLevel.DEBUG,
            f"disk finished I/O for P{process.pid}, interrupt raised",
            source="disk",
            tick=tick,
        )

    def _preempt(self, core: Core, tick: int) -> None:
        """Send the process on *core* to the ready tail after its slice."""
        process = core.release()
        core.arm_switch(
            switch_in=self._config.switch_in_delay,
            switch_out=self._config.switch_out_delay,
        )
        self._scheduler.enqueue_ready(process)
        self._stats.record_context_switch(process.pid)
        self._stats.charge_switch(
            process.pid,
            self._config.switch_in_delay + self._config.switch_out_delay,
        )
        self._report.preempted.append(process.pid)
        self._log(
            LogLevel.INFO,
            f"P{process.pid} preempted on core {core.index} (slice expired)",
            source="event",
            tick=tick,
        )

    def _on_disk_interrupt(self, irq: InterruptRequest) -> None:
        """Interrupt handler for disk completions."""
        process = cast("Process", irq.data)
        if self._config.interrupt_replay:
            self._replay.append(process)
            self._stalled = True
        else:
            self._scheduler.enqueue_ready(process)
        self._log(
            LogLevel.DEBUG,
            f"handled disk interrupt for P{process.pid}",
            source="interrupt",
            tick=self._tick,
        )

    def _log(self, level: LogLevel, message: str, *, source: str, tick: int = 0) -> None:
        """Append one entry to the trace log."""
        self._logger.log(level, message, source=source, tick=tick)


def simulate(processes: Iterable[Process], config: SimulationConfig | None = None) -> SimulationResult:
    """Run *processes* under *config* to completion or budget and return the result."""
    return Simulation(processes, config).run()
