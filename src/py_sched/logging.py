"""Simulation log — a structured, tick-stamped trace of what happened.

The driver records every lifecycle transition, context switch, and
interrupt as a ``LogEntry``.  Think of it as the simulator's ``dmesg``:
an append-only buffer you can filter after the run.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, tick).
- **Logger** — an append-only log with filtering and clearing.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "dispatch").
        tick: The simulation tick at which the event happened.

    """

    level: LogLevel
    message: str
    source: str
    tick: int = 0

    def __str__(self) -> str:
        """Format as ``t=TICK [LEVEL] source: message``."""
        return f"t={self.tick} [{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self, *, min_level: LogLevel = LogLevel.DEBUG) -> None:
        """Create an empty logger.

        Args:
            min_level: Entries below this level are dropped on arrival.

        """
        self._min_level = min_level
        self._entries: list[LogEntry] = []

    @property
    def min_level(self) -> LogLevel:
        """Return the lowest level that is recorded."""
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        tick: int = 0,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Subsystem that generated the event.
            tick: Simulation tick of the event.

        """
        if level < self._min_level:
            return
        self._entries.append(LogEntry(level=level, message=message, source=source, tick=tick))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        tick: int | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.
            tick: If set, only return entries stamped with this tick.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        if tick is not None:
            result = [e for e in result if e.tick == tick]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
