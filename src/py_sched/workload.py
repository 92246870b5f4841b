"""Workload loader — turn a process description file into PCBs.

One process per line; blank lines and ``#`` comments are skipped::

    # pid, arrival, duration, priority, bursts
    1, 0, 8, 2, [(0, CPU), (3, IO), (5, CPU)]
    2, 1, 4, 1, [(0, CPU)]

Each burst is ``(offset, KIND)`` where ``offset`` is the elapsed time at
which the burst begins and ``KIND`` is ``CPU`` or ``IO``.

Any problem is fatal: the loader raises ``WorkloadError`` naming the
offending line and the simulation never starts.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from py_sched.process.pcb import Burst, BurstKind, Process

if TYPE_CHECKING:
    from pathlib import Path

_LINE_RE = re.compile(
    r"^\s*(?P<pid>[^,]+),(?P<arrival>[^,]+),(?P<duration>[^,]+),(?P<priority>[^,]+),"
    r"\s*\[(?P<bursts>.*)\]\s*$"
)
_BURST_RE = re.compile(r"\(\s*(?P<offset>[^,()]+?)\s*,\s*(?P<kind>[^,()]+?)\s*\)")


class WorkloadError(ValueError):
    """Raise when a workload description cannot be loaded."""


def _parse_int(text: str, what: str, lineno: int) -> int:
    """Parse a decimal integer field or fail with the line number."""
    try:
        return int(text.strip())
    except ValueError as e:
        msg = f"line {lineno}: {what} is not an integer: {text.strip()!r}"
        raise WorkloadError(msg) from e


def _parse_bursts(text: str, lineno: int) -> list[Burst]:
    """Parse the ``(offset, KIND), ...`` list inside the brackets."""
    bursts: list[Burst] = []
    leftover = _BURST_RE.sub("", text).replace(",", "").strip()
    if leftover:
        msg = f"line {lineno}: cannot parse bursts near {leftover!r}"
        raise WorkloadError(msg)
    for match in _BURST_RE.finditer(text):
        offset = _parse_int(match["offset"], "burst offset", lineno)
        kind_text = match["kind"].upper()
        try:
            kind = BurstKind(kind_text)
        except ValueError as e:
            msg = f"line {lineno}: unknown burst kind {match['kind']!r}"
            raise WorkloadError(msg) from e
        bursts.append(Burst(kind=kind, offset=offset))
    return bursts


def parse_line(line: str, lineno: int = 1) -> Process:
    """Parse one process description line.

    Raises:
        WorkloadError: If the line is malformed or describes an
            impossible process.

    """
    match = _LINE_RE.match(line)
    if match is None:
        msg = f"line {lineno}: expected 'pid, arrival, duration, priority, [bursts]'"
        raise WorkloadError(msg)
    pid = _parse_int(match["pid"], "pid", lineno)
    arrival = _parse_int(match["arrival"], "arrival", lineno)
    duration = _parse_int(match["duration"], "duration", lineno)
    priority = _parse_int(match["priority"], "priority", lineno)
    bursts = _parse_bursts(match["bursts"], lineno)
    try:
        return Process(
            pid=pid,
            arrival=arrival,
            duration=duration,
            priority=priority,
            bursts=bursts,
        )
    except ValueError as e:
        msg = f"line {lineno}: {e}"
        raise WorkloadError(msg) from e


def parse_workload(text: str) -> list[Process]:
    """Parse a whole workload and return it sorted by arrival.

    The sort is stable: processes arriving on the same tick keep the
    order in which they appear in the text.

    Raises:
        WorkloadError: On the first bad line, a duplicate pid, or an
            empty workload.

    """
    processes: list[Process] = []
    seen: set[int] = set()
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        process = parse_line(line, lineno)
        if process.pid in seen:
            msg = f"line {lineno}: duplicate pid {process.pid}"
            raise WorkloadError(msg)
        seen.add(process.pid)
        processes.append(process)
    if not processes:
        msg = "workload contains no processes"
        raise WorkloadError(msg)
    return sorted(processes, key=lambda p: p.arrival)


def load_workload(path: Path) -> list[Process]:
    """Read and parse the workload file at *path*.

    Raises:
        WorkloadError: If the file cannot be read or parsed.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read workload {path}: {e}"
        raise WorkloadError(msg) from e
    return parse_workload(text)
