"""Tests for the workload file parser."""

from pathlib import Path

import pytest

from py_sched.process import Burst, BurstKind
from py_sched.workload import WorkloadError, load_workload, parse_line, parse_workload

SAMPLE = """\
# pid, arrival, duration, priority, bursts
1, 0, 8, 2, [(0, CPU), (3, IO), (5, CPU)]

2, 1, 4, 1, [(0, CPU)]
"""

IO_PROCESS_DURATION = 8


class TestParseLine:
    """Verify single-line parsing."""

    def test_fields(self) -> None:
        """Every field lands on the process."""
        process = parse_line("1, 0, 8, 2, [(0, CPU), (3, IO), (5, CPU)]")
        assert process.pid == 1
        assert process.arrival == 0
        assert process.duration == IO_PROCESS_DURATION
        assert process.priority == 2  # noqa: PLR2004
        assert process.bursts == (
            Burst(BurstKind.CPU, 0),
            Burst(BurstKind.IO, 3),
            Burst(BurstKind.CPU, 5),
        )

    def test_kind_is_case_insensitive(self) -> None:
        """Burst kinds may be written in lower case."""
        process = parse_line("1, 0, 4, 0, [(0, cpu), (2, io), (3, cpu)]")
        assert process.bursts[1].kind is BurstKind.IO

    def test_missing_field(self) -> None:
        """Lines with too few fields are rejected."""
        with pytest.raises(WorkloadError, match="line 3: expected"):
            parse_line("1, 0, [(0, CPU)]", lineno=3)

    def test_non_integer_field(self) -> None:
        """Numbers must be integers."""
        with pytest.raises(WorkloadError, match="duration is not an integer"):
            parse_line("1, 0, x, 0, [(0, CPU)]")

    def test_unknown_kind(self) -> None:
        """Only CPU and IO bursts exist."""
        with pytest.raises(WorkloadError, match="unknown burst kind"):
            parse_line("1, 0, 4, 0, [(0, CPU), (2, NET)]")

    def test_garbage_in_bursts(self) -> None:
        """Text that is not a burst tuple is rejected."""
        with pytest.raises(WorkloadError, match="cannot parse bursts"):
            parse_line("1, 0, 4, 0, [(0, CPU), oops]")

    def test_invalid_process_wrapped(self) -> None:
        """PCB validation errors become WorkloadError with the line number."""
        with pytest.raises(WorkloadError, match="line 2: .*final burst must be CPU"):
            parse_line("1, 0, 4, 0, [(0, CPU), (2, IO)]", lineno=2)


class TestParseWorkload:
    """Verify whole-file parsing."""

    def test_skips_comments_and_blanks(self) -> None:
        """Comments and blank lines are ignored."""
        assert [p.pid for p in parse_workload(SAMPLE)] == [1, 2]

    def test_sorted_by_arrival_stably(self) -> None:
        """Processes are ordered by arrival, ties kept in file order."""
        text = "3, 2, 1, 0, [(0, CPU)]\n1, 0, 1, 0, [(0, CPU)]\n2, 0, 1, 0, [(0, CPU)]\n"
        assert [p.pid for p in parse_workload(text)] == [1, 2, 3]

    def test_duplicate_pid(self) -> None:
        """Pids must be unique."""
        text = "1, 0, 1, 0, [(0, CPU)]\n1, 1, 1, 0, [(0, CPU)]\n"
        with pytest.raises(WorkloadError, match="line 2: duplicate pid 1"):
            parse_workload(text)

    def test_empty_workload(self) -> None:
        """A file with no processes is rejected."""
        with pytest.raises(WorkloadError, match="no processes"):
            parse_workload("# nothing here\n")


class TestLoadWorkload:
    """Verify loading from disk."""

    def test_load_file(self, tmp_path: Path) -> None:
        """A workload file is read and parsed."""
        path = tmp_path / "jobs.txt"
        path.write_text(SAMPLE)
        expected_count = 2
        assert len(load_workload(path)) == expected_count

    def test_missing_file(self, tmp_path: Path) -> None:
        """An unreadable file is a WorkloadError."""
        with pytest.raises(WorkloadError, match="Cannot read workload"):
            load_workload(tmp_path / "missing.txt")

    def test_undecodable_file(self, tmp_path: Path) -> None:
        """Bytes that are not UTF-8 are a WorkloadError, not a decode crash."""
        path = tmp_path / "binary.txt"
        path.write_bytes(b"\xff\xfe1, 0, 4, 0, [(0, CPU)]\n")
        with pytest.raises(WorkloadError, match="Cannot read workload"):
            load_workload(path)
