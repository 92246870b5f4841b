"""Command-line front end — ``py-sched WORKLOAD [options]``.

Load a workload file, run it under the chosen policy, and print the
statistics table.  Options on the command line override values from
``--config``; anything left unset falls back to the defaults::

    py-sched jobs.txt --policy rr --time-slice 2 --cores 2 --gantt

Exit status is 0 on success (even if the tick budget ran out first), 1
when an output file cannot be written, and 2 when the workload or
configuration cannot be loaded.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from py_sched.config import ConfigError, SimulationConfig, load_config
from py_sched.logging import Logger, LogLevel
from py_sched.process.scheduler import PolicyName
from py_sched.simulation import Simulation
from py_sched.workload import WorkloadError, load_workload

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_WRITE_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for ``py-sched``."""
    parser = argparse.ArgumentParser(
        prog="py-sched",
        description="Discrete-time CPU scheduling simulator",
    )
    parser.add_argument("workload", type=Path, help="Path to the workload file")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in PolicyName],
        help="Dispatch policy (default: fcfs)",
    )
    parser.add_argument("--cores", type=int, help="Number of CPU cores (default: 1)")
    parser.add_argument("--time-slice", type=int, help="Round Robin slice in ticks")
    parser.add_argument("--max-ticks", type=int, help="Last tick to simulate (default: 50)")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument(
        "--no-replay",
        action="store_true",
        help="Re-admit a process in the same tick its disk interrupt is handled",
    )
    parser.add_argument("--gantt", action="store_true", help="Print an ASCII Gantt chart")
    parser.add_argument("--stats-csv", type=Path, help="Write per-process statistics as CSV")
    parser.add_argument("--json", type=Path, help="Write statistics and events as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print the event trace")
    return parser


def resolve_config(args: argparse.Namespace) -> SimulationConfig:
    """Merge the ``--config`` file (if any) with command-line overrides.

    Raises:
        ConfigError: If the file or the merged values are invalid.

    """
    base = load_config(args.config) if args.config is not None else SimulationConfig()
    return base.with_overrides(
        policy=args.policy,
        cores=args.cores,
        time_slice=args.time_slice,
        max_ticks=args.max_ticks,
        interrupt_replay=False if args.no_replay else None,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the simulator from the command line.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv``.

    Returns:
        The process exit status.

    """
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args)
        processes = load_workload(args.workload)
    except (ConfigError, WorkloadError) as e:
        print(f"py-sched: error: {e}", file=sys.stderr)  # noqa: T201
        return EXIT_USAGE

    logger = Logger(min_level=LogLevel.DEBUG if args.verbose else LogLevel.WARNING)
    result = Simulation(processes, config, logger=logger).run()

    for entry in result.logger.entries:
        print(entry, file=sys.stderr)  # noqa: T201
    print(result.stats.to_table())  # noqa: T201
    if args.gantt:
        print()  # noqa: T201
        print(result.graph.render_gantt())  # noqa: T201

    try:
        if args.stats_csv is not None:
            args.stats_csv.write_text(result.stats.to_csv())
        if args.json is not None:
            payload = {
                "config": {"policy": str(config.policy), "cores": config.cores},
                "completed": result.completed,
                "ticks": result.ticks,
                "stats": result.stats.to_dict(),
                "events": result.graph.to_dict(),
            }
            args.json.write_text(json.dumps(payload, indent=2))
    except OSError as e:
        print(f"py-sched: error: cannot write output: {e}", file=sys.stderr)  # noqa: T201
        return EXIT_WRITE_FAILED
    return EXIT_OK
