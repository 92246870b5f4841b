"""Simulation configuration — which policy, how many cores, how long.

A ``SimulationConfig`` is the frozen set of knobs a run needs.  It can
be built directly, from a plain dict (the web UI's JSON body), or from
a JSON file on disk::

    {
        "policy": "rr",
        "cores": 2,
        "time_slice": 3,
        "max_ticks": 200
    }

Every value is validated up front so a bad configuration is reported
before the first tick runs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any

from py_sched.process.scheduler import PolicyName, SchedulingPolicy, create_policy

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_MAX_TICKS = 50
DEFAULT_SWITCH_IN_DELAY = 1
DEFAULT_SWITCH_OUT_DELAY = 2


class ConfigError(ValueError):
    """Raise when a simulation configuration is invalid or unreadable."""


def _require_int(name: str, value: object) -> None:
    """Reject anything but a plain integer (bools included)."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigError(msg)


@dataclass(frozen=True)
class SimulationConfig:
    """The knobs of one simulation run.

    Attributes:
        policy: Dispatch policy name.
        cores: Number of CPU cores.
        time_slice: Round Robin slice length (required for ``rr`` only).
        max_ticks: Last tick to simulate; None means ``DEFAULT_MAX_TICKS``.
        switch_in_delay: Ticks to load a process onto a core.
        switch_out_delay: Ticks to evict a process from a core.
        interrupt_replay: Re-admit a process one tick after its disk
            interrupt (True) or in the same tick (False).

    """

    policy: PolicyName = PolicyName.FCFS
    cores: int = 1
    time_slice: int | None = None
    max_ticks: int | None = None
    switch_in_delay: int = DEFAULT_SWITCH_IN_DELAY
    switch_out_delay: int = DEFAULT_SWITCH_OUT_DELAY
    interrupt_replay: bool = True

    def __post_init__(self) -> None:
        """Normalise the policy name and validate every field.

        Raises:
            ConfigError: If any value has the wrong type or is out of range.

        """
        try:
            policy = PolicyName(self.policy)
        except ValueError as e:
            choices = ", ".join(p.value for p in PolicyName)
            msg = f"Unknown policy {self.policy!r} (choose from {choices})"
            raise ConfigError(msg) from e
        object.__setattr__(self, "policy", policy)

        _require_int("cores", self.cores)
        _require_int("switch_in_delay", self.switch_in_delay)
        _require_int("switch_out_delay", self.switch_out_delay)
        if self.time_slice is not None:
            _require_int("time_slice", self.time_slice)
        if self.max_ticks is not None:
            _require_int("max_ticks", self.max_ticks)
        if not isinstance(self.interrupt_replay, bool):
            msg = f"interrupt_replay must be true or false, got {self.interrupt_replay!r}"
            raise ConfigError(msg)

        if self.cores < 1:
            msg = f"cores must be at least 1, got {self.cores}"
            raise ConfigError(msg)
        if policy is PolicyName.ROUND_ROBIN and (self.time_slice is None or self.time_slice < 1):
            msg = "Round Robin needs a time_slice of at least 1"
            raise ConfigError(msg)
        if self.max_ticks is not None and self.max_ticks < 0:
            msg = f"max_ticks must not be negative, got {self.max_ticks}"
            raise ConfigError(msg)
        if self.switch_in_delay < 0 or self.switch_out_delay < 0:
            msg = "switch delays must not be negative"
            raise ConfigError(msg)

    @property
    def tick_budget(self) -> int:
        """Return the last tick the simulation may run."""
        return DEFAULT_MAX_TICKS if self.max_ticks is None else self.max_ticks

    def build_policy(self) -> SchedulingPolicy:
        """Create the dispatch policy this configuration names."""
        return create_policy(self.policy, time_slice=self.time_slice)

    def with_overrides(self, **changes: Any) -> SimulationConfig:
        """Return a copy with the non-None *changes* applied.

        Raises:
            ConfigError: If the result is invalid.

        """
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a configuration from a plain mapping.

        Raises:
            ConfigError: If a key is unknown or a value is invalid.

        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown configuration keys: {', '.join(unknown)}"
            raise ConfigError(msg)
        try:
            return cls(**data)
        except TypeError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigError(msg) from e


def load_config(path: Path) -> SimulationConfig:
    """Load a configuration from a JSON file.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object.

    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        msg = f"Cannot load configuration: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = "Configuration file must contain a JSON object"
        raise ConfigError(msg)
    return SimulationConfig.from_dict(data)
