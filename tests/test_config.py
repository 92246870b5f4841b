"""Tests for simulation configuration loading and validation."""

import json
from pathlib import Path

import pytest

from py_sched.config import (
    DEFAULT_MAX_TICKS,
    ConfigError,
    SimulationConfig,
    load_config,
)
from py_sched.process import PolicyName, RoundRobinPolicy

RR_SLICE = 3
CORES = 2
BUDGET = 200


class TestSimulationConfig:
    """Verify defaults and validation."""

    def test_defaults(self) -> None:
        """The default run is FCFS on one core with replay enabled."""
        config = SimulationConfig()
        assert config.policy is PolicyName.FCFS
        assert config.cores == 1
        assert config.tick_budget == DEFAULT_MAX_TICKS
        assert config.interrupt_replay

    def test_policy_string_normalised(self) -> None:
        """A plain string policy becomes a PolicyName."""
        config = SimulationConfig(policy="srb")  # pyright: ignore[reportArgumentType]
        assert config.policy is PolicyName.SRB

    def test_unknown_policy_rejected(self) -> None:
        """Unknown policy names are a ConfigError."""
        with pytest.raises(ConfigError, match="Unknown policy"):
            SimulationConfig(policy="lottery")  # pyright: ignore[reportArgumentType]

    def test_round_robin_requires_slice(self) -> None:
        """Round Robin without a slice is rejected."""
        with pytest.raises(ConfigError, match="time_slice"):
            SimulationConfig(policy=PolicyName.ROUND_ROBIN)

    def test_zero_cores_rejected(self) -> None:
        """At least one core is required."""
        with pytest.raises(ConfigError, match="cores"):
            SimulationConfig(cores=0)

    def test_negative_budget_rejected(self) -> None:
        """The tick budget cannot be negative."""
        with pytest.raises(ConfigError, match="max_ticks"):
            SimulationConfig(max_ticks=-1)

    def test_negative_delay_rejected(self) -> None:
        """Switch delays cannot be negative."""
        with pytest.raises(ConfigError, match="switch delays"):
            SimulationConfig(switch_out_delay=-1)

    def test_build_policy(self) -> None:
        """The configured policy object carries the slice."""
        config = SimulationConfig(policy=PolicyName.ROUND_ROBIN, time_slice=RR_SLICE)
        policy = config.build_policy()
        assert isinstance(policy, RoundRobinPolicy)
        assert policy.time_slice == RR_SLICE

    def test_with_overrides_ignores_none(self) -> None:
        """None overrides leave the field unchanged."""
        config = SimulationConfig(cores=CORES).with_overrides(cores=None, max_ticks=BUDGET)
        assert config.cores == CORES
        assert config.tick_budget == BUDGET

    def test_with_overrides_validates(self) -> None:
        """Overrides go through the same validation."""
        with pytest.raises(ConfigError):
            SimulationConfig().with_overrides(policy="rr")


class TestFromDict:
    """Verify building from plain mappings."""

    def test_round_trip_fields(self) -> None:
        """Known keys become fields."""
        config = SimulationConfig.from_dict(
            {"policy": "rr", "time_slice": RR_SLICE, "cores": CORES},
        )
        assert config.policy is PolicyName.ROUND_ROBIN
        assert config.time_slice == RR_SLICE
        assert config.cores == CORES

    def test_unknown_key_rejected(self) -> None:
        """Typos are reported, not ignored."""
        with pytest.raises(ConfigError, match="Unknown configuration keys: quantum"):
            SimulationConfig.from_dict({"quantum": 2})

    def test_wrong_type_rejected(self) -> None:
        """A value of the wrong type is a ConfigError."""
        with pytest.raises(ConfigError, match="cores must be an integer"):
            SimulationConfig.from_dict({"cores": "two"})

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("cores", 1.5),
            ("cores", True),
            ("time_slice", 2.0),
            ("max_ticks", "100"),
            ("switch_in_delay", False),
            ("switch_out_delay", None),
        ],
    )
    def test_integer_fields_reject_other_types(self, key: str, value: object) -> None:
        """Counts must be real integers; floats, bools and strings are refused."""
        data: dict[str, object] = {"policy": "rr", "time_slice": RR_SLICE, key: value}
        with pytest.raises(ConfigError, match=f"{key} must be an integer"):
            SimulationConfig.from_dict(data)

    @pytest.mark.parametrize("value", ["no", 0, 1, None])
    def test_replay_flag_must_be_bool(self, value: object) -> None:
        """interrupt_replay only accepts true or false."""
        with pytest.raises(ConfigError, match="interrupt_replay must be true or false"):
            SimulationConfig.from_dict({"interrupt_replay": value})


class TestLoadConfig:
    """Verify loading from JSON files."""

    def test_load_file(self, tmp_path: Path) -> None:
        """A JSON object file becomes a configuration."""
        path = tmp_path / "sim.json"
        path.write_text(json.dumps({"policy": "priority", "max_ticks": BUDGET}))
        config = load_config(path)
        assert config.policy is PolicyName.PRIORITY
        assert config.tick_budget == BUDGET

    def test_missing_file(self, tmp_path: Path) -> None:
        """An unreadable file is a ConfigError."""
        with pytest.raises(ConfigError, match="Cannot load"):
            load_config(tmp_path / "missing.json")

    def test_bad_json(self, tmp_path: Path) -> None:
        """Malformed JSON is a ConfigError."""
        path = tmp_path / "bad.json"
        path.write_text("{policy: rr")
        with pytest.raises(ConfigError, match="Cannot load"):
            load_config(path)

    def test_non_object(self, tmp_path: Path) -> None:
        """The top level must be an object."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)

    def test_undecodable_file(self, tmp_path: Path) -> None:
        """Bytes that are not UTF-8 are a ConfigError, not a decode crash."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe{}")
        with pytest.raises(ConfigError, match="Cannot load"):
            load_config(path)
