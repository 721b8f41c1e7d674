"""
Tests for BackoffSchedule and Config loading.
"""

import dataclasses
import json

import pytest

from blockfetch.core.contracts import (
    DEFAULT_BACKOFF_SCHEDULE,
    BackoffSchedule,
    Config,
    load_config,
)
from blockfetch.core.errors import ConfigError


def test_default_schedule():
    """Reference schedule: 1s, 5s, 30s, 2m, 5m, 15m, 30m, 1h, 2h, 6h."""
    assert list(DEFAULT_BACKOFF_SCHEDULE) == [
        1, 5, 30, 120, 300, 900, 1800, 3600, 7200, 21600,
    ]
    assert len(DEFAULT_BACKOFF_SCHEDULE) == 10
    assert DEFAULT_BACKOFF_SCHEDULE[0] == 1
    assert DEFAULT_BACKOFF_SCHEDULE[-1] == 6 * 60 * 60


def test_schedule_is_immutable():
    schedule = BackoffSchedule.of(1, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        schedule.durations = (3,)
    assert isinstance(schedule.durations, tuple)


def test_schedule_rejects_negative_durations():
    with pytest.raises(ValueError):
        BackoffSchedule.of(1, -1)


def test_schedule_total():
    assert BackoffSchedule.of(1, 2.5).total == 3.5
    assert BackoffSchedule().total == 0


def test_config_defaults():
    config = Config()
    assert config.backoff_schedule is DEFAULT_BACKOFF_SCHEDULE
    assert config.compression == "lz4"
    assert config.checksum_algorithm == "sha512"
    assert config.fallback_codecs == {"gzip": "lz4", "lz4": "gzip"}
    assert config.default_block_size == 2 * 1024 * 1024


def test_config_fallback_codecs_not_shared():
    first = Config()
    first.fallback_codecs["zstd"] = "gzip"
    assert "zstd" not in Config().fallback_codecs


def test_load_config(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "backoff_schedule": [0.5, 1, 2],
        "compression": "gzip",
        "checksum_algorithm": "xxh64",
    }))

    config = load_config(config_path)

    assert isinstance(config.backoff_schedule, BackoffSchedule)
    assert list(config.backoff_schedule) == [0.5, 1, 2]
    assert config.compression == "gzip"
    assert config.checksum_algorithm == "xxh64"


def test_load_config_unknown_key(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"retries": 3}))

    with pytest.raises(ConfigError, match="retries"):
        load_config(config_path)


def test_load_config_invalid_schedule(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"backoff_schedule": [1, -5]}))

    with pytest.raises(ConfigError):
        load_config(config_path)


def test_load_config_not_an_object(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2, 3]")

    with pytest.raises(ConfigError):
        load_config(config_path)


def test_load_config_bad_json(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json")

    with pytest.raises(ConfigError):
        load_config(config_path)
