"""
Core data structures (dataclasses) for blockfetch.

All core data structures are defined as explicit dataclasses.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Iterator, Tuple, Union

from blockfetch.core.errors import ConfigError

# Codec names understood by blockfetch.storage.compression
CODEC_NONE = "none"
CODEC_GZIP = "gzip"
CODEC_LZ4 = "lz4"
CODEC_ZSTD = "zstd"

DEFAULT_BLOCK_SIZE = 2 * 1024 * 1024  # 2 MiB
DEFAULT_CHECKSUM_ALGORITHM = "sha512"

# gzip and lz4 blocks can be mistaken for one another; zstd has no alternate
DEFAULT_FALLBACK_CODECS: Dict[str, str] = {
    CODEC_GZIP: CODEC_LZ4,
    CODEC_LZ4: CODEC_GZIP,
}


@dataclass(frozen=True)
class BackoffSchedule:
    """
    Ordered, immutable sequence of retry wait durations (seconds).

    The schedule is a lookup table, not a formula: ``schedule[i]`` is the wait
    before retry ``i + 1``. A schedule of length N allows N + 1 read attempts.
    """

    durations: Tuple[float, ...] = ()

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        object.__setattr__(self, "durations", tuple(float(d) for d in self.durations))
        for duration in self.durations:
            if duration < 0:
                raise ValueError(f"backoff duration must be >= 0, got {duration}")

    @classmethod
    def of(cls, *durations: float) -> "BackoffSchedule":
        """Build a schedule from positional durations in seconds."""
        return cls(tuple(durations))

    def __len__(self) -> int:
        return len(self.durations)

    def __getitem__(self, index: int) -> float:
        return self.durations[index]

    def __iter__(self) -> Iterator[float]:
        return iter(self.durations)

    @property
    def total(self) -> float:
        """Worst-case time spent waiting if every attempt fails."""
        return sum(self.durations)


DEFAULT_BACKOFF_SCHEDULE = BackoffSchedule(
    (
        1,  # 1s
        5,  # 5s
        30,  # 30s
        2 * 60,  # 2m
        5 * 60,  # 5m
        15 * 60,  # 15m
        30 * 60,  # 30m
        60 * 60,  # 1h
        2 * 60 * 60,  # 2h
        6 * 60 * 60,  # 6h
    )
)


@dataclass
class Config:
    """Configuration for block retrieval and verification."""

    # Retry
    backoff_schedule: BackoffSchedule = DEFAULT_BACKOFF_SCHEDULE

    # Compression
    compression: str = CODEC_LZ4  # codec requested when the caller names none
    compression_level: int = 3
    fallback_codecs: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_CODECS)
    )

    # Integrity
    checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM

    # Block layout
    default_block_size: int = DEFAULT_BLOCK_SIZE

    def __post_init__(self):
        if not isinstance(self.backoff_schedule, BackoffSchedule):
            self.backoff_schedule = BackoffSchedule(tuple(self.backoff_schedule))


def config_from_dict(values: Dict) -> Config:
    """
    Build a Config from a plain mapping (e.g. parsed JSON).

    Args:
        values: Mapping of Config field names to values

    Returns:
        Config object

    Raises:
        ConfigError: If the mapping contains unknown keys or invalid values
    """
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

    try:
        return Config(**values)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_config(path: Union[str, Path]) -> Config:
    """
    Load a Config from a JSON file.

    ``backoff_schedule`` may be given as a list of seconds.

    Args:
        path: Path to the JSON config file

    Returns:
        Config object
    """
    try:
        with open(path, "r") as f:
            values = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"failed to load config from {path}: {e}") from e

    if not isinstance(values, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")

    return config_from_dict(values)
