"""Engine settings, read from the environment and overridable on the command line.

    PAYMENTS_ENGINE_SHARDS      number of shard consumer threads (default 1)
    PAYMENTS_ENGINE_LOG_LEVEL   logging level name (default WARNING)
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

SHARDS_ENV = "PAYMENTS_ENGINE_SHARDS"
LOG_LEVEL_ENV = "PAYMENTS_ENGINE_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EngineConfig:
    num_shards: int = 1
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {self.num_shards}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {self.log_level!r}")

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from environment variables, falling back to defaults."""
        if environ is None:
            environ = os.environ

        kwargs = {}
        shards = environ.get(SHARDS_ENV, "").strip()
        if shards:
            try:
                kwargs["num_shards"] = int(shards)
            except ValueError:
                raise ValueError(f"{SHARDS_ENV} must be an integer, got {shards!r}") from None

        log_level = environ.get(LOG_LEVEL_ENV, "").strip()
        if log_level:
            kwargs["log_level"] = log_level

        return cls(**kwargs)
