"""Configuration for table dumps.

All settings come from environment variables with defaults suitable for
local debugging. CLI options override them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_DIR_ENV = "TABLEDUMP_LOG_DIR"
LOG_EXT_ENV = "TABLEDUMP_LOG_EXT"
PARALLEL_ENV = "TABLEDUMP_PARALLEL"
LOG_LEVEL_ENV = "TABLEDUMP_LOG_LEVEL"

_DEFAULT_PARALLEL = 1
_DEFAULT_LOG_LEVEL = "WARNING"


def default_log_dir() -> Path:
    """Return the default log directory (`~/.tabledump/logs`)."""
    return Path.home() / ".tabledump" / "logs"


def _parallel_from_env() -> int:
    """Return the extraction parallelism, falling back on invalid values."""
    raw = os.getenv(PARALLEL_ENV)
    if raw is None:
        return _DEFAULT_PARALLEL
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", PARALLEL_ENV, raw)
        return _DEFAULT_PARALLEL
    if value < 1:
        logger.warning("Ignoring invalid %s=%r", PARALLEL_ENV, raw)
        return _DEFAULT_PARALLEL
    return value


def _log_level_from_env() -> str:
    """Return the CLI log level name, falling back on unknown names."""
    raw = os.getenv(LOG_LEVEL_ENV)
    if raw is None or not raw.strip():
        return _DEFAULT_LOG_LEVEL
    name = raw.strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        logger.warning("Ignoring invalid %s=%r", LOG_LEVEL_ENV, raw)
        return _DEFAULT_LOG_LEVEL
    return name


@dataclass(frozen=True)
class DumpConfig:
    """
    Settings for writing dumps.

    Attributes:
        log_dir: Directory that receives the report files.
        extension: File extension of report files (without the dot).
        max_parallel: Maximum number of tables extracted concurrently.
        log_level: Level for the package logger when run from the CLI.
    """

    log_dir: Path = field(default_factory=default_log_dir)
    extension: str = "log"
    max_parallel: int = _DEFAULT_PARALLEL
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> DumpConfig:
        """Load configuration from environment variables."""
        log_dir = os.getenv(LOG_DIR_ENV)
        return cls(
            log_dir=Path(log_dir).expanduser() if log_dir else default_log_dir(),
            extension=os.getenv(LOG_EXT_ENV, "log").strip().lstrip(".") or "log",
            max_parallel=_parallel_from_env(),
            log_level=_log_level_from_env(),
        )
