"""Environment-based configuration.

Environment variables:
    CMDSUP_VERBOSITY: default verbosity for the command line entry point
        - output = stream child output through
        - silent = print nothing while running (default)
        - progress = print a dot at most once per interval

    CMDSUP_PROGRESS_INTERVAL: seconds between progress dots
        - default 1.5
        - clamped to the 0.1-60 range

    CMDSUP_LOG_DEBUG: debug logging
        - true/1/yes = on (log to a temp file at DEBUG)
        - false/0/no = off (default, log to stderr at INFO)

    CMDSUP_CWD: default working directory for spawned commands
        - default: the current directory when the executor is created
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

__all__ = [
    "CommandVerbosity",
    "Config",
    "DEFAULT_PROGRESS_INTERVAL",
    "get_config",
    "load_config",
    "reload_config",
]

DEFAULT_PROGRESS_INTERVAL = 1.5


class CommandVerbosity(Enum):
    """What a running command prints.

    - OUTPUT: child stdout/stderr are forwarded as they arrive
    - SILENT: nothing until the command finishes
    - PROGRESS: a rate-limited dot instead of the output
    """

    OUTPUT = "output"
    SILENT = "silent"
    PROGRESS = "progress"

    @classmethod
    def from_string(cls, value: str) -> "CommandVerbosity":
        """Parse a verbosity name, falling back to SILENT."""
        value = value.lower().strip()
        for verbosity in cls:
            if verbosity.value == value:
                return verbosity
        return cls.SILENT


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_progress_interval(value: str | None) -> float:
    """Parse the heartbeat interval, clamped to 0.1-60 seconds."""
    if not value:
        return DEFAULT_PROGRESS_INTERVAL
    try:
        interval = float(value)
    except ValueError:
        return DEFAULT_PROGRESS_INTERVAL
    return max(0.1, min(interval, 60.0))


def _parse_verbosity(value: str | None) -> CommandVerbosity:
    if not value:
        return CommandVerbosity.SILENT
    return CommandVerbosity.from_string(value)


def _generate_log_file_path() -> str:
    """Timestamped log file under the system temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "cmd-supervisor"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"cmdsup_debug_{timestamp}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """Supervisor configuration.

    Attributes:
        cwd: Default working directory (None = process cwd at executor creation)
        verbosity: Default verbosity for the command line entry point
        progress_interval: Seconds between progress dots
        log_debug: Debug logging to a temp file
        log_file: Log file path (set when log_debug is on)
    """

    cwd: Path | None = None
    verbosity: CommandVerbosity = CommandVerbosity.SILENT
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        return (
            f"Config(cwd={self.cwd}, "
            f"verbosity={self.verbosity.value}, "
            f"progress_interval={self.progress_interval}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def load_config() -> Config:
    """Build a ``Config`` from the environment."""
    log_debug = _parse_bool(os.environ.get("CMDSUP_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None
    cwd = os.environ.get("CMDSUP_CWD")

    return Config(
        cwd=Path(cwd) if cwd else None,
        verbosity=_parse_verbosity(os.environ.get("CMDSUP_VERBOSITY")),
        progress_interval=_parse_progress_interval(
            os.environ.get("CMDSUP_PROGRESS_INTERVAL")
        ),
        log_debug=log_debug,
        log_file=log_file,
    )


# Lazily loaded process-wide instance
_config: Config | None = None


def get_config() -> Config:
    """Return the cached configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the configuration from the environment (for tests)."""
    global _config
    _config = load_config()
    return _config
