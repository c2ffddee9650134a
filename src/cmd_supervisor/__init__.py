"""cmd-supervisor - observable, cancellable child process execution.

Environment variables:
    CMDSUP_VERBOSITY: default verbosity of the command line entry point
    CMDSUP_PROGRESS_INTERVAL: seconds between progress dots (default 1.5)
    CMDSUP_LOG_DEBUG: debug logging to a temp file (default false)
    CMDSUP_CWD: default working directory

Usage:
    python -m cmd_supervisor --verbosity progress npm install
"""

__version__ = "0.1.0"

from .config import CommandVerbosity
from .errors import CommandError, ErrorCode, FailureKind, ProcessExitError
from .executor import CommandExecutor, SpawnOptions
from .host_platform import HostPlatform, HostPlatformId
from .log import CommandLogger, LoggingCommandLogger, NullLogger, StreamSink
from .runtime import SpawnResult

__all__ = [
    "__version__",
    "CommandError",
    "CommandExecutor",
    "CommandLogger",
    "CommandVerbosity",
    "ErrorCode",
    "FailureKind",
    "HostPlatform",
    "HostPlatformId",
    "LoggingCommandLogger",
    "NullLogger",
    "ProcessExitError",
    "SpawnOptions",
    "SpawnResult",
    "StreamSink",
]
