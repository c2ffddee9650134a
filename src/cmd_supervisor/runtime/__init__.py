"""Runtime module for child process supervision.

This module provides process spawning with observable output channels,
output relaying by verbosity, and platform-specific termination.
"""

from __future__ import annotations

from .child_process import ChildProcess, CommandInvocation, OutputChannel, SpawnResult
from .relay import ProgressHeartbeat, StreamRelay
from .termination import (
    SignalTermination,
    TaskTreeTermination,
    TerminationStrategy,
    select_termination_strategy,
)

__all__ = [
    "ChildProcess",
    "CommandInvocation",
    "OutputChannel",
    "ProgressHeartbeat",
    "SignalTermination",
    "SpawnResult",
    "StreamRelay",
    "TaskTreeTermination",
    "TerminationStrategy",
    "select_termination_strategy",
]
