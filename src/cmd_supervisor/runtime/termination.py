"""Platform-dependent process termination.

- POSIX: SIGTERM sent directly to the process
- Windows: ``taskkill /T /F`` run as a separate command, since a single
  signal does not reach the child tree there
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from ..host_platform import HostPlatformId

__all__ = [
    "TerminationStrategy",
    "SignalTermination",
    "TaskTreeTermination",
    "build_taskkill_command",
    "select_termination_strategy",
]

logger = logging.getLogger(__name__)

CommandRunner = Callable[[str], Awaitable[None]]


def build_taskkill_command(pid: int) -> str:
    """Forced termination of ``pid`` and all of its descendants."""
    return f"taskkill /pid {pid} /T /F"


class TerminationStrategy(ABC):
    """How to stop a running child process."""

    @abstractmethod
    async def terminate(self, process: asyncio.subprocess.Process) -> None:
        ...


class SignalTermination(TerminationStrategy):
    """Send SIGTERM to the process itself; does not wait for exit."""

    async def terminate(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.terminate()
            logger.debug(f"Sent SIGTERM to pid={process.pid}")
        except ProcessLookupError:
            logger.debug(f"Process already exited pid={process.pid}")


class TaskTreeTermination(TerminationStrategy):
    """Run ``taskkill`` for the process tree and wait for it to finish.

    Args:
        run_command: Executes a command line, raising on failure
    """

    def __init__(self, run_command: CommandRunner) -> None:
        self._run_command = run_command

    async def terminate(self, process: asyncio.subprocess.Process) -> None:
        await self._run_command(build_taskkill_command(process.pid))


def select_termination_strategy(
    platform_id: HostPlatformId, run_command: CommandRunner
) -> TerminationStrategy:
    """Pick the strategy for ``platform_id``."""
    if platform_id == HostPlatformId.WINDOWS:
        return TaskTreeTermination(run_command)
    return SignalTermination()
