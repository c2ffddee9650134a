"""Command facade.

``CommandExecutor`` is the public surface over ``ChildProcess``:

- ``execute``: run a command line, log its buffered stdout once
- ``spawn`` / ``spawn_child_process``: stream output to the logger live
- ``spawn_with_progress``: output, progress dots or silence per verbosity
- ``spawn_npm_command``: run an npm-installed CLI
- ``kill_process``: platform-specific termination

Every failure leaves as a ``CommandError`` naming the command.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import anyio

from .config import CommandVerbosity, get_config
from .errors import ErrorCode, get_nested_error
from .host_platform import HostPlatform, HostPlatformId
from .log import CommandLogger, NullLogger, StreamSink
from .runtime.child_process import ChildProcess, CommandInvocation, SpawnResult
from .runtime.relay import PROGRESS_MARKER, ProgressHeartbeat, StreamRelay
from .runtime.termination import select_termination_strategy

__all__ = [
    "CommandExecutor",
    "CommandStatus",
    "SpawnOptions",
    "get_command_status_string",
]

logger = logging.getLogger(__name__)


class CommandStatus(Enum):
    START = 0
    END = 1


def get_command_status_string(command: str, status: CommandStatus) -> str:
    if status == CommandStatus.START:
        return f"Executing command: {command}"
    return f"Finished executing: {command}"


def _mark_retrieved(future: asyncio.Future[None]) -> None:
    if not future.cancelled():
        future.exception()


@dataclass(frozen=True)
class SpawnOptions:
    """Per-call options.

    Attributes:
        cwd: Working directory (None = the executor's directory)
        env: Environment overrides merged over the inherited environment
        verbosity: Output handling for ``spawn_with_progress``
    """

    cwd: Path | str | None = None
    env: Mapping[str, str | None] | None = None
    verbosity: CommandVerbosity = CommandVerbosity.SILENT


class CommandExecutor:
    """Runs external commands and reports them through a ``CommandLogger``.

    Args:
        current_working_directory: Default cwd (default: ``CMDSUP_CWD``,
            else the process cwd at construction)
        logger: Output and lifecycle sink (default: ``NullLogger``)
        child_process: Spawner (default: a new ``ChildProcess``)
        platform_id: Returns the host platform family
        progress_interval: Seconds between progress dots (default: config)
        clock: Time source for the progress heartbeat
    """

    def __init__(
        self,
        current_working_directory: Path | str | None = None,
        logger: CommandLogger | None = None,
        child_process: ChildProcess | None = None,
        platform_id: Callable[[], HostPlatformId] = HostPlatform.get_platform_id,
        progress_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        config = get_config()
        if current_working_directory is None:
            current_working_directory = config.cwd or Path.cwd()
        self.current_working_directory = Path(current_working_directory)
        self.logger = logger if logger is not None else NullLogger()
        self.child_process = (
            child_process
            if child_process is not None
            else ChildProcess(cwd=self.current_working_directory)
        )
        self.progress_interval = (
            progress_interval
            if progress_interval is not None
            else config.progress_interval
        )
        self._platform_id = platform_id
        self._clock = clock

    async def execute(self, command: str, options: SpawnOptions | None = None) -> None:
        """Run ``command`` through the shell and wait for it.

        Captured stdout is logged once at info level after the command ends.

        Raises:
            CommandError: The command could not start or exited nonzero
        """
        options = options or SpawnOptions()
        self.logger.debug(get_command_status_string(command, CommandStatus.START))
        try:
            stdout = await self.child_process.exec_to_string(
                command,
                cwd=self._resolve_cwd(options),
                env=options.env,
            )
        except Exception as e:
            raise get_nested_error(e, ErrorCode.COMMAND_FAILED, command) from e

        self.logger.info(stdout)
        self.logger.debug(get_command_status_string(command, CommandStatus.END))

    async def spawn(
        self,
        command: str,
        args: Sequence[str] = (),
        options: SpawnOptions | None = None,
    ) -> None:
        """Spawn ``command`` with live output and wait until it finishes."""
        await self.spawn_child_process(command, args, options).outcome

    def spawn_child_process(
        self,
        command: str,
        args: Sequence[str] = (),
        options: SpawnOptions | None = None,
        *,
        cancel_scope: anyio.CancelScope | None = None,
    ) -> SpawnResult:
        """Spawn ``command`` and stream its output to the logger as it arrives.

        The returned result's ``outcome`` raises ``CommandError`` on failure.
        """
        invocation = self._build_invocation(command, args, options)
        command_line = invocation.command_line

        self.logger.debug(get_command_status_string(command_line, CommandStatus.START))
        result = self.child_process.spawn(invocation, cancel_scope=cancel_scope)
        StreamRelay(self.logger, CommandVerbosity.OUTPUT).attach(result)

        result.outcome = asyncio.ensure_future(
            self._wrap_outcome(result.outcome, command_line)
        )
        # Callers may kill the process and drop the handle without awaiting
        result.outcome.add_done_callback(_mark_retrieved)
        return result

    def spawn_npm_command(
        self,
        cli_name: str,
        command: str,
        args: Sequence[str] = (),
        options: SpawnOptions | None = None,
    ) -> SpawnResult:
        """Spawn ``<cli_name> <command> <args>`` for an npm-installed CLI."""
        executable = HostPlatform.get_npm_cli_command(cli_name, self._platform_id())
        return self.spawn_child_process(executable, [command, *args], options)

    async def spawn_with_progress(
        self,
        command: str,
        args: Sequence[str] = (),
        options: SpawnOptions | None = None,
    ) -> None:
        """Spawn ``command`` and wait, reporting according to ``options.verbosity``.

        - OUTPUT: streamed output bracketed by start/end debug lines
        - PROGRESS: a dot at most once per ``progress_interval``
        - SILENT: nothing while running

        A newline is written to the stdout sink on success.

        Raises:
            CommandError: The command could not start or exited nonzero
        """
        invocation = self._build_invocation(command, args, options)
        command_line = invocation.command_line
        verbosity = invocation.verbosity

        heartbeat = None
        if verbosity == CommandVerbosity.PROGRESS:
            heartbeat = ProgressHeartbeat(
                lambda: self.logger.log_stream(PROGRESS_MARKER, StreamSink.STDOUT),
                interval=self.progress_interval,
                clock=self._clock,
            )

        if verbosity == CommandVerbosity.OUTPUT:
            self.logger.debug(get_command_status_string(command_line, CommandStatus.START))

        result = self.child_process.spawn(invocation)
        StreamRelay(self.logger, verbosity, heartbeat).attach(result)

        try:
            await result.outcome
        except Exception as e:
            raise get_nested_error(e, ErrorCode.COMMAND_FAILED, command_line) from e

        if verbosity == CommandVerbosity.OUTPUT:
            self.logger.debug(get_command_status_string(command_line, CommandStatus.END))
        self.logger.log_stream("\n", StreamSink.STDOUT)

    async def kill_process(self, process: asyncio.subprocess.Process | None) -> None:
        """Stop ``process``; a missing process only logs a warning.

        Raises:
            CommandError: The Windows ``taskkill`` command failed
        """
        if process is None:
            self.logger.warning("Process not found")
            return

        strategy = select_termination_strategy(self._platform_id(), self.execute)
        logger.debug(f"Stopping pid={process.pid} with {type(strategy).__name__}")
        await strategy.terminate(process)
        self.logger.info("Process stopped")

    def _build_invocation(
        self,
        command: str,
        args: Sequence[str],
        options: SpawnOptions | None,
    ) -> CommandInvocation:
        options = options or SpawnOptions()
        return CommandInvocation(
            executable=command,
            arguments=tuple(args),
            cwd=self._resolve_cwd(options),
            env=options.env,
            verbosity=options.verbosity,
        )

    def _resolve_cwd(self, options: SpawnOptions) -> Path:
        if options.cwd is not None:
            return Path(options.cwd)
        return self.current_working_directory

    async def _wrap_outcome(self, outcome: asyncio.Future[None], command_line: str) -> None:
        try:
            await outcome
        except Exception as e:
            raise get_nested_error(e, ErrorCode.COMMAND_FAILED, command_line) from e
        self.logger.debug(get_command_status_string(command_line, CommandStatus.END))
