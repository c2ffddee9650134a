"""Child process spawning with observable output and a single outcome.

This module provides:
- ``ChildProcess.spawn``: start one process and return a ``SpawnResult``
  synchronously, with live output channels and an outcome future
- ``ChildProcess.exec_to_string``: run a shell command line and return its
  buffered stdout
- Cancel-safe cleanup: a cancelled or failed supervision terminates the
  child (SIGTERM -> timeout -> SIGKILL) before the outcome settles

Outcome contract:
- exit code 0 resolves the outcome with ``None``
- a nonzero exit rejects it with ``ProcessExitError``
- a launch failure rejects it with the ``OSError`` raised by the OS
- the outcome settles once, after the exit status is collected and both
  pipes reached EOF
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import anyio

from ..config import CommandVerbosity
from ..errors import ProcessExitError

__all__ = [
    "ChildProcess",
    "CommandInvocation",
    "OutputChannel",
    "SpawnResult",
    "merge_environment",
]

logger = logging.getLogger(__name__)

ChunkListener = Callable[[bytes], None]

CHUNK_SIZE = 4096

# Default timeouts for cleanup termination
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL


@dataclass(frozen=True)
class CommandInvocation:
    """One command to spawn.

    Attributes:
        executable: Program name, resolved on PATH
        arguments: Arguments passed verbatim (no shell tokenization)
        cwd: Working directory (None = the spawner's default)
        env: Overrides merged over the inherited environment; a None value
            removes the variable
        verbosity: How the output is relayed while running
    """

    executable: str
    arguments: tuple[str, ...] = ()
    cwd: Path | None = None
    env: Mapping[str, str | None] | None = None
    verbosity: CommandVerbosity = CommandVerbosity.SILENT

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]

    @property
    def command_line(self) -> str:
        """Executable and arguments joined by spaces, for messages."""
        return " ".join(self.argv)


def merge_environment(
    overrides: Mapping[str, str | None] | None,
) -> dict[str, str] | None:
    """Overlay ``overrides`` on ``os.environ``; None means inherit as is."""
    if overrides is None:
        return None
    env = dict(os.environ)
    for key, value in overrides.items():
        if value is None:
            env.pop(key, None)
        else:
            env[key] = value
    return env


class OutputChannel:
    """Live view of one output pipe.

    Listeners are called in registration order with every chunk, in the
    order the chunks are read from the pipe.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[ChunkListener] = []

    def add_listener(self, listener: ChunkListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChunkListener) -> None:
        self._listeners.remove(listener)

    def emit(self, chunk: bytes) -> None:
        for listener in list(self._listeners):
            listener(chunk)

    def __repr__(self) -> str:
        return f"OutputChannel({self.name!r}, listeners={len(self._listeners)})"


class SpawnResult:
    """Handle to a spawned process.

    Attributes:
        invocation: What was spawned
        stdout: Channel carrying stdout chunks
        stderr: Channel carrying stderr chunks
        process: The OS process once started (None before, or on launch
            failure). Callers may signal it directly.
        outcome: Future that settles once when the process has finished.
            Wrappers may replace it with a derived future.
    """

    def __init__(self, invocation: CommandInvocation, outcome: asyncio.Future[None]) -> None:
        self.invocation = invocation
        self.stdout = OutputChannel("stdout")
        self.stderr = OutputChannel("stderr")
        self.process: asyncio.subprocess.Process | None = None
        self.outcome: asyncio.Future[None] = outcome
        self._started = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        outcome.add_done_callback(self._on_outcome_done)

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    async def wait_started(self) -> asyncio.subprocess.Process | None:
        """Wait until the launch attempt finished; None if it failed."""
        await self._started.wait()
        return self.process

    def cancel(self) -> None:
        """Stop supervising: terminates the child and cancels the outcome."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _on_outcome_done(self, outcome: asyncio.Future[None]) -> None:
        if outcome.cancelled():
            self.cancel()

    def __repr__(self) -> str:
        return f"SpawnResult(command={self.invocation.command_line!r}, pid={self.pid})"


def _settle(
    outcome: asyncio.Future[None], error: BaseException | None
) -> None:
    if outcome.done():
        return
    if error is None:
        outcome.set_result(None)
    else:
        outcome.set_exception(error)


@dataclass
class ChildProcess:
    """Spawns and supervises child processes on the running event loop.

    Example:
        child_process = ChildProcess(cwd=Path("/workspace"))
        result = child_process.spawn(CommandInvocation("git", ("status",)))
        result.stdout.add_listener(print)
        await result.outcome
    """

    cwd: Path | None = None
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT

    def spawn(
        self,
        invocation: CommandInvocation,
        *,
        cancel_scope: anyio.CancelScope | None = None,
    ) -> SpawnResult:
        """Start ``invocation`` and return its handle without waiting.

        Must be called with a running event loop. Listeners added to the
        returned channels before the caller next yields to the loop see
        every chunk.

        Args:
            invocation: Command to start
            cancel_scope: Once ``cancel()`` is called on it, chunks stop
                reaching the listeners; the pipes are still drained

        Returns:
            The live ``SpawnResult``
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[None] = loop.create_future()
        result = SpawnResult(invocation, outcome)
        result._task = loop.create_task(
            self._supervise(result, outcome, cancel_scope)
        )
        return result

    async def exec_to_string(
        self,
        command: str,
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
    ) -> str:
        """Run ``command`` through the shell and return its stdout.

        Raises:
            ProcessExitError: Nonzero exit (carries the captured stderr)
            OSError: The shell could not be started
        """
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd or self._default_cwd()),
            env=merge_environment(env),
        )
        logger.debug(f"Started shell command pid={process.pid}: {command}")

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            await self._safe_cleanup(process, [])
            raise

        if process.returncode != 0:
            raise ProcessExitError(
                command,
                process.returncode,
                stderr.decode("utf-8", errors="replace"),
            )
        return stdout.decode("utf-8", errors="replace")

    def _default_cwd(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    async def _supervise(
        self,
        result: SpawnResult,
        outcome: asyncio.Future[None],
        cancel_scope: anyio.CancelScope | None,
    ) -> None:
        invocation = result.invocation
        process: asyncio.subprocess.Process | None = None
        pumps: list[asyncio.Task[None]] = []
        error: BaseException | None = None

        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    *invocation.argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=str(invocation.cwd or self._default_cwd()),
                    env=merge_environment(invocation.env),
                )
            except OSError as e:
                logger.debug(f"Failed to start {invocation.executable}: {e}")
                _settle(outcome, e)
                return
            finally:
                result.process = process
                result._started.set()

            logger.debug(
                f"Started subprocess pid={process.pid} "
                f"argv={invocation.executable} cwd={invocation.cwd or self._default_cwd()}"
            )

            pumps = [
                asyncio.create_task(
                    self._pump(process.stdout, result.stdout, cancel_scope)
                ),
                asyncio.create_task(
                    self._pump(process.stderr, result.stderr, cancel_scope)
                ),
            ]
            await asyncio.gather(*pumps)
            returncode = await process.wait()

            logger.debug(
                f"Subprocess completed pid={process.pid} returncode={returncode}"
            )
            if returncode != 0:
                error = ProcessExitError(invocation.command_line, returncode)

        except asyncio.CancelledError:
            await self._safe_cleanup(process, pumps)
            outcome.cancel()
            raise
        except Exception as e:
            logger.warning(f"Supervision of {invocation.executable} failed: {e}")
            error = e
            await self._safe_cleanup(process, pumps)

        _settle(outcome, error)

    async def _pump(
        self,
        stream: asyncio.StreamReader | None,
        channel: OutputChannel,
        cancel_scope: anyio.CancelScope | None,
    ) -> None:
        """Read ``stream`` to EOF, emitting each chunk on ``channel``."""
        if stream is None:
            return
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                break
            if cancel_scope is not None and cancel_scope.cancel_called:
                continue
            channel.emit(chunk)

    async def _safe_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        pumps: Sequence[asyncio.Task[None]],
    ) -> None:
        """Cleanup shielded from cancellation of the caller."""
        try:
            await asyncio.shield(self._do_cleanup(process, pumps))
        except asyncio.CancelledError:
            await self._do_cleanup(process, pumps)

    async def _do_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        pumps: Sequence[asyncio.Task[None]],
    ) -> None:
        if process is not None and process.returncode is None:
            await self._terminate_process(process)

        for task in pumps:
            if not task.done():
                task.cancel()
        if pumps:
            await asyncio.gather(*pumps, return_exceptions=True)

    async def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        """SIGTERM, wait ``term_timeout``, then SIGKILL and wait ``kill_timeout``."""
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")
