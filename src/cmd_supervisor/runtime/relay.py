"""Routing of child output chunks to the logger.

A ``StreamRelay`` is attached to one spawn and decides, per verbosity, what
happens to each chunk:

- OUTPUT: forwarded to ``log_stream`` with its sink, as received
- PROGRESS: replaced by a rate-limited progress marker
- SILENT: dropped
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable

from ..config import DEFAULT_PROGRESS_INTERVAL, CommandVerbosity
from ..log import CommandLogger, StreamSink

if TYPE_CHECKING:
    from .child_process import SpawnResult

__all__ = [
    "PROGRESS_MARKER",
    "ProgressHeartbeat",
    "StreamRelay",
]

PROGRESS_MARKER = "."


class ProgressHeartbeat:
    """Rate-limited "still working" signal.

    ``beat()`` emits only when more than ``interval`` seconds have passed
    since the last emission; other beats are dropped. The first beat always
    emits. One instance belongs to exactly one spawn.

    Args:
        emit: Called for every marker that passes the rate limit
        interval: Minimum seconds between markers
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        emit: Callable[[], None],
        interval: float = DEFAULT_PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._emit = emit
        self._interval = interval
        self._clock = clock
        self._last_emitted: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def last_emitted(self) -> float | None:
        """Clock value of the last emitted marker."""
        return self._last_emitted

    def beat(self) -> bool:
        """Offer a marker; returns whether it was emitted."""
        now = self._clock()
        if (
            self._last_emitted is not None
            and now - self._last_emitted <= self._interval
        ):
            return False
        self._last_emitted = now
        self._emit()
        return True


class StreamRelay:
    """Forwards the output of one spawn according to its verbosity."""

    def __init__(
        self,
        logger: CommandLogger,
        verbosity: CommandVerbosity,
        heartbeat: ProgressHeartbeat | None = None,
    ) -> None:
        self._logger = logger
        self._verbosity = verbosity
        if verbosity == CommandVerbosity.PROGRESS and heartbeat is None:
            heartbeat = ProgressHeartbeat(self._emit_marker)
        self._heartbeat = heartbeat

    @property
    def verbosity(self) -> CommandVerbosity:
        return self._verbosity

    def attach(self, result: SpawnResult) -> None:
        """Register on both output channels of ``result``."""
        if self._verbosity == CommandVerbosity.SILENT:
            return
        result.stdout.add_listener(self.on_stdout)
        result.stderr.add_listener(self.on_stderr)

    def on_stdout(self, chunk: bytes) -> None:
        self._relay(chunk, StreamSink.STDOUT)

    def on_stderr(self, chunk: bytes) -> None:
        self._relay(chunk, StreamSink.STDERR)

    def _relay(self, chunk: bytes, sink: StreamSink) -> None:
        if self._verbosity == CommandVerbosity.OUTPUT:
            self._logger.log_stream(chunk, sink)
        elif self._verbosity == CommandVerbosity.PROGRESS and self._heartbeat:
            self._heartbeat.beat()

    def _emit_marker(self) -> None:
        self._logger.log_stream(PROGRESS_MARKER, StreamSink.STDOUT)
