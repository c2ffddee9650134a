"""Logger collaborator used by the command facade.

The facade never writes to a global sink directly. It receives a
``CommandLogger`` at construction:

- ``NullLogger``: discards everything (default, and for tests)
- ``LoggingCommandLogger``: leveled lines go to stdlib ``logging``, raw
  output chunks go to the console streams
"""

from __future__ import annotations

import codecs
import logging
import sys
from abc import ABC, abstractmethod
from enum import Enum
from typing import TextIO

__all__ = [
    "StreamSink",
    "CommandLogger",
    "NullLogger",
    "LoggingCommandLogger",
]

# Logger that receives the collaborator's leveled lines
COMMAND_LOGGER_NAME = "cmd_supervisor.commands"


class StreamSink(str, Enum):
    """Destination class for raw stream output."""

    STDOUT = "stdout"
    STDERR = "stderr"


class CommandLogger(ABC):
    """Sink for command lifecycle lines and raw child output."""

    @abstractmethod
    def debug(self, text: str) -> None:
        ...

    @abstractmethod
    def info(self, text: str) -> None:
        ...

    @abstractmethod
    def warning(self, text: str) -> None:
        ...

    @abstractmethod
    def log_stream(self, chunk: bytes | str, sink: StreamSink) -> None:
        """Display a raw chunk exactly as received (no line buffering)."""
        ...


class NullLogger(CommandLogger):
    """Logger that drops everything."""

    def debug(self, text: str) -> None:
        pass

    def info(self, text: str) -> None:
        pass

    def warning(self, text: str) -> None:
        pass

    def log_stream(self, chunk: bytes | str, sink: StreamSink) -> None:
        pass


class LoggingCommandLogger(CommandLogger):
    """Bridge to stdlib ``logging`` plus direct console stream output.

    Args:
        logger: Target logger for leveled lines
        stdout: Stream for STDOUT chunks (default: ``sys.stdout`` at call time)
        stderr: Stream for STDERR chunks (default: ``sys.stderr`` at call time)
        encoding: Encoding used to decode byte chunks
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self._logger = logger or logging.getLogger(COMMAND_LOGGER_NAME)
        self._stdout = stdout
        self._stderr = stderr
        self._encoding = encoding
        # One decoder per sink so a character split across reads survives
        self._decoders = {
            sink: codecs.getincrementaldecoder(encoding)(errors="replace")
            for sink in StreamSink
        }

    def debug(self, text: str) -> None:
        self._logger.debug(text)

    def info(self, text: str) -> None:
        self._logger.info(text)

    def warning(self, text: str) -> None:
        self._logger.warning(text)

    def log_stream(self, chunk: bytes | str, sink: StreamSink) -> None:
        if isinstance(chunk, bytes):
            chunk = self._decoders[sink].decode(chunk)
            if not chunk:
                return
        stream = self._resolve_stream(sink)
        stream.write(chunk)
        stream.flush()

    def _resolve_stream(self, sink: StreamSink) -> TextIO:
        # Resolved lazily so redirected sys streams are honoured
        if sink == StreamSink.STDERR:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout
