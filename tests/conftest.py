"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path (development checkouts)
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from cmd_supervisor.log import CommandLogger, StreamSink  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class RecordingLogger(CommandLogger):
    """Logger that keeps every call in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object, StreamSink | None]] = []

    def debug(self, text: str) -> None:
        self.events.append(("debug", text, None))

    def info(self, text: str) -> None:
        self.events.append(("info", text, None))

    def warning(self, text: str) -> None:
        self.events.append(("warning", text, None))

    def log_stream(self, chunk: bytes | str, sink: StreamSink) -> None:
        self.events.append(("stream", chunk, sink))

    def lines(self, level: str) -> list[str]:
        return [text for kind, text, _ in self.events if kind == level]  # type: ignore[misc]

    def streamed(self, sink: StreamSink) -> list[bytes | str]:
        return [chunk for kind, chunk, s in self.events if kind == "stream" and s == sink]  # type: ignore[misc]

    def streamed_bytes(self, sink: StreamSink) -> bytes:
        """Concatenated raw child output sent to ``sink`` (markers excluded)."""
        return b"".join(c for c in self.streamed(sink) if isinstance(c, bytes))


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Temporary working directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def fake_cli() -> list[str]:
    """argv prefix running the fake CLI fixture script."""
    return [sys.executable, str(FIXTURES_DIR / "fake_cli.py")]
