"""Logger collaborator tests."""

from __future__ import annotations

import io
import logging

import pytest

from cmd_supervisor.log import LoggingCommandLogger, NullLogger, StreamSink


class TestNullLogger:
    def test_accepts_everything(self):
        logger = NullLogger()
        logger.debug("a")
        logger.info("b")
        logger.warning("c")
        logger.log_stream(b"d", StreamSink.STDOUT)


class TestLoggingCommandLogger:
    def test_leveled_lines_go_to_logging(self, caplog: pytest.LogCaptureFixture):
        logger = LoggingCommandLogger()
        with caplog.at_level(logging.DEBUG, logger="cmd_supervisor.commands"):
            logger.debug("Executing command: ls")
            logger.info("file.txt")
            logger.warning("Process not found")

        records = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert records == [
            (logging.DEBUG, "Executing command: ls"),
            (logging.INFO, "file.txt"),
            (logging.WARNING, "Process not found"),
        ]

    def test_stream_sinks(self):
        out, err = io.StringIO(), io.StringIO()
        logger = LoggingCommandLogger(stdout=out, stderr=err)

        logger.log_stream(b"hello\n", StreamSink.STDOUT)
        logger.log_stream("oops", StreamSink.STDERR)
        logger.log_stream(".", StreamSink.STDOUT)

        assert out.getvalue() == "hello\n."
        assert err.getvalue() == "oops"

    def test_invalid_bytes_replaced(self):
        out = io.StringIO()
        LoggingCommandLogger(stdout=out).log_stream(b"a\xffb", StreamSink.STDOUT)
        assert out.getvalue() == "a�b"

    def test_character_split_across_chunks(self):
        out, err = io.StringIO(), io.StringIO()
        logger = LoggingCommandLogger(stdout=out, stderr=err)
        encoded = "é".encode()

        logger.log_stream(encoded[:1], StreamSink.STDOUT)
        logger.log_stream(b"x", StreamSink.STDERR)
        logger.log_stream(encoded[1:] + b"!", StreamSink.STDOUT)

        assert out.getvalue() == "é!"
        assert err.getvalue() == "x"

    def test_defaults_to_sys_streams(self, capsys: pytest.CaptureFixture[str]):
        logger = LoggingCommandLogger()
        logger.log_stream(b"to stdout", StreamSink.STDOUT)
        logger.log_stream(b"to stderr", StreamSink.STDERR)

        captured = capsys.readouterr()
        assert captured.out == "to stdout"
        assert captured.err == "to stderr"
