"""Command line entry point.

Usage:
    python -m cmd_supervisor [--verbosity output|silent|progress] [--cwd DIR] command [args ...]
    python -m cmd_supervisor --shell "command line"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from .config import CommandVerbosity, Config, get_config
from .errors import CommandError
from .executor import CommandExecutor, SpawnOptions
from .log import LoggingCommandLogger, StreamSink

__all__ = ["ConsoleCommandLogger", "build_parser", "configure_logging", "main", "run"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: Config) -> None:
    """Log to a temp file at DEBUG when enabled, otherwise stderr at INFO."""
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # Third-party loggers stay at WARNING
    logging.basicConfig(level=logging.WARNING, handlers=log_handlers)
    logging.getLogger("cmd_supervisor").setLevel(log_level)


class ConsoleCommandLogger(LoggingCommandLogger):
    """Prints buffered command output on stdout instead of the log."""

    def info(self, text: str) -> None:
        self.log_stream(text, StreamSink.STDOUT)


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmd-supervisor",
        description="Run a command and report its output, progress and outcome",
    )
    parser.add_argument(
        "--verbosity",
        choices=[v.value for v in CommandVerbosity],
        default=config.verbosity.value,
        help="Output handling while the command runs",
    )
    parser.add_argument("--cwd", default=None, help="Working directory")
    parser.add_argument(
        "--shell",
        action="store_true",
        help="Run a single command line through the shell and print its output",
    )
    parser.add_argument("command", help="Executable (or command line with --shell)")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments")
    return parser


async def run(args: argparse.Namespace, executor: CommandExecutor) -> int:
    """Run the parsed command; returns the process exit status."""
    options = SpawnOptions(
        cwd=args.cwd,
        verbosity=CommandVerbosity.from_string(args.verbosity),
    )
    try:
        if args.shell:
            command_line = " ".join([args.command, *args.args])
            await executor.execute(command_line, options)
        else:
            await executor.spawn_with_progress(args.command, args.args, options)
    except CommandError as e:
        logger.error(e.message)
        code = e.exit_code
        return code if code is not None and code > 0 else 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point."""
    config = get_config()
    configure_logging(config)

    args = build_parser(config).parse_args(argv)
    executor = CommandExecutor(logger=ConsoleCommandLogger())
    logger.debug(f"Starting with {config}")

    try:
        exit_code = asyncio.run(run(args, executor))
    except KeyboardInterrupt:
        # 128 + SIGINT(2)
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
