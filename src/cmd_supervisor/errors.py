"""Exception types for command supervision.

Every failure that leaves the command facade is a ``CommandError`` wrapping
the original cause exactly once. Lower layers raise plain exceptions
(``OSError`` for launch failures, ``ProcessExitError`` for failing exit
codes); ``get_nested_error`` attaches the command subject.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorCode",
    "FailureKind",
    "CommandSupervisorError",
    "ProcessExitError",
    "CommandError",
    "get_nested_error",
]


class ErrorCode(str, Enum):
    """Symbolic error codes reported by the facade."""

    COMMAND_FAILED = "CommandFailed"


class FailureKind(str, Enum):
    """Failure taxonomy derived from the cause chain.

    - LAUNCH_FAILURE: executable not found or not executable
    - NONZERO_EXIT: process ran but exited with a failing status
    - OTHER: pipe errors, listener errors and anything else
    """

    LAUNCH_FAILURE = "launch_failure"
    NONZERO_EXIT = "nonzero_exit"
    OTHER = "other"


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.COMMAND_FAILED: "Error while executing command '{subject}'",
}


class CommandSupervisorError(Exception):
    """Base exception for this package."""
    pass


class ProcessExitError(CommandSupervisorError):
    """A child process exited with a nonzero status.

    Attributes:
        command: Command line that was run
        exit_code: Exit status (negative for signal deaths on POSIX)
        stderr: Captured stderr, when the caller buffered it
    """

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command '{command}' exited with code {exit_code}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class CommandError(CommandSupervisorError):
    """Structured error for a failed command.

    Attributes:
        code: Symbolic error code
        message: Human readable text
        inner: Underlying cause, if any
        subject: The command string that failed
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        subject: str,
        inner: BaseException | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.subject = subject
        self.inner = inner
        super().__init__(message)

    @property
    def kind(self) -> FailureKind:
        """Classify the failure by walking the cause chain."""
        cause = self.inner
        while isinstance(cause, CommandError):
            cause = cause.inner
        if isinstance(cause, ProcessExitError):
            return FailureKind.NONZERO_EXIT
        if isinstance(cause, OSError):
            return FailureKind.LAUNCH_FAILURE
        return FailureKind.OTHER

    @property
    def exit_code(self) -> int | None:
        """Exit status of the failing process, if it ran at all."""
        cause = self.inner
        while isinstance(cause, CommandError):
            cause = cause.inner
        if isinstance(cause, ProcessExitError):
            return cause.exit_code
        return None

    def __repr__(self) -> str:
        return (
            f"CommandError(code={self.code.value}, subject={self.subject!r}, "
            f"inner={self.inner!r})"
        )


def get_nested_error(
    cause: BaseException, code: ErrorCode, subject: str
) -> CommandError:
    """Wrap ``cause`` into a ``CommandError`` naming ``subject``.

    Args:
        cause: Original exception
        code: Symbolic error code
        subject: Command string shown to the user

    Returns:
        A new ``CommandError`` with ``__cause__`` set to ``cause``
    """
    message = _MESSAGES[code].format(subject=subject)
    detail = str(cause)
    if detail:
        message = f"{message}: {detail}"
    error = CommandError(code, message, subject=subject, inner=cause)
    error.__cause__ = cause
    return error
