"""
Error rendering and exit codes for the codex-exec CLI.

Library errors are ExecError subclasses; this module maps them onto exit
codes and prints them with actionable guidance.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

from codex_exec.core.errors import (
    CommandNotFoundError,
    ExecError,
    ExecTimeoutError,
    InvalidConfigurationError,
    NonZeroExitError,
    PromptRequiredError,
)

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for codex-exec."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """codex exec failed or another unexpected error."""

    USER_ERROR = 2
    """Bad input or configuration (actionable by user)."""

    TIMEOUT = 124
    """The client-side timeout fired (same code as timeout(1))."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def exit_code_for(error: ExecError) -> ExitCode:
    """Map a library error onto the CLI exit code."""
    if isinstance(error, ExecTimeoutError):
        return ExitCode.TIMEOUT
    if isinstance(error, (PromptRequiredError, CommandNotFoundError, InvalidConfigurationError)):
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def print_exec_error(error: ExecError) -> None:
    """Print a library error with a hint where one applies."""
    if isinstance(error, NonZeroExitError):
        # stderr is shown separately as the call's logs
        print_error(f"codex exec exited with code {error.exit_code}")
    elif isinstance(error, CommandNotFoundError):
        print_error(
            str(error),
            reason="The shell hosting codex could not be started",
            solution="codex-exec doctor  # or set CODEX_EXEC_SHELL / CODEX_EXEC_COMMAND",
        )
    elif isinstance(error, PromptRequiredError):
        print_error(str(error), solution="codex-exec run 'your prompt'  # or pipe it on stdin")
    elif isinstance(error, ExecTimeoutError):
        print_error(str(error), solution="Raise it with --timeout or CODEX_EXEC_TIMEOUT")
    else:
        print_error(str(error))


__all__ = ["ExitCode", "console", "exit_code_for", "print_error", "print_exec_error"]
