"""
Exception hierarchy for codex exec invocations.

Every failure surfaced by ExecClient is an ExecError subclass, so callers
can catch the base class and still tell the cases apart:

- PromptRequiredError: empty prompt with no stdin delivery path
- CommandNotFoundError / ProcessLaunchError: the shell could not be spawned
- NonZeroExitError: the process ran and failed (carries stderr)
- ExecTimeoutError: the client-side timeout fired
- InvalidConfigurationError: bad MCP config or other caller input
"""


class ExecError(Exception):
    """Base class for all codex exec errors."""


class PromptRequiredError(ExecError):
    """Raised when there is neither a prompt nor a stdin path to send one."""

    def __init__(self) -> None:
        super().__init__("A prompt is required to run codex exec.")


class CommandNotFoundError(ExecError):
    """Raised when the executable hosting the command does not exist."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Codex CLI command '{command}' was not found in PATH.")


class ProcessLaunchError(ExecError):
    """Raised when spawning the process fails for any other reason."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Failed to launch process: {message}")


class NonZeroExitError(ExecError):
    """Raised when codex exec exits with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"codex exec exited with code {exit_code}: {stderr}")


class ExecTimeoutError(ExecError):
    """Raised when the configured timeout elapsed before the process finished."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"codex exec timed out after {timeout:g} seconds.")


class InvalidConfigurationError(ExecError):
    """Raised for invalid caller configuration (e.g. MCP config problems)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid configuration: {message}")
