"""
Process launching for codex exec.

The command string is hosted by a shell (`<shell> [-l] -c <command>`) so
login-shell PATH setup (nvm, Homebrew, ...) applies. The child gets its
own session so the timeout governor can signal the whole process group.
"""

import asyncio
import logging
import os
import signal
import sys

from codex_exec.core.errors import CommandNotFoundError, ProcessLaunchError

from .options import ExecConfiguration

logger = logging.getLogger(__name__)


def build_environment(config: ExecConfiguration) -> dict[str, str]:
    """
    Build the child environment.

    Starts from the current process environment, prepends
    additional_paths to PATH so they win over inherited entries, then
    applies explicit overrides last.
    """
    env = os.environ.copy()

    if config.additional_paths:
        combined = os.pathsep.join(config.additional_paths)
        current = env.get("PATH")
        env["PATH"] = f"{combined}{os.pathsep}{current}" if current else combined

    env.update(config.environment)
    return env


def shell_arguments(config: ExecConfiguration, command_string: str) -> list[str]:
    """Return argv for hosting command_string in the configured shell."""
    args = [config.shell]
    if config.use_login_shell:
        args.append("-l")
    args.extend(["-c", command_string])
    return args


async def launch(
    config: ExecConfiguration,
    command_string: str,
    pipe_stdin: bool = False,
) -> asyncio.subprocess.Process:
    """
    Spawn the shell running command_string.

    Args:
        config: Process configuration
        command_string: Output of command.build_command()
        pipe_stdin: Open a stdin pipe for write_stdin(); otherwise the
            child's stdin is /dev/null

    Returns:
        The running process with stdout/stderr pipes

    Raises:
        CommandNotFoundError: If the shell executable does not exist
        ProcessLaunchError: For any other spawn failure
    """
    # A missing cwd also raises FileNotFoundError; keep it out of "command not found"
    if config.working_directory is not None and not os.path.isdir(config.working_directory):
        raise ProcessLaunchError(
            f"Working directory does not exist: {config.working_directory}"
        )

    try:
        return await asyncio.create_subprocess_exec(
            *shell_arguments(config, command_string),
            stdin=asyncio.subprocess.PIPE if pipe_stdin else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=config.working_directory,
            env=build_environment(config),
            start_new_session=sys.platform != "win32",
        )
    except FileNotFoundError as e:
        raise CommandNotFoundError(command_string) from e
    except OSError as e:
        raise ProcessLaunchError(str(e)) from e


async def write_stdin(process: asyncio.subprocess.Process, payload: bytes) -> None:
    """
    Deliver the prompt on stdin and close it immediately.

    Start the output readers first: a child that fills its stdout pipe
    before reading stdin would otherwise deadlock against this write.
    """
    if process.stdin is None:
        return
    try:
        process.stdin.write(payload)
        await process.stdin.drain()
    except (BrokenPipeError, ConnectionResetError) as e:
        # Child exited before reading its input; its exit status reports why
        logger.debug("Could not deliver prompt on stdin: %s", e)
    finally:
        process.stdin.close()


def send_signal(process: asyncio.subprocess.Process, sig: int) -> None:
    """
    Signal the process group of a running process.

    Safe to call when the process already exited.
    """
    if process.returncode is not None:
        return

    if sys.platform != "win32":
        try:
            # Process group id equals pid because of start_new_session=True
            os.killpg(process.pid, sig)
            return
        except (ProcessLookupError, PermissionError):
            pass

    try:
        if sig == getattr(signal, "SIGKILL", None):
            process.kill()
        else:
            process.terminate()
    except ProcessLookupError:
        pass


def kill_process_group(process: asyncio.subprocess.Process) -> None:
    """
    SIGKILL everything left in the process group, even after the leader exited.

    Used once a call is abandoned (timeout or cancellation) so grandchildren
    holding the output pipes do not outlive it.
    """
    if sys.platform == "win32":
        if process.returncode is None:
            process.kill()
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass
