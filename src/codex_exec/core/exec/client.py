"""
Async client for the `codex exec` CLI.

One ExecClient call spawns one process, streams its output to an optional
observer while it runs, enforces the timeout and returns an ExecResult.
If the installed CLI predates `--json`, the call is retried once in
plain-text mode.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from pathlib import Path

from codex_exec.core.errors import (
    ExecTimeoutError,
    NonZeroExitError,
    PromptRequiredError,
)
from codex_exec.core.mcp.writer import write_mcp_servers

from .collector import ResultCollector
from .command import build_command
from .models import EventObserver, ExecEvent, ExecResult, StderrLine
from .options import ExecConfiguration, ExecOptions
from .process import kill_process_group, launch, write_stdin
from .streams import StreamDemultiplexer, notify_observer
from .timeout import TimeoutGovernor

logger = logging.getLogger(__name__)

JSON_UNSUPPORTED_MARKER = "unexpected argument '--json'"
JSON_FALLBACK_NOTICE = "codex exec does not support --json; retrying without it"

# How long readers may keep draining after the process exited
DEFAULT_DRAIN_TIMEOUT_SECONDS = 2.0


def sends_prompt_via_stdin(prompt: str, options: ExecOptions) -> bool:
    """
    Decide whether the prompt goes to stdin for this call.

    stdin is only used when requested and there is something to send, or
    when resuming (where an empty stdin is a valid "continue").
    """
    return options.prompt_via_stdin and (bool(prompt) or options.is_resume)


def _json_unsupported(error: NonZeroExitError, options: ExecOptions) -> bool:
    # --json is never sent on resume, so only fresh JSON calls qualify
    return (
        options.json_events
        and not options.is_resume
        and JSON_UNSUPPORTED_MARKER in error.stderr
    )


class ExecClient:
    """
    Runs `codex exec` invocations.

    The client holds no per-call state; concurrent calls on one client
    each get their own process, collector and timer.

    Example:
        >>> client = ExecClient(ExecConfiguration(command="codex"))
        >>> result = await client.run("Summarize README.md", ExecOptions(json_events=True))
        >>> print(result.final_message)
    """

    def __init__(
        self,
        configuration: ExecConfiguration | None = None,
        drain_timeout: float = DEFAULT_DRAIN_TIMEOUT_SECONDS,
    ) -> None:
        self.configuration = configuration or ExecConfiguration()
        self.drain_timeout = drain_timeout

    async def run(
        self,
        prompt: str,
        options: ExecOptions | None = None,
        on_event: EventObserver | None = None,
    ) -> ExecResult:
        """
        Execute one prompt and wait for the result.

        Args:
            prompt: Prompt text (may be empty when resuming)
            options: Invocation options
            on_event: Observer called for every output line as it arrives

        Returns:
            ExecResult with the collected output and events

        Raises:
            PromptRequiredError: If no prompt can be delivered
            CommandNotFoundError: If the shell could not be started
            ProcessLaunchError: If spawning failed otherwise
            ExecTimeoutError: If the timeout fired
            NonZeroExitError: If the process exited with a non-zero code
            InvalidConfigurationError: If inline MCP servers cannot be written
        """
        options = options or ExecOptions()
        try:
            return await self._run_once(prompt, options, on_event)
        except NonZeroExitError as e:
            if not _json_unsupported(e, options):
                raise

        logger.warning("codex CLI rejected --json; retrying in plain-text mode")
        await notify_observer(on_event, StderrLine(JSON_FALLBACK_NOTICE))
        return await self._run_once(
            prompt, options.model_copy(update={"json_events": False}), on_event
        )

    async def stream(
        self,
        prompt: str,
        options: ExecOptions | None = None,
    ) -> AsyncIterator[ExecEvent | ExecResult]:
        """
        Execute one prompt, yielding observer events as they arrive.

        The last value yielded is the ExecResult. Failures are raised from
        the iterator after all events received before the failure.
        Closing the iterator early cancels the call and stops the process.
        """
        queue: asyncio.Queue[ExecEvent] = asyncio.Queue()
        call = asyncio.create_task(self.run(prompt, options, on_event=queue.put_nowait))

        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {getter, call}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break

            while not queue.empty():
                yield queue.get_nowait()
            yield call.result()
        finally:
            if not call.done():
                call.cancel()
                await asyncio.gather(call, return_exceptions=True)

    async def _run_once(
        self,
        prompt: str,
        options: ExecOptions,
        on_event: EventObserver | None,
    ) -> ExecResult:
        via_stdin = sends_prompt_via_stdin(prompt, options)
        if not via_stdin and not prompt:
            raise PromptRequiredError()

        # Inline servers are written once per process and removed after it
        mcp_file: Path | None = None
        if (
            options.mcp_servers is not None
            and options.mcp_config_path is None
            and not options.is_resume
        ):
            mcp_file = write_mcp_servers(options.mcp_servers)
            options = options.model_copy(
                update={"mcp_config_path": str(mcp_file), "mcp_servers": None}
            )

        try:
            return await self._execute(prompt, options, on_event, via_stdin)
        finally:
            if mcp_file is not None:
                mcp_file.unlink(missing_ok=True)

    async def _execute(
        self,
        prompt: str,
        options: ExecOptions,
        on_event: EventObserver | None,
        via_stdin: bool,
    ) -> ExecResult:
        config = self.configuration
        command_string = build_command(config.command, prompt, options, via_stdin)
        if config.debug_logging:
            logger.debug("Executing: %s", command_string)

        collector = ResultCollector()
        demux = StreamDemultiplexer(
            collector,
            on_event,
            json_events=options.json_events and not options.is_resume,
            debug=config.debug_logging,
        )

        started = time.monotonic()
        process = await launch(config, command_string, pipe_stdin=via_stdin)
        assert process.stdout is not None and process.stderr is not None
        readers = [
            asyncio.create_task(demux.pump_stdout(process.stdout)),
            asyncio.create_task(demux.pump_stderr(process.stderr)),
        ]
        governor = TimeoutGovernor(process, options.timeout)
        governor.start()

        try:
            if via_stdin:
                await write_stdin(process, prompt.encode("utf-8"))
            exit_code = await process.wait()
        except BaseException:
            # Caller cancelled: do not leave the process or readers behind
            kill_process_group(process)
            for reader in readers:
                reader.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            raise
        finally:
            governor.cancel()
            await governor.wait_stopped()

        if governor.fired:
            kill_process_group(process)
        await self._drain(readers)
        duration = time.monotonic() - started

        if config.debug_logging:
            logger.debug("Process exited with code %s after %.2fs", exit_code, duration)

        if governor.fired:
            raise ExecTimeoutError(options.timeout or 0.0)

        if exit_code != 0:
            collected = await collector.snapshot()
            raise NonZeroExitError(exit_code, collected.stderr_text)

        return await collector.build_result(command_string, exit_code, duration)

    async def _drain(self, readers: list[asyncio.Task[None]]) -> None:
        """Wait for both readers to hit EOF, then surface reader failures."""
        done, pending = await asyncio.wait(readers, timeout=self.drain_timeout)
        if pending:
            # A grandchild may still hold the pipes open
            logger.debug("Output still open %.1fs after exit; abandoning", self.drain_timeout)
            for reader in pending:
                reader.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for reader in done:
            error = reader.exception()
            if error is not None:
                raise error
