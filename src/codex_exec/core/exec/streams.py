"""
Stdout/stderr demultiplexing for a running codex exec process.

Each stream is read by its own task, split into lines as bytes arrive and
routed to the collector and the observer immediately, before the process
exits. In JSON mode, stdout lines that decode into a JsonEvent are
delivered as structured events; everything else is plain text.
"""

import asyncio
import inspect
import json
import logging
from collections.abc import AsyncIterator

from pydantic import ValidationError

from .collector import ResultCollector
from .models import (
    EventObserver,
    ExecEvent,
    JsonEvent,
    JsonEventLine,
    StderrLine,
    StdoutLine,
)

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


def _decode(raw: bytes) -> str:
    return raw.rstrip(b"\r").decode("utf-8", errors="replace")


async def iter_lines(reader: asyncio.StreamReader) -> AsyncIterator[str]:
    """
    Yield non-empty lines from a byte stream as soon as each is complete.

    Lines are split on bytes before decoding, so multi-byte characters
    spanning chunk boundaries survive. A trailing partial line is flushed
    at EOF. There is no line length limit; reassembly is linear in its size.
    """
    pending: list[bytes] = []
    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        if b"\n" not in chunk:
            pending.append(chunk)
            continue

        head, *complete, tail = chunk.split(b"\n")
        pending.append(head)
        for raw in [b"".join(pending), *complete]:
            line = _decode(raw)
            if line:
                yield line
        pending = [tail] if tail else []

    if pending:
        line = _decode(b"".join(pending))
        if line:
            yield line


def decode_json_event(line: str, debug: bool = False) -> JsonEvent | None:
    """
    Try to decode one stdout line as a JsonEvent.

    Lines that do not start with "{" after trimming are never attempted.

    Returns:
        The event with raw_line set, or None if the line is not an event
    """
    trimmed = line.strip()
    if not trimmed.startswith("{"):
        return None

    try:
        data = json.loads(trimmed)
        if not isinstance(data, dict):
            return None
        return JsonEvent.model_validate({**data, "raw_line": line})
    except (json.JSONDecodeError, ValidationError) as e:
        if debug:
            logger.debug("Failed to decode JSON event: %s for line: %s", e, line)
        return None


async def notify_observer(observer: EventObserver | None, event: ExecEvent) -> None:
    """
    Deliver one event to an observer, awaiting it if it is async.

    Observer errors are logged and never stop output draining.
    """
    if observer is None:
        return
    try:
        result = observer(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Event observer raised; continuing to drain output")


class StreamDemultiplexer:
    """
    Routes lines from both streams to the collector and the observer.

    Args:
        collector: Accumulator owned by the current call
        observer: Optional callback for live events (sync or async)
        json_events: Whether stdout lines should be decoded as JSON events
        debug: Trace every line through the module logger
    """

    def __init__(
        self,
        collector: ResultCollector,
        observer: EventObserver | None = None,
        json_events: bool = False,
        debug: bool = False,
    ) -> None:
        self.collector = collector
        self.observer = observer
        self.json_events = json_events
        self.debug = debug

    async def notify(self, event: ExecEvent) -> None:
        await notify_observer(self.observer, event)

    async def handle_stdout_line(self, line: str) -> None:
        await self.collector.add_stdout(line)
        if self.debug:
            logger.debug("STDOUT: %s", line)

        event = decode_json_event(line, self.debug) if self.json_events else None
        if event is None:
            await self.notify(StdoutLine(line))
            return

        if self.debug:
            logger.debug("JSON event: %s", event.type)
        await self.collector.add_event(event)
        await self.notify(JsonEventLine(event))

    async def handle_stderr_line(self, line: str) -> None:
        await self.collector.add_stderr(line)
        if self.debug:
            logger.debug("STDERR: %s", line)
        await self.notify(StderrLine(line))

    async def pump_stdout(self, reader: asyncio.StreamReader) -> None:
        async for line in iter_lines(reader):
            await self.handle_stdout_line(line)

    async def pump_stderr(self, reader: asyncio.StreamReader) -> None:
        async for line in iter_lines(reader):
            await self.handle_stderr_line(line)
