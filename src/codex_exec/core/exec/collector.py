"""
Result aggregation for a single codex exec call.

Both stream readers append into one ResultCollector; every mutation and
the final snapshot go through the same lock.
"""

import asyncio
from dataclasses import dataclass, field

from .models import ExecResult, JsonEvent


@dataclass(frozen=True)
class CollectedOutput:
    """Point-in-time copy of everything collected so far."""

    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    events: list[JsonEvent] = field(default_factory=list)

    @property
    def stdout_text(self) -> str:
        return "\n".join(self.stdout)

    @property
    def stderr_text(self) -> str:
        return "\n".join(self.stderr)


class ResultCollector:
    """Lock-guarded accumulator of stdout lines, stderr lines and events."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._stdout: list[str] = []
        self._stderr: list[str] = []
        self._events: list[JsonEvent] = []

    async def add_stdout(self, line: str) -> None:
        async with self._lock:
            self._stdout.append(line)

    async def add_stderr(self, line: str) -> None:
        async with self._lock:
            self._stderr.append(line)

    async def add_event(self, event: JsonEvent) -> None:
        async with self._lock:
            self._events.append(event)

    async def snapshot(self) -> CollectedOutput:
        """Copy the collected lines and events."""
        async with self._lock:
            return CollectedOutput(
                stdout=list(self._stdout),
                stderr=list(self._stderr),
                events=list(self._events),
            )

    async def build_result(
        self,
        command: str,
        exit_code: int,
        duration_seconds: float = 0.0,
    ) -> ExecResult:
        """Assemble the immutable ExecResult from the current snapshot."""
        collected = await self.snapshot()
        return ExecResult(
            command=command,
            stdout=collected.stdout_text,
            stderr=collected.stderr_text,
            exit_code=exit_code,
            events=collected.events,
            duration_seconds=duration_seconds,
        )
