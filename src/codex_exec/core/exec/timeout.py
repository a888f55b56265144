"""
Timeout enforcement for a running codex exec process.

The governor sleeps for the configured timeout in its own task. If the
process is still running when it wakes, it records that it fired, sends
SIGTERM to the process group and escalates to SIGKILL after a short grace
period. The caller checks `fired` after the process exits; a fired
governor turns the outcome into a timeout no matter how the process ended.
"""

import asyncio
import logging
import signal

from .process import send_signal

logger = logging.getLogger(__name__)

DEFAULT_KILL_GRACE_SECONDS = 2.0


class TimeoutGovernor:
    """
    One-shot timer racing a process.

    Usage:
        >>> governor = TimeoutGovernor(process, timeout=30.0)
        >>> governor.start()
        >>> await process.wait()
        >>> governor.cancel()
        >>> if governor.fired:
        ...     raise ExecTimeoutError(30.0)
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        timeout: float | None,
        kill_grace: float = DEFAULT_KILL_GRACE_SECONDS,
    ) -> None:
        self._process = process
        self.timeout = timeout
        self.kill_grace = kill_grace
        self._fired = False
        self._task: asyncio.Task[None] | None = None

    @property
    def fired(self) -> bool:
        """True once the deadline passed while the process was running."""
        return self._fired

    def start(self) -> None:
        """Start the timer; a no-op when no timeout is configured."""
        if self.timeout is None or self._task is not None:
            return
        self._task = asyncio.create_task(self._run(self.timeout))

    def cancel(self) -> None:
        """Stop the timer early (process finished first)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait_stopped(self) -> None:
        """Wait for the timer task to finish or acknowledge cancellation."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self, timeout: float) -> None:
        await asyncio.sleep(timeout)
        if self._process.returncode is not None:
            return

        self._fired = True
        logger.debug("Timeout of %ss reached; terminating pid %s", timeout, self._process.pid)
        send_signal(self._process, signal.SIGTERM)

        try:
            await asyncio.wait_for(asyncio.shield(self._process.wait()), self.kill_grace)
        except asyncio.TimeoutError:
            logger.debug("Process %s ignored SIGTERM; killing", self._process.pid)
            send_signal(self._process, getattr(signal, "SIGKILL", signal.SIGTERM))
