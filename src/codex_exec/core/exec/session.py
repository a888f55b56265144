"""
Multi-turn conversations on top of ExecClient.

The first send() starts a fresh codex session. Every later send() resumes
it, either as "the most recent session" or, with pin_thread, as the exact
thread id captured from the first turn's JSON events.
"""

import logging
from enum import Enum

from .client import ExecClient
from .models import EventObserver, ExecResult
from .options import ExecOptions

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Whether the next turn starts a new session or resumes one."""

    FRESH = "fresh"
    ACTIVE = "active"


class ExecSession:
    """
    Conversation state machine: FRESH -> ACTIVE on the first completed turn.

    A turn that raises leaves the state unchanged. reset() returns to
    FRESH so the next turn starts a new session.

    Args:
        client: Client used for every turn
        options: Base options applied to every turn
        pin_thread: Resume by captured thread id instead of `--last`
    """

    def __init__(
        self,
        client: ExecClient,
        options: ExecOptions | None = None,
        pin_thread: bool = False,
    ) -> None:
        self.client = client
        self.options = options or ExecOptions()
        self.pin_thread = pin_thread
        self._state = SessionState.FRESH
        self._thread_id: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def has_session(self) -> bool:
        """True once a turn completed and the next one will resume."""
        return self._state is SessionState.ACTIVE

    @property
    def thread_id(self) -> str | None:
        """Thread id captured from the first turn, when JSON events were on."""
        return self._thread_id

    def options_for_next_turn(self, options: ExecOptions | None = None) -> ExecOptions:
        """
        Options the next send() would use.

        Args:
            options: Per-turn override of the base options

        Returns:
            The options unchanged while FRESH; otherwise a resume variant
            without the flags `codex exec resume` rejects
        """
        base = options or self.options
        if self._state is SessionState.FRESH:
            return base

        resumed = base.for_resume()
        if self.pin_thread and self._thread_id:
            return resumed.model_copy(
                update={"resume_session_id": self._thread_id, "resume_last_session": False}
            )
        return resumed.model_copy(
            update={"resume_session_id": None, "resume_last_session": True}
        )

    async def send(
        self,
        prompt: str,
        options: ExecOptions | None = None,
        on_event: EventObserver | None = None,
    ) -> ExecResult:
        """
        Run one turn of the conversation.

        Raises:
            ExecError: Whatever ExecClient.run raised; the state is kept
        """
        turn_options = self.options_for_next_turn(options)
        result = await self.client.run(prompt, turn_options, on_event)

        if self._thread_id is None and result.thread_id:
            self._thread_id = result.thread_id
        if self._state is SessionState.FRESH:
            logger.debug("Session started (thread %s)", self._thread_id or "unknown")
        self._state = SessionState.ACTIVE
        return result

    def reset(self) -> None:
        """Forget the current session; the next turn starts a new one."""
        self._state = SessionState.FRESH
        self._thread_id = None
