"""
Data models for codex exec output.

Defines the structured events decoded from `--json` output, the final
ExecResult of a call, and the tagged values delivered to observers while
a call is running.
"""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Event items
# =============================================================================


class EventItem(BaseModel):
    """
    Common fields of an item carried by `item.*` events.

    Concrete item classes are selected by the `type` tag (see parse_item).
    Every field is optional; the CLI omits whatever is not relevant.
    """

    id: str | None = None
    type: str | None = None
    status: str | None = None
    text: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class AgentMessageItem(EventItem):
    """Assistant text (`agent_message`)."""


class ReasoningItem(EventItem):
    """Reasoning summary (`reasoning`)."""


class CommandExecutionItem(EventItem):
    """Shell command run by the agent (`command_execution`)."""

    command: str | None = None
    aggregated_output: str | None = None
    exit_code: int | None = None


class FileChangeItem(EventItem):
    """File edit made by the agent (`file_change`)."""

    file_path: str | None = None
    diff: str | None = None
    changes: list[dict[str, Any]] | None = None


class McpToolCallItem(EventItem):
    """Call into an MCP server tool (`mcp_tool_call`)."""

    server: str | None = None
    tool_name: str | None = None
    tool_arguments: dict[str, Any] | None = None
    tool_result: str | None = None


class WebSearchResult(BaseModel):
    """One hit of a `web_search` item."""

    title: str | None = None
    url: str | None = None
    snippet: str | None = None

    model_config = ConfigDict(frozen=True)


class WebSearchItem(EventItem):
    """Web search performed by the agent (`web_search`)."""

    query: str | None = None
    results: list[WebSearchResult] | None = None


class TodoItem(BaseModel):
    """One entry of a `todo_list` item."""

    id: str | None = None
    content: str | None = None
    status: str | None = None

    model_config = ConfigDict(frozen=True)


class TodoListItem(EventItem):
    """Agent plan / todo list (`todo_list`)."""

    items: list[TodoItem] | None = None


class ErrorItem(EventItem):
    """Non-fatal error reported as an item (`error`)."""

    message: str | None = None


class UnknownItem(EventItem):
    """Item with a type tag this library does not know; extra fields are kept."""

    model_config = ConfigDict(frozen=True, extra="allow")


ITEM_TYPES: dict[str, type[EventItem]] = {
    "agent_message": AgentMessageItem,
    "reasoning": ReasoningItem,
    "command_execution": CommandExecutionItem,
    "file_change": FileChangeItem,
    "mcp_tool_call": McpToolCallItem,
    "web_search": WebSearchItem,
    "todo_list": TodoListItem,
    "error": ErrorItem,
}


def parse_item(data: dict[str, Any]) -> EventItem:
    """Build the item class matching data["type"], or UnknownItem."""
    item_class = ITEM_TYPES.get(str(data.get("type")), UnknownItem)
    return item_class.model_validate(data)


# =============================================================================
# Events
# =============================================================================


class Usage(BaseModel):
    """Token counters reported on `turn.completed`."""

    input_tokens: int | None = Field(default=None, description="Input tokens consumed")
    output_tokens: int | None = Field(default=None, description="Output tokens generated")
    cached_input_tokens: int | None = Field(
        default=None, description="Input tokens served from the prompt cache"
    )

    model_config = ConfigDict(frozen=True)


class JsonEvent(BaseModel):
    """
    One JSON event line emitted by `codex exec --json`.

    Known type tags include "thread.started", "turn.started",
    "item.started", "item.updated", "item.completed", "turn.completed",
    "turn.failed" and "error". The original line is kept in raw_line.
    """

    type: str = Field(description="Event type tag")
    item: EventItem | None = Field(default=None, description="Item for item.* events")
    error: str | None = Field(default=None, description="Top-level error text")
    text: str | None = Field(default=None, description="Top-level text")
    usage: Usage | None = Field(default=None, description="Token usage")
    thread_id: str | None = Field(default=None, description="Thread id on thread.started")
    raw_line: str | None = Field(default=None, description="Original line for diagnostics")

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("item", mode="before")
    @classmethod
    def _select_item_variant(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return parse_item(value)
        return value

    @field_validator("error", mode="before")
    @classmethod
    def _flatten_error(cls, value: Any) -> Any:
        # Newer CLIs send {"message": "..."} instead of a bare string
        if isinstance(value, dict):
            message = value.get("message")
            return message if isinstance(message, str) else json.dumps(value)
        return value


# =============================================================================
# Result
# =============================================================================


class ExecResult(BaseModel):
    """
    Result of one `codex exec` invocation.

    Produced once per call after the process exited and both output
    streams drained. stdout/stderr are the received lines joined by "\\n".
    """

    command: str = Field(description="Full command string that was executed")
    stdout: str = Field(default="", description="Standard output lines")
    stderr: str = Field(default="", description="Standard error lines")
    exit_code: int = Field(default=0, description="Process exit code")
    events: list[JsonEvent] = Field(
        default_factory=list, description="Decoded JSON events, in arrival order"
    )
    duration_seconds: float = Field(default=0.0, description="Wall time of the call")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="When the invocation finished"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        """Check if the process exited cleanly."""
        return self.exit_code == 0

    @property
    def thread_id(self) -> str | None:
        """Thread id announced by the first `thread.started` event."""
        for event in self.events:
            if event.type == "thread.started" and event.thread_id:
                return event.thread_id
        return None

    @property
    def usage(self) -> Usage | None:
        """Usage from the last `turn.completed` event."""
        for event in reversed(self.events):
            if event.type == "turn.completed" and event.usage is not None:
                return event.usage
        return None

    @property
    def final_message(self) -> str | None:
        """Text of the last agent message, if any."""
        for event in reversed(self.events):
            if isinstance(event.item, AgentMessageItem) and event.item.text:
                return event.item.text
        return None


# =============================================================================
# Observer values
# =============================================================================


@dataclass(frozen=True)
class StdoutLine:
    """A plain-text line from stdout."""

    text: str


@dataclass(frozen=True)
class StderrLine:
    """A line from stderr (or a synthetic notice from the client)."""

    text: str


@dataclass(frozen=True)
class JsonEventLine:
    """A stdout line that decoded into a JsonEvent."""

    event: JsonEvent


ExecEvent = Union[StdoutLine, StderrLine, JsonEventLine]

# Observers may be plain callables or coroutine functions
EventObserver = Callable[[ExecEvent], Union[None, Awaitable[None]]]
