"""
Async client for the `codex exec` CLI.

This package provides:
- ExecOptions / ExecConfiguration: per-call flags and process hosting
- ExecClient: one-shot invocations with live output streaming
- ExecSession: multi-turn conversations via `codex exec resume`
- ExecResult / JsonEvent: collected output and decoded `--json` events
"""

from .client import ExecClient
from .models import (
    AgentMessageItem,
    CommandExecutionItem,
    ErrorItem,
    EventItem,
    EventObserver,
    ExecEvent,
    ExecResult,
    FileChangeItem,
    JsonEvent,
    JsonEventLine,
    McpToolCallItem,
    ReasoningItem,
    StderrLine,
    StdoutLine,
    TodoListItem,
    UnknownItem,
    Usage,
    WebSearchItem,
)
from .options import (
    ApprovalMode,
    ColorMode,
    ExecConfiguration,
    ExecOptions,
    SandboxPolicy,
)
from .session import ExecSession, SessionState

__all__ = [
    # Client
    "ExecClient",
    "ExecSession",
    "SessionState",
    # Options
    "ApprovalMode",
    "ColorMode",
    "ExecConfiguration",
    "ExecOptions",
    "SandboxPolicy",
    # Results and events
    "AgentMessageItem",
    "CommandExecutionItem",
    "ErrorItem",
    "EventItem",
    "EventObserver",
    "ExecEvent",
    "ExecResult",
    "FileChangeItem",
    "JsonEvent",
    "JsonEventLine",
    "McpToolCallItem",
    "ReasoningItem",
    "StderrLine",
    "StdoutLine",
    "TodoListItem",
    "UnknownItem",
    "Usage",
    "WebSearchItem",
]
