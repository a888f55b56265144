"""
Terminal rendering of a codex exec call.

TranscriptBuffer is the observer handed to ExecClient/ExecSession. It
collects the answer text (plain stdout lines and agent messages) and the
stderr log, and in verbose mode prints progress as it arrives.
"""

from rich.console import Console
from rich.markup import escape

from codex_exec.core.exec.models import (
    AgentMessageItem,
    CommandExecutionItem,
    ErrorItem,
    EventItem,
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
    WebSearchItem,
)

NO_OUTPUT = "(no output)"


def describe_item(item: EventItem) -> str | None:
    """One-line progress summary of a completed item, or None to stay quiet."""
    if isinstance(item, CommandExecutionItem) and item.command:
        suffix = f" (exit {item.exit_code})" if item.exit_code not in (None, 0) else ""
        return f"$ {item.command}{suffix}"
    if isinstance(item, FileChangeItem):
        if item.file_path:
            return f"edited {item.file_path}"
        paths = [str(change.get("path")) for change in item.changes or [] if change.get("path")]
        return f"edited {', '.join(paths)}" if paths else "edited files"
    if isinstance(item, McpToolCallItem):
        return f"tool {item.server or '?'}.{item.tool_name or '?'}"
    if isinstance(item, WebSearchItem) and item.query:
        return f"searched: {item.query}"
    if isinstance(item, TodoListItem):
        todos = item.items or []
        done = sum(1 for todo in todos if todo.status == "completed")
        return f"todo {done}/{len(todos)}"
    if isinstance(item, ReasoningItem) and item.text:
        return f"thinking: {item.text.splitlines()[0]}"
    if isinstance(item, ErrorItem):
        return f"error: {item.message or item.text or 'unknown'}"
    return None


class TranscriptBuffer:
    """
    Observer that accumulates one call's answer and logs.

    Args:
        console: Console for live output
        verbose: Print stderr lines and item progress as they arrive
    """

    def __init__(self, console: Console, verbose: bool = False) -> None:
        self.console = console
        self.verbose = verbose
        self.answer_lines: list[str] = []
        self.log_lines: list[str] = []

    def __call__(self, event: ExecEvent) -> None:
        if isinstance(event, StdoutLine):
            self.answer_lines.append(event.text)
        elif isinstance(event, StderrLine):
            self.log_lines.append(event.text)
            if self.verbose:
                self.console.print(f"[dim]{escape(event.text)}[/dim]")
        elif isinstance(event, JsonEventLine):
            self._on_json_event(event.event)

    def _on_json_event(self, event: JsonEvent) -> None:
        if event.type in ("error", "turn.failed") and event.error:
            self.log_lines.append(event.error)

        if event.type != "item.completed" or event.item is None:
            return
        if isinstance(event.item, AgentMessageItem):
            if event.item.text:
                self.answer_lines.append(event.item.text)
            return
        if self.verbose and (summary := describe_item(event.item)):
            self.console.print(f"[dim]• {escape(summary)}[/dim]")

    @property
    def answer(self) -> str:
        return "\n".join(self.answer_lines).strip()

    @property
    def logs(self) -> str:
        return "\n".join(self.log_lines).strip()

    def final_answer(self) -> str:
        """Answer text, else the stderr log, else "(no output)"."""
        return self.answer or self.logs or NO_OUTPUT

    def print_answer(self, result: ExecResult | None = None) -> None:
        self.console.print(self.final_answer(), markup=False, highlight=False, soft_wrap=True)
        if result is None or not self.verbose:
            return
        if (usage := result.usage) is not None:
            self.console.print(
                f"[dim]tokens: {usage.input_tokens or 0} in"
                f" ({usage.cached_input_tokens or 0} cached),"
                f" {usage.output_tokens or 0} out[/dim]"
            )
        if result.thread_id:
            self.console.print(f"[dim]thread: {result.thread_id}[/dim]")

    def print_partial_output(self) -> None:
        """After a failure, show what the call produced before it failed."""
        if self.answer:
            self.console.print("Output so far:")
            self.console.print(self.answer, markup=False, highlight=False, soft_wrap=True)
        elif self.logs:
            self.console.print("Logs:")
            self.console.print(self.logs, markup=False, highlight=False, soft_wrap=True)
