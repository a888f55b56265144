"""
codex-exec - async Python client for the Codex CLI

Runs `codex exec` as a subprocess, streams its output and JSON events,
and supports multi-turn sessions through `codex exec resume`.
"""

__version__ = "0.1.0"

# Re-export the client surface for convenience
from codex_exec.core.errors import ExecError
from codex_exec.core.exec import (
    ExecClient,
    ExecConfiguration,
    ExecOptions,
    ExecResult,
    ExecSession,
)

__all__ = [
    "ExecClient",
    "ExecConfiguration",
    "ExecError",
    "ExecOptions",
    "ExecResult",
    "ExecSession",
    "__version__",
]
