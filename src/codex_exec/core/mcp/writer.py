"""
MCP config file authoring.

codex only accepts MCP servers as a path to a JSON document, so inline
server mappings (or raw JSON text typed by a user) are validated and
written to a fresh temporary file whose path is handed to the CLI.
"""

from __future__ import annotations

import json
import logging
import tempfile
import uuid
from collections.abc import Mapping
from pathlib import Path

from codex_exec.core.errors import InvalidConfigurationError

from .models import McpConfigPayload, McpServerConfig

logger = logging.getLogger(__name__)


def _temp_path(prefix: str, directory: Path | None) -> Path:
    base = directory if directory is not None else Path(tempfile.gettempdir())
    return base / f"{prefix}-{uuid.uuid4()}.json"


def _write(path: Path, text: str) -> Path:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise InvalidConfigurationError(f"Failed to write MCP config: {e}") from e
    logger.debug("Wrote MCP config to %s", path)
    return path


def serialize_mcp_servers(servers: Mapping[str, McpServerConfig]) -> str:
    """
    Serialize a server mapping into the canonical MCP config document.

    Keys are sorted and unset fields omitted, so equal mappings always
    produce identical text.

    Raises:
        InvalidConfigurationError: If the mapping cannot be encoded
    """
    try:
        payload = McpConfigPayload(mcpServers=dict(servers))
        data = payload.model_dump(by_alias=True, exclude_none=True)
        return json.dumps(data, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"Failed to encode MCP servers: {e}") from e


def write_mcp_servers(
    servers: Mapping[str, McpServerConfig],
    directory: Path | None = None,
) -> Path:
    """
    Write an inline server mapping to a fresh temporary MCP config file.

    Args:
        servers: Server name -> descriptor
        directory: Where to create the file (defaults to the system temp dir)

    Returns:
        Path to the written file

    Raises:
        InvalidConfigurationError: If encoding or writing fails
    """
    text = serialize_mcp_servers(servers)
    return _write(_temp_path("mcp", directory), text)


def write_inline_mcp_config(text: str, directory: Path | None = None) -> Path:
    """
    Validate raw MCP config JSON text and write it to a temporary file.

    Args:
        text: JSON document as typed by the user
        directory: Where to create the file (defaults to the system temp dir)

    Returns:
        Path to the written file

    Raises:
        InvalidConfigurationError: If the text is empty, not JSON, or unwritable
    """
    trimmed = text.strip()
    if not trimmed:
        raise InvalidConfigurationError("Inline MCP config is empty.")

    try:
        json.loads(trimmed)
    except json.JSONDecodeError as e:
        raise InvalidConfigurationError("Inline MCP config is not valid JSON.") from e

    return _write(_temp_path("mcp-inline", directory), trimmed)


def validate_mcp_config_path(path: str) -> str:
    """
    Check that a user-supplied MCP config path is usable.

    Returns:
        The trimmed path

    Raises:
        InvalidConfigurationError: If the path is empty or does not exist
    """
    trimmed = path.strip()
    if not trimmed:
        raise InvalidConfigurationError("MCP config path is empty.")
    if not Path(trimmed).expanduser().exists():
        raise InvalidConfigurationError("MCP config path does not exist.")
    return trimmed
