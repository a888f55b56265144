"""
MCP server configuration models and config file writer.
"""

from .models import McpConfigPayload, McpServerConfig
from .writer import (
    serialize_mcp_servers,
    validate_mcp_config_path,
    write_inline_mcp_config,
    write_mcp_servers,
)

__all__ = [
    "McpConfigPayload",
    "McpServerConfig",
    "serialize_mcp_servers",
    "validate_mcp_config_path",
    "write_inline_mcp_config",
    "write_mcp_servers",
]
