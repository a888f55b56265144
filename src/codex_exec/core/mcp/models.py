"""
MCP (Model Context Protocol) server descriptor models.

These describe auxiliary tool servers that codex may call into. They are
serialized into the `{"mcpServers": {...}}` document that `--mcp-config`
points at.
"""

from pydantic import BaseModel, ConfigDict, Field


class McpServerConfig(BaseModel):
    """
    A single MCP server entry.

    Stdio servers set command/args/env; remote servers set type/url/headers.
    All fields are optional so either shape can be expressed.
    """

    command: str | None = Field(default=None, description="Executable for a stdio server")
    args: list[str] | None = Field(default=None, description="Arguments for the command")
    env: dict[str, str] | None = Field(default=None, description="Extra environment for the server")
    type: str | None = Field(default=None, description="Transport type (e.g. 'stdio', 'http')")
    url: str | None = Field(default=None, description="URL for a remote server")
    headers: dict[str, str] | None = Field(default=None, description="HTTP headers for a remote server")

    model_config = ConfigDict(frozen=True)


class McpConfigPayload(BaseModel):
    """Top-level MCP config document."""

    mcp_servers: dict[str, McpServerConfig] = Field(
        default_factory=dict,
        alias="mcpServers",
        description="Server name -> server descriptor",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)
