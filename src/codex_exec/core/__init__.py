"""Core library: exec client, MCP config, binary discovery and configuration."""
