"""MCP server exposing the Jules coding-agent API as tools."""

__version__ = "1.1.0"
