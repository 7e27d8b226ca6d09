"""MCP tool registry and handlers for the Jules API."""
