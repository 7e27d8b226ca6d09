"""Transports exposing the Jules tools: stdio, stateless HTTP and durable."""

from jules_mcp.mcp_server.transport import Transport, create_transport

__all__ = ["Transport", "create_transport"]
