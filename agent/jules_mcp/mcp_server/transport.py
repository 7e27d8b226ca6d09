"""Common interface of the transports that expose the Jules tools."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from jules_mcp.client import JulesClient
from jules_mcp.settings import Settings

logger = structlog.get_logger(__name__)


class Transport(ABC):
    """A channel binding the tool registry to MCP clients.

    ``start`` runs until the transport is stopped or its channel closes.
    """

    name: str = ""

    def __init__(self, settings: Settings, client: JulesClient) -> None:
        self.settings = settings
        self.client = client

    @abstractmethod
    async def start(self) -> None:
        """Serve requests until stopped."""

    @abstractmethod
    async def stop(self) -> None:
        """Ask a running transport to shut down."""


class HttpServerTransport(Transport):
    """Transport served by uvicorn from a FastAPI app."""

    def __init__(self, settings: Settings, client: JulesClient) -> None:
        super().__init__(settings, client)
        self.app = self.create_app()
        self._server = None

    @abstractmethod
    def create_app(self):
        """Build the ASGI app for this transport."""

    async def start(self) -> None:
        import uvicorn

        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
        )
        self._server = uvicorn.Server(config)
        logger.info(
            "HTTP transport listening",
            transport=self.name,
            host=self.settings.host,
            port=self.settings.port,
        )
        await self._server.serve()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True


def create_transport(settings: Settings, client: JulesClient) -> Transport:
    """Build the transport selected by ``settings.transport``."""
    if settings.transport == "stdio":
        from jules_mcp.mcp_server.server import StdioTransport

        return StdioTransport(settings, client)
    if settings.transport == "http":
        from jules_mcp.mcp_server.http import HttpTransport

        return HttpTransport(settings, client)
    if settings.transport == "durable":
        from jules_mcp.mcp_server.durable import DurableTransport

        return DurableTransport(settings, client)
    raise ValueError(f"Unknown transport: {settings.transport}")
