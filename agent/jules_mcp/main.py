"""Command-line entry point: ``jules-mcp``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from jules_mcp import __version__
from jules_mcp.client import JulesClient
from jules_mcp.errors import ConfigurationError
from jules_mcp.logging import configure_logging
from jules_mcp.mcp_server import create_transport
from jules_mcp.settings import Settings, load_settings

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jules-mcp",
        description="MCP server for the Jules coding agent API",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "durable"],
        help="Transport to serve (default: MCP_TRANSPORT or stdio)",
    )
    parser.add_argument("--host", help="Bind address for the HTTP transports (default: MCP_HOST)")
    parser.add_argument("--port", type=int, help="Port for the HTTP transports (default: MCP_PORT)")
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def serve(settings: Settings) -> None:
    """Run the configured transport until it stops."""
    async with JulesClient(settings) as client:
        transport = create_transport(settings, client)
        logger.info("Starting Jules MCP server", transport=transport.name, version=__version__)
        try:
            await transport.start()
        finally:
            await transport.stop()


def _startup_failure(message: str) -> int:
    configure_logging()
    logger.error("Fatal error starting Jules MCP server", error=message)
    print(f"Error: {message}", file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            transport=args.transport,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
        )
    except ConfigurationError as exc:
        return _startup_failure(str(exc))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _startup_failure(f"Invalid configuration: {problems}")

    configure_logging(settings.log_level)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
