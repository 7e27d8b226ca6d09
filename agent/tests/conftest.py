"""Shared fixtures: settings, a Jules client and a mocked Jules API."""

from collections.abc import AsyncIterator, Iterator

import pytest
import respx

from jules_mcp.client import JulesClient
from jules_mcp.settings import Settings

API_BASE = "https://jules.test/v1alpha"
API_KEY = "test-api-key"


def api_url(path: str) -> str:
    """Absolute URL of a Jules API path."""
    return f"{API_BASE}{path}"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jules_api_key=API_KEY,
        jules_api_base=API_BASE,
        sse_keepalive_seconds=0.01,
    )


@pytest.fixture
async def jules_client(settings: Settings) -> AsyncIterator[JulesClient]:
    async with JulesClient(settings) as client:
        yield client


@pytest.fixture
def jules_api() -> Iterator[respx.MockRouter]:
    """Mock of the Jules REST API; unmatched requests fail the test."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock
