"""Tests for the command-line entry point and transport selection."""

from pathlib import Path

import pytest

from jules_mcp import main as entry
from jules_mcp.client import JulesClient
from jules_mcp.mcp_server import create_transport
from jules_mcp.mcp_server.durable import DurableTransport
from jules_mcp.mcp_server.http import HttpTransport
from jules_mcp.mcp_server.server import StdioTransport
from jules_mcp.settings import Settings, load_settings

from conftest import API_KEY


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """No API key in the environment and no .env file in the working directory."""
    for name in ("JULES_API_KEY", "MCP_TRANSPORT", "MCP_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestMain:
    def test_missing_api_key_exits_nonzero(
        self, clean_env: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert entry.main([]) == 1
        assert "Error: The JULES_API_KEY environment variable is required" in capsys.readouterr().err

    @pytest.mark.parametrize(("name", "value"), [("MCP_TRANSPORT", "carrier-pigeon"), ("MCP_PORT", "abc")])
    def test_invalid_environment_exits_nonzero(
        self,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        name: str,
        value: str,
    ) -> None:
        monkeypatch.setenv("JULES_API_KEY", API_KEY)
        monkeypatch.setenv(name, value)

        assert entry.main([]) == 1
        err = capsys.readouterr().err
        assert "Error: Invalid configuration" in err
        assert name in err

    def test_flags_override_environment(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("JULES_API_KEY", API_KEY)
        monkeypatch.setenv("MCP_TRANSPORT", "http")
        served: list[Settings] = []

        async def fake_serve(settings: Settings) -> None:
            served.append(settings)

        monkeypatch.setattr(entry, "serve", fake_serve)

        assert entry.main(["--transport", "durable", "--port", "8123", "--log-level", "debug"]) == 0
        assert served[0].transport == "durable"
        assert served[0].port == 8123
        assert served[0].log_level == "DEBUG"

    def test_environment_is_default(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JULES_API_KEY", f"  {API_KEY}  ")
        monkeypatch.setenv("MCP_TRANSPORT", "http")

        settings = load_settings()

        assert settings.transport == "http"
        assert settings.jules_api_key == API_KEY

    def test_rejects_unknown_transport(self) -> None:
        with pytest.raises(SystemExit):
            entry.build_parser().parse_args(["--transport", "carrier-pigeon"])


class TestCreateTransport:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [("stdio", StdioTransport), ("http", HttpTransport), ("durable", DurableTransport)],
    )
    @pytest.mark.anyio
    async def test_selects_transport(
        self, settings: Settings, jules_client: JulesClient, name: str, expected: type
    ) -> None:
        configured = settings.model_copy(update={"transport": name})

        transport = create_transport(configured, jules_client)

        assert isinstance(transport, expected)
        assert transport.name == name
