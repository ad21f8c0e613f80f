"""Tests for the server module."""

import json
import os
from unittest.mock import patch

import httpx
import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS

from questrade_mcp.config import Settings
from questrade_mcp.errors import MissingCredentialsError, TokenRefreshError
from questrade_mcp.server import (
    TOOL_HANDLERS,
    TOOLS,
    SessionProvider,
    create_server,
    dispatch_tool,
    render_prompt,
)
from questrade_mcp.store import CredentialStore

from .helpers import NEW_API_URL, token_response


@pytest.fixture
def cfg() -> Settings:
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


def api_handler(calls: list):
    """Fake Questrade: token endpoint plus a one-account API."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.host == "login.questrade.com":
            return httpx.Response(200, json=token_response())
        if request.url.path == "/v1/accounts":
            return httpx.Response(200, json={"accounts": [{"number": "123", "type": "Margin"}]})
        if request.url.path == "/v1/symbols/search":
            return httpx.Response(200, json={"symbols": []})
        return httpx.Response(404, json={"code": 1001, "message": "Not found"})

    return handler


class TestToolRegistry:
    """Tests for tool declarations."""

    def test_every_tool_has_a_handler(self):
        """Test declared tools and handlers match one to one."""
        assert {tool.name for tool in TOOLS} == set(TOOL_HANDLERS)

    def test_tool_names(self):
        """Test the full tool surface is exposed."""
        assert [tool.name for tool in TOOLS] == [
            "get_accounts",
            "get_positions",
            "get_balances",
            "get_quotes",
            "search_symbols",
            "get_symbol",
            "get_orders",
            "get_candles",
            "refresh_token",
        ]

    def test_create_server(self, cfg, tmp_path):
        """Test the MCP server is named and built."""
        provider = SessionProvider(store=CredentialStore(token_dir=tmp_path, settings=cfg), cfg=cfg)
        server = create_server(provider)
        assert server.name == "questrade-mcp"


class TestSessionProvider:
    """Tests for lazy session creation."""

    @pytest.mark.asyncio
    async def test_missing_refresh_token(self, cfg, tmp_path):
        """Test a clear error when no refresh token exists anywhere."""
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        provider = SessionProvider(store=store, cfg=cfg)

        with pytest.raises(MissingCredentialsError, match="QUESTRADE_REFRESH_TOKEN"):
            await provider.get()

    @pytest.mark.asyncio
    async def test_refreshes_when_no_access_token(self, cfg, tmp_path):
        """Test the session refreshes immediately without an access token."""
        calls = []
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("stored_refresh")
        provider = SessionProvider(
            store=store, cfg=cfg, transport=httpx.MockTransport(api_handler(calls))
        )

        client = await provider.get()

        assert len(calls) == 1
        assert calls[0].content == b"grant_type=refresh_token&refresh_token=stored_refresh"
        assert client.config.access_token == "new_access"
        assert client.config.api_url == NEW_API_URL

        reloaded = store.load()
        assert reloaded.refresh_token == "new_refresh"
        assert reloaded.access_token == "new_access"
        assert reloaded.api_url == NEW_API_URL

    @pytest.mark.asyncio
    async def test_uses_stored_access_token(self, cfg, tmp_path):
        """Test no refresh happens when an access token was loaded."""
        calls = []
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("stored_refresh", "stored_access", "https://api02.iq.questrade.com/")
        provider = SessionProvider(
            store=store, cfg=cfg, transport=httpx.MockTransport(api_handler(calls))
        )

        client = await provider.get()

        assert calls == []
        assert client.config.access_token == "stored_access"
        assert client.config.api_url == "https://api02.iq.questrade.com/"

    @pytest.mark.asyncio
    async def test_session_is_reused(self, cfg, tmp_path):
        """Test the same session is handed out on every call."""
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("r", "a")
        provider = SessionProvider(store=store, cfg=cfg)

        assert await provider.get() is await provider.get()
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_failed_initial_refresh_is_retried_next_call(self, cfg, tmp_path):
        """Test a failed startup refresh leaves no half-built session behind."""
        responses = [httpx.Response(400, text="Bad Request"), httpx.Response(200, json=token_response())]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("r")
        provider = SessionProvider(store=store, cfg=cfg, transport=httpx.MockTransport(handler))

        with pytest.raises(TokenRefreshError, match="Bad Request"):
            await provider.get()

        client = await provider.get()
        assert client.config.access_token == "new_access"


class TestDispatchTool:
    """Tests for tool dispatch."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def provider(self, cfg, tmp_path, calls):
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("r", "a", "https://api01.iq.questrade.com/")
        return SessionProvider(
            store=store, cfg=cfg, transport=httpx.MockTransport(api_handler(calls))
        )

    @pytest.mark.asyncio
    async def test_success_returns_json(self, provider):
        """Test results are rendered as JSON text."""
        result = await dispatch_tool(provider, "get_accounts", {})
        assert len(result) == 1
        assert json.loads(result[0].text) == [{"number": "123", "type": "Margin"}]

    @pytest.mark.asyncio
    async def test_validation_error_payload(self, provider, calls):
        """Test a missing argument is reported without calling the API."""
        result = await dispatch_tool(provider, "get_positions", {})
        payload = json.loads(result[0].text)

        assert payload == {
            "error": True,
            "error_type": "InvalidParamsError",
            "message": "accountNumber is required",
        }
        assert calls == []

    @pytest.mark.asyncio
    async def test_request_error_payload(self, provider):
        """Test API failures are reported with the upstream body."""
        result = await dispatch_tool(provider, "get_symbol", {"symbolId": 1})
        payload = json.loads(result[0].text)

        assert payload["error"] is True
        assert payload["error_type"] == "RequestError"
        assert "Not found" in payload["message"]

    @pytest.mark.asyncio
    async def test_none_arguments(self, provider):
        """Test tools without arguments accept None."""
        result = await dispatch_tool(provider, "get_accounts", None)
        assert json.loads(result[0].text)[0]["number"] == "123"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, provider):
        """Test unknown tool names raise."""
        with pytest.raises(ValueError, match="Unknown tool: place_order"):
            await dispatch_tool(provider, "place_order", {})

    @pytest.mark.asyncio
    async def test_missing_credentials_payload(self, cfg, tmp_path):
        """Test missing credentials surface as an error payload."""
        provider = SessionProvider(store=CredentialStore(token_dir=tmp_path, settings=cfg), cfg=cfg)
        result = await dispatch_tool(provider, "get_accounts", {})
        payload = json.loads(result[0].text)
        assert payload["error_type"] == "MissingCredentialsError"


class TestRenderPrompt:
    """Tests for prompt rendering errors."""

    @pytest.fixture
    def provider(self, cfg, tmp_path):
        store = CredentialStore(token_dir=tmp_path, settings=cfg)
        store.save("r", "a", "https://api01.iq.questrade.com/")
        return SessionProvider(
            store=store, cfg=cfg, transport=httpx.MockTransport(api_handler([]))
        )

    @pytest.mark.asyncio
    async def test_unknown_prompt(self, provider):
        """Test unknown prompts are invalid params."""
        with pytest.raises(McpError) as excinfo:
            await render_prompt(provider, "nope", {})
        assert excinfo.value.error.code == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_missing_symbol(self, provider):
        """Test stock_analysis requires a symbol."""
        with pytest.raises(McpError) as excinfo:
            await render_prompt(provider, "stock_analysis", {})
        assert excinfo.value.error.code == INVALID_PARAMS
        assert "symbol is required" in excinfo.value.error.message

    @pytest.mark.asyncio
    async def test_symbol_not_found(self, provider):
        """Test an empty search result is invalid params."""
        with pytest.raises(McpError, match="No symbols found"):
            await render_prompt(provider, "stock_analysis", {"symbol": "ZZZZ"})

    @pytest.mark.asyncio
    async def test_api_failure_is_internal_error(self, provider):
        """Test a failing API call surfaces as an internal MCP error."""
        with pytest.raises(McpError) as excinfo:
            await render_prompt(provider, "portfolio_summary", {"accountNumber": "999"})
        assert excinfo.value.error.code == INTERNAL_ERROR
        assert excinfo.value.error.message.startswith("Prompt execution failed: ")
        assert "404" in excinfo.value.error.message

    @pytest.mark.asyncio
    async def test_missing_credentials_is_internal_error(self, cfg, tmp_path):
        """Test session creation failures are wrapped too."""
        provider = SessionProvider(store=CredentialStore(token_dir=tmp_path, settings=cfg), cfg=cfg)
        with pytest.raises(McpError) as excinfo:
            await render_prompt(provider, "portfolio_summary", {})
        assert excinfo.value.error.code == INTERNAL_ERROR
        assert "Prompt execution failed: Missing refresh token" in excinfo.value.error.message
        assert isinstance(excinfo.value.__cause__, MissingCredentialsError)
