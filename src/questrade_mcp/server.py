"""
Questrade MCP Server - Main entry point

Exposes Questrade API data to Claude via Model Context Protocol.
READ-ONLY: No trading functionality.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, ErrorData, GetPromptResult, Prompt, Resource, TextContent, Tool

from .client import QuestradeClient
from .config import Settings, settings
from .errors import InvalidParamsError, MissingCredentialsError
from .prompts import PROMPT_HANDLERS, PROMPTS
from .store import CredentialStore
from .tools import account, history, quotes, symbols, token

# Configure logging (stdout carries the MCP transport)
logging.basicConfig(
    level=getattr(logging, settings().log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

ToolHandler = Callable[[QuestradeClient, dict], Awaitable[Any]]

TOOL_HANDLERS: dict[str, ToolHandler] = {
    "get_accounts": account.get_accounts,
    "get_positions": account.get_positions,
    "get_balances": account.get_balances,
    "get_quotes": quotes.get_quotes,
    "search_symbols": symbols.search_symbols,
    "get_symbol": symbols.get_symbol,
    "get_orders": account.get_orders,
    "get_candles": history.get_candles,
    "refresh_token": token.refresh_token,
}

TOOLS = [
    Tool(
        name="get_accounts",
        description="Get all Questrade accounts",
        inputSchema=account.GET_ACCOUNTS_SCHEMA,
    ),
    Tool(
        name="get_positions",
        description="Get positions for a specific account",
        inputSchema=account.GET_POSITIONS_SCHEMA,
    ),
    Tool(
        name="get_balances",
        description="Get combined balances for a specific account",
        inputSchema=account.GET_BALANCES_SCHEMA,
    ),
    Tool(
        name="get_quotes",
        description="Get market quotes for specific symbol IDs",
        inputSchema=quotes.GET_QUOTES_SCHEMA,
    ),
    Tool(
        name="search_symbols",
        description="Search for symbols by prefix",
        inputSchema=symbols.SEARCH_SYMBOLS_SCHEMA,
    ),
    Tool(
        name="get_symbol",
        description="Get detailed information for a specific symbol",
        inputSchema=symbols.GET_SYMBOL_SCHEMA,
    ),
    Tool(
        name="get_orders",
        description="Get orders for a specific account",
        inputSchema=account.GET_ORDERS_SCHEMA,
    ),
    Tool(
        name="get_candles",
        description="Get historical candle data for a symbol",
        inputSchema=history.GET_CANDLES_SCHEMA,
    ),
    Tool(
        name="refresh_token",
        description="Refresh the API access token",
        inputSchema=token.REFRESH_TOKEN_SCHEMA,
    ),
]


class SessionProvider:
    """Builds the QuestradeClient on first use and hands out the same one after."""

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        cfg: Optional[Settings] = None,
        **client_kwargs: Any,
    ):
        """
        Initialize SessionProvider.

        Args:
            store: CredentialStore to load from (built from settings if omitted)
            cfg: Settings (global settings if omitted)
            client_kwargs: Extra QuestradeClient arguments (e.g. transport)
        """
        self.cfg = cfg or settings()
        self.store = store or CredentialStore(settings=self.cfg)
        self.client_kwargs = client_kwargs
        self._client: Optional[QuestradeClient] = None
        self._lock = asyncio.Lock()

    async def get(self) -> QuestradeClient:
        """
        Get the session, creating it on first call.

        Raises:
            MissingCredentialsError: If no refresh token is available
            TokenRefreshError: If the initial refresh fails
        """
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is not None:
                return self._client

            credentials = self.store.load()
            if not credentials.refresh_token:
                raise MissingCredentialsError(
                    "Missing refresh token. Either set QUESTRADE_REFRESH_TOKEN environment "
                    f"variable or ensure token file exists ({self.store.token_file_path}). "
                    "Get your token from Questrade API Centre -> Generate new token"
                )

            client = QuestradeClient.from_credentials(
                credentials,
                self.store,
                default_api_url=self.cfg.questrade_default_api_url,
                login_url=self.cfg.questrade_login_url,
                timeout=self.cfg.questrade_timeout,
                **self.client_kwargs,
            )

            if not client.has_access_token:
                try:
                    await client.refresh()
                except Exception:
                    await client.aclose()
                    raise

            self._client = client
            return client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


async def dispatch_tool(provider: SessionProvider, name: str, arguments: dict) -> list[TextContent]:
    """Run a tool and render its result (or failure) as JSON text."""
    logger.info(f"Tool called: {name}")
    logger.debug(f"Arguments: {arguments}")

    handler = TOOL_HANDLERS.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")

    try:
        client = await provider.get()
        result = await handler(client, arguments or {})
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}", exc_info=True)
        error_response = {
            "error": True,
            "error_type": type(e).__name__,
            "message": str(e),
        }
        return [TextContent(type="text", text=json.dumps(error_response, indent=2))]


async def render_prompt(provider: SessionProvider, name: str, arguments: Optional[dict]) -> GetPromptResult:
    """Build a prompt; bad arguments are invalid params, anything else an internal error."""
    handler = PROMPT_HANDLERS.get(name)
    if not handler:
        raise McpError(ErrorData(code=INVALID_PARAMS, message=f"Unknown prompt: {name}"))

    try:
        client = await provider.get()
        return await handler(client, arguments or {})
    except InvalidParamsError as e:
        raise McpError(ErrorData(code=INVALID_PARAMS, message=str(e))) from e
    except Exception as e:
        logger.error(f"Prompt {name} failed: {e}", exc_info=True)
        raise McpError(
            ErrorData(code=INTERNAL_ERROR, message=f"Prompt execution failed: {e}")
        ) from e


def create_server(provider: SessionProvider) -> Server:
    """Create the MCP server bound to one session provider."""
    server = Server("questrade-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List all available tools."""
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        """Handle tool invocations."""
        return await dispatch_tool(provider, name, arguments)

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return PROMPTS

    @server.get_prompt()
    async def get_prompt(name: str, arguments: Optional[dict[str, str]]) -> GetPromptResult:
        logger.info(f"Prompt requested: {name}")
        return await render_prompt(provider, name, arguments)

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return []

    return server


async def run_server():
    """Run the MCP server."""
    logger.info("Starting Questrade MCP Server...")
    provider = SessionProvider()
    server = create_server(provider)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await provider.aclose()


def main():
    """Entry point for the server."""
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
