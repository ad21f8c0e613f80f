"""Symbol lookup tools for Questrade MCP Server."""

from typing import Any

from ..client import QuestradeClient
from . import require_args, to_int

# Schema for search_symbols tool
SEARCH_SYMBOLS_SCHEMA = {
    "type": "object",
    "properties": {
        "prefix": {
            "type": "string",
            "description": 'Symbol prefix to search for (e.g., "AAPL")',
        },
        "offset": {
            "type": "number",
            "description": "Offset for pagination (default: 0)",
            "default": 0,
        },
    },
    "required": ["prefix"],
}

# Schema for get_symbol tool
GET_SYMBOL_SCHEMA = {
    "type": "object",
    "properties": {
        "symbolId": {
            "type": "number",
            "description": "Symbol ID to get details for",
        }
    },
    "required": ["symbolId"],
}


async def search_symbols(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Search for symbols by prefix.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with 'prefix' and optional 'offset'

    Returns:
        Matching symbols
    """
    require_args(args, "prefix")
    offset = to_int(args.get("offset") or 0, "offset")
    return await client.search_symbols(args["prefix"], offset=offset)


async def get_symbol(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """Get detailed information for a symbol ID."""
    require_args(args, "symbolId")
    return await client.get_symbol(to_int(args["symbolId"], "symbolId"))
