"""Quote-related tools for Questrade MCP Server."""

from typing import Any

from ..client import QuestradeClient
from ..errors import InvalidParamsError
from . import to_int

# Schema for get_quotes tool
GET_QUOTES_SCHEMA = {
    "type": "object",
    "properties": {
        "symbolIds": {
            "type": "array",
            "items": {"type": "number"},
            "description": "Array of symbol IDs to get quotes for",
        }
    },
    "required": ["symbolIds"],
}


async def get_quotes(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Get market quotes for one or more symbol IDs.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with 'symbolIds' list

    Returns:
        Quotes as returned by the API
    """
    symbol_ids = args.get("symbolIds")
    if not isinstance(symbol_ids, list) or not symbol_ids:
        raise InvalidParamsError("symbolIds array is required")
    return await client.get_quotes([to_int(s, "symbolIds") for s in symbol_ids])
