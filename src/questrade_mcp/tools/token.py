"""Token tools for Questrade MCP Server."""

from typing import Any

from ..client import QuestradeClient

# Schema for refresh_token tool
REFRESH_TOKEN_SCHEMA = {
    "type": "object",
    "properties": {},
    "required": [],
}


async def refresh_token(client: QuestradeClient, args: dict) -> dict[str, Any]:
    """Refresh the API access token and report the new API server."""
    result = await client.refresh()
    return {
        "message": "Token refreshed successfully",
        "expires_in": result.expires_in,
        "api_server": result.api_server,
    }
