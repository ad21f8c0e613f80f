"""Account-related tools for Questrade MCP Server."""

from typing import Any

from ..client import QuestradeClient
from . import require_args

# Schema for get_accounts tool
GET_ACCOUNTS_SCHEMA = {
    "type": "object",
    "properties": {},
    "required": [],
}

# Schema for get_positions tool
GET_POSITIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "accountNumber": {
            "type": "string",
            "description": "Account number to get positions for",
        }
    },
    "required": ["accountNumber"],
}

# Schema for get_balances tool
GET_BALANCES_SCHEMA = {
    "type": "object",
    "properties": {
        "accountNumber": {
            "type": "string",
            "description": "Account number to get balances for",
        }
    },
    "required": ["accountNumber"],
}

# Schema for get_orders tool
GET_ORDERS_SCHEMA = {
    "type": "object",
    "properties": {
        "accountNumber": {
            "type": "string",
            "description": "Account number to get orders for",
        },
        "startTime": {
            "type": "string",
            "description": "Start time for order history (ISO format)",
        },
        "endTime": {
            "type": "string",
            "description": "End time for order history (ISO format)",
        },
        "stateFilter": {
            "type": "string",
            "enum": ["All", "Open", "Closed"],
            "description": "Filter orders by state",
        },
    },
    "required": ["accountNumber"],
}


async def get_accounts(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """Get all accounts."""
    return await client.get_accounts()


async def get_positions(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Get positions for an account.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with 'accountNumber'

    Returns:
        Positions as returned by the API
    """
    require_args(args, "accountNumber")
    return await client.get_positions(str(args["accountNumber"]))


async def get_balances(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Get combined balances for an account.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with 'accountNumber'

    Returns:
        Combined (all-currency) balances
    """
    require_args(args, "accountNumber")
    return await client.get_balances(str(args["accountNumber"]))


async def get_orders(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Get orders for an account.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with 'accountNumber' and optional time window/state

    Returns:
        Orders as returned by the API
    """
    require_args(args, "accountNumber")
    return await client.get_orders(
        str(args["accountNumber"]),
        start_time=args.get("startTime"),
        end_time=args.get("endTime"),
        state_filter=args.get("stateFilter"),
    )
