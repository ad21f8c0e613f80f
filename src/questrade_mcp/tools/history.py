"""Candle history tools for Questrade MCP Server."""

from typing import Any

from ..client import QuestradeClient
from . import require_args, to_int

CANDLE_INTERVALS = [
    "OneMinute",
    "TwoMinutes",
    "ThreeMinutes",
    "FourMinutes",
    "FiveMinutes",
    "TenMinutes",
    "FifteenMinutes",
    "TwentyMinutes",
    "HalfHour",
    "OneHour",
    "TwoHours",
    "FourHours",
    "OneDay",
    "OneWeek",
    "OneMonth",
    "OneYear",
]

# Schema for get_candles tool
GET_CANDLES_SCHEMA = {
    "type": "object",
    "properties": {
        "symbolId": {
            "type": "number",
            "description": "Symbol ID to get candles for",
        },
        "startTime": {
            "type": "string",
            "description": "Start time (ISO format)",
        },
        "endTime": {
            "type": "string",
            "description": "End time (ISO format)",
        },
        "interval": {
            "type": "string",
            "enum": CANDLE_INTERVALS,
            "description": "Candle interval (OneMinute, FiveMinutes, etc.)",
        },
    },
    "required": ["symbolId", "startTime", "endTime", "interval"],
}


async def get_candles(client: QuestradeClient, args: dict) -> list[dict[str, Any]]:
    """
    Get historical OHLCV candles for a symbol.

    Args:
        client: QuestradeClient instance
        args: Tool arguments with symbolId, startTime, endTime and interval

    Returns:
        Candles as returned by the API
    """
    require_args(args, "symbolId", "startTime", "endTime", "interval")
    return await client.get_candles(
        to_int(args["symbolId"], "symbolId"),
        start_time=args["startTime"],
        end_time=args["endTime"],
        interval=args["interval"],
    )
