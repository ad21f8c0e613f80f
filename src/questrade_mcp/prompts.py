"""Analysis prompts for Questrade MCP Server."""

import asyncio
import json
from typing import Optional

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from .client import QuestradeClient
from .errors import InvalidParamsError

ACCOUNT_ARGUMENT = PromptArgument(
    name="accountNumber",
    description="The account number to analyze (optional - will use first account if not provided)",
    required=False,
)

PROMPTS = [
    Prompt(
        name="portfolio_summary",
        description="Get a comprehensive portfolio summary with account balances, positions, and performance",
        arguments=[ACCOUNT_ARGUMENT],
    ),
    Prompt(
        name="stock_analysis",
        description="Analyze a specific stock with current quotes, symbol information, and recent performance",
        arguments=[
            PromptArgument(
                name="symbol",
                description="Stock symbol to analyze (e.g., AAPL, TSLA, MSFT)",
                required=True,
            )
        ],
    ),
    Prompt(
        name="trading_opportunities",
        description="Identify potential trading opportunities based on current positions and market data",
        arguments=[
            ACCOUNT_ARGUMENT,
            PromptArgument(
                name="riskLevel",
                description="Risk tolerance level: conservative, moderate, or aggressive",
                required=False,
            ),
        ],
    ),
]


def _dump(data) -> str:
    return json.dumps(data, indent=2, default=str)


def _user_prompt(description: str, text: str) -> GetPromptResult:
    return GetPromptResult(
        description=description,
        messages=[
            PromptMessage(role="user", content=TextContent(type="text", text=text)),
        ],
    )


async def _resolve_account(client: QuestradeClient, account_number: Optional[str]) -> str:
    """Use the given account number, else the first account."""
    if account_number:
        return account_number
    accounts = await client.get_accounts() or []
    if not accounts or not accounts[0].get("number"):
        raise InvalidParamsError("No account found")
    return accounts[0]["number"]


async def portfolio_summary(client: QuestradeClient, args: dict) -> GetPromptResult:
    account_number = await _resolve_account(client, args.get("accountNumber"))
    positions, balances = await asyncio.gather(
        client.get_positions(account_number),
        client.get_balances(account_number),
    )

    return _user_prompt(
        f"Portfolio summary for account {account_number}",
        f"""Please provide a comprehensive portfolio analysis for Questrade account {account_number}. Here's the data:

**Account Balances:**
{_dump(balances)}

**Current Positions:**
{_dump(positions)}

Please analyze:
1. Total portfolio value and cash position
2. Asset allocation breakdown
3. Individual position performance
4. Any notable concentrations or risks
5. Recommendations for portfolio optimization""",
    )


async def stock_analysis(client: QuestradeClient, args: dict) -> GetPromptResult:
    symbol = args.get("symbol")
    if not symbol:
        raise InvalidParamsError("symbol is required")

    symbols = await client.search_symbols(symbol, 0) or []
    if not symbols:
        raise InvalidParamsError(f'No symbols found for "{symbol}"')

    symbol_data = symbols[0]
    quotes = await client.get_quotes([symbol_data["symbolId"]]) or []

    return _user_prompt(
        f"Stock analysis for {symbol}",
        f"""Please provide a detailed stock analysis for {symbol}. Here's the current data:

**Symbol Information:**
{_dump(symbol_data)}

**Current Quote:**
{_dump(quotes[0] if quotes else None)}

Please analyze:
1. Current price and recent performance
2. Key financial metrics
3. Trading volume and liquidity
4. Technical indicators
5. Investment recommendation (buy/hold/sell)
6. Risk assessment""",
    )


async def trading_opportunities(client: QuestradeClient, args: dict) -> GetPromptResult:
    account_number = await _resolve_account(client, args.get("accountNumber"))
    positions, balances = await asyncio.gather(
        client.get_positions(account_number),
        client.get_balances(account_number),
    )
    risk_level = args.get("riskLevel") or "moderate"

    return _user_prompt(
        f"Trading opportunities analysis for account {account_number}",
        f"""Please identify trading opportunities for Questrade account {account_number} with {risk_level} risk tolerance. Here's the current portfolio data:

**Account Balances:**
{_dump(balances)}

**Current Positions:**
{_dump(positions)}

**Risk Level:** {risk_level}

Please provide:
1. Analysis of current portfolio allocation
2. Identification of overweight/underweight positions
3. Specific trading opportunities based on risk level
4. Sector diversification recommendations
5. Cash deployment strategies
6. Risk management considerations""",
    )


PROMPT_HANDLERS = {
    "portfolio_summary": portfolio_summary,
    "stock_analysis": stock_analysis,
    "trading_opportunities": trading_opportunities,
}
