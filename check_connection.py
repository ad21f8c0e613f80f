"""
Quick connection check against the live Questrade API.

Loads tokens the same way the MCP server does, refreshes if needed, and
exercises a few read-only endpoints.
"""

import asyncio
import sys

from dotenv import load_dotenv

from questrade_mcp.client import QuestradeClient
from questrade_mcp.config import get_settings
from questrade_mcp.errors import AuthorizationError, QuestradeError, TokenRefreshError
from questrade_mcp.store import CredentialStore

# Load .env file
load_dotenv()


def print_token_help() -> None:
    print("Please get your refresh token from Questrade API Centre:")
    print("1. Log in to Questrade")
    print("2. Go to API Centre from the dropdown menu")
    print('3. Click "Generate new token"')
    print("4. Copy the token to QUESTRADE_REFRESH_TOKEN in your .env file")


async def check_connection() -> int:
    cfg = get_settings()
    store = CredentialStore(settings=cfg)
    credentials = store.load()

    if not credentials.refresh_token:
        print("ERROR: Missing QUESTRADE_REFRESH_TOKEN")
        print_token_help()
        return 1

    print("Testing Questrade API connection...")

    client = QuestradeClient.from_credentials(
        credentials,
        store,
        default_api_url=cfg.questrade_default_api_url,
        login_url=cfg.questrade_login_url,
        timeout=cfg.questrade_timeout,
    )
    print(f"API URL: {client.config.api_url}")

    async with client:
        try:
            if not client.has_access_token:
                print("\nGetting access token from refresh token...")
                await client.refresh()
                print("Access token obtained")

            print("\n1. Testing account access...")
            accounts = await client.get_accounts()
            print(f"Found {len(accounts)} accounts")

            if accounts:
                acct = accounts[0]
                print(f"   Account: {acct.get('number')} ({acct.get('type')})")

                print("\n2. Testing positions access...")
                positions = await client.get_positions(acct["number"])
                print(f"Found {len(positions)} positions")

                print("\n3. Testing balances access...")
                balances = await client.get_balances(acct["number"])
                print(f"Found {len(balances)} balance entries")
                if balances:
                    equity = balances[0].get("totalEquity")
                    equity_str = f"${equity:.2f}" if equity is not None else "N/A"
                    print(f"   Total Equity: {equity_str} {balances[0].get('currency')}")

            print("\n4. Testing symbol search...")
            found = await client.search_symbols("AAPL", 0)
            print(f'Found {len(found)} symbols for "AAPL"')

        except QuestradeError as e:
            print("\nERROR: Connection test failed:")
            print(f"   {e}")
            if isinstance(e, (AuthorizationError, TokenRefreshError)):
                print("\nYour refresh token may be expired. Generate a new one:")
                print_token_help()
            return 1

    print(f"\nAll checks passed. Tokens are stored in: {store.token_file_path}")
    print("\nStart the MCP server with:")
    print("  python -m questrade_mcp.server")
    return 0


def main():
    sys.exit(asyncio.run(check_connection()))


if __name__ == "__main__":
    main()
