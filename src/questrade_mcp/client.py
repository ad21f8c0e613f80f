"""
Questrade API HTTP client.

Holds one authenticated session and refreshes credentials on demand.
READ-ONLY: No trading functionality.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from .auth import (
    DEFAULT_API_URL,
    DEFAULT_LOGIN_URL,
    SessionConfig,
    TokenResult,
    exchange_refresh_token,
)
from .errors import AuthorizationError, RequestError
from .store import CredentialStore, Credentials

logger = logging.getLogger(__name__)


class QuestradeClient:
    """Async HTTP client for the Questrade API."""

    def __init__(
        self,
        config: SessionConfig,
        store: CredentialStore,
        login_url: str = DEFAULT_LOGIN_URL,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize QuestradeClient.

        Args:
            config: Credentials to authenticate with; updated after a refresh
            store: CredentialStore that receives every refreshed token set
            login_url: OAuth token endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.store = store
        self.login_url = login_url
        self.timeout = timeout
        self._transport = transport
        self._refresh_task: Optional[asyncio.Task] = None
        self._http = httpx.AsyncClient(
            base_url=config.api_url,
            headers={
                "Authorization": f"Bearer {config.access_token}",
                "Accept": "application/json",
            },
            timeout=float(timeout),
            transport=transport,
        )

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        store: CredentialStore,
        default_api_url: str = DEFAULT_API_URL,
        **kwargs: Any,
    ) -> "QuestradeClient":
        """Build a client from loaded credentials."""
        config = SessionConfig(
            api_url=credentials.api_url or default_api_url,
            access_token=credentials.access_token or "",
            refresh_token=credentials.refresh_token or "",
        )
        return cls(config, store, **kwargs)

    @property
    def has_access_token(self) -> bool:
        return bool(self.config.access_token)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "QuestradeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ==========================================================================
    # Token refresh
    # ==========================================================================

    async def refresh(self) -> TokenResult:
        """
        Exchange the refresh token for new credentials.

        Concurrent callers share a single in-flight exchange.

        Returns:
            TokenResult from the token endpoint

        Raises:
            TokenRefreshError: If the exchange fails; session state is unchanged
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._do_refresh())
            task.add_done_callback(self._refresh_done)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight token refresh")
        return await asyncio.shield(task)

    def _refresh_done(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _do_refresh(self) -> TokenResult:
        result = await exchange_refresh_token(
            self.config.refresh_token,
            login_url=self.login_url,
            timeout=float(self.timeout),
            transport=self._transport,
        )

        self.config.access_token = result.access_token
        self.config.refresh_token = result.refresh_token
        self.config.api_url = result.api_server

        self._http.base_url = httpx.URL(result.api_server)
        self._http.headers["Authorization"] = f"Bearer {result.access_token}"

        self.store.save(result.refresh_token, result.access_token, result.api_server)
        return result

    # ==========================================================================
    # Requests
    # ==========================================================================

    async def request(self, path: str, params: Optional[dict] = None) -> Any:
        """
        Make an authenticated GET request to the Questrade API.

        Args:
            path: Path relative to the API server (e.g. '/v1/accounts')
            params: Optional query parameters

        Returns:
            Parsed JSON response

        Raises:
            AuthorizationError: If the access token was rejected (HTTP 401)
            RequestError: On transport failure or any other non-2xx response
        """
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as e:
            raise RequestError(f"Request failed: GET {path}: {e}") from e

        # Log non-sensitive request info
        logger.debug(f"GET {path} -> {response.status_code}")

        if response.is_error:
            body = _response_body(response)
            error_cls = AuthorizationError if response.status_code == 401 else RequestError
            raise error_cls(
                f"Request failed with status code {response.status_code}: GET {path}: "
                f"{json.dumps(body) if not isinstance(body, str) else body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RequestError(
                f"Request failed: GET {path}: invalid JSON response",
                status_code=response.status_code,
                body=response.text,
            ) from e

    # ==========================================================================
    # Account Endpoints
    # ==========================================================================

    async def get_accounts(self) -> list[dict]:
        """Get all accounts."""
        response = await self.request("/v1/accounts")
        return response.get("accounts")

    async def get_positions(self, account_number: str) -> list[dict]:
        """Get positions for an account."""
        response = await self.request(f"/v1/accounts/{account_number}/positions")
        return response.get("positions")

    async def get_balances(self, account_number: str) -> list[dict]:
        """
        Get combined balances for an account.

        The endpoint also returns per-currency and start-of-day balances;
        only combinedBalances is returned.
        """
        response = await self.request(f"/v1/accounts/{account_number}/balances")
        return response.get("combinedBalances")

    async def get_orders(
        self,
        account_number: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        state_filter: Optional[str] = None,
    ) -> list[dict]:
        """
        Get orders for an account.

        Args:
            account_number: Account number
            start_time: Start of the order history window (ISO format)
            end_time: End of the order history window (ISO format)
            state_filter: All, Open or Closed

        Returns:
            List of orders
        """
        params = {}
        if start_time:
            params["startTime"] = start_time
        if end_time:
            params["endTime"] = end_time
        if state_filter:
            params["stateFilter"] = state_filter
        response = await self.request(
            f"/v1/accounts/{account_number}/orders", params=params if params else None
        )
        return response.get("orders")

    # ==========================================================================
    # Market Data Endpoints
    # ==========================================================================

    async def get_quotes(self, symbol_ids: list[int]) -> list[dict]:
        """Get quotes for one or more symbol IDs."""
        ids = ",".join(str(symbol_id) for symbol_id in symbol_ids)
        response = await self.request(f"/v1/markets/quotes/{ids}")
        return response.get("quotes")

    async def search_symbols(self, prefix: str, offset: int = 0) -> list[dict]:
        """
        Search symbols by prefix.

        Args:
            prefix: Symbol prefix (e.g., 'AAPL')
            offset: Result offset; not advanced automatically

        Returns:
            List of matching symbols
        """
        response = await self.request(
            "/v1/symbols/search", params={"prefix": prefix, "offset": offset}
        )
        return response.get("symbols")

    async def get_symbol(self, symbol_id: int) -> list[dict]:
        """Get details for a symbol ID."""
        response = await self.request(f"/v1/symbols/{symbol_id}")
        return response.get("symbols")

    async def get_candles(
        self,
        symbol_id: int,
        start_time: str,
        end_time: str,
        interval: str,
    ) -> list[dict]:
        """
        Get historical candles for a symbol.

        Args:
            symbol_id: Symbol ID
            start_time: Start time (ISO format)
            end_time: End time (ISO format)
            interval: Candle interval (OneMinute, FiveMinutes, OneDay, ...)

        Returns:
            List of OHLCV candles
        """
        response = await self.request(
            f"/v1/markets/candles/{symbol_id}",
            params={"startTime": start_time, "endTime": end_time, "interval": interval},
        )
        return response.get("candles")


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
