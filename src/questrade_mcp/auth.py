"""
OAuth token exchange for the Questrade API.

Questrade refresh tokens are single use: every exchange returns a new
refresh token together with the access token and the API server to call.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .errors import TokenRefreshError

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_URL = "https://login.questrade.com/oauth2/token"
DEFAULT_API_URL = "https://api01.iq.questrade.com"


@dataclass
class SessionConfig:
    """Credentials the session currently authenticates with."""

    api_url: str
    access_token: str
    refresh_token: str


@dataclass
class TokenResult:
    """Result of a refresh-token exchange."""

    access_token: str
    refresh_token: str
    api_server: str
    expires_in: Optional[int] = None
    token_type: str = "Bearer"

    @classmethod
    def from_response(cls, data: dict) -> "TokenResult":
        """Create a result from the token endpoint's JSON body."""
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            api_server=data["api_server"],
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type", "Bearer"),
        )


def _error_details(response: httpx.Response) -> str:
    """Render an error body the way the upstream sent it."""
    try:
        return json.dumps(response.json())
    except ValueError:
        return response.text or f"HTTP {response.status_code}"


async def exchange_refresh_token(
    refresh_token: str,
    login_url: str = DEFAULT_LOGIN_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenResult:
    """
    Exchange a refresh token for a new access token.

    Args:
        refresh_token: Current refresh token
        login_url: Token endpoint
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Returns:
        TokenResult with the new tokens and API server

    Raises:
        TokenRefreshError: If the exchange fails or the response is malformed
    """
    logger.info("Refreshing access token...")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                login_url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": refresh_token,
                },
            )
    except httpx.HTTPError as e:
        raise TokenRefreshError(f"Token refresh failed: {json.dumps(str(e))}") from e

    if response.is_error:
        raise TokenRefreshError(f"Token refresh failed: {_error_details(response)}")

    try:
        result = TokenResult.from_response(response.json())
    except (ValueError, KeyError, TypeError) as e:
        raise TokenRefreshError(
            f"Token refresh failed: unexpected response {response.text!r}"
        ) from e

    logger.info("Token refreshed successfully")
    return result
