"""
Questrade MCP Server

A read-only Model Context Protocol (MCP) server for the Questrade API.
Enables Claude to look up accounts, positions, balances, orders, quotes,
symbols, and candles.
"""

__version__ = "1.0.0"

from .auth import SessionConfig, TokenResult
from .client import QuestradeClient
from .config import Settings, settings
from .errors import (
    AuthorizationError,
    InvalidParamsError,
    MissingCredentialsError,
    QuestradeError,
    RequestError,
    TokenRefreshError,
)
from .store import CredentialStore, Credentials

__all__ = [
    "SessionConfig",
    "TokenResult",
    "QuestradeClient",
    "Settings",
    "settings",
    "CredentialStore",
    "Credentials",
    "QuestradeError",
    "MissingCredentialsError",
    "TokenRefreshError",
    "RequestError",
    "AuthorizationError",
    "InvalidParamsError",
]
