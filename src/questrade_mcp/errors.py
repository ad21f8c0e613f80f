"""Exceptions raised by the Questrade MCP Server."""

from typing import Any, Optional


class QuestradeError(Exception):
    """Base class for all Questrade MCP errors."""


class MissingCredentialsError(QuestradeError):
    """No refresh token is available from any credential source."""


class TokenRefreshError(QuestradeError):
    """The refresh-token exchange failed."""


class RequestError(QuestradeError):
    """An API call failed at the transport level or returned a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthorizationError(RequestError):
    """The API rejected the access token (HTTP 401)."""


class InvalidParamsError(QuestradeError, ValueError):
    """A required tool or prompt argument is missing."""
