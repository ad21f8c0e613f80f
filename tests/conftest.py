"""Shared fixtures for the test suite."""

from typing import Callable
from unittest.mock import Mock

import httpx
import pytest

from questrade_mcp.auth import SessionConfig
from questrade_mcp.client import QuestradeClient
from questrade_mcp.store import CredentialStore

from .helpers import API_URL


@pytest.fixture
def store() -> Mock:
    """A CredentialStore stand-in that records saves."""
    return Mock(spec=CredentialStore)


@pytest.fixture
def make_client(store) -> Callable[..., QuestradeClient]:
    """Build a QuestradeClient whose HTTP traffic goes to a handler function."""

    def _make(handler, access_token="old_access", refresh_token="old_refresh", store=store):
        config = SessionConfig(
            api_url=API_URL,
            access_token=access_token,
            refresh_token=refresh_token,
        )
        client = QuestradeClient(config, store, transport=httpx.MockTransport(handler))
        return client

    return _make
