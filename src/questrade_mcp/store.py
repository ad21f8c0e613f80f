"""
Credential storage for the Questrade API.

Tokens are persisted to a JSON file so a rotated refresh token survives
restarts. The file is preferred over environment variables; any I/O failure
degrades to the environment rather than stopping the server.
"""

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

TOKEN_FILE_NAME = "tokens.json"


@dataclass
class Credentials:
    """Refresh token, access token and API server known at startup."""

    refresh_token: Optional[str] = None
    access_token: Optional[str] = None
    api_url: Optional[str] = None
    last_updated: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert credentials to the on-disk dictionary format."""
        data = {"refreshToken": self.refresh_token}
        if self.access_token:
            data["accessToken"] = self.access_token
        if self.api_url:
            data["apiUrl"] = self.api_url
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Credentials":
        """Create credentials from the on-disk dictionary format."""
        last_updated = data.get("lastUpdated")
        return cls(
            refresh_token=data.get("refreshToken") or None,
            access_token=data.get("accessToken") or None,
            api_url=data.get("apiUrl") or None,
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )


class CredentialSource(Protocol):
    """Something credentials can be read from."""

    name: str

    def read(self) -> Optional[Credentials]: ...


class FileCredentialSource:
    """Reads credentials from the token file."""

    name = "file"

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> Optional[Credentials]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return Credentials.from_dict(data)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to read token file {self.path}: {e}")
            return None


class EnvironmentCredentialSource:
    """Reads credentials from QUESTRADE_* settings."""

    name = "environment"

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

    def read(self) -> Optional[Credentials]:
        cfg = self._settings or get_settings()
        return Credentials(
            refresh_token=cfg.questrade_refresh_token or None,
            access_token=cfg.questrade_access_token or None,
            api_url=cfg.questrade_api_url or None,
        )


def resolve_token_dir(override: Optional[Path] = None) -> Path:
    """
    Pick the directory holding the token file.

    Args:
        override: Explicit directory, takes precedence when given

    Returns:
        The override, else ~/.questrade-mcp, else <tempdir>/questrade-mcp
        when no home directory can be determined
    """
    if override:
        return Path(override).expanduser()
    try:
        return Path.home() / ".questrade-mcp"
    except (RuntimeError, KeyError):
        return Path(tempfile.gettempdir()) / "questrade-mcp"


class CredentialStore:
    """Loads and persists Questrade credentials, never raising to the caller."""

    def __init__(
        self,
        token_dir: Optional[Path] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize CredentialStore.

        Args:
            token_dir: Directory for tokens.json (overrides QUESTRADE_TOKEN_DIR)
            settings: Settings used for the directory and environment fallback;
                read fresh from the environment on each load when omitted
        """
        if token_dir is None:
            token_dir = (settings or get_settings()).questrade_token_dir
        self.token_dir = resolve_token_dir(token_dir)
        self.token_file_path = self.token_dir / TOKEN_FILE_NAME

        try:
            self.token_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create token directory {self.token_dir}: {e}")

        self.sources: list[CredentialSource] = [
            FileCredentialSource(self.token_file_path),
            EnvironmentCredentialSource(settings),
        ]

    def load(self) -> Credentials:
        """
        Load credentials from the first source that has a refresh token.

        Returns:
            Credentials; refresh_token is None if no source provided one
        """
        credentials = Credentials()
        for source in self.sources:
            found = source.read()
            if found is None:
                continue
            credentials = found
            if found.refresh_token:
                logger.debug(f"Credentials loaded from {source.name}")
                return found
        logger.debug("No refresh token found in any credential source")
        return credentials

    def save(
        self,
        refresh_token: str,
        access_token: Optional[str] = None,
        api_url: Optional[str] = None,
    ) -> None:
        """Overwrite the token file. Write failures are logged, not raised."""
        credentials = Credentials(
            refresh_token=refresh_token,
            access_token=access_token,
            api_url=api_url,
            last_updated=datetime.now(timezone.utc),
        )
        try:
            self.token_dir.mkdir(parents=True, exist_ok=True)
            with open(self.token_file_path, "w", encoding="utf-8") as f:
                json.dump(credentials.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save tokens to {self.token_file_path}: {e}")
            return

        # Owner read/write only (Unix-like systems)
        try:
            os.chmod(self.token_file_path, stat.S_IRUSR | stat.S_IWUSR)
        except (OSError, AttributeError):
            pass

        logger.debug("Tokens saved to file")

    def has_token_file(self) -> bool:
        """Check whether a token file exists."""
        try:
            return self.token_file_path.is_file()
        except OSError:
            return False
