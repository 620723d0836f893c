"""
Credential pair and the stores that keep it across restarts.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import orjson

from casino_client.core.logger import get_logger

logger = get_logger("credentials")

# Fixed key names in durable storage
ACCESS_KEY = "accessToken"
REFRESH_KEY = "refreshToken"


@dataclass(frozen=True)
class CredentialPair:
    access: str
    refresh: str

    def with_access(self, access: str, refresh: Optional[str] = None) -> "CredentialPair":
        return CredentialPair(access=access, refresh=refresh or self.refresh)

    def __repr__(self):
        return "CredentialPair(access=***, refresh=***)"


class CredentialStore:
    """Interface for durable credential storage."""

    def load(self) -> Optional[CredentialPair]:
        raise NotImplementedError

    def save(self, pair: CredentialPair) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    """Keeps the pair for the life of the process only."""

    def __init__(self, pair: Optional[CredentialPair] = None):
        self.pair = pair

    def load(self) -> Optional[CredentialPair]:
        return self.pair

    def save(self, pair: CredentialPair) -> None:
        self.pair = pair

    def clear(self) -> None:
        self.pair = None


class FileCredentialStore(CredentialStore):
    """
    JSON file holding {"accessToken": ..., "refreshToken": ...}, readable by
    the owner only. An unreadable or partial file counts as no session.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[CredentialPair]:
        try:
            data = orjson.loads(self.path.read_bytes())
        except FileNotFoundError:
            return None
        except orjson.JSONDecodeError:
            logger.warning(f"Ignoring unreadable credential file {self.path}")
            return None

        access = data.get(ACCESS_KEY) if isinstance(data, dict) else None
        refresh = data.get(REFRESH_KEY) if isinstance(data, dict) else None
        if not access or not refresh:
            return None
        return CredentialPair(access=access, refresh=refresh)

    def save(self, pair: CredentialPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps({ACCESS_KEY: pair.access, REFRESH_KEY: pair.refresh}))
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.path}")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
