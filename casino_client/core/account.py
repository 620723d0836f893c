"""
Account and bankroll state.

One AccountState per session, injected into every game protocol and the
coin-request workflow. It is the only writer of the coin balance: the balance
changes by replacement with a value the authority returned, never by local
arithmetic on deltas.
"""

from enum import Enum
from typing import Callable, List, Optional

from casino_client.core.exceptions import ApiError, SessionExpired, TransportError
from casino_client.core.logger import get_logger
from casino_client.core.models import (
    AccountProfile,
    EducationContent,
    GameHistoryEntry,
    parse_response,
)
from casino_client.core.transport import TransportClient

logger = get_logger("account")


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ANONYMOUS = "anonymous"
    DESTROYED = "destroyed"


class AccountState:
    """Holds the current user profile and derives bankrupt status."""

    def __init__(self, transport: TransportClient):
        self.transport = transport
        self.status = SessionStatus.UNINITIALIZED
        self._profile: Optional[AccountProfile] = None
        self._listeners: List[Callable[["AccountState"], None]] = []
        transport.on_session_expired(self._handle_session_expired)

    # ==================== Read access ====================

    @property
    def profile(self) -> Optional[AccountProfile]:
        return self._profile

    @property
    def coins(self) -> int:
        """Current balance; 0 when no profile is loaded."""
        return self._profile.coins if self._profile else 0

    @property
    def is_bankrupt(self) -> bool:
        return self._profile.is_bankrupt if self._profile else False

    @property
    def is_staff(self) -> bool:
        return bool(self._profile and self._profile.user.is_staff)

    @property
    def user_id(self) -> Optional[int]:
        return self._profile.user.id if self._profile else None

    def require_profile(self) -> AccountProfile:
        if self._profile is None:
            raise SessionExpired("Not logged in")
        return self._profile

    # ==================== Change notification ====================

    def subscribe(self, listener: Callable[["AccountState"], None]) -> Callable[[], None]:
        """Call `listener` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    def _set_profile(self, profile: Optional[AccountProfile], status: SessionStatus):
        self._profile = profile
        self.status = status
        self._notify()

    # ==================== Lifecycle ====================

    async def start(self) -> SessionStatus:
        """
        Resolve the startup state from whatever credentials survived the last run.

        A rejected session clears the stored credentials. A network failure keeps
        them (the session may still be valid) and is re-raised so the caller can
        offer a retry.
        """
        if not self.transport.is_authenticated():
            self._set_profile(None, SessionStatus.ANONYMOUS)
            return self.status

        self.status = SessionStatus.LOADING
        try:
            profile = await self._fetch_profile()
        except (SessionExpired, ApiError) as e:
            logger.info(f"Stored session rejected: {e.message}")
            self.transport.logout()
            self._set_profile(None, SessionStatus.ANONYMOUS)
            return self.status
        except TransportError:
            self._set_profile(None, SessionStatus.ANONYMOUS)
            raise

        self._set_profile(profile, SessionStatus.READY)
        return self.status

    async def login(self, username: str, password: str) -> AccountProfile:
        await self.transport.login(username, password)
        profile = await self._fetch_profile()
        self._set_profile(profile, SessionStatus.READY)
        return profile

    async def register(self, username: str, email: str, password: str) -> AccountProfile:
        data = await self.transport.register(username, email, password)
        profile = parse_response(AccountProfile, data.get("profile"), "profile")
        self._set_profile(profile, SessionStatus.READY)
        return profile

    def logout(self):
        self.transport.logout()
        self._set_profile(None, SessionStatus.DESTROYED)

    def _handle_session_expired(self):
        if self._profile is not None or self.status == SessionStatus.READY:
            logger.warning("Session expired; returning to anonymous state")
        self._set_profile(None, SessionStatus.ANONYMOUS)

    # ==================== Balance ====================

    def apply_coin_update(self, coins: int) -> AccountProfile:
        """
        Replace the balance with the value reported by the authority.
        Other statistics are left alone; they only change on refresh().
        """
        profile = self.require_profile()
        self._profile = profile.with_coins(coins)
        logger.debug(f"Balance updated to {coins}")
        self._notify()
        return self._profile

    async def refresh(self) -> AccountProfile:
        """Re-fetch the full profile from the authority."""
        profile = await self._fetch_profile()
        self._set_profile(profile, SessionStatus.READY)
        return profile

    async def _fetch_profile(self) -> AccountProfile:
        data = await self.transport.get_profile()
        return parse_response(AccountProfile, data, "profile")

    # ==================== Other reads ====================

    async def get_history(self) -> List[GameHistoryEntry]:
        data = await self.transport.get_history()
        return parse_response(List[GameHistoryEntry], data, "game history")

    async def get_education(self) -> EducationContent:
        data = await self.transport.get_education()
        return parse_response(EducationContent, data, "education content")
