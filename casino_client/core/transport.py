"""
Authenticated HTTP transport to the authority.

Every authenticated call carries the current access token. A 401 enters a
single-flight refresh: the first caller to see an expired token refreshes it
once, anyone else who saw the same token waits on the lock and reuses the
outcome, and the failed call is retried exactly once.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import httpx

from casino_client.config import AppConfig
from casino_client.core.credentials import CredentialPair, CredentialStore
from casino_client.core.exceptions import (
    ApiError,
    SessionExpired,
    TransportError,
)
from casino_client.core.logger import get_logger

logger = get_logger("transport")

GENERIC_ERROR = "Request failed"


def extract_error_message(response: httpx.Response) -> str:
    """
    Pull the authority's message out of an error body.

    Prefers "error", then "detail"; a body shaped like form validation errors
    ({"field": ["message", ...]}) is flattened. Anything else gets the generic
    text.
    """
    try:
        data = response.json()
    except ValueError:
        return GENERIC_ERROR

    if not isinstance(data, dict):
        return GENERIC_ERROR

    for key in ("error", "detail"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value

    messages = []
    for value in data.values():
        if isinstance(value, list):
            messages.extend(str(item) for item in value if isinstance(item, str))
        elif isinstance(value, str):
            messages.append(value)
    return " ".join(messages) if messages else GENERIC_ERROR


class TransportClient:
    """Owns the credential pair and the HTTP connection pool."""

    def __init__(
        self,
        config: AppConfig,
        store: CredentialStore,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.store = store
        self._credentials: Optional[CredentialPair] = store.load()
        self._refresh_lock = asyncio.Lock()
        self._expiry_listeners: List[Callable[[], None]] = []
        self._client = httpx.AsyncClient(
            base_url=config.api.base_url.rstrip("/"),
            timeout=httpx.Timeout(config.api.timeout),
            transport=http_transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    # ==================== Credentials ====================

    @property
    def credentials(self) -> Optional[CredentialPair]:
        return self._credentials

    def is_authenticated(self) -> bool:
        return self._credentials is not None

    def set_credentials(self, pair: CredentialPair):
        self._credentials = pair
        self.store.save(pair)

    def clear_credentials(self):
        self._credentials = None
        self.store.clear()

    def on_session_expired(self, listener: Callable[[], None]):
        """Register a callback fired when a refresh fails and credentials are dropped."""
        self._expiry_listeners.append(listener)

    def _expire_session(self):
        self.clear_credentials()
        for listener in list(self._expiry_listeners):
            listener()

    # ==================== Core call ====================

    async def _send(
        self, method: str, endpoint: str, payload: Optional[dict], access: Optional[str]
    ) -> httpx.Response:
        headers = {}
        if access:
            headers["Authorization"] = f"Bearer {access}"
        try:
            return await self._client.request(
                method,
                endpoint,
                json=payload,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out: {e}")
            raise TransportError("The server took too long to respond. Please try again.") from e
        except httpx.RequestError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise TransportError("Could not reach the server. Please try again.") from e

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("The server sent an unreadable response.") from e

    async def call(
        self,
        method: str,
        endpoint: str,
        payload: Optional[dict] = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Issue one logical call to the authority and return the decoded JSON.

        Raises:
            SessionExpired: no credentials, or the refresh failed.
            ApiError: non-success status from the authority.
            TransportError: network failure, timeout or unreadable body.
        """
        access = None
        if authenticated:
            if self._credentials is None:
                raise SessionExpired()
            access = self._credentials.access

        logger.debug(f"{method} {endpoint}")
        response = await self._send(method, endpoint, payload, access)

        if response.status_code == 401 and authenticated:
            new_access = await self._refresh_after_expiry(access)
            response = await self._send(method, endpoint, payload, new_access)
            if response.status_code == 401:
                logger.warning(f"{method} {endpoint} rejected again after refresh")
                self._expire_session()
                raise SessionExpired()

        if not response.is_success:
            message = extract_error_message(response)
            logger.info(f"{method} {endpoint} -> {response.status_code}: {message}")
            raise ApiError(message, response.status_code)

        return self._decode(response)

    async def _refresh_after_expiry(self, stale_access: str) -> str:
        """Return a usable access token, refreshing at most once per stale token."""
        async with self._refresh_lock:
            current = self._credentials
            if current is None:
                raise SessionExpired()
            if current.access != stale_access:
                # Someone else already refreshed this generation
                return current.access

            try:
                response = await self._send(
                    "POST", "/auth/refresh/", {"refresh": current.refresh}, None
                )
            except TransportError as e:
                logger.warning("Token refresh could not reach the server")
                self._expire_session()
                raise SessionExpired() from e

            data = None
            if response.is_success:
                try:
                    data = response.json()
                except ValueError:
                    data = None

            if not isinstance(data, dict) or not data.get("access"):
                logger.warning(f"Token refresh rejected ({response.status_code}); clearing session")
                self._expire_session()
                raise SessionExpired()

            self.set_credentials(current.with_access(data["access"], data.get("refresh")))
            logger.info("Access token refreshed")
            return self._credentials.access

    # ==================== Auth ====================

    async def login(self, username: str, password: str) -> CredentialPair:
        data = await self.call(
            "POST",
            "/auth/login/",
            {"username": username, "password": password},
            authenticated=False,
        )
        pair = self._token_pair(data)
        self.set_credentials(pair)
        logger.info(f"Logged in as {username}")
        return pair

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = await self.call(
            "POST",
            "/auth/register/",
            {
                "username": username,
                "email": email,
                "password": password,
                "password_confirm": password,
            },
            authenticated=False,
        )
        self.set_credentials(self._token_pair(data.get("tokens") if isinstance(data, dict) else None))
        logger.info(f"Registered new account {username}")
        return data

    @staticmethod
    def _token_pair(data: Any) -> CredentialPair:
        if not isinstance(data, dict) or not data.get("access") or not data.get("refresh"):
            raise TransportError("The server sent an unexpected login response.")
        return CredentialPair(access=data["access"], refresh=data["refresh"])

    def logout(self):
        self.clear_credentials()
        logger.info("Logged out")

    # ==================== Account ====================

    async def get_profile(self) -> Dict[str, Any]:
        return await self.call("GET", "/profile/")

    async def get_history(self) -> List[Dict[str, Any]]:
        return await self.call("GET", "/history/")

    async def get_education(self) -> Dict[str, Any]:
        return await self.call("GET", "/education/")

    # ==================== Coin requests ====================

    async def request_coins(self, amount: int, reason: str = "") -> Dict[str, Any]:
        return await self.call("POST", "/coins/request/", {"amount": amount, "reason": reason})

    async def get_my_coin_requests(self) -> List[Dict[str, Any]]:
        return await self.call("GET", "/coins/my-requests/")

    async def get_pending_requests(self) -> List[Dict[str, Any]]:
        return await self.call("GET", "/admin/pending-requests/")

    async def approve_request(self, request_id: int) -> Dict[str, Any]:
        return await self.call("POST", f"/admin/approve/{request_id}/")

    async def deny_request(self, request_id: int) -> Dict[str, Any]:
        return await self.call("POST", f"/admin/deny/{request_id}/")

    # ==================== Games ====================

    async def play_blackjack(
        self, action: str, bet: int, game_state: Optional[dict] = None
    ) -> Dict[str, Any]:
        payload = {"action": action, "bet": bet}
        if game_state is not None:
            payload["game_state"] = game_state
        return await self.call("POST", "/games/blackjack/", payload)

    async def play_poker(
        self,
        action: str,
        bet: int,
        hold_indices: Optional[List[int]] = None,
        game_state: Optional[dict] = None,
    ) -> Dict[str, Any]:
        payload = {"action": action, "bet": bet}
        if hold_indices is not None:
            payload["hold_indices"] = hold_indices
        if game_state is not None:
            payload["game_state"] = game_state
        return await self.call("POST", "/games/poker/", payload)

    async def play_roulette(self, bet_type: str, bet_value, bet: int) -> Dict[str, Any]:
        return await self.call(
            "POST", "/games/roulette/", {"bet_type": bet_type, "bet_value": bet_value, "bet": bet}
        )

    async def play_dice(self, bet_type: str, bet_value, bet: int) -> Dict[str, Any]:
        return await self.call(
            "POST", "/games/dice/", {"bet_type": bet_type, "bet_value": bet_value, "bet": bet}
        )

    async def play_minesweeper(
        self,
        action: str,
        bet: int,
        grid_size: Optional[int] = None,
        num_mines: Optional[int] = None,
        tile_index: Optional[int] = None,
        game_state: Optional[dict] = None,
    ) -> Dict[str, Any]:
        payload = {"action": action, "bet": bet}
        optional = {
            "grid_size": grid_size,
            "num_mines": num_mines,
            "tile_index": tile_index,
            "game_state": game_state,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return await self.call("POST", "/games/minesweeper/", payload)
