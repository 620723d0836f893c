"""
Coin request workflow: pending -> approved | denied.

The authority enforces one pending request per user. The client reloads the
user's requests before every submission and refuses a second one while one is
pending; otherwise it passes the authority's rejection through word for word.
The cached list is dropped whenever the account loses its profile.
"""

from typing import List, Optional

from casino_client.config import CoinRequestConfig
from casino_client.core.account import AccountState
from casino_client.core.exceptions import (
    PendingRequestExists,
    PermissionDenied,
    ValidationError,
)
from casino_client.core.logger import get_logger
from casino_client.core.models import CoinRequest, parse_response
from casino_client.core.transport import TransportClient

logger = get_logger("coin_requests")


class CoinRequestWorkflow:
    def __init__(self, transport: TransportClient, account: AccountState, config: CoinRequestConfig):
        self.transport = transport
        self.account = account
        self.config = config
        self.requests: List[CoinRequest] = []
        account.subscribe(self._handle_account_change)

    def _handle_account_change(self, account: AccountState):
        # Requests belong to the signed-in user only
        if account.profile is None:
            self.requests = []

    @property
    def amount_presets(self) -> List[int]:
        return list(self.config.presets)

    @property
    def default_amount(self) -> int:
        return self.config.default_amount

    # ==================== Requester side ====================

    async def my_requests(self) -> List[CoinRequest]:
        data = await self.transport.get_my_coin_requests()
        self.requests = parse_response(List[CoinRequest], data, "coin request list")
        return self.requests

    def pending_request(self) -> Optional[CoinRequest]:
        return next((r for r in self.requests if r.is_pending), None)

    def has_pending(self) -> bool:
        return self.pending_request() is not None

    async def submit(self, amount: int, reason: str = "") -> CoinRequest:
        """
        Ask staff for coins.

        Raises:
            PendingRequestExists: a pending request is already on record.
            ValidationError: amount below the minimum.
            ApiError: the authority refused it (message passed through).
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("Amount must be a whole number of coins")
        if amount < self.config.min_amount:
            raise ValidationError(f"Minimum request is {self.config.min_amount} coins")

        # Staff may have reviewed a request since the list was last loaded
        await self.my_requests()
        if self.has_pending():
            raise PendingRequestExists()

        data = await self.transport.request_coins(amount, reason.strip())
        request = parse_response(CoinRequest, data, "coin request")
        self.requests = [request] + [r for r in self.requests if r.id != request.id]
        logger.info(f"Coin request #{request.id} submitted for {amount} coins")
        return request

    async def request_bankruptcy_relief(self) -> CoinRequest:
        """The fixed request offered once the balance has run out."""
        return await self.submit(self.config.bankruptcy_amount, self.config.bankruptcy_reason)

    async def check_for_approval(self) -> bool:
        """
        Reload own requests and resync the account if one that was pending has
        since been approved. Returns True when a resync happened.
        """
        previously_pending = {r.id for r in self.requests if r.is_pending}
        await self.my_requests()
        approved = [
            r for r in self.requests if r.id in previously_pending and r.status == "approved"
        ]
        if approved:
            await self.account.refresh()
            logger.info(f"Coin request #{approved[0].id} approved; balance resynced")
            return True
        return False

    # ==================== Staff side ====================

    def _require_staff(self):
        if not self.account.is_staff:
            raise PermissionDenied()

    async def pending_requests(self) -> List[CoinRequest]:
        self._require_staff()
        data = await self.transport.get_pending_requests()
        return parse_response(List[CoinRequest], data, "coin request list")

    async def approve(self, request_id: int) -> CoinRequest:
        """Approve a request. Only the request changes; see resync_after_review."""
        self._require_staff()
        data = await self.transport.approve_request(request_id)
        request = parse_response(CoinRequest, data, "coin request")
        logger.info(f"Coin request #{request_id} approved")
        return request

    async def deny(self, request_id: int) -> CoinRequest:
        self._require_staff()
        data = await self.transport.deny_request(request_id)
        request = parse_response(CoinRequest, data, "coin request")
        logger.info(f"Coin request #{request_id} denied")
        return request

    async def resync_after_review(self, request: CoinRequest) -> bool:
        """Refresh the account when an approval credited the logged-in user."""
        if request.status == "approved" and request.user.id == self.account.user_id:
            await self.account.refresh()
            return True
        return False
