"""Account-level data returned by the authority."""

from typing import Any, Dict, List, Literal, Optional

import pydantic
from pydantic import BaseModel, Field, TypeAdapter

from casino_client.core.exceptions import TransportError
from casino_client.core.logger import get_logger

logger = get_logger("models")


def parse_response(shape, data: Any, what: str):
    """Validate a response body against `shape`; a mismatch is a TransportError."""
    try:
        return TypeAdapter(shape).validate_python(data)
    except pydantic.ValidationError as e:
        logger.error(f"Unexpected {what} response: {e.error_count()} error(s)")
        raise TransportError(f"The server sent an unexpected {what}.") from e


class UserInfo(BaseModel):
    id: int
    username: str
    email: str = ""
    is_staff: bool = False


class AccountProfile(BaseModel):
    user: UserInfo
    coins: int = Field(ge=0)
    total_wagered: float = 0
    total_won: float = 0
    total_lost: float = 0
    games_played: int = 0
    is_bankrupt: bool = False
    created_at: Optional[str] = None

    def with_coins(self, coins: int) -> "AccountProfile":
        """Copy with a new balance; bankruptcy always follows the balance."""
        return self.model_copy(update={"coins": coins, "is_bankrupt": coins <= 0})


class GameHistoryEntry(BaseModel):
    id: int
    game_type: str
    bet_amount: float
    won: bool
    payout: float = 0
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class Reviewer(BaseModel):
    id: int
    username: str


CoinRequestStatus = Literal["pending", "approved", "denied"]


class CoinRequest(BaseModel):
    id: int
    user: UserInfo
    amount: int
    reason: str = ""
    status: CoinRequestStatus
    reviewed_by: Optional[Reviewer] = None
    created_at: Optional[str] = None
    reviewed_at: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class EducationSection(BaseModel):
    title: str
    content: str


class HouseEdgeBreakdown(BaseModel):
    base_house_edge: str
    our_house_edge: str
    expected_loss_per_100_bets: str


class EducationContent(BaseModel):
    title: str
    sections: List[EducationSection] = Field(default_factory=list)
    math_breakdown: Dict[str, HouseEdgeBreakdown] = Field(default_factory=dict)
