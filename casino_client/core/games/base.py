"""
Shared machinery for the game round protocols.

A protocol instance drives one game surface. It allows a single action in
flight, relays the authority's round state untouched between actions of the
same round, and hands the balance from every terminal result to the
AccountState.
"""

import copy
from typing import Any, Awaitable, Callable, ClassVar, Dict, Iterable, Optional, Tuple

import pydantic
from pydantic import BaseModel, TypeAdapter

from casino_client.core.account import AccountState
from casino_client.core.betting import BetGuard
from casino_client.core.exceptions import (
    ActionInProgress,
    RoundStateError,
    SessionExpired,
    TransportError,
    ValidationError,
)
from casino_client.core.logger import get_logger
from casino_client.core.transport import TransportClient

logger = get_logger("games")


class Card(BaseModel):
    suit: str
    rank: str


class GameResult(BaseModel):
    """Fields every result carries. Settled results override is_terminal."""

    is_terminal: ClassVar[bool] = False
    message: str = ""


class SettledResult(GameResult):
    is_terminal: ClassVar[bool] = True
    coins: int
    is_bankrupt: bool = False
    payout: float = 0


class RoundState:
    """
    The authority's round payload, kept exactly as received.

    Both the stored copy and every copy handed out are deep copies, so
    nothing a caller does to a returned dict can reach the next request.
    """

    def __init__(self, payload: Dict[str, Any]):
        self._payload = copy.deepcopy(payload)

    def payload(self) -> Dict[str, Any]:
        return copy.deepcopy(self._payload)

    def get(self, key: str, default=None):
        return copy.deepcopy(self._payload.get(key, default))

    def __contains__(self, key):
        return key in self._payload

    def __eq__(self, other):
        if isinstance(other, RoundState):
            return self._payload == other._payload
        return NotImplemented

    def __repr__(self):
        return f"{type(self).__name__}(keys={sorted(self._payload)})"


class RoundProtocol:
    """
    Base for all five games.

    Subclasses set `game`, `result_adapter` and, for stateful games,
    `state_class` and `state_keys`. `state_keys = None` relays the whole
    response object as the round state.
    """

    game: ClassVar[str] = ""
    result_adapter: ClassVar[TypeAdapter] = None
    state_class: ClassVar[type] = RoundState
    state_keys: ClassVar[Optional[Tuple[str, ...]]] = ()

    def __init__(self, transport: TransportClient, account: AccountState, guard: BetGuard):
        self.transport = transport
        self.account = account
        self.guard = guard
        self.round_state: Optional[RoundState] = None
        self.last_result: Optional[GameResult] = None
        self.bet: Optional[int] = None
        self._busy = False
        self._generation = 0

    # ==================== Round status ====================

    @property
    def busy(self) -> bool:
        """True while a request is outstanding; the triggering control should be disabled."""
        return self._busy

    @property
    def in_round(self) -> bool:
        return self.round_state is not None

    def abandon(self):
        """Forget the current round. A response still in flight will not install state."""
        if self.round_state is not None:
            logger.debug(f"{self.game}: round abandoned")
        self._generation += 1
        self.round_state = None
        self.last_result = None
        self.bet = None

    def _require_idle(self):
        if self._busy:
            raise ActionInProgress()

    def _require_round(self) -> RoundState:
        if self.round_state is None:
            raise RoundStateError("No round in progress")
        return self.round_state

    def _require_no_round(self):
        if self.round_state is not None:
            raise RoundStateError("Finish the current round first")

    def _checked_bet(self, bet) -> int:
        return self.guard.validate(bet, self.account.coins)

    # ==================== Request / response ====================

    def parse_result(self, data: Any) -> GameResult:
        try:
            return self.result_adapter.validate_python(data)
        except pydantic.ValidationError as e:
            logger.error(f"{self.game}: unexpected response shape: {e.error_count()} error(s)")
            raise TransportError("The server sent an unexpected game result.") from e

    def extract_round_state(self, data: Dict[str, Any]) -> RoundState:
        if isinstance(data.get("game_state"), dict):
            return self.state_class(data["game_state"])
        if self.state_keys is None:
            return self.state_class(data)
        return self.state_class({k: data[k] for k in self.state_keys if k in data})

    async def _submit(self, send: Callable[[], Awaitable[Any]]) -> GameResult:
        """
        Run one action. Round state only changes once a well-formed response
        is in hand; any failure except SessionExpired leaves it as it was.
        """
        self._require_idle()
        self._busy = True
        generation = self._generation
        try:
            data = await send()
            result = self.parse_result(data)
        except SessionExpired:
            self.round_state = None
            self.bet = None
            raise
        finally:
            self._busy = False

        if result.is_terminal and self.account.profile is not None:
            self.account.apply_coin_update(result.coins)

        if generation != self._generation:
            logger.info(f"{self.game}: dropping response for an abandoned round")
            return result

        self.last_result = result
        if result.is_terminal:
            self.round_state = None
            self.bet = None
        else:
            self.round_state = self.extract_round_state(data)
        return result


def normalize_choice(value, options: Iterable) -> Any:
    """
    Match a bet value against a fixed option set.
    Strings are compared case-insensitively; numeric strings match ints.
    Returns the canonical option or raises KeyError.
    """
    if isinstance(value, str):
        value = value.strip().lower()
        if value.lstrip("-").isdigit():
            value = int(value)
    if isinstance(value, bool):
        raise KeyError(value)
    for option in options:
        if option == value and type(option) is type(value):
            return option
    raise KeyError(value)


def validate_bet_choice(options: Dict[str, Tuple], bet_type: str, bet_value):
    """Check a (bet_type, bet_value) pair against a game's fixed option table."""
    bet_type = (bet_type or "").strip().lower()
    if bet_type not in options:
        raise ValidationError(f"Invalid bet type: {bet_type}")
    try:
        bet_value = normalize_choice(bet_value, options[bet_type])
    except KeyError:
        raise ValidationError(f"Invalid {bet_type} bet: {bet_value}") from None
    return bet_type, bet_value
