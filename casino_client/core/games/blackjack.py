"""
Blackjack round protocol.

deal starts a round and fixes the bet; hit, stand and double resend that bet
together with the round state from the previous response. The undealt deck
and the dealer's hole card live only inside that relayed state.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from casino_client.core.exceptions import BetRejected, RoundStateError
from casino_client.core.games.base import (
    Card,
    GameResult,
    RoundProtocol,
    RoundState,
    SettledResult,
)


class BlackjackInProgress(GameResult):
    status: Literal["playing"]
    player_hand: List[Card]
    dealer_hand: List[Card] = Field(default_factory=list)  # visible cards only
    player_value: int
    dealer_visible: Optional[int] = None


class BlackjackSettled(SettledResult):
    status: Literal["win", "lose", "bust", "blackjack", "push"]
    player_hand: List[Card]
    dealer_hand: List[Card] = Field(default_factory=list)
    player_value: int
    dealer_value: Optional[int] = None

    @property
    def player_won(self) -> bool:
        return self.status in ("win", "blackjack")


BlackjackResult = Annotated[
    Union[BlackjackInProgress, BlackjackSettled], Field(discriminator="status")
]

_cards = TypeAdapter(List[Card])


class BlackjackRoundState(RoundState):
    @property
    def deck(self) -> List[Card]:
        return _cards.validate_python(self.get("deck", []))

    @property
    def player_hand(self) -> List[Card]:
        return _cards.validate_python(self.get("player_hand", []))

    @property
    def full_dealer_hand(self) -> List[Card]:
        return _cards.validate_python(self.get("full_dealer_hand", []))


class BlackjackProtocol(RoundProtocol):
    game = "blackjack"
    result_adapter = TypeAdapter(BlackjackResult)
    state_class = BlackjackRoundState
    state_keys = ("deck", "player_hand", "full_dealer_hand")

    async def deal(self, bet: int) -> GameResult:
        self._require_idle()
        self._require_no_round()
        bet = self._checked_bet(bet)
        result = await self._submit(lambda: self.transport.play_blackjack("deal", bet))
        if self.round_state is not None:
            self.bet = bet
        return result

    async def hit(self) -> GameResult:
        return await self._act("hit")

    async def stand(self) -> GameResult:
        return await self._act("stand")

    async def double(self) -> GameResult:
        self._require_idle()
        self._require_round()
        last = self.last_result
        if not isinstance(last, BlackjackInProgress) or len(last.player_hand) != 2:
            raise RoundStateError("You can only double on your first two cards")
        if self.account.coins < self.bet:
            raise BetRejected("Insufficient coins to double")
        return await self._act("double")

    def can_double(self) -> bool:
        last = self.last_result
        return (
            self.round_state is not None
            and isinstance(last, BlackjackInProgress)
            and len(last.player_hand) == 2
            and self.account.coins >= self.bet
        )

    async def _act(self, action: str) -> GameResult:
        self._require_idle()
        state = self._require_round()
        bet = self.bet
        return await self._submit(
            lambda: self.transport.play_blackjack(action, bet, state.payload())
        )
