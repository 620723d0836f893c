"""
Video poker (jacks or better) round protocol: deal, then one draw.
"""

from typing import Annotated, Iterable, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from casino_client.core.exceptions import ValidationError
from casino_client.core.games.base import (
    Card,
    GameResult,
    RoundProtocol,
    RoundState,
    SettledResult,
)

HAND_SIZE = 5


class PokerDealt(GameResult):
    status: Literal["playing"]
    hand: List[Card]


class PokerSettled(SettledResult):
    status: Literal["win", "lose"]
    hand: List[Card]
    hand_type: Optional[str] = None
    multiplier: Optional[float] = None

    @property
    def hand_name(self) -> str:
        return (self.hand_type or "").replace("_", " ").title()


PokerResult = Annotated[Union[PokerDealt, PokerSettled], Field(discriminator="status")]

_cards = TypeAdapter(List[Card])


class PokerRoundState(RoundState):
    @property
    def hand(self) -> List[Card]:
        return _cards.validate_python(self.get("hand", []))

    @property
    def deck(self) -> List[Card]:
        return _cards.validate_python(self.get("deck", []))


class PokerProtocol(RoundProtocol):
    game = "poker"
    result_adapter = TypeAdapter(PokerResult)
    state_class = PokerRoundState
    state_keys = ("hand", "deck")

    async def deal(self, bet: int) -> GameResult:
        self._require_idle()
        self._require_no_round()
        bet = self._checked_bet(bet)
        result = await self._submit(lambda: self.transport.play_poker("deal", bet))
        if self.round_state is not None:
            self.bet = bet
        return result

    async def draw(self, hold_indices: Iterable[int] = ()) -> GameResult:
        """Replace every card not held. Indices refer to the dealt hand (0-4)."""
        self._require_idle()
        state = self._require_round()
        holds = self._checked_holds(hold_indices)
        bet = self.bet
        return await self._submit(
            lambda: self.transport.play_poker("draw", bet, holds, state.payload())
        )

    @staticmethod
    def _checked_holds(hold_indices: Iterable[int]) -> List[int]:
        holds = []
        for index in hold_indices:
            if isinstance(index, bool) or not isinstance(index, int):
                raise ValidationError(f"Invalid card index: {index!r}")
            if not 0 <= index < HAND_SIZE:
                raise ValidationError(f"Card index must be between 0 and {HAND_SIZE - 1}")
            if index in holds:
                raise ValidationError(f"Card {index} is already held")
            holds.append(index)
        return sorted(holds)
