"""
Dice: bet on the total of two dice. One request per roll, no round state.
"""

from typing import Dict, Tuple, Union

from pydantic import TypeAdapter

from casino_client.core.games.base import RoundProtocol, SettledResult, validate_bet_choice
from casino_client.core.odds import AdvisoryPayout, dice_preview

BET_OPTIONS: Dict[str, Tuple] = {
    "over": (6, 7, 8, 9, 10),   # total strictly above the value
    "under": (5, 6, 7, 8, 9),   # total strictly below the value
    "seven": (7,),
    "odd_even": ("odd", "even"),
    "exact": tuple(range(2, 13)),
}


class DiceResult(SettledResult):
    die1: int
    die2: int
    total: int
    won: bool
    bet_type: str
    bet_value: Union[int, str]


class DiceProtocol(RoundProtocol):
    game = "dice"
    result_adapter = TypeAdapter(DiceResult)

    async def roll(self, bet_type: str, bet_value, bet: int) -> DiceResult:
        self._require_idle()
        bet_type, bet_value = validate_bet_choice(BET_OPTIONS, bet_type, bet_value)
        bet = self._checked_bet(bet)
        return await self._submit(lambda: self.transport.play_dice(bet_type, bet_value, bet))

    @staticmethod
    def preview(bet_type: str, bet_value=None) -> AdvisoryPayout:
        return dice_preview(bet_type, bet_value)

