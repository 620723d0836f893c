"""
Roulette: one request per spin, no round state.
"""

from typing import Dict, Literal, Tuple, Union

from pydantic import TypeAdapter

from casino_client.core.games.base import RoundProtocol, SettledResult, validate_bet_choice
from casino_client.core.odds import AdvisoryPayout, roulette_preview

# Bet type -> accepted bet values
BET_OPTIONS: Dict[str, Tuple] = {
    "color": ("red", "black"),
    "odd_even": ("odd", "even"),
    "high_low": ("high", "low"),
    "dozen": (1, 2, 3),
    "number": tuple(range(0, 37)),
}


class RouletteResult(SettledResult):
    result: Union[int, str]
    color: Literal["red", "black", "green"]
    won: bool
    bet_type: str
    bet_value: Union[int, str]


class RouletteProtocol(RoundProtocol):
    game = "roulette"
    result_adapter = TypeAdapter(RouletteResult)

    async def spin(self, bet_type: str, bet_value, bet: int) -> RouletteResult:
        self._require_idle()
        bet_type, bet_value = validate_bet_choice(BET_OPTIONS, bet_type, bet_value)
        bet = self._checked_bet(bet)
        return await self._submit(lambda: self.transport.play_roulette(bet_type, bet_value, bet))

    @staticmethod
    def preview(bet_type: str) -> AdvisoryPayout:
        return roulette_preview(bet_type)

