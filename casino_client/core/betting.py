"""
Pre-submission bet checks.

The authority is the final judge of every wager; these checks only stop the
client from sending a bet the live balance cannot cover.
"""

from typing import List

from casino_client.config import BettingConfig
from casino_client.core.exceptions import BetRejected


class BetGuard:
    def __init__(self, config: BettingConfig):
        self.config = config

    def validate(self, bet, balance: int) -> int:
        """
        Check a bet against the table minimum and the current balance.

        Returns:
            The bet as an int.

        Raises:
            BetRejected: the bet is not a whole number, below the minimum, or
                more than the balance.
        """
        if isinstance(bet, bool) or not isinstance(bet, (int, float)):
            raise BetRejected("Bet must be a whole number of coins")
        if isinstance(bet, float) and not bet.is_integer():
            raise BetRejected("Bet must be a whole number of coins")
        bet = int(bet)

        if bet < self.config.min_bet:
            raise BetRejected(f"Minimum bet is {self.config.min_bet}")
        if bet > balance:
            raise BetRejected("Insufficient coins")
        return bet

    def clamp(self, value: int, balance: int) -> int:
        """Keep a typed-in amount within [0, balance]."""
        return min(max(0, int(value)), max(0, balance))

    def presets(self, balance: int) -> List[int]:
        """Quick-pick amounts; a preset above the balance is never offered."""
        return [p for p in self.config.presets if p <= balance]

    def half(self, balance: int) -> int:
        return max(0, balance) // 2

    def max_bet(self, balance: int) -> int:
        return max(0, balance)
