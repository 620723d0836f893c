"""
Advisory payout previews for display only.

These tables mirror what the authority advertised when this client was
written. Protocols never read them: a settled result always reports the payout
the authority actually computed, and the preview can drift from it whenever
the authority changes its tables.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

ADVISORY_LABEL = "Estimated"


@dataclass(frozen=True)
class AdvisoryPayout:
    """A locally computed number that is never authoritative."""

    label: str
    multiplier: Optional[float] = None
    amount: Optional[float] = None
    advisory: bool = True

    def describe(self) -> str:
        if self.amount is not None:
            return f"{ADVISORY_LABEL} {self.label}: {self.amount:.0f} coins"
        return f"{ADVISORY_LABEL} {self.label}: {self.multiplier:g}x"


def get_default_odds() -> Dict[str, Any]:
    """Profit multipliers (N-to-1) per game and bet."""
    return {
        "roulette": {
            "color": 1,
            "odd_even": 1,
            "high_low": 1,
            "dozen": 2,
            "number": 35,
        },
        "dice": {
            "over": 1,
            "under": 1,
            "seven": 4,
            "odd_even": 1,
            "exact": {2: 35, 3: 17, 4: 11, 5: 8, 6: 6, 7: 5, 8: 6, 9: 8, 10: 11, 11: 17, 12: 35},
        },
        "poker": [
            ("Royal Flush", 250),
            ("Straight Flush", 50),
            ("Four of a Kind", 25),
            ("Full House", 9),
            ("Flush", 6),
            ("Straight", 4),
            ("Three of a Kind", 3),
            ("Two Pair", 2),
            ("Jacks+", 1),
        ],
    }


def get_game_odds(game: str) -> Any:
    return get_default_odds().get(game, {})


def roulette_preview(bet_type: str) -> AdvisoryPayout:
    return AdvisoryPayout(label=f"{bet_type} payout", multiplier=get_game_odds("roulette")[bet_type])


def dice_preview(bet_type: str, bet_value=None) -> AdvisoryPayout:
    table = get_game_odds("dice")[bet_type]
    if bet_type == "exact":
        return AdvisoryPayout(label=f"exact {bet_value} payout", multiplier=table[int(bet_value)])
    return AdvisoryPayout(label=f"{bet_type} payout", multiplier=table)


def poker_paytable() -> List[AdvisoryPayout]:
    return [AdvisoryPayout(label=hand, multiplier=mult) for hand, mult in get_game_odds("poker")]


def minesweeper_potential_win(bet: int, multiplier: float) -> AdvisoryPayout:
    """Profit if the player cashed out now."""
    return AdvisoryPayout(label="potential win", multiplier=multiplier, amount=bet * multiplier - bet)


def minesweeper_cashout_value(bet: int, multiplier: float) -> AdvisoryPayout:
    """Total returned if the player cashed out now."""
    return AdvisoryPayout(label="cash out", multiplier=multiplier, amount=bet * multiplier)
