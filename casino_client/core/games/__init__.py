"""Round protocols for the five games."""

from .base import Card, GameResult, RoundProtocol, RoundState, SettledResult
from .blackjack import BlackjackProtocol, BlackjackInProgress, BlackjackSettled
from .poker import PokerProtocol, PokerDealt, PokerSettled
from .minesweeper import MinesweeperProtocol, MinesweeperInProgress, MinesweeperSettled
from .roulette import RouletteProtocol, RouletteResult
from .dice import DiceProtocol, DiceResult

__all__ = [
    "Card",
    "GameResult",
    "RoundProtocol",
    "RoundState",
    "SettledResult",
    "BlackjackProtocol",
    "BlackjackInProgress",
    "BlackjackSettled",
    "PokerProtocol",
    "PokerDealt",
    "PokerSettled",
    "MinesweeperProtocol",
    "MinesweeperInProgress",
    "MinesweeperSettled",
    "RouletteProtocol",
    "RouletteResult",
    "DiceProtocol",
    "DiceResult",
]
