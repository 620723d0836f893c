"""
Minesweeper round protocol.

create charges the bet and opens a grid; every safe reveal raises the
multiplier; cashout settles at bet x multiplier; hitting a mine loses the bet.
The whole previous response is relayed as round state. Mine positions are only
exposed to callers once the round has settled.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from casino_client.core.exceptions import RoundStateError, ValidationError
from casino_client.core.games.base import (
    GameResult,
    RoundProtocol,
    RoundState,
    SettledResult,
)
from casino_client.core.odds import (
    AdvisoryPayout,
    minesweeper_cashout_value,
    minesweeper_potential_win,
)

GRID_SIZES = (3, 4, 5, 6, 7)
MAX_MINES = 20


def mine_count_options(grid_size: int) -> List[int]:
    return list(range(1, min(grid_size * grid_size - 1, MAX_MINES) + 1))


class MinesweeperInProgress(GameResult):
    status: Literal["playing"]
    grid_size: int
    num_mines: int
    total_tiles: int
    revealed: List[int] = Field(default_factory=list)
    multiplier: float = 1.0

    @property
    def safe_tiles_left(self) -> int:
        return self.total_tiles - self.num_mines - len(self.revealed)


class MinesweeperSettled(SettledResult):
    status: Literal["win", "lose", "cashout"]
    grid_size: int
    num_mines: int
    total_tiles: int
    revealed: List[int] = Field(default_factory=list)
    multiplier: float = 1.0
    mine_positions: List[int] = Field(default_factory=list)
    hit_mine: Optional[int] = None


MinesweeperResult = Annotated[
    Union[MinesweeperInProgress, MinesweeperSettled], Field(discriminator="status")
]


class MinesweeperRoundState(RoundState):
    @property
    def grid_size(self) -> int:
        return self.get("grid_size")

    @property
    def num_mines(self) -> int:
        return self.get("num_mines")

    @property
    def total_tiles(self) -> int:
        total = self.get("total_tiles")
        return total if total is not None else self.grid_size * self.grid_size

    @property
    def revealed(self) -> List[int]:
        return list(self.get("revealed", []))

    @property
    def multiplier(self) -> float:
        return self.get("multiplier", 1.0)

    @property
    def status(self) -> str:
        return self.get("status", "playing")


class MinesweeperProtocol(RoundProtocol):
    game = "minesweeper"
    result_adapter = TypeAdapter(MinesweeperResult)
    state_class = MinesweeperRoundState
    state_keys = None

    async def create(self, bet: int, grid_size: int = 5, num_mines: int = 5) -> GameResult:
        self._require_idle()
        self._require_no_round()
        if grid_size not in GRID_SIZES:
            raise ValidationError(f"Grid size must be one of {', '.join(map(str, GRID_SIZES))}")
        if num_mines not in mine_count_options(grid_size):
            raise ValidationError(
                f"A {grid_size}x{grid_size} grid takes 1 to {mine_count_options(grid_size)[-1]} mines"
            )
        bet = self._checked_bet(bet)
        result = await self._submit(
            lambda: self.transport.play_minesweeper(
                "create", bet, grid_size=grid_size, num_mines=num_mines
            )
        )
        if self.round_state is not None:
            self.bet = bet
        return result

    def can_reveal(self, tile_index: int) -> bool:
        state = self.round_state
        return (
            not self._busy
            and state is not None
            and state.status == "playing"
            and 0 <= tile_index < state.total_tiles
            and tile_index not in state.revealed
        )

    async def reveal(self, tile_index: int) -> GameResult:
        self._require_idle()
        state = self._require_playing()
        if isinstance(tile_index, bool) or not isinstance(tile_index, int):
            raise ValidationError(f"Invalid tile index: {tile_index!r}")
        if not 0 <= tile_index < state.total_tiles:
            raise RoundStateError(f"Tile {tile_index} is off the grid")
        if tile_index in state.revealed:
            raise RoundStateError(f"Tile {tile_index} is already revealed")
        bet = self.bet
        return await self._submit(
            lambda: self.transport.play_minesweeper(
                "reveal", bet, tile_index=tile_index, game_state=state.payload()
            )
        )

    async def cashout(self) -> GameResult:
        self._require_idle()
        state = self._require_playing()
        if not state.revealed:
            raise RoundStateError("Reveal at least one tile before cashing out")
        bet = self.bet
        return await self._submit(
            lambda: self.transport.play_minesweeper("cashout", bet, game_state=state.payload())
        )

    def _require_playing(self) -> MinesweeperRoundState:
        state = self._require_round()
        if state.status != "playing":
            raise RoundStateError("This round is over")
        return state

    # ==================== Advisory display ====================

    def potential_win(self) -> Optional[AdvisoryPayout]:
        """Estimated profit at the current multiplier; None outside a round."""
        if self.round_state is None or self.bet is None:
            return None
        return minesweeper_potential_win(self.bet, self.round_state.multiplier)

    def cashout_value(self) -> Optional[AdvisoryPayout]:
        if self.round_state is None or self.bet is None:
            return None
        return minesweeper_cashout_value(self.bet, self.round_state.multiplier)
