import asyncio
import unittest

from casino_client.core.exceptions import (
    ActionInProgress,
    ApiError,
    BetRejected,
    RoundStateError,
    SessionExpired,
    TransportError,
    ValidationError,
)
from casino_client.core.games import (
    BlackjackInProgress,
    BlackjackSettled,
    MinesweeperInProgress,
    MinesweeperSettled,
    PokerDealt,
    PokerSettled,
)
from casino_client.core.games.base import normalize_choice
from casino_client.core.games.minesweeper import mine_count_options
from tests.fake_authority import AuthorityTestCase


def card(rank, suit="hearts"):
    return {"suit": suit, "rank": rank}


DECK = [card("9", "diamonds"), card("2", "clubs"), card("Q", "spades")]

BLACKJACK_DEAL = {
    "status": "playing",
    "player_hand": [card("10"), card("6", "clubs")],
    "dealer_hand": [card("K", "spades")],
    "player_value": 16,
    "dealer_visible": 10,
    "deck": DECK,
    "full_dealer_hand": [card("K", "spades"), card("7")],
    "message": "",
}

BLACKJACK_BUST = {
    "status": "bust",
    "player_hand": [card("10"), card("6", "clubs"), card("9", "diamonds")],
    "dealer_hand": [card("K", "spades"), card("7")],
    "player_value": 25,
    "dealer_value": 17,
    "coins": 900,
    "payout": 0,
    "message": "Bust! You lose.",
}

POKER_DEAL = {
    "status": "playing",
    "hand": [card("J"), card("J", "spades"), card("4"), card("8", "clubs"), card("2")],
    "deck": DECK,
    "message": "Select cards to hold, then draw",
}

POKER_WIN = {
    "status": "win",
    "hand": [card("J"), card("J", "spades"), card("4"), card("4", "clubs"), card("K")],
    "hand_type": "two_pair",
    "multiplier": 2,
    "payout": 20,
    "coins": 1010,
}

MINES_CREATE = {
    "status": "playing",
    "grid_size": 3,
    "num_mines": 2,
    "total_tiles": 9,
    "revealed": [],
    "multiplier": 1.0,
    "mine_positions": [0, 8],
    "round_token": "opaque-123",
}


class TestBlackjack(AuthorityTestCase):
    async def deal(self, bet=100):
        self.authority.script("blackjack", BLACKJACK_DEAL)
        return await self.session.blackjack.deal(bet)

    async def test_deal_hit_bust(self):
        blackjack = self.session.blackjack
        result = await self.deal()
        self.assertIsInstance(result, BlackjackInProgress)
        self.assertTrue(blackjack.in_round)
        self.assertEqual(blackjack.bet, 100)
        # Nothing settled yet, so the balance is untouched
        self.assertEqual(self.account.coins, 1000)

        self.authority.script("blackjack", BLACKJACK_BUST)
        result = await blackjack.hit()

        self.assertIsInstance(result, BlackjackSettled)
        self.assertFalse(result.player_won)
        self.assertEqual(self.account.coins, 900)
        self.assertFalse(blackjack.in_round)
        self.assertIsNone(blackjack.bet)

        deal_request, hit_request = self.authority.game_requests("blackjack")
        self.assertEqual(deal_request, {"action": "deal", "bet": 100})
        self.assertEqual(hit_request, {
            "action": "hit",
            "bet": 100,
            "game_state": {
                "deck": DECK,
                "player_hand": BLACKJACK_DEAL["player_hand"],
                "full_dealer_hand": BLACKJACK_DEAL["full_dealer_hand"],
            },
        })

    async def test_hidden_state_exposed_only_through_round_state(self):
        await self.deal()
        state = self.session.blackjack.round_state
        self.assertEqual([c.rank for c in state.full_dealer_hand], ["K", "7"])
        self.assertEqual(len(state.deck), 3)
        self.assertEqual(len(self.session.blackjack.last_result.dealer_hand), 1)

    async def test_explicit_game_state_relayed_verbatim(self):
        opaque = {"deck": DECK, "nonce": "f00d", "nested": {"seen": [1, 2, 3]}}
        self.authority.script("blackjack", dict(BLACKJACK_DEAL, game_state=opaque))
        await self.session.blackjack.deal(100)

        # Callers cannot reach the stored copy
        self.session.blackjack.round_state.payload()["nonce"] = "tampered"

        self.authority.script("blackjack", BLACKJACK_BUST)
        await self.session.blackjack.stand()
        self.assertEqual(self.authority.game_requests("blackjack")[1]["game_state"], opaque)

    async def test_double_allowed_on_two_cards(self):
        await self.deal()
        self.assertTrue(self.session.blackjack.can_double())
        self.authority.script("blackjack", dict(BLACKJACK_BUST, coins=800))
        await self.session.blackjack.double()
        self.assertEqual(self.authority.game_requests("blackjack")[1]["action"], "double")
        self.assertEqual(self.account.coins, 800)

    async def test_double_needs_covering_balance(self):
        await self.deal()
        self.account.apply_coin_update(50)
        self.assertFalse(self.session.blackjack.can_double())
        with self.assertRaises(BetRejected):
            await self.session.blackjack.double()

    async def test_double_refused_after_hit(self):
        await self.deal()
        self.authority.script("blackjack", dict(
            BLACKJACK_DEAL,
            player_hand=[card("2"), card("3", "clubs"), card("4", "spades")],
            player_value=9,
        ))
        await self.session.blackjack.hit()
        self.account.apply_coin_update(50)

        with self.assertRaises(RoundStateError) as ctx:
            await self.session.blackjack.double()
        self.assertEqual(ctx.exception.message, "You can only double on your first two cards")
        self.assertEqual(self.authority.count("/api/games/blackjack/"), 2)

    async def test_actions_need_a_round(self):
        with self.assertRaises(RoundStateError):
            await self.session.blackjack.hit()
        with self.assertRaises(RoundStateError):
            await self.session.blackjack.double()
        self.assertEqual(self.authority.game_requests("blackjack"), [])

    async def test_second_deal_refused_mid_round(self):
        await self.deal()
        with self.assertRaises(RoundStateError):
            await self.session.blackjack.deal(100)

    async def test_authority_error_leaves_round_untouched(self):
        await self.deal()
        before = self.session.blackjack.round_state
        self.authority.script("blackjack", {"error": "Invalid game state"}, status_code=400)

        with self.assertRaises(ApiError) as ctx:
            await self.session.blackjack.hit()
        self.assertEqual(ctx.exception.message, "Invalid game state")
        self.assertEqual(self.session.blackjack.round_state, before)
        self.assertEqual(self.session.blackjack.bet, 100)
        self.assertFalse(self.session.blackjack.busy)

    async def test_malformed_result_is_transport_error(self):
        await self.deal()
        before = self.session.blackjack.round_state
        self.authority.script("blackjack", {"status": "surrender"})
        with self.assertRaises(TransportError):
            await self.session.blackjack.hit()
        self.assertEqual(self.session.blackjack.round_state, before)

    async def test_session_loss_ends_round(self):
        await self.deal()
        self.authority.expire_access_tokens()
        self.authority.refresh_rejects = True
        with self.assertRaises(SessionExpired):
            await self.session.blackjack.hit()
        self.assertFalse(self.session.blackjack.in_round)


class TestBetting(AuthorityTestCase):
    coins = 50

    async def test_bet_over_balance_never_sent(self):
        with self.assertRaises(BetRejected):
            await self.session.blackjack.deal(51)
        with self.assertRaises(BetRejected):
            await self.session.roulette.spin("color", "red", 100)
        self.assertEqual(self.authority.count("/api/games/blackjack/"), 0)
        self.assertEqual(self.authority.count("/api/games/roulette/"), 0)

    async def test_fractional_and_zero_bets_refused(self):
        with self.assertRaises(BetRejected):
            await self.session.dice.roll("over", 7, 2.5)
        with self.assertRaises(BetRejected):
            await self.session.dice.roll("over", 7, 0)

    async def test_whole_float_bet_sent_as_int(self):
        self.authority.script("dice", {
            "die1": 1, "die2": 1, "total": 2, "won": False,
            "bet_type": "under", "bet_value": 7, "payout": 0, "coins": 40,
        })
        await self.session.dice.roll("under", 7, 10.0)
        self.assertEqual(self.authority.game_requests("dice")[0]["bet"], 10)


class TestInFlight(AuthorityTestCase):
    async def test_one_action_at_a_time(self):
        self.authority.game_delay = 0.05
        self.authority.script("roulette", {
            "result": 0, "color": "green", "won": False,
            "bet_type": "color", "bet_value": "red", "payout": 0, "coins": 990,
        })
        task = asyncio.create_task(self.session.roulette.spin("color", "red", 10))
        await asyncio.sleep(0.01)

        self.assertTrue(self.session.roulette.busy)
        with self.assertRaises(ActionInProgress):
            await self.session.roulette.spin("color", "black", 10)

        result = await task
        self.assertEqual(result.color, "green")
        self.assertFalse(self.session.roulette.busy)
        self.assertEqual(self.authority.count("/api/games/roulette/"), 1)

    async def test_abandoned_round_ignores_late_state(self):
        self.authority.game_delay = 0.05
        self.authority.script("blackjack", BLACKJACK_DEAL)
        task = asyncio.create_task(self.session.blackjack.deal(100))
        await asyncio.sleep(0.01)
        self.session.blackjack.abandon()

        await task
        self.assertFalse(self.session.blackjack.in_round)
        self.assertIsNone(self.session.blackjack.bet)

    async def test_abandoned_round_still_settles_balance(self):
        self.authority.script("blackjack", BLACKJACK_DEAL)
        await self.session.blackjack.deal(100)

        self.authority.game_delay = 0.05
        self.authority.script("blackjack", BLACKJACK_BUST)
        task = asyncio.create_task(self.session.blackjack.hit())
        await asyncio.sleep(0.01)
        self.session.blackjack.abandon()

        await task
        self.assertEqual(self.account.coins, 900)
        self.assertIsNone(self.session.blackjack.last_result)


class TestPoker(AuthorityTestCase):
    async def test_deal_and_draw(self):
        poker = self.session.poker
        self.authority.script("poker", POKER_DEAL)
        dealt = await poker.deal(10)
        self.assertIsInstance(dealt, PokerDealt)
        self.assertEqual(len(poker.round_state.hand), 5)

        self.authority.script("poker", POKER_WIN)
        settled = await poker.draw([1, 0])
        self.assertIsInstance(settled, PokerSettled)
        self.assertEqual(settled.hand_name, "Two Pair")
        self.assertEqual(self.account.coins, 1010)
        self.assertFalse(poker.in_round)

        draw_request = self.authority.game_requests("poker")[1]
        self.assertEqual(draw_request["hold_indices"], [0, 1])
        self.assertEqual(draw_request["bet"], 10)
        self.assertEqual(draw_request["game_state"], {"hand": POKER_DEAL["hand"], "deck": DECK})

    async def test_hold_indices_checked(self):
        self.authority.script("poker", POKER_DEAL)
        await self.session.poker.deal(10)
        for holds in ([5], [0, 0], [-1], ["1"]):
            with self.assertRaises(ValidationError):
                await self.session.poker.draw(holds)
        self.assertEqual(self.authority.count("/api/games/poker/"), 1)

    async def test_draw_without_deal(self):
        with self.assertRaises(RoundStateError):
            await self.session.poker.draw([])


class TestMinesweeper(AuthorityTestCase):
    async def create(self):
        self.authority.script("minesweeper", MINES_CREATE)
        return await self.session.minesweeper.create(50, grid_size=3, num_mines=2)

    async def test_reveal_then_cash_out(self):
        mines = self.session.minesweeper
        await self.create()
        self.assertTrue(mines.can_reveal(4))

        after_reveal = dict(MINES_CREATE, revealed=[4], multiplier=1.25)
        self.authority.script("minesweeper", after_reveal)
        result = await mines.reveal(4)
        self.assertIsInstance(result, MinesweeperInProgress)
        self.assertEqual(result.safe_tiles_left, 6)
        self.assertFalse(mines.can_reveal(4))

        self.assertEqual(mines.potential_win().amount, 12.5)
        self.assertEqual(mines.cashout_value().amount, 62.5)
        self.assertTrue(mines.cashout_value().describe().startswith("Estimated"))

        self.authority.script("minesweeper", dict(after_reveal, status="cashout", coins=1012, payout=62))
        settled = await mines.cashout()
        self.assertIsInstance(settled, MinesweeperSettled)
        self.assertEqual(self.account.coins, 1012)
        self.assertIsNone(mines.potential_win())

        create_req, reveal_req, cashout_req = self.authority.game_requests("minesweeper")
        self.assertEqual(create_req, {"action": "create", "bet": 50, "grid_size": 3, "num_mines": 2})
        # The whole previous response is relayed, unknown keys included
        self.assertEqual(reveal_req["game_state"], MINES_CREATE)
        self.assertEqual(reveal_req["tile_index"], 4)
        self.assertEqual(cashout_req["game_state"], after_reveal)

    async def test_mine_hit_settles(self):
        await self.create()
        self.authority.script("minesweeper", dict(
            MINES_CREATE, status="lose", revealed=[], hit_mine=0, coins=950,
        ))
        result = await self.session.minesweeper.reveal(0)
        self.assertEqual(result.hit_mine, 0)
        self.assertEqual(result.mine_positions, [0, 8])
        self.assertEqual(self.account.coins, 950)

    async def test_local_tile_checks(self):
        await self.create()
        with self.assertRaises(RoundStateError):
            await self.session.minesweeper.cashout()
        with self.assertRaises(RoundStateError):
            await self.session.minesweeper.reveal(9)

        self.authority.script("minesweeper", dict(MINES_CREATE, revealed=[4], multiplier=1.25))
        await self.session.minesweeper.reveal(4)
        with self.assertRaises(RoundStateError):
            await self.session.minesweeper.reveal(4)
        self.assertEqual(self.authority.count("/api/games/minesweeper/"), 2)

    async def test_grid_settings_checked(self):
        with self.assertRaises(ValidationError):
            await self.session.minesweeper.create(50, grid_size=8, num_mines=2)
        with self.assertRaises(ValidationError):
            await self.session.minesweeper.create(50, grid_size=3, num_mines=9)
        self.assertEqual(mine_count_options(3), list(range(1, 9)))
        self.assertEqual(mine_count_options(7)[-1], 20)


class TestRouletteAndDice(AuthorityTestCase):
    async def test_roulette_spin(self):
        self.authority.script("roulette", {
            "result": 17, "color": "black", "won": False, "bet_type": "color",
            "bet_value": "red", "payout": 0, "coins": 990, "message": "17 black",
        })
        result = await self.session.roulette.spin(" Color ", "RED", 10)
        self.assertFalse(result.won)
        self.assertEqual(self.account.coins, 990)
        self.assertEqual(
            self.authority.game_requests("roulette")[0],
            {"bet_type": "color", "bet_value": "red", "bet": 10},
        )

    async def test_roulette_choices_checked(self):
        for bet_type, bet_value in (("colour", "red"), ("number", 37), ("dozen", 4), ("color", "green")):
            with self.assertRaises(ValidationError):
                await self.session.roulette.spin(bet_type, bet_value, 10)
        self.assertEqual(self.authority.count("/api/games/roulette/"), 0)

    async def test_dice_roll_to_bankruptcy(self):
        self.authority.script("dice", {
            "die1": 3, "die2": 3, "total": 6, "won": False,
            "bet_type": "exact", "bet_value": 7, "payout": 0, "coins": 0,
        })
        result = await self.session.dice.roll("exact", "7", 1000)
        self.assertEqual(result.total, 6)
        self.assertTrue(self.account.is_bankrupt)
        self.assertEqual(self.authority.game_requests("dice")[0]["bet_value"], 7)

    async def test_dice_choices_checked(self):
        with self.assertRaises(ValidationError):
            await self.session.dice.roll("over", 11, 10)
        with self.assertRaises(ValidationError):
            await self.session.dice.roll("seven", 6, 10)
        self.assertEqual(self.authority.count("/api/games/dice/"), 0)


class TestNormalizeChoice(unittest.TestCase):
    def test_matching(self):
        self.assertEqual(normalize_choice("Odd", ("odd", "even")), "odd")
        self.assertEqual(normalize_choice("12", range(2, 13)), 12)
        with self.assertRaises(KeyError):
            normalize_choice(True, (1, 2))
        with self.assertRaises(KeyError):
            normalize_choice(1, ("1",))


if __name__ == "__main__":
    unittest.main()
