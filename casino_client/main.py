"""
casino-client entry point.
Wires transport, account state, game protocols and the coin-request workflow
into one session object.
"""

from typing import Optional

import httpx

from casino_client.config import AppConfig, settings
from casino_client.core.account import AccountState, SessionStatus
from casino_client.core.betting import BetGuard
from casino_client.core.coin_requests import CoinRequestWorkflow
from casino_client.core.credentials import CredentialStore, FileCredentialStore
from casino_client.core.games import (
    BlackjackProtocol,
    DiceProtocol,
    MinesweeperProtocol,
    PokerProtocol,
    RouletteProtocol,
)
from casino_client.core.logger import get_logger, init_logging
from casino_client.core.transport import TransportClient


class CasinoSession:
    """
    Everything one signed-in user needs. Game protocols share the session's
    AccountState, which is the single writer of the coin balance.
    """

    def __init__(
        self,
        config: AppConfig,
        store: CredentialStore,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.transport = TransportClient(config, store, http_transport=http_transport)
        self.account = AccountState(self.transport)
        self.guard = BetGuard(config.betting)

        self.blackjack = BlackjackProtocol(self.transport, self.account, self.guard)
        self.poker = PokerProtocol(self.transport, self.account, self.guard)
        self.minesweeper = MinesweeperProtocol(self.transport, self.account, self.guard)
        self.roulette = RouletteProtocol(self.transport, self.account, self.guard)
        self.dice = DiceProtocol(self.transport, self.account, self.guard)
        self.coin_requests = CoinRequestWorkflow(
            self.transport, self.account, config.coin_requests
        )

        # A lost session takes every in-flight round with it
        self.transport.on_session_expired(self._abandon_rounds)

    @property
    def games(self):
        return (self.blackjack, self.poker, self.minesweeper, self.roulette, self.dice)

    def _abandon_rounds(self):
        for game in self.games:
            game.abandon()

    async def start(self) -> SessionStatus:
        return await self.account.start()

    def logout(self):
        self._abandon_rounds()
        self.account.logout()

    async def aclose(self):
        await self.transport.aclose()

    async def __aenter__(self):
        try:
            await self.start()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


def create_session(
    config: Optional[AppConfig] = None,
    store: Optional[CredentialStore] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CasinoSession:
    """Create a session using the global settings unless told otherwise."""
    config = config or settings
    init_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        formatter=config.logging.formatter,
        log_file_path=config.paths.get_log_path(),
    )
    store = store or FileCredentialStore(config.paths.get_credentials_path())
    get_logger("main").debug(f"Session targeting {config.api.base_url}")
    return CasinoSession(config, store, http_transport=http_transport)
