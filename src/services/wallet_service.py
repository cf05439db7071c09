"""Orchestration of ledger requests: balance lookups and exchanges."""

import logging

from src.api.models import ExchangeRequest, ExchangeResponse, WalletResponse
from src.core.config import Settings
from src.core.exceptions import InsufficientFundsError
from src.core.models import WalletModel
from src.db.repository import GameRepository
from src.ledger.exchange import withdraw_for_exchange
from src.ledger.wallet import Wallet
from src.sync.change_feed import ChangeFeed

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(
        self, repository: GameRepository, feed: ChangeFeed, settings: Settings
    ) -> None:
        self.repo = repository
        self.feed = feed
        self.settings = settings

    def get_balance(self, player_id: str) -> WalletResponse:
        """First reference to a player opens their wallet with an empty balance."""
        with self.repo.transaction():
            model = self.repo.get_wallet(player_id)
            if model is None:
                model = self.repo.create_wallet(Wallet.open(player_id).to_model())
                logger.info("Opened wallet for %s", player_id)
        return self._create_wallet_response(model)

    def exchange(self, request: ExchangeRequest) -> ExchangeResponse:
        """
        Deduct the cost of the requested units and record the request, in one transaction.
        ----
        The transfer itself happens out of band; there is no compensation if it fails downstream.
        """
        with self.repo.transaction():
            model = self.repo.get_wallet(request.player_id)
            # missing wallet == empty wallet, which cannot pay for anything
            wallet = (
                Wallet.from_model(model)
                if model is not None
                else Wallet.open(request.player_id)
            )
            try:
                record = withdraw_for_exchange(
                    wallet,
                    request.external_account_ref,
                    request.sm_units,
                    self.settings.coins_per_sm_unit,
                )
            except InsufficientFundsError as e:
                logger.debug("Exchange refused for %s: %s", request.player_id, e)
                raise
            stored = self.repo.update_wallet(wallet.to_model())
            self.repo.add_exchange(record)

        logger.info(
            "Exchange requested by %s: %d units for %d coins",
            request.player_id,
            record.sm_units,
            record.cost_deducted,
        )
        self.feed.publish_wallet(stored)
        return ExchangeResponse(
            player_id=stored.player_id,
            sm_units=record.sm_units,
            cost_deducted=record.cost_deducted,
            balance=stored.balance,
            status=record.status,
        )

    def _create_wallet_response(self, model: WalletModel) -> WalletResponse:
        return WalletResponse(player_id=model.player_id, balance=model.balance)
