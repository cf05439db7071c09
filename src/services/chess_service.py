"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Callable, Optional

from src.api.models import (
    JoinRequest,
    LeaveRequest,
    MoveRequest,
    MoveResponse,
    SessionResponse,
)
from src.chess.game import GameSession, MoveOutcome
from src.chess.moves import Move
from src.core.config import Settings
from src.core.exceptions import ConflictError, RuleViolationError
from src.core.models import SessionModel
from src.db.repository import GameRepository
from src.ledger.wallet import Wallet, settle_game
from src.sync.change_feed import ChangeFeed
from src.sync.scheduler import ResetScheduler

logger = logging.getLogger(__name__)

# There is a single shared session.
SESSION_ID = "current_game"


class ChessService:
    """
    Orchestration of layers for the shared chess session.
    ---

    Every mutation is one transaction: read the committed session, apply a single domain transition, write it back
    with a conditional write. If another client committed in between, ConflictError is raised and nothing is written.
    After a commit, the new state is published on the change feed.
    """

    def __init__(
        self,
        repository: GameRepository,
        feed: ChangeFeed,
        scheduler: ResetScheduler,
        settings: Settings,
        reset_action: Optional[Callable[[], None]] = None,
    ) -> None:
        self.repo = repository
        self.feed = feed
        self.scheduler = scheduler
        self.settings = settings
        # The scheduled reset runs later (other thread): the app passes an action that opens its own db session.
        self.reset_action = reset_action or self.reset_game

    # -- API routes logic ---
    def get_session_state(self) -> SessionResponse:
        """
        Retrieve current session state.
        ----
        Display only: decisions are never based on this snapshot, mutations re-read inside their transaction.
        """
        with self.repo.transaction():
            game = self._load_or_create()
        return self._create_session_response(game.to_model())

    def join_game(self, request: JoinRequest) -> SessionResponse:
        """Player asks for a seat."""
        with self.repo.transaction():
            game = self._load_or_create()
            color = self._attempt(game.join, request.player_id)
            stored = self.repo.update_session(SESSION_ID, game.to_model())

        logger.info(
            "%s joined as %s (status: %s)", request.player_id, color, stored.status
        )
        self.feed.publish_session(stored)
        return self._create_session_response(stored)

    def leave_game(self, request: LeaveRequest) -> SessionResponse:
        """Player gives up their seat."""
        with self.repo.transaction():
            game = self._load_or_create()
            color = self._attempt(game.leave, request.player_id)
            stored = self.repo.update_session(SESSION_ID, game.to_model())

        logger.info(
            "%s left the %s seat (status: %s)", request.player_id, color, stored.status
        )
        self.feed.publish_session(stored)
        return self._create_session_response(stored)

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """
        Make a move attempt.
        ----

        All checks (status, turn, piece ownership, legality) run against the session as read inside the transaction,
        not against whatever the client last saw. Capturing a king finishes the game: settlement runs right after the
        commit and a reset is scheduled.
        """
        move = Move.from_algebraic(request.from_square, request.to_square)

        with self.repo.transaction():
            game = self._load_or_create()
            outcome = self._attempt(game.make_move, request.player_id, move)
            stored = self.repo.update_session(SESSION_ID, game.to_model())

        logger.info("%s played %s", request.player_id, move)
        self.feed.publish_session(stored)

        settled = False
        if outcome == MoveOutcome.KING_CAPTURED and stored.winner is not None:
            logger.info("Game finished, winner: %s", stored.winner)
            settled = self.on_game_finished(stored.winner)

        return MoveResponse(
            session=self._create_session_response(stored),
            captured_king=outcome == MoveOutcome.KING_CAPTURED,
            settled=settled,
        )

    def reset_game(self) -> SessionResponse:
        """Administrative reset: back to the created state, unconditionally."""
        with self.repo.transaction():
            game = self._load_or_create()
            game.reset()
            stored = self.repo.update_session(SESSION_ID, game.to_model())

        logger.info("Game has been reset.")
        self.feed.publish_session(stored)
        return self._create_session_response(stored)

    # -- Settlement ---
    def on_game_finished(self, winner: str) -> bool:
        """
        Post-commit hook of a finished game: pay out, then schedule the reset.
        If the settlement loses a race, the session stays finished (and unsettled) until settle() is called again
        or an administrator resets it.
        """
        try:
            settled = self.settle(winner)
        except ConflictError:
            logger.warning("Settlement for %s lost a race, reset not scheduled", winner)
            return False
        self.scheduler.schedule(self.settings.reset_delay_s, self.reset_action)
        logger.info("Reset scheduled in %.1f seconds", self.settings.reset_delay_s)
        return settled

    def settle(self, winner: str) -> bool:
        """
        Apply the result of the finished game to the wallets of the winner and the loser recorded at the capture.
        ----

        At most once per finished game: the session carries a marker with the winner that has been paid out,
        written in the same transaction as the wallets. Returns False (and changes nothing) if there is nothing to settle.
        """
        with self.repo.transaction():
            game = self._load_or_create()
            if not game.needs_settlement(winner):
                logger.debug("Nothing to settle for %s", winner)
                return False

            loser = game.loser
            winner_wallet = self._load_or_open_wallet(winner)
            wallets = [winner_wallet]
            if loser is not None:
                loser_wallet = self._load_or_open_wallet(loser)
                settle_game(
                    winner_wallet,
                    loser_wallet,
                    self.settings.win_reward,
                    self.settings.loss_penalty,
                )
                wallets.append(loser_wallet)
            else:
                winner_wallet.credit(self.settings.win_reward)

            stored_wallets = [self.repo.update_wallet(w.to_model()) for w in wallets]
            game.mark_settled()
            stored = self.repo.update_session(SESSION_ID, game.to_model())

        logger.info(
            "Settled game: %s",
            ", ".join(f"{w.player_id}={w.balance}" for w in stored_wallets),
        )
        for wallet in stored_wallets:
            self.feed.publish_wallet(wallet)
        self.feed.publish_session(stored)
        return True

    # -- Internal helpers --
    def _load_or_create(self) -> GameSession:
        """Read the committed session. First access ever creates it in the waiting state."""
        model = self.repo.get_session(SESSION_ID)
        if model is None:
            logger.info("No session found, creating %r", SESSION_ID)
            model = self.repo.create_session(
                SESSION_ID, GameSession.new_session().to_model()
            )
        return GameSession.from_model(model)

    def _load_or_open_wallet(self, player_id: str) -> Wallet:
        model = self.repo.get_wallet(player_id)
        if model is None:
            model = self.repo.create_wallet(Wallet.open(player_id).to_model())
        return Wallet.from_model(model)

    def _attempt(self, transition: Callable, *args):
        """Run a domain transition, logging rejections before they propagate (and roll back the transaction)."""
        try:
            return transition(*args)
        except RuleViolationError as e:
            logger.debug("Rejected %s%r: %s", transition.__name__, args, e)
            raise

    def _create_session_response(self, model: SessionModel) -> SessionResponse:
        """Convert info in SessionModel to a SessionResponse"""
        return SessionResponse(
            board=model.board,
            turn=model.turn,
            seat_white=model.seat_white,
            seat_black=model.seat_black,
            status=model.status,
            winner=model.winner,
            version=model.version,
        )
