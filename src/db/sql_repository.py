"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.core.exceptions import ConflictError, StateNotFoundError
from src.core.models import ExchangeModel, SessionModel, WalletModel, utc_now
from src.db.schema import DBExchange, DBSession, DBWallet

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit everything done inside the block at once, roll back on any exception."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- session ---
    def get_session(self, session_id: str) -> SessionModel | None:
        """Get the session record (with its version), if it exists."""
        session_db = self._fetch_session(session_id)
        if session_db:
            return self._session_to_model(session_db)
        return None

    def create_session(self, session_id: str, session: SessionModel) -> SessionModel:
        """Insert the session record. ConflictError if someone else created it first."""
        query = insert(DBSession).values(
            id=session_id,
            board=session.board,
            turn=session.turn,
            seat_white=session.seat_white,
            seat_black=session.seat_black,
            status=session.status,
            winner=session.winner,
            loser=session.loser,
            settled_winner=session.settled_winner,
            version=0,
        )
        try:
            self.db.execute(query)
        except IntegrityError as e:
            raise ConflictError(
                f"Session {session_id!r} was created concurrently. Please try again."
            ) from e
        return replace(session, version=0)

    def update_session(self, session_id: str, session: SessionModel) -> SessionModel:
        """Conditional write: only if the stored version still equals session.version."""
        new_version = session.version + 1
        query = (
            update(DBSession)
            .where(DBSession.id == session_id, DBSession.version == session.version)
            .values(
                board=session.board,
                turn=session.turn,
                seat_white=session.seat_white,
                seat_black=session.seat_black,
                status=session.status,
                winner=session.winner,
                loser=session.loser,
                settled_winner=session.settled_winner,
                version=new_version,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(query)
        if result.rowcount == 0:
            if self._fetch_session(session_id) is None:
                raise StateNotFoundError(f"Session {session_id!r} not found.")
            logger.warning(
                "Stale write on session %r (read version %d)", session_id, session.version
            )
            raise ConflictError(
                "The game changed while your request was processed. Please try again."
            )
        return replace(session, version=new_version)

    # --- wallets ---
    def get_wallet(self, player_id: str) -> WalletModel | None:
        """Get a player's wallet, if it exists."""
        wallet_db = self._fetch_wallet(player_id)
        if wallet_db:
            return self._wallet_to_model(wallet_db)
        return None

    def create_wallet(self, wallet: WalletModel) -> WalletModel:
        """Insert a new wallet. ConflictError if it already exists."""
        query = insert(DBWallet).values(
            player_id=wallet.player_id, balance=wallet.balance, version=0
        )
        try:
            self.db.execute(query)
        except IntegrityError as e:
            raise ConflictError(
                f"Wallet of {wallet.player_id!r} was created concurrently. Please try again."
            ) from e
        return replace(wallet, version=0)

    def update_wallet(self, wallet: WalletModel) -> WalletModel:
        """Conditional write: only if the stored version still equals wallet.version."""
        new_version = wallet.version + 1
        query = (
            update(DBWallet)
            .where(
                DBWallet.player_id == wallet.player_id,
                DBWallet.version == wallet.version,
            )
            .values(balance=wallet.balance, version=new_version, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(query)
        if result.rowcount == 0:
            if self._fetch_wallet(wallet.player_id) is None:
                raise StateNotFoundError(f"Wallet of {wallet.player_id!r} not found.")
            logger.warning(
                "Stale write on wallet %r (read version %d)",
                wallet.player_id,
                wallet.version,
            )
            raise ConflictError(
                "Your balance changed while your request was processed. Please try again."
            )
        return replace(wallet, version=new_version)

    # --- exchange requests ---
    def add_exchange(self, exchange: ExchangeModel) -> ExchangeModel:
        """Append an exchange request record."""
        exchange_db = DBExchange(
            player_id=exchange.player_id,
            external_account_ref=exchange.external_account_ref,
            sm_units=exchange.sm_units,
            cost_deducted=exchange.cost_deducted,
            timestamp=exchange.timestamp,
            status=exchange.status,
        )
        self.db.add(exchange_db)
        self.db.flush()
        return exchange

    def list_exchanges(self, player_id: str) -> list[ExchangeModel]:
        """All exchange records of a player, oldest first."""
        query = (
            select(DBExchange)
            .where(DBExchange.player_id == player_id)
            .order_by(DBExchange.timestamp)
        )
        return [self._exchange_to_model(row) for row in self.db.scalars(query)]

    # -- Internal helpers --
    def _fetch_session(self, session_id: str) -> DBSession | None:
        # populate_existing: always see the committed row, not a stale object from the identity map
        query = (
            select(DBSession)
            .where(DBSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    def _fetch_wallet(self, player_id: str) -> DBWallet | None:
        query = (
            select(DBWallet)
            .where(DBWallet.player_id == player_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    def _session_to_model(self, session_db: DBSession) -> SessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionModel(
            board=session_db.board,
            turn=session_db.turn,
            seat_white=session_db.seat_white,
            seat_black=session_db.seat_black,
            status=session_db.status,
            winner=session_db.winner,
            loser=session_db.loser,
            settled_winner=session_db.settled_winner,
            version=session_db.version,
        )

    def _wallet_to_model(self, wallet_db: DBWallet) -> WalletModel:
        return WalletModel(
            player_id=wallet_db.player_id,
            balance=wallet_db.balance,
            version=wallet_db.version,
        )

    def _exchange_to_model(self, exchange_db: DBExchange) -> ExchangeModel:
        return ExchangeModel(
            player_id=exchange_db.player_id,
            external_account_ref=exchange_db.external_account_ref,
            sm_units=exchange_db.sm_units,
            cost_deducted=exchange_db.cost_deducted,
            timestamp=exchange_db.timestamp,
            status=exchange_db.status,
        )
