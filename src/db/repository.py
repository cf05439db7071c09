"""Protocol repository (implemented with SQLAlchemy in sql_repository.py)"""

from contextlib import AbstractContextManager
from typing import Protocol

from src.core.models import ExchangeModel, SessionModel, WalletModel


class GameRepository(Protocol):
    """
    Persistence layer orchestration
    ---

    Writes are conditional: update_* only succeeds if the stored version still equals the version of the given model
    (the version that was read). Otherwise ConflictError is raised and nothing is written.
    Group reads and writes in `with repo.transaction():` to commit (or roll back) them together.
    """

    def transaction(self) -> AbstractContextManager[None]:
        """Commit everything done inside the block at once, roll back on any exception."""
        ...

    def get_session(self, session_id: str) -> SessionModel | None:
        """Get the session record (with its version), if it exists."""
        ...

    def create_session(self, session_id: str, session: SessionModel) -> SessionModel:
        """Insert the session record. ConflictError if someone else created it first."""
        ...

    def update_session(self, session_id: str, session: SessionModel) -> SessionModel:
        """Conditional write. Returns the stored data with its new version."""
        ...

    def get_wallet(self, player_id: str) -> WalletModel | None:
        """Get a player's wallet, if it exists."""
        ...

    def create_wallet(self, wallet: WalletModel) -> WalletModel:
        """Insert a new wallet. ConflictError if it already exists."""
        ...

    def update_wallet(self, wallet: WalletModel) -> WalletModel:
        """Conditional write. Returns the stored data with its new version."""
        ...

    def add_exchange(self, exchange: ExchangeModel) -> ExchangeModel:
        """Append an exchange request record."""
        ...

    def list_exchanges(self, player_id: str) -> list[ExchangeModel]:
        """All exchange records of a player, oldest first."""
        ...
