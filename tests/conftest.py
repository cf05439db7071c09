"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.board import EMPTY_CHAR, Board
from src.chess.square import NUM_CELLS, Square
from src.core.config import Settings
from src.db.schema import Base
from src.db.sql_repository import SQLGameRepository
from src.services.chess_service import ChessService
from src.services.wallet_service import WalletService
from src.sync.change_feed import ChangeFeed

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """Connection to a test database. Mock real setup with multiple sessions connecting to the same engine / database tables."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class RecordingScheduler:
    """Stand-in for the timer: remembers what was scheduled, runs it only when asked."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[float, Callable[[], None]]] = []

    def schedule(self, delay_s: float, action: Callable[[], None]) -> None:
        self.scheduled.append((delay_s, action))

    def run_all(self) -> None:
        scheduled, self.scheduled = self.scheduled, []
        for _, action in scheduled:
            action()


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url=DATABASE_URL)


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def repository(db_session_repo: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session_repo)


@pytest.fixture
def chess_service(
    repository: SQLGameRepository,
    feed: ChangeFeed,
    scheduler: RecordingScheduler,
    settings: Settings,
) -> ChessService:
    return ChessService(repository, feed, scheduler, settings)


@pytest.fixture
def wallet_service(
    repository: SQLGameRepository, feed: ChangeFeed, settings: Settings
) -> WalletService:
    return WalletService(repository, feed, settings)


@pytest.fixture
def board_from_placements() -> Callable[[dict[str, str]], Board]:
    """Call the inner function with {"e2": "P", "e8": "k", ...}; every other cell is empty."""

    def _create_board(placements: dict[str, str]) -> Board:
        cells = [EMPTY_CHAR] * NUM_CELLS
        for square_name, char in placements.items():
            cells[Square.from_algebraic(square_name).index] = char
        return Board.from_string("".join(cells))

    return _create_board
