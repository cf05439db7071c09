"""Unit tests for src/services/chess_service.py"""

from dataclasses import replace
from typing import Any

import pytest
from sqlalchemy.orm import Session

from src.chess.board import INITIAL_BOARD
from src.chess.game import GameSession
from src.chess.moves import Move
from src.chess.square import Square
from src.core.config import Settings
from src.core.exceptions import (
    ConflictError,
    GameError,
    GameStateError,
    NotYourTurnError,
    SeatError,
)
from src.core.models import SessionModel, WalletModel
from src.core.shared_types import Color, Status
from src.db.sql_repository import SQLGameRepository
from src.services.chess_service import (
    SESSION_ID,
    ChessService,
    JoinRequest,
    LeaveRequest,
    MoveRequest,
    MoveResponse,
    SessionResponse,
)
from src.sync.change_feed import ChangeFeed

PLAYER_A = "Whitey McWhite"
PLAYER_B = "Blackey McBlack"


# --- HELPERS ----
def join_both(service: ChessService) -> None:
    service.join_game(JoinRequest(player_id=PLAYER_A))
    service.join_game(JoinRequest(player_id=PLAYER_B))


def move(service: ChessService, player: str, from_sq: str, to_sq: str) -> MoveResponse:
    return service.make_move(
        MoveRequest(player_id=player, from_square=from_sq, to_square=to_sq)
    )


def white_captures_king(service: ChessService) -> MoveResponse:
    """Simplified rules: the queen flies over everything. Qd1-h5, a7-a6, Qh5xe8."""
    move(service, PLAYER_A, "d1", "h5")
    move(service, PLAYER_B, "a7", "a6")
    return move(service, PLAYER_A, "h5", "e8")


def set_balance(repository: SQLGameRepository, player: str, balance: int) -> None:
    with repository.transaction():
        repository.create_wallet(WalletModel(player_id=player, balance=balance))


def balance(repository: SQLGameRepository, player: str) -> int | None:
    wallet = repository.get_wallet(player)
    return wallet.balance if wallet else None


class StaleReadRepository:
    """
    Serves a snapshot of the session taken earlier, as if this client read the record right before another client's commit.
    Everything else goes to the real repository.
    """

    def __init__(self, inner: SQLGameRepository, snapshot: SessionModel) -> None:
        self.inner = inner
        self.snapshot = snapshot

    def get_session(self, session_id: str) -> SessionModel | None:
        return replace(self.snapshot)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.inner, name)


# --- SERVICE - SESSION STATE ----
def test_first_access_creates_session(chess_service: ChessService) -> None:
    response = chess_service.get_session_state()
    assert isinstance(response, SessionResponse)
    assert response.board == INITIAL_BOARD
    assert response.status == Status.WAITING
    assert response.turn == Color.WHITE
    assert response.seat_white is None and response.seat_black is None
    assert response.winner is None


def test_session_is_created_only_once(chess_service: ChessService) -> None:
    first = chess_service.get_session_state()
    second = chess_service.get_session_state()
    assert first == second


# --- SERVICE - JOIN / LEAVE ----
def test_join_scenario(chess_service: ChessService, repository: SQLGameRepository) -> None:
    response = chess_service.join_game(JoinRequest(player_id=PLAYER_A))
    assert response.seat_white == PLAYER_A
    assert response.status == Status.WAITING

    response = chess_service.join_game(JoinRequest(player_id=PLAYER_B))
    assert response.seat_black == PLAYER_B
    assert response.status == Status.PLAYING
    assert response.turn == Color.WHITE

    # Check persisted data
    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.seat_white == PLAYER_A
    assert stored.seat_black == PLAYER_B
    assert stored.status == Status.PLAYING


def test_join_twice(chess_service: ChessService, repository: SQLGameRepository) -> None:
    chess_service.join_game(JoinRequest(player_id=PLAYER_A))
    with pytest.raises(SeatError):
        chess_service.join_game(JoinRequest(player_id=PLAYER_A))
    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.seat_black is None


def test_join_full_game(chess_service: ChessService) -> None:
    join_both(chess_service)
    with pytest.raises(GameError):
        chess_service.join_game(JoinRequest(player_id="third wheel"))


def test_leave(chess_service: ChessService) -> None:
    join_both(chess_service)
    response = chess_service.leave_game(LeaveRequest(player_id=PLAYER_A))
    assert response.seat_white is None
    assert response.seat_black == PLAYER_B
    assert response.status == Status.WAITING


def test_leave_when_not_seated(chess_service: ChessService) -> None:
    with pytest.raises(SeatError):
        chess_service.leave_game(LeaveRequest(player_id=PLAYER_A))


# --- SERVICE - MOVES ----
def test_make_move(chess_service: ChessService, repository: SQLGameRepository) -> None:
    join_both(chess_service)
    response = move(chess_service, PLAYER_A, "e2", "e4")
    assert not response.captured_king
    assert response.session.turn == Color.BLACK

    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.board[Square.from_algebraic("e2").index] == "."
    assert stored.board[Square.from_algebraic("e4").index] == "P"
    assert stored.turn == Color.BLACK


def test_move_out_of_turn_writes_nothing(
    chess_service: ChessService, repository: SQLGameRepository
) -> None:
    join_both(chess_service)
    before = repository.get_session(SESSION_ID)
    with pytest.raises(NotYourTurnError):
        move(chess_service, PLAYER_B, "e7", "e5")
    assert repository.get_session(SESSION_ID) == before


def test_move_while_waiting(chess_service: ChessService) -> None:
    chess_service.join_game(JoinRequest(player_id=PLAYER_A))
    with pytest.raises(GameStateError):
        move(chess_service, PLAYER_A, "e2", "e4")


def test_stale_snapshot_loses_the_race(
    chess_service: ChessService,
    repository: SQLGameRepository,
    feed: ChangeFeed,
    scheduler: Any,
    settings: Settings,
) -> None:
    """Two clients move from the same snapshot: one commits, the other gets ConflictError."""
    join_both(chess_service)
    snapshot = repository.get_session(SESSION_ID)
    assert snapshot is not None

    move(chess_service, PLAYER_A, "e2", "e4")

    stale_client = ChessService(
        StaleReadRepository(repository, snapshot), feed, scheduler, settings
    )
    with pytest.raises(ConflictError):
        move(stale_client, PLAYER_A, "d2", "d4")

    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.board[Square.from_algebraic("e4").index] == "P"
    assert stored.board[Square.from_algebraic("d2").index] == "P"
    assert stored.board[Square.from_algebraic("d4").index] == "."
    assert stored.turn == Color.BLACK
    assert stored.version == snapshot.version + 1


def test_move_race_between_two_db_sessions(
    chess_service: ChessService, db_session_shared: Session
) -> None:
    """A second connection reads the session, the first one commits a move, then the second one writes."""
    join_both(chess_service)
    other_repo = SQLGameRepository(db_session_shared)

    with pytest.raises(ConflictError):
        with other_repo.transaction():
            model = other_repo.get_session(SESSION_ID)
            assert model is not None
            game = GameSession.from_model(model)

            move(chess_service, PLAYER_A, "e2", "e4")

            game.make_move(PLAYER_A, Move.from_algebraic("d2", "d4"))
            other_repo.update_session(SESSION_ID, game.to_model())

    stored = other_repo.get_session(SESSION_ID)
    assert stored is not None
    assert stored.board[Square.from_algebraic("e4").index] == "P"
    assert stored.board[Square.from_algebraic("d4").index] == "."
    assert stored.turn == Color.BLACK


def test_moves_are_published(chess_service: ChessService, feed: ChangeFeed) -> None:
    received: list[SessionModel] = []
    feed.subscribe_session(received.append)
    join_both(chess_service)
    move(chess_service, PLAYER_A, "e2", "e4")
    assert [m.status for m in received] == [Status.WAITING, Status.PLAYING, Status.PLAYING]
    assert received[-1].turn == Color.BLACK
    # versions strictly increase with every commit
    versions = [m.version for m in received]
    assert versions == sorted(set(versions))


# --- SERVICE - FINISHING / SETTLEMENT ----
def test_white_wins_by_capturing_king(
    chess_service: ChessService, repository: SQLGameRepository, scheduler: Any
) -> None:
    join_both(chess_service)
    response = white_captures_king(chess_service)

    assert response.captured_king
    assert response.settled
    assert response.session.status == Status.FINISHED
    assert response.session.winner == PLAYER_A

    # wallets are created on the fly
    assert balance(repository, PLAYER_A) == 100
    assert balance(repository, PLAYER_B) == 0

    # reset is scheduled, not run
    assert [delay for delay, _ in scheduler.scheduled] == [3.0]
    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.status == Status.FINISHED
    assert stored.settled_winner == PLAYER_A


def test_black_wins_by_capturing_king(
    chess_service: ChessService, repository: SQLGameRepository
) -> None:
    """Black queen takes the white king on e1."""
    join_both(chess_service)
    set_balance(repository, PLAYER_A, 250)
    set_balance(repository, PLAYER_B, 40)

    move(chess_service, PLAYER_A, "a2", "a3")
    move(chess_service, PLAYER_B, "d8", "h4")
    move(chess_service, PLAYER_A, "a3", "a4")
    response = move(chess_service, PLAYER_B, "h4", "e1")

    assert response.session.status == Status.FINISHED
    assert response.session.winner == PLAYER_B
    assert balance(repository, PLAYER_A) == 150
    assert balance(repository, PLAYER_B) == 140


def test_loser_balance_clamped_at_zero(
    chess_service: ChessService, repository: SQLGameRepository
) -> None:
    join_both(chess_service)
    set_balance(repository, PLAYER_B, 30)
    white_captures_king(chess_service)
    assert balance(repository, PLAYER_B) == 0


def test_settlement_is_idempotent(
    chess_service: ChessService, repository: SQLGameRepository, feed: ChangeFeed
) -> None:
    """Observers reacting to the same finished state must not pay out twice."""
    join_both(chess_service)
    white_captures_king(chess_service)

    assert not chess_service.settle(PLAYER_A)
    assert not chess_service.settle(PLAYER_A)
    assert balance(repository, PLAYER_A) == 100
    assert balance(repository, PLAYER_B) == 0


def test_settle_wrong_winner_is_a_no_op(
    chess_service: ChessService, repository: SQLGameRepository
) -> None:
    join_both(chess_service)
    assert not chess_service.settle(PLAYER_B)
    assert balance(repository, PLAYER_B) is None


def test_settlement_resolves_both_seats(
    chess_service: ChessService, repository: SQLGameRepository, feed: ChangeFeed
) -> None:
    """Both seats get their wallet update, independent of which client triggered the settlement."""
    updates: dict[str, list[int]] = {PLAYER_A: [], PLAYER_B: []}
    feed.subscribe_wallet(PLAYER_A, lambda w: updates[PLAYER_A].append(w.balance))
    feed.subscribe_wallet(PLAYER_B, lambda w: updates[PLAYER_B].append(w.balance))

    join_both(chess_service)
    set_balance(repository, PLAYER_B, 500)
    white_captures_king(chess_service)

    assert updates == {PLAYER_A: [100], PLAYER_B: [400]}


def test_loser_leaving_before_settlement_still_pays(
    chess_service: ChessService, repository: SQLGameRepository, feed: ChangeFeed
) -> None:
    """The loser gives up the seat as soon as the finished state is published."""

    def leave_on_finish(model: SessionModel) -> None:
        if model.status == Status.FINISHED and model.seat_black == PLAYER_B:
            chess_service.leave_game(LeaveRequest(player_id=PLAYER_B))

    join_both(chess_service)
    set_balance(repository, PLAYER_B, 500)
    feed.subscribe_session(leave_on_finish)
    response = white_captures_king(chess_service)

    assert response.settled
    assert balance(repository, PLAYER_A) == 100
    assert balance(repository, PLAYER_B) == 400
    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.seat_black is None
    assert stored.loser == PLAYER_B


def test_winner_leaving_before_settlement_still_charges_loser(
    chess_service: ChessService, repository: SQLGameRepository, feed: ChangeFeed
) -> None:
    def leave_on_finish(model: SessionModel) -> None:
        if model.status == Status.FINISHED and model.seat_white == PLAYER_A:
            chess_service.leave_game(LeaveRequest(player_id=PLAYER_A))

    join_both(chess_service)
    set_balance(repository, PLAYER_B, 500)
    feed.subscribe_session(leave_on_finish)
    white_captures_king(chess_service)

    assert balance(repository, PLAYER_A) == 100
    assert balance(repository, PLAYER_B) == 400


def test_scheduled_reset(
    chess_service: ChessService, repository: SQLGameRepository, scheduler: Any
) -> None:
    join_both(chess_service)
    white_captures_king(chess_service)
    scheduler.run_all()

    stored = repository.get_session(SESSION_ID)
    assert stored is not None
    assert stored.status == Status.WAITING
    assert stored.board == INITIAL_BOARD
    assert stored.seat_white is None and stored.seat_black is None
    assert stored.winner is None
    assert stored.settled_winner is None

    # a new game can start and be settled again
    join_both(chess_service)
    white_captures_king(chess_service)
    assert balance(repository, PLAYER_A) == 200


def test_no_moves_after_finish(chess_service: ChessService) -> None:
    join_both(chess_service)
    white_captures_king(chess_service)
    with pytest.raises(GameStateError):
        move(chess_service, PLAYER_B, "a6", "a5")


def test_settlement_race_leaves_game_finished(
    chess_service: ChessService,
    repository: SQLGameRepository,
    feed: ChangeFeed,
    scheduler: Any,
    settings: Settings,
) -> None:
    """Settlement from a stale read conflicts: no payout from that attempt, no reset scheduled."""
    join_both(chess_service)
    move(chess_service, PLAYER_A, "d1", "h5")
    move(chess_service, PLAYER_B, "a7", "a6")
    move(chess_service, PLAYER_A, "h5", "e8")
    finished = repository.get_session(SESSION_ID)
    assert finished is not None
    unsettled = replace(finished, settled_winner=None, version=finished.version - 1)

    stale_client = ChessService(
        StaleReadRepository(repository, unsettled), feed, scheduler, settings
    )
    scheduled_before = len(scheduler.scheduled)
    assert not stale_client.on_game_finished(PLAYER_A)
    assert len(scheduler.scheduled) == scheduled_before
    assert balance(repository, PLAYER_A) == 100


# --- SERVICE - RESET ----
def test_reset_game(chess_service: ChessService) -> None:
    join_both(chess_service)
    move(chess_service, PLAYER_A, "e2", "e4")
    response = chess_service.reset_game()
    assert response.status == Status.WAITING
    assert response.board == INITIAL_BOARD
    assert response.seat_white is None
    assert response.turn == Color.WHITE


def test_reset_before_first_access(chess_service: ChessService) -> None:
    response = chess_service.reset_game()
    assert response.status == Status.WAITING
