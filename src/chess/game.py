"""
The GameSession class is the entrypoint into the domain layer for the service layer.
It holds the shared session (seats, turn, board, status) and implements the transitions:
join, leave, move and reset. Each transition either fully applies or raises, leaving the object untouched.

Persistence / concurrency is NOT handled here: the service layer loads a GameSession from the committed record,
calls one transition, and writes the result back with a conditional write.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Self

from src.chess.board import Board
from src.chess.moves import Move, is_legal
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    NotYourPieceError,
    NotYourTurnError,
    SeatError,
)
from src.core.models import SessionModel
from src.core.shared_types import Color, Status


class MoveOutcome(Enum):
    CONTINUE = "continue"
    KING_CAPTURED = "king captured"


@dataclass
class GameSession:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    turn: Color
    seats: dict[Color, Optional[str]]
    status: Status
    winner: Optional[str] = None
    # seat holder opposite the winner at the moment of the win
    loser: Optional[str] = None
    settled_winner: Optional[str] = None
    version: int = field(default=0, compare=False)

    @classmethod
    def new_session(cls) -> Self:
        """The created state: nobody seated, initial layout, white to move."""
        return cls(
            board=Board.initial(),
            turn=Color.WHITE,
            seats={Color.WHITE: None, Color.BLACK: None},
            status=Status.WAITING,
        )

    @classmethod
    def from_model(cls, model: SessionModel) -> Self:
        """Define how to construct a GameSession from the information the Service layer actually has"""

        # Validation
        if model.status not in Status.__members__.values():
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(Status)}"
            )
        if model.turn not in Color.__members__.values():
            raise GameStateError(f"Invalid side to move: {model.turn!r}")

        return cls(
            board=Board.from_string(model.board),
            turn=Color(model.turn),
            # empty string is treated as an empty seat as well
            seats={
                Color.WHITE: model.seat_white or None,
                Color.BLACK: model.seat_black or None,
            },
            status=Status(model.status),
            winner=model.winner,
            loser=model.loser,
            settled_winner=model.settled_winner,
            version=model.version,
        )

    def to_model(self) -> SessionModel:
        """Encode back into a format the Service layer uses"""
        return SessionModel(
            board=self.board.to_string(),
            turn=self.turn.value,
            seat_white=self.seats[Color.WHITE],
            seat_black=self.seats[Color.BLACK],
            status=self.status.value,
            winner=self.winner,
            loser=self.loser,
            settled_winner=self.settled_winner,
            version=self.version,
        )

    def seat_of(self, player: str) -> Optional[Color]:
        return next(
            (color for color, occupant in self.seats.items() if occupant == player),
            None,
        )

    def join(self, player: str) -> Color:
        """Take the white seat if it is free, else the black seat. Filling the second seat starts the game."""
        if self.seat_of(player) is not None:
            raise SeatError("You are already registered in the game.")
        if self.status == Status.PLAYING:
            raise SeatError("Game is already full and in progress.")

        if self.seats[Color.WHITE] is None:
            color = Color.WHITE
        elif self.seats[Color.BLACK] is None:
            color = Color.BLACK
        else:
            raise SeatError("Game is full.")

        self.seats[color] = player
        self.winner = None
        self.loser = None
        if all(self.seats.values()):
            self.status = Status.PLAYING
        return color

    def leave(self, player: str) -> Color:
        """
        Free the seat of the player.
        ---
        Nobody left: back to the created board. One player left in a running game: back to waiting,
        the remaining player is NOT awarded a win.
        """
        color = self.seat_of(player)
        if color is None:
            raise SeatError("You are not registered in the game.")

        self.seats[color] = None
        if not any(self.seats.values()):
            self.status = Status.WAITING
            self.board = Board.initial()
            self.turn = Color.WHITE
        elif self.status == Status.PLAYING:
            self.status = Status.WAITING
        return color

    def make_move(self, player: str, move: Move) -> MoveOutcome:
        """
        Attempt to make a move
        -----

        1. game must be running
        2. player must hold the seat of the side to move
        3. the moved piece must be theirs
        4. shape must be legal (simplified rules)
        5. update the board, flip the turn
        6. capturing a king ends the game, the mover wins and the opposite seat holder is recorded as loser
        """
        if self.status != Status.PLAYING:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

        self._assert_your_turn(player)
        self._assert_your_piece(move)

        if move.from_square == move.to_square or not is_legal(
            self.board, move.from_square, move.to_square
        ):
            raise IllegalMoveError(
                f"Invalid move for that piece (simplified rules): {move}"
            )

        captured = self.board.move_piece(move.from_square, move.to_square)
        opponent = self.seats[self.turn.opponent]
        self.turn = self.turn.opponent

        if captured is not None and captured.is_king:
            self.status = Status.FINISHED
            self.winner = player
            self.loser = opponent
            return MoveOutcome.KING_CAPTURED
        return MoveOutcome.CONTINUE

    def reset(self) -> None:
        """Back to the created state. Allowed at any time."""
        fresh = self.new_session()
        self.board = fresh.board
        self.turn = fresh.turn
        self.seats = fresh.seats
        self.status = fresh.status
        self.winner = None
        self.loser = None
        self.settled_winner = None

    def needs_settlement(self, winner: str) -> bool:
        """Finished with this winner, and this winner has not been paid out yet."""
        return (
            self.status == Status.FINISHED
            and self.winner == winner
            and self.settled_winner != winner
        )

    def mark_settled(self) -> None:
        self.settled_winner = self.winner

    # -- PRIVATE HELPERS ---
    def _assert_your_turn(self, player: str) -> None:
        """You must hold the seat of the side that is to move."""
        player_to_move = self.seats[self.turn]
        if player != player_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.turn} ({player_to_move}) to make a move first."
            )

    def _assert_your_piece(self, move: Move) -> None:
        if not move.from_square.is_within_bounds():
            raise IllegalMoveError(f"Square is not on the board: {move.from_square}")
        piece = self.board.piece(move.from_square)
        if piece is None:
            raise NotYourPieceError("Please select a piece to move.")
        if piece.color != self.turn:
            raise NotYourPieceError("You can only move your own pieces.")
