"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define the movement shape for each piece type.

NOTE: These are simplified rules. Sliding pieces (bishop, rook, queen) only check the direction of the move,
never whether the path is obstructed. There is no check/checkmate, castling, en passant, or promotion.
A king can be captured like any other piece; that is how a game is won.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import Piece
from src.chess.square import Square
from src.core.shared_types import Color, PieceType


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square

    @classmethod
    def from_algebraic(cls, from_sq: str, to_sq: str) -> Self:
        return cls(Square.from_algebraic(from_sq), Square.from_algebraic(to_sq))

    @classmethod
    def from_indices(cls, from_index: int, to_index: int) -> Self:
        return cls(Square.from_index(from_index), Square.from_index(to_index))

    @property
    def delta(self) -> tuple[int, int]:
        return (
            self.to_square.row - self.from_square.row,
            self.to_square.col - self.from_square.col,
        )

    def __str__(self) -> str:
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}"


# White moves up the board (towards row 0), black moves down.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_START_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}


# --- MOVEMENT RULES ---
def pawn_rule(board: Board, move: Move, color: Color) -> bool:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - It can move by two from its starting row, if both squares it passes are empty.
    - takes diagonally (one square forward), only when capturing.
    """
    d_row, d_col = move.delta
    forward = PAWN_DIRECTION[color]
    target_empty = board.is_empty(move.to_square)

    if d_col == 0:
        if d_row == forward and target_empty:
            return True
        if d_row == 2 * forward and target_empty:
            passed = Square(move.from_square.row + forward, move.from_square.col)
            return move.from_square.row == PAWN_START_ROW[color] and board.is_empty(
                passed
            )
        return False

    return abs(d_col) == 1 and d_row == forward and not target_empty


def knight_rule(board: Board, move: Move, color: Color) -> bool:
    """L-shape: two along one axis, one along the other"""
    d_row, d_col = move.delta
    return (abs(d_row), abs(d_col)) in {(2, 1), (1, 2)}


def bishop_rule(board: Board, move: Move, color: Color) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    d_row, d_col = move.delta
    return abs(d_row) == abs(d_col)


def rook_rule(board: Board, move: Move, color: Color) -> bool:
    """Rooks move either horizontally or vertically"""
    d_row, d_col = move.delta
    return d_row == 0 or d_col == 0


def queen_rule(board: Board, move: Move, color: Color) -> bool:
    """The Queen combines the rook and bishop shapes"""
    return rook_rule(board, move, color) or bishop_rule(board, move, color)


def king_rule(board: Board, move: Move, color: Color) -> bool:
    """A single step in any direction"""
    d_row, d_col = move.delta
    return abs(d_row) <= 1 and abs(d_col) <= 1


MovementRuleFn = Callable[[Board, Move, Color], bool]

MOVEMENT_RULES: dict[PieceType, MovementRuleFn] = {
    PieceType.PAWN: pawn_rule,
    PieceType.KNIGHT: knight_rule,
    PieceType.BISHOP: bishop_rule,
    PieceType.ROOK: rook_rule,
    PieceType.QUEEN: queen_rule,
    PieceType.KING: king_rule,
}


def is_legal(board: Board, from_square: Square, to_square: Square) -> bool:
    """
    Decide whether moving the piece on from_square to to_square has a valid shape.
    ----

    Pure function. Does NOT check whose turn it is; the caller makes sure the piece belongs to the side to move.
    """
    if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
        return False

    piece = board.piece(from_square)
    if piece is None:
        return False

    # cannot capture your own piece
    target = board.piece(to_square)
    if target is not None and target.color == piece.color:
        return False

    movement_rule = MOVEMENT_RULES.get(piece.type)
    if movement_rule is None:
        return False
    return movement_rule(board, Move(from_square, to_square), piece.color)
