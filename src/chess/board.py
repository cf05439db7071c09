"""The board holds the layout of pieces: 64 cells, each either a Piece or empty (None)."""

from dataclasses import dataclass
from typing import Optional, Self

from src.chess.pieces import Piece
from src.chess.square import NUM_CELLS, Square
from src.core.exceptions import BoardFormatError
from src.core.shared_types import Color

Cell = Optional[Piece]
EMPTY_CHAR = "."

# Row 0 (black back rank) first, row 7 (white back rank) last.
INITIAL_BOARD = (
    "rnbqkbnr"
    "pppppppp"
    "........"
    "........"
    "........"
    "........"
    "PPPPPPPP"
    "RNBQKBNR"
)


@dataclass
class Board:
    cells: list[Cell]

    @classmethod
    def from_string(cls, board_str: str) -> Self:
        """
        Parse the storage format: one character per cell, in index order.
        Upper case letters are white pieces, lower case black pieces, '.' an empty cell.
        """
        if len(board_str) != NUM_CELLS:
            raise BoardFormatError(
                f"Board must have {NUM_CELLS} cells, got {len(board_str)}."
            )
        return cls(
            [None if char == EMPTY_CHAR else Piece.from_char(char) for char in board_str]
        )

    @classmethod
    def initial(cls) -> Self:
        return cls.from_string(INITIAL_BOARD)

    def to_string(self) -> str:
        return "".join(
            EMPTY_CHAR if cell is None else cell.to_char() for cell in self.cells
        )

    def piece(self, square: Square) -> Cell:
        return self.cells[square.index]

    def is_empty(self, square: Square) -> bool:
        return self.piece(square) is None

    def color_at(self, square: Square) -> Optional[Color]:
        cell = self.piece(square)
        return cell.color if cell is not None else None

    def locate_kings(self, color: Color) -> list[Square]:
        return [
            Square.from_index(index)
            for index, cell in enumerate(self.cells)
            if cell is not None and cell.is_king and cell.color == color
        ]

    def move_piece(self, from_square: Square, to_square: Square) -> Cell:
        """Relocate the piece, clear the source cell. Returns whatever was captured on the destination (None if empty)."""
        captured = self.piece(to_square)
        self.cells[to_square.index] = self.piece(from_square)
        self.cells[from_square.index] = None
        return captured
