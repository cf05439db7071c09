"""
A square (cell) on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Board is always 8x8, stored as a flat sequence of 64 cells.
BOARD_SIZE = 8
NUM_CELLS = BOARD_SIZE * BOARD_SIZE


@dataclass(frozen=True)
class Square:
    """
    Row 0 is the 8th rank (black's back rank), column 0 is the a-file.
    So index 0 is a8 and index 63 is h1, which is the order cells are stored in.
    """

    row: int
    col: int

    @classmethod
    def from_index(cls, index: int) -> Square:
        return cls(index // BOARD_SIZE, index % BOARD_SIZE)

    @property
    def index(self) -> int:
        return self.row * BOARD_SIZE + self.col

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' -> (0, 0), 'h1' -> (7, 7)"""
        col = ord(sq[0].lower()) - ord("a")
        row = BOARD_SIZE - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{BOARD_SIZE - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_SIZE) and (0 <= self.col < BOARD_SIZE)
