"""Defines the pieces: a tagged (color, type) pair. Empty cells are not pieces (see Cell in board.py)."""

from dataclasses import dataclass
from typing import Self

from src.core.exceptions import BoardFormatError
from src.core.shared_types import Color, PieceType

CHAR_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_CHAR: dict[PieceType, str] = {
    value: key for key, value in CHAR_TO_PIECE.items()
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_char(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        if character.lower() not in CHAR_TO_PIECE:
            raise BoardFormatError(f"Unknown piece character: {character!r}")
        color = Color.WHITE if character.isupper() else Color.BLACK
        return cls(CHAR_TO_PIECE[character.lower()], color)

    def to_char(self) -> str:
        char = PIECE_TO_CHAR[self.type]
        return char.upper() if self.color == Color.WHITE else char

    @property
    def is_king(self) -> bool:
        return self.type == PieceType.KING
