"""Which piece moved, read off SAN move text."""

from __future__ import annotations

from enum import StrEnum

import chess


class ChessPieceType(StrEnum):
    """Piece kinds, valued by their lowercase English names."""

    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    @classmethod
    def from_str(cls, string: str) -> ChessPieceType:
        """Accept a piece name ("knight") or symbol ("n", "N")."""
        text = string.strip().lower()
        if text in cls._value2member_map_:
            return cls(text)
        if len(text) == 1 and text in chess.PIECE_SYMBOLS[1:]:
            return cls(chess.PIECE_NAMES[chess.PIECE_SYMBOLS.index(text)])
        raise ValueError(f"Invalid piece string: {string}")

    @classmethod
    def from_san(cls, san: str) -> ChessPieceType:
        """Piece named by the leading SAN letter; anything else, castling included, is a pawn."""
        text = san.strip()
        if text[:1] in ("K", "Q", "R", "B", "N"):
            return cls.from_str(text[0])
        return cls.PAWN
