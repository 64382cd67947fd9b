from __future__ import annotations

from dataclasses import dataclass

import chess

from blindspots.game_phase import full_move_number


@dataclass(frozen=True, slots=True)
class PlyMove:
    """One half-move of a replayed game, with the position before it."""

    ply_index: int  # 1-based; odd plies are white's
    san: str
    uci: str
    from_square: str
    to_square: str
    fen_before: str

    @property
    def move_number(self) -> int:
        return full_move_number(self.ply_index)

    @property
    def is_white_move(self) -> bool:
        return self.ply_index % 2 == 1

    def as_move(self) -> chess.Move:
        return chess.Move.from_uci(self.uci)

    @classmethod
    def from_board(cls, board: chess.Board, move: chess.Move, ply_index: int) -> PlyMove:
        """Describe ``move`` as played from ``board`` (which is left unchanged)."""
        return cls(
            ply_index=ply_index,
            san=board.san(move),
            uci=move.uci(),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            fen_before=board.fen(),
        )
