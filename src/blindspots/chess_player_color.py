from __future__ import annotations

from enum import Enum

import chess

from blindspots.chess_game_result import ChessGameResult

_WINNING_MARKER = {True: "1-0", False: "0-1"}
_DRAW_MARKER = "1/2-1/2"


class ChessPlayerColor(Enum):
    """The side a player had in a game.

    Values are the python-chess colours so a member can be compared with
    ``board.turn`` directly.

    Methods:
        from_str(color_str: str) -> ChessPlayerColor:
            Accepts "white"/"w" or "black"/"b" in any case.
            Raises ValueError otherwise.

        owns_ply(ply_index: int) -> bool:
            Odd 1-based plies are white's, even plies are black's.

        result_mapping() -> dict[str, ChessGameResult]:
            PGN result markers mapped to the outcome from this side's view.
    """

    WHITE = chess.WHITE
    BLACK = chess.BLACK

    @classmethod
    def from_str(cls, color_str: str) -> ChessPlayerColor:
        lowered = color_str.strip().lower()
        if lowered in ("white", "w"):
            return cls.WHITE
        if lowered in ("black", "b"):
            return cls.BLACK
        raise ValueError(f"Invalid color string: {color_str}")

    @property
    def label(self) -> str:
        return chess.COLOR_NAMES[self.value]

    @property
    def opponent(self) -> ChessPlayerColor:
        return ChessPlayerColor(not self.value)

    def is_white(self) -> bool:
        return self is ChessPlayerColor.WHITE

    def is_black(self) -> bool:
        return self is ChessPlayerColor.BLACK

    def owns_ply(self, ply_index: int) -> bool:
        return (ply_index % 2 == 1) == self.value

    def result_mapping(self) -> dict[str, ChessGameResult]:
        return {
            _WINNING_MARKER[self.value]: ChessGameResult.WIN,
            _WINNING_MARKER[not self.value]: ChessGameResult.LOSS,
            _DRAW_MARKER: ChessGameResult.DRAW,
        }
