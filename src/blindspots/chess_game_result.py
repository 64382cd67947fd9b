from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blindspots.chess_player_color import ChessPlayerColor


class ChessGameResult(StrEnum):
    """
    Enumeration representing the outcome of a game from one player's side.

    Attributes:
        WIN: The player won.
        LOSS: The player lost.
        DRAW: Drawn, or any marker that does not name a winner.

    Methods:
        from_marker(marker: str, color: ChessPlayerColor) -> ChessGameResult:
            Interprets a PGN result marker ("1-0", "0-1", "1/2-1/2", "*")
            relative to the player's color.
    """

    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"

    @classmethod
    def from_marker(cls, marker: str | None, color: ChessPlayerColor) -> ChessGameResult:
        return color.result_mapping().get((marker or "").strip().lower(), cls.DRAW)
