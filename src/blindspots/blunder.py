"""Blunder records emitted by the detector."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from blindspots.chess_game_result import ChessGameResult
from blindspots.chess_piece_type import ChessPieceType
from blindspots.chess_time_class import ChessTimeClass
from blindspots.game_phase import GamePhase


class Blunder(BaseModel):
    """A player move that dropped the evaluation by at least the threshold.

    Evaluations are centipawns from the player's point of view (positive is
    good for the player). ``eval_drop`` always equals
    ``eval_before - eval_after``.
    """

    model_config = ConfigDict(frozen=True)

    fen: str
    move_played: str
    move_from: str
    move_to: str
    best_move: str | None = None
    best_move_from: str | None = None
    best_move_to: str | None = None
    best_move_timed_out: bool = False
    eval_before: int
    eval_after: int
    eval_drop: int
    ply_index: int
    move_number: int
    player_color: Literal["white", "black"]
    game_url: str
    opponent: str
    game_result: ChessGameResult
    time_class: ChessTimeClass
    piece_moved: ChessPieceType
    was_capture: bool
    best_move_was_capture: bool
    game_phase: GamePhase

    @model_validator(mode="after")
    def _check_eval_drop(self) -> Blunder:
        if self.eval_drop != self.eval_before - self.eval_after:
            raise ValueError(
                f"eval_drop {self.eval_drop} != eval_before {self.eval_before} "
                f"- eval_after {self.eval_after}"
            )
        return self

    @property
    def missed_capture(self) -> bool:
        """True when the engine wanted a capture and the player did not capture."""
        return self.best_move_was_capture and not self.was_capture

    @property
    def in_lost_game(self) -> bool:
        return self.game_result == ChessGameResult.LOSS
