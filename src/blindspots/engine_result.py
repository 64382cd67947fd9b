from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

import chess
import chess.engine

MATE_SCORE = 10000
TIMEOUT_MARKER = "timeout"


class ScoreKind(StrEnum):
    CENTIPAWN = "centipawn"
    MATE = "mate"


@dataclass(frozen=True, slots=True)
class EngineScore:
    """Score reported by the engine, relative to the side to move."""

    kind: ScoreKind
    value: int

    @classmethod
    def centipawns(cls, value: int) -> EngineScore:
        return cls(kind=ScoreKind.CENTIPAWN, value=value)

    @classmethod
    def mate(cls, moves: int) -> EngineScore:
        return cls(kind=ScoreKind.MATE, value=moves)

    @classmethod
    def from_pov(cls, score: chess.engine.PovScore) -> EngineScore:
        relative = score.relative
        mate_in = relative.mate()
        if mate_in is not None:
            return cls.mate(mate_in)
        return cls.centipawns(relative.score() or 0)

    @property
    def mate_in(self) -> int | None:
        return self.value if self.kind == ScoreKind.MATE else None

    def as_centipawns(self) -> int:
        """Collapse the score to centipawns; mates become +/-(10000 - distance)."""
        if self.kind == ScoreKind.CENTIPAWN:
            return self.value
        if self.value > 0:
            return MATE_SCORE - self.value
        return -MATE_SCORE - self.value


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Engine verdict for one position at a fixed depth."""

    score: EngineScore
    best_move: str | None
    depth: int
    timed_out: bool = False

    @property
    def score_cp(self) -> int:
        return self.score.as_centipawns()

    @property
    def best_move_label(self) -> str:
        if self.best_move:
            return self.best_move
        return TIMEOUT_MARKER if self.timed_out else ""

    @property
    def best_move_from(self) -> str | None:
        return self.best_move[0:2] if self.best_move else None

    @property
    def best_move_to(self) -> str | None:
        return self.best_move[2:4] if self.best_move else None

    def as_move(self) -> chess.Move | None:
        if not self.best_move:
            return None
        try:
            return chess.Move.from_uci(self.best_move)
        except ValueError:
            return None

    @classmethod
    def empty(cls, *, timed_out: bool = False) -> EvaluationResult:
        return cls(score=EngineScore.centipawns(0), best_move=None, depth=0, timed_out=timed_out)

    @classmethod
    def from_info(
        cls,
        info: Mapping[str, object],
        best_move: chess.Move | None = None,
        *,
        timed_out: bool = False,
    ) -> EvaluationResult:
        """Build a result from the principal-line info python-chess aggregated.

        A null or missing best move (``bestmove (none)``) is stored as ``None``.
        """
        score = info.get("score")
        return cls(
            score=EngineScore.from_pov(score) if score is not None else EngineScore.centipawns(0),
            best_move=best_move.uci() if best_move else None,
            depth=int(info.get("depth") or 0),
            timed_out=timed_out,
        )
