"""Replay a parsed game through the engine and flag the player's blunders."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

import chess

from blindspots.blunder import Blunder
from blindspots.chess_piece_type import ChessPieceType
from blindspots.config import DEFAULT_ANALYSIS_DEPTH, DEFAULT_BLUNDER_THRESHOLD_CP
from blindspots.engine_result import EvaluationResult
from blindspots.errors import EngineEvaluationError
from blindspots.game_phase import classify_game_phase
from blindspots.game_record_parser import ParsedGame
from blindspots.ply_move import PlyMove
from blindspots.ports.evaluation_engine import EvaluationEngine
from blindspots.utils.logger import funclogger, get_logger

logger = get_logger(__name__)


class DetectorState(StrEnum):
    AWAITING_OPPONENT_MOVE = "awaiting_opponent_move"
    AWAITING_PLAYER_EVAL = "awaiting_player_eval"


class PlyOutcome(StrEnum):
    EVALUATED = "evaluated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PlyEvaluation:
    """Evaluation trace for one of the player's plies.

    ``eval_before``/``eval_after``/``eval_drop`` are ``None`` when the engine
    failed on this ply.
    """

    ply_index: int
    move_number: int
    san: str
    outcome: PlyOutcome
    eval_before: int | None = None
    eval_after: int | None = None
    eval_drop: int | None = None
    timed_out: bool = False
    is_blunder: bool = False


@dataclass(frozen=True, slots=True)
class DetectionResult:
    blunders: tuple[Blunder, ...]
    evaluations: tuple[PlyEvaluation, ...]


def is_capture_san(san: str) -> bool:
    return "x" in san


def best_move_was_capture(fen_before: str, best_move: str | None) -> bool:
    """Return True when ``best_move`` lands on an occupied square of ``fen_before``."""
    if not best_move or len(best_move) < 4:
        return False
    try:
        square = chess.parse_square(best_move[2:4])
    except ValueError:
        return False
    return chess.Board(fen_before).piece_at(square) is not None


class BlunderDetector:
    """Scan one game at a time, tracking a player-perspective baseline.

    Engine scores are relative to the side to move. After an opponent ply the
    player is to move, so the raw score is the player's baseline. After a
    player ply the opponent is to move, so the score is negated.

    Evaluation failures are local to the ply; ``EngineSessionClosedError``
    propagates to the caller.
    """

    def __init__(
        self,
        engine: EvaluationEngine,
        *,
        threshold: int = DEFAULT_BLUNDER_THRESHOLD_CP,
        depth: int = DEFAULT_ANALYSIS_DEPTH,
    ) -> None:
        self._engine = engine
        self.threshold = threshold
        self.depth = depth

    @funclogger
    async def detect(self, parsed: ParsedGame) -> DetectionResult:
        blunders: list[Blunder] = []
        evaluations: list[PlyEvaluation] = []
        board = chess.Board(parsed.start_fen)
        baseline = 0
        for ply in parsed.plies:
            board.push(ply.as_move())
            if not parsed.player_color.owns_ply(ply.ply_index):
                # State: AWAITING_OPPONENT_MOVE
                result = await self._try_evaluate(board.fen(), ply)
                if result is not None:
                    baseline = result.score_cp
                continue
            # State: AWAITING_PLAYER_EVAL
            result = await self._try_evaluate(board.fen(), ply)
            if result is None:
                evaluations.append(
                    PlyEvaluation(
                        ply_index=ply.ply_index,
                        move_number=ply.move_number,
                        san=ply.san,
                        outcome=PlyOutcome.FAILED,
                    )
                )
                continue
            eval_after = -result.score_cp
            eval_drop = baseline - eval_after
            is_blunder = eval_drop >= self.threshold
            evaluations.append(
                PlyEvaluation(
                    ply_index=ply.ply_index,
                    move_number=ply.move_number,
                    san=ply.san,
                    outcome=PlyOutcome.EVALUATED,
                    eval_before=baseline,
                    eval_after=eval_after,
                    eval_drop=eval_drop,
                    timed_out=result.timed_out,
                    is_blunder=is_blunder,
                )
            )
            if is_blunder:
                alternative = await self._try_evaluate(ply.fen_before, ply)
                blunders.append(
                    self._build_blunder(parsed, ply, baseline, eval_after, alternative)
                )
            baseline = eval_after
        if blunders:
            logger.info(
                "Found %d blunder(s) in %s",
                len(blunders),
                parsed.record.url,
            )
        return DetectionResult(blunders=tuple(blunders), evaluations=tuple(evaluations))

    async def _try_evaluate(self, fen: str, ply: PlyMove) -> EvaluationResult | None:
        try:
            return await self._engine.evaluate(fen, self.depth)
        except EngineEvaluationError as exc:
            logger.warning("Evaluation failed at ply %d (%s): %s", ply.ply_index, ply.san, exc)
            return None

    def _build_blunder(
        self,
        parsed: ParsedGame,
        ply: PlyMove,
        eval_before: int,
        eval_after: int,
        alternative: EvaluationResult | None,
    ) -> Blunder:
        best_move = alternative.best_move if alternative is not None else None
        return Blunder(
            fen=ply.fen_before,
            move_played=ply.san,
            move_from=ply.from_square,
            move_to=ply.to_square,
            best_move=best_move,
            best_move_from=best_move[0:2] if best_move else None,
            best_move_to=best_move[2:4] if best_move else None,
            best_move_timed_out=alternative is not None and alternative.timed_out,
            eval_before=eval_before,
            eval_after=eval_after,
            eval_drop=eval_before - eval_after,
            ply_index=ply.ply_index,
            move_number=ply.move_number,
            player_color=parsed.player_color.label,
            game_url=parsed.record.url,
            opponent=parsed.opponent,
            game_result=parsed.result,
            time_class=parsed.record.time_class,
            piece_moved=ChessPieceType.from_san(ply.san),
            was_capture=is_capture_san(ply.san),
            best_move_was_capture=best_move_was_capture(ply.fen_before, best_move),
            game_phase=classify_game_phase(ply.move_number),
        )
