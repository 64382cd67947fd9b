import asyncio
import unittest

import pytest

from blindspots.blunder_detector import (
    BlunderDetector,
    PlyOutcome,
    best_move_was_capture,
    is_capture_san,
)
from blindspots.chess_game_result import ChessGameResult
from blindspots.chess_piece_type import ChessPieceType
from blindspots.chess_time_class import ChessTimeClass
from blindspots.engine_result import EngineScore, EvaluationResult
from blindspots.errors import EngineEvaluationError, EngineSessionClosedError
from blindspots.game_phase import GamePhase, classify_game_phase
from blindspots.game_record import GameRecord
from blindspots.game_record_parser import parse_game_record
from tests.engine_fakes import FakeEngine, positions_after, positions_before

QUEEN_SORTIE = '[White "alice"]\n[Black "bob"]\n[Result "0-1"]\n\n1. e4 e5 2. Qh5 Nc6 0-1\n'
ITALIAN = (
    '[White "bob"]\n[Black "alice"]\n[Result "1-0"]\n\n'
    "1. e4 e5 2. Nf3 Nc6 3. Bc4 Nf6 4. Ng5 d5 5. exd5 Nxd5 1-0\n"
)


def _parsed(pgn: str, username: str = "alice", url: str = "https://chess.com/game/1"):
    record = GameRecord.from_pgn(
        pgn,
        white="alice" if '[White "alice"]' in pgn else "bob",
        black="alice" if '[Black "alice"]' in pgn else "bob",
        url=url,
        time_class=ChessTimeClass.BLITZ,
    )
    return parse_game_record(record, username)


def _detect(engine, parsed, **kwargs):
    return asyncio.run(BlunderDetector(engine, **kwargs).detect(parsed))


class BlunderDetectorTests(unittest.TestCase):
    def test_player_move_scores_are_negated_before_comparing(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        before = positions_before(QUEEN_SORTIE)
        engine = FakeEngine(
            {after[0]: -30, after[1]: 40, after[2]: 350, after[3]: -360},
            best_moves={before[2]: "g1f3"},
        )

        result = _detect(engine, _parsed(QUEEN_SORTIE))

        self.assertEqual(len(result.blunders), 1)
        blunder = result.blunders[0]
        self.assertEqual(blunder.eval_before, 40)
        self.assertEqual(blunder.eval_after, -350)
        self.assertEqual(blunder.eval_drop, 390)
        self.assertEqual(blunder.move_played, "Qh5")
        self.assertEqual(blunder.move_from, "d1")
        self.assertEqual(blunder.move_to, "h5")
        self.assertEqual(blunder.fen, before[2])
        self.assertEqual(blunder.best_move, "g1f3")
        self.assertEqual(blunder.best_move_from, "g1")
        self.assertEqual(blunder.best_move_to, "f3")
        self.assertEqual(blunder.ply_index, 3)
        self.assertEqual(blunder.move_number, 2)
        self.assertEqual(blunder.player_color, "white")
        self.assertEqual(blunder.opponent, "bob")
        self.assertEqual(blunder.game_result, ChessGameResult.LOSS)
        self.assertEqual(blunder.time_class, ChessTimeClass.BLITZ)
        self.assertEqual(blunder.piece_moved, ChessPieceType.QUEEN)
        self.assertFalse(blunder.was_capture)
        self.assertFalse(blunder.best_move_was_capture)
        self.assertEqual(blunder.game_phase, GamePhase.OPENING)

        self.assertEqual([item.ply_index for item in result.evaluations], [1, 3])
        self.assertEqual(result.evaluations[0].eval_after, 30)
        self.assertEqual(result.evaluations[0].eval_drop, -30)
        self.assertTrue(result.evaluations[1].is_blunder)

    def test_favourable_player_move_is_not_a_blunder(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        engine = FakeEngine({after[1]: 0, after[2]: -250})

        result = _detect(engine, _parsed(QUEEN_SORTIE))

        self.assertEqual(result.blunders, ())
        self.assertEqual(result.evaluations[1].eval_after, 250)
        self.assertEqual(result.evaluations[1].eval_drop, -250)

    def test_drop_exactly_at_threshold_is_a_blunder(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        engine = FakeEngine({after[2]: 200})

        result = _detect(engine, _parsed(QUEEN_SORTIE))

        self.assertEqual(len(result.blunders), 1)
        self.assertEqual(result.blunders[0].eval_drop, 200)

    def test_black_player_baseline_comes_from_white_moves(self) -> None:
        after = positions_after(ITALIAN)
        before = positions_before(ITALIAN)
        # ply 7 (Ng5) leaves black to move at +10; ply 8 (d5) leaves white at +400.
        engine = FakeEngine(
            {after[6]: 10, after[7]: 400},
            best_moves={before[7]: "d7d5"},
        )

        result = _detect(engine, _parsed(ITALIAN))

        self.assertEqual([item.ply_index for item in result.evaluations], [2, 4, 6, 8, 10])
        self.assertEqual(len(result.blunders), 1)
        blunder = result.blunders[0]
        self.assertEqual(blunder.ply_index, 8)
        self.assertEqual(blunder.move_number, 4)
        self.assertEqual(blunder.player_color, "black")
        self.assertEqual(blunder.eval_before, 10)
        self.assertEqual(blunder.eval_after, -400)
        self.assertEqual(blunder.eval_drop, 410)
        self.assertEqual(blunder.piece_moved, ChessPieceType.PAWN)
        self.assertEqual(blunder.game_result, ChessGameResult.LOSS)

    def test_capture_flags(self) -> None:
        after = positions_after(ITALIAN)
        before = positions_before(ITALIAN)
        # ply 10 (Nxd5) is a capture; the engine preferred Na5 instead.
        engine = FakeEngine({after[9]: 500}, best_moves={before[9]: "c6a5"})

        result = _detect(engine, _parsed(ITALIAN))

        blunder = result.blunders[0]
        self.assertEqual(blunder.move_played, "Nxd5")
        self.assertTrue(blunder.was_capture)
        self.assertFalse(blunder.best_move_was_capture)
        self.assertEqual(blunder.piece_moved, ChessPieceType.KNIGHT)

    def test_every_player_ply_gets_one_record_even_on_failure(self) -> None:
        after = positions_after(ITALIAN)
        engine = FakeEngine({after[3]: EngineEvaluationError("boom")})

        result = _detect(engine, _parsed(ITALIAN))

        self.assertEqual(len(result.evaluations), len(_parsed(ITALIAN).player_plies))
        failed = [item for item in result.evaluations if item.outcome == PlyOutcome.FAILED]
        self.assertEqual([item.ply_index for item in failed], [4])
        self.assertIsNone(failed[0].eval_drop)

    def test_failed_evaluation_keeps_baseline(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        # opponent ply 2 fails, so the baseline stays at the negated ply-1 score (30).
        engine = FakeEngine({after[0]: -30, after[1]: EngineEvaluationError("x"), after[2]: 150})

        result = _detect(engine, _parsed(QUEEN_SORTIE))

        self.assertEqual(result.evaluations[1].eval_before, 30)
        self.assertEqual(result.evaluations[1].eval_drop, 180)
        self.assertEqual(result.blunders, ())

    def test_alternative_query_failure_still_records_blunder(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        before = positions_before(QUEEN_SORTIE)
        engine = FakeEngine({after[2]: 600, before[2]: EngineEvaluationError("nope")})

        result = _detect(engine, _parsed(QUEEN_SORTIE))

        self.assertEqual(len(result.blunders), 1)
        self.assertIsNone(result.blunders[0].best_move)
        self.assertIsNone(result.blunders[0].best_move_from)
        self.assertFalse(result.blunders[0].best_move_was_capture)

    def test_timed_out_alternative_is_flagged(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        before = positions_before(QUEEN_SORTIE)
        engine = FakeEngine(
            {
                after[2]: 600,
                before[2]: EvaluationResult(
                    score=EngineScore.centipawns(20), best_move=None, depth=4, timed_out=True
                ),
            }
        )

        blunder = _detect(engine, _parsed(QUEEN_SORTIE)).blunders[0]

        self.assertTrue(blunder.best_move_timed_out)
        self.assertIsNone(blunder.best_move)

    def test_session_closed_propagates(self) -> None:
        after = positions_after(QUEEN_SORTIE)
        engine = FakeEngine({after[2]: EngineSessionClosedError("gone")})

        with self.assertRaises(EngineSessionClosedError):
            _detect(engine, _parsed(QUEEN_SORTIE))

    def test_detection_is_idempotent(self) -> None:
        after = positions_after(ITALIAN)
        engine = FakeEngine({after[6]: 10, after[7]: 400, after[9]: 900})
        parsed = _parsed(ITALIAN)

        first = _detect(engine, parsed)
        second = _detect(engine, parsed)

        self.assertEqual(first.blunders, second.blunders)
        self.assertEqual(first.evaluations, second.evaluations)

    def test_drop_invariant_holds_for_every_blunder(self) -> None:
        after = positions_after(ITALIAN)
        engine = FakeEngine({fen: (index * 137) % 900 - 300 for index, fen in enumerate(after)})

        result = _detect(engine, _parsed(ITALIAN), threshold=100)

        for blunder in result.blunders:
            self.assertEqual(blunder.eval_drop, blunder.eval_before - blunder.eval_after)
            self.assertGreaterEqual(blunder.eval_drop, 100)

    def test_unparseable_game_yields_nothing(self) -> None:
        engine = FakeEngine()
        parsed = _parsed('[White "alice"]\n[Black "bob"]\n\n1. e4 e5 2. Ke4 *\n')

        result = _detect(engine, parsed)

        self.assertEqual(result.blunders, ())
        self.assertEqual(result.evaluations, ())
        self.assertEqual(engine.calls, [])

    def test_depth_is_forwarded(self) -> None:
        engine = FakeEngine()
        _detect(engine, _parsed(QUEEN_SORTIE), depth=7)
        self.assertTrue(engine.calls)
        self.assertTrue(all(depth == 7 for _, depth in engine.calls))


@pytest.mark.parametrize(
    ("move_number", "phase"),
    [
        (1, GamePhase.OPENING),
        (5, GamePhase.OPENING),
        (10, GamePhase.OPENING),
        (11, GamePhase.MIDDLEGAME),
        (25, GamePhase.MIDDLEGAME),
        (39, GamePhase.MIDDLEGAME),
        (40, GamePhase.ENDGAME),
        (45, GamePhase.ENDGAME),
    ],
)
def test_classify_game_phase(move_number, phase):
    assert classify_game_phase(move_number) == phase


def test_capture_helpers():
    fen = "rnbqkbnr/ppp1pppp/8/3p4/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
    assert best_move_was_capture(fen, "e4d5")
    assert not best_move_was_capture(fen, "e4e5")
    assert not best_move_was_capture(fen, None)
    assert not best_move_was_capture(fen, "zz")
    assert is_capture_san("exd5")
    assert not is_capture_san("Nf3")
