import unittest

import chess

from blindspots.chess_game_result import ChessGameResult
from blindspots.chess_player_color import ChessPlayerColor
from blindspots.chess_time_class import ChessTimeClass
from blindspots.game_record import GameRecord, extract_result_marker, extract_time_control
from blindspots.game_record_parser import parse_game_record, replay_pgn

SCHOLARS_MATE = (
    '[Event "Live Chess"]\n[White "Alice"]\n[Black "bob"]\n[Result "1-0"]\n'
    '[TimeControl "180+2"]\n\n1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0\n'
)


def _record(pgn: str = SCHOLARS_MATE, **overrides) -> GameRecord:
    values = {"white": "Alice", "black": "bob", "url": "https://www.chess.com/game/live/1"}
    values.update(overrides)
    return GameRecord.from_pgn(pgn, **values)


class GameRecordTests(unittest.TestCase):
    def test_headers_are_extracted(self) -> None:
        self.assertEqual(extract_result_marker(SCHOLARS_MATE), "1-0")
        self.assertEqual(extract_time_control(SCHOLARS_MATE), "180+2")
        self.assertEqual(extract_result_marker("1. e4 *"), "*")
        self.assertIsNone(extract_time_control("1. e4 *"))

    def test_from_pgn_reads_result_marker(self) -> None:
        record = _record(time_class=ChessTimeClass.BLITZ)
        self.assertEqual(record.result, "1-0")
        self.assertEqual(record.time_class, ChessTimeClass.BLITZ)


class ParseGameRecordTests(unittest.TestCase):
    def test_player_as_white_with_case_insensitive_match(self) -> None:
        parsed = parse_game_record(_record(), "ALICE")

        self.assertEqual(parsed.player_color, ChessPlayerColor.WHITE)
        self.assertEqual(parsed.opponent, "bob")
        self.assertEqual(parsed.result, ChessGameResult.WIN)
        self.assertIsNone(parsed.parse_error)
        self.assertEqual(len(parsed.plies), 7)
        self.assertEqual([ply.ply_index for ply in parsed.player_plies], [1, 3, 5, 7])

    def test_unknown_username_defaults_to_black(self) -> None:
        parsed = parse_game_record(_record(), "someone-else")

        self.assertEqual(parsed.player_color, ChessPlayerColor.BLACK)
        self.assertEqual(parsed.opponent, "Alice")
        self.assertEqual(parsed.result, ChessGameResult.LOSS)
        self.assertEqual([ply.ply_index for ply in parsed.player_plies], [2, 4, 6])

    def test_unfinished_marker_is_a_draw(self) -> None:
        pgn = SCHOLARS_MATE.replace('[Result "1-0"]', '[Result "*"]')
        parsed = parse_game_record(_record(pgn), "alice")
        self.assertEqual(parsed.result, ChessGameResult.DRAW)

    def test_plies_describe_each_move(self) -> None:
        parsed = parse_game_record(_record(), "alice")
        first, second = parsed.plies[0], parsed.plies[1]

        self.assertEqual(first.san, "e4")
        self.assertEqual(first.uci, "e2e4")
        self.assertEqual(first.from_square, "e2")
        self.assertEqual(first.to_square, "e4")
        self.assertEqual(first.fen_before, chess.STARTING_FEN)
        self.assertEqual(first.move_number, 1)
        self.assertEqual(second.move_number, 1)
        self.assertTrue(first.is_white_move)
        self.assertFalse(second.is_white_move)
        self.assertEqual(parsed.plies[-1].san, "Qxf7#")
        self.assertEqual(parsed.plies[-1].move_number, 4)

    def test_illegal_move_yields_zero_plies(self) -> None:
        pgn = '[White "Alice"]\n[Black "bob"]\n[Result "*"]\n\n1. e4 e5 2. Ke4 *\n'
        parsed = parse_game_record(_record(pgn), "alice")

        self.assertEqual(parsed.plies, ())
        self.assertIsNotNone(parsed.parse_error)
        self.assertEqual(parsed.start_fen, chess.STARTING_FEN)

    def test_garbage_text_yields_zero_plies(self) -> None:
        parsed = parse_game_record(_record("this is not chess"), "alice")
        self.assertEqual(parsed.plies, ())

    def test_empty_text_yields_zero_plies(self) -> None:
        parsed = parse_game_record(_record(""), "alice")
        self.assertEqual(parsed.plies, ())
        self.assertIsNotNone(parsed.parse_error)


def test_replay_pgn_respects_fen_header():
    fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
    pgn = f'[SetUp "1"]\n[FEN "{fen}"]\n\n1. e4 Kd7 *\n'
    start_fen, plies = replay_pgn(pgn)
    assert start_fen == fen
    assert [ply.san for ply in plies] == ["e4", "Kd7"]
    assert plies[0].fen_before == fen


if __name__ == "__main__":
    unittest.main()
