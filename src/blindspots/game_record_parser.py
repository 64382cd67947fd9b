"""Turn a fetched game into an ordered list of plies relative to one player."""

from __future__ import annotations

from dataclasses import dataclass
from io import StringIO

import chess
import chess.pgn

from blindspots.chess_game_result import ChessGameResult
from blindspots.chess_player_color import ChessPlayerColor
from blindspots.game_record import GameRecord
from blindspots.ply_move import PlyMove
from blindspots.utils import funclogger, get_logger, normalize_player_name

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ParsedGame:
    """A game record replayed and oriented towards the analysed player."""

    record: GameRecord
    player_color: ChessPlayerColor
    opponent: str
    result: ChessGameResult
    start_fen: str
    plies: tuple[PlyMove, ...]
    parse_error: str | None = None

    @property
    def player_plies(self) -> tuple[PlyMove, ...]:
        return tuple(ply for ply in self.plies if self.player_color.owns_ply(ply.ply_index))


def resolve_player_color(record: GameRecord, username: str) -> ChessPlayerColor:
    """Return WHITE when ``username`` matches the white player, otherwise BLACK."""
    if normalize_player_name(record.white) == normalize_player_name(username):
        return ChessPlayerColor.WHITE
    return ChessPlayerColor.BLACK


def resolve_opponent(record: GameRecord, color: ChessPlayerColor) -> str:
    return record.black if color.is_white() else record.white


@funclogger
def replay_pgn(pgn: str) -> tuple[str, tuple[PlyMove, ...]]:
    """Replay PGN move text and describe every ply.

    Returns:
        The starting FEN and the ordered plies.

    Raises:
        ValueError: When the text holds no game or python-chess reports errors
            (unknown notation, illegal moves).
    """
    game = chess.pgn.read_game(StringIO(pgn or ""))
    if game is None:
        raise ValueError("No game found in PGN text")
    if game.errors:
        raise ValueError(f"Unreadable move text: {game.errors[0]}")
    board = game.board()
    start_fen = board.fen()
    plies: list[PlyMove] = []
    for ply_index, move in enumerate(game.mainline_moves(), start=1):
        plies.append(PlyMove.from_board(board, move, ply_index))
        board.push(move)
    return start_fen, tuple(plies)


def parse_game_record(record: GameRecord, username: str) -> ParsedGame:
    """Orient ``record`` towards ``username`` and replay its moves.

    Never raises for bad move text: such games come back with zero plies and
    ``parse_error`` set, so they contribute no blunders.
    """
    color = resolve_player_color(record, username)
    opponent = resolve_opponent(record, color)
    result = ChessGameResult.from_marker(record.result, color)
    try:
        start_fen, plies = replay_pgn(record.pgn)
    except ValueError as exc:
        logger.warning("Skipping unparseable game %s: %s", record.url, exc)
        return ParsedGame(
            record=record,
            player_color=color,
            opponent=opponent,
            result=result,
            start_fen=chess.STARTING_FEN,
            plies=(),
            parse_error=str(exc),
        )
    return ParsedGame(
        record=record,
        player_color=color,
        opponent=opponent,
        result=result,
        start_fen=start_fen,
        plies=plies,
    )
