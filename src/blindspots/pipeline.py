"""Batch orchestration: fetch games, run the detector, collect blunders."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from blindspots.blunder import Blunder
from blindspots.blunder_detector import BlunderDetector
from blindspots.chess_time_class import ChessTimeClass
from blindspots.config import Settings, get_settings
from blindspots.engine_client import create_engine_client
from blindspots.errors import NoGamesFoundError
from blindspots.game_record import GameRecord
from blindspots.game_record_parser import parse_game_record
from blindspots.ports.evaluation_engine import EngineFactory
from blindspots.ports.game_source_client import GameSourceClient
from blindspots.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    blunders: tuple[Blunder, ...]
    games_analyzed: int
    games_skipped: int

    @property
    def message(self) -> str:
        if not self.blunders:
            return "No blunders found! You played well."
        return f"Found {len(self.blunders)} blunders across {self.games_analyzed} games."


def select_games(
    games: Sequence[GameRecord],
    limit: int,
    time_class: ChessTimeClass | None = None,
) -> list[GameRecord]:
    """Keep the ``limit`` most recent games of ``time_class`` (all when ``None``)."""
    matching = [game for game in games if time_class is None or game.time_class == time_class]
    if limit <= 0:
        return []
    return matching[-limit:]


def _report(progress: ProgressCallback | None, message: str) -> None:
    logger.info(message)
    if progress is not None:
        progress(message)


def _time_class_label(time_class: ChessTimeClass | None) -> str:
    return f"{time_class.value} " if time_class is not None else ""


async def analyze_player(
    username: str,
    *,
    settings: Settings | None = None,
    game_source: GameSourceClient,
    engine_factory: EngineFactory = create_engine_client,
    time_class: ChessTimeClass | None = None,
    progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Find ``username``'s blunders across their recent games.

    ``time_class=None`` analyses games of every time class; the configured
    default is applied by the HTTP layer, not here.

    Source errors surface before any engine session is opened. One engine
    session serves the whole batch and is destroyed when the batch ends,
    whether it succeeded or not.

    Raises:
        GameSourceError: The game source failed (including ``NoGamesFoundError``).
        EngineError: The engine could not be started or the session died.
    """
    settings = settings or get_settings()
    _report(progress, "Fetching games...")
    fetched = await asyncio.to_thread(
        game_source.fetch_recent_games, username, settings.games_to_analyze * 2
    )
    games = select_games(fetched, settings.games_to_analyze, time_class)
    if not games:
        raise NoGamesFoundError(f"No {_time_class_label(time_class)}games found.")
    _report(
        progress,
        f"Found {len(games)} {_time_class_label(time_class)}games. Starting analysis...",
    )

    engine = engine_factory(settings)
    detector = BlunderDetector(
        engine,
        threshold=settings.blunder_threshold_cp,
        depth=settings.stockfish_depth,
    )
    blunders: list[Blunder] = []
    skipped = 0
    try:
        for index, record in enumerate(games, start=1):
            _report(progress, f"Analyzing game {index} of {len(games)}...")
            parsed = parse_game_record(record, username)
            if parsed.parse_error is not None:
                skipped += 1
                continue
            detection = await detector.detect(parsed)
            blunders.extend(detection.blunders)
    finally:
        await engine.destroy()

    result = AnalysisResult(
        blunders=tuple(blunders),
        games_analyzed=len(games),
        games_skipped=skipped,
    )
    _report(progress, result.message)
    return result
