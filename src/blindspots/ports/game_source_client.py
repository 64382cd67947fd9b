"""Port for anything that can hand over a player's recent games."""

# pylint: disable=too-few-public-methods

from __future__ import annotations

from typing import Protocol

from blindspots.game_record import GameRecord


class GameSourceClient(Protocol):
    """Blocking game source; the pipeline calls it from a worker thread.

    Implementations raise ``PlayerNotFoundError`` for unknown players,
    ``NoGamesFoundError`` when nothing recent exists and ``GameSourceError``
    for any other failure.
    """

    def fetch_recent_games(self, username: str, limit: int) -> list[GameRecord]: ...
