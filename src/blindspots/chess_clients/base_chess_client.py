from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

from blindspots.config import Settings
from blindspots.game_record import GameRecord
from blindspots.utils import Now

T = TypeVar("T")


@dataclass(slots=True)
class BaseChessClientContext:
    """Everything a game source client needs besides its own HTTP details.

    Attributes:
        settings: Application settings (timeouts, retries, user agent).
        logger: Logger for client-specific messages.
        clock: Returns the current UTC time; swapped out in tests.
    """

    settings: Settings
    logger: logging.Logger
    clock: Callable[[], datetime] = field(default=Now.as_datetime)


class BaseChessClient:
    """Base class for sites that publish games in monthly archives.

    Subclasses implement `fetch_recent_games`; the helpers here pick the
    archive months to look at and trim results to the newest games.
    """

    def __init__(self, context: BaseChessClientContext) -> None:
        self._context = context

    @property
    def settings(self) -> Settings:
        return self._context.settings

    @property
    def logger(self) -> logging.Logger:
        return self._context.logger

    def fetch_recent_games(self, username: str, limit: int) -> list[GameRecord]:
        """Fetch the player's most recent finished games, oldest first.

        Raises:
            NotImplementedError: When the subclass does not implement this method.
        """

        raise NotImplementedError("Subclasses must implement fetch_recent_games")

    def _now_utc(self) -> datetime:
        return self._context.clock()

    def _archive_months(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Return the current and previous ``(year, month)`` archive keys."""

        today = self._now_utc()
        current = (today.year, today.month)
        return current, Now.previous_month(*current)

    @staticmethod
    def _most_recent(items: Sequence[T], limit: int) -> list[T]:
        if limit <= 0:
            return []
        return list(items[-limit:])
