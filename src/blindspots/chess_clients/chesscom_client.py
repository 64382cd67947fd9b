"""Chess.com monthly archive client."""

from __future__ import annotations

import logging
import time

import requests
from pydantic import BaseModel, ConfigDict, ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from blindspots.chess_clients.base_chess_client import BaseChessClient, BaseChessClientContext
from blindspots.chess_clients.retry_after import parse_retry_after
from blindspots.chess_time_class import normalize_time_class
from blindspots.config import Settings, get_settings
from blindspots.errors import (
    GameSourceError,
    NoGamesFoundError,
    PlayerNotFoundError,
    RateLimitError,
)
from blindspots.game_record import GameRecord, extract_time_control
from blindspots.utils import Logger

logger = Logger(__name__)

MONTHLY_ARCHIVE_URL = "https://api.chess.com/pub/player/{username}/games/{year:04d}/{month:02d}"
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_TOO_MANY_REQUESTS = 429
MAX_CONNECTION_BACKOFF_S = 10


class ChesscomPlayerPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str
    rating: int | None = None
    result: str | None = None


class ChesscomGamePayload(BaseModel):
    """One game entry of a chess.com monthly archive."""

    model_config = ConfigDict(extra="ignore")

    url: str
    pgn: str = ""
    time_class: str | None = None
    time_control: str | None = None
    end_time: int | None = None
    white: ChesscomPlayerPayload
    black: ChesscomPlayerPayload

    def to_game_record(self) -> GameRecord:
        time_class = normalize_time_class(
            self.time_class,
            self.time_control or extract_time_control(self.pgn),
        )
        return GameRecord.from_pgn(
            self.pgn,
            white=self.white.username,
            black=self.black.username,
            url=self.url,
            time_class=time_class,
        )


class ChesscomClient(BaseChessClient):
    """Fetch a player's recent games from the chess.com published-data API."""

    def fetch_recent_games(self, username: str, limit: int) -> list[GameRecord]:
        """Return the last ``limit`` games of the current (or previous) month.

        Raises:
            PlayerNotFoundError: chess.com does not know ``username``.
            NoGamesFoundError: Neither this month nor the previous one has games.
            GameSourceError: Any other failure reaching chess.com.
        """

        current, previous = self._archive_months()
        games = self._fetch_month(username, *current)
        if not games:
            year, month = previous
            self.logger.info(
                "No games for %s in %04d-%02d, trying %04d-%02d",
                username,
                *current,
                year,
                month,
            )
            try:
                games = self._fetch_month(username, year, month)
            except GameSourceError as exc:
                self.logger.warning("Previous month fetch failed for %s: %s", username, exc)
                games = []
        if not games:
            raise NoGamesFoundError(f'No recent games found for "{username}"')
        recent = self._most_recent(games, limit)
        self.logger.info("Fetched %s chess.com games for %s", len(recent), username)
        return [game.to_game_record() for game in recent]

    def _fetch_month(self, username: str, year: int, month: int) -> list[ChesscomGamePayload]:
        url = MONTHLY_ARCHIVE_URL.format(username=username.lower(), year=year, month=month)
        try:
            response = self._get(url)
        except requests.RequestException as exc:
            raise GameSourceError(f"Failed to fetch games: {exc}") from exc
        if response.status_code == HTTP_STATUS_NOT_FOUND:
            raise PlayerNotFoundError(f'Player "{username}" not found on chess.com')
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise GameSourceError(f"Failed to fetch games: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise GameSourceError(f"Malformed response from {url}") from exc
        return self._coerce_games(payload.get("games") or [])

    def _coerce_games(self, raw_games: list[dict]) -> list[ChesscomGamePayload]:
        games: list[ChesscomGamePayload] = []
        for raw in raw_games:
            try:
                game = ChesscomGamePayload.model_validate(raw)
            except ValidationError as exc:
                self.logger.warning("Skipping malformed chess.com game: %s", exc)
                continue
            if not game.pgn:
                continue
            games.append(game)
        return games

    def _get(self, url: str) -> requests.Response:
        """GET ``url``, retrying connection errors and timeouts with tenacity."""

        retrying = Retrying(
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
            stop=stop_after_attempt(max(self.settings.chesscom.max_retries, 0) + 1),
            wait=wait_exponential(
                multiplier=max(self.settings.chesscom.retry_backoff_ms, 0) / 1000.0,
                max=MAX_CONNECTION_BACKOFF_S,
            ),
            reraise=True,
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
        )
        return retrying(self._get_with_backoff, url)

    def _get_with_backoff(self, url: str) -> requests.Response:
        """Fetch a URL with exponential backoff on 429 responses.

        Raises:
            RateLimitError: When retries are exhausted.
        """

        max_retries = max(self.settings.chesscom.max_retries, 0)
        base_backoff = max(self.settings.chesscom.retry_backoff_ms, 0) / 1000.0
        attempt = 0
        while True:
            response = requests.get(
                url,
                headers=self._headers(),
                timeout=self.settings.chesscom.timeout_s,
            )
            if response.status_code != HTTP_STATUS_TOO_MANY_REQUESTS:
                return response
            attempt = self._handle_rate_limit(response, attempt, max_retries, base_backoff)

    def _handle_rate_limit(
        self,
        response: requests.Response,
        attempt: int,
        max_retries: int,
        base_backoff: float,
    ) -> int:
        retry_after = parse_retry_after((response.headers or {}).get("Retry-After"))
        if attempt >= max_retries:
            raise RateLimitError("Chess.com rate limit exceeded", response=response)
        wait_seconds = max(base_backoff * (2**attempt), retry_after or 0.0)
        self.logger.warning(
            "Chess.com rate limited (429). Retrying in %.2fs (attempt %s/%s).",
            wait_seconds,
            attempt + 1,
            max_retries,
        )
        if wait_seconds:
            time.sleep(wait_seconds)
        return attempt + 1

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.settings.chesscom.user_agent,
        }


def build_chesscom_client(settings: Settings | None = None) -> ChesscomClient:
    """Default game source factory."""

    context = BaseChessClientContext(settings=settings or get_settings(), logger=logger)
    return ChesscomClient(context)
