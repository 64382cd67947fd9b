"""Finished-game records handed from the game source to the analysis pipeline."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from blindspots.chess_time_class import ChessTimeClass

_RESULT_HEADER = re.compile(r'\[Result "([^"]+)"\]')
_TIME_CONTROL_HEADER = re.compile(r'\[TimeControl "([^"]+)"\]')
UNKNOWN_RESULT = "*"


def extract_result_marker(pgn: str) -> str:
    """Return the PGN ``Result`` header value, ``*`` when absent."""
    match = _RESULT_HEADER.search(pgn or "")
    return match.group(1) if match else UNKNOWN_RESULT


def extract_time_control(pgn: str) -> str | None:
    match = _TIME_CONTROL_HEADER.search(pgn or "")
    return match.group(1) if match else None


class GameRecord(BaseModel):
    """One finished game as fetched from the game source.

    Attributes:
        pgn: Full game transcript in PGN (SAN move text plus headers).
        white: White player's username.
        black: Black player's username.
        url: Canonical game URL.
        time_class: Time control class of the game.
        result: Declared result marker ("1-0", "0-1", "1/2-1/2" or "*").

    Example:
        >>> GameRecord(pgn="1. e4 e5 *", white="a", black="b", url="https://x/1")
    """

    model_config = ConfigDict(frozen=True)

    pgn: str
    white: str
    black: str
    url: str
    time_class: ChessTimeClass = ChessTimeClass.RAPID
    result: str = Field(default=UNKNOWN_RESULT)

    @classmethod
    def from_pgn(
        cls,
        pgn: str,
        *,
        white: str,
        black: str,
        url: str,
        time_class: ChessTimeClass = ChessTimeClass.RAPID,
    ) -> GameRecord:
        """Build a record, reading the result marker from the PGN headers."""
        return cls(
            pgn=pgn,
            white=white,
            black=black,
            url=url,
            time_class=time_class,
            result=extract_result_marker(pgn),
        )
