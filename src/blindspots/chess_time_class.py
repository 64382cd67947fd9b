"""Time class bucketing for chess.com archive games."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

_TIME_CLASS_ALIASES = {
    "correspondence": "daily",
    "classical": "rapid",
    "standard": "rapid",
}
# "180+2", "600", "1/86400"; anything else falls back to its first number.
_TIME_CONTROL_RE = re.compile(r"^(?:(?P<per_move>\d+/)?(?P<base>\d+)(?:\+(?P<inc>\d+))?)$")
_FIRST_NUMBER_RE = re.compile(r"\d+")
_ASSUMED_GAME_MOVES = 40
_BULLET_MAX_SECONDS = 180
_BLITZ_MAX_SECONDS = 600


class ChessTimeClass(StrEnum):
    """Time control classes, ordered fastest to slowest."""

    BULLET = "bullet"
    BLITZ = "blitz"
    RAPID = "rapid"
    DAILY = "daily"

    @property
    def rank(self) -> int:
        return list(ChessTimeClass).index(self)


@dataclass(frozen=True)
class ChessTimeControl:
    """A PGN ``TimeControl`` value in seconds."""

    initial: int
    increment: int | None = None
    per_move: bool = False

    @classmethod
    def parse(cls, text: str | None) -> ChessTimeControl | None:
        value = (text or "").strip()
        if not value or value == "-":
            return None
        match = _TIME_CONTROL_RE.match(value)
        if match is None:
            number = _FIRST_NUMBER_RE.search(value)
            return cls(initial=int(number.group())) if number else None
        increment = match.group("inc")
        return cls(
            initial=int(match.group("base")),
            increment=int(increment) if increment is not None else None,
            per_move=match.group("per_move") is not None,
        )

    def as_str(self) -> str:
        if self.per_move:
            return f"1/{self.initial}"
        if self.increment is None:
            return str(self.initial)
        return f"{self.initial}+{self.increment}"

    def __str__(self) -> str:
        return self.as_str()

    def estimated_total_seconds(self, moves: int = _ASSUMED_GAME_MOVES) -> int:
        return self.initial + (self.increment or 0) * moves

    def bucket(self) -> ChessTimeClass:
        if self.per_move:
            return ChessTimeClass.DAILY
        seconds = self.estimated_total_seconds()
        if seconds <= _BULLET_MAX_SECONDS:
            return ChessTimeClass.BULLET
        if seconds < _BLITZ_MAX_SECONDS:
            return ChessTimeClass.BLITZ
        return ChessTimeClass.RAPID


def normalize_time_class(
    value: str | None,
    time_control: str | None = None,
    default: ChessTimeClass = ChessTimeClass.RAPID,
) -> ChessTimeClass:
    """Normalize a declared time class, falling back to the PGN time control."""
    declared = (value or "").strip().lower()
    declared = _TIME_CLASS_ALIASES.get(declared, declared)
    if declared in ChessTimeClass._value2member_map_:
        return ChessTimeClass(declared)
    control = ChessTimeControl.parse(time_control)
    return control.bucket() if control is not None else default
