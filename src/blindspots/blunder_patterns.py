"""Recurring blunder patterns and a short takeaway for a batch."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from blindspots.blunder import Blunder
from blindspots.game_phase import GamePhase

MIN_PATTERN_COUNT = 2
PHASE_SHARE = 0.6
PIECE_SHARE = 0.4
MISSED_CAPTURE_SHARE = 0.4
TIME_CLASS_SHARE = 0.6


class PatternKind(StrEnum):
    PIECE = "piece"
    PHASE = "phase"
    CAPTURE = "capture"
    TIME = "time"
    COSTLY = "costly"


@dataclass(frozen=True, slots=True)
class BlunderPattern:
    kind: PatternKind
    count: int
    description: str

    def as_dict(self) -> dict[str, object]:
        return {"type": self.kind.value, "count": self.count, "description": self.description}


def _top(counter: Counter) -> tuple[str, int] | None:
    ranked = counter.most_common(1)
    return ranked[0] if ranked else None


def _phase_counts(blunders: Iterable[Blunder]) -> Counter:
    counts: Counter = Counter({phase.value: 0 for phase in GamePhase})
    counts.update(blunder.game_phase.value for blunder in blunders)
    return counts


def _share(total: int, fraction: float) -> int:
    return math.ceil(total * fraction)


def detect_blunder_patterns(blunders: Iterable[Blunder]) -> tuple[BlunderPattern, ...]:
    """Return the patterns that occur at least twice in ``blunders``."""
    items = tuple(blunders)
    patterns: list[BlunderPattern] = []

    piece = _top(Counter(blunder.piece_moved.value for blunder in items))
    if piece and piece[1] >= MIN_PATTERN_COUNT:
        patterns.append(
            BlunderPattern(
                PatternKind.PIECE,
                piece[1],
                f"{piece[1]} of your blunders involved your {piece[0]}",
            )
        )

    phase = _top(+_phase_counts(items))
    if phase and phase[1] >= MIN_PATTERN_COUNT:
        patterns.append(
            BlunderPattern(
                PatternKind.PHASE,
                phase[1],
                f"{phase[1]} blunders happened in the {phase[0]}",
            )
        )

    missed = sum(1 for blunder in items if blunder.missed_capture)
    if missed >= MIN_PATTERN_COUNT:
        patterns.append(
            BlunderPattern(
                PatternKind.CAPTURE,
                missed,
                f"{missed} times you missed a winning capture",
            )
        )

    time_counts = Counter(blunder.time_class.value for blunder in items)
    time_class = _top(time_counts)
    if time_class and time_class[1] >= MIN_PATTERN_COUNT and len(time_counts) > 1:
        patterns.append(
            BlunderPattern(
                PatternKind.TIME,
                time_class[1],
                f"{time_class[1]} blunders came from {time_class[0]} games",
            )
        )

    losses = sum(1 for blunder in items if blunder.in_lost_game)
    if losses >= MIN_PATTERN_COUNT:
        patterns.append(
            BlunderPattern(
                PatternKind.COSTLY,
                losses,
                f"{losses} of these blunders led to losses",
            )
        )
    return tuple(patterns)


def summarize_blunders(blunders: Iterable[Blunder]) -> str:
    """Return a one-paragraph takeaway, empty when there are no blunders."""
    items = tuple(blunders)
    if not items:
        return ""
    total = len(items)
    parts: list[str] = []

    phase, phase_count = _top(_phase_counts(items))
    if phase_count >= _share(total, PHASE_SHARE):
        parts.append(f"Most of your mistakes happen in the {phase}.")

    piece, piece_count = _top(Counter(blunder.piece_moved.value for blunder in items))
    if piece_count >= _share(total, PIECE_SHARE):
        parts.append(f"Watch your {piece} moves more carefully.")

    missed = sum(1 for blunder in items if blunder.missed_capture)
    if missed >= _share(total, MISSED_CAPTURE_SHARE):
        parts.append("You're missing winning captures - slow down and look for threats.")

    time_counts = Counter(blunder.time_class.value for blunder in items)
    _, time_count = _top(time_counts)
    if time_count >= _share(total, TIME_CLASS_SHARE) and len(time_counts) > 1:
        parts.append("Consider playing slower time controls to reduce blunders.")

    if not parts:
        losses = sum(1 for blunder in items if blunder.in_lost_game)
        if losses > total / 2:
            parts.append(
                "These blunders are costing you games. "
                "Take an extra moment before making your move."
            )
        else:
            parts.append("Keep practicing! Focus on checking for threats before each move.")
    return " ".join(parts)
