"""Views over a batch of blunders: filtering, ranking, grouping and stats.

Every function here is pure and returns fresh tuples or mappings.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from blindspots.blunder import Blunder
from blindspots.chess_time_class import ChessTimeClass
from blindspots.config import DEFAULT_MAX_BLUNDERS_TO_SHOW


class ViewMode(StrEnum):
    OVERALL = "overall"
    BY_GAME = "by_game"


def filter_blunders(
    blunders: Iterable[Blunder],
    time_class: ChessTimeClass | None = None,
) -> tuple[Blunder, ...]:
    """Keep blunders from games of ``time_class``; ``None`` keeps everything."""
    if time_class is None:
        return tuple(blunders)
    return tuple(blunder for blunder in blunders if blunder.time_class == time_class)


def worst_blunders(
    blunders: Iterable[Blunder],
    limit: int = DEFAULT_MAX_BLUNDERS_TO_SHOW,
) -> tuple[Blunder, ...]:
    """Return the ``limit`` largest drops, biggest first (stable on ties)."""
    ranked = sorted(blunders, key=lambda blunder: blunder.eval_drop, reverse=True)
    return tuple(ranked[: max(limit, 0)])


def group_blunders_by_game(blunders: Iterable[Blunder]) -> Mapping[str, tuple[Blunder, ...]]:
    """Group by game URL in first-seen order, each group sorted by ply."""
    groups: dict[str, list[Blunder]] = {}
    for blunder in blunders:
        groups.setdefault(blunder.game_url, []).append(blunder)
    return MappingProxyType(
        {
            url: tuple(sorted(items, key=lambda blunder: blunder.ply_index))
            for url, items in groups.items()
        }
    )


@dataclass(frozen=True, slots=True)
class BlunderStats:
    total: int = 0
    by_piece: Mapping[str, int] = field(default_factory=dict)
    by_phase: Mapping[str, int] = field(default_factory=dict)
    by_time_class: Mapping[str, int] = field(default_factory=dict)
    missed_captures: int = 0
    in_losses: int = 0
    average_drop: float = 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "by_piece": dict(self.by_piece),
            "by_phase": dict(self.by_phase),
            "by_time_class": dict(self.by_time_class),
            "missed_captures": self.missed_captures,
            "in_losses": self.in_losses,
            "average_drop": self.average_drop,
        }


def _count(values: Iterable[str]) -> Mapping[str, int]:
    counts = Counter(values)
    return MappingProxyType(dict(counts.most_common()))


def compute_blunder_stats(blunders: Iterable[Blunder]) -> BlunderStats:
    items = tuple(blunders)
    if not items:
        return BlunderStats()
    return BlunderStats(
        total=len(items),
        by_piece=_count(blunder.piece_moved.value for blunder in items),
        by_phase=_count(blunder.game_phase.value for blunder in items),
        by_time_class=_count(blunder.time_class.value for blunder in items),
        missed_captures=sum(1 for blunder in items if blunder.missed_capture),
        in_losses=sum(1 for blunder in items if blunder.in_lost_game),
        average_drop=sum(blunder.eval_drop for blunder in items) / len(items),
    )


@dataclass(frozen=True, slots=True)
class BlunderReport:
    """Everything a consumer needs to render one batch."""

    view: ViewMode
    time_class: ChessTimeClass | None
    blunders: tuple[Blunder, ...]
    worst: tuple[Blunder, ...]
    by_game: Mapping[str, tuple[Blunder, ...]]
    stats: BlunderStats


def build_blunder_report(
    blunders: Iterable[Blunder],
    *,
    time_class: ChessTimeClass | None = None,
    view: ViewMode = ViewMode.OVERALL,
    limit: int = DEFAULT_MAX_BLUNDERS_TO_SHOW,
) -> BlunderReport:
    filtered = filter_blunders(blunders, time_class)
    return BlunderReport(
        view=view,
        time_class=time_class,
        blunders=filtered,
        worst=worst_blunders(filtered, limit),
        by_game=group_blunders_by_game(filtered),
        stats=compute_blunder_stats(filtered),
    )
