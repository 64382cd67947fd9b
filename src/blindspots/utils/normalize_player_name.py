"""Case-insensitive player name comparison key."""

from __future__ import annotations


def normalize_player_name(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()
