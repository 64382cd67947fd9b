"""Coarse game phase labels derived from the move number."""

from __future__ import annotations

from enum import StrEnum

OPENING_LAST_MOVE = 10
ENDGAME_FIRST_MOVE = 40


class GamePhase(StrEnum):
    OPENING = "opening"
    MIDDLEGAME = "middlegame"
    ENDGAME = "endgame"


def full_move_number(ply_index: int) -> int:
    """Return the 1-based full-move number for a 1-based ply index."""
    return (ply_index + 1) // 2


def classify_game_phase(move_number: int) -> GamePhase:
    """Classify a full-move number as opening, middlegame, or endgame."""
    if move_number <= OPENING_LAST_MOVE:
        return GamePhase.OPENING
    if move_number >= ENDGAME_FIRST_MOVE:
        return GamePhase.ENDGAME
    return GamePhase.MIDDLEGAME
