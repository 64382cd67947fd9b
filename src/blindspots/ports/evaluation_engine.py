"""Port interface for position evaluation engines."""

# pylint: disable=too-few-public-methods

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from blindspots.config import Settings
from blindspots.engine_result import EvaluationResult


class EvaluationEngine(Protocol):
    """Stable interface for an owned engine session."""

    async def evaluate(self, fen: str, depth: int | None = None) -> EvaluationResult:
        """Evaluate ``fen`` from the side to move's point of view."""

    async def destroy(self) -> None:
        """Release the session; pending evaluations fail."""


EngineFactory = Callable[[Settings], EvaluationEngine]
