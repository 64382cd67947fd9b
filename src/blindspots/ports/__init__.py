"""Ports for external collaborators of the analysis pipeline."""

from blindspots.ports.evaluation_engine import EngineFactory, EvaluationEngine
from blindspots.ports.game_source_client import GameSourceClient

__all__ = ["EngineFactory", "EvaluationEngine", "GameSourceClient"]
