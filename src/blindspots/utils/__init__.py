"""Utility exports for the blindspots package."""

from .logger import Logger, funclogger, get_logger, set_level
from .normalize_player_name import normalize_player_name
from .now import Now

__all__ = [
    "Logger",
    "Now",
    "funclogger",
    "get_logger",
    "normalize_player_name",
    "set_level",
]
