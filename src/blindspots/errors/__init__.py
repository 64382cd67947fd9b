"""Custom error types used in blindspots."""

import requests


class RateLimitError(requests.HTTPError):
    """HTTP rate limit error."""


class GameSourceError(Exception):
    """The game source could not provide games for a player."""


class PlayerNotFoundError(GameSourceError):
    """The requested player does not exist on the game source."""


class NoGamesFoundError(GameSourceError):
    """The player has no games in the queried period."""


class EngineError(Exception):
    """Base class for evaluation engine failures."""


class EngineStartupError(EngineError):
    """The engine process could not be started or did not complete its handshake."""


class EngineEvaluationError(EngineError):
    """A single evaluation request failed."""


class EngineSessionClosedError(EngineError):
    """The engine session was destroyed while a request was pending."""
