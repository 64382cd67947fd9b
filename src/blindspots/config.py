from __future__ import annotations

import os
from dataclasses import MISSING, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from blindspots.chess_time_class import ChessTimeClass

_MISSING = object()

load_dotenv()

DEFAULT_BLUNDER_THRESHOLD_CP = 200
DEFAULT_GAMES_TO_ANALYZE = 10
DEFAULT_MAX_BLUNDERS_TO_SHOW = 5
DEFAULT_ANALYSIS_DEPTH = 12
DEFAULT_ENGINE_TIMEOUT_S = 10.0


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_str_or_none(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    fallback = "1" if default else "0"
    return os.getenv(name, fallback) == "1"


def _env_time_class(name: str) -> ChessTimeClass | None:
    value = os.getenv(name, "").strip().lower()
    if not value or value == "all":
        return None
    return ChessTimeClass(value)


def _field_value(name: str, field_info: object, kwargs: dict[str, object]) -> object:
    value = kwargs.pop(name, _MISSING)
    if value is not _MISSING:
        return value
    default_factory = getattr(field_info, "default_factory", MISSING)
    if default_factory is not MISSING:
        return default_factory()
    default = getattr(field_info, "default", MISSING)
    if default is not MISSING:
        return default
    raise TypeError(f"Missing required argument: {name}")


def _apply_settings_aliases(settings: Settings, kwargs: dict[str, object]) -> None:
    aliases = [name for name, attr in vars(Settings).items() if isinstance(attr, _SectionAlias)]
    for alias in aliases:
        value = kwargs.pop(alias, _MISSING)
        if value is not _MISSING:
            setattr(settings, alias, value)


def _raise_on_unexpected_kwargs(kwargs: dict[str, object]) -> None:
    if kwargs:
        unexpected = next(iter(kwargs))
        raise TypeError(f"Settings.__init__() got an unexpected keyword argument '{unexpected}'")


@dataclass(slots=True)
class StockfishSettings:
    """Stockfish engine configuration."""

    path: Path = field(default_factory=lambda: Path(_env_str("STOCKFISH_PATH", "stockfish")))
    checksum: str | None = field(
        default_factory=lambda: _env_str_or_none("STOCKFISH_SHA256", "STOCKFISH_CHECKSUM")
    )
    checksum_mode: str = field(default_factory=lambda: _env_str("STOCKFISH_CHECKSUM_MODE", "warn"))
    depth: int = field(default_factory=lambda: _env_int("STOCKFISH_DEPTH", DEFAULT_ANALYSIS_DEPTH))
    timeout_s: float = field(
        default_factory=lambda: _env_float("STOCKFISH_TIMEOUT_S", DEFAULT_ENGINE_TIMEOUT_S)
    )
    handshake_timeout_s: float = field(
        default_factory=lambda: _env_float("STOCKFISH_HANDSHAKE_TIMEOUT_S", 10.0)
    )
    threads: int = field(default_factory=lambda: _env_int("STOCKFISH_THREADS", 1))
    hash_mb: int = field(default_factory=lambda: _env_int("STOCKFISH_HASH", 64))
    skill_level: int = field(default_factory=lambda: _env_int("STOCKFISH_SKILL_LEVEL", 20))
    use_nnue: bool = field(default_factory=lambda: _env_bool("STOCKFISH_USE_NNUE", True))

    def engine_options(self) -> dict[str, object]:
        """Return UCI options to apply after the handshake."""
        return {
            "Threads": self.threads,
            "Hash": self.hash_mb,
            "Skill Level": self.skill_level,
            "Use NNUE": self.use_nnue,
        }


@dataclass(slots=True)
class ChesscomSettings:
    """Chess.com-specific configuration."""

    max_retries: int = field(default_factory=lambda: _env_int("CHESSCOM_MAX_RETRIES", 3))
    retry_backoff_ms: int = field(
        default_factory=lambda: _env_int("CHESSCOM_RETRY_BACKOFF_MS", 500)
    )
    timeout_s: int = field(default_factory=lambda: _env_int("CHESSCOM_TIMEOUT_S", 15))
    user_agent: str = field(
        default_factory=lambda: _env_str("CHESSCOM_USER_AGENT", "blindspots/0.1 (+blunder finder)")
    )


class _SectionAlias:
    """Flat ``stockfish_depth``-style access to a nested settings section."""

    def __init__(self, section: str, attr: str, convert=None) -> None:
        self.section = section
        self.attr = attr
        self.convert = convert

    def __get__(self, instance: object, owner: type | None = None) -> object:
        if instance is None:
            return self
        return getattr(getattr(instance, self.section), self.attr)

    def __set__(self, instance: object, value: object) -> None:
        if self.convert is not None:
            value = self.convert(value)
        setattr(getattr(instance, self.section), self.attr, value)


@dataclass(slots=True, init=False)
class Settings:
    """Central configuration for fetching, analysis, and the HTTP API.

    Nested sections are also reachable through flat aliases such as
    ``stockfish_depth`` and ``chesscom_max_retries``, which may be passed
    as keyword overrides.
    """

    api_token: str = field(
        default_factory=lambda: _env_str("BLINDSPOTS_API_TOKEN", "local-dev-token")
    )
    log_level: str = field(default_factory=lambda: _env_str("BLINDSPOTS_LOG_LEVEL", "INFO"))
    blunder_threshold_cp: int = field(
        default_factory=lambda: _env_int(
            "BLINDSPOTS_BLUNDER_THRESHOLD_CP", DEFAULT_BLUNDER_THRESHOLD_CP
        )
    )
    games_to_analyze: int = field(
        default_factory=lambda: _env_int("BLINDSPOTS_GAMES_TO_ANALYZE", DEFAULT_GAMES_TO_ANALYZE)
    )
    max_blunders_to_show: int = field(
        default_factory=lambda: _env_int(
            "BLINDSPOTS_MAX_BLUNDERS_TO_SHOW", DEFAULT_MAX_BLUNDERS_TO_SHOW
        )
    )
    time_class: ChessTimeClass | None = field(
        default_factory=lambda: _env_time_class("BLINDSPOTS_TIME_CLASS")
    )

    stockfish: StockfishSettings = field(default_factory=StockfishSettings)
    chesscom: ChesscomSettings = field(default_factory=ChesscomSettings)

    stockfish_path = _SectionAlias("stockfish", "path", convert=Path)
    stockfish_checksum = _SectionAlias("stockfish", "checksum")
    stockfish_checksum_mode = _SectionAlias("stockfish", "checksum_mode")
    stockfish_depth = _SectionAlias("stockfish", "depth")
    stockfish_timeout_s = _SectionAlias("stockfish", "timeout_s")
    stockfish_handshake_timeout_s = _SectionAlias("stockfish", "handshake_timeout_s")
    stockfish_threads = _SectionAlias("stockfish", "threads")
    stockfish_hash_mb = _SectionAlias("stockfish", "hash_mb")
    stockfish_skill_level = _SectionAlias("stockfish", "skill_level")
    stockfish_use_nnue = _SectionAlias("stockfish", "use_nnue")
    chesscom_max_retries = _SectionAlias("chesscom", "max_retries")
    chesscom_retry_backoff_ms = _SectionAlias("chesscom", "retry_backoff_ms")
    chesscom_timeout_s = _SectionAlias("chesscom", "timeout_s")
    chesscom_user_agent = _SectionAlias("chesscom", "user_agent")

    def __init__(self, **kwargs: object) -> None:
        for name, field_info in self.__dataclass_fields__.items():
            setattr(self, name, _field_value(name, field_info, kwargs))
        _apply_settings_aliases(self, kwargs)
        _raise_on_unexpected_kwargs(kwargs)


def get_settings(**overrides: object) -> Settings:
    load_dotenv()
    return Settings(**overrides)
