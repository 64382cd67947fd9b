from __future__ import annotations

from datetime import UTC, datetime
from typing import cast

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from blindspots import __version__
from blindspots.aggregation import BlunderReport, ViewMode, build_blunder_report
from blindspots.blunder import Blunder
from blindspots.blunder_patterns import detect_blunder_patterns, summarize_blunders
from blindspots.chess_clients.chesscom_client import build_chesscom_client
from blindspots.chess_time_class import ChessTimeClass
from blindspots.config import DEFAULT_MAX_BLUNDERS_TO_SHOW, get_settings
from blindspots.engine_client import create_engine_client
from blindspots.errors import (
    EngineError,
    GameSourceError,
    NoGamesFoundError,
    PlayerNotFoundError,
)
from blindspots.pipeline import analyze_player
from blindspots.ports.evaluation_engine import EngineFactory
from blindspots.ports.game_source_client import GameSourceClient
from blindspots.utils.logger import get_logger, set_level

logger = get_logger(__name__)
set_level(get_settings().log_level)

_TIME_CLASS_ALL = "all"


def _extract_api_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    api_key = request.headers.get("x-api-key")
    if api_key:
        return api_key.strip()
    return None


def require_api_token(request: Request) -> None:
    if request.url.path == "/api/health":
        return
    settings = get_settings()
    expected = settings.api_token
    supplied = _extract_api_token(request)
    if not supplied or supplied != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_game_source() -> GameSourceClient:
    return build_chesscom_client(get_settings())


def get_engine_factory() -> EngineFactory:
    return create_engine_client


app = FastAPI(
    title="BLINDSPOTS",
    version=__version__,
    dependencies=[Depends(require_api_token)],
    middleware=[
        Middleware(
            cast("type[object]", CORSMiddleware),
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    ],
)


class BlunderReportRequest(BaseModel):
    blunders: list[Blunder] = Field(default_factory=list)
    time_class: ChessTimeClass | None = None
    view: ViewMode = ViewMode.OVERALL
    limit: int = Field(DEFAULT_MAX_BLUNDERS_TO_SHOW, ge=1, le=100)


def _parse_time_class(value: str | None) -> ChessTimeClass | None:
    if value is None or value.strip().lower() in {"", _TIME_CLASS_ALL}:
        return None
    try:
        return ChessTimeClass(value.strip().lower())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown time class: {value}",
        ) from exc


def _dump(blunders: tuple[Blunder, ...]) -> list[dict[str, object]]:
    return [blunder.model_dump(mode="json") for blunder in blunders]


def _serialize_report(report: BlunderReport) -> dict[str, object]:
    payload: dict[str, object] = {
        "view": report.view.value,
        "time_class": report.time_class.value if report.time_class else _TIME_CLASS_ALL,
        "total": len(report.blunders),
        "stats": report.stats.as_dict(),
        "patterns": [pattern.as_dict() for pattern in detect_blunder_patterns(report.blunders)],
        "summary": summarize_blunders(report.blunders),
    }
    if report.view == ViewMode.BY_GAME:
        payload["games"] = [
            {"game_url": url, "blunders": _dump(items)} for url, items in report.by_game.items()
        ]
    else:
        payload["blunders"] = _dump(report.worst)
    return payload


@app.get("/api/health")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "service": "blindspots",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/api/analysis")
async def analysis(
    username: str = Query(..., min_length=1),
    time_class: str | None = Query(None),
    view: ViewMode = Query(ViewMode.OVERALL),
    game_source: GameSourceClient = Depends(get_game_source),
    engine_factory: EngineFactory = Depends(get_engine_factory),
) -> dict[str, object]:
    settings = get_settings()
    # An explicit "all" overrides BLINDSPOTS_TIME_CLASS; omitting the parameter does not.
    selected = _parse_time_class(time_class) if time_class is not None else settings.time_class
    try:
        result = await analyze_player(
            username,
            settings=settings,
            game_source=game_source,
            engine_factory=engine_factory,
            time_class=selected,
        )
    except (PlayerNotFoundError, NoGamesFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except GameSourceError as exc:
        logger.warning("Game source failed for %s: %s", username, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except EngineError as exc:
        logger.error("Engine failed while analysing %s: %s", username, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    report = build_blunder_report(
        result.blunders,
        time_class=selected,
        view=view,
        limit=settings.max_blunders_to_show,
    )
    payload = _serialize_report(report)
    payload.update(
        {
            "username": username,
            "games_analyzed": result.games_analyzed,
            "games_skipped": result.games_skipped,
            "message": result.message,
        }
    )
    return payload


@app.post("/api/blunders/report")
def blunder_report(request: BlunderReportRequest) -> dict[str, object]:
    report = build_blunder_report(
        request.blunders,
        time_class=request.time_class,
        view=request.view,
        limit=request.limit,
    )
    return _serialize_report(report)
