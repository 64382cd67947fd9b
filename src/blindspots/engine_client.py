"""Stockfish session driven through the python-chess UCI protocol."""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AbstractAsyncContextManager, suppress
from pathlib import Path

import chess
import chess.engine

from blindspots.config import DEFAULT_ANALYSIS_DEPTH, DEFAULT_ENGINE_TIMEOUT_S, Settings
from blindspots.engine_result import EvaluationResult
from blindspots.errors import (
    EngineEvaluationError,
    EngineSessionClosedError,
    EngineStartupError,
)
from blindspots.utils.logger import get_logger
from blindspots.verify_stockfish_checksum import verify_stockfish_checksum

logger = get_logger(__name__)

EngineConnector = Callable[
    [str], Awaitable[tuple[asyncio.SubprocessTransport, chess.engine.UciProtocol]]
]

STOP_GRACE_S = 1.0
QUIT_GRACE_S = 1.0


def resolve_stockfish_command(settings: Settings) -> str:
    """Resolve the stockfish binary path, raising when it cannot be found."""
    configured = Path(settings.stockfish_path)
    if configured.exists():
        return str(configured)
    resolved = shutil.which(str(configured)) or shutil.which("stockfish")
    if resolved:
        settings.stockfish_path = Path(resolved)
        return resolved
    raise EngineStartupError(f"Stockfish binary not found (configured={configured})")


def _consume_outcome(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


class EngineClient(AbstractAsyncContextManager["EngineClient"]):
    """One UCI engine session on top of ``chess.engine.UciProtocol``.

    The process is started lazily by the first ``evaluate`` and searches are
    serialized behind a single lock. A search that outlives ``timeout_s`` is
    stopped; if the engine does not acknowledge the stop within
    ``stop_grace_s`` the process is discarded and the next call starts a
    fresh one.
    """

    def __init__(
        self,
        command: str,
        *,
        connect: EngineConnector = chess.engine.popen_uci,
        checksum: str | None = None,
        checksum_mode: str = "warn",
        timeout_s: float = DEFAULT_ENGINE_TIMEOUT_S,
        handshake_timeout_s: float = DEFAULT_ENGINE_TIMEOUT_S,
        stop_grace_s: float = STOP_GRACE_S,
        options: Mapping[str, object] | None = None,
        default_depth: int = DEFAULT_ANALYSIS_DEPTH,
    ) -> None:
        self.command = command
        self._connect = connect
        self.checksum = checksum
        self.checksum_mode = checksum_mode
        self.timeout_s = timeout_s
        self.handshake_timeout_s = handshake_timeout_s
        self.stop_grace_s = stop_grace_s
        self.default_depth = default_depth
        self._desired_options = dict(options or {})
        self._lock = asyncio.Lock()
        self._transport: asyncio.SubprocessTransport | None = None
        self._protocol: chess.engine.UciProtocol | None = None
        self._generation = 0
        self.engine_name: str | None = None
        self.supported_options: set[str] = set()
        self.applied_options: dict[str, object] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineClient:
        return cls(
            resolve_stockfish_command(settings),
            checksum=settings.stockfish_checksum,
            checksum_mode=settings.stockfish_checksum_mode,
            timeout_s=settings.stockfish_timeout_s,
            handshake_timeout_s=settings.stockfish_handshake_timeout_s,
            options=settings.stockfish.engine_options(),
            default_depth=settings.stockfish_depth,
        )

    @property
    def is_ready(self) -> bool:
        protocol = self._protocol
        return protocol is not None and not protocol.returncode.done()

    async def __aenter__(self) -> EngineClient:
        await self.initialize()
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:
        await self.destroy()

    async def initialize(self) -> None:
        """Start the engine and apply the supported options."""
        async with self._lock:
            await self._ensure_session()

    async def evaluate(self, fen: str, depth: int | None = None) -> EvaluationResult:
        """Search ``fen`` to ``depth`` plies and return the engine's verdict.

        On timeout the last reported score is returned with ``timed_out=True``
        and no best move; callers should treat that as a low-confidence result.

        Raises:
            EngineStartupError: The engine could not be started.
            EngineEvaluationError: The position or the engine reply was invalid.
            EngineSessionClosedError: The session ended while the call was pending.
        """
        generation = self._generation
        async with self._lock:
            if generation != self._generation:
                raise EngineSessionClosedError("Engine session destroyed")
            protocol = await self._ensure_session()
            return await self._search(protocol, fen, depth or self.default_depth)

    async def destroy(self) -> None:
        """Quit the engine and fail every pending request."""
        self._generation += 1
        protocol, transport = self._protocol, self._transport
        self._protocol = None
        self._transport = None
        if protocol is None or transport is None:
            return
        try:
            if not protocol.returncode.done():
                with suppress(chess.engine.EngineError):
                    await asyncio.wait_for(protocol.quit(), timeout=QUIT_GRACE_S)
        except TimeoutError:
            logger.warning("Engine %s ignored quit; killing it", self.command)
        finally:
            transport.close()

    async def _ensure_session(self) -> chess.engine.UciProtocol:
        if self.is_ready:
            return self._protocol
        self._discard_session()
        self._verify_binary()
        try:
            transport, protocol = await asyncio.wait_for(
                self._connect(self.command), timeout=self.handshake_timeout_s
            )
        except TimeoutError as exc:
            raise EngineStartupError(f"Engine {self.command} did not answer uciok") from exc
        except (OSError, chess.engine.EngineError) as exc:
            raise EngineStartupError(f"Failed to start engine {self.command}: {exc}") from exc
        self._transport = transport
        self._protocol = protocol
        self.engine_name = protocol.id.get("name")
        self.supported_options = set(protocol.options)
        await self._apply_options(protocol)
        return protocol

    def _verify_binary(self) -> None:
        if not (self.checksum or "").strip():
            return
        try:
            verify_stockfish_checksum(Path(self.command), self.checksum, mode=self.checksum_mode)
        except (OSError, RuntimeError) as exc:
            raise EngineStartupError(str(exc)) from exc

    async def _apply_options(self, protocol: chess.engine.UciProtocol) -> None:
        applied = {
            name: value
            for name, value in self._desired_options.items()
            if value is not None
            and name in protocol.options
            and not protocol.options[name].is_managed()
        }
        self.applied_options = {}
        if not applied:
            return
        try:
            await protocol.configure(applied)
        except chess.engine.EngineError as exc:
            logger.warning("Stockfish option configuration failed: %s", exc)
            return
        self.applied_options = applied
        logger.info(
            "Engine configured (%s) with options: %s",
            self.engine_name or "unknown",
            applied,
        )

    async def _search(
        self, protocol: chess.engine.UciProtocol, fen: str, depth: int
    ) -> EvaluationResult:
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise EngineEvaluationError(f"Invalid FEN {fen!r}: {exc}") from exc
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_s
        try:
            analysis = await asyncio.wait_for(
                protocol.analysis(board, chess.engine.Limit(depth=depth)),
                timeout=self.timeout_s,
            )
        except TimeoutError:
            logger.warning("Engine did not start searching %s; restarting it", fen)
            self._discard_session()
            return EvaluationResult.empty(timed_out=True)
        except chess.engine.EngineTerminatedError as exc:
            raise EngineSessionClosedError(f"Engine session closed: {exc}") from exc
        except chess.engine.EngineError as exc:
            raise EngineEvaluationError(f"Failed to query engine: {exc}") from exc

        waiter = asyncio.ensure_future(analysis.wait())
        waiter.add_done_callback(_consume_outcome)
        done, _ = await asyncio.wait({waiter}, timeout=max(0.0, deadline - loop.time()))
        if not done:
            return await self._abandon_search(analysis, waiter, fen)
        try:
            best = waiter.result()
        except chess.engine.EngineTerminatedError as exc:
            raise EngineSessionClosedError(f"Engine session closed: {exc}") from exc
        except chess.engine.EngineError as exc:
            raise EngineEvaluationError(f"Failed to query engine: {exc}") from exc
        return EvaluationResult.from_info(analysis.info, best.move)

    async def _abandon_search(
        self,
        analysis: chess.engine.AnalysisResult,
        waiter: asyncio.Future,
        fen: str,
    ) -> EvaluationResult:
        logger.warning("Engine timed out after %.1fs on %s", self.timeout_s, fen)
        info = dict(analysis.info)
        analysis.stop()
        done, _ = await asyncio.wait({waiter}, timeout=self.stop_grace_s)
        if not done:
            # The protocol queues every later command behind the unanswered stop.
            logger.warning("Engine ignored stop after %.1fs; restarting it", self.stop_grace_s)
            self._discard_session()
        return EvaluationResult.from_info(info, timed_out=True)

    def _discard_session(self) -> None:
        transport = self._transport
        self._transport = None
        self._protocol = None
        if transport is not None:
            transport.close()


def create_engine_client(settings: Settings) -> EngineClient:
    """Default engine factory: a Stockfish subprocess session."""
    return EngineClient.from_settings(settings)
