"""Clients that fetch finished games from online chess sites."""

from blindspots.chess_clients.base_chess_client import BaseChessClient, BaseChessClientContext
from blindspots.chess_clients.chesscom_client import (
    ChesscomClient,
    ChesscomGamePayload,
    build_chesscom_client,
)

__all__ = [
    "BaseChessClient",
    "BaseChessClientContext",
    "ChesscomClient",
    "ChesscomGamePayload",
    "build_chesscom_client",
]
