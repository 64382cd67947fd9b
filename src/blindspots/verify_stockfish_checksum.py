import hashlib
from pathlib import Path

from blindspots.utils.logger import get_logger

logger = get_logger(__name__)

_READ_CHUNK_BYTES = 1 << 20


def sha256_of_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as binary:
        while chunk := binary.read(_READ_CHUNK_BYTES):
            digest.update(chunk)
    return digest.hexdigest()


def verify_stockfish_checksum(path: Path, expected: str | None, mode: str = "warn") -> bool:
    """Compare the engine binary against a pinned SHA-256 digest.

    A blank or missing ``expected`` disables the check. On mismatch,
    ``mode="enforce"`` raises ``RuntimeError``; any other mode logs a
    warning and returns False so the caller can still start the engine.
    """

    pinned = (expected or "").strip().lower()
    if not pinned:
        return True
    actual = sha256_of_file(path)
    if actual == pinned:
        return True
    if (mode or "").strip().lower() == "enforce":
        raise RuntimeError(f"Refusing to start {path}: sha256 {actual} does not match {pinned}")
    logger.warning("Stockfish at %s has sha256 %s, expected %s", path, actual, pinned)
    return False
