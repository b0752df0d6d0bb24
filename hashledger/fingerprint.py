"""Content fingerprints: hashing helpers and the hex format check."""

from __future__ import annotations

import hashlib
import re
from functools import lru_cache
from pathlib import Path

DEFAULT_ALGORITHM = "md5"
FINGERPRINT_LENGTH = 32
DEFAULT_CHUNK_SIZE = 1024 * 1024


class FingerprintFormatError(ValueError):
    """A computed or stored fingerprint is not fixed-length lowercase hex."""

    def __init__(self, fingerprint: object, path: str | None = None) -> None:
        self.fingerprint = fingerprint
        self.path = path
        where = f" for {path!r}" if path else ""
        super().__init__(f"invalid fingerprint {fingerprint!r}{where}")


@lru_cache(maxsize=None)
def _hex_re(length: int) -> re.Pattern[str]:
    return re.compile(rf"[a-f0-9]{{{length}}}")


def is_valid_fingerprint(value: object, length: int = FINGERPRINT_LENGTH) -> bool:
    """True if *value* is a lowercase hex string of exactly *length* chars."""
    if not isinstance(value, str):
        return False
    return _hex_re(length).fullmatch(value) is not None


def fingerprint_length(algorithm: str = DEFAULT_ALGORITHM) -> int:
    """Hex length of a digest produced by *algorithm*."""
    return hashlib.new(algorithm).digest_size * 2


def compute_hash(content: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hex digest of *content*."""
    return hashlib.new(algorithm, content).hexdigest()


def compute_file_hash(
    path: Path,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Stream a file from disk and return its hex digest.

    Raises OSError when the file can't be opened or read.
    """
    digest = hashlib.new(algorithm)
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()
