"""Exception types shared across hashledger."""

from __future__ import annotations

from pathlib import Path

from hashledger.fingerprint import FingerprintFormatError


class HashledgerError(Exception):
    """Base class for errors surfaced to the command line."""


class DatabaseNotFoundError(HashledgerError):
    """No checksum database exists yet for the directory being verified."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"checksum database {path} does not exist; run 'hashledger regenerate' first"
        )


class StoreInvariantError(AssertionError):
    """The snapshot store broke one of its structural invariants.

    This signals a defect in the ingestion/move logic, not bad input.
    """


__all__ = [
    "DatabaseNotFoundError",
    "FingerprintFormatError",
    "HashledgerError",
    "StoreInvariantError",
]
