"""In-memory snapshot store: fingerprint -> ContentEntry, plus a path index."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime

from hashledger.errors import StoreInvariantError
from hashledger.fingerprint import (
    FINGERPRINT_LENGTH,
    FingerprintFormatError,
    is_valid_fingerprint,
)
from hashledger.store.models import ContentEntry, PathRecord

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Content-addressable database of every path seen per fingerprint.

    The forward map (fingerprint -> entry) is the source of truth. The
    reverse index (path -> fingerprint) is derived from it and can be
    rebuilt at any time with :meth:`rebuild_index`.

    Invariants:
    - no entry has an empty path list
    - a path is bound to at most one fingerprint
    """

    def __init__(self, fingerprint_length: int = FINGERPRINT_LENGTH) -> None:
        self.fingerprint_length = fingerprint_length
        self._entries: dict[str, ContentEntry] = {}
        self._path_index: dict[str, str] = {}

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[ContentEntry],
        fingerprint_length: int = FINGERPRINT_LENGTH,
    ) -> SnapshotStore:
        """Build a store from decoded entries.

        Empty entries are dropped. Raises FingerprintFormatError for a
        malformed fingerprint and StoreInvariantError when a fingerprint
        repeats or a path is claimed by two entries.
        """
        store = cls(fingerprint_length)
        for entry in entries:
            if not entry.paths:
                logger.debug("dropping empty entry %s", entry.fingerprint)
                continue
            if not is_valid_fingerprint(entry.fingerprint, fingerprint_length):
                raise FingerprintFormatError(entry.fingerprint)
            if entry.fingerprint in store._entries:
                raise StoreInvariantError(f"duplicate entry for {entry.fingerprint}")
            store._entries[entry.fingerprint] = entry
        store.rebuild_index()
        return store

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def get(self, fingerprint: str) -> ContentEntry | None:
        return self._entries.get(fingerprint)

    def items(self) -> Iterator[tuple[str, ContentEntry]]:
        return iter(self._entries.items())

    def locate(self, path: str) -> str | None:
        """Return the fingerprint *path* is currently bound to, if any."""
        return self._path_index.get(path)

    def paths(self) -> list[str]:
        return list(self._path_index)

    @property
    def path_count(self) -> int:
        return len(self._path_index)

    def as_disk_index(self) -> dict[str, str]:
        """The store's own view as a path -> fingerprint mapping."""
        return dict(self._path_index)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_path(self, fingerprint: str, path: str, now: datetime) -> bool:
        """Bind *path* to *fingerprint*.

        Returns True if a new PathRecord was created, False if the path was
        already there and only its last_seen was refreshed.
        """
        if not is_valid_fingerprint(fingerprint, self.fingerprint_length):
            raise FingerprintFormatError(fingerprint, path)
        owner = self._path_index.get(path)
        if owner is not None and owner != fingerprint:
            raise StoreInvariantError(
                f"{path!r} is already bound to {owner}, cannot add under {fingerprint}"
            )

        entry = self._entries.get(fingerprint)
        if entry is None:
            entry = ContentEntry(
                fingerprint=fingerprint,
                paths=[],
                first_created=now,
                last_content_update=now,
            )
            self._entries[fingerprint] = entry

        entry.last_content_update = now
        record = entry.find(path) if owner == fingerprint else None
        if record is not None:
            record.last_seen = now
            return False

        entry.paths.append(PathRecord(path=path, first_seen=now, last_seen=now))
        self._path_index[path] = fingerprint
        return True

    def touch(self, fingerprint: str, path: str, now: datetime) -> None:
        """Refresh last_seen for a path already stored under *fingerprint*."""
        entry = self._entries.get(fingerprint)
        record = entry.find(path) if entry is not None else None
        if record is None:
            raise KeyError(f"{path!r} not stored under {fingerprint}")
        record.last_seen = now
        entry.last_content_update = now

    def remove_path(
        self, fingerprint: str, path: str, now: datetime | None = None
    ) -> bool:
        """Drop *path* from *fingerprint*'s entry.

        The entry is deleted once it has no paths left. When *now* is given
        a surviving entry's last_content_update is bumped.
        """
        entry = self._entries.get(fingerprint)
        if entry is None:
            return False
        remaining = [r for r in entry.paths if r.path != path]
        if len(remaining) == len(entry.paths):
            return False

        if self._path_index.get(path) == fingerprint:
            del self._path_index[path]
        if not remaining:
            del self._entries[fingerprint]
        else:
            entry.paths = remaining
            if now is not None:
                entry.last_content_update = now
        return True

    def move_path(self, path: str, fingerprint: str, now: datetime) -> str | None:
        """Rebind *path* to *fingerprint*, returning the previous fingerprint."""
        if not is_valid_fingerprint(fingerprint, self.fingerprint_length):
            raise FingerprintFormatError(fingerprint, path)
        previous = self._path_index.get(path)
        if previous is not None and previous != fingerprint:
            self.remove_path(previous, path, now)
        self.add_path(fingerprint, path, now)
        return previous

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def rebuild_index(self) -> None:
        """Recompute the path index from the forward map."""
        index: dict[str, str] = {}
        for fingerprint, entry in self._entries.items():
            for record in entry.paths:
                owner = index.get(record.path)
                if owner is not None:
                    raise StoreInvariantError(
                        f"{record.path!r} appears under both {owner} and {fingerprint}"
                    )
                index[record.path] = fingerprint
        self._path_index = index

    def check_invariants(self) -> None:
        """Raise StoreInvariantError if the store is structurally inconsistent."""
        seen: dict[str, str] = {}
        for fingerprint, entry in self._entries.items():
            if entry.fingerprint != fingerprint:
                raise StoreInvariantError(
                    f"entry keyed {fingerprint} claims fingerprint {entry.fingerprint}"
                )
            if not entry.paths:
                raise StoreInvariantError(f"entry {fingerprint} has no paths")
            for record in entry.paths:
                if record.path in seen:
                    raise StoreInvariantError(
                        f"{record.path!r} appears under both {seen[record.path]} and {fingerprint}"
                    )
                seen[record.path] = fingerprint
        if seen != self._path_index:
            raise StoreInvariantError("path index is out of sync with the entries")
