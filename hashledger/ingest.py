"""Ingestion: fold a fresh directory scan into the snapshot store."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

from hashledger.fingerprint import FingerprintFormatError, is_valid_fingerprint
from hashledger.store.store import SnapshotStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ExistsCheck = Callable[[str], bool]


class IngestMode(str, enum.Enum):
    """Whether existing path -> fingerprint bindings may be overwritten."""

    APPEND_ONLY = "append"
    REGENERATE = "regenerate"


@dataclass
class IngestStats:
    """Counters for a single ingestion run."""

    processed: int = 0
    added: int = 0
    updated: int = 0
    refreshed: int = 0
    skipped: int = 0
    pruned: int = 0
    errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ingest_one(
    store: SnapshotStore,
    path: str,
    fingerprint: str,
    mode: IngestMode,
    now: datetime,
    stats: IngestStats,
) -> None:
    if not is_valid_fingerprint(fingerprint, store.fingerprint_length):
        raise FingerprintFormatError(fingerprint, path)
    previous = store.locate(path)

    if previous is None:
        store.add_path(fingerprint, path, now)
        stats.added += 1
    elif previous == fingerprint:
        store.touch(fingerprint, path, now)
        stats.refreshed += 1
    elif mode is IngestMode.APPEND_ONLY:
        # Content changed but append-only never rebinds a known path
        logger.debug("append-only: leaving %s bound to %s", path, previous)
        stats.skipped += 1
        return
    else:
        store.move_path(path, fingerprint, now)
        logger.debug("rebound %s: %s -> %s", path, previous, fingerprint)
        stats.updated += 1
    stats.processed += 1


def _exists_under(root: Path) -> ExistsCheck:
    def _exists(rel: str) -> bool:
        # Only "not found" means gone; other OSErrors reach prune()
        try:
            (root / rel).stat()
        except (FileNotFoundError, NotADirectoryError):
            return False
        return True

    return _exists


def prune(
    store: SnapshotStore,
    exists: ExistsCheck,
    now: datetime | None = None,
    stats: IngestStats | None = None,
) -> int:
    """Drop every stored path that no longer exists; return how many.

    A path whose existence can't be checked is kept, and counted in
    ``stats.errors`` when *stats* is given.
    """
    missing: list[tuple[str, str]] = []
    for fingerprint, entry in store.items():
        for record in entry.paths:
            try:
                present = exists(record.path)
            except OSError as e:
                logger.warning(
                    "Could not check whether '%s' still exists: %s. Keeping it.",
                    record.path,
                    e,
                )
                if stats is not None:
                    stats.errors += 1
                continue
            if not present:
                missing.append((fingerprint, record.path))

    for fingerprint, path in missing:
        store.remove_path(fingerprint, path, now)
        logger.debug("pruned missing path %s", path)
    return len(missing)


def ingest(
    store: SnapshotStore,
    disk_paths: Iterable[tuple[str, str]],
    mode: IngestMode,
    *,
    root: Path | None = None,
    exists: ExistsCheck | None = None,
    clock: Clock | None = None,
) -> IngestStats:
    """Update *store* in place from ``(relative_path, fingerprint)`` pairs.

    Append-only mode adds unknown paths and refreshes unchanged ones but
    never rebinds a path whose content changed. Regenerate mode moves such
    paths to their new fingerprint. In both modes, stored paths that no
    longer exist (checked with *exists*, or against *root* on disk) are
    pruned afterwards. Malformed fingerprints are counted as errors and
    never stored.
    """
    if exists is None:
        if root is None:
            raise ValueError("ingest needs either root or an exists check")
        exists = _exists_under(Path(root))

    clock = clock or _utc_now
    mode = IngestMode(mode)
    stats = IngestStats()

    for path, fingerprint in disk_paths:
        try:
            _ingest_one(store, path, fingerprint, mode, clock(), stats)
        except FingerprintFormatError as e:
            logger.warning(
                "Generated hash %r for file '%s' is not a valid fingerprint. Skipping.",
                e.fingerprint,
                path,
            )
            stats.errors += 1

    stats.pruned = prune(store, exists, clock(), stats)
    logger.info(
        "ingest (%s): %d added, %d updated, %d pruned, %d errors",
        mode.value,
        stats.added,
        stats.updated,
        stats.pruned,
        stats.errors,
    )
    return stats
