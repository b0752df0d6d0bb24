"""One run against a directory: load, scan, ingest or reconcile, save."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hashledger.config.models import LedgerConfig
from hashledger.errors import DatabaseNotFoundError
from hashledger.fingerprint import fingerprint_length
from hashledger.ingest import Clock, IngestMode, IngestStats, ingest
from hashledger.reconcile import Classification, reconcile
from hashledger.scanner import DirectoryScanner, ProgressCallback, ScanError
from hashledger.store import LoadResult, load_store, save_store

logger = logging.getLogger(__name__)


@dataclass
class UpdateReport:
    """Outcome of an add/regenerate run."""

    mode: IngestMode
    stats: IngestStats
    scanned: int
    load_status: str
    database_path: Path
    scan_errors: list[ScanError] = field(default_factory=list)


@dataclass
class VerifyReport:
    """Outcome of a verify run."""

    classification: Classification
    files_checked: int
    unique_fingerprints: int
    database_path: Path
    scan_errors: list[ScanError] = field(default_factory=list)


class Ledger:
    """Integrity database for a single directory tree."""

    def __init__(
        self,
        root: Path,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config or LedgerConfig()
        self.clock = clock
        self.scanner = DirectoryScanner(
            self.config.scan, database_name=self.config.database.filename
        )
        self._fp_length = fingerprint_length(self.config.scan.algorithm)

    @property
    def database_path(self) -> Path:
        return self.root / self.config.database.filename

    def load(self) -> LoadResult:
        return load_store(self.database_path, self._fp_length)

    def update(
        self, mode: IngestMode, on_progress: ProgressCallback | None = None
    ) -> UpdateReport:
        """Scan the tree and fold it into the database, then save."""
        mode = IngestMode(mode)
        loaded = self.load()
        if loaded.status == "corrupt":
            logger.warning("Existing database was unreadable; rebuilding from scratch")

        scan = self.scanner.scan(self.root, on_progress=on_progress)
        stats = ingest(
            loaded.store,
            scan.files.items(),
            mode,
            root=self.root,
            clock=self.clock,
        )
        stats.errors += len(scan.errors)

        save_store(loaded.store, self.database_path, compress=self.config.database.compress)
        return UpdateReport(
            mode=mode,
            stats=stats,
            scanned=len(scan.files) + len(scan.errors),
            load_status=loaded.status,
            database_path=self.database_path,
            scan_errors=scan.errors,
        )

    def verify(self, on_progress: ProgressCallback | None = None) -> VerifyReport:
        """Classify the current tree against the database without changing it."""
        if not self.database_path.exists():
            raise DatabaseNotFoundError(self.database_path)

        loaded = self.load()
        scan = self.scanner.scan(self.root, on_progress=on_progress)
        classification = reconcile(loaded.store, scan.files)
        return VerifyReport(
            classification=classification,
            files_checked=len(scan.files),
            unique_fingerprints=len(loaded.store),
            database_path=self.database_path,
            scan_errors=scan.errors,
        )
