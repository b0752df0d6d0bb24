"""Directory traversal and content hashing for building a disk index."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from hashledger.config.models import ScanConfig
from hashledger.fingerprint import compute_file_hash

logger = logging.getLogger(__name__)

# Called once per file processed with (relative_path, total_files)
ProgressCallback = Callable[[str, int], None]


@dataclass
class ScanError:
    """A file that could not be hashed."""

    path: str
    message: str


@dataclass
class ScanResult:
    """Output of a directory scan."""

    files: dict[str, str]  # relative path -> fingerprint
    errors: list[ScanError] = field(default_factory=list)


class DirectoryScanner:
    """Walks a directory tree and fingerprints every file it keeps."""

    def __init__(self, config: ScanConfig, database_name: str | None = None) -> None:
        self.config = config
        self._excluded_names = set(config.exclude_names)
        if database_name:
            # The configured filename may include directories
            db_name = Path(database_name).name
            self._excluded_names.update({db_name, f"{db_name}.tmp"})
        self._ignored_dirs = set(config.ignore_dirs)

    def _is_excluded(self, name: str) -> bool:
        if name in self._excluded_names:
            return True
        return any(name.startswith(prefix) for prefix in self.config.exclude_prefixes)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_files(self, root: Path) -> Iterator[tuple[str, Path]]:
        """Yield ``(relative_posix_path, absolute_path)`` for each kept file."""
        root = Path(root).resolve()

        def _on_error(err: OSError) -> None:
            logger.warning("Skipping unreadable directory %s: %s", err.filename, err)

        for dirpath, dirnames, filenames in os.walk(
            root, onerror=_on_error, followlinks=self.config.follow_symlinks
        ):
            dirnames[:] = sorted(d for d in dirnames if d not in self._ignored_dirs)
            for name in sorted(filenames):
                if self._is_excluded(name):
                    continue
                fpath = Path(dirpath) / name
                if fpath.is_symlink() and not self.config.follow_symlinks:
                    continue
                if not fpath.is_file():
                    continue
                yield fpath.relative_to(root).as_posix(), fpath

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def _hash(self, fpath: Path) -> str:
        return compute_file_hash(
            fpath, algorithm=self.config.algorithm, chunk_size=self.config.chunk_size
        )

    def scan(self, root: Path, on_progress: ProgressCallback | None = None) -> ScanResult:
        """Fingerprint every kept file under *root*.

        Unreadable files are reported in ``errors`` and left out of
        ``files``. The returned index is complete before this returns, even
        when hashing runs on several threads.
        """
        targets = list(self.iter_files(root))
        total = len(targets)
        files: dict[str, str] = {}
        errors: list[ScanError] = []

        def _record_error(rel: str, e: OSError) -> None:
            logger.warning("Error hashing file '%s': %s", rel, e)
            errors.append(ScanError(path=rel, message=str(e)))

        if self.config.workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                futures = {pool.submit(self._hash, fpath): rel for rel, fpath in targets}
                for future in as_completed(futures):
                    rel = futures[future]
                    try:
                        files[rel] = future.result()
                    except OSError as e:
                        _record_error(rel, e)
                    if on_progress is not None:
                        on_progress(rel, total)
        else:
            for rel, fpath in targets:
                try:
                    files[rel] = self._hash(fpath)
                except OSError as e:
                    _record_error(rel, e)
                if on_progress is not None:
                    on_progress(rel, total)

        errors.sort(key=lambda err: err.path)
        return ScanResult(files=dict(sorted(files.items())), errors=errors)
