"""Tests for directory traversal, hashing and the fingerprint helpers."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from hashledger.config.models import ScanConfig
from hashledger.fingerprint import (
    FingerprintFormatError,
    compute_file_hash,
    compute_hash,
    fingerprint_length,
    is_valid_fingerprint,
)
from hashledger.scanner import DirectoryScanner, ScanError, ScanResult


# ── Fingerprint primitives ───────────────────────────────────────────


def test_compute_hash_is_md5_by_default():
    assert compute_hash(b"hello") == hashlib.md5(b"hello").hexdigest()


def test_compute_file_hash_streams_in_chunks(tmp_path: Path):
    f = tmp_path / "big.bin"
    f.write_bytes(b"abc" * 1000)
    assert compute_file_hash(f, chunk_size=7) == compute_hash(b"abc" * 1000)


def test_compute_file_hash_missing_file_raises(tmp_path: Path):
    with pytest.raises(OSError):
        compute_file_hash(tmp_path / "missing")


def test_is_valid_fingerprint():
    good = compute_hash(b"x")
    assert is_valid_fingerprint(good)
    assert not is_valid_fingerprint(good.upper())
    assert not is_valid_fingerprint(good[:31])
    assert not is_valid_fingerprint(good + "a")
    assert not is_valid_fingerprint(None)
    assert is_valid_fingerprint("f" * 64, length=64)


def test_fingerprint_length():
    assert fingerprint_length("md5") == 32
    assert fingerprint_length("sha256") == 64


def test_fingerprint_format_error_message():
    err = FingerprintFormatError("zz", "a.txt")
    assert err.fingerprint == "zz"
    assert err.path == "a.txt"
    assert "a.txt" in str(err)


# ── Dataclass basics ─────────────────────────────────────────────────


def test_scan_result_defaults():
    sr = ScanResult(files={})
    assert sr.errors == []


# ── Traversal ────────────────────────────────────────────────────────


def test_iter_files_relative_posix_sorted(project: Path):
    scanner = DirectoryScanner(ScanConfig())
    rels = [rel for rel, _ in scanner.iter_files(project)]
    assert rels == ["README.md", "docs/guide.md", "src/copy_of_main.py", "src/main.py"]


def test_database_file_is_excluded(project: Path):
    (project / "checksums.json.gz").write_bytes(b"db")
    (project / "checksums.json.gz.tmp").write_bytes(b"db")
    scanner = DirectoryScanner(ScanConfig(), database_name="checksums.json.gz")
    rels = {rel for rel, _ in scanner.iter_files(project)}
    assert "checksums.json.gz" not in rels
    assert "checksums.json.gz.tmp" not in rels


def test_database_in_subdirectory_is_excluded(project: Path):
    """A database filename with directories still keeps the file out of the scan."""
    (project / "state").mkdir()
    (project / "state" / "checksums.json.gz").write_bytes(b"db")
    (project / "state" / "checksums.json.gz.tmp").write_bytes(b"db")
    scanner = DirectoryScanner(ScanConfig(), database_name="state/checksums.json.gz")
    rels = {rel for rel, _ in scanner.iter_files(project)}
    assert not any(rel.startswith("state/") for rel in rels)
    assert "README.md" in rels


def test_exclusions(project: Path):
    (project / ".git").mkdir()
    (project / ".git" / "HEAD").write_text("ref")
    (project / "hashledger-linux-amd64").write_bytes(b"\x7fELF")
    (project / "Thumbs.db").write_bytes(b"")
    (project / "vendor").mkdir()
    (project / "vendor" / "lib.py").write_text("x")

    config = ScanConfig(exclude_names=["Thumbs.db"], ignore_dirs=[".git", "vendor"])
    rels = {rel for rel, _ in DirectoryScanner(config).iter_files(project)}

    assert ".git/HEAD" not in rels
    assert "hashledger-linux-amd64" not in rels
    assert "Thumbs.db" not in rels
    assert "vendor/lib.py" not in rels
    assert "README.md" in rels


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinks_skipped_unless_followed(project: Path):
    try:
        (project / "link.md").symlink_to(project / "README.md")
    except OSError:
        pytest.skip("cannot create symlinks here")

    plain = {rel for rel, _ in DirectoryScanner(ScanConfig()).iter_files(project)}
    followed = {
        rel for rel, _ in DirectoryScanner(ScanConfig(follow_symlinks=True)).iter_files(project)
    }
    assert "link.md" not in plain
    assert "link.md" in followed


# ── Scan ─────────────────────────────────────────────────────────────


def test_scan_hashes_every_file(project: Path):
    result = DirectoryScanner(ScanConfig()).scan(project)

    assert result.errors == []
    assert result.files["README.md"] == compute_hash(b"# Readme\n")
    assert result.files["src/main.py"] == result.files["src/copy_of_main.py"]
    assert list(result.files) == sorted(result.files)


def test_scan_with_workers_matches_serial(project: Path):
    serial = DirectoryScanner(ScanConfig()).scan(project)
    threaded = DirectoryScanner(ScanConfig(workers=4)).scan(project)
    assert threaded.files == serial.files


def test_scan_with_other_algorithm(project: Path):
    result = DirectoryScanner(ScanConfig(algorithm="sha256")).scan(project)
    assert all(len(h) == 64 for h in result.files.values())


@pytest.mark.parametrize("workers", [1, 3])
def test_scan_reports_unreadable_files(project: Path, workers: int):
    real = compute_file_hash

    def flaky(path, *args, **kwargs):
        if Path(path).name == "guide.md":
            raise PermissionError(13, "Permission denied", str(path))
        return real(path, *args, **kwargs)

    with patch("hashledger.scanner.compute_file_hash", side_effect=flaky):
        result = DirectoryScanner(ScanConfig(workers=workers)).scan(project)

    assert "docs/guide.md" not in result.files
    assert len(result.files) == 3
    assert result.errors[0].path == "docs/guide.md"
    assert isinstance(result.errors[0], ScanError)
    assert "Permission denied" in result.errors[0].message


def test_scan_progress_called_per_file(project: Path):
    calls: list[tuple[str, int]] = []
    DirectoryScanner(ScanConfig()).scan(project, on_progress=lambda rel, total: calls.append((rel, total)))
    assert len(calls) == 4
    assert all(total == 4 for _, total in calls)
