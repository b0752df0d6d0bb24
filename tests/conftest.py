"""Shared test fixtures for hashledger."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from hashledger.config.models import LedgerConfig
from hashledger.fingerprint import compute_hash
from hashledger.store import SnapshotStore

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def fp(label: str) -> str:
    """A valid MD5 fingerprint derived from a short label."""
    return compute_hash(label.encode())


class FakeClock:
    """Ticks one second per call, starting a minute after T0."""

    def __init__(self, start: datetime = T0 + timedelta(minutes=1)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_store():
    """Build a SnapshotStore from {fingerprint: [paths]}."""

    def _make(layout: dict[str, list[str]]) -> SnapshotStore:
        store = SnapshotStore()
        for fingerprint, paths in layout.items():
            for path in paths:
                store.add_path(fingerprint, path, T0)
        return store

    return _make


@pytest.fixture
def sample_config():
    return LedgerConfig()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small directory tree with one duplicated file."""
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.md").write_text("# Guide\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print('hi')\n")
    (tmp_path / "src" / "copy_of_main.py").write_text("print('hi')\n")
    (tmp_path / "README.md").write_text("# Readme\n")
    return tmp_path
