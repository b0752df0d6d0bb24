"""Tests for the snapshot store and its models."""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import T0, fp
from hashledger.errors import StoreInvariantError
from hashledger.fingerprint import FingerprintFormatError
from hashledger.store import ContentEntry, PathRecord, SnapshotStore

H1, H2 = fp("one"), fp("two")
LATER = T0 + timedelta(hours=1)


# ── Models ───────────────────────────────────────────────────────────


def test_path_record_accepts_aliases_and_names():
    """PathRecord validates from on-disk aliases and from field names."""
    by_alias = PathRecord.model_validate(
        {"Path": "a.txt", "FirstSeen": "2025-01-01T12:00:00Z", "LastSeen": "2025-01-01T12:00:00Z"}
    )
    by_name = PathRecord(path="a.txt", first_seen=T0, last_seen=T0)
    assert by_alias == by_name


def test_content_entry_null_paths_become_empty():
    """A null path list from an older database decodes as empty."""
    entry = ContentEntry.model_validate(
        {
            "ContentMD5": H1,
            "RelativePaths": None,
            "FirstCreated": "2025-01-01T12:00:00Z",
            "LastContentUpdate": "2025-01-01T12:00:00Z",
        }
    )
    assert entry.paths == []


def test_content_entry_find():
    """find() returns the matching record or None."""
    entry = ContentEntry(
        fingerprint=H1,
        paths=[PathRecord(path="a", first_seen=T0, last_seen=T0)],
        first_created=T0,
        last_content_update=T0,
    )
    assert entry.find("a").path == "a"
    assert entry.find("b") is None
    assert entry.path_names() == ["a"]


# ── add / touch / remove / move ──────────────────────────────────────


def test_add_path_creates_entry_and_index():
    """add_path() creates the entry and indexes the path."""
    store = SnapshotStore()
    assert store.add_path(H1, "a.txt", T0) is True

    entry = store.get(H1)
    assert entry.fingerprint == H1
    assert entry.first_created == T0
    assert entry.paths[0].first_seen == T0 == entry.paths[0].last_seen
    assert store.locate("a.txt") == H1
    assert len(store) == 1
    assert store.path_count == 1


def test_add_same_path_twice_refreshes_last_seen():
    """Re-adding a known path only refreshes last_seen."""
    store = SnapshotStore()
    store.add_path(H1, "a.txt", T0)
    assert store.add_path(H1, "a.txt", LATER) is False

    record = store.get(H1).paths[0]
    assert len(store.get(H1).paths) == 1
    assert record.first_seen == T0
    assert record.last_seen == LATER
    assert store.get(H1).last_content_update == LATER


def test_add_path_rejects_bad_fingerprint():
    """Malformed fingerprints are never stored."""
    store = SnapshotStore()
    with pytest.raises(FingerprintFormatError):
        store.add_path("NOT-HEX", "a.txt", T0)
    with pytest.raises(FingerprintFormatError):
        store.add_path(H1.upper(), "a.txt", T0)
    with pytest.raises(FingerprintFormatError):
        store.add_path(H1[:-1], "a.txt", T0)
    assert len(store) == 0


def test_add_path_refuses_second_binding():
    """A path bound to one fingerprint can't be added under another."""
    store = SnapshotStore()
    store.add_path(H1, "a.txt", T0)
    with pytest.raises(StoreInvariantError):
        store.add_path(H2, "a.txt", T0)


def test_touch_updates_last_seen():
    """touch() refreshes last_seen and the entry's update time."""
    store = SnapshotStore()
    store.add_path(H1, "a.txt", T0)
    store.touch(H1, "a.txt", LATER)
    assert store.get(H1).paths[0].last_seen == LATER


def test_touch_unknown_path_raises():
    """touch() on a path not stored under the fingerprint raises KeyError."""
    store = SnapshotStore()
    with pytest.raises(KeyError):
        store.touch(H1, "a.txt", T0)


def test_remove_last_path_deletes_entry(make_store):
    """Removing the last path deletes the entry."""
    store = make_store({H1: ["a.txt"]})
    assert store.remove_path(H1, "a.txt") is True
    assert H1 not in store
    assert store.locate("a.txt") is None
    store.check_invariants()


def test_remove_one_of_several_paths(make_store):
    """Removing one path keeps the rest of the entry."""
    store = make_store({H1: ["a.txt", "b.txt"]})
    store.remove_path(H1, "a.txt", LATER)
    assert store.get(H1).path_names() == ["b.txt"]
    assert store.get(H1).last_content_update == LATER


def test_remove_missing_returns_false(make_store):
    """Removing an unknown path reports False."""
    store = make_store({H1: ["a.txt"]})
    assert store.remove_path(H2, "a.txt") is False
    assert store.remove_path(H1, "zzz") is False


def test_move_path_rebinds(make_store):
    """move_path() rebinds and returns the previous fingerprint."""
    store = make_store({H1: ["a.txt"]})
    assert store.move_path("a.txt", H2, LATER) == H1
    assert H1 not in store
    assert store.locate("a.txt") == H2
    store.check_invariants()


def test_move_path_with_bad_fingerprint_leaves_store_untouched(make_store):
    """A failed move leaves the old binding in place."""
    store = make_store({H1: ["a.txt"]})
    with pytest.raises(FingerprintFormatError):
        store.move_path("a.txt", "xyz", LATER)
    assert store.locate("a.txt") == H1


# ── Building and integrity ───────────────────────────────────────────


def _entry(fingerprint: str, *paths: str) -> ContentEntry:
    return ContentEntry(
        fingerprint=fingerprint,
        paths=[PathRecord(path=p, first_seen=T0, last_seen=T0) for p in paths],
        first_created=T0,
        last_content_update=T0,
    )


def test_from_entries_drops_empty_entries():
    """Entries without paths are dropped on load."""
    store = SnapshotStore.from_entries([_entry(H1, "a"), _entry(H2)])
    assert list(store) == [H1]
    assert store.locate("a") == H1


def test_from_entries_rejects_path_in_two_entries():
    """A path under two fingerprints is an invariant violation."""
    with pytest.raises(StoreInvariantError):
        SnapshotStore.from_entries([_entry(H1, "a"), _entry(H2, "a")])


def test_from_entries_rejects_bad_fingerprint():
    """A malformed stored fingerprint is rejected."""
    with pytest.raises(FingerprintFormatError):
        SnapshotStore.from_entries([_entry("nope", "a")])


def test_check_invariants_detects_stale_index(make_store):
    """A reverse index out of sync with the entries is detected."""
    store = make_store({H1: ["a.txt"]})
    store.get(H1).paths.append(PathRecord(path="sneaky", first_seen=T0, last_seen=T0))
    with pytest.raises(StoreInvariantError):
        store.check_invariants()

    store.rebuild_index()
    store.check_invariants()
    assert store.locate("sneaky") == H1


def test_as_disk_index(make_store):
    """as_disk_index() maps every stored path to its fingerprint."""
    store = make_store({H1: ["a", "b"], H2: ["c"]})
    assert store.as_disk_index() == {"a": H1, "b": H1, "c": H2}


def test_custom_fingerprint_length():
    """Stores can hold fingerprints of other digest lengths."""
    store = SnapshotStore(fingerprint_length=64)
    with pytest.raises(FingerprintFormatError):
        store.add_path(H1, "a", T0)
    store.add_path("a" * 64, "a", T0)
    assert store.locate("a") == "a" * 64
