"""Load and save the snapshot store as (optionally gzipped) JSON."""

from __future__ import annotations

import gzip
import json
import logging
import os
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from hashledger.errors import StoreInvariantError
from hashledger.fingerprint import FINGERPRINT_LENGTH
from hashledger.store.models import ContentEntry
from hashledger.store.store import SnapshotStore

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"

LoadStatus = Literal["loaded", "missing", "corrupt"]


@dataclass
class LoadResult:
    """A loaded store and how it was obtained."""

    store: SnapshotStore
    status: LoadStatus


def _decode(raw: bytes) -> object:
    if raw.startswith(_GZIP_MAGIC):
        raw = gzip.decompress(raw)
    if not raw.strip():
        return {}
    return json.loads(raw.decode("utf-8"))


def _parse(data: object, fingerprint_length: int) -> SnapshotStore:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    entries: list[ContentEntry] = []
    for key, value in data.items():
        entry = ContentEntry.model_validate(value)
        if entry.fingerprint != key:
            raise ValueError(f"entry keyed {key} claims fingerprint {entry.fingerprint}")
        entries.append(entry)
    return SnapshotStore.from_entries(entries, fingerprint_length)


def load_store(path: Path, fingerprint_length: int = FINGERPRINT_LENGTH) -> LoadResult:
    """Read the database at *path*.

    A missing file gives an empty store. An unreadable or undecodable file
    also gives an empty store, with a warning; it is never fatal.
    """
    path = Path(path)
    if not path.exists():
        return LoadResult(SnapshotStore(fingerprint_length), "missing")

    try:
        store = _parse(_decode(path.read_bytes()), fingerprint_length)
    except (
        OSError,
        EOFError,
        UnicodeDecodeError,
        ValueError,
        ValidationError,
        StoreInvariantError,
        zlib.error,
    ) as e:
        logger.warning(
            "Could not parse checksum database %s: %s. Starting fresh.", path, e
        )
        return LoadResult(SnapshotStore(fingerprint_length), "corrupt")

    logger.debug("loaded %d entries from %s", len(store), path)
    return LoadResult(store, "loaded")


def dump_store(store: SnapshotStore) -> dict[str, dict]:
    """JSON-ready mapping of the store, keys sorted."""
    return {
        fingerprint: store.get(fingerprint).model_dump(mode="json", by_alias=True)
        for fingerprint in sorted(store)
    }


def save_store(store: SnapshotStore, path: Path, *, compress: bool = True) -> Path:
    """Write *store* to *path*, replacing any previous file atomically."""
    path = Path(path)
    payload = json.dumps(dump_store(store)).encode("utf-8")
    if compress:
        payload = gzip.compress(payload)

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_bytes(payload)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("saved %d entries to %s", len(store), path)
    return path
