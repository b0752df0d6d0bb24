"""Content-addressable snapshot store and its persistence."""

from hashledger.store.models import ContentEntry, PathRecord
from hashledger.store.persistence import LoadResult, dump_store, load_store, save_store
from hashledger.store.store import SnapshotStore

__all__ = [
    "ContentEntry",
    "LoadResult",
    "PathRecord",
    "SnapshotStore",
    "dump_store",
    "load_store",
    "save_store",
]
