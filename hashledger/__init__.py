"""hashledger: content-addressable integrity database for directory trees."""

from hashledger.ingest import IngestMode, IngestStats, ingest, prune
from hashledger.ledger import Ledger, UpdateReport, VerifyReport
from hashledger.reconcile import Classification, partition, reconcile, resolve_renames
from hashledger.store import SnapshotStore, load_store, save_store

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "IngestMode",
    "IngestStats",
    "Ledger",
    "SnapshotStore",
    "UpdateReport",
    "VerifyReport",
    "ingest",
    "load_store",
    "partition",
    "prune",
    "reconcile",
    "resolve_renames",
    "save_store",
]
