"""Reconciliation of the snapshot store against the live filesystem."""

from hashledger.reconcile.engine import partition, reconcile, resolve_renames
from hashledger.reconcile.models import (
    CATEGORIES,
    Classification,
    DeletedResult,
    ModifiedResult,
    MovedResult,
    NewResult,
    OkResult,
    RenamedResult,
)

__all__ = [
    "CATEGORIES",
    "Classification",
    "DeletedResult",
    "ModifiedResult",
    "MovedResult",
    "NewResult",
    "OkResult",
    "RenamedResult",
    "partition",
    "reconcile",
    "resolve_renames",
]
