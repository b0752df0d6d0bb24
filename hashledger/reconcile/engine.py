"""Reconcile a snapshot store against a fresh disk index.

Two phases, both pure:

1. :func:`partition` sorts every disk path and every stored path into OK,
   MODIFIED, MOVED, NEW or DELETED.
2. :func:`resolve_renames` merges MOVED and DELETED results that share a
   fingerprint into RENAMED.

Classification is driven by content fingerprints alone. Any disk path whose
content is already known under another path is a move candidate, whatever
its name.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import replace

from hashledger.reconcile.models import (
    Classification,
    DeletedResult,
    ModifiedResult,
    MovedResult,
    NewResult,
    OkResult,
    RenamedResult,
)
from hashledger.store.store import SnapshotStore


def partition(store: SnapshotStore, disk: Mapping[str, str]) -> Classification:
    """Provisional five-way split of *disk* (path -> fingerprint) against *store*.

    The RENAMED category is always empty here. Every disk path lands in
    exactly one of OK, MOVED, MODIFIED or NEW, and every stored path missing
    from disk lands in DELETED.
    """
    ok: list[OkResult] = []
    moved: list[MovedResult] = []
    modified: list[ModifiedResult] = []
    new: list[NewResult] = []
    deleted: list[DeletedResult] = []

    ok_paths: set[str] = set()
    accounted: set[str] = set()

    for path, fingerprint in disk.items():
        entry = store.get(fingerprint)
        if entry is None:
            continue
        bound_to = store.locate(path)
        if bound_to == fingerprint:
            ok.append(OkResult(path=path, fingerprint=fingerprint))
            ok_paths.add(path)
            accounted.add(path)
        elif bound_to is None:
            moved.append(
                MovedResult(
                    path=path,
                    fingerprint=fingerprint,
                    known_old_paths=tuple(entry.path_names()),
                )
            )
            accounted.add(path)
        # A path known under another fingerprint is reported as MODIFIED below

    for fingerprint, entry in store.items():
        for record in entry.paths:
            if record.path in ok_paths:
                continue
            current = disk.get(record.path)
            if current is None:
                deleted.append(
                    DeletedResult(path=record.path, original_fingerprint=fingerprint)
                )
            else:
                modified.append(
                    ModifiedResult(
                        path=record.path,
                        original_fingerprint=fingerprint,
                        current_fingerprint=current,
                    )
                )
                accounted.add(record.path)

    for path, fingerprint in disk.items():
        if path not in accounted:
            new.append(NewResult(path=path, fingerprint=fingerprint))

    return Classification(
        ok=tuple(ok),
        modified=tuple(modified),
        moved=tuple(moved),
        new=tuple(new),
        deleted=tuple(deleted),
    )


def resolve_renames(classification: Classification) -> Classification:
    """Merge MOVED and DELETED results that share a fingerprint into RENAMED.

    Pairing is by fingerprint only: with several old and several new paths
    for one fingerprint, all of them go into a single RENAMED result.
    """
    moved_by_fp: dict[str, list[MovedResult]] = defaultdict(list)
    for result in classification.moved:
        moved_by_fp[result.fingerprint].append(result)

    deleted_by_fp: dict[str, list[DeletedResult]] = defaultdict(list)
    for result in classification.deleted:
        deleted_by_fp[result.original_fingerprint].append(result)

    renamed = list(classification.renamed)
    merged: set[str] = set()
    for fingerprint, moved_group in moved_by_fp.items():
        deleted_group = deleted_by_fp.get(fingerprint)
        if not deleted_group:
            continue
        renamed.append(
            RenamedResult(
                fingerprint=fingerprint,
                old_paths=tuple(r.path for r in deleted_group),
                new_paths=tuple(r.path for r in moved_group),
            )
        )
        merged.add(fingerprint)

    if not merged:
        return classification

    return replace(
        classification,
        moved=tuple(r for r in classification.moved if r.fingerprint not in merged),
        deleted=tuple(
            r for r in classification.deleted if r.original_fingerprint not in merged
        ),
        renamed=tuple(renamed),
    )


def reconcile(store: SnapshotStore, disk: Mapping[str, str]) -> Classification:
    """Classify every disk path and every stored path. Never mutates *store*."""
    return resolve_renames(partition(store, disk))
