"""Result records produced by reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, fields

CATEGORIES = ("ok", "modified", "moved", "renamed", "new", "deleted")


@dataclass(frozen=True)
class OkResult:
    path: str
    fingerprint: str


@dataclass(frozen=True)
class ModifiedResult:
    path: str
    original_fingerprint: str
    current_fingerprint: str


@dataclass(frozen=True)
class MovedResult:
    """A disk path whose content is already known under other path(s)."""

    path: str
    fingerprint: str
    known_old_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class NewResult:
    path: str
    fingerprint: str


@dataclass(frozen=True)
class DeletedResult:
    path: str
    original_fingerprint: str


@dataclass(frozen=True)
class RenamedResult:
    """Moved and deleted paths merged because they share one fingerprint."""

    fingerprint: str
    old_paths: tuple[str, ...] = ()
    new_paths: tuple[str, ...] = ()


def _path_key(result: object) -> tuple[str, ...]:
    if isinstance(result, RenamedResult):
        return (result.fingerprint, *result.new_paths)
    return (result.path,)


@dataclass(frozen=True)
class Classification:
    """Six disjoint result categories for one reconciliation."""

    ok: tuple[OkResult, ...] = ()
    modified: tuple[ModifiedResult, ...] = ()
    moved: tuple[MovedResult, ...] = ()
    renamed: tuple[RenamedResult, ...] = ()
    new: tuple[NewResult, ...] = ()
    deleted: tuple[DeletedResult, ...] = ()

    @property
    def discrepancy_count(self) -> int:
        return (
            len(self.modified)
            + len(self.moved)
            + len(self.renamed)
            + len(self.new)
            + len(self.deleted)
        )

    @property
    def is_clean(self) -> bool:
        return self.discrepancy_count == 0

    def counts(self) -> dict[str, int]:
        return {f.name: len(getattr(self, f.name)) for f in fields(self)}

    def sorted(self) -> Classification:
        """Copy with every category in a stable order, for display."""
        return Classification(
            **{
                f.name: tuple(sorted(getattr(self, f.name), key=_path_key))
                for f in fields(self)
            }
        )

    def disk_side_paths(self) -> list[str]:
        """Every disk path in OK, MOVED, MODIFIED or NEW (duplicates kept)."""
        paths = [r.path for r in self.ok]
        paths += [r.path for r in self.moved]
        paths += [r.path for r in self.modified]
        paths += [r.path for r in self.new]
        paths += [p for r in self.renamed for p in r.new_paths]
        return paths

    def store_side_paths(self) -> list[str]:
        """Every missing store path in DELETED or RENAMED-old (duplicates kept)."""
        paths = [r.path for r in self.deleted]
        paths += [p for r in self.renamed for p in r.old_paths]
        return paths

    def to_dict(self) -> dict[str, list[dict]]:
        return {
            name: [
                {k: list(v) if isinstance(v, tuple) else v for k, v in vars(r).items()}
                for r in getattr(self, name)
            ]
            for name in CATEGORIES
        }
