"""Data models for the content-addressable snapshot store.

Field aliases match the on-disk database format, so a decoded entry can be
validated straight from the JSON written by earlier runs.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PathRecord(BaseModel):
    """One relative path observed with a given content fingerprint."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(alias="Path", min_length=1)
    first_seen: datetime = Field(alias="FirstSeen")
    last_seen: datetime = Field(alias="LastSeen")


class ContentEntry(BaseModel):
    """Every known path sharing one fingerprint."""

    model_config = ConfigDict(populate_by_name=True)

    fingerprint: str = Field(alias="ContentMD5")
    paths: list[PathRecord] = Field(default_factory=list, alias="RelativePaths")
    first_created: datetime = Field(alias="FirstCreated")
    last_content_update: datetime = Field(alias="LastContentUpdate")

    @field_validator("paths", mode="before")
    @classmethod
    def _null_paths(cls, value: object) -> object:
        # Older databases serialise an empty path list as null
        return [] if value is None else value

    def find(self, path: str) -> PathRecord | None:
        for record in self.paths:
            if record.path == path:
                return record
        return None

    def path_names(self) -> list[str]:
        return [record.path for record in self.paths]
