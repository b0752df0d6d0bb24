import hashlib
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    filename: str = Field(default="checksums.json.gz", min_length=1)
    compress: bool = True


class ScanConfig(BaseModel):
    algorithm: str = "md5"
    exclude_names: list[str] = Field(default_factory=list)
    exclude_prefixes: list[str] = Field(default_factory=lambda: ["hashledger"])
    ignore_dirs: list[str] = Field(default_factory=lambda: [".git", "__pycache__"])
    follow_symlinks: bool = False
    workers: int = Field(default=1, ge=1)
    chunk_size: int = Field(default=1024 * 1024, gt=0)

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in hashlib.algorithms_available:
            raise ValueError(f"unknown hash algorithm {value!r}")
        if hashlib.new(value).digest_size == 0:
            raise ValueError(f"{value!r} has no fixed digest size")
        return value


class LedgerConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "warn"
    log_format: Literal["text", "json"] = "text"
