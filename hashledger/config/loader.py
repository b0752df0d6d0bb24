"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import LedgerConfig


def load_config(cli_path: str | None = None) -> LedgerConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./hashledger.yaml"),
        Path.home() / ".hashledger" / "config.yaml",
    ]

    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ValueError(f"Invalid config in {path}: expected a mapping")
                raw = _expand_env_vars(raw)
                return LedgerConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return LedgerConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `hashledger config init`
DEFAULT_CONFIG_TEMPLATE = """\
# hashledger.yaml

# Checksum database
database:
  filename: "checksums.json.gz"
  compress: true               # gzip the JSON database

# Directory scan
scan:
  algorithm: "md5"             # any fixed-size hashlib digest
  exclude_names: []            # exact file names to skip
  exclude_prefixes:            # file name prefixes to skip
    - "hashledger"
  ignore_dirs:                 # directory names never descended into
    - ".git"
    - "__pycache__"
  follow_symlinks: false
  workers: 1                   # hashing threads
  chunk_size: 1048576

# Logging
log_level: "warn"              # debug | info | warn | error
log_format: "text"             # text | json
"""
