from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import DatabaseConfig, LedgerConfig, ScanConfig

__all__ = [
    "DEFAULT_CONFIG_TEMPLATE",
    "DatabaseConfig",
    "LedgerConfig",
    "ScanConfig",
    "load_config",
]
