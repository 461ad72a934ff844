"""Config module exports."""

from smalise.config.loader import load_config
from smalise.config.models import (
    IndexConfig,
    LoggingConfig,
    SmaliseConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "SmaliseConfig",
    "IndexConfig",
    "LoggingConfig",
    "WatcherConfig",
]
