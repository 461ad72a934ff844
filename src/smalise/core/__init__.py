"""Core module exports."""

from smalise.core.errors import (
    ConfigError,
    ConflictError,
    EditError,
    ErrorCode,
    InternalError,
    LoadError,
    ParseError,
    RenameError,
    SmaliseError,
)
from smalise.core.logging import (
    begin_operation,
    configure_logging,
    current_operation,
    end_operation,
    get_logger,
)
from smalise.core.progress import status

__all__ = [
    # Errors
    "ErrorCode",
    "SmaliseError",
    "ConfigError",
    "ParseError",
    "ConflictError",
    "LoadError",
    "RenameError",
    "EditError",
    "InternalError",
    # Logging
    "begin_operation",
    "configure_logging",
    "current_operation",
    "end_operation",
    "get_logger",
    # Progress
    "status",
]
