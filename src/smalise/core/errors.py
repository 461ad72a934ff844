"""Smalise error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (parse, conflict, load)
- 4xxx: Rename
- 5xxx: Edit application
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Index (3xxx)
    PARSE_ERROR = 3001
    CLASS_CONFLICT = 3002
    LOAD_DISCOVERY_FAILED = 3003
    LOAD_OPEN_FAILED = 3004

    # Rename (4xxx)
    RENAME_INVALID_NAME = 4001

    # Edit (5xxx)
    EDIT_FILE_NOT_FOUND = 5001
    EDIT_OVERLAP = 5002
    EDIT_OUT_OF_BOUNDS = 5003
    EDIT_TARGET_EXISTS = 5004
    EDIT_WRITE_FAILED = 5005

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class SmaliseError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SmaliseError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ParseError(SmaliseError):
    """Malformed smali source in a single file.

    ``details`` carries the 0-based ``line``/``start``/``end`` span of the
    offending token so the index can attach a diagnostic at that spot.
    """

    @classmethod
    def malformed(cls, reason: str, line: int, start: int = 0, end: int = 0) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=reason,
            details={"line": line, "start": start, "end": end},
        )


class ConflictError(SmaliseError):
    """Two files declare the same class identifier."""

    @classmethod
    def duplicate_class(cls, identifier: str, owner: str, path: str) -> "ConflictError":
        return cls(
            code=ErrorCode.CLASS_CONFLICT,
            message=f"Class conflicted with {owner}",
            details={"identifier": identifier, "owner": owner, "path": path},
        )


class LoadError(SmaliseError):
    """Discovery or open failure during bulk load."""

    @classmethod
    def discovery_failed(cls, root: str, reason: str) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_DISCOVERY_FAILED,
            message=f"Loading smali classes failed: {reason}",
            details={"root": root, "reason": reason},
        )

    @classmethod
    def open_failed(cls, path: str, reason: str) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_OPEN_FAILED,
            message=f"Cannot open {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class RenameError(SmaliseError):
    """Rename request that cannot produce a valid edit set."""

    @classmethod
    def invalid_name(cls, new_name: str, reason: str) -> "RenameError":
        return cls(
            code=ErrorCode.RENAME_INVALID_NAME,
            message=f"Invalid new name '{new_name}': {reason}",
            details={"new_name": new_name, "reason": reason},
        )


class EditError(SmaliseError):
    """Workspace edit that cannot be applied atomically."""

    @classmethod
    def file_not_found(cls, path: str) -> "EditError":
        return cls(
            code=ErrorCode.EDIT_FILE_NOT_FOUND,
            message=f"Cannot edit non-existent file: {path}",
            details={"path": path},
        )

    @classmethod
    def overlapping(cls, path: str, line: int) -> "EditError":
        return cls(
            code=ErrorCode.EDIT_OVERLAP,
            message=f"Overlapping edits in {path} at line {line + 1}",
            details={"path": path, "line": line},
        )

    @classmethod
    def out_of_bounds(cls, path: str, line: int, character: int) -> "EditError":
        return cls(
            code=ErrorCode.EDIT_OUT_OF_BOUNDS,
            message=f"Edit position {line + 1}:{character + 1} is outside {path}",
            details={"path": path, "line": line, "character": character},
        )

    @classmethod
    def target_exists(cls, old_path: str, new_path: str) -> "EditError":
        return cls(
            code=ErrorCode.EDIT_TARGET_EXISTS,
            message=f"Cannot rename {old_path}: {new_path} already exists",
            details={"old_path": old_path, "new_path": new_path},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "EditError":
        return cls(
            code=ErrorCode.EDIT_WRITE_FAILED,
            message=f"Failed to write {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )


class InternalError(SmaliseError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
