"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SMALISE__SECTION__KEY)
3. Workspace YAML (<root>/.smalise/config.yaml)
4. Global YAML (~/.config/smalise/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SMALISE__<SECTION>__<KEY>=<VALUE>

Examples:
    SMALISE__LOGGING__LEVEL=DEBUG
    SMALISE__INDEX__LOAD_CONCURRENCY=20
    SMALISE__WATCHER__DEBOUNCE_MS=800
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from smalise.config.constants import (
    LOAD_CONCURRENCY_MAX,
    LOADING_FILE_NUM_LIMIT,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SMALISE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every parsed file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexConfig(BaseModel):
    """Workspace index configuration.

    Env vars:
        SMALISE__INDEX__LOAD_CONCURRENCY: Max files opened at once during bulk load
    """

    load_concurrency: int = Field(
        default=LOADING_FILE_NUM_LIMIT,
        description="Max in-flight file parses during the initial load. "
        "RISK: High values hold many file handles open at once.",
    )
    exclude_dirs: list[str] = Field(
        default_factory=lambda: ["build", "original"],
        description="Directory names skipped during discovery and watching. "
        "VCS and .smalise directories are always skipped.",
    )

    @field_validator("load_concurrency")
    @classmethod
    def validate_load_concurrency(cls, v: int) -> int:
        if not (1 <= v <= LOAD_CONCURRENCY_MAX):
            raise ValueError(f"load_concurrency must be 1-{LOAD_CONCURRENCY_MAX}, got {v}")
        return v


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        SMALISE__WATCHER__DEBOUNCE_MS: Change batching window
        SMALISE__WATCHER__STEP_MS: Poll step for the native watcher
    """

    debounce_ms: int = Field(
        default=400,
        description="Changes arriving within this window are delivered as one batch.",
    )
    step_ms: int = Field(
        default=50,
        description="How often the watcher checks for new events.",
    )


class SmaliseConfig(BaseModel):
    """Root configuration for smalise.

    All settings can be configured via:
    1. Environment variables: SMALISE__SECTION__KEY
    2. YAML config files (workspace or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
