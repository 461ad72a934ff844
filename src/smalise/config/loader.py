"""Layered configuration loading.

Sources, lowest precedence first:

1. Built-in defaults (``models.py``)
2. Global file: ``~/.config/smalise/config.yaml``
3. Workspace file: ``<root>/.smalise/config.yaml``
4. Environment: ``SMALISE__<SECTION>__<KEY>``, e.g. ``SMALISE__INDEX__LOAD_CONCURRENCY``
5. Keyword overrides passed to ``load_config``

The two YAML files are merged section by section, so a workspace file that
only sets ``index.load_concurrency`` keeps the global ``index.exclude_dirs``.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from smalise.config.constants import CONFIG_DIR_NAME
from smalise.config.models import IndexConfig, LoggingConfig, SmaliseConfig, WatcherConfig
from smalise.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/smalise/config.yaml").expanduser()
WORKSPACE_CONFIG_NAME = "config.yaml"


def config_files(root: Path) -> list[Path]:
    """Candidate YAML files for ``root``, lowest precedence first."""
    return [GLOBAL_CONFIG_PATH, root / CONFIG_DIR_NAME / WORKSPACE_CONFIG_NAME]


def read_config_file(path: Path) -> dict[str, Any]:
    """Parsed mapping from ``path``; ``{}`` when the file is absent or empty.

    Raises:
        ConfigError: The file is unreadable, not YAML, or not a mapping.
    """
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """``override`` on top of ``base``, recursing into nested sections."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


class _LayeredYamlSource(PydanticBaseSettingsSource):
    """Settings source backed by several YAML files, later ones winning."""

    def __init__(self, settings_cls: type[BaseSettings], paths: Sequence[Path]) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        for path in paths:
            self._data = merge_config(self._data, read_config_file(path))

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_class(paths: Sequence[Path]) -> type[BaseSettings]:
    # Built per call: the YAML layer depends on the workspace root
    class SmaliseSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="SMALISE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        index: IndexConfig = IndexConfig()
        watcher: WatcherConfig = WatcherConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _LayeredYamlSource(settings_cls, paths))

    return SmaliseSettings


def load_config(root: Path | None = None, **overrides: Any) -> SmaliseConfig:
    """Resolve the configuration for the workspace at ``root`` (default: cwd).

    Raises:
        ConfigError: A config file is malformed or a value fails validation.
    """
    settings_cls = _settings_class(config_files(root or Path.cwd()))
    try:
        settings = settings_cls(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(field, first.get("input"), first["msg"]) from e
    return SmaliseConfig.model_validate(settings.model_dump())
