"""Tests for config/loader.py module.

Covers:
- config_files() candidate paths
- read_config_file() function
- merge_config() function
- load_config() precedence: kwargs > env > workspace yaml > global yaml > defaults
"""

from __future__ import annotations

from pathlib import Path

import pytest

from smalise.config import loader
from smalise.config.loader import config_files, load_config, merge_config, read_config_file
from smalise.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at a temp file and clear SMALISE__ env vars."""
    path = tmp_path / "global" / "config.yaml"
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", path)
    for key in ("SMALISE__LOGGING__LEVEL", "SMALISE__INDEX__LOAD_CONCURRENCY"):
        monkeypatch.delenv(key, raising=False)
    return path


def _write_workspace_config(root: Path, content: str) -> None:
    config_dir = root / ".smalise"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.yaml").write_text(content)


class TestConfigFiles:
    def test_global_then_workspace(self, tmp_path: Path, isolated_global_config: Path) -> None:
        assert config_files(tmp_path) == [
            isolated_global_config,
            tmp_path / ".smalise" / "config.yaml",
        ]


class TestReadConfigFile:
    """Tests for read_config_file function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert read_config_file(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")

        assert read_config_file(yaml_file) == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert read_config_file(yaml_file) == {}

    def test_raises_on_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("index: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            read_config_file(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_on_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            read_config_file(yaml_file)


class TestMergeConfig:
    """Tests for merge_config function."""

    def test_override_wins_for_scalars(self) -> None:
        assert merge_config({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_dicts_merge(self) -> None:
        base = {"index": {"load_concurrency": 10, "exclude_dirs": ["build"]}}
        override = {"index": {"load_concurrency": 20}}

        result = merge_config(base, override)

        assert result == {"index": {"load_concurrency": 20, "exclude_dirs": ["build"]}}

    def test_does_not_mutate_inputs(self) -> None:
        base = {"index": {"load_concurrency": 10}}

        merge_config(base, {"index": {"load_concurrency": 20}})

        assert base == {"index": {"load_concurrency": 10}}


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults_without_any_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.index.load_concurrency == 50
        assert config.logging.level == "INFO"
        assert config.watcher.debounce_ms == 400

    def test_workspace_yaml_overrides_global(
        self, tmp_path: Path, isolated_global_config: Path
    ) -> None:
        isolated_global_config.parent.mkdir(parents=True)
        isolated_global_config.write_text(
            "index:\n  load_concurrency: 10\nlogging:\n  level: DEBUG\n"
        )
        _write_workspace_config(tmp_path, "index:\n  load_concurrency: 25\n")

        config = load_config(tmp_path)

        assert config.index.load_concurrency == 25
        assert config.logging.level == "DEBUG"

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_workspace_config(tmp_path, "index:\n  load_concurrency: 25\n")
        monkeypatch.setenv("SMALISE__INDEX__LOAD_CONCURRENCY", "20")

        config = load_config(tmp_path)

        assert config.index.load_concurrency == 20

    def test_kwargs_override_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SMALISE__INDEX__LOAD_CONCURRENCY", "20")

        config = load_config(tmp_path, index={"load_concurrency": 30})

        assert config.index.load_concurrency == 30

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        _write_workspace_config(tmp_path, "index:\n  load_concurrency: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "load_concurrency" in exc_info.value.details["field"]

    def test_invalid_yaml_raises_parse_error(self, tmp_path: Path) -> None:
        _write_workspace_config(tmp_path, "index: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR
