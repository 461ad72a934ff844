"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from smalise.config.models import LoggingConfig, LogOutputConfig
from smalise.core.logging import (
    begin_operation,
    configure_logging,
    current_operation,
    end_operation,
    get_logger,
)


def _records(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


class TestOperations:
    """Operation correlation through structlog context variables."""

    def teardown_method(self) -> None:
        end_operation()

    def test_given_explicit_id_when_begin_then_current(self) -> None:
        # When
        result = begin_operation("rename", "rename-123")

        # Then
        assert result == "rename-123"
        assert current_operation() == "rename-123"

    def test_given_no_id_when_begin_then_generates_one(self) -> None:
        oid = begin_operation("check")

        assert len(oid) == 12
        assert current_operation() == oid

    def test_given_operation_when_end_then_cleared(self) -> None:
        # Given
        begin_operation("watch")

        # When
        end_operation()

        # Then
        assert current_operation() is None

    def test_end_without_begin_is_harmless(self) -> None:
        end_operation()

        assert current_operation() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def teardown_method(self) -> None:
        end_operation()
        configure_logging(level="INFO")

    def test_given_json_format_when_log_then_valid_json_output(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """JSON format produces valid JSON with required fields."""
        # Given
        configure_logging(json_format=True, level="INFO")
        logger = get_logger("test")

        # When
        logger.info("class_conflict", identifier="Lpkg/A;")

        # Then
        lines = [line for line in capsys.readouterr().err.strip().split("\n") if line]
        if lines:
            data = json.loads(lines[-1])
            assert data["event"] == "class_conflict"
            assert data["identifier"] == "Lpkg/A;"
            assert data["logger"] == "test"
            assert data["level"] == "info"
            assert "timestamp" in data

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "logs" / "smalise.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG overrides level="ERROR"
        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("document_parsed")

        # Then
        assert [r["event"] for r in _records(log_file)] == ["document_parsed"]

    def test_given_multi_output_config_when_configure_then_levels_apply_per_output(
        self, tmp_path: Path
    ) -> None:
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("symbols_searched")
        logger.info("rename_planned")

        # Then
        assert [r["event"] for r in _records(info_file)] == ["rename_planned"]
        assert [r["event"] for r in _records(debug_file)] == ["symbols_searched", "rename_planned"]

    def test_given_operation_when_log_then_tagged(self, tmp_path: Path) -> None:
        """Every record carries the current command and operation id."""
        # Given
        log_file = tmp_path / "op.log"
        configure_logging(
            config=LoggingConfig(
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        begin_operation("rename", "op-42")

        # When
        get_logger().info("rename_planned")
        end_operation()
        get_logger().info("workspace_deactivated")

        # Then
        tagged, untagged = _records(log_file)
        assert tagged["operation_id"] == "op-42"
        assert tagged["command"] == "rename"
        assert "operation_id" not in untagged

    def test_given_reconfigure_when_log_then_old_file_not_written(self, tmp_path: Path) -> None:
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(first))])
        )
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(second))])
        )

        get_logger().info("edit_applied")

        assert first.read_text() == ""
        assert [r["event"] for r in _records(second)] == ["edit_applied"]

    def test_watchfiles_debug_is_quieted(self) -> None:
        configure_logging(level="DEBUG")

        assert logging.getLogger("watchfiles.main").level == logging.WARNING
