"""Tests for centralized logging configuration using Loguru."""

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

import principalfs.kernel.logging as logging_module
from principalfs.kernel.logging import configure_logging, get_logger, reset_logging


@pytest.fixture(autouse=True)
def _isolated_logging(fresh_logging: None) -> None:
    """Every test starts from an unconfigured state."""


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_caches_results(self) -> None:
        """The same name yields the same bound logger."""
        assert get_logger("principalfs.test") is get_logger("principalfs.test")

    def test_get_logger_binds_module(self) -> None:
        records: list[dict] = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            get_logger("principalfs.bound").warning("hello {}", "there")
        finally:
            logger.remove(sink_id)
        assert records[-1]["extra"]["module"] == "principalfs.bound"
        assert records[-1]["message"] == "hello there"


class TestConfigureLogging:
    """Test configure_logging function."""

    @pytest.mark.parametrize("log_format", ["console", "json", "structured", "rich"])
    def test_each_format_adds_one_handler(self, log_format: str) -> None:
        configure_logging(level="INFO", format=log_format)  # type: ignore[arg-type]
        assert len(logging_module._HANDLER_IDS) == 1

    def test_same_settings_are_a_no_op(self) -> None:
        configure_logging(level="INFO", format="console")
        handler_ids = list(logging_module._HANDLER_IDS)
        configure_logging(level="INFO", format="console")
        assert logging_module._HANDLER_IDS == handler_ids

    def test_force_reconfigure_replaces_handlers(self) -> None:
        configure_logging(level="INFO", format="console")
        handler_ids = list(logging_module._HANDLER_IDS)
        configure_logging(level="INFO", format="console", force_reconfigure=True)
        assert logging_module._HANDLER_IDS != handler_ids
        assert len(logging_module._HANDLER_IDS) == 1

    def test_output_file_receives_json(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "principalfs.log"
        configure_logging(level="INFO", format="console", output_file=log_file)
        get_logger("principalfs.file").info("written to file")
        reset_logging()
        assert '"written to file"' in log_file.read_text()

    def test_env_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRINCIPALFS_LOG_LEVEL", "error")
        monkeypatch.setenv("PRINCIPALFS_LOG_FORMAT", "JSON")
        logging_module._ensure_configured()
        assert logging_module._CURRENT_CONFIG is not None
        assert logging_module._CURRENT_CONFIG["level"] == "ERROR"
        assert logging_module._CURRENT_CONFIG["format"] == "json"
