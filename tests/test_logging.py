"""
Tests for logging setup.
"""

import logging

import pytest

from hostboot.core.observability.logging_config import (
    MASK,
    SecretFilter,
    _parse_level,
    register_secret,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("WARNING") == logging.WARNING

    def test_fallback(self):
        assert _parse_level(None) == logging.INFO
        assert _parse_level("loud") == logging.INFO


class TestSetupLogging:
    def test_console_level(self, restore_root_logger):
        setup_logging(level="WARNING")
        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "hostboot.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        logging.getLogger("hostboot.test").debug("file only")
        for h in restore_root_logger.handlers:
            h.flush()
        assert "file only" in log_file.read_text()


class TestSecretFilter:
    def test_masks_registered_value(self):
        f = SecretFilter()
        f.add("Xk9mP2qR7vL4")
        record = logging.LogRecord("t", logging.DEBUG, __file__, 1, "STDERR %s", ("pw=Xk9mP2qR7vL4",), None)
        assert f.filter(record)
        assert record.getMessage() == f"STDERR pw={MASK}"

    def test_untouched_without_secrets(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        assert SecretFilter().filter(record)
        assert record.args == ("world",)

    def test_file_output_is_masked(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "hostboot.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        register_secret("hunter2-unique-value")

        logging.getLogger("hostboot.test").debug("tool said %s", "password: hunter2-unique-value")
        for h in restore_root_logger.handlers:
            h.flush()

        text = log_file.read_text()
        assert "hunter2-unique-value" not in text
        assert f"password: {MASK}" in text
