"""Tests for logging setup and response-scoped log tagging."""

import logging
import logging.handlers

import pytest

from src.responder.core.config import LoggingConfig
from src.responder.utils.logging import (
    LogContext,
    ResponseFormatter,
    ResponseIdFilter,
    log_error,
    log_info,
    log_warning,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test runner left it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="Lockdown started"):
    return logging.LogRecord("responder", logging.INFO, __file__, 1, message, None, None)


def tagged(record):
    ResponseIdFilter().filter(record)
    return record.response_id


class TestLogContext:
    """Test response ID scoping."""

    def test_untagged_outside_context(self):
        assert tagged(make_record()) is None

    def test_tags_records_inside_context(self):
        with LogContext("response-7") as response_id:
            assert response_id == "response-7"
            assert tagged(make_record()) == "response-7"

        assert tagged(make_record()) is None

    def test_nested_context_restores_outer_id(self):
        with LogContext("response-1"):
            with LogContext("response-2"):
                assert tagged(make_record()) == "response-2"
            assert tagged(make_record()) == "response-1"


class TestFormatting:
    """Test formatter output and context fields."""

    def test_formatter_prefixes_response_id(self):
        record = make_record()
        with LogContext("response-99"):
            ResponseIdFilter().filter(record)

        output = ResponseFormatter("%(message)s").format(record)

        assert output == "[response-99] Lockdown started"

    def test_formatter_leaves_untagged_message(self):
        record = make_record()
        ResponseIdFilter().filter(record)

        assert ResponseFormatter("%(message)s").format(record) == "Lockdown started"

    def test_context_fields_appended(self, caplog):
        logger = logging.getLogger("responder.test")

        with caplog.at_level(logging.INFO, logger="responder.test"):
            log_info(logger, "Executing integrated response", type="LOCKDOWN", severity=9)
            log_warning(logger, "Request rejected")
            log_error(logger, "Actuator hardware fault", actuator="ACCESS")

        assert caplog.messages == [
            "Executing integrated response | type=LOCKDOWN severity=9",
            "Request rejected",
            "Actuator hardware fault | actuator=ACCESS",
        ]
        assert caplog.records[-1].levelno == logging.ERROR


class TestSetupLogging:
    """Test handler installation from the logging config section."""

    def test_console_only(self, restore_root_logger):
        setup_logging(LoggingConfig(LOG_LEVEL="WARNING", LOG_ENABLE_FILE=False))

        root = restore_root_logger
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ResponseFormatter)

    def test_rotating_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "responder.log"

        setup_logging(
            LoggingConfig(
                LOG_FILE_PATH=str(log_file),
                LOG_FILE_MAX_BYTES=1024,
                LOG_FILE_BACKUP_COUNT=2,
                LOG_ENABLE_CONSOLE=False,
            )
        )

        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
        assert handlers[0].maxBytes == 1024
        assert log_file.parent.exists()
