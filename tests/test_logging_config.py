"""
Unit tests for logging configuration.

Tests structured JSON and text formatting, file sinks and the categorized
event emitters.
"""

import asyncio
import json
import logging
import sys
from dataclasses import replace

import pytest

from qa_framework.core.logging_config import (
    StructuredFormatter,
    TextFormatter,
    get_logger,
    log_api_request,
    log_assertion,
    log_interaction_attempt,
    log_step,
    log_test_end,
    setup_logging,
    timed,
)


def make_record(msg="Test message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test.component",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def framework_logger():
    """The framework's top-level logger, restored after the test."""
    logger = logging.getLogger("qa_framework")
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)


class TestStructuredFormatter:
    """Test cases for StructuredFormatter."""

    def test_format_basic_log_record(self):
        formatter = StructuredFormatter("run-123")

        log_data = json.loads(formatter.format(make_record()))

        assert log_data["level"] == "INFO"
        assert log_data["component"] == "test.component"
        assert log_data["run_id"] == "run-123"
        assert log_data["message"] == "Test message"
        assert log_data["timestamp"].endswith("Z")

    def test_format_with_event_and_metadata(self):
        formatter = StructuredFormatter("run-123")
        record = make_record(
            "Click failed",
            logging.ERROR,
            event="INTERACTION_ATTEMPT",
            metadata={"attempt": 2},
            selector="#login",
        )

        log_data = json.loads(formatter.format(record))

        assert log_data["event"] == "INTERACTION_ATTEMPT"
        assert log_data["metadata"] == {"attempt": 2}
        assert log_data["selector"] == "#login"

    def test_format_with_exception(self):
        formatter = StructuredFormatter("run-123")
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_data = json.loads(formatter.format(record))

        assert "ValueError: boom" in log_data["exception"]


class TestTextFormatter:

    def test_format_includes_event_and_metadata(self):
        formatter = TextFormatter("run-123")
        record = make_record(event="API_RESPONSE", metadata={"status": 200, "method": "GET"})

        text = formatter.format(record)

        assert "INFO" in text
        assert "Test message [API_RESPONSE]" in text
        assert "status=200 | method=GET" in text


class TestSetupLogging:
    """Test cases for setup_logging."""

    def test_console_only(self, config, framework_logger):
        logger = setup_logging(config, "run-1", "qa_framework")

        assert logger is framework_logger
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)
        assert logger.level == logging.INFO

    def test_json_format_in_ci(self, config, framework_logger):
        logger = setup_logging(replace(config, ci_mode=True), "run-1", "qa_framework")

        assert isinstance(logger.handlers[0].formatter, StructuredFormatter)

    def test_file_sinks(self, config, framework_logger):
        logger = setup_logging(replace(config, log_to_file=True), "run-1", "qa_framework")
        logging.getLogger("qa_framework.sample").debug("detail line")
        logging.getLogger("qa_framework.sample").error("broken")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        detail = (config.logs_dir / "test-results.log").read_text(encoding="utf-8")
        errors = (config.logs_dir / "error.log").read_text(encoding="utf-8")
        application = (config.logs_dir / "application.log").read_text(encoding="utf-8")
        assert "detail line" in detail
        assert "detail line" not in application
        assert "broken" in errors
        assert json.loads(errors.splitlines()[0])["run_id"] == "run-1"

    def test_reconfiguring_replaces_handlers(self, config, framework_logger):
        setup_logging(config, "run-1", "qa_framework")
        logger = setup_logging(config, "run-2", "qa_framework")

        assert len(logger.handlers) == 1


class TestEventEmitters:

    def test_interaction_attempt_levels(self, caplog):
        logger = logging.getLogger("qa_framework.test")
        with caplog.at_level(logging.DEBUG, logger="qa_framework.test"):
            log_interaction_attempt(logger, "click", "#btn", 1, 3, False, RuntimeError("detached"))
            log_interaction_attempt(logger, "click", "#btn", 2, 3, True)

        failed, succeeded = caplog.records
        assert failed.levelno == logging.WARNING
        assert failed.metadata["error"] == "detached"
        assert succeeded.levelno == logging.DEBUG
        assert succeeded.metadata["attempt"] == 2

    def test_api_request_and_response(self, caplog):
        logger = logging.getLogger("qa_framework.test")
        with caplog.at_level(logging.INFO, logger="qa_framework.test"):
            log_api_request(logger, "GET", "/api/users")
            log_api_request(logger, "GET", "/api/users", status=200, duration=12.5)

        assert [r.event for r in caplog.records] == ["API_REQUEST", "API_RESPONSE"]
        assert caplog.records[1].metadata["status"] == 200

    def test_failed_assertion_is_error(self, caplog):
        logger = logging.getLogger("qa_framework.test")
        with caplog.at_level(logging.DEBUG, logger="qa_framework.test"):
            log_assertion(logger, "status is 200", False, expected=200, actual=500)

        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].metadata["actual"] == 500

    def test_failed_test_end_is_error(self, caplog):
        logger = logging.getLogger("qa_framework.test")
        with caplog.at_level(logging.INFO, logger="qa_framework.test"):
            log_test_end(logger, "test_login", "failed", 1.5)

        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].getMessage() == "Test failed: test_login in 1.50s"

    def test_log_step_records_failure(self, caplog):
        logger = logging.getLogger("qa_framework.test")
        with caplog.at_level(logging.DEBUG, logger="qa_framework.test"):
            with pytest.raises(RuntimeError):
                with log_step(logger, "Seeding"):
                    raise RuntimeError("no disk")

        start, end = caplog.records
        assert start.event == "STEP_START"
        assert end.event == "STEP_END"
        assert end.metadata["success"] is False


class TestHelpers:

    def test_get_logger_with_context(self, caplog):
        logger = get_logger("qa_framework.test", test_name="test_checkout")
        with caplog.at_level(logging.INFO, logger="qa_framework.test"):
            logger.info("hello")

        assert caplog.records[0].test_name == "test_checkout"

    def test_timed_logs_performance(self, caplog):
        @timed("Sample operation")
        async def operation():
            return 42

        with caplog.at_level(logging.INFO):
            assert asyncio.run(operation()) == 42

        events = [r for r in caplog.records if getattr(r, "event", None) == "PERFORMANCE"]
        assert events[0].metadata["success"] is True

    def test_timed_reraises(self, caplog):
        @timed("Failing operation")
        async def operation():
            raise ValueError("bad")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError):
                asyncio.run(operation())

        assert caplog.records[-1].metadata["success"] is False
