"""
Logging configuration for the QA framework.

Provides structured JSON logging with file rotation, different output formats
for development and CI environments, and categorized event emitters for test
steps, navigation, element interactions, API calls, assertions and
performance metrics.
"""

import functools
import json
import logging
import logging.handlers
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from .config import Config


CONTEXT_FIELDS = ["test_name", "selector", "url", "status", "duration", "attempt"]


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": record.name,
            "run_id": self.run_id,
            "message": record.getMessage(),
        }

        if hasattr(record, "event"):
            log_entry["event"] = record.event

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "metadata"):
            log_entry["metadata"] = record.metadata

        for attr in CONTEXT_FIELDS:
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        message = f"[{timestamp}] {record.levelname:8} {record.name:20} | {record.getMessage()}"

        if hasattr(record, "event"):
            message += f" [{record.event}]"

        if hasattr(record, "metadata") and record.metadata:
            metadata_str = " | ".join(f"{k}={v}" for k, v in record.metadata.items())
            message += f" | {metadata_str}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(config: Config, run_id: str, logger_name: str = "") -> logging.Logger:
    """
    Set up logging configuration based on environment and config.

    Args:
        config: Configuration object with logging settings
        run_id: Unique run identifier for log correlation
        logger_name: Logger to attach the sinks to; the root logger by default

    Returns:
        The configured logger
    """
    root_logger = logging.getLogger(logger_name or None)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_level = getattr(logging, config.log_level)
    root_logger.setLevel(min(log_level, logging.DEBUG) if config.log_to_file else log_level)

    if config.log_format == "json":
        formatter = StructuredFormatter(run_id)
    else:
        formatter = TextFormatter(run_id)

    if config.log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

    if config.log_to_file:
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        file_formatter = StructuredFormatter(run_id)

        # (file name, level, max bytes, generations)
        sinks = [
            ("application.log", logging.INFO, 5 * 1024 * 1024, 5),
            ("error.log", logging.ERROR, 5 * 1024 * 1024, 5),
            ("test-results.log", logging.DEBUG, 10 * 1024 * 1024, 3),
        ]
        for file_name, level, max_bytes, backups in sinks:
            file_handler = logging.handlers.RotatingFileHandler(
                config.logs_dir / file_name,
                maxBytes=max_bytes,
                backupCount=backups,
                encoding="utf-8",
            )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(level)
            root_logger.addHandler(file_handler)

    logger = logging.getLogger("qa_framework.logging")
    logger.info(
        "Logging configured",
        extra={
            "metadata": {
                "run_id": run_id,
                "log_level": config.log_level,
                "log_format": config.log_format,
                "ci_mode": config.ci_mode,
                "log_to_file": config.log_to_file,
            }
        },
    )

    return root_logger


def get_logger(name: str, **context) -> logging.Logger:
    """
    Get a logger with optional context.

    Args:
        name: Logger name (typically module name)
        **context: Additional context to include in log records

    Returns:
        Configured logger with context
    """
    logger = logging.getLogger(name)

    if context:

        class ContextAdapter(logging.LoggerAdapter):
            def process(self, msg, kwargs):
                if "extra" not in kwargs:
                    kwargs["extra"] = {}
                kwargs["extra"].update(self.extra)
                return msg, kwargs

        return ContextAdapter(logger, context)

    return logger


def _emit(
    logger: logging.Logger,
    level: int,
    message: str,
    event: str,
    **metadata: Any,
) -> None:
    logger.log(level, message, extra={"event": event, "metadata": metadata})


def log_test_start(logger: logging.Logger, test_name: str, test_file: str) -> None:
    _emit(
        logger,
        logging.INFO,
        f"Test started: {test_name}",
        "TEST_START",
        test_name=test_name,
        test_file=test_file,
    )


def log_test_end(
    logger: logging.Logger, test_name: str, status: str, duration: float
) -> None:
    _emit(
        logger,
        logging.INFO if status != "failed" else logging.ERROR,
        f"Test {status}: {test_name} in {duration:.2f}s",
        "TEST_END",
        test_name=test_name,
        status=status,
        duration=duration,
    )


def log_step_start(logger: logging.Logger, step_name: str) -> None:
    _emit(logger, logging.DEBUG, f"Step started: {step_name}", "STEP_START", step_name=step_name)


def log_step_end(logger: logging.Logger, step_name: str, success: bool) -> None:
    _emit(
        logger,
        logging.DEBUG if success else logging.WARNING,
        f"Step {'completed' if success else 'failed'}: {step_name}",
        "STEP_END",
        step_name=step_name,
        success=success,
    )


@contextmanager
def log_step(logger: logging.Logger, step_name: str) -> Iterator[None]:
    """
    Log the start and end of a named step around a block.

    The end event records failure when the block raises; the exception
    propagates unchanged.
    """
    log_step_start(logger, step_name)
    try:
        yield
    except BaseException:
        log_step_end(logger, step_name, False)
        raise
    log_step_end(logger, step_name, True)


def log_navigation(logger: logging.Logger, url: str, title: Optional[str] = None) -> None:
    _emit(logger, logging.INFO, f"Page navigation: {url}", "PAGE_NAVIGATION", url=url, title=title)


def log_element_interaction(
    logger: logging.Logger, action: str, selector: str, value: Optional[str] = None
) -> None:
    _emit(
        logger,
        logging.DEBUG,
        f"Element {action}: {selector}",
        "ELEMENT_INTERACTION",
        action=action,
        selector=selector,
        value=value,
    )


def log_interaction_attempt(
    logger: logging.Logger,
    action: str,
    selector: str,
    attempt: int,
    max_attempts: int,
    success: bool,
    error: Optional[BaseException] = None,
) -> None:
    """Log one attempt of a retried interaction."""
    status = "succeeded" if success else "failed"
    _emit(
        logger,
        logging.DEBUG if success else logging.WARNING,
        f"{action} attempt {attempt}/{max_attempts} {status} for {selector}",
        "INTERACTION_ATTEMPT",
        action=action,
        selector=selector,
        attempt=attempt,
        max_attempts=max_attempts,
        success=success,
        error=str(error) if error is not None else None,
    )


def log_api_request(
    logger: logging.Logger,
    method: str,
    url: str,
    status: Optional[int] = None,
    duration: Optional[float] = None,
) -> None:
    phase = "sent" if status is None else f"received {status}"
    _emit(
        logger,
        logging.INFO,
        f"API {method} {url} {phase}",
        "API_REQUEST" if status is None else "API_RESPONSE",
        method=method,
        url=url,
        status=status,
        duration=duration,
    )


def log_screenshot(logger: logging.Logger, path: str, reason: str) -> None:
    _emit(logger, logging.INFO, f"Screenshot captured: {path}", "SCREENSHOT", path=path, reason=reason)


def log_assertion(
    logger: logging.Logger,
    description: str,
    success: bool,
    expected: Any = None,
    actual: Any = None,
) -> None:
    _emit(
        logger,
        logging.DEBUG if success else logging.ERROR,
        f"Assertion {'passed' if success else 'failed'}: {description}",
        "ASSERTION",
        description=description,
        success=success,
        expected=expected,
        actual=actual,
    )


def log_performance(
    logger: logging.Logger, operation: str, duration: float, **metadata
) -> None:
    """
    Log performance metrics for operations.

    Args:
        logger: Logger instance
        operation: Name of the operation
        duration: Duration in seconds
        **metadata: Additional metadata to include
    """
    _emit(
        logger,
        logging.INFO,
        f"Performance: {operation} completed in {duration:.2f}s",
        "PERFORMANCE",
        operation=operation,
        duration=duration,
        **metadata,
    )


def log_test_data(logger: logging.Logger, data_type: str, **details: Any) -> None:
    _emit(logger, logging.DEBUG, f"Test data: {data_type}", "TEST_DATA", data_type=data_type, **details)


def log_environment(logger: logging.Logger, environment: Dict[str, Any]) -> None:
    logger.info(
        "Environment info",
        extra={"event": "ENVIRONMENT", "metadata": dict(environment)},
    )


def timed(operation_name: str):
    """
    Decorator to log performance metrics for coroutine functions.

    Args:
        operation_name: Name of the operation being measured

    Returns:
        Decorator function
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(f"{func.__module__}.{func.__name__}")
            start_time = time.monotonic()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = time.monotonic() - start_time
                logger.error(
                    f"{operation_name} failed",
                    extra={
                        "event": "PERFORMANCE",
                        "metadata": {
                            "operation": operation_name,
                            "duration": duration,
                            "success": False,
                            "error": str(e),
                        },
                    },
                )
                raise

            log_performance(logger, operation_name, time.monotonic() - start_time, success=True)
            return result

        return wrapper

    return decorator
