"""Core components for QA Framework."""

from .config import Config
from .exceptions import (
    QAFrameworkError,
    ConfigurationError,
    InteractionError,
    TypeValidationError,
    PageAssertionError,
    PageClosedError,
    FixtureNotFoundError,
    FixtureParseError,
    ApiError,
)
from .logging_config import setup_logging, get_logger
from .retry import RetryPolicy, retry_async

__all__ = [
    "Config",
    "QAFrameworkError",
    "ConfigurationError",
    "InteractionError",
    "TypeValidationError",
    "PageAssertionError",
    "PageClosedError",
    "FixtureNotFoundError",
    "FixtureParseError",
    "ApiError",
    "setup_logging",
    "get_logger",
    "RetryPolicy",
    "retry_async",
]
