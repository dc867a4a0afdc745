"""
Exception classes for the QA framework.

Provides a hierarchy of exceptions for the failures a test can observe:
exhausted interaction retries, typed-value mismatches, page assertions,
fixture loading problems and normalized HTTP client errors.
"""

from typing import Optional, Dict, Any


class QAFrameworkError(Exception):
    """Base exception class for all framework errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
        }


class ConfigurationError(QAFrameworkError):
    """Raised when the configuration snapshot is incomplete or invalid."""

    def __init__(self, message: str, violations: Optional[list] = None):
        super().__init__(message, "CONFIGURATION_INVALID")
        self.violations = violations or []
        self.context.update({"violations": self.violations})


class InteractionError(QAFrameworkError):
    """Raised when an interaction primitive exhausts its retry budget."""

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        attempts: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, "INTERACTION_FAILED")
        self.selector = selector
        self.attempts = attempts
        self.cause = cause
        self.context.update(
            {
                "selector": selector,
                "attempts": attempts,
                "cause": repr(cause) if cause is not None else None,
            }
        )


class TypeValidationError(QAFrameworkError):
    """Raised when a filled field does not hold the intended text."""

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ):
        super().__init__(message, "TYPE_VALIDATION_FAILED")
        self.selector = selector
        self.expected = expected
        self.actual = actual
        self.context.update(
            {
                "selector": selector,
                "expected": expected,
                "actual": actual,
            }
        )


class PageAssertionError(QAFrameworkError, AssertionError):
    """Raised when a page-object assertion helper fails."""

    def __init__(
        self,
        message: str,
        description: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ):
        super().__init__(message, "ASSERTION_FAILED")
        self.description = description
        self.expected = expected
        self.actual = actual
        self.context.update(
            {
                "description": description,
                "expected": expected,
                "actual": actual,
            }
        )


class PageClosedError(QAFrameworkError):
    """Raised when a page object is used after its page handle was closed."""

    def __init__(self, message: str, page_name: Optional[str] = None):
        super().__init__(message, "PAGE_CLOSED")
        self.page_name = page_name
        self.context.update({"page_name": page_name})


class FixtureNotFoundError(QAFrameworkError):
    """Raised when a named fixture file does not exist."""

    def __init__(
        self,
        message: str,
        fixture_name: Optional[str] = None,
        file_path: Optional[str] = None,
    ):
        super().__init__(message, "FIXTURE_NOT_FOUND")
        self.fixture_name = fixture_name
        self.file_path = file_path
        self.context.update(
            {
                "fixture_name": fixture_name,
                "file_path": file_path,
            }
        )


class FixtureParseError(QAFrameworkError):
    """Raised when a fixture file exists but cannot be parsed."""

    def __init__(
        self,
        message: str,
        fixture_name: Optional[str] = None,
        file_path: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message, "FIXTURE_PARSE_FAILED")
        self.fixture_name = fixture_name
        self.file_path = file_path
        self.reason = reason
        self.context.update(
            {
                "fixture_name": fixture_name,
                "file_path": file_path,
                "reason": reason,
            }
        )


class ApiError(QAFrameworkError):
    """Normalized HTTP client failure with a transport-independent shape."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        data: Any = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, "API_REQUEST_FAILED")
        self.status = status
        self.data = data
        self.url = url
        self.method = method
        self.context.update(
            {
                "status": status,
                "url": url,
                "method": method,
            }
        )
