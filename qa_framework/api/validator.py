"""Response assertions for API tests."""

import logging
from typing import Any, Iterable, Optional, Union

from ..core.logging_config import log_assertion
from .client import ApiResponse


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_schema(data: Any, schema: Any) -> bool:
    """
    Structural match of ``data`` against an example-shaped ``schema``.

    Types must agree (numbers of any kind are one type); every key of a
    schema object must be present in the data; every item of a data list
    must match the first schema item. Extra data keys are allowed.
    """
    if _kind(schema) != _kind(data):
        return False

    if isinstance(schema, (list, tuple)):
        if not schema:
            return True
        return all(matches_schema(item, schema[0]) for item in data)

    if isinstance(schema, dict):
        return all(key in data and matches_schema(data[key], value) for key, value in schema.items())

    return True


class ApiValidator:
    """Boolean checks on API responses that log each outcome as an assertion."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def validate_status(self, response: ApiResponse, expected: Union[int, Iterable[int]]) -> bool:
        allowed = [expected] if isinstance(expected, int) else list(expected)
        is_valid = response.status in allowed
        log_assertion(
            self.logger,
            f"Response status is {' or '.join(str(s) for s in allowed)}",
            is_valid,
            allowed,
            response.status,
        )
        return is_valid

    def validate_schema(self, data: Any, schema: Any) -> bool:
        is_valid = matches_schema(data, schema)
        log_assertion(self.logger, "Response matches schema", is_valid, _kind(schema), _kind(data))
        return is_valid

    def validate_response_time(self, elapsed_ms: float, max_ms: float) -> bool:
        is_valid = elapsed_ms <= max_ms
        log_assertion(
            self.logger,
            f"Response time is under {max_ms}ms",
            is_valid,
            f"<= {max_ms}ms",
            f"{elapsed_ms:.0f}ms",
        )
        return is_valid
