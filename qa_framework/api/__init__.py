"""HTTP client and response validation for API tests."""

from .client import ApiClient, ApiResponse
from .validator import ApiValidator, matches_schema

__all__ = ["ApiClient", "ApiResponse", "ApiValidator", "matches_schema"]
