"""
QA Framework - Playwright page objects for end-to-end and API testing

Configuration, structured logging, retrying browser interactions, page
objects, test data generation and an HTTP test client, packaged with a
pytest plugin.
"""

__version__ = "0.1.0"
__author__ = "QA Framework Team"

from .core.config import Config
from .core.exceptions import QAFrameworkError
from .core.logging_config import setup_logging
from .core.retry import RetryPolicy

__all__ = [
    "Config",
    "QAFrameworkError",
    "RetryPolicy",
    "setup_logging",
]
