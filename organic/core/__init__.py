"""Core module - configuration, error taxonomy, and logging."""

from organic.core.config import Settings, clear_settings_cache, get_settings
from organic.core.errors import (
    ErrorCategory,
    ResponseParseError,
    SchemaValidationError,
    TaskError,
    TaskExecutionError,
    TaskNetworkError,
    TaskSystemError,
    TaskTimeoutError,
    TaskValidationError,
)
from organic.core.logging import configure_logging

__all__ = [
    "ErrorCategory",
    "ResponseParseError",
    "SchemaValidationError",
    "Settings",
    "TaskError",
    "TaskExecutionError",
    "TaskNetworkError",
    "TaskSystemError",
    "TaskTimeoutError",
    "TaskValidationError",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
]
