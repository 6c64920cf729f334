"""Deterministic failure classification for the executor's retry policy.

Precedence, highest first:

1. timeout    - the engine's own deadline fired (always wins, even over a
                wrapped network cause)
2. validation - schema, argument, or definition failures
3. network    - transient connectivity failures
4. execution  - any other failure raised by a task body
5. system     - anything that is not an ``Exception``

Wrapped ``TaskError``s are classified by their original cause, except that an
outer timeout or validation tag is never overridden.
"""

import socket

import anthropic

from organic.core.errors import (
    ErrorCategory,
    SchemaValidationError,
    TaskError,
    TaskExecutionError,
    TaskNetworkError,
    TaskSystemError,
    TaskTimeoutError,
    TaskValidationError,
)

NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    socket.gaierror,
    socket.herror,
    anthropic.APIConnectionError,
)

# Execution-category failures that are still worth another attempt
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    anthropic.RateLimitError,
    anthropic.InternalServerError,
    BlockingIOError,
    InterruptedError,
)

_ERROR_TYPES: dict[ErrorCategory, type[TaskError]] = {
    ErrorCategory.VALIDATION: TaskValidationError,
    ErrorCategory.TIMEOUT: TaskTimeoutError,
    ErrorCategory.NETWORK: TaskNetworkError,
    ErrorCategory.EXECUTION: TaskExecutionError,
    ErrorCategory.SYSTEM: TaskSystemError,
}


class ErrorClassifier:
    """
    Map failures to an ErrorCategory and decide retry eligibility.

    Example:
        >>> classifier = ErrorClassifier()
        >>> classifier.classify(ConnectionRefusedError("refused"))
        <ErrorCategory.NETWORK: 'network'>
        >>> classifier.retryable(ConnectionRefusedError("refused"))
        True
    """

    def classify(self, error: BaseException) -> ErrorCategory:
        """Assign exactly one category to an error."""
        if isinstance(error, TaskTimeoutError):
            return ErrorCategory.TIMEOUT
        if isinstance(error, (TaskValidationError, SchemaValidationError)):
            return ErrorCategory.VALIDATION

        if isinstance(error, TaskError):
            if error.original_error is not None and error.original_error is not error:
                return self.classify(error.original_error)
            return error.category

        if isinstance(error, NETWORK_ERRORS):
            return ErrorCategory.NETWORK
        if isinstance(error, Exception):
            return ErrorCategory.EXECUTION
        return ErrorCategory.SYSTEM

    def retryable(self, error: BaseException) -> bool:
        """Check if an error should be retried."""
        category = self.classify(error)
        if category in (ErrorCategory.TIMEOUT, ErrorCategory.VALIDATION):
            return False
        if category == ErrorCategory.NETWORK:
            return True
        return isinstance(self._root_cause(error), TRANSIENT_ERRORS)

    def wrap(self, task_name: str, error: BaseException) -> TaskError:
        """
        Wrap an error into the typed error matching its category.

        Errors that are already typed are returned unchanged.
        """
        if isinstance(error, TaskError):
            return error

        category = self.classify(error)
        detail = str(error) or type(error).__name__
        if category == ErrorCategory.NETWORK:
            message = f"network error: {detail}"
        elif category == ErrorCategory.SYSTEM:
            message = f"unexpected {type(error).__name__}: {detail}"
        else:
            message = detail
        return _ERROR_TYPES[category](task_name, message, error)

    def _root_cause(self, error: BaseException) -> BaseException:
        seen: set[int] = set()
        while isinstance(error, TaskError) and error.original_error is not None:
            if id(error) in seen:
                break
            seen.add(id(error))
            error = error.original_error
        return error


_classifier = ErrorClassifier()


def classify_error(error: BaseException) -> ErrorCategory:
    """Classify an error with the shared classifier."""
    return _classifier.classify(error)


def is_retryable(error: BaseException) -> bool:
    """Check retry eligibility with the shared classifier."""
    return _classifier.retryable(error)
