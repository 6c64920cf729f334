"""Unit tests for the error classifier."""

import socket

import pytest

from organic.core.errors import (
    ErrorCategory,
    SchemaValidationError,
    TaskExecutionError,
    TaskNetworkError,
    TaskSystemError,
    TaskTimeoutError,
    TaskValidationError,
)
from organic.tasks.classifier import ErrorClassifier, classify_error, is_retryable


@pytest.fixture
def classifier():
    """Create a classifier instance."""
    return ErrorClassifier()


class Interrupted(BaseException):
    """Non-Exception failure escaping a task body."""


class TestClassify:
    """Tests for ErrorClassifier.classify."""

    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (TaskTimeoutError("t", "timed out"), ErrorCategory.TIMEOUT),
            (TaskValidationError("t", "bad input"), ErrorCategory.VALIDATION),
            (SchemaValidationError("Expected array, got str"), ErrorCategory.VALIDATION),
            (ConnectionRefusedError("refused"), ErrorCategory.NETWORK),
            (ConnectionResetError("reset"), ErrorCategory.NETWORK),
            (TimeoutError("connect timed out"), ErrorCategory.NETWORK),
            (socket.gaierror("name resolution"), ErrorCategory.NETWORK),
            (ValueError("boom"), ErrorCategory.EXECUTION),
            (KeyError("missing"), ErrorCategory.EXECUTION),
            (Interrupted(), ErrorCategory.SYSTEM),
        ],
    )
    def test_categories(self, classifier, error, category):
        """Test each failure maps to exactly one category."""
        assert classifier.classify(error) == category

    def test_timeout_wins_over_wrapped_network_cause(self, classifier):
        """Test an outer timeout is never overridden by its cause."""
        error = TaskTimeoutError("t", "timed out", ConnectionRefusedError("refused"))

        assert classifier.classify(error) == ErrorCategory.TIMEOUT

    def test_validation_wins_over_wrapped_cause(self, classifier):
        """Test an outer validation tag is never overridden by its cause."""
        error = TaskValidationError("t", "bad", ConnectionResetError("reset"))

        assert classifier.classify(error) == ErrorCategory.VALIDATION

    def test_wrapped_error_classified_by_cause(self, classifier):
        """Test other wrapped errors are classified by unwrapping."""
        error = TaskExecutionError("t", "failed", ConnectionRefusedError("refused"))

        assert classifier.classify(error) == ErrorCategory.NETWORK

    def test_unwrapped_task_errors_use_their_category(self, classifier):
        """Test typed errors without a cause keep their own category."""
        assert classifier.classify(TaskNetworkError("t", "down")) == ErrorCategory.NETWORK
        assert classifier.classify(TaskSystemError("t", "odd")) == ErrorCategory.SYSTEM

    def test_module_level_helpers(self):
        """Test the shared classifier helpers."""
        assert classify_error(OSError("disk")) == ErrorCategory.EXECUTION
        assert is_retryable(ConnectionAbortedError("aborted")) is True


class TestRetryable:
    """Tests for ErrorClassifier.retryable."""

    def test_network_is_retryable(self, classifier):
        """Test network failures are retried."""
        assert classifier.retryable(ConnectionRefusedError("refused"))
        assert classifier.retryable(TaskNetworkError("t", "down"))

    def test_timeout_and_validation_are_not_retryable(self, classifier):
        """Test timeout and validation failures are never retried."""
        assert not classifier.retryable(TaskTimeoutError("t", "late", ConnectionResetError()))
        assert not classifier.retryable(TaskValidationError("t", "bad"))
        assert not classifier.retryable(SchemaValidationError("bad"))

    def test_execution_is_not_retryable_by_default(self, classifier):
        """Test generic failures are not retried."""
        assert not classifier.retryable(ValueError("boom"))
        assert not classifier.retryable(Interrupted())

    def test_transient_execution_kinds_are_retryable(self, classifier):
        """Test the fixed set of transient conditions."""
        assert classifier.retryable(BlockingIOError("busy"))
        assert classifier.retryable(InterruptedError("signal"))
        assert classifier.retryable(TaskExecutionError("t", "busy", BlockingIOError()))


class TestWrap:
    """Tests for ErrorClassifier.wrap."""

    def test_typed_errors_returned_unchanged(self, classifier):
        """Test wrapping an already typed error."""
        error = TaskTimeoutError("t", "late")

        assert classifier.wrap("t", error) is error

    def test_network_error_wrapped(self, classifier):
        """Test network failures become TaskNetworkError."""
        cause = ConnectionRefusedError("refused")

        wrapped = classifier.wrap("fetch", cause)

        assert isinstance(wrapped, TaskNetworkError)
        assert wrapped.task_name == "fetch"
        assert wrapped.original_error is cause
        assert wrapped.__cause__ is cause
        assert str(wrapped) == "Task 'fetch' execution failed: network error: refused"

    def test_schema_error_wrapped_as_validation(self, classifier):
        """Test coercer errors become TaskValidationError."""
        wrapped = classifier.wrap("add", SchemaValidationError("Expected array, got str"))

        assert isinstance(wrapped, TaskValidationError)
        assert "Expected array" in str(wrapped)

    def test_system_error_wrapped(self, classifier):
        """Test unclassified failures become TaskSystemError."""
        wrapped = classifier.wrap("t", Interrupted())

        assert isinstance(wrapped, TaskSystemError)
        assert wrapped.message == "unexpected Interrupted: Interrupted"

    def test_to_dict(self, classifier):
        """Test error serialization."""
        wrapped = classifier.wrap("t", ValueError("boom"))

        assert wrapped.to_dict() == {
            "task": "t",
            "category": "execution",
            "error_type": "TaskExecutionError",
            "message": "boom",
            "cause": "ValueError",
        }
