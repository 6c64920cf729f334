"""Error taxonomy for task execution.

Every failure that leaves the engine is one of the five ``TaskError``
subclasses below, each tied to exactly one ``ErrorCategory``. Lower level
errors raised by the coercer and the response parser carry no task context
and are wrapped by the executor before they reach the caller.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Category assigned to a failure by the error classifier."""

    VALIDATION = "validation"
    TIMEOUT = "timeout"
    NETWORK = "network"
    EXECUTION = "execution"
    SYSTEM = "system"


# =============================================================================
# TASK ERRORS
# =============================================================================


class TaskError(Exception):
    """Base exception for failures surfaced by the task engine."""

    category: ErrorCategory = ErrorCategory.EXECUTION

    def __init__(
        self,
        task_name: str,
        message: str,
        original_error: BaseException | None = None,
    ) -> None:
        self.task_name = task_name
        self.message = message
        self.original_error = original_error
        super().__init__(f"Task '{task_name}' execution failed: {message}")
        if original_error is not None:
            self.__cause__ = original_error

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary."""
        return {
            "task": self.task_name,
            "category": self.category.value,
            "error_type": type(self).__name__,
            "message": self.message,
            "cause": type(self.original_error).__name__ if self.original_error else None,
        }


class TaskValidationError(TaskError):
    """Bad or missing input/output, unknown task, or broken definition."""

    category = ErrorCategory.VALIDATION


class TaskTimeoutError(TaskError):
    """The attempt deadline elapsed."""

    category = ErrorCategory.TIMEOUT


class TaskNetworkError(TaskError):
    """Transient connectivity failure."""

    category = ErrorCategory.NETWORK


class TaskExecutionError(TaskError):
    """Generic failure of a task body or of the generative response."""

    category = ErrorCategory.EXECUTION


class TaskSystemError(TaskError):
    """Unexpected failure that fits no other category."""

    category = ErrorCategory.SYSTEM


# =============================================================================
# CONTEXT-FREE ERRORS
# =============================================================================


class SchemaValidationError(ValueError):
    """A value mapping does not satisfy its declared schema."""

    pass


class ResponseParseError(ValueError):
    """A generative response did not contain parseable JSON."""

    pass
