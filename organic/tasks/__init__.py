"""Task execution - descriptors, validation, runners, and the executor."""

from organic.tasks.classifier import ErrorClassifier, classify_error, is_retryable
from organic.tasks.coercion import (
    clear_coercion_cache,
    coerce,
    coercion_cache_stats,
    validate,
)
from organic.tasks.context import TaskContext
from organic.tasks.deadline import Deadline, run_with_deadline
from organic.tasks.executor import TaskExecutor
from organic.tasks.models import (
    AttemptOutcome,
    ExecutionConfig,
    FieldKind,
    ParallelUnit,
    RetryPolicy,
    TaskDescriptor,
    TaskKind,
)
from organic.tasks.neural import NeuralRunner
from organic.tasks.parallel import ParallelCoordinator
from organic.tasks.registry import TaskRegistry
from organic.tasks.response_parser import parse_neural_response
from organic.tasks.symbolic import SymbolicRunner

__all__ = [
    "AttemptOutcome",
    "Deadline",
    "ErrorClassifier",
    "ExecutionConfig",
    "FieldKind",
    "NeuralRunner",
    "ParallelCoordinator",
    "ParallelUnit",
    "RetryPolicy",
    "SymbolicRunner",
    "TaskContext",
    "TaskDescriptor",
    "TaskExecutor",
    "TaskKind",
    "TaskRegistry",
    "classify_error",
    "clear_coercion_cache",
    "coerce",
    "coercion_cache_stats",
    "is_retryable",
    "parse_neural_response",
    "run_with_deadline",
    "validate",
]
