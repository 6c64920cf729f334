"""Symbolic runner: invoke a task's deterministic handler."""

import inspect
from collections.abc import Callable
from typing import Any

from loguru import logger

from organic.tasks.context import TaskContext
from organic.tasks.models import TaskDescriptor


def accepts_context(handler: Callable[..., Any]) -> bool:
    """Check whether a handler takes ``(inputs, context)``."""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2


class SymbolicRunner:
    """Run the handler of a symbolic-capable task."""

    def run(
        self,
        task: TaskDescriptor,
        inputs: dict[str, Any],
        context: TaskContext,
    ) -> Any:
        """
        Call the task handler with validated inputs.

        Args:
            task: Symbolic-capable task descriptor.
            inputs: Validated input values.
            context: Execution context of the current attempt.

        Returns:
            Whatever the handler returns (validated by the executor).
        """
        handler = task.handler
        if handler is None:
            raise ValueError(f"Task {task.name} has no handler")

        logger.debug(f"Running handler for task {task.name}")
        if accepts_context(handler):
            return handler(inputs, context)
        return handler(inputs)
