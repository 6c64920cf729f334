"""Execution context handed to symbolic task handlers."""

from typing import TYPE_CHECKING, Any

from organic.core.errors import TaskTimeoutError
from organic.tasks.deadline import Deadline

if TYPE_CHECKING:
    from organic.tasks.executor import TaskExecutor


class TaskContext:
    """
    Capabilities available to a running symbolic handler.

    A handler declaring two positional parameters receives ``(inputs, context)``.
    Long-running handlers should call ``check_cancelled()`` between steps so
    they stop once their attempt has timed out.

    Example:
        >>> def total(inputs, ctx):
        ...     parts = ctx.execute_task("fetch_parts", {"order": inputs["order"]})
        ...     ctx.check_cancelled()
        ...     return {"total": sum(parts["amounts"])}
    """

    def __init__(self, executor: "TaskExecutor", deadline: Deadline, task_name: str) -> None:
        self.executor = executor
        self.deadline = deadline
        self.task_name = task_name

    @property
    def cancelled(self) -> bool:
        """Whether the caller stopped waiting for this attempt."""
        return self.deadline.cancelled or self.deadline.expired

    def check_cancelled(self) -> None:
        """Raise TaskTimeoutError if the attempt's deadline has fired."""
        if self.cancelled:
            raise TaskTimeoutError(
                self.task_name,
                f"cancelled after {self.deadline.timeout}s deadline",
            )

    def execute_task(
        self,
        task_name: str,
        inputs: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
    ) -> Any:
        """Execute another registered task through the same engine."""
        self.check_cancelled()
        return self.executor.execute(
            task_name,
            inputs,
            timeout=timeout,
            max_retries=max_retries,
        )

    def execute_llm(self, prompt: str) -> str:
        """Send a prompt to the generative model and return its text."""
        self.check_cancelled()
        return self.executor.execute_llm(prompt)

    def execute_tool(self, tool_name: str, **params: Any) -> Any:
        """Call a named tool, decoding JSON-looking text replies."""
        self.check_cancelled()
        return self.executor.execute_tool(tool_name, params, task_name=self.task_name)

    def sleep(self, seconds: float) -> None:
        """Sleep, raising TaskTimeoutError if the deadline fires meanwhile."""
        self.deadline.wait(seconds)
        self.check_cancelled()
