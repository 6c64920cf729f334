"""
Task executor.

This module provides the orchestrator that runs registered tasks: it looks up
a task, resolves its deadline, runs the retry loop around single attempts
(dispatching to the symbolic or neural runner), and returns validated outputs
or raises a classified ``TaskError``.

Each attempt returns an ``AttemptOutcome`` holding either a value or a typed
error, and the retry loop is driven by inspecting that outcome.
"""

import json
import time
import traceback
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from loguru import logger

from organic.clients.base import ModelClient
from organic.core.config import Settings, get_settings
from organic.core.errors import TaskError, TaskValidationError
from organic.core.logging import summarize_values
from organic.monitoring.events import EventSink
from organic.monitoring.metrics import MetricsTracker
from organic.prompts.builder import PromptBuilder
from organic.tasks.classifier import ErrorClassifier
from organic.tasks.coercion import configure_coercion_cache, validate
from organic.tasks.context import TaskContext
from organic.tasks.deadline import Deadline, run_with_deadline
from organic.tasks.models import (
    AttemptOutcome,
    ExecutionConfig,
    ParallelUnit,
    RetryPolicy,
    TaskCacheEntry,
    TaskDescriptor,
    TaskKind,
)
from organic.tasks.neural import NeuralRunner
from organic.tasks.parallel import ParallelCoordinator
from organic.tasks.registry import TaskRegistry
from organic.tasks.symbolic import SymbolicRunner

# =============================================================================
# TASK EXECUTOR
# =============================================================================


class TaskExecutor:
    """
    Execute registered tasks with deadlines, retries and error classification.

    Symbolic-capable tasks (including hybrid ones) always run their handler.
    Only purely neural tasks reach the generative model client.

    Example:
        >>> registry = TaskRegistry([add_task])
        >>> executor = TaskExecutor(registry)
        >>> executor.execute("add", {"a": "10", "b": "32"})
        {'sum': 42.0}
    """

    def __init__(
        self,
        registry: TaskRegistry | Iterable[TaskDescriptor],
        client: ModelClient | None = None,
        *,
        settings: Settings | None = None,
        config: Mapping[str, Any] | None = None,
        event_sink: EventSink | None = None,
        metrics: MetricsTracker | None = None,
        classifier: ErrorClassifier | None = None,
        prompt_builder: PromptBuilder | None = None,
        tools: Mapping[str, Callable[..., Any]] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the executor.

        Args:
            registry: Registered task descriptors.
            client: Generative model client used by neural tasks.
            settings: Engine settings (process settings by default).
            config: Overrides of individual execution settings, e.g.
                ``{"timeout_symbolic": 5, "max_retries": 1}``.
            event_sink: Receiver of best-effort execution events.
            metrics: Usage accumulator (a new one per executor by default).
            classifier: Error classifier.
            prompt_builder: Prompt builder for neural tasks.
            tools: Tool provider, a mapping of tool name to callable, used by
                symbolic handlers through ``TaskContext.execute_tool``.
            sleep: Function used for backoff delays.
        """
        if not isinstance(registry, TaskRegistry):
            registry = TaskRegistry(registry)

        self.settings = settings or get_settings()
        self.config = ExecutionConfig.from_settings(self.settings, config)
        self.registry = registry
        self.client = client
        self.event_sink = event_sink
        self.metrics = metrics or MetricsTracker()
        self.classifier = classifier or ErrorClassifier()
        self.tools: dict[str, Callable[..., Any]] = dict(tools or {})
        self._sleep = sleep

        self._symbolic = SymbolicRunner()
        self._neural = NeuralRunner(
            client,
            metrics=self.metrics,
            prompt_builder=prompt_builder,
            model=self.settings.model,
        )

        configure_coercion_cache(self.settings.coercion_cache_size)
        self._task_cache = self._build_task_cache()

        logger.debug(
            f"TaskExecutor initialized with {len(self._task_cache)} tasks "
            f"(timeouts symbolic={self.config.timeout_symbolic}s "
            f"neural={self.config.timeout_neural}s hybrid={self.config.timeout_hybrid}s, "
            f"max_retries={self.config.max_retries})"
        )

    def _build_task_cache(self) -> dict[str, TaskCacheEntry]:
        """Resolve kind and default deadline of every task once."""
        cache: dict[str, TaskCacheEntry] = {}
        for name, task in self.registry.items():
            kind = task.kind
            if kind == TaskKind.UNDEFINED:
                logger.warning(f"Task {name} has neither instructions nor handler")
            cache[name] = TaskCacheEntry(
                descriptor=task,
                kind=kind,
                timeout=self.config.timeout_for(kind),
            )
        return cache

    # -------------------------------------------------------------------------
    # LOOKUP
    # -------------------------------------------------------------------------

    @property
    def task_names(self) -> list[str]:
        """Names of the executable tasks."""
        return list(self._task_cache)

    def task_kind(self, task_name: str) -> TaskKind | None:
        """Implementation kind of a task, None if unknown."""
        entry = self._task_cache.get(task_name)
        return entry.kind if entry else None

    def timeout_for(self, task_name: str) -> float | None:
        """Default deadline of a task, None if unknown."""
        entry = self._task_cache.get(task_name)
        return entry.timeout if entry else None

    # -------------------------------------------------------------------------
    # EXECUTION
    # -------------------------------------------------------------------------

    def execute(
        self,
        task_name: str,
        inputs: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
    ) -> Any:
        """
        Execute a task with deadline enforcement and retries.

        Args:
            task_name: Registered task name.
            inputs: Input values, coerced against the task's input schema.
            timeout: Per-attempt deadline override in seconds (0 disables).
            max_retries: Retry budget override.

        Returns:
            Output values validated against the task's output schema.

        Raises:
            TaskValidationError: Unknown task, invalid inputs/outputs, or a
                task without implementation. Never retried.
            TaskTimeoutError: The attempt deadline elapsed. Never retried.
            TaskNetworkError: Connectivity failure after the retry budget.
            TaskExecutionError: Task body or response failure.
            TaskSystemError: Unexpected failure.
        """
        started = time.monotonic()

        entry = self._task_cache.get(task_name)
        if entry is None:
            available = ", ".join(self._task_cache) or "none"
            error = TaskValidationError(
                task_name, f"Task not found: {task_name}. Available tasks: {available}"
            )
            self._log_task_error(error, attempt=0, elapsed=time.monotonic() - started)
            self._emit_event(task_name, False, started, None, error)
            raise error

        try:
            policy = self._resolve_policy(task_name, max_retries)
            effective_timeout = self._resolve_timeout(task_name, entry, timeout)
        except TaskValidationError as error:
            self._log_task_error(error, attempt=0, elapsed=time.monotonic() - started)
            self._emit_event(task_name, False, started, entry.kind, error)
            raise

        self._log_execution(
            f"Executing task {task_name} ({entry.kind.value}, timeout={effective_timeout}s, "
            f"max_retries={policy.max_retries}) inputs={summarize_values(inputs)}"
        )

        attempt = 0
        while True:
            outcome = self._run_single_attempt(entry, inputs, effective_timeout, attempt)

            if outcome.succeeded:
                self._log_execution(
                    f"Task {task_name} completed on attempt {attempt + 1} "
                    f"in {outcome.duration_seconds:.3f}s"
                )
                self._emit_event(task_name, True, started, entry.kind, attempts=attempt + 1)
                return outcome.value

            error = outcome.error
            retryable = self.classifier.retryable(error)
            if not retryable or attempt >= policy.max_retries:
                self._log_task_error(
                    error,
                    attempt=attempt,
                    elapsed=time.monotonic() - started,
                    retryable=retryable,
                )
                self._emit_event(task_name, False, started, entry.kind, error, attempt + 1)
                raise error

            delay = policy.delay_for(attempt)
            self._log_task_error(
                error,
                attempt=attempt,
                elapsed=time.monotonic() - started,
                retryable=True,
                retry_delay=delay,
            )
            self._sleep(delay)
            attempt += 1

    def _resolve_policy(self, task_name: str, max_retries: int | None) -> RetryPolicy:
        policy = self.config.retry_policy
        if max_retries is None:
            return policy
        if max_retries < 0:
            raise TaskValidationError(task_name, f"max_retries must be >= 0, got {max_retries}")
        return RetryPolicy(
            max_retries=max_retries,
            base_delay=policy.base_delay,
            max_delay=policy.max_delay,
        )

    def _resolve_timeout(
        self,
        task_name: str,
        entry: TaskCacheEntry,
        timeout: float | None,
    ) -> float:
        if timeout is None:
            return entry.timeout
        if timeout < 0:
            raise TaskValidationError(task_name, f"timeout must be >= 0, got {timeout}")
        return timeout

    def _run_single_attempt(
        self,
        entry: TaskCacheEntry,
        inputs: Mapping[str, Any] | None,
        timeout: float,
        attempt: int,
    ) -> AttemptOutcome:
        """Run one attempt, returning its value or its classified error."""
        task = entry.descriptor
        outcome = AttemptOutcome(attempt=attempt)
        deadline = Deadline(timeout)

        try:
            validated = validate(task.input_schema, inputs, "input")
            result = run_with_deadline(
                lambda: self._dispatch(entry, validated, deadline),
                deadline,
                task.name,
            )
            outcome.value = validate(task.output_schema, result, "output")
        except (KeyboardInterrupt, SystemExit):
            raise
        except BaseException as e:  # noqa: BLE001
            outcome.error = self.classifier.wrap(task.name, e)

        outcome.duration_seconds = deadline.elapsed
        return outcome

    def _dispatch(
        self,
        entry: TaskCacheEntry,
        inputs: dict[str, Any],
        deadline: Deadline,
    ) -> Any:
        """Route an attempt to the runner for the task's kind."""
        task = entry.descriptor
        kind = entry.kind

        if kind in (TaskKind.SYMBOLIC, TaskKind.HYBRID):
            context = TaskContext(self, deadline, task.name)
            return self._symbolic.run(task, inputs, context)
        if kind == TaskKind.NEURAL:
            return self._neural.run(task, inputs)
        raise TaskValidationError(task.name, "has neither neural nor symbolic implementation")

    def execute_llm(self, prompt: str) -> str:
        """
        Send a prompt directly to the generative model.

        Args:
            prompt: Prompt text.

        Returns:
            Final text of the response.
        """
        return self._neural.send(prompt)

    def execute_tool(
        self,
        tool_name: str,
        params: Mapping[str, Any] | None = None,
        *,
        task_name: str | None = None,
    ) -> Any:
        """
        Call a tool from the tool provider.

        Text replies starting with ``{`` or ``[`` are decoded as JSON; replies
        that do not parse are returned unchanged.

        Args:
            tool_name: Name of the tool.
            params: Keyword arguments for the tool.
            task_name: Calling task, used in error messages.

        Returns:
            The tool's reply.

        Raises:
            TaskValidationError: If no tool has that name.
        """
        params = dict(params or {})
        tool = self.tools.get(tool_name)
        if tool is None:
            available = ", ".join(self.tools) or "none"
            raise TaskValidationError(
                task_name or tool_name,
                f"Tool not found: {tool_name}. Available tools: {available}",
            )

        logger.info(f"Tool call {tool_name} params={summarize_values(params)}")
        result = _tool_text(tool(**params))
        if not isinstance(result, str):
            return result

        logger.debug(f"Tool {tool_name} returned {len(result)} chars: {result[:200]}")
        stripped = result.strip()
        if stripped.startswith(("{", "[")):
            try:
                return json.loads(stripped)
            except json.JSONDecodeError:
                return result
        return result

    def run_many(
        self,
        units: Iterable[ParallelUnit | Mapping[str, Any]],
        concurrency: int | None = None,
    ) -> list[Any]:
        """
        Execute independent tasks concurrently.

        Args:
            units: Task invocations as ``{"task": name, "inputs": {...}}``.
            concurrency: Worker pool size (``parallel_threads`` by default).

        Returns:
            Outputs in submission order.
        """
        if concurrency is None:
            concurrency = self.settings.parallel_threads
        coordinator = ParallelCoordinator(self, concurrency)
        return coordinator.run_many(units)

    # -------------------------------------------------------------------------
    # LOGGING AND EVENTS
    # -------------------------------------------------------------------------

    def _log_execution(self, message: str) -> None:
        level = "INFO" if self.config.log_executions else "DEBUG"
        logger.log(level, message)

    def _cause(self, error: TaskError) -> BaseException:
        return error.original_error or error

    def _log_task_error(
        self,
        error: TaskError,
        attempt: int,
        elapsed: float,
        retryable: bool = False,
        retry_delay: float | None = None,
    ) -> None:
        """
        Log a failed attempt with its category and a truncated trace.

        Attempts that will be retried log at WARNING with the backoff delay,
        terminal failures at ERROR.
        """
        category = self.classifier.classify(error)
        cause = self._cause(error)
        frames = traceback.format_tb(cause.__traceback__, limit=5) if cause.__traceback__ else []
        trace = "".join(frames).rstrip()

        level = "ERROR"
        suffix = ""
        if retry_delay is not None:
            level = "WARNING"
            suffix = f", retrying in {retry_delay:.2f}s"

        logger.log(
            level,
            f"Task {error.task_name} failed [{category.value}] on attempt {attempt + 1} "
            f"after {elapsed:.3f}s (retryable={retryable}): "
            f"{type(cause).__name__}: {error.message}{suffix}"
            + (f"\n{trace}" if trace else ""),
        )

    def _emit_event(
        self,
        task_name: str,
        success: bool,
        started: float,
        kind: TaskKind | None,
        error: TaskError | None = None,
        attempts: int = 0,
    ) -> None:
        """Report the execution to the event sink, never failing the call."""
        if self.event_sink is None:
            return

        duration_ms = (time.monotonic() - started) * 1000
        metadata: dict[str, Any] = {
            "task_type": kind.value if kind else "unknown",
            "attempts": attempts,
        }
        if error is not None:
            metadata["error_type"] = type(error).__name__
            metadata["error_category"] = self.classifier.classify(error).value

        try:
            self.event_sink.emit(task_name, success, duration_ms, metadata)
        except Exception as e:
            logger.warning(f"Failed to emit execution event for task {task_name}: {e}")


def _tool_text(result: Any) -> Any:
    """Flatten content blocks (objects with a ``text`` attribute) into text."""
    if isinstance(result, str):
        return result
    if isinstance(getattr(result, "text", None), str):
        return result.text
    if isinstance(result, list) and result and all(
        isinstance(getattr(item, "text", None), str) for item in result
    ):
        return "".join(item.text for item in result)
    return result
