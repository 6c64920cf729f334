"""
Parallel coordinator for independent task invocations.

Runs each unit through the full executor path (so per-unit retries and
deadlines still apply) on a bounded thread pool and returns outputs in
submission order. Failure is fail-fast: the first unit that raises fails the
whole batch, queued units are cancelled and running siblings are abandoned
without waiting for them.
"""

from collections.abc import Iterable, Mapping
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import ValidationError

from organic.core.errors import TaskValidationError
from organic.tasks.models import ParallelUnit

if TYPE_CHECKING:
    from organic.tasks.executor import TaskExecutor

DEFAULT_CONCURRENCY = 4


class ParallelCoordinator:
    """
    Execute a batch of task invocations over a fixed-size worker pool.

    Example:
        >>> coordinator = ParallelCoordinator(executor, concurrency=4)
        >>> coordinator.run_many([
        ...     {"task": "fetch_user", "inputs": {"id": 1}},
        ...     {"task": "fetch_orders", "inputs": {"user_id": 1}},
        ... ])
        [{'user': ...}, {'orders': ...}]
    """

    def __init__(self, executor: "TaskExecutor", concurrency: int = DEFAULT_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.executor = executor
        self.concurrency = concurrency

    def run_many(self, units: Iterable[ParallelUnit | Mapping[str, Any]]) -> list[Any]:
        """
        Execute units concurrently.

        Args:
            units: ParallelUnit instances or ``{"task": ..., "inputs": ...}`` maps.

        Returns:
            Outputs in submission order.

        Raises:
            TaskError: The first error raised by any unit.
        """
        batch = [self._to_unit(unit) for unit in units]
        if not batch:
            return []

        workers = min(self.concurrency, len(batch))
        logger.debug(f"Running {len(batch)} tasks with {workers} workers")

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="organic-parallel")
        futures: list[Future] = [
            pool.submit(self.executor.execute, unit.task, unit.inputs) for unit in batch
        ]

        try:
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for unit, future in zip(batch, futures):
                if future not in done:
                    continue
                error = future.exception()
                if error is not None:
                    logger.error(
                        f"Parallel batch failed on task {unit.task}, "
                        f"discarding {len(batch) - 1} sibling results"
                    )
                    raise error
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return [future.result() for future in futures]

    def _to_unit(self, unit: ParallelUnit | Mapping[str, Any]) -> ParallelUnit:
        if isinstance(unit, ParallelUnit):
            return unit
        try:
            return ParallelUnit.model_validate(unit)
        except ValidationError as e:
            name = "<unknown>"
            if isinstance(unit, Mapping):
                name = str(unit.get("task", unit.get("name", name)))
            raise TaskValidationError(name, f"invalid parallel unit: {e}") from e
