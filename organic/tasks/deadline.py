"""
Per-attempt deadline enforcement.

Each attempt with a positive timeout runs on its own daemon thread while the
caller waits at most until the deadline. Python threads cannot be killed, so
when the deadline fires the caller gets a ``TaskTimeoutError`` immediately and
the attempt's work keeps running detached until it returns on its own. Work
that wants to stop early observes the deadline's cancellation event (exposed
to symbolic handlers through ``TaskContext``).

A failure observed after the deadline has elapsed is always reported as a
timeout, with the failure attached as the original error, so a downstream
error racing the deadline can never win over it.
"""

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, wait
from typing import TypeVar

from loguru import logger

from organic.core.errors import TaskTimeoutError

T = TypeVar("T")


class Deadline:
    """
    Deadline and cancellation signal for one execution attempt.

    A timeout of ``None`` or ``0`` means no deadline.

    Example:
        >>> deadline = Deadline(5.0)
        >>> deadline.expired
        False
    """

    def __init__(self, timeout: float | None) -> None:
        self.timeout = timeout if timeout and timeout > 0 else None
        self.started_at = time.monotonic()
        self.expires_at = self.started_at + self.timeout if self.timeout else None
        self._cancelled = threading.Event()

    @property
    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def elapsed(self) -> float:
        """Seconds since the attempt started."""
        return time.monotonic() - self.started_at

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    @property
    def cancelled(self) -> bool:
        """Whether the attempt was abandoned by the caller."""
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Signal cooperative work to stop."""
        self._cancelled.set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning True early if cancelled."""
        return self._cancelled.wait(seconds)


def run_with_deadline(fn: Callable[[], T], deadline: Deadline, task_name: str) -> T:
    """
    Run ``fn`` and bound the caller's wait by the deadline.

    Args:
        fn: Zero-argument callable doing the attempt's work.
        deadline: Deadline for this attempt.
        task_name: Task name for errors and thread naming.

    Returns:
        Whatever ``fn`` returns.

    Raises:
        TaskTimeoutError: If the deadline elapsed before or while ``fn`` failed.
        Exception: Whatever ``fn`` raised before the deadline.
    """
    if deadline.timeout is None:
        return fn()

    future: Future = Future()

    def worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)
        else:
            future.set_result(result)

    thread = threading.Thread(
        target=worker,
        name=f"organic-attempt-{task_name}",
        daemon=True,
    )
    thread.start()

    done, _ = wait([future], timeout=deadline.remaining)
    if not done:
        deadline.cancel()
        logger.warning(
            f"Task {task_name} timed out after {deadline.timeout}s, "
            f"leaving attempt thread {thread.name} detached"
        )
        raise TaskTimeoutError(
            task_name,
            f"timed out after {deadline.timeout}s (execution_time: {deadline.elapsed:.3f}s)",
        )

    error = future.exception()
    if error is None:
        return future.result()

    if deadline.expired:
        deadline.cancel()
        logger.warning(
            f"Task {task_name} failed with {type(error).__name__} after its "
            f"{deadline.timeout}s deadline; reporting timeout"
        )
        raise TaskTimeoutError(
            task_name,
            f"timed out after {deadline.timeout}s (execution_time: {deadline.elapsed:.3f}s)",
            error,
        ) from error

    raise error
