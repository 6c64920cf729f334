"""
Task execution events.

The executor reports one event per finished ``execute`` call to an event
sink. Emission is best-effort: the executor swallows any sink failure.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from loguru import logger


@dataclass
class TaskEvent:
    """One finished task execution."""

    task_name: str
    success: bool
    duration_ms: float
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "task_name": self.task_name,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


@runtime_checkable
class EventSink(Protocol):
    """Receiver of task execution events."""

    def emit(
        self,
        task_name: str,
        success: bool,
        duration_ms: float,
        metadata: dict[str, Any],
    ) -> None:
        """Record one execution event."""
        ...


class LoggingEventSink:
    """Event sink writing each event to the log."""

    def emit(
        self,
        task_name: str,
        success: bool,
        duration_ms: float,
        metadata: dict[str, Any],
    ) -> None:
        status = "succeeded" if success else "failed"
        logger.info(f"Task {task_name} {status} in {duration_ms:.1f}ms {metadata}")


class InMemoryEventSink:
    """
    Event sink collecting events in memory.

    Example:
        >>> sink = InMemoryEventSink()
        >>> sink.emit("add", True, 1.5, {"task_type": "symbolic"})
        >>> sink.events[0].success
        True
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[TaskEvent] = []

    def emit(
        self,
        task_name: str,
        success: bool,
        duration_ms: float,
        metadata: dict[str, Any],
    ) -> None:
        with self._lock:
            self._events.append(
                TaskEvent(
                    task_name=task_name,
                    success=success,
                    duration_ms=duration_ms,
                    metadata=dict(metadata),
                )
            )

    @property
    def events(self) -> list[TaskEvent]:
        """Snapshot of recorded events."""
        with self._lock:
            return list(self._events)

    def for_task(self, task_name: str) -> list[TaskEvent]:
        """Events recorded for one task."""
        return [event for event in self.events if event.task_name == task_name]

    def clear(self) -> None:
        """Drop all recorded events."""
        with self._lock:
            self._events.clear()
