"""Monitoring module - usage metrics and execution events."""

from organic.monitoring.events import EventSink, InMemoryEventSink, LoggingEventSink, TaskEvent
from organic.monitoring.metrics import DEFAULT_PRICING, MetricsTracker, ModelPricing

__all__ = [
    "DEFAULT_PRICING",
    "EventSink",
    "InMemoryEventSink",
    "LoggingEventSink",
    "MetricsTracker",
    "ModelPricing",
    "TaskEvent",
]
