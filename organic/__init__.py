"""
Organic - resilient execution of symbolic, neural, and hybrid tasks.

Run deterministic code and model-backed instructions under one contract:
typed inputs and outputs, deadlines, retries with backoff, and classified errors.
"""

__version__ = "0.1.0"
__author__ = "Organic Team"

from organic.core.errors import TaskError
from organic.tasks.executor import TaskExecutor
from organic.tasks.models import TaskDescriptor
from organic.tasks.registry import TaskRegistry

__all__ = ["TaskDescriptor", "TaskError", "TaskExecutor", "TaskRegistry", "__version__"]
