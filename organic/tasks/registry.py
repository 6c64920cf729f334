"""In-memory registry of task descriptors."""

from collections.abc import Iterable, Iterator

from loguru import logger

from organic.tasks.models import TaskDescriptor


class TaskRegistry:
    """
    Task descriptors keyed by name.

    Descriptors are registered once, before an executor is built from the
    registry, and are read-only afterwards.

    Example:
        >>> registry = TaskRegistry()
        >>> registry.register(TaskDescriptor(name="add", handler=add))
        >>> "add" in registry
        True
    """

    def __init__(self, tasks: Iterable[TaskDescriptor] | None = None) -> None:
        self._tasks: dict[str, TaskDescriptor] = {}
        if tasks is not None:
            self.register_many(tasks)

    def register(self, task: TaskDescriptor, overwrite: bool = False) -> None:
        """
        Register a task descriptor.

        Args:
            task: Descriptor to register.
            overwrite: Replace an existing descriptor with the same name.

        Raises:
            ValueError: If the name is taken and overwrite is False.
        """
        if task.name in self._tasks and not overwrite:
            raise ValueError(f"Task already registered: {task.name}")
        self._tasks[task.name] = task
        logger.debug(f"Registered task {task.name} ({task.kind.value})")

    def register_many(self, tasks: Iterable[TaskDescriptor]) -> None:
        """Register several descriptors."""
        for task in tasks:
            self.register(task)

    def get(self, name: str) -> TaskDescriptor | None:
        """Get a descriptor by name."""
        return self._tasks.get(name)

    def names(self) -> list[str]:
        """Registered task names in registration order."""
        return list(self._tasks)

    def items(self) -> list[tuple[str, TaskDescriptor]]:
        """Registered (name, descriptor) pairs."""
        return list(self._tasks.items())

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[TaskDescriptor]:
        return iter(list(self._tasks.values()))
