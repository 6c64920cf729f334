"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator
from typing import Any

import pytest

# Set test environment
os.environ.setdefault("ORGANIC_LOG_LEVEL", "DEBUG")
os.environ.setdefault("ORGANIC_DEBUG", "false")


# =============================================================================
# FAKES
# =============================================================================


class FakeModelClient:
    """Generative model client answering from a script of responses.

    Each scripted item is returned in order; exception instances are raised.
    """

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    def send(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("FakeModelClient ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.prompts)


class RecordingSleep:
    """Sleep replacement recording requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings() -> Generator:
    """Clear cached settings around every test."""
    from organic.core.config import clear_settings_cache

    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def settings():
    """Provide settings isolated from .env files."""
    from organic.core.config import Settings

    return Settings(_env_file=None)


@pytest.fixture
def fake_client() -> FakeModelClient:
    """Provide an empty scripted model client."""
    return FakeModelClient()


@pytest.fixture
def make_client():
    """Factory building scripted model clients."""
    return FakeModelClient


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Provide a sleep function that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def add_task():
    """Symbolic task adding two numbers."""
    from organic.tasks.models import TaskDescriptor

    return TaskDescriptor(
        name="add",
        input_schema={"a": "number", "b": "number"},
        output_schema={"sum": "number"},
        handler=lambda inputs: {"sum": inputs["a"] + inputs["b"]},
    )


@pytest.fixture
def sum_amounts_task():
    """Neural task totalling a list of amounts."""
    from organic.tasks.models import TaskDescriptor

    return TaskDescriptor(
        name="sum_amounts",
        input_schema={"amounts": "array"},
        output_schema={"total": "number"},
        instructions="Add up all amounts and return the total.",
    )


@pytest.fixture
def double_task():
    """Hybrid task with both instructions and a handler."""
    from organic.tasks.models import TaskDescriptor

    return TaskDescriptor(
        name="double",
        input_schema={"value": "integer"},
        output_schema={"result": "integer"},
        instructions="Double the value.",
        handler=lambda inputs: {"result": inputs["value"] * 2},
    )


@pytest.fixture
def sample_registry(add_task, sum_amounts_task, double_task):
    """Registry with one symbolic, one neural and one hybrid task."""
    from organic.tasks.registry import TaskRegistry

    return TaskRegistry([add_task, sum_amounts_task, double_task])


@pytest.fixture
def make_executor(settings, recording_sleep):
    """Factory building executors with recorded sleeps and isolated settings."""
    from organic.tasks.executor import TaskExecutor

    def factory(registry, client=None, **kwargs: Any) -> TaskExecutor:
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("sleep", recording_sleep)
        return TaskExecutor(registry, client, **kwargs)

    return factory


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
