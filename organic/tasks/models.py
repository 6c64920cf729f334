"""Pydantic models for task execution.

This module defines the data structures shared by the execution engine:
schema field kinds, task descriptors and their implementation kind, retry
and timeout configuration, parallel work units, and per-attempt outcomes.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from organic.core.config import Settings
from organic.core.errors import TaskError

# =============================================================================
# ENUMS
# =============================================================================


class FieldKind(str, Enum):
    """Primitive kind of a declared input or output field."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    MAP = "map"
    ANY = "any"


class TaskKind(str, Enum):
    """Implementation kind of a task, derived from its capabilities."""

    SYMBOLIC = "symbolic"
    NEURAL = "neural"
    HYBRID = "hybrid"
    UNDEFINED = "undefined"


# Names accepted in schema declarations besides the FieldKind values
_KIND_ALIASES = {
    "hash": FieldKind.MAP,
    "object": FieldKind.MAP,
    "dict": FieldKind.MAP,
    "list": FieldKind.ARRAY,
}

_JSON_SCHEMA_TYPES = {
    FieldKind.STRING: "string",
    FieldKind.INTEGER: "integer",
    FieldKind.NUMBER: "number",
    FieldKind.BOOLEAN: "boolean",
    FieldKind.ARRAY: "array",
    FieldKind.MAP: "object",
    FieldKind.ANY: "any",
}


# =============================================================================
# TASK DESCRIPTOR
# =============================================================================


class TaskDescriptor(BaseModel):
    """
    Immutable definition of a task.

    A task is neural-capable when it carries instructions, symbolic-capable
    when it carries a handler, and hybrid when it has both.

    Example:
        >>> add = TaskDescriptor(
        ...     name="add",
        ...     input_schema={"a": "number", "b": "number"},
        ...     output_schema={"sum": "number"},
        ...     handler=lambda inputs: {"sum": inputs["a"] + inputs["b"]},
        ... )
        >>> add.kind
        <TaskKind.SYMBOLIC: 'symbolic'>
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1, description="Unique task name")
    input_schema: dict[str, FieldKind] = Field(
        default_factory=dict, description="Ordered input field kinds"
    )
    output_schema: dict[str, FieldKind] = Field(
        default_factory=dict, description="Ordered output field kinds"
    )
    instructions: str | None = Field(
        default=None, description="Natural language instructions (neural implementation)"
    )
    handler: Callable[..., Any] | None = Field(
        default=None, description="Deterministic callable (symbolic implementation)"
    )

    @field_validator("input_schema", "output_schema", mode="before")
    @classmethod
    def normalize_schema(cls, value: Any) -> Any:
        """Resolve kind aliases and reject unknown kinds with a readable message."""
        if not isinstance(value, Mapping):
            raise ValueError(f"schema must be a mapping, got {type(value).__name__}")

        normalized: dict[str, FieldKind] = {}
        for key, kind in value.items():
            if isinstance(kind, FieldKind):
                normalized[str(key)] = kind
                continue
            name = str(kind).strip().lower()
            if name in _KIND_ALIASES:
                normalized[str(key)] = _KIND_ALIASES[name]
                continue
            try:
                normalized[str(key)] = FieldKind(name)
            except ValueError:
                allowed = ", ".join(k.value for k in FieldKind)
                raise ValueError(
                    f"schema type for '{key}' must be one of {allowed}, got '{kind}'"
                ) from None
        return normalized

    @property
    def neural(self) -> bool:
        """Whether the task can be executed from instructions."""
        return self.instructions is not None

    @property
    def symbolic(self) -> bool:
        """Whether the task can be executed by calling its handler."""
        return self.handler is not None

    @property
    def kind(self) -> TaskKind:
        """Implementation kind derived from the task's capabilities."""
        if self.neural and self.symbolic:
            return TaskKind.HYBRID
        if self.neural:
            return TaskKind.NEURAL
        if self.symbolic:
            return TaskKind.SYMBOLIC
        return TaskKind.UNDEFINED

    def to_schema(self) -> dict[str, Any]:
        """Export the task contract as a JSON-Schema-like document."""
        return {
            "name": self.name,
            "type": self.kind.value,
            "instructions": self.instructions,
            "inputs": _schema_to_json(self.input_schema),
            "outputs": _schema_to_json(self.output_schema),
        }


def _schema_to_json(schema: dict[str, FieldKind]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {key: {"type": _JSON_SCHEMA_TYPES[kind]} for key, kind in schema.items()},
        "required": list(schema),
    }


# =============================================================================
# EXECUTION CONFIGURATION
# =============================================================================


class RetryPolicy(BaseModel):
    """Bounded exponential backoff between attempts."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    base_delay: float = Field(default=1.0, ge=0, description="Delay before the first retry")
    max_delay: float = Field(default=10.0, ge=0, description="Cap for a single delay")

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given 0-based attempt."""
        return min(self.base_delay * (2**attempt), self.max_delay)


class ExecutionConfig(BaseModel):
    """Effective engine configuration, built once per executor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_symbolic: float = Field(default=30.0, ge=0)
    timeout_neural: float = Field(default=360.0, ge=0)
    timeout_hybrid: float = Field(default=360.0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay_base: float = Field(default=1.0, ge=0)
    retry_delay_max: float = Field(default=10.0, ge=0)
    log_executions: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        overrides: Mapping[str, Any] | None = None,
    ) -> "ExecutionConfig":
        """Build from settings, applying per-executor overrides on top."""
        values: dict[str, Any] = {name: getattr(settings, name) for name in cls.model_fields}
        values.update(overrides or {})
        return cls(**values)

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy defaults for this configuration."""
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.retry_delay_base,
            max_delay=self.retry_delay_max,
        )

    def timeout_for(self, kind: TaskKind) -> float:
        """Default deadline for a task kind.

        Hybrid tasks get the neural-class deadline since they may still reach
        the generative backend. Undefined tasks fall back to the symbolic one.
        """
        if kind == TaskKind.HYBRID:
            return self.timeout_hybrid
        if kind == TaskKind.NEURAL:
            return self.timeout_neural
        return self.timeout_symbolic


# =============================================================================
# EXECUTION RECORDS
# =============================================================================


class ParallelUnit(BaseModel):
    """One task invocation inside a run_many batch."""

    model_config = ConfigDict(frozen=True)

    task: str = Field(validation_alias=AliasChoices("task", "name"))
    inputs: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class TaskCacheEntry:
    """Pre-resolved lookup data for one registered task."""

    descriptor: TaskDescriptor
    kind: TaskKind
    timeout: float


@dataclass
class AttemptOutcome:
    """Result of one execution attempt: either a value or a classified error."""

    attempt: int
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0
    value: Any = None
    error: TaskError | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the attempt produced a value."""
        return self.error is None
