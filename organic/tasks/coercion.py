"""Type coercion and schema validation for task inputs and outputs.

Scalar kinds are coerced with best effort:

- ``integer``: ints as-is, integral floats, strings that parse as an integral number
- ``number``: ints and floats as-is, strings that parse as a finite number
- ``boolean``: ``True``/``False`` and the strings true/false/yes/no/1/0 (any case)
- ``string``: any scalar via its textual form, enum members via their value

``array`` and ``map`` are validated strictly and never converted, ``any``
passes everything through. String coercions are memoised in a bounded LRU
cache, failures included.
"""

import math
import numbers
from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from typing import Any, Literal

from loguru import logger

from organic.core.errors import SchemaValidationError
from organic.tasks.models import FieldKind

DEFAULT_CACHE_SIZE = 1000

TRUTHY_STRINGS = frozenset({"true", "yes", "1"})
FALSY_STRINGS = frozenset({"false", "no", "0"})

_MEMOISED_KINDS = (FieldKind.INTEGER, FieldKind.NUMBER, FieldKind.BOOLEAN)

Direction = Literal["input", "output"]


# =============================================================================
# SCALAR COERCION
# =============================================================================


def coerce(value: Any, kind: FieldKind | str) -> Any:
    """
    Coerce a single value to the given kind.

    Args:
        value: Value to coerce.
        kind: Target field kind.

    Returns:
        The coerced value.

    Raises:
        SchemaValidationError: If the value cannot be coerced.

    Example:
        >>> coerce("123", "integer")
        123
        >>> coerce("Yes", FieldKind.BOOLEAN)
        True
    """
    kind = FieldKind(kind)

    if isinstance(value, str) and kind in _MEMOISED_KINDS:
        ok, result = _coerce_text_cached(value, kind)
        if not ok:
            raise SchemaValidationError(result)
        return result

    if kind == FieldKind.INTEGER:
        return _coerce_integer(value)
    if kind == FieldKind.NUMBER:
        return _coerce_number(value)
    if kind == FieldKind.BOOLEAN:
        return _coerce_boolean(value)
    if kind == FieldKind.STRING:
        return _coerce_string(value)
    if kind == FieldKind.ARRAY:
        if isinstance(value, (list, tuple)):
            return value
        raise SchemaValidationError(f"Expected array, got {type(value).__name__}")
    if kind == FieldKind.MAP:
        if isinstance(value, Mapping):
            return value
        raise SchemaValidationError(f"Expected map, got {type(value).__name__}")
    return value


def _coerce_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise SchemaValidationError(f"Cannot coerce {value!r} to integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise SchemaValidationError(f"Cannot coerce {value!r} to integer")


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return value
    raise SchemaValidationError(f"Cannot coerce {value!r} to number")


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise SchemaValidationError(f"Cannot coerce {value!r} to boolean")


def _coerce_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Number):
        return str(value)
    raise SchemaValidationError(f"Cannot coerce {type(value).__name__} to string")


def _coerce_text(value: str, kind: FieldKind) -> tuple[bool, Any]:
    """Coerce a string, returning ``(ok, result)`` or ``(False, message)``."""
    text = value.strip()
    failure = (False, f"Cannot coerce {value!r} to {kind.value}")

    if kind == FieldKind.BOOLEAN:
        lowered = text.lower()
        if lowered in TRUTHY_STRINGS:
            return True, True
        if lowered in FALSY_STRINGS:
            return True, False
        return failure

    # int() and float() accept digit separators
    if "_" in text:
        return failure

    try:
        if kind == FieldKind.INTEGER:
            return True, int(text)
    except ValueError:
        pass

    try:
        number = float(text)
    except ValueError:
        return failure
    if not math.isfinite(number):
        return failure
    if kind == FieldKind.INTEGER:
        if not number.is_integer():
            return failure
        return True, int(number)
    return True, number


_coerce_text_cached = lru_cache(maxsize=DEFAULT_CACHE_SIZE)(_coerce_text)


def configure_coercion_cache(maxsize: int) -> None:
    """Replace the memoisation cache with one of the given size."""
    global _coerce_text_cached
    if maxsize == _coerce_text_cached.cache_parameters()["maxsize"]:
        return
    _coerce_text_cached = lru_cache(maxsize=maxsize)(_coerce_text)


def coercion_cache_stats() -> dict[str, float]:
    """Get cache statistics for monitoring."""
    info = _coerce_text_cached.cache_info()
    lookups = info.hits + info.misses
    return {
        "size": info.currsize,
        "max_size": info.maxsize or 0,
        "hits": info.hits,
        "misses": info.misses,
        "hit_rate": info.hits / lookups if lookups else 0.0,
    }


def clear_coercion_cache() -> None:
    """Clear the cache (for testing or memory management)."""
    _coerce_text_cached.cache_clear()


# =============================================================================
# SCHEMA VALIDATION
# =============================================================================


def validate(
    schema: Mapping[str, FieldKind],
    values: Any,
    direction: Direction = "input",
) -> Any:
    """
    Validate and coerce a value mapping against a schema.

    Every declared field must be present and non-null. Undeclared keys are
    dropped from the result. An empty output schema disables output
    validation entirely.

    Args:
        schema: Ordered mapping of field name to kind.
        values: Mapping to validate.
        direction: Whether the values are task inputs or outputs.

    Returns:
        New mapping with coerced values, in schema order.

    Raises:
        SchemaValidationError: On a missing field or failed coercion.
    """
    if direction == "output" and not schema:
        return values

    if values is None:
        values = {}
    if not isinstance(values, Mapping):
        raise SchemaValidationError(
            f"Expected {direction} values to be a map, got {type(values).__name__}"
        )

    provided = {str(key): value for key, value in values.items()}
    validated: dict[str, Any] = {}

    for key, kind in schema.items():
        value = provided.get(key)
        if value is None:
            available = ", ".join(provided) or "none"
            raise SchemaValidationError(
                f"Missing required {direction} parameter: {key}. Available: {available}"
            )
        try:
            validated[key] = coerce(value, kind)
        except SchemaValidationError as e:
            raise SchemaValidationError(f"{e} for {direction} parameter '{key}'") from e

    extra = [key for key in provided if key not in schema]
    if extra:
        if direction == "input":
            logger.warning(f"Unexpected input parameters ignored: {extra}")
        else:
            logger.debug(f"Undeclared output fields dropped: {extra}")

    return validated
