"""Unit tests for type coercion and schema validation."""

from enum import Enum

import pytest

from organic.core.errors import SchemaValidationError
from organic.tasks.coercion import (
    clear_coercion_cache,
    coerce,
    coercion_cache_stats,
    validate,
)
from organic.tasks.models import FieldKind


class Color(Enum):
    RED = "red"


@pytest.fixture(autouse=True)
def fresh_cache():
    """Start every test with an empty coercion cache."""
    clear_coercion_cache()
    yield
    clear_coercion_cache()


class TestScalarCoercion:
    """Tests for coerce()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(7, 7), ("123", 123), (" 42 ", 42), (3.0, 3), ("5.0", 5)],
    )
    def test_integer_accepts(self, value, expected):
        """Test integer coercion of numbers and numeric strings."""
        result = coerce(value, FieldKind.INTEGER)

        assert result == expected
        assert isinstance(result, int)

    @pytest.mark.parametrize("value", ["abc", "4.5", "1_000", 4.5, True, None, [1]])
    def test_integer_rejects(self, value):
        """Test integer coercion failures."""
        with pytest.raises(SchemaValidationError, match="Cannot coerce .* to integer"):
            coerce(value, "integer")

    def test_number_accepts_numbers_and_strings(self):
        """Test number coercion."""
        assert coerce(3, "number") == 3
        assert coerce(2.5, "number") == 2.5
        assert coerce("10", "number") == 10.0
        assert coerce("-1.25", "number") == -1.25

    @pytest.mark.parametrize("value", ["ten", "nan", "inf", "1_000.5", False, {}])
    def test_number_rejects(self, value):
        """Test number coercion failures, including non-finite values."""
        with pytest.raises(SchemaValidationError, match="to number"):
            coerce(value, "number")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, True),
            (False, False),
            ("true", True),
            ("YES", True),
            ("1", True),
            ("False", False),
            ("no", False),
            ("0", False),
        ],
    )
    def test_boolean_accepts(self, value, expected):
        """Test boolean coercion of literals and strings."""
        assert coerce(value, "boolean") is expected

    @pytest.mark.parametrize("value", ["maybe", "", 1, 0, None])
    def test_boolean_rejects(self, value):
        """Test boolean coercion failures."""
        with pytest.raises(SchemaValidationError, match="to boolean"):
            coerce(value, "boolean")

    def test_string_renders_scalars(self):
        """Test string coercion of scalars and enum members."""
        assert coerce("text", "string") == "text"
        assert coerce(42, "string") == "42"
        assert coerce(2.5, "string") == "2.5"
        assert coerce(True, "string") == "true"
        assert coerce(False, "string") == "false"
        assert coerce(Color.RED, "string") == "red"

    def test_string_rejects_collections(self):
        """Test string coercion of non-scalars."""
        with pytest.raises(SchemaValidationError, match="Cannot coerce list to string"):
            coerce([1, 2], "string")

    def test_array_is_strict(self):
        """Test array values are never converted."""
        assert coerce([1, 2], "array") == [1, 2]
        with pytest.raises(SchemaValidationError, match="Expected array, got str"):
            coerce("not-an-array", "array")

    def test_map_is_strict(self):
        """Test map values are never converted."""
        assert coerce({"a": 1}, "map") == {"a": 1}
        with pytest.raises(SchemaValidationError, match="Expected map, got list"):
            coerce([("a", 1)], "map")

    def test_any_passes_through(self):
        """Test any accepts every value unchanged."""
        marker = object()
        assert coerce(marker, "any") is marker


class TestCoercionCache:
    """Tests for the memoised string coercions."""

    def test_repeated_coercion_hits_cache(self):
        """Test repeated string coercions are served from the cache."""
        coerce("10", "integer")
        coerce("10", "integer")

        stats = coercion_cache_stats()
        assert stats["misses"] == 1
        assert stats["hits"] == 1
        assert stats["hit_rate"] == 0.5

    def test_failures_are_cached(self):
        """Test failed coercions keep failing from the cache."""
        for _ in range(2):
            with pytest.raises(SchemaValidationError):
                coerce("abc", "number")

        assert coercion_cache_stats()["hits"] == 1

    def test_clear_resets_stats(self):
        """Test clearing the cache."""
        coerce("1", "boolean")
        clear_coercion_cache()

        stats = coercion_cache_stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0


class TestValidate:
    """Tests for validate()."""

    def test_coerces_in_schema_order(self):
        """Test values are coerced and returned in schema order."""
        schema = {"a": FieldKind.NUMBER, "b": FieldKind.INTEGER}

        result = validate(schema, {"b": "2", "a": "1.5"})

        assert result == {"a": 1.5, "b": 2}
        assert list(result) == ["a", "b"]

    def test_missing_field_lists_available_keys(self):
        """Test missing required input."""
        with pytest.raises(SchemaValidationError) as exc_info:
            validate({"a": FieldKind.NUMBER, "b": FieldKind.NUMBER}, {"a": 1})

        assert str(exc_info.value) == "Missing required input parameter: b. Available: a"

    def test_missing_output_field(self):
        """Test missing required output."""
        with pytest.raises(SchemaValidationError, match="Missing required output parameter: total"):
            validate({"total": FieldKind.NUMBER}, {}, "output")

    def test_none_counts_as_missing(self):
        """Test a None value is treated as missing."""
        with pytest.raises(SchemaValidationError, match="Available: a"):
            validate({"a": FieldKind.STRING}, {"a": None})

    def test_no_values_reports_none_available(self):
        """Test validating None inputs."""
        with pytest.raises(SchemaValidationError, match="Available: none"):
            validate({"a": FieldKind.STRING}, None)

    def test_coercion_error_names_the_field(self):
        """Test coercion errors mention the failing field."""
        with pytest.raises(SchemaValidationError) as exc_info:
            validate({"numbers": FieldKind.ARRAY}, {"numbers": "not-an-array"})

        assert "Expected array" in str(exc_info.value)
        assert "input parameter 'numbers'" in str(exc_info.value)

    def test_extra_keys_are_dropped(self):
        """Test undeclared keys do not reach the result."""
        result = validate({"a": FieldKind.INTEGER}, {"a": 1, "debug": True})

        assert result == {"a": 1}

    def test_empty_output_schema_skips_validation(self):
        """Test outputs of tasks without declared outputs are returned as-is."""
        assert validate({}, "raw text", "output") == "raw text"

    def test_non_mapping_values_rejected(self):
        """Test values must be a mapping."""
        with pytest.raises(SchemaValidationError, match="Expected output values to be a map, got list"):
            validate({"a": FieldKind.ANY}, [1], "output")

    def test_validation_is_idempotent(self):
        """Test validating already coerced values yields identical values."""
        schema = {
            "count": FieldKind.INTEGER,
            "ratio": FieldKind.NUMBER,
            "flag": FieldKind.BOOLEAN,
            "label": FieldKind.STRING,
            "items": FieldKind.ARRAY,
            "meta": FieldKind.MAP,
            "extra": FieldKind.ANY,
        }
        raw = {
            "count": "3",
            "ratio": "0.5",
            "flag": "yes",
            "label": 12,
            "items": [1, 2],
            "meta": {"k": "v"},
            "extra": "x",
        }

        once = validate(schema, raw)
        twice = validate(schema, once)

        assert twice == once
        assert {k: type(v) for k, v in twice.items()} == {k: type(v) for k, v in once.items()}
