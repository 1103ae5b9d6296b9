"""Field value primitives for the schemaless master record attribute bag."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import cast

type FieldValue = (
    str
    | int
    | float
    | bool
    | date
    | datetime
    | None
    | Mapping[str, FieldValue]
    | Sequence[FieldValue]
)
type RecordData = dict[str, FieldValue]


def is_blank(value: object) -> bool:
    """Return whether ``value`` counts as absent (``None`` or the empty string)."""

    return value is None or value == ""


def values_equal(left: object, right: object) -> bool:
    """Structural equality for field values.

    Mappings compare by key set and per-key value, sequences element-wise.
    Booleans never equal numbers, ints and floats compare numerically.
    """

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if _is_sequence(left) and _is_sequence(right):
        if len(left) != len(right):  # pyright: ignore[reportArgumentType]
            return False
        return all(
            values_equal(a, b)
            for a, b in zip(left, right, strict=True)  # pyright: ignore[reportArgumentType]
        )
    if _is_sequence(left) or _is_sequence(right):
        return False
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        return False
    return left == right


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def stored_value(value: object) -> object:
    """Return ``value`` in the form it is persisted in.

    Dates and datetimes become ISO 8601 strings, mapping keys become strings
    and sequences become lists, recursively. Other values pass through.
    """

    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        mapping = cast(Mapping[object, object], value)
        return {str(key): stored_value(item) for key, item in mapping.items()}
    if _is_sequence(value):
        return [stored_value(item) for item in cast(Sequence[object], value)]
    return value


def stored_data(data: Mapping[str, object]) -> RecordData:
    return {str(key): cast("FieldValue", stored_value(value)) for key, value in data.items()}
