from __future__ import annotations

from datetime import UTC, date, datetime

from masterdata.domain.model import is_blank, stored_data, stored_value, values_equal


def test_nested_mappings_compare_structurally() -> None:
    left = {"street": "Main", "geo": {"lat": 1.0, "lng": 2}}
    right = {"geo": {"lng": 2, "lat": 1.0}, "street": "Main"}

    assert values_equal(left, right)
    assert not values_equal(left, {"street": "Main"})


def test_sequences_compare_element_wise() -> None:
    assert values_equal(["a", {"b": 1}], ("a", {"b": 1}))
    assert not values_equal(["a", "b"], ["b", "a"])
    assert not values_equal(["a"], "a")


def test_booleans_never_equal_numbers() -> None:
    assert not values_equal(True, 1)
    assert not values_equal(0, False)
    assert values_equal(True, True)


def test_numbers_compare_numerically() -> None:
    assert values_equal(1, 1.0)
    assert not values_equal(1, "1")


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("")
    assert not is_blank(0)
    assert not is_blank(" ")


def test_stored_value_converts_dates_recursively() -> None:
    value = {
        "founded": date(1999, 5, 1),
        "events": ({"at": datetime(2025, 1, 1, 12, tzinfo=UTC)},),
        "count": 3,
    }

    assert stored_value(value) == {
        "founded": "1999-05-01",
        "events": [{"at": "2025-01-01T12:00:00+00:00"}],
        "count": 3,
    }
    assert stored_value("1999-05-01") == "1999-05-01"
    assert stored_value(None) is None


def test_stored_data_keeps_keys_and_converts_values() -> None:
    assert stored_data({"founded": date(2020, 1, 1), "name": "Acme"}) == {
        "founded": "2020-01-01",
        "name": "Acme",
    }
