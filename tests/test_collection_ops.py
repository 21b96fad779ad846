from __future__ import annotations

import itertools

import pytest

from pyzustate._ops.collection import (
    add_items,
    aggregate_items,
    bucket_key,
    get_items,
    remove_items,
    set_items,
)
from pyzustate.exceptions import (
    CountMismatchError,
    InvalidItemError,
    InvalidSelectorError,
    ItemNotFoundError,
    StrictSetMismatchError,
)


def _clock() -> int:
    return 1_700_000_000_000


def _ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def _records(n: int, **fields) -> list[dict]:
    return [{"id": f"r{i}", "updated": 1, "n": i, **fields} for i in range(n)]


# ----------------------------------------------------------------------
# get
# ----------------------------------------------------------------------


def test_get_by_id_returns_exact_record() -> None:
    records = _records(3)
    assert get_items(records, "r1") is records[1]


def test_get_by_id_missing_returns_none_or_raises_when_required() -> None:
    records = _records(3)
    assert get_items(records, "nope") is None
    with pytest.raises(ItemNotFoundError) as excinfo:
        get_items(records, "nope", required=True)
    assert excinfo.value.item_id == "nope"


def test_get_by_id_with_count_above_one_is_rejected() -> None:
    with pytest.raises(InvalidSelectorError):
        get_items(_records(3), "r1", count=2)


def test_get_by_id_with_count_one_is_allowed() -> None:
    records = _records(3)
    assert get_items(records, "r2", count=1) is records[2]


def test_get_with_count_returns_earliest_matches() -> None:
    records = _records(2, kind="x") + _records(5, kind="y")
    for index, record in enumerate(records):
        record["id"] = f"r{index}"

    result = get_items(records, {"kind": "y"}, count=2)

    assert [record["id"] for record in result] == ["r2", "r3"]


def test_get_count_stops_scan_once_cap_is_reached() -> None:
    seen: list[str] = []

    def predicate(record: dict) -> bool:
        seen.append(record["id"])
        return True

    get_items(_records(5), predicate, count=2)

    assert seen == ["r0", "r1"]


def test_get_required_count_mismatch() -> None:
    with pytest.raises(CountMismatchError) as excinfo:
        get_items(_records(3), {"n": [0, 1]}, count=3, required=True)
    assert excinfo.value.expected == 3
    assert excinfo.value.found == 2


def test_get_non_id_selector_returns_list_even_when_empty() -> None:
    assert get_items(_records(3), None) == []
    assert get_items(_records(3), ["zz"], required=True) == []


def test_get_negative_count_rejected() -> None:
    with pytest.raises(InvalidSelectorError):
        get_items(_records(1), None, count=-1)


# ----------------------------------------------------------------------
# add
# ----------------------------------------------------------------------


def test_add_grows_by_number_of_items() -> None:
    records = _records(4)
    result = add_items(records, [{"t": 1}, {"t": 2}], clock=_clock, id_factory=_ids())
    assert len(result) == len(records) + 2


def test_add_stamps_missing_id_and_updated() -> None:
    result = add_items([], [{"title": "a"}], clock=_clock, id_factory=_ids())
    assert result == [{"title": "a", "id": "id-1", "updated": 1_700_000_000_000}]


def test_add_keeps_supplied_id_and_updated() -> None:
    result = add_items([], [{"id": "mine", "updated": 5}], clock=_clock, id_factory=_ids())
    assert result[0]["id"] == "mine"
    assert result[0]["updated"] == 5


def test_add_position_start_and_end_preserve_input_order() -> None:
    records = _records(2)
    new = [{"id": "x"}, {"id": "y"}]

    start = add_items(records, new, "start", clock=_clock, id_factory=_ids())
    end = add_items(records, new, clock=_clock, id_factory=_ids())

    assert [r["id"] for r in start] == ["x", "y", "r0", "r1"]
    assert [r["id"] for r in end] == ["r0", "r1", "x", "y"]


def test_add_does_not_deduplicate() -> None:
    result = add_items(_records(1), [{"id": "r0"}], clock=_clock, id_factory=_ids())
    assert [r["id"] for r in result] == ["r0", "r0"]


def test_add_rejects_nested_values_and_bad_position() -> None:
    with pytest.raises(InvalidItemError):
        add_items([], [{"meta": {"nested": True}}], clock=_clock, id_factory=_ids())
    with pytest.raises(ValueError):
        add_items([], [{}], "middle", clock=_clock, id_factory=_ids())  # type: ignore[arg-type]


# ----------------------------------------------------------------------
# set
# ----------------------------------------------------------------------


def test_set_merges_patch_and_refreshes_updated() -> None:
    records = _records(2)
    result = set_items(records, [{"id": "r1", "n": 10, "extra": "x"}], clock=_clock)

    assert result[0] is records[0]
    assert result[1] == {"id": "r1", "updated": 1_700_000_000_000, "n": 10, "extra": "x"}
    assert records[1]["n"] == 1


def test_set_ignores_unknown_ids_when_not_strict() -> None:
    records = _records(2)
    result = set_items(records, [{"id": "ghost", "n": 1}], clock=_clock)
    assert result == records


def test_set_strict_names_first_unmatched_id() -> None:
    with pytest.raises(StrictSetMismatchError) as excinfo:
        set_items(_records(2), [{"id": "r0"}, {"id": "g1"}, {"id": "g2"}], strict=True, clock=_clock)
    assert excinfo.value.item_id == "g1"


def test_set_first_patch_wins_for_duplicate_ids() -> None:
    result = set_items(_records(1), [{"id": "r0", "n": 7}, {"id": "r0", "n": 8}], clock=_clock)
    assert result[0]["n"] == 7


def test_set_requires_patch_id() -> None:
    with pytest.raises(InvalidItemError):
        set_items(_records(1), [{"n": 2}], clock=_clock)


def test_set_patch_cannot_pin_updated() -> None:
    result = set_items(_records(1), [{"id": "r0", "updated": 3}], clock=_clock)
    assert result[0]["updated"] == 1_700_000_000_000


# ----------------------------------------------------------------------
# remove
# ----------------------------------------------------------------------


def test_remove_is_idempotent() -> None:
    once = remove_items(_records(3), {"r1"})
    twice = remove_items(once, {"r1"})
    assert [r["id"] for r in once] == ["r0", "r2"]
    assert twice == once


# ----------------------------------------------------------------------
# aggregate
# ----------------------------------------------------------------------


def test_aggregate_empty_collection() -> None:
    assert aggregate_items([], "anything") == {}


def test_aggregate_booleans_render_like_json() -> None:
    records = [{"id": str(i), "updated": 1, "done": v} for i, v in enumerate([True, True, False])]
    assert aggregate_items(records, "done") == {"true": 2, "false": 1}


def test_aggregate_keeps_first_occurrence_order() -> None:
    records = [{"id": str(i), "updated": 1, "c": c} for i, c in enumerate(["b", "a", "b", "c"])]
    assert list(aggregate_items(records, "c")) == ["b", "a", "c"]


def test_aggregate_with_callable() -> None:
    records = _records(5)
    assert aggregate_items(records, lambda r: "even" if r["n"] % 2 == 0 else "odd") == {"even": 3, "odd": 2}


def test_bucket_key_rendering() -> None:
    assert bucket_key(None) == "null"
    assert bucket_key(3) == "3"
    assert bucket_key(3.0) == "3"
    assert bucket_key(2.5) == "2.5"
    assert bucket_key(["a", 1, None, True]) == "a,1,,true"
    assert aggregate_items([{"id": "a", "updated": 1}], "missing") == {"undefined": 1}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1.5, "1.5"),
        (-0.0, "0"),
        (123.456, "123.456"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (-1.25e-10, "-1.25e-10"),
        (1e20, "100000000000000000000"),
        (1e21, "1e+21"),
        (float("inf"), "Infinity"),
    ],
)
def test_bucket_key_renders_floats_like_javascript(value: float, expected: str) -> None:
    assert bucket_key(value) == expected
