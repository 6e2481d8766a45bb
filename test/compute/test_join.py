import datetime

import pyarrow as pa
import pytest

from tidyground.compute.join import (
    anti_join,
    concat_columns,
    distinct_union,
    full_join,
    inner_join,
    join,
    left_join,
    right_join,
    semi_join,
    union,
)
from tidyground.errors import (
    ColumnConflictError,
    KeyNotFoundError,
    SchemaMismatchError,
    ShapeMismatchError,
)
from tidyground.table import Table, categorical


@pytest.fixture
def left():
    return Table.from_pylist([{"id": 1, "x": "a"}, {"id": 2, "x": "b"}])


@pytest.fixture
def right():
    return Table.from_pylist([{"id": 2, "y": "p"}, {"id": 3, "y": "q"}])


def test_left_join(left, right):
    assert left_join(left, right, "id").to_pylist() == [
        {"id": 1, "x": "a", "y": None},
        {"id": 2, "x": "b", "y": "p"},
    ]


def test_inner_join(left, right):
    assert inner_join(left, right, "id").to_pylist() == [{"id": 2, "x": "b", "y": "p"}]


def test_full_join(left, right):
    assert full_join(left, right, "id").to_pylist() == [
        {"id": 1, "x": "a", "y": None},
        {"id": 2, "x": "b", "y": "p"},
        {"id": 3, "x": None, "y": "q"},
    ]


def test_right_join(left, right):
    assert right_join(left, right, "id").to_pylist() == [
        {"id": 2, "x": "b", "y": "p"},
        {"id": 3, "x": None, "y": "q"},
    ]


def test_semi_and_anti_join(left, right):
    assert semi_join(left, right, "id").to_pylist() == [{"id": 2, "x": "b"}]
    assert anti_join(left, right, "id").to_pylist() == [{"id": 1, "x": "a"}]


def test_join_multiple_matches_keep_order():
    orders = Table.from_pydict({"customer": [2, 1, 2], "order": ["o1", "o2", "o3"]})
    payments = Table.from_pydict({"customer": [2, 2, 1], "paid": [10, 20, 30]})

    result = inner_join(orders, payments, "customer")
    assert result.to_pydict() == {
        "customer": [2, 2, 1, 2, 2],
        "order": ["o1", "o1", "o2", "o3", "o3"],
        "paid": [10, 20, 30, 10, 20],
    }


def test_semi_join_emits_each_row_once():
    orders = Table.from_pydict({"customer": [2, 1]})
    payments = Table.from_pydict({"customer": [2, 2, 2]})
    assert semi_join(orders, payments, "customer").to_pydict() == {"customer": [2]}


def test_missing_keys_never_match():
    a = Table.from_pydict({"id": [None, 1], "x": ["a", "b"]})
    b = Table.from_pydict({"id": [None, 1], "y": ["p", "q"]})

    assert inner_join(a, b, "id").to_pydict() == {"id": [1], "x": ["b"], "y": ["q"]}
    assert full_join(a, b, "id").to_pydict() == {
        "id": [None, 1, None],
        "x": ["a", "b", None],
        "y": [None, "q", "p"],
    }
    assert anti_join(a, b, "id").to_pydict() == {"id": [None], "x": ["a"]}


def test_join_on_multiple_keys():
    a = Table.from_pydict({"city": ["Rome", "Rome"], "year": [2020, 2021], "pop": [1, 2]})
    b = Table.from_pydict({"city": ["Rome", "Rome"], "year": [2021, 2022], "area": [5, 6]})

    assert inner_join(a, b, ["city", "year"]).to_pylist() == [
        {"city": "Rome", "year": 2021, "pop": 2, "area": 5}
    ]


def test_join_on_differently_named_keys():
    a = Table.from_pydict({"id": [1, 2], "x": ["a", "b"]})
    b = Table.from_pydict({"key": [2, 3], "y": ["p", "q"]})

    assert full_join(a, b, [("id", "key")]).to_pydict() == {
        "id": [1, 2, 3],
        "x": ["a", "b", None],
        "y": [None, "p", "q"],
    }


def test_join_categorical_and_string_keys():
    a = Table.from_pydict({"city": categorical(["Rome", "Paris"]), "x": [1, 2]})
    b = Table.from_pydict({"city": ["Paris", "Milan"], "y": [3, 4]})

    result = full_join(a, b, "city")
    assert result.column("city").to_pylist() == ["Rome", "Paris", "Milan"]
    assert result.levels("city") == ["Rome", "Paris", "Milan"]


def test_join_name_conflict(left):
    other = Table.from_pydict({"id": [1], "x": ["z"]})

    with pytest.raises(ColumnConflictError):
        inner_join(left, other, "id")

    result = inner_join(left, other, "id", suffixes=("_left", "_right"))
    assert result.to_pylist() == [{"id": 1, "x_left": "a", "x_right": "z"}]


def test_join_missing_key(left, right):
    with pytest.raises(KeyNotFoundError):
        inner_join(left, right, "name")


def test_join_incompatible_key_types(left):
    other = Table.from_pydict({"id": ["1"], "y": ["p"]})
    with pytest.raises(SchemaMismatchError):
        inner_join(left, other, "id")


def test_join_unknown_kind(left, right):
    with pytest.raises(ValueError):
        join(left, right, "id", how="cross")


def test_join_does_not_modify_inputs(left, right):
    full_join(left, right, "id")
    assert left.to_pydict() == {"id": [1, 2], "x": ["a", "b"]}
    assert right.to_pydict() == {"id": [2, 3], "y": ["p", "q"]}


@pytest.mark.parametrize(
    "a_ids,b_ids",
    [
        ([1, 2, 3], [2, 3, 4]),
        ([1, 1, 2], [1, 1, 5]),
        ([1, None, 3], [None, 7]),
        ([], [1, 2]),
        ([1, 2], []),
    ],
)
def test_join_sizes(a_ids, b_ids):
    a = Table.from_pydict({"id": pa.array(a_ids, type=pa.int64()), "x": list(range(len(a_ids)))})
    b = Table.from_pydict({"id": pa.array(b_ids, type=pa.int64()), "y": list(range(len(b_ids)))})

    inner = inner_join(a, b, "id")
    left = left_join(a, b, "id")
    full = full_join(a, b, "id")
    assert inner.num_rows <= left.num_rows <= full.num_rows

    # Unmatched left rows have missing values exactly in the right columns.
    unmatched = anti_join(a, b, "id").num_rows
    assert left.column("y").null_count == unmatched

    # Semi and anti join partition the left rows.
    semi = semi_join(a, b, "id").column("x").to_pylist()
    anti = anti_join(a, b, "id").column("x").to_pylist()
    assert not set(semi) & set(anti)
    assert sorted(semi + anti) == list(range(len(a_ids)))


def test_union():
    a = Table.from_pydict({"id": [1, 2], "score": [1.5, 2.5]})
    b = Table.from_pydict({"score": [3, 4], "id": [2, 3]})

    result = union(a, b)
    assert result.column_names == ["id", "score"]
    assert result.to_pydict() == {"id": [1, 2, 2, 3], "score": [1.5, 2.5, 3.0, 4.0]}


def test_union_keeps_duplicates_and_distinct_union_drops_them():
    a = Table.from_pydict({"id": [1, 2]})
    b = Table.from_pydict({"id": [2, 3]})

    assert union(a, b).column("id").to_pylist() == [1, 2, 2, 3]
    assert distinct_union(a, b).column("id").to_pylist() == [1, 2, 3]


def test_union_string_and_categorical():
    a = Table.from_pydict({"city": categorical(["Rome"])})
    b = Table.from_pydict({"city": ["Paris"]})
    result = union(a, b)
    assert result.column("city").type == pa.string()
    assert result.column("city").to_pylist() == ["Rome", "Paris"]


def test_union_categoricals_merge_levels():
    a = Table.from_pydict({"size": categorical(["low"], levels=["low", "high"])})
    b = Table.from_pydict({"size": categorical(["mid"])})
    result = union(a, b)
    assert result.levels("size") == ["low", "high", "mid"]
    assert result.column("size").to_pylist() == ["low", "mid"]


def test_union_all_missing_column_adopts_type():
    a = Table.from_pydict({"score": [None, None]})
    b = Table.from_pydict({"score": [1, 2]})
    result = union(a, b)
    assert result.column("score").type == pa.int64()
    assert result.column("score").to_pylist() == [None, None, 1, 2]


def test_union_mismatches():
    a = Table.from_pydict({"id": [1]})
    with pytest.raises(SchemaMismatchError):
        union(a, Table.from_pydict({"key": [1]}))
    with pytest.raises(SchemaMismatchError):
        union(a, Table.from_pydict({"id": ["1"]}))


def test_concat_columns():
    a = Table.from_pydict({"id": [1, 2]})
    b = Table.from_pydict({"x": ["a", "b"]})
    assert concat_columns(a, b).to_pydict() == {"id": [1, 2], "x": ["a", "b"]}


def test_concat_columns_errors():
    a = Table.from_pydict({"id": [1, 2]})
    with pytest.raises(ShapeMismatchError):
        concat_columns(a, Table.from_pydict({"x": ["a"]}))
    with pytest.raises(ColumnConflictError):
        concat_columns(a, Table.from_pydict({"id": [3, 4]}))


def test_join_integer_keys_of_different_widths():
    a = Table.from_pydict({"id": pa.array([1, 2], type=pa.int32()), "x": ["a", "b"]})
    b = Table.from_pydict({"id": pa.array([2, 3], type=pa.int64()), "y": ["p", "q"]})

    result = full_join(a, b, "id")
    assert result.column("id").type == pa.int64()
    assert result.column("id").to_pylist() == [1, 2, 3]


def test_join_integer_and_float_keys():
    a = Table.from_pydict({"id": [1, 2], "x": ["a", "b"]})
    b = Table.from_pydict({"id": [2.0, 3.0], "y": ["p", "q"]})

    result = full_join(a, b, "id")
    assert result.column("id").type == pa.float64()
    assert result.column("id").to_pylist() == [1.0, 2.0, 3.0]


def test_join_timestamp_keys_of_different_units():
    when = [datetime.datetime(2020, 1, 1), datetime.datetime(2020, 1, 2)]
    a = Table.from_pydict({"at": pa.array(when, type=pa.timestamp("s")), "x": ["a", "b"]})
    b = Table.from_pydict({"at": pa.array(when[1:], type=pa.timestamp("us")), "y": ["p"]})

    result = inner_join(a, b, "at")
    assert result.to_pylist() == [{"at": when[1], "x": "b", "y": "p"}]

    result = full_join(a, b, "at")
    assert result.column("at").type == pa.timestamp("us")
    assert result.column("at").to_pylist() == when
