import warnings

import pytest

from tidyground.compute.sorting import sort
from tidyground.errors import KeyNotFoundError
from tidyground.table import Table, categorical


def test_sort_single_column():
    table = Table.from_pydict({"values": [5, 3, 1, 4, 2]})
    assert sort(table, "values").column("values").to_pylist() == [1, 2, 3, 4, 5]


def test_sort_descending():
    table = Table.from_pydict({"values": [5, 3, 1, 4, 2]})
    result = sort(table, ["values"], descending=True)
    assert result.column("values").to_pylist() == [5, 4, 3, 2, 1]


def test_sort_multiple_columns():
    table = Table.from_pydict(
        {"city": ["Rome", "Paris", "Rome", "Paris"], "age": [30, 20, 10, 40]}
    )
    result = sort(table, ["city", "age"], descending=[False, True])
    assert result.to_pydict() == {
        "city": ["Paris", "Paris", "Rome", "Rome"],
        "age": [40, 20, 30, 10],
    }


def test_sort_is_stable():
    table = Table.from_pydict({"key": [2, 1, 2, 1], "pos": [0, 1, 2, 3]})
    assert sort(table, "key").column("pos").to_pylist() == [1, 3, 0, 2]
    assert sort(table, "key", descending=True).column("pos").to_pylist() == [0, 2, 1, 3]


@pytest.mark.parametrize("descending", [False, True])
def test_sort_missing_values_last(descending):
    table = Table.from_pydict({"values": [None, 2, 1, None, 3]})
    result = sort(table, "values", descending=descending).column("values").to_pylist()
    assert result[-2:] == [None, None]
    assert result[:3] == ([3, 2, 1] if descending else [1, 2, 3])


def test_sort_categorical_by_labels_or_levels():
    labels = ["mid", "high", "low"]
    levels = ["low", "mid", "high"]

    unordered = Table.from_pydict({"size": categorical(labels, levels=levels)})
    assert sort(unordered, "size").column("size").to_pylist() == ["high", "low", "mid"]

    ordered = Table.from_pydict({"size": categorical(labels, levels=levels, ordered=True)})
    assert sort(ordered, "size").column("size").to_pylist() == ["low", "mid", "high"]
    assert sort(ordered, "size", descending=True).column("size").to_pylist() == [
        "high",
        "mid",
        "low",
    ]


def test_sort_errors():
    table = Table.from_pydict({"values": [1]})
    with pytest.raises(KeyNotFoundError):
        sort(table, "other")
    with pytest.raises(ValueError):
        sort(table, ["values"], descending=[True, False])


def test_sort_requires_keys():
    with pytest.raises(ValueError):
        sort(Table.from_pydict({"values": [1]}), [])


def test_sort_emits_no_warnings():
    table = Table.from_pydict({"values": [2, None, 1]})
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert sort(table, "values").column("values").to_pylist() == [1, 2, None]
