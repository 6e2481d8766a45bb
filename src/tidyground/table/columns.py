"""Helpers to build and inspect columns.

Columns are plain :class:`pyarrow.Array` objects,
so this module only provides the few utilities that
are needed to move between python values, chunked
arrays and categorical columns.

Categorical columns are dictionary encoded arrays
where the dictionary holds the levels:

>>> column = categorical(["low", "high", "low"], levels=["low", "mid", "high"], ordered=True)
>>> column.dictionary.to_pylist()
['low', 'mid', 'high']
>>> column.indices.to_pylist()
[0, 2, 0]
"""

from typing import Any, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import SchemaMismatchError
from .types import ColumnType


def to_array(data: Any, type: pa.DataType | None = None) -> pa.Array:
    """Convert python sequences or chunked arrays to a single pyarrow.Array."""
    if isinstance(data, pa.ChunkedArray):
        if pa.types.is_dictionary(data.type):
            data = data.unify_dictionaries()
        data = data.combine_chunks()
    elif not isinstance(data, pa.Array):
        data = pa.array(data, type=type)

    if type is not None and data.type != type:
        data = pc.cast(data, type)
    return data


def decode(column: pa.Array) -> pa.Array:
    """Return the labels of a categorical column, other columns as they are."""
    if pa.types.is_dictionary(column.type):
        return column.dictionary_decode()
    return column


def categorical(
    values: Iterable[Any],
    levels: Iterable[str] | None = None,
    ordered: bool = False,
) -> pa.DictionaryArray:
    """Build a categorical column.

    When ``levels`` are not provided, the levels are the distinct
    values in order of first appearance.
    Values that are not part of the levels become missing.

    :param values: The labels of the column, any non string value is converted to string.
    :param levels: The set of allowed labels, in their display and sort order.
    :param ordered: If the levels have a meaningful order, like ``low < mid < high``.
    """
    labels = decode(to_array(values))
    if not pa.types.is_string(labels.type):
        labels = pc.cast(labels, pa.string())

    if levels is None:
        levels_array = pc.unique(labels.drop_null())
    else:
        levels_array = pa.array(list(levels), type=pa.string())
        if levels_array.null_count:
            raise ValueError("Levels of a categorical can't be missing")
        if len(pc.unique(levels_array)) != len(levels_array):
            raise ValueError(f"Levels must be unique, got {levels_array.to_pylist()}")

    indices = pc.index_in(labels, value_set=levels_array)
    return pa.DictionaryArray.from_arrays(
        pc.cast(indices, pa.int32()), levels_array, ordered=ordered
    )


def set_levels(
    column: pa.Array, levels: Iterable[str], ordered: bool | None = None
) -> pa.DictionaryArray:
    """Change the levels of a column, keeping its labels.

    Labels that are not part of the new levels become missing.
    When ``ordered`` is not provided, the current ordering flag is kept.
    """
    column = to_array(column)
    if ordered is None:
        ordered = pa.types.is_dictionary(column.type) and column.type.ordered
    return categorical(column, levels=levels, ordered=ordered)


def as_ordered(column: pa.Array) -> pa.DictionaryArray:
    """Mark a categorical column as ordered, levels order becomes meaningful."""
    column = to_array(column)
    if not pa.types.is_dictionary(column.type):
        raise ValueError(f"Only categorical columns can be ordered, got {column.type}")
    return pa.DictionaryArray.from_arrays(
        column.indices, column.dictionary, ordered=True
    )


def unify_types(first: pa.Array, second: pa.Array) -> tuple[pa.Array, pa.Array]:
    """Convert two columns to a common type, so that they can be concatenated.

    Integers and floats become floats, text and categorical
    columns become text, and a column with only missing
    values adopts the type of the other one.
    Categorical columns with different levels are merged into
    a categorical column with the levels of both.

    Raises :class:`tidyground.errors.SchemaMismatchError` when
    the two types have nothing in common.
    """
    if pa.types.is_null(first.type):
        first = _missing_like(second, len(first))
    elif pa.types.is_null(second.type):
        second = _missing_like(first, len(second))

    if pa.types.is_dictionary(first.type) and pa.types.is_dictionary(second.type):
        levels = first.dictionary.to_pylist()
        levels += [lvl for lvl in second.dictionary.to_pylist() if lvl not in levels]
        ordered = first.type.ordered
        return categorical(first, levels, ordered), categorical(second, levels, ordered)

    if first.type == second.type:
        return first, second

    kinds = {ColumnType.from_arrow(first.type), ColumnType.from_arrow(second.type)}
    if kinds == {ColumnType.INTEGER}:
        target = pa.int64()
    elif kinds <= {ColumnType.INTEGER, ColumnType.FLOAT}:
        target = pa.float64()
    elif kinds <= {ColumnType.STRING, ColumnType.CATEGORICAL}:
        target = pa.string()
    elif kinds == {ColumnType.DATETIME}:
        target = pa.timestamp("us")
    else:
        raise SchemaMismatchError(f"Types {first.type} and {second.type} are not compatible")
    return pc.cast(decode(first), target), pc.cast(decode(second), target)


def _missing_like(column: pa.Array, length: int) -> pa.Array:
    """A column of ``length`` missing values, with the same type of ``column``."""
    if pa.types.is_dictionary(column.type):
        return categorical(
            pa.nulls(length, pa.string()), column.dictionary.to_pylist(), column.type.ordered
        )
    return pa.nulls(length, column.type)
