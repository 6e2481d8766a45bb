"""Cleaning of messy data.

Legacy datasets frequently encode missing data with dummy
values like ``9999`` or ``-99``, contain the same row more than
once and have text with inconsistent spacing or casing.

This module implements the basic cleaning operations:

* :func:`replace_dummy` turns dummy values into missing values.
* :func:`deduplicate` removes repeated rows.
* :func:`rename_columns` gives columns better names.
* :func:`normalize_strings` fixes spacing and casing of text.
* :func:`fill_missing` replaces missing values with a default.

>>> import pyarrow as pa
>>> replace_dummy(pa.array([9999, 42, 9999]), {9999}).to_pylist()
[None, 42, None]
"""

import logging
import math
from typing import Any, Iterable, Mapping

import pyarrow as pa
import pyarrow.compute as pc

from ..table import Table, categorical, to_array

logger = logging.getLogger(__name__)

__all__ = (
    "replace_dummy",
    "replace_dummy_table",
    "deduplicate",
    "rename_columns",
    "normalize_strings",
    "fill_missing",
)


def replace_dummy(column: Any, dummy_values: Iterable[Any]) -> pa.Array:
    """Replace dummy values with missing values.

    The type of the column is preserved, categorical columns
    keep their levels. Dummy values that can't be represented
    in the type of the column (like ``"n/a"`` in a numeric column)
    never match any value.

    :param column: The column to clean.
    :param dummy_values: The values that stand for missing data.
    """
    column = to_array(column)
    if pa.types.is_dictionary(column.type):
        # Compare the levels, and then map the result to each row.
        level_mask = pc.is_in(
            column.dictionary, value_set=_value_set(dummy_values, column.dictionary.type)
        )
        mask = pc.fill_null(pc.take(level_mask, column.indices), False)
        indices = pc.if_else(mask, pa.scalar(None, column.indices.type), column.indices)
        return pa.DictionaryArray.from_arrays(
            indices, column.dictionary, ordered=column.type.ordered
        )

    mask = pc.is_in(column, value_set=_value_set(dummy_values, column.type))
    return pc.if_else(mask, pa.scalar(None, column.type), column)


def replace_dummy_table(
    table: Table, dummy_values: Iterable[Any], columns: Iterable[str] | None = None
) -> Table:
    """Replace dummy values in multiple columns of a table.

    :param columns: The columns to clean, all of them by default.
    """
    dummy_values = list(dummy_values)
    columns = table.column_names if columns is None else list(columns)
    table.check_columns(columns)
    for name in columns:
        table = table.with_column(name, replace_dummy(table.column(name), dummy_values))
    return table


def _value_set(values: Iterable[Any], dtype: pa.DataType) -> pa.Array:
    """Build an array of the values that can be represented as ``dtype``."""
    representable = []
    for value in values:
        try:
            representable.append(pa.scalar(value, type=dtype))
        except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError, ValueError, OverflowError):
            logger.debug("Dummy value %r can't appear in %s columns", value, dtype)
    return pa.array([s.as_py() for s in representable], type=dtype)


def deduplicate(table: Table, subset: Iterable[str] | None = None) -> Table:
    """Remove rows that repeat a previous row.

    The first occurrence of each row is kept and the
    surviving rows keep their original order.
    Two missing values are considered equal for the
    purpose of finding duplicated rows.

    :param table: The table to deduplicate.
    :param subset: Only compare these columns, all of them by default.
    """
    columns = table.column_names if subset is None else list(subset)
    table.check_columns(columns)

    seen = set()
    keep = []
    values = [table.column(name).to_pylist() for name in columns]
    for row_index, row in enumerate(zip(*values)):
        row = tuple(_NAN if _is_nan(v) else v for v in row)
        if row not in seen:
            seen.add(row)
            keep.append(row_index)

    if not columns:
        # A table without columns only has one distinct row.
        keep = keep[:1] if table.num_rows else []

    logger.debug("Deduplicated %d rows to %d", table.num_rows, len(keep))
    return table.take(pa.array(keep, type=pa.int64()))


def rename_columns(table: Table, mapping: Mapping[str, str]) -> Table:
    """Rename columns according to a ``{old_name: new_name}`` mapping.

    Fails if one of the old names is not a column of the table,
    or if the renaming would make two columns share the same name.
    """
    return table.rename_columns(mapping)


def normalize_strings(
    column: Any,
    strip: bool = True,
    case: str | None = None,
    collapse_whitespace: bool = False,
) -> pa.Array:
    """Normalize spacing and casing of a text column.

    :param column: A string or categorical column.
    :param strip: Remove leading and trailing whitespace.
    :param case: One of ``"lower"``, ``"upper"``, ``"title"`` or ``None`` to keep it.
    :param collapse_whitespace: Replace runs of whitespace with a single space.
    """
    column = to_array(column)
    if pa.types.is_dictionary(column.type):
        # Normalize the levels once, labels that end up equal get merged.
        levels = normalize_strings(column.dictionary, strip, case, collapse_whitespace)
        labels = pc.take(levels, column.indices)
        merged_levels = pc.unique(levels)
        return categorical(labels, merged_levels.to_pylist(), column.type.ordered)

    if not pa.types.is_string(column.type):
        raise TypeError(f"Only text columns can be normalized, got {column.type}")

    if collapse_whitespace:
        column = pc.replace_substring_regex(column, pattern=r"\s+", replacement=" ")
    if strip:
        column = pc.utf8_trim_whitespace(column)
    if case is not None:
        try:
            func = {"lower": pc.utf8_lower, "upper": pc.utf8_upper, "title": pc.utf8_title}[case]
        except KeyError:
            raise ValueError(f"Unsupported case {case!r}") from None
        column = func(column)
    return column


def fill_missing(column: Any, value: Any) -> pa.Array:
    """Replace missing values with ``value``, the type is preserved."""
    column = to_array(column)
    if pa.types.is_dictionary(column.type):
        levels = column.dictionary.to_pylist()
        if value not in levels:
            raise ValueError(f"{value!r} is not one of the levels {levels}")
        indices = pc.fill_null(column.indices, pa.scalar(levels.index(value), column.indices.type))
        return pa.DictionaryArray.from_arrays(
            indices, column.dictionary, ordered=column.type.ordered
        )
    return pc.fill_null(column, pa.scalar(value, type=column.type))


# NaN is never equal to itself, rows compare it through this marker.
_NAN = object()


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)
