"""Sorting of rows.

When computing ranks or looking for the most significant
values, it's often necessary to sort the data based
on one or more columns.

Sorting is stable, rows with equal keys keep their
relative order, and missing values always go last,
both for ascending and descending sorting.

Categorical columns sort by their labels, unless they are
ordered, in which case they sort by the order of their levels:

>>> from tidyground.table import Table, categorical
>>> table = Table.from_pydict({
...     "size": categorical(["high", "low", "mid"], levels=["low", "mid", "high"], ordered=True)
... })
>>> sort(table, "size").column("size").to_pylist()
['low', 'mid', 'high']
"""

import logging
from typing import Iterable

import pyarrow as pa
import pyarrow.compute as pc

from ..table import Table, decode

logger = logging.getLogger(__name__)

__all__ = ("sort",)


def sort(
    table: Table,
    keys: str | Iterable[str],
    descending: bool | Iterable[bool] | None = None,
) -> Table:
    """Sort the rows of a table based on one or more columns.

    :param table: The table to sort.
    :param keys: The columns to sort by, in order of priority.
    :param descending: If each column should be sorted in descending order,
                       a single value applies to all the keys.
                       By default all keys are sorted in ascending order.
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    if not keys:
        raise ValueError("At least one sort key is required")
    if descending is None or isinstance(descending, bool):
        descending = [bool(descending)] * len(keys)
    else:
        descending = list(descending)
    if len(keys) != len(descending):
        raise ValueError("Keys and descending must have the same length")
    table.check_columns(keys)

    # The values that actually decide the order of each key,
    # in a table of their own as keys might repeat.
    sort_values = pa.Table.from_arrays(
        [_sort_values(table.column(key)) for key in keys],
        names=[f"key{i}" for i in range(len(keys))],
    )
    # Missing values go last for every key, the default placement of sort keys.
    indices = pc.sort_indices(
        sort_values,
        sort_keys=[
            (f"key{i}", "descending" if desc else "ascending")
            for i, desc in enumerate(descending)
        ],
    )
    logger.debug("Sorted %d rows by %s", table.num_rows, keys)
    return table.take(indices)


def _sort_values(column: pa.Array) -> pa.Array:
    if pa.types.is_dictionary(column.type) and column.type.ordered:
        return column.indices
    return decode(column)
