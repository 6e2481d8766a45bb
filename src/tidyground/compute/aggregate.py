"""Grouping and aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data stored in a table.

:func:`aggregate` groups the rows of a table by a set of
key columns and computes the aggregations for each group.

For example, given the following data::

    city, shop, n_employees
    New York, Shop A, 10
    New York, Shop B, 15
    Los Angeles, Shop C, 8
    Los Angeles, Shop D, 12
    New York, Shop E, 20

We could group by city and compute the sum of the employees
to get::

    city, total_employees
    New York, 45
    Los Angeles, 20

Groups appear in the order their key first appears in the table.

Aggregations are also plain callables that reduce a column
to a single value, so they can be used wherever a function
of the values is expected, like the aggregator of
:func:`tidyground.compute.reshape.cast`:

>>> import pyarrow as pa
>>> Mean()(pa.array([1, 2, 3, 4])).as_py()
2.5
"""

import abc
import logging
from typing import Any, Iterable, Mapping

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ColumnConflictError
from ..table import Table, decode

logger = logging.getLogger(__name__)

__all__ = (
    "aggregate",
    "Aggregation",
    "Sum",
    "Min",
    "Max",
    "Count",
    "Mean",
    "StdDev",
    "to_column",
)


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation reduces the values of a column to a single value.
    When used by :func:`aggregate` the aggregation needs to know
    which column it applies to, when called directly it doesn't.
    """

    def __init__(self, column: str | None = None) -> None:
        """
        :param column: The column to aggregate.
        """
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column or ''})"

    __repr__ = __str__

    def __call__(self, values: pa.Array) -> pa.Scalar:
        """Reduce the values to a single value, missing values are ignored."""
        return self._aggregate(decode(values))

    @abc.abstractmethod
    def _aggregate(self, values: pa.Array) -> pa.Scalar: ...


class Sum(Aggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.sum(values)


class Min(Aggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.min(values)


class Max(Aggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.max(values)


class Count(Aggregation):
    """Count the values that are not missing."""

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.count(values)


class Mean(Aggregation):
    """Compute the mean of an aggregated column."""

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.mean(values)


class StdDev(Aggregation):
    """Compute the sample standard deviation of an aggregated column.

    The result is missing for groups with less than two values.
    """

    def _aggregate(self, values: pa.Array) -> pa.Scalar:
        return pc.stddev(values, ddof=1)


def to_column(values: list[Any]) -> pa.Array:
    """Build a column out of the results of aggregations.

    Arrow scalars keep their type, while python values
    get the type inferred by Arrow.
    """
    scalars = [v for v in values if isinstance(v, pa.Scalar)]
    if scalars and len(scalars) == len([v for v in values if v is not None]):
        return pa.array(
            [None if v is None else v.as_py() for v in values], type=scalars[0].type
        )
    return pa.array([v.as_py() if isinstance(v, pa.Scalar) else v for v in values])


def group_rows(table: Table, keys: list[str]) -> dict[tuple, list[int]]:
    """Positions of the rows of each group, groups in order of first appearance.

    Missing values in the keys form a group of their own.
    """
    groups: dict[tuple, list[int]] = {}
    columns = [table.column(k).to_pylist() for k in keys]
    for row_index, key in enumerate(zip(*columns)):
        groups.setdefault(key, []).append(row_index)
    if not keys and table.num_rows:
        groups[()] = list(range(table.num_rows))
    return groups


def aggregate(
    table: Table,
    keys: str | Iterable[str],
    aggregations: Mapping[str, Aggregation],
) -> Table:
    """Group data and compute aggregations.

    >>> table = Table.from_pydict({
    ...    'city': ['New York', 'New York', 'Los Angeles', 'Los Angeles', 'New York'],
    ...    'shop': ['Shop A', 'Shop B', 'Shop C', 'Shop D', 'Shop E'],
    ...    'n_employees': [10, 15, 8, 12, 20]
    ... })
    >>> aggregate(table, "city", {"total_employees": Sum("n_employees")}).to_pydict()
    {'city': ['New York', 'Los Angeles'], 'total_employees': [45, 20]}

    :param table: The table to aggregate.
    :param keys: The columns to group by.
    :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    table.check_columns(keys)
    for name, aggregation in aggregations.items():
        if name in keys:
            raise ColumnConflictError(f"Aggregation {name!r} has the same name of a key column")
        if aggregation.column is None:
            raise ValueError(f"Aggregation {name!r} doesn't specify the column to aggregate")
        table.check_columns([aggregation.column])

    groups = group_rows(table, keys)
    first_rows = pa.array([rows[0] for rows in groups.values()], type=pa.int64())
    columns = {key: table.column(key).take(first_rows) for key in keys}
    for name, aggregation in aggregations.items():
        values = table.column(aggregation.column)
        results = [
            aggregation(values.take(pa.array(rows, type=pa.int64())))
            for rows in groups.values()
        ]
        columns[name] = to_column(results)

    result = Table(pa.Table.from_arrays(list(columns.values()), names=list(columns)))

    logger.debug("Aggregated %d rows into %d groups", table.num_rows, result.num_rows)
    return result
