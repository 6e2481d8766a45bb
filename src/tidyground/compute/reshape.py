"""Reshaping between wide and long layouts.

The same data can be laid out in a *wide* table,
with one column per measure::

    +----+--------+-----------+
    | id | Verbal | Nonverbal |
    +----+--------+-----------+
    | 1  | 100    | 90        |
    | 2  | 120    | 95        |
    +----+--------+-----------+

or in a *long* table, with one row per measurement::

    +----+-----------+-------+
    | id | variable  | value |
    +----+-----------+-------+
    | 1  | Verbal    | 100   |
    | 1  | Nonverbal | 90    |
    | 2  | Verbal    | 120   |
    | 2  | Nonverbal | 95    |
    +----+-----------+-------+

:func:`melt` goes from the wide layout to the long one,
:func:`cast` goes back from the long layout to the wide one.
Casting a melted table reproduces the original measure columns.
"""

import logging
from typing import Any, Callable, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import AmbiguousAggregationError, AmbiguousColumnsError, SchemaMismatchError
from ..table import Table, decode, unify_types
from ..table.table import check_unique_names
from .aggregate import group_rows, to_column

logger = logging.getLogger(__name__)

__all__ = ("melt", "cast")

MISSING_LABEL = "NA"


def melt(
    table: Table,
    id_columns: Iterable[str] | None = None,
    measure_columns: Iterable[str] | None = None,
    variable_name: str = "variable",
    value_name: str = "value",
) -> Table:
    """Convert a table from the wide layout to the long layout.

    Each input row produces one output row for each measure column,
    consecutively, with the id columns repeated, the name of the
    measure in ``variable_name`` and its value in ``value_name``.

    When only one of ``id_columns`` and ``measure_columns`` is provided,
    the other one is every remaining column. When neither is provided
    the non numeric columns are the ids and the numeric columns are the measures.

    :param table: The wide table.
    :param id_columns: The columns that identify each row.
    :param measure_columns: The columns that hold the measured values.
    :param variable_name: Name of the output column with the measure names.
    :param value_name: Name of the output column with the measured values.
    """
    ids, measures = _melt_roles(table, id_columns, measure_columns)
    check_unique_names(ids + [variable_name, value_name])

    n_rows, n_measures = table.num_rows, len(measures)
    # Row major order: all the measures of the first row, then the second row...
    repeated_rows = pa.array(
        [row for row in range(n_rows) for _ in range(n_measures)], type=pa.int64()
    )
    interleaved = pa.array(
        [m * n_rows + row for row in range(n_rows) for m in range(n_measures)],
        type=pa.int64(),
    )

    arrays = [table.column(name).take(repeated_rows) for name in ids]
    arrays.append(pa.array(measures * n_rows, type=pa.string()))
    arrays.append(_stack_measures(table, measures, value_name).take(interleaved))

    logger.debug(
        "Melted %d rows and %d measures into %d rows",
        n_rows, n_measures, len(repeated_rows),
    )
    return Table(pa.Table.from_arrays(arrays, names=ids + [variable_name, value_name]))


def _melt_roles(
    table: Table,
    id_columns: Iterable[str] | None,
    measure_columns: Iterable[str] | None,
) -> tuple[list[str], list[str]]:
    """Decide which columns are ids and which are measures."""
    if id_columns is not None:
        ids = list(id_columns)
        table.check_columns(ids)
    if measure_columns is not None:
        measures = list(measure_columns)
        table.check_columns(measures)

    if id_columns is None and measure_columns is None:
        numeric = [n for n in table.column_names if table.column_type(n).is_numeric]
        ids = [n for n in table.column_names if n not in numeric]
        measures = numeric
        if not ids or not measures:
            raise AmbiguousColumnsError(
                "Can't tell id columns from measure columns, "
                f"numeric columns are {measures} and non numeric columns are {ids}"
            )
    elif id_columns is None:
        ids = [n for n in table.column_names if n not in measures]
    elif measure_columns is None:
        measures = [n for n in table.column_names if n not in ids]

    overlap = set(ids) & set(measures)
    if overlap:
        raise AmbiguousColumnsError(f"Columns {sorted(overlap)} are both ids and measures")
    return ids, measures


def _stack_measures(table: Table, measures: list[str], value_name: str) -> pa.Array:
    """All the values of the measure columns, one column after the other."""
    if not measures:
        return pa.nulls(0)

    columns = [table.column(name) for name in measures]
    try:
        stacked = columns[0]
        for column in columns[1:]:
            stacked, column = unify_types(stacked, column)
            stacked = pa.concat_arrays([stacked, column])
        return stacked
    except SchemaMismatchError:
        logger.warning(
            "Measures %s have incompatible types %s, '%s' will hold text",
            measures, [str(c.type) for c in columns], value_name,
        )
        return pa.concat_arrays([pc.cast(decode(c), pa.string()) for c in columns])


def cast(
    table: Table,
    row_keys: str | Iterable[str],
    column_keys: str | Iterable[str],
    value_column: str,
    aggregator: Callable[[pa.Array], Any] | None = None,
    separator: str = "_",
) -> Table:
    """Convert a table from the long layout to the wide layout.

    The output has one row for each distinct combination of the ``row_keys``
    and one column for each distinct combination of the ``column_keys``,
    both in order of first appearance. Output columns are named after
    the values of the column keys, joined by ``separator``.

    Each cell holds the value of ``value_column`` for its row and column,
    combinations that never appear in the input give missing cells.

    >>> long = Table.from_pydict({
    ...     "id": [1, 1, 2, 2],
    ...     "test": ["Verbal", "Nonverbal", "Verbal", "Nonverbal"],
    ...     "score": [100, 90, 120, 95],
    ... })
    >>> cast(long, "id", "test", "score").to_pydict()
    {'id': [1, 2], 'Verbal': [100, 120], 'Nonverbal': [90, 95]}

    :param table: The long table.
    :param row_keys: The columns that identify each output row.
    :param column_keys: The columns whose values become the output columns.
    :param value_column: The column with the values of the cells.
    :param aggregator: Reduces the values of cells that have more than one,
                       like :class:`tidyground.compute.aggregate.Mean`.
                       When not provided each cell must have at most one value,
                       and the values keep their type.
    :param separator: Joins the values of multiple column keys into a name.
    """
    row_keys = [row_keys] if isinstance(row_keys, str) else list(row_keys)
    column_keys = [column_keys] if isinstance(column_keys, str) else list(column_keys)
    table.check_columns(row_keys + column_keys + [value_column])

    row_groups = group_rows(table, row_keys)
    column_groups = group_rows(table, column_keys)
    row_of = _group_of_rows(row_groups)
    column_of = _group_of_rows(column_groups)

    cells: dict[tuple[int, int], list[int]] = {}
    for row_index in range(table.num_rows):
        cells.setdefault((row_of[row_index], column_of[row_index]), []).append(row_index)

    column_names = [
        separator.join(MISSING_LABEL if v is None else str(v) for v in key)
        for key in column_groups
    ]
    check_unique_names(row_keys + column_names)

    first_rows = pa.array([rows[0] for rows in row_groups.values()], type=pa.int64())
    arrays = [table.column(key).take(first_rows) for key in row_keys]

    values = table.column(value_column)
    row_labels = list(row_groups)
    for column_index, name in enumerate(column_names):
        cell_rows = [cells.get((r, column_index)) for r in range(len(row_groups))]
        if aggregator is None:
            positions = []
            for row_label, rows in zip(row_labels, cell_rows):
                if rows is not None and len(rows) > 1:
                    raise AmbiguousAggregationError(
                        f"Row {row_label} has {len(rows)} values for column '{name}', "
                        "provide an aggregator to combine them"
                    )
                positions.append(None if rows is None else rows[0])
            arrays.append(values.take(pa.array(positions, type=pa.int64())))
        else:
            arrays.append(
                to_column(
                    [
                        None if rows is None
                        else aggregator(values.take(pa.array(rows, type=pa.int64())))
                        for rows in cell_rows
                    ]
                )
            )

    logger.debug(
        "Cast %d rows into %d rows and %d columns",
        table.num_rows, len(row_groups), len(column_names),
    )
    return Table(pa.Table.from_arrays(arrays, names=row_keys + column_names))


def _group_of_rows(groups: dict[tuple, list[int]]) -> dict[int, int]:
    """Map each row position to the index of its group."""
    return {
        row_index: group_index
        for group_index, rows in enumerate(groups.values())
        for row_index in rows
    }
