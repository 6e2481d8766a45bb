"""Joins and unions of tables.

Joins combine the columns of two tables, matching their rows
by the values of one or more key columns.

All the join kinds are implemented with a hash join:

1. An index is built for the right table, mapping each key
   (a tuple of the values of the key columns) to the positions of the
   rows that have that key. Rows with a missing key component
   are not indexed, so a missing key never matches anything,
   not even another missing key.

2. The rows of the left table are visited in order and their
   key is looked up in the index to find the matching right rows.

3. The positions of the matching rows are collected into
   two lists, one for the left table and one for the right table.
   Taking those rows from the two tables gives two aligned tables
   that only need to be put side by side.
   Rows without a match take a missing position, which produces
   a row of missing values.

Supposing we have two tables::

    left:                 right:
    +----+---+            +----+---+
    | id | x |            | id | y |
    +----+---+            +----+---+
    | 1  | a |            | 2  | p |
    | 2  | b |            | 3  | q |
    +----+---+            +----+---+

The index for ``right`` is ``{(2,): [0], (3,): [1]}``.
For a full join we get ``left_positions = [0, 1, None]`` and
``right_positions = [None, 0, 1]``, which leads to::

    +----+------+------+
    | id | x    | y    |
    +----+------+------+
    | 1  | a    | NA   |
    | 2  | b    | p    |
    | 3  | NA   | q    |
    +----+------+------+

The output always follows the order of the left table, and for
each left row the matching right rows are in the right table order.
Unmatched right rows (``right`` and ``full`` joins) come last.

Unions instead stack the rows of two tables with the same columns.
"""

import logging
from typing import Any, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ColumnConflictError, SchemaMismatchError, ShapeMismatchError
from ..table import ColumnType, Table, categorical, decode, unify_types
from ..table.table import check_unique_names
from .cleaning import deduplicate

logger = logging.getLogger(__name__)

__all__ = (
    "JOIN_KINDS",
    "join",
    "inner_join",
    "left_join",
    "right_join",
    "full_join",
    "semi_join",
    "anti_join",
    "union",
    "distinct_union",
    "concat_columns",
)

JOIN_KINDS = ("inner", "left", "right", "full", "semi", "anti")

JoinKeys = str | Sequence[str | tuple[str, str]]


def join(
    left: Table,
    right: Table,
    on: JoinKeys,
    how: str = "inner",
    suffixes: tuple[str, str] | None = None,
) -> Table:
    """Join two tables on their key columns.

    :param left: The left table, its row order drives the output order.
    :param right: The right table.
    :param on: The key columns. A column name, a list of names present in both tables,
               or a list of ``(left_name, right_name)`` pairs.
    :param how: One of ``inner``, ``left``, ``right``, ``full``, ``semi``, ``anti``.
    :param suffixes: ``(left_suffix, right_suffix)`` appended to the non key columns
                     that exist in both tables. When not provided such columns are an error.
    """
    if how not in JOIN_KINDS:
        raise ValueError(f"Unsupported join kind {how!r}, expected one of {JOIN_KINDS}")

    pairs = _key_pairs(on)
    left_keys = [lk for lk, _ in pairs]
    right_keys = [rk for _, rk in pairs]
    left.check_columns(left_keys)
    right.check_columns(right_keys)
    for lk, rk in pairs:
        _check_key_types(lk, left.column(lk), rk, right.column(rk))

    # Build a hash index of the right table: key -> [row positions]
    index: dict[tuple, list[int]] = {}
    for row_index, key in enumerate(_key_tuples(right, right_keys)):
        if key is not None:
            index.setdefault(key, []).append(row_index)

    left_tuples = _key_tuples(left, left_keys)
    if how in ("semi", "anti"):
        want_match = how == "semi"
        positions = [
            row_index
            for row_index, key in enumerate(left_tuples)
            if (key is not None and key in index) == want_match
        ]
        logger.debug("%s join kept %d of %d rows", how, len(positions), left.num_rows)
        return left.take(pa.array(positions, type=pa.int64()))

    left_positions: list[int | None] = []
    right_positions: list[int | None] = []
    matched_right = set()
    for row_index, key in enumerate(left_tuples):
        matches = index.get(key) if key is not None else None
        if matches:
            left_positions.extend([row_index] * len(matches))
            right_positions.extend(matches)
            matched_right.update(matches)
        elif how in ("left", "full"):
            left_positions.append(row_index)
            right_positions.append(None)

    if how in ("right", "full"):
        for row_index in range(right.num_rows):
            if row_index not in matched_right:
                left_positions.append(None)
                right_positions.append(row_index)

    result = _combine(left, right, pairs, left_positions, right_positions, suffixes)
    logger.debug(
        "%s join of %d and %d rows produced %d rows",
        how, left.num_rows, right.num_rows, result.num_rows,
    )
    return result


def inner_join(left: Table, right: Table, on: JoinKeys, **kwargs: Any) -> Table:
    """Rows with a match in both tables."""
    return join(left, right, on, how="inner", **kwargs)


def left_join(left: Table, right: Table, on: JoinKeys, **kwargs: Any) -> Table:
    """All the left rows, with the columns of the matching right rows."""
    return join(left, right, on, how="left", **kwargs)


def right_join(left: Table, right: Table, on: JoinKeys, **kwargs: Any) -> Table:
    """All the right rows, with the columns of the matching left rows."""
    return join(left, right, on, how="right", **kwargs)


def full_join(left: Table, right: Table, on: JoinKeys, **kwargs: Any) -> Table:
    """All the rows of both tables, matched where possible."""
    return join(left, right, on, how="full", **kwargs)


def semi_join(left: Table, right: Table, on: JoinKeys) -> Table:
    """Left rows that have at least one match, only the left columns."""
    return join(left, right, on, how="semi")


def anti_join(left: Table, right: Table, on: JoinKeys) -> Table:
    """Left rows that have no match, only the left columns."""
    return join(left, right, on, how="anti")


def _key_pairs(on: JoinKeys) -> list[tuple[str, str]]:
    if isinstance(on, str):
        on = [on]
    pairs = []
    for key in on:
        if isinstance(key, str):
            pairs.append((key, key))
        else:
            lk, rk = key
            pairs.append((lk, rk))
    if not pairs:
        raise ValueError("At least one join key is required")
    return pairs


def _key_tuples(table: Table, keys: list[str]) -> list[tuple | None]:
    """The key of each row, ``None`` when any of its components is missing."""
    columns = [table.column(k).to_pylist() for k in keys]
    return [
        None if any(v is None for v in values) else values
        for values in zip(*columns)
    ]


def _check_key_types(lname: str, lcol: pa.Array, rname: str, rcol: pa.Array) -> None:
    ltype = ColumnType.from_arrow(decode(lcol).type)
    rtype = ColumnType.from_arrow(decode(rcol).type)
    if ltype == rtype or ColumnType.NULL in (ltype, rtype):
        return
    if ltype.is_numeric and rtype.is_numeric:
        return
    raise SchemaMismatchError(
        f"Join keys '{lname}' ({ltype}) and '{rname}' ({rtype}) have incompatible types"
    )


def _resolve_names(
    left_names: list[str], right_names: list[str], suffixes: tuple[str, str] | None
) -> tuple[list[str], list[str]]:
    """Names of the output columns, applying suffixes to the conflicting ones."""
    conflicts = set(left_names) & set(right_names)
    if conflicts:
        if suffixes is None:
            raise ColumnConflictError(
                f"Columns {sorted(conflicts)} exist in both tables, provide suffixes to tell them apart"
            )
        left_suffix, right_suffix = suffixes
        left_names = [n + left_suffix if n in conflicts else n for n in left_names]
        right_names = [n + right_suffix if n in conflicts else n for n in right_names]
    check_unique_names(left_names + right_names)
    return left_names, right_names


def _merge_keys(left_values: pa.Array, right_values: pa.Array) -> pa.Array:
    """Keys of the output, left keys completed by right ones for right-only rows."""
    if right_values.null_count == len(right_values):
        return left_values
    lvalues, rvalues = decode(left_values), decode(right_values)
    if lvalues.type != rvalues.type:
        lvalues, rvalues = unify_types(lvalues, rvalues)
    merged = pc.coalesce(lvalues, rvalues)
    if pa.types.is_dictionary(left_values.type):
        levels = left_values.dictionary.to_pylist()
        levels += [lvl for lvl in pc.unique(merged.drop_null()).to_pylist() if lvl not in levels]
        return categorical(merged, levels, left_values.type.ordered)
    return merged


def _combine(
    left: Table,
    right: Table,
    pairs: list[tuple[str, str]],
    left_positions: list[int | None],
    right_positions: list[int | None],
    suffixes: tuple[str, str] | None,
) -> Table:
    """Put side by side the selected rows of the two tables."""
    left_rows = left.take(pa.array(left_positions, type=pa.int64()))
    right_rows = right.take(pa.array(right_positions, type=pa.int64()))

    key_map = dict(pairs)
    right_columns = [n for n in right.column_names if n not in key_map.values()]
    left_names, right_names = _resolve_names(left.column_names, right_columns, suffixes)

    arrays = []
    for name in left.column_names:
        values = left_rows.column(name)
        if name in key_map:
            values = _merge_keys(values, right_rows.column(key_map[name]))
        arrays.append(values)
    arrays.extend(right_rows.column(name) for name in right_columns)
    return Table(pa.Table.from_arrays(arrays, names=left_names + right_names))


def union(a: Table, b: Table) -> Table:
    """Stack the rows of ``b`` after the rows of ``a``.

    The two tables must have the same column names, in any order,
    and compatible types. Integers and floats are compatible and
    become floats, text and categorical columns are compatible and
    become text, columns with only missing values adopt the type
    of the other table.

    Duplicated rows are preserved, see :func:`distinct_union`.
    The columns follow the order of ``a``.
    """
    if set(a.column_names) != set(b.column_names):
        raise SchemaMismatchError(
            f"Tables have different columns: {a.column_names} and {b.column_names}"
        )

    arrays = []
    for name in a.column_names:
        try:
            first, second = unify_types(a.column(name), b.column(name))
        except SchemaMismatchError as err:
            raise SchemaMismatchError(f"Column '{name}': {err}") from None
        arrays.append(pa.concat_arrays([first, second]))
    return Table(pa.Table.from_arrays(arrays, names=a.column_names))


def distinct_union(a: Table, b: Table) -> Table:
    """Stack the rows of two tables, keeping only the distinct rows."""
    return deduplicate(union(a, b))


def concat_columns(a: Table, b: Table) -> Table:
    """Put the columns of ``b`` after the columns of ``a``.

    Rows are paired by position, it's up to the caller to ensure
    that row ``i`` of ``a`` refers to the same entity as row ``i`` of ``b``.
    Use :func:`join` to pair rows by their keys instead.
    """
    if a.num_rows != b.num_rows:
        raise ShapeMismatchError(
            f"Tables have a different number of rows: {a.num_rows} and {b.num_rows}"
        )
    names = a.column_names + b.column_names
    check_unique_names(names)
    arrays = [a.column(n) for n in a.column_names] + [b.column(n) for n in b.column_names]
    return Table(pa.Table.from_arrays(arrays, names=names))
