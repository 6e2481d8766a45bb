"""The Table object itself."""

from typing import Any, Callable, Iterable, Iterator, Mapping, Self

import pyarrow as pa

from ..errors import ColumnConflictError, KeyNotFoundError, ShapeMismatchError
from ..utils import tabulate
from .columns import categorical, to_array
from .types import ColumnType


class Table:
    """Data structure that holds data in named columns.

    The Table wraps a :class:`pyarrow.Table` and behaves
    like an immutable value: none of its methods modify it,
    each transformation returns a new Table.
    That makes it safe to share the same Table between multiple
    pipelines, and to keep around intermediate results.

    >>> table = Table.from_pydict({"id": [1, 2], "city": ["Rome", "Paris"]})
    >>> table.column_names
    ['id', 'city']
    >>> table.with_column("size", [3, 4]).column_names
    ['id', 'city', 'size']
    >>> table.column_names
    ['id', 'city']
    """

    def __init__(self, data: "pa.Table | pa.RecordBatch | Table") -> None:
        """
        :param data: The Arrow data for the table.
        """
        if isinstance(data, Table):
            data = data.to_arrow()
        if isinstance(data, pa.RecordBatch):
            data = pa.Table.from_batches([data])
        if not isinstance(data, pa.Table):
            raise ValueError("Invalid input, expected a pyarrow Table or RecordBatch")

        check_unique_names(data.column_names)

        # Keep a single chunk per column, this makes positional
        # access to the columns straightforward for all operations.
        self._data = data.unify_dictionaries().combine_chunks()

    @classmethod
    def from_arrow(cls, data: pa.Table | pa.RecordBatch) -> Self:
        """Create a Table from pyarrow data."""
        return cls(data)

    @classmethod
    def from_pydict(
        cls,
        mapping: Mapping[str, Any],
        types: Mapping[str, ColumnType | str] | None = None,
    ) -> Self:
        """Create a Table from a dictionary of ``{column_name: values}``.

        :param mapping: The columns of the table, as lists or Arrow arrays.
        :param types: Optionally the type of some of the columns,
                      columns without a type get the one inferred by Arrow.
        """
        types = {name: ColumnType.parse(t) for name, t in (types or {}).items()}
        for name in types:
            if name not in mapping:
                raise KeyNotFoundError(name, list(mapping))

        arrays = []
        for name, values in mapping.items():
            coltype = types.get(name)
            if coltype is ColumnType.CATEGORICAL:
                arrays.append(categorical(to_array(values)))
            elif coltype is not None:
                arrays.append(to_array(values, type=coltype.to_arrow()))
            else:
                arrays.append(to_array(values))

        lengths = {len(a) for a in arrays}
        if len(lengths) > 1:
            raise ShapeMismatchError(
                f"All columns must have the same length, got {sorted(lengths)}"
            )
        return cls(pa.Table.from_arrays(arrays, names=list(mapping)))

    @classmethod
    def from_pylist(
        cls,
        rows: Iterable[Mapping[str, Any]],
        types: Mapping[str, ColumnType | str] | None = None,
    ) -> Self:
        """Create a Table from a list of rows in the form ``{column_name: value}``.

        Columns are discovered in order of appearance,
        rows that lack a column get a missing value for it.
        """
        rows = list(rows)
        names: dict[str, None] = {}
        for row in rows:
            names.update(dict.fromkeys(row))
        return cls.from_pydict(
            {name: [row.get(name) for row in rows] for name in names}, types=types
        )

    @property
    def column_names(self) -> list[str]:
        """Names of the columns, in order."""
        return self._data.column_names

    @property
    def num_rows(self) -> int:
        """How many rows the table has."""
        return self._data.num_rows

    @property
    def num_columns(self) -> int:
        return self._data.num_columns

    @property
    def schema(self) -> pa.Schema:
        return self._data.schema

    def __len__(self) -> int:
        return self.num_rows

    def __contains__(self, name: str) -> bool:
        return name in self._data.column_names

    def check_columns(self, names: Iterable[str]) -> None:
        """Ensure that all the ``names`` are columns of the table."""
        for name in names:
            if name not in self._data.column_names:
                raise KeyNotFoundError(name, self.column_names)

    def column(self, name: str) -> pa.Array:
        """Get the data of a column."""
        self.check_columns([name])
        return to_array(self._data.column(name))

    def column_type(self, name: str) -> ColumnType:
        """The logical type of a column."""
        self.check_columns([name])
        return ColumnType.from_arrow(self._data.schema.field(name).type)

    def levels(self, name: str) -> list[str] | None:
        """The levels of a categorical column, ``None`` for other columns."""
        column = self.column(name)
        if pa.types.is_dictionary(column.type):
            return column.dictionary.to_pylist()
        return None

    def with_column(self, name: str, values: Any) -> Self:
        """Add a new column or replace an existing one.

        :param name: The name of the column, if it already exists it gets replaced.
        :param values: The data of the column, must have one value per row.
        """
        values = to_array(values)
        if len(values) != self.num_rows:
            raise ShapeMismatchError(
                f"Column '{name}' has {len(values)} values, but table has {self.num_rows} rows"
            )

        if name in self._data.column_names:
            index = self._data.column_names.index(name)
            return self.__class__(self._data.set_column(index, name, values))
        return self.__class__(self._data.append_column(name, values))

    def select_columns(self, predicate: Callable[[str], bool]) -> Self:
        """Keep only the columns whose name satisfies the predicate."""
        return self.__class__(
            self._data.select([name for name in self.column_names if predicate(name)])
        )

    def filter_rows(self, predicate: Callable[[dict[str, Any]], bool]) -> Self:
        """Keep only the rows that satisfy the predicate.

        The predicate is invoked once per row, in order,
        and receives the row as a ``{column_name: value}`` dictionary.
        """
        mask = pa.array([bool(predicate(row)) for row in self.rows()], type=pa.bool_())
        return self.__class__(self._data.filter(mask))

    def rename_columns(self, mapping: Mapping[str, str]) -> Self:
        """Rename columns according to a ``{old_name: new_name}`` mapping."""
        self.check_columns(mapping)
        names = [mapping.get(name, name) for name in self.column_names]
        check_unique_names(names)
        return self.__class__(self._data.rename_columns(names))

    def drop_columns(self, names: Iterable[str]) -> Self:
        """Remove some of the columns."""
        names = set(names)
        self.check_columns(names)
        return self.select_columns(lambda name: name not in names)

    def take(self, indices: Any) -> Self:
        """Take rows by position, a missing index gives a row of missing values."""
        return self.__class__(self._data.take(to_array(indices, type=pa.int64())))

    def slice(self, offset: int = 0, length: int | None = None) -> Self:
        return self.__class__(self._data.slice(offset, length))

    def head(self, n: int = 5) -> Self:
        return self.slice(0, n)

    def rows(self) -> Iterator[dict[str, Any]]:
        """Iterate over the rows as ``{column_name: value}`` dictionaries."""
        yield from self._data.to_pylist()

    def to_arrow(self) -> pa.Table:
        """The data of the table as a pyarrow.Table"""
        return self._data

    def to_pylist(self) -> list[dict[str, Any]]:
        return self._data.to_pylist()

    def to_pydict(self) -> dict[str, list[Any]]:
        return self._data.to_pydict()

    def equals(self, other: "Table") -> bool:
        """Check if two tables have the same columns, types and values."""
        return self._data.equals(other.to_arrow())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Table(columns={self.column_names}, rows={self.num_rows})"

    def __str__(self) -> str:
        return tabulate.tabulate(self._data)


def check_unique_names(names: Iterable[str]) -> None:
    """Fail when the same column name appears more than once."""
    seen = set()
    for name in names:
        if name in seen:
            raise ColumnConflictError(f"Duplicate column name: '{name}'")
        seen.add(name)
