"""Loading and saving tables as CSV files.

Messy data usually arrives as text, so :func:`read_csv`
doesn't try to guess the types of the columns: every column
is loaded as raw strings, unless a type is provided for it.
Columns with a type go through :func:`tidyground.compute.coercion.coerce`,
which means that they accept thousands separators, month names
and all the other formats handled by the coercion options.

Empty fields are loaded as missing values, and missing
values are saved as empty fields by :func:`write_csv`.
"""

import io
import logging
import os
from typing import Any, BinaryIO, Mapping

import pyarrow as pa
import pyarrow.csv

from .compute.coercion import CoercionOptions, coerce_table
from .table import ColumnType, Table, decode

logger = logging.getLogger(__name__)

__all__ = ("read_csv", "write_csv", "read_csv_string", "to_csv_string")

Source = str | os.PathLike | BinaryIO


def read_csv(
    source: Source,
    *,
    header: bool = True,
    delimiter: str = ",",
    encoding: str = "utf8",
    column_types: Mapping[str, ColumnType | str] | None = None,
    options: CoercionOptions | None = None,
) -> Table:
    """Load a table from a CSV file.

    :param source: The path of the file, or a binary file object.
    :param header: If the first line contains the column names,
                   otherwise columns are named ``f0``, ``f1``, ...
    :param delimiter: The character that separates fields.
    :param encoding: The text encoding of the file.
    :param column_types: The types of the columns that should not stay strings.
    :param options: How the typed columns are converted, strict by default.
    """
    if isinstance(source, (str, os.PathLike)):
        source = os.fspath(source)
    else:
        # The file is read twice, first for the names of the columns.
        data = source.read()
        if isinstance(data, str):
            data = data.encode(encoding)
        source = pa.py_buffer(data)

    read_options = pa.csv.ReadOptions(
        encoding=encoding, autogenerate_column_names=not header
    )
    parse_options = pa.csv.ParseOptions(delimiter=delimiter)
    with pa.csv.open_csv(
        _open(source), read_options=read_options, parse_options=parse_options
    ) as reader:
        names = reader.schema.names

    convert_options = pa.csv.ConvertOptions(
        column_types={name: pa.string() for name in names},
        null_values=[""],
        strings_can_be_null=True,
    )
    data = pa.csv.read_csv(
        _open(source),
        read_options=read_options,
        parse_options=parse_options,
        convert_options=convert_options,
    )
    table = Table(data)
    logger.debug("Loaded %d rows and %d columns", table.num_rows, table.num_columns)

    if column_types:
        table, _ = coerce_table(table, column_types, options)
    return table


def write_csv(table: Table, sink: str | os.PathLike | BinaryIO, delimiter: str = ",") -> None:
    """Save a table to a CSV file, with a header line.

    Categorical columns are saved as their labels,
    missing values are saved as empty fields.
    """
    data = table.to_arrow()
    data = pa.Table.from_arrays(
        [decode(data.column(name).combine_chunks()) for name in data.column_names],
        names=data.column_names,
    )
    if isinstance(sink, os.PathLike):
        sink = os.fspath(sink)
    pa.csv.write_csv(data, sink, write_options=pa.csv.WriteOptions(delimiter=delimiter))
    logger.debug("Saved %d rows", table.num_rows)


def to_csv_string(table: Table) -> str:
    """The content of the CSV file :func:`write_csv` would save."""
    sink = io.BytesIO()
    write_csv(table, sink)
    return sink.getvalue().decode("utf8")


def read_csv_string(text: str, **kwargs: Any) -> Table:
    """Load a table from the content of a CSV file, see :func:`read_csv`."""
    return read_csv(io.BytesIO(text.encode("utf8")), **kwargs)


def _open(source: str | pa.Buffer) -> Any:
    if isinstance(source, pa.Buffer):
        return pa.BufferReader(source)
    return source
