"""Format tabular data into a text table for print.

The `tabulate` function takes a :class:`pyarrow.Table` and formats it into a text table.
It truncates long strings, formats floats to 2 decimal places, shows missing
values as ``NA`` and limits the number of rows to display.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "id": [1, 2, 3],
    ...     "Verbal": [98.5, None, 102.25],
    ...     "city": ["Rome", "Paris", None],
    ... }
    >>> print(tabulate(pa.table(data)))
    id | Verbal | city
    -- | ------ | -----
    1  | 98.50  | Rome
    2  | NA     | Paris
    3  | 102.25 | NA
"""

import datetime
from typing import Any

import pyarrow as pa

MISSING = "NA"


def tabulate(table: pa.Table | pa.RecordBatch, max_rows: int = 20) -> str:
    """Format a Table into a text table."""
    cols = table.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in table.slice(0, max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    text = "\n".join(header + separator + textrows)
    if table.num_rows > max_rows:
        text += f"\n... and {table.num_rows - max_rows} more rows"
    return text


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip(" ")


def format_value(v: Any) -> str:
    """Format a value to be printed in the table."""
    if v is None:
        return MISSING
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"
    elif isinstance(v, (datetime.date, datetime.datetime)):
        return v.isoformat()

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
