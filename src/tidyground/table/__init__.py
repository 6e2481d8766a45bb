"""In-memory tables and columns.

A :class:`Table` is an ordered set of uniquely named
columns, all with the same number of values.
Each column has one of the types listed by :class:`ColumnType`
and every value is either a valid value for that type
or missing (an Arrow ``null``).

Missing values are never represented by placeholders like
``-99`` or ``"N/A"``, those are cleaned up by
:func:`tidyground.compute.cleaning.replace_dummy` or
by the coercion options of :func:`tidyground.compute.coercion.coerce`.
"""

from .columns import as_ordered, categorical, decode, set_levels, to_array, unify_types
from .table import Table
from .types import ColumnType

__all__ = (
    "Table",
    "ColumnType",
    "categorical",
    "set_levels",
    "as_ordered",
    "decode",
    "to_array",
    "unify_types",
)
