"""Base classes and interfaces for expressions.

Expressions describe a computation over the columns of
a table, like ``Verbal + Nonverbal`` or ``age >= 18``.
They are used by :func:`tidyground.compute.filtering.filter`
to decide which rows to keep and by
:func:`tidyground.compute.selection.derive` to compute new columns.
"""

import abc
from typing import Any

import pyarrow as pa

from ..errors import KeyNotFoundError
from ..table.columns import to_array


class Expression(abc.ABC):
    """Expression to apply to the data of a table.

    As the data is stored by column, applying an expression
    always results in a new column, thus in a
    :class:`pyarrow.Array` that contains one value per row.
    Expressions that don't depend on the data, like literals,
    can return a :class:`pyarrow.Scalar` instead.

    Suppose we want to implement a ``SumExpression`` class
    it might look like::

        class SumExpression(Expression):
            def __init__(self, lcol, rcol):
                self.lcol = lcol  # left column name
                self.rcol = rcol  # right column name

            def apply(self, data):
                return pyarrow.compute.add(
                    data[self.lcol],
                    data[self.rcol]
                )

            def __str__(self):
                return f"Sum({self.lcol}, {self.rcol})"
    """

    @abc.abstractmethod
    def apply(self, data: pa.Table) -> pa.Array | pa.Scalar:
        """Apply the expression to the data of a table."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...

    def __repr__(self) -> str:
        return str(self)


class ColumnRef(Expression):
    """References a column of a table.

    When applied to the data of a table returns the values of that column.
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, data: pa.Table) -> pa.Array:
        """Get the data for the column."""
        if self.name not in data.column_names:
            raise KeyNotFoundError(self.name, data.column_names)
        return to_array(data.column(self.name))

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Literals are returned as :class:`pyarrow.Scalar`,
    compute functions will broadcast them to the length
    of the other arguments.
    """

    def __init__(self, value: Any) -> None:
        """
        :param value: A python value or a pyarrow.Scalar
        """
        if not isinstance(value, pa.Scalar):
            value = pa.scalar(value)
        self.value = value

    def apply(self, data: pa.Table) -> pa.Scalar:
        return self.value

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


col = ColumnRef
lit = Literal
