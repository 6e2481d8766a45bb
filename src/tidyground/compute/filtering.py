"""Filtering of rows.

A common request when wrangling data is to keep
only the rows that respect a specific condition,
like the ``WHERE`` condition in SQL queries.

The condition is a predicate that can be provided in three forms:

* An :class:`tidyground.compute.expressions.Expression` that returns
  ``true`` or ``false`` for each row.
* A string in the expression language, like ``"age >= 18 AND city = 'Rome'"``,
  see :mod:`tidyground.expr`.
* A Python callable that receives each row as a ``{column_name: value}``
  dictionary and returns ``True`` to keep it.

>>> from tidyground.table import Table
>>> table = Table.from_pydict({"values": [1, 2, 3, 4, 5]})
>>> filter(table, "values > 3").column("values").to_pylist()
[4, 5]
>>> filter(table, lambda row: row["values"] % 2 == 0).column("values").to_pylist()
[2, 4]
"""

import logging
from typing import Any, Callable

from ..table import Table
from .expressions import Expression, as_mask

logger = logging.getLogger(__name__)

__all__ = ("filter",)

Predicate = Expression | str | Callable[[dict[str, Any]], bool]


def filter(table: Table, predicate: Predicate) -> Table:
    """Keep only the rows for which the predicate is true.

    Rows where the predicate is false or missing are dropped,
    the surviving rows keep their original order.

    :param table: The table to filter.
    :param predicate: An expression, an expression string or a callable on rows.
    """
    if not isinstance(predicate, (Expression, str)):
        result = table.filter_rows(predicate)
    else:
        # Imported here as the expression language depends on the compute package.
        from ..expr.compiler import ensure_expression

        expression = ensure_expression(predicate)
        data = table.to_arrow()
        mask = as_mask(expression.apply(data), data.num_rows)
        result = Table(data.filter(mask, null_selection_behavior="drop"))

    logger.debug("Filtered %d rows to %d", table.num_rows, result.num_rows)
    return result
