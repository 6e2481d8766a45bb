"""The TidyGround data wrangling operations.

Operations are plain functions that take one or more
:class:`tidyground.table.Table` and return a new Table,
the input tables are never modified.

The data of the tables is stored in Apache Arrow arrays,
thus operations are implemented on top of :mod:`pyarrow.compute`
wherever possible, and fall back to Python only to express
the parts of the algorithms that Arrow has no kernel for.

As every operation returns a Table, they can be chained
to build data wrangling pipelines like::

    (Table)-->coerce--(Table)-->replace_dummy--(Table)-->join--(Table)-->...

See :class:`tidyground.pipeline.Pipeline` to name
and compose those chains.

>>> from tidyground.table import Table
>>> data = Table.from_pydict({
...    "animals": ["Flamingo", "Horse", "Brittle stars", "Centipede"],
...    "n_legs": [2, 4, 5, 100]
... })
>>>
>>> import pyarrow.compute as pc
>>> from tidyground.compute import col, filter, FunctionCallExpression
>>> # Keep the rows where n_legs >= 5
>>> filter(data, FunctionCallExpression(pc.greater_equal, col("n_legs"), 5)).to_pydict()
{'animals': ['Brittle stars', 'Centipede'], 'n_legs': [5, 100]}
>>> # The same, with the expression language
>>> filter(data, "n_legs >= 5").to_pydict()
{'animals': ['Brittle stars', 'Centipede'], 'n_legs': [5, 100]}
"""

from .aggregate import Aggregation, Count, Max, Mean, Min, StdDev, Sum, aggregate
from .base import ColumnRef, Expression, Literal, col, lit
from .cleaning import (
    deduplicate,
    fill_missing,
    normalize_strings,
    rename_columns,
    replace_dummy,
    replace_dummy_table,
)
from .coercion import CoercionOptions, CoercionResult, coerce, coerce_table
from .expressions import (
    ConjunctionExpression,
    FunctionCallExpression,
    and_,
    contains,
    is_in,
    is_missing,
    matches,
    not_,
    or_,
)
from .filtering import filter
from .join import (
    anti_join,
    concat_columns,
    distinct_union,
    full_join,
    inner_join,
    join,
    left_join,
    right_join,
    semi_join,
    union,
)
from .reshape import cast, melt
from .selection import (
    Selector,
    contains_text,
    derive,
    everything,
    exclude,
    matches_name,
    names,
    select,
    starts_with,
)
from .sorting import sort

__all__ = (
    "Expression",
    "ColumnRef",
    "Literal",
    "col",
    "lit",
    "FunctionCallExpression",
    "ConjunctionExpression",
    "and_",
    "or_",
    "not_",
    "contains",
    "matches",
    "is_missing",
    "is_in",
    "CoercionOptions",
    "CoercionResult",
    "coerce",
    "coerce_table",
    "replace_dummy",
    "replace_dummy_table",
    "deduplicate",
    "rename_columns",
    "normalize_strings",
    "fill_missing",
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
    "filter",
    "select",
    "derive",
    "Selector",
    "names",
    "starts_with",
    "contains_text",
    "matches_name",
    "everything",
    "exclude",
    "sort",
    "aggregate",
    "Aggregation",
    "Sum",
    "Min",
    "Max",
    "Count",
    "Mean",
    "StdDev",
    "melt",
    "cast",
)
