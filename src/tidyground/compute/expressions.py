"""Expressions evaluated over the columns of a table.

Filtering needs a ``predicate``, an expression that
returns ``true`` or ``false`` for each row of the table.
Deriving columns needs an expression that computes the
values of the new column, for example ``Verbal + Nonverbal``.

Most expressions are just calls to :mod:`pyarrow.compute`
functions over columns and literals, which is what
:class:`FunctionCallExpression` does.
Logical conjunctions get their own :class:`ConjunctionExpression`
because they evaluate their operands left to right and skip
the right operand for the rows that the left operand already decided:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> data = pa.table({"age": [15, 30, 45], "city": ["Rome", "Rome", "Paris"]})
>>> adult = FunctionCallExpression(pc.greater_equal, col("age"), 18)
>>> roman = FunctionCallExpression(pc.equal, col("city"), "Rome")
>>> and_(adult, roman).apply(data).to_pylist()
[False, True, False]

Missing values follow three valued logic, ``missing AND false`` is ``false``
while ``missing AND true`` is missing.
"""

import functools
from typing import Any, Callable, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from ..errors import ExpressionError
from ..table.columns import decode
from .base import ColumnRef, Expression, Literal, col, lit

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
)


def apply_expression_if_needed(data: pa.Table, o: Any) -> Any:
    """Invoke apply on expressions when needed.

    If the provided object is an Expression,
    it will be applied to the target data.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.
    """
    if isinstance(o, Expression):
        o = o.apply(data)
    return o


def align_arguments(args: tuple[Any, ...]) -> tuple[Any, ...]:
    """Prepare arguments for a compute function.

    Categorical columns are decoded to their labels, as most
    compute functions don't support dictionary arrays, and text literals
    compared with dates or timestamps are parsed to the same type.
    """
    args = tuple(decode(a) if isinstance(a, pa.Array) else a for a in args)
    temporal = [
        a.type
        for a in args
        if isinstance(a, pa.Array)
        and (pa.types.is_date(a.type) or pa.types.is_timestamp(a.type))
    ]
    if not temporal:
        return args

    def _align(a: Any) -> Any:
        if isinstance(a, str):
            a = pa.scalar(a)
        if isinstance(a, pa.Scalar) and pa.types.is_string(a.type):
            # Text is parsed as a timestamp first, which also accepts plain dates.
            return a.cast(pa.timestamp("us")).cast(temporal[0])
        return a

    return tuple(_align(a) for a in args)


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to sum two columns this would be used as::

        FunctionCallExpression(pyarrow.compute.add, ColumnRef("A"), ColumnRef("B"))

    Keyword arguments are forwarded as they are, which allows
    to provide the options of the compute function::

        FunctionCallExpression(pyarrow.compute.match_substring, ColumnRef("name"), pattern="Jo")
    """

    def __init__(self, func: Callable, *args: Any, **kwargs: Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param args: The arguments for the function.
        :param kwargs: Options of the function that don't depend on the data.
        """
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        args = [str(arg) for arg in self.args]
        args += [f"{k}={v!r}" for k, v in self.kwargs.items()]
        return f"{func_qualname}({','.join(args)})"

    def apply(self, data: pa.Table) -> pa.Array | pa.Scalar:
        """Invoke the function resolving all arguments on the data.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided data
        and the resulting values will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(data, arg) for arg in self.args)
        return self.func(*align_arguments(args), **self.kwargs)


class ConjunctionExpression(Expression):
    """Combine two boolean expressions with ``AND`` or ``OR``.

    Evaluation is left to right and short circuits:
    the right operand is only evaluated on the rows
    whose result is not already decided by the left one.
    For ``AND`` those are the rows where the left side
    is true or missing, for ``OR`` the rows where
    it is false or missing.

    This means that a right operand that would fail for
    some rows, is never evaluated on the rows that
    the left operand already excluded.
    """

    OPERATORS = {"AND": pc.and_kleene, "OR": pc.or_kleene}

    def __init__(self, op: str, left: Expression, right: Expression) -> None:
        """
        :param op: ``"AND"`` or ``"OR"``.
        :param left: The expression evaluated first.
        :param right: The expression evaluated on the undecided rows.
        """
        op = op.upper()
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported conjunction: {op}")
        self.op = op
        self.left = left
        self.right = right

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"

    def apply(self, data: pa.Table) -> pa.Array:
        left = as_mask(apply_expression_if_needed(data, self.left), data.num_rows)
        if self.op == "AND":
            pending = pc.fill_null(left, True)
        else:
            pending = pc.invert(pc.fill_null(left, False))

        pending_count = pc.sum(pc.cast(pending, pa.int64())).as_py() or 0
        if pending_count == 0:
            return left

        right = as_mask(
            apply_expression_if_needed(data.filter(pending), self.right), pending_count
        )
        # Spread the results back to their rows, rows that were
        # not evaluated only depend on the left side.
        right = pc.replace_with_mask(pa.nulls(len(left), pa.bool_()), pending, right)
        combined = self.OPERATORS[self.op](left, right)
        return pc.if_else(pending, combined, left)


def as_mask(value: Any, length: int) -> pa.Array:
    """Convert the result of a predicate to a boolean array of ``length`` values."""
    if isinstance(value, pa.ChunkedArray):
        value = value.combine_chunks()
    if isinstance(value, (bool, type(None))):
        value = pa.scalar(value, type=pa.bool_())
    if isinstance(value, pa.Scalar):
        if not (pa.types.is_boolean(value.type) or pa.types.is_null(value.type)):
            raise ExpressionError(f"Predicate must be boolean, got {value.type}")
        return pa.array([value.as_py()] * length, type=pa.bool_())
    if pa.types.is_null(value.type):
        return pa.nulls(len(value), pa.bool_())
    if not pa.types.is_boolean(value.type):
        raise ExpressionError(f"Predicate must be boolean, got {value.type}")
    return value


def and_(*exprs: Expression) -> Expression:
    """All the expressions are true, evaluated left to right."""
    return functools.reduce(
        lambda left, right: ConjunctionExpression("AND", left, right), exprs
    )


def or_(*exprs: Expression) -> Expression:
    """Any of the expressions is true, evaluated left to right."""
    return functools.reduce(
        lambda left, right: ConjunctionExpression("OR", left, right), exprs
    )


def not_(expr: Expression) -> Expression:
    """Negate a boolean expression, missing stays missing."""
    return FunctionCallExpression(pc.invert, expr)


def contains(expr: Expression, text: str, ignore_case: bool = False) -> Expression:
    """True when the text values of the expression contain ``text``."""
    return FunctionCallExpression(
        pc.match_substring, expr, pattern=text, ignore_case=ignore_case
    )


def matches(expr: Expression, regex: str, ignore_case: bool = False) -> Expression:
    """True when the regular expression matches somewhere in the text values."""
    return FunctionCallExpression(
        pc.match_substring_regex, expr, pattern=regex, ignore_case=ignore_case
    )


def is_missing(expr: Expression) -> Expression:
    """True for the missing values."""
    return FunctionCallExpression(pc.is_null, expr)


def is_in(expr: Expression, values: Iterable[Any]) -> Expression:
    """True when the value is one of ``values``."""
    return FunctionCallExpression(pc.is_in, expr, value_set=pa.array(list(values)))
