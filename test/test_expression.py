import datetime

import pyarrow as pa
import pyarrow.compute as pc
import pytest

from tidyground.compute.base import ColumnRef, Expression, lit
from tidyground.compute.expressions import (
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
from tidyground.errors import ExpressionError, KeyNotFoundError
from tidyground.table import categorical


@pytest.fixture
def sample_data():
    return pa.table(
        {"numbers": pa.array([1, 2, 3, 4, 5]), "letters": pa.array(["a", "b", "c", "d", "e"])}
    )


class RecordingExpression(Expression):
    """Records the values it was applied to."""

    def __init__(self, column):
        self.column = column
        self.seen = []

    def apply(self, data):
        values = data.column(self.column)
        self.seen.append(values.to_pylist())
        return pc.greater(values, 1)

    def __str__(self):
        return f"Recording({self.column})"


def test_function_call_expression_init():
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), 1)
    assert expr.func == pc.add
    assert len(expr.args) == 2
    assert isinstance(expr.args[0], ColumnRef)
    assert expr.args[1] == 1


def test_function_call_expression_str():
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), 1)
    assert str(expr) == "pyarrow.compute.add(ColumnRef(numbers),1)"


def test_function_call_expression_str_with_options():
    expr = contains(ColumnRef("letters"), "a")
    assert str(expr) == (
        "pyarrow.compute.match_substring(ColumnRef(letters),pattern='a',ignore_case=False)"
    )


def test_function_call_expression_apply_nested(sample_data):
    inner_expr = FunctionCallExpression(pc.multiply, ColumnRef("numbers"), 2)
    outer_expr = FunctionCallExpression(pc.add, inner_expr, 1)
    result = outer_expr.apply(sample_data)
    assert result.to_pylist() == [3, 5, 7, 9, 11]


def test_function_call_expression_apply_multiple_args(sample_data):
    expr = FunctionCallExpression(
        pc.if_else,
        FunctionCallExpression(pc.greater, ColumnRef("numbers"), 3),
        ColumnRef("letters"),
        "x",
    )
    assert expr.apply(sample_data).to_pylist() == ["x", "x", "x", "d", "e"]


def test_function_call_expression_apply_null_handling():
    data = pa.table({"numbers": pa.array([1, None, 3])})
    expr = FunctionCallExpression(pc.add, ColumnRef("numbers"), lit(1))
    assert expr.apply(data).to_pylist() == [2, None, 4]


def test_function_call_expression_apply_invalid_column(sample_data):
    expr = FunctionCallExpression(pc.add, ColumnRef("non_existent"), 1)
    with pytest.raises(KeyError):
        expr.apply(sample_data)
    with pytest.raises(KeyNotFoundError):
        expr.apply(sample_data)


def test_function_call_expression_apply_type_mismatch(sample_data):
    expr = FunctionCallExpression(pc.add, ColumnRef("letters"), 1)
    with pytest.raises(pa.ArrowNotImplementedError):
        expr.apply(sample_data)


def test_categorical_columns_are_compared_by_label():
    data = pa.table({"size": categorical(["low", "high", "low"])})
    expr = FunctionCallExpression(pc.equal, ColumnRef("size"), "low")
    assert expr.apply(data).to_pylist() == [True, False, True]


def test_text_compared_with_dates():
    data = pa.table(
        {"day": pa.array([datetime.date(2019, 12, 31), datetime.date(2020, 3, 1)])}
    )
    expr = FunctionCallExpression(pc.greater, ColumnRef("day"), "2020-01-01")
    assert expr.apply(data).to_pylist() == [False, True]


def test_and_short_circuits():
    data = pa.table({"x": [0, 1, 2, 3]})
    right = RecordingExpression("x")
    expr = and_(FunctionCallExpression(pc.greater_equal, ColumnRef("x"), 2), right)
    assert expr.apply(data).to_pylist() == [False, False, True, True]
    assert right.seen == [[2, 3]]


def test_or_short_circuits():
    data = pa.table({"x": [0, 1, 2, 3]})
    right = RecordingExpression("x")
    expr = or_(FunctionCallExpression(pc.greater_equal, ColumnRef("x"), 2), right)
    assert expr.apply(data).to_pylist() == [False, False, True, True]
    assert right.seen == [[0, 1]]


def test_right_operand_skipped_when_decided():
    data = pa.table({"x": [0, 1]})
    right = RecordingExpression("x")
    expr = and_(FunctionCallExpression(pc.greater, ColumnRef("x"), 5), right)
    assert expr.apply(data).to_pylist() == [False, False]
    assert right.seen == []


def test_three_valued_logic():
    data = pa.table(
        {
            "a": pa.array([True, None, False, None], type=pa.bool_()),
            "b": pa.array([None, False, True, True], type=pa.bool_()),
        }
    )
    assert and_(ColumnRef("a"), ColumnRef("b")).apply(data).to_pylist() == [
        None,
        False,
        False,
        None,
    ]
    assert or_(ColumnRef("a"), ColumnRef("b")).apply(data).to_pylist() == [
        True,
        None,
        True,
        True,
    ]
    assert not_(ColumnRef("a")).apply(data).to_pylist() == [False, None, True, None]


def test_conjunction_requires_booleans(sample_data):
    expr = and_(ColumnRef("numbers"), ColumnRef("numbers"))
    with pytest.raises(ExpressionError):
        expr.apply(sample_data)


def test_conjunction_unsupported_operator():
    with pytest.raises(ValueError):
        ConjunctionExpression("XOR", ColumnRef("a"), ColumnRef("b"))


def test_conjunction_str():
    expr = or_(ColumnRef("a"), ColumnRef("b"), ColumnRef("c"))
    assert str(expr) == "((ColumnRef(a) OR ColumnRef(b)) OR ColumnRef(c))"


def test_pattern_helpers(sample_data):
    data = pa.table({"name": ["Joe", "Anna", None, "jonas"]})
    assert contains(ColumnRef("name"), "Jo").apply(data).to_pylist() == [
        True,
        False,
        None,
        False,
    ]
    assert contains(ColumnRef("name"), "jo", ignore_case=True).apply(data).to_pylist() == [
        True,
        False,
        None,
        True,
    ]
    assert matches(ColumnRef("name"), "^[A-Z]n").apply(data).to_pylist() == [
        False,
        True,
        None,
        False,
    ]
    assert is_missing(ColumnRef("name")).apply(data).to_pylist() == [
        False,
        False,
        True,
        False,
    ]


def test_is_in(sample_data):
    expr = is_in(ColumnRef("letters"), ["a", "e"])
    assert expr.apply(sample_data).to_pylist() == [True, False, False, False, True]
