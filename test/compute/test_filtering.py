import pyarrow as pa
import pyarrow.compute as pc
import pytest

from tidyground.compute import FunctionCallExpression, col, lit, or_
from tidyground.compute.base import Expression
from tidyground.compute.filtering import filter
from tidyground.errors import ExpressionError, KeyNotFoundError
from tidyground.table import Table, categorical


@pytest.fixture
def people():
    return Table.from_pydict(
        {
            "name": ["Joe", "Anna", "Jonas", "Eva"],
            "age": [17, 30, None, 60],
            "city": categorical(["Rome", "Paris", "Rome", "Milan"]),
        }
    )


def test_filter_string_predicate(people):
    result = filter(people, "age >= 18")
    assert result.column("name").to_pylist() == ["Anna", "Eva"]


def test_filter_expression_predicate(people):
    result = filter(people, FunctionCallExpression(pc.less, col("age"), lit(20)))
    assert result.column("name").to_pylist() == ["Joe"]


def test_filter_callable_predicate(people):
    result = filter(people, lambda row: row["name"].startswith("J"))
    assert result.column("name").to_pylist() == ["Joe", "Jonas"]


def test_filter_missing_is_dropped(people):
    assert filter(people, "age < 100").num_rows == 3
    assert filter(people, "NOT age < 100").num_rows == 0


def test_filter_and_binds_tighter_than_or(people):
    # Equivalent to: city = 'Paris' OR (city = 'Milan' AND age > 70)
    result = filter(people, "city = 'Paris' OR city = 'Milan' AND age > 70")
    assert result.column("name").to_pylist() == ["Anna"]

    result = filter(people, "(city = 'Paris' OR city = 'Milan') AND age > 50")
    assert result.column("name").to_pylist() == ["Eva"]


def test_filter_short_circuit_skips_decided_rows():
    class FailsOnZero(Expression):
        def apply(self, data):
            values = data.column("value").to_pylist()
            if 0 in values:
                raise ZeroDivisionError("division by zero")
            return pa.array([100 / v > 10 for v in values])

        def __str__(self):
            return "FailsOnZero"

    table = Table.from_pydict({"value": [0, 5, 20, 0]})
    is_zero = FunctionCallExpression(pc.equal, col("value"), lit(0))

    result = filter(table, or_(is_zero, FailsOnZero()))
    assert result.column("value").to_pylist() == [0, 5, 0]


def test_filter_keeps_order_and_columns(people):
    result = filter(people, "city = 'Rome'")
    assert result.column_names == people.column_names
    assert result.column("name").to_pylist() == ["Joe", "Jonas"]
    assert result.levels("city") == ["Rome", "Paris", "Milan"]


def test_filter_scalar_predicate(people):
    assert filter(people, "TRUE").num_rows == 4
    assert filter(people, "FALSE").num_rows == 0


def test_filter_errors(people):
    with pytest.raises(KeyNotFoundError):
        filter(people, "country = 'Italy'")
    with pytest.raises(ExpressionError):
        filter(people, "age + 1")
    with pytest.raises(ExpressionError):
        filter(people, "age >")
