import pyarrow as pa
import pytest

from tidyground.compute.expressions import ConjunctionExpression, FunctionCallExpression
from tidyground.errors import ExpressionError
from tidyground.expr import ensure_expression, parse_expression
from tidyground.table import categorical


@pytest.fixture
def people():
    return pa.table(
        {
            "name": ["Joe", "anna", "Jonas", None],
            "age": [17, 30, 45, 60],
            "city": categorical(["Rome", "Paris", "Rome", "Milan"]),
            "Verbal": [100, 120, 90, None],
            "Nonverbal": [80, 100, 95, 70],
        }
    )


def test_compile_comparison_str():
    expr = parse_expression("Verbal + Nonverbal > 200")
    assert isinstance(expr, FunctionCallExpression)
    assert str(expr) == (
        "pyarrow.compute.greater(pyarrow.compute.add(ColumnRef(Verbal),ColumnRef(Nonverbal)),"
        "Literal(<pyarrow.Int64Scalar: 200>))"
    )


def test_compile_conjunction():
    expr = parse_expression("age > 18 AND city = 'Rome'")
    assert isinstance(expr, ConjunctionExpression)
    assert expr.op == "AND"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("age >= 30", [False, True, True, True]),
        ("age >= 30 AND city = 'Rome'", [False, False, True, False]),
        ("city = 'Paris' OR city = 'Milan' AND age > 50", [False, True, False, True]),
        ("(city = 'Paris' OR city = 'Milan') AND age > 50", [False, False, False, True]),
        ("NOT city = 'Rome'", [False, True, False, True]),
        ("name CONTAINS 'Jo'", [True, False, True, None]),
        ("name MATCHES '^[a-z]'", [False, True, False, None]),
        ("name IS NULL", [False, False, False, True]),
        ("name IS NOT NULL", [True, True, True, False]),
        ("lower(name) = 'joe'", [True, False, False, None]),
        ("Verbal + Nonverbal > 200", [False, True, False, None]),
        ("Verbal / 4 = 25", [True, False, False, None]),
        ("-age < -40", [False, False, True, True]),
        ("length(name) = 4", [False, True, False, None]),
        ("coalesce(Verbal, 0) = 0", [False, False, False, True]),
        ("round(age / 7) = 6", [False, False, True, False]),
        ("round(age / 7, 1) = 4.3", [False, True, False, False]),
        ("abs(age - 40) < 10", [False, False, True, False]),
        ("upper(name) = 'ANNA'", [False, True, False, None]),
        ("trim(' x ') = 'x'", [True, True, True, True]),
    ],
)
def test_compile_and_apply(people, text, expected):
    result = parse_expression(text).apply(people)
    if isinstance(result, pa.Scalar):
        result = pa.array([result.as_py()] * people.num_rows)
    assert result.to_pylist() == expected


def test_compile_unknown_function():
    with pytest.raises(ExpressionError):
        parse_expression("median(age) > 3")


def test_compile_pattern_requires_text():
    with pytest.raises(ExpressionError):
        parse_expression("name CONTAINS 3")


def test_compile_round_digits_must_be_integer():
    with pytest.raises(ExpressionError):
        parse_expression("round(age, 1.5) > 3")


def test_ensure_expression():
    expr = parse_expression("age > 3")
    assert ensure_expression(expr) is expr
    assert isinstance(ensure_expression("age > 3"), FunctionCallExpression)
    with pytest.raises(TypeError):
        ensure_expression(42)
