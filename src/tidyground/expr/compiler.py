"""Convert parsed expressions to compute expressions.

The :class:`ExpressionCompiler` walks the AST produced by
:func:`tidyground.expr.parser.parse` and builds the equivalent
tree of :class:`tidyground.compute.expressions.Expression` objects:

>>> from tidyground.expr.parser import parse
>>> str(ExpressionCompiler().compile(parse("Verbal + Nonverbal > 200")))
'pyarrow.compute.greater(pyarrow.compute.add(ColumnRef(Verbal),ColumnRef(Nonverbal)),Literal(<pyarrow.Int64Scalar: 200>))'
"""

import pyarrow as pa
import pyarrow.compute as pc

from ..compute.expressions import (
    ConjunctionExpression,
    Expression,
    FunctionCallExpression,
    col,
    contains,
    is_missing,
    lit,
    matches,
    not_,
)
from ..errors import ExpressionError
from .parser import parse


def divide(left: pa.Array | pa.Scalar, right: pa.Array | pa.Scalar) -> pa.Array:
    """Division that always produces floats, even for integer operands."""
    return pc.divide(left.cast(pa.float64()), right.cast(pa.float64()))


class ExpressionCompiler:
    """Create compute expressions from a parsed expression AST."""

    OPERATORS_MAP = {
        "+": pc.add,
        "-": pc.subtract,
        "*": pc.multiply,
        "/": divide,
        ">": pc.greater,
        "<": pc.less,
        ">=": pc.greater_equal,
        "<=": pc.less_equal,
        "=": pc.equal,
        "!=": pc.not_equal,
        "<>": pc.not_equal,
    }

    FUNCTIONS_MAP = {
        "lower": pc.utf8_lower,
        "upper": pc.utf8_upper,
        "trim": pc.utf8_trim_whitespace,
        "length": pc.utf8_length,
        "abs": pc.abs,
        "coalesce": pc.coalesce,
    }

    def compile(self, node: dict) -> Expression:
        """Compile an expression node from the AST.

        Conjunctions become short circuiting :class:`ConjunctionExpression`,
        operators and functions become :class:`FunctionCallExpression`
        and identifiers and literals become column references and literals.
        """
        kind = node["type"]
        if kind == "conjunction":
            return ConjunctionExpression(
                node["op"], self.compile(node["left"]), self.compile(node["right"])
            )
        elif kind in ("binary_op", "comparison"):
            return FunctionCallExpression(
                self.OPERATORS_MAP[node["op"]],
                self.compile(node["left"]),
                self.compile(node["right"]),
            )
        elif kind == "pattern":
            pattern = node["right"]
            if pattern["type"] != "literal" or not isinstance(pattern["value"], str):
                raise ExpressionError(f"{node['op']} requires a text literal on its right")
            if node["op"] == "CONTAINS":
                return contains(self.compile(node["left"]), pattern["value"])
            return matches(self.compile(node["left"]), pattern["value"])
        elif kind == "is_null":
            check = is_missing(self.compile(node["operand"]))
            return not_(check) if node["negated"] else check
        elif kind == "unary_op":
            operand = self.compile(node["operand"])
            if node["op"] == "NOT":
                return not_(operand)
            return FunctionCallExpression(pc.negate, operand)
        elif kind == "function_call":
            return self._compile_function(node["name"], node["args"])
        elif kind == "identifier":
            return col(node["value"])
        elif kind == "literal":
            return lit(node["value"])
        else:
            raise ExpressionError(f"Unsupported expression type: {kind}")

    def _compile_function(self, name: str, args: list[dict]) -> Expression:
        if name == "round":
            # The number of digits is an option of the function, not data.
            if len(args) not in (1, 2):
                raise ExpressionError("round() accepts one or two arguments")
            ndigits = 0
            if len(args) == 2:
                if args[1]["type"] != "literal" or not isinstance(args[1]["value"], int):
                    raise ExpressionError("round() digits must be an integer literal")
                ndigits = args[1]["value"]
            return FunctionCallExpression(
                pc.round, self.compile(args[0]), ndigits=ndigits
            )

        try:
            func = self.FUNCTIONS_MAP[name]
        except KeyError:
            raise ExpressionError(f"Unknown function: {name}") from None
        return FunctionCallExpression(func, *(self.compile(arg) for arg in args))


def parse_expression(text: str) -> Expression:
    """Parse an expression string into an Expression ready to be applied."""
    return ExpressionCompiler().compile(parse(text))


def ensure_expression(value: Expression | str) -> Expression:
    """Accept both expressions and expression strings."""
    if isinstance(value, str):
        return parse_expression(value)
    if not isinstance(value, Expression):
        raise TypeError(f"Expected an Expression or a string, got {type(value).__name__}")
    return value
