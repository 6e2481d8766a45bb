"""A small expression language for predicates and derived columns.

Instead of building expressions out of
:class:`tidyground.compute.expressions.FunctionCallExpression` objects,
filters and derived columns can be written as text::

    filter(table, "age >= 18 AND (city = 'Rome' OR name CONTAINS 'Jo')")
    derive(table, total="Verbal + Nonverbal")

The text goes through three steps:

1. The :class:`tidyground.expr.tokenize.Tokenizer` splits it into tokens.
2. The :class:`tidyground.expr.parser.ExpressionParser` converts the tokens
   into an abstract syntax tree, applying the operators precedence
   (``AND`` binds tighter than ``OR``).
3. The :class:`tidyground.expr.compiler.ExpressionCompiler` converts the
   tree into compute expressions that can be applied to tables.
"""

from .compiler import ExpressionCompiler, ensure_expression, parse_expression
from .parser import ExpressionParser, parse
from .tokenize import ExpressionTokenizeError, Tokenizer

__all__ = (
    "parse_expression",
    "ensure_expression",
    "parse",
    "ExpressionParser",
    "ExpressionCompiler",
    "Tokenizer",
    "ExpressionTokenizeError",
)