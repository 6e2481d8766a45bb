"""Implement a parser for predicate and column expressions.

An expression is a combination of literals, column names, operators, and functions
that can be evaluated for each row of a table.
The parser supports:

- Arithmetic operators: ``+, -, *, /``
- Comparison operators: ``=, ==, <, >, <=, >=, <>, !=``
- Pattern operators: ``CONTAINS`` (substring) and ``MATCHES`` (regular expression)
- Missing value checks: ``IS NULL`` and ``IS NOT NULL``
- Logical operators: ``AND, OR, NOT``
- Parentheses for grouping
- Function calls with arguments
- Column names and literals

The parser returns an abstract syntax tree (AST) made of nested dictionaries.

The parser is a recursive descent parser, with each method
corresponding to a different precedence level of the grammar,
from the loosest to the tightest binding::

    parse_expression         a OR b             (lowest precedence)
      parse_term             a AND b
        parse_factor         NOT a
          parse_comparison   a = b, a CONTAINS b, a IS NULL
            parse_additive_expr        a + b
              parse_multiplicative_expr  a * b
                parse_unary_expr         -a
                  parse_primary          (a), f(a), a   (highest precedence)

As ``AND`` is parsed at a deeper level than ``OR``, it binds tighter.
So ``city = 'Rome' OR city = 'Paris' AND age > 18`` means
``city = 'Rome' OR (city = 'Paris' AND age > 18)`` and parenthesis
are needed to get the other meaning::

    {
        "type": "conjunction",
        "op": "OR",
        "left": {"type": "comparison", "op": "=", ...city = 'Rome'...},
        "right": {
            "type": "conjunction",
            "op": "AND",
            "left": {"type": "comparison", "op": "=", ...city = 'Paris'...},
            "right": {"type": "comparison", "op": ">", ...age > 18...}
        }
    }
"""

import ast

from ..errors import ExpressionError
from .tokenize import (
    EOFToken,
    IdentifierToken,
    LiteralToken,
    OperatorToken,
    PunctuationToken,
    Token,
    Tokenizer,
)

COMPARISON_OPERATORS = ("=", "==", "<", ">", "<=", ">=", "<>", "!=")
PATTERN_OPERATORS = ("CONTAINS", "MATCHES")


class ExpressionParser:
    """A parser for expressions.

    Handles parsing of expressions like "a + b", "x > 5 AND y < 7" or "lower(name) CONTAINS 'jo'"
    into an abstract syntax tree (AST).
    """

    def __init__(self, tokens: list[Token]) -> None:
        """
        :param tokens: A list of tokens representing the expression.
        """
        if not tokens:
            raise ExpressionError("Empty expression.")
        self.tokens = tokens
        self.pos = 0  # Current position in the tokens list
        self.current_token = tokens[self.pos]

    def advance(self) -> None:
        """Advance the parser to the next token."""
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current_token = self.tokens[self.pos]
        else:
            self.current_token = EOFToken()  # End of input

    def parse(self) -> tuple[int, dict]:
        """Main method to parse a whole expression.

        Returns the number of tokens that were consumed
        and the abstract syntax tree (AST) for the parsed expression.
        """
        tree = self.parse_expression()
        return self.pos, tree

    def parse_expression(self) -> dict:
        """Parse an expression, which are terms connected by OR"""
        term = self.parse_term()
        while self.is_operator("OR"):
            self.advance()
            right = self.parse_term()
            term = {"type": "conjunction", "op": "OR", "left": term, "right": right}
        return term

    def parse_term(self) -> dict:
        """Parse a term, which are factors connected by AND."""
        factor = self.parse_factor()
        while self.is_operator("AND"):
            self.advance()
            right = self.parse_factor()
            factor = {"type": "conjunction", "op": "AND", "left": factor, "right": right}
        return factor

    def parse_factor(self) -> dict:
        """Parse a factor, which are comparison expressions possibly negated by NOT."""
        if self.is_operator("NOT"):
            self.advance()
            operand = self.parse_factor()
            return {"type": "unary_op", "op": "NOT", "operand": operand}
        else:
            return self.parse_comparison()

    def parse_comparison(self) -> dict:
        """Parse a comparison between two mathematical expressions.

        Besides the comparison operators, this handles the
        pattern operators (``CONTAINS``, ``MATCHES``) and the
        missing value checks (``IS NULL``, ``IS NOT NULL``)
        as they all have the same precedence.

        If there is no comparison operator, it will return the left side as is.
        """
        left = self.parse_additive_expr()
        if self.is_operator(*COMPARISON_OPERATORS):
            op = self.current_token.value
            if op == "==":
                op = "="
            self.advance()
            right = self.parse_additive_expr()
            return {"type": "comparison", "op": op, "left": left, "right": right}
        elif self.is_operator(*PATTERN_OPERATORS):
            op = self.current_token.value.upper()
            self.advance()
            right = self.parse_additive_expr()
            return {"type": "pattern", "op": op, "left": left, "right": right}
        elif self.is_operator("IS"):
            self.advance()
            negated = False
            if self.is_operator("NOT"):
                negated = True
                self.advance()
            if not (
                isinstance(self.current_token, LiteralToken)
                and self.current_token.value == "NULL"
            ):
                raise ExpressionError(f"Expected NULL after IS, got {self.current_token}")
            self.advance()
            return {"type": "is_null", "negated": negated, "operand": left}
        else:
            return left

    def parse_additive_expr(self) -> dict:
        """Parse addition and subtraction expressions."""
        expr = self.parse_multiplicative_expr()
        while self.is_operator("+", "-"):
            op = self.current_token.value
            self.advance()
            right = self.parse_multiplicative_expr()
            expr = {"type": "binary_op", "op": op, "left": expr, "right": right}
        return expr

    def parse_multiplicative_expr(self) -> dict:
        """Parse multiplication and division expressions."""
        expr = self.parse_unary_expr()
        while self.is_operator("*", "/"):
            op = self.current_token.value
            self.advance()
            right = self.parse_unary_expr()
            expr = {"type": "binary_op", "op": op, "left": expr, "right": right}
        return expr

    def parse_unary_expr(self) -> dict:
        """Parse unary mathematical expressions. Like -X"""
        if self.is_operator("-"):
            self.advance()
            operand = self.parse_unary_expr()
            return {"type": "unary_op", "op": "-", "operand": operand}
        else:
            return self.parse_primary()

    def parse_primary(self) -> dict:
        """Parse primary expressions: function calls, atoms, or parenthesis expressions."""
        if self.is_punctuation("("):
            self.advance()
            expr = self.parse_expression()
            if not self.is_punctuation(")"):
                raise ExpressionError("Expected ')'")
            self.advance()
            return expr
        else:
            return self.parse_atom()

    def parse_atom(self) -> dict:
        """Parse an identifier, literal, or function call."""
        token = self.current_token
        if isinstance(token, IdentifierToken):
            identifier = token.value
            self.advance()
            if self.is_punctuation("("):
                return self.parse_function_call(identifier)
            else:
                return {"type": "identifier", "value": identifier}
        elif isinstance(token, LiteralToken):
            self.advance()
            return {"type": "literal", "value": self.cast_literal(token.value)}
        else:
            raise ExpressionError(f"Unexpected token: {token}")

    def parse_function_call(self, function_name: str) -> dict:
        """Parse the arguments of a function call, each one is an expression."""
        self.advance()  # Consume '('
        args = []
        if not self.is_punctuation(")"):
            while True:
                args.append(self.parse_expression())
                if self.is_punctuation(","):
                    self.advance()
                else:
                    break
        if not self.is_punctuation(")"):
            raise ExpressionError("Expected ')'")
        self.advance()  # Consume ')'
        return {"type": "function_call", "name": function_name.lower(), "args": args}

    def is_operator(self, *ops: str) -> bool:
        """Check if the current token is an OperatorToken with a value in ops."""
        return isinstance(
            self.current_token, OperatorToken
        ) and self.current_token.value.upper() in [op.upper() for op in ops]

    def is_punctuation(self, *chars: str) -> bool:
        """Check if the current token is a PunctuationToken with a value in chars."""
        return (
            isinstance(self.current_token, PunctuationToken)
            and self.current_token.value in chars
        )

    def cast_literal(self, value: str) -> str | float | int | bool | None:
        """Cast a literal to a Python value.

        Quoted strings lose their quotes and get their escapes resolved,
        ``TRUE``/``FALSE``/``NULL`` become ``True``/``False``/``None``
        and numbers become int or float.
        """
        if value[0] == value[-1] and value[0] in ("'", '"'):
            return ast.literal_eval(value)
        elif value == "TRUE":
            return True
        elif value == "FALSE":
            return False
        elif value == "NULL":
            return None
        try:
            return int(value)
        except ValueError:
            return float(value)


def parse(text: str) -> dict:
    """Parse a whole expression string to its AST.

    Fails if part of the text is left unparsed,
    like the trailing ``b`` of ``"a b"``.
    """
    tokens = Tokenizer(text).tokenize()
    consumed, tree = ExpressionParser(tokens).parse()
    if consumed != len(tokens):
        raise ExpressionError(f"Unexpected token: {tokens[consumed]}")
    return tree
