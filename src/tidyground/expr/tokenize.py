"""Split expression strings into tokens.

The tokenizer is regex based: a single regular expression
with one named group for each kind of token is matched
repeatedly against the text, and each match is converted
to the matching Token class.

Given ``"age >= 18 AND city = 'Rome'"`` the tokenizer will produce::

    [IdentifierToken('age'), OperatorToken('>='), LiteralToken('18'),
     OperatorToken('AND'), IdentifierToken('city'), OperatorToken('='),
     LiteralToken("'Rome'")]

Column names that are not valid identifiers can be
quoted with backticks, like ```first name` = 'Jo'``.
"""

import re

from ..errors import ExpressionError


class Token:
    """A token of an expression, carries the matched text as ``value``."""

    def __init__(self, value: str) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.value == other.value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value!r})"


class IdentifierToken(Token):
    """A column or function name."""


class LiteralToken(Token):
    """Numbers, quoted strings, ``TRUE``, ``FALSE`` and ``NULL``."""


class OperatorToken(Token):
    """Math, comparison and logical operators."""


class PunctuationToken(Token):
    """Parenthesis and commas."""


class EOFToken(Token):
    """Marks the end of the tokens."""

    def __init__(self) -> None:
        super().__init__("")


class ExpressionTokenizeError(ExpressionError):
    """The expression contains text that is not a valid token."""


class Tokenizer:
    """Convert an expression string to a list of tokens."""

    TOKEN_REGEX = re.compile(
        r"""
        (?P<whitespace>\s+)
        |(?P<quoted_identifier>`[^`]+`)
        |(?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
        |(?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
        |(?P<keyword_operator>(?i:AND|OR|NOT|CONTAINS|MATCHES|IS)\b)
        |(?P<keyword_literal>(?i:TRUE|FALSE|NULL)\b)
        |(?P<identifier>[A-Za-z_][A-Za-z0-9_.]*)
        |(?P<operator><=|>=|<>|!=|==|=|<|>|\+|-|\*|/)
        |(?P<punctuation>[(),])
        """,
        re.VERBOSE,
    )

    def __init__(self, text: str) -> None:
        """
        :param text: The expression to tokenize.
        """
        self.text = text

    def tokenize(self) -> list[Token]:
        """Tokenize the whole text."""
        tokens: list[Token] = []
        pos = 0
        while pos < len(self.text):
            match = self.TOKEN_REGEX.match(self.text, pos)
            if match is None:
                raise ExpressionTokenizeError(
                    f"Unexpected character '{self.text[pos]}' at position {pos}"
                )
            pos = match.end()

            kind = match.lastgroup
            value = match.group(kind)
            if kind == "whitespace":
                continue
            elif kind == "quoted_identifier":
                tokens.append(IdentifierToken(value[1:-1]))
            elif kind in ("string", "number"):
                tokens.append(LiteralToken(value))
            elif kind == "keyword_literal":
                tokens.append(LiteralToken(value.upper()))
            elif kind == "keyword_operator":
                tokens.append(OperatorToken(value.upper()))
            elif kind == "identifier":
                tokens.append(IdentifierToken(value))
            elif kind == "operator":
                tokens.append(OperatorToken(value))
            else:
                tokens.append(PunctuationToken(value))
        return tokens
