"""Split a search query string into a flat token stream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

# Characters that end a bare text atom.
_TEXT_DELIMITERS = frozenset(" \t\n\r|+()")

# Characters that end a filter criteria string.
_CRITERIA_DELIMITERS = frozenset(" \t\n\r|+)")

_WHITESPACE = frozenset(" \t\n\r")

# First characters of a comparison operator (!=, >=, <=, >, <, =).
_OPERATOR_CHARS = frozenset("<>!=")


class TokenType(Enum):
    """Query token types."""

    EOF = auto()
    TEXT = auto()
    FILTER = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    LPAREN = auto()
    RPAREN = auto()


@dataclass(frozen=True)
class Token:
    """A single query token.

    ``position`` is the character offset of the token in the query.
    """

    type: TokenType
    value: str = ""
    position: int = 0


def is_filter_start(ch: str) -> bool:
    """Return whether ``ch`` can start a filter identifier."""
    return ch.isalpha() or ch == "_"


def is_identifier_char(ch: str) -> bool:
    """Return whether ``ch`` can continue a filter identifier or attribute key."""
    return ch.isalnum() or ch == "_"


class Tokenizer:
    """Tokenize a search query.

    Never raises: malformed input degrades to text tokens and the stream
    always ends with exactly one EOF token.
    """

    def __init__(self, query: str) -> None:
        self.query = query
        self.pos = 0
        self.length = len(query)

    def tokens(self) -> list[Token]:
        """Return all tokens, terminated by a single EOF token."""
        tokens: list[Token] = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type is TokenType.EOF:
                return tokens

    def next_token(self) -> Token:
        """Read the next token from the input."""
        self._skip_whitespace()

        if self.pos >= self.length:
            return Token(TokenType.EOF, "", self.length)

        start = self.pos
        char = self.query[start]

        if char == "(":
            self.pos += 1
            return Token(TokenType.LPAREN, "(", start)
        if char == ")":
            self.pos += 1
            return Token(TokenType.RPAREN, ")", start)
        if char == "|":
            self.pos += 1
            return Token(TokenType.OR, "|", start)
        if char == "+":
            self.pos += 1
            return Token(TokenType.AND, "+", start)
        if char == "-":
            if start + 1 < self.length and is_filter_start(self.query[start + 1]):
                return self._read_filter(negated=True)
            self.pos += 1
            return Token(TokenType.NOT, "-", start)
        if char == '"':
            return self._read_quoted()
        if char == "@":
            return self._read_attribute_filter()
        if char == "~":
            return self._read_fuzzy()
        if is_filter_start(char):
            return self._read_filter(negated=False)
        return self._read_text()

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.query[self.pos] in _WHITESPACE:
            self.pos += 1

    def _read_quoted(self) -> Token:
        """Read a quoted phrase verbatim; an unterminated quote runs to the end."""
        start = self.pos
        self.pos += 1  # Skip opening quote
        value_start = self.pos

        while self.pos < self.length and self.query[self.pos] != '"':
            self.pos += 1

        value = self.query[value_start : self.pos]

        if self.pos < self.length:
            self.pos += 1  # Skip closing quote

        return Token(TokenType.TEXT, value, start)

    def _read_text(self) -> Token:
        start = self.pos
        while self.pos < self.length and self.query[self.pos] not in _TEXT_DELIMITERS:
            self.pos += 1
        return Token(TokenType.TEXT, self.query[start : self.pos], start)

    def _read_identifier(self) -> str:
        start = self.pos
        while self.pos < self.length and is_identifier_char(self.query[self.pos]):
            self.pos += 1
        return self.query[start : self.pos]

    def _read_filter(self, *, negated: bool) -> Token:
        """Read ``name:criteria`` (optionally prefixed by ``-``).

        Without a colon the run is plain text, or a NOT operator followed
        by plain text when prefixed by ``-``.
        """
        start = self.pos
        if negated:
            self.pos += 1

        name = self._read_identifier()

        if self.pos < self.length and self.query[self.pos] == ":":
            self.pos += 1  # Skip colon
            criteria = self._read_criteria()
            prefix = "-" if negated else ""
            return Token(TokenType.FILTER, f"{prefix}{name}:{criteria}", start)

        if negated:
            # Back up to just after the "-" so the word is read on its own
            self.pos = start + 1
            return Token(TokenType.NOT, "-", start)

        self.pos = start
        return self._read_text()

    def _read_attribute_filter(self) -> Token:
        """Read ``@key`` or ``@key<op><value>`` (no colon)."""
        start = self.pos
        self.pos += 1  # Skip @

        key = self._read_identifier()

        if self.pos < self.length and self.query[self.pos] in _OPERATOR_CHARS:
            criteria = self._read_criteria()
            return Token(TokenType.FILTER, f"@{key}{criteria}", start)

        return Token(TokenType.FILTER, f"@{key}", start)

    def _read_fuzzy(self) -> Token:
        start = self.pos
        self.pos += 1  # Skip ~
        while self.pos < self.length and self.query[self.pos] not in _TEXT_DELIMITERS:
            self.pos += 1
        value = self.query[start : self.pos]
        if value == "~":
            return Token(TokenType.TEXT, value, start)
        return Token(TokenType.FILTER, value, start)

    def _read_criteria(self) -> str:
        """Read a filter's criteria string.

        A criteria starting with ``(`` is read as a balanced group. Otherwise
        it runs up to the next whitespace, ``|``, ``+`` or ``)``; a ``+``
        directly after an operator (or at the start) is a value sign.
        """
        start = self.pos

        if self.pos < self.length and self.query[self.pos] == "(":
            return self._read_group()

        while self.pos < self.length:
            char = self.query[self.pos]
            if char == "+" and (self.pos == start or self.query[self.pos - 1] in "<>="):
                self.pos += 1
                continue
            if char in _CRITERIA_DELIMITERS:
                break
            self.pos += 1

        return self.query[start : self.pos]

    def _read_group(self) -> str:
        """Read a parenthesised group, honouring nesting and quotes."""
        start = self.pos
        depth = 0
        in_quotes = False

        while self.pos < self.length:
            char = self.query[self.pos]
            self.pos += 1
            if char == '"':
                in_quotes = not in_quotes
            elif in_quotes:
                continue
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    break

        return self.query[start : self.pos]


def tokenize(query: str) -> list[Token]:
    """Tokenize a search query string.

    Args:
        query: The raw query typed by the user.

    Returns:
        The token list, always ending with exactly one EOF token.
    """
    return Tokenizer(query).tokens()
