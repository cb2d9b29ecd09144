"""Parse filter query syntax into an expression tree.

Grammar, lowest to highest precedence::

    or   := and ('|' and)*
    and  := not (['+'] not)*        adjacent atoms are implicitly ANDed
    not  := '-' not | atom
    atom := '(' or ')' | TEXT | FILTER

Filter atoms are interpreted by name: ``d`` depth, ``c`` created,
``m`` modified, ``children`` child count, ``p`` parent, ``a`` ancestor,
``child`` some child, ``desc`` some descendant, ``sib`` some sibling,
``ref`` reference link, ``@key`` attribute and ``~term`` fuzzy text.
Unknown names are plain text. Chains of ``+`` and ``|`` operands are built
as balanced trees.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from outliner.exceptions import QuerySyntaxError
from outliner.search.ast_nodes import (
    CREATED,
    MODIFIED,
    OPERATORS_LONGEST_FIRST,
    AlwaysMatch,
    AncestorFilter,
    AndExpr,
    AttributeDateFilter,
    AttributeFilter,
    ChildFilter,
    ChildrenFilter,
    ComparisonOp,
    DateFilter,
    DepthFilter,
    DescendantFilter,
    FilterExpression,
    FuzzyFilter,
    NotExpr,
    OrExpr,
    ParentFilter,
    ReferenceFilter,
    SiblingFilter,
    TextFilter,
    expression_depth,
)
from outliner.search.dates import parse_date_value
from outliner.search.tokenizer import Token, TokenType, is_identifier_char, tokenize

logger = logging.getLogger(__name__)

# Maximum nesting of groups, NOT chains and nested filter criteria.
MAX_NESTING = 100

# Maximum height of a parsed expression tree, so evaluation and printing
# stay well inside the interpreter's recursion limit.
MAX_EXPRESSION_DEPTH = 200

_END_OF_INPUT = "end of input"

# Tokens that can start an operand of an implicit AND.
_OPERAND_START = frozenset({TokenType.TEXT, TokenType.FILTER, TokenType.NOT, TokenType.LPAREN})


class Parser:
    """Recursive-descent parser over a token list.

    A parser instance is single-use and holds no state beyond its position.
    """

    def __init__(self, tokens: list[Token], *, nesting: int = 0) -> None:
        self.tokens = tokens
        self.pos = 0
        self.nesting = nesting

    def parse(self) -> FilterExpression:
        """Parse the whole token stream.

        Returns:
            The expression tree; AlwaysMatch for an empty stream.

        Raises:
            QuerySyntaxError: On unexpected or trailing tokens, or when the
                expression tree is deeper than MAX_EXPRESSION_DEPTH.
        """
        if self._current().type is TokenType.EOF:
            return AlwaysMatch()

        expr = self._parse_or()

        token = self._current()
        if token.type is not TokenType.EOF:
            raise QuerySyntaxError("unexpected token", token.value, token.position)

        if self.nesting == 0 and expression_depth(expr) > MAX_EXPRESSION_DEPTH:
            first = self.tokens[0]
            raise QuerySyntaxError("query nested too deeply", first.value, first.position)
        return expr

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            end = self.tokens[-1].position if self.tokens else 0
            return Token(TokenType.EOF, "", end)
        return self.tokens[self.pos]

    def _advance(self) -> None:
        if self.pos < len(self.tokens):
            self.pos += 1

    def _enter(self, token: Token) -> None:
        self.nesting += 1
        if self.nesting > MAX_NESTING:
            raise QuerySyntaxError("query nested too deeply", token.value, token.position)

    def _parse_or(self) -> FilterExpression:
        operands = [self._parse_and()]

        while self._current().type is TokenType.OR:
            self._advance()  # consume |
            operands.append(self._parse_and())

        return _combine(OrExpr, operands)

    def _parse_and(self) -> FilterExpression:
        operands = [self._parse_not()]

        while True:
            token = self._current()
            if token.type is TokenType.AND:
                self._advance()  # consume +
                # A trailing "+" is tolerated so half-typed queries still parse
                if self._current().type in (TokenType.EOF, TokenType.RPAREN, TokenType.OR):
                    break
            elif token.type not in _OPERAND_START:
                break
            operands.append(self._parse_not())

        return _combine(AndExpr, operands)

    def _parse_not(self) -> FilterExpression:
        token = self._current()
        if token.type is not TokenType.NOT:
            return self._parse_atom()

        self._advance()  # consume -
        self._enter(token)
        inner = self._parse_not()
        self.nesting -= 1
        return NotExpr(inner)

    def _parse_atom(self) -> FilterExpression:
        token = self._current()

        if token.type is TokenType.LPAREN:
            self._advance()  # consume (
            self._enter(token)
            expr = self._parse_or()
            self.nesting -= 1
            closing = self._current()
            if closing.type is not TokenType.RPAREN:
                raise QuerySyntaxError(
                    "unterminated group, expected ')'",
                    closing.value or _END_OF_INPUT,
                    closing.position,
                )
            self._advance()  # consume )
            return expr

        if token.type is TokenType.TEXT:
            self._advance()
            return TextFilter(token.value)

        if token.type is TokenType.FILTER:
            self._advance()
            return parse_filter_value(token.value, position=token.position, nesting=self.nesting)

        if token.type is TokenType.EOF:
            raise QuerySyntaxError("unexpected end of input", _END_OF_INPUT, token.position)

        raise QuerySyntaxError("unexpected token", token.value, token.position)


def parse_comparison(
    criteria: str, token: str | None = None, position: int | None = None
) -> tuple[ComparisonOp, str]:
    """Split a criteria string into operator and value.

    Examples: ``"5"`` -> (=, "5"), ``">2"`` -> (>, "2"),
    ``">=2025-11-01"`` -> (>=, "2025-11-01").

    Args:
        criteria: The text after the filter name's colon.
        token: The full filter atom, used in error messages.
        position: Character offset of the filter atom, for error reporting.

    Returns:
        Tuple of (operator, value). The operator defaults to equality.

    Raises:
        QuerySyntaxError: If the criteria or the value after the operator is empty.
    """
    context = token if token is not None else criteria
    if not criteria:
        raise QuerySyntaxError("missing comparison value", context, position)

    for op in OPERATORS_LONGEST_FIRST:
        if criteria.startswith(op.value):
            value = criteria[len(op.value) :]
            if not value:
                raise QuerySyntaxError(
                    f"missing comparison value after '{op.value}'", context, position
                )
            return op, value

    return ComparisonOp.EQUAL, criteria


def _parse_int(value: str, what: str, token: str, position: int | None) -> int:
    try:
        return int(value)
    except ValueError:
        raise QuerySyntaxError(f"invalid {what}", token, position) from None


def _parse_depth(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
    op, value = parse_comparison(criteria, token, position)
    return DepthFilter(op, _parse_int(value, "depth value", token, position))


def _combine(
    combinator: type[AndExpr] | type[OrExpr], operands: list[FilterExpression]
) -> FilterExpression:
    """Join a chain of operands into a balanced tree of binary combinators.

    Operand order is preserved left to right, so short-circuit evaluation
    order is unchanged; chains of up to three operands are left-nested
    (``a b c`` is ``And(And(a, b), c)``). A long chain such as
    ``a b c ... z`` is only logarithmically deep.
    """
    if len(operands) == 1:
        return operands[0]
    middle = (len(operands) + 1) // 2
    return combinator(
        _combine(combinator, operands[:middle]), _combine(combinator, operands[middle:])
    )


def _parse_children(
    criteria: str, token: str, position: int | None, nesting: int
) -> FilterExpression:
    op, value = parse_comparison(criteria, token, position)
    return ChildrenFilter(op, _parse_int(value, "children count", token, position))


def _date_parser(field: str) -> Callable[[str, str, int | None, int], FilterExpression]:
    def parse(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
        op, value = parse_comparison(criteria, token, position)
        date_value = parse_date_value(value)
        if date_value is None:
            raise QuerySyntaxError("invalid date value", token, position)
        return DateFilter(field, op, date_value)

    return parse


def _parse_nested(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
    """Parse the criteria of a relational filter (``p:``, ``a:``, ...) as a query of its own."""
    if not criteria:
        raise QuerySyntaxError("missing filter criteria", token, position)
    if nesting + 1 > MAX_NESTING:
        raise QuerySyntaxError("query nested too deeply", token, position)

    try:
        return Parser(tokenize(criteria), nesting=nesting + 1).parse()
    except QuerySyntaxError as e:
        if position is None or e.position is None:
            raise
        offset = position + token.index(":") + 1
        raise QuerySyntaxError(e.message, e.token, offset + e.position) from e


def _parse_parent(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
    return ParentFilter(_parse_nested(criteria, token, position, nesting))


def _parse_ancestor(
    criteria: str, token: str, position: int | None, nesting: int
) -> FilterExpression:
    return AncestorFilter(_parse_nested(criteria, token, position, nesting))


def _parse_child(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
    return ChildFilter(_parse_nested(criteria, token, position, nesting))


def _parse_descendant(
    criteria: str, token: str, position: int | None, nesting: int
) -> FilterExpression:
    return DescendantFilter(_parse_nested(criteria, token, position, nesting))


def _parse_sibling(criteria: str, token: str, position: int | None, nesting: int) -> FilterExpression:
    return SiblingFilter(_parse_nested(criteria, token, position, nesting))


def _parse_reference(
    criteria: str, token: str, position: int | None, nesting: int
) -> FilterExpression:
    if not criteria:
        raise QuerySyntaxError("missing reference id", token, position)
    return ReferenceFilter(criteria)


# Named filters. "a" means ancestor; attributes use the "@" prefix.
_FILTER_PARSERS: dict[str, Callable[[str, str, int | None, int], FilterExpression]] = {
    "d": _parse_depth,
    "c": _date_parser(CREATED),
    "m": _date_parser(MODIFIED),
    "children": _parse_children,
    "p": _parse_parent,
    "a": _parse_ancestor,
    "child": _parse_child,
    "desc": _parse_descendant,
    "sib": _parse_sibling,
    "ref": _parse_reference,
}


def _parse_attribute(body: str, token: str, position: int | None) -> FilterExpression:
    """Parse the part of an ``@`` filter after the ``@``."""
    key_end = 0
    while key_end < len(body) and is_identifier_char(body[key_end]):
        key_end += 1
    key = body[:key_end]
    rest = body[key_end:]

    if not key:
        # A lone "@" (or "@=x") is just text
        return TextFilter("@" + body)

    if not rest:
        return AttributeFilter(key)

    for op in OPERATORS_LONGEST_FIRST:
        if rest.startswith(op.value):
            value = rest[len(op.value) :]
            if not value:
                raise QuerySyntaxError(
                    f"missing comparison value after '{op.value}'", token, position
                )
            date_value = parse_date_value(value)
            if date_value is not None:
                return AttributeDateFilter(key, op, date_value)
            return AttributeFilter(key, op, value)

    raise QuerySyntaxError("invalid attribute comparison", token, position)


def parse_filter_value(
    value: str, *, position: int | None = None, nesting: int = 0
) -> FilterExpression:
    """Convert a filter token's text into a filter expression.

    Args:
        value: Filter token text, e.g. ``d:>2``, ``-children:0`` or ``@status=done``.
        position: Character offset of the token, for error reporting.
        nesting: Current nesting depth of the enclosing parse.

    Returns:
        The filter expression, wrapped in NotExpr for a leading ``-``.

    Raises:
        QuerySyntaxError: If a known filter has malformed criteria.
    """
    token = value
    negated = value.startswith("-")
    if negated:
        value = value[1:]

    expr: FilterExpression
    if value.startswith("~"):
        expr = FuzzyFilter(value[1:])
    elif value.startswith("@"):
        expr = _parse_attribute(value[1:], token, position)
    else:
        name, sep, criteria = value.partition(":")
        parse = _FILTER_PARSERS.get(name) if sep else None
        if parse is None:
            # Unknown filter names stay searchable as plain text
            expr = TextFilter(value)
        else:
            expr = parse(criteria, token, position, nesting)

    if negated:
        return NotExpr(expr)
    return expr


def parse_query(query_string: str) -> FilterExpression:
    """Parse a filter query string into an expression tree.

    Args:
        query_string: The query typed by the user.

    Returns:
        The parsed expression; AlwaysMatch for an empty query.

    Raises:
        QuerySyntaxError: If the query cannot be parsed.
    """
    expr = Parser(tokenize(query_string)).parse()
    logger.debug("Parsed query %r into %r", query_string, expr)
    return expr


def parse_query_lenient(query_string: str) -> tuple[FilterExpression, QuerySyntaxError | None]:
    """Parse a query, falling back to a plain substring match on errors.

    Interactive callers use this so a half-typed query never blocks input.

    Returns:
        Tuple of (expression, error). On a syntax error the expression is a
        TextFilter over the raw query and the error is returned for display.
    """
    try:
        return parse_query(query_string), None
    except QuerySyntaxError as e:
        logger.debug("Falling back to text search for %r: %s", query_string, e)
        return TextFilter(query_string.strip()), e
