"""Unit tests for the query tokenizer."""

from __future__ import annotations

import pytest

from outliner.search.tokenizer import Token, TokenType, tokenize


def _types(query: str) -> list[TokenType]:
    return [t.type for t in tokenize(query)]


def _values(query: str) -> list[str]:
    return [t.value for t in tokenize(query) if t.type is not TokenType.EOF]


# ---------------------------------------------------------------------------
# Stream shape
# ---------------------------------------------------------------------------


class TestStream:
    def test_empty_query_is_only_eof(self) -> None:
        assert tokenize("") == [Token(TokenType.EOF, "", 0)]

    def test_whitespace_only_is_only_eof(self) -> None:
        assert _types(" \t\n ") == [TokenType.EOF]

    @pytest.mark.parametrize(
        "query",
        ["", "a", '"unterminated', "((((", "@", "~", "-", "d:>", ")))", "a:(b", "|+-()"],
    )
    def test_exactly_one_trailing_eof(self, query: str) -> None:
        tokens = tokenize(query)
        assert tokens[-1].type is TokenType.EOF
        assert sum(1 for t in tokens if t.type is TokenType.EOF) == 1

    def test_positions_are_character_offsets(self) -> None:
        tokens = tokenize("task  d:>2")
        assert tokens[0].position == 0
        assert tokens[1].position == 6
        assert tokens[2].position == 10


# ---------------------------------------------------------------------------
# Structural tokens
# ---------------------------------------------------------------------------


class TestStructural:
    def test_parens(self) -> None:
        assert _types("(a)") == [
            TokenType.LPAREN,
            TokenType.TEXT,
            TokenType.RPAREN,
            TokenType.EOF,
        ]

    def test_parens_split_text(self) -> None:
        assert _values("(a|b)c") == ["(", "a", "|", "b", ")", "c"]

    def test_or_and(self) -> None:
        assert _types("a | b + c") == [
            TokenType.TEXT,
            TokenType.OR,
            TokenType.TEXT,
            TokenType.AND,
            TokenType.TEXT,
            TokenType.EOF,
        ]

    def test_dash_before_non_identifier_is_not(self) -> None:
        assert _types("-(a)") == [
            TokenType.NOT,
            TokenType.LPAREN,
            TokenType.TEXT,
            TokenType.RPAREN,
            TokenType.EOF,
        ]

    def test_double_dash(self) -> None:
        assert _types("--x") == [TokenType.NOT, TokenType.NOT, TokenType.TEXT, TokenType.EOF]

    def test_dash_before_attribute(self) -> None:
        tokens = tokenize("-@done")
        assert tokens[0].type is TokenType.NOT
        assert tokens[1] == Token(TokenType.FILTER, "@done", 1)


# ---------------------------------------------------------------------------
# Text atoms
# ---------------------------------------------------------------------------


class TestText:
    def test_bare_word(self) -> None:
        assert tokenize("meeting")[0] == Token(TokenType.TEXT, "meeting", 0)

    def test_identifier_without_colon_reads_whole_word(self) -> None:
        assert _values("co-op") == ["co-op"]

    def test_digits_are_text(self) -> None:
        assert _values("2025") == ["2025"]

    def test_quoted_phrase_verbatim(self) -> None:
        token = tokenize('"d:>2 | x"')[0]
        assert token == Token(TokenType.TEXT, "d:>2 | x", 0)

    def test_unterminated_quote_runs_to_end(self) -> None:
        assert _values('"open phrase') == ["open phrase"]

    def test_negated_word_is_not_then_text(self) -> None:
        tokens = tokenize("-ambient")
        assert tokens[0] == Token(TokenType.NOT, "-", 0)
        assert tokens[1] == Token(TokenType.TEXT, "ambient", 1)

    def test_lone_tilde_is_text(self) -> None:
        assert tokenize("~")[0] == Token(TokenType.TEXT, "~", 0)


# ---------------------------------------------------------------------------
# Filter atoms
# ---------------------------------------------------------------------------


class TestFilters:
    @pytest.mark.parametrize(
        "query",
        ["d:>2", "c:2025-11-01", "m:-7d", "children:0", "p:project", "ref:item_42", "x:y"],
    )
    def test_named_filter(self, query: str) -> None:
        assert tokenize(query)[0] == Token(TokenType.FILTER, query, 0)

    def test_negated_filter_keeps_dash(self) -> None:
        assert tokenize("-children:0")[0] == Token(TokenType.FILTER, "-children:0", 0)

    @pytest.mark.parametrize("query", ["@status", "@status=done", "@due>=2025-11-01", "@a!=b"])
    def test_attribute(self, query: str) -> None:
        assert tokenize(query)[0] == Token(TokenType.FILTER, query, 0)

    def test_attribute_value_stops_at_whitespace(self) -> None:
        assert _values("@status=done task") == ["@status=done", "task"]

    def test_criteria_stops_at_delimiters(self) -> None:
        assert _values("d:1|d:2") == ["d:1", "|", "d:2"]
        assert _values("(d:1)") == ["(", "d:1", ")"]
        assert _values("d:1+d:2") == ["d:1", "+", "d:2"]

    def test_plus_after_operator_is_value_sign(self) -> None:
        assert _values("@due>+7d") == ["@due>+7d"]
        assert _values("m:+1d") == ["m:+1d"]

    def test_minus_inside_criteria(self) -> None:
        assert _values("c:<-2w") == ["c:<-2w"]

    def test_fuzzy(self) -> None:
        assert tokenize("~wrfrm")[0] == Token(TokenType.FILTER, "~wrfrm", 0)

    def test_parenthesised_criteria_is_one_token(self) -> None:
        assert _values("a:(@type=project d:>2) x") == ["a:(@type=project d:>2)", "x"]

    def test_parenthesised_criteria_nested_and_quoted(self) -> None:
        assert _values('p:((a | b) ")") c') == ['p:((a | b) ")")', "c"]

    def test_unbalanced_criteria_group_runs_to_end(self) -> None:
        assert _values("a:(b c") == ["a:(b c"]
