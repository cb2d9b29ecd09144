"""Filter query language: tokenizing, parsing and evaluation over outline nodes."""

from outliner.exceptions import QuerySyntaxError
from outliner.search.ast_nodes import (
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
)
from outliner.search.debug import Explanation, describe, explain, format_expression, to_query
from outliner.search.parser import parse_comparison, parse_query, parse_query_lenient
from outliner.search.query import (
    execute_search,
    find_first,
    find_matches,
    matches,
    quick_search,
)
from outliner.search.tokenizer import Token, TokenType, tokenize

__all__ = [
    "AlwaysMatch",
    "AncestorFilter",
    "AndExpr",
    "AttributeDateFilter",
    "AttributeFilter",
    "ChildFilter",
    "ChildrenFilter",
    "ComparisonOp",
    "DateFilter",
    "DepthFilter",
    "DescendantFilter",
    "Explanation",
    "FilterExpression",
    "FuzzyFilter",
    "NotExpr",
    "OrExpr",
    "ParentFilter",
    "QuerySyntaxError",
    "ReferenceFilter",
    "SiblingFilter",
    "TextFilter",
    "Token",
    "TokenType",
    "describe",
    "execute_search",
    "explain",
    "find_first",
    "find_matches",
    "format_expression",
    "matches",
    "parse_comparison",
    "parse_query",
    "parse_query_lenient",
    "quick_search",
    "to_query",
    "tokenize",
]
