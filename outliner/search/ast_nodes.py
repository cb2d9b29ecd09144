"""AST data classes for parsed filter queries.

A query parses into a tree of immutable nodes: boolean combinators
(``AndExpr``, ``OrExpr``, ``NotExpr``, ``AlwaysMatch``) over a closed set
of filter predicates. Evaluation lives in :mod:`outliner.search.query`.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from outliner.search.dates import DateValue


class ComparisonOp(str, Enum):
    """Comparison operators, valued by their query spelling."""

    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="

    def compare(self, left: Any, right: Any) -> bool:
        """Return ``left <op> right``."""
        return _OPERATOR_FUNCS[self](left, right)


_OPERATOR_FUNCS = {
    ComparisonOp.EQUAL: operator.eq,
    ComparisonOp.NOT_EQUAL: operator.ne,
    ComparisonOp.GREATER: operator.gt,
    ComparisonOp.GREATER_EQUAL: operator.ge,
    ComparisonOp.LESS: operator.lt,
    ComparisonOp.LESS_EQUAL: operator.le,
}

# Prefix-match order: two-character operators before their one-character prefixes.
OPERATORS_LONGEST_FIRST: tuple[ComparisonOp, ...] = (
    ComparisonOp.GREATER_EQUAL,
    ComparisonOp.LESS_EQUAL,
    ComparisonOp.NOT_EQUAL,
    ComparisonOp.GREATER,
    ComparisonOp.LESS,
    ComparisonOp.EQUAL,
)

CREATED = "created"
MODIFIED = "modified"


# ---------------------------------------------------------------------------
# Boolean combinators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AlwaysMatch:
    """Matches every node; the result of an empty query."""


@dataclass(frozen=True)
class AndExpr:
    left: FilterExpression
    right: FilterExpression


@dataclass(frozen=True)
class OrExpr:
    left: FilterExpression
    right: FilterExpression


@dataclass(frozen=True)
class NotExpr:
    inner: FilterExpression


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextFilter:
    """Case-insensitive substring match on the node text."""

    term: str


@dataclass(frozen=True)
class FuzzyFilter:
    """Case-insensitive subsequence match on the node text (``~term``)."""

    term: str


@dataclass(frozen=True)
class DepthFilter:
    """Distance from the root (roots are depth 0), e.g. ``d:>2``."""

    op: ComparisonOp
    value: int


@dataclass(frozen=True)
class ChildrenFilter:
    """Number of direct children, e.g. ``children:0``."""

    op: ComparisonOp
    value: int


@dataclass(frozen=True)
class AttributeFilter:
    """Attribute existence (``@key``) or string comparison (``@key=value``).

    ``op`` is None for an existence check.
    """

    key: str
    op: ComparisonOp | None = None
    value: str = ""


@dataclass(frozen=True)
class AttributeDateFilter:
    """Attribute whose stored value is compared as a date (``@due<-7d``)."""

    key: str
    op: ComparisonOp
    value: DateValue


@dataclass(frozen=True)
class DateFilter:
    """Creation (``c:``) or modification (``m:``) timestamp comparison.

    ``field`` is :data:`CREATED` or :data:`MODIFIED`.
    """

    field: str
    op: ComparisonOp
    value: DateValue


@dataclass(frozen=True)
class ParentFilter:
    """The immediate parent matches ``inner`` (``p:``)."""

    inner: FilterExpression


@dataclass(frozen=True)
class AncestorFilter:
    """Some transitive ancestor matches ``inner`` (``a:``)."""

    inner: FilterExpression


@dataclass(frozen=True)
class ChildFilter:
    """Some direct child matches ``inner`` (``child:``)."""

    inner: FilterExpression


@dataclass(frozen=True)
class DescendantFilter:
    """Some node below this one, at any depth, matches ``inner`` (``desc:``)."""

    inner: FilterExpression


@dataclass(frozen=True)
class SiblingFilter:
    """Some other child of the same parent matches ``inner`` (``sib:``)."""

    inner: FilterExpression


@dataclass(frozen=True)
class ReferenceFilter:
    """The node text links to ``target_id`` via ``[[id]]`` or ``[[id|label]]``."""

    target_id: str


FilterExpression = Union[
    AlwaysMatch,
    AndExpr,
    OrExpr,
    NotExpr,
    TextFilter,
    FuzzyFilter,
    DepthFilter,
    ChildrenFilter,
    AttributeFilter,
    AttributeDateFilter,
    DateFilter,
    ParentFilter,
    AncestorFilter,
    ChildFilter,
    DescendantFilter,
    SiblingFilter,
    ReferenceFilter,
]

# Filters that evaluate a nested expression against related nodes.
RELATIONAL_FILTERS = (ParentFilter, AncestorFilter, ChildFilter, DescendantFilter, SiblingFilter)


def expression_depth(expr: FilterExpression) -> int:
    """Return the height of an expression tree (a single predicate is 1).

    Walks the tree with an explicit stack, so arbitrarily deep trees are
    measured without recursion.
    """
    height = 0
    stack: list[tuple[FilterExpression, int]] = [(expr, 1)]
    while stack:
        current, level = stack.pop()
        height = max(height, level)
        if isinstance(current, (AndExpr, OrExpr)):
            stack.append((current.left, level + 1))
            stack.append((current.right, level + 1))
        elif isinstance(current, (NotExpr, *RELATIONAL_FILTERS)):
            stack.append((current.inner, level + 1))
    return height
