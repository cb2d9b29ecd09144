"""Evaluate filter expressions against outline nodes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from outliner.exceptions import QuerySyntaxError
from outliner.links import links_to
from outliner.search.ast_nodes import (
    CREATED,
    AlwaysMatch,
    AncestorFilter,
    AndExpr,
    AttributeDateFilter,
    AttributeFilter,
    ChildFilter,
    ChildrenFilter,
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
from outliner.search.dates import compare_dates, parse_timestamp
from outliner.search.parser import parse_query, parse_query_lenient

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

# Nodes are duck typed: anything with text, parent, children, attributes,
# created and modified attributes (see outliner.model.Node).
Node = Any


def default_now() -> datetime:
    """Return the current local time as an aware datetime."""
    return datetime.now().astimezone()


# ---------------------------------------------------------------------------
# Tree navigation
# ---------------------------------------------------------------------------


def iter_document_order(roots: Iterable[Node]) -> Iterator[Node]:
    """Yield every node of a forest in pre-order (on-screen order)."""
    stack = list(reversed(list(roots)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_ancestors(node: Node) -> Iterator[Node]:
    """Yield the parent, grandparent, ... up to the root."""
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def iter_descendants(node: Node) -> Iterator[Node]:
    """Yield every node below ``node`` in pre-order, excluding ``node`` itself."""
    return iter_document_order(node.children)


def iter_siblings(node: Node) -> Iterator[Node]:
    """Yield the other children of ``node``'s parent; roots have no siblings."""
    parent = node.parent
    if parent is None:
        return
    for sibling in parent.children:
        if sibling is not node:
            yield sibling


def depth_of(node: Node) -> int:
    """Return the number of parent hops from ``node`` to its root (root = 0)."""
    depth = 0
    for _ in iter_ancestors(node):
        depth += 1
    return depth


def _attribute(node: Node, key: str) -> str | None:
    attributes = node.attributes
    if not attributes:
        return None
    return attributes.get(key)


def _timestamp(node: Node, field: str) -> datetime | None:
    if field == CREATED:
        return node.created
    return node.modified


# ---------------------------------------------------------------------------
# Text matching
# ---------------------------------------------------------------------------


def fuzzy_positions(term: str, text: str) -> list[int] | None:
    """Find ``term`` in ``text`` as a case-insensitive subsequence.

    Returns:
        Indexes into ``text`` of the matched characters (earliest match),
        or None if ``term`` is not a subsequence of ``text``.
    """
    positions: list[int] = []
    index = 0
    for term_char in term.lower():
        while index < len(text) and text[index].lower() != term_char:
            index += 1
        if index >= len(text):
            return None
        positions.append(index)
        index += 1
    return positions


def text_positions(term: str, text: str) -> list[int]:
    """Return the indexes of every case-insensitive occurrence of ``term``."""
    if not term:
        return []
    haystack = text.lower()
    needle = term.lower()
    positions: list[int] = []
    start = haystack.find(needle)
    while start != -1:
        positions.extend(range(start, start + len(needle)))
        start = haystack.find(needle, start + len(needle))
    return positions


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def matches(expr: FilterExpression, node: Node, now: datetime) -> bool:
    """Return whether ``node`` satisfies ``expr`` at evaluation time ``now``.

    Pure: evaluation never mutates the node and does not depend on any
    other node's evaluation.

    Raises:
        TypeError: If ``expr`` is not a filter expression.
    """
    if isinstance(expr, AndExpr):
        return matches(expr.left, node, now) and matches(expr.right, node, now)

    if isinstance(expr, OrExpr):
        return matches(expr.left, node, now) or matches(expr.right, node, now)

    if isinstance(expr, NotExpr):
        return not matches(expr.inner, node, now)

    if isinstance(expr, AlwaysMatch):
        return True

    if isinstance(expr, TextFilter):
        return expr.term.casefold() in (node.text or "").casefold()

    if isinstance(expr, FuzzyFilter):
        return fuzzy_positions(expr.term, node.text or "") is not None

    if isinstance(expr, DepthFilter):
        return expr.op.compare(depth_of(node), expr.value)

    if isinstance(expr, ChildrenFilter):
        return expr.op.compare(len(node.children), expr.value)

    if isinstance(expr, AttributeFilter):
        value = _attribute(node, expr.key)
        if expr.op is None:
            return bool(value)
        if value is None:
            return False
        return expr.op.compare(value, expr.value)

    if isinstance(expr, AttributeDateFilter):
        value = _attribute(node, expr.key)
        if value is None:
            return False
        moment = parse_timestamp(value)
        if moment is None:
            return False
        return compare_dates(moment, expr.op, expr.value, now)

    if isinstance(expr, DateFilter):
        moment = _timestamp(node, expr.field)
        if moment is None:
            return False
        return compare_dates(moment, expr.op, expr.value, now)

    if isinstance(expr, ParentFilter):
        parent = node.parent
        return parent is not None and matches(expr.inner, parent, now)

    if isinstance(expr, AncestorFilter):
        return any(matches(expr.inner, ancestor, now) for ancestor in iter_ancestors(node))

    if isinstance(expr, ChildFilter):
        return any(matches(expr.inner, child, now) for child in node.children)

    if isinstance(expr, DescendantFilter):
        return any(matches(expr.inner, below, now) for below in iter_descendants(node))

    if isinstance(expr, SiblingFilter):
        return any(matches(expr.inner, sibling, now) for sibling in iter_siblings(node))

    if isinstance(expr, ReferenceFilter):
        return links_to(node.text or "", expr.target_id)

    raise TypeError(f"Unknown filter expression: {expr!r}")


def find_matches(
    expr: FilterExpression,
    roots: Iterable[Node],
    now: datetime | None = None,
    limit: int | None = None,
) -> list[Node]:
    """Return the nodes matching ``expr`` in document order.

    Every node is tested independently, so a non-matching parent does not
    hide matching children.

    Args:
        expr: Parsed filter expression.
        roots: Root nodes of the forest.
        now: Evaluation instant for relative dates (default: current time).
        limit: Stop after this many matches; the result is always the
            first ``limit`` entries of the full enumeration.

    Returns:
        Matching nodes in pre-order.
    """
    if now is None:
        now = default_now()

    results: list[Node] = []
    if limit is not None and limit <= 0:
        return results

    for node in iter_document_order(roots):
        if matches(expr, node, now):
            results.append(node)
            if limit is not None and len(results) >= limit:
                break

    logger.debug("Matched %d nodes", len(results))
    return results


def find_first(
    expr: FilterExpression, roots: Iterable[Node], now: datetime | None = None
) -> Node | None:
    """Return the first matching node in document order, or None."""
    found = find_matches(expr, roots, now, limit=1)
    return found[0] if found else None


def execute_search(
    roots: Iterable[Node], query_string: str, now: datetime | None = None
) -> list[Node]:
    """Parse ``query_string`` and return all matching nodes.

    Raises:
        QuerySyntaxError: If the query cannot be parsed.
    """
    return find_matches(parse_query(query_string), roots, now)


def quick_search(
    roots: Iterable[Node],
    query_string: str,
    limit: int = 10,
    now: datetime | None = None,
) -> tuple[list[Node], QuerySyntaxError | None]:
    """Bounded search for interactive widgets.

    Syntax errors fall back to a plain substring search on the raw query
    and are returned alongside the results for inline display.

    Returns:
        Tuple of (first ``limit`` matches, syntax error or None).
    """
    expr, parse_error = parse_query_lenient(query_string)
    return find_matches(expr, roots, now, limit=limit), parse_error
