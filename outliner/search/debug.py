"""Printing and match explanations for filter expressions.

Everything here is diagnostic: it reports on expressions and their
outcomes without changing what matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

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
from outliner.search.dates import parse_timestamp
from outliner.search.query import (
    Node,
    depth_of,
    fuzzy_positions,
    iter_descendants,
    iter_siblings,
    matches,
)

# Bare text that the tokenizer would read back as something else.
_FILTER_LIKE = re.compile(r"^[^\W\d]\w*:")
_BARE_UNSAFE = frozenset(" \t\n\r|+()")


# ---------------------------------------------------------------------------
# describe / format_expression
# ---------------------------------------------------------------------------


def describe(expr: FilterExpression) -> str:
    """Return a one-line s-expression, e.g. ``(and text("a") depth(>2))``."""
    if isinstance(expr, AndExpr):
        return f"(and {describe(expr.left)} {describe(expr.right)})"
    if isinstance(expr, OrExpr):
        return f"(or {describe(expr.left)} {describe(expr.right)})"
    if isinstance(expr, NotExpr):
        return f"(not {describe(expr.inner)})"
    if isinstance(expr, AlwaysMatch):
        return "always-match"
    if isinstance(expr, TextFilter):
        return f'text("{expr.term}")'
    if isinstance(expr, FuzzyFilter):
        return f'fuzzy("{expr.term}")'
    if isinstance(expr, DepthFilter):
        return f"depth({expr.op.value}{expr.value})"
    if isinstance(expr, ChildrenFilter):
        return f"children({expr.op.value}{expr.value})"
    if isinstance(expr, AttributeFilter):
        if expr.op is None:
            return f"attr({expr.key})"
        return f"attr({expr.key}{expr.op.value}{expr.value})"
    if isinstance(expr, AttributeDateFilter):
        return f"attr-date({expr.key}{expr.op.value}{expr.value.raw})"
    if isinstance(expr, DateFilter):
        return f"{expr.field}({expr.op.value}{expr.value.raw})"
    if isinstance(expr, ParentFilter):
        return f"parent({describe(expr.inner)})"
    if isinstance(expr, AncestorFilter):
        return f"ancestor({describe(expr.inner)})"
    if isinstance(expr, ChildFilter):
        return f"child({describe(expr.inner)})"
    if isinstance(expr, DescendantFilter):
        return f"descendant({describe(expr.inner)})"
    if isinstance(expr, SiblingFilter):
        return f"sibling({describe(expr.inner)})"
    if isinstance(expr, ReferenceFilter):
        return f"ref({expr.target_id})"
    raise TypeError(f"Unknown filter expression: {expr!r}")


def format_expression(expr: FilterExpression, indent: int = 0) -> str:
    """Return an indented multi-line rendering of the boolean structure."""
    pad = "  " * indent

    if isinstance(expr, (AndExpr, OrExpr)):
        name = "and" if isinstance(expr, AndExpr) else "or"
        left = format_expression(expr.left, indent + 1)
        right = format_expression(expr.right, indent + 1)
        return f"{pad}({name}\n{left}\n{right}\n{pad})"

    if isinstance(expr, NotExpr):
        inner = format_expression(expr.inner, indent + 1)
        return f"{pad}(not\n{inner}\n{pad})"

    return pad + describe(expr)


# ---------------------------------------------------------------------------
# to_query
# ---------------------------------------------------------------------------


def _text_to_query(term: str) -> str:
    bare_ok = (
        term
        and not any(ch in _BARE_UNSAFE for ch in term)
        and term[0] not in '-@~"'
        and not _FILTER_LIKE.match(term)
    )
    if bare_ok:
        return term
    return f'"{term}"'


def _nested_to_query(inner: FilterExpression) -> str:
    text = to_query(inner, nested=True)
    if isinstance(inner, (AndExpr, OrExpr)) or any(ch in text for ch in " \t|+()"):
        return f"({text})"
    return text


def to_query(expr: FilterExpression, *, nested: bool = False) -> str:
    """Print an expression back into query syntax.

    Parsing the result yields an expression with identical match behaviour.

    Args:
        expr: Expression to print.
        nested: Whether ``expr`` is an operand of another expression.
    """
    if isinstance(expr, AndExpr):
        parts = []
        for operand in (expr.left, expr.right):
            text = to_query(operand, nested=True)
            parts.append(f"({text})" if isinstance(operand, OrExpr) else text)
        return " ".join(parts)

    if isinstance(expr, OrExpr):
        return f"{to_query(expr.left, nested=True)} | {to_query(expr.right, nested=True)}"

    if isinstance(expr, NotExpr):
        inner = to_query(expr.inner, nested=True)
        if isinstance(expr.inner, (AndExpr, OrExpr)):
            return f"-({inner})"
        return f"-{inner}"

    if isinstance(expr, AlwaysMatch):
        # An empty quoted text matches every node
        return '""' if nested else ""

    if isinstance(expr, TextFilter):
        return _text_to_query(expr.term)
    if isinstance(expr, FuzzyFilter):
        return f"~{expr.term}"
    if isinstance(expr, DepthFilter):
        return f"d:{expr.op.value}{expr.value}"
    if isinstance(expr, ChildrenFilter):
        return f"children:{expr.op.value}{expr.value}"
    if isinstance(expr, AttributeFilter):
        if expr.op is None:
            return f"@{expr.key}"
        return f"@{expr.key}{expr.op.value}{expr.value}"
    if isinstance(expr, AttributeDateFilter):
        return f"@{expr.key}{expr.op.value}{expr.value.raw}"
    if isinstance(expr, DateFilter):
        name = "c" if expr.field == CREATED else "m"
        return f"{name}:{expr.op.value}{expr.value.raw}"
    if isinstance(expr, ParentFilter):
        return f"p:{_nested_to_query(expr.inner)}"
    if isinstance(expr, AncestorFilter):
        return f"a:{_nested_to_query(expr.inner)}"
    if isinstance(expr, ChildFilter):
        return f"child:{_nested_to_query(expr.inner)}"
    if isinstance(expr, DescendantFilter):
        return f"desc:{_nested_to_query(expr.inner)}"
    if isinstance(expr, SiblingFilter):
        return f"sib:{_nested_to_query(expr.inner)}"
    if isinstance(expr, ReferenceFilter):
        return f"ref:{expr.target_id}"
    raise TypeError(f"Unknown filter expression: {expr!r}")


# ---------------------------------------------------------------------------
# explain
# ---------------------------------------------------------------------------


@dataclass
class Explanation:
    """Outcome of one sub-expression for one node."""

    expression: str
    matched: bool
    reason: str
    children: list[Explanation] = field(default_factory=list)


def _satisfies(ok: bool) -> str:
    return "satisfies" if ok else "does not satisfy"


def _explain_leaf(expr: FilterExpression, node: Node, now: datetime, matched: bool) -> str:
    """Build the reason string for a predicate."""
    if isinstance(expr, AlwaysMatch):
        return "empty query matches everything"

    if isinstance(expr, TextFilter):
        verb = "contains" if matched else "does not contain"
        return f'text {verb} "{expr.term}"'

    if isinstance(expr, FuzzyFilter):
        if matched:
            positions = fuzzy_positions(expr.term, node.text or "") or []
            return f'text contains "{expr.term}" in order at {positions}'
        return f'text does not contain "{expr.term}" in order'

    if isinstance(expr, DepthFilter):
        return f"depth {depth_of(node)} {_satisfies(matched)} {expr.op.value}{expr.value}"

    if isinstance(expr, ChildrenFilter):
        return (
            f"has {len(node.children)} children, "
            f"{_satisfies(matched)} {expr.op.value}{expr.value}"
        )

    if isinstance(expr, (AttributeFilter, AttributeDateFilter)):
        value = (node.attributes or {}).get(expr.key)
        if value is None:
            return f"no attribute '{expr.key}'"
        if isinstance(expr, AttributeFilter):
            if expr.op is None:
                if matched:
                    return f"has attribute '{expr.key}' = '{value}'"
                return f"attribute '{expr.key}' is empty"
            return (
                f"attribute '{expr.key}' = '{value}' "
                f"{_satisfies(matched)} {expr.op.value}'{expr.value}'"
            )
        if parse_timestamp(value) is None:
            return f"attribute '{expr.key}' = '{value}' is not a date"
        target = expr.value.resolve(now)
        return (
            f"attribute '{expr.key}' date {value} {_satisfies(matched)} "
            f"{expr.op.value}{expr.value.raw} ({target:%Y-%m-%d %H:%M})"
        )

    if isinstance(expr, DateFilter):
        moment = node.created if expr.field == CREATED else node.modified
        if moment is None:
            return f"no {expr.field} timestamp"
        target = expr.value.resolve(now)
        return (
            f"{expr.field} {moment:%Y-%m-%d} {_satisfies(matched)} "
            f"{expr.op.value}{expr.value.raw} ({target:%Y-%m-%d %H:%M})"
        )

    if isinstance(expr, ReferenceFilter):
        verb = "links to" if links_to(node.text or "", expr.target_id) else "does not link to"
        return f"{verb} [[{expr.target_id}]]"

    return describe(expr)


def explain(expr: FilterExpression, node: Node, now: datetime) -> Explanation:
    """Explain why ``node`` does or does not match ``expr``.

    Every sub-expression is evaluated (no short-circuiting) so the trace is
    complete; the top-level ``matched`` always equals ``matches()``.

    Args:
        expr: Parsed filter expression.
        node: Node to explain.
        now: Evaluation instant for relative dates.

    Returns:
        A tree of Explanation records mirroring the expression.
    """
    label = describe(expr)

    if isinstance(expr, AndExpr):
        left = explain(expr.left, node, now)
        right = explain(expr.right, node, now)
        if left.matched and right.matched:
            reason = "both conditions match"
        elif not left.matched:
            reason = "left condition fails"
        else:
            reason = "right condition fails"
        return Explanation(label, left.matched and right.matched, reason, [left, right])

    if isinstance(expr, OrExpr):
        left = explain(expr.left, node, now)
        right = explain(expr.right, node, now)
        if left.matched:
            reason = "left condition matches"
        elif right.matched:
            reason = "right condition matches"
        else:
            reason = "neither condition matches"
        return Explanation(label, left.matched or right.matched, reason, [left, right])

    if isinstance(expr, NotExpr):
        inner = explain(expr.inner, node, now)
        state = "true" if inner.matched else "false"
        return Explanation(label, not inner.matched, f"condition is {state} (inverted)", [inner])

    if isinstance(expr, ParentFilter):
        parent = node.parent
        if parent is None:
            return Explanation(label, False, "no parent")
        inner = explain(expr.inner, parent, now)
        verb = "matches" if inner.matched else "does not match"
        return Explanation(label, inner.matched, f"parent '{parent.text}' {verb}", [inner])

    if isinstance(expr, AncestorFilter):
        traces: list[Explanation] = []
        current = node.parent
        level = 0
        while current is not None:
            level += 1
            trace = explain(expr.inner, current, now)
            traces.append(trace)
            if trace.matched:
                reason = f"ancestor at level {level} '{current.text}' matches"
                return Explanation(label, True, reason, traces)
            current = current.parent
        reason = "no ancestor matches" if traces else "no ancestors"
        return Explanation(label, False, reason, traces)

    if isinstance(expr, ChildFilter):
        traces = []
        for index, child in enumerate(node.children):
            trace = explain(expr.inner, child, now)
            traces.append(trace)
            if trace.matched:
                return Explanation(label, True, f"child {index} '{child.text}' matches", traces)
        reason = "no child matches" if traces else "no children"
        return Explanation(label, False, reason, traces)

    if isinstance(expr, DescendantFilter):
        traces = []
        for below in iter_descendants(node):
            trace = explain(expr.inner, below, now)
            traces.append(trace)
            if trace.matched:
                return Explanation(label, True, f"descendant '{below.text}' matches", traces)
        reason = "no descendant matches" if traces else "no descendants"
        return Explanation(label, False, reason, traces)

    if isinstance(expr, SiblingFilter):
        if node.parent is None:
            return Explanation(label, False, "root nodes have no siblings")
        traces = []
        for sibling in iter_siblings(node):
            trace = explain(expr.inner, sibling, now)
            traces.append(trace)
            if trace.matched:
                return Explanation(label, True, f"sibling '{sibling.text}' matches", traces)
        reason = "no sibling matches" if traces else "no siblings"
        return Explanation(label, False, reason, traces)

    matched = matches(expr, node, now)
    return Explanation(label, matched, _explain_leaf(expr, node, now, matched))


def format_explanation(explanation: Explanation, indent: int = 0) -> str:
    """Render an explanation tree as indented plain text."""
    mark = "+" if explanation.matched else "-"
    lines = [f"{'  ' * indent}[{mark}] {explanation.expression}: {explanation.reason}"]
    for child in explanation.children:
        lines.append(format_explanation(child, indent + 1))
    return "\n".join(lines)


def node_details(node: Node) -> dict[str, str]:
    """Summarise the node properties filters look at."""
    parent = node.parent
    details = {
        "text": node.text,
        "depth": str(depth_of(node)),
        "children_count": str(len(node.children)),
        "parent": parent.text if parent is not None else "(root)",
    }
    if node.created is not None:
        details["created"] = f"{node.created:%Y-%m-%d}"
    if node.modified is not None:
        details["modified"] = f"{node.modified:%Y-%m-%d}"
    if node.tags:
        details["tags"] = ", ".join(node.tags)
    if node.attributes:
        details["attributes"] = ", ".join(f"{k}={v}" for k, v in node.attributes.items())
    return details
