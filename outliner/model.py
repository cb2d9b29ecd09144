"""Outline tree model consumed by the search engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(eq=False)
class Node:
    """A single item in the outline tree.

    Attributes:
        id: Stable node identifier, e.g. ``item_20251101120000_ab12cd34``.
        text: The node's text content.
        children: Ordered child nodes, owned by this node.
        tags: Tag names.
        attributes: Attribute key/value pairs.
        created: Creation timestamp, if known.
        modified: Last modification timestamp, if known.
        parent: Back-reference to the parent (None for roots). Used only for
            upward traversal; never part of repr.
    """

    id: str
    text: str = ""
    children: list[Node] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None
    modified: datetime | None = None
    parent: Node | None = field(default=None, repr=False)

    def add_child(self, child: Node) -> Node:
        """Append ``child`` and point its parent reference here."""
        child.parent = self
        self.children.append(child)
        return child

    def attribute(self, key: str) -> str | None:
        """Return the attribute value for ``key``, or None if absent."""
        return self.attributes.get(key)


@dataclass
class Outline:
    """A whole outline document: an ordered forest of root nodes."""

    items: list[Node] = field(default_factory=list)

    def iter_nodes(self) -> Iterator[Node]:
        """Yield every node in document order (pre-order, depth-first)."""
        stack = list(reversed(self.items))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_by_id(self, node_id: str) -> Node | None:
        """Return the node with ``node_id``, or None."""
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def restore_parents(self) -> None:
        """Rebuild parent back-references from the child lists."""
        for root in self.items:
            root.parent = None
        for node in self.iter_nodes():
            for child in node.children:
                child.parent = node
