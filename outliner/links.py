"""Wiki-style internal links in node text.

Two forms are recognised:

    - ``[[node_id]]`` displays as the referenced node's text
    - ``[[node_id|custom text]]`` displays as the custom text
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_LINK_PATTERN = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")


@dataclass(frozen=True)
class Link:
    """An internal link reference found in node text.

    ``start`` is inclusive and ``end`` exclusive, as offsets into the text.
    """

    target_id: str
    label: str
    start: int
    end: int

    @property
    def display_text(self) -> str:
        return self.label or self.target_id


def parse_links(text: str) -> list[Link]:
    """Extract all wiki-style links from ``text`` in order of appearance."""
    links: list[Link] = []
    for match in _LINK_PATTERN.finditer(text):
        label = match.group(2) or ""
        links.append(
            Link(
                target_id=match.group(1).strip(),
                label=label.strip(),
                start=match.start(),
                end=match.end(),
            )
        )
    return links


def links_to(text: str, target_id: str) -> bool:
    """Return whether ``text`` contains a link whose id is exactly ``target_id``."""
    return any(link.target_id == target_id for link in parse_links(text))
