"""Read outline documents from the editor's JSON format.

The format is::

    {"items": [{"id": "...", "text": "...", "children": [...],
                "metadata": {"tags": [...], "attributes": {...},
                             "created": "2025-11-01T10:00:00Z",
                             "modified": "2025-11-02T09:30:00Z"}}]}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil.parser import isoparse

from outliner.exceptions import OutlineNotFoundError, OutlineParseError
from outliner.model import Node, Outline

logger = logging.getLogger(__name__)


def _parse_time(value: Any, path: Path, node_id: str) -> datetime | None:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise OutlineParseError(path, f"item {node_id}: timestamp must be a string")
    try:
        return isoparse(value)
    except (ValueError, OverflowError) as e:
        raise OutlineParseError(path, f"item {node_id}: invalid timestamp {value!r}") from e


def _parse_item(data: Any, path: Path) -> Node:
    """Build a Node (and its subtree) from one JSON item."""
    if not isinstance(data, dict):
        raise OutlineParseError(path, "items must be objects")

    node_id = data.get("id")
    if not isinstance(node_id, str) or not node_id:
        raise OutlineParseError(path, "item without a string 'id'")

    text = data.get("text", "")
    if not isinstance(text, str):
        raise OutlineParseError(path, f"item {node_id}: 'text' must be a string")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise OutlineParseError(path, f"item {node_id}: 'metadata' must be an object")

    tags = metadata.get("tags") or []
    attributes = metadata.get("attributes") or {}
    if not isinstance(tags, list) or not isinstance(attributes, dict):
        raise OutlineParseError(path, f"item {node_id}: invalid tags or attributes")

    node = Node(
        id=node_id,
        text=text,
        tags=[str(tag) for tag in tags],
        attributes={str(k): str(v) for k, v in attributes.items()},
        created=_parse_time(metadata.get("created"), path, node_id),
        modified=_parse_time(metadata.get("modified"), path, node_id),
    )

    children = data.get("children") or []
    if not isinstance(children, list):
        raise OutlineParseError(path, f"item {node_id}: 'children' must be a list")
    for child in children:
        node.add_child(_parse_item(child, path))

    return node


def load_outline(path: Path) -> Outline:
    """Load an outline document.

    Args:
        path: Path to the outline JSON file.

    Returns:
        The Outline with parent references restored.

    Raises:
        OutlineNotFoundError: If the file does not exist.
        OutlineParseError: If the file is not valid outline JSON.
    """
    path = path.expanduser()
    if not path.exists():
        raise OutlineNotFoundError(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise OutlineParseError(path, str(e)) from e

    if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
        raise OutlineParseError(path, "expected an object with an 'items' list")

    outline = Outline(items=[_parse_item(item, path) for item in data.get("items", [])])
    logger.debug("Loaded %d root items from %s", len(outline.items), path)
    return outline
