"""Unit tests for reading outline documents."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from outliner.exceptions import OutlineError, OutlineNotFoundError, OutlineParseError
from outliner.model import Node, Outline
from outliner.outline_io import load_outline


def _write(temp_dir: Path, data: object) -> Path:
    path = temp_dir / "outline.json"
    path.write_text(json.dumps(data))
    return path


class TestLoadOutline:
    def test_loads_tree_with_parents(self, sample_outline: Outline) -> None:
        assert [item.id for item in sample_outline.items] == ["root", "inbox"]
        wire = sample_outline.find_by_id("wire")
        assert wire is not None
        assert wire.parent is not None and wire.parent.id == "web"
        assert sample_outline.items[0].parent is None

    def test_metadata(self, sample_outline: Outline) -> None:
        web = sample_outline.find_by_id("web")
        assert web is not None
        assert web.tags == ["work"]
        assert web.attribute("status") == "active"
        assert web.created == datetime(2025, 10, 15, 9, 0, tzinfo=timezone.utc)

    def test_missing_metadata_defaults(self, temp_dir: Path) -> None:
        outline = load_outline(_write(temp_dir, {"items": [{"id": "x"}]}))
        node = outline.items[0]
        assert node.text == ""
        assert node.children == []
        assert node.attributes == {}
        assert node.created is None

    def test_attribute_values_become_strings(self, temp_dir: Path) -> None:
        data = {"items": [{"id": "x", "metadata": {"attributes": {"priority": 2}}}]}
        outline = load_outline(_write(temp_dir, data))
        assert outline.items[0].attribute("priority") == "2"

    def test_empty_document(self, temp_dir: Path) -> None:
        assert load_outline(_write(temp_dir, {})).items == []

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(OutlineNotFoundError):
            load_outline(temp_dir / "nope.json")

    def test_invalid_json(self, temp_dir: Path) -> None:
        path = temp_dir / "outline.json"
        path.write_text("{not json")
        with pytest.raises(OutlineParseError):
            load_outline(path)

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"items": {}},
            {"items": ["x"]},
            {"items": [{"text": "no id"}]},
            {"items": [{"id": "x", "children": "nope"}]},
            {"items": [{"id": "x", "metadata": {"created": "yesterday"}}]},
            {"items": [{"id": "x", "metadata": {"tags": "t"}}]},
        ],
    )
    def test_malformed_documents(self, temp_dir: Path, data: object) -> None:
        with pytest.raises(OutlineError):
            load_outline(_write(temp_dir, data))


class TestOutlineModel:
    def test_iter_nodes_pre_order(self) -> None:
        a = Node(id="a")
        b = a.add_child(Node(id="b"))
        b.add_child(Node(id="c"))
        a.add_child(Node(id="d"))
        outline = Outline(items=[a, Node(id="e")])
        assert [n.id for n in outline.iter_nodes()] == ["a", "b", "c", "d", "e"]

    def test_find_by_id_missing(self) -> None:
        assert Outline(items=[Node(id="a")]).find_by_id("b") is None

    def test_restore_parents(self) -> None:
        child = Node(id="c")
        root = Node(id="r", children=[child])
        assert child.parent is None
        Outline(items=[root]).restore_parents()
        assert child.parent is root
