"""Shared pytest fixtures."""

from __future__ import annotations

import json
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from outliner.outline_io import load_outline

if TYPE_CHECKING:
    from collections.abc import Generator

    from outliner.model import Outline


# ---------------------------------------------------------------------------
# Sample outline
# ---------------------------------------------------------------------------
#
# Document order and depths:
#
#   root       Projects                         0
#   web          Website redesign               1
#   wire           Draft wireframes             2
#   wire_note        Feedback from meeting      3
#   copy           Write copy for landing page  2
#   garden       Garden                         1
#   seeds          Order seeds, see [[web|...]] 2
#   inbox      Inbox meeting notes              0

SAMPLE_OUTLINE_DATA: dict[str, Any] = {
    "items": [
        {
            "id": "root",
            "text": "Projects",
            "metadata": {
                "attributes": {"type": "project"},
                "created": "2025-10-01T09:00:00Z",
                "modified": "2025-11-09T10:00:00Z",
            },
            "children": [
                {
                    "id": "web",
                    "text": "Website redesign",
                    "metadata": {
                        "tags": ["work"],
                        "attributes": {"type": "project", "status": "active"},
                        "created": "2025-10-15T09:00:00Z",
                        "modified": "2025-11-05T09:00:00Z",
                    },
                    "children": [
                        {
                            "id": "wire",
                            "text": "Draft wireframes",
                            "metadata": {
                                "attributes": {
                                    "type": "task",
                                    "status": "done",
                                    "due": "2025-11-01",
                                },
                                "created": "2025-10-20T09:00:00Z",
                                "modified": "2025-11-08T00:00:00Z",
                            },
                            "children": [
                                {
                                    "id": "wire_note",
                                    "text": "Feedback from meeting",
                                    "metadata": {
                                        "created": "2025-11-02T14:00:00Z",
                                        "modified": "2025-11-02T14:00:00Z",
                                    },
                                },
                            ],
                        },
                        {
                            "id": "copy",
                            "text": "Write copy for landing page",
                            "metadata": {
                                "attributes": {
                                    "type": "task",
                                    "status": "todo",
                                    "due": "2025-11-12",
                                },
                                "created": "2025-11-01T09:00:00Z",
                                "modified": "2025-11-10T08:00:00Z",
                            },
                        },
                    ],
                },
                {
                    "id": "garden",
                    "text": "Garden",
                    "metadata": {"attributes": {"type": "area"}},
                    "children": [
                        {
                            "id": "seeds",
                            "text": "Order seeds, see [[web|the website]]",
                            "metadata": {"attributes": {"type": "task", "status": "todo"}},
                        },
                    ],
                },
            ],
        },
        {
            "id": "inbox",
            "text": "Inbox meeting notes",
            "metadata": {
                "tags": ["inbox"],
                "created": "2025-11-09T18:00:00Z",
                "modified": "2025-11-09T18:00:00Z",
            },
        },
    ]
}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_outline_path(temp_dir: Path) -> Path:
    """Write the sample outline document to disk."""
    path = temp_dir / "outline.json"
    path.write_text(json.dumps(SAMPLE_OUTLINE_DATA, indent=2))
    return path


@pytest.fixture
def sample_outline(sample_outline_path: Path) -> Outline:
    """The sample outline, loaded with parents restored."""
    return load_outline(sample_outline_path)


@pytest.fixture
def sample_config(temp_dir: Path, sample_outline_path: Path) -> Path:
    """Create a sample config file pointing at the sample outline."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[paths]
outline = "{sample_outline_path.as_posix()}"

[display]
colored_output = false

[search]
default_format = "ids"
quick_search_limit = 3
""")
    return config_path


@pytest.fixture
def fixed_now() -> datetime:
    """Evaluation instant used by date tests: 2025-11-10 12:00 UTC."""
    return datetime(2025, 11, 10, 12, 0, tzinfo=timezone.utc)
