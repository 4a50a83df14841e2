# tierguard:domain=graph
"""Tests for tierguard.graph.store: blessed snapshot persistence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from tierguard.graph.sorter import sort_graph
from tierguard.graph.store import (
    DEFAULT_GRAPH_PATH,
    SnapshotError,
    graph_from_dict,
    load_snapshot,
    save_snapshot,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_missing_snapshot(tmp_path: Path) -> None:
    assert load_snapshot(tmp_path) is None


def test_save_and_load(tmp_path: Path) -> None:
    graph = sort_graph({"web": ["core"], "core": []})
    path = save_snapshot(graph, tmp_path)
    assert path == tmp_path / DEFAULT_GRAPH_PATH
    assert load_snapshot(tmp_path) == graph
    assert not path.with_name(path.name + ".tmp").exists()


def test_file_format(tmp_path: Path) -> None:
    save_snapshot(sort_graph({"web": ["core"], "core": []}), tmp_path, "deps.json")
    text = (tmp_path / "deps.json").read_text()
    assert text.endswith("\n")
    assert list(json.loads(text)) == ["core", "web"]
    assert json.loads(text)["web"] == {"level": 1, "dependsOn": ["core"]}
    assert '  "core": {' in text


def test_invalid_json(tmp_path: Path) -> None:
    (tmp_path / "deps.json").write_text("{oops")
    with pytest.raises(SnapshotError, match="Failed to load graph"):
        load_snapshot(tmp_path, "deps.json")


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ([], "root must be an object"),
        ({"a": 1}, "must be an object"),
        ({"a": {"level": -1, "dependsOn": []}}, "invalid level"),
        ({"a": {"level": True, "dependsOn": []}}, "invalid level"),
        ({"a": {"level": 0, "dependsOn": "b"}}, "invalid dependsOn"),
    ],
)
def test_invalid_shape(data: object, message: str) -> None:
    with pytest.raises(SnapshotError, match=message):
        graph_from_dict(data)
