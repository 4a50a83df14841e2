# tierguard:domain=graph
"""Graph store: load and save the blessed dependency snapshot."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

from tierguard.graph.sorter import GraphEntry

if TYPE_CHECKING:
    from pathlib import Path

    from tierguard.graph.sorter import LeveledGraph

# Default snapshot location, relative to the workspace root.
DEFAULT_GRAPH_PATH = "architecture/dependencies.json"


class SnapshotError(ValueError):
    """Raised when the snapshot file exists but cannot be interpreted."""


def graph_to_dict(graph: LeveledGraph) -> dict[str, dict[str, object]]:
    """Serialize *graph* with node names in sorted order."""
    return {name: graph[name].to_dict() for name in sorted(graph)}


def graph_from_dict(data: object) -> LeveledGraph:
    """Parse the ``{name: {level, dependsOn}}`` JSON shape.

    Raises
    ------
    SnapshotError
        When *data* does not have the expected shape.
    """
    if not isinstance(data, dict):
        msg = "snapshot root must be an object"
        raise SnapshotError(msg)

    graph: LeveledGraph = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            msg = f"snapshot entry '{name}' must be an object"
            raise SnapshotError(msg)
        level = entry.get("level")
        deps = entry.get("dependsOn", [])
        if not isinstance(level, int) or isinstance(level, bool) or level < 0:
            msg = f"snapshot entry '{name}' has an invalid level: {level!r}"
            raise SnapshotError(msg)
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            msg = f"snapshot entry '{name}' has an invalid dependsOn list"
            raise SnapshotError(msg)
        graph[str(name)] = GraphEntry(level=level, depends_on=tuple(sorted(deps)))
    return graph


def load_snapshot(
    workspace_root: Path, graph_path: str = DEFAULT_GRAPH_PATH
) -> LeveledGraph | None:
    """Load the blessed snapshot, or ``None`` when the file does not exist."""
    full_path = workspace_root / graph_path
    if not full_path.is_file():
        return None
    try:
        data = json.loads(full_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Failed to load graph from {full_path}: {exc}"
        raise SnapshotError(msg) from exc
    return graph_from_dict(data)


def save_snapshot(
    graph: LeveledGraph,
    workspace_root: Path,
    graph_path: str = DEFAULT_GRAPH_PATH,
) -> Path:
    """Write *graph* as sorted, 2-space indented JSON via temp-and-rename.

    Returns the absolute path of the written file.
    """
    full_path = workspace_root / graph_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = full_path.with_name(full_path.name + ".tmp")
    content = json.dumps(graph_to_dict(graph), indent=2) + "\n"
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, full_path)
    return full_path
