# tierguard:domain=graph
"""Graph sorter: Kahn-style topological layering with cycle diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class CycleError(ValueError):
    """Raised when the dependency graph cannot be layered because of a cycle."""

    def __init__(self, remaining: Sequence[str], cycle: Sequence[str] | None) -> None:
        self.remaining = tuple(remaining)
        self.cycle = tuple(cycle) if cycle else ()
        msg = f"Circular dependency detected among: {', '.join(self.remaining)}\n"
        if self.cycle:
            msg += f"Cycle: {' -> '.join(self.cycle)}\n"
        msg += "Fix: Remove one of the dependencies to break the cycle."
        super().__init__(msg)


@dataclass(frozen=True)
class GraphEntry:
    """One node of a leveled graph."""

    level: int
    depends_on: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {"level": self.level, "dependsOn": list(self.depends_on)}


# Node name -> entry.  Level 0 nodes have no dependencies and every edge
# A -> B satisfies level(A) > level(B).
LeveledGraph = dict[str, GraphEntry]


def compute_layers(graph: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Group the nodes of *graph* into dependency layers.

    Each pass collects every unprocessed node whose dependencies are all in
    earlier layers.  Layers are sorted alphabetically.  Raises
    :class:`CycleError` when a pass makes no progress.
    """
    layers: list[list[str]] = []
    processed: set[str] = set()
    nodes = list(graph)

    while len(processed) < len(nodes):
        layer = sorted(
            node
            for node in nodes
            if node not in processed and all(dep in processed for dep in graph[node])
        )
        if not layer:
            remaining = [node for node in nodes if node not in processed]
            raise CycleError(remaining, find_cycle(graph, remaining))
        layers.append(layer)
        processed.update(layer)

    return layers


def find_cycle(graph: Mapping[str, Sequence[str]], remaining: Sequence[str]) -> list[str] | None:
    """Return one cycle inside *remaining* as a closed path (first == last).

    Iterative DFS restricted to the *remaining* subgraph; ``None`` when the
    stall was caused by dependencies that are not nodes of the graph.
    """
    pending = set(remaining)
    visited: set[str] = set()

    for start in remaining:
        if start in visited:
            continue
        path: list[str] = [start]
        on_path: set[str] = {start}
        visited.add(start)
        stack = [iter(graph.get(start, ()))]

        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if dep not in pending:
                continue
            if dep in on_path:
                return [*path[path.index(dep) :], dep]
            if dep in visited:
                continue
            visited.add(dep)
            path.append(dep)
            on_path.add(dep)
            stack.append(iter(graph.get(dep, ())))

    return None


def sort_graph(graph: Mapping[str, Sequence[str]]) -> LeveledGraph:
    """Assign every node its layer index and return the leveled graph."""
    result: LeveledGraph = {}
    for level, layer in enumerate(compute_layers(graph)):
        for node in layer:
            result[node] = GraphEntry(level=level, depends_on=tuple(sorted(graph[node])))
    return result


def level_count(graph: LeveledGraph) -> int:
    """Number of distinct levels in *graph*."""
    return len({entry.level for entry in graph.values()})
