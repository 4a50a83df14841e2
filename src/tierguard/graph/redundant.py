# tierguard:domain=graph
"""Redundant-edge detector: direct dependencies already implied by a sibling dependency."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@dataclass(frozen=True)
class RedundantDependency:
    """``project -> redundant_dep`` is reachable through ``brought_in_by``."""

    project: str
    redundant_dep: str
    brought_in_by: str


def transitive_closure(node: str, graph: Mapping[str, Sequence[str]]) -> set[str]:
    """Every node reachable from *node* (excluding *node* unless it is on a cycle)."""
    reached: set[str] = set()
    stack = list(graph.get(node, ()))
    while stack:
        dep = stack.pop()
        if dep in reached:
            continue
        reached.add(dep)
        stack.extend(graph.get(dep, ()))
    return reached


def find_redundant_deps(
    project: str, graph: Mapping[str, Sequence[str]]
) -> list[RedundantDependency]:
    """Direct dependencies of *project* that another direct dependency already brings in.

    Each redundant dependency is reported once, naming the first sibling
    (in declaration order) whose closure contains it.
    """
    direct = list(graph.get(project, ()))
    closures = {dep: transitive_closure(dep, graph) for dep in direct}

    redundant: list[RedundantDependency] = []
    for dep in direct:
        for other in direct:
            if other != dep and dep in closures[other]:
                redundant.append(
                    RedundantDependency(project=project, redundant_dep=dep, brought_in_by=other)
                )
                break
    return redundant


def find_all_redundant(graph: Mapping[str, Sequence[str]]) -> list[RedundantDependency]:
    """Run :func:`find_redundant_deps` for every node, in sorted node order."""
    found: list[RedundantDependency] = []
    for project in sorted(graph):
        found.extend(find_redundant_deps(project, graph))
    return found
