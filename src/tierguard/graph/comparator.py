# tierguard:domain=graph
"""Graph comparator: structural diff between a fresh leveled graph and the blessed snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.console import Console

    from tierguard.graph.sorter import LeveledGraph


@dataclass(frozen=True)
class LevelChange:
    """Level of a node moved between the snapshot and the current graph."""

    old: int
    new: int


@dataclass(frozen=True)
class ProjectChange:
    """Dependency and level differences for a node present in both graphs."""

    project: str
    added_deps: tuple[str, ...]
    removed_deps: tuple[str, ...]
    level_changed: LevelChange | None = None


@dataclass(frozen=True)
class GraphComparison:
    """Complete comparison result."""

    added: tuple[str, ...]
    removed: tuple[str, ...]
    modified: tuple[ProjectChange, ...]

    @property
    def identical(self) -> bool:
        return not (self.added or self.removed or self.modified)

    @property
    def summary(self) -> str:
        """Plain-text summary, one line per change group."""
        if self.identical:
            return "Graphs are identical"

        lines: list[str] = []
        if self.added:
            lines.append(f"Added projects: {', '.join(self.added)}")
        if self.removed:
            lines.append(f"Removed projects: {', '.join(self.removed)}")
        for change in self.modified:
            parts: list[str] = []
            if change.added_deps:
                parts.append(f"+deps: {', '.join(change.added_deps)}")
            if change.removed_deps:
                parts.append(f"-deps: {', '.join(change.removed_deps)}")
            if change.level_changed is not None:
                parts.append(f"level: {change.level_changed.old} -> {change.level_changed.new}")
            lines.append(f"{change.project}: {'; '.join(parts)}")
        return "\n".join(lines)


def compare_graphs(current: LeveledGraph, saved: LeveledGraph) -> GraphComparison:
    """Compare the freshly computed *current* graph against the *saved* snapshot."""
    added = tuple(sorted(set(current) - set(saved)))
    removed = tuple(sorted(set(saved) - set(current)))

    modified: list[ProjectChange] = []
    for project in sorted(set(current) & set(saved)):
        cur = current[project]
        old = saved[project]
        cur_deps = set(cur.depends_on)
        old_deps = set(old.depends_on)
        level_changed = (
            LevelChange(old=old.level, new=cur.level) if cur.level != old.level else None
        )
        added_deps = tuple(sorted(cur_deps - old_deps))
        removed_deps = tuple(sorted(old_deps - cur_deps))
        if added_deps or removed_deps or level_changed is not None:
            modified.append(
                ProjectChange(
                    project=project,
                    added_deps=added_deps,
                    removed_deps=removed_deps,
                    level_changed=level_changed,
                )
            )

    return GraphComparison(added=added, removed=removed, modified=tuple(modified))


def comparison_to_dict(comparison: GraphComparison) -> dict[str, object]:
    """Serialize a GraphComparison to a JSON-compatible dict."""
    return {
        "identical": comparison.identical,
        "added": list(comparison.added),
        "removed": list(comparison.removed),
        "modified": [
            {
                "project": change.project,
                "addedDeps": list(change.added_deps),
                "removedDeps": list(change.removed_deps),
                "levelChanged": (
                    {"from": change.level_changed.old, "to": change.level_changed.new}
                    if change.level_changed is not None
                    else None
                ),
            }
            for change in comparison.modified
        ],
        "summary": comparison.summary,
    }


def render_comparison(comparison: GraphComparison, console: Console) -> None:
    """Render a GraphComparison with ``+`` (green), ``-`` (red), ``~`` (yellow) markers."""
    if comparison.identical:
        console.print("Architecture unchanged: current graph matches the saved graph.")
        return

    console.print("[bold]Architecture has changed since the last generate:[/bold]")
    for project in comparison.added:
        console.print(f"  [green]+ {project}[/green]")
    for project in comparison.removed:
        console.print(f"  [red]- {project}[/red]")
    for change in comparison.modified:
        console.print(f"  [yellow]~ {change.project}[/yellow]")
        for dep in change.added_deps:
            console.print(f"    [green]+ depends on {dep}[/green]")
        for dep in change.removed_deps:
            console.print(f"    [red]- depends on {dep}[/red]")
        if change.level_changed is not None:
            console.print(
                f"    level: {change.level_changed.old} → {change.level_changed.new}"
            )
