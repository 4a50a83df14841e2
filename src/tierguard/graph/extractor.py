# tierguard:domain=graph
"""Graph extractor: discover workspace projects and their declared build dependencies."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

# Manifest file that marks a directory as a build-orchestrator project.
PROJECT_MANIFEST = "project.json"

# Directories never scanned for project manifests.
_SKIP_DIRS: frozenset[str] = frozenset({"node_modules", "dist", "tmp", ".git", ".nx", "coverage"})

# "<project>:build" entries in targets.build.dependsOn.  "^build" and bare
# "build" refer to the project itself and are ignored.
_BUILD_DEP_RE = re.compile(r"^([^:^]+):build$")


@dataclass(frozen=True)
class ProjectInfo:
    """A workspace project as declared by its manifest."""

    name: str
    root: str  # project directory, relative to the workspace root (posix)
    build_deps: tuple[str, ...]


# ---------------------------------------------------------------------------
# Manifest parsing
# ---------------------------------------------------------------------------


def extract_build_dependencies(manifest: dict[str, object]) -> list[str]:
    """Return the sorted build-time dependencies declared in *manifest*.

    Reads ``targets.build.dependsOn`` entries of the form ``<name>:build``
    and merges ``implicitDependencies``.  Duplicates are dropped.
    """
    deps: list[str] = []

    targets = manifest.get("targets")
    build = targets.get("build") if isinstance(targets, dict) else None
    depends_on = build.get("dependsOn") if isinstance(build, dict) else None
    if isinstance(depends_on, list):
        for entry in depends_on:
            if not isinstance(entry, str):
                continue
            match = _BUILD_DEP_RE.match(entry)
            if match and match.group(1) not in deps:
                deps.append(match.group(1))

    implicit = manifest.get("implicitDependencies")
    if isinstance(implicit, list):
        for entry in implicit:
            # "!name" is an exclusion in the orchestrator, not a dependency.
            if isinstance(entry, str) and not entry.startswith("!") and entry not in deps:
                deps.append(entry)

    return sorted(deps)


def _iter_manifests(workspace_root: Path) -> Iterator[Path]:
    stack = [workspace_root]
    while stack:
        current = stack.pop()
        try:
            entries = sorted(current.iterdir())
        except OSError:
            logger.debug("Cannot list %s", current)
            continue
        for entry in entries:
            if entry.is_dir():
                if entry.name not in _SKIP_DIRS and not entry.name.startswith("."):
                    stack.append(entry)
            elif entry.name == PROJECT_MANIFEST:
                yield entry


def discover_projects(workspace_root: Path) -> list[ProjectInfo]:
    """Find every ``project.json`` under *workspace_root*.

    Manifests that cannot be read or parsed are skipped with a warning.
    The project name is the manifest's ``name`` field, falling back to the
    directory name.
    """
    projects: list[ProjectInfo] = []
    for manifest_path in _iter_manifests(workspace_root):
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Skipping unreadable project manifest %s", manifest_path)
            continue
        if not isinstance(data, dict):
            continue

        project_dir = manifest_path.parent
        name = data.get("name")
        if not isinstance(name, str) or not name:
            name = project_dir.name
        rel_root = project_dir.relative_to(workspace_root).as_posix()
        projects.append(
            ProjectInfo(
                name=name,
                root=rel_root,
                build_deps=tuple(extract_build_dependencies(data)),
            )
        )

    projects.sort(key=lambda p: p.name)
    return projects


# ---------------------------------------------------------------------------
# Raw graph
# ---------------------------------------------------------------------------


def scoped_name(name: str, package_scope: str) -> str:
    """Apply *package_scope* to *name* unless it already carries it."""
    if not package_scope or name.startswith(package_scope):
        return name
    return f"{package_scope}{name}"


def build_raw_graph(
    projects: Iterable[ProjectInfo],
    *,
    package_scope: str = "",
    exclude: Iterable[str] = (),
) -> dict[str, list[str]]:
    """Build the adjacency map ``{project: sorted deps}`` from *projects*.

    Projects listed in *exclude* (tooling shims, documentation packages)
    are left out as nodes.  Names are normalized with *package_scope*.
    """
    excluded = set(exclude)
    graph: dict[str, list[str]] = {}
    for project in projects:
        if project.name in excluded:
            continue
        node = scoped_name(project.name, package_scope)
        graph[node] = sorted(
            {
                scoped_name(dep, package_scope)
                for dep in project.build_deps
                if dep not in excluded
            }
        )
    return graph


def generate_graph(
    workspace_root: Path,
    *,
    package_scope: str = "",
    exclude: Iterable[str] = (),
) -> dict[str, list[str]]:
    """Discover projects under *workspace_root* and return the raw adjacency map."""
    projects = discover_projects(workspace_root)
    logger.debug("Discovered %d project manifest(s)", len(projects))
    return build_raw_graph(projects, package_scope=package_scope, exclude=exclude)
