# tierguard:domain=graph
"""Package-manifest validator: package.json dependencies must cover the graph's edges."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tierguard.graph.extractor import scoped_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from tierguard.graph.extractor import ProjectInfo
    from tierguard.graph.sorter import LeveledGraph

logger = logging.getLogger(__name__)

_DEP_SECTIONS = ("dependencies", "peerDependencies")


@dataclass(frozen=True)
class ManifestCheck:
    """Result for one project that ships a package.json."""

    project: str
    manifest: str  # package.json path, relative to the workspace root
    missing: tuple[str, ...]
    extra: tuple[str, ...]

    @property
    def valid(self) -> bool:
        return not self.missing


@dataclass
class ManifestReport:
    checks: list[ManifestCheck] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(check.valid for check in self.checks)

    @property
    def errors(self) -> list[str]:
        return [
            f"Project {check.project} ({check.manifest}) is missing dependencies: "
            f"{', '.join(check.missing)}"
            for check in self.checks
            if not check.valid
        ]


def _read_manifest(path: Path) -> dict[str, object] | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Could not read %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def _declared_deps(manifest: dict[str, object]) -> set[str]:
    declared: set[str] = set()
    for section in _DEP_SECTIONS:
        deps = manifest.get(section)
        if isinstance(deps, dict):
            declared.update(str(name) for name in deps)
    return declared


def validate_package_manifests(
    graph: LeveledGraph,
    projects: Iterable[ProjectInfo],
    workspace_root: Path,
    *,
    package_scope: str = "",
) -> ManifestReport:
    """Check that each project's package.json lists every graph dependency.

    Graph nodes are mapped back to projects through *package_scope*; a
    dependency is looked up by its package name (the ``name`` field of its
    own package.json) and falls back to the graph node name.  Projects
    without a package.json are skipped.
    """
    project_list = list(projects)
    by_node = {scoped_name(p.name, package_scope): p for p in project_list}

    package_names: dict[str, str] = {}
    manifests: dict[str, dict[str, object]] = {}
    for node, project in by_node.items():
        manifest = _read_manifest(workspace_root / project.root / "package.json")
        if manifest is None:
            continue
        manifests[node] = manifest
        pkg_name = manifest.get("name")
        if isinstance(pkg_name, str) and pkg_name:
            package_names[node] = pkg_name

    report = ManifestReport()
    for node in sorted(graph):
        manifest = manifests.get(node)
        if manifest is None:
            continue
        declared = _declared_deps(manifest)
        expected = {dep: package_names.get(dep, dep) for dep in graph[node].depends_on}
        missing = tuple(sorted(dep for dep, pkg in expected.items() if pkg not in declared))
        internal = set(expected.values())
        known_packages = set(package_names.values())
        extra = tuple(sorted(d for d in declared if d not in internal and d in known_packages))
        project = by_node[node]
        manifest_rel = f"{project.root}/package.json" if project.root != "." else "package.json"
        report.checks.append(
            ManifestCheck(project=node, manifest=manifest_rel, missing=missing, extra=extra)
        )
    return report
