# tierguard:domain=graph
"""Tests for tierguard.graph.package_validator: package.json vs. graph edges."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tierguard.graph.extractor import discover_projects, generate_graph
from tierguard.graph.package_validator import ManifestReport, validate_package_manifests
from tierguard.graph.sorter import sort_graph

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _validate(root: Path) -> ManifestReport:
    graph = sort_graph(generate_graph(root))
    return validate_package_manifests(graph, discover_projects(root), root)


def test_all_dependencies_declared(workspace: Callable[..., Path]) -> None:
    workspace("core", package_deps={})
    root = workspace("web", ["core"], package_deps={"core": "*", "react": "^18"})
    report = _validate(root)
    assert report.valid
    assert [c.project for c in report.checks] == ["core", "web"]
    assert report.checks[1].extra == ()


def test_missing_dependency(workspace: Callable[..., Path]) -> None:
    workspace("core", package_deps={})
    root = workspace("web", ["core"], package_deps={"react": "^18"})
    report = _validate(root)
    assert not report.valid
    assert report.checks[1].missing == ("core",)
    assert report.errors == [
        "Project web (libs/web/package.json) is missing dependencies: core"
    ]


def test_extra_internal_dependency_is_informational(workspace: Callable[..., Path]) -> None:
    workspace("core", package_deps={})
    workspace("util", package_deps={})
    root = workspace("web", ["core"], package_deps={"core": "*", "util": "*"})
    report = _validate(root)
    assert report.valid
    assert report.checks[-1].extra == ("util",)


def test_projects_without_package_json_skipped(workspace: Callable[..., Path]) -> None:
    workspace("core")
    root = workspace("web", ["core"])
    assert _validate(root).checks == []
