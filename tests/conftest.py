"""Shared test fixtures for Tierguard."""

from __future__ import annotations

import datetime
import json
import subprocess
from typing import TYPE_CHECKING

import pytest

from tierguard.analysis.classifier import FileAnalysis, classify
from tierguard.analysis.constructs import locate_constructs
from tierguard.analysis.diff_mapper import DiffMapping
from tierguard.analysis.syntax import parse_source

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

# Fixed "today" for every date-sensitive test.
TODAY = datetime.date(2026, 10, 17)


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture()
def today() -> datetime.date:
    return TODAY


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    """Create a real temporary git repository on branch ``main`` (no commits yet)."""
    run_git(tmp_path, "init")
    run_git(tmp_path, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(tmp_path, "config", "user.email", "test@example.com")
    run_git(tmp_path, "config", "user.name", "Test User")
    run_git(tmp_path, "config", "commit.gpgsign", "false")
    return tmp_path


@pytest.fixture()
def commit() -> Callable[..., str]:
    """Write files (``{path: content}``), commit everything and return the new SHA."""

    def _commit(repo: Path, files: dict[str, str] | None = None, message: str = "change") -> str:
        for rel, content in (files or {}).items():
            path = repo / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        run_git(repo, "add", "-A")
        run_git(repo, "commit", "-m", message)
        return run_git(repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture()
def analyze() -> Callable[..., FileAnalysis]:
    """Build a FileAnalysis from source text and a synthetic diff."""

    def _analyze(
        source: str,
        *,
        path: str = "src/app.service.ts",
        changed: Iterable[int] = (),
        new_names: Iterable[str] = (),
    ) -> FileAnalysis:
        parsed = parse_source(path, source)
        diff = DiffMapping(changed_lines=frozenset(changed), new_names=frozenset(new_names))
        constructs = locate_constructs(parsed.root)
        return FileAnalysis(
            source=parsed,
            constructs=tuple(classify(constructs, diff.changed_lines, diff.new_names)),
            diff=diff,
        )

    return _analyze


@pytest.fixture()
def workspace(tmp_path: Path) -> Callable[..., Path]:
    """Add a ``project.json`` project under ``libs/<name>``; returns the workspace root."""

    def _add(
        name: str,
        deps: Iterable[str] = (),
        *,
        implicit: Iterable[str] = (),
        package_deps: dict[str, str] | None = None,
    ) -> Path:
        project_dir = tmp_path / "libs" / name
        project_dir.mkdir(parents=True, exist_ok=True)
        manifest = {
            "name": name,
            "targets": {"build": {"dependsOn": ["^build", *(f"{d}:build" for d in deps)]}},
            "implicitDependencies": list(implicit),
        }
        (project_dir / "project.json").write_text(json.dumps(manifest), encoding="utf-8")
        if package_deps is not None:
            package = {"name": name, "dependencies": package_deps}
            (project_dir / "package.json").write_text(json.dumps(package), encoding="utf-8")
        return tmp_path

    return _add
