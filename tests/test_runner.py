# tierguard:domain=runner
"""Tests for tierguard.runner: code-rule runs over real git repositories and graph checks."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from tierguard.graph.sorter import CycleError
from tierguard.infrastructure.config import GraphConfig, ToolConfig, parse_config
from tierguard.infrastructure.git import BASE_ENV, HEAD_ENV
from tierguard.infrastructure.guidance import GUIDANCE_DIR
from tierguard.rules import RuleSettings
from tierguard.runner import (
    analyze_file,
    check_no_cycles,
    check_no_skiplevel,
    check_package_manifests,
    check_unchanged,
    generate,
    run_rules,
)

if TYPE_CHECKING:
    import datetime
    from collections.abc import Callable
    from pathlib import Path


def _report_source(directive: str | None = None) -> str:
    """A service whose ``build`` method spans 95 lines."""
    lines = ["export class ReportService {"]
    if directive is not None:
        lines.append(f"  // tierguard-disable {directive} -- one row per report column")
    lines.append("  build(): void {")
    lines.extend(f"    const c{i} = {i};" for i in range(93))
    lines.append("  }")
    lines.append("}")
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def _no_env_refs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(BASE_ENV, raising=False)
    monkeypatch.delenv(HEAD_ENV, raising=False)


@pytest.fixture()
def repo(git_repo: Path, commit: Callable[..., str]) -> Path:
    commit(git_repo, {"src/app.ts": "export const app = 1;\n"})
    return git_repo


# ---------------------------------------------------------------------------
# Code rules
# ---------------------------------------------------------------------------


class TestRunRules:
    def test_new_long_method(self, repo: Path, today: datetime.date) -> None:
        (repo / "src/report.service.ts").write_text(_report_source())
        result = run_rules(repo, ToolConfig(), base="main", today=today)

        assert not result.passed
        assert result.base == "main"
        assert result.head is None
        (violation,) = result.violations
        assert violation.file == "src/report.service.ts"
        assert violation.line == 2
        assert violation.message == "New method 'build' has 95 lines (max: 80)"
        assert [o.rule_id for o in result.outcomes] == ["method-max-lines", "file-max-lines"]
        assert result.outcomes[1].passed
        assert result.guidance == [repo / GUIDANCE_DIR / "tierguard.methodsize.md"]
        assert result.guidance[0].is_file()

    def test_fresh_directive_passes(self, repo: Path, today: datetime.date) -> None:
        source = _report_source("max-lines-new-methods 2026/10/07")
        (repo / "src/report.service.ts").write_text(source)
        result = run_rules(repo, ToolConfig(), base="main", today=today)
        assert result.passed
        assert result.guidance == []
        assert not (repo / GUIDANCE_DIR).exists()

    def test_expired_directive(self, repo: Path, today: datetime.date) -> None:
        source = _report_source("max-lines-new-methods 2026/09/01")
        (repo / "src/report.service.ts").write_text(source)
        result = run_rules(repo, ToolConfig(), base="main", today=today)
        (violation,) = result.violations
        assert violation.expired_date == "2026/09/01"

    def test_committed_code_is_existing(
        self, repo: Path, commit: Callable[..., str], today: datetime.date
    ) -> None:
        commit(repo, {"src/report.service.ts": _report_source()})
        config = ToolConfig()
        assert run_rules(repo, config, base="HEAD", today=today).passed

        settings = {"method-max-lines": RuleSettings(mode="ALL", limit=80)}
        result = run_rules(
            repo,
            config,
            rule_ids=["method-max-lines"],
            settings=settings,
            base="HEAD",
            today=today,
        )
        (violation,) = result.violations
        assert violation.message == "Existing method 'build' has 95 lines (max: 80)"
        assert result.files_checked == 2

    def test_all_mode_covers_untracked_files(self, repo: Path, today: datetime.date) -> None:
        (repo / "src/report.service.ts").write_text(_report_source())
        settings = {"method-max-lines": RuleSettings(mode="ALL", limit=80)}
        result = run_rules(
            repo,
            ToolConfig(),
            rule_ids=["method-max-lines"],
            settings=settings,
            base="main",
            today=today,
        )
        (violation,) = result.violations
        assert (violation.file, violation.line) == ("src/report.service.ts", 2)
        assert violation.message == "New method 'build' has 95 lines (max: 80)"
        assert result.files_checked == 2

    def test_between_commits(
        self, repo: Path, commit: Callable[..., str], today: datetime.date
    ) -> None:
        base = commit(repo, {"README.md": "docs\n"})
        head = commit(repo, {"src/report.service.ts": _report_source()})
        (repo / "src/untracked.ts").write_text(_report_source())
        result = run_rules(repo, ToolConfig(), base=base, head=head, today=today)
        assert result.head == head
        assert [v.file for v in result.violations] == ["src/report.service.ts"]

    def test_test_files_ignored(self, repo: Path, today: datetime.date) -> None:
        (repo / "src/report.service.spec.ts").write_text(_report_source())
        assert run_rules(repo, ToolConfig(), base="main", today=today).passed

    def test_deleted_file_ignored(
        self, repo: Path, commit: Callable[..., str], today: datetime.date
    ) -> None:
        commit(repo, {"src/report.service.ts": _report_source()})
        (repo / "src/report.service.ts").unlink()
        result = run_rules(repo, ToolConfig(), base="HEAD", today=today)
        assert result.passed
        assert result.files_checked == 0


class TestSkips:
    def test_all_rules_off(self, repo: Path) -> None:
        config = parse_config(
            {"rules": {"method-max-lines": {"mode": "OFF"}, "file-max-lines": {"mode": "OFF"}}}
        )
        result = run_rules(repo, config, base="main")
        assert result.skipped == "all selected rules are off"
        assert result.passed
        assert result.outcomes == []

    def test_ignore_until_epoch(self, repo: Path, today: datetime.date) -> None:
        (repo / "src/report.service.ts").write_text(_report_source())
        settings = {
            "method-max-lines": RuleSettings(mode="NEW_METHODS", ignore_until_epoch=2_000_000_000)
        }
        result = run_rules(
            repo,
            ToolConfig(),
            rule_ids=["method-max-lines"],
            settings=settings,
            base="main",
            now=1_790_000_000,
            today=today,
        )
        assert result.skipped == "all selected rules are off"

    def test_no_base(self, repo: Path) -> None:
        config = parse_config({"git": {"trunk": "develop"}})
        result = run_rules(repo, config)
        assert result.skipped == "no base ref (set TIERGUARD_BASE or pass --base)"
        assert result.passed

    def test_base_from_env(
        self, repo: Path, monkeypatch: pytest.MonkeyPatch, today: datetime.date
    ) -> None:
        monkeypatch.setenv(BASE_ENV, "main")
        (repo / "src/report.service.ts").write_text(_report_source())
        result = run_rules(repo, ToolConfig(), today=today)
        assert result.base == "main"
        assert not result.passed

    def test_rule_level_skip(self, repo: Path) -> None:
        settings = {"dto-fields": RuleSettings(mode="MODIFIED_FILES")}
        result = run_rules(
            repo, ToolConfig(), rule_ids=["dto-fields"], settings=settings, base="main"
        )
        (outcome,) = result.outcomes
        assert outcome.skipped == "no schema_path configured"
        assert result.passed


def test_analyze_file_missing(repo: Path) -> None:
    assert analyze_file(repo, "src/ghost.ts", "main", None) is None


# ---------------------------------------------------------------------------
# Graph checks
# ---------------------------------------------------------------------------


class TestGraphChecks:
    def test_generate_and_unchanged(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        root = workspace("web", ["core"])
        config = GraphConfig()

        missing = check_unchanged(root, config)
        assert not missing.passed
        assert missing.message.startswith(f"No saved graph at {config.path}.")

        graph, path = generate(root, config)
        assert len(graph) == 2
        assert json.loads(path.read_text())["web"] == {"level": 1, "dependsOn": ["core"]}

        same = check_unchanged(root, config)
        assert same.passed
        assert same.message == "Graphs are identical"

    def test_drift_writes_guidance(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        root = workspace("web", ["core"])
        generate(root, GraphConfig())
        workspace("api", ["core"])

        drift = check_unchanged(root, GraphConfig())
        assert not drift.passed
        assert drift.message == "Added projects: api"
        assert drift.guidance == root / GUIDANCE_DIR / "tierguard.dependencies.md"

    def test_no_cycles(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        root = workspace("web", ["core"])
        check = check_no_cycles(root, GraphConfig())
        assert check.message == "No cycles: 2 project(s) in 2 level(s)"

    def test_cycle(self, workspace: Callable[..., Path]) -> None:
        workspace("a", ["b"])
        root = workspace("b", ["a"])
        with pytest.raises(CycleError, match="Circular dependency detected among: a, b"):
            check_no_cycles(root, GraphConfig())

    def test_skiplevel(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        workspace("util", ["core"])
        root = workspace("web", ["core", "util"])
        check = check_no_skiplevel(root, GraphConfig())
        assert not check.passed
        assert check.message == "Redundant dependencies:\n  web -> core (already via util)"
        assert check.guidance == root / GUIDANCE_DIR / "tierguard.transitivedeps.md"

    def test_no_skiplevel(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        root = workspace("web", ["core"])
        assert check_no_skiplevel(root, GraphConfig()).passed

    def test_excluded_projects(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        workspace("docs", ["core"])
        root = workspace("web", ["core"])
        check = check_no_cycles(root, GraphConfig(exclude=("docs",)))
        assert check.message == "No cycles: 2 project(s) in 2 level(s)"

    def test_package_manifests(self, workspace: Callable[..., Path]) -> None:
        workspace("core", package_deps={})
        root = workspace("web", ["core"], package_deps={})
        report = check_package_manifests(root, GraphConfig())
        assert report.errors == [
            "Project web (libs/web/package.json) is missing dependencies: core"
        ]
