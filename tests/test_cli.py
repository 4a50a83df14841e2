# tierguard:service=cli
"""Tests for the tierguard CLI: exit codes and output of every command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from tierguard import __version__
from tierguard.cli import main
from tierguard.graph.store import DEFAULT_GRAPH_PATH
from tierguard.graph.visualizer import DOT_FILE, HTML_FILE, VISUALIZE_DIR
from tierguard.infrastructure.config import config_path
from tierguard.infrastructure.git import BASE_ENV, HEAD_ENV
from tierguard.report import FORMATS

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _long_method() -> str:
    body = "\n".join(f"    const c{i} = {i};" for i in range(90))
    return f"export class Exporter {{\n  run(): void {{\n{body}\n  }}\n}}\n"


@pytest.fixture(autouse=True)
def _no_env_refs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(BASE_ENV, raising=False)
    monkeypatch.delenv(HEAD_ENV, raising=False)


@pytest.fixture()
def repo(git_repo: Path, commit: Callable[..., str]) -> Path:
    commit(git_repo, {"src/app.ts": "export const app = 1;\n"})
    return git_repo


@pytest.fixture()
def layered(workspace: Callable[..., Path]) -> Path:
    workspace("core")
    return workspace("web", ["core"])


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


# ---------------------------------------------------------------------------
# validate-code / rule
# ---------------------------------------------------------------------------


class TestValidateCode:
    def test_violation_exits_1(self, repo: Path) -> None:
        (repo / "src/exporter.ts").write_text(_long_method())
        result = CliRunner().invoke(
            main,
            ["validate-code", "--project", str(repo), "--base", "main", "--format", "porcelain"],
        )
        assert result.exit_code == 1, result.output
        assert "method-max-lines:src/exporter.ts:2::New method 'run' has 92 lines" in result.output

    def test_clean_exits_0(self, repo: Path) -> None:
        (repo / "src/small.ts").write_text("export const small = 1;\n")
        result = CliRunner().invoke(
            main, ["validate-code", "--project", str(repo), "--base", "main", "--format", "rich"]
        )
        assert result.exit_code == 0, result.output
        assert "No violations found" in result.output

    def test_base_from_env(self, repo: Path) -> None:
        (repo / "src/exporter.ts").write_text(_long_method())
        result = CliRunner().invoke(
            main,
            ["validate-code", "--project", str(repo), "--format", "json"],
            env={BASE_ENV: "main"},
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["summary"]["violations_count"] == 1

    def test_bad_config_exits_2(self, repo: Path) -> None:
        path = config_path(repo)
        path.parent.mkdir(parents=True)
        path.write_text("rules:\n  no-such-rule: {}\n")
        result = CliRunner().invoke(main, ["validate-code", "--project", str(repo)])
        assert result.exit_code == 2
        assert "Error:" in result.output
        assert "unknown rule 'no-such-rule'" in result.output


    def test_unknown_format_rejected(self, repo: Path) -> None:
        result = CliRunner().invoke(
            main, ["validate-code", "--project", str(repo), "--format", "xml"]
        )
        assert result.exit_code == 2
        for name in FORMATS:
            assert name in result.output


class TestRule:
    def test_mode_all_reports_existing(self, repo: Path, commit: Callable[..., str]) -> None:
        commit(repo, {"src/exporter.ts": _long_method()})
        args = ["rule", "method-max-lines", "--project", str(repo), "--base", "HEAD"]

        clean = CliRunner().invoke(main, [*args, "--format", "porcelain"])
        assert clean.exit_code == 0, clean.output

        result = CliRunner().invoke(main, [*args, "--mode", "ALL", "--format", "porcelain"])
        assert result.exit_code == 1
        assert "Existing method 'run' has 92 lines (max: 80)" in result.output

    def test_limit_override(self, repo: Path) -> None:
        (repo / "src/exporter.ts").write_text(_long_method())
        result = CliRunner().invoke(
            main,
            [
                "rule",
                "method-max-lines",
                *("--project", str(repo), "--base", "main", "--limit", "100"),
            ],
        )
        assert result.exit_code == 0, result.output

    def test_invalid_mode_exits_2(self, repo: Path) -> None:
        result = CliRunner().invoke(
            main, ["rule", "no-destructure", "--project", str(repo), "--mode", "ALL"]
        )
        assert result.exit_code == 2
        assert "invalid mode 'ALL'" in result.output

    def test_unknown_rule(self, repo: Path) -> None:
        result = CliRunner().invoke(main, ["rule", "no-such-rule", "--project", str(repo)])
        assert result.exit_code == 2

    def test_skip_reported(self, repo: Path) -> None:
        args = ["rule", "dto-fields", "--project", str(repo), "--base", "main"]
        result = CliRunner().invoke(main, [*args, "--format", "porcelain"])
        assert result.exit_code == 0
        assert "Skipped: all selected rules are off" in result.output


# ---------------------------------------------------------------------------
# Graph commands
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_saves_snapshot(self, layered: Path) -> None:
        result = CliRunner().invoke(main, ["generate", "--project", str(layered)])
        assert result.exit_code == 0, result.output
        assert f"Saved 2 project(s) in 2 level(s) to {DEFAULT_GRAPH_PATH}" in result.output
        assert (layered / DEFAULT_GRAPH_PATH).is_file()

    def test_cycle_exits_1(self, workspace: Callable[..., Path]) -> None:
        workspace("a", ["b"])
        root = workspace("b", ["a"])
        result = CliRunner().invoke(main, ["generate", "--project", str(root)])
        assert result.exit_code == 1
        assert "Circular dependency detected among: a, b" in result.output
        assert not (root / DEFAULT_GRAPH_PATH).exists()


class TestValidateUnchanged:
    def test_missing_snapshot(self, layered: Path) -> None:
        result = CliRunner().invoke(main, ["validate-unchanged", "--project", str(layered)])
        assert result.exit_code == 1
        assert "No saved graph" in result.output

    def test_unchanged_after_generate(self, layered: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["generate", "--project", str(layered)])
        result = runner.invoke(main, ["validate-unchanged", "--project", str(layered)])
        assert result.exit_code == 0, result.output
        assert "Architecture unchanged" in result.output

    def test_drift(self, layered: Path, workspace: Callable[..., Path]) -> None:
        runner = CliRunner()
        runner.invoke(main, ["generate", "--project", str(layered)])
        workspace("api", ["core"])
        result = runner.invoke(main, ["validate-unchanged", "--project", str(layered)])
        assert result.exit_code == 1
        assert "+ api" in result.output
        assert "tierguard.dependencies.md" in result.output

    def test_json(self, layered: Path, workspace: Callable[..., Path]) -> None:
        runner = CliRunner()
        runner.invoke(main, ["generate", "--project", str(layered)])
        workspace("api", ["core"])
        result = runner.invoke(main, ["validate-unchanged", "--json", "--project", str(layered)])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["identical"] is False
        assert data["added"] == ["api"]
        assert data["summary"] == "Added projects: api"

    def test_corrupt_snapshot_exits_2(self, layered: Path) -> None:
        path = layered / DEFAULT_GRAPH_PATH
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        result = CliRunner().invoke(main, ["validate-unchanged", "--project", str(layered)])
        assert result.exit_code == 2
        assert "Failed to load graph" in result.output


class TestValidateNoCycles:
    def test_acyclic(self, layered: Path) -> None:
        result = CliRunner().invoke(main, ["validate-no-cycles", "--project", str(layered)])
        assert result.exit_code == 0
        assert "No cycles: 2 project(s) in 2 level(s)" in result.output

    def test_cycle_exits_1(self, workspace: Callable[..., Path]) -> None:
        workspace("a", ["b"])
        root = workspace("b", ["a"])
        result = CliRunner().invoke(main, ["validate-no-cycles", "--project", str(root)])
        assert result.exit_code == 1
        assert "Circular dependency detected among: a, b" in result.output


class TestValidateNoSkiplevel:
    def test_clean(self, layered: Path) -> None:
        args = ["validate-no-skiplevel-deps", "--project", str(layered)]
        result = CliRunner().invoke(main, args)
        assert result.exit_code == 0, result.output

    def test_redundant_exits_1(self, workspace: Callable[..., Path]) -> None:
        workspace("core")
        workspace("util", ["core"])
        root = workspace("web", ["core", "util"])
        result = CliRunner().invoke(main, ["validate-no-skiplevel-deps", "--project", str(root)])
        assert result.exit_code == 1
        assert "web -> core (already via util)" in result.output
        assert "tierguard.transitivedeps.md" in result.output


class TestValidatePackageJson:
    def test_missing_dependency(self, workspace: Callable[..., Path]) -> None:
        workspace("core", package_deps={})
        root = workspace("web", ["core"], package_deps={})
        result = CliRunner().invoke(main, ["validate-packagejson", "--project", str(root)])
        assert result.exit_code == 1
        assert (
            "[ERR] Project web (libs/web/package.json) is missing dependencies: core"
            in result.output
        )

    def test_all_match(self, workspace: Callable[..., Path]) -> None:
        workspace("core", package_deps={})
        root = workspace("web", ["core"], package_deps={"core": "*"})
        result = CliRunner().invoke(main, ["validate-packagejson", "--project", str(root)])
        assert result.exit_code == 0, result.output
        assert "All 2 package.json file(s) match the graph" in result.output


class TestVisualize:
    def test_writes_dot_and_html(self, layered: Path) -> None:
        result = CliRunner().invoke(main, ["visualize", "--fresh", "--project", str(layered)])
        assert result.exit_code == 0, result.output
        out_dir = layered / VISUALIZE_DIR
        assert (out_dir / DOT_FILE).is_file()
        assert (out_dir / HTML_FILE).is_file()
        assert "DOT:" in result.output
        assert "HTML:" in result.output

    def test_uses_saved_snapshot(self, layered: Path, workspace: Callable[..., Path]) -> None:
        runner = CliRunner()
        runner.invoke(main, ["generate", "--project", str(layered)])
        workspace("api", ["core"])
        result = runner.invoke(main, ["visualize", "--project", str(layered)])
        assert result.exit_code == 0, result.output
        assert '"api"' not in (layered / VISUALIZE_DIR / DOT_FILE).read_text()
