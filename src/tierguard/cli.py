"""Tierguard CLI entry point."""

# tierguard:service=cli

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from tierguard import __version__
from tierguard.infrastructure.git import BASE_ENV, HEAD_ENV
from tierguard.report import FORMATS
from tierguard.rules import RULE_ORDER

if TYPE_CHECKING:
    from tierguard.infrastructure.config import ToolConfig
    from tierguard.runner import GraphCheck, RunResult

_F = TypeVar("_F", bound=Callable[..., Any])


# tierguard:service=cli
@click.group()
@click.version_option(version=__version__, prog_name="tierguard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Tierguard - layered dependency graph checks + diff-scoped code rules."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Shared options and helpers
# ---------------------------------------------------------------------------


def _project_option(func: _F) -> _F:
    return click.option(
        "--project",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Project root (default: current directory).",
    )(func)


def _diff_options(func: _F) -> _F:
    func = click.option(
        "--head",
        envvar=HEAD_ENV,
        default=None,
        help=f"Head ref (default: working tree, or ${HEAD_ENV}).",
    )(func)
    return click.option(
        "--base",
        envvar=BASE_ENV,
        default=None,
        help=f"Base ref (default: ${BASE_ENV}, else merge-base with the trunk).",
    )(func)


def _format_option(func: _F) -> _F:
    return click.option(
        "--format",
        "fmt",
        type=click.Choice(list(FORMATS)),
        default=None,
        help="Output format (default: rich if TTY, porcelain if piped).",
    )(func)


def _load(project: Path | None) -> tuple[Path, ToolConfig]:
    """Resolve the project root and load its config; exit 2 on a bad config."""
    from tierguard.infrastructure.config import ConfigError, load_config

    project_root = (project or Path.cwd()).resolve()
    try:
        config = load_config(project_root)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    return project_root, config


def _graph_command(check: Callable[[], GraphCheck]) -> GraphCheck:
    """Run a graph check; a cycle exits 1, an unreadable snapshot exits 2."""
    from tierguard.graph.sorter import CycleError
    from tierguard.graph.store import SnapshotError

    try:
        return check()
    except CycleError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except SnapshotError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


def _emit_run(result: RunResult, fmt: str | None) -> None:
    from tierguard.report import FORMATTERS

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"
    output = FORMATTERS[fmt](result)
    if output:
        click.echo(output)
    if result.skipped is not None and fmt == "porcelain":
        click.echo(f"Skipped: {result.skipped}", err=True)
    if not result.passed:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Graph commands
# ---------------------------------------------------------------------------


# tierguard:domain=graph
@main.command()
@_project_option
def generate(*, project: Path | None) -> None:
    """Recompute the dependency graph and save it as the blessed snapshot."""
    from tierguard.graph.sorter import CycleError, level_count
    from tierguard.runner import generate as run_generate

    project_root, config = _load(project)
    try:
        graph, path = run_generate(project_root, config.graph)
    except CycleError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    rel = path.relative_to(project_root) if path.is_relative_to(project_root) else path
    click.echo(f"Saved {len(graph)} project(s) in {level_count(graph)} level(s) to {rel}")


# tierguard:domain=graph
@main.command("validate-unchanged")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
@_project_option
def validate_unchanged(*, output_json: bool, project: Path | None) -> None:
    """Fail when the dependency graph differs from the blessed snapshot."""
    from tierguard.graph.comparator import comparison_to_dict, render_comparison
    from tierguard.runner import check_unchanged

    project_root, config = _load(project)
    result = _graph_command(lambda: check_unchanged(project_root, config.graph))

    if output_json:
        data = (
            comparison_to_dict(result.comparison)
            if result.comparison is not None
            else {"identical": False, "summary": result.message}
        )
        click.echo(json.dumps(data, indent=2))
    elif result.comparison is not None:
        from rich.console import Console

        render_comparison(result.comparison, Console())
    else:
        click.echo(result.message, err=True)

    if not result.passed:
        if result.guidance is not None and not output_json:
            click.echo(f"See {result.guidance} for how to proceed.", err=True)
        sys.exit(1)


# tierguard:domain=graph
@main.command("validate-no-cycles")
@_project_option
def validate_no_cycles(*, project: Path | None) -> None:
    """Fail when the declared build dependencies contain a cycle."""
    from tierguard.runner import check_no_cycles

    project_root, config = _load(project)
    result = _graph_command(lambda: check_no_cycles(project_root, config.graph))
    click.echo(result.message)


# tierguard:domain=graph
@main.command("validate-no-skiplevel-deps")
@_project_option
def validate_no_skiplevel_deps(*, project: Path | None) -> None:
    """Fail when a project declares a dependency it already gets transitively."""
    from tierguard.runner import check_no_skiplevel

    project_root, config = _load(project)
    result = _graph_command(lambda: check_no_skiplevel(project_root, config.graph))
    click.echo(result.message, err=not result.passed)
    if not result.passed:
        if result.guidance is not None:
            click.echo(f"See {result.guidance} for how to fix these.", err=True)
        sys.exit(1)


# tierguard:domain=graph
@main.command("validate-packagejson")
@_project_option
def validate_packagejson(*, project: Path | None) -> None:
    """Check that each package.json lists every dependency from the graph."""
    from tierguard.graph.sorter import CycleError
    from tierguard.runner import check_package_manifests

    project_root, config = _load(project)
    try:
        report = check_package_manifests(project_root, config.graph)
    except CycleError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    for check in report.checks:
        if check.extra:
            click.echo(
                f"  [info] {check.project}: not in graph: {', '.join(check.extra)}"
            )
    if not report.valid:
        for error in report.errors:
            click.echo(f"  [ERR] {error}", err=True)
        sys.exit(1)
    click.echo(f"All {len(report.checks)} package.json file(s) match the graph")


# tierguard:domain=graph
@main.command()
@click.option("--open", "open_browser", is_flag=True, help="Open the HTML page afterwards.")
@click.option(
    "--fresh",
    is_flag=True,
    help="Render the current graph instead of the saved snapshot.",
)
@_project_option
def visualize(*, open_browser: bool, fresh: bool, project: Path | None) -> None:
    """Render the dependency graph to DOT and HTML under tmp/tierguard/."""
    from tierguard.graph.sorter import CycleError
    from tierguard.graph.store import SnapshotError, load_snapshot
    from tierguard.graph.visualizer import write_visualization
    from tierguard.runner import compute_graph

    project_root, config = _load(project)
    try:
        graph = None if fresh else load_snapshot(project_root, config.graph.path)
        if graph is None:
            graph = compute_graph(project_root, config.graph)
    except (CycleError, SnapshotError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    dot_path, html_path = write_visualization(graph, project_root)
    click.echo(f"DOT:  {dot_path}")
    click.echo(f"HTML: {html_path}")
    if open_browser:
        click.launch(str(html_path))


# ---------------------------------------------------------------------------
# Code rules
# ---------------------------------------------------------------------------


# tierguard:domain=rules
@main.command("validate-code")
@_diff_options
@_format_option
@_project_option
def validate_code(
    *,
    base: str | None,
    head: str | None,
    fmt: str | None,
    project: Path | None,
) -> None:
    """Run every configured code rule against the changes since the base ref.

    Exit codes: 0 = pass or nothing to check, 1 = violations,
    2 = configuration error.
    """
    from tierguard.runner import run_rules

    project_root, config = _load(project)
    result = run_rules(project_root, config, base=base, head=head)
    _emit_run(result, fmt)


# tierguard:domain=rules
@main.command()
@click.argument("rule_id", type=click.Choice(list(RULE_ORDER)))
@click.option("--mode", default=None, help="Override the configured mode.")
@click.option("--limit", type=int, default=None, help="Line limit (size rules).")
@click.option(
    "--disable-allowed/--no-disable-allowed",
    default=None,
    help="Honour tierguard-disable directives.",
)
@click.option(
    "--ignore-until-epoch",
    type=int,
    default=None,
    help="Treat the rule as OFF until this Unix timestamp.",
)
@_diff_options
@_format_option
@_project_option
def rule(
    *,
    rule_id: str,
    mode: str | None,
    limit: int | None,
    disable_allowed: bool | None,
    ignore_until_epoch: int | None,
    base: str | None,
    head: str | None,
    fmt: str | None,
    project: Path | None,
) -> None:
    """Run a single code rule, with optional overrides of its configuration."""
    from tierguard.infrastructure.config import ConfigError, override_rule, validate_mode
    from tierguard.runner import run_rules

    project_root, config = _load(project)
    try:
        if mode is not None:
            validate_mode(rule_id, mode)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    settings = override_rule(
        config.rule(rule_id),
        mode=mode,
        limit=limit,
        disable_allowed=disable_allowed,
        ignore_until_epoch=ignore_until_epoch,
    )
    result = run_rules(
        project_root,
        config,
        rule_ids=[rule_id],
        settings={rule_id: settings},
        base=base,
        head=head,
    )
    _emit_run(result, fmt)
