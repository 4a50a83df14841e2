# tierguard:domain=runner
"""Runner: resolve the diff target, analyse changed files, run rules and graph checks."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from tierguard.analysis.classifier import FileAnalysis, classify
from tierguard.analysis.constructs import locate_constructs
from tierguard.analysis.diff_mapper import DiffMapping, map_file_diff
from tierguard.analysis.syntax import parse_source
from tierguard.graph.comparator import compare_graphs
from tierguard.graph.extractor import discover_projects, generate_graph
from tierguard.graph.package_validator import validate_package_manifests
from tierguard.graph.redundant import find_all_redundant
from tierguard.graph.sorter import level_count, sort_graph
from tierguard.graph.store import load_snapshot, save_snapshot
from tierguard.infrastructure import git
from tierguard.infrastructure.guidance import write_guidance
from tierguard.rules import RULE_ORDER, RULE_REGISTRY, RuleContext, Scope, resolve_mode

if TYPE_CHECKING:
    import datetime
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from tierguard.graph.comparator import GraphComparison
    from tierguard.graph.package_validator import ManifestReport
    from tierguard.graph.redundant import RedundantDependency
    from tierguard.graph.sorter import LeveledGraph
    from tierguard.infrastructure.config import GraphConfig, ToolConfig
    from tierguard.rules import Rule, RuleSettings, Violation

logger = logging.getLogger(__name__)

DEPENDENCIES_GUIDE = "tierguard.dependencies.md"
TRANSITIVEDEPS_GUIDE = "tierguard.transitivedeps.md"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class RuleOutcome:
    """What one rule produced in one run."""

    rule_id: str
    mode: str
    violations: list[Violation] = field(default_factory=list)
    skipped: str | None = None
    files_checked: int = 0

    @property
    def passed(self) -> bool:
        return not self.violations


@dataclass
class RunResult:
    """Aggregate of a code-rule run; ``passed`` is the AND of every rule outcome."""

    base: str | None = None
    head: str | None = None
    outcomes: list[RuleOutcome] = field(default_factory=list)
    skipped: str | None = None
    guidance: list[Path] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def violations(self) -> list[Violation]:
        return [v for outcome in self.outcomes for v in outcome.violations]

    @property
    def passed(self) -> bool:
        return all(outcome.passed for outcome in self.outcomes)

    @property
    def files_checked(self) -> int:
        return max((outcome.files_checked for outcome in self.outcomes), default=0)


# ---------------------------------------------------------------------------
# Per-file analysis
# ---------------------------------------------------------------------------


def analyze_file(
    project_root: Path,
    file_path: str,
    base: str,
    head: str | None,
    *,
    diff: DiffMapping | None = None,
) -> FileAnalysis | None:
    """Parse *file_path*, locate its constructs and classify them against the diff.

    Returns ``None`` when the file is gone or cannot be read; callers treat
    that as "no findings".
    """
    full_path = project_root / file_path
    try:
        text = full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping %s: %s", file_path, exc)
        return None
    try:
        source = parse_source(file_path, text)
    except ValueError as exc:
        logger.warning("Could not parse %s: %s", file_path, exc)
        return None

    mapping = diff if diff is not None else map_file_diff(project_root, file_path, base, head)
    constructs = locate_constructs(source.root)
    return FileAnalysis(
        source=source,
        constructs=tuple(classify(constructs, mapping.changed_lines, mapping.new_names)),
        diff=mapping,
    )


class _AnalysisCache:
    """Each file is read, parsed and diffed at most once per run."""

    def __init__(self, project_root: Path, base: str, head: str | None) -> None:
        self.project_root = project_root
        self.base = base
        self.head = head
        self._changed: set[str] = set()
        self._entries: dict[str, FileAnalysis | None] = {}

    def mark_changed(self, paths: Iterable[str]) -> None:
        self._changed.update(paths)

    def get(self, file_path: str) -> FileAnalysis | None:
        if file_path not in self._entries:
            # Unchanged tracked files have no diff to fetch.
            diff = None if file_path in self._changed else DiffMapping.empty()
            self._entries[file_path] = analyze_file(
                self.project_root, file_path, self.base, self.head, diff=diff
            )
        return self._entries[file_path]


# ---------------------------------------------------------------------------
# Code rules
# ---------------------------------------------------------------------------


def _candidate_files(
    rule: Rule, changed: list[str], all_paths: list[str] | None
) -> list[str]:
    files = all_paths if rule.scope is Scope.ALL_FILES and all_paths is not None else changed
    return [path for path in files if rule.accepts_file(path)]


def _run_rule(
    rule: Rule,
    ctx: RuleContext,
    files: list[str],
    cache: _AnalysisCache,
) -> RuleOutcome:
    outcome = RuleOutcome(rule_id=rule.rule_id, mode=rule.settings.mode)
    reason = rule.prepare(ctx)
    if reason is not None:
        logger.info("Skipping %s: %s", rule.rule_id, reason)
        outcome.skipped = reason
        return outcome

    for file_path in files:
        analysis = cache.get(file_path)
        if analysis is None:
            continue
        outcome.files_checked += 1
        outcome.violations.extend(rule.evaluate(analysis))
    logger.debug(
        "%s: %d file(s), %d violation(s)",
        rule.rule_id,
        outcome.files_checked,
        len(outcome.violations),
    )
    return outcome


def run_rules(
    project_root: Path,
    config: ToolConfig,
    *,
    rule_ids: Iterable[str] | None = None,
    settings: Mapping[str, RuleSettings] | None = None,
    base: str | None = None,
    head: str | None = None,
    today: datetime.date | None = None,
    now: float | None = None,
    write_docs: bool = True,
) -> RunResult:
    """Run the selected code rules against the changes since *base*.

    Parameters
    ----------
    project_root:
        Repository root; also where ``.tierguard/`` and ``tmp/tierguard/`` live.
    config:
        Loaded project configuration.
    rule_ids:
        Rules to run, in :data:`~tierguard.rules.RULE_ORDER` by default.
    settings:
        Per-rule settings overriding the configured ones (command-line flags).
    base, head:
        Diff target.  *base* falls back to ``$TIERGUARD_BASE`` and then to the
        merge-base with the trunk; *head* falls back to ``$TIERGUARD_HEAD``
        and then to the working tree.
    write_docs:
        Write remediation guidance for failing rules.

    Returns
    -------
    RunResult
        A result with ``skipped`` set (and no outcomes) when there is nothing
        to do: every rule is off or no base could be resolved.
    """
    start = time.monotonic()
    selected = list(rule_ids) if rule_ids is not None else list(RULE_ORDER)
    overrides = settings or {}

    rules: list[Rule] = []
    for rule_id in selected:
        rule_settings = overrides.get(rule_id) or config.rule(rule_id)
        mode = resolve_mode(rule_id, rule_settings.mode, rule_settings.ignore_until_epoch, now=now)
        rule = RULE_REGISTRY[rule_id](_with_mode(rule_settings, mode), today=today)
        if not rule.enabled:
            logger.debug("%s is off", rule_id)
            continue
        rules.append(rule)

    result = RunResult()
    if not rules:
        result.skipped = "all selected rules are off"
        result.elapsed_ms = (time.monotonic() - start) * 1000
        return result

    resolved_base = git.resolve_base(project_root, base, config.trunk)
    if resolved_base is None:
        result.skipped = f"no base ref (set {git.BASE_ENV} or pass --base)"
        logger.warning("Skipping code checks: %s", result.skipped)
        result.elapsed_ms = (time.monotonic() - start) * 1000
        return result
    resolved_head = git.resolve_head(head)
    result.base = resolved_base
    result.head = resolved_head
    logger.info("Comparing %s..%s", resolved_base, resolved_head or "working tree")

    changed = [
        path
        for path in git.changed_files(project_root, resolved_base, resolved_head)
        if (project_root / path).is_file()
    ]
    all_paths = (
        git.all_files(project_root, resolved_head)
        if any(rule.scope is Scope.ALL_FILES for rule in rules)
        else None
    )
    ctx = RuleContext(
        project_root=project_root,
        base=resolved_base,
        head=resolved_head,
        changed_paths=tuple(git.changed_paths(project_root, resolved_base, resolved_head)),
    )
    cache = _AnalysisCache(project_root, resolved_base, resolved_head)
    cache.mark_changed(changed)

    for rule in rules:
        files = _candidate_files(rule, changed, all_paths)
        outcome = _run_rule(rule, ctx, files, cache)
        result.outcomes.append(outcome)
        if write_docs and not outcome.passed and rule.guidance_file:
            path = write_guidance(project_root, rule.guidance_file)
            if path is not None:
                result.guidance.append(path)

    result.elapsed_ms = (time.monotonic() - start) * 1000
    return result


def _with_mode(settings: RuleSettings, mode: str) -> RuleSettings:
    if settings.mode == mode:
        return settings
    return replace(settings, mode=mode)


# ---------------------------------------------------------------------------
# Graph checks
# ---------------------------------------------------------------------------


@dataclass
class GraphCheck:
    """Outcome of one graph command; ``message`` is what the user sees."""

    passed: bool
    message: str
    comparison: GraphComparison | None = None
    redundant: list[RedundantDependency] = field(default_factory=list)
    guidance: Path | None = None


def compute_graph(project_root: Path, graph_config: GraphConfig) -> LeveledGraph:
    """Extract and layer the current dependency graph.

    Raises
    ------
    CycleError
        When the declared dependencies contain a cycle.
    """
    raw = generate_graph(
        project_root,
        package_scope=graph_config.package_scope,
        exclude=graph_config.exclude,
    )
    return sort_graph(raw)


def generate(project_root: Path, graph_config: GraphConfig) -> tuple[LeveledGraph, Path]:
    """Recompute the graph and bless it as the new snapshot."""
    graph = compute_graph(project_root, graph_config)
    path = save_snapshot(graph, project_root, graph_config.path)
    logger.info("Wrote %d project(s) to %s", len(graph), path)
    return graph, path


def check_unchanged(project_root: Path, graph_config: GraphConfig) -> GraphCheck:
    """Compare the freshly computed graph with the blessed snapshot."""
    saved = load_snapshot(project_root, graph_config.path)
    if saved is None:
        return GraphCheck(
            passed=False,
            message=(
                f"No saved graph at {graph_config.path}.\n"
                "Run 'tierguard generate', inspect it with 'tierguard visualize',"
                " and commit the file."
            ),
        )
    current = compute_graph(project_root, graph_config)
    comparison = compare_graphs(current, saved)
    if comparison.identical:
        return GraphCheck(passed=True, message=comparison.summary, comparison=comparison)
    return GraphCheck(
        passed=False,
        message=comparison.summary,
        comparison=comparison,
        guidance=write_guidance(project_root, DEPENDENCIES_GUIDE),
    )


def check_no_cycles(project_root: Path, graph_config: GraphConfig) -> GraphCheck:
    """Layer the graph; a :class:`CycleError` propagates to the caller."""
    graph = compute_graph(project_root, graph_config)
    return GraphCheck(
        passed=True,
        message=f"No cycles: {len(graph)} project(s) in {level_count(graph)} level(s)",
    )


def check_no_skiplevel(project_root: Path, graph_config: GraphConfig) -> GraphCheck:
    """Flag direct dependencies already implied through another direct dependency."""
    raw = generate_graph(
        project_root,
        package_scope=graph_config.package_scope,
        exclude=graph_config.exclude,
    )
    redundant = find_all_redundant(raw)
    if not redundant:
        return GraphCheck(passed=True, message="No redundant dependencies")
    lines = [
        f"{item.project} -> {item.redundant_dep} (already via {item.brought_in_by})"
        for item in redundant
    ]
    return GraphCheck(
        passed=False,
        message="Redundant dependencies:\n" + "\n".join(f"  {line}" for line in lines),
        redundant=redundant,
        guidance=write_guidance(project_root, TRANSITIVEDEPS_GUIDE),
    )


def check_package_manifests(project_root: Path, graph_config: GraphConfig) -> ManifestReport:
    """Validate package.json dependencies against the current graph."""
    graph = compute_graph(project_root, graph_config)
    return validate_package_manifests(
        graph,
        discover_projects(project_root),
        project_root,
        package_scope=graph_config.package_scope,
    )
