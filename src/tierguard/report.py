# tierguard:domain=report
"""Formatters for code-rule runs: rich text, JSON and one-line-per-violation porcelain."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from tierguard.rules import RULE_REGISTRY

if TYPE_CHECKING:
    from tierguard.runner import RuleOutcome, RunResult

FORMATS: tuple[str, ...] = ("rich", "json", "porcelain")


def _title(rule_id: str) -> str:
    rule_cls = RULE_REGISTRY.get(rule_id)
    return rule_cls.title if rule_cls is not None and rule_cls.title else rule_id


def _outcome_line(outcome: RuleOutcome) -> str:
    label = f"{outcome.rule_id} ({outcome.mode})"
    if outcome.skipped is not None:
        return f"- {label}: skipped, {outcome.skipped}"
    if outcome.passed:
        return f"✓ {label}: {outcome.files_checked} file(s) checked"
    return f"✗ {label}: {len(outcome.violations)} violation(s)"


def format_rich(result: RunResult) -> str:
    """Format a RunResult as human-readable text.

    Example output with violations::

        Diff: 1a2b3c..working tree

        ✗ method-max-lines (NEW_AND_MODIFIED_METHODS): 1 violation(s)
        ✓ file-max-lines (MODIFIED_FILES): 3 file(s) checked

        Method size
          src/app.service.ts:12 → New method 'load' has 95 lines (max: 80)

        1 violation found (2 rules, 0.3s)
    """
    if result.skipped is not None:
        return f"Skipped: {result.skipped}"

    lines: list[str] = [f"Diff: {result.base}..{result.head or 'working tree'}", ""]
    lines.extend(_outcome_line(outcome) for outcome in result.outcomes)
    lines.append("")

    for outcome in result.outcomes:
        if outcome.passed:
            continue
        lines.append(_title(outcome.rule_id))
        for v in outcome.violations:
            lines.append(f"  {v.location} → {v.message}{v.expiry_note}")
        lines.append("")

    for path in result.guidance:
        lines.append(f"See {path} for how to fix these.")
    if result.guidance:
        lines.append("")

    elapsed = f"{result.elapsed_ms / 1000:.1f}s"
    count = len(result.violations)
    rules = len(result.outcomes)
    if count:
        noun = "violation" if count == 1 else "violations"
        lines.append(f"{count} {noun} found ({rules} rules, {elapsed})")
    else:
        lines.append(f"✓ No violations found ({rules} rules, {elapsed})")
    return "\n".join(lines)


def format_json(result: RunResult) -> str:
    """Format a RunResult as JSON with ``violations``, ``rules`` and ``summary``."""
    output: dict[str, object] = {
        "violations": [v.to_dict() for v in result.violations],
        "rules": [
            {
                "rule": outcome.rule_id,
                "mode": outcome.mode,
                "passed": outcome.passed,
                "skipped": outcome.skipped,
                "files_checked": outcome.files_checked,
                "violations_count": len(outcome.violations),
            }
            for outcome in result.outcomes
        ],
        "summary": {
            "base": result.base,
            "head": result.head,
            "passed": result.passed,
            "skipped": result.skipped,
            "violations_count": len(result.violations),
            "guidance": [str(path) for path in result.guidance],
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: RunResult) -> str:
    """One line per violation: ``rule:file:line:column:message``.

    A missing column is an empty field; an expired escape is noted after the
    message.  Returns an empty string when there
    are no violations.
    """
    lines: list[str] = []
    for v in result.violations:
        column = str(v.column) if v.column is not None else ""
        lines.append(f"{v.rule_id}:{v.file}:{v.line}:{column}:{v.message}{v.expiry_note}")
    return "\n".join(lines)


FORMATTERS = {
    "rich": format_rich,
    "json": format_json,
    "porcelain": format_porcelain,
}
