# tierguard:domain=analysis
"""Diff mapper: unified diff -> changed line numbers and newly introduced construct names."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tierguard.infrastructure.git import file_diff

if TYPE_CHECKING:
    from pathlib import Path

# @@ -a[,b] +c[,d] @@ ; only the new-file start line is needed.
HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")

# Declaration shapes on added lines; first match wins.
NEW_CONSTRUCT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\+\s*(?:export\s+)?(?:async\s+)?function\s+(\w+)\s*\("),
    re.compile(r"^\+\s*(?:export\s+)?(?:const|let)\s+(\w+)\s*=\s*(?:async\s*)?\("),
    re.compile(r"^\+\s*(?:export\s+)?(?:const|let)\s+(\w+)\s*=\s*(?:async\s+)?function"),
    re.compile(r"^\+\s*(?:(?:public|private|protected)\s+)?(?:static\s+)?(?:async\s+)?(\w+)\s*\("),
)

# Call-shaped keywords that the class-member pattern would otherwise pick up.
EXCLUDED_NAMES: frozenset[str] = frozenset(
    {"if", "for", "while", "switch", "catch", "constructor"}
)


@dataclass(frozen=True)
class DiffMapping:
    """What a diff says about one file's new revision."""

    changed_lines: frozenset[int]
    new_names: frozenset[str]

    @classmethod
    def empty(cls) -> DiffMapping:
        return cls(changed_lines=frozenset(), new_names=frozenset())


def changed_line_numbers(diff_text: str) -> set[int]:
    """1-based line numbers of added lines in the new revision.

    The cursor starts at each hunk's ``+c`` and advances on additions and
    context lines; deletions and ``\\ No newline`` markers do not move it.
    Lines outside any hunk (file headers) are ignored.
    """
    changed: set[int] = set()
    cursor = 0
    in_hunk = False

    for line in diff_text.split("\n"):
        match = HUNK_RE.match(line)
        if match:
            cursor = int(match.group(1))
            in_hunk = True
            continue
        if line.startswith("diff --git"):
            in_hunk = False
            continue
        if not in_hunk:
            continue
        if line.startswith("+"):
            changed.add(cursor)
            cursor += 1
        elif line.startswith("-") or line.startswith("\\"):
            continue
        else:
            cursor += 1

    return changed


def new_construct_names(diff_text: str) -> set[str]:
    """Names of functions/methods whose declaration line was added."""
    names: set[str] = set()
    for line in diff_text.split("\n"):
        if not line.startswith("+") or line.startswith("+++"):
            continue
        for pattern in NEW_CONSTRUCT_PATTERNS:
            match = pattern.match(line)
            if match:
                name = match.group(1)
                if name not in EXCLUDED_NAMES:
                    names.add(name)
                break
    return names


def map_diff(diff_text: str) -> DiffMapping:
    if not diff_text:
        return DiffMapping.empty()
    return DiffMapping(
        changed_lines=frozenset(changed_line_numbers(diff_text)),
        new_names=frozenset(new_construct_names(diff_text)),
    )


def map_file_diff(
    project_root: Path, file_path: str, base: str, head: str | None = None
) -> DiffMapping:
    """Diff *file_path* against *base* (and *head*, else the working tree) and map it."""
    return map_diff(file_diff(project_root, file_path, base, head))
