# tierguard:domain=infrastructure
"""Git collaborator: diffs, changed-file listings and merge-base lookups via subprocess.

Every helper fails open: a missing ``git`` binary, a timeout or a non-zero
exit status collapses to an empty result so that a broken checkout never
blocks unrelated work.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

SOURCE_PATTERNS: tuple[str, ...] = ("*.ts", "*.tsx")
SOURCE_SUFFIXES: tuple[str, ...] = (".ts", ".tsx")
_TEST_MARKERS: tuple[str, ...] = (".spec.ts", ".test.ts")

_GIT_TIMEOUT = 60
_UNTRACKED_ARGS: tuple[str, ...] = ("ls-files", "--others", "--exclude-standard")

# Environment variables consulted for the diff target when no explicit
# refs are passed on the command line.
BASE_ENV = "TIERGUARD_BASE"
HEAD_ENV = "TIERGUARD_HEAD"


def _run_git(project_root: Path, args: Sequence[str]) -> str | None:
    """Run ``git <args>`` in *project_root*; return stdout or ``None`` on failure."""
    try:
        result = subprocess.run(  # noqa: S603
            ["git", *args],  # noqa: S607
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("git %s could not be run", " ".join(args))
        return None
    if result.returncode != 0:
        logger.debug("git %s failed: %s", " ".join(args), result.stderr.strip())
        return None
    return result.stdout


def _split_lines(output: str | None) -> list[str]:
    if not output:
        return []
    return [line for line in output.strip().splitlines() if line]


def is_test_file(path: str) -> bool:
    return any(marker in path for marker in _TEST_MARKERS)


def _diff_target(base: str, head: str | None) -> list[str]:
    return [base, head] if head else [base]


# ---------------------------------------------------------------------------
# File listings
# ---------------------------------------------------------------------------


def untracked_files(project_root: Path, patterns: Sequence[str] = SOURCE_PATTERNS) -> list[str]:
    """Untracked, non-ignored files matching *patterns*."""
    output = _run_git(project_root, [*_UNTRACKED_ARGS, "--", *patterns])
    return _split_lines(output)


def changed_files(
    project_root: Path,
    base: str,
    head: str | None = None,
    *,
    patterns: Sequence[str] = SOURCE_PATTERNS,
) -> list[str]:
    """Source files changed between *base* and *head* (or the working tree).

    When *head* is absent, untracked files are included too.  Test files
    are filtered out.  Order: diff order, then untracked files.
    """
    output = _run_git(
        project_root, ["diff", "--name-only", *_diff_target(base, head), "--", *patterns]
    )
    files = _split_lines(output)
    if head is None:
        for path in untracked_files(project_root, patterns):
            if path not in files:
                files.append(path)
    return [path for path in files if not is_test_file(path)]


def tracked_files(project_root: Path, patterns: Sequence[str] = SOURCE_PATTERNS) -> list[str]:
    """Every tracked source file, test files excluded (used by whole-repo modes)."""
    output = _run_git(project_root, ["ls-files", "--", *patterns])
    return [path for path in _split_lines(output) if not is_test_file(path)]


def all_files(
    project_root: Path,
    head: str | None = None,
    *,
    patterns: Sequence[str] = SOURCE_PATTERNS,
) -> list[str]:
    """Tracked source files plus, against the working tree, untracked ones."""
    files = tracked_files(project_root, patterns)
    if head is None:
        for path in untracked_files(project_root, patterns):
            if path not in files and not is_test_file(path):
                files.append(path)
    return files


def changed_paths(project_root: Path, base: str, head: str | None = None) -> list[str]:
    """All paths changed between *base* and *head*, regardless of file type."""
    output = _run_git(project_root, ["diff", "--name-only", *_diff_target(base, head)])
    paths = _split_lines(output)
    if head is None:
        for path in _split_lines(_run_git(project_root, _UNTRACKED_ARGS)):
            if path not in paths:
                paths.append(path)
    return paths


# ---------------------------------------------------------------------------
# Diffs
# ---------------------------------------------------------------------------


def synthesize_addition_diff(content: str) -> str:
    """A unified diff that adds every line of *content* to an empty file."""
    lines = content.split("\n")
    header = f"@@ -0,0 +1,{len(lines)} @@"
    return "\n".join([header, *(f"+{line}" for line in lines)])


def file_diff(project_root: Path, file_path: str, base: str, head: str | None = None) -> str:
    """Unified diff text for *file_path*; empty string when unavailable.

    An untracked file compared against the working tree has no git diff,
    so one is synthesized where every line is an addition.
    """
    diff = _run_git(project_root, ["diff", *_diff_target(base, head), "--", file_path])
    if diff is None:
        return ""
    if diff or head is not None:
        return diff

    full_path = project_root / file_path
    if not full_path.is_file():
        return ""
    if not _split_lines(_run_git(project_root, [*_UNTRACKED_ARGS, "--", file_path])):
        return ""
    try:
        content = full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""
    return synthesize_addition_diff(content)


# ---------------------------------------------------------------------------
# Diff target resolution
# ---------------------------------------------------------------------------


def merge_base(project_root: Path, trunk: str = "main") -> str | None:
    """``git merge-base HEAD origin/<trunk>``, falling back to ``<trunk>``."""
    for ref in (f"origin/{trunk}", trunk):
        output = _run_git(project_root, ["merge-base", "HEAD", ref])
        if output and output.strip():
            return output.strip()
    return None


def resolve_base(
    project_root: Path, explicit: str | None = None, trunk: str = "main"
) -> str | None:
    """Explicit ref, else ``$TIERGUARD_BASE``, else the merge-base with the trunk."""
    if explicit:
        return explicit
    env_base = os.environ.get(BASE_ENV)
    if env_base:
        return env_base
    return merge_base(project_root, trunk)


def resolve_head(explicit: str | None = None) -> str | None:
    """Explicit ref, else ``$TIERGUARD_HEAD``; ``None`` means the working tree."""
    return explicit or os.environ.get(HEAD_ENV) or None
