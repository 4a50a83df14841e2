# tierguard:domain=analysis
"""Fuzzy field matching for rename suggestions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# Scores must exceed this to count as a suggestion.
SUGGESTION_THRESHOLD = 0.4
# How many candidates to list when nothing is close enough.
_PREVIEW_COUNT = 8


def _lcs_length(s: str, t: str) -> int:
    """Length of the longest common subsequence of two strings."""
    prev_row = [0] * (len(t) + 1)
    for c_s in s:
        curr_row = [0]
        for j, c_t in enumerate(t):
            if c_s == c_t:
                curr_row.append(prev_row[j] + 1)
            else:
                curr_row.append(max(prev_row[j + 1], curr_row[j]))
        prev_row = curr_row
    return prev_row[-1]


def similarity(a: str, b: str) -> float:
    """Case-insensitive ``2 * lcs / (len(a) + len(b))``, in ``[0, 1]``."""
    a_lower, b_lower = a.lower(), b.lower()
    if a_lower == b_lower:
        return 1.0
    total = len(a_lower) + len(b_lower)
    if total == 0:
        return 0.0
    return (2 * _lcs_length(a_lower, b_lower)) / total


def closest_match(name: str, candidates: Iterable[str]) -> str | None:
    """Best-scoring candidate above ``SUGGESTION_THRESHOLD``; first one wins ties."""
    best: str | None = None
    best_score = SUGGESTION_THRESHOLD
    for candidate in candidates:
        score = similarity(name, candidate)
        if score > best_score:
            best_score = score
            best = candidate
    return best


def preview(candidates: list[str]) -> str:
    """Comma-joined first few candidates, with an ellipsis when truncated."""
    shown = ", ".join(candidates[:_PREVIEW_COUNT])
    if len(candidates) > _PREVIEW_COUNT:
        shown += ", ..."
    return shown


def suggest_rename(name: str, candidates: list[str]) -> str:
    """Human-readable hint: either the closest candidate or the available list."""
    match = closest_match(name, candidates)
    if match is not None:
        return f"Suggested rename: {name} -> {match}"
    return f"No close match found. Available: {preview(candidates)}"
