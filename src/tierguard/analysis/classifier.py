# tierguard:domain=analysis
"""Change classifier: label constructs NEW / MODIFIED / UNTOUCHED against a diff."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Set

    from tierguard.analysis.constructs import Construct
    from tierguard.analysis.diff_mapper import DiffMapping
    from tierguard.analysis.syntax import ParsedSource


class ChangeStatus(str, Enum):
    NEW = "new"
    MODIFIED = "modified"
    UNTOUCHED = "untouched"


@dataclass(frozen=True)
class ClassifiedConstruct:
    construct: Construct
    status: ChangeStatus

    @property
    def name(self) -> str:
        return self.construct.name

    @property
    def touched(self) -> bool:
        return self.status is not ChangeStatus.UNTOUCHED


def has_changes_in_range(start: int, end: int, changed_lines: Set[int]) -> bool:
    return any(line in changed_lines for line in range(start, end + 1))


def classify_construct(
    construct: Construct,
    changed_lines: Set[int],
    new_names: Set[str],
) -> ChangeStatus:
    """NEW wins over MODIFIED: a new name is new even if no line in its span was added."""
    if construct.name in new_names:
        return ChangeStatus.NEW
    if has_changes_in_range(construct.start_line, construct.end_line, changed_lines):
        return ChangeStatus.MODIFIED
    return ChangeStatus.UNTOUCHED


def classify(
    constructs: Iterable[Construct],
    changed_lines: Set[int],
    new_names: Set[str],
) -> list[ClassifiedConstruct]:
    return [
        ClassifiedConstruct(construct=c, status=classify_construct(c, changed_lines, new_names))
        for c in constructs
    ]


@dataclass(frozen=True)
class FileAnalysis:
    """Everything a rule needs to know about one file in one run."""

    source: ParsedSource
    constructs: tuple[ClassifiedConstruct, ...]
    diff: DiffMapping

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def changed_lines(self) -> frozenset[int]:
        return self.diff.changed_lines

    def is_line_changed(self, line: int) -> bool:
        return line in self.diff.changed_lines

    def in_new_construct(self, line: int) -> bool:
        return any(
            c.status is ChangeStatus.NEW and c.construct.contains(line) for c in self.constructs
        )

    def in_touched_construct(self, line: int) -> bool:
        return any(c.touched and c.construct.contains(line) for c in self.constructs)
