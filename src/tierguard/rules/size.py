# tierguard:domain=rules
"""Size rules: per-construct and whole-file line limits with dated escapes."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.classifier import ChangeStatus
from tierguard.analysis.escape_hatch import EscapeResult, disable_comment
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    from tierguard.analysis.classifier import ClassifiedConstruct, FileAnalysis

NEW_METHODS_KEYWORD = "max-lines-new-methods"
MODIFIED_METHODS_KEYWORD = "max-lines-modified-methods"
NEW_AND_MODIFIED_KEYWORD = "max-lines-new-and-modified"
MODIFIED_FILES_KEYWORD = "max-lines-modified-files"

DEFAULT_METHOD_LIMIT = 80
DEFAULT_FILE_LIMIT = 900


def escape_note(escape: EscapeResult, today_hint: str) -> str:
    """Suffix explaining why a matched directive did not suppress the finding."""
    if escape.malformed:
        return f"; disable directive has no valid yyyy/mm/dd date, use: {today_hint}"
    if escape.expired:
        return (
            f"; disable directive dated {escape.date} has expired (>1 month old),"
            f" fix the code or refresh the date: {today_hint}"
        )
    return ""


@register
class MethodSizeRule(Rule):
    """Functions and methods may not exceed ``limit`` lines (decorators included)."""

    rule_id = "method-max-lines"
    title = "Method size"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "NEW_METHODS": Scope.NEW_CONSTRUCTS,
        "NEW_AND_MODIFIED_METHODS": Scope.TOUCHED_CONSTRUCTS,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
        "ALL": Scope.ALL_FILES,
    }
    default_mode = "NEW_AND_MODIFIED_METHODS"
    escape_keywords = (NEW_METHODS_KEYWORD, MODIFIED_METHODS_KEYWORD, NEW_AND_MODIFIED_KEYWORD)
    requires_date = True
    guidance_file = "tierguard.methodsize.md"

    @property
    def limit(self) -> int:
        return self.settings.limit if self.settings.limit is not None else DEFAULT_METHOD_LIMIT

    def _selected(self, classified: ClassifiedConstruct) -> bool:
        if self.scope is Scope.NEW_CONSTRUCTS:
            return classified.status is ChangeStatus.NEW
        if self.scope is Scope.TOUCHED_CONSTRUCTS:
            return classified.touched
        return self.scope in (Scope.CHANGED_FILES, Scope.ALL_FILES)

    @staticmethod
    def keywords_for(status: ChangeStatus) -> tuple[str, ...]:
        """Directive keywords that exempt a construct with *status*.

        The combined keyword satisfies both the new and the modified check.
        """
        if status is ChangeStatus.NEW:
            return (NEW_METHODS_KEYWORD, NEW_AND_MODIFIED_KEYWORD)
        return (MODIFIED_METHODS_KEYWORD, NEW_AND_MODIFIED_KEYWORD)

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for classified in analysis.constructs:
            if not self._selected(classified):
                continue
            construct = classified.construct
            if construct.line_count <= self.limit:
                continue

            keywords = self.keywords_for(classified.status)
            escape = self.escape_at(analysis, construct.start_line, keywords)
            if escape.suppresses:
                continue

            label = "New" if classified.status is ChangeStatus.NEW else "Modified"
            if classified.status is ChangeStatus.UNTOUCHED:
                label = "Existing"
            message = (
                f"{label} {construct.kind} '{construct.name}' has {construct.line_count} lines"
                f" (max: {self.limit})"
            )
            message += escape_note(escape, disable_comment(keywords[0], self.today))
            violations.append(
                self.violation(analysis, construct.start_line, message, escape=escape)
            )
        return violations


@register
class FileSizeRule(Rule):
    """Source files may not exceed ``limit`` lines."""

    rule_id = "file-max-lines"
    title = "File size"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
        "ALL": Scope.ALL_FILES,
    }
    default_mode = "MODIFIED_FILES"
    escape_keywords = (MODIFIED_FILES_KEYWORD,)
    requires_date = True
    guidance_file = "tierguard.filesize.md"

    @property
    def limit(self) -> int:
        return self.settings.limit if self.settings.limit is not None else DEFAULT_FILE_LIMIT

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        line_count = len(analysis.source.text.splitlines())
        if line_count <= self.limit:
            return []

        escape = self.file_escape(analysis)
        if escape.suppresses:
            return []

        message = f"File has {line_count} lines (max: {self.limit})"
        message += escape_note(escape, disable_comment(MODIFIED_FILES_KEYWORD, self.today))
        return [self.violation(analysis, 1, message, escape=escape)]
