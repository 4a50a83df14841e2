# tierguard:domain=rules
"""Rule contract: scopes, settings, violations and the base class every code rule extends."""

from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, TypeVar

from tierguard.analysis.escape_hatch import ABSENT, EscapeResult, find_escape, find_file_escape

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tierguard.analysis.classifier import FileAnalysis

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Scopes and modes
# ---------------------------------------------------------------------------


class Scope(str, Enum):
    """What part of the codebase a configured mode covers."""

    OFF = "off"
    NEW_CONSTRUCTS = "new-constructs"
    TOUCHED_CONSTRUCTS = "touched-constructs"
    CHANGED_LINES = "changed-lines"
    CHANGED_FILES = "changed-files"
    ALL_FILES = "all-files"


OFF = "OFF"


def in_scope(line: int, analysis: FileAnalysis, scope: Scope) -> bool:
    """Whether a finding on *line* falls inside *scope* for this file."""
    if scope in (Scope.CHANGED_FILES, Scope.ALL_FILES):
        return True
    if scope is Scope.CHANGED_LINES:
        return analysis.is_line_changed(line)
    if scope is Scope.NEW_CONSTRUCTS:
        return analysis.in_new_construct(line)
    if scope is Scope.TOUCHED_CONSTRUCTS:
        return analysis.in_touched_construct(line)
    return False


# ---------------------------------------------------------------------------
# Settings and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleSettings:
    """Per-rule configuration as read from ``.tierguard/config.yml``."""

    mode: str
    disable_allowed: bool = True
    ignore_until_epoch: int | None = None
    limit: int | None = None
    schema_path: str | None = None
    source_paths: tuple[str, ...] = ()
    converter_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class Violation:
    """A single rule finding.

    ``expired`` marks a finding whose escape directive no longer applies:
    stale, undated where a date is required, or unparsable.  ``expired_date``
    carries the directive's date when it had one.
    """

    rule_id: str
    file: str
    line: int
    message: str
    column: int | None = None
    expired: bool = False
    expired_date: str | None = None

    @property
    def location(self) -> str:
        loc = f"{self.file}:{self.line}"
        if self.column is not None:
            loc += f":{self.column}"
        return loc

    @property
    def expiry_note(self) -> str:
        if not self.expired:
            return ""
        if self.expired_date:
            return f" [disable expired: {self.expired_date}]"
        return " [disable expired: no valid date]"

    def to_dict(self) -> dict[str, object]:
        return {
            "rule": self.rule_id,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "expired": self.expired,
            "expired_date": self.expired_date,
        }


@dataclass(frozen=True)
class RuleContext:
    """Run-wide inputs a rule may consult before scanning files."""

    project_root: Path
    base: str
    head: str | None
    changed_paths: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Temporary suppression window
# ---------------------------------------------------------------------------


def _epoch_date(epoch: int) -> str:
    return datetime.datetime.fromtimestamp(epoch, tz=datetime.timezone.utc).date().isoformat()


def resolve_mode(
    rule_id: str,
    mode: str,
    ignore_until_epoch: int | None,
    *,
    now: float | None = None,
) -> str:
    """Downgrade *mode* to ``OFF`` while ``ignore_until_epoch`` lies in the future."""
    if ignore_until_epoch is None or mode == OFF:
        return mode
    current = time.time() if now is None else now
    expires = _epoch_date(ignore_until_epoch)
    if current < ignore_until_epoch:
        logger.info("Skipping %s (ignore_until_epoch active, expires: %s)", rule_id, expires)
        return OFF
    logger.warning(
        "%s.ignore_until_epoch (%d) expired on %s; remove it from the config. Using mode %s",
        rule_id,
        ignore_until_epoch,
        expires,
        mode,
    )
    return mode


# ---------------------------------------------------------------------------
# Rule base class
# ---------------------------------------------------------------------------


class Rule:
    """Base class for diff-attributed code rules.

    Subclasses declare their accepted modes and the scope each maps to,
    then implement :meth:`evaluate`.  Rules are read-only: they never touch
    the files they inspect.
    """

    rule_id: ClassVar[str] = ""
    title: ClassVar[str] = ""
    modes: ClassVar[dict[str, Scope]] = {OFF: Scope.OFF}
    default_mode: ClassVar[str] = OFF
    escape_keywords: ClassVar[tuple[str, ...]] = ()
    requires_date: ClassVar[bool] = False
    guidance_file: ClassVar[str | None] = None

    def __init__(self, settings: RuleSettings, *, today: datetime.date | None = None) -> None:
        if settings.mode not in self.modes:
            allowed = ", ".join(self.modes)
            msg = f"Unknown mode '{settings.mode}' for {self.rule_id} (expected one of: {allowed})"
            raise ValueError(msg)
        self.settings = settings
        self.today = today or datetime.date.today()

    @property
    def scope(self) -> Scope:
        return self.modes[self.settings.mode]

    @property
    def enabled(self) -> bool:
        return self.scope is not Scope.OFF

    def prepare(self, ctx: RuleContext) -> str | None:
        """Run-wide setup; return a skip reason to pass the rule without scanning."""
        return None

    def accepts_file(self, path: str) -> bool:
        return True

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        raise NotImplementedError

    # -- shared helpers --

    def escape_at(
        self,
        analysis: FileAnalysis,
        anchor_line: int,
        keywords: Sequence[str] | None = None,
    ) -> EscapeResult:
        """Escape directive above *anchor_line*, ignored when escapes are not allowed."""
        if not self.settings.disable_allowed:
            return ABSENT
        return find_escape(
            analysis.source.lines,
            anchor_line,
            keywords if keywords is not None else self.escape_keywords,
            requires_date=self.requires_date,
            today=self.today,
        )

    def file_escape(self, analysis: FileAnalysis) -> EscapeResult:
        if not self.settings.disable_allowed:
            return ABSENT
        return find_file_escape(
            analysis.source.lines,
            self.escape_keywords,
            requires_date=self.requires_date,
            today=self.today,
        )

    def in_scope(self, line: int, analysis: FileAnalysis) -> bool:
        return in_scope(line, analysis, self.scope)

    def violation(
        self,
        analysis: FileAnalysis,
        line: int,
        message: str,
        *,
        column: int | None = None,
        escape: EscapeResult = ABSENT,
    ) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            file=analysis.path,
            line=line,
            message=message,
            column=column,
            expired=escape.expired,
            expired_date=escape.date if escape.expired else None,
        )


RULE_REGISTRY: dict[str, type[Rule]] = {}


_R = TypeVar("_R", bound=Rule)


def register(cls: type[_R]) -> type[_R]:
    """Class decorator adding a rule to :data:`RULE_REGISTRY`."""
    RULE_REGISTRY[cls.rule_id] = cls
    return cls
