# tierguard:domain=analysis
"""Escape-hatch resolver: find ``tierguard-disable`` directives and validate their dates.

A directive is a plain comment placed just above the offending construct
(or within the first lines of a file for file-level rules)::

    // tierguard-disable max-lines-new-methods 2026/10/01 -- state machine, splitting hurts

Rules that require a date treat a missing or unparsable date as expired.
The ``XXXX/XX/XX`` sentinel never expires.
"""

from __future__ import annotations

import calendar
import datetime
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

DISABLE_MARKER = "tierguard-disable"
PERMANENT_DATE = "XXXX/XX/XX"
DATE_FORMAT = "%Y/%m/%d"

# Upward scan window for construct-level directives.
SCAN_WINDOW = 5
# File-level directives must sit in the header.
FILE_HEADER_LINES = 5


class EscapeState(str, Enum):
    ABSENT = "absent"
    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class EscapeResult:
    """Outcome of an escape lookup.

    ``malformed`` implies ``expired``: a directive whose date cannot be
    trusted is reported like an expired one.
    """

    matched: bool = False
    expired: bool = False
    date: str | None = None
    malformed: bool = False

    @property
    def state(self) -> EscapeState:
        if not self.matched:
            return EscapeState.ABSENT
        if self.malformed:
            return EscapeState.MALFORMED
        if self.expired:
            return EscapeState.EXPIRED
        return EscapeState.VALID

    @property
    def suppresses(self) -> bool:
        return self.matched and not self.expired


ABSENT = EscapeResult()


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def one_month_before(today: datetime.date) -> datetime.date:
    """Same day of the previous calendar month, clamped to that month's length."""
    year, month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
    day = min(today.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def parse_directive_date(text: str) -> datetime.date | None:
    """Parse ``yyyy/mm/dd``; ``None`` for impossible dates such as Feb 30."""
    try:
        return datetime.datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def today_stamp(today: datetime.date | None = None) -> str:
    """Today's date in directive format, for remediation messages."""
    return (today or datetime.date.today()).strftime(DATE_FORMAT)


def disable_comment(keyword: str, today: datetime.date | None = None) -> str:
    """The directive a developer should paste to suppress *keyword* for a month."""
    return f"// {DISABLE_MARKER} {keyword} {today_stamp(today)} -- [your reason]"


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(DISABLE_MARKER)}\s+{re.escape(keyword)}(?![\w-])")


def _date_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(keyword)}\s+(\d{{4}}/\d{{2}}/\d{{2}}|XXXX/XX/XX)")


def _evaluate_line(
    line: str,
    keyword: str,
    *,
    requires_date: bool,
    today: datetime.date,
) -> EscapeResult:
    if not requires_date:
        return EscapeResult(matched=True)

    match = _date_pattern(keyword).search(line)
    if match is None:
        return EscapeResult(matched=True, expired=True, malformed=True)

    stamp = match.group(1)
    if stamp == PERMANENT_DATE:
        return EscapeResult(matched=True, date=stamp)

    date = parse_directive_date(stamp)
    if date is None:
        return EscapeResult(matched=True, expired=True, date=stamp, malformed=True)
    expired = date < one_month_before(today)
    return EscapeResult(matched=True, expired=expired, date=stamp)


def match_line(
    line: str,
    keywords: Sequence[str],
    *,
    requires_date: bool,
    today: datetime.date | None = None,
) -> EscapeResult:
    """Check one line for a directive naming any of *keywords*.

    When several keywords match, a suppressing result is preferred.
    """
    if DISABLE_MARKER not in line:
        return ABSENT
    when = today or datetime.date.today()
    best = ABSENT
    for keyword in keywords:
        if not _keyword_pattern(keyword).search(line):
            continue
        result = _evaluate_line(line, keyword, requires_date=requires_date, today=when)
        if result.suppresses:
            return result
        if not best.matched:
            best = result
    return best


def _is_scope_boundary(stripped: str) -> bool:
    return stripped.startswith(("function ", "class ")) or stripped.endswith("}")


def find_escape(
    lines: Sequence[str],
    anchor_line: int,
    keywords: Sequence[str],
    *,
    requires_date: bool,
    today: datetime.date | None = None,
) -> EscapeResult:
    """Scan upward from the line above *anchor_line* (1-based) for a directive.

    The scan covers the ``SCAN_WINDOW`` preceding lines and stops at a line that
    closes a block or opens another declaration.
    """
    stop = max(0, anchor_line - 1 - SCAN_WINDOW)
    for index in range(anchor_line - 2, stop - 1, -1):
        if index >= len(lines):
            continue
        stripped = lines[index].strip()
        if _is_scope_boundary(stripped):
            break
        result = match_line(stripped, keywords, requires_date=requires_date, today=today)
        if result.matched:
            return result
    return ABSENT


def find_file_escape(
    lines: Sequence[str],
    keywords: Sequence[str],
    *,
    requires_date: bool,
    today: datetime.date | None = None,
) -> EscapeResult:
    """Look for a file-level directive in the first ``FILE_HEADER_LINES`` lines."""
    for line in lines[:FILE_HEADER_LINES]:
        result = match_line(line, keywords, requires_date=requires_date, today=today)
        if result.matched:
            return result
    return ABSENT
