"""Analysis domain: parsing, construct location, diff mapping, change classification, escapes."""

# tierguard:domain=analysis

from tierguard.analysis.classifier import (
    ChangeStatus,
    ClassifiedConstruct,
    FileAnalysis,
    classify,
    classify_construct,
)
from tierguard.analysis.constructs import Construct, locate_constructs
from tierguard.analysis.diff_mapper import DiffMapping, map_diff, map_file_diff
from tierguard.analysis.escape_hatch import (
    EscapeResult,
    EscapeState,
    disable_comment,
    find_escape,
    find_file_escape,
)
from tierguard.analysis.similarity import closest_match, similarity, suggest_rename
from tierguard.analysis.syntax import ParsedSource, parse_source

__all__ = [
    "ChangeStatus",
    "ClassifiedConstruct",
    "Construct",
    "DiffMapping",
    "EscapeResult",
    "EscapeState",
    "FileAnalysis",
    "ParsedSource",
    "classify",
    "classify_construct",
    "closest_match",
    "disable_comment",
    "find_escape",
    "find_file_escape",
    "locate_constructs",
    "map_diff",
    "map_file_diff",
    "parse_source",
    "similarity",
    "suggest_rename",
]
