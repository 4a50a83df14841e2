# tierguard:domain=rules
"""Require explicit return type annotations on functions and methods."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.classifier import ChangeStatus
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    from tierguard.analysis.classifier import ClassifiedConstruct, FileAnalysis
    from tierguard.analysis.constructs import Construct

KEYWORD = "require-return-type"

# Interface members describe a shape, not an implementation.
_SKIPPED_NODE_TYPES = frozenset({"method_signature"})
_ACCESSOR_TOKENS = frozenset({"get", "set"})


def _is_accessor_or_constructor(construct: Construct) -> bool:
    if construct.name == "constructor":
        return True
    return any(child.type in _ACCESSOR_TOKENS for child in construct.node.children)


def has_return_type(construct: Construct) -> bool:
    return construct.node.child_by_field_name("return_type") is not None


@register
class ReturnTypeRule(Rule):
    rule_id = "require-return-type"
    title = "Explicit return types"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "NEW_METHODS": Scope.NEW_CONSTRUCTS,
        "MODIFIED_AND_NEW_METHODS": Scope.TOUCHED_CONSTRUCTS,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
    }
    escape_keywords = (KEYWORD,)
    guidance_file = "tierguard.returntypes.md"

    def _selected(self, classified: ClassifiedConstruct) -> bool:
        if self.scope is Scope.NEW_CONSTRUCTS:
            return classified.status is ChangeStatus.NEW
        if self.scope is Scope.TOUCHED_CONSTRUCTS:
            return classified.touched
        return True

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for classified in analysis.constructs:
            construct = classified.construct
            if construct.node.type in _SKIPPED_NODE_TYPES:
                continue
            if _is_accessor_or_constructor(construct) or has_return_type(construct):
                continue
            if not self._selected(classified):
                continue
            if self.escape_at(analysis, construct.start_line).suppresses:
                continue
            violations.append(
                self.violation(
                    analysis,
                    construct.start_line,
                    f"{construct.kind.capitalize()} '{construct.name}' is missing a return type"
                    " annotation",
                )
            )
        return violations
