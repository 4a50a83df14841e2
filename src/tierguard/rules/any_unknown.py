# tierguard:domain=rules
"""Forbid the ``any`` and ``unknown`` escape types."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.syntax import node_text, start_column, start_line, walk
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from tierguard.analysis.classifier import FileAnalysis

KEYWORD = "no-any-unknown"
FORBIDDEN = frozenset({"any", "unknown"})

_FUNCTION_TYPES = frozenset(
    {"function_declaration", "method_definition", "arrow_function", "function_expression"}
)

# parent node type -> label, checked innermost first
_CONTEXT_LABELS: dict[str, str] = {
    "required_parameter": "parameter type",
    "optional_parameter": "parameter type",
    "variable_declarator": "variable type",
    "catch_clause": "variable type",
    "public_field_definition": "property type",
    "property_signature": "property type",
    "as_expression": "type assertion",
    "type_alias_declaration": "type alias",
    "type_arguments": "generic argument",
    "generic_type": "generic argument",
    "array_type": "array element type",
    "union_type": "union/intersection type",
    "intersection_type": "union/intersection type",
}


def is_forbidden_type(node: TSNode) -> bool:
    return node.type == "predefined_type" and node_text(node) in FORBIDDEN


def _is_return_type(parent: TSNode, current: TSNode) -> bool:
    return_type = parent.child_by_field_name("return_type")
    return return_type is not None and return_type == current


def violation_context(node: TSNode) -> str:
    current = node
    while current.parent is not None:
        parent = current.parent
        if parent.type in _FUNCTION_TYPES and _is_return_type(parent, current):
            return "return type"
        label = _CONTEXT_LABELS.get(parent.type)
        if label is not None:
            return label
        current = parent
    return "type position"


@register
class AnyUnknownRule(Rule):
    rule_id = "no-any-unknown"
    title = "No any/unknown"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "MODIFIED_CODE": Scope.CHANGED_LINES,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
        "ALL": Scope.ALL_FILES,
    }
    escape_keywords = (KEYWORD,)
    guidance_file = "tierguard.anyunknown.md"

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for node in walk(analysis.source.root):
            if not is_forbidden_type(node):
                continue
            line = start_line(node)
            if not self.in_scope(line, analysis):
                continue
            if self.escape_at(analysis, line).suppresses:
                continue
            violations.append(
                self.violation(
                    analysis,
                    line,
                    f"`{node_text(node)}` keyword in {violation_context(node)}",
                    column=start_column(node),
                )
            )
        return violations
