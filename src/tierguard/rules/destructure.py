# tierguard:domain=rules
"""Forbid object/array destructuring in declarations, loops, parameters and catch clauses.

Allowed idioms:

- ``const [a, b] = await Promise.all([...])``
- ``for (const [key, value] of Object.entries(obj))``
- ``const { ...rest } = obj`` (a pattern that holds nothing but the rest element)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.syntax import node_text, start_column, start_line, walk
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from tierguard.analysis.classifier import FileAnalysis

KEYWORD = "no-destructure"

_PATTERN_TYPES = frozenset({"object_pattern", "array_pattern"})
# Nodes that sit between a nested pattern and the outermost one.
_PATTERN_CONTAINERS = frozenset(
    {
        "object_pattern",
        "array_pattern",
        "pair_pattern",
        "object_assignment_pattern",
        "assignment_pattern",
        "rest_pattern",
    }
)
_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})
_PARALLEL_SETTLERS = frozenset({"all", "allSettled"})


def _root_pattern(node: TSNode) -> TSNode:
    current = node
    while current.parent is not None and current.parent.type in _PATTERN_CONTAINERS:
        current = current.parent
    return current


def _is_binding_position(root: TSNode) -> bool:
    """True when the outermost pattern binds names (not a plain assignment target)."""
    parent = root.parent
    if parent is None:
        return False
    if parent.type == "variable_declarator":
        return parent.child_by_field_name("name") == root
    if parent.type in _PARAMETER_TYPES or parent.type == "catch_clause":
        return True
    if parent.type == "for_in_statement":
        return parent.child_by_field_name("left") == root
    return False


def _is_for_of(statement: TSNode) -> bool:
    return any(child.type == "of" for child in statement.children)


def _member_call(node: TSNode | None) -> tuple[str, str] | None:
    """``(object, property)`` texts for a ``obj.prop(...)`` call, else ``None``."""
    if node is None or node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return None
    obj = function.child_by_field_name("object")
    prop = function.child_by_field_name("property")
    return node_text(obj), node_text(prop)


def is_parallel_settle(pattern: TSNode) -> bool:
    """``const [a, b] = await Promise.all(...)``."""
    parent = pattern.parent
    if parent is None or parent.type != "variable_declarator":
        return False
    value = parent.child_by_field_name("value")
    if value is None or value.type != "await_expression":
        return False
    awaited = value.named_children[0] if value.named_children else None
    call = _member_call(awaited)
    return call is not None and call[0] == "Promise" and call[1] in _PARALLEL_SETTLERS


def is_entries_loop(pattern: TSNode) -> bool:
    """``for (const [k, v] of something.entries())``."""
    parent = pattern.parent
    if parent is None or parent.type != "for_in_statement" or not _is_for_of(parent):
        return False
    if parent.child_by_field_name("left") != pattern:
        return False
    call = _member_call(parent.child_by_field_name("right"))
    return call is not None and call[1] == "entries"


def is_rest_only(pattern: TSNode) -> bool:
    elements = pattern.named_children
    return bool(elements) and all(child.type == "rest_pattern" for child in elements)


def destructure_context(pattern: TSNode) -> str:
    kind = "object" if pattern.type == "object_pattern" else "array"
    parent = pattern.parent
    if parent is not None:
        if parent.type in _PARAMETER_TYPES:
            return "function parameter destructuring"
        if parent.type == "for_in_statement" and _is_for_of(parent):
            return f"{kind} destructuring in for-of loop"
        if parent.type == "variable_declarator":
            return f"{kind} destructuring in variable declaration"
    return f"{kind} destructuring"


def _is_exempt(pattern: TSNode) -> bool:
    if pattern.type == "object_pattern":
        return is_rest_only(pattern)
    return is_parallel_settle(pattern) or is_entries_loop(pattern)


@register
class DestructureRule(Rule):
    rule_id = "no-destructure"
    title = "No destructuring"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "MODIFIED_CODE": Scope.CHANGED_LINES,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
    }
    escape_keywords = (KEYWORD,)
    guidance_file = "tierguard.destructure.md"

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for node in walk(analysis.source.root):
            if node.type not in _PATTERN_TYPES:
                continue
            if not _is_binding_position(_root_pattern(node)) or _is_exempt(node):
                continue
            line = start_line(node)
            if not self.in_scope(line, analysis):
                continue
            if self.escape_at(analysis, line).suppresses:
                continue
            violations.append(
                self.violation(
                    analysis, line, destructure_context(node), column=start_column(node)
                )
            )
        return violations
