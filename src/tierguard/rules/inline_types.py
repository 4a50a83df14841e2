# tierguard:domain=rules
"""Forbid anonymous object and tuple types outside a type alias body.

``type Config = { timeout: number }`` is fine; ``function f(arg: { x: number })``
is not.  Each finding carries a short context label (``inline parameter
type``, ``tuple return type``, ...) derived from the enclosing syntax.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.syntax import start_column, start_line, walk
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from tierguard.analysis.classifier import FileAnalysis

KEYWORD = "no-inline-types"

_DECLARATION_PARENTS = frozenset({"type_alias_declaration", "interface_declaration"})
_INLINE_NODE_TYPES = frozenset({"object_type", "tuple_type"})
_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})
_FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "method_definition",
        "arrow_function",
        "function_expression",
        "method_signature",
    }
)
_PROPERTY_TYPES = frozenset({"public_field_definition", "property_signature"})


def is_allowed(node: TSNode) -> bool:
    """Only the direct body of a ``type X = ...`` alias may be anonymous.

    Older grammars model an interface body as an object type; that is a
    declaration, not an inline type.
    """
    parent = node.parent
    return parent is not None and parent.type in _DECLARATION_PARENTS


def _field_is(parent: TSNode, field_name: str, current: TSNode) -> bool:
    child = parent.child_by_field_name(field_name)
    if child is None:
        return False
    if child == current:
        return True
    # ``: T`` wrappers are transparent
    return child.type == "type_annotation" and current in child.named_children


def _nested_context(parent: TSNode, prefix: str) -> str | None:
    ancestor = parent.parent
    while ancestor is not None:
        if ancestor.type == "object_type":
            return f"nested {prefix} type"
        if ancestor.type == "type_alias_declaration":
            return f"nested {prefix} type in type alias"
        ancestor = ancestor.parent
    return None


def violation_context(node: TSNode) -> str:
    """Describe where an inline object/tuple type sits."""
    is_tuple = node.type == "tuple_type"
    prefix = "tuple" if is_tuple else "inline"

    current = node
    while current.parent is not None:
        parent = current.parent
        if parent.type == "type_annotation":
            current = parent
            continue
        if parent.type in _PARAMETER_TYPES:
            return f"{prefix} parameter type"
        if parent.type in _FUNCTION_TYPES and _field_is(parent, "return_type", current):
            return f"{prefix} return type"
        if parent.type == "variable_declarator":
            return f"{prefix} variable type"
        if parent.type in _PROPERTY_TYPES:
            if _field_is(parent, "type", current):
                return f"{prefix} property type"
            nested = _nested_context(parent, prefix)
            if nested is not None:
                return nested
        if parent.type in ("union_type", "intersection_type"):
            return f"{prefix} type in union/intersection"
        if parent.type in ("type_arguments", "generic_type"):
            return f"{prefix} type in generic argument"
        if parent.type == "array_type":
            return f"{prefix} type in array"
        if parent.type == "tuple_type" and not is_tuple:
            return "inline type in tuple"
        current = parent
    return "tuple type" if is_tuple else "inline type literal"


@register
class InlineTypeRule(Rule):
    rule_id = "no-inline-types"
    title = "No inline type literals"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "NEW_METHODS": Scope.NEW_CONSTRUCTS,
        "MODIFIED_AND_NEW_METHODS": Scope.TOUCHED_CONSTRUCTS,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
        "ALL": Scope.ALL_FILES,
    }
    escape_keywords = (KEYWORD,)
    guidance_file = "tierguard.inlinetypes.md"

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for node in walk(analysis.source.root):
            if node.type not in _INLINE_NODE_TYPES or is_allowed(node):
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
                    violation_context(node),
                    column=start_column(node),
                )
            )
        return violations
