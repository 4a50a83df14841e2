# tierguard:domain=analysis
"""Construct locator: functions, methods and identifier-bound arrow functions with line spans."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tierguard.analysis.syntax import decorators_of, end_line, node_text, start_line, walk

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

# node type -> construct kind
_METHOD_TYPES: dict[str, str] = {
    "method_definition": "method",
    "method_signature": "method",
    "abstract_method_signature": "method",
}
_FUNCTION_TYPES: dict[str, str] = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
}


@dataclass(frozen=True)
class Construct:
    """A named function-like construct with a 1-based inclusive line span."""

    name: str
    kind: str  # "method" | "function" | "arrow"
    start_line: int
    end_line: int
    node: TSNode = field(compare=False, repr=False)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


def _arrow_binding_name(node: TSNode) -> str | None:
    parent = node.parent
    if parent is None or parent.type != "variable_declarator":
        return None
    if parent.child_by_field_name("value") != node:
        return None
    name_node = parent.child_by_field_name("name")
    if name_node is None or name_node.type != "identifier":
        return None
    return node_text(name_node)


def _as_construct(node: TSNode) -> Construct | None:
    kind = _METHOD_TYPES.get(node.type) or _FUNCTION_TYPES.get(node.type)
    if kind is not None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        first = start_line(node)
        decorators = decorators_of(node)
        if decorators:
            first = min(first, start_line(decorators[0]))
        return Construct(
            name=node_text(name_node),
            kind=kind,
            start_line=first,
            end_line=end_line(node),
            node=node,
        )

    if node.type == "arrow_function":
        name = _arrow_binding_name(node)
        if name is None:
            return None
        return Construct(
            name=name,
            kind="arrow",
            start_line=start_line(node),
            end_line=end_line(node),
            node=node,
        )
    return None


def locate_constructs(root: TSNode) -> list[Construct]:
    """Every construct under *root*, in source (pre-order) order.

    Nested constructs are reported as well as their enclosing ones.
    """
    constructs: list[Construct] = []
    for node in walk(root):
        construct = _as_construct(node)
        if construct is not None:
            constructs.append(construct)
    return constructs
