# tierguard:domain=analysis
"""Syntax-tree collaborator: tree-sitter parsing for TypeScript sources and node helpers."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode
    from tree_sitter import Tree


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for one source dialect."""

    language: Language
    suffixes: tuple[str, ...]


# ---- Language loaders ----


def _load_typescript() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(language=Language(tstypescript.language_typescript()), suffixes=(".ts",))


def _load_tsx() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(language=Language(tstypescript.language_tsx()), suffixes=(".tsx",))


@functools.lru_cache(maxsize=None)
def get_lang_config(suffix: str) -> LangConfig:
    """Return the LangConfig for a file suffix (``.tsx`` or anything else as TypeScript)."""
    if suffix == ".tsx":
        return _load_tsx()
    return _load_typescript()


# ---- Parsed source ----


@dataclass(frozen=True)
class ParsedSource:
    """A source file together with its syntax tree."""

    path: str
    text: str
    lines: tuple[str, ...]
    tree: Tree

    @property
    def root(self) -> TSNode:
        return self.tree.root_node


def parse_source(path: str, text: str) -> ParsedSource:
    """Parse *text* with the dialect implied by *path*'s suffix."""
    suffix = "." + path.rsplit(".", 1)[-1] if "." in path else ""
    parser = Parser(get_lang_config(suffix).language)
    tree = parser.parse(text.encode("utf-8"))
    return ParsedSource(path=path, text=text, lines=tuple(text.split("\n")), tree=tree)


# ---- Node helpers ----


def node_text(node: TSNode | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def start_line(node: TSNode) -> int:
    """1-based line of the node's first character."""
    return node.start_point.row + 1


def end_line(node: TSNode) -> int:
    """1-based line of the node's last character."""
    return node.end_point.row + 1


def start_column(node: TSNode) -> int:
    """1-based column of the node's first character (byte offset within the line)."""
    return node.start_point.column + 1


def walk(node: TSNode) -> Iterator[TSNode]:
    """Pre-order depth-first traversal; each node is yielded exactly once."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def unwrap_annotation(node: TSNode | None) -> TSNode | None:
    """The type inside a ``type_annotation`` wrapper (``: T``), or *node* itself."""
    if node is not None and node.type == "type_annotation":
        for child in node.named_children:
            return child
        return None
    return node


def decorators_of(node: TSNode) -> list[TSNode]:
    """Decorators attached to a declaration.

    Class members carry their decorators as preceding siblings inside the
    class body; other declarations carry them as children.
    """
    found = [child for child in node.children if child.type == "decorator"]
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type == "decorator":
        found.insert(0, sibling)
        sibling = sibling.prev_named_sibling
    return found


def leading_comments(node: TSNode) -> list[TSNode]:
    """Comment nodes immediately preceding *node* (or its export wrapper)."""
    anchor = node
    if anchor.parent is not None and anchor.parent.type == "export_statement":
        anchor = anchor.parent
    comments: list[TSNode] = []
    sibling = anchor.prev_named_sibling
    while sibling is not None and sibling.type in ("comment", "decorator"):
        if sibling.type == "comment":
            comments.insert(0, sibling)
        sibling = sibling.prev_named_sibling
    return comments
