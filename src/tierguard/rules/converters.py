# tierguard:domain=rules
"""Converter-shape rule for schema-backed transfer types.

Inside converter directories, a method returning ``XxxDto`` (where model
``XxxDbo`` exists) must take that exact ``XxxDbo`` first, may only add
``boolean`` flags after it, and must not be async.  Standalone functions
are not allowed there: converters live on injectable classes.  Outside
converter directories, ``new XxxDto(...)`` for a schema-backed type is
flagged.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.schema import load_model_names
from tierguard.analysis.syntax import (
    decorators_of,
    leading_comments,
    node_text,
    start_line,
    unwrap_annotation,
    walk,
)
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    import datetime

    from tree_sitter import Node as TSNode

    from tierguard.analysis.classifier import FileAnalysis
    from tierguard.rules.base import RuleContext, RuleSettings

logger = logging.getLogger(__name__)

KEYWORD = "prisma-converter"

_PROMISE_RE = re.compile(r"^Promise\s*<\s*(.+)\s*>$", re.DOTALL)
_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})


def expected_model_name(type_name: str) -> str | None:
    """``UserDto`` -> ``UserDbo``; ``None`` for anything not ending in ``Dto``."""
    if not type_name.endswith("Dto"):
        return None
    return type_name[:-3] + "Dbo"


def unwrap_promise(type_text: str) -> tuple[str, bool]:
    """``(inner, is_async)`` for ``Promise<T>``; other types pass through."""
    match = _PROMISE_RE.match(type_text)
    if match:
        return match.group(1).strip(), True
    return type_text, False


def _is_deprecated_decorator(decorator: TSNode) -> bool:
    for child in decorator.named_children:
        if child.type == "identifier" and node_text(child) == "deprecated":
            return True
        if child.type == "call_expression":
            function = child.child_by_field_name("function")
            if function is not None and node_text(function) == "deprecated":
                return True
    return False


def is_deprecated(node: TSNode) -> bool:
    """``@deprecated`` decorator or a ``/** @deprecated */`` doc comment."""
    if any(_is_deprecated_decorator(d) for d in decorators_of(node)):
        return True
    return any(
        node_text(c).startswith("/**") and "@deprecated" in node_text(c)
        for c in leading_comments(node)
    )


def _parameters(node: TSNode) -> list[TSNode]:
    params = node.child_by_field_name("parameters")
    if params is None:
        return []
    return [p for p in params.named_children if p.type in _PARAMETER_TYPES]


def _type_text(param: TSNode) -> str | None:
    annotation = unwrap_annotation(param.child_by_field_name("type"))
    return node_text(annotation).strip() if annotation is not None else None


@register
class ConverterRule(Rule):
    rule_id = "prisma-converter"
    title = "Converter shape"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "MODIFIED_METHOD_AND_CODE": Scope.TOUCHED_CONSTRUCTS,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
    }
    escape_keywords = (KEYWORD,)
    guidance_file = "tierguard.converters.md"

    def __init__(self, settings: RuleSettings, *, today: datetime.date | None = None) -> None:
        super().__init__(settings, today=today)
        self._models: frozenset[str] = frozenset()

    def prepare(self, ctx: RuleContext) -> str | None:
        schema_path = self.settings.schema_path
        if not schema_path:
            return "no schema_path configured"
        if not self.settings.converter_paths:
            return "no converter_paths configured"
        self._models = load_model_names(ctx.project_root / schema_path)
        if not self._models:
            return f"no models found in {schema_path}"
        logger.info("Found %d model(s) in %s", len(self._models), schema_path)
        return None

    def is_converter_file(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.settings.converter_paths)

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        if self.is_converter_file(analysis.path):
            return self._check_converter_file(analysis)
        return self._check_construction_sites(analysis)

    # -- converter files --

    def _check_converter_file(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for classified in analysis.constructs:
            if self.scope is Scope.TOUCHED_CONSTRUCTS and not classified.touched:
                continue
            node = classified.construct.node
            if node.type == "function_declaration":
                violations.extend(self._check_standalone(analysis, node))
            elif node.type == "method_definition":
                violations.extend(self._check_method(analysis, node))
        return violations

    def _skipped(self, analysis: FileAnalysis, node: TSNode, line: int) -> bool:
        return is_deprecated(node) or self.escape_at(analysis, line).suppresses

    def _check_standalone(self, analysis: FileAnalysis, node: TSNode) -> list[Violation]:
        line = start_line(node)
        if self._skipped(analysis, node, line):
            return []
        name = node_text(node.child_by_field_name("name"))
        return [
            self.violation(
                analysis,
                line,
                f'Standalone function "{name}" found in converter file.'
                " Move to a converter class so it can be injected via DI.",
            )
        ]

    def _check_method(self, analysis: FileAnalysis, node: TSNode) -> list[Violation]:
        return_type = unwrap_annotation(node.child_by_field_name("return_type"))
        if return_type is None:
            return []
        line = start_line(node)
        if self._skipped(analysis, node, line):
            return []

        inner, is_async = unwrap_promise(node_text(return_type).strip())
        expected = expected_model_name(inner)
        if expected is None or expected not in self._models:
            return []

        if is_async:
            return [
                self.violation(
                    analysis,
                    line,
                    f'Async converter method returning "Promise<{inner}>" found.'
                    " Converters should be pure data mapping with no async work."
                    " Remove async/Promise.",
                )
            ]
        return self._check_parameters(analysis, node, inner, expected, line)

    def _check_parameters(
        self,
        analysis: FileAnalysis,
        node: TSNode,
        inner: str,
        expected: str,
        line: int,
    ) -> list[Violation]:
        params = _parameters(node)
        if not params:
            return [
                self.violation(
                    analysis,
                    line,
                    f'Method returns "{inner}" but has no parameters.'
                    f' First parameter must be of type "{expected}".',
                )
            ]

        violations: list[Violation] = []
        first_type = _type_text(params[0])
        if first_type is not None and first_type != expected:
            violations.append(
                self.violation(
                    analysis,
                    line,
                    f'Method returns "{inner}" but first parameter is "{first_type}".'
                    f' First parameter must be of type "{expected}".',
                )
            )
        for param in params[1:]:
            param_type = _type_text(param)
            if param_type is None or param_type == "boolean":
                continue
            param_name = node_text(param.child_by_field_name("pattern"))
            violations.append(
                self.violation(
                    analysis,
                    line,
                    f'Extra parameter "{param_name}" has type "{param_type}" but must be'
                    ' "boolean". Additional converter parameters are only for boolean flags'
                    " (payload filtering / security).",
                )
            )
        return violations

    # -- everything else --

    def _check_construction_sites(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        dirs = ", ".join(f'"{p}"' for p in self.settings.converter_paths)
        for node in walk(analysis.source.root):
            if node.type != "new_expression":
                continue
            constructor = node.child_by_field_name("constructor")
            if constructor is None or constructor.type != "identifier":
                continue
            class_name = node_text(constructor)
            expected = expected_model_name(class_name)
            if expected is None or expected not in self._models:
                continue
            line = start_line(node)
            if self.scope is Scope.TOUCHED_CONSTRUCTS and not analysis.is_line_changed(line):
                continue
            if self.escape_at(analysis, line).suppresses:
                continue
            violations.append(
                self.violation(
                    analysis,
                    line,
                    f'"{class_name}" can only be created from its Dbo using a converter in one'
                    f" of these directories: {dirs}. Move this Dto construction into a"
                    " converter class method.",
                )
            )
        return violations
