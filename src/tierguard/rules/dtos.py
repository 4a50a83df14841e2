# tierguard:domain=rules
"""Transfer-type consistency: every ``XxxDto`` field must exist on the ``XxxDbo`` model.

Models come from the Prisma schema; their snake_case columns are compared
in camelCase.  ``XxxJoinDto`` types compose other transfer types and are
skipped, as are fields documented ``@deprecated`` (when escapes are
allowed).  A transfer type without a same-prefix model is not checked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from tierguard.analysis.classifier import has_changes_in_range
from tierguard.analysis.schema import load_persistence_models
from tierguard.analysis.similarity import suggest_rename
from tierguard.analysis.syntax import end_line, node_text, start_line, walk
from tierguard.rules.base import OFF, Rule, Scope, Violation, register

if TYPE_CHECKING:
    import datetime

    from tree_sitter import Node as TSNode

    from tierguard.analysis.classifier import FileAnalysis
    from tierguard.rules.base import RuleContext, RuleSettings

logger = logging.getLogger(__name__)

TRANSFER_SUFFIX = "Dto"
JOIN_SUFFIX = "JoinDto"
MODEL_SUFFIX = "Dbo"

_DECLARATION_TYPES = frozenset(
    {"class_declaration", "abstract_class_declaration", "interface_declaration"}
)
_FIELD_TYPES = frozenset({"public_field_definition", "property_signature"})
_FIELD_NAME_TYPES = frozenset({"property_identifier", "identifier"})
# Lines above a field (plus the field line) searched for ``@deprecated``.
_DEPRECATION_WINDOW = 3


@dataclass(frozen=True)
class TransferField:
    name: str
    line: int
    deprecated: bool


@dataclass(frozen=True)
class TransferType:
    name: str
    start_line: int
    end_line: int
    fields: tuple[TransferField, ...]

    @property
    def prefix(self) -> str:
        return self.name[: -len(TRANSFER_SUFFIX)].lower()


def is_field_deprecated(lines: tuple[str, ...] | list[str], field_line: int) -> bool:
    start = max(0, field_line - 1 - _DEPRECATION_WINDOW)
    return any("@deprecated" in lines[i] for i in range(start, min(field_line, len(lines))))


def _body_of(declaration: TSNode) -> TSNode | None:
    body = declaration.child_by_field_name("body")
    if body is not None:
        return body
    for child in declaration.named_children:
        if child.type in ("class_body", "interface_body", "object_type"):
            return child
    return None


def _collect_fields(body: TSNode, lines: tuple[str, ...]) -> list[TransferField]:
    fields: list[TransferField] = []
    for member in body.named_children:
        if member.type not in _FIELD_TYPES:
            continue
        name_node = member.child_by_field_name("name")
        if name_node is None or name_node.type not in _FIELD_NAME_TYPES:
            continue
        line = start_line(member)
        fields.append(
            TransferField(
                name=node_text(name_node),
                line=line,
                deprecated=is_field_deprecated(lines, line),
            )
        )
    return fields


def find_transfer_types(analysis: FileAnalysis) -> list[TransferType]:
    """Every ``XxxDto`` class or interface declared in the file (``JoinDto`` excluded)."""
    found: list[TransferType] = []
    for node in walk(analysis.source.root):
        if node.type not in _DECLARATION_TYPES:
            continue
        name = node_text(node.child_by_field_name("name"))
        if not name.endswith(TRANSFER_SUFFIX) or name.endswith(JOIN_SUFFIX):
            continue
        body = _body_of(node)
        fields = _collect_fields(body, analysis.source.lines) if body is not None else []
        found.append(
            TransferType(
                name=name,
                start_line=start_line(node),
                end_line=end_line(node),
                fields=tuple(fields),
            )
        )
    return found


@register
class TransferTypeRule(Rule):
    rule_id = "dto-fields"
    title = "Transfer type fields"
    modes: ClassVar[dict[str, Scope]] = {
        OFF: Scope.OFF,
        "MODIFIED_CLASS": Scope.TOUCHED_CONSTRUCTS,
        "MODIFIED_FILES": Scope.CHANGED_FILES,
    }
    guidance_file = "tierguard.dtos.md"

    def __init__(self, settings: RuleSettings, *, today: datetime.date | None = None) -> None:
        super().__init__(settings, today=today)
        self._models_by_prefix: dict[str, tuple[str, list[str]]] = {}

    def prepare(self, ctx: RuleContext) -> str | None:
        schema_path = self.settings.schema_path
        if not schema_path:
            return "no schema_path configured"
        if not self.settings.source_paths:
            return "no source_paths configured"
        if any(path.endswith(schema_path) for path in ctx.changed_paths):
            return f"{schema_path} is modified (schema in flux)"

        models = load_persistence_models(ctx.project_root / schema_path)
        if not models:
            return f"no {MODEL_SUFFIX} models found in {schema_path}"
        logger.info("Found %d %s model(s) in %s", len(models), MODEL_SUFFIX, schema_path)
        self._models_by_prefix = {
            name[: -len(MODEL_SUFFIX)].lower(): (name, sorted(fields))
            for name, fields in models.items()
        }
        return None

    def accepts_file(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.settings.source_paths)

    def evaluate(self, analysis: FileAnalysis) -> list[Violation]:
        violations: list[Violation] = []
        for transfer in find_transfer_types(analysis):
            if self.scope is Scope.TOUCHED_CONSTRUCTS and not has_changes_in_range(
                transfer.start_line, transfer.end_line, analysis.changed_lines
            ):
                continue
            model = self._models_by_prefix.get(transfer.prefix)
            if model is None:
                continue
            model_name, model_fields = model
            known = set(model_fields)
            for field in transfer.fields:
                if self.settings.disable_allowed and field.deprecated:
                    continue
                if field.name in known:
                    continue
                message = (
                    f"{transfer.name}.{field.name} does not exist in {model_name}."
                    f" {suggest_rename(field.name, model_fields)}"
                )
                violations.append(self.violation(analysis, field.line, message))
        return violations
