"""Rules domain: diff-attributed code rules and their shared contract."""

# tierguard:domain=rules

from tierguard.rules.any_unknown import AnyUnknownRule
from tierguard.rules.base import (
    RULE_REGISTRY,
    Rule,
    RuleContext,
    RuleSettings,
    Scope,
    Violation,
    in_scope,
    resolve_mode,
)
from tierguard.rules.converters import ConverterRule
from tierguard.rules.destructure import DestructureRule
from tierguard.rules.dtos import TransferTypeRule
from tierguard.rules.inline_types import InlineTypeRule
from tierguard.rules.return_types import ReturnTypeRule
from tierguard.rules.size import FileSizeRule, MethodSizeRule

# Evaluation and reporting order.
RULE_ORDER: tuple[str, ...] = (
    MethodSizeRule.rule_id,
    FileSizeRule.rule_id,
    ReturnTypeRule.rule_id,
    InlineTypeRule.rule_id,
    AnyUnknownRule.rule_id,
    DestructureRule.rule_id,
    TransferTypeRule.rule_id,
    ConverterRule.rule_id,
)

__all__ = [
    "RULE_ORDER",
    "RULE_REGISTRY",
    "AnyUnknownRule",
    "ConverterRule",
    "DestructureRule",
    "FileSizeRule",
    "InlineTypeRule",
    "MethodSizeRule",
    "ReturnTypeRule",
    "Rule",
    "RuleContext",
    "RuleSettings",
    "Scope",
    "Violation",
    "TransferTypeRule",
    "in_scope",
    "resolve_mode",
]
