# tierguard:domain=infrastructure
"""Project configuration: ``.tierguard/config.yml`` -> typed settings with defaults."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from tierguard.graph.store import DEFAULT_GRAPH_PATH
from tierguard.rules import RULE_ORDER, RULE_REGISTRY, RuleSettings
from tierguard.rules.size import (
    DEFAULT_FILE_LIMIT,
    DEFAULT_METHOD_LIMIT,
    FileSizeRule,
    MethodSizeRule,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = ".tierguard"
CONFIG_FILE = "config.yml"
SUPPORTED_CONFIG_VERSIONS = frozenset({1})

_RULE_KEYS = frozenset(
    {
        "mode",
        "disable_allowed",
        "ignore_until_epoch",
        "limit",
        "schema_path",
        "source_paths",
        "converter_paths",
    }
)
_DEFAULT_LIMITS: dict[str, int] = {
    MethodSizeRule.rule_id: DEFAULT_METHOD_LIMIT,
    FileSizeRule.rule_id: DEFAULT_FILE_LIMIT,
}


class ConfigError(ValueError):
    """Raised when ``.tierguard/config.yml`` is malformed."""


@dataclass(frozen=True)
class GraphConfig:
    path: str = DEFAULT_GRAPH_PATH
    package_scope: str = ""
    exclude: tuple[str, ...] = ()


def default_rule_settings() -> dict[str, RuleSettings]:
    return {
        rule_id: RuleSettings(
            mode=RULE_REGISTRY[rule_id].default_mode,
            limit=_DEFAULT_LIMITS.get(rule_id),
        )
        for rule_id in RULE_ORDER
    }


@dataclass(frozen=True)
class ToolConfig:
    graph: GraphConfig = field(default_factory=GraphConfig)
    trunk: str = "main"
    rules: dict[str, RuleSettings] = field(default_factory=default_rule_settings)

    def rule(self, rule_id: str) -> RuleSettings:
        return self.rules[rule_id]


def config_path(project_root: Path) -> Path:
    return project_root / CONFIG_DIR / CONFIG_FILE


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"{CONFIG_FILE}: '{where}' must be a mapping"
        raise ConfigError(msg)
    return value


def _str_list(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{CONFIG_FILE}: '{where}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def _optional_int(value: Any, where: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{CONFIG_FILE}: '{where}' must be an integer"
        raise ConfigError(msg)
    return value


def _parse_graph(data: dict[str, Any]) -> GraphConfig:
    section = _require_mapping(data.get("graph"), "graph")
    return GraphConfig(
        path=str(section.get("path", DEFAULT_GRAPH_PATH)),
        package_scope=str(section.get("package_scope") or ""),
        exclude=_str_list(section.get("exclude"), "graph.exclude"),
    )


def validate_mode(rule_id: str, mode: str) -> str:
    rule_cls = RULE_REGISTRY[rule_id]
    if mode not in rule_cls.modes:
        allowed = ", ".join(rule_cls.modes)
        msg = (
            f"{CONFIG_FILE}: rule '{rule_id}' has invalid mode '{mode}',"
            f" must be one of {allowed}"
        )
        raise ConfigError(msg)
    return mode


def _parse_rule(rule_id: str, raw: Any, default: RuleSettings) -> RuleSettings:
    section = _require_mapping(raw, f"rules.{rule_id}")
    unknown = sorted(set(section) - _RULE_KEYS)
    if unknown:
        msg = f"{CONFIG_FILE}: rule '{rule_id}' has unknown keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    # YAML 1.1 reads a bare OFF as boolean false
    mode_raw = section.get("mode", default.mode)
    mode = "OFF" if mode_raw is False else str(mode_raw)

    disable_allowed = section.get("disable_allowed", default.disable_allowed)
    if not isinstance(disable_allowed, bool):
        msg = f"{CONFIG_FILE}: rule '{rule_id}': 'disable_allowed' must be true or false"
        raise ConfigError(msg)

    limit = _optional_int(section.get("limit"), f"rules.{rule_id}.limit")
    return RuleSettings(
        mode=validate_mode(rule_id, mode),
        disable_allowed=disable_allowed,
        ignore_until_epoch=_optional_int(
            section.get("ignore_until_epoch"), f"rules.{rule_id}.ignore_until_epoch"
        ),
        limit=limit if limit is not None else default.limit,
        schema_path=section.get("schema_path"),
        source_paths=_str_list(section.get("source_paths"), f"rules.{rule_id}.source_paths"),
        converter_paths=_str_list(
            section.get("converter_paths"), f"rules.{rule_id}.converter_paths"
        ),
    )


def _parse_rules(data: dict[str, Any]) -> dict[str, RuleSettings]:
    rules = default_rule_settings()
    section = _require_mapping(data.get("rules"), "rules")
    for rule_id, raw in section.items():
        if rule_id not in RULE_REGISTRY:
            known = ", ".join(RULE_ORDER)
            msg = f"{CONFIG_FILE}: unknown rule '{rule_id}', expected one of {known}"
            raise ConfigError(msg)
        rules[rule_id] = _parse_rule(rule_id, raw, rules[rule_id])
    return rules


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_config(data: Any) -> ToolConfig:
    """Build a :class:`ToolConfig` from already-loaded YAML data."""
    if data is None:
        return ToolConfig()
    if not isinstance(data, dict):
        msg = f"{CONFIG_FILE} must be a YAML mapping"
        raise ConfigError(msg)

    version = data.get("version", 1)
    if version not in SUPPORTED_CONFIG_VERSIONS:
        expected = sorted(SUPPORTED_CONFIG_VERSIONS)
        msg = f"{CONFIG_FILE}: unsupported version {version}, expected one of {expected}"
        raise ConfigError(msg)

    git_section = _require_mapping(data.get("git"), "git")
    return ToolConfig(
        graph=_parse_graph(data),
        trunk=str(git_section.get("trunk", "main")),
        rules=_parse_rules(data),
    )


def load_config(project_root: Path) -> ToolConfig:
    """Read the project's config file; a missing file yields the defaults."""
    path = config_path(project_root)
    if not path.is_file():
        logger.debug("No config at %s, using defaults", path)
        return ToolConfig()
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = f"{CONFIG_FILE}: invalid YAML: {exc}"
        raise ConfigError(msg) from exc
    return parse_config(data)


def override_rule(settings: RuleSettings, **overrides: Any) -> RuleSettings:
    """Apply command-line overrides; ``None`` values keep the configured setting."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(settings, **changes)
