# tierguard:domain=analysis
"""Prisma schema reader: model names and their (camelCased) field names."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_PERSISTENCE_MODEL_RE = re.compile(r"^model\s+(\w+Dbo)\s*\{")
_ANY_MODEL_RE = re.compile(r"^model\s+(\w+)\s*\{", re.MULTILINE)
_FIELD_RE = re.compile(r"^(\w+)\s")
_SNAKE_RE = re.compile(r"_([a-z])")


def snake_to_camel(name: str) -> str:
    """``version_number`` -> ``versionNumber``; names without underscores pass through."""
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), name)


def _read(schema_path: Path) -> str | None:
    if not schema_path.is_file():
        logger.debug("Schema not found: %s", schema_path)
        return None
    try:
        return schema_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read schema %s: %s", schema_path, exc)
        return None


def parse_persistence_models(text: str) -> dict[str, frozenset[str]]:
    """Map every ``XxxDbo`` model to its field names in camelCase.

    Blank lines, ``//`` comments and ``@@`` block attributes are skipped;
    a field's name is the first word on its line.
    """
    models: dict[str, frozenset[str]] = {}
    current: str | None = None
    fields: set[str] = set()

    for raw in text.split("\n"):
        line = raw.strip()
        match = _PERSISTENCE_MODEL_RE.match(line)
        if match:
            current = match.group(1)
            fields = set()
            continue
        if current is None:
            continue
        if line == "}":
            models[current] = frozenset(fields)
            current = None
            continue
        if not line or line.startswith(("//", "@@")):
            continue
        field_match = _FIELD_RE.match(line)
        if field_match:
            fields.add(snake_to_camel(field_match.group(1)))

    return models


def parse_model_names(text: str) -> frozenset[str]:
    """Every ``model Name {`` declared in the schema, whatever its suffix."""
    return frozenset(_ANY_MODEL_RE.findall(text))


def load_persistence_models(schema_path: Path) -> dict[str, frozenset[str]]:
    text = _read(schema_path)
    return parse_persistence_models(text) if text is not None else {}


def load_model_names(schema_path: Path) -> frozenset[str]:
    text = _read(schema_path)
    return parse_model_names(text) if text is not None else frozenset()
