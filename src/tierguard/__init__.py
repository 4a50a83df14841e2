"""Tierguard: layered dependency graph governance and diff-scoped code rules."""

__version__ = "0.4.0"
