# tierguard:domain=graph
"""Tests for tierguard.graph.redundant: skip-level dependency detection."""

from __future__ import annotations

from tierguard.graph.redundant import (
    RedundantDependency,
    find_all_redundant,
    find_redundant_deps,
    transitive_closure,
)


def test_transitive_closure() -> None:
    graph = {"a": ["b"], "b": ["c"], "c": []}
    assert transitive_closure("a", graph) == {"b", "c"}
    assert transitive_closure("c", graph) == set()


def test_closure_terminates_on_cycle() -> None:
    assert transitive_closure("a", {"a": ["b"], "b": ["a"]}) == {"a", "b"}


def test_direct_edge_implied_by_sibling() -> None:
    graph = {"A": ["B", "C"], "B": ["C"], "C": []}
    assert find_redundant_deps("A", graph) == [
        RedundantDependency(project="A", redundant_dep="C", brought_in_by="B")
    ]


def test_chain_without_shortcut_is_clean() -> None:
    graph = {"A": ["B"], "B": ["C"], "C": []}
    assert find_all_redundant(graph) == []


def test_deep_shortcut_reported_once() -> None:
    graph = {"app": ["api", "ui", "core"], "api": ["core"], "ui": ["core"], "core": []}
    assert find_all_redundant(graph) == [
        RedundantDependency(project="app", redundant_dep="core", brought_in_by="api")
    ]
