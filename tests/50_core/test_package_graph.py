# tests/50_core/test_package_graph.py
"""Tests for PackageGraph ordering, cycles and dependents."""

from pathlib import Path

import pytest

import buildplan.errors as mod_errors
import buildplan.package_graph as mod_package_graph
from tests.utils import make_graph


def _names(nodes: list[mod_package_graph.PackageNode]) -> list[str]:
    return [n.name for n in nodes]


def test_dependencies_come_first() -> None:
    # --- setup ---
    graph = make_graph("c", {"a": [], "b": ["a"], "c": ["a", "b"]})

    # --- execute + verify ---
    assert _names(graph.ordered_packages()) == ["a", "b", "c"]


def test_every_package_after_its_dependencies() -> None:
    # --- setup ---
    edges = {
        "app": ["http", "log", "json"],
        "http": ["log", "bytes"],
        "json": ["bytes"],
        "log": [],
        "bytes": [],
    }
    graph = make_graph("app", edges)

    # --- execute ---
    order = _names(graph.ordered_packages())

    # --- verify ---
    assert sorted(order) == sorted(edges)
    for name, deps in edges.items():
        for dep in deps:
            assert order.index(dep) < order.index(name)


def test_cycle_is_one_contiguous_block() -> None:
    # --- setup ---
    graph = make_graph(
        "root",
        {"root": ["x"], "x": ["y"], "y": ["z", "base"], "z": ["x"], "base": []},
    )

    # --- execute ---
    components = graph.components()
    order = _names(graph.ordered_packages())

    # --- verify ---
    cycle = [c for c in components if len(c) > 1]
    assert len(cycle) == 1
    assert {n.name for n in cycle[0]} == {"x", "y", "z"}
    positions = sorted(order.index(n) for n in ("x", "y", "z"))
    assert positions == list(range(positions[0], positions[0] + 3))
    assert order[0] == "base"
    assert order[-1] == "root"


def test_unreachable_packages_are_dropped() -> None:
    # --- setup ---
    graph = make_graph("a", {"a": ["b"], "b": [], "stray": ["a"]})

    # --- execute + verify ---
    assert "stray" not in graph
    assert len(graph) == 2  # noqa: PLR2004


def test_missing_dependency_raises() -> None:
    # --- execute ---
    with pytest.raises(mod_errors.MissingPackageError) as exc_info:
        make_graph("a", {"a": ["ghost"]})

    # --- verify ---
    assert exc_info.value.package == "ghost"
    assert exc_info.value.required_by == "a"
    assert "`ghost`" in str(exc_info.value)


def test_missing_root_raises() -> None:
    # --- execute + verify ---
    with pytest.raises(mod_errors.MissingPackageError):
        mod_package_graph.PackageGraph("nope", {})


def test_conflicting_duplicate_nodes_rejected() -> None:
    # --- setup ---
    nodes = [
        mod_package_graph.PackageNode("a", Path("a")),
        mod_package_graph.PackageNode("a", Path("elsewhere")),
    ]

    # --- execute + verify ---
    with pytest.raises(ValueError, match="declared twice"):
        mod_package_graph.PackageGraph.from_nodes("a", nodes)


def test_dependents_of_is_transitive_and_excludes_self() -> None:
    # --- setup ---
    graph = make_graph("d", {"a": [], "b": ["a"], "c": ["b"], "d": ["c", "a"]})

    # --- execute + verify ---
    assert graph.dependents_of("a") == ["b", "c", "d"]
    assert graph.dependents_of("c") == ["d"]
    assert graph.dependents_of("d") == []


def test_dependents_of_inside_cycle_excludes_self() -> None:
    # --- setup ---
    graph = make_graph("r", {"r": ["p"], "p": ["q"], "q": ["p"]})

    # --- execute ---
    dependents = graph.dependents_of("p")

    # --- verify ---
    assert "p" not in dependents
    assert set(dependents) == {"q", "r"}


def test_position_follows_order() -> None:
    # --- setup ---
    graph = make_graph("c", {"a": [], "b": ["a"], "c": ["b"]})

    # --- execute + verify ---
    assert [graph.position(n) for n in ("a", "b", "c")] == [0, 1, 2]


def test_strongly_connected_components_generic() -> None:
    # --- setup ---
    edges = {1: [2], 2: [3], 3: [1, 4], 4: []}

    # --- execute ---
    components = mod_package_graph.strongly_connected_components(
        [1], lambda n: n, lambda n: edges[n]
    )

    # --- verify ---
    assert components[0] == [4]
    assert sorted(components[1]) == [1, 2, 3]
