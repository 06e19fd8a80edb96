"""Tests for target registration and graph validation."""

from __future__ import annotations

import pytest

from betterbuild.dag import (
    CyclicDependency,
    DuplicateTarget,
    GraphError,
    UnknownTargetReference,
    build_graph,
)
from betterbuild.dsl import target


def test_duplicate_names_are_rejected():
    with pytest.raises(DuplicateTarget) as exc:
        build_graph([target("A"), target("B"), target("A")])
    assert exc.value.names == ["A"]
    assert isinstance(exc.value, GraphError)


@pytest.mark.parametrize("relation", ["depends_on", "before", "after"])
def test_unknown_reference_is_rejected(relation):
    with pytest.raises(UnknownTargetReference) as exc:
        build_graph([target("A", **{relation: ["Missing"]})])
    assert exc.value.target == "A"
    assert exc.value.reference == "Missing"
    assert exc.value.relation == relation


@pytest.mark.parametrize("relation", ["depends_on", "before", "after"])
def test_self_reference_is_a_cycle(relation):
    with pytest.raises(CyclicDependency) as exc:
        build_graph([target("A", **{relation: ["A"]})])
    assert exc.value.cycle == ["A", "A"]


def test_dependency_cycle_reports_members():
    targets = [
        target("A", depends_on=["C"]),
        target("B", depends_on=["A"]),
        target("C", depends_on=["B"]),
        target("D"),
    ]
    with pytest.raises(CyclicDependency) as exc:
        build_graph(targets)
    cycle = exc.value.cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"A", "B", "C"}
    assert "D" not in cycle
    assert str(exc.value).endswith(" -> ".join(cycle))


def test_soft_cycles_are_not_graph_errors():
    # only a problem once both ends are scheduled together
    graph = build_graph([target("A", before=["B"]), target("B", before=["A"])])
    assert graph.ordering == {("A", "B"), ("B", "A")}


def test_forward_and_reverse_lookup():
    graph = build_graph([
        target("Clean"),
        target("Restore", after=["Clean"]),
        target("Compile", depends_on=["Clean", "Restore"]),
        target("Test", depends_on=["Compile"]),
    ])
    assert graph.dependencies["Compile"] == ("Clean", "Restore")
    assert graph.dependents["Clean"] == ("Compile",)
    assert graph.transitive_dependents("Clean") == ["Compile", "Test"]
    assert graph.reachable(["Test"]) == {"Test", "Compile", "Clean", "Restore"}
    assert ("Clean", "Restore") in graph.ordering


def test_graph_is_read_only():
    graph = build_graph([target("A")])
    with pytest.raises(TypeError):
        graph.targets["B"] = target("B")  # type: ignore[index]
    with pytest.raises(AttributeError):
        graph.ordering = frozenset()  # type: ignore[misc]


def test_deep_chains_do_not_exhaust_the_stack():
    names = [f"T{i}" for i in range(3000)]
    chain = [target(names[0])] + [target(n, depends_on=[p]) for p, n in zip(names, names[1:])]
    graph = build_graph(chain)
    assert graph.dependencies["T2999"] == ("T2998",)

    chain[0] = target(names[0], depends_on=[names[-1]])
    with pytest.raises(CyclicDependency) as exc:
        build_graph(chain)
    assert len(exc.value.cycle) == 3001
