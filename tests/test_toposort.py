from __future__ import annotations

from conftest import make_plugin
from lmsched.core.graph import PhaseGraph, build_phase_graph
from lmsched.core.metadata import Phase
from lmsched.core.registry import PluginRegistry
from lmsched.core.toposort import break_cycles, latest_cycle_edge, topological_order


def _graph(registry: PluginRegistry, names: list[str]) -> PhaseGraph:
    plugins = [plugin for plugin in registry.all() if plugin.name in names]
    enabled = {plugin.name: plugin for plugin in plugins}
    return build_phase_graph(plugins, enabled, registry)


def test_ties_follow_registration_order() -> None:
    registry = PluginRegistry(
        [make_plugin("X"), make_plugin("Y"), make_plugin("Z", run_before=["X"])]
    )
    graph = _graph(registry, ["X", "Y", "Z"])

    result = topological_order(graph, registry.ranks())

    assert result.order == ("Y", "Z", "X")
    assert result.acyclic


def test_run_before_and_run_after_become_forward_edges() -> None:
    registry = PluginRegistry(
        [
            make_plugin("a", run_after=["b"]),
            make_plugin("b", run_before=["c"]),
            make_plugin("c", run_after=["b"]),
        ]
    )
    graph = _graph(registry, ["a", "b", "c"])

    assert graph.nodes == ("a", "b", "c")
    assert graph.edges == (("b", "a"), ("b", "c"))
    assert topological_order(graph, registry.ranks()).order == ("b", "a", "c")


def test_constraints_outside_the_phase_are_ignored() -> None:
    registry = PluginRegistry(
        [
            make_plugin("a", run_after=["later", "disabled", "ghost"]),
            make_plugin("later", Phase.POST_PROCESSING),
            make_plugin("disabled"),
        ]
    )
    graph = _graph(registry, ["a"])

    assert graph.edges == ()
    assert topological_order(graph, registry.ranks()).order == ("a",)


def test_cycle_reports_every_unresolved_node() -> None:
    registry = PluginRegistry(
        [
            make_plugin("A", run_after=["B"]),
            make_plugin("B", run_after=["A"]),
            make_plugin("C", run_after=["B"]),
            make_plugin("D"),
        ]
    )
    graph = _graph(registry, ["A", "B", "C", "D"])

    result = topological_order(graph, registry.ranks())

    assert result.order == ("D",)
    assert result.cycle == ("A", "B", "C")
    assert not result.acyclic


def test_break_cycles_drops_most_recent_cycle_edge() -> None:
    registry = PluginRegistry(
        [
            make_plugin("A", run_after=["B"]),
            make_plugin("B", run_after=["A"]),
            make_plugin("C", run_after=["B"]),
        ]
    )
    graph = _graph(registry, ["A", "B", "C"])

    assert latest_cycle_edge(graph, ("A", "B", "C")) == ("A", "B")
    result, dropped = break_cycles(graph, registry.ranks())

    assert dropped == [("A", "B")]
    assert result.order == ("B", "A", "C")
    assert result.acyclic


def test_break_cycles_handles_nested_cycles() -> None:
    registry = PluginRegistry(
        [
            make_plugin("A", run_before=["B"]),
            make_plugin("B", run_before=["C"]),
            make_plugin("C", run_before=["A", "B"]),
        ]
    )
    graph = _graph(registry, ["A", "B", "C"])

    result, dropped = break_cycles(graph, registry.ranks())

    assert dropped == [("C", "B"), ("C", "A")]
    assert result.order == ("A", "B", "C")


def test_sort_is_deterministic() -> None:
    registry = PluginRegistry(
        [make_plugin(name, run_after=["m"] if name != "m" else []) for name in "qzmab"]
    )
    graph = _graph(registry, list("qzmab"))

    first = topological_order(graph, registry.ranks())
    second = topological_order(graph, registry.ranks())

    assert first == second
    assert first.order == ("m", "q", "z", "a", "b")
