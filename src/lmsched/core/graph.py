from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from lmsched.core.metadata import PluginMetadata
from lmsched.core.registry import PluginRegistry

logger = logging.getLogger(__name__)

Edge = tuple[str, str]


@dataclass(frozen=True)
class PhaseGraph:
    """Must-run-before edges between the enabled plugins of one phase.

    ``nodes`` follow registry order and ``edges`` keep insertion order; an
    edge ``(a, b)`` means ``a`` executes before ``b``.
    """

    nodes: tuple[str, ...]
    edges: tuple[Edge, ...] = field(default=())

    def successors(self) -> dict[str, list[str]]:
        adjacency: dict[str, list[str]] = {node: [] for node in self.nodes}
        for before, after in self.edges:
            adjacency[before].append(after)
        return adjacency

    def without(self, edge: Edge) -> "PhaseGraph":
        return PhaseGraph(nodes=self.nodes, edges=tuple(item for item in self.edges if item != edge))


def build_phase_graph(
    plugins: Sequence[PluginMetadata],
    enabled: Mapping[str, PluginMetadata],
    registry: PluginRegistry,
) -> PhaseGraph:
    """Normalize run_before/run_after constraints of one phase into forward edges.

    Constraints that name a plugin outside this phase's enabled set cannot be
    enforced here and are dropped with a debug note.
    """
    nodes = tuple(plugin.name for plugin in plugins)
    members = set(nodes)
    edges: dict[Edge, None] = {}

    for plugin in plugins:
        for target in plugin.run_before:
            if target in members:
                edges.setdefault((plugin.name, target), None)
            else:
                _note_dropped(plugin, "run_before", target, enabled, registry)
        for source in plugin.run_after:
            if source in members:
                edges.setdefault((source, plugin.name), None)
            else:
                _note_dropped(plugin, "run_after", source, enabled, registry)

    return PhaseGraph(nodes=nodes, edges=tuple(edges))


def edges_within(graph: PhaseGraph, members: Iterable[str]) -> list[Edge]:
    subset = set(members)
    return [edge for edge in graph.edges if edge[0] in subset and edge[1] in subset]


def _note_dropped(
    plugin: PluginMetadata,
    constraint: str,
    other: str,
    enabled: Mapping[str, PluginMetadata],
    registry: PluginRegistry,
) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if other not in registry:
        reason = "not registered"
    elif other not in enabled:
        reason = "not enabled"
    else:
        reason = f"in phase {enabled[other].phase.label}"
    logger.debug(
        "Ignoring %s constraint %s -> %s (%s)",
        constraint,
        plugin.name,
        other,
        reason,
    )
