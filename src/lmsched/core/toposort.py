from __future__ import annotations

import heapq
from collections import deque
from dataclasses import dataclass, field
from typing import Mapping

from lmsched.core.graph import Edge, PhaseGraph, edges_within


@dataclass(frozen=True)
class SortResult:
    order: tuple[str, ...]
    cycle: tuple[str, ...] = field(default=())

    @property
    def acyclic(self) -> bool:
        return not self.cycle


def topological_order(graph: PhaseGraph, rank: Mapping[str, int]) -> SortResult:
    """Kahn's algorithm; among ready nodes the earliest-registered goes first.

    When the ready set drains before every node is emitted, all residual
    nodes are reported as the unresolved cycle, in registry order.
    """
    fallback = len(rank)

    def key(node: str) -> tuple[int, str]:
        return (rank.get(node, fallback), node)

    successors = graph.successors()
    in_degree = {node: 0 for node in graph.nodes}
    for _before, after in graph.edges:
        in_degree[after] += 1

    ready = [key(node) for node in graph.nodes if in_degree[node] == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        _rank, node = heapq.heappop(ready)
        order.append(node)
        for successor in successors[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(ready, key(successor))

    if len(order) == len(graph.nodes):
        return SortResult(order=tuple(order))
    emitted = set(order)
    residual = sorted((node for node in graph.nodes if node not in emitted), key=key)
    return SortResult(order=tuple(order), cycle=tuple(residual))


def break_cycles(graph: PhaseGraph, rank: Mapping[str, int]) -> tuple[SortResult, list[Edge]]:
    """Drop the most recently added cycle edge until the phase sorts cleanly."""
    dropped: list[Edge] = []
    result = topological_order(graph, rank)
    while result.cycle:
        edge = latest_cycle_edge(graph, result.cycle)
        graph = graph.without(edge)
        dropped.append(edge)
        result = topological_order(graph, rank)
    return result, dropped


def latest_cycle_edge(graph: PhaseGraph, residual: tuple[str, ...]) -> Edge:
    candidates = edges_within(graph, residual)
    adjacency: dict[str, list[str]] = {node: [] for node in residual}
    for before, after in candidates:
        adjacency[before].append(after)
    for before, after in reversed(candidates):
        if _reachable(adjacency, after, before):
            return before, after
    # Residual nodes always contain a cycle; this only guards malformed input.
    return candidates[-1]


def _reachable(adjacency: Mapping[str, list[str]], start: str, target: str) -> bool:
    if start == target:
        return True
    seen = {start}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for successor in adjacency.get(node, ()):
            if successor == target:
                return True
            if successor not in seen:
                seen.add(successor)
                queue.append(successor)
    return False
