"""
Ordering within ranks.

Only real edges take part here: weight-0 constraint edges and the
consumption barrier have done their job during ranking and are dropped.
Edges spanning more than one rank are split into chains of dummy vertices
so every remaining edge joins adjacent ranks, then a barycenter heuristic
sweeps down and up the ranks, keeping the ordering with the fewest
crossings.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

import networkx as nx

from .constraints import LayoutKey, VertexKind

MAX_SWEEPS = 24
MAX_STALE_SWEEPS = 4


@dataclass
class RankedGraph:
    """Proper layered graph: every edge joins rank r to rank r + 1."""
    graph: nx.DiGraph
    ranks: Dict[LayoutKey, int]
    rank_count: int


def build_ranked_graph(
    dag: nx.DiGraph,
    ranks: Dict[LayoutKey, int],
) -> RankedGraph:
    """Keep data vertices and weighted edges, splitting long edges with dummies."""
    graph = nx.DiGraph()
    layered: Dict[LayoutKey, int] = {}

    for vertex, data in dag.nodes(data=True):
        if vertex.is_data:
            graph.add_node(vertex, width=data["width"], height=data["height"])
            layered[vertex] = ranks[vertex]

    dummy_count = 0
    for u, v, data in dag.edges(data=True):
        if data["weight"] <= 0 or not (u.is_data and v.is_data):
            continue

        span = ranks[v] - ranks[u]
        if span <= 1:
            graph.add_edge(u, v, weight=data["weight"])
            continue

        previous = u
        for step in range(1, span):
            dummy = LayoutKey(VertexKind.DUMMY, f"{dummy_count}")
            dummy_count += 1
            graph.add_node(dummy, width=0.0, height=0.0)
            layered[dummy] = ranks[u] + step
            graph.add_edge(previous, dummy, weight=data["weight"])
            previous = dummy
        graph.add_edge(previous, v, weight=data["weight"])

    rank_count = (max(layered.values()) + 1) if layered else 0
    return RankedGraph(graph=graph, ranks=layered, rank_count=rank_count)


def initial_order(ranked: RankedGraph, order: Dict[LayoutKey, int]) -> List[List[LayoutKey]]:
    """
    Depth-first initial ordering.

    Vertices are visited from the lowest rank in input order; successors
    are visited in insertion order, so related vertices start out together.
    """
    layers: List[List[LayoutKey]] = [[] for _ in range(ranked.rank_count)]
    visited = set()

    def input_index(vertex: LayoutKey) -> Tuple[int, int]:
        return ranked.ranks[vertex], order.get(vertex, len(order))

    for start in sorted(ranked.graph.nodes, key=input_index):
        if start in visited:
            continue
        stack = [start]
        while stack:
            vertex = stack.pop()
            if vertex in visited:
                continue
            visited.add(vertex)
            layers[ranked.ranks[vertex]].append(vertex)
            stack.extend(reversed(list(ranked.graph.successors(vertex))))

    return layers


def count_crossings(layers: List[List[LayoutKey]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive ranks."""
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        lower_pos = {vertex: i for i, vertex in enumerate(lower)}
        segments: List[Tuple[int, int]] = []
        for upper_pos, vertex in enumerate(upper):
            for succ in graph.successors(vertex):
                if succ in lower_pos:
                    segments.append((upper_pos, lower_pos[succ]))
        segments.sort()
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                if segments[i][0] < segments[j][0] and segments[i][1] > segments[j][1]:
                    total += 1
    return total


def _barycenter(
    vertex: LayoutKey,
    neighbours: List[LayoutKey],
    positions: Dict[LayoutKey, int],
    fallback: float,
) -> float:
    placed = [positions[n] for n in neighbours if n in positions]
    if not placed:
        return fallback
    return sum(placed) / len(placed)


def _sweep(layers: List[List[LayoutKey]], graph: nx.DiGraph, downward: bool) -> None:
    indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
    for idx in indices:
        fixed = layers[idx - 1] if downward else layers[idx + 1]
        positions = {vertex: i for i, vertex in enumerate(fixed)}
        current = layers[idx]
        keyed = []
        for i, vertex in enumerate(current):
            neighbours = list(graph.predecessors(vertex) if downward else graph.successors(vertex))
            keyed.append((_barycenter(vertex, neighbours, positions, float(i)), i, vertex))
        keyed.sort(key=lambda item: (item[0], item[1]))
        layers[idx] = [vertex for _, _, vertex in keyed]


def minimize_crossings(ranked: RankedGraph, order: Dict[LayoutKey, int]) -> List[List[LayoutKey]]:
    """Order every rank to reduce crossings; returns one vertex list per rank."""
    layers = initial_order(ranked, order)
    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(layers, ranked.graph)
    stale = 0

    for sweep in range(MAX_SWEEPS):
        if best_crossings == 0 or stale >= MAX_STALE_SWEEPS:
            break
        _sweep(layers, ranked.graph, downward=(sweep % 2 == 0))
        crossings = count_crossings(layers, ranked.graph)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings
            stale = 0
        else:
            stale += 1

    return best
