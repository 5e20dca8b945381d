"""
Rank assignment.

Phases:
  1. Cycle removal (greedy feedback-arc-set ordering, ties broken by input
     order so the result is deterministic).
  2. Longest-path ranking honoring each edge's ``minlen``.
  3. Tightening: each vertex slides inside its feasible interval toward the
     side with more edge weight. Weight-0 constraint edges bound the
     interval but never pull.
"""

import logging
from typing import Dict, List, Set, Tuple

import networkx as nx

from ...core.exceptions import LayoutError
from .constraints import LayoutKey

logger = logging.getLogger(__name__)

MAX_TIGHTEN_SWEEPS = 64


def greedy_fas_ordering(graph: nx.DiGraph, order: Dict[LayoutKey, int]) -> List[LayoutKey]:
    """
    Vertex ordering that keeps most edges pointing forward.

    Eades-Lin-Smyth: peel sinks to the right, sources to the left, and
    otherwise move the vertex with the largest (out - in) degree surplus left.
    """
    rank_of = order.get
    active: List[LayoutKey] = sorted(graph.nodes, key=lambda k: rank_of(k, 0))
    active_set: Set[LayoutKey] = set(active)

    out_deg = {n: 0 for n in active}
    in_deg = {n: 0 for n in active}
    for u, v in graph.edges():
        if u == v:
            continue
        out_deg[u] += 1
        in_deg[v] += 1

    left: List[LayoutKey] = []
    right: List[LayoutKey] = []

    def remove(vertex: LayoutKey) -> None:
        active_set.discard(vertex)
        for succ in graph.successors(vertex):
            if succ in active_set and succ != vertex:
                in_deg[succ] -= 1
        for pred in graph.predecessors(vertex):
            if pred in active_set and pred != vertex:
                out_deg[pred] -= 1

    while active_set:
        changed = True
        while changed:
            changed = False
            for vertex in [n for n in active if n in active_set and out_deg[n] == 0]:
                remove(vertex)
                right.append(vertex)
                changed = True
            for vertex in [n for n in active if n in active_set and in_deg[n] == 0]:
                remove(vertex)
                left.append(vertex)
                changed = True

        if active_set:
            candidates = [n for n in active if n in active_set]
            best = max(candidates, key=lambda n: (out_deg[n] - in_deg[n], -rank_of(n, 0)))
            remove(best)
            left.append(best)

    right.reverse()
    return left + right


def make_acyclic(graph: nx.DiGraph, order: Dict[LayoutKey, int]) -> Tuple[nx.DiGraph, Set[Tuple[LayoutKey, LayoutKey]]]:
    """
    Copy of ``graph`` with back edges reversed and self loops dropped.

    Returns the DAG and the set of original (u, v) pairs that were reversed.
    """
    if nx.is_directed_acyclic_graph(graph):
        return graph.copy(), set()

    position = {vertex: i for i, vertex in enumerate(greedy_fas_ordering(graph, order))}
    dag = nx.DiGraph()
    dag.add_nodes_from(graph.nodes(data=True))
    reversed_edges: Set[Tuple[LayoutKey, LayoutKey]] = set()

    for u, v, data in graph.edges(data=True):
        if u == v:
            continue
        if position[u] > position[v]:
            reversed_edges.add((u, v))
            u, v = v, u
        if dag.has_edge(u, v):
            existing = dag.edges[u, v]
            existing["minlen"] = max(existing["minlen"], data["minlen"])
            existing["weight"] += data["weight"]
        else:
            dag.add_edge(u, v, minlen=data["minlen"], weight=data["weight"])

    logger.debug(f"Reversed {len(reversed_edges)} edges to break cycles")
    return dag, reversed_edges


def longest_path_ranks(dag: nx.DiGraph, order: Dict[LayoutKey, int]) -> Dict[LayoutKey, int]:
    """Rank every vertex as early as its predecessors and minlens allow."""
    try:
        topo = list(nx.lexicographical_topological_sort(dag, key=lambda k: order.get(k, 0)))
    except nx.NetworkXUnfeasible as e:
        raise LayoutError(f"Layout graph still has a cycle: {e}") from e

    ranks: Dict[LayoutKey, int] = {}
    for vertex in topo:
        rank = 0
        for pred in dag.predecessors(vertex):
            rank = max(rank, ranks[pred] + dag.edges[pred, vertex]["minlen"])
        ranks[vertex] = rank
    return ranks


def tighten_ranks(dag: nx.DiGraph, ranks: Dict[LayoutKey, int], order: Dict[LayoutKey, int]) -> Dict[LayoutKey, int]:
    """
    Reduce total weighted edge length by moving vertices within their slack.

    A vertex whose outgoing weight exceeds its incoming weight moves as late
    as its successors allow; the reverse moves it as early as its
    predecessors allow. Each move strictly lowers the total, so the loop
    settles.
    """
    ranks = dict(ranks)
    vertices = sorted(dag.nodes, key=lambda k: order.get(k, 0))

    for _sweep in range(MAX_TIGHTEN_SWEEPS):
        moved = False
        for vertex in vertices:
            w_in = sum(d["weight"] for _, _, d in dag.in_edges(vertex, data=True))
            w_out = sum(d["weight"] for _, _, d in dag.out_edges(vertex, data=True))
            if w_in == w_out:
                continue

            if w_out > w_in:
                successors = [
                    ranks[s] - dag.edges[vertex, s]["minlen"] for s in dag.successors(vertex)
                ]
                target = min(successors) if successors else ranks[vertex]
            else:
                predecessors = [
                    ranks[p] + dag.edges[p, vertex]["minlen"] for p in dag.predecessors(vertex)
                ]
                target = max(predecessors) if predecessors else ranks[vertex]

            if target != ranks[vertex]:
                ranks[vertex] = target
                moved = True
        if not moved:
            break

    return ranks


def normalize_ranks(ranks: Dict[LayoutKey, int]) -> Dict[LayoutKey, int]:
    if not ranks:
        return {}
    low = min(ranks.values())
    return {vertex: rank - low for vertex, rank in ranks.items()}


def assign_ranks(graph: nx.DiGraph, order: Dict[LayoutKey, int]) -> Tuple[nx.DiGraph, Dict[LayoutKey, int]]:
    """Run cycle removal and ranking. Returns the DAG used and the ranks."""
    dag, _ = make_acyclic(graph, order)
    ranks = longest_path_ranks(dag, order)
    ranks = tighten_ranks(dag, ranks, order)
    return dag, normalize_ranks(ranks)
