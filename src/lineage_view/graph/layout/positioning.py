"""
Coordinate assignment.

Works in an abstract frame where ranks run along the primary axis and the
order inside a rank runs along the cross axis, then maps the frame onto
x/y according to ``rankdir``. All coordinates produced here are vertex
centers.
"""

from typing import Dict, List, Tuple

import networkx as nx

from ...config import LayoutOptions
from .constraints import LayoutKey

ALIGNMENT_ROUNDS = 8

# Separation between a dummy vertex and its neighbours, relative to node_separation
DUMMY_SEPARATION_FACTOR = 1 / 3


def _extents(graph: nx.DiGraph, vertex: LayoutKey, horizontal: bool) -> Tuple[float, float]:
    """(primary, cross) extent of a vertex for the given orientation."""
    width = graph.nodes[vertex]["width"]
    height = graph.nodes[vertex]["height"]
    return (width, height) if horizontal else (height, width)


def _separation(a: LayoutKey, b: LayoutKey, options: LayoutOptions) -> float:
    if a.is_data and b.is_data:
        return options.node_separation
    return options.node_separation * DUMMY_SEPARATION_FACTOR


def _isotonic_fit(desired: List[float], offsets: List[float]) -> List[float]:
    """
    Closest placement (least squares) to ``desired`` that keeps every vertex
    at least its separation offset after the previous one.

    Pool-adjacent-violators on ``desired - offsets``.
    """
    shifted = [d - o for d, o in zip(desired, offsets)]
    blocks: List[List[float]] = []  # [mean, count]
    for value in shifted:
        blocks.append([value, 1.0])
        while len(blocks) > 1 and blocks[-2][0] > blocks[-1][0]:
            mean_b, count_b = blocks.pop()
            mean_a, count_a = blocks.pop()
            total = count_a + count_b
            blocks.append([(mean_a * count_a + mean_b * count_b) / total, total])

    fitted: List[float] = []
    for mean, count in blocks:
        fitted.extend([mean] * int(count))
    return [f + o for f, o in zip(fitted, offsets)]


def _cross_offsets(
    layer: List[LayoutKey],
    cross: Dict[LayoutKey, float],
    options: LayoutOptions,
) -> List[float]:
    offsets = [0.0]
    for prev, vertex in zip(layer, layer[1:]):
        gap = (cross[prev] + cross[vertex]) / 2 + _separation(prev, vertex, options)
        offsets.append(offsets[-1] + gap)
    return offsets


def _align(
    layers: List[List[LayoutKey]],
    graph: nx.DiGraph,
    centers: Dict[LayoutKey, float],
    cross: Dict[LayoutKey, float],
    options: LayoutOptions,
    downward: bool,
) -> None:
    indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
    for idx in indices:
        layer = layers[idx]
        if not layer:
            continue
        desired = []
        for vertex in layer:
            neighbours = list(graph.predecessors(vertex) if downward else graph.successors(vertex))
            if neighbours:
                desired.append(sum(centers[n] for n in neighbours) / len(neighbours))
            else:
                desired.append(centers[vertex])
        placed = _isotonic_fit(desired, _cross_offsets(layer, cross, options))
        for vertex, value in zip(layer, placed):
            centers[vertex] = value


def assign_coordinates(
    layers: List[List[LayoutKey]],
    graph: nx.DiGraph,
    options: LayoutOptions,
) -> Dict[LayoutKey, Tuple[float, float]]:
    """Center coordinates (x, y) for every vertex in ``layers``."""
    horizontal = options.rankdir in ("LR", "RL")
    primary: Dict[LayoutKey, float] = {}
    cross: Dict[LayoutKey, float] = {}
    for layer in layers:
        for vertex in layer:
            primary[vertex], cross[vertex] = _extents(graph, vertex, horizontal)

    # Primary axis: ranks stacked with rank_separation between their extents
    rank_centers: List[float] = []
    cursor = 0.0
    for idx, layer in enumerate(layers):
        extent = max((primary[v] for v in layer), default=0.0)
        if idx > 0:
            cursor += options.rank_separation
        rank_centers.append(cursor + extent / 2)
        cursor += extent

    # Cross axis: packed placement, then alternate alignment sweeps
    centers: Dict[LayoutKey, float] = {}
    for layer in layers:
        offsets = _cross_offsets(layer, cross, options)
        middle = offsets[-1] / 2 if layer else 0.0
        for vertex, offset in zip(layer, offsets):
            centers[vertex] = offset - middle

    for round_idx in range(ALIGNMENT_ROUNDS):
        _align(layers, graph, centers, cross, options, downward=(round_idx % 2 == 0))

    if centers:
        low = min(centers[v] - cross[v] / 2 for v in centers)
        for vertex in centers:
            centers[vertex] -= low

    total_primary = cursor
    coordinates: Dict[LayoutKey, Tuple[float, float]] = {}
    for idx, layer in enumerate(layers):
        for vertex in layer:
            along = rank_centers[idx]
            if options.rankdir in ("RL", "BT"):
                along = total_primary - along
            across = centers[vertex]
            coordinates[vertex] = (along, across) if horizontal else (across, along)
    return coordinates
