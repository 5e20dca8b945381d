"""
Constraint graph construction for the layered layout.

Builds the networkx graph the ranker works on:
- one vertex per data node, sized from its measurement or the default size;
- one edge per visual edge between data nodes (weight 1, minlen 1);
- a minlen-2, weight-0 chain between representatives of adjacent occupied
  architecture layers;
- a consumption barrier vertex that every non-consumption node precedes
  (minlen 0) and every consumption node follows (minlen 1).

Synthetic vertices are keyed in their own namespace (``LayoutKey`` with a
non-DATA kind) so they can never collide with, or leak out as, real nodes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Sequence, Tuple

import networkx as nx

from ...config import LAYER_CHAIN_MINLEN, LayoutOptions
from ...core.types import ArchitectureLayer, VisualEdge, VisualNode
from ..classifier import compute_layer_map, group_by_layer


class VertexKind(Enum):
    DATA = "data"
    BARRIER = "barrier"
    DUMMY = "dummy"


class LayoutKey(NamedTuple):
    """Vertex key inside the layout graph."""
    kind: VertexKind
    name: str

    @classmethod
    def data(cls, node_id: str) -> "LayoutKey":
        return cls(VertexKind.DATA, node_id)

    @property
    def is_data(self) -> bool:
        return self.kind == VertexKind.DATA


BARRIER_KEY = LayoutKey(VertexKind.BARRIER, "consumption")

REAL_EDGE_WEIGHT = 1
REAL_EDGE_MINLEN = 1


@dataclass
class ConstraintGraph:
    """The layout graph plus the bookkeeping the later phases need."""
    graph: nx.DiGraph
    order: Dict[LayoutKey, int]
    layers: Dict[ArchitectureLayer, List[str]] = field(default_factory=dict)

    @property
    def has_barrier(self) -> bool:
        return BARRIER_KEY in self.graph


def node_size(node: VisualNode, options: LayoutOptions) -> Tuple[float, float]:
    """Measured size of a node, or the configured default."""
    if node.measured is not None and node.measured.width > 0 and node.measured.height > 0:
        return node.measured.width, node.measured.height
    return options.default_width, options.default_height


def _add_edge(graph: nx.DiGraph, u: LayoutKey, v: LayoutKey, minlen: int, weight: int) -> None:
    """Add an edge, merging with an existing one (max minlen, summed weight)."""
    if graph.has_edge(u, v):
        data = graph.edges[u, v]
        data["minlen"] = max(data["minlen"], minlen)
        data["weight"] += weight
    else:
        graph.add_edge(u, v, minlen=minlen, weight=weight)


def build_constraint_graph(
    data_nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    options: LayoutOptions,
) -> ConstraintGraph:
    """Build the constraint graph for a set of data nodes."""
    graph = nx.DiGraph()
    order: Dict[LayoutKey, int] = {}

    for node in data_nodes:
        key = LayoutKey.data(node.id)
        width, height = node_size(node, options)
        graph.add_node(key, width=width, height=height)
        order[key] = len(order)

    for edge in edges:
        u, v = LayoutKey.data(edge.source), LayoutKey.data(edge.target)
        if u not in graph or v not in graph or u == v:
            continue
        _add_edge(graph, u, v, REAL_EDGE_MINLEN, REAL_EDGE_WEIGHT)

    layer_map = compute_layer_map(data_nodes, edges)
    layers = group_by_layer((n.id for n in data_nodes), layer_map)
    occupied = list(layers)

    # Chain representatives of adjacent occupied layers
    for earlier, later in zip(occupied, occupied[1:]):
        u = LayoutKey.data(layers[earlier][0])
        v = LayoutKey.data(layers[later][0])
        if not graph.has_edge(u, v):
            graph.add_edge(u, v, minlen=LAYER_CHAIN_MINLEN, weight=0)

    consumption = layers.get(ArchitectureLayer.CONSUMPTION, [])
    others = [layer for layer in occupied if layer != ArchitectureLayer.CONSUMPTION]
    if consumption and others:
        graph.add_node(BARRIER_KEY, width=1.0, height=1.0)
        order[BARRIER_KEY] = len(order)
        for layer in others:
            for node_id in layers[layer]:
                _add_edge(graph, LayoutKey.data(node_id), BARRIER_KEY, 0, 0)
        for node_id in consumption:
            _add_edge(graph, BARRIER_KEY, LayoutKey.data(node_id), 1, 0)

    return ConstraintGraph(graph=graph, order=order, layers=layers)
