"""
Layout Engine.

Positions data nodes with a layered (ranked) graph drawing, biased so the
architecture layers read left to right and every consumption node sits
after everything else. Overlay nodes (zone backgrounds) are passed through
untouched and never take part.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

from ...config import LayoutOptions
from ...core.exceptions import LayoutError
from ...core.types import VisualEdge, VisualNode
from .constraints import LayoutKey, build_constraint_graph, node_size
from .ordering import build_ranked_graph, minimize_crossings
from .positioning import assign_coordinates
from .ranking import assign_ranks

logger = logging.getLogger(__name__)


def compute_centers(
    data_nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    options: LayoutOptions,
) -> Dict[str, Tuple[float, float]]:
    """Center coordinates for each data node id."""
    constraints = build_constraint_graph(data_nodes, edges, options)
    try:
        dag, ranks = assign_ranks(constraints.graph, constraints.order)
        ranked = build_ranked_graph(dag, ranks)
        layers = minimize_crossings(ranked, constraints.order)
        coordinates = assign_coordinates(layers, ranked.graph, options)
    except (KeyError, nx.NetworkXException) as e:
        raise LayoutError(f"Layered layout failed: {e}") from e

    centers: Dict[str, Tuple[float, float]] = {}
    for key, point in coordinates.items():
        if key.is_data:
            centers[key.name] = point
    return centers


def layout_nodes(
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    options: Optional[LayoutOptions] = None,
) -> List[VisualNode]:
    """
    Return ``nodes`` with positions filled in.

    Overlay nodes come first, unchanged, followed by the positioned data
    nodes in input order. Identical inputs always give identical output.

    Raises:
        LayoutError: the layered layout could not be computed.
    """
    options = options or LayoutOptions()
    data_nodes = [n for n in nodes if not n.overlay]
    overlay_nodes = [n for n in nodes if n.overlay]

    if not data_nodes:
        return list(nodes)

    centers = compute_centers(data_nodes, edges, options)

    positioned: List[VisualNode] = []
    for node in data_nodes:
        center = centers.get(node.id)
        if center is None:
            logger.debug(f"Node {node.id} missing from layout output, keeping prior position")
            positioned.append(node)
            continue
        width, height = node_size(node, options)
        positioned.append(node.with_position(center[0] - width / 2, center[1] - height / 2))

    logger.debug(f"Laid out {len(positioned)} nodes ({options.rankdir})")
    return overlay_nodes + positioned


def grid_layout(
    nodes: Sequence[VisualNode],
    options: Optional[LayoutOptions] = None,
) -> List[VisualNode]:
    """Fallback placement: data nodes on a square grid in input order."""
    options = options or LayoutOptions()
    data_nodes = [n for n in nodes if not n.overlay]
    overlay_nodes = [n for n in nodes if n.overlay]
    if not data_nodes:
        return list(nodes)

    columns = max(1, math.ceil(math.sqrt(len(data_nodes))))
    step_x = options.default_width + options.node_separation
    step_y = options.default_height + options.node_separation

    positioned = [
        node.with_position((i % columns) * step_x, (i // columns) * step_y)
        for i, node in enumerate(data_nodes)
    ]
    return overlay_nodes + positioned
