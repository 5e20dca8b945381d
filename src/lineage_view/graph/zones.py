"""
Architecture zone backgrounds.

Zones are decorative overlay nodes, one per occupied architecture layer,
sized to the bounding box of that layer's positioned nodes. They never take
part in layout; adding or removing them does not invalidate positions.
"""

from typing import List, Sequence

from ..config import ZONE_HEADER_HEIGHT, ZONE_LABELS, ZONE_PADDING, LayoutOptions
from ..core.types import NodeCategory, Position, VisualEdge, VisualNode
from .classifier import compute_layer_map, group_by_layer
from .layout.constraints import node_size

ZONE_PREFIX = "zone:"


def zone_id(layer: str) -> str:
    return f"{ZONE_PREFIX}{layer}"


def build_zone_nodes(
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    options: LayoutOptions | None = None,
) -> List[VisualNode]:
    """One overlay node per occupied layer, enclosing that layer's nodes."""
    options = options or LayoutOptions()
    data_nodes = {n.id: n for n in nodes if not n.overlay}
    layer_map = compute_layer_map(data_nodes.values(), edges)

    zones: List[VisualNode] = []
    for layer, node_ids in group_by_layer(data_nodes, layer_map).items():
        min_x = min_y = float("inf")
        max_x = max_y = float("-inf")
        for node_id in node_ids:
            node = data_nodes[node_id]
            width, height = node_size(node, options)
            min_x = min(min_x, node.position.x)
            min_y = min(min_y, node.position.y)
            max_x = max(max_x, node.position.x + width)
            max_y = max(max_y, node.position.y + height)

        zones.append(VisualNode(
            id=zone_id(layer.value),
            category=NodeCategory.ZONE,
            label=ZONE_LABELS[layer],
            overlay=True,
            position=Position(
                x=min_x - ZONE_PADDING,
                y=min_y - ZONE_PADDING - ZONE_HEADER_HEIGHT,
            ),
            props={
                "layer": layer.value,
                "width": max_x - min_x + ZONE_PADDING * 2,
                "height": max_y - min_y + ZONE_PADDING * 2 + ZONE_HEADER_HEIGHT,
                "members": list(node_ids),
            },
        ))
    return zones


def with_zones(
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    options: LayoutOptions | None = None,
) -> List[VisualNode]:
    """Replace any existing zone overlays with freshly computed ones."""
    data_nodes = [n for n in nodes if not n.overlay]
    return build_zone_nodes(data_nodes, edges, options) + data_nodes


def without_zones(nodes: Sequence[VisualNode]) -> List[VisualNode]:
    return [n for n in nodes if not n.overlay]
