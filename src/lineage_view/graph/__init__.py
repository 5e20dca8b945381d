"""
Graph preparation: transform, classification, layout and zone overlays.
"""

from .classifier import classify_node, compute_layer_map, promote_materialized_tables
from .layout import grid_layout, layout_nodes
from .transform import resolve_category, transform_graph
from .zones import build_zone_nodes, with_zones, without_zones

__all__ = [
    "transform_graph",
    "resolve_category",
    "classify_node",
    "compute_layer_map",
    "promote_materialized_tables",
    "layout_nodes",
    "grid_layout",
    "build_zone_nodes",
    "with_zones",
    "without_zones",
]
