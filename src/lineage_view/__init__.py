"""
lineage-view: lineage graph preparation and layered layout.

Turns backend lineage graphs into positioned, render-ready node and edge
sets: column folding, architecture layer classification, a layered layout
biased toward the sources -> staging -> marts -> consumption flow, and the
direction and impact overlays.
"""

from .analysis import apply_direction_filter, apply_impact_style, filter_by_direction
from .client import LineageApiClient
from .config import LayoutOptions, Settings, load_settings
from .graph import classify_node, compute_layer_map, layout_nodes, transform_graph
from .links import build_source_url
from .view import LineageView, ViewStatus

__version__ = "0.1.0"

__all__ = [
    "transform_graph",
    "classify_node",
    "compute_layer_map",
    "layout_nodes",
    "filter_by_direction",
    "apply_direction_filter",
    "apply_impact_style",
    "build_source_url",
    "LineageApiClient",
    "LineageView",
    "ViewStatus",
    "LayoutOptions",
    "Settings",
    "load_settings",
]
