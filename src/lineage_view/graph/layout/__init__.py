"""
Layered layout for lineage graphs.

Pipeline: constraint graph -> ranks -> ordering -> coordinates.
"""

from ...config import LayoutOptions
from .constraints import BARRIER_KEY, LayoutKey, VertexKind, build_constraint_graph
from .engine import grid_layout, layout_nodes

__all__ = [
    "LayoutOptions",
    "LayoutKey",
    "VertexKind",
    "BARRIER_KEY",
    "build_constraint_graph",
    "layout_nodes",
    "grid_layout",
]
