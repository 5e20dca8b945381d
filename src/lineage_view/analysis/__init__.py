"""
View overlays computed on top of positioned graphs.
"""

from .direction import apply_direction_filter, edge_visibility, filter_by_direction
from .impact import apply_impact_style, risk_index, summarize

__all__ = [
    "filter_by_direction",
    "apply_direction_filter",
    "edge_visibility",
    "apply_impact_style",
    "risk_index",
    "summarize",
]
