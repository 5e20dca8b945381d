"""
Core modules for lineage-view.

This package contains the fundamental building blocks:
- types: Backend and visual data structures
- graph: rustworkx-backed lineage index
- result: Ok/Err result type for the fetch boundary
- exceptions: Error hierarchy
"""

from .exceptions import FetchError, GraphNotFoundError, LayoutError, LineageViewError
from .graph import LineageIndex
from .result import Err, Ok, Result
from .types import (
    LAYER_ORDER,
    ArchitectureLayer,
    Direction,
    EmbeddedColumn,
    Entity,
    ImpactedNode,
    ImpactResult,
    LineageGraphResponse,
    NodeCategory,
    NodeStyle,
    NodeVisibility,
    Position,
    Relationship,
    RiskLevel,
    Size,
    Visibility,
    VisualEdge,
    VisualGraph,
    VisualNode,
)

__all__ = [
    # Types
    "Entity", "Relationship", "LineageGraphResponse",
    "ImpactedNode", "ImpactResult",
    "VisualNode", "VisualEdge", "VisualGraph",
    "EmbeddedColumn", "NodeStyle", "NodeVisibility", "Position", "Size",
    "NodeCategory", "ArchitectureLayer", "LAYER_ORDER",
    "RiskLevel", "Direction", "Visibility",
    # Graph
    "LineageIndex",
    # Result
    "Ok", "Err", "Result",
    # Exceptions
    "LineageViewError", "FetchError", "LayoutError", "GraphNotFoundError",
]
