"""
Direction Filter.

Restricts the view to what lies upstream or downstream of a selected node
by toggling visibility. Positions are never touched and layout never reruns.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..core.graph import LineageIndex
from ..core.types import Direction, VisualEdge, VisualNode

logger = logging.getLogger(__name__)


def filter_by_direction(
    edges: Iterable[VisualEdge],
    root_id: Optional[str],
    direction: Direction | str,
) -> Optional[Set[str]]:
    """
    Ids reachable from ``root_id`` in ``direction``.

    Returns None ("show everything") when the direction is ``both`` or no
    root is selected. Otherwise the result always contains the root.
    """
    direction = Direction(direction)
    if direction == Direction.BOTH or not root_id:
        return None

    index = LineageIndex.from_edges(edges)
    reachable = index.reachable(root_id, direction)
    logger.debug(f"{direction.value} of {root_id}: {len(reachable)} reachable nodes")
    return reachable


def edge_visibility(
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
) -> List[VisualEdge]:
    """Hide every edge with a hidden endpoint; show the rest."""
    hidden_ids = {n.id for n in nodes if n.hidden}
    updated = []
    for edge in edges:
        hidden = edge.source in hidden_ids or edge.target in hidden_ids
        updated.append(edge if edge.hidden == hidden else edge.model_copy(update={"hidden": hidden}))
    return updated


def apply_direction_filter(
    nodes: Sequence[VisualNode],
    edges: Sequence[VisualEdge],
    root_id: Optional[str],
    direction: Direction | str,
) -> Tuple[List[VisualNode], List[VisualEdge]]:
    """
    Write the direction part of each node's visibility.

    Overlay nodes are never hidden by the filter. The impact part of the
    visibility is left as it was.
    """
    reachable = filter_by_direction(edges, root_id, direction)

    updated: List[VisualNode] = []
    for node in nodes:
        hidden = False if (reachable is None or node.overlay) else node.id not in reachable
        if node.visibility.hidden_by_direction != hidden:
            node = node.with_visibility(hidden_by_direction=hidden)
        updated.append(node)

    return updated, edge_visibility(updated, edges)
