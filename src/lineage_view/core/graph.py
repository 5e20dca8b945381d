"""
Lineage graph index backed by rustworkx.

Holds the visual edges of the current graph version and answers
reachability questions about them:
- The bimap between string node ids and rustworkx integer indices.
- Breadth-first upstream / downstream reachability (direction filtering).

Edges are visual edges, so they already point producer -> consumer.
"""

from collections import deque
from typing import Dict, Iterable, Set

import rustworkx as rx

from .types import Direction, VisualEdge, VisualNode


class LineageIndex:
    """
    Directed lineage graph over visual nodes.

    Features:
    - O(1) node lookup via id-to-index bimap
    - Edges whose endpoints are unknown are ignored
    - Upstream / downstream reachability
    """

    def __init__(self):
        self._graph = rx.PyDiGraph(multigraph=True)
        self._id_to_idx: Dict[str, int] = {}
        self._idx_to_id: Dict[int, str] = {}

    @classmethod
    def from_edges(cls, edges: Iterable[VisualEdge]) -> "LineageIndex":
        """Build an index from edges alone; endpoints become bare nodes."""
        index = cls()
        edge_list = list(edges)
        for edge in edge_list:
            for node_id in (edge.source, edge.target):
                if not index.has_node(node_id):
                    index.add_node(VisualNode(id=node_id))
        for edge in edge_list:
            index.add_edge(edge)
        return index

    def add_node(self, node: VisualNode) -> None:
        """Add or replace a node."""
        if node.id in self._id_to_idx:
            self._graph[self._id_to_idx[node.id]] = node
            return
        idx = self._graph.add_node(node)
        self._id_to_idx[node.id] = idx
        self._idx_to_id[idx] = node.id

    def add_edge(self, edge: VisualEdge) -> bool:
        """Add a directed edge. Returns False when an endpoint is unknown."""
        u_idx = self._id_to_idx.get(edge.source)
        v_idx = self._id_to_idx.get(edge.target)
        if u_idx is None or v_idx is None:
            return False
        self._graph.add_edge(u_idx, v_idx, edge)
        return True

    def has_node(self, node_id: str) -> bool:
        return node_id in self._id_to_idx

    def reachable(self, root_id: str, direction: Direction) -> Set[str]:
        """
        Ids reachable from ``root_id`` walking in ``direction``.

        Upstream follows edges where the visited node is the target and adds
        the source; downstream is the mirror image. The root is always part
        of the result, even when it is not in the graph. ``both`` walks
        neither way and returns every node.
        """
        if direction == Direction.BOTH:
            return set(self._id_to_idx) | {root_id}

        visited: Set[str] = {root_id}
        start_idx = self._id_to_idx.get(root_id)
        if start_idx is None:
            return visited

        seen_indices = {start_idx}
        queue = deque([start_idx])
        while queue:
            current_idx = queue.popleft()
            if direction == Direction.UPSTREAM:
                neighbours = [src for src, _, _ in self._graph.in_edges(current_idx)]
            else:
                neighbours = [tgt for _, tgt, _ in self._graph.out_edges(current_idx)]
            for next_idx in neighbours:
                if next_idx not in seen_indices:
                    seen_indices.add(next_idx)
                    queue.append(next_idx)

        visited.update(self._idx_to_id[idx] for idx in seen_indices)
        return visited
