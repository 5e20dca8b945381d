"""
Lineage View State.

Owns everything between the backend fetch and the rendering surface:

- Request tokens. Every fetch gets a monotonically increasing token and only
  the latest one may resolve, so a slow response can never overwrite a newer
  graph.
- Generations. Each accepted response is a new generation that moves through
  UNPOSITIONED -> MEASURING -> POSITIONED. Layout runs exactly once per
  generation, after the surface has painted and measured every data node.
- Overlays. Direction, impact and zone settings are stored as requested and
  composed into every snapshot, so nothing toggled before positioning is lost.
"""

import logging
from enum import StrEnum
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from .analysis.direction import apply_direction_filter
from .analysis.impact import apply_impact_style
from .client import LineageApiClient
from .config import FIT_VIEW_PADDING, LayoutOptions, Settings
from .core.exceptions import FetchError, LayoutError
from .core.result import Err, Result
from .core.types import (
    Direction,
    ImpactResult,
    LineageGraphResponse,
    Position,
    Size,
    VisualEdge,
    VisualGraph,
    VisualNode,
)
from .graph.layout import grid_layout, layout_nodes
from .graph.layout.constraints import node_size
from .graph.transform import transform_graph
from .graph.zones import with_zones

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No lineage data available."


class ViewStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


class LayoutPhase(StrEnum):
    UNPOSITIONED = "unpositioned"
    MEASURING = "measuring"
    POSITIONED = "positioned"


class Viewport(BaseModel):
    """Area the surface should fit into view, padding already applied."""
    x: float
    y: float
    width: float
    height: float


def fit_bounds(
    nodes: List[VisualNode],
    options: LayoutOptions,
    padding: float = FIT_VIEW_PADDING,
) -> Optional[Viewport]:
    """Bounding box of the visible data nodes grown by ``padding`` on each side."""
    visible = [n for n in nodes if not n.overlay and not n.hidden]
    if not visible:
        return None

    min_x = min(n.position.x for n in visible)
    min_y = min(n.position.y for n in visible)
    max_x = max(n.position.x + node_size(n, options)[0] for n in visible)
    max_y = max(n.position.y + node_size(n, options)[1] for n in visible)

    pad_x = (max_x - min_x) * padding
    pad_y = (max_y - min_y) * padding
    return Viewport(
        x=min_x - pad_x,
        y=min_y - pad_y,
        width=max_x - min_x + 2 * pad_x,
        height=max_y - min_y + 2 * pad_y,
    )


class LineageView:
    """
    Per-screen lineage view.

    Not thread-safe: every method is expected to run on the thread that
    drives the rendering surface. Fetches may complete elsewhere, but their
    results must be handed back through ``resolve_fetch``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        layout_fn: Callable[..., List[VisualNode]] = layout_nodes,
    ):
        self.settings = settings or Settings()
        self.options = self.settings.layout
        self._layout_fn = layout_fn

        self.status = ViewStatus.IDLE
        self.message: Optional[str] = None
        self.generation = 0
        self.phase = LayoutPhase.POSITIONED

        self._latest_token = 0
        self._latest_impact_token = 0
        self._nodes: List[VisualNode] = []
        self._edges: List[VisualEdge] = []
        self._sizes: Dict[str, Size] = {}
        self._last_positions: Dict[str, Position] = {}
        self._pending_fit: Optional[Viewport] = None

        # Overlay state
        self.root_id: Optional[str] = None
        self.direction = Direction.BOTH
        self.impact: Optional[ImpactResult] = None
        self.impact_error: Optional[str] = None
        self.dim_unaffected = True
        self.hide_unaffected = False
        self.show_zones = False

    # -------------------------------------------------------------------------
    # Fetch boundary
    # -------------------------------------------------------------------------

    def begin_fetch(self) -> int:
        """Start a graph fetch; any earlier in-flight fetch becomes stale."""
        self._latest_token += 1
        self.status = ViewStatus.LOADING
        self.message = None
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def resolve_fetch(
        self,
        token: int,
        result: Result[LineageGraphResponse, FetchError],
    ) -> bool:
        """
        Hand a fetch outcome to the view.

        Returns False (and changes nothing) when ``token`` has been
        superseded by a newer fetch.
        """
        if not self.is_current(token):
            logger.debug(f"Discarding stale response for token {token} (latest {self._latest_token})")
            return False

        if isinstance(result, Err):
            logger.error(f"Lineage fetch failed: {result.error}")
            self._start_generation([], [])
            self.status = ViewStatus.ERROR
            self.message = f"Error: {result.error}"
            return True

        graph = transform_graph(result.value)
        self._start_generation(graph.nodes, graph.edges)
        if not self._nodes:
            self.status = ViewStatus.EMPTY
            self.message = EMPTY_MESSAGE
        else:
            self.status = ViewStatus.READY
            self.message = None
        return True

    def load(
        self,
        client: LineageApiClient,
        root_id: Optional[str] = None,
        direction: Direction | str | None = None,
        max_depth: Optional[int] = None,
    ) -> int:
        """Fetch and resolve in one step. Returns the token used."""
        token = self.begin_fetch()
        result = client.fetch_graph(root_id, direction, max_depth)
        self.resolve_fetch(token, result)
        return token

    def begin_impact(self) -> int:
        self._latest_impact_token += 1
        return self._latest_impact_token

    def resolve_impact(
        self,
        token: int,
        result: Result[ImpactResult, FetchError],
    ) -> bool:
        """Apply an impact analysis outcome unless a newer one was requested."""
        if token != self._latest_impact_token:
            logger.debug(f"Discarding stale impact response for token {token}")
            return False

        if isinstance(result, Err):
            logger.error(f"Impact analysis failed: {result.error}")
            self.impact = None
            self.impact_error = f"Error: {result.error}"
            return True

        self.impact = result.value
        self.impact_error = None
        return True

    def load_impact(
        self,
        client: LineageApiClient,
        node_id: str,
        max_depth: Optional[int] = None,
    ) -> int:
        token = self.begin_impact()
        self.resolve_impact(token, client.fetch_impact(node_id, max_depth))
        return token

    # -------------------------------------------------------------------------
    # Layout lifecycle
    # -------------------------------------------------------------------------

    def _start_generation(self, nodes: List[VisualNode], edges: List[VisualEdge]) -> None:
        self.generation += 1
        self._nodes = list(nodes)
        self._edges = list(edges)
        self._sizes = {}
        self._pending_fit = None
        self.phase = LayoutPhase.UNPOSITIONED if self._nodes else LayoutPhase.POSITIONED
        logger.debug(f"Generation {self.generation}: {len(self._nodes)} nodes, {len(self._edges)} edges")

    def mark_painted(self, generation: int) -> bool:
        """The surface has painted ``generation`` once; sizes can be measured now."""
        if generation != self.generation or self.phase != LayoutPhase.UNPOSITIONED:
            return False
        self.phase = LayoutPhase.MEASURING
        return True

    def report_measurements(
        self,
        generation: int,
        sizes: Mapping[str, Size | Tuple[float, float]],
    ) -> bool:
        """
        Record measured node sizes for ``generation``.

        Runs the layout as soon as every data node has a size. Returns True
        when this call ran the layout.
        """
        if generation != self.generation or self.phase == LayoutPhase.POSITIONED:
            logger.debug(f"Ignoring measurements for generation {generation}")
            return False
        if self.phase == LayoutPhase.UNPOSITIONED:
            self.phase = LayoutPhase.MEASURING

        known_ids = {n.id for n in self._nodes}
        for node_id, size in sizes.items():
            if node_id not in known_ids:
                continue
            if not isinstance(size, Size):
                size = Size(width=size[0], height=size[1])
            self._sizes[node_id] = size

        if known_ids - self._sizes.keys():
            return False

        self._run_layout()
        return True

    def _run_layout(self) -> None:
        measured = [n.model_copy(update={"measured": self._sizes.get(n.id)}) for n in self._nodes]
        try:
            positioned = self._layout_fn(measured, self._edges, self.options)
        except LayoutError as e:
            logger.warning(f"Layout failed for generation {self.generation}, falling back: {e}")
            positioned = self._fallback_positions(measured)

        self._nodes = positioned
        self._last_positions.update({n.id: n.position for n in positioned if not n.overlay})
        self.phase = LayoutPhase.POSITIONED
        self._pending_fit = fit_bounds(self.snapshot().nodes, self.options)

    def _fallback_positions(self, nodes: List[VisualNode]) -> List[VisualNode]:
        if nodes and all(n.id in self._last_positions for n in nodes):
            return [n.model_copy(update={"position": self._last_positions[n.id]}) for n in nodes]
        return grid_layout(nodes, self.options)

    def next_frame(self) -> Optional[Viewport]:
        """Viewport fit queued by the last layout; returned at most once."""
        fit, self._pending_fit = self._pending_fit, None
        return fit

    # -------------------------------------------------------------------------
    # Overlays
    # -------------------------------------------------------------------------

    def set_direction(self, root_id: Optional[str], direction: Direction | str) -> None:
        self.root_id = root_id
        self.direction = Direction(direction)

    def set_impact(self, impact: Optional[ImpactResult]) -> None:
        # A locally set impact supersedes any impact fetch in flight
        self._latest_impact_token += 1
        self.impact = impact
        self.impact_error = None

    def set_impact_flags(self, dim_unaffected: bool, hide_unaffected: bool) -> None:
        self.dim_unaffected = dim_unaffected
        self.hide_unaffected = hide_unaffected

    def set_zones(self, show: bool) -> None:
        self.show_zones = show

    def snapshot(self) -> VisualGraph:
        """Current nodes and edges with every overlay applied."""
        nodes = list(self._nodes)
        if self.show_zones and self.phase == LayoutPhase.POSITIONED and nodes:
            nodes = with_zones(nodes, self._edges, self.options)

        nodes = apply_impact_style(nodes, self.impact, self.dim_unaffected, self.hide_unaffected)
        nodes, edges = apply_direction_filter(nodes, self._edges, self.root_id, self.direction)
        return VisualGraph(nodes=nodes, edges=edges)
