"""
Core type definitions for lineage-view.

Two families of models live here:
- Backend models (Entity, Relationship, LineageGraphResponse, ImpactResult)
  that mirror the lineage API payloads.
- Visual models (VisualNode, VisualEdge) that the pipeline produces for the
  rendering surface.
"""

import logging
from enum import StrEnum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class NodeCategory(StrEnum):
    """Rendering categories a backend entity type resolves to."""
    TABLE = "table"
    COLUMN = "column"
    MODEL = "model"
    CARD = "card"
    KPI = "kpi"
    ZONE = "zone"


class ArchitectureLayer(StrEnum):
    """Architecture zones, ordered left to right."""
    SOURCES = "sources"
    STAGING = "staging"
    MARTS = "marts"
    CONSUMPTION = "consumption"

    @property
    def rank(self) -> int:
        return LAYER_ORDER.index(self)


LAYER_ORDER: List[ArchitectureLayer] = [
    ArchitectureLayer.SOURCES,
    ArchitectureLayer.STAGING,
    ArchitectureLayer.MARTS,
    ArchitectureLayer.CONSUMPTION,
]


class RiskLevel(StrEnum):
    """Impact severity, most severe first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Direction(StrEnum):
    """Traversal direction for lineage filtering."""
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class Visibility(StrEnum):
    """Why a node is (or is not) shown."""
    VISIBLE = "visible"
    HIDDEN_BY_DIRECTION = "hidden_by_direction"
    HIDDEN_BY_IMPACT = "hidden_by_impact"
    HIDDEN_BY_BOTH = "hidden_by_both"


# =============================================================================
# Backend models
# =============================================================================

_SCALARS = (str, int, float, bool)


def _as_str(value: Any) -> str | None:
    """String form of a scalar field value; None for anything else."""
    if isinstance(value, str):
        return value
    if isinstance(value, _SCALARS):
        return str(value)
    return None


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class Entity(BaseModel):
    """A node of the backend lineage graph."""
    id: str
    type: str = ""
    label: str = ""
    canonical_key: str | None = None
    props: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        # Bad optional fields fall back to defaults; only a missing or non-scalar id rejects the record
        if isinstance(data, dict):
            data = dict(data)
            if "id" in data and _as_str(data["id"]) is not None:
                data["id"] = _as_str(data["id"])
            if not isinstance(data.get("props"), dict):
                data["props"] = {}
            data["type"] = _as_str(data.get("type")) or ""
            if not isinstance(data.get("canonical_key"), str):
                data["canonical_key"] = None
            data["label"] = _as_str(data.get("label")) or _as_str(data.get("id")) or ""
        return data


class Relationship(BaseModel):
    """A directed edge of the backend lineage graph."""
    id: str = ""
    source: str
    target: str
    type: str = ""
    props: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for endpoint in ("source", "target"):
                if endpoint in data and _as_str(data[endpoint]) is not None:
                    data[endpoint] = _as_str(data[endpoint])
            if not isinstance(data.get("props"), dict):
                data["props"] = {}
            data["type"] = _as_str(data.get("type")) or ""
            data["id"] = _as_str(data.get("id")) or f"{data.get('source')}->{data.get('target')}:{data['type']}"
        return data


class LineageGraphResponse(BaseModel):
    """Payload of the lineage graph endpoint."""
    nodes: List[Entity] = Field(default_factory=list)
    edges: List[Relationship] = Field(default_factory=list)
    total_nodes: int | None = None
    total_edges: int | None = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_payload(cls, data: Any) -> "LineageGraphResponse":
        """
        Build a response record by record.

        Entities and relationships that fail validation are dropped with a
        debug log, so one bad record never costs the rest of the graph.

        Raises:
            ValueError: If ``data`` is not a mapping.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        nodes = _validate_records(Entity, data.get("nodes"))
        edges = _validate_records(Relationship, data.get("edges"))
        return cls(
            nodes=nodes,
            edges=edges,
            total_nodes=_as_count(data.get("total_nodes")),
            total_edges=_as_count(data.get("total_edges")),
        )


def _validate_records(model: type[BaseModel], items: Any) -> List[Any]:
    if not isinstance(items, list):
        if items is not None:
            logger.debug(f"Ignoring non-list {model.__name__} collection: {items!r}")
        return []

    records = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping malformed {model.__name__} {item!r}: {e}")
    return records


class ImpactedNode(BaseModel):
    """A single downstream node reported by impact analysis."""
    node_id: str
    label: str = ""
    type: str = ""
    canonical_key: str | None = None
    depth: int = 0
    risk_level: RiskLevel = RiskLevel.LOW
    risk_reason: str = ""
    path: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ImpactResult(BaseModel):
    """Payload of the impact analysis endpoint."""
    root_node_id: str
    root_label: str = ""
    impacted_nodes: List[ImpactedNode] = Field(default_factory=list)
    total_affected: int = 0
    by_risk: Dict[str, int] = Field(default_factory=dict)
    max_depth: int = 0

    model_config = ConfigDict(extra="ignore")


# =============================================================================
# Visual models
# =============================================================================

class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    width: float
    height: float


class EmbeddedColumn(BaseModel):
    """Column info folded into its owning table node."""
    name: str
    data_type: str | None = None
    nullable: bool | None = None


class NodeStyle(BaseModel):
    """Per-node style overrides written by impact styling."""
    opacity: float = 1.0
    border_color: str | None = None
    border_width: int | None = None


class NodeVisibility(BaseModel):
    """
    Visibility decision per overlay.

    The direction filter and impact styling each own one flag, so applying
    one never erases the other's decision.
    """
    hidden_by_direction: bool = False
    hidden_by_impact: bool = False

    @property
    def tag(self) -> Visibility:
        if self.hidden_by_direction and self.hidden_by_impact:
            return Visibility.HIDDEN_BY_BOTH
        if self.hidden_by_direction:
            return Visibility.HIDDEN_BY_DIRECTION
        if self.hidden_by_impact:
            return Visibility.HIDDEN_BY_IMPACT
        return Visibility.VISIBLE

    @property
    def hidden(self) -> bool:
        return self.hidden_by_direction or self.hidden_by_impact


class VisualNode(BaseModel):
    """
    Render-ready node.

    Derived from one backend Entity, or synthesized as a decorative overlay
    (architecture zone background) when ``overlay`` is set.
    """
    id: str
    category: NodeCategory = NodeCategory.TABLE
    backend_type: str = ""
    label: str = ""
    canonical_key: str | None = None
    props: Dict[str, Any] = Field(default_factory=dict)
    embedded_columns: List[EmbeddedColumn] | None = None
    position: Position = Field(default_factory=Position)
    measured: Size | None = None
    overlay: bool = False
    parent_id: str | None = None
    visibility: NodeVisibility = Field(default_factory=NodeVisibility)
    style: NodeStyle = Field(default_factory=NodeStyle)

    model_config = ConfigDict(frozen=False, extra="ignore")

    @property
    def hidden(self) -> bool:
        return self.visibility.hidden

    def with_position(self, x: float, y: float) -> "VisualNode":
        return self.model_copy(update={"position": Position(x=x, y=y)})

    def with_visibility(self, **flags: bool) -> "VisualNode":
        merged = self.visibility.model_copy(update=flags)
        return self.model_copy(update={"visibility": merged})

    def with_style(self, style: NodeStyle) -> "VisualNode":
        return self.model_copy(update={"style": style})


class VisualEdge(BaseModel):
    """Render-ready edge, always pointing producer -> consumer."""
    id: str
    source: str
    target: str
    edge_type: str = ""
    props: Dict[str, Any] = Field(default_factory=dict)
    reversed: bool = False
    hidden: bool = False

    model_config = ConfigDict(frozen=False, extra="ignore")


class VisualGraph(BaseModel):
    """A set of visual nodes and edges."""
    nodes: List[VisualNode] = Field(default_factory=list)
    edges: List[VisualEdge] = Field(default_factory=list)

    def data_nodes(self) -> List[VisualNode]:
        return [n for n in self.nodes if not n.overlay]

    def get_node(self, node_id: str) -> VisualNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
