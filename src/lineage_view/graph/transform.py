"""
Graph Transform.

Converts the backend entity/relationship graph into visual nodes and edges:
- Column entities are folded into the tables that own them.
- Relationship types that encode "consumer reads producer" are flipped so
  every visual edge points in the direction data flows.
- Unknown entity types fall back to the table category.

Pure function over its input; malformed records degrade, never raise.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, FrozenSet, List, Mapping, Tuple

from ..core.types import (
    EmbeddedColumn,
    Entity,
    LineageGraphResponse,
    NodeCategory,
    Relationship,
    VisualEdge,
    VisualGraph,
    VisualNode,
)

logger = logging.getLogger(__name__)

NODE_CATEGORY_MAP: Dict[str, NodeCategory] = {
    "metabase.card": NodeCategory.CARD,
    "metabase.dashboard": NodeCategory.CARD,
    "warehouse.table": NodeCategory.TABLE,
    "warehouse.column": NodeCategory.COLUMN,
    "dbt.model": NodeCategory.MODEL,
    "dbt.source": NodeCategory.MODEL,
    "metric.kpi": NodeCategory.KPI,
}

HAS_COLUMN_TYPES: FrozenSet[str] = frozenset({"table_has_column"})

# Relationships stored as consumer -> producer by the backend
REVERSED_EDGE_TYPES: FrozenSet[str] = frozenset({
    "card_reads_table",
    "card_reads_column",
    "dashboard_contains_card",
    "kpi_reads_card",
    "metric_reads_table",
    "dbt_model_depends_on_model",
    "dbt_model_depends_on_source",
    "model_depends_on",
    "reads",
    "depends_on",
})


def resolve_category(backend_type: str | None) -> NodeCategory:
    """Map a backend type tag to a rendering category."""
    return NODE_CATEGORY_MAP.get(backend_type or "", NodeCategory.TABLE)


def is_reversed_edge_type(edge_type: str | None) -> bool:
    return (edge_type or "").lower() in REVERSED_EDGE_TYPES


def _column_info(entity: Entity) -> EmbeddedColumn:
    props = entity.props
    name = props.get("name") or entity.label or entity.id
    data_type = props.get("data_type", props.get("type"))
    nullable = props.get("nullable")
    return EmbeddedColumn(
        name=str(name),
        data_type=str(data_type) if data_type is not None else None,
        nullable=nullable if isinstance(nullable, bool) else None,
    )


def _coerce_response(raw: LineageGraphResponse | Mapping[str, Any]) -> Tuple[List[Entity], List[Relationship]]:
    """Accept a parsed response or a raw mapping; drop records that do not validate."""
    if not isinstance(raw, LineageGraphResponse):
        raw = LineageGraphResponse.from_payload(raw)
    return list(raw.nodes), list(raw.edges)


def transform_graph(raw: LineageGraphResponse | Mapping[str, Any]) -> VisualGraph:
    """
    Convert a backend lineage graph into visual nodes and edges.

    Nodes are emitted unpositioned; the layout engine fills positions in
    once the rendering surface has measured them.
    """
    entities, relationships = _coerce_response(raw)

    # Pass 1: column entities by id
    columns: Dict[str, EmbeddedColumn] = {}
    for entity in entities:
        if resolve_category(entity.type) == NodeCategory.COLUMN and entity.id not in columns:
            columns[entity.id] = _column_info(entity)

    # Pass 2: owning table -> ordered column list
    columns_by_table: Dict[str, List[EmbeddedColumn]] = defaultdict(list)
    for rel in relationships:
        if rel.type in HAS_COLUMN_TYPES and rel.target in columns:
            columns_by_table[rel.source].append(columns[rel.target])

    nodes: List[VisualNode] = []
    seen: set[str] = set()
    for entity in entities:
        if entity.id in columns or entity.id in seen:
            if entity.id in seen:
                logger.debug(f"Dropping duplicate entity {entity.id}")
            continue
        seen.add(entity.id)

        embedded = columns_by_table.get(entity.id)
        nodes.append(VisualNode(
            id=entity.id,
            category=resolve_category(entity.type),
            backend_type=entity.type,
            label=entity.label,
            canonical_key=entity.canonical_key,
            props=dict(entity.props),
            embedded_columns=list(embedded) if embedded else None,
        ))

    edges: List[VisualEdge] = []
    for rel in relationships:
        if rel.source not in seen or rel.target not in seen:
            continue

        flipped = is_reversed_edge_type(rel.type)
        source, target = (rel.target, rel.source) if flipped else (rel.source, rel.target)
        edges.append(VisualEdge(
            id=rel.id,
            source=source,
            target=target,
            edge_type=rel.type,
            props=dict(rel.props),
            reversed=flipped,
        ))

    logger.debug(
        f"Transformed {len(entities)} entities / {len(relationships)} relationships "
        f"into {len(nodes)} nodes / {len(edges)} edges ({len(columns)} columns folded)"
    )
    return VisualGraph(nodes=nodes, edges=edges)
