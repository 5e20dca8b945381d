"""
Layer Classifier.

Assigns every data node one of four architecture layers
(sources -> staging -> marts -> consumption).

Classification runs in two passes:
1. ``classify_node``: per-node type and name heuristics.
2. ``promote_materialized_tables``: a table fed by a staging/marts model is
   that model's output, so it inherits the model's layer.

Layers are recomputed from the current node/edge set every time; they are
never stored on the nodes.
"""

from typing import Dict, Iterable, List

from ..core.types import (
    LAYER_ORDER,
    ArchitectureLayer,
    NodeCategory,
    VisualEdge,
    VisualNode,
)

STAGING_KEYWORD = "staging"
STAGING_PREFIX = "stg_"
MARTS_KEYWORD = "marts"
MARTS_PREFIX = "int_"

CONSUMPTION_CATEGORIES = frozenset({NodeCategory.CARD, NodeCategory.KPI})
CONSUMPTION_TYPES = frozenset({"metabase.card", "metabase.dashboard", "metric.kpi"})

TABLE_LIKE_TYPES = frozenset({"warehouse.table", "warehouse.column"})


def _name_haystack(node: VisualNode) -> str:
    schema = node.props.get("schema") if node.props else None
    return f"{node.label} {schema or ''}".lower()


def is_model(node: VisualNode) -> bool:
    """Transformation model (dbt model), excluding dbt sources."""
    return node.category == NodeCategory.MODEL and node.backend_type != "dbt.source"


def is_table_like(node: VisualNode) -> bool:
    """Warehouse table or column. Unknown backend types are never table-like."""
    return node.backend_type in TABLE_LIKE_TYPES


def classify_node(node: VisualNode) -> ArchitectureLayer:
    """
    Classify a single node by its type and name.

    Consumption categories always win; ambiguous tables and models are
    resolved from "staging"/"stg_" and "marts"/"int_" markers in the
    lower-cased label and schema. Any other backend type lands in sources.
    """
    if node.category in CONSUMPTION_CATEGORIES or node.backend_type in CONSUMPTION_TYPES:
        return ArchitectureLayer.CONSUMPTION

    if node.backend_type == "dbt.source":
        return ArchitectureLayer.SOURCES

    haystack = _name_haystack(node)
    name = (node.label or "").lower()

    if is_table_like(node):
        if name.startswith(STAGING_PREFIX) or STAGING_KEYWORD in haystack:
            return ArchitectureLayer.STAGING
        if name.startswith(MARTS_PREFIX) or MARTS_KEYWORD in haystack:
            return ArchitectureLayer.MARTS
        return ArchitectureLayer.SOURCES

    if node.category == NodeCategory.MODEL:
        if STAGING_KEYWORD in haystack or STAGING_PREFIX in haystack:
            return ArchitectureLayer.STAGING
        if MARTS_KEYWORD in haystack or MARTS_PREFIX in haystack:
            return ArchitectureLayer.MARTS
        return ArchitectureLayer.MARTS

    return ArchitectureLayer.SOURCES


def promote_materialized_tables(
    layer_map: Dict[str, ArchitectureLayer],
    nodes_by_id: Dict[str, VisualNode],
    edges: Iterable[VisualEdge],
) -> Dict[str, ArchitectureLayer]:
    """
    Second pass: a table materialized by a non-source model takes the
    model's layer.

    The model's layer replaces whatever the name heuristics said about the
    table. When several models feed one table, the last edge wins.
    """
    result = dict(layer_map)
    for edge in edges:
        model = nodes_by_id.get(edge.source)
        table = nodes_by_id.get(edge.target)
        if model is None or table is None:
            continue
        if not is_model(model) or not is_table_like(table):
            continue

        model_layer = result.get(edge.source)
        if model_layer is None or model_layer == ArchitectureLayer.SOURCES:
            continue
        result[edge.target] = model_layer
    return result


def compute_layer_map(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
) -> Dict[str, ArchitectureLayer]:
    """Classify every data node using name heuristics plus edge structure."""
    nodes_by_id: Dict[str, VisualNode] = {}
    layer_map: Dict[str, ArchitectureLayer] = {}

    for node in nodes:
        if node.overlay:
            continue
        nodes_by_id[node.id] = node
        layer_map[node.id] = classify_node(node)

    return promote_materialized_tables(layer_map, nodes_by_id, edges)


def group_by_layer(
    node_ids: Iterable[str],
    layer_map: Dict[str, ArchitectureLayer],
) -> Dict[ArchitectureLayer, List[str]]:
    """Bucket node ids by layer, preserving input order, in canonical layer order."""
    buckets: Dict[ArchitectureLayer, List[str]] = {layer: [] for layer in LAYER_ORDER}
    for node_id in node_ids:
        layer = layer_map.get(node_id)
        if layer is not None:
            buckets[layer].append(node_id)
    return {layer: ids for layer, ids in buckets.items() if ids}
