"""Shared fixtures for lineage-view tests."""

import pytest

from lineage_view.core.types import NodeCategory, VisualEdge, VisualNode
from lineage_view.graph.transform import resolve_category


def make_node(node_id, backend_type="warehouse.table", label=None, **kwargs):
    """Visual node with its category resolved from the backend type."""
    return VisualNode(
        id=node_id,
        category=kwargs.pop("category", resolve_category(backend_type)),
        backend_type=backend_type,
        label=label or node_id,
        **kwargs,
    )


def make_edge(source, target, edge_type="feeds"):
    return VisualEdge(id=f"{source}->{target}", source=source, target=target, edge_type=edge_type)


def chain(*ids):
    """Edges a -> b -> c ... between consecutive ids."""
    return [make_edge(a, b) for a, b in zip(ids, ids[1:])]


@pytest.fixture
def warehouse_graph():
    """
    A small four-layer warehouse:

        raw_orders -> stg_orders -> orders (table) -> fct_revenue -> revenue_card
    """
    nodes = [
        make_node("raw_orders", "dbt.source", label="raw_orders"),
        make_node("stg_orders", "dbt.model", label="stg_orders"),
        make_node("orders", "warehouse.table", label="orders"),
        make_node("fct_revenue", "dbt.model", label="fct_revenue", props={"schema": "marts"}),
        make_node("revenue_card", "metabase.card", label="Revenue"),
    ]
    edges = chain("raw_orders", "stg_orders", "orders", "fct_revenue", "revenue_card")
    return nodes, edges


@pytest.fixture
def zone_node():
    return VisualNode(id="zone:sources", category=NodeCategory.ZONE, overlay=True)
