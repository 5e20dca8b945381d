"""Unit tests for the layer classifier."""

import pytest

from lineage_view.core.types import ArchitectureLayer
from lineage_view.graph.classifier import (
    classify_node,
    compute_layer_map,
    group_by_layer,
    promote_materialized_tables,
)
from lineage_view.graph.transform import transform_graph
from tests.conftest import make_edge, make_node


class TestClassifyNode:
    @pytest.mark.parametrize("backend_type,label,expected", [
        ("metabase.card", "stg_weird_name", ArchitectureLayer.CONSUMPTION),
        ("metabase.dashboard", "Sales", ArchitectureLayer.CONSUMPTION),
        ("metric.kpi", "marts_kpi", ArchitectureLayer.CONSUMPTION),
        ("dbt.source", "stg_raw", ArchitectureLayer.SOURCES),
        ("warehouse.table", "stg_orders", ArchitectureLayer.STAGING),
        ("warehouse.table", "int_orders", ArchitectureLayer.MARTS),
        ("warehouse.table", "orders", ArchitectureLayer.SOURCES),
        ("dbt.model", "stg_orders", ArchitectureLayer.STAGING),
        ("dbt.model", "int_orders", ArchitectureLayer.MARTS),
        ("dbt.model", "orders", ArchitectureLayer.MARTS),
        ("something.else", "whatever", ArchitectureLayer.SOURCES),
        ("something.else", "stg_orders", ArchitectureLayer.SOURCES),
        ("custom.thing", "int_orders", ArchitectureLayer.SOURCES),
    ])
    def test_rules(self, backend_type, label, expected):
        assert classify_node(make_node("n", backend_type, label=label)) == expected

    def test_schema_participates(self):
        table = make_node("t", "warehouse.table", label="orders", props={"schema": "STAGING"})
        assert classify_node(table) == ArchitectureLayer.STAGING

        model = make_node("m", "dbt.model", label="orders", props={"schema": "analytics_marts"})
        assert classify_node(model) == ArchitectureLayer.MARTS

    def test_pure_function(self):
        """Same node, same layer, whatever else was classified in between."""
        node = make_node("m", "dbt.model", label="stg_payments")
        first = classify_node(node)
        classify_node(make_node("x", "metabase.card"))
        classify_node(make_node("y", "warehouse.table", label="int_x"))
        assert classify_node(node) == first


class TestComputeLayerMap:
    def test_materialized_table_promoted(self):
        """Model stg_orders feeding table T1 pulls T1 into staging."""
        graph = transform_graph({
            "nodes": [
                {"id": "T1", "type": "warehouse.table", "label": "orders"},
                {"id": "C1", "type": "warehouse.column"},
                {"id": "C2", "type": "warehouse.column"},
                {"id": "M1", "type": "dbt.model", "label": "stg_orders"},
            ],
            "edges": [
                {"source": "T1", "target": "C1", "type": "table_has_column"},
                {"source": "T1", "target": "C2", "type": "table_has_column"},
                {"source": "M1", "target": "T1", "type": "materializes"},
            ],
        })

        assert classify_node(graph.get_node("T1")) == ArchitectureLayer.SOURCES
        layers = compute_layer_map(graph.nodes, graph.edges)
        assert layers == {"T1": ArchitectureLayer.STAGING, "M1": ArchitectureLayer.STAGING}

    def test_source_model_never_promotes(self):
        nodes = [make_node("src", "dbt.source", label="raw"), make_node("t", "warehouse.table", label="orders")]
        layers = compute_layer_map(nodes, [make_edge("src", "t")])
        assert layers["t"] == ArchitectureLayer.SOURCES

    def test_model_layer_replaces_table_layer(self):
        nodes = [
            make_node("m", "dbt.model", label="stg_orders"),
            make_node("t", "warehouse.table", label="int_orders"),
        ]
        layers = compute_layer_map(nodes, [make_edge("m", "t")])
        assert layers["t"] == ArchitectureLayer.STAGING

    def test_model_layer_overrides_table_heuristics(self):
        """A marts model feeding a table in a staging schema pulls it into marts."""
        nodes = [
            make_node("m", "dbt.model", label="fct_orders"),
            make_node("t", "warehouse.table", label="orders", props={"schema": "staging"}),
        ]
        assert classify_node(nodes[1]) == ArchitectureLayer.STAGING
        layers = compute_layer_map(nodes, [make_edge("m", "t")])
        assert layers["t"] == ArchitectureLayer.MARTS

    def test_last_feeding_model_wins(self):
        nodes = [
            make_node("m1", "dbt.model", label="fct_orders"),
            make_node("m2", "dbt.model", label="stg_orders"),
            make_node("t", "warehouse.table", label="orders"),
        ]
        edges = [make_edge("m1", "t"), make_edge("m2", "t")]
        assert compute_layer_map(nodes, edges)["t"] == ArchitectureLayer.STAGING
        assert compute_layer_map(nodes, list(reversed(edges)))["t"] == ArchitectureLayer.MARTS

    def test_unknown_target_type_not_promoted(self):
        nodes = [make_node("m", "dbt.model", label="stg_orders"), make_node("x", "custom.thing", label="orders")]
        layers = compute_layer_map(nodes, [make_edge("m", "x")])
        assert layers["x"] == ArchitectureLayer.SOURCES

    def test_edge_into_model_does_not_promote(self):
        nodes = [make_node("m1", "dbt.model", label="fct_a"), make_node("m2", "dbt.model", label="stg_b")]
        layers = compute_layer_map(nodes, [make_edge("m1", "m2")])
        assert layers["m2"] == ArchitectureLayer.STAGING

    def test_idempotent(self, warehouse_graph):
        nodes, edges = warehouse_graph
        layers = compute_layer_map(nodes, edges)
        by_id = {n.id: n for n in nodes}
        assert promote_materialized_tables(layers, by_id, edges) == layers
        assert compute_layer_map(nodes, edges) == layers

    def test_overlays_ignored(self, warehouse_graph, zone_node):
        nodes, edges = warehouse_graph
        layers = compute_layer_map([zone_node] + nodes, edges)
        assert zone_node.id not in layers
        assert layers["revenue_card"] == ArchitectureLayer.CONSUMPTION

    def test_every_data_node_gets_a_layer(self, warehouse_graph):
        nodes, edges = warehouse_graph
        layers = compute_layer_map(nodes, edges)
        assert set(layers) == {n.id for n in nodes}


class TestGroupByLayer:
    def test_canonical_order_and_only_occupied(self):
        layer_map = {
            "card": ArchitectureLayer.CONSUMPTION,
            "raw": ArchitectureLayer.SOURCES,
            "raw2": ArchitectureLayer.SOURCES,
        }
        grouped = group_by_layer(["card", "raw", "raw2"], layer_map)
        assert list(grouped) == [ArchitectureLayer.SOURCES, ArchitectureLayer.CONSUMPTION]
        assert grouped[ArchitectureLayer.SOURCES] == ["raw", "raw2"]
