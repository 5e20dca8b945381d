"""Unit tests for the layered layout engine."""

from unittest.mock import patch

import networkx as nx
import pytest

from lineage_view.config import LayoutOptions
from lineage_view.core.exceptions import LayoutError
from lineage_view.core.types import Size
from lineage_view.graph.layout import (
    BARRIER_KEY,
    LayoutKey,
    build_constraint_graph,
    grid_layout,
    layout_nodes,
)
from lineage_view.graph.layout.ordering import count_crossings
from lineage_view.graph.layout.ranking import assign_ranks, make_acyclic
from tests.conftest import chain, make_edge, make_node


def positions(nodes):
    return {n.id: (n.position.x, n.position.y) for n in nodes if not n.overlay}


class TestConstraintGraph:
    def test_real_edges_have_unit_minlen(self, warehouse_graph):
        nodes, edges = warehouse_graph
        cg = build_constraint_graph(nodes, edges, LayoutOptions())
        data = cg.graph.edges[LayoutKey.data("raw_orders"), LayoutKey.data("stg_orders")]
        assert data["minlen"] == 1
        assert data["weight"] == 1

    def test_layer_chain_added_between_unconnected_layers(self):
        nodes = [
            make_node("raw", "dbt.source", label="raw"),
            make_node("mart", "dbt.model", label="fct_sales"),
        ]
        cg = build_constraint_graph(nodes, [], LayoutOptions())
        data = cg.graph.edges[LayoutKey.data("raw"), LayoutKey.data("mart")]
        assert data == {"minlen": 2, "weight": 0}

    def test_barrier_only_with_consumption_and_others(self, warehouse_graph):
        nodes, edges = warehouse_graph
        cg = build_constraint_graph(nodes, edges, LayoutOptions())
        assert cg.has_barrier
        assert cg.graph.edges[LayoutKey.data("orders"), BARRIER_KEY]["minlen"] == 0
        assert cg.graph.edges[BARRIER_KEY, LayoutKey.data("revenue_card")]["minlen"] == 1

        cards_only = [make_node("a", "metabase.card"), make_node("b", "metabase.card")]
        assert not build_constraint_graph(cards_only, [], LayoutOptions()).has_barrier

    def test_synthetic_keys_cannot_collide_with_node_ids(self):
        nodes = [make_node("consumption", "dbt.source"), make_node("card", "metabase.card")]
        cg = build_constraint_graph(nodes, [], LayoutOptions())
        assert LayoutKey.data("consumption") in cg.graph
        assert BARRIER_KEY in cg.graph
        assert LayoutKey.data("consumption") != BARRIER_KEY


class TestRanking:
    def test_cycle_is_broken(self):
        graph = nx.DiGraph()
        a, b, c = (LayoutKey.data(x) for x in "abc")
        for u, v in [(a, b), (b, c), (c, a)]:
            graph.add_edge(u, v, minlen=1, weight=1)
        order = {a: 0, b: 1, c: 2}

        dag, reversed_edges = make_acyclic(graph, order)
        assert nx.is_directed_acyclic_graph(dag)
        assert len(reversed_edges) == 1

    def test_minlen_respected(self):
        graph = nx.DiGraph()
        a, b = LayoutKey.data("a"), LayoutKey.data("b")
        graph.add_node(a, width=1.0, height=1.0)
        graph.add_node(b, width=1.0, height=1.0)
        graph.add_edge(a, b, minlen=2, weight=0)

        _, ranks = assign_ranks(graph, {a: 0, b: 1})
        assert ranks[b] - ranks[a] >= 2
        assert min(ranks.values()) == 0


class TestLayoutNodes:
    def test_deterministic(self, warehouse_graph):
        nodes, edges = warehouse_graph
        first = layout_nodes(nodes, edges)
        second = layout_nodes(nodes, edges)
        assert positions(first) == positions(second)

    def test_flow_reads_left_to_right(self, warehouse_graph):
        nodes, edges = warehouse_graph
        pos = positions(layout_nodes(nodes, edges))
        xs = [pos[i][0] for i in ("raw_orders", "stg_orders", "orders", "fct_revenue", "revenue_card")]
        assert xs == sorted(xs)
        assert len(set(xs)) == len(xs)

    def test_consumption_after_everything_else(self):
        """A card fed only by a source still lands right of the marts."""
        nodes = [
            make_node("raw", "dbt.source", label="raw"),
            make_node("stg", "dbt.model", label="stg_a"),
            make_node("mart", "dbt.model", label="fct_a"),
            make_node("card", "metabase.card"),
        ]
        edges = [make_edge("raw", "stg"), make_edge("stg", "mart"), make_edge("raw", "card")]
        pos = positions(layout_nodes(nodes, edges))
        assert pos["card"][0] > max(pos[i][0] for i in ("raw", "stg", "mart"))

    def test_top_left_from_center(self):
        """A lone node is centered on its own half-extent, so top-left is the origin."""
        node = make_node("solo", "warehouse.table")
        laid = layout_nodes([node], [])
        assert positions(laid)["solo"] == (0.0, 0.0)

    def test_measured_size_used(self):
        nodes = [
            make_node("a", "warehouse.table", measured=Size(width=300, height=40)),
            make_node("b", "warehouse.table", measured=Size(width=100, height=40)),
        ]
        pos = positions(layout_nodes(nodes, [make_edge("a", "b")]))
        # b starts after a's full measured width plus the rank separation
        assert pos["b"][0] == pytest.approx(300 + LayoutOptions().rank_separation)

    def test_siblings_do_not_overlap(self):
        nodes = [make_node("root", "warehouse.table")] + [make_node(f"t{i}", "warehouse.table") for i in range(4)]
        edges = [make_edge("root", f"t{i}") for i in range(4)]
        options = LayoutOptions()
        pos = positions(layout_nodes(nodes, edges, options))

        ys = sorted(pos[f"t{i}"][1] for i in range(4))
        for upper, lower in zip(ys, ys[1:]):
            assert lower - upper >= options.default_height + options.node_separation - 1e-6

    @pytest.mark.parametrize("rankdir,axis,increasing", [
        ("LR", 0, True),
        ("RL", 0, False),
        ("TB", 1, True),
        ("BT", 1, False),
    ])
    def test_rankdir(self, rankdir, axis, increasing):
        nodes = [make_node(i, "warehouse.table") for i in "abc"]
        pos = positions(layout_nodes(nodes, chain("a", "b", "c"), LayoutOptions(rankdir=rankdir)))
        values = [pos[i][axis] for i in "abc"]
        assert values == sorted(values, reverse=not increasing)

    def test_overlays_pass_through_first(self, warehouse_graph, zone_node):
        nodes, edges = warehouse_graph
        zone = zone_node.with_position(-999, -999)
        laid = layout_nodes(nodes + [zone], edges)
        assert laid[0] == zone
        assert [n.id for n in laid[1:]] == [n.id for n in nodes]

    def test_empty_input(self, zone_node):
        assert layout_nodes([], []) == []
        assert layout_nodes([zone_node], []) == [zone_node]

    def test_cyclic_input_still_positions_everything(self):
        nodes = [make_node(i, "warehouse.table") for i in "abc"]
        edges = chain("a", "b", "c") + [make_edge("c", "a")]
        assert set(positions(layout_nodes(nodes, edges))) == {"a", "b", "c"}

    def test_edges_to_unknown_nodes_ignored(self):
        nodes = [make_node("a", "warehouse.table")]
        laid = layout_nodes(nodes, [make_edge("a", "ghost")])
        assert [n.id for n in laid] == ["a"]

    def test_internal_failure_raises_layout_error(self, warehouse_graph):
        nodes, edges = warehouse_graph
        with patch(
            "lineage_view.graph.layout.engine.assign_ranks",
            side_effect=nx.NetworkXUnfeasible("cycle"),
        ):
            with pytest.raises(LayoutError):
                layout_nodes(nodes, edges)


class TestCrossings:
    def test_crossing_free_result_for_parallel_chains(self):
        from lineage_view.graph.layout.ordering import build_ranked_graph, minimize_crossings

        nodes = [make_node(i, "warehouse.table") for i in ("a1", "a2", "b1", "b2")]
        edges = [make_edge("a1", "b2"), make_edge("a2", "b1")]
        cg = build_constraint_graph(nodes, edges, LayoutOptions())
        dag, ranks = assign_ranks(cg.graph, cg.order)
        ranked = build_ranked_graph(dag, ranks)
        layers = minimize_crossings(ranked, cg.order)
        assert count_crossings(layers, ranked.graph) == 0


class TestGridLayout:
    def test_square_grid(self):
        nodes = [make_node(str(i), "warehouse.table") for i in range(5)]
        options = LayoutOptions()
        pos = positions(grid_layout(nodes, options))
        step_x = options.default_width + options.node_separation
        step_y = options.default_height + options.node_separation
        # five nodes -> three columns
        assert pos["0"] == (0.0, 0.0)
        assert pos["2"] == (2 * step_x, 0.0)
        assert pos["3"] == (0.0, step_y)
