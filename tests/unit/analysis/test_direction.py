"""Unit tests for the direction filter."""

import pytest

from lineage_view.core.types import Direction, Visibility
from lineage_view.analysis.direction import apply_direction_filter, filter_by_direction
from tests.conftest import chain, make_node


@pytest.fixture
def abcd():
    nodes = [make_node(i, "warehouse.table").with_position(i_x, 0) for i_x, i in enumerate("ABCD")]
    return nodes, chain("A", "B", "C", "D")


class TestFilterByDirection:
    def test_upstream(self, abcd):
        _, edges = abcd
        assert filter_by_direction(edges, "C", Direction.UPSTREAM) == {"A", "B", "C"}

    def test_downstream(self, abcd):
        _, edges = abcd
        assert filter_by_direction(edges, "B", "downstream") == {"B", "C", "D"}

    def test_both_shows_everything(self, abcd):
        _, edges = abcd
        assert filter_by_direction(edges, "C", Direction.BOTH) is None

    def test_no_root_shows_everything(self, abcd):
        _, edges = abcd
        assert filter_by_direction(edges, None, Direction.UPSTREAM) is None

    def test_root_without_edges(self):
        assert filter_by_direction([], "lonely", Direction.DOWNSTREAM) == {"lonely"}

    def test_invalid_direction_rejected(self, abcd):
        _, edges = abcd
        with pytest.raises(ValueError):
            filter_by_direction(edges, "C", "sideways")


class TestApplyDirectionFilter:
    def test_hides_unreachable_and_keeps_positions(self, abcd):
        nodes, edges = abcd
        filtered, filtered_edges = apply_direction_filter(nodes, edges, "C", Direction.UPSTREAM)

        hidden = {n.id for n in filtered if n.hidden}
        assert hidden == {"D"}
        assert [(n.position.x, n.position.y) for n in filtered] == [(n.position.x, n.position.y) for n in nodes]

        edge_hidden = {(e.source, e.target): e.hidden for e in filtered_edges}
        assert edge_hidden == {("A", "B"): False, ("B", "C"): False, ("C", "D"): True}

    def test_both_clears_previous_filter(self, abcd):
        nodes, edges = abcd
        filtered, _ = apply_direction_filter(nodes, edges, "C", Direction.UPSTREAM)
        cleared, cleared_edges = apply_direction_filter(filtered, edges, "C", Direction.BOTH)

        assert not any(n.hidden for n in cleared)
        assert not any(e.hidden for e in cleared_edges)

    def test_impact_flag_untouched(self, abcd):
        nodes, edges = abcd
        nodes = [n.with_visibility(hidden_by_impact=True) if n.id == "A" else n for n in nodes]
        filtered, _ = apply_direction_filter(nodes, edges, "C", Direction.UPSTREAM)

        by_id = {n.id: n for n in filtered}
        assert by_id["A"].visibility.tag == Visibility.HIDDEN_BY_IMPACT
        assert by_id["D"].visibility.tag == Visibility.HIDDEN_BY_DIRECTION

    def test_overlays_never_hidden(self, abcd, zone_node):
        nodes, edges = abcd
        filtered, _ = apply_direction_filter([zone_node] + nodes, edges, "D", Direction.DOWNSTREAM)
        assert not filtered[0].hidden
        assert {n.id for n in filtered if n.hidden} == {"A", "B", "C"}
