"""Unit tests for the rustworkx-backed lineage index."""

from lineage_view.core.graph import LineageIndex
from lineage_view.core.types import Direction
from tests.conftest import chain, make_edge, make_node


class TestLineageIndex:
    def test_edge_to_unknown_node_ignored(self):
        index = LineageIndex()
        index.add_node(make_node("A", "warehouse.table"))
        index.add_node(make_node("B", "metabase.card"))

        assert index.add_edge(make_edge("A", "B")) is True
        assert index.add_edge(make_edge("A", "ghost")) is False
        assert index.reachable("A", Direction.DOWNSTREAM) == {"A", "B"}

    def test_replacing_node_keeps_edges(self):
        index = LineageIndex.from_edges(chain("A", "B"))
        index.add_node(make_node("A", "dbt.model"))
        assert index.reachable("B", Direction.UPSTREAM) == {"A", "B"}


class TestReachability:
    def test_upstream(self):
        index = LineageIndex.from_edges(chain("A", "B", "C", "D"))
        assert index.reachable("C", Direction.UPSTREAM) == {"A", "B", "C"}

    def test_downstream(self):
        index = LineageIndex.from_edges(chain("A", "B", "C", "D"))
        assert index.reachable("B", Direction.DOWNSTREAM) == {"B", "C", "D"}
        assert index.reachable("D", Direction.DOWNSTREAM) == {"D"}

    def test_cycles_terminate(self):
        index = LineageIndex.from_edges(chain("A", "B", "C", "A"))
        assert index.reachable("A", Direction.DOWNSTREAM) == {"A", "B", "C"}

    def test_unknown_root_contains_only_root(self):
        index = LineageIndex.from_edges(chain("A", "B"))
        assert index.reachable("Z", Direction.UPSTREAM) == {"Z"}

    def test_both_returns_everything(self):
        index = LineageIndex.from_edges(chain("A", "B") + chain("X", "Y"))
        assert index.reachable("A", Direction.BOTH) == {"A", "B", "X", "Y"}
