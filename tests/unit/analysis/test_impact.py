"""Unit tests for impact styling."""

import itertools

import pytest

from lineage_view.config import DIMMED_OPACITY, RISK_BORDER_COLORS, ROOT_BORDER_COLOR
from lineage_view.core.types import ImpactResult, RiskLevel
from lineage_view.analysis.impact import apply_impact_style, risk_index, summarize
from tests.conftest import make_node


@pytest.fixture
def impact():
    return ImpactResult.model_validate({
        "root_node_id": "R",
        "impacted_nodes": [{"node_id": "X", "risk_level": "high"}],
        "total_affected": 1,
    })


@pytest.fixture
def nodes():
    return [make_node(i, "warehouse.table") for i in ("R", "X", "Y")]


def by_id(nodes):
    return {n.id: n for n in nodes}


class TestApplyImpactStyle:
    def test_root_impacted_and_dimmed(self, nodes, impact):
        styled = by_id(apply_impact_style(nodes, impact, dim_unaffected=True, hide_unaffected=False))

        assert styled["R"].style.opacity == 1.0
        assert styled["R"].style.border_color == ROOT_BORDER_COLOR
        assert styled["R"].style.border_width == 3

        assert styled["X"].style.opacity == 1.0
        assert styled["X"].style.border_color == RISK_BORDER_COLORS[RiskLevel.HIGH]
        assert styled["X"].style.border_width == 2

        assert styled["Y"].style.opacity == DIMMED_OPACITY
        assert styled["Y"].style.border_color is None
        assert not styled["Y"].hidden

    def test_hide_unaffected(self, nodes, impact):
        styled = by_id(apply_impact_style(nodes, impact, dim_unaffected=True, hide_unaffected=True))
        assert styled["Y"].hidden
        assert not styled["X"].hidden

    def test_no_dim(self, nodes, impact):
        styled = by_id(apply_impact_style(nodes, impact, dim_unaffected=False, hide_unaffected=False))
        assert styled["Y"].style.opacity == 1.0
        assert not styled["Y"].hidden

    @pytest.mark.parametrize("dim,hide", list(itertools.product([True, False], repeat=2)))
    def test_root_never_hidden_or_dimmed(self, nodes, impact, dim, hide):
        root = by_id(apply_impact_style(nodes, impact, dim, hide))["R"]
        assert not root.hidden
        assert root.style.opacity == 1.0

    def test_none_clears_styling(self, nodes, impact):
        styled = apply_impact_style(nodes, impact, hide_unaffected=True)
        cleared = apply_impact_style(styled, None)
        assert all(n.style.opacity == 1.0 and n.style.border_color is None for n in cleared)
        assert not any(n.hidden for n in cleared)

    def test_direction_flag_untouched(self, nodes, impact):
        nodes = [n.with_visibility(hidden_by_direction=True) if n.id == "X" else n for n in nodes]
        styled = by_id(apply_impact_style(nodes, impact))
        assert styled["X"].hidden
        assert styled["X"].visibility.hidden_by_impact is False

    def test_overlays_pass_through(self, nodes, impact, zone_node):
        styled = apply_impact_style([zone_node] + nodes, impact, hide_unaffected=True)
        assert styled[0] is zone_node


class TestRiskIndex:
    def test_most_severe_level_kept(self):
        impact = ImpactResult.model_validate({
            "root_node_id": "R",
            "impacted_nodes": [
                {"node_id": "X", "risk_level": "low"},
                {"node_id": "X", "risk_level": "critical"},
                {"node_id": "Z", "risk_level": "medium"},
            ],
        })
        assert risk_index(impact) == {"X": RiskLevel.CRITICAL, "Z": RiskLevel.MEDIUM}

        counts = summarize(impact)
        assert list(counts) == [RiskLevel.CRITICAL, RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]
        assert counts[RiskLevel.CRITICAL] == 1 and counts[RiskLevel.LOW] == 0
