"""
Impact Styling.

Turns an impact analysis result into per-node treatment: the root gets a
fixed border, impacted nodes a border keyed by risk level, and everything
else is optionally dimmed or hidden.
"""

from typing import Dict, List, Optional, Sequence

from ..config import (
    DIMMED_OPACITY,
    RISK_BORDER_COLORS,
    RISK_BORDER_WIDTH,
    ROOT_BORDER_COLOR,
    ROOT_BORDER_WIDTH,
)
from ..core.types import ImpactResult, NodeStyle, RiskLevel, VisualNode

RISK_ORDER: List[RiskLevel] = [
    RiskLevel.CRITICAL,
    RiskLevel.HIGH,
    RiskLevel.MEDIUM,
    RiskLevel.LOW,
]

ROOT_STYLE = NodeStyle(opacity=1.0, border_color=ROOT_BORDER_COLOR, border_width=ROOT_BORDER_WIDTH)
CLEAR_STYLE = NodeStyle()


def risk_style(level: RiskLevel) -> NodeStyle:
    return NodeStyle(opacity=1.0, border_color=RISK_BORDER_COLORS[level], border_width=RISK_BORDER_WIDTH)


def risk_index(impact: ImpactResult) -> Dict[str, RiskLevel]:
    """
    Node id -> risk level.

    A node listed more than once keeps its most severe level.
    """
    levels: Dict[str, RiskLevel] = {}
    for impacted in impact.impacted_nodes:
        current = levels.get(impacted.node_id)
        if current is None or RISK_ORDER.index(impacted.risk_level) < RISK_ORDER.index(current):
            levels[impacted.node_id] = impacted.risk_level
    return levels


def _restyle(node: VisualNode, style: NodeStyle, hidden: bool) -> VisualNode:
    if node.style == style and node.visibility.hidden_by_impact == hidden:
        return node
    return node.with_style(style).with_visibility(hidden_by_impact=hidden)


def apply_impact_style(
    nodes: Sequence[VisualNode],
    impact: Optional[ImpactResult],
    dim_unaffected: bool = True,
    hide_unaffected: bool = False,
) -> List[VisualNode]:
    """
    Apply (or clear, when ``impact`` is None) impact treatment to every node.

    The root is always visible at full opacity with the root border,
    whatever the dim/hide flags say. Overlay nodes pass through.
    """
    if impact is None:
        return [n if n.overlay else _restyle(n, CLEAR_STYLE, False) for n in nodes]

    levels = risk_index(impact)
    styled: List[VisualNode] = []
    for node in nodes:
        if node.overlay:
            styled.append(node)
        elif node.id == impact.root_node_id:
            styled.append(_restyle(node, ROOT_STYLE, False))
        elif node.id in levels:
            styled.append(_restyle(node, risk_style(levels[node.id]), False))
        elif hide_unaffected:
            styled.append(_restyle(node, CLEAR_STYLE, True))
        elif dim_unaffected:
            styled.append(_restyle(node, NodeStyle(opacity=DIMMED_OPACITY), False))
        else:
            styled.append(_restyle(node, CLEAR_STYLE, False))
    return styled


def summarize(impact: ImpactResult) -> Dict[RiskLevel, int]:
    """Impacted node counts per risk level, most severe first."""
    counts = {level: 0 for level in RISK_ORDER}
    for level in risk_index(impact).values():
        counts[level] += 1
    return counts
