"""
Layout Command - Run the full view pipeline headlessly.

Transforms a lineage graph, lays it out with default node sizes, applies the
requested overlays and prints the positioned nodes.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ...analysis.impact import summarize
from ...config import load_settings
from ...core.exceptions import FetchError, GraphNotFoundError
from ...core.result import Ok
from ...core.types import Direction, ImpactResult, Size
from ...graph.classifier import compute_layer_map
from ...links import build_source_url
from ...view import LineageView, ViewStatus
from ..utils import configure_logging, echo_error, echo_warning, obtain_graph

logger = logging.getLogger(__name__)

console = Console()


def _load_impact(impact_file: str) -> ImpactResult:
    return ImpactResult.model_validate(json.loads(Path(impact_file).read_text()))


@click.command("layout")
@click.option("-g", "--graph", "graph_file", default=None,
              help="Lineage graph JSON file (omit to fetch from the API)")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Path to config YAML (default: .lineage/config.yaml)")
@click.option("--root", "root_id", default=None, help="Root node for the direction filter")
@click.option("--direction", type=click.Choice([d.value for d in Direction]), default="both",
              help="Show only what is upstream or downstream of --root")
@click.option("--rankdir", type=click.Choice(["LR", "RL", "TB", "BT"]), default=None,
              help="Layout direction")
@click.option("--impact", "impact_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Impact analysis JSON to style the graph with")
@click.option("--hide-unaffected", is_flag=True, help="Hide nodes outside the impact set")
@click.option("--no-dim", is_flag=True, help="Do not dim nodes outside the impact set")
@click.option("--zones", is_flag=True, help="Include architecture zone overlays")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def layout(
    graph_file: Optional[str],
    config_path: Optional[Path],
    root_id: Optional[str],
    direction: str,
    rankdir: Optional[str],
    impact_file: Optional[str],
    hide_unaffected: bool,
    no_dim: bool,
    zones: bool,
    as_json: bool,
    verbose: bool,
) -> None:
    """
    Lay out a lineage graph and print node positions.
    """
    configure_logging(verbose)
    settings = load_settings(config_path)
    if rankdir:
        settings.layout.rankdir = rankdir

    try:
        response = obtain_graph(graph_file, settings, root_id, direction)
    except (GraphNotFoundError, FetchError) as e:
        echo_error(str(e))
        raise SystemExit(1)

    view = LineageView(settings)
    view.resolve_fetch(view.begin_fetch(), Ok(response))
    view.set_direction(root_id, direction)
    view.set_zones(zones)
    view.set_impact_flags(dim_unaffected=not no_dim, hide_unaffected=hide_unaffected)
    if impact_file:
        try:
            view.set_impact(_load_impact(impact_file))
        except (json.JSONDecodeError, ValidationError) as e:
            echo_error(f"Invalid impact file {impact_file}: {e}")
            raise SystemExit(1)

    if view.status == ViewStatus.EMPTY:
        if as_json:
            click.echo(json.dumps({"status": view.status.value, "message": view.message, "nodes": [], "edges": []}))
        else:
            echo_warning(view.message)
        return

    # Headless surface: every node measures at the default size
    default_size = Size(width=settings.layout.default_width, height=settings.layout.default_height)
    view.mark_painted(view.generation)
    view.report_measurements(view.generation, {n.id: default_size for n in view.snapshot().nodes})

    graph = view.snapshot()

    if as_json:
        payload = graph.model_dump(mode="json")
        payload["status"] = view.status.value
        viewport = view.next_frame()
        payload["viewport"] = viewport.model_dump() if viewport else None
        click.echo(json.dumps(payload, indent=2))
        return

    layer_map = compute_layer_map(graph.data_nodes(), graph.edges)
    table = Table(title=f"Lineage layout ({settings.layout.rankdir})")
    table.add_column("Node", style="cyan")
    table.add_column("Category")
    table.add_column("Layer")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    table.add_column("Visibility")
    table.add_column("Link", style="dim")

    for node in graph.nodes:
        layer = layer_map.get(node.id)
        table.add_row(
            node.label or node.id,
            node.category.value,
            layer.value if layer else "-",
            f"{node.position.x:.0f}",
            f"{node.position.y:.0f}",
            node.visibility.tag.value,
            build_source_url(node, settings) or "",
        )

    console.print(table)
    console.print(f"[dim]{len(graph.data_nodes())} nodes, {len(graph.edges)} edges[/dim]")

    if view.impact is not None:
        counts = summarize(view.impact)
        breakdown = ", ".join(f"{level.value}: {count}" for level, count in counts.items() if count)
        console.print(f"Impact of [bold]{view.impact.root_node_id}[/bold]: {breakdown or 'nothing affected'}")
