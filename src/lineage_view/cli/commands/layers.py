"""
Layers Command - Show the architecture layer of every node.
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...config import ZONE_LABELS, load_settings
from ...core.exceptions import FetchError, GraphNotFoundError
from ...graph.classifier import compute_layer_map, group_by_layer
from ...graph.transform import transform_graph
from ..utils import configure_logging, echo_error, echo_warning, obtain_graph

console = Console()


@click.command("layers")
@click.option("-g", "--graph", "graph_file", default=None,
              help="Lineage graph JSON file (omit to fetch from the API)")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Path to config YAML (default: .lineage/config.yaml)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def layers(graph_file: Optional[str], config_path: Optional[Path], as_json: bool, verbose: bool) -> None:
    """
    Classify nodes into sources, staging, marts and consumption.
    """
    configure_logging(verbose)
    settings = load_settings(config_path)

    try:
        response = obtain_graph(graph_file, settings)
    except (GraphNotFoundError, FetchError) as e:
        echo_error(str(e))
        raise SystemExit(1)

    graph = transform_graph(response)
    layer_map = compute_layer_map(graph.nodes, graph.edges)
    grouped = group_by_layer([n.id for n in graph.nodes], layer_map)

    if as_json:
        click.echo(json.dumps({layer.value: ids for layer, ids in grouped.items()}, indent=2))
        return

    if not grouped:
        echo_warning("No lineage data available.")
        return

    table = Table(title="Architecture layers")
    table.add_column("Layer", style="bold")
    table.add_column("Node", style="cyan")
    table.add_column("Type", style="dim")

    for layer, node_ids in grouped.items():
        for i, node_id in enumerate(node_ids):
            node = graph.get_node(node_id)
            table.add_row(
                ZONE_LABELS[layer] if i == 0 else "",
                node.label,
                node.backend_type or node.category.value,
            )

    console.print(table)
