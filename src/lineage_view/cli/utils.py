"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing, logging setup and the two ways a command obtains a
lineage graph: from a JSON file on disk or from the live lineage API.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click

from ..client import LineageApiClient
from ..config import Settings
from ..core.exceptions import FetchError, GraphNotFoundError
from ..core.types import LineageGraphResponse

logger = logging.getLogger(__name__)


def echo_error(message: str) -> None:
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def load_graph_file(graph_file: str) -> LineageGraphResponse:
    """
    Load a lineage graph payload from a JSON file or a directory.

    A directory is resolved to ``lineage.json`` or ``.lineage/lineage.json``
    inside it.

    Raises:
        GraphNotFoundError: no readable graph exists at the path, or the
            file is not a JSON object. Malformed records inside an object
            are dropped.
    """
    graph_path = Path(graph_file)

    if graph_path.is_dir():
        candidates = [graph_path / "lineage.json", graph_path / ".lineage/lineage.json"]
        graph_path = next((p for p in candidates if p.exists()), candidates[0])

    if not graph_path.is_file():
        raise GraphNotFoundError(graph_file)

    try:
        data = json.loads(graph_path.read_text())
        return LineageGraphResponse.from_payload(data)
    except (OSError, ValueError) as e:
        logger.debug(f"Failed to parse {graph_path}: {e}")
        raise GraphNotFoundError(graph_file) from e


def obtain_graph(
    graph_file: Optional[str],
    settings: Settings,
    root_id: Optional[str] = None,
    direction: Optional[str] = None,
) -> LineageGraphResponse:
    """
    Graph payload from ``graph_file`` when given, else from the lineage API.

    Raises:
        GraphNotFoundError: the file is missing or unreadable.
        FetchError: the API request failed.
    """
    if graph_file:
        return load_graph_file(graph_file)

    result = LineageApiClient(settings).fetch_graph(root_id, direction)
    if result.is_err():
        error: FetchError = result.error
        raise error
    return result.unwrap()
