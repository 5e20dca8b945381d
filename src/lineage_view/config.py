"""
Global Configuration and Defaults.

This module centralizes the layout defaults, overlay styling constants and
the runtime settings (backend URLs, request policy). Settings come from
``.lineage/config.yaml`` overlaid with ``LINEAGE_*`` environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .core.types import ArchitectureLayer, RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(".lineage/config.yaml")

# --- Layout ---
# Node size used when the rendering surface has not measured a node yet
DEFAULT_NODE_WIDTH = 180.0
DEFAULT_NODE_HEIGHT = 60.0

DEFAULT_NODE_SEPARATION = 60.0
DEFAULT_RANK_SEPARATION = 100.0

# Minimum rank distance between representatives of adjacent layers
LAYER_CHAIN_MINLEN = 2

# Viewport padding (fraction of the bounding box) for the post-layout fit
FIT_VIEW_PADDING = 0.15

# --- Zones ---
ZONE_PADDING = 40.0
ZONE_HEADER_HEIGHT = 24.0

ZONE_LABELS: Dict[ArchitectureLayer, str] = {
    ArchitectureLayer.SOURCES: "Sources",
    ArchitectureLayer.STAGING: "Staging",
    ArchitectureLayer.MARTS: "Marts",
    ArchitectureLayer.CONSUMPTION: "Consumption",
}

# --- Impact styling ---
DIMMED_OPACITY = 0.25

ROOT_BORDER_COLOR = "#7c3aed"
ROOT_BORDER_WIDTH = 3

RISK_BORDER_WIDTH = 2
RISK_BORDER_COLORS: Dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "#ef4444",
    RiskLevel.HIGH: "#f97316",
    RiskLevel.MEDIUM: "#eab308",
    RiskLevel.LOW: "#60a5fa",
}


class LayoutOptions(BaseModel):
    """Options for the layered layout."""
    rankdir: Literal["LR", "RL", "TB", "BT"] = "LR"
    node_separation: float = DEFAULT_NODE_SEPARATION
    rank_separation: float = DEFAULT_RANK_SEPARATION
    default_width: float = DEFAULT_NODE_WIDTH
    default_height: float = DEFAULT_NODE_HEIGHT


class Settings(BaseModel):
    """Runtime settings for the API client and source links."""
    api_url: str = "http://localhost:8000"
    metabase_url: str = "http://localhost:3001"
    dbt_docs_url: str = ""
    timeout: float = 10.0
    retries: int = 2
    max_depth: Optional[int] = None
    layout: LayoutOptions = Field(default_factory=LayoutOptions)


_ENV_OVERRIDES = {
    "LINEAGE_API_URL": "api_url",
    "LINEAGE_METABASE_URL": "metabase_url",
    "LINEAGE_DBT_DOCS_URL": "dbt_docs_url",
    "LINEAGE_TIMEOUT": "timeout",
    "LINEAGE_RETRIES": "retries",
}


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read config {config_path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {config_path}: expected a mapping")
        return {}
    return data


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from the YAML config and the environment.

    Environment variables win over the file. Invalid values fall back to
    defaults rather than failing.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    data = _read_config_file(path)

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[field_name] = value

    try:
        return Settings(**data)
    except ValidationError as e:
        logger.warning(f"Invalid lineage settings, using defaults: {e}")
        return Settings()
