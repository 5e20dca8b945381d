"""
Source-system links.

Builds the "open in source system" URL for a node from its canonical key,
backend type and props. A node without a usable key simply has no link.
"""

import re
from typing import Optional

from .config import Settings
from .core.types import VisualNode

_TRAILING_NUMBER = re.compile(r"(\d+)$")
_SLUG_UNSAFE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_UNSAFE.sub("-", name.lower()).strip("-")


def parse_metabase_key(canonical_key: Optional[str]) -> Optional[str]:
    """Extract the numeric id from a key like ``metabase:card:5``."""
    if not canonical_key or not isinstance(canonical_key, str):
        return None
    parts = canonical_key.split(":")
    if len(parts) >= 3 and parts[0] == "metabase" and parts[2].isdigit():
        return parts[2]
    return None


def build_source_url(node: VisualNode, settings: Optional[Settings] = None) -> Optional[str]:
    """
    URL of the node in its source system, or None when there is none.

    Never raises on malformed keys or props.
    """
    settings = settings or Settings()

    if node.backend_type in ("metabase.card", "metabase.dashboard"):
        numeric_id = parse_metabase_key(node.canonical_key)
        if numeric_id is None:
            match = _TRAILING_NUMBER.search(node.id)
            numeric_id = match.group(1) if match else None
        if numeric_id is None:
            return None

        name = node.props.get("name") if node.props else None
        slug = f"{numeric_id}-{slugify(name)}" if isinstance(name, str) and slugify(name) else numeric_id
        kind = "dashboard" if node.backend_type == "metabase.dashboard" else "question"
        return f"{settings.metabase_url.rstrip('/')}/{kind}/{slug}"

    if node.backend_type in ("dbt.model", "dbt.source"):
        if not settings.dbt_docs_url:
            return None
        unique_id = node.props.get("unique_id") if node.props else None
        if not isinstance(unique_id, str) or not unique_id:
            unique_id = node.id
        return f"{settings.dbt_docs_url.rstrip('/')}/#!/model/{unique_id}"

    return None
