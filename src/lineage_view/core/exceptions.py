"""
Exception hierarchy for lineage-view.

Malformed backend data never raises; it degrades to defaults inside the
pipeline. The exceptions below cover the conditions that do abort an
operation: fetch failures, layout failures and missing CLI inputs.
"""


class LineageViewError(Exception):
    """Base class for all lineage-view errors."""


class FetchError(LineageViewError):
    """A backend request failed (network, HTTP status or payload)."""

    def __init__(self, url: str, reason: str, status: int | None = None):
        self.url = url
        self.reason = reason
        self.status = status
        if status is not None:
            message = f"Lineage API error: {status} {reason}"
        else:
            message = f"Lineage API error: {reason}"
        super().__init__(message)


class LayoutError(LineageViewError):
    """The layered layout could not be computed for the given graph."""


class GraphNotFoundError(LineageViewError):
    """A lineage graph file could not be found or read."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Graph file not found: {path}")
