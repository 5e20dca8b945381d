"""Command line interface for lineage-view."""
