"""
lineage-view CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import click

from .commands import layers, layout


@click.group()
@click.version_option(package_name="lineage-view")
def main():
    """lineage-view: layered lineage graph layout.

    Prepares lineage graphs from the lineage API for display: column
    folding, architecture layers, layered layout and overlays.

    \b
    Quick Start:
      lineage-view layers --graph lineage.json
      lineage-view layout --graph lineage.json --zones
      lineage-view layout --root dbt:model.orders --direction upstream
    """
    pass


# Register commands
main.add_command(layout.layout)
main.add_command(layers.layers)

if __name__ == "__main__":
    main()
