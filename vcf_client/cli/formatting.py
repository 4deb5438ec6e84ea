"""
Formatting utilities for the vcf-client CLI.

Command results are printed as JSON by default; the instance listing can
also be rendered as a rich table for people reading a terminal.
"""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table


def instances_table(listing: Dict[str, List[Dict[str, Any]]]) -> Table:
    """Build a table with one row per configured instance."""
    table = Table(title="Configured instances")
    table.add_column("Family", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Default", justify="center")
    table.add_column("Related instances")

    for family, entries in listing.items():
        for index, entry in enumerate(entries):
            table.add_row(
                family,
                entry["name"],
                "yes" if index == 0 else "",
                ", ".join(entry.get("relatedInstanceNames", [])),
            )
    return table


def print_instances(
    listing: Dict[str, List[Dict[str, Any]]], console: Optional[Console] = None
) -> None:
    """Render the instance listing to the console."""
    console = console or Console()
    console.print(instances_table(listing))
