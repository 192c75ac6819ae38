from __future__ import annotations

from rich.console import Console
from rich.table import Table

from devtidy.models.cleanup import CleanupSummary
from devtidy.models.item import Item
from devtidy.models.scan import ScanSnapshot
from devtidy.services.formatting import format_bytes, relative_to


def inventory_table(items: list[Item], root: str, title: str = "Cleanable Items") -> Table:
    table = Table(title=title, header_style="bold yellow")
    table.add_column("Path")
    table.add_column("Category")
    table.add_column("Size", justify="right")
    for item in items:
        table.add_row(relative_to(item.path, root), item.category, format_bytes(item.size_bytes))

    table.add_section()
    total = sum(item.size_bytes for item in items)
    table.add_row(f"[bold]{len(items):,}[/bold] items", "", f"[bold]{format_bytes(total)}[/bold]")
    return table


def render_inventory(console: Console, snapshot: ScanSnapshot) -> None:
    stats = snapshot.stats
    if stats.access_errors:
        console.print(f"[red]{stats.access_errors:,} access errors during scan[/red]")
    if not snapshot.items:
        console.print("[#b5bd68]Nothing to clean.[/]")
    else:
        console.print(inventory_table(snapshot.items, snapshot.root))
    console.print(
        f"[#969896]Scan time: {snapshot.duration_seconds:.2f}s | {stats.directories:,} directories visited[/]"
    )


def render_cleanup_summary(console: Console, summary: CleanupSummary) -> None:
    console.print(f"[bold #b5bd68]Cleaned: {format_bytes(summary.cleaned_bytes)}[/]")
    for failure in summary.failed:
        console.print(f"[red]Failed: {failure.path}: {failure.message}[/red]")
    if summary.cancelled:
        console.print("[yellow]Cleanup cancelled before all items were processed.[/yellow]")
