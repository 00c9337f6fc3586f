#!/usr/bin/env python3
"""
Demonstration script for the cloud directory monitor.

Runs a monitor against a local cloud root, prints every delegate callback
and lets the session be paused and resumed on a timer.

Usage:
    python examples/cloud_monitoring_demo.py [--cloud-root PATH] [--duration SECONDS]
"""

import asyncio
import logging.config
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cloud_dir_monitor.config import MonitorConfig
from cloud_dir_monitor.core import IMonitorDelegate
from cloud_dir_monitor.models import CloudItem, FileType, SynchronizationFailure
from cloud_dir_monitor.monitoring import CloudDirectoryMonitor

logger = logging.getLogger(__name__)

console = Console()


class ConsoleDelegate(IMonitorDelegate):
    """Prints monitor callbacks to the console."""

    def __init__(self):
        self.callbacks = {"initial_snapshot": 0, "update": 0, "error": 0}

    def on_initial_snapshot(self, items: list[CloudItem]) -> None:
        self.callbacks["initial_snapshot"] += 1
        console.print(create_items_table("📁 Initial snapshot", items))

    def on_update(self, items: list[CloudItem]) -> None:
        self.callbacks["update"] += 1
        console.print(create_items_table("✏️  Directory updated", items))

    def on_error(self, failure: SynchronizationFailure) -> None:
        self.callbacks["error"] += 1
        kind = failure.error.value if failure.error else "unclassified"
        console.print(f"⚠️  [red]Synchronization error[/red] [bold]{kind}[/bold]: {failure.description}")


def create_items_table(title: str, items: list[CloudItem]) -> Table:
    """Create a rich table listing observed items."""
    table = Table(title=title, show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Size", style="white")
    table.add_column("Downloaded", style="dim")
    table.add_column("Modified", style="dim")

    for item in items:
        table.add_row(item.name, f"{item.size} bytes", "yes" if item.is_downloaded else "no", str(item.modified_at))

    return table


def create_status_table(status: dict) -> Table:
    """Create a rich table for monitor status."""
    table = Table(title="📊 Monitor Status", show_header=True)
    table.add_column("Metric", style="cyan", width=24)
    table.add_column("Value", style="white")

    table.add_row("State", status["state"])
    table.add_row("Container", status["container_identifier"])
    table.add_row("Directory", str(status["directory"]))
    table.add_row("Items", str(status["items"]))
    for name, value in status["event_stats"].items():
        table.add_row(name.replace("_", " ").title(), str(value))

    return table


async def demonstrate_monitor(config: MonitorConfig, duration: int, pause_after: int | None) -> None:
    delegate = ConsoleDelegate()
    monitor = CloudDirectoryMonitor.from_config(config, delegate=delegate)

    if not monitor.is_cloud_available():
        token_path = config.resolve_identity_token_path()
        console.print(f"🔑 [yellow]No identity token, signing in through {token_path}[/yellow]")
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text("demo-account", encoding="utf-8")

    try:
        await monitor.start()
    except SynchronizationFailure as e:
        console.print(f"❌ [red]Monitor failed to start:[/red] {e} ({e.description})")
        return

    console.print(
        Panel.fit(
            f"[bold yellow]Add, modify or delete *{config.file_type.extension} files in:[/bold yellow]\n"
            f"[cyan]{monitor.directory}[/cyan]",
            title="📝 How to Test",
            border_style="yellow",
        )
    )

    elapsed = 0
    while elapsed < duration:
        await asyncio.sleep(1)
        elapsed += 1

        if pause_after is not None and elapsed == pause_after:
            monitor.pause()
            console.print("⏸️  [yellow]Monitor paused for 5 seconds[/yellow]")
        if pause_after is not None and elapsed == pause_after + 5:
            monitor.resume()
            console.print("▶️  [green]Monitor resumed[/green]")

    console.print(create_status_table(monitor.get_status()))
    monitor.stop()
    console.print("✅ [bold green]Monitoring stopped[/bold green]")


@click.command()
@click.option(
    '--cloud-root',
    '-r',
    type=click.Path(path_type=Path),
    default=Path('./cloud_root'),
    help='Directory holding the container roots (created if missing)',
)
@click.option('--container', '-c', default='iCloud.app.organicmaps.debug', help='Container identifier')
@click.option(
    '--file-type',
    '-f',
    type=click.Choice([file_type.value for file_type in FileType]),
    default=FileType.KML.value,
    help='Kind of files to monitor',
)
@click.option('--duration', '-t', type=int, default=60, help='Duration to run the demo in seconds')
@click.option('--pause-after', '-p', type=int, default=None, help='Pause the monitor after this many seconds')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(cloud_root: Path, container: str, file_type: str, duration: int, pause_after: int | None, verbose: bool):
    """Run the cloud directory monitor demonstration."""
    config = MonitorConfig(
        cloud_root=cloud_root,
        container_identifier=container,
        file_type=FileType(file_type),
        debug_mode=verbose,
    )
    logging.config.dictConfig(config.get_log_config())

    try:
        asyncio.run(demonstrate_monitor(config, duration, pause_after))
    except KeyboardInterrupt:
        console.print("\n⚡ [yellow]Demo interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"❌ [red]Demo failed:[/red] {e}")
        logger.exception("Full error details:")
        return 1

    return 0


if __name__ == '__main__':
    exit(main())
