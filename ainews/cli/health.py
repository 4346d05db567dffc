"""Health command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..pipeline import Pipeline

console = Console()


def health_command(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """Check that the pipeline can be constructed from the configuration."""
    config = Config(config_path)
    try:
        pipeline = Pipeline(config.get_pipeline_config())
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    health = pipeline.health_check()
    details = health["details"]

    table = Table(title=f"Pipeline Health: {health['status']}")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="bold")
    for name, ok in details["components"].items():
        table.add_row(name, "[green]✓[/green]" if ok else "[red]✗[/red]")
    table.add_row(
        f"ai ({details['ai_provider']})",
        "[green]configured[/green]" if details["ai_configured"] else "[yellow]not configured[/yellow]",
    )
    console.print(table)

    if health["status"] != "healthy":
        raise typer.Exit(1)
