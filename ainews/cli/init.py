"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, PipelineConfig, save_config

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "ainews",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    output_dir: Path = typer.Option(
        Path.home() / "ainews" / "runs",
        "--output-dir",
        "-o",
        help="Directory for run results",
    ),
    user_id: str = typer.Option("default", "--user", "-u", help="User the feed is personalized for"),
    interests: List[str] = typer.Option(
        [],
        "--interest",
        "-i",
        help="User interest (repeatable)",
    ),
    ai_provider: str = typer.Option("gemini", "--ai-provider", help="gemini, openai, mock or none"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Create a default configuration file."""
    console.print(Panel.fit("📰 AI News Pipeline - Initialization", style="bold blue"))

    config_path = config_dir / "config.yaml"
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path} (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)

    try:
        pipeline = PipelineConfig(user_id=user_id, user_interests=interests, ai_provider=ai_provider)
    except ValueError as e:
        console.print(f"[red]❌ Invalid settings: {e}[/red]")
        raise typer.Exit(1)

    config = ConfigModel(output_dir=str(output_dir), pipeline=pipeline)
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    output_dir.mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created output directory: {output_dir}")

    console.print(
        Panel(
            f"[green]✅ AI News Pipeline initialized![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Output: {output_dir}\n\n"
            f"Next steps:\n"
            f"1. Set AI key: [bold]export {config.gemini_api_key_env}=your_key[/bold] (optional)\n"
            f"2. Run: [bold]ainews run articles.json[/bold]",
            style="green",
        )
    )
