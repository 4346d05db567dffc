"""Run command implementation."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import pendulum
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from ..config import Config
from ..models import Article
from ..pipeline import Pipeline, print_pipeline_summary, save_pipeline_result
from ..ranking import print_ranking_summary

console = Console()


def load_articles(path: Path) -> List[Article]:
    """Load articles from a JSON list or a {"articles": [...]} object."""
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("articles", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of articles in {path}")

    return [Article(**item) for item in data]


def run_command(
    articles_file: Path = typer.Argument(..., help="JSON file with articles", exists=True, dir_okay=False),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the result JSON"),
    interests: List[str] = typer.Option([], "--interest", "-i", help="Override user interests (repeatable)"),
    top: int = typer.Option(10, "--top", help="Number of ranked stories to print"),
) -> None:
    """Run the pipeline over a file of articles."""
    try:
        config = Config(config_path)
        pipeline_config = config.get_pipeline_config()
        articles = load_articles(articles_file)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if interests:
        pipeline_config = pipeline_config.model_copy(update={"user_interests": interests})

    pipeline = Pipeline(pipeline_config)
    console.print(f"[dim]Processing {len(articles)} articles for {pipeline_config.user_id}...[/dim]")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            progress.add_task("Running pipeline", total=None)
            result = asyncio.run(pipeline.process(articles))
    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline interrupted by user[/yellow]")
        raise typer.Exit(1)

    print_pipeline_summary(result)
    print_ranking_summary(result.rankings, limit=top)

    if output is None:
        run_id = pendulum.now().format("YYYY-MM-DD_HHmmss")
        output = config.get_run_dir(run_id) / "pipeline_result.json"
    save_pipeline_result(result, output)
    console.print(f"✅ Saved result: {output}")
