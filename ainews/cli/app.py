"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .health import health_command
from .init import init_command
from .run import run_command

app = typer.Typer(
    name="ainews",
    help="Personalized news pipeline - rank, deduplicate and summarize articles",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.command("health")(health_command)


if __name__ == "__main__":
    app()
