"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .cluster import cluster_command
from .init import init_command
from .stats import clear_command, stats_command

app = typer.Typer(
    name="formletter",
    help="Cluster near-duplicate docket comments before per-comment analysis",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("cluster")(cluster_command)
app.command("stats")(stats_command)
app.command("clear")(clear_command)


if __name__ == "__main__":
    app()
