"""Commands that read or reset stored clustering state."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..clustering import print_clustering_summary
from ..db import ClusterStore, get_connection
from .cluster import load_cli_config

console = Console()


def stats_command(
    document_id: str = typer.Argument(..., help="Document ID"),
    top: int = typer.Option(5, "--top", help="Number of largest clusters to list"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Show the stored clustering run for a document."""
    try:
        config = load_cli_config(config_path)
        store = ClusterStore()
        with get_connection(config.get_db_config()) as conn:
            summary = store.get_statistics(conn, document_id)
            clusters = store.get_clusters(conn, document_id) if summary else []
            distribution = store.get_size_distribution(conn, document_id) if summary else {}
    except FileNotFoundError as e:
        console.print(f"[red]{e}. Run 'formletter init' first.[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Could not read clustering state: {e}[/red]")
        raise typer.Exit(1)

    if summary is None:
        console.print(f"[yellow]No clustering run found for {document_id}.[/yellow]")
        raise typer.Exit(1)

    print_clustering_summary(summary)

    if distribution:
        sizes = Table(title="Cluster size distribution")
        sizes.add_column("Size", style="cyan", justify="right")
        sizes.add_column("Clusters", style="green", justify="right")
        for size, count in sorted(distribution.items(), reverse=True):
            sizes.add_row(str(size), str(count))
        console.print(sizes)

    if not clusters:
        return

    table = Table(title=f"Largest clusters ({document_id})")
    table.add_column("Cluster", style="cyan", justify="right")
    table.add_column("Size", style="green", justify="right")
    table.add_column("Representative", style="yellow")

    for cluster in clusters[:top]:
        table.add_row(str(cluster.cluster_index), str(cluster.cluster_size), cluster.representative_comment_id)

    console.print(table)


def clear_command(
    document_id: str = typer.Argument(..., help="Document ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Delete the stored clustering state of a document."""
    if not yes:
        typer.confirm(f"Delete clustering data for {document_id}?", abort=True)

    try:
        config = load_cli_config(config_path)
        with get_connection(config.get_db_config()) as conn:
            removed = ClusterStore().clear(conn, document_id)
    except FileNotFoundError as e:
        console.print(f"[red]{e}. Run 'formletter init' first.[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Could not clear clustering state: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Removed {removed} clusters for {document_id}[/green]")
