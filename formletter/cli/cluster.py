"""Cluster command implementation."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from ..clustering import ClusteringEngine, print_clustering_summary
from ..config import ClusteringSettings, Config, ConfigModel
from ..db import CommentLoader, get_connection, validate_connection
from ..ingestion import Comment, read_comments_file
from ..pipeline import ClusteringOrchestrator

console = Console()


def load_cli_config(config_path: Optional[Path], allow_defaults: bool = False) -> Config:
    """Load configuration, falling back to defaults when allowed and no file exists."""
    config = Config(config_path)
    if allow_defaults and not config.config_path.exists():
        return Config(config.config_path, config_model=ConfigModel())
    return config


def build_settings(base: ClusteringSettings, overrides: Dict[str, Any]) -> ClusteringSettings:
    """Apply command line overrides to configured settings, validating the result."""
    values = base.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ClusteringSettings(**values)


def cluster_command(
    document_id: str = typer.Argument(..., help="Document ID (e.g., CMS-2025-0050-0031)"),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold",
        "--similarity-threshold",
        "-t",
        help="Similarity threshold (default from config: 0.8)",
    ),
    min_cluster_size: Optional[int] = typer.Option(
        None,
        "--min-cluster-size",
        help="Minimum cluster size; smaller clusters are split (default: 4)",
    ),
    method: Optional[str] = typer.Option(
        None,
        "--method",
        "-m",
        help="Clustering method: fast-ngram, jaccard or exact",
    ),
    feature_type: Optional[str] = typer.Option(
        None,
        "--feature-type",
        help="Feature type: words, word-ngrams or both (default: word-ngrams for fast-ngram, words for jaccard)",
    ),
    min_ngram: Optional[int] = typer.Option(None, "--min-ngram", "--ngram-size", help="Smallest word n-gram (default: 3)"),
    max_ngram: Optional[int] = typer.Option(None, "--max-ngram", help="Largest word n-gram (default: 5)"),
    force: bool = typer.Option(False, "--force", help="Recalculate clusters even if they already exist"),
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="Read comments from a .jsonl or .csv file instead of the database",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Cluster and report without storing anything"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print clustering progress"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Cluster a document's comments and store cluster membership."""
    try:
        config = load_cli_config(config_path, allow_defaults=dry_run)
        settings = build_settings(
            config.config.clustering,
            {
                "similarity_threshold": threshold,
                "min_cluster_size": min_cluster_size,
                "method": method,
                "feature_type": feature_type,
                "min_ngram": min_ngram,
                "max_ngram": max_ngram,
            },
        )
    except FileNotFoundError as e:
        console.print(f"[red]{e}. Run 'formletter init' first.[/red]")
        raise typer.Exit(1)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid clustering settings: {e}[/red]")
        raise typer.Exit(2)

    comments: Optional[List[Comment]] = None
    if input_path is not None:
        try:
            comments = read_comments_file(input_path, document_id=document_id)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    if dry_run:
        _dry_run(config, settings, document_id, comments, verbose)
        return

    try:
        console.print("[dim]Checking database connection...[/dim]")
        if not validate_connection(config.get_db_config()):
            console.print("[red]❌ Database connection failed![/red]")
            console.print("Please check your database configuration and ensure Postgres is running.")
            raise typer.Exit(1)

        orchestrator = ClusteringOrchestrator(config, settings, verbose=verbose)
        orchestrator.run(document_id, force=force, comments=comments)

    except KeyboardInterrupt:
        console.print("\n[yellow]Clustering interrupted by user[/yellow]")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Clustering failed: {e}[/red]")
        raise typer.Exit(1)


def _dry_run(
    config: Config,
    settings: ClusteringSettings,
    document_id: str,
    comments: Optional[List[Comment]],
    verbose: bool,
) -> None:
    """Cluster without touching stored clustering state."""
    if comments is None:
        try:
            with get_connection(config.get_db_config()) as conn:
                comments = CommentLoader().load_comments(conn, document_id)
        except Exception as e:
            console.print(f"[red]Could not load comments for {document_id}: {e}[/red]")
            raise typer.Exit(1)

    console.print(f"🔍 Dry run for document {document_id} ({len(comments)} comments)")
    result = ClusteringEngine(settings, verbose=verbose).run(comments)
    print_clustering_summary(result.summary(), result)
