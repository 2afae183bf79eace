"""Pipeline orchestrator for one clustering pass over a document."""

import json
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pendulum
from psycopg import Connection
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..clustering import ClusteringEngine, ClusteringResult, ClusteringSummary, print_clustering_summary
from ..config import ClusteringSettings, Config
from ..db import ClusterStore, CommentLoader, get_connection
from ..ingestion.models import Comment

console = Console()


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.skipped = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True
        if stats:
            self.stats.update(stats)

    def skip(self):
        """Mark stage as not needed for this run."""
        self.skipped = True
        self.success = True

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


class ClusteringOrchestrator:
    """Check, load, cluster and store the comments of one document."""

    def __init__(
        self,
        config: Config,
        settings: Optional[ClusteringSettings] = None,
        verbose: bool = False,
    ):
        """
        Initialize the orchestrator.

        Invalid settings raise here, before any comment is loaded.
        """
        self.config = config
        self.settings = settings or config.config.clustering
        self.engine = ClusteringEngine(self.settings, verbose=verbose)
        self.store = ClusterStore()
        self.loader = CommentLoader()
        self.stages = [
            PipelineStage("status", "Checking for an existing clustering run"),
            PipelineStage("load", "Loading comments"),
            PipelineStage("cluster", "Clustering comments"),
            PipelineStage("store", "Storing clusters"),
        ]
        self.result: Optional[ClusteringResult] = None
        self.summary: Optional[ClusteringSummary] = None
        self.skipped = False
        self.total_start_time: Optional[float] = None

    def _save_stage_stats(self, run_dir: Path, document_id: str):
        """Save pipeline stage statistics."""
        stats = {
            "pipeline": {
                "document_id": document_id,
                "total_duration": time.time() - self.total_start_time if self.total_start_time else 0,
                "completed_at": pendulum.now("UTC").isoformat(),
                "skipped": self.skipped,
                "settings": self.settings.model_dump(),
            },
            "stages": {},
        }

        for stage in self.stages:
            stats["stages"][stage.name] = {
                "duration": stage.duration,
                "success": stage.success,
                "skipped": stage.skipped,
                "error": stage.error,
                "stats": stage.stats,
            }

        stats_file = run_dir / "clustering_stats.json"
        with open(stats_file, "w") as f:
            json.dump(stats, f, indent=2, default=str)

    def _print_summary(self, document_id: str):
        """Print pipeline execution summary."""
        table = Table(title="Pipeline Summary")
        table.add_column("Stage", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Duration", style="yellow")
        table.add_column("Details", style="dim")

        for stage in self.stages:
            if stage.skipped:
                status = "[yellow]-[/yellow]"
            else:
                status = "[green]✓[/green]" if stage.success else "[red]✗[/red]"
            duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"

            details = ""
            if stage.skipped:
                details = "skipped"
            elif stage.success and stage.stats:
                if stage.name == "status":
                    details = "existing run found" if stage.stats.get("existing") else "no existing run"
                elif stage.name == "load":
                    details = f"{stage.stats.get('comments', 0)} comments"
                elif stage.name == "cluster":
                    details = (
                        f"{stage.stats.get('clusters', 0)} clusters, "
                        f"{stage.stats.get('disaggregated', 0)} disaggregated"
                    )
                elif stage.name == "store":
                    details = f"run {stage.stats.get('run_id')}"
            elif not stage.success:
                details = stage.error or "Not run"

            table.add_row(stage.name.title(), status, duration, details)

        console.print("\n")
        console.print(table)

        if self.summary is not None:
            print_clustering_summary(self.summary, self.result)

        if self.skipped:
            console.print(Panel(
                f"[yellow]Clustering already exists for {document_id}[/yellow]\n"
                f"Use --force to recalculate.",
                style="yellow",
            ))
        elif all(stage.success for stage in self.stages):
            console.print(Panel(
                f"[green]✅ Clustering completed for {document_id}[/green]",
                style="green",
            ))
        else:
            failed_stages = [s.name for s in self.stages if not s.success]
            console.print(Panel(
                f"[red]❌ Clustering failed![/red]\n\n"
                f"Failed stages: {', '.join(failed_stages)}",
                style="red",
            ))

    def run(
        self,
        document_id: str,
        force: bool = False,
        comments: Optional[Sequence[Comment]] = None,
    ) -> ClusteringSummary:
        """
        Run the clustering pipeline on a pooled connection.

        Returns:
            Summary of the stored (new or pre-existing) clustering run
        """
        self.total_start_time = time.time()

        console.print(Panel.fit(
            f"Comment clustering • {document_id}\n"
            f"Method: {self.settings.method} • Threshold: {self.settings.similarity_threshold} • "
            f"Min cluster size: {self.settings.min_cluster_size}",
            style="bold blue",
        ))

        run_dir = self.config.get_run_dir(document_id)

        try:
            with get_connection(self.config.get_db_config()) as conn:
                return self.execute(conn, document_id, force=force, comments=comments)
        finally:
            self._save_stage_stats(run_dir, document_id)
            self._print_summary(document_id)

    def execute(
        self,
        conn: Connection,
        document_id: str,
        force: bool = False,
        comments: Optional[Sequence[Comment]] = None,
    ) -> ClusteringSummary:
        """
        Execute the pipeline stages on a given connection.

        Args:
            conn: Database connection
            document_id: Run scope
            force: Recluster even when a completed run exists
            comments: Comments to cluster; loaded from the comments table when omitted

        Returns:
            Summary of the stored clustering run
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:

            # Stage 1: Existing run
            stage = self.stages[0]
            task = progress.add_task(stage.description, total=1)
            stage.start()

            try:
                existing = self.store.get_completed_run(conn, document_id)
                stage.complete({"existing": existing is not None, "force": force})
                progress.advance(task, 1)
            except Exception as e:
                stage.fail(str(e))
                raise

            if existing is not None and not force:
                self.skipped = True
                for later in self.stages[1:]:
                    later.skip()
                self.summary = self.store.get_statistics(conn, document_id)
                return self.summary

            # Stage 2: Load comments
            stage = self.stages[1]
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()

            try:
                if comments is None:
                    loaded: List[Comment] = self.loader.load_comments(conn, document_id)
                else:
                    loaded = list(comments)
                stage.complete({"comments": len(loaded)})
                progress.advance(task, 1)
            except Exception as e:
                stage.fail(str(e))
                raise

            # Stage 3: Cluster
            stage = self.stages[2]
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()

            try:
                self.result = self.engine.run(loaded)
                stage.complete({
                    "clusters": len(self.result.clusters),
                    "disaggregated": self.result.disaggregated_clusters,
                    "largest": self.result.largest_cluster_size,
                    **self.engine.strategy.stats,
                })
                progress.advance(task, 1)
            except Exception as e:
                stage.fail(str(e))
                raise

            # Stage 4: Store
            stage = self.stages[3]
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()

            try:
                run = self.store.save_result(conn, document_id, self.result)
                stage.complete({"run_id": run.id})
                progress.advance(task, 1)
            except Exception as e:
                stage.fail(str(e))
                raise

        self.summary = self.result.summary(completed_at=run.completed_at)
        return self.summary
