"""Clustering engine: strategy pass, disaggregation, representative selection."""

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..config import ClusteringSettings
from ..ingestion.models import Comment
from .disaggregation import build_final_clusters, disaggregate_small_clusters
from .models import ClusteringResult, ClusteringSummary
from .strategies import ClusteringStrategy, get_strategy

console = Console()


class ClusteringEngine:
    """Run one clustering pass over a comment set."""

    def __init__(self, settings: Optional[ClusteringSettings] = None, verbose: bool = False) -> None:
        """
        Initialize the engine.

        Args:
            settings: Clustering parameters (defaults when omitted)
            verbose: Print progress during the pass
        """
        self.settings = settings or ClusteringSettings()
        self.verbose = verbose
        self.strategy: ClusteringStrategy = get_strategy(self.settings, verbose=verbose)

    @property
    def min_cluster_size(self) -> int:
        """Minimum cluster size actually applied by the chosen strategy."""
        if not self.strategy.disaggregates:
            return 1
        return self.settings.min_cluster_size

    def run(self, comments: Sequence[Comment]) -> ClusteringResult:
        """
        Cluster comments and choose one representative per cluster.

        Args:
            comments: Comments in processing order, ids unique

        Returns:
            The final partition
        """
        seen = set()
        for comment in comments:
            if comment.id in seen:
                raise ValueError(f"Duplicate comment id: {comment.id}")
            seen.add(comment.id)

        drafts = self.strategy.cluster(comments)
        if self.verbose:
            console.print(f"[dim]   Created {len(drafts)} clusters[/dim]")

        groups, dissolved = disaggregate_small_clusters(drafts, self.min_cluster_size)
        if self.verbose and dissolved:
            console.print(f"[dim]   Disaggregated {dissolved} small clusters[/dim]")

        return ClusteringResult(
            cluster_method=self.strategy.name,
            similarity_threshold=self.strategy.threshold,
            min_cluster_size=self.min_cluster_size,
            total_comments=len(comments),
            clusters=build_final_clusters(groups),
            disaggregated_clusters=dissolved,
        )


def cluster_comments(
    comments: Sequence[Comment],
    settings: Optional[ClusteringSettings] = None,
    verbose: bool = False,
) -> ClusteringResult:
    """Cluster comments with the given settings."""
    return ClusteringEngine(settings, verbose=verbose).run(comments)


def print_clustering_summary(summary: ClusteringSummary, result: Optional[ClusteringResult] = None) -> None:
    """Print clustering summary."""
    console.print(f"\n[bold]Clustering Summary:[/bold]")
    console.print(f"  Method: {summary.cluster_method} (threshold {summary.similarity_threshold}, "
                  f"min cluster size {summary.min_cluster_size})")
    console.print(f"  Total comments: {summary.total_comments}")
    console.print(f"  Unique clusters: {summary.total_clusters}")
    console.print(f"  Representatives: {summary.representative_count}")
    console.print(
        f"  Duplicates filtered: {summary.duplicates_filtered} "
        f"({summary.reduction_percent:.1f}% reduction)"
    )
    console.print(f"  Largest cluster: {summary.largest_cluster_size} comments")
    if summary.completed_at:
        console.print(f"  Completed: {summary.completed_at}")

    if result is None or not result.clusters:
        return

    if result.disaggregated_clusters:
        console.print(f"  Small clusters disaggregated: {result.disaggregated_clusters}")

    table = Table(title="Cluster size distribution")
    table.add_column("Size", style="cyan", justify="right")
    table.add_column("Clusters", style="green", justify="right")
    table.add_column("Comments", style="yellow", justify="right")

    distribution = sorted(result.size_distribution().items(), reverse=True)
    for size, count in distribution[:5]:
        table.add_row(str(size), str(count), str(size * count))

    console.print(table)
