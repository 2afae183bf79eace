"""Near-duplicate clustering of comments."""

from .disaggregation import build_final_clusters, disaggregate_small_clusters, select_representative
from .engine import ClusteringEngine, cluster_comments, print_clustering_summary
from .models import ClusterDraft, ClusterMember, ClusteringResult, ClusteringSummary, FinalCluster
from .strategies import (
    STRATEGIES,
    ClusteringStrategy,
    ExactTextStrategy,
    NgramJaccardStrategy,
    PairwiseJaccardStrategy,
    get_strategy,
)

__all__ = [
    "ClusterDraft",
    "ClusterMember",
    "ClusteringEngine",
    "ClusteringResult",
    "ClusteringStrategy",
    "ClusteringSummary",
    "ExactTextStrategy",
    "FinalCluster",
    "NgramJaccardStrategy",
    "PairwiseJaccardStrategy",
    "STRATEGIES",
    "build_final_clusters",
    "cluster_comments",
    "disaggregate_small_clusters",
    "get_strategy",
    "print_clustering_summary",
    "select_representative",
]
