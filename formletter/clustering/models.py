"""Clustering models."""

from collections import Counter
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set

from pydantic import BaseModel, Field, PrivateAttr

from ..features import FeatureSet
from ..ingestion.models import Comment


class ClusterMember(BaseModel):
    """A comment together with the similarity that admitted it to its cluster."""

    comment: Comment = Field(..., description="Member comment")
    similarity: float = Field(1.0, description="Score that caused admission (1.0 for anchors)", ge=0.0, le=1.0)


class ClusterDraft:
    """
    A cluster while the online pass is still running.

    The anchor is the first member's feature set. It is copied once at creation
    and exposed read-only: later members are compared against it but never
    merged into it.
    """

    def __init__(self, cluster_id: int, anchor: Comment, anchor_features: FeatureSet) -> None:
        """Create a cluster with its first member as anchor."""
        self.cluster_id = cluster_id
        self._anchor_features = MappingProxyType(dict(anchor_features))
        self.members: List[ClusterMember] = [ClusterMember(comment=anchor, similarity=1.0)]

    def __repr__(self) -> str:
        return f"ClusterDraft(cluster_id={self.cluster_id}, size={self.size})"

    @property
    def anchor_features(self) -> Mapping[str, int]:
        """Features every membership decision for this cluster is made against."""
        return self._anchor_features

    @property
    def anchor(self) -> Comment:
        """The comment that founded the cluster."""
        return self.members[0].comment

    @property
    def size(self) -> int:
        return len(self.members)

    def add(self, comment: Comment, similarity: float) -> None:
        """Append a member; the anchor is left untouched."""
        self.members.append(ClusterMember(comment=comment, similarity=similarity))


class FinalCluster(BaseModel):
    """A cluster after disaggregation, with its display representative chosen."""

    cluster_index: int = Field(..., description="Run-scoped sequential index")
    members: List[ClusterMember] = Field(..., description="Members in assignment order")
    anchor_id: str = Field(..., description="Comment whose features were used for matching")
    representative_id: str = Field(..., description="Member with the longest content")

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> List[str]:
        return [m.comment.id for m in self.members]


class ClusteringSummary(BaseModel):
    """Totals describing one completed clustering pass."""

    total_comments: int = Field(..., description="Comments given to the engine", ge=0)
    total_clusters: int = Field(..., description="Clusters after disaggregation", ge=0)
    representative_count: int = Field(..., description="One per cluster", ge=0)
    duplicates_filtered: int = Field(..., description="total_comments - total_clusters", ge=0)
    largest_cluster_size: int = Field(0, description="Size of the largest cluster", ge=0)
    similarity_threshold: float = Field(..., description="Threshold used", ge=0.0, le=1.0)
    min_cluster_size: int = Field(..., description="Minimum cluster size used", ge=1)
    cluster_method: str = Field(..., description="Clustering method name")
    completed_at: Optional[datetime] = Field(None, description="When the pass completed")

    @property
    def reduction_percent(self) -> float:
        """Share of comments that need no separate analysis."""
        if self.total_comments == 0:
            return 0.0
        return self.duplicates_filtered / self.total_comments * 100


class ClusteringResult(BaseModel):
    """Partition of a comment set into clusters with one representative each."""

    cluster_method: str = Field(..., description="Clustering method name")
    similarity_threshold: float = Field(..., description="Threshold used", ge=0.0, le=1.0)
    min_cluster_size: int = Field(..., description="Minimum cluster size used", ge=1)
    total_comments: int = Field(..., description="Comments given to the engine", ge=0)
    clusters: List[FinalCluster] = Field(default_factory=list, description="Final clusters")
    disaggregated_clusters: int = Field(0, description="Multi-member clusters split into singletons", ge=0)

    _by_comment: Optional[Dict[str, FinalCluster]] = PrivateAttr(None)

    def _lookup(self) -> Dict[str, FinalCluster]:
        if self._by_comment is None:
            self._by_comment = {
                member.comment.id: cluster
                for cluster in self.clusters
                for member in cluster.members
            }
        return self._by_comment

    @property
    def representative_ids(self) -> Set[str]:
        """Ids that should go through per-comment analysis."""
        return {cluster.representative_id for cluster in self.clusters}

    @property
    def largest_cluster_size(self) -> int:
        return max((cluster.size for cluster in self.clusters), default=0)

    def cluster_of(self, comment_id: str) -> FinalCluster:
        """Cluster containing a comment."""
        try:
            return self._lookup()[comment_id]
        except KeyError:
            raise KeyError(f"Comment {comment_id} is not part of this clustering result")

    def cluster_size_of(self, comment_id: str) -> int:
        """Weight multiplier for a comment in downstream counts."""
        return self.cluster_of(comment_id).size

    def is_representative(self, comment_id: str) -> bool:
        return self.cluster_of(comment_id).representative_id == comment_id

    def size_distribution(self) -> Dict[int, int]:
        """Mapping of cluster size to number of clusters of that size."""
        return dict(Counter(cluster.size for cluster in self.clusters))

    def summary(self, completed_at: Optional[datetime] = None) -> ClusteringSummary:
        """Build the run summary for this result."""
        total_clusters = len(self.clusters)
        return ClusteringSummary(
            total_comments=self.total_comments,
            total_clusters=total_clusters,
            representative_count=total_clusters,
            duplicates_filtered=self.total_comments - total_clusters,
            largest_cluster_size=self.largest_cluster_size,
            similarity_threshold=self.similarity_threshold,
            min_cluster_size=self.min_cluster_size,
            cluster_method=self.cluster_method,
            completed_at=completed_at,
        )
