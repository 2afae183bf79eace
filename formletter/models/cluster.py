"""Cluster models for grouping near-duplicate comments."""

from pydantic import Field

from .base import DBModel


class CommentCluster(DBModel):
    """Persisted comment cluster."""

    document_id: str = Field(..., description="Document the clustering run belongs to")
    cluster_index: int = Field(..., description="Run-scoped sequential index")
    representative_comment_id: str = Field(..., description="Member with the longest content")
    cluster_size: int = Field(..., description="Number of member comments", ge=1)
    similarity_threshold: float = Field(..., description="Threshold used for the run", ge=0.0, le=1.0)
    cluster_method: str = Field(..., description="Clustering method name")


class ClusterMembership(DBModel):
    """Cluster membership of one comment."""

    document_id: str = Field(..., description="Document the clustering run belongs to")
    comment_id: str = Field(..., description="Member comment id")
    cluster_id: int = Field(..., description="Foreign key to comment_clusters table")
    is_representative: bool = Field(False, description="Whether this comment represents its cluster")
    similarity_score: float = Field(1.0, description="Score that admitted the comment", ge=0.0, le=1.0)
