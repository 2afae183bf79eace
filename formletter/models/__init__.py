"""Database models for formletter."""

from .cluster import ClusterMembership, CommentCluster
from .run import ClusteringRun

__all__ = ["ClusterMembership", "ClusteringRun", "CommentCluster"]
