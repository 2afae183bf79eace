"""Run metadata for clustering passes."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class ClusteringRun(DBModel):
    """Clustering run metadata, one row per completed pass."""

    document_id: str = Field(..., description="Document the run clustered")
    total_comments: int = Field(..., description="Comments clustered", ge=0)
    total_clusters: int = Field(..., description="Clusters after disaggregation", ge=0)
    representative_count: int = Field(..., description="Representatives stored", ge=0)
    duplicates_filtered: int = Field(..., description="total_comments - total_clusters", ge=0)
    similarity_threshold: float = Field(..., description="Threshold used", ge=0.0, le=1.0)
    min_cluster_size: int = Field(..., description="Minimum cluster size used", ge=1)
    cluster_method: str = Field(..., description="Clustering method name")
    status: str = Field("completed", description="Run status (pending, processing, completed, failed)")
    completed_at: Optional[datetime] = Field(None, description="When the run completed")
