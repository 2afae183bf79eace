"""Configuration models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

ClusterMethod = Literal["fast-ngram", "jaccard", "exact"]
FeatureType = Literal["words", "word-ngrams", "both"]


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("formletter", description="Database name")
    user: str = Field("formletter_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class ClusteringSettings(BaseModel):
    """Parameters for one clustering pass."""

    method: ClusterMethod = Field("fast-ngram", description="Clustering method (fast-ngram, jaccard, exact)")
    similarity_threshold: float = Field(0.8, description="Minimum Jaccard similarity to join a cluster", ge=0.0, le=1.0)
    min_cluster_size: int = Field(4, description="Clusters smaller than this are split into singletons", ge=1)
    feature_type: Optional[FeatureType] = Field(
        None,
        description="Feature type (words, word-ngrams, both); unset uses the method's default",
    )
    min_ngram: int = Field(3, description="Smallest word n-gram size", ge=1)
    max_ngram: int = Field(5, description="Largest word n-gram size", ge=1)
    prune_ratio: float = Field(
        0.5,
        description="Candidates whose upper bound falls below threshold * prune_ratio are skipped",
        ge=0.0,
        le=1.0,
    )
    progress_every: int = Field(500, description="Print progress every N comments when verbose", ge=1)

    @field_validator("max_ngram")
    @classmethod
    def validate_ngram_range(cls, v: int, info) -> int:
        """Validate that the n-gram range is not inverted."""
        min_ngram = info.data.get("min_ngram", 3)
        if v < min_ngram:
            raise ValueError(f"max_ngram ({v}) must be >= min_ngram ({min_ngram})")
        return v


class ConfigModel(BaseModel):
    """Main configuration model."""

    workspace_root: str = Field("~/formletter", description="Root directory for run artifacts")
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
