"""Clustering pipeline orchestration."""

from .orchestrator import ClusteringOrchestrator, PipelineStage

__all__ = ["ClusteringOrchestrator", "PipelineStage"]
