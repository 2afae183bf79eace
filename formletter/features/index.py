"""Inverted index from features to the clusters whose anchor contains them."""

from typing import Dict, Iterable, Set


class InvertedIndex:
    """Map each feature to the ids of clusters whose anchor holds it."""

    def __init__(self) -> None:
        """Initialize an empty index."""
        self._postings: Dict[str, Set[int]] = {}
        self._cluster_ids: Set[int] = set()

    def __len__(self) -> int:
        """Number of distinct indexed features."""
        return len(self._postings)

    @property
    def cluster_count(self) -> int:
        """Number of clusters registered in the index."""
        return len(self._cluster_ids)

    def add(self, cluster_id: int, features: Iterable[str]) -> None:
        """Register a new cluster's anchor features."""
        if cluster_id in self._cluster_ids:
            raise ValueError(f"Cluster {cluster_id} is already indexed")
        self._cluster_ids.add(cluster_id)
        for feature in features:
            self._postings.setdefault(feature, set()).add(cluster_id)

    def candidates(self, features: Iterable[str]) -> Dict[int, int]:
        """
        Tally shared features per cluster.

        Args:
            features: Distinct feature keys of the query (a FeatureSet works)

        Returns:
            Mapping of cluster id to the number of query features its anchor shares
        """
        counts: Dict[int, int] = {}
        for feature in features:
            for cluster_id in self._postings.get(feature, ()):
                counts[cluster_id] = counts.get(cluster_id, 0) + 1
        return counts
