"""Interchangeable strategies for the online clustering pass."""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple, Type

from rich.console import Console

from ..config import ClusteringSettings
from ..features import FeatureExtractor, FeatureSet, InvertedIndex, jaccard, upper_bound
from ..ingestion.models import Comment
from .models import ClusterDraft

console = Console()

_WHITESPACE = re.compile(r"\s+")


class ClusteringStrategy(ABC):
    """Base class for clustering strategies.

    Every strategy consumes comments in input order and returns the clusters
    it formed, each anchored on its first member.
    """

    name: str = ""
    disaggregates: bool = True
    default_feature_type: str = "word-ngrams"

    def __init__(self, settings: ClusteringSettings, verbose: bool = False) -> None:
        """
        Initialize the strategy.

        Args:
            settings: Clustering parameters
            verbose: Print progress while clustering
        """
        self.settings = settings
        self.verbose = verbose
        self.stats: Dict[str, int] = {}

    @property
    def threshold(self) -> float:
        """Similarity threshold this strategy applies."""
        return self.settings.similarity_threshold

    @property
    def feature_type(self) -> str:
        """Configured feature type, or this strategy's default when unset."""
        return self.settings.feature_type or self.default_feature_type

    def _build_extractor(self) -> FeatureExtractor:
        return FeatureExtractor(self.feature_type, self.settings.min_ngram, self.settings.max_ngram)

    @abstractmethod
    def cluster(self, comments: Sequence[Comment]) -> List[ClusterDraft]:
        """
        Partition comments into clusters.

        Args:
            comments: Comments in processing order

        Returns:
            Clusters in creation order; every comment is in exactly one
        """
        pass

    def _report_progress(self, processed: int, total: int, label: str = "Processing") -> None:
        if self.verbose and processed % self.settings.progress_every == 0:
            console.print(f"[dim]   {label}: {processed}/{total}[/dim]")


class ExactTextStrategy(ClusteringStrategy):
    """Group comments whose trimmed content is identical (case-sensitive)."""

    name = "exact"
    disaggregates = False

    @property
    def threshold(self) -> float:
        return 1.0

    def cluster(self, comments: Sequence[Comment]) -> List[ClusterDraft]:
        """Cluster by literal content equality. No features are kept."""
        by_text: Dict[str, ClusterDraft] = {}
        drafts: List[ClusterDraft] = []

        for processed, comment in enumerate(comments, 1):
            self._report_progress(processed, len(comments))
            key = comment.content.strip()
            draft = by_text.get(key)
            if draft is None:
                draft = ClusterDraft(len(drafts), comment, {})
                by_text[key] = draft
                drafts.append(draft)
            else:
                draft.add(comment, 1.0)

        self.stats = {"unique_texts": len(drafts)}
        return drafts


class NgramJaccardStrategy(ClusteringStrategy):
    """
    Single-pass greedy clustering accelerated by an inverted index.

    Each comment is compared only against clusters whose anchor shares at least
    one feature with it. Candidates whose shared-feature upper bound falls below
    ``threshold * prune_ratio`` are skipped without an exact comparison. That
    cut is a throughput heuristic, not an exact nearest-cluster guarantee; the
    exact Jaccard score decides every candidate that survives it.
    """

    name = "fast-ngram"

    def __init__(self, settings: ClusteringSettings, verbose: bool = False) -> None:
        super().__init__(settings, verbose)
        self.extractor = self._build_extractor()

    def _best_match(
        self,
        features: FeatureSet,
        drafts: List[ClusterDraft],
        index: InvertedIndex,
    ) -> Tuple[Optional[int], float]:
        """Find the most similar cluster at or above the threshold."""
        threshold = self.settings.similarity_threshold
        prune_below = threshold * self.settings.prune_ratio

        best_cluster: Optional[int] = None
        best_similarity = 0.0

        for cluster_id, shared in sorted(index.candidates(features).items()):
            anchor = drafts[cluster_id].anchor_features
            self.stats["candidates"] += 1

            if upper_bound(shared, len(features), len(anchor)) < prune_below:
                self.stats["pruned"] += 1
                continue

            self.stats["comparisons"] += 1
            similarity = jaccard(features, anchor)
            if similarity >= threshold and similarity > best_similarity:
                best_similarity = similarity
                best_cluster = cluster_id

        return best_cluster, best_similarity

    def cluster(self, comments: Sequence[Comment]) -> List[ClusterDraft]:
        """Assign each comment to its best existing cluster or start a new one."""
        self.stats = {"candidates": 0, "pruned": 0, "comparisons": 0, "empty_features": 0}
        drafts: List[ClusterDraft] = []
        index = InvertedIndex()

        for processed, comment in enumerate(comments, 1):
            self._report_progress(processed, len(comments))
            features = self.extractor.extract(comment.content)
            if not features:
                self.stats["empty_features"] += 1

            best_cluster, similarity = self._best_match(features, drafts, index)

            if best_cluster is not None:
                # Anchor and index stay as they were at cluster creation
                drafts[best_cluster].add(comment, similarity)
            else:
                draft = ClusterDraft(len(drafts), comment, features)
                drafts.append(draft)
                index.add(draft.cluster_id, draft.anchor_features)

        self.stats["indexed_features"] = len(index)
        self.stats["indexed_clusters"] = index.cluster_count
        return drafts


class PairwiseJaccardStrategy(ClusteringStrategy):
    """
    Exhaustive Jaccard comparison without an index.

    Comments are first grouped by normalized content, then each unique pattern
    joins the first cluster, in creation order, whose anchor it matches at or
    above the threshold. Later and possibly closer clusters are not consulted.
    Compares word sets by default. Quadratic in the number of unique patterns;
    meant for small dockets.
    """

    name = "jaccard"
    default_feature_type = "words"

    def __init__(self, settings: ClusteringSettings, verbose: bool = False) -> None:
        super().__init__(settings, verbose)
        self.extractor = self._build_extractor()

    @staticmethod
    def content_key(text: str) -> str:
        """Normalized content used for the exact pre-grouping."""
        return _WHITESPACE.sub(" ", text.strip().lower())

    def cluster(self, comments: Sequence[Comment]) -> List[ClusterDraft]:
        """Pre-group identical content, then cluster the unique patterns."""
        patterns: Dict[str, List[Comment]] = {}
        for comment in comments:
            patterns.setdefault(self.content_key(comment.content), []).append(comment)

        threshold = self.settings.similarity_threshold
        drafts: List[ClusterDraft] = []
        comparisons = 0

        for processed, group in enumerate(patterns.values(), 1):
            self._report_progress(processed, len(patterns), label="Clustering progress")
            features = self.extractor.extract(group[0].content)

            match: Optional[ClusterDraft] = None
            match_similarity = 0.0
            for draft in drafts:
                comparisons += 1
                similarity = jaccard(features, draft.anchor_features)
                if similarity >= threshold:
                    match, match_similarity = draft, similarity
                    break

            if match is not None:
                for comment in group:
                    match.add(comment, match_similarity)
            else:
                draft = ClusterDraft(len(drafts), group[0], features)
                for comment in group[1:]:
                    draft.add(comment, 1.0)
                drafts.append(draft)

        self.stats = {"unique_patterns": len(patterns), "comparisons": comparisons}
        return drafts


STRATEGIES: Dict[str, Type[ClusteringStrategy]] = {
    NgramJaccardStrategy.name: NgramJaccardStrategy,
    PairwiseJaccardStrategy.name: PairwiseJaccardStrategy,
    ExactTextStrategy.name: ExactTextStrategy,
}


def get_strategy(settings: ClusteringSettings, verbose: bool = False) -> ClusteringStrategy:
    """Instantiate the strategy named by ``settings.method``."""
    strategy_cls = STRATEGIES.get(settings.method)
    if strategy_cls is None:
        raise ValueError(
            f"Unknown clustering method: {settings.method} (expected one of {', '.join(STRATEGIES)})"
        )
    return strategy_cls(settings, verbose=verbose)
