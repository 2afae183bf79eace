"""Feature extraction, similarity and candidate lookup."""

from .extractor import FEATURE_TYPES, FeatureExtractor, FeatureSet, extract_features, tokenize
from .index import InvertedIndex
from .similarity import jaccard, upper_bound

__all__ = [
    "FEATURE_TYPES",
    "FeatureExtractor",
    "FeatureSet",
    "InvertedIndex",
    "extract_features",
    "jaccard",
    "tokenize",
    "upper_bound",
]
