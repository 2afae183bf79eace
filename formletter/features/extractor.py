"""Lexical feature extraction from comment text."""

import re
from typing import Dict, List

FeatureSet = Dict[str, int]

FEATURE_TYPES = ("words", "word-ngrams", "both")

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def tokenize(text: str) -> List[str]:
    """
    Normalize text and split it into tokens.

    Lowercases, turns punctuation into whitespace, collapses whitespace and
    drops single-character tokens.
    """
    normalized = _PUNCTUATION.sub(" ", text.lower())
    normalized = _WHITESPACE.sub(" ", normalized).strip()
    if not normalized:
        return []
    return [token for token in normalized.split(" ") if len(token) > 1]


def extract_features(
    text: str,
    feature_type: str = "word-ngrams",
    min_ngram: int = 3,
    max_ngram: int = 5,
) -> FeatureSet:
    """
    Build the feature multiset for a piece of text.

    Args:
        text: Comment content
        feature_type: ``words`` (unigrams longer than two characters),
            ``word-ngrams`` (contiguous word windows) or ``both``
        min_ngram: Smallest n-gram size
        max_ngram: Largest n-gram size

    Returns:
        Mapping of feature key to occurrence count. Unigrams are keyed
        ``w:<word>`` and n-grams ``n<n>:<gram>`` so the two never collide.
    """
    if feature_type not in FEATURE_TYPES:
        raise ValueError(f"Unknown feature type: {feature_type} (expected one of {', '.join(FEATURE_TYPES)})")
    if min_ngram < 1:
        raise ValueError(f"min_ngram must be >= 1, got {min_ngram}")
    if max_ngram < min_ngram:
        raise ValueError(f"max_ngram ({max_ngram}) must be >= min_ngram ({min_ngram})")

    features: FeatureSet = {}
    words = tokenize(text)

    if feature_type in ("words", "both"):
        for word in words:
            if len(word) > 2:
                key = f"w:{word}"
                features[key] = features.get(key, 0) + 1

    if feature_type in ("word-ngrams", "both"):
        for n in range(min_ngram, min(max_ngram, len(words)) + 1):
            for i in range(len(words) - n + 1):
                key = f"n{n}:" + " ".join(words[i:i + n])
                features[key] = features.get(key, 0) + 1

    return features


class FeatureExtractor:
    """Feature extractor bound to one set of run parameters."""

    def __init__(
        self,
        feature_type: str = "word-ngrams",
        min_ngram: int = 3,
        max_ngram: int = 5,
    ) -> None:
        """Initialize and validate the extractor parameters."""
        # Fail on bad parameters before any comment is processed
        extract_features("", feature_type, min_ngram, max_ngram)
        self.feature_type = feature_type
        self.min_ngram = min_ngram
        self.max_ngram = max_ngram

    def extract(self, text: str) -> FeatureSet:
        """Extract features from text."""
        return extract_features(text, self.feature_type, self.min_ngram, self.max_ngram)
