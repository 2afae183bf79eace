"""Set similarity over feature keys."""

from typing import Mapping


def jaccard(a: Mapping[str, int], b: Mapping[str, int]) -> float:
    """
    Jaccard similarity of the key sets of two feature maps.

    Counts are ignored. Two empty feature sets carry no signal and score 0.0.
    """
    if len(a) > len(b):
        a, b = b, a

    intersection = sum(1 for key in a if key in b)
    union = len(a) + len(b) - intersection
    if union == 0:
        return 0.0
    return intersection / union


def upper_bound(shared: int, size_a: int, size_b: int) -> float:
    """Cheap similarity estimate from a shared-feature count, used for pruning."""
    largest = max(size_a, size_b)
    if largest == 0:
        return 0.0
    return shared / largest
