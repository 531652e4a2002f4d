"""
Core algorithms for probability trees.

Contains the probability table loader and the two-pass tree normalization
(subtree max propagation and weight rescaling).
"""

from taxontree.core.normalization import (
    normalize_tree,
    propagate_subtree_max,
    rescale_weights,
)
from taxontree.core.probabilities import (
    ProbabilityTable,
    load_probabilities,
    parse_probabilities,
)

__all__ = [
    "ProbabilityTable",
    "load_probabilities",
    "normalize_tree",
    "parse_probabilities",
    "propagate_subtree_max",
    "rescale_weights",
]
