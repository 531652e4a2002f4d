"""
taxontree: render per-taxon probabilities as a taxonomy tree image.

Loads a ``taxonId,probability`` table, builds the lineage tree with the
Unipept taxa2tree service, propagates each subtree's highest probability up
the tree and draws it with node size following probability and color
following depth.
"""

__version__ = "0.1.0"
__author__ = "taxontree Team"

from taxontree.core.probabilities import ProbabilityTable, load_probabilities
from taxontree.models.config import RenderConfig
from taxontree.pipeline import RenderResult, render_probability_tree

__all__ = [
    "ProbabilityTable",
    "RenderConfig",
    "RenderResult",
    "__version__",
    "load_probabilities",
    "render_probability_tree",
]
