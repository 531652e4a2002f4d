"""
Tree normalization for taxonomy trees returned by taxa2tree.

Two post-order passes over the JSON tree:

1. Subtree max propagation: every node's ``data.self_count`` becomes the
   largest raw score found anywhere in its subtree (itself included).
2. Weight rescaling: every node gets ``self_count`` and ``count`` keys set to
   ``(data.self_count - minimum) / maximum``. Both keys are written because
   the renderer reads ``count`` while ``self_count`` mirrors the widget format.

The rescale is not clamped: values below the dataset minimum
go negative and nothing is capped at 1.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from taxontree.core.exceptions import DegenerateProbabilityRangeError
from taxontree.core.probabilities import ProbabilityTable

logger = logging.getLogger(__name__)

TaxonNode = dict[str, Any]


def children_of(node: TaxonNode) -> list[TaxonNode]:
    """Child list of a node; leaves may omit the key or hold None."""
    return node.get("children") or []


def raw_score(node: TaxonNode) -> float:
    """The node's ``data.self_count``, 0 when absent."""
    return node.setdefault("data", {}).get("self_count", 0)


def iter_postorder(root: TaxonNode) -> Iterator[TaxonNode]:
    """Yield nodes children-first without recursion."""
    stack: list[tuple[TaxonNode, bool]] = [(root, False)]
    while stack:
        node, visited = stack.pop()
        if visited:
            yield node
            continue
        stack.append((node, True))
        for child in reversed(children_of(node)):
            stack.append((child, False))


def iter_preorder(root: TaxonNode) -> Iterator[tuple[TaxonNode, int]]:
    """Yield ``(node, depth)`` pairs depth-first, parents before children."""
    stack: list[tuple[TaxonNode, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(children_of(node)):
            stack.append((child, depth + 1))


def propagate_subtree_max(root: TaxonNode) -> TaxonNode:
    """Rewrite each ``data.self_count`` to the maximum of its subtree.

    Children are visited before their parent, so a parent compares against
    values that already hold their own subtree maxima.

    Args:
        root: Tree root, mutated in place.

    Returns:
        The same root, for chaining.
    """
    for node in iter_postorder(root):
        best = raw_score(node)
        for child in children_of(node):
            best = max(best, child["data"]["self_count"])
        node["data"]["self_count"] = best
    return root


def rescale_weights(root: TaxonNode, minimum: float, maximum: float) -> TaxonNode:
    """Map each node's subtree maximum into a visual weight.

    Sets ``node["self_count"]`` and ``node["count"]`` to
    ``(data.self_count - minimum) / maximum``.

    Args:
        root: Tree root, already processed by propagate_subtree_max.
        minimum: Smallest probability in the dataset.
        maximum: Largest probability in the dataset.

    Raises:
        DegenerateProbabilityRangeError: If maximum is not positive.
    """
    if maximum <= 0:
        raise DegenerateProbabilityRangeError(int(minimum), int(maximum))

    for node in iter_postorder(root):
        weight = (raw_score(node) - minimum) / maximum
        node["self_count"] = weight
        node["count"] = weight
    return root


def normalize_tree(root: TaxonNode, table: ProbabilityTable) -> TaxonNode:
    """Run both normalization passes using the table's min and max."""
    if table.maximum <= 0:
        raise DegenerateProbabilityRangeError(table.minimum, table.maximum)

    propagate_subtree_max(root)
    rescale_weights(root, table.minimum, table.maximum)
    logger.debug(
        "Normalized tree: root weight %.4f (min=%d, max=%d)",
        root["count"],
        table.minimum,
        table.maximum,
    )
    return root
