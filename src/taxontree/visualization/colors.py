"""
Depth-aware color assignment for tree nodes.

Nodes are colored in the order a depth-first, pre-order traversal visits
them. The assigner keeps one palette index per "level run": going deeper
reuses the current color, a sibling at the deepest level seen so far takes
the current color and advances the index, and moving back up reuses the
color of the run that was active.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from taxontree.models.config import DEFAULT_PALETTE, NODE_STROKE_COLOR


@dataclass
class LevelColorState:
    """Mutable state threaded through one render traversal.

    Attributes:
        palette: Colors to cycle through.
        index: Palette index of the next color to hand out.
        run_start: Palette index recorded when the current level run started.
        previous_level: Deepest level seen so far (-1 before the first node).
    """

    palette: tuple[str, ...] = DEFAULT_PALETTE
    index: int = 0
    run_start: int = 0
    previous_level: int = -1

    def color_at(self, index: int) -> str:
        # Wide trees run past the palette; wrap around
        return self.palette[index % len(self.palette)]


def assign_level_color(state: LevelColorState, level: int) -> str:
    """Pick the color for the next node in traversal order.

    Args:
        state: Traversal state, updated in place.
        level: Depth of the node being colored (root is 0).

    Returns:
        Hex color string.
    """
    if level < state.previous_level:
        state.run_start = state.index
        return state.color_at(state.index)
    if level > state.previous_level:
        state.previous_level = level
        return state.color_at(state.index)

    color = state.color_at(state.index)
    state.index += 1
    return color


def node_stroke_color(node: Any = None, color: str = NODE_STROKE_COLOR) -> str:
    """Stroke color for a node. Not stateful: every node gets ``color``."""
    return color
