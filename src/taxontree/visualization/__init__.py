"""
Visualization module for taxontree.

Provides the SVG treeview renderer, the depth-based color assigner and the
rasterize/autocrop helpers.
"""

from taxontree.visualization.colors import (
    LevelColorState,
    assign_level_color,
    node_stroke_color,
)
from taxontree.visualization.raster import autocrop, rasterize_markup, rescale_markup
from taxontree.visualization.treeview import TreeviewRenderer

__all__ = [
    "LevelColorState",
    "TreeviewRenderer",
    "assign_level_color",
    "autocrop",
    "node_stroke_color",
    "rasterize_markup",
    "rescale_markup",
]
