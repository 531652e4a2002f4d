"""
SVG treeview rendering for normalized taxonomy trees.

Lays a tree out left to right (root on the left, one column per depth,
leaves spread evenly top to bottom) and draws it with drawsvg. Node radius
follows the node's visual weight (``count``); links and nodes take their
color from the level color assigner.

The renderer owns its traversal: nodes are visited depth-first, pre-order,
and the color assigner is called in exactly that order. Rendering is
synchronous, so the markup returned by ``render`` is final.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import drawsvg as draw

from taxontree.core.normalization import TaxonNode, children_of
from taxontree.models.config import RenderConfig
from taxontree.visualization.colors import (
    LevelColorState,
    assign_level_color,
    node_stroke_color,
)

logger = logging.getLogger(__name__)

EXPANDED_NODE_FILL = "#FFFFFF"
LINK_OPACITY = 0.5
LABEL_COLOR = "#555555"


@dataclass
class PlacedNode:
    """A visible tree node with its layout and styling."""

    node: TaxonNode
    depth: int
    parent: PlacedNode | None = None
    children: list[PlacedNode] = field(default_factory=list)
    collapsed: bool = False
    x: float = 0.0
    y: float = 0.0
    radius: float = 0.0
    color: str = ""

    @property
    def name(self) -> str:
        return str(self.node.get("name", self.node.get("id", "")))

    @property
    def weight(self) -> float:
        return float(self.node.get("count", 0.0))


class TreeviewRenderer:
    """Render a normalized taxonomy tree to SVG markup.

    Example:
        >>> renderer = TreeviewRenderer(RenderConfig(width=600, height=400))
        >>> svg = renderer.render(tree)
    """

    def __init__(self, config: RenderConfig | None = None):
        self.config = config or RenderConfig()

    def layout(self, root: TaxonNode) -> list[PlacedNode]:
        """Place every visible node.

        Returns:
            Visible nodes in depth-first pre-order, positioned, sized and
            colored.
        """
        placed = self._expand(root)
        self._place(placed)
        self._size(placed)
        self._color(placed)
        return placed

    def render(self, root: TaxonNode) -> str:
        """Draw the tree on the logical viewport and return SVG markup."""
        cfg = self.config
        placed = self.layout(root)

        d = draw.Drawing(cfg.width, cfg.height)

        links = draw.Group(fill="none", stroke_opacity=LINK_OPACITY)
        for p in placed:
            if p.parent is None:
                continue
            links.append(self._link(p.parent, p))
        d.append(links)

        nodes = draw.Group(stroke_width=1.5)
        labels = draw.Group(
            font_family="Helvetica Neue, Helvetica, Arial, sans-serif",
            fill=LABEL_COLOR,
        )
        for p in placed:
            nodes.append(self._circle(p))
            labels.append(self._label(p))
        d.append(nodes)
        d.append(labels)

        logger.info(
            "Rendered %d nodes on a %dx%d viewport", len(placed), cfg.width, cfg.height
        )
        return d.as_svg()

    # -------------------------------------------------------------------------
    # Layout passes
    # -------------------------------------------------------------------------

    def _expand(self, root: TaxonNode) -> list[PlacedNode]:
        """Collect visible nodes in pre-order, down to levels_to_expand."""
        order: list[PlacedNode] = []
        stack: list[tuple[TaxonNode, int, PlacedNode | None]] = [(root, 0, None)]
        while stack:
            node, depth, parent = stack.pop()
            current = PlacedNode(node=node, depth=depth, parent=parent)
            if parent is not None:
                parent.children.append(current)
            order.append(current)

            kids = children_of(node)
            if depth >= self.config.levels_to_expand:
                current.collapsed = bool(kids)
                continue
            for child in reversed(kids):
                stack.append((child, depth + 1, current))
        return order

    def _place(self, placed: list[PlacedNode]) -> None:
        cfg = self.config
        leaves = [p for p in placed if not p.children]
        max_depth = max(p.depth for p in placed)

        usable_width = max(cfg.width - 2 * cfg.margin - cfg.label_space, 0.0)
        column = usable_width / max_depth if max_depth else 0.0
        row = (cfg.height - 2 * cfg.margin) / len(leaves)

        for i, leaf in enumerate(leaves):
            leaf.y = cfg.margin + (i + 0.5) * row

        # Reverse pre-order visits children before their parent
        for p in reversed(placed):
            p.x = cfg.margin + p.depth * column
            if p.children:
                p.y = (p.children[0].y + p.children[-1].y) / 2

    def _size(self, placed: list[PlacedNode]) -> None:
        """Square-root scale of weight over [0, root weight]."""
        cfg = self.config
        top = placed[0].weight
        spread = cfg.max_node_size - cfg.min_node_size
        for p in placed:
            if top > 0 and math.isfinite(p.weight):
                fraction = min(max(p.weight / top, 0.0), 1.0)
            else:
                fraction = 0.0
            p.radius = cfg.min_node_size + spread * math.sqrt(fraction)

    def _color(self, placed: list[PlacedNode]) -> None:
        state = LevelColorState(palette=self.config.palette)
        for p in placed:
            if p.depth < self.config.color_provider_levels:
                p.color = assign_level_color(state, p.depth)
            else:
                p.color = p.parent.color

    # -------------------------------------------------------------------------
    # Drawing helpers
    # -------------------------------------------------------------------------

    def _link(self, source: PlacedNode, target: PlacedNode) -> draw.Path:
        mid_x = (source.x + target.x) / 2
        path = draw.Path(stroke=target.color, stroke_width=max(target.radius, 1.0))
        path.M(source.x, source.y)
        path.C(mid_x, source.y, mid_x, target.y, target.x, target.y)
        return path

    def _circle(self, p: PlacedNode) -> draw.Circle:
        circle = draw.Circle(
            p.x,
            p.y,
            p.radius,
            fill=p.color if p.collapsed else EXPANDED_NODE_FILL,
            stroke=node_stroke_color(p.node, self.config.stroke_color),
        )
        circle.append_title(self._tooltip(p.node))
        return circle

    def _label(self, p: PlacedNode) -> draw.Text:
        # Leaves are labelled to the right, internal nodes to the left
        offset = p.radius + 4
        if p.children:
            x, anchor = p.x - offset, "end"
        else:
            x, anchor = p.x + offset, "start"
        return draw.Text(
            p.name,
            self.config.font_size,
            x,
            p.y,
            text_anchor=anchor,
            dominant_baseline="middle",
        )

    @staticmethod
    def _tooltip(node: TaxonNode) -> str:
        data: dict[str, Any] = node.get("data", {})
        rank = node.get("rank")
        title = str(node.get("name", node.get("id", "")))
        if rank:
            title += f" ({rank})"
        return f"{title}: {data.get('self_count', 0)}%"
