"""
End-to-end rendering pipeline.

probability file -> ProbabilityTable -> taxa2tree -> normalized tree ->
SVG treeview -> rescaled markup -> raster -> autocrop -> PNG + SVG files.

Every step runs in sequence on the calling thread. Nothing is written until
the last image is ready, so a failure at any step leaves no output files.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from PIL import Image

from taxontree.clients.unipept import UnipeptClient
from taxontree.core.io_utils import OutputPaths, write_render_outputs
from taxontree.core.normalization import TaxonNode, normalize_tree
from taxontree.core.probabilities import ProbabilityTable, load_probabilities
from taxontree.models.config import RenderConfig
from taxontree.visualization.raster import autocrop, rasterize_markup, rescale_markup
from taxontree.visualization.treeview import TreeviewRenderer

logger = logging.getLogger(__name__)

Step = Callable[[str], AbstractContextManager[Any]]


def _no_progress(description: str) -> AbstractContextManager[None]:
    return nullcontext()


class TreeBuilder(Protocol):
    """Anything that turns per-taxon counts into a taxonomy tree."""

    def taxa2tree(self, counts: dict[str, int]) -> dict[str, Any]: ...


@dataclass(frozen=True)
class RenderResult:
    """Summary of a finished render.

    Attributes:
        table: Probabilities the tree was built from.
        tree: Normalized taxonomy tree.
        outputs: Paths of the PNG and SVG files.
        png_size: Cropped raster size in pixels.
        svg_size: Rescaled canvas size in pixels.
    """

    table: ProbabilityTable
    tree: TaxonNode
    outputs: OutputPaths
    png_size: tuple[int, int]
    svg_size: tuple[int, int]


def render_tree_images(
    tree: TaxonNode,
    config: RenderConfig,
) -> tuple[Image.Image, str]:
    """Render a normalized tree to a cropped raster and rescaled markup.

    Returns:
        ``(cropped_image, rescaled_markup)``.
    """
    markup = TreeviewRenderer(config).render(tree)
    rescaled = rescale_markup(markup, config.width, config.height, config.scaling)
    image = rasterize_markup(
        rescaled, max_pixels=config.scaled_width * config.scaled_height
    )
    return autocrop(image), rescaled


def render_table(
    table: ProbabilityTable,
    output: Path | str,
    config: RenderConfig | None = None,
    *,
    client: TreeBuilder,
    tree_json: Path | None = None,
    step: Step | None = None,
) -> RenderResult:
    """
    Build, normalize, draw and write the tree for a loaded table.

    Args:
        table: Parsed probabilities.
        output: Output path without extension.
        config: Render configuration; defaults to RenderConfig().
        client: Tree builder, left open.
        tree_json: Optional path for the normalized tree as JSON, written
            together with the images.
        step: Called with a description around the service call and the
            rendering; returns a context manager (e.g. a progress spinner).

    Returns:
        RenderResult describing the written files.
    """
    config = config or RenderConfig()
    step = step or _no_progress

    with step("Building taxonomy tree..."):
        tree = client.taxa2tree(table.to_counts())

    logger.info(
        "Normalizing tree with min=%d, max=%d", table.minimum, table.maximum
    )
    normalize_tree(tree, table)

    with step(f"Rendering {config.scaled_width}x{config.scaled_height} image..."):
        image, markup = render_tree_images(tree, config)

    extra_files = None
    if tree_json is not None:
        extra_files = {tree_json: json.dumps(tree, indent=2)}
    outputs = write_render_outputs(image, markup, output, extra_files)

    return RenderResult(
        table=table,
        tree=tree,
        outputs=outputs,
        png_size=image.size,
        svg_size=(config.scaled_width, config.scaled_height),
    )


def render_probability_tree(
    probabilities: Path,
    output: Path | str,
    config: RenderConfig | None = None,
    *,
    client: TreeBuilder | None = None,
    tree_json: Path | None = None,
    step: Step | None = None,
) -> RenderResult:
    """
    Render the taxonomy tree for a probability file.

    Args:
        probabilities: ``taxonId,probability`` file.
        output: Output path without extension.
        config: Render configuration; defaults to RenderConfig().
        client: Tree builder. Defaults to a UnipeptClient, which is closed
            when the call returns.
        tree_json: Optional path for the normalized tree as JSON.
        step: Progress hook, see render_table.

    Returns:
        RenderResult describing the written files.

    Raises:
        TaxonTreeError: For unreadable or empty input, service failures,
            rendering failures and unwritable outputs.
    """
    config = config or RenderConfig()
    table = load_probabilities(probabilities)

    if client is not None:
        return render_table(
            table, output, config, client=client, tree_json=tree_json, step=step
        )
    with UnipeptClient(config.service) as unipept:
        return render_table(
            table, output, config, client=unipept, tree_json=tree_json, step=step
        )
