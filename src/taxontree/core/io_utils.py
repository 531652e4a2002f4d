"""
I/O utilities for rendered tree images.

Writes the cropped PNG and the uncropped SVG side by side. The SVG keeps the
full canvas so vector consumers can re-crop; the PNG is ready to view.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import NamedTuple

from PIL import Image

from taxontree.core.exceptions import OutputWriteError

logger = logging.getLogger(__name__)


class OutputPaths(NamedTuple):
    """Sibling output files for one render."""

    png: Path
    svg: Path


def output_paths(output: Path | str) -> OutputPaths:
    """``<output>.png`` and ``<output>.svg``; the suffix is appended, not swapped.

    Example:
        >>> output_paths("results/tree")
        OutputPaths(png=PosixPath('results/tree.png'), svg=PosixPath('results/tree.svg'))
    """
    base = str(output)
    return OutputPaths(png=Path(base + ".png"), svg=Path(base + ".svg"))


def _staging_file(target: Path) -> Path:
    fd, name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
    )
    os.close(fd)
    return Path(name)


def write_render_outputs(
    image: Image.Image,
    markup: str,
    output: Path | str,
    extra_files: Mapping[Path, str] | None = None,
) -> OutputPaths:
    """
    Write the raster and vector images for a render.

    Every file is written to a temporary in its destination directory and
    only moved into place once all writes succeeded, so a failure leaves no
    partial output.

    Args:
        image: Cropped raster image.
        markup: Rescaled, uncropped SVG markup.
        output: Output path without extension.
        extra_files: Additional text files committed together with the
            images, as path -> content.

    Returns:
        Paths of the written PNG and SVG files.

    Raises:
        OutputWriteError: If a directory or file cannot be written.
    """
    paths = output_paths(output)
    texts: dict[Path, str] = {paths.svg: markup, **(extra_files or {})}

    staged: dict[Path, Path] = {}
    target = paths.png
    try:
        for target in (paths.png, *texts):
            target.parent.mkdir(parents=True, exist_ok=True)

        target = paths.png
        staged[target] = _staging_file(target)
        image.save(staged[target], format="PNG")

        for target, content in texts.items():
            staged[target] = _staging_file(target)
            staged[target].write_text(content, encoding="utf-8")

        for target, tmp in staged.items():
            os.replace(tmp, target)
    except OSError as e:
        raise OutputWriteError(str(target), e.strerror or str(e)) from e
    finally:
        for tmp in staged.values():
            tmp.unlink(missing_ok=True)

    logger.info("Wrote %s", ", ".join(str(p) for p in staged))
    return paths
