"""
Image finishing: markup rescaling, rasterization and autocropping.

The SVG is rasterized at a multiple of its logical size (supersampling) while
its viewBox stays pinned to the logical size, so layout coordinates do not
change but the raster comes out sharper.
"""

from __future__ import annotations

import io
import logging
import re

import cairosvg
import numpy as np
from PIL import Image

from taxontree.core.exceptions import RenderError

logger = logging.getLogger(__name__)

# Root size attributes; the lookbehind keeps stroke-width and friends intact
_WIDTH_ATTR = re.compile(r'(?<![\w-])width="[0-9]*%?"')
_HEIGHT_ATTR = re.compile(r'(?<![\w-])height="[0-9]*%?"')
_VIEWBOX_ATTR = re.compile(r'\s*viewBox="[^"]*"')
_SVG_TAG = re.compile(r"<svg\b")


def rescale_markup(markup: str, width: int, height: int, scaling: int) -> str:
    """Resize SVG markup for supersampled rasterization.

    Rewrites the first ``width``/``height`` attributes to
    ``scaling * width`` / ``scaling * height``, drops any existing viewBox
    and pins a new one to the logical ``0 0 width height``.

    Args:
        markup: SVG markup with the root element's attributes first.
        width: Logical viewport width.
        height: Logical viewport height.
        scaling: Supersampling factor.

    Returns:
        Rewritten markup.
    """
    rescaled = _WIDTH_ATTR.sub(f'width="{width * scaling}"', markup, count=1)
    rescaled = _HEIGHT_ATTR.sub(f'height="{height * scaling}"', rescaled, count=1)
    rescaled = _VIEWBOX_ATTR.sub("", rescaled)
    return _SVG_TAG.sub(f'<svg viewBox="0 0 {width} {height}"', rescaled, count=1)


def rasterize_markup(markup: str, max_pixels: int | None = None) -> Image.Image:
    """Rasterize SVG markup at its declared pixel size.

    Args:
        markup: Rescaled SVG markup.
        max_pixels: Expected pixel count of the raster. Pillow's
            decompression bomb limit is raised to this for the decode, since
            the PNG was produced locally from a canvas of known size.

    Raises:
        RenderError: If CairoSVG cannot draw the markup or Pillow cannot
            decode the result.
    """
    try:
        png_data = cairosvg.svg2png(bytestring=markup.encode("utf-8"))
    except Exception as e:
        raise RenderError(f"Failed to rasterize tree markup: {e}") from e

    limit = Image.MAX_IMAGE_PIXELS
    if max_pixels is not None and limit is not None and max_pixels > limit:
        Image.MAX_IMAGE_PIXELS = max_pixels
    try:
        image = Image.open(io.BytesIO(png_data))
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise RenderError(f"Failed to decode rasterized tree: {e}") from e
    finally:
        Image.MAX_IMAGE_PIXELS = limit

    logger.info("Rasterized tree to %dx%d pixels", image.width, image.height)
    return image


def content_bbox(image: Image.Image) -> tuple[int, int, int, int] | None:
    """Bounding box of pixels that differ from the top-left background pixel.

    Returns:
        ``(left, upper, right, lower)`` as used by ``Image.crop``, or None
        when the image is a single color.
    """
    pixels = np.asarray(image)
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]

    background = pixels[0, 0]
    mask = np.any(pixels != background, axis=-1)
    rows = np.flatnonzero(mask.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(mask.any(axis=0))
    return int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1


def autocrop(image: Image.Image) -> Image.Image:
    """Trim an image to its visible content.

    An image with no content is returned unchanged.
    """
    bbox = content_bbox(image)
    if bbox is None:
        logger.warning("Rendered image is blank; skipping crop")
        return image

    cropped = image.crop(bbox)
    logger.debug("Cropped %s to %s", image.size, cropped.size)
    return cropped
