"""
Unit tests for markup rescaling, rasterization and autocropping.
"""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from PIL import Image

from taxontree.core.exceptions import RenderError
from taxontree.visualization.raster import (
    autocrop,
    content_bbox,
    rasterize_markup,
    rescale_markup,
)

SIMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="40" height="30" viewBox="0 0 20 15">'
    '<rect x="5" y="5" width="5" height="4" fill="#D62728"/>'
    "</svg>"
)


class TestRescaleMarkup:
    """Tests for the width/height/viewBox rewrite."""

    def test_reference_rewrite(self) -> None:
        """Percent width, plain height and an old viewBox are all replaced."""
        markup = '<svg width="100%" height="50" viewBox="0 0 10 10"><g></g></svg>'

        result = rescale_markup(markup, 3000, 6000, 3)

        assert 'width="9000"' in result
        assert 'height="18000"' in result
        assert 'viewBox="0 0 3000 6000"' in result
        assert "0 0 10 10" not in result
        assert result.count("viewBox") == 1

    def test_viewbox_added_when_missing(self) -> None:
        """Markup without a viewBox gets one on the svg tag."""
        result = rescale_markup('<svg width="10" height="20"></svg>', 10, 20, 2)

        assert result.startswith('<svg viewBox="0 0 10 20"')
        assert 'width="20"' in result
        assert 'height="40"' in result

    def test_only_first_size_attributes_rewritten(self) -> None:
        """Child element sizes are left alone."""
        result = rescale_markup(SIMPLE_SVG, 20, 15, 4)

        assert 'width="80"' in result
        assert 'height="60"' in result
        assert '<rect x="5" y="5" width="5" height="4"' in result

    def test_stroke_width_not_mistaken_for_width(self) -> None:
        """Hyphenated attributes ending in width are not the root width."""
        markup = '<svg stroke-width="3" width="10" height="10"></svg>'

        result = rescale_markup(markup, 10, 10, 3)

        assert 'stroke-width="3"' in result
        assert 'width="30"' in result

    def test_xml_declaration_preserved(self) -> None:
        """The viewBox goes on the svg element, not the XML declaration."""
        markup = '<?xml version="1.0" encoding="UTF-8"?>\n<svg width="10" height="10"></svg>'

        result = rescale_markup(markup, 10, 10, 1)

        assert result.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<svg viewBox=')


class TestContentBbox:
    """Tests for background detection."""

    def test_transparent_background(self) -> None:
        """Content on a transparent canvas is found."""
        image = Image.new("RGBA", (50, 40), (0, 0, 0, 0))
        image.paste((255, 0, 0, 255), (10, 5, 20, 15))

        assert content_bbox(image) == (10, 5, 20, 15)

    def test_white_background(self) -> None:
        """The top-left pixel defines the background color."""
        image = Image.new("RGB", (30, 30), "white")
        image.paste((0, 0, 0), (5, 5, 8, 9))

        assert content_bbox(image) == (5, 5, 8, 9)

    def test_grayscale(self) -> None:
        """Single-band images are supported."""
        image = Image.new("L", (10, 10), 0)
        image.putpixel((7, 2), 255)

        assert content_bbox(image) == (7, 2, 8, 3)

    def test_blank_image(self) -> None:
        """A single-color image has no content."""
        assert content_bbox(Image.new("RGBA", (5, 5))) is None


class TestAutocrop:
    """Tests for cropping to content."""

    def test_crops_to_content(self) -> None:
        """Cropped image is the content bounding box."""
        image = Image.new("RGBA", (50, 40), (0, 0, 0, 0))
        image.paste((255, 0, 0, 255), (10, 5, 20, 15))

        cropped = autocrop(image)

        assert cropped.size == (10, 10)
        assert cropped.getpixel((0, 0)) == (255, 0, 0, 255)

    def test_blank_image_unchanged(self) -> None:
        """Nothing to crop returns the original size."""
        image = Image.new("RGBA", (5, 7))

        assert autocrop(image).size == (5, 7)

    def test_never_grows(self) -> None:
        """Cropping preserves or reduces both dimensions."""
        image = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
        image.paste((0, 0, 255, 255), (0, 0, 20, 20))
        image.putpixel((0, 0), (0, 0, 0, 0))

        cropped = autocrop(image)

        assert cropped.width <= 20
        assert cropped.height <= 20


@pytest.mark.raster
class TestRasterizeMarkup:
    """Tests for CairoSVG rasterization."""

    def test_pixel_size_from_attributes(self) -> None:
        """The raster takes the markup's width and height."""
        image = rasterize_markup(rescale_markup(SIMPLE_SVG, 20, 15, 4))

        assert image.size == (80, 60)

    def test_viewbox_scales_content(self) -> None:
        """Content is drawn in logical units and scaled up."""
        image = rasterize_markup(rescale_markup(SIMPLE_SVG, 20, 15, 4))

        # rect spans x 5-10, y 5-9 in logical units
        assert content_bbox(image) == (20, 20, 40, 36)

    def test_invalid_markup(self) -> None:
        """Unparseable markup raises RenderError."""
        with pytest.raises(RenderError) as exc_info:
            rasterize_markup("<svg width='10'")

        assert "rasterize" in str(exc_info.value)


def _png_bytes(size: tuple[int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, (255, 255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestRasterDecode:
    """Tests for decoding the CairoSVG output with Pillow."""

    def test_oversized_raster_raises_render_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Pillow's size guard surfaces as RenderError."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with patch(
            "taxontree.visualization.raster.cairosvg.svg2png",
            return_value=_png_bytes((64, 64)),
        ):
            with pytest.raises(RenderError, match="decode"):
                rasterize_markup(SIMPLE_SVG)

    def test_expected_size_lifts_limit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A raster of the expected size decodes and the limit is restored."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with patch(
            "taxontree.visualization.raster.cairosvg.svg2png",
            return_value=_png_bytes((64, 64)),
        ):
            image = rasterize_markup(SIMPLE_SVG, max_pixels=64 * 64)

        assert image.size == (64, 64)
        assert Image.MAX_IMAGE_PIXELS == 1000

    def test_garbage_output_raises_render_error(self) -> None:
        """Bytes that are not a PNG raise RenderError."""
        with patch(
            "taxontree.visualization.raster.cairosvg.svg2png",
            return_value=b"not a png",
        ):
            with pytest.raises(RenderError):
                rasterize_markup(SIMPLE_SVG)
