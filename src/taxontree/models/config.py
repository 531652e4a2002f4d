"""
Pydantic configuration models for taxontree.

These models define the rendering constants (viewport, supersampling,
palette, node sizes) and the taxonomy service settings. Configuration can be
loaded from YAML files or overridden from CLI arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

UNIPEPT_API_BASE = "http://api.unipept.ugent.be"
TAXA2TREE_ENDPOINT = "/api/v1/taxa2tree.json"

# Categorical palette shared by the depth bands of the tree
DEFAULT_PALETTE: tuple[str, ...] = (
    "#1F77B4",  # Blue
    "#FF7F0E",  # Orange
    "#2CA02C",  # Green
    "#D62728",  # Red
    "#9467BD",  # Purple
    "#8C564B",  # Brown
    "#E377C2",  # Pink
    "#7F7F7F",  # Gray
    "#BCBD22",  # Yellow-green
    "#17BECF",  # Cyan
)

NODE_STROKE_COLOR = "#787878"

# Largest side of a cairo image surface
MAX_CANVAS_SIDE = 32767


class ServiceConfig(BaseModel):
    """Settings for the Unipept taxa2tree service."""

    base_url: str = Field(
        default=UNIPEPT_API_BASE,
        description="Base URL of the Unipept API",
    )
    endpoint: str = Field(
        default=TAXA2TREE_ENDPOINT,
        description="Path of the taxa2tree endpoint",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description=(
            "Retry attempts for transient failures (5xx, 429, connection errors). "
            "Zero keeps the single-request behaviour."
        ),
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial delay between retries in seconds",
    )
    retry_backoff: float = Field(
        default=2.0,
        ge=1.0,
        description="Exponential backoff multiplier for retries",
    )

    model_config = {"frozen": True}


class RenderConfig(BaseModel):
    """
    Configuration for rendering a normalized taxonomy tree.

    The logical viewport is the coordinate space the tree is laid out in.
    The raster is produced at ``scaling`` times that size for sharpness and
    then cropped to its content.
    """

    width: int = Field(default=3000, gt=0, description="Logical viewport width")
    height: int = Field(default=6000, gt=0, description="Logical viewport height")
    scaling: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Supersampling factor applied when rasterizing",
    )
    palette: tuple[str, ...] = Field(
        default=DEFAULT_PALETTE,
        min_length=1,
        description="Colors cycled through by the level color assigner",
    )
    stroke_color: str = Field(
        default=NODE_STROKE_COLOR,
        description="Stroke color used for every node",
    )
    min_node_size: float = Field(default=2, gt=0, description="Smallest node radius")
    max_node_size: float = Field(default=20, gt=0, description="Largest node radius")
    levels_to_expand: int = Field(
        default=30,
        ge=0,
        description="Depth down to which nodes are expanded",
    )
    color_provider_levels: int = Field(
        default=3,
        ge=1,
        description=(
            "Number of depth levels colored by the level color assigner. "
            "Deeper nodes inherit the color of their parent."
        ),
    )
    font_size: float = Field(default=14, gt=0, description="Label font size")
    margin: float = Field(default=20, ge=0, description="Blank border around the tree")
    label_space: float = Field(
        default=300,
        ge=0,
        description="Horizontal room reserved right of the deepest leaves",
    )
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    @field_validator("palette", "stroke_color")
    @classmethod
    def validate_hex_colors(cls, value: Any) -> Any:
        """Colors must be #RGB or #RRGGBB hex strings."""
        colors = (value,) if isinstance(value, str) else value
        for color in colors:
            digits = color[1:] if color.startswith("#") else ""
            if len(digits) not in (3, 6) or any(
                c not in "0123456789abcdefABCDEF" for c in digits
            ):
                msg = f"Invalid hex color: {color!r}"
                raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def validate_node_sizes(self) -> Self:
        """Node size range must not be inverted."""
        if self.min_node_size > self.max_node_size:
            msg = (
                f"min_node_size ({self.min_node_size}) must not exceed "
                f"max_node_size ({self.max_node_size})"
            )
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_canvas_size(self) -> Self:
        """The supersampled canvas must fit a cairo surface."""
        if max(self.scaled_width, self.scaled_height) > MAX_CANVAS_SIDE:
            msg = (
                f"Scaled canvas {self.scaled_width}x{self.scaled_height} exceeds "
                f"{MAX_CANVAS_SIDE} pixels per side; lower scaling, width or height"
            )
            raise ValueError(msg)
        return self

    @property
    def scaled_width(self) -> int:
        return self.width * self.scaling

    @property
    def scaled_height(self) -> int:
        return self.height * self.scaling

    @classmethod
    def from_yaml(cls, path: Path) -> RenderConfig:
        """
        Load render configuration from a YAML file.

        Top-level keys map to RenderConfig fields; service settings live
        under a ``service`` mapping. Unknown keys are ignored.

        Args:
            path: Path to YAML configuration file.

        Returns:
            RenderConfig populated from YAML values merged with defaults.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            ValueError: If YAML is not a mapping or holds invalid values.
        """
        import yaml

        raw = yaml.safe_load(path.read_text())
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            msg = f"YAML config must be a mapping, got {type(raw).__name__}"
            raise ValueError(msg)

        known = {k: v for k, v in raw.items() if k in cls.model_fields}
        ignored = sorted(set(raw) - set(known))
        if ignored:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(ignored))
        if isinstance(known.get("palette"), list):
            known["palette"] = tuple(known["palette"])
        return cls(**known)

    def to_yaml(self, path: Path) -> None:
        """Write render configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize render configuration to a YAML string."""
        import yaml

        data = self.model_dump()
        data["palette"] = list(self.palette)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    model_config = {"frozen": True}
