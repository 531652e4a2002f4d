"""
Shared pytest fixtures for taxontree tests.

Provides hand-built taxonomy trees, probability files, small render
configurations and stubbed taxonomy clients.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from taxontree.models.config import RenderConfig
from tests.factories import make_sample_tree, make_two_taxa_tree


# =============================================================================
# Tree Fixtures
# =============================================================================


@pytest.fixture
def sample_tree() -> dict[str, Any]:
    """Six-node taxonomy tree with known raw scores."""
    return make_sample_tree()


@pytest.fixture
def two_taxa_tree() -> dict[str, Any]:
    """Tree returned by the stubbed service for taxa X and Y."""
    return make_two_taxa_tree()


# =============================================================================
# Probability File Fixtures
# =============================================================================


@pytest.fixture
def two_taxa_file(tmp_path: Path) -> Path:
    """Two-row probability file: X=0.2, Y=0.9."""
    path = tmp_path / "probabilities.csv"
    path.write_text("X,0.2\nY,0.9\n")
    return path


@pytest.fixture
def empty_probability_file(tmp_path: Path) -> Path:
    """Probability file with no parseable rows."""
    path = tmp_path / "empty.csv"
    path.write_text("taxon,probability\n\n")
    return path


# =============================================================================
# Rendering Fixtures
# =============================================================================


@pytest.fixture
def small_config() -> RenderConfig:
    """Small viewport so rasterization stays cheap in tests."""
    return RenderConfig(
        width=300,
        height=200,
        scaling=2,
        margin=10,
        label_space=80,
        font_size=8,
    )


@pytest.fixture
def small_config_yaml(tmp_path: Path, small_config: RenderConfig) -> Path:
    """small_config written as YAML."""
    path = tmp_path / "render.yaml"
    small_config.to_yaml(path)
    return path


@pytest.fixture
def stub_client(two_taxa_tree: dict[str, Any]) -> MagicMock:
    """Taxonomy client that returns two_taxa_tree without network access."""
    client = MagicMock()
    client.taxa2tree.return_value = two_taxa_tree
    return client
