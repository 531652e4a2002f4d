"""
E2E test fixtures for taxontree CLI testing.

Provides a CLI runner and an invocation helper that stubs the taxonomy
service, so renders run end to end without network access.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from taxontree.cli.main import app

if TYPE_CHECKING:
    from click.testing import Result


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def e2e_runner() -> CliRunner:
    """Provide a CLI runner for E2E tests."""
    return CliRunner()


@pytest.fixture
def e2e_temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for E2E test files."""
    return tmp_path


@pytest.fixture
def mock_unipept(two_taxa_tree: dict[str, Any]) -> Iterator[MagicMock]:
    """Patch the CLI's UnipeptClient; the service returns two_taxa_tree.

    Yields the client instance used inside the ``with`` block.
    """
    with patch("taxontree.cli.main.UnipeptClient") as mock_cls:
        client = mock_cls.return_value.__enter__.return_value
        client.taxa2tree.return_value = two_taxa_tree
        yield client


# =============================================================================
# CLI Invocation Helpers
# =============================================================================


@pytest.fixture
def run_render(
    e2e_runner: CliRunner,
    small_config_yaml: Path,
) -> Callable[..., Result]:
    """
    Invoke ``taxontree <probabilities> <output>`` with the small config.

    Example:
        result = run_render(probs, tmp_path / "tree", "--tree-json", str(path))
    """

    def _run(
        probabilities: Path,
        output: Path,
        *extra_args: str,
        use_small_config: bool = True,
    ) -> Result:
        args = [str(probabilities), str(output)]
        if use_small_config:
            args.extend(["--config", str(small_config_yaml)])
        args.extend(extra_args)
        return e2e_runner.invoke(app, args)

    return _run
