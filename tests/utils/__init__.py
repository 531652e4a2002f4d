"""Testing utilities for taxontree."""

from tests.utils.assertions import CLIAssertions, RenderAssertions

__all__ = [
    "CLIAssertions",
    "RenderAssertions",
]
