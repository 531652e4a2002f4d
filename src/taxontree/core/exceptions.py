"""
Custom exceptions with actionable guidance.

Provides specific error types for common failure scenarios,
each with helpful suggestions for resolution.
"""

from __future__ import annotations


class TaxonTreeError(Exception):
    """Base exception for taxontree errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ProbabilityFileError(TaxonTreeError):
    """Base class for probability table errors."""


class ProbabilityFileNotFoundError(ProbabilityFileError):
    """Raised when the probability table does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            message=f"Probability file not found: {path}",
            suggestion="Check the path to the probabilities file.",
        )


class ProbabilityFileReadError(ProbabilityFileError):
    """Raised when the probability table cannot be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            message=f"Cannot read probability file {path}: {reason}",
            suggestion=(
                "The file must be readable UTF-8 text. Re-export it as UTF-8 "
                "(e.g. iconv -f latin1 -t utf-8) and check its permissions."
            ),
        )


class EmptyProbabilityTableError(ProbabilityFileError):
    """Raised when a probability table has no valid rows."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            message=f"Probability file contains no valid rows: {path}",
            suggestion=(
                "Each line must look like 'taxonId,probability' where probability "
                "is a decimal fraction, e.g.:\n"
                "  562,0.87\n"
                "  1280,0.12"
            ),
        )


class DegenerateProbabilityRangeError(TaxonTreeError):
    """Raised when the probability range cannot be used for rescaling."""

    def __init__(self, minimum: int, maximum: int):
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            message=(
                f"Cannot rescale node weights: maximum probability is {maximum} "
                f"(minimum {minimum})"
            ),
            suggestion=(
                "At least one taxon needs a probability that rounds to 1% or more. "
                "Check that probabilities are fractions in [0, 1], not counts."
            ),
        )


class RenderError(TaxonTreeError):
    """Raised when the tree image cannot be produced."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            suggestion=(
                "CairoSVG needs the cairo system library. Install it with your "
                "package manager (e.g. apt install libcairo2) or conda "
                "(conda install -c conda-forge cairo)."
            ),
        )


class OutputWriteError(TaxonTreeError):
    """Raised when rendered files cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            message=f"Cannot write output {path}: {reason}",
            suggestion="Check that the output directory exists or can be created and is writable.",
        )


class ConfigurationError(TaxonTreeError):
    """Raised when configuration is invalid."""
