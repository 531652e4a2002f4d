"""
Loader for per-taxon probability tables.

Reads plain `taxonId,probability` rows and converts the probabilities to
integer percentages, tracking the smallest and largest value seen.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from taxontree.core.exceptions import (
    EmptyProbabilityTableError,
    ProbabilityFileNotFoundError,
    ProbabilityFileReadError,
)

logger = logging.getLogger(__name__)

# Sentinels kept when no row parses: min starts high, max starts low
MINIMUM_SENTINEL = 100
MAXIMUM_SENTINEL = 0


@dataclass(frozen=True)
class ProbabilityTable(Mapping[str, int]):
    """Immutable taxon-id -> integer percentage mapping.

    Attributes:
        probabilities: Read-only view of the parsed values.
        minimum: Smallest percentage seen (100 when empty).
        maximum: Largest percentage seen (0 when empty).
        skipped: Number of rows that did not parse.
    """

    probabilities: Mapping[str, int] = field(default_factory=dict)
    minimum: int = MINIMUM_SENTINEL
    maximum: int = MAXIMUM_SENTINEL
    skipped: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "probabilities", MappingProxyType(dict(self.probabilities))
        )

    def __getitem__(self, taxon_id: str) -> int:
        return self.probabilities[taxon_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self.probabilities)

    def __len__(self) -> int:
        return len(self.probabilities)

    @property
    def is_empty(self) -> bool:
        return not self.probabilities

    def to_counts(self) -> dict[str, int]:
        """Plain dict copy, as sent to the taxonomy service."""
        return dict(self.probabilities)


def parse_percentage(value: str) -> int | None:
    """Convert a decimal fraction to a rounded integer percentage.

    Rounds half up, so 0.125 becomes 13 rather than Python's banker's 12.

    Returns:
        The percentage, or None if the value is not a finite number.
    """
    try:
        fraction = float(value)
    except ValueError:
        return None
    if not math.isfinite(fraction):
        return None
    return math.floor(fraction * 100 + 0.5)


def parse_probabilities(lines: Iterable[str]) -> ProbabilityTable:
    """Build a ProbabilityTable from `taxonId,probability` lines.

    Rows without a parseable probability (including blank trailing lines)
    are skipped and do not affect the minimum or maximum. Duplicate taxon
    ids keep the last value.

    Args:
        lines: Text lines, with or without trailing newlines.

    Returns:
        ProbabilityTable with the parsed values.
    """
    probabilities: dict[str, int] = {}
    minimum = MINIMUM_SENTINEL
    maximum = MAXIMUM_SENTINEL
    skipped = 0

    for line_num, line in enumerate(lines, start=1):
        fields = line.rstrip().split(",")
        prob = parse_percentage(fields[1]) if len(fields) > 1 else None
        if prob is None:
            if line.strip():
                logger.debug("Skipping line %d: %r", line_num, line.rstrip())
                skipped += 1
            continue

        minimum = min(minimum, prob)
        maximum = max(maximum, prob)
        probabilities[fields[0]] = prob

    return ProbabilityTable(
        probabilities=probabilities,
        minimum=minimum,
        maximum=maximum,
        skipped=skipped,
    )


def load_probabilities(path: Path, *, require_rows: bool = True) -> ProbabilityTable:
    """Read a probability table from a UTF-8 text file.

    Args:
        path: Path to the probabilities file.
        require_rows: Raise if no row could be parsed.

    Returns:
        Parsed ProbabilityTable.

    Raises:
        ProbabilityFileNotFoundError: If the file does not exist.
        ProbabilityFileReadError: If the file cannot be read or is not UTF-8.
        EmptyProbabilityTableError: If require_rows is set and nothing parsed.
    """
    if not path.exists():
        raise ProbabilityFileNotFoundError(str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ProbabilityFileReadError(
            str(path), f"not valid UTF-8 at byte {e.start}"
        ) from e
    except OSError as e:
        raise ProbabilityFileReadError(str(path), e.strerror or str(e)) from e

    table = parse_probabilities(text.split("\n"))
    logger.info(
        "Loaded %d taxa from %s (min=%d, max=%d, skipped=%d)",
        len(table),
        path,
        table.minimum,
        table.maximum,
        table.skipped,
    )

    if require_rows and table.is_empty:
        raise EmptyProbabilityTableError(str(path))
    return table
