"""Grade resolution from percentage bands."""

import enum
from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

from gradebook.core.exceptions import UnmatchedGradeBandError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Used when a school has not configured any grade thresholds
FALLBACK_SCALE: list[tuple[Decimal, str]] = [
    (Decimal("90"), "A+"),
    (Decimal("80"), "A"),
    (Decimal("70"), "B"),
    (Decimal("60"), "C"),
    (Decimal("50"), "D"),
]
FALLBACK_FAIL_GRADE = "F"


class UnmatchedBandPolicy(str, enum.Enum):
    """What to do with a percentage that no configured band covers."""

    FALLBACK_TO_LOWEST = "fallback_to_lowest"
    FALLBACK_TO_HIGHEST = "fallback_to_highest"
    RAISE_ERROR = "raise_error"


class GradeBand(Protocol):
    grade_label: str
    min_percentage: Decimal
    max_percentage: Decimal


def percentage_of(obtained: Decimal, total: Decimal) -> Decimal:
    """Return obtained/total as a percentage, or exactly 0 when total is 0."""
    if total > 0:
        return obtained / total * HUNDRED
    return ZERO


def resolve_grade(
    percentage: Decimal,
    thresholds: Sequence[GradeBand],
    unmatched_policy: UnmatchedBandPolicy = UnmatchedBandPolicy.FALLBACK_TO_LOWEST,
) -> str:
    """Map a percentage to a grade label.

    Bands are scanned by ``min_percentage`` descending (stable for equal
    minimums) and both band edges are inclusive, so overlapping bands resolve
    to the highest qualifying one. Gaps and overlaps are never rejected; a
    percentage that matches nothing is handled by ``unmatched_policy``.
    With no bands at all the fixed fallback scale applies.
    """
    if not thresholds:
        for minimum, label in FALLBACK_SCALE:
            if percentage >= minimum:
                return label
        return FALLBACK_FAIL_GRADE

    ordered = sorted(thresholds, key=lambda band: band.min_percentage, reverse=True)
    for band in ordered:
        if band.min_percentage <= percentage <= band.max_percentage:
            return band.grade_label

    if unmatched_policy == UnmatchedBandPolicy.RAISE_ERROR:
        raise UnmatchedGradeBandError(percentage)
    if unmatched_policy == UnmatchedBandPolicy.FALLBACK_TO_HIGHEST:
        return ordered[0].grade_label
    return ordered[-1].grade_label
