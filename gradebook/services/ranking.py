"""Cohort ranking of report cards."""

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gradebook.schemas.report_card import ReportCard


class RankingStrategy(str, enum.Enum):
    """How students with equal overall percentages are ranked.

    POSITIONAL gives every student a distinct rank in sorted order (1,2,3,4),
    ties broken by input order. COMPETITION shares the rank between equal
    percentages and skips the following ones (1,2,2,4).
    """

    POSITIONAL = "positional"
    COMPETITION = "competition"


def rank_cohort(
    cards: list["ReportCard"],
    strategy: RankingStrategy = RankingStrategy.POSITIONAL,
) -> list["ReportCard"]:
    """Back-fill ``rank`` on every card, highest overall percentage first.

    Sorting happens on a copy; the list passed in keeps its order and is
    returned as-is with ranks populated.
    """
    ordered = sorted(cards, key=lambda card: card.overall_percentage, reverse=True)

    previous = None
    for index, card in enumerate(ordered):
        if (
            strategy == RankingStrategy.COMPETITION
            and previous is not None
            and card.overall_percentage == previous.overall_percentage
        ):
            card.rank = previous.rank
        else:
            card.rank = index + 1
        previous = card

    return cards
