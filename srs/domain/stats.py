from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .enums import CardState
from .logic import retrievability
from .state import CardReviewState


@dataclass(frozen=True)
class MaturityStats:
    new: int
    learning: int
    review: int
    relearning: int

    @property
    def total(self) -> int:
        return self.new + self.learning + self.review + self.relearning


def retention_rate(total_correct: int, total_reviews: int) -> Optional[float]:
    if not total_reviews:
        return None
    return total_correct / total_reviews


def predicted_recall(states: Iterable[CardReviewState], now: datetime) -> Optional[float]:
    """Mean current retrievability of every reviewed card."""
    values = [retrievability(s, now) for s in states if s.total_reviews > 0]
    if not values:
        return None
    return sum(values) / len(values)


def maturity(states: Iterable[CardReviewState], catalog_size: int = 0) -> MaturityStats:
    """
    Count cards per state. Catalog cards with no stored state are new, so
    ``catalog_size`` tops up the new bucket when it exceeds the stored rows.
    """
    counts = {name: 0 for name in CardState.ALL}
    stored = 0
    for s in states:
        counts[s.state] += 1
        stored += 1
    unseen = max(0, catalog_size - stored)
    return MaturityStats(
        new=counts[CardState.NEW] + unseen,
        learning=counts[CardState.LEARNING],
        review=counts[CardState.REVIEW],
        relearning=counts[CardState.RELEARNING],
    )


def forecast(states: Iterable[CardReviewState], day_start: datetime, days: int) -> list:
    """
    Cards falling due on each of the ``days`` study days starting at
    ``day_start``. Cards already overdue are counted on the first day.
    """
    buckets = [0] * max(0, days)
    if not buckets:
        return []
    horizon = day_start + timedelta(days=days)
    for s in states:
        if s.state == CardState.NEW or s.due >= horizon:
            continue
        index = max(0, (s.due - day_start) // timedelta(days=1))
        buckets[index] += 1
    return [(day_start + timedelta(days=i), count) for i, count in enumerate(buckets)]
