"""
Due-queue selection.

Pure functions over already fetched review states and catalog ids; the
service layer supplies the data and the remaining daily allowance.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .enums import CardState
from .logic import is_due
from .state import CardReviewState


@dataclass
class QueueBuildResult:
    """Result of queue building."""

    review_queue: list  # due non-new cards, oldest due first
    new_queue: list  # never reviewed cards in catalog order
    reviews_done_today: int = 0
    new_done_today: int = 0
    skipped_reviews: int = 0  # due cards left out by the daily review cap

    @property
    def card_ids(self) -> list:
        return self.review_queue + self.new_queue


def remaining_allowance(limit: int, done_today: int) -> int:
    return max(0, limit - done_today)


def select_due(states: Iterable[CardReviewState], now: datetime, limit: int) -> list:
    """Non-new states due at ``now``, ordered by (due, card_id), capped at ``limit``."""
    due = [s for s in states if is_due(s, now)]
    due.sort(key=lambda s: (s.due, str(s.card_id)))
    return [s.card_id for s in due[: max(0, limit)]]


def select_new(catalog_ids: Iterable, known: dict, limit: int) -> list:
    """
    Catalog cards without history, in catalog order.

    ``known`` maps card_id -> CardReviewState for every stored state of the
    reviewer; a stored state still in ``new`` counts as unseen.
    """
    picked = []
    if limit <= 0:
        return picked
    for card_id in catalog_ids:
        state = known.get(card_id)
        if state is None or state.state == CardState.NEW:
            picked.append(card_id)
            if len(picked) >= limit:
                break
    return picked


def count_due(states: Iterable[CardReviewState], now: datetime) -> int:
    return sum(1 for s in states if is_due(s, now))
