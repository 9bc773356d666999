"""
Per-card review state.

``CardReviewState`` is immutable; the scheduler derives a new value for every
review and the store persists it. ``version`` belongs to the store and is the
token used for compare-and-swap writes.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .enums import CardState, Rating


@dataclass(frozen=True)
class CardReviewState:
    reviewer_id: object
    card_id: object
    state: str
    stability: float
    difficulty: float
    elapsed_days: float
    scheduled_days: float
    due: datetime
    last_review: Optional[datetime] = None
    reps: int = 0
    lapses: int = 0
    total_reviews: int = 0
    total_correct: int = 0
    version: int = 0

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW

    def evolve(self, **changes) -> "CardReviewState":
        return replace(self, **changes)


def new_card_state(reviewer_id, card_id, now: datetime, config) -> CardReviewState:
    """Fresh state for a card the reviewer has never rated."""
    return CardReviewState(
        reviewer_id=reviewer_id,
        card_id=card_id,
        state=CardState.NEW,
        stability=config.min_stability,
        difficulty=config.difficulty_for(Rating.GOOD),
        elapsed_days=0.0,
        scheduled_days=0.0,
        due=now,
    )


def check_invariants(s: CardReviewState) -> list:
    """Return a description of every invariant ``s`` breaks (empty if valid)."""
    problems = []
    if s.state not in CardState.ALL:
        problems.append(f"unknown state {s.state!r}")
    if not s.stability > 0:
        problems.append(f"stability must be positive, got {s.stability}")
    if not 1.0 <= s.difficulty <= 10.0:
        problems.append(f"difficulty must be within [1, 10], got {s.difficulty}")
    if s.last_review is not None and s.due < s.last_review:
        problems.append("due precedes last_review")
    for name in ("reps", "lapses", "total_reviews", "total_correct", "version"):
        if getattr(s, name) < 0:
            problems.append(f"{name} must be non-negative")
    if s.elapsed_days < 0 or s.scheduled_days < 0:
        problems.append("elapsed_days and scheduled_days must be non-negative")
    if s.total_correct > s.total_reviews:
        problems.append("total_correct exceeds total_reviews")

    is_new = s.state == CardState.NEW
    never_reviewed = s.last_review is None
    no_history = s.reps == 0 and s.lapses == 0
    if not (is_new == never_reviewed == no_history):
        problems.append(
            "state=new, last_review=None and reps=lapses=0 must hold together"
        )
    return problems
