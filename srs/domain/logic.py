"""
Review scheduling.

Memory model: each card carries a stability S (days) and a difficulty D in
[1, 10]. Recall probability after t days is R(t) = (1 + t / (9 S)) ** -1, so
R(S) = 0.9. A review updates D and S from the rating and from R at review
time, then schedules the card where R is expected to fall to the target
retention.

Everything here is pure: no database access and no reading of the wall clock.
"""

import math
import random
from datetime import datetime, timedelta
from typing import Optional

from ..config import DEFAULT_CONFIG, SchedulerConfig
from .enums import TRANSITIONS, CardState, Rating
from .errors import ClockRegressionError, InvariantViolation
from .state import CardReviewState, check_invariants, new_card_state

SECONDS_PER_DAY = 86400.0
DECAY_SCALE = 9.0


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _clamp(value, low, high):
    return max(low, min(high, value))


def retrievability_after(elapsed_days: float, stability: float) -> float:
    if elapsed_days <= 0:
        return 1.0
    return _clamp((1.0 + elapsed_days / (DECAY_SCALE * stability)) ** -1, 0.0, 1.0)


def retrievability(state: CardReviewState, now: datetime) -> float:
    """Current recall probability of ``state`` at ``now`` (1.0 for new cards)."""
    if state.is_new or state.last_review is None:
        return 1.0
    return retrievability_after(days_between(state.last_review, now), state.stability)


def next_difficulty(prev: CardReviewState, rating: Rating, config: SchedulerConfig) -> float:
    if prev.is_new:
        seeded = config.difficulty_for(rating)
    else:
        # Again and Hard push difficulty up, Good leaves it, Easy lowers it
        seeded = prev.difficulty - config.difficulty_step * (int(rating) - int(Rating.GOOD))
    return _clamp(seeded, 1.0, 10.0)


def lapse_decay(difficulty: float, config: SchedulerConfig) -> float:
    return config.lapse_stability_factor * difficulty ** -config.lapse_difficulty_exponent


def growth_factor(
    r: float, difficulty: float, stability: float, rating: Rating, config: SchedulerConfig
) -> float:
    """
    Multiplier applied to stability after a successful recall.

    Grows as R falls (recalling a nearly forgotten card is stronger evidence),
    shrinks with difficulty and with stability already gained.
    """
    modifier = 1.0
    if rating == Rating.HARD:
        modifier = config.hard_penalty
    elif rating == Rating.EASY:
        modifier = config.easy_bonus
    return 1.0 + (
        math.exp(config.growth_scale)
        * (11.0 - difficulty)
        * stability ** -config.stability_decay
        * (math.exp(config.retrievability_gain * (1.0 - r)) - 1.0)
        * modifier
    )


def next_stability(
    prev: CardReviewState, rating: Rating, r: float, difficulty: float, config: SchedulerConfig
) -> float:
    if prev.is_new:
        return config.stability_for(rating)
    if rating == Rating.AGAIN:
        return max(prev.stability * lapse_decay(difficulty, config), config.min_stability)
    return prev.stability * growth_factor(r, difficulty, prev.stability, rating, config)


def interval_for(stability: float, config: SchedulerConfig = DEFAULT_CONFIG) -> float:
    """Days until R drops to the target retention, clamped to the allowed range."""
    raw = DECAY_SCALE * stability * (1.0 / config.target_retention - 1.0)
    return _clamp(raw, config.min_interval, config.max_interval)


def fuzz_rng(reviewer_id, card_id, total_reviews: int) -> random.Random:
    return random.Random(f"{reviewer_id}:{card_id}:{total_reviews}")


def apply_fuzz(interval: float, rng: random.Random, config: SchedulerConfig) -> int:
    days = interval
    if config.enable_fuzz and interval >= config.fuzz_min_interval:
        spread = interval * config.fuzz_factor
        days = interval + rng.uniform(-spread, spread)
    return int(_clamp(round(days), config.min_interval, config.max_interval))


def advance(
    prev: Optional[CardReviewState],
    rating,
    now: datetime,
    *,
    reviewer_id=None,
    card_id=None,
    config: SchedulerConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> CardReviewState:
    """
    Apply one review to ``prev`` and return the resulting state.

    ``prev`` may be ``None`` for a card the reviewer has never seen, in which
    case ``reviewer_id`` and ``card_id`` identify it. Raises
    ``ClockRegressionError`` if ``now`` precedes the last review and
    ``InvariantViolation`` if the computed state is inconsistent.
    """
    rating = Rating(rating)
    if prev is None:
        prev = new_card_state(reviewer_id, card_id, now, config)

    if prev.last_review is not None and now < prev.last_review:
        raise ClockRegressionError(now, prev.last_review)

    elapsed = days_between(prev.last_review, now) if prev.last_review is not None else 0.0
    r = 1.0 if prev.is_new else retrievability_after(elapsed, prev.stability)

    difficulty = next_difficulty(prev, rating, config)
    stability = next_stability(prev, rating, r, difficulty, config)

    if rating == Rating.AGAIN:
        reps = 0
        lapses = prev.lapses + 1
    else:
        reps = prev.reps + 1
        lapses = prev.lapses

    if rng is None:
        rng = fuzz_rng(prev.reviewer_id, prev.card_id, prev.total_reviews)
    interval = apply_fuzz(interval_for(stability, config), rng, config)

    nxt = prev.evolve(
        state=TRANSITIONS[prev.state][rating],
        stability=stability,
        difficulty=difficulty,
        elapsed_days=elapsed,
        scheduled_days=float(interval),
        due=now + timedelta(days=interval),
        last_review=now,
        reps=reps,
        lapses=lapses,
        total_reviews=prev.total_reviews + 1,
        total_correct=prev.total_correct + (0 if rating == Rating.AGAIN else 1),
    )

    problems = check_invariants(nxt)
    if problems or not math.isfinite(stability):
        raise InvariantViolation(problems or [f"stability is not finite: {stability}"])
    return nxt


def preview(
    prev: Optional[CardReviewState],
    now: datetime,
    *,
    reviewer_id=None,
    card_id=None,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> dict:
    """Outcome of each rating for ``prev`` at ``now``; nothing is persisted."""
    return {
        rating: advance(
            prev, rating, now, reviewer_id=reviewer_id, card_id=card_id, config=config
        )
        for rating in Rating
    }


def is_due(state: CardReviewState, now: datetime) -> bool:
    return state.state != CardState.NEW and state.due <= now
