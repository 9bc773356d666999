import uuid
from datetime import datetime, timedelta, timezone as dt_tz

import pytest

from srs.config import SchedulerConfig
from srs.data.repos import DjangoReviewStateStore
from srs.domain.enums import CardState
from srs.domain.state import CardReviewState
from srs.utils.time import FixedClock

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=dt_tz.utc)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def config():
    """Default coefficients with fuzz off so intervals are exact."""
    return SchedulerConfig(enable_fuzz=False)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def store():
    return DjangoReviewStateStore()


@pytest.fixture
def reviewer_id():
    return uuid.uuid4()


def review_state(reviewer_id=None, card_id=None, **overrides):
    """A card in steady review, last seen at T0 - 10 days."""
    last_review = overrides.pop("last_review", T0 - timedelta(days=10))
    due = overrides.pop("due", None)
    if due is None:
        due = (last_review or T0) + timedelta(days=10)
    values = dict(
        reviewer_id=reviewer_id or uuid.uuid4(),
        card_id=card_id or uuid.uuid4(),
        state=CardState.REVIEW,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=10.0,
        scheduled_days=10.0,
        due=due,
        last_review=last_review,
        reps=3,
        lapses=0,
        total_reviews=3,
        total_correct=3,
    )
    values.update(overrides)
    return CardReviewState(**values)


def seed_state(store, reviewer_id, card_id=None, **overrides):
    """Persist a review-state row and return it with its stored version."""
    state = review_state(reviewer_id, card_id or uuid.uuid4(), **overrides)
    return store.put(state.reviewer_id, state.card_id, state, None)
