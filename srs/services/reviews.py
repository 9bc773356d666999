from dataclasses import dataclass
from typing import Optional

import structlog
from django.db import DatabaseError, IntegrityError, transaction

from ..config import get_scheduler_config
from ..data.repos import (
    DjangoReviewStateStore,
    get_existing_idempotent,
    persist_review,
)
from ..domain.enums import Rating
from ..domain.errors import (
    ClockRegressionError,
    ConflictError,
    InvariantViolation,
    SessionClosedError,
    StoreUnavailableError,
)
from ..domain.logic import advance, preview
from ..domain.state import CardReviewState, new_card_state
from ..utils.time import SystemClock, to_local_iso
from . import sessions

logger = structlog.get_logger()


@dataclass
class ReviewOutcome:
    state: Optional[CardReviewState]
    next_review_at: object
    interval_days: int
    idempotent: bool
    attempts: int = 1


def _replay(existing):
    return ReviewOutcome(
        state=None,
        next_review_at=existing.next_review_at,
        interval_days=existing.interval_days,
        idempotent=True,
        attempts=0,
    )


def record_review(
    reviewer_id,
    card_id,
    rating,
    idempotency_key: str,
    *,
    session_id=None,
    clock=None,
    store=None,
    config=None,
):
    """
    Apply one rating to the (reviewer, card) state: read, ``advance``,
    compare-and-swap write plus review log in one transaction. Conflicting
    writes are retried with a fresh read up to ``config.max_conflict_retries``
    times. The session is only credited after the write commits.
    """
    rating = Rating(rating)
    clock = clock or SystemClock()
    store = store or DjangoReviewStateStore()
    config = config or get_scheduler_config()

    logger.info("review_received",
        reviewer_id=str(reviewer_id),
        card_id=str(card_id),
        rating=int(rating),
        idempotency_key=idempotency_key,
    )

    # Fast path: return previous result if same idempotency_key
    existing = get_existing_idempotent(reviewer_id, card_id, idempotency_key)
    if existing:
        logger.info("idempotent_reuse",
            reviewer_id=str(reviewer_id),
            card_id=str(card_id),
            next_review_utc=existing.next_review_at.isoformat(),
            next_review_local=to_local_iso(existing.next_review_at),
        )
        return _replay(existing)

    if session_id is not None and not sessions.get_session(session_id, reviewer_id).is_open:
        raise SessionClosedError(session_id)

    attempts = 0
    while True:
        attempts += 1
        now = clock.now()
        prev = store.get(reviewer_id, card_id)
        if prev is None:
            prev = new_card_state(reviewer_id, card_id, now, config)
        try:
            nxt = advance(prev, rating, now, config=config)
        except (ClockRegressionError, InvariantViolation) as exc:
            logger.warning("review_rejected",
                reviewer_id=str(reviewer_id),
                card_id=str(card_id),
                rating=int(rating),
                error=str(exc),
            )
            raise
        try:
            with transaction.atomic():
                saved = store.put(reviewer_id, card_id, nxt, prev.version)
                persist_review(prev, saved, rating, idempotency_key, session_id)
            break
        except ConflictError:
            if attempts > config.max_conflict_retries:
                logger.warning("review_conflict_exhausted",
                    reviewer_id=str(reviewer_id),
                    card_id=str(card_id),
                    attempts=attempts,
                )
                raise
            logger.info("review_conflict_retry",
                reviewer_id=str(reviewer_id),
                card_id=str(card_id),
                attempt=attempts,
            )
        except IntegrityError as exc:
            # Same idempotency key committed concurrently; the state write was rolled back.
            existing = get_existing_idempotent(reviewer_id, card_id, idempotency_key)
            if existing is None:
                raise StoreUnavailableError(f"could not record review: {exc}") from exc
            return _replay(existing)
        except DatabaseError as exc:
            raise StoreUnavailableError(f"could not record review: {exc}") from exc

    if session_id is not None:
        try:
            sessions.record(session_id, card_id, rating, was_new=prev.is_new)
        except SessionClosedError:
            # Ended between the check above and the commit; the review itself stands.
            logger.warning("session_closed_during_review",
                session_id=str(session_id),
                card_id=str(card_id),
            )

    logger.info("review_scheduled",
        reviewer_id=str(reviewer_id),
        card_id=str(card_id),
        state=saved.state,
        stability=saved.stability,
        difficulty=saved.difficulty,
        interval_days=int(saved.scheduled_days),
        next_review_utc=saved.due.isoformat(),
        next_review_local=to_local_iso(saved.due),
        attempts=attempts,
    )
    return ReviewOutcome(
        state=saved,
        next_review_at=saved.due,
        interval_days=int(saved.scheduled_days),
        idempotent=False,
        attempts=attempts,
    )


def preview_review(reviewer_id, card_id, *, clock=None, store=None, config=None):
    clock = clock or SystemClock()
    store = store or DjangoReviewStateStore()
    config = config or get_scheduler_config()
    prev = store.get(reviewer_id, card_id)
    return prev, preview(
        prev, clock.now(), reviewer_id=reviewer_id, card_id=card_id, config=config
    )
