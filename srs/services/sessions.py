import uuid
from dataclasses import dataclass
from datetime import timedelta

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q

from ..config import get_scheduler_config
from ..data.models import ReviewLog, StudySessionRecord
from ..data.repos import DjangoReviewStateStore, unavailable_on_db_error
from ..domain.enums import Rating
from ..domain.errors import SessionClosedError, SessionNotFoundError, SessionOwnershipError
from ..domain.stats import retention_rate as rate_of
from ..utils.time import study_day_start

logger = structlog.get_logger()


@dataclass(frozen=True)
class DailyTotals:
    reviews: int  # reviews of cards that were already past the new state
    new_cards: int  # cards introduced for the first time
    correct: int


def start_session(reviewer_id, now, session_id=None, id_factory=uuid.uuid4):
    """
    Open a session and return its id. Starting again with an id the same
    reviewer already used returns that session unchanged.
    """
    session_id = session_id or id_factory()
    with unavailable_on_db_error("start study session"):
        try:
            with transaction.atomic():
                StudySessionRecord.objects.create(
                    session_id=session_id, reviewer_id=reviewer_id, started_at=now
                )
        except IntegrityError:
            existing = get_session(session_id)
            if existing.reviewer_id != reviewer_id:
                raise SessionOwnershipError(session_id, reviewer_id) from None
            logger.info("session_start_reused",
                reviewer_id=str(reviewer_id),
                session_id=str(session_id),
                started_at=existing.started_at.isoformat(),
            )
            return existing.session_id
    logger.info("session_started",
        reviewer_id=str(reviewer_id),
        session_id=str(session_id),
        started_at=now.isoformat(),
    )
    return session_id


def get_session(session_id, reviewer_id=None) -> StudySessionRecord:
    """The session row; with ``reviewer_id``, also check who started it."""
    with unavailable_on_db_error("read study session"):
        try:
            session = StudySessionRecord.objects.get(session_id=session_id)
        except StudySessionRecord.DoesNotExist:
            raise SessionNotFoundError(session_id) from None
    if reviewer_id is not None and session.reviewer_id != reviewer_id:
        raise SessionOwnershipError(session_id, reviewer_id)
    return session


def record(session_id, card_id, rating, was_new=False):
    """
    Count one committed review in the session. Only call after the review's
    store write has been confirmed.
    """
    rating = Rating(rating)
    with unavailable_on_db_error("update study session"):
        updated = StudySessionRecord.objects.filter(
            session_id=session_id, ended_at__isnull=True
        ).update(
            cards_reviewed=F("cards_reviewed") + 1,
            cards_correct=F("cards_correct") + (0 if rating == Rating.AGAIN else 1),
            cards_new=F("cards_new") + (1 if was_new else 0),
        )
    if updated == 0:
        session = get_session(session_id)
        raise SessionClosedError(session.session_id)
    logger.info("session_review_recorded",
        session_id=str(session_id),
        card_id=str(card_id),
        rating=int(rating),
        was_new=was_new,
    )


def end_session(session_id, now):
    """
    Close the session. Returns ``(session, closed)``; ``closed`` is False when
    the session had already ended, in which case nothing changes.
    """
    with unavailable_on_db_error("end study session"), transaction.atomic():
        try:
            session = StudySessionRecord.objects.select_for_update().get(session_id=session_id)
        except StudySessionRecord.DoesNotExist:
            raise SessionNotFoundError(session_id) from None

        if session.ended_at is not None:
            logger.info("session_end_noop",
                session_id=str(session_id),
                ended_at=session.ended_at.isoformat(),
            )
            return session, False

        if now < session.started_at:
            # Duration is clamped to zero rather than going negative.
            logger.warning("session_end_clock_regression",
                session_id=str(session_id),
                started_at=session.started_at.isoformat(),
                now=now.isoformat(),
            )
        ended_at = max(now, session.started_at)
        session.ended_at = ended_at
        session.duration_seconds = int((ended_at - session.started_at).total_seconds())
        session.save(update_fields=["ended_at", "duration_seconds"])

    logger.info("session_ended",
        session_id=str(session_id),
        reviewer_id=str(session.reviewer_id),
        cards_reviewed=session.cards_reviewed,
        cards_correct=session.cards_correct,
        duration_seconds=session.duration_seconds,
    )
    return session, True


def retention_rate(reviewer_id, store=None):
    """Lifetime share of non-Again reviews, recomputed from stored states."""
    store = store or DjangoReviewStateStore()
    correct, reviews = store.totals(reviewer_id)
    return rate_of(correct, reviews)


def daily_totals(reviewer_id, now, config=None) -> DailyTotals:
    """Reviews committed during the current study day, from the review log."""
    config = config or get_scheduler_config()
    start = study_day_start(now, config.day_rollover_hour)
    with unavailable_on_db_error("read review log"):
        agg = ReviewLog.objects.filter(
            reviewer_id=reviewer_id,
            reviewed_at__gte=start,
            reviewed_at__lt=start + timedelta(days=1),
        ).aggregate(
            reviews=Count("id", filter=Q(was_new=False)),
            new_cards=Count("id", filter=Q(was_new=True)),
            correct=Count("id", filter=~Q(rating=int(Rating.AGAIN))),
        )
    return DailyTotals(
        reviews=agg["reviews"] or 0,
        new_cards=agg["new_cards"] or 0,
        correct=agg["correct"] or 0,
    )


def sessions_between(reviewer_id, start, end):
    with unavailable_on_db_error("read study sessions"):
        return list(
            StudySessionRecord.objects.filter(
                reviewer_id=reviewer_id, started_at__gte=start, started_at__lt=end
            ).order_by("started_at")
        )
