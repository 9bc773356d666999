import structlog

from ..config import get_scheduler_config
from ..data.repos import DjangoReviewStateStore, catalog_card_ids
from ..domain import stats
from ..domain.errors import QueueError, StoreUnavailableError
from ..domain.queue import (
    QueueBuildResult,
    count_due,
    remaining_allowance,
    select_due,
    select_new,
)
from ..utils.time import study_day_start
from . import sessions

logger = structlog.get_logger()


def build_queue_parts(
    reviewer_id, now, new_limit=None, review_limit=None, *, store=None, config=None
) -> QueueBuildResult:
    """
    Due reviews (oldest due first) and new cards (catalog order), each capped
    by what is left of today's allowance. A store failure fails the whole call.
    """
    config = config or get_scheduler_config()
    store = store or DjangoReviewStateStore()
    new_limit = config.new_limit if new_limit is None else new_limit
    review_limit = config.review_limit if review_limit is None else review_limit

    try:
        today = sessions.daily_totals(reviewer_id, now, config)
        due_states = store.due_before(reviewer_id, now)
        review_budget = remaining_allowance(review_limit, today.reviews)
        review_queue = select_due(due_states, now, review_budget)

        new_budget = remaining_allowance(new_limit, today.new_cards)
        new_queue = []
        if new_budget:
            known = {s.card_id: s for s in store.all_for_reviewer(reviewer_id)}
            new_queue = select_new(catalog_card_ids(), known, new_budget)
    except StoreUnavailableError as exc:
        logger.error("queue_build_failed", reviewer_id=str(reviewer_id), error=str(exc))
        raise QueueError(f"could not build queue for reviewer {reviewer_id}") from exc

    result = QueueBuildResult(
        review_queue=review_queue,
        new_queue=new_queue,
        reviews_done_today=today.reviews,
        new_done_today=today.new_cards,
        skipped_reviews=count_due(due_states, now) - len(review_queue),
    )
    logger.info("queue_built",
        reviewer_id=str(reviewer_id),
        reviews=len(review_queue),
        new=len(new_queue),
        reviews_done_today=today.reviews,
        new_done_today=today.new_cards,
        skipped_reviews=result.skipped_reviews,
    )
    return result


def build_queue(reviewer_id, now, new_limit=None, review_limit=None, **kwargs) -> list:
    """Ordered card ids: due reviews first, then new cards."""
    return build_queue_parts(reviewer_id, now, new_limit, review_limit, **kwargs).card_ids


def due_card_ids(reviewer_id, until, store=None):
    store = store or DjangoReviewStateStore()
    return [s.card_id for s in store.due_before(reviewer_id, until)]


def due_counts(reviewer_id, now, *, store=None):
    """Due reviews, unseen catalog cards and their sum (no daily caps applied)."""
    store = store or DjangoReviewStateStore()
    states = store.all_for_reviewer(reviewer_id)
    known = {s.card_id: s for s in states}
    catalog = catalog_card_ids()
    due = count_due(states, now)
    new = len(select_new(catalog, known, len(catalog)))
    return {"due": due, "new": new, "total": due + new}


def forecast(reviewer_id, now, days=7, *, store=None, config=None):
    """Cards falling due on each of the next ``days`` study days, overdue ones on day 0."""
    config = config or get_scheduler_config()
    store = store or DjangoReviewStateStore()
    day_start = study_day_start(now, config.day_rollover_hour)
    return stats.forecast(store.all_for_reviewer(reviewer_id), day_start, days)
