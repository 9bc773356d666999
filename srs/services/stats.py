from datetime import timedelta

from ..config import get_scheduler_config
from ..data.repos import DjangoReviewStateStore, catalog_size
from ..domain import stats
from ..utils.time import study_day_start
from . import sessions


def _session_summary(reviewer_id, start, end):
    rows = sessions.sessions_between(reviewer_id, start, end)
    return {
        "reviewed": sum(s.cards_reviewed for s in rows),
        "correct": sum(s.cards_correct for s in rows),
        "study_seconds": sum(s.duration_seconds or 0 for s in rows),
    }


def review_stats(reviewer_id, now, *, forecast_days=7, store=None, config=None):
    config = config or get_scheduler_config()
    store = store or DjangoReviewStateStore()

    states = store.all_for_reviewer(reviewer_id)
    correct = sum(s.total_correct for s in states)
    reviews = sum(s.total_reviews for s in states)
    day_start = study_day_start(now, config.day_rollover_hour)
    tomorrow = day_start + timedelta(days=1)

    return {
        "today": _session_summary(reviewer_id, day_start, tomorrow),
        "this_week": _session_summary(reviewer_id, day_start - timedelta(days=6), tomorrow),
        "retention_rate": stats.retention_rate(correct, reviews),
        "predicted_recall": stats.predicted_recall(states, now),
        "maturity": stats.maturity(states, catalog_size()),
        "forecast": stats.forecast(states, day_start, forecast_days),
    }
