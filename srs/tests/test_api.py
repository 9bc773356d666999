import logging
import uuid
from datetime import timedelta

import pytest
from django.urls import reverse

from srs.api import views
from srs.data.models import CatalogCard
from srs.utils.time import FixedClock

from .conftest import T0

logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch, settings):
    """Pin every view to one clock and turn fuzz off so intervals are exact."""
    settings.SRS = {**settings.SRS, "ENABLE_FUZZ": False}
    clock = FixedClock(T0)
    for view in (
        views.ReviewView,
        views.QueueView,
        views.ReviewStatsView,
        views.CardPreviewView,
        views.SessionStartView,
        views.SessionEndView,
    ):
        monkeypatch.setattr(view, "clock", clock)
    return clock


# Helpers

def make_review(client, reviewer_id, card_id, rating, idem_key, session_id=None):
    payload = {
        "reviewer_id": str(reviewer_id),
        "card_id": str(card_id),
        "rating": rating,
        "idempotency_key": idem_key,
    }
    if session_id:
        payload["session_id"] = str(session_id)
    resp = client.post(reverse("review"), data=payload, content_type="application/json")
    data = resp.json()
    logger.info(
        "POST /reviews rating=%s -> status=%s interval=%s idempotent=%s",
        rating,
        resp.status_code,
        data.get("interval_days"),
        data.get("idempotent"),
    )
    return resp


def get_due_cards(client, reviewer_id, until):
    url = reverse("due-cards", kwargs={"reviewer_id": str(reviewer_id)})
    resp = client.get(url, {"until": until.isoformat()})
    logger.info(
        "GET /due-cards until=%s -> status=%s card_count=%s",
        until.isoformat(),
        resp.status_code,
        len(resp.json().get("card_ids", [])),
    )
    return resp


def start_session(client, reviewer_id):
    resp = client.post(
        reverse("session-start"),
        data={"reviewer_id": str(reviewer_id)},
        content_type="application/json",
    )
    assert resp.status_code == 201
    return resp.json()["session_id"]


def end_session(client, session_id):
    return client.post(reverse("session-end", kwargs={"session_id": session_id}))


# Tests

@pytest.mark.django_db
def test_first_review_intervals_and_labels(client):
    reviewer_id = uuid.uuid4()

    again = make_review(client, reviewer_id, uuid.uuid4(), 1, "idem-1").json()
    good = make_review(client, reviewer_id, uuid.uuid4(), 3, "idem-3").json()
    easy = make_review(client, reviewer_id, uuid.uuid4(), 4, "idem-4").json()

    assert (again["interval_days"], again["rating_label"]) == (1, "Again")
    assert (good["interval_days"], good["rating_label"]) == (2, "Good")
    assert (easy["interval_days"], easy["rating_label"]) == (6, "Easy")
    assert good["state"]["state"] == "learning"
    assert easy["state"]["state"] == "review"
    assert good["next_review_utc"] == (T0 + timedelta(days=2)).isoformat()


@pytest.mark.django_db
def test_invalid_rating_is_rejected(client):
    resp = make_review(client, uuid.uuid4(), uuid.uuid4(), 5, "idem-bad")
    assert resp.status_code == 400
    assert "rating" in resp.json()


@pytest.mark.django_db
def test_idempotency_true_and_false(client):
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()

    first = make_review(client, reviewer_id, card_id, 3, "idem-same")
    second = make_review(client, reviewer_id, card_id, 3, "idem-same")

    assert first.status_code == 201
    assert first.json()["idempotent"] is False
    assert second.status_code == 200
    assert second.json()["idempotent"] is True
    assert first.json()["next_review_utc"] == second.json()["next_review_utc"]


@pytest.mark.django_db
def test_clock_regression_is_unprocessable(client, fixed_clock):
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()
    make_review(client, reviewer_id, card_id, 3, "idem-a")

    fixed_clock.advance(hours=-1)
    resp = make_review(client, reviewer_id, card_id, 3, "idem-b")

    assert resp.status_code == 422
    assert resp.json()["error"] == "ClockRegressionError"


@pytest.mark.django_db
def test_due_cards_includes_and_excludes(client):
    reviewer_id, card_due, card_future = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    make_review(client, reviewer_id, card_due, 1, "idem-due")
    make_review(client, reviewer_id, card_future, 4, "idem-future")

    soon = get_due_cards(client, reviewer_id, T0 + timedelta(days=1, minutes=1))
    past = get_due_cards(client, reviewer_id, T0 - timedelta(days=1))

    assert soon.json()["card_ids"] == [str(card_due)]
    assert past.json()["card_ids"] == []


@pytest.mark.django_db
def test_interval_cap(client, fixed_clock):
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()
    intervals = []
    for i in range(12):
        data = make_review(client, reviewer_id, card_id, 4, f"idem-cap-{i}").json()
        intervals.append(data["interval_days"])
        fixed_clock.advance(days=data["interval_days"])

    assert intervals == sorted(intervals)
    assert intervals[-1] == 365


@pytest.mark.django_db
def test_queue_endpoint_orders_reviews_before_new(client, fixed_clock):
    reviewer_id = uuid.uuid4()
    catalog = [uuid.UUID(int=n) for n in range(1, 5)]
    for position, card_id in enumerate(catalog):
        CatalogCard.objects.create(card_id=card_id, position=position)

    make_review(client, reviewer_id, catalog[0], 1, "idem-q")
    fixed_clock.advance(days=2)

    url = reverse("queue", kwargs={"reviewer_id": str(reviewer_id)})
    data = client.get(url, {"new_limit": 2}).json()

    assert data["review_card_ids"] == [str(catalog[0])]
    assert data["new_card_ids"] == [str(catalog[1]), str(catalog[2])]
    assert data["card_ids"] == [str(c) for c in catalog[:3]]
    assert data["new_done_today"] == 0


@pytest.mark.django_db
def test_session_lifecycle(client):
    reviewer_id = uuid.uuid4()
    session_id = start_session(client, reviewer_id)

    make_review(client, reviewer_id, uuid.uuid4(), 3, "idem-s1", session_id=session_id)
    make_review(client, reviewer_id, uuid.uuid4(), 1, "idem-s2", session_id=session_id)

    first = end_session(client, session_id)
    second = end_session(client, session_id)

    assert first.status_code == 200
    assert first.json()["noop"] is False
    assert first.json()["cards_reviewed"] == 2
    assert first.json()["cards_correct"] == 1
    assert first.json()["cards_new"] == 2
    assert second.json()["noop"] is True
    assert second.json()["ended_at"] == first.json()["ended_at"]

    late = make_review(client, reviewer_id, uuid.uuid4(), 3, "idem-s3", session_id=session_id)
    assert late.status_code == 409


@pytest.mark.django_db
def test_ending_unknown_session_is_not_found(client):
    resp = end_session(client, str(uuid.uuid4()))
    assert resp.status_code == 404


@pytest.mark.django_db
def test_stats_endpoint(client):
    reviewer_id = uuid.uuid4()
    card_id = uuid.uuid4()
    CatalogCard.objects.create(card_id=card_id, position=0)
    CatalogCard.objects.create(card_id=uuid.uuid4(), position=1)
    make_review(client, reviewer_id, card_id, 2, "idem-st")

    data = client.get(reverse("review-stats", kwargs={"reviewer_id": str(reviewer_id)})).json()

    assert data["retention_rate"] == 1.0
    assert data["maturity"] == {"new": 1, "learning": 1, "review": 0, "relearning": 0, "total": 2}
    assert data["due_counts"] == {"due": 0, "new": 1, "total": 1}
    assert len(data["forecast"]) == 7


@pytest.mark.django_db
def test_stats_for_reviewer_without_history(client):
    data = client.get(reverse("review-stats", kwargs={"reviewer_id": str(uuid.uuid4())})).json()
    assert data["retention_rate"] is None
    assert data["predicted_recall"] is None


@pytest.mark.django_db
def test_preview_does_not_write(client):
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()
    url = reverse("card-preview", kwargs={"reviewer_id": str(reviewer_id), "card_id": str(card_id)})

    data = client.get(url).json()

    assert data["state"] == "new"
    assert set(data["outcomes"]) == {"again", "hard", "good", "easy"}
    assert data["outcomes"]["easy"]["state"] == "review"
    assert data["outcomes"]["good"]["interval_days"] == 2
    assert get_due_cards(client, reviewer_id, T0 + timedelta(days=30)).json()["card_ids"] == []


@pytest.mark.django_db
def test_session_start_with_reused_id(client):
    reviewer_id, session_id = uuid.uuid4(), str(uuid.uuid4())
    payload = {"reviewer_id": str(reviewer_id), "session_id": session_id}

    first = client.post(reverse("session-start"), data=payload, content_type="application/json")
    repeat = client.post(reverse("session-start"), data=payload, content_type="application/json")
    stolen = client.post(
        reverse("session-start"),
        data={"reviewer_id": str(uuid.uuid4()), "session_id": session_id},
        content_type="application/json",
    )

    assert first.status_code == 201
    assert repeat.status_code == 201
    assert repeat.json()["session_id"] == session_id
    assert stolen.status_code == 409
    assert stolen.json()["error"] == "SessionOwnershipError"


@pytest.mark.django_db
def test_review_with_foreign_session_is_conflict(client):
    session_id = start_session(client, uuid.uuid4())

    resp = make_review(client, uuid.uuid4(), uuid.uuid4(), 3, "idem-foreign", session_id=session_id)

    assert resp.status_code == 409
    assert resp.json()["error"] == "SessionOwnershipError"
