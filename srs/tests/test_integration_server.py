"""
Smoke tests against a running server (``python manage.py runserver``).
Deselected by default; run with ``pytest -m integration``.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import requests

BASE_URL = "http://127.0.0.1:8000"
logger = logging.getLogger(__name__)


def post_review(reviewer_id, card_id, rating, idem):
    """Helper for POST /reviews"""
    payload = {
        "reviewer_id": str(reviewer_id),
        "card_id": str(card_id),
        "rating": rating,
        "idempotency_key": idem,
    }
    r = requests.post(f"{BASE_URL}/reviews", json=payload)
    data = r.json()
    logger.info(
        "POST /reviews rating=%s -> status=%s interval=%s idempotent=%s",
        rating,
        r.status_code,
        data.get("interval_days"),
        data.get("idempotent"),
    )
    return r


def get_due(reviewer_id, until):
    """Helper for GET /users/{id}/due-cards"""
    r = requests.get(
        f"{BASE_URL}/users/{reviewer_id}/due-cards", params={"until": until.isoformat()}
    )
    logger.info(
        "GET /due-cards until=%s -> status=%s card_count=%s",
        until.isoformat(),
        r.status_code,
        len(r.json()["card_ids"]),
    )
    return r


@pytest.mark.integration
def test_first_review_labels_live():
    reviewer_id = uuid.uuid4()

    again = post_review(reviewer_id, uuid.uuid4(), 1, "idem-live-1")
    easy = post_review(reviewer_id, uuid.uuid4(), 4, "idem-live-4")

    assert again.status_code == 201
    assert again.json()["rating_label"] == "Again"
    assert again.json()["interval_days"] == 1
    assert easy.json()["rating_label"] == "Easy"
    assert easy.json()["interval_days"] > again.json()["interval_days"]


@pytest.mark.integration
def test_idempotency_live():
    """Identical requests should reuse result with 200 + idempotent=True"""
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()

    first = post_review(reviewer_id, card_id, 3, "idem-live-same")
    second = post_review(reviewer_id, card_id, 3, "idem-live-same")

    assert first.status_code == 201
    assert first.json()["idempotent"] is False
    assert second.status_code == 200
    assert second.json()["idempotent"] is True
    assert first.json()["next_review_utc"] == second.json()["next_review_utc"]


@pytest.mark.integration
def test_due_cards_excludes_future_live():
    reviewer_id, card_id = uuid.uuid4(), uuid.uuid4()
    post_review(reviewer_id, card_id, 1, "idem-live-due")

    now = datetime.now(timezone.utc)
    assert get_due(reviewer_id, now + timedelta(days=2)).json()["card_ids"] == [str(card_id)]
    assert get_due(reviewer_id, now - timedelta(days=1)).json()["card_ids"] == []


@pytest.mark.integration
def test_session_round_trip_live():
    reviewer_id = uuid.uuid4()
    started = requests.post(f"{BASE_URL}/sessions", json={"reviewer_id": str(reviewer_id)})
    session_id = started.json()["session_id"]

    post_review(reviewer_id, uuid.uuid4(), 3, "idem-live-sess")
    ended = requests.post(f"{BASE_URL}/sessions/{session_id}/end")

    assert started.status_code == 201
    assert ended.status_code == 200
    assert ended.json()["noop"] is False
