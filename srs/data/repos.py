from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Sum

from ..domain.errors import ConflictError, StoreUnavailableError
from ..domain.state import CardReviewState
from .models import CardReviewRecord, CatalogCard, ReviewLog

STATE_FIELDS = (
    "state",
    "stability",
    "difficulty",
    "elapsed_days",
    "scheduled_days",
    "due",
    "last_review",
    "reps",
    "lapses",
    "total_reviews",
    "total_correct",
)


def to_domain(record: CardReviewRecord) -> CardReviewState:
    return CardReviewState(
        reviewer_id=record.reviewer_id,
        card_id=record.card_id,
        version=record.version,
        **{name: getattr(record, name) for name in STATE_FIELDS},
    )


class DjangoReviewStateStore:
    """
    Review states keyed by (reviewer, card), with compare-and-swap writes on
    the ``version`` column. Database failures surface as
    ``StoreUnavailableError``.
    """

    def get(self, reviewer_id, card_id):
        try:
            record = CardReviewRecord.objects.filter(
                reviewer_id=reviewer_id, card_id=card_id
            ).first()
        except DatabaseError as exc:
            raise StoreUnavailableError(f"could not read review state: {exc}") from exc
        return to_domain(record) if record is not None else None

    def put(self, reviewer_id, card_id, state: CardReviewState, expected_version):
        """
        Write ``state`` if the stored version still equals ``expected_version``
        (``None`` or 0: no row may exist yet). Returns the stored state with
        its new version; raises ``ConflictError`` otherwise.
        """
        values = {name: getattr(state, name) for name in STATE_FIELDS}
        try:
            if not expected_version:
                try:
                    with transaction.atomic():
                        record = CardReviewRecord.objects.create(
                            reviewer_id=reviewer_id, card_id=card_id, version=1, **values
                        )
                except IntegrityError as exc:
                    raise ConflictError(reviewer_id, card_id, expected_version) from exc
                return to_domain(record)

            updated = CardReviewRecord.objects.filter(
                reviewer_id=reviewer_id, card_id=card_id, version=expected_version
            ).update(version=expected_version + 1, **values)
        except DatabaseError as exc:
            raise StoreUnavailableError(f"could not write review state: {exc}") from exc

        if updated != 1:
            raise ConflictError(reviewer_id, card_id, expected_version)
        return state.evolve(
            reviewer_id=reviewer_id, card_id=card_id, version=expected_version + 1
        )

    def due_before(self, reviewer_id, instant):
        """Every state of the reviewer with ``due <= instant``, oldest due first."""
        return self._fetch(
            lambda: CardReviewRecord.objects.filter(
                reviewer_id=reviewer_id, due__lte=instant
            ).order_by("due", "card_id")
        )

    def all_for_reviewer(self, reviewer_id):
        return self._fetch(lambda: CardReviewRecord.objects.filter(reviewer_id=reviewer_id))

    def totals(self, reviewer_id):
        """(total_correct, total_reviews) summed over the reviewer's states."""
        try:
            agg = CardReviewRecord.objects.filter(reviewer_id=reviewer_id).aggregate(
                correct=Sum("total_correct"), reviews=Sum("total_reviews")
            )
        except DatabaseError as exc:
            raise StoreUnavailableError(f"could not read review totals: {exc}") from exc
        return agg["correct"] or 0, agg["reviews"] or 0

    def _fetch(self, query):
        # Materialize inside the try so a failure mid-iteration fails the call.
        try:
            records = list(query())
        except DatabaseError as exc:
            raise StoreUnavailableError(f"could not read review states: {exc}") from exc
        return [to_domain(record) for record in records]


@contextmanager
def unavailable_on_db_error(action):
    """Re-raise any ``DatabaseError`` in the block as ``StoreUnavailableError``."""
    try:
        yield
    except DatabaseError as exc:
        raise StoreUnavailableError(f"could not {action}: {exc}") from exc


def catalog_card_ids():
    with unavailable_on_db_error("read catalog"):
        return list(
            CatalogCard.objects.order_by("position", "card_id").values_list("card_id", flat=True)
        )


def catalog_size():
    with unavailable_on_db_error("read catalog"):
        return CatalogCard.objects.count()


def get_existing_idempotent(reviewer_id, card_id, idem_key):
    with unavailable_on_db_error("read review log"):
        return ReviewLog.objects.filter(
            reviewer_id=reviewer_id, card_id=card_id, idempotency_key=idem_key
        ).first()


def persist_review(prev: CardReviewState, nxt: CardReviewState, rating, idem_key, session_id=None):
    """
    Insert the ReviewLog row for a committed review. Must run in the same
    transaction as the state write so both commit or neither does.
    """
    return ReviewLog.objects.create(
        reviewer_id=nxt.reviewer_id,
        card_id=nxt.card_id,
        rating=int(rating),
        idempotency_key=idem_key,
        session_id=session_id,
        reviewed_at=nxt.last_review,
        was_new=prev.is_new,
        state_before=prev.state,
        state_after=nxt.state,
        stability_after=nxt.stability,
        difficulty_after=nxt.difficulty,
        next_review_at=nxt.due,
        interval_days=int(nxt.scheduled_days),
    )
