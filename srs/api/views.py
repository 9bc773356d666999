from rest_framework import views, status
from rest_framework.response import Response
import structlog
import uuid
from ..domain.enums import RATING_LABELS, Rating
from ..domain.errors import (
    ClockRegressionError,
    ConflictError,
    InvariantViolation,
    QueueError,
    SchedulingError,
    SessionClosedError,
    SessionNotFoundError,
    SessionOwnershipError,
    StoreUnavailableError,
)
from ..services import queue as queue_service
from ..services import sessions
from ..services.reviews import preview_review, record_review
from ..services.stats import review_stats
from ..utils.time import SystemClock, to_local_iso
from .serializers import (
    CardReviewStateSerializer,
    DueQuerySerializer,
    QueueQuerySerializer,
    ReviewInSerializer,
    SessionStartSerializer,
    StudySessionSerializer,
)

base_logger = structlog.get_logger()

ERROR_STATUS = (
    (ClockRegressionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (SessionClosedError, status.HTTP_409_CONFLICT),
    (SessionOwnershipError, status.HTTP_409_CONFLICT),
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (QueueError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InvariantViolation, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def error_response(exc, logger):
    code = next(
        (code for cls, code in ERROR_STATUS if isinstance(exc, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    logger.warning("scheduling_error", error=type(exc).__name__, detail=str(exc), status=code)
    return Response({"error": type(exc).__name__, "detail": str(exc)}, status=code)


def instant_fields(prefix, dt):
    return {f"{prefix}_utc": dt.isoformat(), f"{prefix}_local": to_local_iso(dt)}


class ReviewView(views.APIView):
    clock = SystemClock()

    def post(self, request):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        reviewer_id = s.validated_data["reviewer_id"]
        card_id = s.validated_data["card_id"]
        rating = Rating(s.validated_data["rating"])
        idem = s.validated_data["idempotency_key"]
        session_id = s.validated_data.get("session_id")

        try:
            outcome = record_review(
                reviewer_id, card_id, rating, idem, session_id=session_id, clock=self.clock
            )
        except SchedulingError as exc:
            return error_response(exc, logger)

        status_code = status.HTTP_200_OK if outcome.idempotent else status.HTTP_201_CREATED

        # Log with request_id & relevant context
        logger.info(
            "review_api_response",
            reviewer_id=str(reviewer_id),
            card_id=str(card_id),
            rating=int(rating),
            idempotent=outcome.idempotent,
            interval_days=outcome.interval_days,
            next_review_utc=outcome.next_review_at.isoformat(),
            status=status_code,
        )

        body = {
            **instant_fields("next_review", outcome.next_review_at),
            "interval_days": outcome.interval_days,
            "rating_label": RATING_LABELS[rating],
            "idempotent": outcome.idempotent,
        }
        if outcome.state is not None:
            body["state"] = CardReviewStateSerializer(outcome.state).data
        return Response(body, status=status_code)


class DueCardsView(views.APIView):
    def get(self, request, reviewer_id):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = DueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        until = qs.validated_data["until"]

        try:
            results = [str(c) for c in queue_service.due_card_ids(reviewer_id, until)]
        except SchedulingError as exc:
            return error_response(exc, logger)

        logger.info(
            "due_cards_api_response",
            reviewer_id=str(reviewer_id),
            until_utc=until.isoformat(),
            card_count=len(results),
        )

        return Response(
            {
                "reviewer_id": str(reviewer_id),
                **instant_fields("until", until),
                "card_ids": results,
            }
        )


class QueueView(views.APIView):
    clock = SystemClock()

    def get(self, request, reviewer_id):
        logger = base_logger.bind(request_id=str(uuid.uuid4()))

        qs = QueueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        now = self.clock.now()

        try:
            result = queue_service.build_queue_parts(
                reviewer_id,
                now,
                qs.validated_data["new_limit"],
                qs.validated_data["review_limit"],
            )
        except SchedulingError as exc:
            return error_response(exc, logger)

        return Response(
            {
                "reviewer_id": str(reviewer_id),
                **instant_fields("built_at", now),
                "review_card_ids": [str(c) for c in result.review_queue],
                "new_card_ids": [str(c) for c in result.new_queue],
                "card_ids": [str(c) for c in result.card_ids],
                "reviews_done_today": result.reviews_done_today,
                "new_done_today": result.new_done_today,
            }
        )


class ReviewStatsView(views.APIView):
    clock = SystemClock()

    def get(self, request, reviewer_id):
        logger = base_logger.bind(request_id=str(uuid.uuid4()))
        now = self.clock.now()
        try:
            data = review_stats(reviewer_id, now)
            counts = queue_service.due_counts(reviewer_id, now)
        except SchedulingError as exc:
            return error_response(exc, logger)

        maturity = data["maturity"]
        return Response(
            {
                "reviewer_id": str(reviewer_id),
                "today": data["today"],
                "this_week": data["this_week"],
                "retention_rate": data["retention_rate"],
                "predicted_recall": data["predicted_recall"],
                "maturity": {
                    "new": maturity.new,
                    "learning": maturity.learning,
                    "review": maturity.review,
                    "relearning": maturity.relearning,
                    "total": maturity.total,
                },
                "due_counts": counts,
                "forecast": [
                    {"date": day.date().isoformat(), "count": count}
                    for day, count in data["forecast"]
                ],
            }
        )


class CardPreviewView(views.APIView):
    clock = SystemClock()

    def get(self, request, reviewer_id, card_id):
        logger = base_logger.bind(request_id=str(uuid.uuid4()))
        try:
            current, outcomes = preview_review(reviewer_id, card_id, clock=self.clock)
        except SchedulingError as exc:
            return error_response(exc, logger)

        return Response(
            {
                "reviewer_id": str(reviewer_id),
                "card_id": str(card_id),
                "state": current.state if current is not None else "new",
                "outcomes": {
                    RATING_LABELS[rating].lower(): {
                        "state": nxt.state,
                        "interval_days": int(nxt.scheduled_days),
                        **instant_fields("next_review", nxt.due),
                    }
                    for rating, nxt in outcomes.items()
                },
            }
        )


class SessionStartView(views.APIView):
    clock = SystemClock()

    def post(self, request):
        logger = base_logger.bind(request_id=str(uuid.uuid4()))
        s = SessionStartSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            session_id = sessions.start_session(
                s.validated_data["reviewer_id"],
                self.clock.now(),
                session_id=s.validated_data.get("session_id"),
            )
        except SchedulingError as exc:
            return error_response(exc, logger)
        return Response({"session_id": str(session_id)}, status=status.HTTP_201_CREATED)


class SessionEndView(views.APIView):
    clock = SystemClock()

    def post(self, request, session_id):
        logger = base_logger.bind(request_id=str(uuid.uuid4()))
        try:
            session, closed = sessions.end_session(session_id, self.clock.now())
        except SchedulingError as exc:
            return error_response(exc, logger)

        return Response(
            {**StudySessionSerializer(session).data, "noop": not closed},
            status=status.HTTP_200_OK,
        )
