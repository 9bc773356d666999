from rest_framework import serializers

from ..config import get_scheduler_config


class ReviewInSerializer(serializers.Serializer):
    reviewer_id = serializers.UUIDField()
    card_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=4)
    idempotency_key = serializers.CharField(max_length=64)
    session_id = serializers.UUIDField(required=False, allow_null=True)


class DueQuerySerializer(serializers.Serializer):
    until = serializers.DateTimeField()  # ISO-8601


class QueueQuerySerializer(serializers.Serializer):
    new_limit = serializers.IntegerField(min_value=0, required=False)
    review_limit = serializers.IntegerField(min_value=0, required=False)

    def validate(self, attrs):
        config = get_scheduler_config()
        attrs.setdefault("new_limit", config.new_limit)
        attrs.setdefault("review_limit", config.review_limit)
        return attrs


class SessionStartSerializer(serializers.Serializer):
    reviewer_id = serializers.UUIDField()
    session_id = serializers.UUIDField(required=False)


class CardReviewStateSerializer(serializers.Serializer):
    card_id = serializers.UUIDField()
    reviewer_id = serializers.UUIDField()
    state = serializers.CharField()
    stability = serializers.FloatField()
    difficulty = serializers.FloatField()
    elapsed_days = serializers.FloatField()
    scheduled_days = serializers.FloatField()
    due = serializers.DateTimeField()
    last_review = serializers.DateTimeField(allow_null=True)
    reps = serializers.IntegerField()
    lapses = serializers.IntegerField()
    total_reviews = serializers.IntegerField()
    total_correct = serializers.IntegerField()


class StudySessionSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    reviewer_id = serializers.UUIDField()
    started_at = serializers.DateTimeField()
    ended_at = serializers.DateTimeField(allow_null=True)
    cards_reviewed = serializers.IntegerField()
    cards_correct = serializers.IntegerField()
    cards_new = serializers.IntegerField()
    duration_seconds = serializers.IntegerField(allow_null=True)
