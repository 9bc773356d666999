from django.db import models
from django.utils import timezone

from ..domain.enums import CardState


class CardReviewRecord(models.Model):
    reviewer_id = models.UUIDField()
    card_id = models.UUIDField()
    state = models.CharField(max_length=16, choices=CardState.CHOICES, default=CardState.NEW)
    stability = models.FloatField()
    difficulty = models.FloatField()
    elapsed_days = models.FloatField(default=0.0)
    scheduled_days = models.FloatField(default=0.0)
    due = models.DateTimeField(default=timezone.now)  # UTC
    last_review = models.DateTimeField(null=True, blank=True)
    reps = models.PositiveIntegerField(default=0)
    lapses = models.PositiveIntegerField(default=0)
    total_reviews = models.PositiveIntegerField(default=0)
    total_correct = models.PositiveIntegerField(default=0)
    version = models.PositiveIntegerField(default=1)

    class Meta:
        unique_together = (("reviewer_id", "card_id"),)
        indexes = [
            models.Index(fields=["reviewer_id", "due"], name="srs_cardrev_reviewe_due_idx"),
        ]


class ReviewLog(models.Model):
    reviewer_id = models.UUIDField()
    card_id = models.UUIDField()
    rating = models.SmallIntegerField()
    idempotency_key = models.CharField(max_length=64)
    session_id = models.UUIDField(null=True, blank=True)
    reviewed_at = models.DateTimeField(default=timezone.now)
    was_new = models.BooleanField(default=False)
    state_before = models.CharField(max_length=16, choices=CardState.CHOICES)
    state_after = models.CharField(max_length=16, choices=CardState.CHOICES)
    stability_after = models.FloatField()
    difficulty_after = models.FloatField()
    next_review_at = models.DateTimeField()
    interval_days = models.PositiveIntegerField()

    class Meta:
        unique_together = (("reviewer_id", "card_id", "idempotency_key"),)
        indexes = [
            models.Index(fields=["reviewer_id", "reviewed_at"], name="srs_reviewl_reviewe_at_idx"),
            models.Index(
                fields=["reviewer_id", "card_id", "reviewed_at"], name="srs_reviewl_reviewe_card_idx"
            ),
        ]


class StudySessionRecord(models.Model):
    session_id = models.UUIDField(unique=True)
    reviewer_id = models.UUIDField()
    started_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)
    cards_reviewed = models.PositiveIntegerField(default=0)
    cards_correct = models.PositiveIntegerField(default=0)
    cards_new = models.PositiveIntegerField(default=0)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["reviewer_id", "started_at"], name="srs_studyse_reviewe_idx"),
        ]

    @property
    def is_open(self):
        return self.ended_at is None


class CatalogCard(models.Model):
    card_id = models.UUIDField(unique=True)
    position = models.PositiveIntegerField(default=0)
    deck = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        ordering = ["position", "card_id"]
