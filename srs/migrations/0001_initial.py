import django.utils.timezone
from django.db import migrations, models

STATE_CHOICES = [
    ("new", "New"),
    ("learning", "Learning"),
    ("review", "Review"),
    ("relearning", "Relearning"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CardReviewRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reviewer_id", models.UUIDField()),
                ("card_id", models.UUIDField()),
                ("state", models.CharField(choices=STATE_CHOICES, default="new", max_length=16)),
                ("stability", models.FloatField()),
                ("difficulty", models.FloatField()),
                ("elapsed_days", models.FloatField(default=0.0)),
                ("scheduled_days", models.FloatField(default=0.0)),
                ("due", models.DateTimeField(default=django.utils.timezone.now)),
                ("last_review", models.DateTimeField(blank=True, null=True)),
                ("reps", models.PositiveIntegerField(default=0)),
                ("lapses", models.PositiveIntegerField(default=0)),
                ("total_reviews", models.PositiveIntegerField(default=0)),
                ("total_correct", models.PositiveIntegerField(default=0)),
                ("version", models.PositiveIntegerField(default=1)),
            ],
            options={
                "unique_together": {("reviewer_id", "card_id")},
                "indexes": [models.Index(fields=["reviewer_id", "due"], name="srs_cardrev_reviewe_due_idx")],
            },
        ),
        migrations.CreateModel(
            name="ReviewLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reviewer_id", models.UUIDField()),
                ("card_id", models.UUIDField()),
                ("rating", models.SmallIntegerField()),
                ("idempotency_key", models.CharField(max_length=64)),
                ("session_id", models.UUIDField(blank=True, null=True)),
                ("reviewed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("was_new", models.BooleanField(default=False)),
                ("state_before", models.CharField(choices=STATE_CHOICES, max_length=16)),
                ("state_after", models.CharField(choices=STATE_CHOICES, max_length=16)),
                ("stability_after", models.FloatField()),
                ("difficulty_after", models.FloatField()),
                ("next_review_at", models.DateTimeField()),
                ("interval_days", models.PositiveIntegerField()),
            ],
            options={
                "unique_together": {("reviewer_id", "card_id", "idempotency_key")},
                "indexes": [
                    models.Index(fields=["reviewer_id", "reviewed_at"], name="srs_reviewl_reviewe_at_idx"),
                    models.Index(fields=["reviewer_id", "card_id", "reviewed_at"], name="srs_reviewl_reviewe_card_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StudySessionRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_id", models.UUIDField(unique=True)),
                ("reviewer_id", models.UUIDField()),
                ("started_at", models.DateTimeField()),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                ("cards_reviewed", models.PositiveIntegerField(default=0)),
                ("cards_correct", models.PositiveIntegerField(default=0)),
                ("cards_new", models.PositiveIntegerField(default=0)),
                ("duration_seconds", models.PositiveIntegerField(blank=True, null=True)),
            ],
            options={
                "indexes": [models.Index(fields=["reviewer_id", "started_at"], name="srs_studyse_reviewe_idx")],
            },
        ),
        migrations.CreateModel(
            name="CatalogCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("card_id", models.UUIDField(unique=True)),
                ("position", models.PositiveIntegerField(default=0)),
                ("deck", models.CharField(blank=True, default="", max_length=64)),
            ],
            options={
                "ordering": ["position", "card_id"],
            },
        ),
    ]
