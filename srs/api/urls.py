from django.urls import path

from .views import (
    CardPreviewView,
    DueCardsView,
    QueueView,
    ReviewStatsView,
    ReviewView,
    SessionEndView,
    SessionStartView,
)

urlpatterns = [
    path("reviews", ReviewView.as_view(), name="review"),
    path("users/<uuid:reviewer_id>/due-cards", DueCardsView.as_view(), name="due-cards"),
    path("users/<uuid:reviewer_id>/queue", QueueView.as_view(), name="queue"),
    path("users/<uuid:reviewer_id>/stats", ReviewStatsView.as_view(), name="review-stats"),
    path(
        "users/<uuid:reviewer_id>/cards/<uuid:card_id>/preview",
        CardPreviewView.as_view(),
        name="card-preview",
    ),
    path("sessions", SessionStartView.as_view(), name="session-start"),
    path("sessions/<uuid:session_id>/end", SessionEndView.as_view(), name="session-end"),
]
