from .data.models import CardReviewRecord, CatalogCard, ReviewLog, StudySessionRecord  # noqa: F401
