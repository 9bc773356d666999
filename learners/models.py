import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    A learner. ``reviewer_id`` is the opaque identifier the review scheduler
    keys every card state and study session on.
    """

    reviewer_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
