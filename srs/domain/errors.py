class SchedulingError(Exception):
    """Base class for every error the review scheduler raises."""


class ClockRegressionError(SchedulingError):
    """The review instant precedes the card's last review."""

    def __init__(self, now, last_review):
        self.now = now
        self.last_review = last_review
        super().__init__(
            f"review at {now.isoformat()} precedes last review at {last_review.isoformat()}"
        )


class ConflictError(SchedulingError):
    """A concurrent write changed the stored state since it was read."""

    def __init__(self, reviewer_id, card_id, expected_version):
        self.reviewer_id = reviewer_id
        self.card_id = card_id
        self.expected_version = expected_version
        super().__init__(
            f"review state for reviewer={reviewer_id} card={card_id} "
            f"no longer at version {expected_version}"
        )


class StoreUnavailableError(SchedulingError):
    """The persistence layer failed."""


class InvariantViolation(SchedulingError):
    """A computed review state broke one of the state invariants."""

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class QueueError(SchedulingError):
    """The review queue could not be built."""


class SessionError(SchedulingError):
    pass


class SessionNotFoundError(SessionError):
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"study session {session_id} does not exist")


class SessionClosedError(SessionError):
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"study session {session_id} has already ended")


class SessionOwnershipError(SessionError):
    """The session exists but was started by a different reviewer."""

    def __init__(self, session_id, reviewer_id):
        self.session_id = session_id
        self.reviewer_id = reviewer_id
        super().__init__(f"study session {session_id} does not belong to reviewer {reviewer_id}")
