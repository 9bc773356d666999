from enum import IntEnum


class Rating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardState:
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"

    CHOICES = (
        (NEW, "New"),
        (LEARNING, "Learning"),
        (REVIEW, "Review"),
        (RELEARNING, "Relearning"),
    )
    ALL = (NEW, LEARNING, REVIEW, RELEARNING)


RATING_LABELS = {
    Rating.AGAIN: "Again",
    Rating.HARD: "Hard",
    Rating.GOOD: "Good",
    Rating.EASY: "Easy",
}

# (from_state, rating) -> to_state
TRANSITIONS = {
    CardState.NEW: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.LEARNING,
        Rating.GOOD: CardState.LEARNING,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.LEARNING: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.LEARNING,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.REVIEW: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.REVIEW,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.RELEARNING: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.RELEARNING,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
}
