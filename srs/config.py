from dataclasses import dataclass, fields

from .domain.enums import Rating

TARGET_RETENTION = 0.9
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 365
NEW_LIMIT = 20
REVIEW_LIMIT = 100

INITIAL_STABILITY = {
    Rating.AGAIN: 0.4,
    Rating.HARD: 0.6,
    Rating.GOOD: 2.4,
    Rating.EASY: 5.8,
}
INITIAL_DIFFICULTY = {
    Rating.AGAIN: 6.81,
    Rating.HARD: 5.87,
    Rating.GOOD: 4.93,
    Rating.EASY: 3.99,
}


@dataclass(frozen=True)
class SchedulerConfig:
    target_retention: float = TARGET_RETENTION
    min_interval: int = MIN_INTERVAL_DAYS
    max_interval: int = MAX_INTERVAL_DAYS
    new_limit: int = NEW_LIMIT
    review_limit: int = REVIEW_LIMIT

    # Memory model coefficients
    initial_stability: tuple = tuple(INITIAL_STABILITY[r] for r in Rating)
    initial_difficulty: tuple = tuple(INITIAL_DIFFICULTY[r] for r in Rating)
    difficulty_step: float = 0.86
    growth_scale: float = 1.49
    stability_decay: float = 0.14
    retrievability_gain: float = 0.94
    hard_penalty: float = 0.29
    easy_bonus: float = 2.61
    lapse_stability_factor: float = 0.4
    lapse_difficulty_exponent: float = 0.3
    min_stability: float = 0.1

    enable_fuzz: bool = True
    fuzz_factor: float = 0.05
    fuzz_min_interval: int = 3

    day_rollover_hour: int = 0
    max_conflict_retries: int = 3

    def __post_init__(self):
        errors = []
        if not 0 < self.target_retention < 1:
            errors.append("target_retention must be between 0 and 1 (exclusive)")
        if self.min_interval < 1:
            errors.append("min_interval must be at least 1 day")
        if self.max_interval < self.min_interval:
            errors.append("max_interval must not be smaller than min_interval")
        if self.new_limit < 0 or self.review_limit < 0:
            errors.append("daily limits must be non-negative")
        if len(self.initial_stability) != len(Rating) or min(self.initial_stability) <= 0:
            errors.append("initial_stability needs one positive value per rating")
        if len(self.initial_difficulty) != len(Rating):
            errors.append("initial_difficulty needs one value per rating")
        if self.min_stability <= 0:
            errors.append("min_stability must be positive")
        if not 0 < self.lapse_stability_factor <= 1:
            errors.append("lapse_stability_factor must be in (0, 1]")
        if self.lapse_difficulty_exponent < 0:
            errors.append("lapse_difficulty_exponent must be non-negative")
        if self.difficulty_step < 0:
            errors.append("difficulty_step must be non-negative")
        if not 0 <= self.fuzz_factor < 1:
            errors.append("fuzz_factor must be in [0, 1)")
        if not 0 <= self.day_rollover_hour < 24:
            errors.append("day_rollover_hour must be in [0, 24)")
        if self.max_conflict_retries < 0:
            errors.append("max_conflict_retries must be non-negative")
        if errors:
            raise ValueError("invalid scheduler config: " + "; ".join(errors))

    def stability_for(self, rating: Rating) -> float:
        return self.initial_stability[int(rating) - 1]

    def difficulty_for(self, rating: Rating) -> float:
        return self.initial_difficulty[int(rating) - 1]


DEFAULT_CONFIG = SchedulerConfig()


def get_scheduler_config() -> SchedulerConfig:
    """Defaults overlaid with the ``SRS`` dict from Django settings."""
    from django.conf import settings

    raw = getattr(settings, "SRS", None) or {}
    known = {f.name for f in fields(SchedulerConfig)}
    overrides = {}
    for key, value in raw.items():
        name = key.lower()
        if name not in known:
            raise ValueError(f"unknown SRS setting: {key}")
        if isinstance(value, list):
            value = tuple(value)
        overrides[name] = value
    return SchedulerConfig(**overrides)
