from datetime import datetime, time, timedelta

from django.utils import timezone


class SystemClock:
    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """Clock pinned to a settable instant, for tests and replays."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> datetime:
        self.instant = self.instant + timedelta(**delta)
        return self.instant


def to_local_iso(dt_utc):
    return timezone.localtime(dt_utc).isoformat()


def study_day_start(now: datetime, rollover_hour: int = 0, tz=None) -> datetime:
    """Start of the study day containing ``now`` in ``tz`` (default: current time zone)."""
    tz = tz or timezone.get_current_timezone()
    local = now.astimezone(tz)
    start = datetime.combine(local.date(), time(hour=rollover_hour), tzinfo=tz)
    if local < start:
        start = datetime.combine(local.date() - timedelta(days=1), time(hour=rollover_hour), tzinfo=tz)
    return start
