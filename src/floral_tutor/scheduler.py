"""Review timing: base intervals, due dates and overdue checks."""
import math
from datetime import datetime, timedelta
from typing import Optional

from floral_tutor.models import ProgressRecord, Stage

BASE_INTERVAL_DAYS = {
    Stage.FLASHCARD: 1,
    Stage.MULTIPLE_CHOICE: 2,
    Stage.SHORT_ANSWER: 4,
    Stage.SCIENTIFIC_NAME: 7,
    Stage.MASTERY: 14,
}

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def local_naive(ts: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware timestamp to naive local time; naive values pass through.

    Stored timestamps are naive local times, so every clock reading is
    brought into the same form before it is compared with them.
    """
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)


def base_interval(stage: Stage) -> int:
    return BASE_INTERVAL_DAYS[stage]


def scaled_interval(stage: Stage, ease_factor: float) -> int:
    """Review interval in days for a correct answer at ``stage``.

    Rounds half up, so 1 day x 2.5 ease gives 3 days rather than 2.
    """
    return int(math.floor(base_interval(stage) * ease_factor + 0.5))


def next_review_date(now: datetime, interval_days: int) -> datetime:
    return now + timedelta(days=interval_days)


def is_overdue(record: ProgressRecord, now: datetime) -> bool:
    return record.next_review_date is not None and now > record.next_review_date


def days_overdue(record: ProgressRecord, now: datetime) -> float:
    """Fractional days past the due date, 0.0 if not overdue."""
    if not is_overdue(record, now):
        return 0.0
    return (now - record.next_review_date).total_seconds() / SECONDS_PER_DAY


def hours_since(ts: Optional[datetime], now: datetime) -> float:
    """Hours elapsed since ``ts``; infinite when there is no timestamp."""
    if ts is None:
        return math.inf
    return (now - ts).total_seconds() / SECONDS_PER_HOUR


def days_since(ts: Optional[datetime], now: datetime) -> float:
    if ts is None:
        return math.inf
    return (now - ts).total_seconds() / SECONDS_PER_DAY
