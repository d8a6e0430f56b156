# tests/test_scheduler.py
import math
from datetime import datetime, timedelta, timezone

from floral_tutor.models import ProgressRecord, Stage
from floral_tutor.scheduler import (
    base_interval, days_overdue, days_since, hours_since, is_overdue, local_naive, next_review_date,
    scaled_interval,
)


def test_base_intervals_grow_with_stage():
    assert [base_interval(s) for s in Stage] == [1, 2, 4, 7, 14]


def test_scaled_interval_rounds_half_up():
    assert scaled_interval(Stage.FLASHCARD, 2.5) == 3
    assert scaled_interval(Stage.MULTIPLE_CHOICE, 2.7) == 5  # 5.4
    assert scaled_interval(Stage.MASTERY, 4.0) == 56


def test_scaled_interval_is_at_least_one_day():
    assert scaled_interval(Stage.FLASHCARD, 1.3) == 1


def test_next_review_date(now):
    assert next_review_date(now, 3) == now + timedelta(days=3)


def test_not_overdue_without_review_date(now):
    assert is_overdue(ProgressRecord(item_id="A"), now) is False


def test_overdue_only_strictly_after_due_date(now):
    record = ProgressRecord(item_id="A", next_review_date=now)
    assert is_overdue(record, now) is False
    assert is_overdue(record, now + timedelta(seconds=1)) is True
    assert is_overdue(record, now - timedelta(days=1)) is False


def test_days_overdue(now):
    record = ProgressRecord(item_id="A", next_review_date=now - timedelta(days=2, hours=12))
    assert days_overdue(record, now) == 2.5
    assert days_overdue(ProgressRecord(item_id="B"), now) == 0.0


def test_hours_and_days_since(now):
    assert hours_since(now - timedelta(hours=6), now) == 6.0
    assert days_since(now - timedelta(days=3), now) == 3.0
    assert hours_since(None, now) == math.inf
    assert days_since(None, now) == math.inf


def test_local_naive(now):
    assert local_naive(None) is None
    assert local_naive(now) == now
    aware = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    converted = local_naive(aware)
    assert converted.tzinfo is None
    assert converted == aware.astimezone().replace(tzinfo=None)
