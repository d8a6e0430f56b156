"""Stage progression and ease/interval updates on answer outcomes."""
from dataclasses import replace
from datetime import datetime
from typing import Optional

from loguru import logger

from floral_tutor.models import (
    MAX_EASE_FACTOR, MIN_EASE_FACTOR, NEXT_STAGE, ProgressRecord, Stage,
)
from floral_tutor.scheduler import local_naive, next_review_date, scaled_interval
from floral_tutor.store import ProgressStore

CORRECT_TO_ADVANCE = 2
EASE_STEP_CORRECT = 0.1
EASE_STEP_INCORRECT = 0.2
FAILED_INTERVAL_DAYS = 1


def clamp_ease(value: float) -> float:
    return round(max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, value)), 2)


def apply_correct(record: ProgressRecord, now: datetime) -> ProgressRecord:
    """Return ``record`` updated for a correct answer at ``now``.

    The interval is scaled from the stage the answer was given in; the
    stage then advances once ``CORRECT_TO_ADVANCE`` answers accumulate.
    """
    ease = clamp_ease(record.ease_factor + EASE_STEP_CORRECT)
    interval = scaled_interval(record.stage, ease)
    stage = record.stage
    stage_correct = record.stage_correct_count + 1
    if stage is not Stage.MASTERY and stage_correct >= CORRECT_TO_ADVANCE:
        stage = NEXT_STAGE[stage]
        stage_correct = 0

    return replace(
        record,
        stage=stage,
        correct_count=record.correct_count + 1,
        stage_correct_count=stage_correct,
        last_seen=now,
        flagged_for_review=False,
        is_new=False,
        ease_factor=ease,
        review_interval=interval,
        next_review_date=next_review_date(now, interval),
    )


def apply_incorrect(record: ProgressRecord, now: datetime) -> ProgressRecord:
    """Return ``record`` updated for an incorrect answer. The stage never changes."""
    return replace(
        record,
        incorrect_count=record.incorrect_count + 1,
        last_seen=now,
        flagged_for_review=True,
        is_new=False,
        ease_factor=clamp_ease(record.ease_factor - EASE_STEP_INCORRECT),
        review_interval=FAILED_INTERVAL_DAYS,
        next_review_date=next_review_date(now, FAILED_INTERVAL_DAYS),
    )


def record_correct(
    store: ProgressStore, item_id: str, now: Optional[datetime] = None
) -> ProgressRecord:
    now = local_naive(now) or datetime.now()
    updated = store.update(item_id, lambda record: apply_correct(record, now))
    # A correct answer only leaves the count at zero when it advanced the stage.
    if updated.stage_correct_count == 0:
        logger.info("{} advanced to {}", item_id, updated.stage.value)
    else:
        logger.debug("{} correct ({}/{} in {})", item_id, updated.stage_correct_count,
                     CORRECT_TO_ADVANCE, updated.stage.value)
    return updated


def record_incorrect(
    store: ProgressStore, item_id: str, now: Optional[datetime] = None
) -> ProgressRecord:
    now = local_naive(now) or datetime.now()
    updated = store.update(item_id, lambda record: apply_incorrect(record, now))
    logger.debug("{} incorrect, ease now {}", item_id, updated.ease_factor)
    return updated
