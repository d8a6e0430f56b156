"""Progress persistence: one row per item, plus JSON snapshot export/import.

The store is the only owner of mastery records. Business rules live in
``mastery``; this module only reads, writes and (de)serializes.
"""
import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from floral_tutor.db import DEFAULT_DB_PATH, get_connection, init_db
from floral_tutor.exceptions import MalformedSnapshotError, StorageError
from floral_tutor.models import (
    MAX_EASE_FACTOR, MIN_EASE_FACTOR, ProgressRecord, Stage,
)
from floral_tutor.scheduler import local_naive

COLUMNS = (
    "item_id", "stage", "correct_count", "incorrect_count", "stage_correct_count",
    "last_seen", "flagged_for_review", "ease_factor", "review_interval",
    "next_review_date", "is_new",
)

UPSERT_SQL = (
    f"INSERT OR REPLACE INTO progress ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in COLUMNS)})"
)


def format_ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp into a naive local datetime.

    Snapshots written by browsers carry a trailing ``Z``; aware values are
    converted to local time so they compare cleanly with ``datetime.now()``.
    """
    if not value:
        return None
    return local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))


def record_from_row(row: sqlite3.Row) -> ProgressRecord:
    return ProgressRecord(
        item_id=row["item_id"],
        stage=Stage(row["stage"]),
        correct_count=row["correct_count"],
        incorrect_count=row["incorrect_count"],
        stage_correct_count=row["stage_correct_count"],
        last_seen=parse_ts(row["last_seen"]),
        flagged_for_review=bool(row["flagged_for_review"]),
        ease_factor=row["ease_factor"],
        review_interval=row["review_interval"],
        next_review_date=parse_ts(row["next_review_date"]),
        is_new=bool(row["is_new"]),
    )


def record_to_row(record: ProgressRecord) -> tuple:
    return (
        record.item_id,
        record.stage.value,
        record.correct_count,
        record.incorrect_count,
        record.stage_correct_count,
        format_ts(record.last_seen),
        int(record.flagged_for_review),
        record.ease_factor,
        record.review_interval,
        format_ts(record.next_review_date),
        int(record.is_new),
    )


def record_to_dict(record: ProgressRecord) -> dict:
    """Snapshot form of a record (camelCase, as the web app exports it)."""
    return {
        "stage": record.stage.value,
        "correctCount": record.correct_count,
        "incorrectCount": record.incorrect_count,
        "stageCorrectCount": record.stage_correct_count,
        "lastSeen": format_ts(record.last_seen),
        "flaggedForReview": record.flagged_for_review,
        "easeFactor": record.ease_factor,
        "reviewInterval": record.review_interval,
        "nextReviewDate": format_ts(record.next_review_date),
        "isNew": record.is_new,
    }


def _count(data: dict, key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedSnapshotError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def record_from_dict(item_id: str, data: dict) -> ProgressRecord:
    """Build a record from its snapshot form.

    Records exported before ease factors existed are migrated: they get the
    default ease and interval, no review date, and are no longer new.
    """
    if not isinstance(data, dict):
        raise MalformedSnapshotError(f"record for {item_id!r} is not an object")
    try:
        stage = Stage(data.get("stage", Stage.FLASHCARD.value))
        last_seen = parse_ts(data.get("lastSeen"))
        next_review = parse_ts(data.get("nextReviewDate"))
    except (ValueError, TypeError, AttributeError) as e:
        raise MalformedSnapshotError(f"record for {item_id!r}: {e}") from e

    if "easeFactor" not in data:
        return ProgressRecord(
            item_id=item_id,
            stage=stage,
            correct_count=_count(data, "correctCount"),
            incorrect_count=_count(data, "incorrectCount"),
            stage_correct_count=_count(data, "stageCorrectCount"),
            last_seen=last_seen,
            flagged_for_review=bool(data.get("flaggedForReview", False)),
            is_new=False,
        )

    ease = data["easeFactor"]
    if isinstance(ease, bool) or not isinstance(ease, (int, float)):
        raise MalformedSnapshotError(f"easeFactor for {item_id!r} is not a number")
    interval = data.get("reviewInterval", 1)
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise MalformedSnapshotError(f"reviewInterval for {item_id!r} must be a positive integer")

    return ProgressRecord(
        item_id=item_id,
        stage=stage,
        correct_count=_count(data, "correctCount"),
        incorrect_count=_count(data, "incorrectCount"),
        stage_correct_count=_count(data, "stageCorrectCount"),
        last_seen=last_seen,
        flagged_for_review=bool(data.get("flaggedForReview", False)),
        ease_factor=max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, float(ease))),
        review_interval=interval,
        next_review_date=next_review,
        is_new=bool(data.get("isNew", False)),
    )


def parse_snapshot(snapshot: str) -> dict[str, ProgressRecord]:
    """Parse an exported snapshot. Raises MalformedSnapshotError."""
    try:
        raw = json.loads(snapshot)
    except (TypeError, ValueError) as e:
        raise MalformedSnapshotError(f"snapshot is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise MalformedSnapshotError("snapshot must be a JSON object keyed by item id")
    return {item_id: record_from_dict(item_id, data) for item_id, data in raw.items()}


class ProgressStore:
    """
    Owns the per-item mastery records.

    Each call opens its own connection. Read-modify-write sequences run
    under a re-entrant lock so one store instance is safe to share between
    threads; separate processes writing the same database are not supported.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        self._lock = threading.RLock()
        try:
            init_db(db_path)
        except sqlite3.Error as e:
            raise StorageError(f"could not initialize {db_path}: {e}") from e

    @contextmanager
    def _connection(self):
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"could not open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"progress database error: {e}") from e
        finally:
            conn.close()

    def load(self) -> dict[str, ProgressRecord]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM progress").fetchall()
        return {row["item_id"]: record_from_row(row) for row in rows}

    def save(self, records: dict[str, ProgressRecord]) -> None:
        """Replace the whole store with ``records`` in one transaction."""
        with self._lock, self._connection() as conn:
            conn.execute("DELETE FROM progress")
            conn.executemany(UPSERT_SQL, [record_to_row(r) for r in records.values()])
        logger.debug("Saved {} progress records", len(records))

    def peek(self, item_id: str) -> Optional[ProgressRecord]:
        """Return the stored record, or None without creating one."""
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM progress WHERE item_id = ?", (item_id,)).fetchone()
        return record_from_row(row) if row else None

    def get(self, item_id: str) -> ProgressRecord:
        """Return the record for ``item_id``, creating a default one on first access."""
        with self._lock:
            record = self.peek(item_id)
            if record is None:
                record = ProgressRecord(item_id=item_id)
                self.put(record)
                logger.debug("Created progress record for {}", item_id)
            return record

    def put(self, record: ProgressRecord) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(UPSERT_SQL, record_to_row(record))

    def update(
        self, item_id: str, mutate: Callable[[ProgressRecord], ProgressRecord]
    ) -> ProgressRecord:
        """Load (or create) one record, apply ``mutate`` and write it back."""
        with self._lock:
            record = self.peek(item_id) or ProgressRecord(item_id=item_id)
            updated = mutate(record)
            self.put(updated)
            return updated

    def export(self) -> str:
        records = self.load()
        return json.dumps(
            {item_id: record_to_dict(r) for item_id, r in sorted(records.items())},
            ensure_ascii=False, indent=2,
        )

    def import_snapshot(self, snapshot: str) -> bool:
        """Replace every record with the snapshot's. Returns False if it doesn't parse.

        A malformed snapshot leaves the store untouched; a storage failure
        while writing raises StorageError.
        """
        try:
            records = parse_snapshot(snapshot)
        except MalformedSnapshotError as e:
            logger.warning("Failed to import progress: {}", e)
            return False
        self.save(records)
        logger.info("Imported {} progress records", len(records))
        return True

    def clear_all(self) -> None:
        with self._lock, self._connection() as conn:
            conn.execute("DELETE FROM progress")
        logger.info("Cleared all progress")
