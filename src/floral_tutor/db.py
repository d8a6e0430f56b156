"""Database initialization and connection management."""
import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "FLORAL_TUTOR_DB", str(Path.home() / ".floral_tutor" / "progress.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS progress (
    item_id TEXT PRIMARY KEY,
    stage TEXT NOT NULL DEFAULT 'flashcard',
    correct_count INTEGER NOT NULL DEFAULT 0,
    incorrect_count INTEGER NOT NULL DEFAULT 0,
    stage_correct_count INTEGER NOT NULL DEFAULT 0,
    last_seen TEXT,
    flagged_for_review INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    review_interval INTEGER NOT NULL DEFAULT 1,
    next_review_date TEXT,
    is_new INTEGER NOT NULL DEFAULT 1
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the progress table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
