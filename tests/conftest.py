from datetime import datetime

import pytest

from floral_tutor.models import Item
from floral_tutor.store import ProgressStore

NOW = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def store(tmp_db):
    return ProgressStore(tmp_db)


@pytest.fixture
def now():
    return NOW


def make_item(name: str, priority: int = 2) -> Item:
    return Item(scientific_name=name, common_names=(f"{name} common", f"{name} alt"), list_priority=priority)


@pytest.fixture
def catalog():
    return [make_item(f"Flora {i:02d}", priority=1 + i % 3) for i in range(20)]
