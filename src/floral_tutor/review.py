"""Review mode: items missed last time or never attempted."""
from typing import Iterable

from floral_tutor.models import Item
from floral_tutor.store import ProgressStore


def get_items_needing_review(store: ProgressStore, items: Iterable[Item]) -> list[Item]:
    """Items never answered or whose last answer was wrong, in catalog order."""
    records = store.load()
    result = []
    for item in items:
        record = records.get(item.id)
        if record is None or record.is_new or record.flagged_for_review:
            result.append(item)
    return result
