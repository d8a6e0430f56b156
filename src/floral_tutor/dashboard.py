"""Progress dashboard statistics."""
from typing import Iterable

from floral_tutor.mastery import CORRECT_TO_ADVANCE
from floral_tutor.models import STAGE_ORDER, Item, ItemStats, ProgressRecord, Stage
from floral_tutor.store import ProgressStore

FILTERS = ("all", "needs_review") + tuple(s.value for s in STAGE_ORDER)
SORT_KEYS = ("name", "stage", "success_rate", "last_seen")


def success_rate(correct: int, incorrect: int) -> float:
    total = correct + incorrect
    if total == 0:
        return 0.0
    return correct / total


def compute_stats(store: ProgressStore, items: Iterable[Item]) -> list[ItemStats]:
    """One stats row per catalog item. Never creates records."""
    records = store.load()
    stats = []
    for item in items:
        record = records.get(item.id) or ProgressRecord(item_id=item.id)
        stats.append(ItemStats(
            item=item,
            stage=record.stage,
            correct_count=record.correct_count,
            incorrect_count=record.incorrect_count,
            stage_correct_count=record.stage_correct_count,
            success_rate=success_rate(record.correct_count, record.incorrect_count),
            needs_review=record.flagged_for_review,
            last_seen=record.last_seen,
        ))
    return stats


def summarize(stats: list[ItemStats]) -> dict:
    correct = sum(s.correct_count for s in stats)
    incorrect = sum(s.incorrect_count for s in stats)
    return {
        "total": len(stats),
        "attempted": sum(1 for s in stats if s.attempted),
        "needs_review": sum(1 for s in stats if s.needs_review),
        "stage_counts": {stage: sum(1 for s in stats if s.stage is stage) for stage in STAGE_ORDER},
        "success_rate": round(success_rate(correct, incorrect) * 100, 1),
    }


def progress_to_next_stage(stat: ItemStats) -> str:
    if stat.stage is Stage.MASTERY:
        return "Fully Mastered!"
    return f"{stat.stage_correct_count}/{CORRECT_TO_ADVANCE} to next stage"


def filter_stats(stats: list[ItemStats], name: str = "all") -> list[ItemStats]:
    if name == "all":
        return list(stats)
    if name == "needs_review":
        return [s for s in stats if s.needs_review]
    stage = Stage(name)
    return [s for s in stats if s.stage is stage]


def sort_stats(stats: list[ItemStats], key: str = "name") -> list[ItemStats]:
    if key == "name":
        return sorted(stats, key=lambda s: s.item.common_names[0].lower())
    if key == "stage":
        return sorted(stats, key=lambda s: STAGE_ORDER.index(s.stage))
    if key == "success_rate":
        return sorted(stats, key=lambda s: s.success_rate, reverse=True)
    if key == "last_seen":
        # Most recent first, never-seen items last.
        seen = sorted((s for s in stats if s.last_seen), key=lambda s: s.last_seen, reverse=True)
        return seen + [s for s in stats if not s.last_seen]
    raise ValueError(f"Unknown sort key: {key}")
