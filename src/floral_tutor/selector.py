"""Tiered item selection for a study session.

Every catalog item lands in exactly one tier:

1. critical    - flagged after a miss, or overdue for review
2. active      - in progress and not yet due
3. new         - never answered
4. maintenance - mastered and not yet due

A batch takes up to 40% critical, up to 40% active, up to 30% new (never
more than 5, and none while too many items are still in early stages), fills
the rest with maintenance items, backfills from tiers 2-4 if slots remain,
and is shuffled before it is returned.
"""
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from loguru import logger

from floral_tutor.models import Item, ProgressRecord, Stage
from floral_tutor.scheduler import (
    days_overdue, days_since, hours_since, is_overdue, local_naive,
)
from floral_tutor.store import ProgressStore

TIER_CRITICAL = 1
TIER_ACTIVE = 2
TIER_NEW = 3
TIER_MAINTENANCE = 4

# Scoring weights. The tier structure and quotas are fixed; these are tunable.
CRITICAL_BASE = 1000
FLAG_RECENCY_HOURS = 24
FLAG_RECENCY_WEIGHT = 10
OVERDUE_DAY_WEIGHT = 50
ACTIVE_BASE = 500
ACTIVE_PRIORITY_PIVOT = 4
ACTIVE_PRIORITY_WEIGHT = 100
ACTIVE_RECENCY_WEIGHT = 5
ACTIVE_RECENCY_CAP = 30
NEW_PRIORITY_WEIGHT = 10
MAINTENANCE_BASE = 10
MAINTENANCE_RECENCY_CAP = 14

STAGE_BOOST = {
    Stage.FLASHCARD: 80,
    Stage.MULTIPLE_CHOICE: 60,
    Stage.SHORT_ANSWER: 40,
    Stage.SCIENTIFIC_NAME: 20,
}

CRITICAL_SHARE_PCT = 40
ACTIVE_SHARE_PCT = 40
NEW_SHARE_PCT = 30
MAX_NEW_PER_BATCH = 5
MAX_EARLY_STAGE = 10
EARLY_STAGES = (Stage.FLASHCARD, Stage.MULTIPLE_CHOICE)


@dataclass
class ScoredItem:
    item: Item
    tier: int
    score: float


@dataclass
class Tiers:
    critical: list[ScoredItem] = field(default_factory=list)
    active: list[ScoredItem] = field(default_factory=list)
    new: list[ScoredItem] = field(default_factory=list)
    maintenance: list[ScoredItem] = field(default_factory=list)
    early_stage_count: int = 0

    @property
    def should_introduce_new(self) -> bool:
        return self.early_stage_count <= MAX_EARLY_STAGE


def _share(count: int, percent: int) -> int:
    """ceil(count * percent / 100) in integer arithmetic."""
    return -(-count * percent // 100)


def score_item(item: Item, record: Optional[ProgressRecord], now: datetime) -> ScoredItem:
    if record is None or record.is_new:
        return ScoredItem(item, TIER_NEW, item.list_priority * NEW_PRIORITY_WEIGHT)

    overdue = is_overdue(record, now)
    if record.flagged_for_review or overdue:
        score = CRITICAL_BASE
        if record.flagged_for_review:
            hours = min(max(hours_since(record.last_seen, now), 0.0), FLAG_RECENCY_HOURS)
            score += (FLAG_RECENCY_HOURS - hours) * FLAG_RECENCY_WEIGHT
        if overdue:
            score += days_overdue(record, now) * OVERDUE_DAY_WEIGHT
        return ScoredItem(item, TIER_CRITICAL, score)

    if record.stage is Stage.MASTERY:
        score = MAINTENANCE_BASE
        if record.last_seen is not None:
            score += min(days_since(record.last_seen, now), MAINTENANCE_RECENCY_CAP)
        return ScoredItem(item, TIER_MAINTENANCE, score)

    score = ACTIVE_BASE
    score += (ACTIVE_PRIORITY_PIVOT - item.list_priority) * ACTIVE_PRIORITY_WEIGHT
    score += STAGE_BOOST.get(record.stage, 0)
    if record.last_seen is not None:
        score += min(days_since(record.last_seen, now) * ACTIVE_RECENCY_WEIGHT, ACTIVE_RECENCY_CAP)
    return ScoredItem(item, TIER_ACTIVE, score)


def classify(
    items: Iterable[Item], records: dict[str, ProgressRecord], now: datetime
) -> Tiers:
    """Partition and rank the catalog.

    Tiers 1, 2 and 4 are ranked by descending score. New items are ranked by
    ascending score so that lower list priority numbers come first. Python's
    sort is stable, so ties keep catalog order. Repeated ids are ignored.
    """
    tiers = Tiers()
    by_tier = {
        TIER_CRITICAL: tiers.critical,
        TIER_ACTIVE: tiers.active,
        TIER_NEW: tiers.new,
        TIER_MAINTENANCE: tiers.maintenance,
    }
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        record = records.get(item.id)
        if record is not None and not record.is_new and record.stage in EARLY_STAGES:
            tiers.early_stage_count += 1
        scored = score_item(item, record, now)
        by_tier[scored.tier].append(scored)

    tiers.critical.sort(key=lambda s: s.score, reverse=True)
    tiers.active.sort(key=lambda s: s.score, reverse=True)
    tiers.new.sort(key=lambda s: s.score)
    tiers.maintenance.sort(key=lambda s: s.score, reverse=True)
    return tiers


def assemble_batch(tiers: Tiers, count: int) -> list[ScoredItem]:
    """Fill ``count`` slots tier by tier under the quotas. Not shuffled."""
    if count <= 0:
        return []
    selected: list[ScoredItem] = []

    selected.extend(tiers.critical[:_share(count, CRITICAL_SHARE_PCT)])

    remaining = count - len(selected)
    selected.extend(tiers.active[:min(_share(count, ACTIVE_SHARE_PCT), remaining)])

    remaining = count - len(selected)
    if tiers.should_introduce_new and remaining > 0:
        new_quota = min(MAX_NEW_PER_BATCH, _share(count, NEW_SHARE_PCT), remaining)
        selected.extend(tiers.new[:new_quota])

    remaining = count - len(selected)
    selected.extend(tiers.maintenance[:remaining])

    if len(selected) < count:
        # Leftover active/maintenance items by score, then leftover new items
        # in their own ranking, still within the per-batch cap.
        chosen = {s.item.id for s in selected}
        pool = sorted((s for s in tiers.active + tiers.maintenance if s.item.id not in chosen),
                      key=lambda s: s.score, reverse=True)
        if tiers.should_introduce_new:
            pool += [s for s in tiers.new if s.item.id not in chosen]
        new_count = sum(1 for s in selected if s.tier == TIER_NEW)
        for scored in pool:
            if len(selected) >= count:
                break
            if scored.tier == TIER_NEW:
                if new_count >= MAX_NEW_PER_BATCH:
                    continue
                new_count += 1
            selected.append(scored)

    return selected


def select_batch(
    store: ProgressStore,
    items: Iterable[Item],
    count: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> list[Item]:
    """Pick up to ``count`` distinct items for one session, in shuffled order."""
    now = local_naive(now) or datetime.now()
    rng = rng or random.Random()
    tiers = classify(items, store.load(), now)
    selected = assemble_batch(tiers, count)
    logger.debug(
        "Batch of {}: critical={} active={} new={} maintenance={} (early stage {})",
        len(selected),
        sum(1 for s in selected if s.tier == TIER_CRITICAL),
        sum(1 for s in selected if s.tier == TIER_ACTIVE),
        sum(1 for s in selected if s.tier == TIER_NEW),
        sum(1 for s in selected if s.tier == TIER_MAINTENANCE),
        tiers.early_stage_count,
    )
    batch = [s.item for s in selected]
    rng.shuffle(batch)
    return batch
