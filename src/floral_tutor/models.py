"""Data classes for the tutor domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Stage(str, Enum):
    FLASHCARD = "flashcard"
    MULTIPLE_CHOICE = "mc"
    SHORT_ANSWER = "short"
    SCIENTIFIC_NAME = "scientific"
    MASTERY = "mastery"


STAGE_ORDER = (
    Stage.FLASHCARD,
    Stage.MULTIPLE_CHOICE,
    Stage.SHORT_ANSWER,
    Stage.SCIENTIFIC_NAME,
    Stage.MASTERY,
)

# Forward-only transitions; MASTERY saturates.
NEXT_STAGE = {
    Stage.FLASHCARD: Stage.MULTIPLE_CHOICE,
    Stage.MULTIPLE_CHOICE: Stage.SHORT_ANSWER,
    Stage.SHORT_ANSWER: Stage.SCIENTIFIC_NAME,
    Stage.SCIENTIFIC_NAME: Stage.MASTERY,
    Stage.MASTERY: Stage.MASTERY,
}

STAGE_LABELS = {
    Stage.FLASHCARD: "Flashcard",
    Stage.MULTIPLE_CHOICE: "Multiple Choice",
    Stage.SHORT_ANSWER: "Short Answer",
    Stage.SCIENTIFIC_NAME: "Scientific Name",
    Stage.MASTERY: "Mastery",
}

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 4.0


@dataclass(frozen=True)
class Item:
    scientific_name: str
    common_names: tuple[str, ...]
    list_priority: int

    @property
    def id(self) -> str:
        return self.scientific_name


@dataclass
class ProgressRecord:
    item_id: str
    stage: Stage = Stage.FLASHCARD
    correct_count: int = 0
    incorrect_count: int = 0
    stage_correct_count: int = 0
    last_seen: Optional[datetime] = None
    flagged_for_review: bool = False
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_interval: int = 1
    next_review_date: Optional[datetime] = None
    is_new: bool = True


@dataclass
class ItemStats:
    item: Item
    stage: Stage
    correct_count: int = 0
    incorrect_count: int = 0
    stage_correct_count: int = 0
    success_rate: float = 0.0
    needs_review: bool = False
    last_seen: Optional[datetime] = None

    @property
    def attempted(self) -> bool:
        return self.correct_count + self.incorrect_count > 0


@dataclass
class Question:
    item: Item
    kind: Stage
    stage_correct_count: int = 0
    options: list[str] = field(default_factory=list)
    correct_answer: str = ""
    accepted_answers: tuple[str, ...] = ()
    scientific_answer: str = ""
