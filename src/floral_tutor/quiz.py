"""Question building and answer checking for each mastery stage."""
import random
from typing import Optional, Sequence

from floral_tutor.models import Item, ProgressRecord, Question, Stage

DISTRACTOR_COUNT = 3


def _normalize(text: str) -> str:
    return text.strip().lower()


def matches_common_name(answer: str, names: Sequence[str]) -> bool:
    """Loose match: equal, or either string contains the other (case-insensitive)."""
    normalized = _normalize(answer)
    if not normalized:
        return False
    for name in names:
        candidate = name.lower()
        if candidate == normalized or normalized in candidate or candidate in normalized:
            return True
    return False


def matches_scientific_name(answer: str, scientific_name: str) -> bool:
    return _normalize(answer) == scientific_name.lower()


def build_question(
    item: Item,
    record: ProgressRecord,
    catalog: Sequence[Item],
    rng: Optional[random.Random] = None,
) -> Question:
    rng = rng or random.Random()
    question = Question(item=item, kind=record.stage, stage_correct_count=record.stage_correct_count)

    if record.stage is Stage.MULTIPLE_CHOICE:
        others = [other for other in catalog if other.id != item.id]
        distractors = rng.sample(others, min(DISTRACTOR_COUNT, len(others)))
        correct = rng.choice(item.common_names)
        options = [correct] + [rng.choice(d.common_names) for d in distractors]
        rng.shuffle(options)
        question.options = options
        question.correct_answer = correct
        question.accepted_answers = item.common_names
    elif record.stage is Stage.SHORT_ANSWER:
        question.accepted_answers = item.common_names
    elif record.stage is Stage.SCIENTIFIC_NAME:
        question.correct_answer = item.scientific_name
    elif record.stage is Stage.MASTERY:
        question.accepted_answers = item.common_names
        question.scientific_answer = item.scientific_name
    return question


def check_answer(question: Question, answer: str, scientific_answer: str = "") -> bool:
    """Grade an answer. Flashcards are credited for being revealed."""
    if question.kind is Stage.FLASHCARD:
        return True
    if question.kind is Stage.MULTIPLE_CHOICE:
        return _normalize(answer) in {name.lower() for name in question.accepted_answers}
    if question.kind is Stage.SHORT_ANSWER:
        return matches_common_name(answer, question.accepted_answers)
    if question.kind is Stage.SCIENTIFIC_NAME:
        return matches_scientific_name(answer, question.correct_answer)
    return (matches_common_name(answer, question.accepted_answers)
            and matches_scientific_name(scientific_answer, question.scientific_answer))
