# tests/test_quiz.py
import random

import pytest

from floral_tutor.models import Item, ProgressRecord, Stage
from floral_tutor.quiz import (
    build_question, check_answer, matches_common_name, matches_scientific_name,
)

DAISY = Item(scientific_name="Bellis perennis", common_names=("Daisy", "English Daisy"), list_priority=1)
CATALOG = [
    DAISY,
    Item(scientific_name="Tulipa gesneriana", common_names=("Tulip",), list_priority=1),
    Item(scientific_name="Syringa vulgaris", common_names=("Lilac",), list_priority=2),
    Item(scientific_name="Iris germanica", common_names=("Bearded Iris",), list_priority=2),
    Item(scientific_name="Zinnia elegans", common_names=("Zinnia",), list_priority=3),
]


def _question(stage, catalog=CATALOG, seed=0):
    record = ProgressRecord(item_id=DAISY.id, stage=stage, stage_correct_count=1)
    return build_question(DAISY, record, catalog, rng=random.Random(seed))


def test_question_kind_follows_stage():
    for stage in Stage:
        assert _question(stage).kind is stage
    assert _question(Stage.SHORT_ANSWER).stage_correct_count == 1


def test_flashcard_always_credited():
    assert check_answer(_question(Stage.FLASHCARD), "") is True


def test_multiple_choice_has_four_distinct_sources():
    q = _question(Stage.MULTIPLE_CHOICE)
    assert len(q.options) == 4
    assert q.correct_answer in q.options
    assert q.correct_answer in DAISY.common_names
    assert sum(1 for o in q.options if o in DAISY.common_names) == 1


def test_multiple_choice_with_small_catalog():
    q = _question(Stage.MULTIPLE_CHOICE, catalog=CATALOG[:2])
    assert len(q.options) == 2


def test_multiple_choice_checking():
    q = _question(Stage.MULTIPLE_CHOICE)
    assert check_answer(q, q.correct_answer) is True
    assert check_answer(q, "English daisy") is True
    assert check_answer(q, "Tulip") is False


def test_multiple_choice_is_deterministic_with_seed():
    assert _question(Stage.MULTIPLE_CHOICE, seed=5).options == _question(Stage.MULTIPLE_CHOICE, seed=5).options


@pytest.mark.parametrize("answer,expected", [
    ("daisy", True),
    ("  English Daisy ", True),
    ("english", True),        # substring of an accepted name
    ("a white daisy", True),  # contains an accepted name
    ("tulip", False),
    ("", False),
])
def test_short_answer_matching(answer, expected):
    assert check_answer(_question(Stage.SHORT_ANSWER), answer) is expected


def test_scientific_name_must_match_exactly():
    q = _question(Stage.SCIENTIFIC_NAME)
    assert check_answer(q, "bellis perennis") is True
    assert check_answer(q, "Bellis") is False


def test_mastery_needs_both_names():
    q = _question(Stage.MASTERY)
    assert check_answer(q, "Daisy", "Bellis perennis") is True
    assert check_answer(q, "Daisy", "Bellis") is False
    assert check_answer(q, "Tulip", "Bellis perennis") is False


def test_matchers():
    assert matches_common_name("Lily", ["Lily of the Valley"]) is True
    assert matches_scientific_name(" Syringa Vulgaris", "Syringa vulgaris") is True
