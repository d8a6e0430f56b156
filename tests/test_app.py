import json
import random

import pytest
from unittest.mock import patch

from floral_tutor.app import (
    SessionExitRequested, cmd_export, cmd_import, cmd_reset, cmd_review, run_browse_session,
    run_quiz_session, session_prompt,
)
from floral_tutor.models import ProgressRecord, Stage


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("floral_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("floral_tutor.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("floral_tutor.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_run_quiz_session_empty(store, catalog):
    assert run_quiz_session(store, catalog, []) == (0, 0)


def test_flashcards_credited_on_reveal(store, catalog):
    items = catalog[:3]
    with patch("floral_tutor.app.Prompt.ask", side_effect=["", "", ""]):
        assert run_quiz_session(store, catalog, items) == (3, 3)
    records = store.load()
    assert all(records[i.id].correct_count == 1 for i in items)


def test_run_quiz_session_exits_on_q(store, catalog):
    """First flashcard revealed, 'q' on the second: first saved, second untouched."""
    items = catalog[:3]
    with patch("floral_tutor.app.Prompt.ask", side_effect=["", "q"]):
        assert run_quiz_session(store, catalog, items) == (1, 1)
    records = store.load()
    assert records[items[0].id].correct_count == 1
    assert records[items[1].id].is_new is True
    assert items[2].id not in records


def test_scientific_stage_answers_are_graded(store, catalog):
    right, wrong = catalog[0], catalog[1]
    for item in (right, wrong):
        store.put(ProgressRecord(item_id=item.id, stage=Stage.SCIENTIFIC_NAME, is_new=False))
    with patch("floral_tutor.app.Prompt.ask", side_effect=[right.scientific_name, "no idea"]):
        assert run_quiz_session(store, catalog, [right, wrong]) == (1, 2)
    records = store.load()
    assert records[right.id].stage_correct_count == 1
    assert records[wrong.id].flagged_for_review is True
    assert records[wrong.id].stage is Stage.SCIENTIFIC_NAME


def test_mastery_stage_asks_for_both_names(store, catalog):
    item = catalog[0]
    store.put(ProgressRecord(item_id=item.id, stage=Stage.MASTERY, is_new=False))
    with patch("floral_tutor.app.Prompt.ask", side_effect=[item.common_names[0], item.scientific_name]):
        assert run_quiz_session(store, catalog, [item]) == (1, 1)


def test_export_and_import_commands(store, catalog, tmp_path, now):
    store.put(ProgressRecord(item_id=catalog[0].id, correct_count=2, is_new=False, last_seen=now))
    path = tmp_path / "export.json"
    with patch("floral_tutor.app.Prompt.ask", return_value=str(path)):
        cmd_export(store)
    assert catalog[0].id in json.loads(path.read_text())

    store.clear_all()
    with patch("floral_tutor.app.Prompt.ask", return_value=str(path)):
        cmd_import(store)
    assert store.load()[catalog[0].id].correct_count == 2


def test_import_command_rejects_bad_file(store, catalog, tmp_path):
    store.get(catalog[0].id)
    bad = tmp_path / "bad.json"
    bad.write_text("not json at all")
    with patch("floral_tutor.app.Prompt.ask", return_value=str(bad)):
        cmd_import(store)
    assert catalog[0].id in store.load()


def test_reset_requires_confirmation(store, catalog):
    store.get(catalog[0].id)
    with patch("floral_tutor.app.Confirm.ask", return_value=False):
        cmd_reset(store)
    assert store.load()
    with patch("floral_tutor.app.Confirm.ask", return_value=True):
        cmd_reset(store)
    assert store.load() == {}


def test_review_command_with_negative_count_reviews_nothing(store, catalog):
    with patch("floral_tutor.app.IntPrompt.ask", return_value=-1), \
         patch("floral_tutor.app.run_quiz_session") as session:
        cmd_review(store, catalog)
    assert session.call_args.args[2] == []


def test_browse_flips_without_recording(catalog):
    keys = ["", "n", "", "p", "s", "r", "x", "q"]
    with patch("floral_tutor.app.Prompt.ask", side_effect=keys) as ask:
        assert run_browse_session(catalog[:3], rng=random.Random(1)) == 2
    assert ask.call_count == len(keys)


def test_browse_empty_catalog():
    assert run_browse_session([]) == 0


def test_browse_exits_on_menu(catalog):
    with patch("floral_tutor.app.Prompt.ask", return_value="menu"):
        assert run_browse_session(catalog) == 0
