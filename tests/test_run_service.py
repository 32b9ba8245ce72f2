import random

import pytest

from vocab_lists.data.run_repo import RunRepo
from vocab_lists.db.database import PersistenceFailure
from vocab_lists.service.test_run_service import RunNotFound, StaleRun, TestRunService
from vocab_lists.service.test_session import InsufficientItems, InvalidTransition, SessionState


@pytest.fixture
def runs(list_service, recorder):
    return TestRunService(RunRepo(), list_service, recorder, rng_factory=lambda: random.Random(17))


def _pick(view, correct):
    q = view.session.current_question
    return q.correct_is_a if correct else not q.correct_is_a


def _finish(runs, user_id, view, pattern):
    for correct in pattern:
        view = runs.answer(user_id, view.run_id, _pick(view, correct))
        view = runs.advance(user_id, view.run_id)
    return view


def test_full_run_records_and_locks(runs, list_service, user_id, animals):
    view = runs.start(user_id, animals.id)
    assert view.session.state is SessionState.QUESTION

    view = _finish(runs, user_id, view, [True, True, True, True, False])

    assert view.session.state is SessionState.COMPLETED
    assert view.test is not None
    assert view.test.score == 80
    assert list_service.get_list(user_id, animals.id).first_tested_at is not None


def test_state_survives_between_calls(runs, user_id, animals):
    view = runs.start(user_id, animals.id)
    runs.answer(user_id, view.run_id, _pick(view, True))

    reloaded = runs.get(user_id, view.run_id)
    assert reloaded.session.state is SessionState.FEEDBACK
    assert reloaded.session.correct == 1


def test_second_answer_to_same_question_is_rejected(runs, user_id, animals):
    view = runs.start(user_id, animals.id)
    runs.answer(user_id, view.run_id, True)
    with pytest.raises(InvalidTransition):
        runs.answer(user_id, view.run_id, True)
    assert runs.get(user_id, view.run_id).session.answered == 1


def test_stale_write_is_rejected(runs, user_id, animals, monkeypatch):
    view = runs.start(user_id, animals.id)
    monkeypatch.setattr(runs.run_repo, "save", lambda *args, **kwargs: False)
    with pytest.raises(StaleRun):
        runs.answer(user_id, view.run_id, True)


def test_short_list_cannot_start(runs, list_service, user_id):
    short = list_service.create_list(user_id, "Short", "manual", None, [(1, "a"), (2, "b"), (3, "c"), (4, "d")])
    with pytest.raises(InsufficientItems):
        runs.start(user_id, short.id)


def test_runs_are_private(runs, user_id, other_user_id, animals):
    view = runs.start(user_id, animals.id)
    with pytest.raises(RunNotFound):
        runs.get(other_user_id, view.run_id)
    with pytest.raises(RunNotFound):
        runs.answer(other_user_id, view.run_id, True)


def test_record_before_completion(runs, user_id, animals):
    view = runs.start(user_id, animals.id)
    with pytest.raises(InvalidTransition):
        runs.record(user_id, view.run_id)


def test_failed_recording_keeps_result_for_retry(runs, recorder, user_id, animals, monkeypatch):
    view = runs.start(user_id, animals.id)
    view = _finish(runs, user_id, view, [True] * 4)
    view = runs.answer(user_id, view.run_id, _pick(view, False))

    real = recorder.record_completion

    def failing(*args, **kwargs):
        raise PersistenceFailure("database is locked")

    monkeypatch.setattr(recorder, "record_completion", failing)
    view = runs.advance(user_id, view.run_id)
    assert view.record_failed
    assert view.test is None
    assert view.session.result().score == 80
    assert recorder.history(user_id, animals.id) == []

    monkeypatch.setattr(recorder, "record_completion", real)
    view = runs.record(user_id, view.run_id)
    assert view.test.score == 80


def test_recording_is_idempotent(runs, recorder, user_id, animals):
    view = _finish(runs, user_id, runs.start(user_id, animals.id), [True] * 5)
    again = runs.record(user_id, view.run_id)

    assert again.test.id == view.test.id
    assert len(recorder.history(user_id, animals.id)) == 1
    assert runs.get(user_id, view.run_id).test.id == view.test.id
