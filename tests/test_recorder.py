from datetime import datetime, timedelta, timezone

import pytest

from vocab_lists.data.test_repo import TestRepo
from vocab_lists.service.list_lifecycle import Locked, Unlocked, is_locked, lock_state
from vocab_lists.service.list_service import ListNotFound
from vocab_lists.service.recorder import TestResultRecorder


@pytest.fixture
def timed_recorder(db, clock):
    return TestResultRecorder(TestRepo(), clock=clock)


def test_new_list_is_unlocked(animals):
    assert lock_state(animals) == Unlocked()
    assert not is_locked(animals)


def test_first_test_locks_the_list(timed_recorder, list_service, user_id, animals):
    record = timed_recorder.record_completion(user_id, animals.id, correct=4, wrong=1)

    assert (record.correct, record.wrong, record.items_count, record.score) == (4, 1, 5, 80)
    after = list_service.get_list(user_id, animals.id)
    assert after.first_tested_at == "2026-03-14T22:30:00+00:00"
    assert lock_state(after) == Locked(since="2026-03-14T22:30:00+00:00")
    assert (after.last_score, after.last_correct, after.last_wrong) == (80, 4, 1)
    assert after.last_tested_at == after.first_tested_at


def test_later_tests_only_update_last_fields(timed_recorder, list_service, user_id, animals, clock):
    timed_recorder.record_completion(user_id, animals.id, correct=4, wrong=1)
    clock.now += timedelta(hours=2)
    timed_recorder.record_completion(user_id, animals.id, correct=2, wrong=3)

    after = list_service.get_list(user_id, animals.id)
    assert after.first_tested_at == "2026-03-14T22:30:00+00:00"
    assert after.last_tested_at == "2026-03-15T00:30:00+00:00"
    assert (after.last_score, after.last_correct, after.last_wrong) == (40, 2, 3)


def test_history_is_newest_first(timed_recorder, user_id, animals, clock):
    timed_recorder.record_completion(user_id, animals.id, correct=1, wrong=4)
    clock.now += timedelta(minutes=5)
    timed_recorder.record_completion(user_id, animals.id, correct=5, wrong=0)

    history = timed_recorder.history(user_id, animals.id)
    assert [t.score for t in history] == [100, 20]


def test_unknown_or_foreign_list(timed_recorder, user_id, other_user_id, animals):
    with pytest.raises(ListNotFound):
        timed_recorder.record_completion(user_id, 9999, correct=1, wrong=0)
    with pytest.raises(ListNotFound):
        timed_recorder.record_completion(other_user_id, animals.id, correct=1, wrong=0)
    assert timed_recorder.history(user_id, animals.id) == []


@pytest.mark.parametrize("correct,wrong", [(-1, 3), (3, -1), (0, 0)])
def test_invalid_counts(timed_recorder, user_id, animals, correct, wrong):
    with pytest.raises(ValueError):
        timed_recorder.record_completion(user_id, animals.id, correct=correct, wrong=wrong)


def test_default_clock_is_utc(recorder, user_id, animals):
    record = recorder.record_completion(user_id, animals.id, correct=3, wrong=2)
    completed = datetime.fromisoformat(record.completed_at)
    assert completed.tzinfo is not None
    assert completed.utcoffset() == timedelta(0)
    assert abs(datetime.now(timezone.utc) - completed) < timedelta(minutes=1)


def test_empty_test_is_rejected_before_scoring(timed_recorder, list_service, user_id, animals):
    with pytest.raises(ValueError, match="at least one item"):
        timed_recorder.record_completion(user_id, animals.id, correct=0, wrong=0)

    assert timed_recorder.history(user_id, animals.id) == []
    assert list_service.get_list(user_id, animals.id).first_tested_at is None
