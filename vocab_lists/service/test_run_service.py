from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from vocab_lists.data.run_repo import RunRepo, StoredRun
from vocab_lists.db.database import PersistenceFailure
from vocab_lists.models.word_list import TestRecord
from vocab_lists.service.list_service import ListService
from vocab_lists.service.recorder import TestResultRecorder
from vocab_lists.service.test_session import InvalidTransition, SessionState, TestSession, start_session

logger = logging.getLogger(__name__)


class RunNotFound(Exception):
    def __init__(self, run_id: int):
        super().__init__("Test run not found.")
        self.run_id = run_id


class StaleRun(Exception):
    """Another request changed the run between our read and our write."""


@dataclass(frozen=True)
class RunView:
    run_id: int
    list_id: int
    session: TestSession
    test: Optional[TestRecord] = None
    record_failed: bool = False


class TestRunService:
    """Drives a TestSession across HTTP requests.

    The session is loaded from the run row on every call and written back
    with a version check, so two tabs cannot answer the same question twice.
    """
    __test__ = False

    def __init__(
        self,
        run_repo: RunRepo,
        list_service: ListService,
        recorder: TestResultRecorder,
        min_items: int = 5,
        rng_factory: Callable[[], random.Random] = random.Random,
    ):
        self.run_repo = run_repo
        self.list_service = list_service
        self.recorder = recorder
        self.min_items = min_items
        self.rng_factory = rng_factory

    def _load(self, user_id: int, run_id: int) -> StoredRun:
        stored = self.run_repo.get(run_id, user_id)
        if stored is None:
            raise RunNotFound(run_id)
        return stored

    def _save(self, stored: StoredRun, session: TestSession) -> None:
        if not self.run_repo.save(stored.id, stored.user_id, session.to_dict(), stored.version):
            raise StaleRun("This test was updated from another window. Reload to continue.")

    def start(self, user_id: int, list_id: int) -> RunView:
        word_list = self.list_service.get_list(user_id, list_id, touch=True)
        session = start_session(word_list.items, min_items=self.min_items, rng=self.rng_factory())
        stored = self.run_repo.create(user_id, list_id, session.to_dict())
        logger.info("User %s started run %s on list %s (%s questions)", user_id, stored.id, list_id, session.total)
        return RunView(run_id=stored.id, list_id=list_id, session=session)

    def get(self, user_id: int, run_id: int) -> RunView:
        stored = self._load(user_id, run_id)
        test = None
        if stored.test_id is not None:
            test = self.recorder.get_record(user_id, stored.test_id)
        return RunView(run_id=stored.id, list_id=stored.list_id, session=TestSession.from_dict(stored.state), test=test)

    def answer(self, user_id: int, run_id: int, is_slot_a: bool) -> RunView:
        stored = self._load(user_id, run_id)
        session = TestSession.from_dict(stored.state)
        session.submit_answer(is_slot_a)
        self._save(stored, session)
        return RunView(run_id=stored.id, list_id=stored.list_id, session=session)

    def advance(self, user_id: int, run_id: int) -> RunView:
        """Leave the feedback state; on the last question, finish and record."""
        stored = self._load(user_id, run_id)
        session = TestSession.from_dict(stored.state)
        state = session.finish_feedback()
        self._save(stored, session)
        if state is not SessionState.COMPLETED:
            return RunView(run_id=stored.id, list_id=stored.list_id, session=session)
        try:
            test = self._record(stored, session)
        except PersistenceFailure:
            # The run keeps its final counts; POST .../record retries with the same values.
            logger.exception("Could not record run %s; the result is kept for retry", stored.id)
            return RunView(run_id=stored.id, list_id=stored.list_id, session=session, record_failed=True)
        return RunView(run_id=stored.id, list_id=stored.list_id, session=session, test=test)

    def record(self, user_id: int, run_id: int) -> RunView:
        stored = self._load(user_id, run_id)
        session = TestSession.from_dict(stored.state)
        if session.state is not SessionState.COMPLETED:
            raise InvalidTransition("The test is not finished yet.")
        test = self._record(stored, session)
        return RunView(run_id=stored.id, list_id=stored.list_id, session=session, test=test)

    def _record(self, stored: StoredRun, session: TestSession) -> TestRecord:
        result = session.result()
        return self.recorder.record_completion(
            user_id=stored.user_id,
            list_id=stored.list_id,
            correct=result.correct,
            wrong=result.wrong,
            run_id=stored.id,
        )
