from __future__ import annotations

import logging
from typing import List, Optional

from vocab_lists.data.test_repo import TestRepo
from vocab_lists.models.word_list import TestRecord
from vocab_lists.service.clock import Clock, utc_now
from vocab_lists.service.list_service import ListNotFound
from vocab_lists.service.test_session import compute_score

logger = logging.getLogger(__name__)


class TestResultRecorder:
    """Persists a finished test and updates the owning list's summary.

    The first recorded test locks the list (``first_tested_at``); later tests
    only overwrite the ``last_*`` fields. Storage errors propagate as
    PersistenceFailure and leave the caller's counts untouched for a retry.
    """
    __test__ = False

    def __init__(self, repo: TestRepo, clock: Clock = utc_now):
        self.repo = repo
        self.clock = clock

    def record_completion(
        self,
        user_id: int,
        list_id: int,
        correct: int,
        wrong: int,
        run_id: Optional[int] = None,
    ) -> TestRecord:
        if correct < 0 or wrong < 0:
            raise ValueError("Counts cannot be negative.")
        if correct + wrong == 0:
            raise ValueError("A test must cover at least one item.")
        score = compute_score(correct, correct + wrong)
        completed_at = self.clock().isoformat()
        record = self.repo.complete_test(
            user_id=user_id,
            list_id=list_id,
            correct=correct,
            wrong=wrong,
            score=score,
            completed_at=completed_at,
            run_id=run_id,
        )
        if record is None:
            raise ListNotFound(list_id)
        logger.info(
            "Recorded test %s for list %s: %s/%s correct, score %s",
            record.id, list_id, record.correct, record.items_count, record.score,
        )
        return record

    def history(self, user_id: int, list_id: int) -> List[TestRecord]:
        return self.repo.list_tests(list_id, user_id)

    def get_record(self, user_id: int, test_id: int) -> Optional[TestRecord]:
        return self.repo.get_test(test_id, user_id)
