from __future__ import annotations

import logging
from datetime import datetime

from vocab_lists.data.quota_repo import QuotaRepo
from vocab_lists.models.quota import QuotaStatus
from vocab_lists.service.clock import Clock, next_utc_midnight, utc_day, utc_now

logger = logging.getLogger(__name__)


class QuotaExceeded(Exception):
    def __init__(self, limit: int, reset_at: datetime):
        super().__init__(f"Daily AI generation limit exceeded ({limit}/day).")
        self.limit = limit
        self.reset_at = reset_at


class QuotaAccount:
    """Daily AI-generation allowance per user, keyed by UTC calendar day."""

    def __init__(self, repo: QuotaRepo, daily_limit: int = 5, clock: Clock = utc_now):
        self.repo = repo
        self.daily_limit = daily_limit
        self.clock = clock

    def _status(self, used: int, now: datetime) -> QuotaStatus:
        return QuotaStatus(
            used=used,
            remaining=max(0, self.daily_limit - used),
            limit=self.daily_limit,
            reset_at=next_utc_midnight(now),
        )

    def consume(self, user_id: int) -> QuotaStatus:
        """Take one generation slot for today or raise QuotaExceeded.

        The guard and the increment are a single conditional update, so two
        concurrent calls cannot both take the last slot.
        """
        now = self.clock()
        day = utc_day(now)
        incremented, used = self.repo.try_increment(user_id, day, self.daily_limit, now.isoformat())
        if not incremented:
            logger.info("AI quota exhausted for user %s (%s/%s on %s)", user_id, used, self.daily_limit, day)
            raise QuotaExceeded(self.daily_limit, next_utc_midnight(now))
        logger.debug("AI quota consumed for user %s: %s/%s", user_id, used, self.daily_limit)
        return self._status(used, now)

    def peek(self, user_id: int) -> QuotaStatus:
        now = self.clock()
        day = utc_day(now)
        return self._status(self.repo.get_used(user_id, day), now)
