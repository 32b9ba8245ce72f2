from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

@dataclass(frozen=True)
class QuotaStatus:
    used: int
    remaining: int
    limit: int
    reset_at: datetime
