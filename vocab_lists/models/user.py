from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class User:
    id: int
    username: str
    created_at: str
