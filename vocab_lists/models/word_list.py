from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class WordListItem:
    """One vocabulary entry.

    ``position`` is 1-based and dense within its list. ``normalized`` is the
    case/diacritic-folded form of ``display``; it is stored but never scored.
    """
    id: int
    list_id: int
    position: int
    display: str
    normalized: str
    created_at: str


@dataclass(frozen=True)
class WordList:
    """A named, ordered collection of items owned by one user.

    ``first_tested_at`` doubles as the lock marker: once set, the items are
    frozen for the lifetime of the list.
    """
    id: int
    user_id: int
    name: str
    source: str
    category: Optional[str]
    first_tested_at: Optional[str]
    last_score: Optional[int]
    last_correct: Optional[int]
    last_wrong: Optional[int]
    last_tested_at: Optional[str]
    last_accessed_at: Optional[str]
    created_at: str
    updated_at: str
    items: List[WordListItem] = field(default_factory=list)


@dataclass(frozen=True)
class TestRecord:
    """One completed test run. Never updated after insert."""
    __test__ = False

    id: int
    list_id: int
    correct: int
    wrong: int
    items_count: int
    score: int
    completed_at: str
