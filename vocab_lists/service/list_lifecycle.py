"""Lock state of a word list.

A list is locked once its first test completes; ``first_tested_at`` is the
only source of truth and there is no unlock path.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from vocab_lists.models.word_list import WordList


class ListLocked(Exception):
    def __init__(self, list_id: int, since: str):
        super().__init__(
            "Cannot modify items after the first test. The list is locked to preserve test history integrity."
        )
        self.list_id = list_id
        self.since = since


@dataclass(frozen=True)
class Unlocked:
    pass


@dataclass(frozen=True)
class Locked:
    since: str


LockState = Union[Unlocked, Locked]


def lock_state(word_list: WordList) -> LockState:
    if word_list.first_tested_at is None:
        return Unlocked()
    return Locked(since=word_list.first_tested_at)


def is_locked(word_list: WordList) -> bool:
    return word_list.first_tested_at is not None


def assert_mutable(word_list: WordList) -> None:
    state = lock_state(word_list)
    if isinstance(state, Locked):
        raise ListLocked(word_list.id, state.since)
