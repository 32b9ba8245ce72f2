from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class Question:
    """A binary-choice prompt: the correct item's text and one distractor.

    Exactly one of ``option_a``/``option_b`` equals ``correct``;
    ``correct_is_a`` records which.
    """
    correct: str
    distractor: str
    option_a: str
    option_b: str
    correct_is_a: bool
