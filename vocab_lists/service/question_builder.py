"""Question generation for the linear A/B quiz.

Traversal policy: questions follow the list's stored position order. The
prompt never reveals the word itself; the learner is asked for the "first"
and then each "next" item of the list, and picks it out of two options.
"""
from __future__ import annotations

import random
from typing import List, Optional, Sequence

from vocab_lists.models.question import Question
from vocab_lists.models.word_list import WordListItem

FIRST_PROMPT = "First item of the list"
NEXT_PROMPT = "Next item of the list"


def prompt_for(index: int) -> str:
    return FIRST_PROMPT if index == 0 else NEXT_PROMPT


def _pick_distractor(item: WordListItem, others: Sequence[WordListItem], rng: random.Random) -> WordListItem:
    # Items with identical text would make both options the same; skip them
    # unless nothing else is left.
    distinct = [o for o in others if o.display != item.display]
    return rng.choice(distinct or list(others))


def build_questions(items: Sequence[WordListItem], rng: Optional[random.Random] = None) -> List[Question]:
    """One question per item, in position order.

    Callers guarantee at least the minimum test size; with a single item
    there is no distractor to draw.
    """
    rng = rng or random.Random()
    ordered = sorted(items, key=lambda i: i.position)
    questions: List[Question] = []
    for index, item in enumerate(ordered):
        others = ordered[:index] + ordered[index + 1:]
        distractor = _pick_distractor(item, others, rng)
        correct_is_a = rng.random() < 0.5
        questions.append(
            Question(
                correct=item.display,
                distractor=distractor.display,
                option_a=item.display if correct_is_a else distractor.display,
                option_b=distractor.display if correct_is_a else item.display,
                correct_is_a=correct_is_a,
            )
        )
    return questions
