from __future__ import annotations

import logging
import re
import unicodedata
from typing import List, Optional, Sequence, Tuple

from vocab_lists.data.list_repo import ListRepo
from vocab_lists.models.word_list import WordList, WordListItem
from vocab_lists.service.list_lifecycle import ListLocked, Locked, assert_mutable, lock_state

logger = logging.getLogger(__name__)

LIST_SOURCES = ("manual", "ai")
NOUN_CATEGORIES = ("animals", "food", "household_items", "transport", "jobs")

_WS = re.compile(r"\s+")


class ListNotFound(Exception):
    def __init__(self, list_id: int):
        super().__init__("List not found.")
        self.list_id = list_id


class ItemNotFound(Exception):
    def __init__(self, item_id: int):
        super().__init__("Item not found.")
        self.item_id = item_id


class ListLimitExceeded(Exception):
    def __init__(self, limit: int):
        super().__init__(
            f"You have reached the maximum number of lists ({limit}). "
            "Please delete some lists before creating new ones."
        )
        self.limit = limit


def normalize_display(text: str) -> str:
    """Fold case and diacritics: '  Crème  Brûlée ' -> 'creme brulee'."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WS.sub(" ", stripped).strip().casefold()


class ListService:
    """Business rules for lists and their items.

    Every item mutation checks the lock first; the repository re-checks it
    inside the write so a concurrent first test cannot slip in between.
    """

    def __init__(
        self,
        repo: ListRepo,
        max_lists: int = 50,
        max_items: int = 200,
        name_max_len: int = 80,
        display_max_len: int = 80,
    ):
        self.repo = repo
        self.max_lists = max_lists
        self.max_items = max_items
        self.name_max_len = name_max_len
        self.display_max_len = display_max_len

    # -------------------------
    # Validation
    # -------------------------
    def _clean_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValueError("Name cannot be empty.")
        if len(name) > self.name_max_len:
            raise ValueError(f"Name too long (max {self.name_max_len}).")
        return name

    def _clean_display(self, display: str) -> str:
        display = display.strip()
        if not display:
            raise ValueError("Item text cannot be empty.")
        if len(display) > self.display_max_len:
            raise ValueError(f"Item text too long (max {self.display_max_len}).")
        return display

    # -------------------------
    # Lists
    # -------------------------
    def create_list(
        self,
        user_id: int,
        name: str,
        source: str,
        category: Optional[str],
        items: Sequence[Tuple[int, str]],
    ) -> WordList:
        """Create a list with its items, given as (position, display) pairs.

        Submitted positions must be unique; they fix the order only and are
        stored compacted to 1..N.
        """
        name = self._clean_name(name)
        if source not in LIST_SOURCES:
            raise ValueError("source must be either 'manual' or 'ai'.")
        if source == "ai" and category is None:
            raise ValueError("category is required when source is 'ai'.")
        if source == "manual" and category is not None:
            raise ValueError("category must be null when source is 'manual'.")
        if category is not None and category not in NOUN_CATEGORIES:
            raise ValueError(f"Invalid category. Must be one of: {', '.join(NOUN_CATEGORIES)}.")
        if not items:
            raise ValueError("A list needs at least 1 item.")
        if len(items) > self.max_items:
            raise ValueError(f"A list can hold at most {self.max_items} items.")
        positions = [pos for pos, _ in items]
        if len(set(positions)) != len(positions):
            raise ValueError("Items must have unique positions.")

        ordered = sorted(items, key=lambda pair: pair[0])
        rows: List[Tuple[str, str]] = []
        for _, display in ordered:
            display = self._clean_display(display)
            rows.append((display, normalize_display(display)))

        created = self.repo.create_list_with_items(user_id, name, source, category, rows, self.max_lists)
        if created is None:
            logger.warning("User %s hit the list limit (%s)", user_id, self.max_lists)
            raise ListLimitExceeded(self.max_lists)
        logger.info("User %s created list %s with %s items (source: %s)", user_id, created.id, len(rows), source)
        return created

    def list_lists(self, user_id: int) -> List[WordList]:
        return self.repo.list_lists(user_id)

    def get_list(self, user_id: int, list_id: int, touch: bool = False) -> WordList:
        if touch:
            self.repo.touch_list(list_id, user_id)
        found = self.repo.get_list(list_id, user_id)
        if found is None:
            raise ListNotFound(list_id)
        return found

    def rename_list(self, user_id: int, list_id: int, name: str) -> WordList:
        name = self._clean_name(name)
        if not self.repo.rename_list(list_id, user_id, name):
            raise ListNotFound(list_id)
        return self.get_list(user_id, list_id)

    def delete_list(self, user_id: int, list_id: int) -> None:
        if not self.repo.delete_list(list_id, user_id):
            raise ListNotFound(list_id)
        logger.info("User %s deleted list %s", user_id, list_id)

    # -------------------------
    # Items (only while unlocked)
    # -------------------------
    def _mutable_list(self, user_id: int, list_id: int) -> WordList:
        found = self.repo.get_list(list_id, user_id, with_items=False)
        if found is None:
            raise ListNotFound(list_id)
        assert_mutable(found)
        return found

    def _explain_failed_write(self, user_id: int, list_id: int, item_id: Optional[int]) -> Exception:
        """The guarded write touched nothing: work out whether the list locked meanwhile."""
        current = self.repo.get_list(list_id, user_id, with_items=False)
        if current is None:
            return ListNotFound(list_id)
        state = lock_state(current)
        if isinstance(state, Locked):
            return ListLocked(list_id, state.since)
        if item_id is None:
            return ValueError(f"A list can hold at most {self.max_items} items.")
        return ItemNotFound(item_id)

    def add_item(self, user_id: int, list_id: int, display: str) -> WordListItem:
        self._mutable_list(user_id, list_id)
        display = self._clean_display(display)
        item = self.repo.append_item(list_id, display, normalize_display(display), self.max_items)
        if item is None:
            raise self._explain_failed_write(user_id, list_id, None)
        return item

    def edit_item(
        self,
        user_id: int,
        list_id: int,
        item_id: int,
        display: Optional[str] = None,
        position: Optional[int] = None,
    ) -> WordListItem:
        """New text and/or new position, applied together or not at all."""
        self._mutable_list(user_id, list_id)
        if display is None and position is None:
            raise ValueError("Nothing to update: send display and/or position.")
        normalized = None
        if display is not None:
            display = self._clean_display(display)
            normalized = normalize_display(display)
        if position is not None and position < 1:
            raise ValueError("position must be at least 1.")
        item = self.repo.edit_item(list_id, item_id, display, normalized, position)
        if item is None:
            raise self._explain_failed_write(user_id, list_id, item_id)
        return item

    def update_item(self, user_id: int, list_id: int, item_id: int, display: str) -> WordListItem:
        return self.edit_item(user_id, list_id, item_id, display=display)

    def move_item(self, user_id: int, list_id: int, item_id: int, position: int) -> WordListItem:
        return self.edit_item(user_id, list_id, item_id, position=position)

    def delete_item(self, user_id: int, list_id: int, item_id: int) -> None:
        self._mutable_list(user_id, list_id)
        if not self.repo.delete_item(list_id, item_id):
            raise self._explain_failed_write(user_id, list_id, item_id)
        logger.info("Deleted item %s from list %s", item_id, list_id)
