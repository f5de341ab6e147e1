"""Word list management over a key-value store."""

import json
import logging
import random
import string
import time

from .adaptive_store import load_json, user_key
from .config import WORD_LISTS_KEY
from .interfaces import KeyValueStore
from .models import CorruptRecordError, WordList, utc_now

logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Millisecond timestamp plus a short random suffix."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{int(time.time() * 1000)}_{suffix}"


def clean_words(words: list[str]) -> list[str]:
    """Trim each word and drop empty ones. Order and duplicates are kept."""
    return [w.strip() for w in words if w and w.strip()]


class WordListRepository:
    """CRUD for a user's word lists, stored together as one JSON array."""

    def __init__(self, store: KeyValueStore, user_id: str = "default"):
        self.store = store
        self.key = user_key(WORD_LISTS_KEY, user_id)

    def _save(self, lists: list[WordList]) -> None:
        self.store.set(self.key, json.dumps([wl.to_dict() for wl in lists]))

    def get_all(self) -> list[WordList]:
        data = load_json(self.store, self.key)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptRecordError(f"Expected a list under key '{self.key}'")
        return [WordList.from_dict(item) for item in data]

    def get(self, list_id: str) -> WordList | None:
        for word_list in self.get_all():
            if word_list.id == list_id:
                return word_list
        return None

    def create(self, name: str, words: list[str], description: str | None = None) -> WordList:
        now = utc_now()
        word_list = WordList(
            id=generate_id(),
            name=name.strip(),
            description=description.strip() if description else None,
            words=clean_words(words),
            created_at=now,
            updated_at=now
        )
        lists = self.get_all()
        lists.append(word_list)
        self._save(lists)
        logger.info(f"Created word list {word_list.id} ({len(word_list.words)} words)")
        return word_list

    def update(self, list_id: str, name: str = None, words: list[str] = None,
               description: str = None) -> WordList | None:
        """Apply the given changes and refresh updated_at. Returns None if the list is unknown."""
        lists = self.get_all()
        for word_list in lists:
            if word_list.id != list_id:
                continue
            if name:
                word_list.name = name.strip()
            if description is not None:
                word_list.description = description.strip() or None
            if words is not None:
                word_list.words = clean_words(words)
            word_list.updated_at = utc_now()
            self._save(lists)
            return word_list
        return None

    def delete(self, list_id: str) -> bool:
        lists = self.get_all()
        remaining = [wl for wl in lists if wl.id != list_id]
        if len(remaining) == len(lists):
            return False
        self._save(remaining)
        return True

    def name_exists(self, name: str, exclude_id: str = None) -> bool:
        normalized = name.strip().lower()
        return any(
            wl.id != exclude_id and wl.name.lower() == normalized
            for wl in self.get_all()
        )

    def clear(self) -> None:
        self.store.delete(self.key)
