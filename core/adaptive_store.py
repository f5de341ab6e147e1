"""Persistence of adaptive learning data over a key-value store.

Game results, spaced-repetition review data and the learning-style profile
are stored as JSON under fixed keys, one set of keys per user.
"""

import json
import logging

from .config import (
    GAME_RESULTS_KEY, REVIEW_DATA_KEY, LEARNING_PROFILE_KEY, STORY_SESSION_KEY,
    MAX_STORED_RESULTS
)
from .interfaces import KeyValueStore
from .models import (
    CorruptRecordError, GameResult, LearningStyleProfile, WordReviewData, format_date
)

logger = logging.getLogger(__name__)


def user_key(key: str, user_id: str = "default") -> str:
    """Namespace a storage key for a user. The default user keeps the bare key."""
    if user_id == "default":
        return key
    return f"{key}:{user_id}"


def load_json(store: KeyValueStore, key: str):
    """Read and decode a JSON value. Returns None if absent; raises CorruptRecordError if undecodable."""
    text = store.get(key)
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Corrupt record under {key}: {e}")
        raise CorruptRecordError(f"Invalid JSON under key '{key}'") from e


class AdaptiveDataStore:
    """Per-user game results, review data, learning profile and story session state."""

    def __init__(self, store: KeyValueStore, user_id: str = "default"):
        self.store = store
        self.user_id = user_id

    def _key(self, key: str) -> str:
        return user_key(key, self.user_id)

    def _load_list(self, key: str) -> list:
        data = load_json(self.store, self._key(key))
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptRecordError(f"Expected a list under key '{self._key(key)}'")
        return data

    # Game results

    def save_game_result(self, result: GameResult) -> None:
        """Append a result, keeping only the most recent MAX_STORED_RESULTS."""
        results = self._load_list(GAME_RESULTS_KEY)
        results.append(result.to_dict())
        results = results[-MAX_STORED_RESULTS:]
        self.store.set(self._key(GAME_RESULTS_KEY), json.dumps(results))

    def get_all_game_results(self) -> list[GameResult]:
        return [GameResult.from_dict(r) for r in self._load_list(GAME_RESULTS_KEY)]

    def get_word_results(self, word: str) -> list[GameResult]:
        key = word.lower()
        return [r for r in self.get_all_game_results() if r.word.lower() == key]

    def clear_game_results(self) -> None:
        self.store.delete(self._key(GAME_RESULTS_KEY))

    # Review data, stored as [word, data] pairs keyed by lower-cased word

    def get_all_review_data(self) -> dict[str, WordReviewData]:
        reviews = {}
        for entry in self._load_list(REVIEW_DATA_KEY):
            if not isinstance(entry, list) or len(entry) != 2:
                raise CorruptRecordError("Review data entries must be [word, data] pairs")
            word, data = entry
            reviews[word] = WordReviewData.from_dict(data)
        return reviews

    def get_review_data(self, word: str) -> WordReviewData | None:
        return self.get_all_review_data().get(word.lower())

    def save_review_data(self, review: WordReviewData) -> None:
        reviews = self.get_all_review_data()
        reviews[review.word.lower()] = review
        serialized = [[word, data.to_dict()] for word, data in reviews.items()]
        self.store.set(self._key(REVIEW_DATA_KEY), json.dumps(serialized))

    def clear_review_data(self) -> None:
        self.store.delete(self._key(REVIEW_DATA_KEY))

    # Learning profile

    def save_learning_profile(self, profile: LearningStyleProfile) -> None:
        self.store.set(self._key(LEARNING_PROFILE_KEY), json.dumps(profile.to_dict()))

    def get_learning_profile(self) -> LearningStyleProfile | None:
        data = load_json(self.store, self._key(LEARNING_PROFILE_KEY))
        if data is None:
            return None
        return LearningStyleProfile.from_dict(data)

    def clear_learning_profile(self) -> None:
        self.store.delete(self._key(LEARNING_PROFILE_KEY))

    # Story session state

    def save_story_session(self, state: dict) -> None:
        self.store.set(self._key(STORY_SESSION_KEY), json.dumps(state))

    def load_story_session(self) -> dict | None:
        data = load_json(self.store, self._key(STORY_SESSION_KEY))
        if data is not None and not isinstance(data, dict):
            raise CorruptRecordError("Story session state must be an object")
        return data

    def clear_story_session(self) -> None:
        self.store.delete(self._key(STORY_SESSION_KEY))

    def clear_all(self) -> None:
        """Remove results, review data and profile. Story session state is kept."""
        self.clear_game_results()
        self.clear_review_data()
        self.clear_learning_profile()

    def get_storage_stats(self) -> dict:
        results = self.get_all_game_results()
        return {
            'total_results': len(results),
            'words_tracked': len(self.get_all_review_data()),
            'has_learning_profile': self.get_learning_profile() is not None,
            'oldest_result': format_date(results[0].completed_at) if results else None,
            'newest_result': format_date(results[-1].completed_at) if results else None
        }
