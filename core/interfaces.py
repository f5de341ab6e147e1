"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .models import GeneratedStory


class AIProvider(ABC):
    """Abstract base class for AI/LLM provider."""

    @abstractmethod
    def generate_story(self, word_list: list[str], theme: str) -> tuple[GeneratedStory | None, int]:
        """Generate a story for the words. Returns (story or None, generation_time_ms).
        Must not raise; failures are reported as None."""
        pass

    @abstractmethod
    def generate_word_info(self, word_list: list[str], theme: str) -> tuple[dict | None, int]:
        """Generate word info for each word. Returns ({word: WordInfo} or None, generation_time_ms)."""
        pass


class KeyValueStore(ABC):
    """Abstract base class for text storage addressed by string keys."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text for key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        pass
