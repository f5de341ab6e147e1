"""Mock implementations of the core interfaces, shared by the test modules."""

from core.interfaces import AIProvider, KeyValueStore
from core.models import GeneratedStory, StoryBeat, WordInfo


class MemoryStore(KeyValueStore):
    """In-memory key-value store for testing."""

    def __init__(self):
        self.data = {}
        self.set_calls = []

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_calls.append(key)
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def make_story(words: list[str]) -> GeneratedStory:
    """A small story: an opening narrative, then a game beat per word with a checkpoint in between."""
    beats = [StoryBeat('narrative-1', 'narrative', 'Your rocket is ready for launch!')]
    for i, word in enumerate(words, start=1):
        beats.append(StoryBeat(f'game-{i}', 'game', f'Spell {word.upper()} to open the hatch!', word=word))
        if i == 1:
            beats.append(StoryBeat(
                'choice-1', 'choice', 'Two planets glow ahead of you.',
                question='Which planet do you visit?', options=['The red one', 'The blue one']
            ))
            beats.append(StoryBeat(
                'checkpoint-1', 'checkpoint', 'You reached the Moon base!',
                checkpoint_number=1, celebration_emoji='🌙', title='Moon Landing'
            ))
    return GeneratedStory(beats)


class MockAIProvider(AIProvider):
    """Mock AI provider for testing."""

    def __init__(self):
        self.fail_story = False
        self.fail_word_info = False
        self.similar_words = {}
        self.generate_story_calls = []
        self.generate_word_info_calls = []

    def generate_story(self, word_list: list[str], theme: str) -> tuple[GeneratedStory | None, int]:
        self.generate_story_calls.append((list(word_list), theme))
        if self.fail_story:
            return (None, 100)
        return (make_story(word_list), 100)

    def generate_word_info(self, word_list: list[str], theme: str) -> tuple[dict | None, int]:
        self.generate_word_info_calls.append((list(word_list), theme))
        if self.fail_word_info:
            return (None, 50)
        return ({
            word: WordInfo(f'The meaning of {word}', f'A hint for {word}', self.similar_words.get(word, []), 3)
            for word in word_list
        }, 50)
