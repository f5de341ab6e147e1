"""Story content, parsing of generated stories, and enrichment with word info."""

import json
import logging
import re

from .config import (
    DEFAULT_THEME, INAPPROPRIATE_KEYWORDS,
    MIN_NARRATIVE_LENGTH, LONG_NARRATIVE_LENGTH, MAX_LONG_NARRATIVE_SHARE
)
from .game_selector import assign_game_types
from .models import GeneratedStory, StoryBeat, WordInfo

logger = logging.getLogger(__name__)

BEAT_TYPES = ['narrative', 'game', 'choice', 'checkpoint']

# Fixed narrative content shown around the generated beats.
# Narratives may contain {wordCount}, filled in by interpolate_content.
THEME_CONTENT = {
    'space': {
        'name': 'Space Adventure',
        'setting': 'A thrilling space adventure exploring distant planets and galaxies',
        'elements': ['rockets', 'planets', 'aliens', 'stars', 'space stations', 'asteroids'],
        'intro': {
            'id': 'intro', 'title': 'Begin Your Journey', 'emoji': '🚀',
            'narrative': 'Welcome, Space Explorer! Your mission is to collect word treasures '
                         'across the galaxy. Every word you learn lights up a new planet!'
        },
        'checkpoints': [
            {'id': 'checkpoint1', 'title': 'Moon Landing', 'emoji': '🌙',
             'narrative': "Great flying! You've landed on the Moon with your first words. Keep going!"},
            {'id': 'checkpoint2', 'title': 'Mars Mission', 'emoji': '🔴',
             'narrative': "Wow! You reached Mars with {wordCount} words learned. You're halfway there!"},
            {'id': 'checkpoint3', 'title': 'Jupiter Journey', 'emoji': '🪐',
             'narrative': "Jupiter is behind you and {wordCount} words are yours. One last stretch!"},
        ],
        'finale': {
            'id': 'finale', 'title': 'Mission Complete', 'emoji': '⭐',
            'narrative': "Mission complete, Space Explorer! You crossed the galaxy and learned all "
                         "your words. You're a Word Champion!"
        },
    },
    'treasure': {
        'name': 'Treasure Hunt',
        'setting': 'An exciting treasure hunt through mysterious lands',
        'elements': ['maps', 'chests', 'pirates', 'islands', 'clues', 'gold coins'],
        'intro': {
            'id': 'intro', 'title': 'The Adventure Begins', 'emoji': '🗺️',
            'narrative': 'Ahoy, Treasure Hunter! A secret map leads to hidden word treasures. '
                         'Spell each word to find the next clue!'
        },
        'checkpoints': [
            {'id': 'checkpoint1', 'title': 'Beach Discovery', 'emoji': '🏖️',
             'narrative': "Brilliant! You found the first chest on the beach. The map now shows a cave..."},
            {'id': 'checkpoint2', 'title': 'Cave Treasures', 'emoji': '⛰️',
             'narrative': "Fantastic! The cave is full of gold and you know {wordCount} words. On to the island!"},
            {'id': 'checkpoint3', 'title': 'Island Riches', 'emoji': '🏝️',
             'narrative': "Amazing! The island treasure is yours with {wordCount} words found. The last chest waits!"},
        ],
        'finale': {
            'id': 'finale', 'title': 'Treasure Complete', 'emoji': '💎',
            'narrative': "Treasure complete! You found every word treasure. You're a Master Treasure Hunter!"
        },
    },
    'fantasy': {
        'name': 'Fantasy Quest',
        'setting': 'A magical journey through enchanted kingdoms',
        'elements': ['wizards', 'dragons', 'castles', 'spells', 'potions', 'magical creatures'],
        'intro': {
            'id': 'intro', 'title': 'The Quest Begins', 'emoji': '🏰',
            'narrative': 'Brave Hero! The kingdom needs magic words to light its towers again. '
                         'Your quest starts now!'
        },
        'checkpoints': [
            {'id': 'checkpoint1', 'title': 'Enchanted Forest', 'emoji': '🌲',
             'narrative': "Well done! You crossed the Enchanted Forest and learned your first spells."},
            {'id': 'checkpoint2', 'title': 'Castle Courtyard', 'emoji': '🏰',
             'narrative': "Magnificent! The castle courtyard glows with {wordCount} magic words."},
            {'id': 'checkpoint3', 'title': "Dragon's Mountain", 'emoji': '🐉',
             'narrative': "The friendly dragon cheers for your {wordCount} words! The tower top is near."},
        ],
        'finale': {
            'id': 'finale', 'title': 'Kingdom Restored', 'emoji': '👑',
            'narrative': "Every tower shines again! You learned all the magic words. The kingdom thanks you, hero!"
        },
    },
}

# Prompt-only settings for themes without fixed content
THEME_SETTINGS = {
    'ocean': ('An underwater adventure exploring the depths of the ocean',
              ['submarines', 'fish', 'coral reefs', 'dolphins', 'treasure', 'mermaids']),
    'jungle': ('A wild expedition through dense jungle landscapes',
               ['vines', 'animals', 'temples', 'rivers', 'bridges', 'hidden paths']),
}


def get_theme_content(theme: str) -> dict:
    """Fixed content for a theme. Unknown themes fall back to the default."""
    return THEME_CONTENT.get(theme, THEME_CONTENT[DEFAULT_THEME])


def get_theme_setting(theme: str) -> tuple[str, list[str]]:
    if theme in THEME_CONTENT:
        content = THEME_CONTENT[theme]
        return content['setting'], content['elements']
    return THEME_SETTINGS.get(theme, get_theme_setting(DEFAULT_THEME))


def interpolate_content(text: str, variables: dict) -> str:
    """Replace {name} placeholders. Unknown names are left as they are."""
    def replace(match):
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        return match.group(0)
    return re.sub(r'\{(\w+)\}', replace, text)


def get_checkpoint_content(theme: str, checkpoint_number: int, word_count: int) -> dict:
    checkpoints = get_theme_content(theme)['checkpoints']
    index = max(1, min(len(checkpoints), checkpoint_number)) - 1
    content = dict(checkpoints[index])
    content['narrative'] = interpolate_content(content['narrative'], {'wordCount': word_count})
    return content


def _extract_json(payload) -> dict | None:
    if isinstance(payload, dict):
        return payload
    if not isinstance(payload, str):
        return None
    match = re.search(r'\{[\s\S]*\}', payload.strip())
    if not match:
        logger.warning("No JSON object found in story response")
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse story response: {e}")
        return None


def parse_story_response(payload, word_list: list[str]) -> GeneratedStory | None:
    """Build a story from a generated payload (JSON text or already-decoded dict).

    Missing beat fields get defaults. Any word without a game beat gets one
    appended so that every word is practised. Returns None if the payload
    has no beat list.
    """
    data = _extract_json(payload)
    if data is None:
        return None
    raw_beats = data.get('beats', data.get('stage1Beats'))
    if not isinstance(raw_beats, list):
        logger.warning("Story response has no beat list")
        return None

    beats = []
    for index, raw in enumerate(raw_beats):
        if not isinstance(raw, dict):
            continue
        beat_id = raw.get('id') or f'beat-{index}'
        narrative = raw.get('narrative') or 'Continue your adventure...'
        beat_type = raw.get('type')
        if beat_type == 'game':
            beats.append(StoryBeat(
                beat_id, 'game', narrative,
                word=raw.get('word') or (word_list[0] if word_list else ''),
                game_type=raw.get('gameType'),
                stage=raw.get('stage') or 1
            ))
        elif beat_type == 'choice':
            options = raw.get('options')
            if not isinstance(options, list) or len(options) < 2:
                options = ['Option A', 'Option B']
            beats.append(StoryBeat(
                beat_id, 'choice', narrative,
                question=raw.get('question') or 'What should you do?',
                options=options[:2]
            ))
        elif beat_type == 'checkpoint':
            beats.append(StoryBeat(
                beat_id, 'checkpoint', narrative,
                checkpoint_number=raw.get('checkpointNumber') or 1,
                celebration_emoji=raw.get('celebrationEmoji') or '🎉',
                title=raw.get('title') or 'Great Progress!'
            ))
        else:
            beats.append(StoryBeat(beat_id, 'narrative', narrative))

    covered = {b.word for b in beats if b.type == 'game'}
    for word in word_list:
        if word not in covered:
            logger.warning(f"Missing game beat for word: {word}")
            beats.append(StoryBeat(
                f'game-{word}-generated', 'game', f'Time to spell "{word.upper()}"!', word=word
            ))
            covered.add(word)

    return GeneratedStory(beats)


def validate_story_content(story: GeneratedStory) -> bool:
    """Check a story is suitable for young children and playable."""
    narratives = [b.narrative for b in story.beats]
    text = ' '.join(narratives).lower()
    for keyword in INAPPROPRIATE_KEYWORDS:
        if keyword in text:
            logger.warning(f"Inappropriate content detected: {keyword}")
            return False

    if not story.game_beats():
        logger.warning("Story contains no game beats")
        return False

    if any(len(n) < MIN_NARRATIVE_LENGTH for n in narratives):
        logger.warning("Story contains narratives that are too short")
        return False

    long_count = sum(1 for n in narratives if len(n) > LONG_NARRATIVE_LENGTH)
    if narratives and long_count / len(narratives) > MAX_LONG_NARRATIVE_SHARE:
        logger.warning("Too many long narratives")
        return False

    return True


def filter_similar_words(word: str, similar_words: list[str]) -> list[str]:
    """Drop similar words equal to, or contained in, the word itself (case-insensitive)."""
    lower = word.lower()
    kept = []
    for similar in similar_words:
        candidate = similar.lower()
        if candidate == lower or candidate in lower:
            continue
        if similar not in kept:
            kept.append(similar)
    return kept


def build_story(story: GeneratedStory | None, word_info: dict[str, WordInfo] | None) -> GeneratedStory | None:
    """Attach word info to each game beat, then assign game types.

    A missing story stays missing. Missing word info leaves beats without
    extra info, so they fall back to the rotation.
    """
    if story is None:
        return None
    story.words = dict(word_info or {})
    by_word = {word.lower(): info for word, info in story.words.items()}
    for beat in story.beats:
        if beat.type == 'game' and beat.word:
            beat.extra_word_info = by_word.get(beat.word.lower())
    assign_game_types(story.beats)
    return story
