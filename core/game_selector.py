"""Assigns a mini-game mechanic to each game beat of a story."""

from .config import ROTATION_MECHANICS, DEFINITION_MATCH, MIN_SIMILAR_WORDS_FOR_DEFINITION_MATCH
from .models import StoryBeat


def select_game_type(index: int) -> str:
    return ROTATION_MECHANICS[index % len(ROTATION_MECHANICS)]


def supports_definition_match(beat: StoryBeat) -> bool:
    info = beat.extra_word_info
    if info is None:
        return False
    return len(info.similar_words) >= MIN_SIMILAR_WORDS_FOR_DEFINITION_MATCH


def assign_game_types(beats: list[StoryBeat]) -> list[StoryBeat]:
    """Set game_type on every game beat, in place, and return the beats.

    Beats with enough similar words get definition-match. The rest take the
    next mechanic in rotation; the rotation counter starts at 1 and only
    advances for those beats. Non-game beats are left alone.
    """
    counter = 1
    for beat in beats:
        if beat.type != 'game':
            continue
        if supports_definition_match(beat):
            beat.game_type = DEFINITION_MATCH
        else:
            beat.game_type = select_game_type(counter)
            counter += 1
    return beats
