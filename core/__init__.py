from .models import (
    CorruptRecordError, Word, WordList, GameResult, WordStats, SessionStats,
    WordReviewData, WordConfidence, LearningStyleProfile, WordInfo, StoryBeat, GeneratedStory
)
from .interfaces import AIProvider, KeyValueStore
from .word_stats import update_word_stats, initialize_word_stats
from .session_stats import calculate_session_stats, format_time
from .finale import should_show_finale, evaluate_finale
from .spaced_repetition import record_review, initialize_word_review
from .game_selector import assign_game_types, select_game_type
from .config import (
    MASTERY_THRESHOLD, INITIAL_CONFIDENCE, LEITNER_INTERVALS,
    GAME_MECHANICS, ROTATION_MECHANICS, DEFINITION_MATCH
)

__all__ = [
    'CorruptRecordError', 'Word', 'WordList', 'GameResult', 'WordStats', 'SessionStats',
    'WordReviewData', 'WordConfidence', 'LearningStyleProfile', 'WordInfo', 'StoryBeat', 'GeneratedStory',
    'AIProvider', 'KeyValueStore',
    'update_word_stats', 'initialize_word_stats',
    'calculate_session_stats', 'format_time',
    'should_show_finale', 'evaluate_finale',
    'record_review', 'initialize_word_review',
    'assign_game_types', 'select_game_type',
    'MASTERY_THRESHOLD', 'INITIAL_CONFIDENCE', 'LEITNER_INTERVALS',
    'GAME_MECHANICS', 'ROTATION_MECHANICS', 'DEFINITION_MATCH'
]
