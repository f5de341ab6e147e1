"""Configuration constants for wordcraft application."""

# Word confidence (0-100 scale)
INITIAL_CONFIDENCE = 50
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100
MASTERY_THRESHOLD = 80        # Confidence at or above this counts as mastered
NEEDS_WORK_THRESHOLD = 60     # Confidence below this needs work
PRACTICE_THRESHOLD = 70       # Words below this are offered for extra practice

# Confidence deltas applied per game result
CORRECT_BONUS = 15
INCORRECT_PENALTY = 20
ERROR_PENALTY = 5
MAX_ERROR_PENALTY = 15
HINT_PENALTY = 3
MAX_HINT_PENALTY = 9
STREAK_BONUS = 2
MAX_STREAK_BONUS = 10
FAST_RESPONSE_MS = 10000      # Answers faster than this earn a bonus
SLOW_RESPONSE_MS = 30000      # Answers slower than this are penalised
RESPONSE_TIME_DELTA = 5

# History-based confidence scoring
RECENCY_DECAY = 0.7           # Weight multiplier per step back in history

# Spaced repetition (Leitner boxes)
LEITNER_INTERVALS = [1, 2, 4, 7, 14]  # days, indexed by box - 1
MIN_BOX = 1
MAX_BOX = 5
DEFAULT_SESSION_SIZE = 5
STRUGGLING_SHARE = 0.6        # Share of a session reserved for struggling words

# Learning style detection
MIN_RESULTS_FOR_DETECTION = 12
TARGET_RESPONSE_MS = 30000

# Persistence
MAX_STORED_RESULTS = 500
WORD_LISTS_KEY = 'wordcraft_word_lists'
GAME_RESULTS_KEY = 'wordcraft_game_results'
REVIEW_DATA_KEY = 'wordcraft_review_data'
LEARNING_PROFILE_KEY = 'wordcraft_learning_profile'
STORY_SESSION_KEY = 'wordcraft_story_session_state'

# Game mechanics
DEFINITION_MATCH = 'definition-match'
GAME_MECHANICS = [
    'word-scramble',
    'missing-letters',
    'letter-matching',
    'spelling-challenge',
    'letter-hunt',
    'picture-reveal',
    'word-building',
    'trace-write',
    DEFINITION_MATCH,
]
# Mechanics that work without extra word info, in rotation order
ROTATION_MECHANICS = [m for m in GAME_MECHANICS if m != DEFINITION_MATCH]
MIN_SIMILAR_WORDS_FOR_DEFINITION_MATCH = 2

# Story generation
DEFAULT_THEME = 'space'
STORY_THEMES = ['space', 'treasure', 'fantasy', 'ocean', 'jungle']
GENERATION_TIMEOUT_SECONDS = 30
MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0     # seconds
MAX_RETRY_DELAY = 10.0        # seconds
MIN_NARRATIVE_LENGTH = 10
LONG_NARRATIVE_LENGTH = 200
MAX_LONG_NARRATIVE_SHARE = 0.3
INAPPROPRIATE_KEYWORDS = [
    'violence', 'scary', 'death', 'kill', 'fight', 'weapon',
    'blood', 'hurt', 'danger', 'fear', 'nightmare'
]

# Sharing
DEFAULT_SHARE_BASE_URL = 'http://localhost:8000'
