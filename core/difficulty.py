"""Per-word game difficulty adjustment."""

import re

from .models import GameResult

EASY = 'easy'
MEDIUM = 'medium'
HARD = 'hard'

TRICKY_PATTERNS = [
    r'ie|ei',
    r'ph|gh',
    r'ough|augh',
    r'c[ei]|g[ei]',
    r'[aeiou]{2,}',
]


def _first_try(result: GameResult) -> bool:
    return result.correct and result.attempts == 1


def calculate_difficulty(word_results: list[GameResult], current: str = MEDIUM) -> str:
    """Next difficulty for a word from its last five results."""
    if not word_results:
        return MEDIUM

    recent = word_results[-5:]
    n = len(recent)
    success_rate = sum(1 for r in recent if _first_try(r)) / n
    last_three = recent[-3:]
    consecutive_successes = all(_first_try(r) for r in last_three)
    consecutive_failures = all(not _first_try(r) for r in last_three)
    avg_attempts = sum(r.attempts for r in recent) / n
    avg_hints = sum(r.hints_used for r in recent) / n

    if current == EASY:
        if success_rate >= 0.8 and consecutive_successes:
            return MEDIUM
        return EASY
    if current == MEDIUM:
        if consecutive_failures or success_rate < 0.5 or avg_attempts > 2 or avg_hints > 1:
            return EASY
        if consecutive_successes and success_rate >= 0.85 and avg_hints == 0:
            return HARD
        return MEDIUM
    if success_rate < 0.6 or avg_attempts > 1.5 or avg_hints > 0.5:
        return MEDIUM
    return HARD


def has_tricky_pattern(word: str) -> bool:
    clean = re.sub(r'\s', '', word).lower()
    return any(re.search(p, clean) for p in TRICKY_PATTERNS)


def get_initial_difficulty(word: str) -> str:
    """Short words start easy; everything else starts at medium."""
    if len(re.sub(r'\s', '', word)) <= 3:
        return EASY
    return MEDIUM


def should_lock_difficulty(word_results: list[GameResult]) -> bool:
    """Too little data to move away from the initial difficulty."""
    return len(word_results) < 2


def get_difficulty_rationale(word_results: list[GameResult], old: str, new: str) -> str:
    if old == new:
        return 'Difficulty maintained - performance is appropriate'

    recent = word_results[-3:]
    success_rate = sum(1 for r in recent if _first_try(r)) / len(recent) if recent else 0
    percent = f"{success_rate * 100:.0f}%"
    if new == EASY:
        return f"Difficulty reduced to easy - success rate {percent} indicates struggle"
    if new == HARD:
        return f"Difficulty increased to hard - consistent strong performance ({percent} success)"
    return 'Difficulty adjusted to medium - balancing challenge level'
