"""Per-word confidence tracking within a session.

Each GameResult moves a word's confidence up (correct) or down (incorrect).
Penalties for errors, hints and slow answers, and a bonus for streaks and
fast answers, adjust the size of the move but never its direction.
"""

from datetime import datetime, timedelta

from .config import (
    INITIAL_CONFIDENCE, MIN_CONFIDENCE, MAX_CONFIDENCE,
    MASTERY_THRESHOLD, PRACTICE_THRESHOLD,
    CORRECT_BONUS, INCORRECT_PENALTY,
    ERROR_PENALTY, MAX_ERROR_PENALTY, HINT_PENALTY, MAX_HINT_PENALTY,
    STREAK_BONUS, MAX_STREAK_BONUS,
    FAST_RESPONSE_MS, SLOW_RESPONSE_MS, RESPONSE_TIME_DELTA
)
from .models import GameResult, WordStats, utc_now


def clamp_confidence(value: float) -> int:
    return int(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(value))))


def initialize_word_stats(words: list[str], now: datetime = None) -> dict[str, WordStats]:
    """Create fresh stats for each distinct word in a list."""
    now = now or utc_now()
    stats = {}
    for word in words:
        if word not in stats:
            stats[word] = WordStats(word, confidence=INITIAL_CONFIDENCE, last_practiced=now)
    return stats


def confidence_delta(result: GameResult, streak: int) -> int:
    """Confidence change for one result, given the streak after that result."""
    errors = max(0, result.attempts - 1)
    delta = CORRECT_BONUS if result.correct else -INCORRECT_PENALTY
    delta -= min(errors * ERROR_PENALTY, MAX_ERROR_PENALTY)
    delta -= min(result.hints_used * HINT_PENALTY, MAX_HINT_PENALTY)
    if result.correct:
        delta += min(streak * STREAK_BONUS, MAX_STREAK_BONUS)
    if result.time_ms < FAST_RESPONSE_MS:
        delta += RESPONSE_TIME_DELTA
    elif result.time_ms > SLOW_RESPONSE_MS:
        delta -= RESPONSE_TIME_DELTA

    # Penalties only shrink a move, they never reverse it
    if result.correct:
        return max(delta, 1)
    return min(delta, -1)


def update_word_stats(stats: WordStats | None, result: GameResult) -> WordStats:
    """Return new stats with result applied. The input is not modified."""
    previous = stats or WordStats(result.word)
    streak = previous.streak + 1 if result.correct else 0
    delta = confidence_delta(result, streak)

    return WordStats(
        word=previous.word,
        confidence=clamp_confidence(previous.confidence + delta),
        attempts_count=previous.attempts_count + 1,
        correct_count=previous.correct_count + (1 if result.correct else 0),
        errors=previous.errors + max(0, result.attempts - 1),
        hints=previous.hints + result.hints_used,
        time_spent=previous.time_spent + result.time_ms,
        streak=streak,
        last_practiced=result.completed_at
    )


def recompute_word_stats(word: str, results: list[GameResult]) -> WordStats:
    """Fold a word's full result history, in order, into fresh stats."""
    stats = WordStats(word)
    for result in results:
        if result.word == word:
            stats = update_word_stats(stats, result)
    return stats


def calculate_difficulty_score(stats: WordStats, now: datetime = None) -> int:
    """How much a word needs practice, 0 (easy) to 100 (hard)."""
    now = now or utc_now()
    score = MAX_CONFIDENCE - stats.confidence
    score += stats.errors * 3
    score += stats.hints * 2
    score -= min(stats.streak * 5, 20)
    if stats.last_practiced and now - stats.last_practiced < timedelta(hours=1):
        score -= 10
    return clamp_confidence(score)


def get_words_needing_practice(word_stats: dict[str, WordStats], threshold: int = PRACTICE_THRESHOLD,
                               now: datetime = None) -> list[str]:
    """Words below threshold, hardest first."""
    now = now or utc_now()
    weak = [s for s in word_stats.values() if s.confidence < threshold]
    weak.sort(key=lambda s: calculate_difficulty_score(s, now), reverse=True)
    return [s.word for s in weak]


def all_words_mastered(word_stats: dict[str, WordStats], threshold: int = MASTERY_THRESHOLD) -> bool:
    if not word_stats:
        return False
    return all(s.confidence >= threshold for s in word_stats.values())


def get_word_stats_summary(word_stats: dict[str, WordStats]) -> dict:
    stats = list(word_stats.values())
    total = len(stats)
    return {
        'total_words': total,
        'mastered_words': sum(1 for s in stats if s.confidence >= MASTERY_THRESHOLD),
        'average_confidence': round(sum(s.confidence for s in stats) / total) if total else 0,
        'total_attempts': sum(s.attempts_count for s in stats),
        'total_errors': sum(s.errors for s in stats)
    }
