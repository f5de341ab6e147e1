"""History-based word confidence.

Unlike the running WordStats, these scores are recomputed from every stored
GameResult for a word, with recent results weighted more heavily.
"""

from .config import (
    MIN_CONFIDENCE, MAX_CONFIDENCE, MASTERY_THRESHOLD, NEEDS_WORK_THRESHOLD, RECENCY_DECAY
)
from .models import GameResult, WordConfidence

NEEDS_WORK = 'needs-work'
PROGRESSING = 'progressing'
MASTERED = 'mastered'


def get_confidence_level(score: float) -> str:
    if score < NEEDS_WORK_THRESHOLD:
        return NEEDS_WORK
    if score < MASTERY_THRESHOLD:
        return PROGRESSING
    return MASTERED


def score_result(result: GameResult) -> float:
    """Performance score for one result: 0 if wrong, up to 100 if right first time."""
    if not result.correct:
        return 0
    score = 100
    if result.attempts > 1:
        score -= min(30, (result.attempts - 1) * 10)
    if result.hints_used > 0:
        score -= min(30, result.hints_used * 10)
    seconds = result.time_ms / 1000
    if seconds > 60:
        score -= min(10, (seconds - 60) / 10)
    return max(0, score)


def calculate_word_confidence(word: str, results: list[GameResult]) -> WordConfidence:
    key = word.lower()
    word_results = sorted(
        (r for r in results if r.word.lower() == key),
        key=lambda r: r.completed_at
    )
    if not word_results:
        return WordConfidence(word, 0, NEEDS_WORK, 0, None)

    n = len(word_results)
    weighted_sum = 0.0
    total_weight = 0.0
    for index, result in enumerate(word_results):
        weight = RECENCY_DECAY ** (n - index - 1)
        weighted_sum += score_result(result) * weight
        total_weight += weight

    score = round(weighted_sum / total_weight)
    score = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))
    return WordConfidence(
        word=word,
        score=score,
        level=get_confidence_level(score),
        total_attempts=n,
        last_practiced=word_results[-1].completed_at
    )


def calculate_all_confidences(words: list[str], results: list[GameResult]) -> dict[str, WordConfidence]:
    """Confidence for each word, keyed by lower-cased word."""
    return {word.lower(): calculate_word_confidence(word, results) for word in words}


def get_low_confidence_words(confidences: dict[str, WordConfidence],
                             threshold: int = NEEDS_WORK_THRESHOLD) -> list[str]:
    """Words below threshold, lowest score first."""
    low = [c for c in confidences.values() if c.score < threshold]
    low.sort(key=lambda c: c.score)
    return [c.word for c in low]


def get_mastered_words(confidences: dict[str, WordConfidence],
                       threshold: int = MASTERY_THRESHOLD) -> list[str]:
    return [c.word for c in confidences.values() if c.score >= threshold]
