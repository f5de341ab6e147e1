"""Session-level statistics."""

import math
from datetime import datetime

from .config import MASTERY_THRESHOLD
from .models import GameResult, SessionStats, WordStats, utc_now


def calculate_session_stats(word_stats: dict[str, WordStats], game_results: list[GameResult],
                            session_start: datetime, now: datetime = None) -> SessionStats:
    """Aggregate word stats and results into a snapshot. Never fails on empty input."""
    now = now or utc_now()
    stats = list(word_stats.values())
    total_words = len(stats)
    games_played = len(game_results)
    correct_count = sum(1 for r in game_results if r.correct)

    elapsed = (now - session_start).total_seconds()

    return SessionStats(
        total_words=total_words,
        words_mastered=sum(1 for s in stats if s.confidence >= MASTERY_THRESHOLD),
        games_played=games_played,
        correct_count=correct_count,
        accuracy=correct_count / games_played if games_played else 0.0,
        time_spent=max(0, math.floor(elapsed)),
        average_confidence=sum(s.confidence for s in stats) / total_words if total_words else 0.0
    )


def format_time(seconds: int) -> str:
    """Format seconds as '45s', '2m' or '5m 25s'."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    if minutes == 0:
        return f"{secs}s"
    if secs == 0:
        return f"{minutes}m"
    return f"{minutes}m {secs}s"


def summarize_results(game_results: list[GameResult]) -> dict[str, dict]:
    """Per-word practice counts, average response time and hints used."""
    summary = {}
    for result in game_results:
        entry = summary.setdefault(result.word, {'practiced': 0, 'correct': 0, 'total_time_ms': 0, 'hints': 0})
        entry['practiced'] += 1
        entry['correct'] += 1 if result.correct else 0
        entry['total_time_ms'] += result.time_ms
        entry['hints'] += result.hints_used
    for entry in summary.values():
        entry['average_time_ms'] = entry.pop('total_time_ms') // entry['practiced']
    return summary
