"""Decides when a story session has reached its finale."""

from datetime import datetime

from .models import GameResult, SessionStats, WordStats
from .session_stats import calculate_session_stats
from .word_stats import all_words_mastered


class FinaleStatus:
    """Whether to show the finale, plus the stats to show with it."""

    def __init__(self, should_show_finale: bool, stats: SessionStats):
        self.should_show_finale = should_show_finale
        self.stats = stats

    def to_dict(self) -> dict:
        return {
            'should_show_finale': self.should_show_finale,
            'stats': self.stats.to_dict()
        }


def should_show_finale(word_stats: dict[str, WordStats]) -> bool:
    """True iff at least one word is tracked and every tracked word is mastered."""
    return all_words_mastered(word_stats)


def evaluate_finale(word_stats: dict[str, WordStats], game_results: list[GameResult],
                    session_start: datetime, now: datetime = None) -> FinaleStatus:
    return FinaleStatus(
        should_show_finale(word_stats),
        calculate_session_stats(word_stats, game_results, session_start, now)
    )
