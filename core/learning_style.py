"""Learning style detection from game performance.

Each mechanic exercises one style (visual, auditory or kinesthetic). Styles
whose games the child does well at get a larger share of future games.
"""

import random

from .config import MIN_RESULTS_FOR_DETECTION, TARGET_RESPONSE_MS, ROTATION_MECHANICS
from .models import GameResult, LearningStyleProfile

VISUAL = 'visual'
AUDITORY = 'auditory'
KINESTHETIC = 'kinesthetic'
STYLES = [VISUAL, AUDITORY, KINESTHETIC]

GAME_STYLE_MAP = {
    'letter-matching': VISUAL,
    'missing-letters': VISUAL,
    'picture-reveal': VISUAL,
    'spelling-challenge': AUDITORY,
    'word-scramble': KINESTHETIC,
    'letter-hunt': KINESTHETIC,
    'trace-write': KINESTHETIC,
    'word-building': KINESTHETIC,
}


def default_profile(sample_size: int = 0) -> LearningStyleProfile:
    return LearningStyleProfile(33, 33, 34, VISUAL, None, 'low', sample_size)


def calculate_style_performances(results: list[GameResult]) -> dict[str, dict]:
    """Success rate (0-100), average attempts, average time and game count per style."""
    grouped = {style: [] for style in STYLES}
    for result in results:
        style = GAME_STYLE_MAP.get(result.mechanic_id)
        if style:
            grouped[style].append(result)

    performances = {}
    for style, style_results in grouped.items():
        n = len(style_results)
        if n == 0:
            performances[style] = {
                'success_rate': 0, 'average_attempts': 0, 'average_time_ms': 0, 'games_played': 0
            }
            continue
        performances[style] = {
            'success_rate': sum(1 for r in style_results if r.correct) / n * 100,
            'average_attempts': sum(r.attempts for r in style_results) / n,
            'average_time_ms': sum(r.time_ms for r in style_results) / n,
            'games_played': n
        }
    return performances


def _style_score(performance: dict) -> float:
    if performance['games_played'] == 0:
        return 0
    attempt_score = max(0, 100 - (performance['average_attempts'] - 1) * 20)
    time_score = max(0, 100 - ((performance['average_time_ms'] - TARGET_RESPONSE_MS) / 1000) * 2)
    return performance['success_rate'] * 0.5 + attempt_score * 0.3 + time_score * 0.2


def detect_learning_style(results: list[GameResult]) -> LearningStyleProfile:
    """Profile from all results. Below MIN_RESULTS_FOR_DETECTION a balanced default is returned."""
    n = len(results)
    if n < MIN_RESULTS_FOR_DETECTION:
        return default_profile(n)

    performances = calculate_style_performances(results)
    scores = {style: _style_score(performances[style]) for style in STYLES}
    total = sum(scores.values())
    percentages = {
        style: round(score / total * 100) if total > 0 else 33
        for style, score in scores.items()
    }

    ranked = sorted(STYLES, key=lambda s: scores[s], reverse=True)
    primary = ranked[0]
    secondary = ranked[1] if scores[ranked[1]] > scores[ranked[2]] * 1.2 else None

    separation = scores[ranked[0]] - scores[ranked[1]]
    if n < 20:
        confidence = 'low'
    elif n < 40 or separation < 10:
        confidence = 'medium'
    else:
        confidence = 'high'

    return LearningStyleProfile(
        visual=percentages[VISUAL],
        auditory=percentages[AUDITORY],
        kinesthetic=percentages[KINESTHETIC],
        primary=primary,
        secondary=secondary,
        confidence=confidence,
        sample_size=n
    )


def get_recommended_games(profile: LearningStyleProfile, available_games: list[str] = None) -> list[str]:
    """Games repeated in proportion to the profile's style percentages (out of 10 slots)."""
    available_games = available_games if available_games is not None else ROTATION_MECHANICS
    by_style = {style: [] for style in STYLES}
    for game in available_games:
        style = GAME_STYLE_MAP.get(game)
        if style:
            by_style[style].append(game)

    weighted = []
    for style in STYLES:
        count = round(getattr(profile, style) / 100 * 10)
        for _ in range(count):
            weighted.extend(by_style[style])
    return weighted


def select_next_game(profile: LearningStyleProfile, available_games: list[str] = None,
                     recent_games: list[str] = None, rng: random.Random = None) -> str:
    """Pick a recommended game, avoiding the last two played where possible."""
    rng = rng or random.Random()
    available_games = available_games if available_games is not None else ROTATION_MECHANICS
    recommended = get_recommended_games(profile, available_games)
    last_two = (recent_games or [])[-2:]
    fresh = [g for g in recommended if g not in last_two]
    pool = fresh or recommended
    if not pool:
        return available_games[0]
    return rng.choice(pool)
