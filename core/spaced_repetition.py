"""Leitner-box spaced repetition scheduling.

A word starts in box 1 and is due immediately. Each review moves it between
boxes; the box decides how many days pass before it is due again.
"""

import logging
import math
import random
from datetime import datetime, timedelta

from .config import (
    LEITNER_INTERVALS, MIN_BOX, MAX_BOX, DEFAULT_SESSION_SIZE, STRUGGLING_SHARE
)
from .confidence import NEEDS_WORK, MASTERED, PROGRESSING
from .models import WordConfidence, WordReviewData, utc_now

logger = logging.getLogger(__name__)


def interval_for_box(box: int) -> int:
    return LEITNER_INTERVALS[box - 1]


def initialize_word_review(word: str, now: datetime = None) -> WordReviewData:
    """New review data in box 1, due immediately."""
    now = now or utc_now()
    return WordReviewData(
        word=word,
        review_count=0,
        last_review_date=now,
        next_review_date=now,
        current_interval=interval_for_box(MIN_BOX),
        box_level=MIN_BOX
    )


def _schedule(review: WordReviewData, box: int, now: datetime) -> WordReviewData:
    interval = interval_for_box(box)
    return WordReviewData(
        word=review.word,
        review_count=review.review_count + 1,
        last_review_date=now,
        next_review_date=now + timedelta(days=interval),
        current_interval=interval,
        box_level=box
    )


def record_review(review: WordReviewData | None, word: str, correct: bool,
                  quality: int = None, now: datetime = None) -> WordReviewData:
    """Apply one review outcome.

    Incorrect answers (or quality below 3) send the word back to box 1.
    Quality 3 keeps the current box. A correct answer with no grade, or
    quality 4 and above, promotes the word one box.
    """
    now = now or utc_now()
    review = review or initialize_word_review(word, now)

    if not correct or (quality is not None and quality < 3):
        box = MIN_BOX
    elif quality == 3:
        box = review.box_level
    else:
        box = min(MAX_BOX, review.box_level + 1)
    return _schedule(review, box, now)


def update_word_review(review: WordReviewData, confidence: WordConfidence,
                       now: datetime = None) -> WordReviewData:
    """Move a word between boxes according to its history-based confidence."""
    now = now or utc_now()
    box = review.box_level
    if confidence.level == MASTERED:
        box = min(MAX_BOX, box + 1)
    elif confidence.level == NEEDS_WORK:
        box = MIN_BOX
    elif confidence.level == PROGRESSING and confidence.score > 70:
        box = min(MAX_BOX, box + 1)
    return _schedule(review, box, now)


def is_word_due_for_review(review: WordReviewData, now: datetime = None) -> bool:
    now = now or utc_now()
    return review.next_review_date <= now


def get_words_for_review(reviews: dict[str, WordReviewData], confidences: dict[str, WordConfidence],
                         limit: int = None, now: datetime = None) -> list[str]:
    """Due words, highest priority first. Overdue, low-box and struggling words rank higher."""
    now = now or utc_now()
    scored = []
    for review in reviews.values():
        if not is_word_due_for_review(review, now):
            continue
        confidence = confidences.get(review.word.lower())
        overdue_days = max(0.0, (now - review.next_review_date).total_seconds() / 86400)
        priority = overdue_days * 10 + (6 - review.box_level) * 5
        if confidence is not None and confidence.level == NEEDS_WORK:
            priority += 20
        scored.append((priority, review.word))

    scored.sort(key=lambda item: item[0], reverse=True)
    words = [word for _, word in scored]
    return words[:limit] if limit else words


def select_words_for_session(all_words: list[str], reviews: dict[str, WordReviewData],
                             confidences: dict[str, WordConfidence],
                             session_size: int = DEFAULT_SESSION_SIZE,
                             rng: random.Random = None, now: datetime = None) -> list[str]:
    """Pick words for a practice session.

    Struggling words fill up to 60% of the session (repeating if there are
    few of them), then due words, then random others. The result is shuffled.
    """
    rng = rng or random.Random()
    selected = []

    struggling = []
    for word in all_words:
        confidence = confidences.get(word.lower())
        if confidence is not None and confidence.level == NEEDS_WORK:
            struggling.append(word)
    if struggling:
        quota = min(math.ceil(session_size * STRUGGLING_SHARE), len(struggling) * 2)
        for i in range(quota):
            if len(selected) >= session_size:
                break
            selected.append(struggling[i % len(struggling)])

    due = [w for w in get_words_for_review(reviews, confidences, now=now) if w not in selected]
    selected.extend(due[:session_size - len(selected)])

    remaining = [w for w in all_words if w not in selected]
    rng.shuffle(remaining)
    selected.extend(remaining[:max(0, session_size - len(selected))])

    rng.shuffle(selected)
    logger.debug(f"Selected {len(selected)} words for session ({len(struggling)} struggling)")
    return selected[:session_size]


def get_review_stats(reviews: dict[str, WordReviewData], now: datetime = None) -> dict:
    now = now or utc_now()
    data = list(reviews.values())
    distribution = {f'box{box}': 0 for box in range(MIN_BOX, MAX_BOX + 1)}
    for review in data:
        key = f'box{review.box_level}'
        if key in distribution:
            distribution[key] += 1
    return {
        'total_words': len(data),
        'due_for_review': sum(1 for r in data if is_word_due_for_review(r, now)),
        'box_distribution': distribution,
        'average_interval': sum(r.current_interval for r in data) / len(data) if data else 0
    }
