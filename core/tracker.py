"""Updates stored adaptive data after each completed game."""

import logging
from datetime import datetime

from .adaptive_store import AdaptiveDataStore
from .confidence import calculate_word_confidence
from .learning_style import detect_learning_style
from .models import GameResult, WordReviewData, utc_now
from .spaced_repetition import initialize_word_review, record_review, update_word_review

logger = logging.getLogger(__name__)


def process_game_completion(data: AdaptiveDataStore, result: GameResult,
                            now: datetime = None) -> WordReviewData:
    """Record a result, reschedule its word and refresh the learning profile.

    Returns the word's new review data.
    """
    now = now or utc_now()
    data.save_game_result(result)

    all_results = data.get_all_game_results()
    confidence = calculate_word_confidence(result.word, all_results)

    review = data.get_review_data(result.word) or initialize_word_review(result.word, now)
    if result.correct:
        review = update_word_review(review, confidence, now)
    else:
        # A miss always goes back to box 1, whatever the weighted history says
        review = record_review(review, result.word, False, now=now)
    data.save_review_data(review)

    profile = detect_learning_style(all_results)
    data.save_learning_profile(profile)

    logger.info(
        f"Processed {result.mechanic_id} for '{result.word}': confidence {confidence.score} "
        f"({confidence.level}), box {review.box_level}, next review {review.next_review_date.date()}"
    )
    return review
