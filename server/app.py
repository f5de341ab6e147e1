"""FastAPI server for wordcraft application."""

import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.adaptive_store import AdaptiveDataStore
from core.config import (
    DEFAULT_THEME, STORY_THEMES, GENERATION_TIMEOUT_SECONDS, DEFAULT_SESSION_SIZE,
    DEFAULT_SHARE_BASE_URL
)
from core.confidence import calculate_all_confidences, get_low_confidence_words, get_mastered_words
from core.difficulty import (
    calculate_difficulty, get_initial_difficulty, should_lock_difficulty,
    get_difficulty_rationale, has_tricky_pattern
)
from core.interfaces import AIProvider, KeyValueStore
from core.learning_style import default_profile, select_next_game
from core.models import CorruptRecordError, GameResult
from core.session import InvalidTransitionError, StorySession
from core.session_stats import format_time, summarize_results
from core.share import ShareableWordList, create_share_url, decode_word_list, encode_word_list
from core.spaced_repetition import get_review_stats, get_words_for_review, select_words_for_session
from core.story import build_story
from core.tracker import process_game_completion
from core.word_lists import WordListRepository, clean_words
from core.word_stats import get_word_stats_summary, get_words_needing_practice

from server.gemini_provider import GeminiProvider
from server.file_storage import FileStorage, load_config
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class CreateWordListRequest(BaseModel):
    name: str
    words: list[str]
    description: Optional[str] = None
    user_id: str = "default"


class UpdateWordListRequest(BaseModel):
    name: Optional[str] = None
    words: Optional[list[str]] = None
    description: Optional[str] = None
    user_id: str = "default"


class ShareDecodeRequest(BaseModel):
    data: str
    save: bool = False
    user_id: str = "default"


class StartStoryRequest(BaseModel):
    word_list_id: Optional[str] = None
    words: Optional[list[str]] = None
    theme: str = DEFAULT_THEME
    user_id: str = "default"


class UserRequest(BaseModel):
    user_id: str = "default"


class ChoiceRequest(BaseModel):
    choice: str | int
    user_id: str = "default"


class CheckpointRequest(BaseModel):
    skip: bool = False
    user_id: str = "default"


class GameResultRequest(BaseModel):
    word: str
    correct: bool
    time_ms: int
    mechanic_id: Optional[str] = None
    attempts: int = 1
    hints_used: int = 0
    user_id: str = "default"


class SessionStatsResponse(BaseModel):
    total_words: int
    words_mastered: int
    games_played: int
    correct_count: int
    accuracy: float
    time_spent: int
    time_display: str
    average_confidence: float


class FinaleResponse(BaseModel):
    should_show_finale: bool
    stats: SessionStatsResponse


# Global state (in production, use proper DI)
storage: KeyValueStore = None
story_provider: AIProvider = None
sessions: dict[str, StorySession] = {}  # user_id -> active story session

# Prevent duplicate story generations per user
story_generation_locks: dict[str, asyncio.Lock] = {}


app = FastAPI(title="WordCraft API", description="Spelling adventures for young children")


@app.exception_handler(CorruptRecordError)
async def corrupt_record_handler(request: Request, exc: CorruptRecordError):
    logger.error(f"Corrupt record while handling {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": f"Corrupt stored record: {exc}"})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.on_event("startup")
async def startup():
    """Initialize storage and AI provider on startup."""
    global storage, story_provider

    # Use file storage by default, set WORDCRAFT_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('WORDCRAFT_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info(f"Using file storage in {storage.state_dir}")

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            config = load_config()
            api_key = config.get('gemini_api_key')
        except FileNotFoundError:
            pass

    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY environment variable not set and config file not found. "
            "Set GEMINI_API_KEY or create ~/.config/wordcraft/config.json"
        )

    model_name = os.environ.get('WORDCRAFT_MODEL', 'gemini-2.0-flash')
    story_provider = GeminiProvider(api_key, model_name=model_name)
    logger.info(f"AI provider initialized: {model_name}")


def get_word_lists(user_id: str = "default") -> WordListRepository:
    return WordListRepository(storage, user_id)


def get_adaptive_data(user_id: str = "default") -> AdaptiveDataStore:
    return AdaptiveDataStore(storage, user_id)


def get_session(user_id: str = "default") -> StorySession:
    """Get the user's active story session, loading it from storage if needed."""
    if user_id not in sessions:
        state = get_adaptive_data(user_id).load_story_session()
        if not state:
            raise HTTPException(status_code=404, detail="No active story")
        sessions[user_id] = StorySession.from_dict(state)
    return sessions[user_id]


def save_session(user_id: str = "default") -> None:
    if user_id in sessions:
        get_adaptive_data(user_id).save_story_session(sessions[user_id].to_dict())


def stats_response(stats) -> SessionStatsResponse:
    return SessionStatsResponse(**stats.to_dict(), time_display=format_time(stats.time_spent))


def session_response(session: StorySession) -> dict:
    return {
        'session_id': session.session_id,
        'theme': session.theme,
        'words': session.word_list,
        'view': session.current_view(),
        'word_stats': {w: s.to_dict() for w, s in session.word_stats.items()},
        'beats_total': len(session.story.beats),
        'finished': session.is_finished
    }


async def generate_story(user_id: str, words: list[str], theme: str):
    """Generate story and word info concurrently, then enrich the story. Returns None on failure."""
    if user_id not in story_generation_locks:
        story_generation_locks[user_id] = asyncio.Lock()

    async with story_generation_locks[user_id]:
        logger.info(f"Generating {theme} story for {user_id} with {len(words)} words")
        # Run in executor to not block the event loop
        loop = asyncio.get_event_loop()
        story_call = loop.run_in_executor(None, lambda: story_provider.generate_story(words, theme))
        info_call = loop.run_in_executor(None, lambda: story_provider.generate_word_info(words, theme))
        try:
            (story, story_ms), (word_info, info_ms) = await asyncio.wait_for(
                asyncio.gather(story_call, info_call),
                timeout=GENERATION_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            logger.error(f"Story generation timed out for {user_id}")
            return None

        if story is None:
            logger.warning(f"Story generation failed for {user_id}")
            return None
        if word_info is None:
            logger.warning(f"Word info unavailable for {user_id}, using game rotation only")
        logger.info(f"Story ready for {user_id}: story {story_ms}ms, word info {info_ms}ms")
        return build_story(story, word_info)


@app.get("/")
async def root():
    """Health check."""
    return {"service": "wordcraft", "status": "ok"}


# Word list endpoints
@app.get("/api/word-lists")
async def list_word_lists(user_id: str = "default"):
    lists = get_word_lists(user_id).get_all()
    return {"word_lists": [wl.to_dict() for wl in lists]}


@app.post("/api/word-lists")
async def create_word_list(request: CreateWordListRequest):
    repo = get_word_lists(request.user_id)
    if not request.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    if not clean_words(request.words):
        raise HTTPException(status_code=400, detail="At least one word is required")
    if repo.name_exists(request.name):
        raise HTTPException(status_code=409, detail="A word list with this name already exists")
    word_list = repo.create(request.name, request.words, request.description)
    return word_list.to_dict()


@app.get("/api/word-lists/{list_id}")
async def get_word_list(list_id: str, user_id: str = "default"):
    word_list = get_word_lists(user_id).get(list_id)
    if word_list is None:
        raise HTTPException(status_code=404, detail="Word list not found")
    return word_list.to_dict()


@app.get("/api/word-lists/{list_id}/words")
async def get_word_list_words(list_id: str, user_id: str = "default"):
    word_list = get_word_lists(user_id).get(list_id)
    if word_list is None:
        raise HTTPException(status_code=404, detail="Word list not found")
    return {"words": [w.to_dict() for w in word_list.entries()]}


@app.put("/api/word-lists/{list_id}")
async def update_word_list(list_id: str, request: UpdateWordListRequest):
    repo = get_word_lists(request.user_id)
    if request.name and repo.name_exists(request.name, exclude_id=list_id):
        raise HTTPException(status_code=409, detail="A word list with this name already exists")
    if request.words is not None and not clean_words(request.words):
        raise HTTPException(status_code=400, detail="At least one word is required")
    word_list = repo.update(list_id, name=request.name, words=request.words, description=request.description)
    if word_list is None:
        raise HTTPException(status_code=404, detail="Word list not found")
    return word_list.to_dict()


@app.delete("/api/word-lists/{list_id}")
async def delete_word_list(list_id: str, user_id: str = "default"):
    if not get_word_lists(user_id).delete(list_id):
        raise HTTPException(status_code=404, detail="Word list not found")
    return {"deleted": True}


# Sharing endpoints
@app.get("/api/word-lists/{list_id}/share")
async def share_word_list(list_id: str, user_id: str = "default", base_url: str = DEFAULT_SHARE_BASE_URL):
    word_list = get_word_lists(user_id).get(list_id)
    if word_list is None:
        raise HTTPException(status_code=404, detail="Word list not found")
    shareable = ShareableWordList(word_list.name, word_list.words, word_list.description)
    return {
        "data": encode_word_list(shareable),
        "url": create_share_url(shareable, base_url)
    }


@app.post("/api/share/decode")
async def decode_shared_list(request: ShareDecodeRequest):
    """Decode a shared list, optionally saving it as a new list for the user."""
    shareable = decode_word_list(request.data)
    if shareable is None:
        raise HTTPException(status_code=400, detail="Invalid share link")
    result = {"word_list": shareable.to_dict(), "saved": None}
    if request.save:
        repo = get_word_lists(request.user_id)
        name = shareable.name
        if repo.name_exists(name):
            name = f"{name} (shared)"
        result["saved"] = repo.create(name, shareable.words, shareable.description).to_dict()
    return result


# Story session endpoints
@app.post("/api/story")
async def start_story(request: StartStoryRequest):
    """Generate a story for a word list and start a new session."""
    if request.word_list_id:
        word_list = get_word_lists(request.user_id).get(request.word_list_id)
        if word_list is None:
            raise HTTPException(status_code=404, detail="Word list not found")
        words = word_list.words
    else:
        words = clean_words(request.words or [])
    if not words:
        raise HTTPException(status_code=400, detail="No words to practise")
    if request.theme not in STORY_THEMES:
        raise HTTPException(status_code=400, detail=f"Unknown theme: {request.theme}")

    story = await generate_story(request.user_id, words, request.theme)
    if story is None:
        raise HTTPException(status_code=502, detail="Story generation failed, please try again")

    session = StorySession(words, story, request.theme)
    sessions[request.user_id] = session
    save_session(request.user_id)
    logger.info(f"Started session {session.session_id} for {request.user_id}")
    return session_response(session)


@app.get("/api/story")
async def get_story(user_id: str = "default"):
    return session_response(get_session(user_id))


@app.delete("/api/story")
async def end_story(user_id: str = "default"):
    sessions.pop(user_id, None)
    get_adaptive_data(user_id).clear_story_session()
    return {"ended": True}


@app.post("/api/story/begin")
async def begin_story(request: UserRequest):
    session = get_session(request.user_id)
    session.start()
    save_session(request.user_id)
    return session_response(session)


@app.post("/api/story/narrative")
async def continue_narrative(request: UserRequest):
    session = get_session(request.user_id)
    session.see_narrative()
    save_session(request.user_id)
    return session_response(session)


@app.post("/api/story/choice")
async def make_choice(request: ChoiceRequest):
    session = get_session(request.user_id)
    try:
        session.make_choice(request.choice)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    save_session(request.user_id)
    return session_response(session)


@app.post("/api/story/game")
async def complete_game(request: GameResultRequest):
    """Record a game played for the current game beat."""
    session = get_session(request.user_id)
    beat = session.current_beat
    mechanic = request.mechanic_id or (beat.game_type if beat is not None else None)
    result = GameResult(
        word=request.word,
        mechanic_id=mechanic or 'spelling-challenge',
        correct=request.correct,
        time_ms=request.time_ms,
        attempts=request.attempts,
        hints_used=request.hints_used
    )
    try:
        stats = session.complete_game(result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    save_session(request.user_id)
    process_game_completion(get_adaptive_data(request.user_id), result)

    response = session_response(session)
    response['result'] = {'word': stats.word, 'confidence': stats.confidence, 'streak': stats.streak}
    return response


@app.post("/api/story/checkpoint")
async def leave_checkpoint(request: CheckpointRequest):
    session = get_session(request.user_id)
    session.continue_story(skip=request.skip)
    save_session(request.user_id)
    return session_response(session)


@app.post("/api/story/reset")
async def reset_story(request: UserRequest):
    session = get_session(request.user_id)
    session.reset()
    save_session(request.user_id)
    return session_response(session)


@app.get("/api/story/stats", response_model=SessionStatsResponse)
async def get_story_stats(user_id: str = "default"):
    return stats_response(get_session(user_id).stats())


@app.get("/api/story/finale", response_model=FinaleResponse)
async def get_finale(user_id: str = "default"):
    status = get_session(user_id).finale_status()
    return FinaleResponse(should_show_finale=status.should_show_finale, stats=stats_response(status.stats))


@app.get("/api/story/summary")
async def get_story_summary(user_id: str = "default"):
    """Per-word practice summary for the end-of-story screen."""
    session = get_session(user_id)
    return {
        "words": summarize_results(session.game_results),
        "word_stats": get_word_stats_summary(session.word_stats),
        "needs_practice": get_words_needing_practice(session.word_stats),
        "choices": session.choices,
        "checkpoints": session.checkpoints
    }


# Adaptive learning endpoints
@app.post("/api/results")
async def record_result(request: GameResultRequest):
    """Record a game played outside a story."""
    if not request.mechanic_id:
        raise HTTPException(status_code=400, detail="mechanic_id is required")
    result = GameResult(
        word=request.word,
        mechanic_id=request.mechanic_id,
        correct=request.correct,
        time_ms=request.time_ms,
        attempts=request.attempts,
        hints_used=request.hints_used
    )
    review = process_game_completion(get_adaptive_data(request.user_id), result)
    return {"review": review.to_dict()}


@app.get("/api/review/due")
async def get_due_words(user_id: str = "default", limit: Optional[int] = None):
    data = get_adaptive_data(user_id)
    reviews = data.get_all_review_data()
    results = data.get_all_game_results()
    confidences = calculate_all_confidences([r.word for r in reviews.values()], results)
    return {
        "words": get_words_for_review(reviews, confidences, limit),
        "struggling": get_low_confidence_words(confidences),
        "mastered": get_mastered_words(confidences),
        "stats": get_review_stats(reviews)
    }


@app.get("/api/review/session")
async def get_session_words(word_list_id: str, user_id: str = "default", size: int = DEFAULT_SESSION_SIZE):
    """Choose which words of a list to practise next."""
    word_list = get_word_lists(user_id).get(word_list_id)
    if word_list is None:
        raise HTTPException(status_code=404, detail="Word list not found")
    data = get_adaptive_data(user_id)
    confidences = calculate_all_confidences(word_list.words, data.get_all_game_results())
    words = select_words_for_session(word_list.words, data.get_all_review_data(), confidences, size)
    return {
        "words": words,
        "confidences": {w: c.to_dict() for w, c in confidences.items()}
    }


@app.get("/api/learning-profile")
async def get_learning_profile(user_id: str = "default"):
    data = get_adaptive_data(user_id)
    profile = data.get_learning_profile() or default_profile()
    recent = [r.mechanic_id for r in data.get_all_game_results()[-2:]]
    return {
        "profile": profile.to_dict(),
        "next_game": select_next_game(profile, recent_games=recent)
    }


@app.get("/api/words/{word}/difficulty")
async def get_word_difficulty(word: str, user_id: str = "default", current: Optional[str] = None):
    results = get_adaptive_data(user_id).get_word_results(word)
    initial = get_initial_difficulty(word)
    current = current or initial
    if should_lock_difficulty(results):
        difficulty = current
    else:
        difficulty = calculate_difficulty(results, current)
    return {
        "word": word,
        "difficulty": difficulty,
        "initial": initial,
        "locked": should_lock_difficulty(results),
        "tricky": has_tricky_pattern(word),
        "rationale": get_difficulty_rationale(results, current, difficulty)
    }


@app.get("/api/storage/stats")
async def get_storage_stats(user_id: str = "default"):
    return get_adaptive_data(user_id).get_storage_stats()


@app.delete("/api/adaptive-data")
async def clear_adaptive_data(user_id: str = "default"):
    get_adaptive_data(user_id).clear_all()
    return {"cleared": True}
