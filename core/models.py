"""Domain models for wordcraft application."""

from datetime import datetime, timezone

from .config import INITIAL_CONFIDENCE


class CorruptRecordError(ValueError):
    """Raised when a stored record cannot be decoded (bad JSON, missing fields, bad dates)."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_date(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def parse_date(value, field: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive timestamps are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise CorruptRecordError(f"Invalid date in field '{field}': {value!r}")
    else:
        raise CorruptRecordError(f"Missing or malformed date in field '{field}': {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: dict, key: str):
    if not isinstance(data, dict):
        raise CorruptRecordError(f"Expected an object, got {type(data).__name__}")
    if key not in data:
        raise CorruptRecordError(f"Missing field '{key}'")
    return data[key]


class Word:
    """A single word added to a list."""

    def __init__(self, id: str, text: str, added_at: datetime):
        self.id = id
        self.text = text
        self.added_at = added_at

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'text': self.text,
            'addedAt': format_date(self.added_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Word':
        return cls(
            _require(data, 'id'),
            _require(data, 'text'),
            parse_date(data.get('addedAt'), 'addedAt')
        )


class WordList:
    """A named, ordered collection of words. Duplicates are allowed."""

    def __init__(self, id: str, name: str, words: list[str], description: str | None = None,
                 created_at: datetime = None, updated_at: datetime = None):
        now = utc_now()
        self.id = id
        self.name = name
        self.description = description
        self.words = list(words)
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at

    def entries(self) -> list[Word]:
        """The list's words as Word records, identified by list id and position."""
        return [Word(f"{self.id}-{i}", text, self.updated_at) for i, text in enumerate(self.words)]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'words': self.words,
            'createdAt': format_date(self.created_at),
            'updatedAt': format_date(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordList':
        words = _require(data, 'words')
        if not isinstance(words, list):
            raise CorruptRecordError("Field 'words' must be a list")
        return cls(
            id=_require(data, 'id'),
            name=_require(data, 'name'),
            words=words,
            description=data.get('description'),
            created_at=parse_date(data.get('createdAt'), 'createdAt'),
            updated_at=parse_date(data.get('updatedAt'), 'updatedAt')
        )


class GameResult:
    """Outcome of one mini-game played for one word. Never mutated once recorded."""

    def __init__(self, word: str, mechanic_id: str, correct: bool, time_ms: int,
                 attempts: int = 1, hints_used: int = 0, completed_at: datetime = None):
        self.word = word
        self.mechanic_id = mechanic_id
        self.correct = correct
        self.time_ms = time_ms
        self.attempts = attempts
        self.hints_used = hints_used
        self.completed_at = completed_at or utc_now()

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'mechanicId': self.mechanic_id,
            'correct': self.correct,
            'timeMs': self.time_ms,
            'attempts': self.attempts,
            'hintsUsed': self.hints_used,
            'completedAt': format_date(self.completed_at)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GameResult':
        return cls(
            word=_require(data, 'word'),
            mechanic_id=_require(data, 'mechanicId'),
            correct=bool(_require(data, 'correct')),
            time_ms=data.get('timeMs', 0),
            attempts=data.get('attempts', 1),
            hints_used=data.get('hintsUsed', 0),
            completed_at=parse_date(data.get('completedAt'), 'completedAt')
        )


class WordStats:
    """Running per-word statistics within a session."""

    def __init__(self, word: str, confidence: int = INITIAL_CONFIDENCE, attempts_count: int = 0,
                 correct_count: int = 0, errors: int = 0, hints: int = 0, time_spent: int = 0,
                 streak: int = 0, last_practiced: datetime = None):
        self.word = word
        self.confidence = confidence
        self.attempts_count = attempts_count
        self.correct_count = correct_count
        self.errors = errors
        self.hints = hints
        self.time_spent = time_spent  # ms
        self.streak = streak
        self.last_practiced = last_practiced

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'confidence': self.confidence,
            'attemptsCount': self.attempts_count,
            'correctCount': self.correct_count,
            'errors': self.errors,
            'hints': self.hints,
            'timeSpent': self.time_spent,
            'streak': self.streak,
            'lastPracticed': format_date(self.last_practiced)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordStats':
        last = data.get('lastPracticed')
        return cls(
            word=_require(data, 'word'),
            confidence=data.get('confidence', INITIAL_CONFIDENCE),
            attempts_count=data.get('attemptsCount', 0),
            correct_count=data.get('correctCount', 0),
            errors=data.get('errors', 0),
            hints=data.get('hints', 0),
            time_spent=data.get('timeSpent', 0),
            streak=data.get('streak', 0),
            last_practiced=parse_date(last, 'lastPracticed') if last is not None else None
        )

    def __repr__(self) -> str:
        return f"WordStats({self.word!r}, confidence={self.confidence})"


class SessionStats:
    """Read-only snapshot of a session's progress."""

    def __init__(self, total_words: int, words_mastered: int, games_played: int,
                 correct_count: int, accuracy: float, time_spent: int, average_confidence: float):
        self.total_words = total_words
        self.words_mastered = words_mastered
        self.games_played = games_played
        self.correct_count = correct_count
        self.accuracy = accuracy
        self.time_spent = time_spent  # whole seconds
        self.average_confidence = average_confidence

    def to_dict(self) -> dict:
        return {
            'total_words': self.total_words,
            'words_mastered': self.words_mastered,
            'games_played': self.games_played,
            'correct_count': self.correct_count,
            'accuracy': self.accuracy,
            'time_spent': self.time_spent,
            'average_confidence': self.average_confidence
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, SessionStats):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"SessionStats({self.to_dict()})"


class WordReviewData:
    """Leitner scheduling state for one word."""

    def __init__(self, word: str, review_count: int, last_review_date: datetime,
                 next_review_date: datetime, current_interval: int, box_level: int):
        self.word = word
        self.review_count = review_count
        self.last_review_date = last_review_date
        self.next_review_date = next_review_date
        self.current_interval = current_interval  # days
        self.box_level = box_level

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'reviewCount': self.review_count,
            'lastReviewDate': format_date(self.last_review_date),
            'nextReviewDate': format_date(self.next_review_date),
            'currentInterval': self.current_interval,
            'boxLevel': self.box_level
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordReviewData':
        return cls(
            word=_require(data, 'word'),
            review_count=data.get('reviewCount', 0),
            last_review_date=parse_date(data.get('lastReviewDate'), 'lastReviewDate'),
            next_review_date=parse_date(data.get('nextReviewDate'), 'nextReviewDate'),
            current_interval=data.get('currentInterval', 1),
            box_level=data.get('boxLevel', 1)
        )


class WordConfidence:
    """History-based confidence for one word."""

    def __init__(self, word: str, score: int, level: str, total_attempts: int,
                 last_practiced: datetime | None):
        self.word = word
        self.score = score
        self.level = level
        self.total_attempts = total_attempts
        self.last_practiced = last_practiced

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'score': self.score,
            'level': self.level,
            'totalAttempts': self.total_attempts,
            'lastPracticed': format_date(self.last_practiced)
        }


class LearningStyleProfile:
    """Percentages per learning style plus the detected primary/secondary style."""

    def __init__(self, visual: int, auditory: int, kinesthetic: int, primary: str,
                 secondary: str | None, confidence: str, sample_size: int):
        self.visual = visual
        self.auditory = auditory
        self.kinesthetic = kinesthetic
        self.primary = primary
        self.secondary = secondary
        self.confidence = confidence
        self.sample_size = sample_size

    def to_dict(self) -> dict:
        return {
            'visual': self.visual,
            'auditory': self.auditory,
            'kinesthetic': self.kinesthetic,
            'primary': self.primary,
            'secondary': self.secondary,
            'confidence': self.confidence,
            'sampleSize': self.sample_size
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LearningStyleProfile':
        return cls(
            visual=_require(data, 'visual'),
            auditory=_require(data, 'auditory'),
            kinesthetic=_require(data, 'kinesthetic'),
            primary=_require(data, 'primary'),
            secondary=data.get('secondary'),
            confidence=data.get('confidence', 'low'),
            sample_size=data.get('sampleSize', 0)
        )


class WordInfo:
    """Generated metadata about a word."""

    def __init__(self, meaning: str, hint: str, similar_words: list[str], difficulty: int):
        self.meaning = meaning
        self.hint = hint
        self.similar_words = list(similar_words)
        self.difficulty = difficulty

    def to_dict(self) -> dict:
        return {
            'meaning': self.meaning,
            'hint': self.hint,
            'similar_words': self.similar_words,
            'difficulty': self.difficulty
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordInfo':
        return cls(
            meaning=data.get('meaning', ''),
            hint=data.get('hint', ''),
            similar_words=data.get('similar_words') or [],
            difficulty=data.get('difficulty', 1)
        )


class StoryBeat:
    """One step in a story. Fields beyond id/type/narrative depend on the type:
    game beats carry word/game_type/stage/extra_word_info, choice beats carry
    question/options, checkpoint beats carry checkpoint_number/celebration_emoji/title."""

    def __init__(self, id: str, type: str, narrative: str, word: str = None,
                 game_type: str = None, stage: int = 1, extra_word_info: WordInfo = None,
                 question: str = None, options: list[str] = None, checkpoint_number: int = None,
                 celebration_emoji: str = None, title: str = None):
        self.id = id
        self.type = type
        self.narrative = narrative
        self.word = word
        self.game_type = game_type
        self.stage = stage
        self.extra_word_info = extra_word_info
        self.question = question
        self.options = options
        self.checkpoint_number = checkpoint_number
        self.celebration_emoji = celebration_emoji
        self.title = title

    def to_dict(self) -> dict:
        data = {'id': self.id, 'type': self.type, 'narrative': self.narrative}
        if self.type == 'game':
            data['word'] = self.word
            data['gameType'] = self.game_type
            data['stage'] = self.stage
            if self.extra_word_info is not None:
                data['extraWordInfo'] = self.extra_word_info.to_dict()
        elif self.type == 'choice':
            data['question'] = self.question
            data['options'] = self.options
        elif self.type == 'checkpoint':
            data['checkpointNumber'] = self.checkpoint_number
            data['celebrationEmoji'] = self.celebration_emoji
            data['title'] = self.title
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'StoryBeat':
        info = data.get('extraWordInfo')
        return cls(
            id=_require(data, 'id'),
            type=_require(data, 'type'),
            narrative=data.get('narrative', ''),
            word=data.get('word'),
            game_type=data.get('gameType'),
            stage=data.get('stage', 1),
            extra_word_info=WordInfo.from_dict(info) if info else None,
            question=data.get('question'),
            options=data.get('options'),
            checkpoint_number=data.get('checkpointNumber'),
            celebration_emoji=data.get('celebrationEmoji'),
            title=data.get('title')
        )


class GeneratedStory:
    """Ordered beats plus the word info they were enriched with."""

    def __init__(self, beats: list[StoryBeat], words: dict[str, WordInfo] = None):
        self.beats = beats
        self.words = words or {}

    def game_beats(self) -> list[StoryBeat]:
        return [b for b in self.beats if b.type == 'game']

    def to_dict(self) -> dict:
        return {
            'beats': [b.to_dict() for b in self.beats],
            'words': {w: info.to_dict() for w, info in self.words.items()}
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GeneratedStory':
        beats = _require(data, 'beats')
        if not isinstance(beats, list):
            raise CorruptRecordError("Field 'beats' must be a list")
        return cls(
            beats=[StoryBeat.from_dict(b) for b in beats],
            words={w: WordInfo.from_dict(i) for w, i in (data.get('words') or {}).items()}
        )
