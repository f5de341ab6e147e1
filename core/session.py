"""Beat-by-beat progression through a generated story."""

import logging
import uuid
from datetime import datetime

from .config import DEFAULT_THEME, MASTERY_THRESHOLD
from .finale import FinaleStatus, evaluate_finale, should_show_finale
from .models import GameResult, GeneratedStory, StoryBeat, WordStats, format_date, parse_date, utc_now
from .session_stats import calculate_session_stats
from .story import get_checkpoint_content, get_theme_content
from .word_stats import initialize_word_stats, update_word_stats

logger = logging.getLogger(__name__)

INTRO = 'intro'
FINALE = 'finale'
STATES = [INTRO, 'narrative', 'choice', 'game', 'checkpoint', FINALE]


class InvalidTransitionError(Exception):
    """Raised when an action does not fit the session's current state."""


class StorySession:
    """A child's run through one story.

    The session owns its word stats, game results and start time. It moves
    from the intro through each beat in order and ends in the finale once
    the beats run out or every word is mastered.
    """

    def __init__(self, word_list: list[str], story: GeneratedStory, theme: str,
                 session_start: datetime = None, session_id: str = None):
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.word_list = list(word_list)
        self.story = story
        self.theme = theme
        self.session_start = session_start or utc_now()
        self.state = INTRO
        self.beat_index = -1
        self.word_stats: dict[str, WordStats] = initialize_word_stats(self.word_list, self.session_start)
        self.game_results: list[GameResult] = []
        self.choices: list[dict] = []
        self.checkpoints: list[dict] = []

    @property
    def current_beat(self) -> StoryBeat | None:
        if 0 <= self.beat_index < len(self.story.beats):
            return self.story.beats[self.beat_index]
        return None

    @property
    def is_finished(self) -> bool:
        return self.state == FINALE

    def _require(self, state: str) -> None:
        if self.state != state:
            raise InvalidTransitionError(f"Cannot do that while in '{self.state}' (expected '{state}')")

    def _advance(self) -> None:
        self.beat_index += 1
        if self.beat_index >= len(self.story.beats) or should_show_finale(self.word_stats):
            self.state = FINALE
            logger.info(f"Session {self.session_id} reached finale after {len(self.game_results)} games")
            return
        self.state = self.story.beats[self.beat_index].type

    def start(self) -> None:
        """Leave the intro for the first beat."""
        self._require(INTRO)
        self._advance()

    def see_narrative(self) -> None:
        self._require('narrative')
        self._advance()

    def make_choice(self, choice: str | int) -> None:
        """Record a choice by option index or option text."""
        self._require('choice')
        options = self.current_beat.options or []
        if isinstance(choice, int):
            if not 0 <= choice < len(options):
                raise ValueError(f"Choice index {choice} out of range")
            choice = options[choice]
        elif choice not in options:
            raise ValueError(f"Unknown choice: {choice}")
        self.choices.append({'beat_id': self.current_beat.id, 'choice': choice})
        self._advance()

    def complete_game(self, result: GameResult) -> WordStats:
        """Apply a game result to the current game beat's word and move on."""
        self._require('game')
        beat = self.current_beat
        if result.word.lower() != beat.word.lower():
            raise ValueError(f"Result is for '{result.word}' but the current game is for '{beat.word}'")

        key = beat.word if beat.word in self.word_stats else result.word
        stats = update_word_stats(self.word_stats.get(key), result)
        self.word_stats[key] = stats
        self.game_results.append(result)
        self._advance()
        return stats

    def continue_story(self, skip: bool = False) -> None:
        """Leave a checkpoint, either by continuing or skipping it."""
        self._require('checkpoint')
        self.checkpoints.append({
            'beat_id': self.current_beat.id,
            'checkpoint_number': self.current_beat.checkpoint_number,
            'skipped': skip
        })
        self._advance()

    def reset(self) -> None:
        """Start the same story over with fresh stats."""
        self.session_start = utc_now()
        self.state = INTRO
        self.beat_index = -1
        self.word_stats = initialize_word_stats(self.word_list, self.session_start)
        self.game_results = []
        self.choices = []
        self.checkpoints = []

    def words_mastered(self) -> list[str]:
        return [w for w, s in self.word_stats.items() if s.confidence >= MASTERY_THRESHOLD]

    def current_view(self) -> dict:
        """What the child should see now: the beat, plus themed content for intro, checkpoints and finale."""
        content = get_theme_content(self.theme)
        view = {'state': self.state, 'beat_index': self.beat_index, 'beat': None, 'content': None}
        if self.state == INTRO:
            view['content'] = content['intro']
        elif self.state == FINALE:
            view['content'] = content['finale']
        else:
            beat = self.current_beat
            view['beat'] = beat.to_dict()
            if self.state == 'checkpoint':
                view['content'] = get_checkpoint_content(
                    self.theme, beat.checkpoint_number or 1, len(self.words_mastered())
                )
        return view

    def stats(self, now: datetime = None):
        return calculate_session_stats(self.word_stats, self.game_results, self.session_start, now)

    def finale_status(self, now: datetime = None) -> FinaleStatus:
        return evaluate_finale(self.word_stats, self.game_results, self.session_start, now)

    def to_dict(self) -> dict:
        return {
            'session_id': self.session_id,
            'word_list': self.word_list,
            'story': self.story.to_dict(),
            'theme': self.theme,
            'session_start': format_date(self.session_start),
            'state': self.state,
            'beat_index': self.beat_index,
            'word_stats': [s.to_dict() for s in self.word_stats.values()],
            'game_results': [r.to_dict() for r in self.game_results],
            'choices': self.choices,
            'checkpoints': self.checkpoints
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'StorySession':
        session = cls(
            word_list=data.get('word_list', []),
            story=GeneratedStory.from_dict(data.get('story')),
            theme=data.get('theme', DEFAULT_THEME),
            session_start=parse_date(data.get('session_start'), 'session_start'),
            session_id=data.get('session_id')
        )
        session.state = data.get('state', INTRO)
        if session.state not in STATES:
            session.state = INTRO
        session.beat_index = data.get('beat_index', -1)
        session.word_stats = {}
        for item in data.get('word_stats', []):
            stats = WordStats.from_dict(item)
            session.word_stats[stats.word] = stats
        session.game_results = [GameResult.from_dict(r) for r in data.get('game_results', [])]
        session.choices = data.get('choices', [])
        session.checkpoints = data.get('checkpoints', [])
        return session
