"""Unit tests for story content, sharing and story sessions."""

import json
import unittest
from datetime import datetime, timedelta, timezone

from core.config import DEFINITION_MATCH
from core.models import GameResult, GeneratedStory, StoryBeat, WordInfo
from core.session import StorySession, InvalidTransitionError
from core.share import ShareableWordList, encode_word_list, decode_word_list, create_share_url
from core.story import (
    interpolate_content, get_theme_content, get_checkpoint_content, get_theme_setting,
    parse_story_response, validate_story_content, filter_similar_words, build_story
)

from mocks import make_story

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def win(word: str, seconds: int = 0) -> GameResult:
    return GameResult(word, 'word-scramble', True, 5000, 1, 0, NOW + timedelta(seconds=seconds))


# ============================================================================
# Theme content
# ============================================================================

class TestThemeContent(unittest.TestCase):
    """Tests for themed intro, checkpoint and finale content."""

    def test_interpolate_known_and_unknown(self):
        text = interpolate_content('You know {wordCount} words, {name}!', {'wordCount': 3})
        self.assertEqual(text, 'You know 3 words, {name}!')

    def test_unknown_theme_falls_back(self):
        self.assertEqual(get_theme_content('volcano'), get_theme_content('space'))

    def test_checkpoint_word_count(self):
        content = get_checkpoint_content('space', 2, 4)
        self.assertEqual(content['title'], 'Mars Mission')
        self.assertIn('4 words', content['narrative'])
        self.assertNotIn('{wordCount}', content['narrative'])

    def test_checkpoint_number_clamped(self):
        self.assertEqual(get_checkpoint_content('treasure', 9, 1)['id'], 'checkpoint3')
        self.assertEqual(get_checkpoint_content('treasure', 0, 1)['id'], 'checkpoint1')

    def test_checkpoint_does_not_modify_theme(self):
        get_checkpoint_content('fantasy', 2, 5)
        self.assertIn('{wordCount}', get_theme_content('fantasy')['checkpoints'][1]['narrative'])

    def test_prompt_only_theme_setting(self):
        setting, elements = get_theme_setting('ocean')
        self.assertIn('ocean', setting)
        self.assertIn('dolphins', elements)


# ============================================================================
# Story parsing and enrichment
# ============================================================================

class TestParseStoryResponse(unittest.TestCase):
    """Tests for parse_story_response."""

    def test_parses_text_with_surrounding_noise(self):
        payload = 'Here you go:\n' + json.dumps({'beats': [
            {'id': 'n1', 'type': 'narrative', 'narrative': 'Off we go into space!'},
            {'id': 'g1', 'type': 'game', 'narrative': 'Spell CAT!', 'word': 'cat'},
        ]})
        story = parse_story_response(payload, ['cat'])
        self.assertEqual([b.type for b in story.beats], ['narrative', 'game'])
        self.assertEqual(story.beats[1].word, 'cat')

    def test_missing_words_get_generated_beats(self):
        story = parse_story_response({'beats': [
            {'id': 'g1', 'type': 'game', 'narrative': 'Spell CAT!', 'word': 'cat'}
        ]}, ['cat', 'dog'])
        self.assertEqual(story.beats[-1].id, 'game-dog-generated')
        self.assertEqual(story.beats[-1].word, 'dog')

    def test_defaults_for_incomplete_beats(self):
        story = parse_story_response({'stage1Beats': [
            {'type': 'choice', 'narrative': 'A fork in the road.', 'options': ['left']},
            {'type': 'checkpoint'},
        ]}, [])
        choice, checkpoint = story.beats
        self.assertEqual(choice.options, ['Option A', 'Option B'])
        self.assertEqual(choice.id, 'beat-0')
        self.assertEqual(checkpoint.checkpoint_number, 1)
        self.assertEqual(checkpoint.narrative, 'Continue your adventure...')

    def test_invalid_payloads(self):
        self.assertIsNone(parse_story_response('no json here', ['cat']))
        self.assertIsNone(parse_story_response('{"beats": [', ['cat']))
        self.assertIsNone(parse_story_response({'title': 'x'}, ['cat']))


class TestValidateStoryContent(unittest.TestCase):
    """Tests for validate_story_content."""

    def test_valid_story(self):
        self.assertTrue(validate_story_content(make_story(['cat', 'dog'])))

    def test_inappropriate_keyword(self):
        story = make_story(['cat'])
        story.beats[0].narrative = 'A scary monster appears in the dark.'
        self.assertFalse(validate_story_content(story))

    def test_no_game_beats(self):
        story = GeneratedStory([StoryBeat('n1', 'narrative', 'Just a nice long walk.')])
        self.assertFalse(validate_story_content(story))

    def test_short_narrative(self):
        story = make_story(['cat'])
        story.beats[0].narrative = 'Go!'
        self.assertFalse(validate_story_content(story))

    def test_too_many_long_narratives(self):
        story = make_story(['cat'])
        for beat in story.beats[:2]:
            beat.narrative = 'a' * 250
        self.assertFalse(validate_story_content(story))


class TestBuildStory(unittest.TestCase):
    """Tests for attaching word info and game types."""

    def test_filter_similar_words(self):
        self.assertEqual(filter_similar_words('Cats', ['cat', 'CATS', 'cap', 'cap', 'bat']), ['cap', 'bat'])

    def test_build_story_assigns_games(self):
        info = {'cat': WordInfo('A small pet', 'Says meow', ['cap', 'cut'], 1)}
        story = build_story(make_story(['cat', 'dog']), info)
        games = story.game_beats()
        self.assertEqual(games[0].game_type, DEFINITION_MATCH)
        self.assertEqual(games[0].extra_word_info.meaning, 'A small pet')
        self.assertIsNone(games[1].extra_word_info)
        self.assertIsNotNone(games[1].game_type)
        self.assertNotEqual(games[1].game_type, DEFINITION_MATCH)

    def test_build_story_word_info_case_insensitive(self):
        info = {'Cat': WordInfo('A small pet', 'Says meow', ['cap', 'cut'], 1)}
        story = build_story(make_story(['cat']), info)
        beat = story.game_beats()[0]
        self.assertEqual(beat.extra_word_info.meaning, 'A small pet')
        self.assertEqual(beat.game_type, DEFINITION_MATCH)

    def test_build_story_without_word_info(self):
        story = build_story(make_story(['cat']), None)
        self.assertEqual(story.words, {})
        self.assertNotEqual(story.game_beats()[0].game_type, DEFINITION_MATCH)

    def test_build_story_without_story(self):
        self.assertIsNone(build_story(None, {}))


# ============================================================================
# Sharing
# ============================================================================

class TestShare(unittest.TestCase):
    """Tests for share link encoding."""

    def test_round_trip(self):
        shared = ShareableWordList('Week 3', ['cat', 'dog'], 'Animals')
        self.assertEqual(decode_word_list(encode_word_list(shared)), shared)

    def test_empty_description_decodes_as_none(self):
        decoded = decode_word_list(encode_word_list(ShareableWordList('Week 3', ['cat'])))
        self.assertIsNone(decoded.description)

    def test_invalid_payloads(self):
        self.assertIsNone(decode_word_list('not base64!!'))
        self.assertIsNone(decode_word_list(''))
        import base64

        def enc(data):
            return base64.b64encode(json.dumps(data).encode()).decode()
        self.assertIsNone(decode_word_list(enc({'n': 'x', 'w': []})))
        self.assertIsNone(decode_word_list(enc({'w': ['cat']})))
        self.assertIsNone(decode_word_list(enc(['cat'])))
        self.assertIsNone(decode_word_list(enc({'n': 'x', 'w': [1, 2]})))

    def test_share_url(self):
        url = create_share_url(ShareableWordList('A', ['cat']), 'https://example.org/')
        self.assertTrue(url.startswith('https://example.org/share?data='))
        self.assertNotIn('=', url.split('data=', 1)[1])


# ============================================================================
# Story sessions
# ============================================================================

class TestStorySession(unittest.TestCase):
    """Tests for StorySession progression."""

    def setUp(self):
        self.session = StorySession(['cat', 'dog'], make_story(['cat', 'dog']), 'space', session_start=NOW)

    def test_full_flow(self):
        s = self.session
        self.assertEqual(s.state, 'intro')
        self.assertEqual(s.current_view()['content']['id'], 'intro')
        s.start()
        self.assertEqual(s.state, 'narrative')
        s.see_narrative()
        self.assertEqual(s.state, 'game')
        stats = s.complete_game(win('cat'))
        self.assertEqual(stats.confidence, 72)
        self.assertEqual(s.state, 'choice')
        s.make_choice(1)
        self.assertEqual(s.choices[0]['choice'], 'The blue one')
        self.assertEqual(s.state, 'checkpoint')
        self.assertEqual(s.current_view()['content']['title'], 'Moon Landing')
        s.continue_story(skip=True)
        self.assertEqual(s.state, 'game')
        s.complete_game(win('dog', 10))
        self.assertEqual(s.state, 'finale')
        self.assertTrue(s.is_finished)
        self.assertEqual(s.current_view()['content']['id'], 'finale')
        self.assertEqual(s.stats(NOW + timedelta(seconds=42)).games_played, 2)

    def test_invalid_transition(self):
        with self.assertRaises(InvalidTransitionError):
            self.session.complete_game(win('cat'))
        self.session.start()
        with self.assertRaises(InvalidTransitionError):
            self.session.make_choice(0)

    def test_wrong_word_and_bad_choice(self):
        s = self.session
        s.start()
        s.see_narrative()
        with self.assertRaises(ValueError):
            s.complete_game(win('dog'))
        s.complete_game(win('cat'))
        with self.assertRaises(ValueError):
            s.make_choice(5)
        with self.assertRaises(ValueError):
            s.make_choice('The green one')
        s.make_choice('The red one')
        self.assertEqual(s.state, 'checkpoint')

    def test_finale_when_all_words_mastered(self):
        story = GeneratedStory([
            StoryBeat('g1', 'game', 'Spell CAT quickly!', word='cat'),
            StoryBeat('g2', 'game', 'Spell CAT once more!', word='cat'),
            StoryBeat('n1', 'narrative', 'The adventure continues...'),
        ])
        s = StorySession(['cat'], story, 'space', session_start=NOW)
        s.start()
        self.assertEqual(s.complete_game(win('cat')).confidence, 72)
        self.assertEqual(s.state, 'game')
        self.assertEqual(s.complete_game(win('cat', 5)).confidence, 96)
        self.assertEqual(s.state, 'finale')
        self.assertTrue(s.finale_status(NOW).should_show_finale)

    def test_reset(self):
        s = self.session
        s.start()
        s.see_narrative()
        s.complete_game(win('cat'))
        s.reset()
        self.assertEqual(s.state, 'intro')
        self.assertEqual(s.game_results, [])
        self.assertEqual(s.word_stats['cat'].confidence, 50)

    def test_dict_round_trip(self):
        s = self.session
        s.start()
        s.see_narrative()
        s.complete_game(win('cat'))
        restored = StorySession.from_dict(json.loads(json.dumps(s.to_dict())))
        self.assertEqual(restored.to_dict(), s.to_dict())
        restored.make_choice(0)
        self.assertEqual(restored.state, 'checkpoint')


if __name__ == '__main__':
    unittest.main()
