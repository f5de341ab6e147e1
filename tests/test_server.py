"""API tests for the wordcraft server, using mock storage and AI provider."""

import unittest
from unittest.mock import MagicMock
import sys

# Mock google.generativeai before importing
sys.modules['google'] = MagicMock()
sys.modules['google.generativeai'] = MagicMock()

from fastapi.testclient import TestClient

import server.app as app_module
from core.config import WORD_LISTS_KEY, DEFINITION_MATCH

from mocks import MemoryStore, MockAIProvider


class ServerTestCase(unittest.TestCase):
    """Wires the app to in-memory storage and a mock provider. Startup is not run."""

    def setUp(self):
        self.store = MemoryStore()
        self.provider = MockAIProvider()
        app_module.storage = self.store
        app_module.story_provider = self.provider
        app_module.sessions.clear()
        app_module.story_generation_locks.clear()
        self.client = TestClient(app_module.app)

    def create_list(self, name='Week 1', words=None, user_id='default'):
        response = self.client.post('/api/word-lists', json={
            'name': name, 'words': words or ['cat', 'dog'], 'user_id': user_id
        })
        self.assertEqual(response.status_code, 200)
        return response.json()

    def start_story(self, words=None):
        word_list = self.create_list(words=words)
        response = self.client.post('/api/story', json={'word_list_id': word_list['id'], 'theme': 'space'})
        self.assertEqual(response.status_code, 200)
        return response.json()


# ============================================================================
# Word lists and sharing
# ============================================================================

class TestWordListEndpoints(ServerTestCase):
    """Tests for word list CRUD."""

    def test_health_check(self):
        self.assertEqual(self.client.get('/').json()['service'], 'wordcraft')

    def test_crud(self):
        created = self.create_list()
        self.assertEqual(created['words'], ['cat', 'dog'])
        self.assertEqual(len(self.client.get('/api/word-lists').json()['word_lists']), 1)

        response = self.client.put(f"/api/word-lists/{created['id']}", json={'words': ['fox']})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['words'], ['fox'])
        self.assertEqual(self.client.get(f"/api/word-lists/{created['id']}").json()['words'], ['fox'])

        self.assertEqual(self.client.delete(f"/api/word-lists/{created['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/word-lists/{created['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/word-lists/{created['id']}").status_code, 404)

    def test_word_entries(self):
        created = self.create_list()
        words = self.client.get(f"/api/word-lists/{created['id']}/words").json()['words']
        self.assertEqual([w['text'] for w in words], ['cat', 'dog'])
        self.assertEqual(words[1]['id'], f"{created['id']}-1")
        self.assertEqual(self.client.get('/api/word-lists/missing/words').status_code, 404)

    def test_validation(self):
        response = self.client.post('/api/word-lists', json={'name': ' ', 'words': ['cat']})
        self.assertEqual(response.status_code, 400)
        response = self.client.post('/api/word-lists', json={'name': 'Empty', 'words': ['', ' ']})
        self.assertEqual(response.status_code, 400)

    def test_duplicate_name(self):
        self.create_list()
        response = self.client.post('/api/word-lists', json={'name': 'week 1', 'words': ['cat']})
        self.assertEqual(response.status_code, 409)

    def test_lists_are_per_user(self):
        self.create_list(user_id='alice')
        self.assertEqual(self.client.get('/api/word-lists').json()['word_lists'], [])
        lists = self.client.get('/api/word-lists', params={'user_id': 'alice'}).json()['word_lists']
        self.assertEqual(len(lists), 1)

    def test_corrupt_storage_is_server_error(self):
        self.store.data[WORD_LISTS_KEY] = '[{"id": "x"'
        response = self.client.get('/api/word-lists')
        self.assertEqual(response.status_code, 500)

    def test_share_and_import(self):
        created = self.create_list()
        shared = self.client.get(f"/api/word-lists/{created['id']}/share").json()
        self.assertIn('/share?data=', shared['url'])

        response = self.client.post('/api/share/decode', json={'data': shared['data'], 'save': True})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['word_list']['words'], ['cat', 'dog'])
        self.assertEqual(body['saved']['name'], 'Week 1 (shared)')
        self.assertEqual(len(self.client.get('/api/word-lists').json()['word_lists']), 2)

    def test_decode_invalid(self):
        response = self.client.post('/api/share/decode', json={'data': 'garbage!!'})
        self.assertEqual(response.status_code, 400)


# ============================================================================
# Story sessions
# ============================================================================

class TestStoryEndpoints(ServerTestCase):
    """Tests for story generation and progression."""

    def test_full_story(self):
        data = self.start_story()
        self.assertEqual(data['view']['state'], 'intro')
        self.assertEqual(self.provider.generate_story_calls, [(['cat', 'dog'], 'space')])
        self.assertEqual(len(self.provider.generate_word_info_calls), 1)

        data = self.client.post('/api/story/begin', json={}).json()
        self.assertEqual(data['view']['state'], 'narrative')
        data = self.client.post('/api/story/narrative', json={}).json()
        self.assertEqual(data['view']['state'], 'game')
        self.assertEqual(data['view']['beat']['word'], 'cat')

        response = self.client.post('/api/story/game', json={'word': 'cat', 'correct': True, 'time_ms': 4000})
        data = response.json()
        self.assertEqual(data['result']['confidence'], 72)
        self.assertEqual(data['view']['state'], 'choice')

        data = self.client.post('/api/story/choice', json={'choice': 0}).json()
        self.assertEqual(data['view']['state'], 'checkpoint')
        self.assertEqual(data['view']['content']['title'], 'Moon Landing')
        data = self.client.post('/api/story/checkpoint', json={'skip': False}).json()
        self.assertEqual(data['view']['state'], 'game')
        data = self.client.post('/api/story/game', json={'word': 'dog', 'correct': False, 'time_ms': 4000}).json()
        self.assertTrue(data['finished'])
        self.assertEqual(data['view']['content']['id'], 'finale')

        stats = self.client.get('/api/story/stats').json()
        self.assertEqual(stats['games_played'], 2)
        self.assertAlmostEqual(stats['accuracy'], 0.5)
        finale = self.client.get('/api/story/finale').json()
        self.assertFalse(finale['should_show_finale'])
        summary = self.client.get('/api/story/summary').json()
        self.assertEqual(summary['words']['dog']['correct'], 0)
        self.assertEqual(summary['choices'][0]['choice'], 'The red one')
        self.assertEqual(summary['word_stats']['total_words'], 2)
        self.assertEqual(summary['needs_practice'], ['dog'])

        # Adaptive data was recorded along the way
        storage_stats = self.client.get('/api/storage/stats').json()
        self.assertEqual(storage_stats['total_results'], 2)
        self.assertEqual(storage_stats['words_tracked'], 2)

    def test_word_info_enables_definition_match(self):
        self.provider.similar_words = {'cat': ['cap', 'cut']}
        data = self.start_story()
        self.client.post('/api/story/begin', json={})
        data = self.client.post('/api/story/narrative', json={}).json()
        self.assertEqual(data['view']['beat']['gameType'], DEFINITION_MATCH)
        self.assertEqual(data['view']['beat']['extraWordInfo']['similar_words'], ['cap', 'cut'])

    def test_word_info_failure_falls_back_to_rotation(self):
        self.provider.fail_word_info = True
        self.start_story()
        self.client.post('/api/story/begin', json={})
        beat = self.client.post('/api/story/narrative', json={}).json()['view']['beat']
        self.assertNotIn('extraWordInfo', beat)
        self.assertNotEqual(beat['gameType'], DEFINITION_MATCH)

    def test_story_failure(self):
        self.provider.fail_story = True
        word_list = self.create_list()
        response = self.client.post('/api/story', json={'word_list_id': word_list['id']})
        self.assertEqual(response.status_code, 502)

    def test_story_bad_requests(self):
        self.assertEqual(self.client.post('/api/story', json={'word_list_id': 'missing'}).status_code, 404)
        self.assertEqual(self.client.post('/api/story', json={'words': []}).status_code, 400)
        response = self.client.post('/api/story', json={'words': ['cat'], 'theme': 'volcano'})
        self.assertEqual(response.status_code, 400)

    def test_no_active_story(self):
        self.assertEqual(self.client.get('/api/story').status_code, 404)
        self.assertEqual(self.client.post('/api/story/begin', json={}).status_code, 404)

    def test_invalid_transition_is_conflict(self):
        self.start_story()
        response = self.client.post('/api/story/game', json={'word': 'cat', 'correct': True, 'time_ms': 4000})
        self.assertEqual(response.status_code, 409)

    def test_wrong_word_is_bad_request(self):
        self.start_story()
        self.client.post('/api/story/begin', json={})
        self.client.post('/api/story/narrative', json={})
        response = self.client.post('/api/story/game', json={'word': 'dog', 'correct': True, 'time_ms': 4000})
        self.assertEqual(response.status_code, 400)

    def test_session_survives_restart(self):
        self.start_story()
        self.client.post('/api/story/begin', json={})
        app_module.sessions.clear()
        data = self.client.get('/api/story').json()
        self.assertEqual(data['view']['state'], 'narrative')

    def test_reset_and_end(self):
        self.start_story()
        self.client.post('/api/story/begin', json={})
        data = self.client.post('/api/story/reset', json={}).json()
        self.assertEqual(data['view']['state'], 'intro')
        self.assertEqual(self.client.delete('/api/story').status_code, 200)
        self.assertEqual(self.client.get('/api/story').status_code, 404)


# ============================================================================
# Adaptive learning
# ============================================================================

class TestAdaptiveEndpoints(ServerTestCase):
    """Tests for results, review scheduling and profiles."""

    def test_record_result_requires_mechanic(self):
        response = self.client.post('/api/results', json={'word': 'cat', 'correct': True, 'time_ms': 3000})
        self.assertEqual(response.status_code, 400)

    def test_record_result_and_review(self):
        response = self.client.post('/api/results', json={
            'word': 'cat', 'correct': False, 'time_ms': 3000, 'mechanic_id': 'letter-hunt'
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['review']['boxLevel'], 1)
        due = self.client.get('/api/review/due').json()
        self.assertEqual(due['words'], [])
        self.assertEqual(due['stats']['total_words'], 1)
        self.assertEqual(due['struggling'], ['cat'])
        self.assertEqual(due['mastered'], [])

    def test_session_words(self):
        created = self.create_list(words=['cat', 'dog', 'fox'])
        response = self.client.get('/api/review/session', params={'word_list_id': created['id'], 'size': 2})
        self.assertEqual(len(response.json()['words']), 2)
        missing = self.client.get('/api/review/session', params={'word_list_id': 'missing'})
        self.assertEqual(missing.status_code, 404)

    def test_learning_profile_default(self):
        data = self.client.get('/api/learning-profile').json()
        self.assertEqual(data['profile']['confidence'], 'low')
        self.assertIsNotNone(data['next_game'])

    def test_word_difficulty(self):
        data = self.client.get('/api/words/receive/difficulty').json()
        self.assertEqual(data['difficulty'], 'medium')
        self.assertTrue(data['locked'])
        self.assertTrue(data['tricky'])

    def test_clear_adaptive_data(self):
        self.client.post('/api/results', json={
            'word': 'cat', 'correct': True, 'time_ms': 3000, 'mechanic_id': 'letter-hunt'
        })
        self.assertEqual(self.client.delete('/api/adaptive-data').status_code, 200)
        self.assertEqual(self.client.get('/api/storage/stats').json()['total_results'], 0)


if __name__ == '__main__':
    unittest.main()
