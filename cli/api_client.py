"""REST API client for wordcraft server."""

import requests


class WordCraftAPIClient:
    """Client for communicating with the wordcraft REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "default"):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        if params is None:
            params = {}
        params['user_id'] = self.user_id
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        if data is None:
            data = {}
        data['user_id'] = self.user_id
        response = self.session.post(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        response = self.session.get(f"{self.base_url}/")
        response.raise_for_status()
        return response.json()

    def list_word_lists(self) -> list[dict]:
        return self._get("/api/word-lists")['word_lists']

    def create_word_list(self, name: str, words: list[str], description: str = None) -> dict:
        return self._post("/api/word-lists", {
            'name': name,
            'words': words,
            'description': description
        })

    def import_shared_list(self, data: str) -> dict:
        """Decode a shared list and save it. Returns the saved list."""
        return self._post("/api/share/decode", {'data': data, 'save': True})['saved']

    def start_story(self, word_list_id: str, theme: str) -> dict:
        return self._post("/api/story", {'word_list_id': word_list_id, 'theme': theme})

    def begin_story(self) -> dict:
        return self._post("/api/story/begin")

    def continue_narrative(self) -> dict:
        return self._post("/api/story/narrative")

    def make_choice(self, choice: int) -> dict:
        return self._post("/api/story/choice", {'choice': choice})

    def submit_game(self, word: str, correct: bool, time_ms: int, attempts: int, hints_used: int) -> dict:
        return self._post("/api/story/game", {
            'word': word,
            'correct': correct,
            'time_ms': time_ms,
            'attempts': attempts,
            'hints_used': hints_used
        })

    def leave_checkpoint(self, skip: bool = False) -> dict:
        return self._post("/api/story/checkpoint", {'skip': skip})

    def get_finale(self) -> dict:
        return self._get("/api/story/finale")

    def get_due_words(self) -> dict:
        return self._get("/api/review/due")
