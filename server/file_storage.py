"""File-based storage implementation."""

import json
import logging
import os
import re

from core.interfaces import KeyValueStore

logger = logging.getLogger(__name__)


def load_config(config_file: str = None) -> dict:
    """Load the JSON config file (holds gemini_api_key)."""
    config_file = config_file or os.path.expanduser('~/.config/wordcraft/config.json')
    if not os.path.exists(config_file):
        raise FileNotFoundError(
            f"Config file not found at {config_file}\n"
            f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
        )
    with open(config_file, 'r') as f:
        return json.load(f)


class FileStorage(KeyValueStore):
    """File-based storage: one file per key under a state directory."""

    def __init__(self, state_dir: str = None):
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('WORDCRAFT_STATE_DIR') or os.path.join(project_root, 'data')
        os.makedirs(self.state_dir, exist_ok=True)

    def _get_file(self, key: str) -> str:
        """Get the file path for a key. Characters unsafe in file names become '_'."""
        safe = re.sub(r'[^A-Za-z0-9_.-]', '_', key)
        return os.path.join(self.state_dir, f'{safe}.json')

    def get(self, key: str) -> str | None:
        path = self._get_file(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        path = self._get_file(key)
        tmp_path = f'{path}.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(value)
        os.replace(tmp_path, path)

    def delete(self, key: str) -> None:
        path = self._get_file(key)
        if os.path.exists(path):
            os.remove(path)
