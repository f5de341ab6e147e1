"""Encoding word lists for sharing through a URL."""

import base64
import binascii
import json
import logging
from urllib.parse import quote

logger = logging.getLogger(__name__)


class ShareableWordList:
    """The part of a word list that travels in a share link."""

    def __init__(self, name: str, words: list[str], description: str | None = None):
        self.name = name
        self.words = list(words)
        self.description = description

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'description': self.description,
            'words': self.words
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, ShareableWordList):
            return NotImplemented
        return self.to_dict() == other.to_dict()


def encode_word_list(word_list: ShareableWordList) -> str:
    """Base64 of the compact JSON form {n, d, w}."""
    data = {
        'n': word_list.name,
        'd': word_list.description or '',
        'w': word_list.words
    }
    return base64.b64encode(json.dumps(data).encode('utf-8')).decode('ascii')


def decode_word_list(encoded: str) -> ShareableWordList | None:
    """Decode a share payload. Returns None for anything malformed; never raises."""
    try:
        data = json.loads(base64.b64decode(encoded, validate=True).decode('utf-8'))
    except (binascii.Error, ValueError, TypeError) as e:
        logger.warning(f"Failed to decode shared word list: {e}")
        return None

    if not isinstance(data, dict):
        return None
    name = data.get('n')
    words = data.get('w')
    if not name or not isinstance(name, str):
        return None
    if not isinstance(words, list) or len(words) == 0:
        return None
    if not all(isinstance(w, str) for w in words):
        return None

    return ShareableWordList(name, words, data.get('d') or None)


def create_share_url(word_list: ShareableWordList, base_url: str) -> str:
    encoded = encode_word_list(word_list)
    return f"{base_url.rstrip('/')}/share?data={quote(encoded, safe='')}"
