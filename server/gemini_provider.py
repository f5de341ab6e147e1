"""Gemini AI provider implementation."""

import logging
import time
import google.generativeai as genai
from pydantic import ValidationError

from core.interfaces import AIProvider
from core.config import (
    GENERATION_TIMEOUT_SECONDS, MAX_RETRIES, INITIAL_RETRY_DELAY, MAX_RETRY_DELAY
)
from core.models import GeneratedStory, WordInfo
from core.story import (
    get_theme_setting, parse_story_response, validate_story_content, filter_similar_words
)
from server.schemas import GeneratedStoryResponse, WordInfoResponse

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SYSTEM_CONTEXT = (
    "You are a creative children's story writer specializing in educational adventures "
    "for children ages 5-10 who are learning to spell."
)


class GeminiProvider(AIProvider):
    """Gemini AI provider implementation."""

    def __init__(self, api_key: str, model_name: str = 'gemini-2.0-flash'):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_CONTEXT)
        self.model_name = model_name

    def _generate_json(self, prompt: str) -> tuple[str, int]:
        """Send a prompt expecting JSON back, retrying with exponential backoff."""
        start_time = time.time()
        delay = INITIAL_RETRY_DELAY
        last_error = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = self.model.generate_content(
                    prompt,
                    generation_config={'response_mime_type': 'application/json'},
                    request_options={'timeout': GENERATION_TIMEOUT_SECONDS}
                )
                ms = int((time.time() - start_time) * 1000)
                return (response.text, ms)
            except Exception as e:
                last_error = e
                logger.warning(f"Generation attempt {attempt}/{MAX_RETRIES} failed: {e}")
                if attempt < MAX_RETRIES:
                    time.sleep(delay)
                    delay = min(delay * 2, MAX_RETRY_DELAY)
        raise RuntimeError(f"Generation failed after {MAX_RETRIES} attempts") from last_error

    def _sanitize_json(self, response: str) -> str:
        # Strip markdown fences or chatter around the JSON object
        start = response.find('{')
        end = response.rfind('}')
        if start == -1 or end < start:
            return response
        return response[start:end + 1]

    def _diagnose(self, response: str) -> None:
        if '{' not in response:
            logger.error("Diagnosis: No opening brace '{' found in response")
        elif '}' not in response:
            logger.error("Diagnosis: No closing brace '}' found in response")
        elif response.count('{') != response.count('}'):
            logger.error(f"Diagnosis: Mismatched braces - {{ count: {response.count('{')}, }} count: {response.count('}')}")
        else:
            logger.error("Diagnosis: Unknown parsing issue - possibly a schema mismatch")

    def _story_prompt(self, word_list: list[str], theme: str) -> str:
        setting, elements = get_theme_setting(theme)
        target_beats = len(word_list) * 2
        return f"""
            Generate a complete {theme}-themed educational story for children learning to spell.

            Setting: {setting}
            Theme elements to use: {', '.join(elements)}

            Requirements:
            - Create about {target_beats} story beats
            - Include a game beat for EACH of these words: {', '.join(word_list)}
            - Keep language age-appropriate for children ages 5-10, positive and encouraging
            - Avoid anything scary or violent
            - Narratives are 1-3 short sentences

            Beat types:
            1. "game": a spelling challenge for one word (fields: word, stage)
            2. "narrative": story progression every 3-4 beats
            3. "choice": 2-3 interactive decisions (fields: question, options with exactly two entries)
            4. "checkpoint": celebrations after every few words (fields: checkpointNumber 1-3, celebrationEmoji, title)

            Start with a narrative beat. Every beat has a unique "id" and a "narrative".

            Respond with JSON of the form:
            {{"beats": [
                {{"type": "narrative", "id": "narrative-1", "narrative": "..."}},
                {{"type": "game", "id": "game-1", "narrative": "...", "word": "...", "stage": 1}},
                {{"type": "choice", "id": "choice-1", "narrative": "...", "question": "...", "options": ["...", "..."]}},
                {{"type": "checkpoint", "id": "checkpoint-1", "narrative": "...", "checkpointNumber": 1, "celebrationEmoji": "🌟", "title": "..."}}
            ]}}
        """

    def _word_info_prompt(self, word_list: list[str], theme: str) -> str:
        return f"""
            For each of these words, which children ages 5-10 are learning to spell: {', '.join(word_list)}

            Provide:
            - meaning: a simple definition suitable for a 5-10 year old
            - hint: a short hint that helps pick out the word from others
            - similar_words: 3-5 words that may be confused with this word (not the word itself)
            - difficulty: 1-10, with 10 the most difficult of all the target words

            Respond with JSON of the form:
            {{"target_words": {{"<word>": {{"meaning": "...", "hint": "...", "similar_words": ["..."], "difficulty": 3}}}}}}
        """

    def generate_story(self, word_list: list[str], theme: str) -> tuple[GeneratedStory | None, int]:
        try:
            response, ms = self._generate_json(self._story_prompt(word_list, theme))
        except RuntimeError as e:
            logger.error(f"Story generation failed: {e}")
            return (None, 0)

        try:
            validated = GeneratedStoryResponse.model_validate_json(self._sanitize_json(response))
        except ValidationError as e:
            logger.error(f"Failed to parse story: {e}")
            logger.error(f"Raw response:\n{response}")
            self._diagnose(response)
            return (None, ms)

        story = parse_story_response(validated.model_dump(), word_list)
        if story is None:
            return (None, ms)
        if not validate_story_content(story):
            logger.warning("Generated story failed content validation")
            return (None, ms)
        logger.info(f"Story generated: {len(story.beats)} beats, {ms}ms")
        return (story, ms)

    def generate_word_info(self, word_list: list[str], theme: str) -> tuple[dict | None, int]:
        try:
            response, ms = self._generate_json(self._word_info_prompt(word_list, theme))
        except RuntimeError as e:
            logger.error(f"Word info generation failed: {e}")
            return (None, 0)

        try:
            validated = WordInfoResponse.model_validate_json(self._sanitize_json(response))
        except ValidationError as e:
            logger.error(f"Failed to parse word info: {e}")
            logger.error(f"Raw response:\n{response}")
            self._diagnose(response)
            return (None, ms)

        word_info = {}
        for word, item in validated.target_words.items():
            word_info[word] = WordInfo(
                meaning=item.meaning,
                hint=item.hint,
                similar_words=filter_similar_words(word, item.similar_words)[:5],
                difficulty=item.difficulty
            )
        logger.info(f"Word info generated for {len(word_info)} words, {ms}ms")
        return (word_info, ms)
