import json
import random
import logging
from typing import Callable, Optional, TypeVar

import requests

from prompt_gallery.config import Settings
from prompt_gallery.services.openai_api import (
    CHAT_RULES,
    KEY_TEST_RULES,
    VISION_RULES,
    OpenAIClient,
    OpenAIError,
    Rules,
    friendly_message,
)
from prompt_gallery.services.session import Session
from prompt_gallery.services.supabase import InvalidSessionError, SupabaseError, fetch_config_key, get_user_id
from . import prompts

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_TEST_MODEL = "gpt-3.5-turbo"

MISSING_KEY_MESSAGE = "OpenAI API key not found. Please configure your API key in the settings."
KEY_TEST_MISSING_MESSAGE = (
    "No OpenAI API key found. Please configure your API key in the API Configuration page. "
    "Go to Account > API Config to set up your OpenAI API key."
)

_LIST_FIELDS = {
    "styleElements": ["Professional photography", "Artistic composition", "High quality rendering",
                      "Detailed execution", "Contemporary style", "Visual storytelling"],
    "technicalDetails": ["Professional camera setup", "Controlled lighting", "Sharp focus",
                         "High resolution", "Optimal exposure", "Professional color grading"],
    "colorPalette": ["Balanced color scheme", "Harmonious tones", "Natural color balance",
                     "Professional color grading"],
}
# (минимум элементов, чем добивать)
_LIST_PADDING = {
    "styleElements": (4, ["Professional quality", "Artistic execution", "Visual storytelling", "Contemporary style"]),
    "technicalDetails": (4, ["High resolution", "Professional setup", "Optimal settings", "Quality execution"]),
    "colorPalette": (3, ["Natural tones", "Balanced colors", "Professional grading"]),
}
_TEXT_DEFAULTS = {
    "mainPrompt": "A detailed photographic composition with specific visual elements "
                  "and careful attention to composition and lighting.",
    "composition": "Professional composition with attention to detail and artistic excellence.",
    "lighting": "Professional composition with attention to detail and artistic excellence.",
    "mood": "Professional composition with attention to detail and artistic excellence.",
    "camera": "Canon EOS R5",
    "lens": "85mm f/1.4",
    "audioVibe": "Ambient instrumental music with subtle atmospheric tones",
}
EXTRACTION_FIELDS = ("mainPrompt", "styleElements", "technicalDetails", "colorPalette", "composition",
                     "lighting", "mood", "camera", "lens", "audioVibe")


class AssistantError(Exception):
    """Ошибка для пользователя: текст уже понятный, status_code — для HTTP-ответа."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class MissingKeyError(Exception):
    pass


def normalize_extraction(data) -> dict:
    """Модель не всегда отдаёт все поля. Достраиваем ответ до полного набора ключей."""
    if not isinstance(data, dict):
        logger.warning("⚠️ [Assistant] Extraction is not a JSON object, using defaults")
        data = {}
    result = dict(data)

    for key in EXTRACTION_FIELDS:
        if key in _LIST_FIELDS:
            if not result.get(key):
                result[key] = ["Professional quality", "Detailed execution", "High resolution",
                               "Artistic composition"]
            elif not isinstance(result[key], list):
                result[key] = list(_LIST_FIELDS[key])
        elif not result.get(key):
            result[key] = _TEXT_DEFAULTS[key]

    for key, (minimum, filler) in _LIST_PADDING.items():
        if len(result[key]) < minimum:
            result[key] = result[key] + filler[:6 - len(result[key])]
    return result


def fallback_metadata() -> dict:
    return {
        "title": "Artistic Portrait Study",
        "notes": "Captured using professional lighting techniques and careful composition to create an "
                 "intimate and contemplative mood. The natural lighting and shallow depth of field emphasize "
                 "the subject's expression while maintaining authentic skin texture and detail.",
        "sref": f"SREF-{random.randint(2000, 8999)}",
    }


def _parse_json(text: str):
    try:
        return json.loads(text)
    except ValueError:
        logger.warning(f"⚠️ [Assistant] Model answer is not JSON: {text[:200]}")
        return None


class PromptAssistant:
    """
    Помощники вокруг промптов, каждый ходит в OpenAI с ЛИЧНЫМ ключом пользователя
    (таблица api_config, user_id = владелец токена сессии).
    """

    def __init__(self, settings: Settings, http=requests):
        self.settings = settings
        self.http = http

    def _user_client(self, session: Optional[Session], missing_key_message: str) -> OpenAIClient:
        if session is None:
            raise AssistantError("Authorization header is required", status_code=401)
        try:
            user_id = get_user_id(self.settings, session.access_token, http=self.http)
        except InvalidSessionError as e:
            raise AssistantError(str(e), status_code=401)

        api_key = fetch_config_key(self.settings, "openai_api_key", user_id=user_id, http=self.http)
        if not api_key:
            raise MissingKeyError(missing_key_message)
        logger.info(f"🔑 [Assistant] Found OpenAI key for user {user_id}")
        return OpenAIClient(api_key, self.settings.openai_api_url, http=self.http)

    def _call(self, session: Optional[Session], action: Callable[[OpenAIClient], T], rules: Rules,
              default: str, missing_key_message: str = MISSING_KEY_MESSAGE) -> T:
        try:
            return action(self._user_client(session, missing_key_message))
        except (OpenAIError, SupabaseError, MissingKeyError) as e:
            logger.error(f"❌ [Assistant] {e}")
            raise AssistantError(friendly_message(e, rules, default)) from e

    def generate_prompt(self, session: Optional[Session], fields: dict) -> str:
        missing = [name for name in prompts.PROMPT_FIELDS if not str(fields.get(name) or "").strip()]
        if missing:
            raise AssistantError(f"Missing required fields: {', '.join(missing)}", status_code=400)

        def run(client: OpenAIClient) -> str:
            return client.chat(
                [
                    {"role": "system", "content": prompts.ENHANCE_SYSTEM_PROMPT},
                    {"role": "user", "content": prompts.enhance_user_prompt(fields)},
                ],
                temperature=0.2,
                max_tokens=600,
            )

        return self._call(session, run, CHAT_RULES, "An unexpected error occurred")

    def extract_prompt(self, session: Optional[Session], image_url: str) -> dict:
        if not image_url:
            raise AssistantError("Image URL is required", status_code=400)

        def run(client: OpenAIClient) -> dict:
            answer = client.chat(
                [
                    {"role": "system", "content": prompts.EXTRACT_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompts.EXTRACT_USER_PROMPT},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    },
                ],
                temperature=0.3,
                max_tokens=2000,
            )
            return normalize_extraction(_parse_json(answer))

        return self._call(session, run, VISION_RULES, "An unexpected error occurred")

    def generate_metadata(self, session: Optional[Session], prompt: str, prompt_data: Optional[dict]) -> dict:
        if not prompt:
            raise AssistantError("Prompt is required", status_code=400)

        def run(client: OpenAIClient) -> dict:
            answer = client.chat(
                [
                    {"role": "system", "content": prompts.METADATA_SYSTEM_PROMPT},
                    {"role": "user", "content": prompts.metadata_user_prompt(prompt, prompt_data or {})},
                ],
                temperature=0.8,
                max_tokens=300,
            )
            metadata = _parse_json(answer)
            if not isinstance(metadata, dict):
                metadata = fallback_metadata()
            if not all(metadata.get(key) for key in ("title", "notes", "sref")):
                raise AssistantError("Generated metadata is incomplete")
            return metadata

        return self._call(session, run, CHAT_RULES, "Failed to generate metadata")

    def test_api_key(self, session: Optional[Session]) -> dict:
        def run(client: OpenAIClient) -> dict:
            answer = client.chat(
                [{"role": "user", "content": prompts.KEY_TEST_PROMPT}],
                model=KEY_TEST_MODEL,
                max_tokens=10,
            )
            logger.info(f"✅ [Assistant] API key test answered: {answer}")
            return {"success": True, "message": "API key is working correctly", "testResponse": answer}

        return self._call(session, run, KEY_TEST_RULES, "API test failed", KEY_TEST_MISSING_MESSAGE)
