import logging
from typing import List, Optional, Sequence, Tuple

import requests

from prompt_gallery.config import DEFAULT_OPENAI_API_URL

logger = logging.getLogger(__name__)

CHAT_MODEL = "gpt-4o"
IMAGE_MODEL = "dall-e-3"


class OpenAIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_text(resp) -> str:
    """'401 Incorrect API key provided (invalid_api_key)' из тела ответа OpenAI"""
    try:
        body = resp.json()
    except ValueError:
        return f"{resp.status_code} {resp.text or resp.reason or ''}".strip()

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        text = f"{resp.status_code} {error.get('message') or ''}".strip()
        if error.get("code"):
            text += f" ({error['code']})"
        return text
    return f"{resp.status_code} {error or resp.text}".strip()


class OpenAIClient:
    """
    Тонкая обёртка над REST API OpenAI (chat completions и images).
    Никаких SDK: обычный requests.post, как и у остальных провайдеров.
    """

    def __init__(self, api_key: str, base_url: str = DEFAULT_OPENAI_API_URL, http=requests, timeout: float = 60):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = http
        self.timeout = timeout

    def _post(self, path: str, payload: dict) -> dict:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.http.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise OpenAIError(f"OpenAI network error: {e}")

        if resp.status_code != 200:
            text = _error_text(resp)
            logger.error(f"❌ [OpenAI] {path} failed: {text}")
            raise OpenAIError(text, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            raise OpenAIError(f"OpenAI returned a non-JSON body: {resp.text[:200]}")
        if not isinstance(data, dict):
            raise OpenAIError(f"Unexpected OpenAI response: {data!r}")
        return data

    def chat(self, messages: List[dict], model: str = CHAT_MODEL,
             temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        payload = {"model": model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        logger.info(f"💬 [OpenAI] Chat completion ({model}, max_tokens={max_tokens})")
        data = self._post("/chat/completions", payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        content = content.strip() if isinstance(content, str) else ""
        if not content:
            raise OpenAIError("OpenAI API returned an empty response")
        return content

    def generate_image(self, prompt: str, size: str = "1024x1024",
                       quality: str = "standard", style: str = "natural") -> Optional[str]:
        """Одна картинка DALL-E 3 (n > 1 модель не поддерживает). Нет url в ответе — None."""
        payload = {
            "model": IMAGE_MODEL,
            "prompt": prompt,
            "n": 1,
            "size": size,
            "quality": quality,
            "style": style,
        }
        data = self._post("/images/generations", payload)
        items = data.get("data")
        if isinstance(items, list) and items and isinstance(items[0], dict):
            return items[0].get("url") or None
        return None


# Сообщения для пользователя. Проверка по подстроке, первое совпадение побеждает.
Rules = Sequence[Tuple[str, str]]

KEY_RULES: Rules = (
    ("Incorrect API key", "Invalid OpenAI API key. Please check your API key in settings."),
    ("You exceeded your current quota",
     "OpenAI API quota exceeded. Please check your OpenAI account billing and usage limits."),
    ("API key not found", "OpenAI API key not found. Please configure your API key in the settings."),
    ("insufficient_quota", "Insufficient OpenAI credits. Please add credits to your OpenAI account."),
    ("invalid_api_key", "Invalid OpenAI API key format. Please check your API key in settings."),
)

CHAT_RULES: Rules = KEY_RULES + (
    ("network", "Network error occurred while connecting to OpenAI"),
)

VISION_RULES: Rules = CHAT_RULES + (
    ("image", "Failed to process the image. Please ensure the image URL is valid and accessible."),
)

KEY_TEST_RULES: Rules = KEY_RULES + (
    ("quota", "OpenAI API quota exceeded"),
    ("network", "Network error connecting to OpenAI"),
)

IMAGE_RULES: Rules = (
    ("Incorrect API key", "Invalid OpenAI API key. Please check your API key configuration."),
    ("You exceeded your current quota",
     "OpenAI API quota exceeded. Please check your OpenAI account billing and usage limits."),
    ("content filters", "Your prompt was blocked by content filters. Please modify your prompt and try again."),
    ("safety system", "Your prompt was blocked by content filters. Please modify your prompt and try again."),
    ("rate limit", "Rate limit exceeded. Please wait a moment and try again."),
    ("API key not configured", "OpenAI API key not configured. Please contact support to set up the API key."),
    ("network", "Network error occurred while connecting to OpenAI"),
)


def friendly_message(error, rules: Rules, default: str) -> str:
    """Как classify(), но для ответов OpenAI: незнакомый текст отдаём как есть."""
    text = str(error) if error is not None else ""
    if not text:
        return default
    for needle, message in rules:
        if needle in text:
            return message
    return text
