import logging
from typing import Callable, List, Optional

import requests

from prompt_gallery.services.session import Session
from .availability import function_url
from .base import ImageProvider
from .errors import AuthenticationRequiredError, ConfigurationError, ProviderError
from .types import GenerationRequest

logger = logging.getLogger(__name__)

GENERATE_FUNCTION = "generate-image"


def extract_image_urls(data) -> List[str]:
    """
    Разбор ответа функции. Поддерживаем три формы, первая найденная побеждает:
    {"imageUrls": [...]}, {"imageUrl": "..." | [...]}, {"images": [...]}.
    """
    if not isinstance(data, dict):
        raise ProviderError("No valid image URLs returned from the API")

    if isinstance(data.get("imageUrls"), list):
        urls = data["imageUrls"]
    elif data.get("imageUrl"):
        image_url = data["imageUrl"]
        urls = image_url if isinstance(image_url, list) else [image_url]
    elif isinstance(data.get("images"), list):
        urls = data["images"]
    else:
        raise ProviderError("No valid image URLs returned from the API")

    urls = [url for url in urls if isinstance(url, str) and url]
    if not urls:
        raise ProviderError("No images were generated")
    return urls


def _error_message(response) -> str:
    fallback = f"HTTP {response.status_code}: {response.reason or ''}".strip()
    text = response.text or ""
    try:
        body = response.json()
    except ValueError:
        return text or fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return text or fallback


class EdgeFunctionProvider(ImageProvider):
    """
    Генерация через удалённую функцию хостинга (внутри неё — OpenAI).
    Один POST, токен сессии в заголовке Authorization.
    """

    def __init__(
            self,
            endpoint_base: Optional[str],
            session_getter: Callable[[], Optional[Session]],
            function_name: str = GENERATE_FUNCTION,
            tag: str = "supabase-edge-function",
            timeout: float = 120.0,
            http=requests,
    ):
        self.endpoint_base = endpoint_base
        self.session_getter = session_getter
        self.function_name = function_name
        self._tag = tag
        self.timeout = timeout
        self.http = http

    @property
    def name(self) -> str:
        return "OpenAI"

    @property
    def tag(self) -> str:
        return self._tag

    def generate(self, request: GenerationRequest) -> List[str]:
        if not self.endpoint_base:
            raise ConfigurationError("SUPABASE_URL environment variable is not configured")

        session = self.session_getter()
        if session is None:
            raise AuthenticationRequiredError("Authentication required. Please sign in to generate images.")

        url = function_url(self.endpoint_base, self.function_name)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {session.access_token}",
        }
        payload = request.to_payload()
        payload.setdefault("style", "natural")

        logger.info(f"🎯 [{self.tag}] Calling {url}. Prompt: '{request.prompt[:50]}...', "
                    f"Ratio: {request.aspect_ratio}, Count: {request.image_count}")
        response = self.http.post(url, json=payload, headers=headers, timeout=self.timeout)
        logger.info(f"📥 [{self.tag}] Response status: {response.status_code}")

        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.error(f"❌ [{self.tag}] Function error {response.status_code}: {message}")
            raise ProviderError(message, provider=self.tag, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise ProviderError("No valid image URLs returned from the API", provider=self.tag)

        urls = extract_image_urls(data)
        logger.info(f"✅ [{self.tag}] Got {len(urls)} image(s)")
        return urls
