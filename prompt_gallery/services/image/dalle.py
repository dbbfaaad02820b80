import logging
from typing import List, Optional

import requests

from prompt_gallery.config import Settings
from prompt_gallery.services.openai_api import OpenAIClient, OpenAIError
from prompt_gallery.services.supabase import fetch_config_key
from .base import ImageProvider
from .errors import ConfigurationError, ProviderError
from .types import MAX_IMAGES, GenerationRequest

logger = logging.getLogger(__name__)

_PLACEHOLDER_KEY = "sk-REPLACE_WITH_YOUR_ACTUAL_OPENAI_API_KEY_FROM_PLATFORM_OPENAI_COM"

# DALL-E 3 умеет только три размера, остальные соотношения -> квадрат
_SIZES = {"16:9": "1792x1024", "9:16": "1024x1792"}


def dalle_size(aspect_ratio: str) -> str:
    return _SIZES.get(aspect_ratio, "1024x1024")


class OpenAIKeyResolver:
    """Серверный ключ: OPENAI_API_KEY, иначе глобальный ключ из api_config (только sk-...)."""

    def __init__(self, settings: Settings, http=requests):
        self.settings = settings
        self.http = http

    def resolve(self) -> str:
        api_key = self.settings.openai_api_key
        if api_key and api_key != _PLACEHOLDER_KEY:
            logger.info("🔑 [DALL-E] Using API key from environment variable")
            return api_key

        db_key = fetch_config_key(self.settings, "openai_api_key", http=self.http)
        if db_key and db_key.startswith("sk-"):
            logger.info("🔑 [DALL-E] Using global API key from database")
            return db_key

        raise ConfigurationError(
            "OpenAI API key not configured. Please add OPENAI_API_KEY to the service environment variables."
        )


class DalleProvider(ImageProvider):
    """
    То, что стоит за удалённой функцией generate-image: DALL-E 3,
    по одному запросу на картинку, неудачные картинки пропускаются.
    """

    def __init__(self, settings: Settings, http=requests, key_resolver: Optional[OpenAIKeyResolver] = None):
        self.settings = settings
        self.http = http
        self.key_resolver = key_resolver or OpenAIKeyResolver(settings, http=http)

    @property
    def name(self):
        return "OpenAI"

    @property
    def tag(self):
        return "openai-dalle"

    def generate(self, request: GenerationRequest) -> List[str]:
        client = OpenAIClient(self.key_resolver.resolve(), self.settings.openai_api_url, http=self.http)
        size = dalle_size(request.aspect_ratio)
        style = "vivid" if request.style == "vivid" else "natural"
        count = min(request.image_count, MAX_IMAGES)

        logger.info(f"🎯 [DALL-E] Starting. Prompt: '{request.prompt[:50]}...', Size: {size}, "
                    f"Style: {style}, Count: {count}")

        image_urls = []
        last_error: Optional[Exception] = None
        for i in range(count):
            try:
                image_url = client.generate_image(request.prompt, size=size, style=style)
            except OpenAIError as e:
                logger.error(f"❌ [DALL-E] Error generating image {i + 1}: {e}")
                if request.image_count == 1:
                    raise
                last_error = e
                continue

            if image_url:
                image_urls.append(image_url)
                logger.info(f"✅ [DALL-E] Image {i + 1}/{count} ready")
            else:
                logger.error(f"❌ [DALL-E] No image URL in response for image {i + 1}")

        if not image_urls:
            raise ProviderError("Failed to generate any images", provider=self.tag) from last_error

        return image_urls
