import random
import logging
from typing import List

import requests

from prompt_gallery.config import Settings
from .base import ImageProvider
from .errors import ConfigurationError, ProviderError
from .types import MAX_IMAGES, GenerationRequest

logger = logging.getLogger(__name__)

# Размеры в пикселях для поддерживаемых соотношений
_SIZES = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "9:16": (768, 1344),
    "4:3": (1152, 896),
    "3:4": (896, 1152),
    "3:2": (1216, 832),
    "2:3": (832, 1216),
    "4:5": (896, 1120),
}


class RenderNetProvider(ImageProvider):
    def __init__(self, settings: Settings, http=requests):
        self.api_key = settings.rendernet_api_key
        self.url = settings.rendernet_url
        self.http = http

    @property
    def name(self):
        return "RenderNet"

    @property
    def tag(self):
        return "rendernet"

    def generate(self, request: GenerationRequest) -> List[str]:
        if not self.api_key:
            raise ConfigurationError("RenderNet API key not configured. Please set RENDERNET_API_KEY.")

        width, height = _SIZES.get(request.aspect_ratio, (1024, 1024))
        count = min(request.image_count, MAX_IMAGES)
        logger.info(f"🎯 [RenderNet] Starting generation. Prompt: '{request.prompt[:50]}...', "
                    f"Size: {width}x{height}, Count: {count}")

        headers = {
            "Content-Type": "application/json",
            "X-API-KEY": self.api_key,
        }

        image_urls = []
        for i in range(count):
            data = {
                "prompt": request.prompt,
                "width": width,
                "height": height,
                "seed": random.randint(1, 9999999),
            }
            try:
                logger.info(f"⏳ [RenderNet] Sending request {i + 1}/{count} (Timeout: 60s)...")
                response = self.http.post(self.url, json=data, headers=headers, timeout=60)
                logger.info(f"📥 [RenderNet] API response status: {response.status_code}")
                if response.status_code != 200:
                    raise ProviderError(f"RenderNet API error {response.status_code}: {response.text}",
                                        provider=self.tag, status_code=response.status_code)

                json_data = response.json()
                if not isinstance(json_data, dict):
                    raise ProviderError(f"Unexpected RenderNet response: {json_data}", provider=self.tag)
                image_url = json_data.get("image_url") or json_data.get("output_url")
                if not image_url:
                    raise ProviderError(f"No image_url in RenderNet response. Keys: {list(json_data.keys())}",
                                        provider=self.tag)

                image_urls.append(image_url)
            except (requests.RequestException, ValueError, ProviderError) as e:
                # Одна неудачная картинка не роняет всю пачку
                logger.error(f"❌ [RenderNet] Image {i + 1} failed, skipping: {e}")

        if not image_urls:
            raise ProviderError("Failed to generate any images with RenderNet. Please try again.",
                                provider=self.tag)

        logger.info(f"✅ [RenderNet] Generated {len(image_urls)}/{count} images")
        return image_urls
