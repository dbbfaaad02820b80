import time
import base64
import random
import binascii
import logging
from typing import Callable, List, Optional

import requests

from prompt_gallery.config import Settings
from prompt_gallery.services.supabase import fetch_config_key
from .base import ImageProvider
from .errors import ConfigurationError, ProviderError
from .polling import poll
from .types import MAX_IMAGES, GenerationRequest, ProviderOperation

logger = logging.getLogger(__name__)

_PLACEHOLDER_KEY = "your-nebius-api-key-here"
_RATIOS = {"1:1": 1 / 1, "16:9": 16 / 9, "9:16": 9 / 16, "4:3": 4 / 3, "3:4": 3 / 4}

POLL_INTERVAL = 1.0  # секунда между запросами статуса
POLL_MAX_ATTEMPTS = 60


def aspect_ratio_value(aspect_ratio: str) -> float:
    """'16:9' -> 1.777..., всё незнакомое -> 1.0"""
    return _RATIOS.get(aspect_ratio, 1.0)


def to_data_url(image_b64: str) -> str:
    try:
        raw = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise ProviderError("Nebius AI returned an invalid image payload", provider="nebius-ai")
    if not raw:
        raise ProviderError("Nebius AI returned an empty image", provider="nebius-ai")
    mime = "image/jpeg" if raw.startswith(b"\xff\xd8\xff") else "image/png"
    return f"data:{mime};base64,{image_b64}"


class NebiusKeyResolver:
    """
    Ключ берём из окружения, а если его нет —
    глобальный ключ из таблицы api_config (user_id is null) через REST хостинга.
    """

    def __init__(self, settings: Settings, http=requests):
        self.settings = settings
        self.http = http

    def resolve(self) -> str:
        api_key = self.settings.nebius_api_key
        if api_key and api_key != _PLACEHOLDER_KEY and len(api_key) > 10:
            logger.info("🔑 [Nebius] Using API key from environment variable")
            return api_key

        logger.info("🔑 [Nebius] Environment API key not found, trying database...")
        db_key = self._from_database()
        if db_key:
            logger.info("🔑 [Nebius] Found API key in database")
            return db_key

        raise ConfigurationError("Nebius API key not found. Please configure your API key in the settings.")

    def _from_database(self) -> Optional[str]:
        return fetch_config_key(self.settings, "nebius_api_key", http=self.http)


class NebiusProvider(ImageProvider):
    """
    Асинхронный провайдер: отправили задачу → получили id операции →
    раз в секунду спрашиваем статус, пока не done (не больше 60 раз).
    Картинки генерируются по одной, последовательно.
    """

    def __init__(
            self,
            settings: Settings,
            http=requests,
            sleep: Callable[[float], None] = time.sleep,
            poll_interval: float = POLL_INTERVAL,
            max_attempts: int = POLL_MAX_ATTEMPTS,
            key_resolver: Optional[NebiusKeyResolver] = None,
    ):
        self.settings = settings
        self.http = http
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.key_resolver = key_resolver or NebiusKeyResolver(settings, http=http)

    @property
    def name(self) -> str:
        return "Nebius AI"

    @property
    def tag(self) -> str:
        return "nebius-ai"

    def generate(self, request: GenerationRequest) -> List[str]:
        api_key = self.key_resolver.resolve()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        ratio = aspect_ratio_value(request.aspect_ratio)
        count = min(request.image_count, MAX_IMAGES)

        logger.info(f"🎯 [Nebius] Starting. Prompt: '{request.prompt[:50]}...', Ratio: {ratio:.3f}, Count: {count}")

        image_urls: List[str] = []
        last_error: Optional[Exception] = None

        for i in range(count):
            try:
                logger.info(f"🖼️ [Nebius] Generating image {i + 1}/{count}")
                operation = self._submit(request.prompt, ratio, headers)
                image_urls.append(self._wait(operation, headers))
                logger.info(f"✅ [Nebius] Image {i + 1} ready")
            except Exception as e:
                logger.error(f"❌ [Nebius] Error generating image {i + 1}: {e}")
                # Если просили одну картинку — её ошибка и есть общий результат
                if request.image_count == 1:
                    raise
                last_error = e

        if not image_urls:
            raise ProviderError(
                "Failed to generate any images with Nebius AI. Please try again.", provider=self.tag
            ) from last_error

        logger.info(f"✅ [Nebius] Generated {len(image_urls)}/{count} images")
        return image_urls

    def _payload(self, prompt: str, ratio: float) -> dict:
        payload = {
            "messages": [{"weight": 1, "text": prompt}],
            "generationOptions": {
                "seed": random.randint(0, 2147483647),
                "aspectRatio": {"widthRatio": ratio, "heightRatio": 1.0},
            },
        }
        if self.settings.nebius_model:
            payload["modelUri"] = self.settings.nebius_model
        return payload

    def _submit(self, prompt: str, ratio: float, headers: dict) -> ProviderOperation:
        resp = self.http.post(self.settings.nebius_api_url, json=self._payload(prompt, ratio),
                              headers=headers, timeout=30)

        if resp.status_code != 200:
            logger.error(f"❌ [Nebius] Submit error {resp.status_code}: {resp.text}")
            if resp.status_code == 401:
                raise ProviderError("Invalid Nebius API key. Please check your API key configuration.",
                                    provider=self.tag, status_code=401)
            if resp.status_code == 429:
                raise ProviderError("Nebius AI rate limit exceeded. Please wait and try again.",
                                    provider=self.tag, status_code=429)
            if resp.status_code == 400:
                raise ProviderError("Invalid request to Nebius AI. Please check your prompt.",
                                    provider=self.tag, status_code=400)
            raise ProviderError(f"Nebius AI API error: {resp.status_code} {resp.reason or ''}".strip(),
                                provider=self.tag, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            raise ProviderError(f"Nebius AI returned non-JSON body: {resp.text[:200]}", provider=self.tag)
        operation_id = data.get("id") if isinstance(data, dict) else None
        if not operation_id:
            raise ProviderError(f"Nebius AI returned no operation id: {data}", provider=self.tag)

        logger.info(f"🆔 [Nebius] Operation created: {operation_id}")
        return ProviderOperation(operation_id=operation_id)

    def _wait(self, operation: ProviderOperation, headers: dict) -> str:
        url = f"{self.settings.nebius_operations_url.rstrip('/')}/operations/{operation.operation_id}"

        def check(attempt: int) -> Optional[str]:
            operation.attempts = attempt
            try:
                resp = self.http.get(url, headers=headers, timeout=15)
            except requests.RequestException as e:
                logger.warning(f"⚠️ [Nebius] Poll request failed: {e}")
                return None

            if resp.status_code != 200:
                logger.warning(f"⚠️ [Nebius] Poll error {resp.status_code}")
                return None

            # Шлюз иногда отдаёт 200 с HTML — считаем это "ещё не готово"
            try:
                data = resp.json()
            except ValueError:
                logger.warning(f"⚠️ [Nebius] Poll returned non-JSON body: {resp.text[:200]}")
                return None
            if not isinstance(data, dict):
                logger.warning(f"⚠️ [Nebius] Unexpected poll body: {data!r}")
                return None
            if not data.get("done"):
                return None

            error = data.get("error")
            if error:
                operation.status = "error"
                message = error.get("message") if isinstance(error, dict) else str(error)
                raise ProviderError(f"Nebius AI generation failed: {message}", provider=self.tag)

            response = data.get("response")
            image = response.get("image") if isinstance(response, dict) else None
            if not image:
                operation.status = "error"
                raise ProviderError("Nebius AI operation finished without an image", provider=self.tag)

            operation.status = "done"
            return to_data_url(image)

        try:
            return poll(check, interval=self.poll_interval, max_attempts=self.max_attempts,
                        sleep=self.sleep, label=f"Nebius AI operation {operation.operation_id}")
        except Exception:
            if operation.status == "pending":
                operation.status = "error"
            raise
