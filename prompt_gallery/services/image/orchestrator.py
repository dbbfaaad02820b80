import time
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import requests

from prompt_gallery.config import Settings
from prompt_gallery.services.session import Session
from .availability import AvailabilityProber
from .base import ImageProvider
from .classifier import classify
from .edge_function import GENERATE_FUNCTION, EdgeFunctionProvider
from .errors import ImageGenerationError
from .nebius import NebiusProvider
from .placeholder import placeholder_urls
from .rendernet import RenderNetProvider
from .types import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "nebius", "rendernet")
PRIMARY_TAG = "supabase-openai"
EMERGENCY_TAG = "emergency-fallback"


@dataclass
class Strategy:
    provider: ImageProvider
    enabled: Callable[[], bool] = field(default=lambda: True)


class AllProvidersFailed(ImageGenerationError):
    def __init__(self, errors: List[Tuple[str, Exception]]):
        self.errors = errors
        details = "; ".join(f"{name}: {err}" for name, err in errors) or "no provider was enabled"
        super().__init__(f"All image providers failed. Details: {details}")

    @property
    def last_error(self) -> Optional[Exception]:
        return self.errors[-1][1] if self.errors else None

    @property
    def last_provider(self) -> Optional[str]:
        return self.errors[-1][0] if self.errors else None


def run_with_fallback(strategies: List[Strategy], request: GenerationRequest) -> Tuple[List[str], str]:
    """
    Пробуем стратегии по порядку, первая удачная побеждает.
    Выключенные (enabled() == False) пропускаются без ошибки.
    """
    errors = []

    for strategy in strategies:
        provider = strategy.provider
        if not strategy.enabled():
            logger.info(f"⏭️ [Orchestrator] Skipping {provider.tag}: not available")
            continue

        logger.info(f"🔄 [Orchestrator] Trying: {provider.tag}...")
        try:
            urls = provider.generate(request)
            logger.info(f"✅ [Orchestrator] Success: {provider.tag} ({len(urls)} image(s))")
            return urls, provider.tag
        except Exception as e:
            err_msg = str(e)
            logger.warning(f"⚠️ [Orchestrator] {provider.tag} error: {err_msg}")

            if "quota" in err_msg.lower() or "429" in err_msg:
                logger.info("   -> (Limit reached, moving on)")

            errors.append((provider.name, e))
            continue

    raise AllProvidersFailed(errors)


class ImageGenerationDispatcher:
    """
    1. Основная удалённая функция (если проба говорит, что она есть, и есть сессия).
    2. Провайдер, выбранный пользователем (openai / nebius / rendernet).
    3. Если всё упало — заглушки + понятная ошибка. Исключения наружу не летят.
    """

    def __init__(
            self,
            settings: Settings,
            prober: Optional[AvailabilityProber] = None,
            http=requests,
            sleep: Callable[[float], None] = time.sleep,
            nebius: Optional[ImageProvider] = None,
            rendernet: Optional[ImageProvider] = None,
    ):
        self.settings = settings
        self.http = http
        self.prober = prober if prober is not None else AvailabilityProber(http=http)
        self.nebius = nebius or NebiusProvider(settings, http=http, sleep=sleep)
        self.rendernet = rendernet or RenderNetProvider(settings, http=http)

    def _edge_function(self, session: Optional[Session], tag: str) -> EdgeFunctionProvider:
        return EdgeFunctionProvider(
            self.settings.supabase_url,
            lambda: session,
            tag=tag,
            timeout=self.settings.edge_function_timeout,
            http=self.http,
        )

    def _selected(self, provider: str, session: Optional[Session]) -> ImageProvider:
        if provider == "openai":
            return self._edge_function(session, "supabase-edge-function")
        if provider == "nebius":
            return self.nebius
        if provider == "rendernet":
            return self.rendernet
        raise ValueError(f"Unknown provider: {provider}. Expected one of: {', '.join(PROVIDERS)}")

    def _primary_available(self, session: Optional[Session]) -> bool:
        if session is None or not self.settings.supabase_url:
            return False
        return self.prober.probe_cached(self.settings.supabase_url, GENERATE_FUNCTION, session)

    def strategies(self, provider: str, session: Optional[Session]) -> List[Strategy]:
        return [
            Strategy(self._edge_function(session, PRIMARY_TAG), enabled=lambda: self._primary_available(session)),
            Strategy(self._selected(provider, session)),
        ]

    def _emergency(self, request: GenerationRequest, message: str) -> GenerationResult:
        return GenerationResult(
            success=False,
            image_urls=placeholder_urls(request.image_count, request.aspect_ratio, request.prompt),
            error=message,
            provider=EMERGENCY_TAG,
        )

    def generate(
            self,
            request: GenerationRequest,
            provider: str = "openai",
            session: Optional[Session] = None,
    ) -> GenerationResult:
        logger.info(f"🎨 [Dispatcher] New request. Prompt: '{request.prompt[:50]}...', "
                    f"Ratio: {request.aspect_ratio}, Count: {request.image_count}, Provider: {provider}")

        if provider not in PROVIDERS:
            logger.error(f"❌ [Dispatcher] Unknown provider: {provider}")
            return self._emergency(
                request, f"Unknown image provider: {provider}. Expected one of: {', '.join(PROVIDERS)}."
            )

        try:
            urls, tag = run_with_fallback(self.strategies(provider, session), request)
            return GenerationResult(success=True, image_urls=urls, provider=tag)
        except AllProvidersFailed as e:
            logger.error(f"❌ [Dispatcher] {e}")
            message = classify(e.last_error, e.last_provider or provider) if e.last_error else classify(e, provider)
            return self._emergency(request, message)
