from functools import lru_cache

from prompt_gallery.config import Settings
from prompt_gallery.services.assistant.service import PromptAssistant
from prompt_gallery.services.image.availability import AvailabilityProber
from prompt_gallery.services.image.dalle import DalleProvider
from prompt_gallery.services.image.orchestrator import ImageGenerationDispatcher


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache()
def get_prober() -> AvailabilityProber:
    # Один кэш доступности на процесс
    return AvailabilityProber()


@lru_cache()
def get_dispatcher() -> ImageGenerationDispatcher:
    return ImageGenerationDispatcher(get_settings(), prober=get_prober())


@lru_cache()
def get_assistant() -> PromptAssistant:
    return PromptAssistant(get_settings())


@lru_cache()
def get_dalle() -> DalleProvider:
    return DalleProvider(get_settings())
