import logging
from abc import ABC, abstractmethod
from typing import List

from .classifier import classify
from .types import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)


class ImageProvider(ABC):
    """
    Базовый абстрактный класс.
    Определяет правила: каждый провайдер ОБЯЗАН иметь имя, тег и метод generate.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Вернуть понятное имя сервиса для логов и сообщений об ошибках"""
        pass

    @property
    @abstractmethod
    def tag(self) -> str:
        """Короткий тег провайдера для поля provider в результате"""
        pass

    @abstractmethod
    def generate(self, request: GenerationRequest) -> List[str]:
        """Сгенерировать картинки и вернуть список URL (обычные или data:). При неудаче — исключение."""
        pass

    def adapt(self, request: GenerationRequest) -> GenerationResult:
        """Тот же generate, но ошибки превращаются в GenerationResult(success=False)."""
        try:
            urls = self.generate(request)
        except Exception as e:
            logger.warning(f"⚠️ [{self.name}] Generation failed: {e}")
            return GenerationResult(success=False, error=classify(e, self.name), provider=self.tag)
        return GenerationResult(success=True, image_urls=urls, provider=self.tag)
