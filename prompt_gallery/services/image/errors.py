class ImageGenerationError(Exception):
    """Базовая ошибка генерации изображений."""


class ConfigurationError(ImageGenerationError):
    """Нет ключа или переменной окружения. Повторять бессмысленно."""


class AuthenticationRequiredError(ImageGenerationError):
    pass


class ProviderError(ImageGenerationError):
    def __init__(self, message: str, provider: str = "", status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class PollTimeoutError(ImageGenerationError, TimeoutError):
    pass


class PollCancelledError(ImageGenerationError):
    pass
