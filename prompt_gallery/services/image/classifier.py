"""
Перевод сырых ошибок провайдеров в понятные пользователю сообщения.

Таблица правил читается сверху вниз, срабатывает первое совпадение.
Наружу никогда не уходят токены, стектрейсы и внутренние адреса,
кроме сообщений из списка "уже понятных" (PASS_THROUGH).
"""
import re
from typing import Callable, List, Tuple


UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred during image generation. Please try again."

PASS_THROUGH = (
    "no valid image urls",
    "no images were generated",
    "prompt was blocked",
    "failed to generate any images",
)


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda message: any(needle in message for needle in needles)


def _matches(pattern: str) -> Callable[[str], bool]:
    regex = re.compile(pattern)
    return lambda message: regex.search(message) is not None


# (предикат по lower-case сообщению, шаблон ответа; {provider} подставляется)
RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_contains("rate limit"),
     "Rate limit exceeded. Please wait a moment and try again."),
    (_contains("failed to fetch", "network error", "connection error", "connection refused", "max retries exceeded"),
     "Unable to connect to the image generation service ({provider}). "
     "Please check your internet connection and try again."),
    (_contains("cors"),
     "Cross-origin request blocked. The image generation service may not be properly configured."),
    (_contains("authentication", "unauthorized", "401"),
     "Authentication failed. Please sign in again and try generating images."),
    (_matches(r"(incorrect|invalid)( \w+)? api key|invalid_api_key"),
     "Invalid {provider} API key. Please contact support to configure the API key."),
    (_contains("quota", "insufficient_quota"),
     "{provider} API quota exceeded. Please contact support or try again later."),
    (_contains("content filters", "safety system", "content policy"),
     "Your prompt was blocked by content filters. Please modify your prompt to comply with usage policies."),
    (_contains("environment variable", "not configured", "api key not found"),
     "Image generation service is not properly configured. Please contact support."),
    (_contains("supabase", "database"),
     "Database service error. Please try again or contact support if the problem persists."),
    (_contains("http 500"),
     "Internal server error. Please try again or contact support if the problem persists."),
    (_contains("http 404"),
     "Image generation service not found. Please contact support."),
    (_contains("http 429"),
     "Too many requests. Please wait a moment and try again."),
]


def classify(error, provider: str = "image provider") -> str:
    """Всегда возвращает строку, никогда не бросает исключений."""
    if isinstance(error, BaseException):
        # у TimeoutError() и подобных пустой текст
        original = str(error) or type(error).__name__
    elif isinstance(error, str):
        original = error
    else:
        return UNKNOWN_ERROR_MESSAGE

    message = original.lower()
    for predicate, template in RULES:
        if predicate(message):
            return template.format(provider=provider)

    if any(phrase in message for phrase in PASS_THROUGH):
        return original

    return f"Image generation failed: {original}"
