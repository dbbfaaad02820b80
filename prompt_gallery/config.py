import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


DEFAULT_SENDER = "noreply@communityartist.com"
DEFAULT_NEBIUS_API_URL = "https://llm.api.cloud.yandex.net/foundationModels/v1/imageGenerationAsync"
DEFAULT_NEBIUS_OPERATIONS_URL = "https://llm.api.cloud.yandex.net:443"
DEFAULT_RENDERNET_URL = "https://api.rendernet.ai/pub/v1/generations"
DEFAULT_OPENAI_API_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class Settings:
    """
    Все настройки сервиса в одном месте.
    Значения берутся из окружения (и из .env, если он есть).
    """
    api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_service_key: Optional[str] = None
    nebius_api_key: Optional[str] = None
    nebius_api_url: str = DEFAULT_NEBIUS_API_URL
    nebius_operations_url: str = DEFAULT_NEBIUS_OPERATIONS_URL
    nebius_model: Optional[str] = None
    rendernet_api_key: Optional[str] = None
    rendernet_url: str = DEFAULT_RENDERNET_URL
    openai_api_key: Optional[str] = None
    openai_api_url: str = DEFAULT_OPENAI_API_URL
    email_api_key: Optional[str] = None
    sender_email: str = DEFAULT_SENDER
    contact_recipient: Optional[str] = None
    edge_function_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            api_key=os.getenv("API_KEY"),
            supabase_url=(os.getenv("SUPABASE_URL") or "").rstrip("/") or None,
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
            supabase_service_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            nebius_api_key=os.getenv("NEBIUS_API_KEY"),
            nebius_api_url=os.getenv("NEBIUS_API_URL", DEFAULT_NEBIUS_API_URL),
            nebius_operations_url=os.getenv("NEBIUS_OPERATIONS_URL", DEFAULT_NEBIUS_OPERATIONS_URL),
            nebius_model=os.getenv("NEBIUS_MODEL"),
            rendernet_api_key=os.getenv("RENDERNET_API_KEY"),
            rendernet_url=os.getenv("RENDERNET_URL", DEFAULT_RENDERNET_URL),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_api_url=os.getenv("OPENAI_API_URL", DEFAULT_OPENAI_API_URL).rstrip("/"),
            email_api_key=os.getenv("EMAIL_SERVICE_API_KEY"),
            sender_email=os.getenv("SENDER_EMAIL_ADDRESS") or DEFAULT_SENDER,
            contact_recipient=os.getenv("CONTACT_RECIPIENT"),
            edge_function_timeout=float(os.getenv("EDGE_FUNCTION_TIMEOUT", "120")),
        )


def validate_supabase_config(settings: Settings) -> Tuple[bool, Optional[str]]:
    """Проверка, что адрес и публичный ключ хостинга заданы и похожи на правду."""
    if not settings.supabase_url:
        return False, "SUPABASE_URL environment variable is missing"
    if not settings.supabase_anon_key:
        return False, "SUPABASE_ANON_KEY environment variable is missing"
    if "supabase.co" not in settings.supabase_url:
        return False, "SUPABASE_URL does not appear to be a valid Supabase URL"
    return True, None
