import logging
from typing import Optional

import requests

from prompt_gallery.config import Settings

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Ошибка обращения к REST/Auth хостинга."""


class InvalidSessionError(SupabaseError):
    pass


def service_headers(settings: Settings) -> dict:
    key = settings.supabase_service_key
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Accept": "application/json",
    }


def fetch_config_key(settings: Settings, key_name: str, user_id: Optional[str] = None, http=requests) -> Optional[str]:
    """
    Значение key_value из таблицы api_config.
    user_id=None означает глобальный ключ (user_id is null).
    Сетевые ошибки и ошибки БД логируются, результат в этом случае None.
    """
    url = settings.supabase_url
    if not url or not settings.supabase_service_key:
        return None

    params = {
        "select": "key_value",
        "key_name": f"eq.{key_name}",
        "user_id": "is.null" if user_id is None else f"eq.{user_id}",
        "limit": "1",
    }
    try:
        resp = http.get(f"{url}/rest/v1/api_config", params=params, headers=service_headers(settings), timeout=15)
    except requests.RequestException as e:
        logger.error(f"❌ [Supabase] Error fetching {key_name}: {e}")
        return None

    if resp.status_code != 200:
        logger.error(f"❌ [Supabase] Database query error {resp.status_code}: {resp.text}")
        return None

    try:
        rows = resp.json()
    except ValueError:
        logger.error(f"❌ [Supabase] Database returned non-JSON body: {resp.text[:200]}")
        return None

    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0].get("key_value") or None
    return None


def get_user_id(settings: Settings, access_token: str, http=requests) -> str:
    """Кто владелец токена сессии. Неверный токен — InvalidSessionError."""
    if not settings.supabase_url:
        raise SupabaseError("SUPABASE_URL environment variable is not configured")

    headers = {
        "apikey": settings.supabase_anon_key or settings.supabase_service_key or "",
        "Authorization": f"Bearer {access_token}",
    }
    try:
        resp = http.get(f"{settings.supabase_url}/auth/v1/user", headers=headers, timeout=15)
    except requests.RequestException as e:
        logger.error(f"❌ [Supabase] Auth request failed: {e}")
        raise SupabaseError(f"Supabase auth network error: {e}")

    if resp.status_code in (401, 403):
        raise InvalidSessionError("Invalid authentication token")
    if resp.status_code != 200:
        logger.error(f"❌ [Supabase] Auth error {resp.status_code}: {resp.text}")
        raise SupabaseError(f"Supabase auth error: HTTP {resp.status_code}")

    try:
        user = resp.json()
    except ValueError:
        raise SupabaseError("Supabase auth returned a non-JSON body")

    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        raise InvalidSessionError("Invalid authentication token")
    return user_id
