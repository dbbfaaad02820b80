import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import requests

from prompt_gallery.services.session import Session

logger = logging.getLogger(__name__)

CACHE_TTL = 30.0  # секунд
DEFAULT_PROBE_TIMEOUT_MS = 5000


def function_url(endpoint_base: str, function_name: str) -> str:
    return f"{endpoint_base.rstrip('/')}/functions/v1/{function_name}"


@dataclass
class AvailabilityCacheEntry:
    key: Tuple[str, str]
    available: bool
    checked_at: float


class AvailabilityCache:
    """
    Кэш результатов проверки доступности функций.
    Ключ — (endpoint_base, function_name), запись живёт ttl секунд.
    """

    def __init__(self, ttl: float = CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Tuple[str, str], AvailabilityCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: Tuple[str, str]) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.checked_at >= self.ttl:
                return None
            return entry.available

    def put(self, key: Tuple[str, str], available: bool) -> AvailabilityCacheEntry:
        entry = AvailabilityCacheEntry(key=key, available=available, checked_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)


class AvailabilityProber:
    """
    Лёгкая проверка "задеплоена ли функция".
    Любой HTTP-ответ (даже 4xx/5xx) считается доступностью: проверяем развёртывание, а не здоровье.
    """

    def __init__(self, cache: Optional[AvailabilityCache] = None, http=requests):
        self.cache = cache if cache is not None else AvailabilityCache()
        self.http = http
        self._key_locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        with self._key_locks_guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def probe(
            self,
            endpoint_base: str,
            function_name: str,
            session: Optional[Session],
            timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> bool:
        if not endpoint_base or not isinstance(endpoint_base, str) or not endpoint_base.startswith("http"):
            logger.error(f"❌ [Probe] Invalid endpoint base: {endpoint_base!r}")
            return False

        if "supabase.co" not in endpoint_base:
            logger.error(f"❌ [Probe] URL does not look like a Supabase URL: {endpoint_base}")
            return False

        if session is None:
            logger.warning(f"⚠️ [Probe] No active session, treating {function_name} as unavailable")
            return False

        url = function_url(endpoint_base, function_name)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {session.access_token}",
        }
        logger.info(f"🔎 [Probe] Testing function at {url} (Timeout: {timeout_ms}ms)")

        try:
            response = self.http.post(url, json={"test": True}, headers=headers, timeout=timeout_ms / 1000)
        except requests.Timeout:
            logger.warning(f"⚠️ [Probe] {function_name} timed out after {timeout_ms}ms")
            return False
        except requests.RequestException as e:
            logger.warning(f"⚠️ [Probe] Network error, {function_name} may not be deployed: {e}")
            return False
        except Exception as e:
            logger.error(f"❌ [Probe] {function_name} test failed: {e}")
            return False

        available = response.status_code >= 200
        logger.info(f"📥 [Probe] {function_name} answered {response.status_code} -> available={available}")
        return available

    def probe_cached(
            self,
            endpoint_base: str,
            function_name: str,
            session: Optional[Session],
            timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> bool:
        # Без сессии в кэш не пишем, иначе один анонимный запрос "выключит" функцию для всех на ttl
        if session is None:
            return False

        key = (endpoint_base, function_name)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"📦 [Probe] Cache hit for {key}: {cached}")
            return cached

        # Одна проба на ключ: остальные потоки ждут её результат в кэше
        with self._lock_for(key):
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"📦 [Probe] Cache filled while waiting for {key}: {cached}")
                return cached

            available = self.probe(endpoint_base, function_name, session, timeout_ms)
            self.cache.put(key, available)
            return available

    def clear_cache(self):
        """Сбросить кэш (например, сразу после деплоя функций)."""
        self.cache.clear()
        logger.info("🗑️ [Probe] Availability cache cleared")
