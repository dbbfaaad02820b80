from __future__ import annotations

import os
import tempfile

import pytest

from prompt_gallery.config import Settings

# main.py проверяет API_KEY и создаёт папку логов при импорте
os.environ["API_KEY"] = "test-api-key"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "prompt-gallery-test-logs"))

SUPABASE_URL = "https://demo.supabase.co"


class FakeResponse:
    def __init__(self, status_code: int = 200, json_data=None, text: str | None = None, reason: str = ""):
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else ("" if json_data is None else str(json_data))
        self.reason = reason

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeHttp:
    """Подмена модуля requests: маршруты по подстроке URL, ответы выдаются по очереди."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, list]] = []
        self.calls: list[tuple[str, str, dict]] = []

    def on(self, method: str, url_part: str, *responses) -> "FakeHttp":
        self.routes.append((method.upper(), url_part, list(responses)))
        return self

    def count(self, method: str, url_part: str) -> int:
        return sum(1 for m, url, _ in self.calls if m == method.upper() and url_part in url)

    def _dispatch(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        for route_method, url_part, responses in self.routes:
            if route_method == method and url_part in url:
                item = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(item, BaseException):
                    raise item
                if callable(item):
                    return item(url, kwargs)
                return item
        raise AssertionError(f"Unexpected {method} {url}")

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, kwargs)


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="test-api-key",
        supabase_url=SUPABASE_URL,
        supabase_anon_key="anon-key",
        supabase_service_key="service-key",
        nebius_api_key="nebius-key-1234567890",
        nebius_api_url="https://nebius.test/imageGenerationAsync",
        nebius_operations_url="https://ops.nebius.test",
        rendernet_api_key="rendernet-key",
        rendernet_url="https://rendernet.test/generations",
        openai_api_key="sk-server-key",
        openai_api_url="https://openai.test/v1",
        email_api_key="resend-key",
        contact_recipient="support@example.com",
    )
