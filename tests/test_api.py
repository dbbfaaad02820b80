from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeHttp, FakeResponse
from prompt_gallery.api.dependencies import get_assistant, get_dalle, get_dispatcher, get_prober, get_settings
from prompt_gallery.main import app
from prompt_gallery.services.assistant.service import PromptAssistant
from prompt_gallery.services.image.availability import AvailabilityProber
from prompt_gallery.services.image.dalle import DalleProvider
from prompt_gallery.services.image.orchestrator import ImageGenerationDispatcher

HEADERS = {"x-token": "test-api-key", "Authorization": "Bearer user-token"}


@pytest.fixture
def client(settings, http: FakeHttp):
    prober = AvailabilityProber(http=http)
    dispatcher = ImageGenerationDispatcher(settings, prober=prober, http=http, sleep=lambda _: None)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_prober] = lambda: prober
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_assistant] = lambda: PromptAssistant(settings, http=http)
    app.dependency_overrides[get_dalle] = lambda: DalleProvider(settings, http=http)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_requires_api_key(client) -> None:
    response = client.post("/api/image/generate", params={"prompt": "a cat"}, headers={"x-token": "wrong"})
    assert response.status_code == 401


def test_generate_returns_generation_result(client, http: FakeHttp) -> None:
    http.on("POST", "/functions/v1/generate-image", FakeResponse(200, {"imageUrl": "https://img/1"}))

    response = client.post(
        "/api/image/generate",
        params={"prompt": "a cat", "aspect_ratio": "1:1", "number_of_images": 1},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "imageUrls": ["https://img/1"], "provider": "supabase-openai"}


def test_generate_failure_is_still_a_result(client, http: FakeHttp) -> None:
    http.on("POST", "/functions/v1/generate-image", FakeResponse(500, {"error": "rate limit reached"}))

    response = client.post(
        "/api/image/generate",
        params={"prompt": "a cat", "number_of_images": 2},
        headers=HEADERS,
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert len(body["imageUrls"]) == 2
    assert "Rate limit exceeded" in body["error"]


@pytest.mark.parametrize(
    "params",
    [
        {"prompt": "a cat", "number_of_images": 5},
        {"prompt": "a cat", "aspect_ratio": "21:9"},
        {"prompt": "a cat", "provider": "midjourney"},
        {"prompt": "   "},
    ],
)
def test_generate_rejects_invalid_input(client, params) -> None:
    response = client.post("/api/image/generate", params=params, headers=HEADERS)
    assert response.status_code == 422


def test_availability_and_clear(client, http: FakeHttp) -> None:
    http.on("POST", "/functions/v1/generate-image", FakeResponse(404, {"error": "not found"}))

    first = client.get("/api/image/availability", headers=HEADERS)
    second = client.get("/api/image/availability", headers=HEADERS)
    assert first.json() == {"function": "generate-image", "available": True}
    assert second.json()["available"] is True
    assert http.count("POST", "/functions/v1/generate-image") == 1

    assert client.post("/api/image/availability/clear", headers=HEADERS).json() == {"cleared": True}
    client.get("/api/image/availability", headers=HEADERS)
    assert http.count("POST", "/functions/v1/generate-image") == 2


def test_availability_without_session(client, http: FakeHttp) -> None:
    response = client.get("/api/image/availability", headers={"x-token": "test-api-key"})
    assert response.json()["available"] is False
    assert http.calls == []


def test_contact_requires_session(client) -> None:
    response = client.post("/api/contact", json={}, headers={"x-token": "test-api-key"})
    assert response.status_code == 401


def test_contact_validates_fields(client) -> None:
    response = client.post("/api/contact", json={"fullName": "Ada"}, headers=HEADERS)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please fill in all required fields."


def test_generate_prompt_endpoint(client, http: FakeHttp) -> None:
    http.on("GET", "/auth/v1/user", FakeResponse(200, {"id": "user-1"}))
    http.on("GET", "/rest/v1/api_config", FakeResponse(200, [{"key_value": "sk-user"}]))
    http.on("POST", "/chat/completions", FakeResponse(200, {"choices": [{"message": {"content": "A calm harbour."}}]}))

    response = client.post(
        "/api/functions/generate-prompt",
        json={"subject": "fisherman", "setting": "harbour", "lighting": "dawn", "style": "documentary",
              "mood": "calm", "post-processing": "film grain"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"prompt": "A calm harbour."}
    chat = http.calls[-1][2]["json"]
    assert "Post-Processing is film grain" in chat["messages"][1]["content"]


def test_generate_prompt_missing_fields(client) -> None:
    response = client.post("/api/functions/generate-prompt", json={"subject": "fisherman"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Missing required fields: setting")


def test_assistant_endpoints_require_session(client) -> None:
    headers = {"x-token": "test-api-key"}

    assert client.post("/api/functions/test-api-key", headers=headers).status_code == 401
    assert client.post("/api/functions/extract-prompt", json={"imageUrl": "https://img/1"},
                       headers=headers).status_code == 401


def test_generate_image_function_answers_availability_check_with_400(client, http: FakeHttp) -> None:
    response = client.post("/api/functions/generate-image", json={"test": True}, headers=HEADERS)

    assert response.status_code == 400
    assert http.calls == []


def test_generate_image_function(client, http: FakeHttp) -> None:
    http.on("POST", "/images/generations", FakeResponse(200, {"data": [{"url": "https://oai/1.png"}]}))

    response = client.post(
        "/api/functions/generate-image",
        json={"prompt": "a lighthouse", "imageDimensions": "16:9", "numberOfImages": 2},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {
        "imageUrl": ["https://oai/1.png", "https://oai/1.png"],
        "imageUrls": ["https://oai/1.png", "https://oai/1.png"],
        "generatedCount": 2,
        "requestedCount": 2,
        "dimensions": "1792x1024",
    }


def test_generate_image_function_error_message(client, http: FakeHttp) -> None:
    http.on("POST", "/images/generations", FakeResponse(400, {"error": {
        "message": "Your request was rejected as a result of our safety system."}}))

    response = client.post("/api/functions/generate-image", json={"prompt": "something"}, headers=HEADERS)

    assert response.status_code == 500
    assert response.json()["detail"] == (
        "Your prompt was blocked by content filters. Please modify your prompt and try again."
    )
