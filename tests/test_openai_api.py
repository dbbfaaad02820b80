from __future__ import annotations

import pytest
import requests

from conftest import FakeHttp, FakeResponse
from prompt_gallery.services.openai_api import (
    CHAT_RULES,
    IMAGE_RULES,
    KEY_TEST_RULES,
    VISION_RULES,
    OpenAIClient,
    OpenAIError,
    friendly_message,
)

CHAT_URL = "https://openai.test/v1/chat/completions"
IMAGES_URL = "https://openai.test/v1/images/generations"


def _client(http: FakeHttp) -> OpenAIClient:
    return OpenAIClient("sk-test", "https://openai.test/v1/", http=http)


def _completion(content) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


def test_chat_returns_stripped_content(http: FakeHttp) -> None:
    http.on("POST", CHAT_URL, _completion("  A quiet harbour at dawn.  "))

    answer = _client(http).chat([{"role": "user", "content": "hi"}], temperature=0.2, max_tokens=600)

    assert answer == "A quiet harbour at dawn."
    _, _, kwargs = http.calls[0]
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["json"] == {
        "model": "gpt-4o",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.2,
        "max_tokens": 600,
    }


@pytest.mark.parametrize("response", [_completion("   "), FakeResponse(200, {"choices": []})])
def test_empty_chat_answer_is_an_error(http: FakeHttp, response) -> None:
    http.on("POST", CHAT_URL, response)

    with pytest.raises(OpenAIError, match="empty response"):
        _client(http).chat([])


def test_error_body_is_turned_into_text(http: FakeHttp) -> None:
    http.on("POST", CHAT_URL, FakeResponse(401, {"error": {
        "message": "Incorrect API key provided: sk-test.", "code": "invalid_api_key"}}))

    with pytest.raises(OpenAIError) as exc_info:
        _client(http).chat([])

    assert exc_info.value.status_code == 401
    assert str(exc_info.value) == "401 Incorrect API key provided: sk-test. (invalid_api_key)"


def test_network_error_mentions_network(http: FakeHttp) -> None:
    http.on("POST", CHAT_URL, requests.ConnectionError("refused"))

    with pytest.raises(OpenAIError, match="network"):
        _client(http).chat([])


def test_generate_image_sends_one_image_request(http: FakeHttp) -> None:
    http.on("POST", IMAGES_URL, FakeResponse(200, {"data": [{"url": "https://oai/img.png"}]}))

    assert _client(http).generate_image("a cat", size="1792x1024", style="vivid") == "https://oai/img.png"
    _, _, kwargs = http.calls[0]
    assert kwargs["json"] == {
        "model": "dall-e-3",
        "prompt": "a cat",
        "n": 1,
        "size": "1792x1024",
        "quality": "standard",
        "style": "vivid",
    }


def test_generate_image_without_url(http: FakeHttp) -> None:
    http.on("POST", IMAGES_URL, FakeResponse(200, {"data": []}))

    assert _client(http).generate_image("a cat") is None


@pytest.mark.parametrize(
    "rules, error, expected",
    [
        (CHAT_RULES, "401 Incorrect API key provided", "Invalid OpenAI API key. Please check your API key in settings."),
        (CHAT_RULES, "429 You exceeded your current quota", "OpenAI API quota exceeded. Please check your OpenAI "
                                                            "account billing and usage limits."),
        (CHAT_RULES, "insufficient_quota", "Insufficient OpenAI credits. Please add credits to your OpenAI account."),
        (CHAT_RULES, "OpenAI network error: refused", "Network error occurred while connecting to OpenAI"),
        (CHAT_RULES, "something else", "something else"),
        (VISION_RULES, "400 Invalid image URL", "Failed to process the image. Please ensure the image URL is "
                                                "valid and accessible."),
        (KEY_TEST_RULES, "quota reached", "OpenAI API quota exceeded"),
        (IMAGE_RULES, "400 Your request was rejected by our safety system",
         "Your prompt was blocked by content filters. Please modify your prompt and try again."),
        (IMAGE_RULES, "OpenAI API key not configured. Please add OPENAI_API_KEY",
         "OpenAI API key not configured. Please contact support to set up the API key."),
    ],
)
def test_friendly_messages(rules, error, expected) -> None:
    assert friendly_message(OpenAIError(error), rules, "default") == expected


def test_friendly_message_default_for_empty_error() -> None:
    assert friendly_message(OpenAIError(""), CHAT_RULES, "Failed to generate metadata") == (
        "Failed to generate metadata"
    )
