from __future__ import annotations

import pytest

from conftest import SUPABASE_URL, FakeHttp, FakeResponse
from prompt_gallery.services.image.edge_function import EdgeFunctionProvider, extract_image_urls
from prompt_gallery.services.image.errors import (
    AuthenticationRequiredError,
    ConfigurationError,
    ProviderError,
)
from prompt_gallery.services.image.types import GenerationRequest
from prompt_gallery.services.session import Session

FUNCTION_URL = f"{SUPABASE_URL}/functions/v1/generate-image"
REQUEST = GenerationRequest(prompt="a cat", aspect_ratio="16:9", image_count=2)


def _provider(http: FakeHttp, session=Session("tok"), base=SUPABASE_URL) -> EdgeFunctionProvider:
    return EdgeFunctionProvider(base, lambda: session, http=http)


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"imageUrls": ["a", "b"], "imageUrl": ["c"]}, ["a", "b"]),
        ({"imageUrl": "single"}, ["single"]),
        ({"imageUrl": ["x", "y"]}, ["x", "y"]),
        ({"images": ["z"]}, ["z"]),
    ],
)
def test_extract_image_urls_first_shape_wins(body, expected) -> None:
    assert extract_image_urls(body) == expected


def test_extract_image_urls_errors() -> None:
    with pytest.raises(ProviderError, match="No valid image URLs"):
        extract_image_urls({"data": []})
    with pytest.raises(ProviderError, match="No images were generated"):
        extract_image_urls({"imageUrls": []})


def test_generate_posts_payload_with_session_token(http: FakeHttp) -> None:
    http.on("POST", FUNCTION_URL, FakeResponse(200, {"imageUrls": ["https://img/1", "https://img/2"]}))

    urls = _provider(http).generate(REQUEST)

    assert urls == ["https://img/1", "https://img/2"]
    _, _, kwargs = http.calls[0]
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["json"] == {
        "prompt": "a cat",
        "imageDimensions": "16:9",
        "numberOfImages": 2,
        "style": "natural",
    }


def test_non_ok_response_uses_error_field(http: FakeHttp) -> None:
    http.on("POST", FUNCTION_URL, FakeResponse(500, {"error": "OpenAI API quota exceeded"}))

    with pytest.raises(ProviderError, match="quota exceeded") as exc_info:
        _provider(http).generate(REQUEST)
    assert exc_info.value.status_code == 500


def test_non_ok_response_without_body_uses_status_line(http: FakeHttp) -> None:
    http.on("POST", FUNCTION_URL, FakeResponse(404, None, text="", reason="Not Found"))

    with pytest.raises(ProviderError, match="HTTP 404: Not Found"):
        _provider(http).generate(REQUEST)


def test_malformed_body_is_an_error(http: FakeHttp) -> None:
    http.on("POST", FUNCTION_URL, FakeResponse(200, None, text="<html>"))

    with pytest.raises(ProviderError, match="No valid image URLs"):
        _provider(http).generate(REQUEST)


def test_missing_session_or_base_url(http: FakeHttp) -> None:
    with pytest.raises(AuthenticationRequiredError):
        _provider(http, session=None).generate(REQUEST)
    with pytest.raises(ConfigurationError):
        _provider(http, base=None).generate(REQUEST)
    assert http.calls == []


def test_adapt_turns_failures_into_results(http: FakeHttp) -> None:
    http.on("POST", FUNCTION_URL, FakeResponse(500, None, text="", reason="Internal Server Error"))

    result = _provider(http).adapt(REQUEST)

    assert result.success is False
    assert result.image_urls == []
    assert result.provider == "supabase-edge-function"
    assert result.error.startswith("Internal server error")
