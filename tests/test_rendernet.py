from __future__ import annotations

from dataclasses import replace

import pytest
import requests

from conftest import FakeHttp, FakeResponse
from prompt_gallery.services.image.errors import ConfigurationError, ProviderError
from prompt_gallery.services.image.rendernet import RenderNetProvider
from prompt_gallery.services.image.types import GenerationRequest

URL = "https://rendernet.test/generations"


def test_one_post_per_image_and_both_response_shapes(settings, http: FakeHttp) -> None:
    http.on(
        "POST",
        URL,
        FakeResponse(200, {"image_url": "https://cdn/1.png"}),
        FakeResponse(200, {"output_url": "https://cdn/2.png"}),
    )

    urls = RenderNetProvider(settings, http=http).generate(
        GenerationRequest(prompt="a cat", aspect_ratio="9:16", image_count=2)
    )

    assert urls == ["https://cdn/1.png", "https://cdn/2.png"]
    _, _, kwargs = http.calls[0]
    assert kwargs["headers"]["X-API-KEY"] == "rendernet-key"
    assert (kwargs["json"]["width"], kwargs["json"]["height"]) == (768, 1344)


def test_failed_images_are_skipped(settings, http: FakeHttp) -> None:
    http.on(
        "POST",
        URL,
        requests.ConnectionError("reset"),
        FakeResponse(500, None, text="oops"),
        FakeResponse(200, {"unexpected": True}),
        FakeResponse(200, {"image_url": "https://cdn/ok.png"}),
    )

    urls = RenderNetProvider(settings, http=http).generate(GenerationRequest(prompt="a cat", image_count=4))

    assert urls == ["https://cdn/ok.png"]
    assert http.count("POST", URL) == 4


def test_zero_images_is_an_error(settings, http: FakeHttp) -> None:
    http.on("POST", URL, FakeResponse(500, None, text="oops"))

    with pytest.raises(ProviderError, match="Failed to generate any images"):
        RenderNetProvider(settings, http=http).generate(GenerationRequest(prompt="a cat"))


def test_missing_key(settings, http: FakeHttp) -> None:
    provider = RenderNetProvider(replace(settings, rendernet_api_key=None), http=http)

    with pytest.raises(ConfigurationError):
        provider.generate(GenerationRequest(prompt="a cat"))
    assert http.calls == []
