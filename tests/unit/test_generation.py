"""Tests for imagerelay.core.generation — remote image generation.

The Together client is exercised against ``httpx.MockTransport``.  Tests
cover request construction, relaying of the first result item in both
response formats, upstream error relaying, and transport failures.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from imagerelay.core.config import RelayConfig
from imagerelay.core.errors import (
    GENERATION_ERROR_MESSAGE,
    ConfigurationError,
    GenerationUpstreamError,
    ImageGenerationUnavailable,
)
from imagerelay.core.generation import (
    ImageResult,
    TogetherImageGenerator,
    extract_upstream_error,
)


def _generate(config: RelayConfig, handler, prompt: str = "a red bicycle") -> ImageResult:
    async def run():
        client = httpx.AsyncClient(
            base_url=config.api_base_url,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            return await TogetherImageGenerator(client, config).generate(prompt)

    return asyncio.run(run())


class TestExtractUpstreamError:
    """Test extract_upstream_error()."""

    def test_string_error(self):
        assert extract_upstream_error({"error": "bad prompt"}) == "bad prompt"

    def test_nested_message(self):
        payload = {"error": {"message": "model not found", "type": "invalid_request_error"}}
        assert extract_upstream_error(payload) == "model not found"

    @pytest.mark.parametrize("payload", [None, {}, {"error": ""}, {"error": {"code": 1}}, "text"])
    def test_defaults_to_generic_message(self, payload):
        assert extract_upstream_error(payload) == GENERATION_ERROR_MESSAGE


class TestImageResult:
    def test_as_response_uses_field_name(self):
        assert ImageResult(field="url", value="u").as_response() == {"url": "u"}
        assert ImageResult(field="b64_json", value="b").as_response() == {"b64_json": "b"}


class TestTogetherImageGenerator:
    """Test TogetherImageGenerator against a mocked provider."""

    def test_sends_fixed_generation_parameters(self, test_config: RelayConfig):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [{"url": "https://x/img.png"}]})

        _generate(test_config, handler, prompt="a red bicycle")

        request = seen[0]
        assert request.url.path == "/v1/images/generations"
        assert request.headers["Authorization"] == "Bearer test-key"
        assert json.loads(request.content) == {
            "prompt": "a red bicycle",
            "model": "black-forest-labs/FLUX.1-schnell-Free",
            "width": 1024,
            "height": 768,
            "steps": 1,
            "n": 1,
            "response_format": "url",
        }

    def test_relays_first_url(self, test_config: RelayConfig):
        result = _generate(
            test_config,
            lambda r: httpx.Response(200, json={"data": [{"url": "https://x/img.png"}]}),
        )
        assert result == ImageResult(field="url", value="https://x/img.png")

    def test_relays_b64_json_in_b64_mode(self, test_config: RelayConfig):
        config = test_config.model_copy(update={"response_format": "b64_json"})
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": [{"b64_json": "R0lGODlh"}]})

        result = _generate(config, handler)
        assert seen[0]["response_format"] == "b64_json"
        assert result.as_response() == {"b64_json": "R0lGODlh"}

    def test_relays_upstream_status_and_message(self, test_config: RelayConfig):
        """A provider error should keep its status code and message."""
        with pytest.raises(GenerationUpstreamError) as exc_info:
            _generate(
                test_config,
                lambda r: httpx.Response(422, json={"error": "Prompt too long"}),
            )
        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "Prompt too long"

    def test_upstream_error_without_message(self, test_config: RelayConfig):
        with pytest.raises(GenerationUpstreamError) as exc_info:
            _generate(test_config, lambda r: httpx.Response(502, text="Bad Gateway"))
        assert exc_info.value.status_code == 502
        assert exc_info.value.message == GENERATION_ERROR_MESSAGE

    def test_transport_error_is_unavailable(self, test_config: RelayConfig):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ImageGenerationUnavailable) as exc_info:
            _generate(test_config, handler)
        assert exc_info.value.status_code == 500

    def test_slow_provider_hits_total_deadline(self, test_config: RelayConfig):
        """The whole call is bounded, not just each transport phase."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.5)
            return httpx.Response(200, json={"data": [{"url": "https://x/img.png"}]})

        config = test_config.model_copy(update={"request_timeout": 0.05})
        with pytest.raises(ImageGenerationUnavailable):
            _generate(config, handler)

    @pytest.mark.parametrize(
        "payload",
        [{}, {"data": []}, {"data": [{"b64_json": "abc"}]}, {"data": [{"url": None}]}],
    )
    def test_success_without_result_item_is_unavailable(self, test_config: RelayConfig, payload):
        with pytest.raises(ImageGenerationUnavailable):
            _generate(test_config, lambda r: httpx.Response(200, json=payload))

    def test_missing_api_key(self, test_config: RelayConfig):
        config = test_config.model_copy(update={"api_key": ""})
        with pytest.raises(ConfigurationError):
            _generate(config, lambda r: httpx.Response(200, json={"data": [{"url": "u"}]}))
