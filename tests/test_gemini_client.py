"""Tests for the Gemini client adapter and its factory."""

import json

import httpx
import pytest

from app.adapters.llm import GeminiClient, UpstreamResponse, create_llm_client
from app.core.config import settings
from app.core.errors import ConfigurationAppError, ForwardingAppError


def _capturing_transport(captured: list[httpx.Request], *, status: int = 200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status, json=body if body is not None else {"candidates": []})

    return httpx.MockTransport(handler)


class TestGeminiClient:
    @pytest.mark.asyncio
    async def test_posts_body_to_generate_content_with_key_param(self) -> None:
        captured: list[httpx.Request] = []
        client = GeminiClient(
            api_key="secret-key",
            model="gemini-2.5-flash",
            transport=_capturing_transport(captured),
        )
        payload = {"contents": [{"parts": [{"text": "Hello"}]}]}

        result = await client.generate_content(payload)

        assert result == UpstreamResponse(status_code=200, payload={"candidates": []})
        assert len(captured) == 1
        request = captured[0]
        assert request.method == "POST"
        assert request.url.host == "generativelanguage.googleapis.com"
        assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert request.url.params["key"] == "secret-key"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == payload

    @pytest.mark.asyncio
    async def test_custom_base_url_is_normalized(self) -> None:
        captured: list[httpx.Request] = []
        client = GeminiClient(
            api_key="k",
            model="m",
            base_url="https://example.test/v9/",
            transport=_capturing_transport(captured),
        )

        await client.generate_content({})

        assert str(captured[0].url) == "https://example.test/v9/models/m:generateContent?key=k"

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self) -> None:
        body = {"error": {"code": 400, "message": "API key not valid"}}
        client = GeminiClient(
            api_key="k",
            model="m",
            transport=_capturing_transport([], status=400, body=body),
        )

        result = await client.generate_content({})

        assert result.status_code == 400
        assert result.payload == body

    @pytest.mark.asyncio
    async def test_non_json_reply_raises_forwarding_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))
        client = GeminiClient(api_key="k", model="m", transport=transport)

        with pytest.raises(ForwardingAppError) as exc:
            await client.generate_content({})

        assert exc.value.message == "Failed to fetch from Gemini API."
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped_without_leaking_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

        client = GeminiClient(api_key="top-secret", model="m", transport=httpx.MockTransport(handler))

        with pytest.raises(ForwardingAppError) as exc:
            await client.generate_content({"contents": []})

        assert exc.value.code == "upstream_request_failed"
        assert exc.value.details["error_type"] == "ConnectError"
        assert "top-secret" not in exc.value.details["hint"]
        assert isinstance(exc.value.__cause__, httpx.ConnectError)


class TestLLMFactory:
    def test_builds_client_from_settings(self) -> None:
        settings.gemini.api_key = "from-settings"
        settings.gemini.model = "gemini-pro-test"

        client = create_llm_client()

        assert isinstance(client, GeminiClient)
        assert client.model == "gemini-pro-test"
        assert client.endpoint.endswith("/models/gemini-pro-test:generateContent")

    @pytest.mark.parametrize("missing", [None, ""])
    def test_missing_api_key_raises_configuration_error(self, missing) -> None:
        settings.gemini.api_key = missing

        with pytest.raises(ConfigurationAppError) as exc:
            create_llm_client()

        assert exc.value.code == "upstream_api_key_missing"
        assert exc.value.message == "Server configuration error: API key is missing."
        assert exc.value.status_code == 500
