import json

import httpx
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from rhizome_map.completion import (
    ChatModelCompletionClient,
    RelayCompletionClient,
    build_chat_model,
)
from rhizome_map.config import Settings
from rhizome_map.exceptions import CompletionError


def _relay(handler) -> RelayCompletionClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RelayCompletionClient("http://relay.test/", client=client)


@pytest.mark.asyncio
class TestRelayCompletionClient:
    async def test_success_returns_response_field(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "model text"})

        relay = _relay(handler)
        assert await relay.complete("sys", "usr") == "model text"
        assert captured["url"] == "http://relay.test/api/claude"
        assert captured["body"] == {"system": "sys", "message": "usr"}

    async def test_error_status_surfaces_relay_error_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "API key not configured on server."})

        with pytest.raises(CompletionError) as exception_info:
            await _relay(handler).complete("sys", "usr")

        assert exception_info.value.status_code == 500
        assert str(exception_info.value) == "API Error: API key not configured on server."

    async def test_error_status_with_plain_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(CompletionError) as exception_info:
            await _relay(handler).complete("sys", "usr")
        assert str(exception_info.value) == "API Error (502): Bad Gateway"

    async def test_missing_response_field_is_a_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"text": "wrong key"})

        with pytest.raises(CompletionError):
            await _relay(handler).complete("sys", "usr")

    async def test_network_failure_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CompletionError) as exception_info:
            await _relay(handler).complete("sys", "usr")
        assert isinstance(exception_info.value.__cause__, httpx.ConnectError)

    async def test_health_returns_decoded_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/health"
            return httpx.Response(200, json={"apiKeyConfigured": True, "timestamp": "2026-10-19T00:00:00Z"})

        assert (await _relay(handler).health())["apiKeyConfigured"] is True


class _FailingModel:
    async def ainvoke(self, messages):
        raise RuntimeError("rate limited")


@pytest.mark.asyncio
async def test_chat_model_client_returns_text():
    client = ChatModelCompletionClient(FakeListChatModel(responses=["hello from the model"]))
    assert await client.complete("sys", "usr") == "hello from the model"


@pytest.mark.asyncio
async def test_chat_model_failure_becomes_completion_error():
    client = ChatModelCompletionClient(_FailingModel())
    with pytest.raises(CompletionError) as exception_info:
        await client.complete("sys", "usr")
    assert "rate limited" in str(exception_info.value)


def test_list_content_is_flattened():
    content = [{"type": "text", "text": "first"}, "second"]
    assert ChatModelCompletionClient._to_text(content) == "first\nsecond"


def test_non_text_blocks_and_scalars_are_stringified():
    content = [{"type": "image_url", "image_url": "x"}, {"type": "text", "text": "caption"}]
    assert ChatModelCompletionClient._to_text(content) == "{'type': 'image_url', 'image_url': 'x'}\ncaption"
    assert ChatModelCompletionClient._to_text(42) == "42"
    assert ChatModelCompletionClient._to_text([]) == ""


def test_build_chat_model_requires_api_key():
    with pytest.raises(RuntimeError):
        build_chat_model(Settings(openai_api_key=None))
