"""Unit tests for OllamaClient against an httpx mock transport."""

import json

import httpx
import pytest

from shipment_intel.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from shipment_intel.llm.ollama_client import OllamaClient
from shipment_intel.models.llm_models import LLMGenerationRequest


GENERATE_OK = {
    "model": "qwen2.5:7b",
    "response": '{"sender_category": "carrier", "email_type": "arrival_update", "confidence": 88}',
    "done": True,
    "done_reason": "stop",
    "prompt_eval_count": 412,
    "eval_count": 57,
    "total_duration": 1200000000,
}


@pytest.fixture
def llm_request():
    return LLMGenerationRequest(
        prompt="EMAIL:\nSubject: Vessel arrival",
        system="Classify the email.",
        model="qwen2.5:7b",
    )


def make_client(handler, max_retries=2):
    return OllamaClient(
        base_url="http://ollama.test:11434/",
        timeout=5,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
        retry_backoff_base=0,
    )


class TestBuildPayload:

    def test_json_mode_with_system(self, llm_request):
        payload = OllamaClient.build_payload(llm_request)

        assert payload == {
            "model": "qwen2.5:7b",
            "prompt": "EMAIL:\nSubject: Vessel arrival",
            "system": "Classify the email.",
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.1, "num_predict": 512},
        }

    def test_plain_text_without_system(self):
        payload = OllamaClient.build_payload(LLMGenerationRequest(prompt="hi", model="m", json_mode=False))

        assert "format" not in payload
        assert "system" not in payload


class TestGenerate:

    @pytest.mark.asyncio
    async def test_success(self, llm_request):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=GENERATE_OK)

        async with make_client(handler) as client:
            response = await client.generate(llm_request)

        assert response.content == GENERATE_OK["response"]
        assert response.model_version == "qwen2.5:7b"
        assert response.finish_reason == "stop"
        assert response.prompt_tokens == 412
        assert response.completion_tokens == 57
        assert response.usage_tokens == 469
        assert response.raw_metadata["total_duration"] == 1200000000

        assert seen[0].url.path == "/api/generate"
        assert json.loads(seen[0].content)["format"] == "json"

    @pytest.mark.asyncio
    async def test_finish_reason_from_done_flag(self, llm_request):
        body = {"response": "{}", "done": False}
        async with make_client(lambda request: httpx.Response(200, json=body)) as client:
            response = await client.generate(llm_request)

        assert response.finish_reason == "incomplete"
        assert response.model_version == llm_request.model

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, llm_request):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, text="overloaded")
            return httpx.Response(200, json=GENERATE_OK)

        async with make_client(handler) as client:
            response = await client.generate(llm_request)

        assert len(calls) == 2
        assert response.content == GENERATE_OK["response"]

    @pytest.mark.asyncio
    async def test_server_error_after_retries(self, llm_request):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, text="boom")

        async with make_client(handler) as client:
            with pytest.raises(LLMGenerationError) as exc_info:
                await client.generate(llm_request)

        assert len(calls) == 2
        assert exc_info.value.details["status"] == 500

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, llm_request):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, text="bad request")

        async with make_client(handler) as client:
            with pytest.raises(LLMGenerationError) as exc_info:
                await client.generate(llm_request)

        assert len(calls) == 1
        assert exc_info.value.message == "Ollama client error: 400"

    @pytest.mark.asyncio
    async def test_model_not_found(self, llm_request):
        async with make_client(lambda request: httpx.Response(404, text="model not found")) as client:
            with pytest.raises(LLMModelNotAvailableError):
                await client.generate(llm_request)

    @pytest.mark.asyncio
    async def test_timeout(self, llm_request):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(LLMTimeoutError) as exc_info:
                await client.generate(llm_request)

        assert exc_info.value.details == {"attempt": 2, "timeout": 5}

    @pytest.mark.asyncio
    async def test_connection_error(self, llm_request):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler, max_retries=1) as client:
            with pytest.raises(LLMConnectionError) as exc_info:
                await client.generate(llm_request)

        assert not isinstance(exc_info.value, LLMTimeoutError)
        assert exc_info.value.details["error_type"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_empty_response(self, llm_request):
        async with make_client(lambda request: httpx.Response(200, json={"response": "", "done": True})) as client:
            with pytest.raises(LLMGenerationError) as exc_info:
                await client.generate(llm_request)

        assert exc_info.value.message == "Empty response from Ollama"

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, llm_request):
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(LLMGenerationError) as exc_info:
                await client.generate(llm_request)

        assert exc_info.value.message == "Invalid JSON response from Ollama"


class TestTags:

    @pytest.mark.asyncio
    async def test_health_check(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        async with make_client(handler) as client:
            assert await client.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_never_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_list_models(self):
        body = {"models": [{"name": "qwen2.5:7b"}, {"name": "llama3.1:8b"}]}
        async with make_client(lambda request: httpx.Response(200, json=body)) as client:
            assert await client.list_models() == ["qwen2.5:7b", "llama3.1:8b"]

    @pytest.mark.asyncio
    async def test_list_models_failure(self):
        async with make_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(LLMConnectionError):
                await client.list_models()


def test_base_url_is_normalized():
    client = OllamaClient(base_url="http://ollama.test:11434/")
    assert client.base_url == "http://ollama.test:11434"
    assert repr(client) == "OllamaClient(base_url=http://ollama.test:11434, timeout=30s)"


class TestRetryPolicy:

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self, llm_request):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="overloaded")

        client = OllamaClient(base_url="http://ollama.test:11434", transport=httpx.MockTransport(handler))
        async with client:
            with pytest.raises(LLMGenerationError):
                await client.generate(llm_request)

        assert len(calls) == 1

    def test_from_settings(self, test_settings):
        test_settings.OLLAMA_MAX_RETRIES = 3

        client = OllamaClient.from_settings(test_settings)

        assert client.base_url == "http://localhost:11434"
        assert client.timeout == 5
        assert client.max_retries == 3

    def test_retries_are_opt_in(self, test_settings):
        assert test_settings.OLLAMA_MAX_RETRIES == 1
        assert OllamaClient.from_settings(test_settings).max_retries == 1
