"""
Ollama client for the AI classification fallback.

Communicates with the Ollama API using httpx AsyncClient:
- POST /api/generate in JSON mode, non-streaming
- Connection pooling through one persistent AsyncClient
- Single attempt by default; callers opt into retries (exponential backoff
  on network errors and 5xx) with max_retries / OLLAMA_MAX_RETRIES
- GET /api/tags for health checks and model listing
"""

import asyncio
import json
import time
from typing import Optional

import httpx
import structlog

from shipment_intel.llm.base_client import BaseLLMClient
from shipment_intel.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from shipment_intel.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from shipment_intel.monitoring.metrics import llm_latency_seconds, llm_tokens_total


logger = structlog.get_logger(__name__)


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific LLM client.

    `transport` is passed through to httpx.AsyncClient; tests use
    httpx.MockTransport to answer without a server.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: int = 30,
        max_retries: int = 1,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_backoff_base: float = 2.0,
        **kwargs
    ):
        super().__init__(base_url, timeout, max_retries, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport
        self.retry_backoff_base = retry_backoff_base

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "OllamaClient":
        return cls(
            base_url=settings.OLLAMA_BASE_URL,
            timeout=settings.OLLAMA_TIMEOUT,
            max_retries=settings.OLLAMA_MAX_RETRIES,
            **kwargs
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    @staticmethod
    def build_payload(request: LLMGenerationRequest) -> dict:
        """
        Ollama /api/generate payload:

        {
            "model": "qwen2.5:7b",
            "prompt": "...",
            "system": "...",
            "stream": false,
            "format": "json",
            "options": {"temperature": 0.1, "num_predict": 512}
        }
        """
        payload = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            }
        }
        if request.system:
            payload["system"] = request.system
        if request.json_mode:
            payload["format"] = "json"
        return payload

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_backoff_base ** attempt
        logger.info("Retrying Ollama request", reason=reason, attempt=attempt, backoff_seconds=delay)
        await asyncio.sleep(delay)

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        start_time = time.time()
        payload = self.build_payload(request)

        logger.info(
            "Sending generation request to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens
        )

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                client = await self._get_client()
                response = await client.post("/api/generate", json=payload, timeout=self.timeout)
                response.raise_for_status()
                response_data = response.json()
            except httpx.TimeoutException as e:
                logger.warning("Ollama request timeout", attempt=attempt, timeout=self.timeout, error=str(e))
                last_error = LLMTimeoutError(
                    f"Request timeout after {self.timeout}s",
                    details={"attempt": attempt, "timeout": self.timeout}
                )
                if attempt < self.max_retries:
                    await self._backoff(attempt, "timeout")
                    continue
                raise last_error
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                logger.error("Ollama HTTP error", status_code=status_code, attempt=attempt)
                if status_code == 404:
                    raise LLMModelNotAvailableError(
                        f"Model not found: {request.model}",
                        details={"model": request.model, "status": status_code}
                    )
                last_error = LLMGenerationError(
                    f"Ollama {'server' if status_code >= 500 else 'client'} error: {status_code}",
                    details={"status": status_code, "error": e.response.text[:500]}
                )
                if status_code >= 500 and attempt < self.max_retries:
                    await self._backoff(attempt, "server_error")
                    continue
                raise last_error
            except httpx.TransportError as e:
                logger.warning("Ollama network error", attempt=attempt, error=str(e))
                last_error = LLMConnectionError(
                    f"Network error: {e}",
                    details={"attempt": attempt, "error_type": type(e).__name__}
                )
                if attempt < self.max_retries:
                    await self._backoff(attempt, "network_error")
                    continue
                raise last_error
            except json.JSONDecodeError as e:
                raise LLMGenerationError(
                    "Invalid JSON response from Ollama",
                    details={"parse_error": str(e)}
                )

            return self._to_response(request, response_data, start_time, attempt)

        if last_error:
            raise last_error
        raise LLMGenerationError("Generation failed after all retries")

    def _to_response(
        self,
        request: LLMGenerationRequest,
        response_data: dict,
        start_time: float,
        attempt: int,
    ) -> LLMGenerationResponse:
        latency_ms = int((time.time() - start_time) * 1000)

        content = response_data.get("response", "")
        if not content:
            llm_latency_seconds.labels(model=request.model, success="false").observe(latency_ms / 1000.0)
            raise LLMGenerationError("Empty response from Ollama", details={"done": response_data.get("done")})

        model_version = response_data.get("model", request.model)
        finish_reason = response_data.get("done_reason") or ("stop" if response_data.get("done") else "incomplete")
        prompt_tokens = response_data.get("prompt_eval_count")
        completion_tokens = response_data.get("eval_count")

        logger.info(
            "Ollama generation successful",
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            finish_reason=finish_reason,
            attempt=attempt
        )

        llm_latency_seconds.labels(model=model_version, success="true").observe(latency_ms / 1000.0)
        if prompt_tokens:
            llm_tokens_total.labels(model=model_version, token_type="prompt").inc(prompt_tokens)
        if completion_tokens:
            llm_tokens_total.labels(model=model_version, token_type="completion").inc(completion_tokens)

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            finish_reason=finish_reason,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
            raw_metadata={
                "total_duration": response_data.get("total_duration"),
                "load_duration": response_data.get("load_duration"),
                "eval_duration": response_data.get("eval_duration"),
            }
        )

    async def health_check(self) -> bool:
        """GET /api/tags; True if the server answers."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def list_models(self) -> list[str]:
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=10.0)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            logger.error("Failed to list models", error=str(e))
            raise LLMConnectionError(f"Failed to list models: {e}", details={"error": str(e)})
        return [m["name"] for m in data.get("models", [])]

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
