"""
AI classification service (fallback for low-confidence pattern results).

Flow:
1. PromptBuilder renders the request into an LLMGenerationRequest
2. BaseLLMClient generates text
3. The first {...} block is parsed as JSON
4. Every field is normalized against the enums; invalid values become
   unknown (sentiment: neutral) and confidence is clamped to 0-100

Any failure along the way raises AIUnavailableError so the caller can keep
its pattern-only result.
"""

import json
import re
from typing import Any, Optional

import structlog

from shipment_intel.llm.base_client import BaseLLMClient
from shipment_intel.llm.exceptions import AIUnavailableError, LLMClientError, LLMResponseParseError
from shipment_intel.llm.prompt_builder import PromptBuilder
from shipment_intel.models.classification_models import AIClassificationRequest, AIClassificationResult
from shipment_intel.models.enums import EmailCategory, EmailType, SenderCategory, Sentiment


logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r'\{[\s\S]*\}')

# Older prompts named the internal team after the company domain
SENDER_CATEGORY_ALIASES = {
    "intoglo": SenderCategory.INTERNAL,
}


def extract_json_object(content: str) -> dict:
    """Parse the outermost {...} block of a model answer."""
    match = _JSON_OBJECT.search(content or "")
    if not match:
        raise LLMResponseParseError("No JSON object in model response", details={"preview": (content or "")[:200]})
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMResponseParseError(
            "Invalid JSON in model response",
            details={"error": str(e), "preview": match.group(0)[:200]}
        )
    if not isinstance(data, dict):
        raise LLMResponseParseError("Model response is not a JSON object", details={"type": type(data).__name__})
    return data


def _field(data: dict, snake: str, camel: str) -> Any:
    return data.get(snake, data.get(camel))


def _enum_value(enum_cls, raw: Any, default):
    if not isinstance(raw, str):
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        return default


def _confidence(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, (int, float)):
        return max(0, min(100, int(round(raw))))
    if isinstance(raw, str):
        try:
            return max(0, min(100, int(round(float(raw.strip())))))
        except ValueError:
            return default
    return default


def normalize_ai_result(data: dict, default_confidence: int = 70) -> AIClassificationResult:
    """
    Coerce a raw model answer into an AIClassificationResult.

    Accepts snake_case or camelCase keys.
    """
    raw_sender = _field(data, "sender_category", "senderCategory")
    sender_category = SENDER_CATEGORY_ALIASES.get(str(raw_sender).strip().lower()) if raw_sender else None
    if sender_category is None:
        sender_category = _enum_value(SenderCategory, raw_sender, SenderCategory.UNKNOWN)

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = "AI classification"

    return AIClassificationResult(
        sender_category=sender_category,
        email_type=_enum_value(EmailType, _field(data, "email_type", "emailType"), EmailType.UNKNOWN),
        email_category=_enum_value(
            EmailCategory, _field(data, "email_category", "emailCategory"), EmailCategory.UNKNOWN
        ),
        sentiment=_enum_value(Sentiment, data.get("sentiment"), Sentiment.NEUTRAL),
        confidence=_confidence(data.get("confidence"), default_confidence),
        reasoning=reasoning.strip(),
    )


class AIClassificationService:
    """
    Classifies an email with an LLM.

    `enabled=False` or a missing client makes every call raise
    AIUnavailableError, which the orchestrator reports as "unavailable".
    """

    def __init__(
        self,
        client: Optional[BaseLLMClient],
        prompt_builder: PromptBuilder,
        enabled: bool = True,
        default_confidence: int = 70,
    ):
        self.client = client
        self.prompt_builder = prompt_builder
        self.enabled = enabled and client is not None
        self.default_confidence = default_confidence

    @classmethod
    def from_settings(cls, settings, client: Optional[BaseLLMClient]) -> "AIClassificationService":
        return cls(
            client=client,
            prompt_builder=PromptBuilder.from_settings(settings),
            enabled=settings.AI_FALLBACK_ENABLED,
            default_confidence=settings.AI_DEFAULT_CONFIDENCE,
        )

    def is_enabled(self) -> bool:
        return self.enabled

    async def classify(self, request: AIClassificationRequest) -> AIClassificationResult:
        """
        Raises:
            AIUnavailableError: disabled, client failure, or unparseable answer
        """
        if not self.enabled:
            raise AIUnavailableError("AI classification is disabled")

        llm_request, metadata = self.prompt_builder.build_full_request(request)

        try:
            response = await self.client.generate(llm_request)
            data = extract_json_object(response.content)
        except LLMClientError as e:
            logger.warning(
                "AI classification failed",
                error=str(e),
                error_type=type(e).__name__,
                model=llm_request.model
            )
            raise AIUnavailableError(f"AI classification failed: {e.message}", cause=e) from e

        result = normalize_ai_result(data, default_confidence=self.default_confidence)

        logger.info(
            "AI classification completed",
            model=response.model_version,
            latency_ms=response.latency_ms,
            sender_category=result.sender_category.value,
            email_type=result.email_type.value,
            confidence=result.confidence,
            truncation_applied=metadata["truncation_applied"]
        )
        return result
