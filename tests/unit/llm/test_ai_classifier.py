"""Unit tests for the AI classification service and its answer normalization."""

import pytest

from shipment_intel.config import DEFAULT_TEMPLATES_DIR
from shipment_intel.llm.ai_classifier import AIClassificationService, extract_json_object, normalize_ai_result
from shipment_intel.llm.exceptions import AIUnavailableError, LLMResponseParseError, LLMTimeoutError
from shipment_intel.llm.prompt_builder import PromptBuilder
from shipment_intel.models.classification_models import AIClassificationRequest
from shipment_intel.models.enums import EmailCategory, EmailType, SenderCategory, Sentiment
from shipment_intel.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


@pytest.fixture
def prompt_builder():
    return PromptBuilder(templates_dir=DEFAULT_TEMPLATES_DIR)


@pytest.fixture
def ai_request():
    return AIClassificationRequest(
        subject="Vessel arrival",
        sender="noreply@maersk.com",
        body_preview="The vessel has arrived at the port of discharge.",
    )


@pytest.fixture
def service(mock_ollama_client, prompt_builder):
    return AIClassificationService(client=mock_ollama_client, prompt_builder=prompt_builder)


class TestExtractJsonObject:

    def test_object_inside_prose(self):
        assert extract_json_object('Sure! {"email_type": "query"} Hope this helps.') == {"email_type": "query"}

    def test_nested_object(self):
        assert extract_json_object('{"a": {"b": 1}}') == {"a": {"b": 1}}

    @pytest.mark.parametrize("content", ["", None, "no json here", "[1, 2]"])
    def test_missing_object(self, content):
        with pytest.raises(LLMResponseParseError) as exc_info:
            extract_json_object(content)
        assert exc_info.value.message == "No JSON object in model response"

    def test_invalid_json(self):
        with pytest.raises(LLMResponseParseError) as exc_info:
            extract_json_object('{"email_type": query}')
        assert exc_info.value.message == "Invalid JSON in model response"
        assert "preview" in exc_info.value.details


class TestNormalizeAIResult:

    def test_snake_case(self):
        result = normalize_ai_result({
            "sender_category": "carrier",
            "email_type": "arrival_update",
            "email_category": "status",
            "sentiment": "neutral",
            "confidence": 88,
            "reasoning": " Carrier arrival update ",
        })
        assert result.sender_category == SenderCategory.CARRIER
        assert result.email_type == EmailType.ARRIVAL_UPDATE
        assert result.email_category == EmailCategory.STATUS
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.confidence == 88
        assert result.reasoning == "Carrier arrival update"

    def test_camel_case_and_mixed_case_values(self):
        result = normalize_ai_result({
            "senderCategory": "Carrier",
            "emailType": "ARRIVAL_UPDATE",
            "emailCategory": "Status",
            "sentiment": "URGENT",
            "confidence": "92.4",
        })
        assert result.sender_category == SenderCategory.CARRIER
        assert result.email_type == EmailType.ARRIVAL_UPDATE
        assert result.email_category == EmailCategory.STATUS
        assert result.sentiment == Sentiment.URGENT
        assert result.confidence == 92
        assert result.reasoning == "AI classification"

    def test_invalid_values_fall_back(self):
        result = normalize_ai_result({
            "sender_category": "pirate",
            "email_type": 42,
            "email_category": "misc",
            "sentiment": "angry",
        })
        assert result.sender_category == SenderCategory.UNKNOWN
        assert result.email_type == EmailType.UNKNOWN
        assert result.email_category == EmailCategory.UNKNOWN
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.confidence == 70

    @pytest.mark.parametrize("raw,expected", [
        (250, 100),
        (-5, 0),
        (True, 70),
        ("high", 70),
        (None, 70),
        (64.6, 65),
    ])
    def test_confidence_is_clamped(self, raw, expected):
        assert normalize_ai_result({"confidence": raw}).confidence == expected

    def test_default_confidence_is_configurable(self):
        assert normalize_ai_result({}, default_confidence=55).confidence == 55

    def test_company_alias_means_internal(self):
        assert normalize_ai_result({"sender_category": "Intoglo"}).sender_category == SenderCategory.INTERNAL


class TestAIClassificationService:

    @pytest.mark.asyncio
    async def test_classify(self, service, mock_ollama_client, ai_request):
        result = await service.classify(ai_request)

        assert result.sender_category == SenderCategory.CARRIER
        assert result.email_type == EmailType.ARRIVAL_UPDATE
        assert result.confidence == 88

        llm_request = mock_ollama_client.generate.await_args.args[0]
        assert isinstance(llm_request, LLMGenerationRequest)
        assert llm_request.json_mode is True
        assert llm_request.model == "qwen2.5:7b"
        assert "Subject: Vessel arrival" in llm_request.prompt
        assert "- arrival_update" in llm_request.system

    @pytest.mark.asyncio
    async def test_client_error_becomes_unavailable(self, service, mock_ollama_client, ai_request):
        timeout = LLMTimeoutError("Request timeout after 30s", details={"attempt": 2})
        mock_ollama_client.generate.side_effect = timeout

        with pytest.raises(AIUnavailableError) as exc_info:
            await service.classify(ai_request)

        assert exc_info.value.message == "AI classification failed: Request timeout after 30s"
        assert exc_info.value.cause is timeout

    @pytest.mark.asyncio
    async def test_unparseable_answer_becomes_unavailable(self, service, mock_ollama_client, ai_request):
        mock_ollama_client.generate.return_value = LLMGenerationResponse(
            content="I think this is an arrival notice.",
            model_version="qwen2.5:7b",
            finish_reason="stop",
            latency_ms=500,
        )

        with pytest.raises(AIUnavailableError) as exc_info:
            await service.classify(ai_request)

        assert isinstance(exc_info.value.cause, LLMResponseParseError)

    @pytest.mark.asyncio
    async def test_disabled(self, mock_ollama_client, prompt_builder, ai_request):
        service = AIClassificationService(mock_ollama_client, prompt_builder, enabled=False)

        with pytest.raises(AIUnavailableError):
            await service.classify(ai_request)

        mock_ollama_client.generate.assert_not_awaited()

    def test_without_client_is_disabled(self, prompt_builder):
        assert AIClassificationService(None, prompt_builder).is_enabled() is False

    def test_from_settings(self, test_settings, mock_ollama_client):
        test_settings.AI_DEFAULT_CONFIDENCE = 60
        service = AIClassificationService.from_settings(test_settings, mock_ollama_client)

        assert service.is_enabled() is True
        assert service.default_confidence == 60
        assert service.prompt_builder.default_model == "qwen2.5:7b"
