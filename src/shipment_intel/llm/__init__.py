"""
LLM layer for the AI classification fallback.

Components:
- BaseLLMClient / OllamaClient: inference over HTTP
- PromptBuilder: Jinja2 prompt rendering
- AIClassificationService: prompt -> generation -> normalized result
"""

from shipment_intel.llm.ai_classifier import AIClassificationService, extract_json_object, normalize_ai_result
from shipment_intel.llm.base_client import BaseLLMClient
from shipment_intel.llm.exceptions import (
    AIUnavailableError,
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMResponseParseError,
    LLMTimeoutError,
)
from shipment_intel.llm.ollama_client import OllamaClient
from shipment_intel.llm.prompt_builder import PromptBuilder

__all__ = [
    "AIClassificationService",
    "extract_json_object",
    "normalize_ai_result",
    "BaseLLMClient",
    "OllamaClient",
    "PromptBuilder",
    "AIUnavailableError",
    "LLMClientError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMModelNotAvailableError",
    "LLMResponseParseError",
    "LLMTimeoutError",
]
