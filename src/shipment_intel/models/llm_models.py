"""
LLM request/response models.

Internal to the AI fallback: the classification service builds an
LLMGenerationRequest, a BaseLLMClient implementation turns it into a provider
call and returns an LLMGenerationResponse. Business-level meaning lives in
AIClassificationResult, not here.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class LLMGenerationRequest(BaseModel):
    """Provider-independent generation request."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="User prompt (rendered template)")
    system: Optional[str] = Field(default=None, description="System prompt")
    model: str = Field(..., description="Model name, e.g. 'qwen2.5:7b'")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, ge=1, le=8192)
    json_mode: bool = Field(default=True, description="Ask the server for a JSON object")


class LLMGenerationResponse(BaseModel):
    """Raw generated text plus call metadata for logging."""
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text (expected to contain a JSON object)")
    model_version: str
    finish_reason: str = Field(..., description="'stop', 'length', ...")
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    latency_ms: int = Field(..., ge=0)
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def usage_tokens(self) -> Optional[int]:
        if self.prompt_tokens is None and self.completion_tokens is None:
            return None
        return (self.prompt_tokens or 0) + (self.completion_tokens or 0)
