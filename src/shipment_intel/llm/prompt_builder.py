"""
Prompt builder for the AI classification fallback.

Responsible for:
- Loading and rendering Jinja2 templates (system + user prompts)
- Truncating the email body preview at a sentence boundary
- Rendering the allowed category values from the enums
- Constructing a complete LLMGenerationRequest
"""

from pathlib import Path
from typing import Optional

import structlog
from jinja2 import Environment, FileSystemLoader

from shipment_intel.llm.text_utils import collapse_whitespace, truncate_at_sentence_boundary
from shipment_intel.models.classification_models import AIClassificationRequest
from shipment_intel.models.enums import EmailCategory, EmailType
from shipment_intel.models.llm_models import LLMGenerationRequest


logger = structlog.get_logger(__name__)


class PromptBuilder:
    """Build AI classification prompts from AIClassificationRequest objects."""

    def __init__(
        self,
        templates_dir: Path,
        body_preview_limit: int = 1000,
        default_model: str = "qwen2.5:7b",
        default_temperature: float = 0.1,
        default_max_tokens: int = 512,
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing system_prompt.txt and user_prompt_template.txt
            body_preview_limit: Max body characters sent to the model
            default_model: Default model name
            default_temperature: Default temperature
            default_max_tokens: Default max tokens
        """
        self.templates_dir = Path(templates_dir)
        self.body_preview_limit = body_preview_limit
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False
        )

        try:
            self.system_template = self.jinja_env.get_template("system_prompt.txt")
            self.user_template = self.jinja_env.get_template("user_prompt_template.txt")
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e), templates_dir=str(self.templates_dir))
            raise

        logger.info(
            "PromptBuilder initialized",
            templates_dir=str(self.templates_dir),
            body_preview_limit=body_preview_limit
        )

    @classmethod
    def from_settings(cls, settings) -> "PromptBuilder":
        return cls(
            templates_dir=Path(settings.PROMPT_TEMPLATES_DIR),
            body_preview_limit=settings.AI_BODY_PREVIEW_LIMIT,
            default_model=settings.OLLAMA_MODEL,
            default_temperature=settings.LLM_TEMPERATURE,
            default_max_tokens=settings.LLM_MAX_TOKENS,
        )

    def build_system_prompt(self) -> str:
        """System prompt: the classification instructions and allowed values."""
        return self.system_template.render(
            email_types=[t.value for t in EmailType],
            email_categories=[c.value for c in EmailCategory],
        ).strip()

    def build_user_prompt(self, request: AIClassificationRequest) -> tuple[str, dict]:
        """
        Render the email under classification.

        Returns:
            Tuple of (rendered_prompt, metadata_dict)
        """
        original_body = collapse_whitespace(request.body_preview or "")
        body_preview = truncate_at_sentence_boundary(original_body, self.body_preview_limit)

        rendered = self.user_template.render(
            subject=request.subject or "(no subject)",
            sender=request.sender or "(unknown)",
            true_sender=request.true_sender or "(same as sender)",
            attachments=", ".join(request.attachment_filenames) or "(none)",
            body_preview=body_preview or "(empty)",
        ).strip()

        metadata = {
            "truncation_applied": len(body_preview) < len(original_body),
            "original_body_length": len(original_body),
            "body_preview_length": len(body_preview),
            "attachments_count": len(request.attachment_filenames),
        }
        logger.debug("User prompt built", **metadata, prompt_length=len(rendered))

        return rendered, metadata

    def build_full_request(
        self,
        request: AIClassificationRequest,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> tuple[LLMGenerationRequest, dict]:
        system_prompt = self.build_system_prompt()
        user_prompt, user_metadata = self.build_user_prompt(request)

        final_model = model or self.default_model
        final_temperature = temperature if temperature is not None else self.default_temperature
        final_max_tokens = max_tokens or self.default_max_tokens

        llm_request = LLMGenerationRequest(
            prompt=user_prompt,
            system=system_prompt,
            model=final_model,
            temperature=final_temperature,
            max_tokens=final_max_tokens,
            json_mode=True,
        )

        metadata = {
            **user_metadata,
            "model": final_model,
            "temperature": final_temperature,
            "max_tokens": final_max_tokens,
            "system_prompt_length": len(system_prompt),
            "user_prompt_length": len(user_prompt),
        }
        return llm_request, metadata
