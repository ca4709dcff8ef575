"""
Classification result models.

Each matcher returns a small frozen match object; the orchestrator combines
them into one ClassificationResult which the caller persists.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shipment_intel.models.email_models import ThreadContext
from shipment_intel.models.enums import (
    Direction,
    DocumentCategory,
    DocumentMethod,
    DocumentSource,
    DocumentType,
    EmailCategory,
    EmailType,
    SenderCategory,
    Sentiment,
)


class DocumentMatch(BaseModel):
    """Best document-type match from one matcher."""
    model_config = ConfigDict(frozen=True)

    document_type: DocumentType
    confidence: int = Field(..., ge=0, le=100)
    source: DocumentSource
    matched_markers: list[str] = Field(default_factory=list)
    matched_pattern: Optional[str] = None


class EmailTypeMatch(BaseModel):
    """Best email-type match."""
    model_config = ConfigDict(frozen=True)

    email_type: EmailType
    category: EmailCategory
    confidence: int = Field(..., ge=0, le=100)
    source: DocumentSource
    matched_patterns: list[str] = Field(default_factory=list)


class SentimentResult(BaseModel):
    """Sentiment label plus the signed score it was derived from."""
    model_config = ConfigDict(frozen=True)

    sentiment: Sentiment
    score: int
    matched_patterns: list[str] = Field(default_factory=list)


class AIClassificationRequest(BaseModel):
    """Payload handed to the AI classification capability."""
    model_config = ConfigDict(frozen=True)

    subject: str
    sender: str
    true_sender: Optional[str] = None
    body_preview: str = ""
    attachment_filenames: list[str] = Field(default_factory=list)


class AIClassificationResult(BaseModel):
    """Normalized answer of the AI classification capability."""
    model_config = ConfigDict(frozen=True)

    sender_category: SenderCategory = SenderCategory.UNKNOWN
    email_type: EmailType = EmailType.UNKNOWN
    email_category: EmailCategory = EmailCategory.UNKNOWN
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: int = Field(default=70, ge=0, le=100)
    reasoning: str = "AI classification"


class ClassificationResult(BaseModel):
    """
    Complete classification of one email.

    Always carries exactly one document type and one email type; either may be
    UNKNOWN. `needs_manual_review` is set only when BOTH confidences are below
    the pattern threshold.
    """

    # Document (what is attached)
    document_type: DocumentType
    document_confidence: int = Field(..., ge=0, le=100)
    document_method: DocumentMethod
    document_source: DocumentSource
    document_matched_markers: list[str] = Field(default_factory=list)
    document_matched_pattern: Optional[str] = None
    document_category: DocumentCategory = DocumentCategory.OTHER

    # Email type (why it was sent)
    email_type: EmailType
    email_category: EmailCategory
    email_type_confidence: int = Field(..., ge=0, le=100)
    email_matched_patterns: list[str] = Field(default_factory=list)

    # Sender & sentiment
    sender_category: SenderCategory
    sentiment: Sentiment
    sentiment_score: int = 0
    sentiment_patterns: list[str] = Field(default_factory=list)

    # Direction
    direction: Direction
    true_sender: str
    direction_confidence: int = Field(..., ge=0, le=100)

    # Combined
    workflow_hint: Optional[str] = Field(
        default=None,
        description="Workflow state the document type would normally trigger",
    )
    thread_context: ThreadContext
    is_thread_reply: bool = False
    is_urgent: bool = False
    needs_manual_review: bool = False
    used_ai_fallback: bool = False
    ai_reasoning: Optional[str] = None
