"""
Email input models and the per-call thread context derived from them.

EmailMessage is read-only input handed over by the ingestion layer; the
classification core never mutates it. ThreadContext and DirectionResult are
derived for one classification call and discarded afterwards.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shipment_intel.models.enums import Direction, DocumentType


class EmailMessage(BaseModel):
    """
    Email as received from the ingestion layer.

    `pdf_content` holds text extracted from attachments when available; the
    document-content matcher prefers it over anything in the email itself.
    """
    model_config = ConfigDict(frozen=True)

    email_id: Optional[str] = Field(default=None, description="Upstream identifier of the email")
    subject: str = Field(default="", description="Raw subject line including RE:/FW: prefixes")
    body_text: Optional[str] = Field(default=None, description="Plain-text body (may contain quoted history)")
    sender_email: str = Field(..., description="From address")
    sender_name: Optional[str] = Field(default=None, description="From display name")
    true_sender_email: Optional[str] = Field(
        default=None,
        description="Original sender resolved upstream (after unwrapping forwards)",
    )
    headers: dict[str, str] = Field(default_factory=dict, description="Raw headers (case-insensitive lookup)")
    attachment_filenames: list[str] = Field(default_factory=list, description="Attachment file names")
    pdf_content: Optional[str] = Field(default=None, description="Text extracted from attached documents")
    received_at: Optional[datetime] = Field(default=None, description="When the email was received")
    thread_document_types: list[DocumentType] = Field(
        default_factory=list,
        description="Document types already recorded earlier in the same thread",
    )


class ForwardChainEntry(BaseModel):
    """One sender found in a forwarded-message header block."""
    model_config = ConfigDict(frozen=True)

    email: str = Field(..., description="Lower-cased address")
    name: Optional[str] = Field(default=None, description="Display name if present")
    position: int = Field(..., ge=0, description="Order of first appearance in the body")


class ThreadContext(BaseModel):
    """Reply/forward structure of one email, derived from subject and body."""
    model_config = ConfigDict(frozen=True)

    is_reply: bool = False
    is_forward: bool = False
    thread_depth: int = Field(default=0, ge=0, description="Number of RE:/FW: prefixes stripped")
    has_nested_forwards: bool = False
    clean_subject: str = ""
    fresh_body: str = Field(default="", description="Text written in this email")
    quoted_body: str = Field(default="", description="Quoted / forwarded history")
    forward_chain: list[ForwardChainEntry] = Field(default_factory=list)
    original_sender: Optional[str] = None

    @property
    def is_response(self) -> bool:
        return self.is_reply or self.is_forward


class DirectionResult(BaseModel):
    """Output of the direction-detection capability."""
    model_config = ConfigDict(frozen=True)

    direction: Direction
    true_sender: str = Field(..., description="Address considered the real author")
    confidence: int = Field(..., ge=0, le=100)
