"""
Shipment-side models: entity extractions, linking keys, the external shipment
view and the decision records produced by the linking service.

Shipments are owned by an upstream collaborator. The core reads them through
`ShipmentReader` and may only fill empty fields / upgrade status through
`ShipmentEnrichmentWriter`.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shipment_intel.models.enums import (
    Direction,
    DocumentType,
    EmailType,
    LinkOutcome,
    LinkStrategy,
    LinkType,
    SenderCategory,
    ShipmentStatus,
)


class EntityExtraction(BaseModel):
    """One entity extracted upstream from an email or its attachments."""
    model_config = ConfigDict(frozen=True)

    entity_type: str = Field(..., description="EntityType value (kept open for unknown types)")
    entity_value: str
    entity_normalized: Optional[str] = None
    confidence: int = Field(default=0, ge=0, le=100)

    @property
    def value(self) -> str:
        """Normalized value when available, raw value otherwise."""
        return self.entity_normalized or self.entity_value


class LinkingKeys(BaseModel):
    """Candidate identifiers of one email, in extraction order, de-duplicated."""
    model_config = ConfigDict(frozen=True)

    booking_numbers: list[str] = Field(default_factory=list)
    bl_numbers: list[str] = Field(default_factory=list)
    container_numbers: list[str] = Field(default_factory=list)
    reference_numbers: list[str] = Field(default_factory=list)
    vessel_name: Optional[str] = None
    voyage_number: Optional[str] = None

    def has_identifiers(self) -> bool:
        """Only booking, BL and container numbers can resolve a shipment."""
        return bool(self.booking_numbers or self.bl_numbers or self.container_numbers)

    def describe(self) -> str:
        parts = []
        if self.booking_numbers:
            parts.append(f"booking: {self.booking_numbers[0]}")
        if self.bl_numbers:
            parts.append(f"BL: {self.bl_numbers[0]}")
        if self.container_numbers:
            parts.append(f"container: {self.container_numbers[0]}")
        return ", ".join(parts) or "unknown"


class Shipment(BaseModel):
    """Read-only view of an externally owned shipment."""

    id: str
    booking_number: Optional[str] = None
    bl_number: Optional[str] = None
    container_number_primary: Optional[str] = None
    container_numbers: list[str] = Field(default_factory=list)

    status: ShipmentStatus = ShipmentStatus.DRAFT
    workflow_state: Optional[str] = None
    workflow_phase: Optional[str] = None

    vessel_name: Optional[str] = None
    voyage_number: Optional[str] = None
    port_of_loading: Optional[str] = None
    port_of_loading_code: Optional[str] = None
    port_of_discharge: Optional[str] = None
    port_of_discharge_code: Optional[str] = None
    place_of_receipt: Optional[str] = None
    place_of_delivery: Optional[str] = None

    etd: Optional[datetime] = None
    eta: Optional[datetime] = None
    atd: Optional[datetime] = None
    ata: Optional[datetime] = None
    si_cutoff: Optional[datetime] = None
    vgm_cutoff: Optional[datetime] = None
    cargo_cutoff: Optional[datetime] = None
    gate_cutoff: Optional[datetime] = None

    commodity_description: Optional[str] = None
    total_weight: Optional[float] = None
    weight_unit: Optional[str] = None
    total_volume: Optional[float] = None
    volume_unit: Optional[str] = None
    incoterms: Optional[str] = None
    freight_terms: Optional[str] = None

    created_at: Optional[datetime] = None


class EmailRecord(BaseModel):
    """Metadata of a stored email needed for link scoring."""
    model_config = ConfigDict(frozen=True)

    email_id: str
    sender_email: Optional[str] = None
    true_sender_email: Optional[str] = None
    subject: str = ""
    received_at: Optional[datetime] = None
    thread_id: Optional[str] = None


class StoredClassification(BaseModel):
    """Classification fields of an email as persisted by the caller."""
    model_config = ConfigDict(frozen=True)

    document_type: DocumentType = DocumentType.UNKNOWN
    email_type: EmailType = EmailType.UNKNOWN
    sender_category: SenderCategory = SenderCategory.UNKNOWN
    direction: Direction = Direction.INBOUND
    subject: str = ""


class MatchedIdentifier(BaseModel):
    """One identifier value that resolved to a shipment."""
    model_config = ConfigDict(frozen=True)

    link_type: LinkType
    value: str

    def __str__(self) -> str:
        return f"{self.link_type.value}:{self.value}"


class ThreadAuthority(BaseModel):
    """
    The email whose identifier speaks for a whole thread.

    The first original (non RE:/FW:) email carrying an identifier, falling
    back to the earliest response when the thread has no original.
    """
    model_config = ConfigDict(frozen=True)

    thread_id: str
    authority_email_id: str
    identifier: MatchedIdentifier
    confidence: int = Field(default=0, ge=0, le=100)


class ShipmentMatch(BaseModel):
    """A shipment together with every identifier that pointed to it."""

    shipment: Shipment
    matched_by: list[MatchedIdentifier] = Field(default_factory=list)

    @property
    def identifier_types(self) -> set[LinkType]:
        return {m.link_type for m in self.matched_by}


class EmailShipmentLink(BaseModel):
    """Persisted auto-link between an email and a shipment."""

    email_id: str
    shipment_id: str
    document_type: DocumentType = DocumentType.UNKNOWN
    link_type: LinkType
    link_identifier_value: Optional[str] = None
    link_confidence_score: int = Field(..., ge=0, le=100)
    link_method: str = "identifier_match"
    created_at: Optional[datetime] = None


class LinkCandidate(BaseModel):
    """
    Reviewable link decision record.

    Created for medium-confidence matches (action=suggested); also carries
    conflict information when several shipments matched.
    """

    email_id: str
    shipment_id: str
    link_type: LinkType
    matched_value: Optional[str] = None
    matched_identifiers: list[MatchedIdentifier] = Field(default_factory=list)
    confidence_score: int = Field(..., ge=0, le=100)
    action: LinkOutcome
    match_reasoning: str = ""
    conflicting_shipment_ids: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class LinkingResult(BaseModel):
    """Result of `process_email`. Failures are reported here, never raised."""

    matched: bool
    outcome: LinkOutcome
    shipment_id: Optional[str] = None
    confidence_score: int = Field(default=0, ge=0, le=100)
    link_type: LinkType = LinkType.ENTITY_MATCH
    matched_value: Optional[str] = None
    matched_identifiers: list[MatchedIdentifier] = Field(default_factory=list)
    reasoning: str = ""
    conflict: bool = False
    conflicting_shipment_ids: list[str] = Field(default_factory=list)
    updated_fields: list[str] = Field(default_factory=list)
    side_effect_errors: list[str] = Field(default_factory=list)
    link_strategy: LinkStrategy = LinkStrategy.DIRECT_EXTRACTION
    authority_email_id: Optional[str] = None


class BatchLinkingResult(BaseModel):
    """Aggregate of one `process_unlinked_emails` run."""

    processed: int = 0
    linked: int = 0
    candidates_created: int = 0
    conflicts: int = 0
    errors: int = 0


class ResyncResult(BaseModel):
    """Result of re-deriving shipment fields from its linked emails."""

    updated: bool = False
    updated_fields: list[str] = Field(default_factory=list)


class ResyncAllResult(BaseModel):
    processed: int = 0
    updated: int = 0
    errors: int = 0
    fields_updated: dict[str, int] = Field(default_factory=dict)


class AuditEvent(BaseModel):
    """Append-only audit record for linking decisions."""

    event_type: str = Field(..., description="link_created, link_suggested, link_conflict, link_rejected ...")
    email_id: Optional[str] = None
    shipment_id: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
