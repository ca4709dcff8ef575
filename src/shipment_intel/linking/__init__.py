"""
Shipment resolution and linking.

Components:
- ShipmentLinkingService: process_email, batch linking, resync
- LinkConfidenceScorer: identifier/authority/document/time scoring
- status_inference: document- and date-driven status, milestone map
- enrichment: linking keys, date parsing, fill-empty field updates
- repositories: collaborator interfaces (read-only shipment access)
- thread_authority: responses link through the first identified original
"""

from shipment_intel.linking.confidence_scorer import LinkConfidenceScorer
from shipment_intel.linking.enrichment import build_field_updates, build_linking_keys, parse_entity_date
from shipment_intel.linking.exceptions import CollaboratorFailure, LinkingError
from shipment_intel.linking.linking_service import ShipmentLinkingService
from shipment_intel.linking.repositories import (
    AuditLog,
    ClassificationRepository,
    EmailRepository,
    LinkRepository,
    MilestoneRecorder,
    ShipmentEnrichmentWriter,
    ShipmentReader,
)
from shipment_intel.linking.status_inference import DOC_TYPE_TO_MILESTONE, determine_shipment_status
from shipment_intel.linking.thread_authority import ThreadAuthorityResolver

__all__ = [
    "ShipmentLinkingService",
    "ThreadAuthorityResolver",
    "LinkConfidenceScorer",
    "build_field_updates",
    "build_linking_keys",
    "parse_entity_date",
    "CollaboratorFailure",
    "LinkingError",
    "AuditLog",
    "ClassificationRepository",
    "EmailRepository",
    "LinkRepository",
    "MilestoneRecorder",
    "ShipmentEnrichmentWriter",
    "ShipmentReader",
    "DOC_TYPE_TO_MILESTONE",
    "determine_shipment_status",
]
