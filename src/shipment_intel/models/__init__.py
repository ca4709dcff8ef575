"""
Pydantic data models for the shipment intelligence core.

Includes:
- Enums (DocumentType, EmailType, SenderCategory, ShipmentStatus, ...)
- Email input models (EmailMessage, ThreadContext, DirectionResult)
- Classification results (DocumentMatch, EmailTypeMatch, ClassificationResult)
- Shipment / linking records (Shipment, LinkingKeys, LinkCandidate, LinkingResult)
- Workflow models (WorkflowTransitionRule, WorkflowTransitionResult)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
"""

from shipment_intel.models.enums import (
    Direction,
    DocumentCategory,
    DocumentMethod,
    DocumentSource,
    DocumentType,
    EmailAuthority,
    EmailCategory,
    EmailType,
    EntityType,
    LinkOutcome,
    LinkStrategy,
    LinkType,
    SenderCategory,
    Sentiment,
    ShipmentStatus,
    TriggerType,
    WorkflowPhase,
)
from shipment_intel.models.email_models import (
    DirectionResult,
    EmailMessage,
    ForwardChainEntry,
    ThreadContext,
)
from shipment_intel.models.classification_models import (
    AIClassificationRequest,
    AIClassificationResult,
    ClassificationResult,
    DocumentMatch,
    EmailTypeMatch,
    SentimentResult,
)
from shipment_intel.models.shipment_models import (
    AuditEvent,
    BatchLinkingResult,
    EmailRecord,
    EmailShipmentLink,
    EntityExtraction,
    LinkCandidate,
    LinkingKeys,
    LinkingResult,
    MatchedIdentifier,
    ResyncAllResult,
    ResyncResult,
    Shipment,
    ShipmentMatch,
    StoredClassification,
    ThreadAuthority,
)
from shipment_intel.models.workflow_models import (
    TransitionRecord,
    WorkflowSnapshot,
    WorkflowTransitionInput,
    WorkflowTransitionResult,
    WorkflowTransitionRule,
)
from shipment_intel.models.llm_models import (
    LLMGenerationRequest,
    LLMGenerationResponse,
)

__all__ = [
    # Enums
    "Direction",
    "DocumentCategory",
    "DocumentMethod",
    "DocumentSource",
    "DocumentType",
    "EmailAuthority",
    "EmailCategory",
    "EmailType",
    "EntityType",
    "LinkOutcome",
    "LinkStrategy",
    "LinkType",
    "SenderCategory",
    "Sentiment",
    "ShipmentStatus",
    "TriggerType",
    "WorkflowPhase",
    # Email models
    "DirectionResult",
    "EmailMessage",
    "ForwardChainEntry",
    "ThreadContext",
    # Classification models
    "AIClassificationRequest",
    "AIClassificationResult",
    "ClassificationResult",
    "DocumentMatch",
    "EmailTypeMatch",
    "SentimentResult",
    # Shipment / linking models
    "AuditEvent",
    "BatchLinkingResult",
    "EmailRecord",
    "EmailShipmentLink",
    "EntityExtraction",
    "LinkCandidate",
    "LinkingKeys",
    "LinkingResult",
    "MatchedIdentifier",
    "ResyncAllResult",
    "ResyncResult",
    "Shipment",
    "ShipmentMatch",
    "StoredClassification",
    "ThreadAuthority",
    # Workflow models
    "TransitionRecord",
    "WorkflowSnapshot",
    "WorkflowTransitionInput",
    "WorkflowTransitionResult",
    "WorkflowTransitionRule",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
