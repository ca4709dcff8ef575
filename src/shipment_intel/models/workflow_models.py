"""
Workflow state machine models.

Transition rules are static configuration (see workflow.transition_rules);
inputs, results and history records are produced per classification.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shipment_intel.models.enums import (
    Direction,
    DocumentType,
    EmailType,
    SenderCategory,
    TriggerType,
    WorkflowPhase,
)


class WorkflowTransitionRule(BaseModel):
    """
    One workflow state and the evidence that enters it.

    A state is entered by a qualifying document type OR by a qualifying email
    type whose subject contains one of `subject_patterns` (when given). The
    rule only applies to events travelling in `direction`; `allowed_senders`
    of None means any sender category may trigger it.
    """
    model_config = ConfigDict(frozen=True)

    state: str
    order: int = Field(..., gt=0, description="Rank within the whole workflow")
    phase: WorkflowPhase
    label: str
    document_types: tuple[DocumentType, ...] = ()
    email_types: tuple[EmailType, ...] = ()
    subject_patterns: tuple[str, ...] = ()
    direction: Direction
    allowed_senders: Optional[tuple[SenderCategory, ...]] = None
    prerequisites: tuple[str, ...] = ()
    parallel: bool = False


class WorkflowTransitionInput(BaseModel):
    """Evidence available for one transition attempt."""
    model_config = ConfigDict(frozen=True)

    shipment_id: str
    email_id: Optional[str] = None
    document_type: Optional[DocumentType] = None
    email_type: Optional[EmailType] = None
    direction: Direction
    sender_category: SenderCategory = SenderCategory.UNKNOWN
    subject: str = ""


class WorkflowSnapshot(BaseModel):
    """Current workflow position of a shipment."""

    current_state: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    reached_states: list[str] = Field(default_factory=list)


class WorkflowTransitionResult(BaseModel):
    """Outcome of one transition attempt; rejections are results, not errors."""

    success: bool
    previous_state: Optional[str] = None
    new_state: Optional[str] = None
    phase: Optional[WorkflowPhase] = None
    triggered_by: TriggerType = TriggerType.NONE
    reason: str = ""
    missing_prerequisites: list[str] = Field(default_factory=list)
    rejected_states: list[str] = Field(
        default_factory=list,
        description="Candidate states dropped by the authority check",
    )
    main_state_updated: bool = Field(
        default=False,
        description="False when only a parallel origin/destination track moved",
    )
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None


class TransitionRecord(BaseModel):
    """History entry written for every applied transition."""

    shipment_id: str
    from_state: Optional[str] = None
    to_state: str
    triggered_by: TriggerType
    document_type: Optional[DocumentType] = None
    email_type: Optional[EmailType] = None
    email_id: Optional[str] = None
    sender_category: SenderCategory = SenderCategory.UNKNOWN
    created_at: Optional[datetime] = None
