"""
Operational workflow tracking.

Components:
- transition_rules: static table of the 36 workflow states and lookup helpers
- WorkflowStateMachine: decides and applies transitions from classifications
- WorkflowStateStore: persistence interface for workflow position/history
"""

from shipment_intel.workflow.state_machine import WorkflowStateMachine, WorkflowStateStore
from shipment_intel.workflow.transition_rules import (
    WORKFLOW_TRANSITION_RULES,
    get_state_by_code,
    get_state_order,
    get_states_for_document_type,
    get_states_for_email_type,
    get_states_for_phase,
    is_sender_authorized,
    is_state_after,
)

__all__ = [
    "WorkflowStateMachine",
    "WorkflowStateStore",
    "WORKFLOW_TRANSITION_RULES",
    "get_state_by_code",
    "get_state_order",
    "get_states_for_document_type",
    "get_states_for_email_type",
    "get_states_for_phase",
    "is_sender_authorized",
    "is_state_after",
]
