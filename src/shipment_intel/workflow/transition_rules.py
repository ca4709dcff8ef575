"""
Workflow transition rule table and lookup helpers.

36 states in four sequential phases. A state is entered by a qualifying
document type, or by a qualifying email type whose subject mentions one of
the rule's subject patterns. Each rule accepts one direction only and may
restrict which sender categories can trigger it.

Prerequisites document the expected order; they are reported, never enforced.
"""

import re
from functools import lru_cache
from typing import Optional

from shipment_intel.models.enums import (
    Direction,
    DocumentType,
    EmailType,
    SenderCategory,
    WorkflowPhase,
)
from shipment_intel.models.workflow_models import WorkflowTransitionRule as Rule

D = DocumentType
E = EmailType
S = SenderCategory
P = WorkflowPhase
IN = Direction.INBOUND
OUT = Direction.OUTBOUND


WORKFLOW_TRANSITION_RULES: tuple[Rule, ...] = (
    # === Pre-departure ===
    Rule(state="booking_confirmed", label="Booking Confirmed", order=10, phase=P.PRE_DEPARTURE,
         document_types=(D.BOOKING_CONFIRMATION,),
         direction=IN, allowed_senders=(S.CARRIER,)),
    Rule(state="booking_shared", label="Booking Shared", order=15, phase=P.PRE_DEPARTURE,
         document_types=(D.BOOKING_CONFIRMATION,), email_types=(E.DOCUMENT_SHARE,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("booking_confirmed",)),
    Rule(state="stuffing_started", label="Stuffing Started", order=20, phase=P.PRE_DEPARTURE,
         email_types=(E.STUFFING_UPDATE,), subject_patterns=("start", "started", "begin", "schedule", "planning"),
         direction=IN, allowed_senders=(S.CHA_INDIA, S.SHIPPER, S.INTERNAL),
         prerequisites=("booking_confirmed",), parallel=True),
    Rule(state="stuffing_complete", label="Stuffing Complete", order=25, phase=P.PRE_DEPARTURE,
         email_types=(E.STUFFING_UPDATE,), subject_patterns=("complete", "completed", "done", "finished", "stuffed"),
         direction=IN, allowed_senders=(S.CHA_INDIA, S.SHIPPER),
         prerequisites=("stuffing_started",), parallel=True),
    Rule(state="gate_in_complete", label="Gate In Complete", order=30, phase=P.PRE_DEPARTURE,
         email_types=(E.GATE_IN_UPDATE,),
         direction=IN, allowed_senders=(S.CHA_INDIA,),
         prerequisites=("stuffing_complete",), parallel=True),
    Rule(state="handover_complete", label="Handover Complete", order=35, phase=P.PRE_DEPARTURE,
         email_types=(E.HANDOVER_UPDATE,),
         direction=IN, allowed_senders=(S.CHA_INDIA,),
         prerequisites=("gate_in_complete",), parallel=True),
    Rule(state="si_draft_sent", label="SI Draft Sent", order=40, phase=P.PRE_DEPARTURE,
         document_types=(D.SI_DRAFT, D.SHIPPING_INSTRUCTION), email_types=(E.APPROVAL_REQUEST,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("booking_confirmed",)),
    Rule(state="checklist_received", label="Checklist Received", order=42, phase=P.PRE_DEPARTURE,
         document_types=(D.CHECKLIST,),
         direction=IN, allowed_senders=(S.CHA_INDIA, S.SHIPPER),
         prerequisites=("booking_confirmed",)),
    Rule(state="checklist_shared", label="Checklist Shared", order=44, phase=P.PRE_DEPARTURE,
         document_types=(D.CHECKLIST,), email_types=(E.DOCUMENT_SHARE, E.APPROVAL_REQUEST),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("checklist_received",)),
    Rule(state="si_approved", label="SI Approved", order=45, phase=P.PRE_DEPARTURE,
         document_types=(D.SI_CONFIRMATION,), email_types=(E.APPROVAL_GRANTED,),
         subject_patterns=("SI", "shipping instruction", "S.I", "s/i"),
         direction=IN, allowed_senders=(S.SHIPPER, S.CARRIER, S.INTERNAL),
         prerequisites=("si_draft_sent",)),
    Rule(state="checklist_approved", label="Checklist Approved", order=46, phase=P.PRE_DEPARTURE,
         email_types=(E.APPROVAL_GRANTED,), subject_patterns=("checklist", "check list", "cha"),
         direction=IN, allowed_senders=(S.SHIPPER, S.INTERNAL),
         prerequisites=("checklist_shared",)),
    Rule(state="si_submitted", label="SI Submitted", order=50, phase=P.PRE_DEPARTURE,
         document_types=(D.SI_SUBMISSION, D.SI_CONFIRMATION),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("si_approved",)),
    Rule(state="shipping_bill_received", label="LEO/SB Received", order=55, phase=P.PRE_DEPARTURE,
         document_types=(D.SHIPPING_BILL, D.LEO_COPY),
         direction=IN, allowed_senders=(S.CHA_INDIA,),
         prerequisites=("checklist_approved",)),
    Rule(state="vgm_submitted", label="VGM Submitted", order=60, phase=P.PRE_DEPARTURE,
         document_types=(D.VGM_SUBMISSION, D.VGM_CONFIRMATION),
         direction=IN, allowed_senders=(S.CARRIER, S.CHA_INDIA),
         prerequisites=("gate_in_complete",)),
    Rule(state="sob_received", label="SOB Received", order=70, phase=P.PRE_DEPARTURE,
         document_types=(D.SOB_CONFIRMATION,), email_types=(E.DEPARTURE_UPDATE,),
         subject_patterns=("SOB", "shipped on board", "on board"),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("vgm_submitted",)),
    Rule(state="departed", label="Vessel Departed", order=75, phase=P.PRE_DEPARTURE,
         email_types=(E.DEPARTURE_UPDATE,), subject_patterns=("sailed", "departed", "departure", "sailing"),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("sob_received",)),

    # === In transit ===
    Rule(state="in_transit", label="In Transit", order=80, phase=P.IN_TRANSIT,
         email_types=(E.TRANSIT_UPDATE,),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("departed",)),
    Rule(state="bl_received", label="BL Received", order=85, phase=P.IN_TRANSIT,
         document_types=(D.BILL_OF_LADING,),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("departed",)),
    Rule(state="bl_shared", label="BL Shared", order=87, phase=P.IN_TRANSIT,
         document_types=(D.BILL_OF_LADING,), email_types=(E.DOCUMENT_SHARE,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("bl_received",)),
    Rule(state="hbl_draft_sent", label="HBL Draft Sent", order=90, phase=P.IN_TRANSIT,
         document_types=(D.HOUSE_BL, D.HBL_DRAFT), email_types=(E.APPROVAL_REQUEST,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("departed",)),
    Rule(state="hbl_approved", label="HBL Approved", order=95, phase=P.IN_TRANSIT,
         email_types=(E.APPROVAL_GRANTED,), subject_patterns=("HBL", "house bl", "BL draft", "draft bl", "B/L"),
         direction=IN, allowed_senders=(S.SHIPPER, S.CONSIGNEE),
         prerequisites=("hbl_draft_sent",)),
    Rule(state="hbl_shared", label="HBL Shared", order=100, phase=P.IN_TRANSIT,
         document_types=(D.HOUSE_BL,), email_types=(E.DOCUMENT_SHARE,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("hbl_approved",)),
    Rule(state="invoice_sent", label="Invoice Sent", order=105, phase=P.IN_TRANSIT,
         document_types=(D.INVOICE, D.FREIGHT_INVOICE), email_types=(E.PAYMENT_REQUEST,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("hbl_shared",)),

    # === Arrival ===
    Rule(state="pre_alert_sent", label="Pre-Alert Sent", order=110, phase=P.ARRIVAL,
         email_types=(E.PRE_ALERT,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("departed",)),
    Rule(state="arrival_notice_received", label="AN Received", order=115, phase=P.ARRIVAL,
         document_types=(D.ARRIVAL_NOTICE,), email_types=(E.ARRIVAL_UPDATE,),
         direction=IN, allowed_senders=(S.CARRIER,),
         prerequisites=("in_transit",)),
    Rule(state="arrival_notice_shared", label="AN Shared", order=117, phase=P.ARRIVAL,
         document_types=(D.ARRIVAL_NOTICE,), email_types=(E.DOCUMENT_SHARE,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("arrival_notice_received",)),
    Rule(state="entry_draft_received", label="Entry Draft Received", order=120, phase=P.ARRIVAL,
         document_types=(D.DRAFT_ENTRY, D.CUSTOMS_DOCUMENT), email_types=(E.APPROVAL_REQUEST,),
         direction=IN, allowed_senders=(S.CUSTOMS_BROKER_US,),
         prerequisites=("pre_alert_sent",)),
    Rule(state="entry_draft_shared", label="Entry Draft Shared", order=122, phase=P.ARRIVAL,
         document_types=(D.DRAFT_ENTRY,), email_types=(E.DOCUMENT_SHARE, E.APPROVAL_REQUEST),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("entry_draft_received",)),
    Rule(state="entry_approved", label="Entry Approved", order=125, phase=P.ARRIVAL,
         email_types=(E.APPROVAL_GRANTED,), subject_patterns=("entry", "7501", "customs", "draft entry"),
         direction=IN, allowed_senders=(S.SHIPPER, S.CONSIGNEE, S.INTERNAL),
         prerequisites=("entry_draft_shared",)),
    Rule(state="clearance_started", label="Clearance Started", order=130, phase=P.ARRIVAL,
         email_types=(E.CLEARANCE_INITIATION,),
         direction=IN, allowed_senders=(S.CUSTOMS_BROKER_US,),
         prerequisites=("entry_approved",)),
    Rule(state="customs_cleared", label="Customs Cleared", order=135, phase=P.ARRIVAL,
         document_types=(D.ENTRY_SUMMARY,), email_types=(E.CLEARANCE_COMPLETE,),
         direction=IN, allowed_senders=(S.CUSTOMS_BROKER_US, S.PLATFORM),
         prerequisites=("clearance_started",)),

    # === Delivery ===
    Rule(state="cargo_released", label="Cargo Released", order=140, phase=P.DELIVERY,
         document_types=(D.CONTAINER_RELEASE,),
         direction=IN, allowed_senders=(S.CARRIER, S.CUSTOMS_BROKER_US),
         prerequisites=("customs_cleared",)),
    Rule(state="duty_invoice_received", label="Duty Invoice Received", order=145, phase=P.DELIVERY,
         document_types=(D.DUTY_INVOICE,), email_types=(E.PAYMENT_REQUEST,),
         direction=IN, allowed_senders=(S.CUSTOMS_BROKER_US,),
         prerequisites=("customs_cleared",)),
    Rule(state="duty_invoice_shared", label="Duty Invoice Shared", order=147, phase=P.DELIVERY,
         document_types=(D.DUTY_INVOICE,), email_types=(E.DOCUMENT_SHARE,),
         direction=OUT, allowed_senders=(S.INTERNAL,),
         prerequisites=("duty_invoice_received",)),
    Rule(state="delivery_scheduled", label="Delivery Scheduled", order=150, phase=P.DELIVERY,
         email_types=(E.DELIVERY_SCHEDULING, E.PICKUP_SCHEDULING),
         direction=IN, allowed_senders=(S.TRUCKER, S.CONSIGNEE, S.CUSTOMS_BROKER_US, S.WAREHOUSE),
         prerequisites=("cargo_released",)),
    Rule(state="delivered", label="Delivered", order=155, phase=P.DELIVERY,
         document_types=(D.PROOF_OF_DELIVERY, D.POD_CONFIRMATION), email_types=(E.DELIVERY_COMPLETE,),
         direction=IN, allowed_senders=(S.TRUCKER, S.CUSTOMS_BROKER_US, S.CONSIGNEE, S.WAREHOUSE),
         prerequisites=("delivery_scheduled",)),
)

# Parallel tracks recorded next to the main state
ORIGIN_TRACK_STATES = frozenset({"stuffing_started", "stuffing_complete", "gate_in_complete", "handover_complete"})
DESTINATION_TRACK_STATES = frozenset({"clearance_started", "customs_cleared", "delivery_scheduled"})

_RULES_BY_STATE: dict[str, Rule] = {rule.state: rule for rule in WORKFLOW_TRANSITION_RULES}


def get_state_by_code(state: str) -> Optional[Rule]:
    return _RULES_BY_STATE.get(state)


def get_states_for_phase(phase: WorkflowPhase) -> list[Rule]:
    return [rule for rule in WORKFLOW_TRANSITION_RULES if rule.phase == phase]


def get_states_for_document_type(document_type: DocumentType, direction: Direction) -> list[Rule]:
    """Rules a document type can trigger in the given direction, in workflow order."""
    return [
        rule for rule in WORKFLOW_TRANSITION_RULES
        if rule.direction == direction and document_type in rule.document_types
    ]


def get_states_for_email_type(email_type: EmailType, direction: Direction) -> list[Rule]:
    return [
        rule for rule in WORKFLOW_TRANSITION_RULES
        if rule.direction == direction and email_type in rule.email_types
    ]


def is_sender_authorized(state: str, sender_category: SenderCategory) -> bool:
    """Unknown states are never authorized; rules without an allow-list accept anyone."""
    rule = get_state_by_code(state)
    if rule is None:
        return False
    if rule.allowed_senders is None:
        return True
    return sender_category in rule.allowed_senders


def get_state_order(state: Optional[str]) -> int:
    """Rank of a state; 0 for unknown or missing states."""
    if not state:
        return 0
    rule = get_state_by_code(state)
    return rule.order if rule else 0


def is_state_after(state_a: Optional[str], state_b: Optional[str]) -> bool:
    """True when state_b comes later in the workflow than state_a."""
    return get_state_order(state_b) > get_state_order(state_a)


@lru_cache(maxsize=256)
def _subject_pattern(keyword: str) -> re.Pattern:
    words = [re.escape(part) for part in keyword.split()]
    return re.compile(r"(?<![A-Za-z0-9])" + r"\s+".join(words) + r"(?![A-Za-z0-9])", re.IGNORECASE)


def subject_matches(rule: Rule, subject: Optional[str]) -> bool:
    """Rules without subject patterns accept any subject; keywords are word-bounded."""
    if not rule.subject_patterns:
        return True
    return any(_subject_pattern(p).search(subject or "") for p in rule.subject_patterns)


def workflow_hint(document_type: DocumentType, direction: Direction) -> Optional[str]:
    """Earliest state a document type would normally trigger in this direction."""
    rules = get_states_for_document_type(document_type, direction)
    return rules[0].state if rules else None
