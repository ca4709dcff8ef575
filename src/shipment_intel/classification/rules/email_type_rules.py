"""
Email type (communicative intent) rule table.

Each EmailTypeConfig holds subject and body marker rules for one email type.
`sender_categories`, when set, restricts the type to those senders: a
stuffing update only means something coming from the CHA, the shipper or
internal staff.

Table order is priority order on equal confidence.
"""

from dataclasses import dataclass
from typing import Optional

from shipment_intel.classification.markers import MarkerRule as R
from shipment_intel.models.enums import EmailCategory, EmailType, SenderCategory

E = EmailType
C = EmailCategory
S = SenderCategory


@dataclass(frozen=True)
class EmailTypeConfig:
    email_type: EmailType
    category: EmailCategory
    subject_rules: tuple[R, ...]
    body_rules: tuple[R, ...] = ()
    sender_categories: Optional[tuple[SenderCategory, ...]] = None


EMAIL_TYPE_CONFIGS: tuple[EmailTypeConfig, ...] = (
    # Approval
    EmailTypeConfig(
        E.APPROVAL_REQUEST, C.APPROVAL,
        subject_rules=(
            R(("CHECKLIST", "APPROVAL"), 95),
            R(("SI", "APPROVAL"), 93),
            R(("BL", "APPROVAL"), 93),
            R(("FOR YOUR APPROVAL",), 92),
            R(("APPROVAL",), 90, optional=("CHECKLIST", "SI", "BL", "DRAFT"),
              exclude=("APPROVAL GRANTED",)),
            R(("APPROVE",), 88, optional=("PLEASE", "KINDLY")),
            R(("FOR REVIEW",), 85, optional=("DRAFT",)),
        ),
        body_rules=(
            R(("AWAITING", "APPROVAL"), 88),
            R(("PLEASE", "APPROVE"), 85),
            R(("KINDLY", "APPROVE"), 85),
        ),
    ),
    EmailTypeConfig(
        E.APPROVAL_GRANTED, C.APPROVAL,
        subject_rules=(
            R(("APPROVAL GRANTED",), 95),
            R(("APPROVED",), 92, exclude=("NOT APPROVED", "REJECTED")),
        ),
        body_rules=(
            R(("APPROVED",), 85, optional=("CHECKLIST", "SI", "BL"), exclude=("NOT APPROVED",)),
            R(("GO AHEAD",), 80),
        ),
    ),
    EmailTypeConfig(
        E.APPROVAL_REJECTED, C.APPROVAL,
        subject_rules=(
            R(("REJECTED",), 90),
            R(("NOT APPROVED",), 90),
            R(("REVISION REQUIRED",), 85),
        ),
        body_rules=(
            R(("REJECTED",), 85),
            R(("PLEASE REVISE",), 82),
            R(("CORRECTION REQUIRED",), 82),
        ),
    ),

    # Status
    EmailTypeConfig(
        E.STUFFING_UPDATE, C.STATUS,
        subject_rules=(
            R(("FACTORY STUFFING",), 95),
            R(("STUFFING",), 92, optional=("COMPLETE", "DONE", "UPDATE", "STATUS")),
            R(("CONTAINER", "STUFFED"), 90),
        ),
        sender_categories=(S.CHA_INDIA, S.SHIPPER, S.INTERNAL),
    ),
    EmailTypeConfig(
        E.GATE_IN_UPDATE, C.STATUS,
        subject_rules=(
            R(("GATE IN",), 92, optional=("CONFIRM", "DONE")),
            R(("GATE-IN",), 92, optional=("CONFIRM", "DONE")),
            R(("GATED IN",), 92),
            R(("CONTAINER", "REACHED"), 88),
            R(("ARRIVED AT ICD",), 88),
            R(("ARRIVED AT CFS",), 88),
            R(("ARRIVED AT PORT",), 88),
        ),
    ),
    EmailTypeConfig(
        E.HANDOVER_UPDATE, C.STATUS,
        subject_rules=(
            R(("HANDOVER",), 92, optional=("DONE", "COMPLETE")),
            R(("RAILOUT",), 92, optional=("DONE", "COMPLETE")),
            R(("HAND OVER",), 88),
        ),
        sender_categories=(S.CHA_INDIA,),
    ),
    EmailTypeConfig(
        E.DEPARTURE_UPDATE, C.STATUS,
        subject_rules=(
            R(("VESSEL", "SAILED"), 95),
            R(("SOB", "CONFIRMATION"), 95),
            R(("DEPARTED",), 92),
            R(("SAILING CONFIRMATION",), 92),
            R(("SHIPPED ON BOARD",), 90),
            R(("SOB",), 88),
            R(("ETD", "CONFIRMED"), 88),
            R(("ON BOARD",), 85, optional=("CONFIRMATION",)),
            R(("SAILED",), 85),
        ),
    ),
    EmailTypeConfig(
        E.TRANSIT_UPDATE, C.STATUS,
        subject_rules=(
            R(("IN TRANSIT",), 92),
            R(("TRANSIT", "UPDATE"), 90),
            R(("TRANSSHIPMENT",), 88, optional=("UPDATE", "NOTICE")),
            R(("ETA", "UPDATE"), 88),
            R(("VESSEL", "UPDATE"), 85),
            R(("SCHEDULE", "CHANGE"), 85),
        ),
    ),
    EmailTypeConfig(
        E.ARRIVAL_UPDATE, C.STATUS,
        subject_rules=(
            R(("VESSEL", "ARRIVAL"), 95),
            R(("ARRIVAL NOTICE",), 95),
            R(("ARRIVED",), 92, exclude=("ARRIVED AT ICD", "ARRIVED AT CFS", "ARRIVED AT PORT")),
            R(("POD", "ARRIVAL"), 90),
            R(("DISCHARGED",), 88),
            R(("ATA",), 85, optional=("CONFIRMED", "UPDATE")),
        ),
    ),

    # Customs
    EmailTypeConfig(
        E.PRE_ALERT, C.CUSTOMS,
        subject_rules=(
            R(("PRE-ALERT",), 95),
            R(("PRE ALERT",), 95),
            R(("PREALERT",), 95),
            R(("PRE-ARRIVAL",), 92),
            R(("PRE ARRIVAL",), 92),
            R(("CUSTOMS", "BONDED"), 88),
        ),
        sender_categories=(S.INTERNAL, S.CHA_INDIA, S.PARTNER),
    ),
    EmailTypeConfig(
        E.CLEARANCE_INITIATION, C.CUSTOMS,
        subject_rules=(
            R(("CLEARANCE", "INITIATION"), 95),
            R(("CUSTOM", "CLEARANCE", "REQUEST"), 90),
            R(("CUSTOMS", "CLEARANCE"), 88, optional=("REQUEST", "INITIATE"),
              exclude=("CLEARED", "COMPLETE", "COMPLETED")),
        ),
    ),
    EmailTypeConfig(
        E.CLEARANCE_COMPLETE, C.CUSTOMS,
        subject_rules=(
            R(("OUT OF CHARGE",), 95),
            R(("CUSTOMS", "RELEASED"), 92),
            R(("OOC",), 90),
            R(("CARGO", "RELEASED"), 90),
            R(("CLEARED",), 88, optional=("CUSTOMS", "CARGO")),
        ),
    ),

    # Delivery
    EmailTypeConfig(
        E.DELIVERY_SCHEDULING, C.DELIVERY,
        subject_rules=(
            R(("DELIVERY APPOINTMENT",), 95),
            R(("DELIVERY", "SCHEDULE"), 92),
            R(("DELIVERY", "PLANNING"), 90),
            R(("APPOINTMENT",), 85, optional=("CONFIRM", "SCHEDULED")),
        ),
    ),
    EmailTypeConfig(
        E.PICKUP_SCHEDULING, C.DELIVERY,
        subject_rules=(
            R(("PICKUP",), 88, optional=("SCHEDULE", "ARRANGE", "READY")),
            R(("CONTAINER OUT",), 88),
            R(("DRAYAGE",), 85),
        ),
    ),
    EmailTypeConfig(
        E.DELIVERY_COMPLETE, C.DELIVERY,
        subject_rules=(
            R(("SUCCESSFULLY DELIVERED",), 95),
            R(("DELIVERY COMPLETE",), 92),
            R(("DELIVERED",), 90),
            R(("POD", "ATTACHED"), 90),
        ),
    ),

    # Commercial
    EmailTypeConfig(
        E.QUOTE_REQUEST, C.COMMERCIAL,
        subject_rules=(
            R(("REQUEST FOR QUOTE",), 95),
            R(("FREIGHT", "QUOTE"), 92, exclude=("QUOTE ATTACHED",)),
            R(("RATE", "QUOTE"), 92, exclude=("QUOTE ATTACHED",)),
            R(("RFQ",), 92),
            R(("QUOTE",), 90, optional=("REQUEST", "FREIGHT", "FCL"), exclude=("QUOTE ATTACHED",)),
            R(("QUOTATION",), 90, optional=("REQUEST",), exclude=("QUOTATION ATTACHED",)),
        ),
    ),
    EmailTypeConfig(
        E.QUOTE_RESPONSE, C.COMMERCIAL,
        subject_rules=(
            R(("QUOTE ATTACHED",), 93),
            R(("QUOTATION ATTACHED",), 93),
            R(("RATE OFFER",), 90),
            R(("FREIGHT RATES",), 88),
            R(("OUR QUOTE",), 88),
            R(("PRICING",), 85, optional=("ATTACHED", "ENCLOSED")),
            R(("RATES FOR",), 85),
        ),
    ),
    EmailTypeConfig(
        E.PAYMENT_REQUEST, C.COMMERCIAL,
        subject_rules=(
            R(("PAYMENT DUE",), 90),
            R(("PAYMENT REQUEST",), 90),
            R(("STATEMENT",), 85, optional=("ACCOUNT", "OUTSTANDING")),
            R(("INVOICE",), 82, optional=("ATTACHED", "DUE"), exclude=("PACKING",)),
        ),
    ),
    EmailTypeConfig(
        E.PAYMENT_CONFIRMATION, C.COMMERCIAL,
        subject_rules=(
            R(("PAYMENT SUCCESSFUL",), 95),
            R(("PAYMENT RECEIVED",), 92),
            R(("PAYMENT", "CONFIRMED"), 92),
            R(("PAYMENT CONFIRMATION",), 92),
        ),
    ),

    # Change
    EmailTypeConfig(
        E.AMENDMENT_REQUEST, C.CHANGE,
        subject_rules=(
            R(("AMENDMENT",), 88, optional=("REQUEST", "REQUIRED"), exclude=("BOOKING AMENDMENT",)),
            R(("NEED", "REVISED"), 85),
            R(("AMEND",), 85, optional=("PLEASE", "NEED")),
            R(("UNABLE TO",), 82, optional=("AMEND", "SUBMIT", "PROCESS")),
        ),
    ),
    EmailTypeConfig(
        E.CANCELLATION_NOTICE, C.CHANGE,
        subject_rules=(
            R(("CANCELLED",), 88),
            R(("CANCELED",), 88),
            R(("CANCEL",), 85, optional=("BOOKING", "SHIPMENT")),
            R(("CANCELLATION",), 85, exclude=("BOOKING CANCELLATION",)),
        ),
    ),

    # Communication
    EmailTypeConfig(
        E.ESCALATION, C.COMMUNICATION,
        subject_rules=(
            R(("ESCALATION",), 95),
            R(("ESCALATE",), 92),
            R(("COMPLAINT",), 90),
            R(("UNRESOLVED",), 88),
            R(("PENDING SINCE",), 85),
            R(("NO RESPONSE",), 82),
            R(("FOLLOWING UP AGAIN",), 80),
        ),
        body_rules=(
            R(("ESCALATING THIS",), 92),
            R(("MULTIPLE TIMES",), 85),
            R(("STILL WAITING",), 82),
            R(("NO UPDATE",), 80),
        ),
    ),
    EmailTypeConfig(
        E.URGENT_ACTION, C.COMMUNICATION,
        subject_rules=(
            R(("URGENT",), 90),
            R(("ASAP",), 88),
            R(("IMMEDIATE",), 88, optional=("ACTION", "ATTENTION")),
            R(("RUSH",), 85),
        ),
    ),
    EmailTypeConfig(
        E.DEMURRAGE_ACTION, C.COMMUNICATION,
        subject_rules=(
            R(("AVOIDING", "DEMURRAGE"), 95),
            R(("DEMURRAGE",), 92),
            R(("DETENTION",), 92),
            R(("LFD",), 85),
        ),
    ),
    EmailTypeConfig(
        E.DELAY_NOTICE, C.COMMUNICATION,
        subject_rules=(
            R(("DELAY",), 88, optional=("NOTICE", "UPDATE")),
            R(("DELAYED",), 88),
            R(("ROLLOVER",), 85),
            R(("HOLD",), 82),
        ),
    ),
    EmailTypeConfig(
        E.REMINDER, C.COMMUNICATION,
        subject_rules=(
            R(("GENTLE REMINDER",), 95),
            R(("REMINDER",), 90),
            R(("FOLLOW UP",), 82),
        ),
    ),
    EmailTypeConfig(
        E.QUERY, C.COMMUNICATION,
        subject_rules=(
            R(("QUERY",), 85),
            R(("CLARIFICATION",), 85),
            R(("CLARIFY",), 82),
        ),
        body_rules=(
            R(("PLEASE CLARIFY",), 80),
            R(("KINDLY ADVISE",), 80),
        ),
    ),
    EmailTypeConfig(
        E.DOCUMENT_SHARE, C.COMMUNICATION,
        subject_rules=(
            R(("FINAL", "BL"), 90),
            R(("PLEASE FIND ATTACHED",), 88),
            R(("BOOKING CONFIRMATION",), 88),
            R(("EXPRESS", "BL"), 88),
            R(("PFA",), 85),
            R(("ATTACHED HEREWITH",), 85),
            R(("DRAFT", "BL"), 85),
            R(("SHARING",), 82, optional=("DOCUMENTS", "FILES")),
            R(("INSURANCE",), 82, optional=("POLICY", "CERTIFICATE")),
        ),
        body_rules=(
            R(("PLEASE FIND ATTACHED",), 80),
            R(("PFA",), 80),
        ),
    ),
    EmailTypeConfig(
        E.ACKNOWLEDGEMENT, C.COMMUNICATION,
        subject_rules=(
            R(("ACKNOWLEDGED",), 92),
            R(("RECEIVED", "THANKS"), 88),
            R(("NOTED",), 85, optional=("THANKS", "WITH")),
            R(("WORKING ON IT",), 82),
            R(("WILL DO",), 80),
        ),
        body_rules=(
            R(("ACKNOWLEDGED",), 90),
            R(("RECEIVED", "WILL PROCESS"), 88),
            R(("NOTED", "THANKS"), 85),
        ),
    ),
)


EMAIL_TYPE_CATEGORIES: dict[EmailType, EmailCategory] = {
    config.email_type: config.category for config in EMAIL_TYPE_CONFIGS
}
EMAIL_TYPE_CATEGORIES[E.GENERAL_CORRESPONDENCE] = C.COMMUNICATION
EMAIL_TYPE_CATEGORIES[E.UNKNOWN] = C.UNKNOWN


def email_category(email_type: EmailType) -> EmailCategory:
    return EMAIL_TYPE_CATEGORIES.get(email_type, C.UNKNOWN)
