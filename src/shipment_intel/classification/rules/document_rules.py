"""
Document type rule tables.

- DOCUMENT_CONTENT_RULES: content markers evaluated against extracted
  document text (PDF) by the document-content matcher.
- ATTACHMENT_FILENAME_PATTERNS: filename regexes, first match wins.
- DOCUMENT_ISSUERS: sender categories allowed to issue a document type.
  Types not listed can be sent by anyone.
- DOCUMENT_CATEGORIES: coarse family of each type.

Key order is priority order on equal confidence.
"""

import re

from shipment_intel.classification.markers import MarkerRule
from shipment_intel.models.enums import DocumentCategory, DocumentType, SenderCategory

D = DocumentType
S = SenderCategory


DOCUMENT_CONTENT_RULES: dict[DocumentType, tuple[MarkerRule, ...]] = {
    # US customs
    D.ENTRY_SUMMARY: (
        MarkerRule(("DEPARTMENT OF HOMELAND SECURITY", "ENTRY SUMMARY"), 98,
                   optional=("CBP FORM 7501", "OMB APPROVAL", "FILER CODE/ENTRY")),
        MarkerRule(("ENTRY SUMMARY", "CBP"), 95, optional=("DUTY", "HTS", "IMPORTER")),
    ),
    D.ENTRY_IMMEDIATE_DELIVERY: (
        MarkerRule(("ENTRY/IMMEDIATE DELIVERY",), 98,
                   optional=("CBP FORM 3461", "DEPARTMENT OF HOMELAND SECURITY")),
        MarkerRule(("IMMEDIATE DELIVERY", "CBP"), 92),
    ),
    D.ISF_FILING: (
        MarkerRule(("IMPORTER SECURITY FILING",), 95, optional=("ISF", "10+2", "CBP")),
        MarkerRule(("ISF", "SECURITY FILING"), 90),
    ),
    D.DRAFT_ENTRY: (
        MarkerRule(("DRAFT", "ENTRY"), 88, optional=("REVIEW", "APPROVAL", "CBP", "7501")),
    ),
    D.DUTY_INVOICE: (
        MarkerRule(("DUTY INVOICE",), 92, optional=("CUSTOMS", "ENTRY FEE", "MPF", "HMF")),
        MarkerRule(("INVOICE", "DUTIES"), 88, optional=("CUSTOMS", "ENTRY FEE", "MPF", "HMF")),
    ),

    # India export customs
    D.SHIPPING_BILL: (
        MarkerRule(("SHIPPING BILL",), 95, optional=("SB NO", "CUSTOMS", "ICEGATE")),
    ),
    D.LEO_COPY: (
        MarkerRule(("LET EXPORT ORDER",), 95, optional=("LEO", "CUSTOMS")),
        MarkerRule(("LEO",), 85, optional=("EXPORT", "CUSTOMS")),
    ),
    D.CHECKLIST: (
        MarkerRule(("CHECKLIST",), 85, optional=("SHIPPING BILL", "EXPORT", "DOCUMENTS")),
    ),

    # Booking
    D.BOOKING_CONFIRMATION: (
        MarkerRule(("BOOKING CONFIRMATION",), 95, optional=("BOOKING NUMBER", "VESSEL", "VOYAGE", "ETD")),
        MarkerRule(("BOOKING", "CONFIRMED"), 85, optional=("CONTAINER", "VESSEL"),
                   exclude=("AMENDMENT", "CANCEL", "CANCELLED", "CANCELED", "CANCELLATION")),
    ),
    D.BOOKING_AMENDMENT: (
        MarkerRule(("BOOKING", "AMENDMENT"), 92, optional=("UPDATE", "REVISED", "CHANGE")),
        MarkerRule(("BOOKING", "UPDATE"), 85, optional=("VESSEL", "ETD", "CHANGE")),
    ),
    D.BOOKING_CANCELLATION: (
        MarkerRule(("BOOKING", "CANCELLATION"), 95),
        MarkerRule(("BOOKING", "CANCELLED"), 95),
        MarkerRule(("BOOKING", "CANCELED"), 95),
    ),

    # Documentation
    D.SI_DRAFT: (
        MarkerRule(("DRAFT", "SHIPPING INSTRUCTION"), 90),
        MarkerRule(("SI", "DRAFT"), 85, optional=("REVIEW", "APPROVAL")),
    ),
    D.SHIPPING_INSTRUCTION: (
        MarkerRule(("SHIPPING INSTRUCTION",), 95,
                   optional=("SI SUB TYPE", "TRANSPORT DOCUMENT", "SHIPPER", "CONSIGNEE"),
                   exclude=("DRAFT",)),
    ),
    D.SI_CONFIRMATION: (
        MarkerRule(("SI", "CONFIRMED"), 90),
        MarkerRule(("SHIPPING INSTRUCTION", "ACCEPTED"), 88),
    ),
    D.HBL_DRAFT: (
        MarkerRule(("HOUSE BILL OF LADING", "DRAFT"), 92),
        MarkerRule(("DRAFT", "HOUSE"), 90, optional=("BILL OF LADING", "B/L", "HBL")),
        MarkerRule(("HBL", "DRAFT"), 90),
    ),
    D.DRAFT_BL: (
        MarkerRule(("MASTER BILL OF LADING", "DRAFT"), 92),
        MarkerRule(("DRAFT", "MASTER"), 90, optional=("BILL OF LADING", "B/L", "MBL")),
        MarkerRule(("MBL", "DRAFT"), 90),
        MarkerRule(("DRAFT", "BILL OF LADING"), 85, exclude=("HOUSE", "HBL")),
    ),
    D.HOUSE_BL: (
        MarkerRule(("HOUSE BILL OF LADING",), 92,
                   optional=("HBL", "SHIPPER", "CONSIGNEE", "SHIPPED ON BOARD"), exclude=("DRAFT",)),
        MarkerRule(("HBL",), 88, optional=("SHIPPED ON BOARD", "ORIGINAL"), exclude=("DRAFT",)),
    ),
    D.BILL_OF_LADING: (
        MarkerRule(("MASTER BILL OF LADING",), 92,
                   optional=("MBL", "SHIPPER", "CONSIGNEE", "SHIPPED ON BOARD"), exclude=("DRAFT",)),
        MarkerRule(("MBL",), 88, optional=("SHIPPED ON BOARD", "ORIGINAL"), exclude=("DRAFT",)),
        MarkerRule(("BILL OF LADING",), 85,
                   optional=("B/L NO", "SHIPPER", "CONSIGNEE", "SHIPPED ON BOARD"),
                   exclude=("DRAFT", "HOUSE")),
    ),
    D.SOB_CONFIRMATION: (
        MarkerRule(("SHIPPED ON BOARD",), 92, optional=("CONFIRMATION", "SOB", "ON BOARD DATE"),
                   exclude=("DRAFT", "BILL OF LADING")),
        MarkerRule(("SOB", "CONFIRMATION"), 90),
    ),

    # Arrival & delivery
    D.ARRIVAL_NOTICE: (
        MarkerRule(("ARRIVAL NOTICE",), 95, optional=("ETA", "PORT OF DISCHARGE", "CONSIGNEE"),
                   exclude=("EXCEPTION", "PRE-ARRIVAL")),
    ),
    D.DELIVERY_ORDER: (
        MarkerRule(("DELIVERY ORDER",), 92, optional=("DO NO", "RELEASE", "CONTAINER")),
        MarkerRule(("D/O",), 85, optional=("RELEASE", "CONTAINER")),
    ),
    D.CONTAINER_RELEASE: (
        MarkerRule(("CONTAINER", "RELEASE"), 88, optional=("AVAILABLE", "PICKUP")),
    ),
    D.PROOF_OF_DELIVERY: (
        MarkerRule(("PROOF OF DELIVERY",), 95),
        MarkerRule(("POD",), 85, optional=("DELIVERED", "SIGNATURE", "RECEIVED")),
    ),

    # Trucking
    D.RATE_CONFIRMATION: (
        MarkerRule(("RATE CONFIRMATION",), 92, optional=("CARRIER", "RATE", "PICKUP", "DELIVERY")),
        MarkerRule(("RATE", "CONFIRMED"), 85, optional=("TRUCKING", "DRAYAGE")),
    ),
    D.EMPTY_RETURN: (
        MarkerRule(("EMPTY", "RETURN"), 90, optional=("CONTAINER", "DEPOT")),
    ),
    D.WORK_ORDER: (
        MarkerRule(("WORK ORDER",), 90, optional=("PICKUP", "DELIVERY", "DRIVER", "TRUCK")),
        MarkerRule(("DISPATCH", "ORDER"), 85, optional=("CONTAINER", "PICKUP")),
    ),
    D.GATE_IN_CONFIRMATION: (
        MarkerRule(("GATE IN",), 88, optional=("CONFIRMATION", "CONTAINER", "TERMINAL")),
        MarkerRule(("GATE-IN",), 88, optional=("CONFIRMATION", "CONTAINER", "TERMINAL")),
    ),

    # Financial
    D.COMMERCIAL_INVOICE: (
        MarkerRule(("COMMERCIAL INVOICE",), 92, optional=("EXPORTER", "IMPORTER", "HS CODE", "FOB", "CIF")),
    ),
    D.FREIGHT_INVOICE: (
        MarkerRule(("FREIGHT INVOICE",), 90, optional=("OCEAN", "CONTAINER")),
        MarkerRule(("INVOICE", "OCEAN FREIGHT"), 85, optional=("CONTAINER", "SHIPPING")),
    ),
    D.INVOICE: (
        MarkerRule(("INVOICE",), 85,
                   optional=("INVOICE NO", "INVOICE DATE", "AMOUNT", "DUE DATE", "TOTAL"),
                   exclude=("DUTY", "DUTIES", "CUSTOMS", "COMMERCIAL")),
    ),
    D.PAYMENT_RECEIPT: (
        MarkerRule(("ACH PAYMENT",), 92, optional=("RECEIPT", "SENT")),
        MarkerRule(("RECEIPT",), 90, optional=("PAYMENT", "WIRE", "ACH", "PAID", "TRANSACTION")),
        MarkerRule(("WIRE", "PAYMENT"), 88, optional=("RECEIPT", "TRANSACTION", "AMOUNT")),
    ),
    D.PACKING_LIST: (
        MarkerRule(("PACKING LIST",), 92, optional=("PACKAGES", "WEIGHT", "DIMENSIONS", "QUANTITY")),
    ),

    # Schedule
    D.VESSEL_SCHEDULE: (
        MarkerRule(("VESSEL", "SCHEDULE"), 88, optional=("ETD", "ETA", "PORT", "ROTATION")),
    ),
    D.CUTOFF_ADVISORY: (
        MarkerRule(("CUTOFF",), 88, optional=("VGM", "SI", "DOCUMENTATION", "CARGO")),
        MarkerRule(("CUT-OFF",), 88, optional=("VGM", "SI", "DOCUMENTATION", "CARGO")),
    ),
    D.VGM_CONFIRMATION: (
        MarkerRule(("VGM",), 90, optional=("VERIFIED GROSS MASS", "CONFIRMED", "SUBMITTED")),
    ),
    D.CARGO_MANIFEST: (
        MarkerRule(("MANIFEST",), 85, optional=("CARGO", "CONTAINER", "VESSEL")),
    ),
    D.DELAY_NOTICE: (
        MarkerRule(("DELAY",), 88, optional=("VESSEL", "SCHEDULE", "ETD", "ETA", "ROLLOVER")),
        MarkerRule(("ROLLOVER",), 85, optional=("VESSEL", "BOOKING")),
    ),
    D.SHIPMENT_STATUS: (
        MarkerRule(("SHIPMENT", "STATUS"), 75, optional=("UPDATE", "TRACKING", "MILESTONE")),
    ),
}


ATTACHMENT_FILENAME_PATTERNS: tuple[tuple[re.Pattern, DocumentType], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), doc_type)
    for pattern, doc_type in (
        (r"7501|entry.?summary", D.ENTRY_SUMMARY),
        (r"3461|immediate.?delivery", D.ENTRY_IMMEDIATE_DELIVERY),
        (r"\bISF\b|10\+2", D.ISF_FILING),
        (r"draft.?entry", D.DRAFT_ENTRY),
        (r"duty.?invoice|customs.?invoice", D.DUTY_INVOICE),
        (r"shipping.?bill", D.SHIPPING_BILL),
        (r"\bLEO\b|let.?export", D.LEO_COPY),
        (r"checklist", D.CHECKLIST),
        (r"booking.?confirm|(?:^|[_\W])BC_", D.BOOKING_CONFIRMATION),
        (r"booking.?amend", D.BOOKING_AMENDMENT),
        (r"booking.?cancel", D.BOOKING_CANCELLATION),
        (r"SI.?draft|draft.?SI\b", D.SI_DRAFT),
        (r"shipping.?instruction|(?:^|[_\W])SI_", D.SHIPPING_INSTRUCTION),
        (r"HBL.?draft|draft.?HBL", D.HBL_DRAFT),
        (r"MBL.?draft|draft.?MBL|draft.?B.?L\b", D.DRAFT_BL),
        (r"\bHBL\b|house.?bill", D.HOUSE_BL),
        (r"\bMBL\b|master.?bill|bill.?of.?lading|sea.?waybill", D.BILL_OF_LADING),
        (r"\bSOB\b", D.SOB_CONFIRMATION),
        (r"arrival.?notice|(?:^|[_\W])AN_", D.ARRIVAL_NOTICE),
        (r"delivery.?order", D.DELIVERY_ORDER),
        (r"proof.?of.?delivery|\bPOD\b", D.PROOF_OF_DELIVERY),
        (r"rate.?confirm", D.RATE_CONFIRMATION),
        (r"empty.?return|\bMTY\b", D.EMPTY_RETURN),
        (r"work.?order|(?:^|[_\W])WO_", D.WORK_ORDER),
        (r"gate.?in", D.GATE_IN_CONFIRMATION),
        (r"commercial.?invoice|(?:^|[_\W])CI_", D.COMMERCIAL_INVOICE),
        (r"freight.?invoice", D.FREIGHT_INVOICE),
        (r"packing.?list|(?:^|[_\W])PL_", D.PACKING_LIST),
        (r"\bVGM\b", D.VGM_CONFIRMATION),
        (r"invoice|(?:^|[_\W])INV_", D.INVOICE),
        (r"manifest", D.CARGO_MANIFEST),
    )
)


DOCUMENT_ISSUERS: dict[DocumentType, tuple[SenderCategory, ...]] = {
    D.BILL_OF_LADING: (S.CARRIER,),
    D.SOB_CONFIRMATION: (S.CARRIER,),
    D.BOOKING_CONFIRMATION: (S.CARRIER,),
    D.BOOKING_CANCELLATION: (S.CARRIER,),
    D.ARRIVAL_NOTICE: (S.CARRIER, S.PARTNER),
    D.ENTRY_SUMMARY: (S.CUSTOMS_BROKER_US, S.PLATFORM),
    D.DRAFT_ENTRY: (S.CUSTOMS_BROKER_US,),
    D.DUTY_INVOICE: (S.CUSTOMS_BROKER_US,),
    D.SHIPPING_BILL: (S.CHA_INDIA,),
    D.LEO_COPY: (S.CHA_INDIA,),
    D.PROOF_OF_DELIVERY: (S.TRUCKER, S.CUSTOMS_BROKER_US, S.CONSIGNEE, S.WAREHOUSE),
}

# Internal staff forward everything; unknown senders are not evidence of a mismatch
ALWAYS_AUTHORIZED_SENDERS = frozenset({S.INTERNAL, S.UNKNOWN})


DOCUMENT_CATEGORIES: dict[DocumentType, DocumentCategory] = {
    D.BOOKING_CONFIRMATION: DocumentCategory.BOOKING,
    D.BOOKING_AMENDMENT: DocumentCategory.BOOKING,
    D.BOOKING_CANCELLATION: DocumentCategory.BOOKING,
    D.VGM_CONFIRMATION: DocumentCategory.VGM,
    D.VGM_SUBMISSION: DocumentCategory.VGM,
    D.VGM_REMINDER: DocumentCategory.VGM,
    D.VESSEL_SCHEDULE: DocumentCategory.SCHEDULE,
    D.CUTOFF_ADVISORY: DocumentCategory.SCHEDULE,
    D.DELAY_NOTICE: DocumentCategory.SCHEDULE,
    D.SHIPMENT_STATUS: DocumentCategory.SCHEDULE,
    D.COMMERCIAL_INVOICE: DocumentCategory.EXPORT_DOCS,
    D.PACKING_LIST: DocumentCategory.EXPORT_DOCS,
    D.CHECKLIST: DocumentCategory.INDIA_CUSTOMS,
    D.SHIPPING_BILL: DocumentCategory.INDIA_CUSTOMS,
    D.LEO_COPY: DocumentCategory.INDIA_CUSTOMS,
    D.SHIPPING_INSTRUCTION: DocumentCategory.DOCUMENTATION,
    D.SI_DRAFT: DocumentCategory.DOCUMENTATION,
    D.SI_CONFIRMATION: DocumentCategory.DOCUMENTATION,
    D.SI_SUBMISSION: DocumentCategory.DOCUMENTATION,
    D.BILL_OF_LADING: DocumentCategory.DOCUMENTATION,
    D.DRAFT_BL: DocumentCategory.DOCUMENTATION,
    D.HOUSE_BL: DocumentCategory.DOCUMENTATION,
    D.HBL_DRAFT: DocumentCategory.DOCUMENTATION,
    D.CARGO_MANIFEST: DocumentCategory.DOCUMENTATION,
    D.SHIPMENT_NOTICE: DocumentCategory.DOCUMENTATION,
    D.SOB_CONFIRMATION: DocumentCategory.SOB,
    D.ISF_FILING: DocumentCategory.US_CUSTOMS,
    D.DRAFT_ENTRY: DocumentCategory.US_CUSTOMS,
    D.ENTRY_SUMMARY: DocumentCategory.US_CUSTOMS,
    D.ENTRY_IMMEDIATE_DELIVERY: DocumentCategory.US_CUSTOMS,
    D.CUSTOMS_DOCUMENT: DocumentCategory.US_CUSTOMS,
    D.CUSTOMS_CLEARANCE: DocumentCategory.US_CUSTOMS,
    D.DUTY_INVOICE: DocumentCategory.US_CUSTOMS,
    D.ARRIVAL_NOTICE: DocumentCategory.ARRIVAL_DELIVERY,
    D.DELIVERY_ORDER: DocumentCategory.ARRIVAL_DELIVERY,
    D.CONTAINER_RELEASE: DocumentCategory.ARRIVAL_DELIVERY,
    D.PICKUP_NOTIFICATION: DocumentCategory.ARRIVAL_DELIVERY,
    D.DELIVERY_APPOINTMENT: DocumentCategory.ARRIVAL_DELIVERY,
    D.PROOF_OF_DELIVERY: DocumentCategory.ARRIVAL_DELIVERY,
    D.POD_CONFIRMATION: DocumentCategory.ARRIVAL_DELIVERY,
    D.PICKUP_CONFIRMATION: DocumentCategory.TRUCKING,
    D.EMPTY_RETURN: DocumentCategory.TRUCKING,
    D.WORK_ORDER: DocumentCategory.TRUCKING,
    D.RATE_CONFIRMATION: DocumentCategory.TRUCKING,
    D.GATE_IN_CONFIRMATION: DocumentCategory.TRUCKING,
    D.INVOICE: DocumentCategory.FINANCIAL,
    D.FREIGHT_INVOICE: DocumentCategory.FINANCIAL,
    D.PAYMENT_RECEIPT: DocumentCategory.FINANCIAL,
    D.RATE_QUOTE: DocumentCategory.FINANCIAL,
}


def document_category(document_type: DocumentType) -> DocumentCategory:
    return DOCUMENT_CATEGORIES.get(document_type, DocumentCategory.OTHER)
