"""
Regex tables for the email-content matcher.

SUBJECT_PATTERNS apply to the clean subject of original emails only.
BODY_INDICATORS apply to the fresh body of any email; they are phrased as
statements about *this* email's content ("please find attached the arrival
notice") so they do not fire on a reply that merely mentions a document.

Order matters: more specific patterns first, first match wins.
"""

import re

from shipment_intel.models.enums import DocumentType

D = DocumentType


def _compile(table):
    return tuple((re.compile(pattern, flags), doc_type, confidence) for pattern, flags, doc_type, confidence in table)


IC = re.IGNORECASE

SUBJECT_PATTERNS: tuple[tuple[re.Pattern, DocumentType, int], ...] = _compile((
    # Shipped on board
    (r"\bSOB\s+CONFIRM", IC, D.SOB_CONFIRMATION, 95),
    (r"\bSOB\s+for\b", IC, D.SOB_CONFIRMATION, 95),
    (r"\bshipped\s+on\s+board", IC, D.SOB_CONFIRMATION, 95),
    (r"\bon\s*board\s+confirm", IC, D.SOB_CONFIRMATION, 90),
    (r"\bcontainer.*loaded", IC, D.SOB_CONFIRMATION, 85),

    # Arrival notice
    (r"^Arrival Notice\s*\(BL#:", IC, D.ARRIVAL_NOTICE, 98),
    (r"^(?:COSCO|OOCL|SMIL) Arrival Notice", IC, D.ARRIVAL_NOTICE, 98),
    (r"^CMA CGM - Arrival notice available", IC, D.ARRIVAL_NOTICE, 98),
    (r"\barrival\s+notice\b", IC, D.ARRIVAL_NOTICE, 95),
    (r"\bnotice\s+of\s+arrival\b", IC, D.ARRIVAL_NOTICE, 95),

    # House BL draft
    (r"\bBL\s+DRAFT\s+FOR\b", IC, D.HBL_DRAFT, 95),
    (r"\bHBL\s+DRAFT", IC, D.HBL_DRAFT, 95),
    (r"\bdraft\s+(?:HBL|B/?L)\b", IC, D.HBL_DRAFT, 95),
    (r"\bARRANGE\s+BL\s+DRAFT", IC, D.HBL_DRAFT, 95),
    (r"\bBL\s+for\s+(?:your\s+)?(?:approval|review)", IC, D.HBL_DRAFT, 90),
    (r"\bmodification.*draft\s+BL", IC, D.HBL_DRAFT, 90),

    # SI draft
    (r"\bSI\s+draft", IC, D.SI_DRAFT, 95),
    (r"\bdraft\s+SI\b", IC, D.SI_DRAFT, 95),
    (r"\bSIL\s*&\s*VGM", IC, D.SI_DRAFT, 95),
    (r"\bSI\s+for\s+(?:your\s+)?(?:approval|review)", IC, D.SI_DRAFT, 90),

    # Bill of lading
    (r"\bbill\s+of\s+lading\b", IC, D.BILL_OF_LADING, 95),
    (r"\bfinal\s*B/?L\b", IC, D.BILL_OF_LADING, 90),
    (r"\bsea\s*waybill\b", IC, D.BILL_OF_LADING, 90),
    (r"\bmaster\s*B/?L\b", IC, D.BILL_OF_LADING, 90),
    (r"\bhouse\s*B/?L\b", IC, D.HOUSE_BL, 90),
    (r"\bHBL\s*[#:]", IC, D.HOUSE_BL, 85),
    (r"\bMBL\s*[#:]", IC, D.BILL_OF_LADING, 85),

    # Booking cancellation / amendment
    (r"\bbooking.*cancel", IC, D.BOOKING_CANCELLATION, 95),
    (r"\bcancel.*booking", IC, D.BOOKING_CANCELLATION, 95),
    (r"\bcancellation\s+notice", IC, D.BOOKING_CANCELLATION, 90),
    (r"\b(?:1st|2nd|3rd|\d+th)\s+UPDATE\b", IC, D.BOOKING_AMENDMENT, 95),
    (r"\bamendment\s+to\s+booking", IC, D.BOOKING_AMENDMENT, 95),
    (r"\bbooking.*amendment", IC, D.BOOKING_AMENDMENT, 90),
    (r"\brollover\b", IC, D.BOOKING_AMENDMENT, 85),

    # Delivery order
    (r"\bdelivery\s+order\b", IC, D.DELIVERY_ORDER, 95),
    (r"\bD/?O\s+(?:release|issued)", IC, D.DELIVERY_ORDER, 90),
    (r"\brelease\s+order\b", IC, D.DELIVERY_ORDER, 85),

    # Shipping instruction
    (r"\bSI\s+CUT\s*OFF", IC, D.CUTOFF_ADVISORY, 85),
    (r"\bSI\s+(?:submission|submitted)", IC, D.SI_SUBMISSION, 90),
    (r"\bSI\s+confirm", IC, D.SI_CONFIRMATION, 90),
    (r"\bshipping\s+instruction", IC, D.SHIPPING_INSTRUCTION, 90),

    # VGM
    (r"\bVGM\s+(?:remind|deadline|cutoff)", IC, D.VGM_REMINDER, 90),
    (r"\bVGM\s+(?:confirm|accept|receiv)", IC, D.VGM_CONFIRMATION, 95),
    (r"\bVGM\s+submi", IC, D.VGM_SUBMISSION, 95),
    (r"\bverified\s+gross\s+mass", IC, D.VGM_CONFIRMATION, 90),

    # Booking confirmation
    (r"^Booking\s+Confirmation\s*:", IC, D.BOOKING_CONFIRMATION, 90),
    (r"CMA\s*CGM.*Booking\s+confirmation", IC, D.BOOKING_CONFIRMATION, 90),
    (r"\[Hapag.*Booking\s+Confirmation", IC, D.BOOKING_CONFIRMATION, 90),

    # Duty invoice before generic invoices
    (r"\bduty\s+invoice", IC, D.DUTY_INVOICE, 95),
    (r"\bInvoice-\d{6,}", IC, D.DUTY_INVOICE, 95),
    (r"\bduty\s+(?:payment|statement|summary|bill)\b", IC, D.DUTY_INVOICE, 90),
    (r"\brequest\s+for\s+duty", IC, D.DUTY_INVOICE, 90),
    (r"\b(?:customs|import)\s+duty", IC, D.DUTY_INVOICE, 85),

    # Invoice
    (r"\bfreight\s+invoice\b", IC, D.FREIGHT_INVOICE, 90),
    (r"\bcommercial\s+invoice", IC, D.COMMERCIAL_INVOICE, 85),
    (r"\binvoice\s*#\s*[A-Z0-9-]+", IC, D.INVOICE, 90),
    (r"\binvoice\s+\d+", IC, D.INVOICE, 85),
    (r"\bproforma\s+invoice", IC, D.INVOICE, 85),

    # India export (CHA documents)
    (r"\bchecklist\s+(?:for\s+)?(?:approval|review)", IC, D.CHECKLIST, 95),
    (r"\bchecklist\s+(?:attached|for|ready)", IC, D.CHECKLIST, 95),
    (r"\b(?:export|CHA)\s+checklist", IC, D.CHECKLIST, 95),
    (r"\bshipment\s+checklist", IC, D.CHECKLIST, 90),
    (r"\bdocument\s+checklist", IC, D.CHECKLIST, 85),
    (r"\bshipping\s+bill\s+(?:copy|number|attached)", IC, D.SHIPPING_BILL, 95),
    (r"\bSB\s+(?:copy|no\.?|number)", IC, D.SHIPPING_BILL, 90),
    (r"\bLEO\s+(?:copy|attached|received)", IC, D.LEO_COPY, 95),
    (r"\blet\s+export\s+order", IC, D.LEO_COPY, 95),
    (r"\bexport\s+clearance", IC, D.SHIPPING_BILL, 85),

    # US import (customs broker documents)
    (r"\bdraft\s+entry", IC, D.DRAFT_ENTRY, 95),
    (r"\bentry\s+draft", IC, D.DRAFT_ENTRY, 95),
    (r"\b7501\s+draft", IC, D.DRAFT_ENTRY, 95),
    (r"\d{3}-\d{7}-\d-3461\b", 0, D.DRAFT_ENTRY, 95),
    (r"\bcustoms\s+entry\s+(?:draft|for\s+review)", IC, D.DRAFT_ENTRY, 90),
    (r"\bentry\s+for\s+(?:review|approval)", IC, D.DRAFT_ENTRY, 90),
    (r"\bentry\s+approval\s+required", IC, D.DRAFT_ENTRY, 90),
    (r"\bentry\s+summary", IC, D.ENTRY_SUMMARY, 95),
    (r"\b7501\s+(?:filed|submitted|summary)", IC, D.ENTRY_SUMMARY, 95),
    (r"\b\d{3}-\d{7}-\d-7501\b", 0, D.ENTRY_SUMMARY, 95),
    (r"\bfiled\s+entry", IC, D.ENTRY_SUMMARY, 90),
    (r"\bcustoms\s+entry\s+(?:filed|released)", IC, D.ENTRY_SUMMARY, 90),
    (r"\bentry\s+release", IC, D.ENTRY_SUMMARY, 85),
    (r"\b7501\b", 0, D.ENTRY_SUMMARY, 85),
    (r"\bISF\s+(?:fil|confirm|submit)", IC, D.ISF_FILING, 90),
    (r"Cargo\s+Release\s+Update", IC, D.CUSTOMS_CLEARANCE, 95),
    (r"ACE\s+RELEASE", IC, D.CUSTOMS_CLEARANCE, 95),
    (r"\bDAD\b.*release", IC, D.CUSTOMS_CLEARANCE, 90),
    (r"\bcustoms\s+clear(?:ance|ed)?", IC, D.CUSTOMS_CLEARANCE, 90),

    # Trucking
    (r"Work\s+Order\s*:", IC, D.WORK_ORDER, 90),
    (r"Dray(?:age)?\s+Order", IC, D.WORK_ORDER, 90),
    (r"Container\s+(?:is\s+)?out\b", IC, D.PICKUP_CONFIRMATION, 95),
    (r"\bpickup\s+complete", IC, D.PICKUP_CONFIRMATION, 95),
    (r"\bpicked\s+up\b", IC, D.PICKUP_CONFIRMATION, 90),
    (r"Appointment\s+(?:ID|#|confirmed|scheduled)", IC, D.DELIVERY_APPOINTMENT, 90),
    (r"delivery\s+appointment", IC, D.DELIVERY_APPOINTMENT, 90),

    # Proof of delivery
    (r"Proof\s+of\s+Delivery", IC, D.PROOF_OF_DELIVERY, 95),
    (r"Signed\s+(?:POD|delivery|BOL)", IC, D.PROOF_OF_DELIVERY, 95),
    (r"\bPOD\b", IC, D.PROOF_OF_DELIVERY, 95),
    (r"Delivery\s+Confirmation", IC, D.PROOF_OF_DELIVERY, 90),
    (r"Successfully\s+Delivered", IC, D.PROOF_OF_DELIVERY, 90),

    # Empty return
    (r"Empty\s+Return", IC, D.EMPTY_RETURN, 95),
    (r"MTY\s+Return", IC, D.EMPTY_RETURN, 95),
    (r"Container\s+Returned", IC, D.EMPTY_RETURN, 90),

    # Quotes, schedules, notices
    (r"\bprice\s+overview\b", IC, D.RATE_QUOTE, 90),
    (r"\b(?:rate|freight)\s+quot", IC, D.RATE_QUOTE, 90),
    (r"\b(?:vessel|sailing)\s+schedule\b", IC, D.VESSEL_SCHEDULE, 90),
    (r"\bETD.*ETA\b", IC, D.VESSEL_SCHEDULE, 80),
    (r"\bFMC\s+filing\b", IC, D.SHIPMENT_NOTICE, 90),
    (r"\bshipment\s+notice\b", IC, D.SHIPMENT_NOTICE, 90),
    (r"\bpickup\s+(?:notice|notif|ready)", IC, D.PICKUP_NOTIFICATION, 90),
    (r"\bcontainer\s+release", IC, D.CONTAINER_RELEASE, 85),
    (r"\bcut\s*-?\s*off\s+(?:advis|change|update)", IC, D.CUTOFF_ADVISORY, 90),
    (r"\bdeadline\s+(?:change|extend)", IC, D.CUTOFF_ADVISORY, 85),
))


_ATTACHED = r"(?:please\s+find\s+(?:attached|enclosed)|attached\s+(?:is|are|please\s+find)|enclosed\s+(?:is|please\s+find)|we\s+(?:have\s+)?attached|PFA)"

BODY_INDICATORS: tuple[tuple[re.Pattern, DocumentType], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), doc_type)
    for pattern, doc_type in (
        (rf"{_ATTACHED}[^.\n]*\barrival\s+notice", D.ARRIVAL_NOTICE),
        (rf"{_ATTACHED}[^.\n]*\bdraft\s+(?:HBL|B/?L|bill\s+of\s+lading)", D.HBL_DRAFT),
        (rf"{_ATTACHED}[^.\n]*\b(?:HBL|house\s+B/?L)", D.HOUSE_BL),
        (rf"{_ATTACHED}[^.\n]*\b(?:final\s+)?(?:MBL|B/?L|bill\s+of\s+lading)", D.BILL_OF_LADING),
        (rf"{_ATTACHED}[^.\n]*\bbooking\s+confirmation", D.BOOKING_CONFIRMATION),
        (rf"{_ATTACHED}[^.\n]*\b(?:SI|shipping\s+instruction)\s+draft", D.SI_DRAFT),
        (rf"{_ATTACHED}[^.\n]*\bchecklist", D.CHECKLIST),
        (rf"{_ATTACHED}[^.\n]*\bshipping\s+bill", D.SHIPPING_BILL),
        (rf"{_ATTACHED}[^.\n]*\bLEO\b", D.LEO_COPY),
        (rf"{_ATTACHED}[^.\n]*\bdraft\s+entry", D.DRAFT_ENTRY),
        (rf"{_ATTACHED}[^.\n]*\bentry\s+summary|{_ATTACHED}[^.\n]*\b7501\b", D.ENTRY_SUMMARY),
        (rf"{_ATTACHED}[^.\n]*\bduty\s+invoice", D.DUTY_INVOICE),
        (rf"{_ATTACHED}[^.\n]*\bdelivery\s+order", D.DELIVERY_ORDER),
        (rf"{_ATTACHED}[^.\n]*\b(?:POD|proof\s+of\s+delivery)", D.PROOF_OF_DELIVERY),
        (rf"{_ATTACHED}[^.\n]*\binvoice", D.INVOICE),
        (r"\b(?:vessel|container)s?\s+(?:has|have)\s+been\s+(?:shipped|loaded)\s+on\s+board", D.SOB_CONFIRMATION),
        (r"\bSOB\s+(?:date|confirmed)\b", D.SOB_CONFIRMATION),
        (r"\bbooking\s+(?:has\s+been|is)\s+cancel", D.BOOKING_CANCELLATION),
        (r"\bbooking\s+(?:has\s+been|is)\s+(?:amended|updated|revised)", D.BOOKING_AMENDMENT),
        (r"\bVGM\s+(?:has\s+been|is)\s+(?:submitted|accepted|confirmed)", D.VGM_CONFIRMATION),
        (r"\b(?:SI|shipping\s+instructions?)\s+(?:has|have)\s+been\s+(?:submitted|filed)", D.SI_SUBMISSION),
        (r"\bentry\s+(?:has\s+been|was)\s+(?:filed|released)", D.ENTRY_SUMMARY),
        (r"\bcustoms\s+(?:has\s+been|have\s+been|is)\s+cleared|\bcleared\s+customs\b", D.CUSTOMS_CLEARANCE),
        (r"\bcontainer\s+(?:has\s+been|was|is)\s+delivered|\bsuccessfully\s+delivered", D.PROOF_OF_DELIVERY),
        (r"\bcontainer\s+(?:has\s+been|was)\s+picked\s+up", D.PICKUP_CONFIRMATION),
        (r"\bempty\s+(?:container\s+)?(?:has\s+been\s+)?returned", D.EMPTY_RETURN),
    )
)
