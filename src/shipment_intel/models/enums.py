"""
Enumerations for the shipment intelligence data models.

All enums are closed taxonomies. Classifiers that cannot decide fall back to
the explicit UNKNOWN member rather than leaving a field empty.
"""

from enum import Enum


class DocumentType(str, Enum):
    """
    Type of the document an email carries (what is attached / described).

    Booking, documentation, customs, arrival/delivery, trucking, financial and
    schedule families. GENERAL_CORRESPONDENCE is the downgrade target for
    duplicated or unauthorized document claims; UNKNOWN means no match.
    """

    # Booking
    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_AMENDMENT = "booking_amendment"
    BOOKING_CANCELLATION = "booking_cancellation"

    # Documentation
    SHIPPING_INSTRUCTION = "shipping_instruction"
    SI_DRAFT = "si_draft"
    SI_CONFIRMATION = "si_confirmation"
    SI_SUBMISSION = "si_submission"
    BILL_OF_LADING = "bill_of_lading"
    DRAFT_BL = "draft_bl"
    HOUSE_BL = "house_bl"
    HBL_DRAFT = "hbl_draft"
    SOB_CONFIRMATION = "sob_confirmation"

    # VGM
    VGM_CONFIRMATION = "vgm_confirmation"
    VGM_SUBMISSION = "vgm_submission"
    VGM_REMINDER = "vgm_reminder"

    # India export customs
    CHECKLIST = "checklist"
    SHIPPING_BILL = "shipping_bill"
    LEO_COPY = "leo_copy"

    # US import customs
    ISF_FILING = "isf_filing"
    DRAFT_ENTRY = "draft_entry"
    ENTRY_SUMMARY = "entry_summary"
    ENTRY_IMMEDIATE_DELIVERY = "entry_immediate_delivery"
    CUSTOMS_DOCUMENT = "customs_document"
    CUSTOMS_CLEARANCE = "customs_clearance"
    DUTY_INVOICE = "duty_invoice"

    # Arrival & delivery
    ARRIVAL_NOTICE = "arrival_notice"
    DELIVERY_ORDER = "delivery_order"
    CONTAINER_RELEASE = "container_release"
    PICKUP_NOTIFICATION = "pickup_notification"
    PICKUP_CONFIRMATION = "pickup_confirmation"
    DELIVERY_APPOINTMENT = "delivery_appointment"
    PROOF_OF_DELIVERY = "proof_of_delivery"
    POD_CONFIRMATION = "pod_confirmation"

    # Trucking
    EMPTY_RETURN = "empty_return"
    WORK_ORDER = "work_order"
    RATE_CONFIRMATION = "rate_confirmation"
    GATE_IN_CONFIRMATION = "gate_in_confirmation"

    # Financial / export docs
    INVOICE = "invoice"
    FREIGHT_INVOICE = "freight_invoice"
    COMMERCIAL_INVOICE = "commercial_invoice"
    PACKING_LIST = "packing_list"
    PAYMENT_RECEIPT = "payment_receipt"
    RATE_QUOTE = "rate_quote"

    # Schedule
    VESSEL_SCHEDULE = "vessel_schedule"
    CUTOFF_ADVISORY = "cutoff_advisory"
    DELAY_NOTICE = "delay_notice"
    CARGO_MANIFEST = "cargo_manifest"
    SHIPMENT_NOTICE = "shipment_notice"
    SHIPMENT_STATUS = "shipment_status"

    GENERAL_CORRESPONDENCE = "general_correspondence"
    UNKNOWN = "unknown"


class DocumentCategory(str, Enum):
    """Coarse grouping of document types."""

    BOOKING = "booking"
    VGM = "vgm"
    SCHEDULE = "schedule"
    EXPORT_DOCS = "export_docs"
    INDIA_CUSTOMS = "india_customs"
    DOCUMENTATION = "documentation"
    SOB = "sob"
    US_CUSTOMS = "us_customs"
    ARRIVAL_DELIVERY = "arrival_delivery"
    TRUCKING = "trucking"
    FINANCIAL = "financial"
    OTHER = "other"


class EmailType(str, Enum):
    """
    Communicative intent of an email (why it was sent).

    Independent from DocumentType: one email can carry a booking confirmation
    attachment and still be a document_share.
    """

    # Approval
    APPROVAL_REQUEST = "approval_request"
    APPROVAL_GRANTED = "approval_granted"
    APPROVAL_REJECTED = "approval_rejected"

    # Status
    STUFFING_UPDATE = "stuffing_update"
    GATE_IN_UPDATE = "gate_in_update"
    HANDOVER_UPDATE = "handover_update"
    DEPARTURE_UPDATE = "departure_update"
    TRANSIT_UPDATE = "transit_update"
    ARRIVAL_UPDATE = "arrival_update"

    # Customs
    PRE_ALERT = "pre_alert"
    CLEARANCE_INITIATION = "clearance_initiation"
    CLEARANCE_COMPLETE = "clearance_complete"

    # Delivery
    DELIVERY_SCHEDULING = "delivery_scheduling"
    PICKUP_SCHEDULING = "pickup_scheduling"
    DELIVERY_COMPLETE = "delivery_complete"

    # Commercial
    QUOTE_REQUEST = "quote_request"
    QUOTE_RESPONSE = "quote_response"
    PAYMENT_REQUEST = "payment_request"
    PAYMENT_CONFIRMATION = "payment_confirmation"

    # Change
    AMENDMENT_REQUEST = "amendment_request"
    CANCELLATION_NOTICE = "cancellation_notice"

    # Communication
    QUERY = "query"
    REMINDER = "reminder"
    URGENT_ACTION = "urgent_action"
    DELAY_NOTICE = "delay_notice"
    DEMURRAGE_ACTION = "demurrage_action"
    DOCUMENT_SHARE = "document_share"
    GENERAL_CORRESPONDENCE = "general_correspondence"
    ACKNOWLEDGEMENT = "acknowledgement"
    ESCALATION = "escalation"

    UNKNOWN = "unknown"


class EmailCategory(str, Enum):
    """Grouping of email types."""

    APPROVAL = "approval"
    STATUS = "status"
    CUSTOMS = "customs"
    DELIVERY = "delivery"
    COMMERCIAL = "commercial"
    CHANGE = "change"
    COMMUNICATION = "communication"
    UNKNOWN = "unknown"


class SenderCategory(str, Enum):
    """Party that sent the email, derived from its address only."""

    CARRIER = "carrier"
    CHA_INDIA = "cha_india"
    CUSTOMS_BROKER_US = "customs_broker_us"
    SHIPPER = "shipper"
    CONSIGNEE = "consignee"
    TRUCKER = "trucker"
    WAREHOUSE = "warehouse"
    PARTNER = "partner"
    PLATFORM = "platform"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


class Sentiment(str, Enum):
    """Email sentiment derived from weighted keyword groups."""

    URGENT = "urgent"
    ESCALATED = "escalated"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"


class Direction(str, Enum):
    """Whether an email enters (inbound) or leaves (outbound) the organisation."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class DocumentMethod(str, Enum):
    """Which matcher produced the document classification."""

    PDF_CONTENT = "pdf_content"
    EMAIL_CONTENT = "email_content"
    FALLBACK = "fallback"


class DocumentSource(str, Enum):
    """Which part of the email the document classification came from."""

    PDF = "pdf"
    ATTACHMENT = "attachment"
    SUBJECT = "subject"
    BODY = "body"
    UNKNOWN = "unknown"


class ShipmentStatus(str, Enum):
    """
    Coarse shipment status.

    Ordered draft -> booked -> in_transit -> arrived -> delivered; status only
    moves forward. CANCELLED sits outside the progression.
    """

    DRAFT = "draft"
    BOOKED = "booked"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def get_priority(cls, status: "ShipmentStatus") -> int:
        """Get priority for status comparison (cancelled=-1, draft=0 ... delivered=4)."""
        if status == cls.CANCELLED:
            return -1
        order = [cls.DRAFT, cls.BOOKED, cls.IN_TRANSIT, cls.ARRIVED, cls.DELIVERED]
        return order.index(status)

    @classmethod
    def upgrade(cls, current: "ShipmentStatus", inferred: "ShipmentStatus") -> "ShipmentStatus":
        """Higher-priority of the two; a cancelled shipment stays cancelled."""
        if current == cls.CANCELLED:
            return current
        if cls.get_priority(inferred) > cls.get_priority(current):
            return inferred
        return current


class WorkflowPhase(str, Enum):
    """Sequential phases of the operational workflow."""

    PRE_DEPARTURE = "pre_departure"
    IN_TRANSIT = "in_transit"
    ARRIVAL = "arrival"
    DELIVERY = "delivery"


class TriggerType(str, Enum):
    """What evidence triggered a workflow transition."""

    DOCUMENT = "document"
    EMAIL = "email"
    BOTH = "both"
    NONE = "none"


class LinkType(str, Enum):
    """Identifier family a link was established through."""

    BOOKING_NUMBER = "booking_number"
    BL_NUMBER = "bl_number"
    CONTAINER_NUMBER = "container_number"
    ENTITY_MATCH = "entity_match"


class LinkOutcome(str, Enum):
    """Terminal outcome of one linking attempt."""

    AUTO_LINKED = "auto_linked"
    SUGGESTED = "suggested"
    LOW_CONFIDENCE = "low_confidence"
    NO_IDENTIFIERS = "no_identifiers"
    NO_MATCHING_SHIPMENT = "no_matching_shipment"
    ERROR = "error"


class LinkStrategy(str, Enum):
    """Where the identifiers used to resolve a shipment came from."""

    THREAD_AUTHORITY = "thread_authority"  # first original email of the thread
    DIRECT_EXTRACTION = "direct_extraction"  # the email's own extractions


class EmailAuthority(str, Enum):
    """How authoritative a sender is for shipment identifiers."""

    DIRECT_CARRIER = "direct_carrier"
    INTERNAL = "internal"
    THIRD_PARTY = "third_party"


class EntityType(str, Enum):
    """Entity types produced by the upstream extraction step."""

    BOOKING_NUMBER = "booking_number"
    BL_NUMBER = "bl_number"
    CONTAINER_NUMBER = "container_number"
    REFERENCE_NUMBER = "reference_number"
    VESSEL_NAME = "vessel_name"
    VOYAGE_NUMBER = "voyage_number"
    PORT_OF_LOADING = "port_of_loading"
    PORT_OF_LOADING_CODE = "port_of_loading_code"
    PORT_OF_DISCHARGE = "port_of_discharge"
    PORT_OF_DISCHARGE_CODE = "port_of_discharge_code"
    PLACE_OF_RECEIPT = "place_of_receipt"
    PLACE_OF_DELIVERY = "place_of_delivery"
    ETD = "etd"
    ETA = "eta"
    ATD = "atd"
    ATA = "ata"
    ESTIMATED_DEPARTURE_DATE = "estimated_departure_date"
    ESTIMATED_ARRIVAL_DATE = "estimated_arrival_date"
    SI_CUTOFF = "si_cutoff"
    VGM_CUTOFF = "vgm_cutoff"
    CARGO_CUTOFF = "cargo_cutoff"
    GATE_CUTOFF = "gate_cutoff"
    COMMODITY = "commodity"
    COMMODITY_DESCRIPTION = "commodity_description"
    WEIGHT = "weight"
    WEIGHT_UNIT = "weight_unit"
    VOLUME = "volume"
    VOLUME_UNIT = "volume_unit"
    INCOTERMS = "incoterms"
    FREIGHT_TERMS = "freight_terms"
