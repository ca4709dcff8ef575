"""
Coarse shipment status inference and milestone mapping.

Document evidence first, dates as fallback; the result is always combined
with the current status through ShipmentStatus.upgrade so status never
regresses (cancelled stays cancelled).
"""

from datetime import datetime, timezone
from typing import Optional

from shipment_intel.models.enums import DocumentType, ShipmentStatus


D = DocumentType

DELIVERED_DOCUMENTS = frozenset({D.PROOF_OF_DELIVERY, D.POD_CONFIRMATION})
ARRIVAL_DOCUMENTS = frozenset({D.ARRIVAL_NOTICE, D.DELIVERY_ORDER, D.CONTAINER_RELEASE})
DEPARTURE_DOCUMENTS = frozenset({D.BILL_OF_LADING, D.CARGO_MANIFEST})
BOOKED_DOCUMENTS = frozenset({
    D.BOOKING_CONFIRMATION, D.BOOKING_AMENDMENT, D.SHIPPING_INSTRUCTION, D.RATE_CONFIRMATION,
})

# Milestone recorded on auto-link; delivery order means cargo released, not delivered
DOC_TYPE_TO_MILESTONE = {
    D.BOOKING_CONFIRMATION: "booking_confirmed",
    D.BOOKING_AMENDMENT: "booking_confirmed",
    D.VGM_CONFIRMATION: "vgm_submitted",
    D.SI_CONFIRMATION: "si_submitted",
    D.SHIPPING_INSTRUCTION: "si_submitted",
    D.HOUSE_BL: "hbl_released",
    D.BILL_OF_LADING: "hbl_released",
    D.ARRIVAL_NOTICE: "vessel_arrived",
    D.DELIVERY_ORDER: "cargo_released",
    D.PROOF_OF_DELIVERY: "delivered",
    D.POD_CONFIRMATION: "delivered",
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def infer_status_from_document(
    document_type: Optional[DocumentType],
    etd: Optional[datetime],
    eta: Optional[datetime],
    now: datetime,
) -> Optional[ShipmentStatus]:
    """
    Status asserted by a document alone, or None when the type says nothing.

    Arrival-type documents with an ETA still in the future are treated as
    possible misclassifications: in_transit, not arrived.
    """
    if document_type is None:
        return None
    now, etd, eta = _as_utc(now), _as_utc(etd), _as_utc(eta)

    if document_type in DELIVERED_DOCUMENTS:
        return ShipmentStatus.DELIVERED
    if document_type in ARRIVAL_DOCUMENTS:
        if eta is None or eta < now:
            return ShipmentStatus.ARRIVED
        return ShipmentStatus.IN_TRANSIT
    if document_type in DEPARTURE_DOCUMENTS:
        if etd is not None and etd < now:
            return ShipmentStatus.IN_TRANSIT
        return ShipmentStatus.BOOKED
    if document_type in BOOKED_DOCUMENTS:
        return ShipmentStatus.BOOKED
    return None


def infer_status_from_dates(etd: Optional[datetime], eta: Optional[datetime], now: datetime) -> ShipmentStatus:
    now, etd, eta = _as_utc(now), _as_utc(etd), _as_utc(eta)
    if eta is not None and eta < now:
        return ShipmentStatus.ARRIVED
    if etd is not None and etd < now:
        return ShipmentStatus.IN_TRANSIT
    return ShipmentStatus.DRAFT


def determine_shipment_status(
    document_type: Optional[DocumentType],
    etd: Optional[datetime],
    eta: Optional[datetime],
    current_status: ShipmentStatus = ShipmentStatus.DRAFT,
    now: Optional[datetime] = None,
) -> ShipmentStatus:
    """
    Final status for a shipment given one piece of document evidence.

    Examples:
        >>> determine_shipment_status(DocumentType.PROOF_OF_DELIVERY, None, None, ShipmentStatus.BOOKED)
        <ShipmentStatus.DELIVERED: 'delivered'>
    """
    now = now or datetime.now(timezone.utc)
    inferred = infer_status_from_document(document_type, etd, eta, now)
    if inferred is None:
        inferred = infer_status_from_dates(etd, eta, now)
    return ShipmentStatus.upgrade(current_status, inferred)
