"""Unit tests for shipment status inference."""

from datetime import datetime, timedelta, timezone

import pytest

from shipment_intel.linking.status_inference import (
    DOC_TYPE_TO_MILESTONE,
    determine_shipment_status,
    infer_status_from_dates,
)
from shipment_intel.models.enums import DocumentType, ShipmentStatus


NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)
PAST = NOW - timedelta(days=3)
FUTURE = NOW + timedelta(days=3)


@pytest.mark.parametrize("document_type,etd,eta,current,expected", [
    (DocumentType.PROOF_OF_DELIVERY, None, None, ShipmentStatus.BOOKED, ShipmentStatus.DELIVERED),
    (DocumentType.ARRIVAL_NOTICE, PAST, PAST, ShipmentStatus.IN_TRANSIT, ShipmentStatus.ARRIVED),
    (DocumentType.ARRIVAL_NOTICE, None, None, ShipmentStatus.BOOKED, ShipmentStatus.ARRIVED),
    (DocumentType.ARRIVAL_NOTICE, PAST, FUTURE, ShipmentStatus.BOOKED, ShipmentStatus.IN_TRANSIT),
    (DocumentType.BILL_OF_LADING, PAST, None, ShipmentStatus.BOOKED, ShipmentStatus.IN_TRANSIT),
    (DocumentType.BILL_OF_LADING, FUTURE, None, ShipmentStatus.DRAFT, ShipmentStatus.BOOKED),
    (DocumentType.CARGO_MANIFEST, PAST, None, ShipmentStatus.DRAFT, ShipmentStatus.IN_TRANSIT),
    (DocumentType.BOOKING_CONFIRMATION, None, None, ShipmentStatus.DRAFT, ShipmentStatus.BOOKED),
    (DocumentType.BOOKING_CONFIRMATION, None, None, ShipmentStatus.ARRIVED, ShipmentStatus.ARRIVED),
    (DocumentType.PROOF_OF_DELIVERY, None, None, ShipmentStatus.CANCELLED, ShipmentStatus.CANCELLED),
    (DocumentType.GENERAL_CORRESPONDENCE, PAST, None, ShipmentStatus.BOOKED, ShipmentStatus.IN_TRANSIT),
    (None, None, PAST, ShipmentStatus.DRAFT, ShipmentStatus.ARRIVED),
])
def test_determine_shipment_status(document_type, etd, eta, current, expected):
    assert determine_shipment_status(document_type, etd, eta, current, now=NOW) == expected


def test_naive_dates_are_treated_as_utc():
    naive_past = datetime(2025, 2, 26)
    assert determine_shipment_status(DocumentType.BILL_OF_LADING, naive_past, None, now=NOW) == ShipmentStatus.IN_TRANSIT


def test_dates_without_evidence():
    assert infer_status_from_dates(None, None, NOW) == ShipmentStatus.DRAFT
    assert infer_status_from_dates(FUTURE, FUTURE, NOW) == ShipmentStatus.DRAFT


def test_delivery_order_is_not_delivery():
    assert DOC_TYPE_TO_MILESTONE[DocumentType.DELIVERY_ORDER] == "cargo_released"
    assert DOC_TYPE_TO_MILESTONE[DocumentType.PROOF_OF_DELIVERY] == "delivered"
