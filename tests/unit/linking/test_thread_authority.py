"""Unit tests for thread authority selection."""

from datetime import datetime, timedelta, timezone

import pytest

from shipment_intel.linking.thread_authority import (
    ThreadAuthorityResolver,
    best_identifier,
    is_response,
    without_identifiers,
)
from shipment_intel.models.enums import LinkStrategy, LinkType
from shipment_intel.models.shipment_models import EmailRecord, EntityExtraction, MatchedIdentifier


START = datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)


def extraction(entity_type, value, confidence=80):
    return EntityExtraction(entity_type=entity_type, entity_value=value, confidence=confidence)


@pytest.fixture
def resolver(email_repo):
    return ThreadAuthorityResolver(email_repo)


@pytest.fixture
def add_thread_email(email_repo):
    def _add(email_id, subject, entities=(), received_at=START, thread_id="T1"):
        email = EmailRecord(email_id=email_id, subject=subject, received_at=received_at, thread_id=thread_id)
        email_repo.add(email, list(entities))
        return email

    return _add


class TestBestIdentifier:

    def test_booking_beats_higher_confidence_container(self):
        identifier, confidence = best_identifier([
            extraction("container_number", "MSKU 123456-7", confidence=99),
            extraction("booking_number", " bkg1 ", confidence=60),
        ])

        assert identifier == MatchedIdentifier(link_type=LinkType.BOOKING_NUMBER, value="BKG1")
        assert confidence == 60

    def test_confidence_then_order_within_type(self):
        identifier, _ = best_identifier([
            extraction("bl_number", "BL1", confidence=70),
            extraction("bl_number", "BL2", confidence=90),
            extraction("bl_number", "BL3", confidence=90),
        ])
        assert identifier.value == "BL2"

    def test_container_is_normalized(self):
        identifier, _ = best_identifier([extraction("container_number", "msku 123456-7")])
        assert identifier == MatchedIdentifier(link_type=LinkType.CONTAINER_NUMBER, value="MSKU1234567")

    def test_no_identifiers(self):
        entities = [extraction("vessel_name", "MAERSK KOLKATA"), extraction("booking_number", "  ")]
        assert best_identifier(entities) is None


class TestThreadAuthority:

    def test_first_original_with_identifier(self, resolver, add_thread_email):
        add_thread_email("E1", "Booking request", received_at=START)
        add_thread_email("E2", "Booking Confirmation", [extraction("booking_number", "BKG1")],
                         received_at=START + timedelta(hours=2))
        add_thread_email("E3", "Booking Confirmation", [extraction("booking_number", "BKG9")],
                         received_at=START + timedelta(hours=5))
        add_thread_email("E0", "RE: Booking request", [extraction("booking_number", "BKG0")],
                         received_at=START - timedelta(hours=1))

        authority = resolver.get_thread_authority("T1")

        assert authority.authority_email_id == "E2"
        assert authority.identifier.value == "BKG1"
        assert authority.thread_id == "T1"

    def test_responses_only_thread_uses_earliest_response(self, resolver, add_thread_email):
        add_thread_email("E2", "RE: SI", [extraction("bl_number", "BL2")], received_at=START + timedelta(days=1))
        add_thread_email("E1", "FW: SI", [extraction("bl_number", "BL1")], received_at=START)

        assert resolver.get_thread_authority("T1").authority_email_id == "E1"

    def test_undated_emails_sort_last(self, resolver, add_thread_email):
        add_thread_email("E1", "Arrival Notice", [extraction("bl_number", "BL1")], received_at=None)
        add_thread_email("E2", "Arrival Notice", [extraction("bl_number", "BL2")], received_at=datetime(2025, 2, 3))

        assert resolver.get_thread_authority("T1").authority_email_id == "E2"

    def test_unknown_thread(self, resolver):
        assert resolver.get_thread_authority("missing") is None


class TestResolve:

    def test_response_uses_authority_identifier(self, resolver, add_thread_email):
        add_thread_email("E1", "Booking Confirmation", [extraction("booking_number", "BKG1")])
        quoted = [extraction("booking_number", "BKG2"), extraction("container_number", "TGHU9876543")]
        reply = add_thread_email("E2", "RE: Booking Confirmation", quoted, received_at=START + timedelta(hours=1))

        keys, strategy, authority = resolver.resolve(reply, quoted)

        assert strategy == LinkStrategy.THREAD_AUTHORITY
        assert keys.booking_numbers == ["BKG1"]
        assert keys.container_numbers == []
        assert authority.authority_email_id == "E1"

    def test_original_uses_own_identifiers(self, resolver, add_thread_email):
        add_thread_email("E1", "Booking Confirmation", [extraction("booking_number", "BKG1")])
        own = [extraction("booking_number", "BKG5")]
        email = add_thread_email("E5", "Booking amendment", own, received_at=START + timedelta(days=1))

        keys, strategy, authority = resolver.resolve(email, own)

        assert strategy == LinkStrategy.DIRECT_EXTRACTION
        assert keys.booking_numbers == ["BKG5"]
        assert authority is None

    def test_response_without_thread_id(self, resolver):
        own = [extraction("bl_number", "BL7")]
        email = EmailRecord(email_id="E7", subject="RE: BL draft")

        keys, strategy, _ = resolver.resolve(email, own)

        assert strategy == LinkStrategy.DIRECT_EXTRACTION
        assert keys.bl_numbers == ["BL7"]

    def test_missing_email_record(self, resolver):
        keys, strategy, _ = resolver.resolve(None, [extraction("bl_number", "BL7")])

        assert strategy == LinkStrategy.DIRECT_EXTRACTION
        assert keys.bl_numbers == ["BL7"]


@pytest.mark.parametrize("subject,expected", [
    ("RE: Booking", True),
    ("Fwd: Arrival Notice", True),
    ("Booking RE: amendment", False),
    ("", False),
])
def test_is_response(subject, expected):
    assert is_response(EmailRecord(email_id="E1", subject=subject)) is expected


def test_without_identifiers_keeps_other_entities():
    kept = without_identifiers([
        extraction("booking_number", "BKG1"),
        extraction("vessel_name", "MAERSK KOLKATA"),
        extraction("bl_number", "BL1"),
        extraction("container_number", "MSKU1234567"),
        extraction("etd", "2025-03-10"),
    ])
    assert [e.entity_type for e in kept] == ["vessel_name", "etd"]
