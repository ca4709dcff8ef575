"""Unit tests for link confidence scoring."""

from datetime import datetime, timedelta, timezone

import pytest

from shipment_intel.linking.confidence_scorer import LinkConfidenceScorer, primary_link_type
from shipment_intel.models.enums import DocumentType, EmailAuthority, LinkType


CREATED = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def scorer(test_settings):
    return LinkConfidenceScorer.from_settings(test_settings)


class TestEmailAuthority:

    @pytest.mark.parametrize("sender,expected", [
        ("noreply@maersk.com", EmailAuthority.DIRECT_CARRIER),
        ("bookings@hlag.cloud", EmailAuthority.DIRECT_CARRIER),
        ("ops@intoglo.com", EmailAuthority.INTERNAL),
        ("ops@mail.intoglo.in", EmailAuthority.INTERNAL),
        ("ops@forwarder-example.com", EmailAuthority.THIRD_PARTY),
        ("not-an-address", EmailAuthority.THIRD_PARTY),
        (None, EmailAuthority.THIRD_PARTY),
    ])
    def test_classification(self, scorer, sender, expected):
        assert scorer.email_authority(sender) == expected


class TestScore:

    def test_base_scores(self, scorer):
        booking = scorer.score({LinkType.BOOKING_NUMBER}, sender_email="ops@intoglo.com")
        bl = scorer.score({LinkType.BL_NUMBER}, sender_email="ops@intoglo.com")
        container = scorer.score({LinkType.CONTAINER_NUMBER}, sender_email="ops@intoglo.com")

        assert (booking.score, bl.score, container.score) == (93, 88, 73)
        assert booking.primary_type == LinkType.BOOKING_NUMBER

    def test_additional_identifiers_never_lower_score(self, scorer):
        single = scorer.score({LinkType.CONTAINER_NUMBER}, sender_email="ops@forwarder-example.com")
        multi = scorer.score(
            {LinkType.CONTAINER_NUMBER, LinkType.BL_NUMBER}, sender_email="ops@forwarder-example.com"
        )

        assert multi.score >= single.score
        assert multi.primary_type == LinkType.BL_NUMBER
        assert multi.corroboration == 5
        assert multi.score == 85

    def test_document_fit_bonus(self, scorer):
        fitting = scorer.score({LinkType.BL_NUMBER}, "ops@forwarder-example.com", DocumentType.ARRIVAL_NOTICE)
        unrelated = scorer.score({LinkType.BL_NUMBER}, "ops@forwarder-example.com", DocumentType.VGM_REMINDER)

        assert fitting.document_fit == 5
        assert unrelated.document_fit == 0
        assert fitting.score - unrelated.score == 5

    @pytest.mark.parametrize("days,adjustment", [
        (0, 3), (7, 3), (8, 0), (30, 0), (31, -5), (90, -5), (91, -15), (400, -15),
    ])
    def test_time_proximity(self, scorer, days, adjustment):
        breakdown = scorer.score(
            {LinkType.CONTAINER_NUMBER},
            sender_email="ops@forwarder-example.com",
            email_received_at=CREATED + timedelta(days=days),
            shipment_created_at=CREATED,
        )
        assert breakdown.time_proximity == adjustment
        assert breakdown.score == 65 + adjustment

    def test_naive_and_aware_dates(self, scorer):
        breakdown = scorer.score(
            {LinkType.BOOKING_NUMBER},
            email_received_at=datetime(2025, 1, 3),
            shipment_created_at=CREATED,
        )
        assert breakdown.time_proximity == 3

    def test_offset_dates_are_compared_in_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        received = datetime(2025, 1, 10, 23, 0, tzinfo=ist)

        assert LinkConfidenceScorer.days_between(received, datetime(2025, 1, 3, 20, 0)) == 6
        assert LinkConfidenceScorer.days_between(datetime(2025, 1, 3, 20, 0), received) == 6

    def test_clamped_to_100(self, scorer):
        breakdown = scorer.score(
            {LinkType.BOOKING_NUMBER, LinkType.BL_NUMBER, LinkType.CONTAINER_NUMBER},
            sender_email="noreply@maersk.com",
            document_type=DocumentType.BOOKING_CONFIRMATION,
        )
        assert breakdown.score == 100

    def test_no_identifiers(self, scorer):
        breakdown = scorer.score(set())
        assert breakdown.score == 0
        assert breakdown.describe() == "no identifiers"

    def test_describe_lists_factors(self, scorer):
        breakdown = scorer.score({LinkType.BOOKING_NUMBER}, sender_email="noreply@maersk.com")
        assert breakdown.describe() == "booking_number match (+90), direct_carrier sender (+8)"


def test_primary_link_type():
    assert primary_link_type([LinkType.CONTAINER_NUMBER, LinkType.BL_NUMBER]) == LinkType.BL_NUMBER
    assert primary_link_type([]) is None
