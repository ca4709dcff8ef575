"""Unit tests for ShipmentLinkingService with in-memory collaborators."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock

import pytest

from shipment_intel.linking.linking_service import ShipmentLinkingService
from shipment_intel.linking.repositories import MilestoneRecorder
from shipment_intel.models.enums import (
    DocumentType,
    LinkOutcome,
    LinkStrategy,
    LinkType,
    SenderCategory,
    ShipmentStatus,
)
from shipment_intel.models.shipment_models import EmailRecord, EmailShipmentLink, StoredClassification
from shipment_intel.workflow.state_machine import WorkflowStateMachine


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(
    test_settings, shipment_store, email_repo, classification_repo, link_repo, audit_log, milestones, workflow_store
):
    return ShipmentLinkingService(
        shipment_reader=shipment_store,
        shipment_writer=shipment_store,
        email_repo=email_repo,
        classification_repo=classification_repo,
        link_repo=link_repo,
        audit_log=audit_log,
        milestone_recorder=milestones,
        workflow=WorkflowStateMachine(store=workflow_store, clock=lambda: NOW),
        settings=test_settings,
        clock=lambda: NOW,
    )


@pytest.fixture
def add_email(email_repo, entity):
    """add_email("E1", "noreply@maersk.com", booking_number="262874542", etd="2025-03-10")"""
    def _add(email_id, sender_email, received_at=NOW, subject="", thread_id=None, **entities):
        email_repo.add(
            EmailRecord(
                email_id=email_id,
                sender_email=sender_email,
                received_at=received_at,
                subject=subject,
                thread_id=thread_id,
            ),
            [entity(entity_type, value) for entity_type, value in entities.items()],
        )

    return _add


class TestProcessEmail:

    def test_no_identifiers_skips_lookups(self, service, shipment_store, add_email):
        add_email("E1", "noreply@maersk.com", vessel_name="MAERSK KOLKATA")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.NO_IDENTIFIERS
        assert result.matched is False
        assert shipment_store.lookups == []

    def test_no_matching_shipment(self, service, link_repo, audit_log, add_email):
        add_email("E1", "noreply@maersk.com", booking_number="999999999")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.NO_MATCHING_SHIPMENT
        assert result.shipment_id is None
        assert link_repo.links == {}
        assert audit_log.events == []

    def test_auto_link_with_enrichment(
        self, service, shipment_store, classification_repo, link_repo, audit_log, milestones,
        workflow_store, make_shipment, add_email,
    ):
        shipment_store.add(make_shipment(
            "S1", booking_number="262874542", vessel_name="EXISTING VESSEL", status=ShipmentStatus.DRAFT
        ))
        add_email(
            "E1", "noreply@maersk.com",
            booking_number="262874542",
            vessel_name="MAERSK KOLKATA",
            commodity_description="Steel fasteners",
            etd="2025-03-10",
            si_cutoff="05-Mar-2025",
        )
        classification_repo.classifications["E1"] = StoredClassification(
            document_type=DocumentType.BOOKING_CONFIRMATION,
            sender_category=SenderCategory.CARRIER,
            subject="Booking Confirmation",
        )

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.AUTO_LINKED
        assert result.matched is True
        assert result.shipment_id == "S1"
        assert result.confidence_score == 100
        assert result.link_type == LinkType.BOOKING_NUMBER
        assert result.matched_value == "262874542"
        assert result.side_effect_errors == []
        assert set(result.updated_fields) == {"commodity_description", "etd", "si_cutoff", "status"}

        link = link_repo.links["E1"]
        assert link.shipment_id == "S1"
        assert link.document_type == DocumentType.BOOKING_CONFIRMATION
        assert link.link_confidence_score == 100
        assert [e.event_type for e in audit_log.events] == ["link_created"]

        shipment = shipment_store.find_by_id("S1")
        assert shipment.vessel_name == "EXISTING VESSEL"
        assert shipment.commodity_description == "Steel fasteners"
        assert shipment.etd == datetime(2025, 3, 10, tzinfo=timezone.utc)
        assert shipment.si_cutoff == datetime(2025, 3, 5, tzinfo=timezone.utc)
        assert shipment.status == ShipmentStatus.BOOKED

        assert milestones.recorded == [("S1", "booking_confirmed", "E1")]
        assert workflow_store.get_snapshot("S1").current_state == "booking_confirmed"

    def test_enrichment_runs_under_lock(
        self, test_settings, shipment_store, email_repo, classification_repo, link_repo, audit_log,
        make_shipment, add_email,
    ):
        lock = MagicMock()
        service = ShipmentLinkingService(
            shipment_store, shipment_store, email_repo, classification_repo, link_repo, audit_log,
            enrichment_lock=lock, settings=test_settings, clock=lambda: NOW,
        )
        shipment_store.add(make_shipment("S1", booking_number="262874542"))
        add_email("E1", "noreply@maersk.com", booking_number="262874542")

        service.process_email("E1")

        lock.assert_called_once_with("S1")
        lock.return_value.__enter__.assert_called_once()

    def test_conflict_links_by_identifier_priority(self, service, shipment_store, link_repo, audit_log,
                                                   make_shipment, add_email):
        shipment_store.add(make_shipment("S1", booking_number="BKG1"))
        shipment_store.add(make_shipment("S2", container_number_primary="MSKU1234567"))
        add_email("E1", "noreply@maersk.com", container_number="MSKU 123456-7", booking_number="BKG1")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.AUTO_LINKED
        assert result.shipment_id == "S1"
        assert result.conflict is True
        assert result.conflicting_shipment_ids == ["S2"]
        assert list(link_repo.links) == ["E1"]
        assert link_repo.links["E1"].shipment_id == "S1"

        conflict = audit_log.of_type("link_conflict")
        assert len(conflict) == 1
        assert set(conflict[0].details["candidates"]) == {"S1", "S2"}
        assert len(audit_log.of_type("link_created")) == 1

    def test_conflict_requires_review(self, service, shipment_store, link_repo, make_shipment, add_email):
        service.settings.CONFLICT_REQUIRES_REVIEW = True
        shipment_store.add(make_shipment("S1", booking_number="BKG1"))
        shipment_store.add(make_shipment("S2", container_number_primary="MSKU1234567"))
        add_email("E1", "noreply@maersk.com", booking_number="BKG1", container_number="MSKU1234567")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.SUGGESTED
        assert result.matched is False
        assert link_repo.links == {}
        assert link_repo.candidates[0].conflicting_shipment_ids == ["S2"]

    def test_medium_confidence_creates_suggestion(self, service, shipment_store, link_repo, audit_log,
                                                  make_shipment, add_email):
        shipment_store.add(make_shipment("S1", container_number_primary="MSKU1234567"))
        add_email("E1", "ops@forwarder-example.com", received_at=None, container_number="MSKU1234567")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.SUGGESTED
        assert result.matched is False
        assert result.shipment_id == "S1"
        assert result.confidence_score == 65

        candidate = link_repo.candidates[0]
        assert candidate.action == LinkOutcome.SUGGESTED
        assert candidate.link_type == LinkType.CONTAINER_NUMBER
        assert candidate.confidence_score == 65
        assert link_repo.links == {}
        assert [e.event_type for e in audit_log.events] == ["link_suggested"]
        assert shipment_store.updates == []

    def test_low_confidence_creates_nothing(self, service, shipment_store, link_repo, audit_log,
                                            make_shipment, add_email):
        shipment_store.add(make_shipment("S1", container_number_primary="MSKU1234567"))
        add_email("E1", "ops@forwarder-example.com", received_at=NOW + timedelta(days=200),
                  container_number="MSKU1234567")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.LOW_CONFIDENCE
        assert result.matched is False
        assert result.shipment_id is None
        assert result.confidence_score == 50
        assert result.reasoning.startswith("Confidence too low (50%)")
        assert link_repo.links == {}
        assert link_repo.candidates == []
        assert audit_log.events == []

    def test_failing_side_effect_keeps_link(self, test_settings, shipment_store, email_repo, classification_repo,
                                            link_repo, audit_log, make_shipment, add_email):
        recorder = Mock(spec=MilestoneRecorder)
        recorder.record_milestone.side_effect = RuntimeError("milestone store down")
        service = ShipmentLinkingService(
            shipment_store, shipment_store, email_repo, classification_repo, link_repo, audit_log,
            milestone_recorder=recorder, settings=test_settings, clock=lambda: NOW,
        )
        shipment_store.add(make_shipment("S1", booking_number="262874542"))
        add_email("E1", "noreply@maersk.com", booking_number="262874542")
        classification_repo.classifications["E1"] = StoredClassification(
            document_type=DocumentType.BOOKING_CONFIRMATION
        )

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.AUTO_LINKED
        assert result.matched is True
        assert result.side_effect_errors == ["milestone: milestone store down (details: {'error_type': 'RuntimeError'})"]
        assert "E1" in link_repo.links

    def test_link_not_stored_is_error(self, service, shipment_store, link_repo, audit_log, make_shipment, add_email):
        link_repo.create_link = Mock(return_value=False)
        shipment_store.add(make_shipment("S1", booking_number="262874542"))
        add_email("E1", "noreply@maersk.com", booking_number="262874542")

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.ERROR
        assert result.matched is False
        assert audit_log.of_type("link_created") == []

    def test_collaborator_exception_is_error(self, service, email_repo):
        email_repo.get_entities = Mock(side_effect=RuntimeError("boom"))

        result = service.process_email("E1")

        assert result.outcome == LinkOutcome.ERROR
        assert result.matched is False
        assert result.reasoning == "Linking failed: RuntimeError: boom"


class TestThreadAwareLinking:

    def test_reply_quoting_foreign_booking_links_to_thread_authority(
        self, service, shipment_store, link_repo, audit_log, make_shipment, add_email,
    ):
        shipment_store.add(make_shipment("S1", booking_number="BKG1"))
        shipment_store.add(make_shipment("S2", booking_number="BKG2"))
        add_email(
            "E1", "noreply@maersk.com", received_at=NOW - timedelta(days=1),
            subject="Booking Confirmation", thread_id="T1", booking_number="BKG1",
        )
        add_email(
            "E2", "noreply@maersk.com",
            subject="RE: Booking Confirmation", thread_id="T1",
            booking_number="BKG2", vessel_name="MAERSK KOLKATA",
        )

        result = service.process_email("E2")

        assert result.outcome == LinkOutcome.AUTO_LINKED
        assert result.shipment_id == "S1"
        assert result.matched_value == "BKG1"
        assert result.link_strategy == LinkStrategy.THREAD_AUTHORITY
        assert result.authority_email_id == "E1"
        assert result.conflict is False
        assert "via thread authority E1" in result.reasoning
        assert ("booking_number", "BKG2") not in shipment_store.lookups
        assert link_repo.links["E2"].shipment_id == "S1"

        created = audit_log.of_type("link_created")[0]
        assert created.details["link_strategy"] == "thread_authority"
        assert created.details["authority_email_id"] == "E1"
        assert shipment_store.find_by_id("S1").vessel_name == "MAERSK KOLKATA"
        assert shipment_store.find_by_id("S2").vessel_name is None

    def test_standalone_email_uses_own_identifiers(self, service, shipment_store, make_shipment, add_email):
        shipment_store.add(make_shipment("S1", booking_number="BKG1"))
        add_email("E1", "noreply@maersk.com", subject="Booking Confirmation", booking_number="BKG1")

        result = service.process_email("E1")

        assert result.shipment_id == "S1"
        assert result.link_strategy == LinkStrategy.DIRECT_EXTRACTION
        assert result.authority_email_id is None

    def test_reply_without_thread_authority_uses_own_identifiers(
        self, service, shipment_store, make_shipment, add_email,
    ):
        shipment_store.add(make_shipment("S2", booking_number="BKG2"))
        add_email("E1", "ops@intoglo.com", subject="Booking request", thread_id="T1")
        add_email("E2", "noreply@maersk.com", subject="RE: Booking request", thread_id="T1", booking_number="BKG2")

        result = service.process_email("E2")

        assert result.shipment_id == "S2"
        assert result.link_strategy == LinkStrategy.DIRECT_EXTRACTION

    def test_disabled_thread_linking(self, service, shipment_store, make_shipment, add_email):
        service.settings.THREAD_AWARE_LINKING = False
        shipment_store.add(make_shipment("S1", booking_number="BKG1"))
        shipment_store.add(make_shipment("S2", booking_number="BKG2"))
        add_email("E1", "noreply@maersk.com", subject="Booking", thread_id="T1", booking_number="BKG1")
        add_email("E2", "noreply@maersk.com", subject="RE: Booking", thread_id="T1", booking_number="BKG2")

        result = service.process_email("E2")

        assert result.shipment_id == "S2"
        assert result.link_strategy == LinkStrategy.DIRECT_EXTRACTION


class TestUpdateShipmentStatus:

    def test_upgrade(self, service, shipment_store, make_shipment):
        shipment_store.add(make_shipment("S1", status=ShipmentStatus.BOOKED))

        status = service.update_shipment_status_from_document("S1", DocumentType.PROOF_OF_DELIVERY)

        assert status == ShipmentStatus.DELIVERED
        assert shipment_store.updates == [("S1", {"status": ShipmentStatus.DELIVERED})]

    def test_never_downgrades(self, service, shipment_store, make_shipment):
        shipment_store.add(make_shipment("S1", status=ShipmentStatus.ARRIVED))

        assert service.update_shipment_status_from_document("S1", DocumentType.BOOKING_CONFIRMATION) is None
        assert shipment_store.updates == []

    def test_unknown_shipment(self, service):
        assert service.update_shipment_status_from_document("missing", DocumentType.BILL_OF_LADING) is None


class TestProcessUnlinkedEmails:

    @pytest.fixture
    def inbox(self, shipment_store, link_repo, make_shipment, add_email):
        shipment_store.add(make_shipment("S1", booking_number="BKG1", container_number_primary="MSKU1234567"))
        add_email("E1", "noreply@maersk.com", booking_number="BKG1")
        add_email("E2", "ops@forwarder-example.com", received_at=None, container_number="MSKU1234567")
        add_email("E3", "noreply@maersk.com", booking_number="UNKNOWN1")
        add_email("E4", "noreply@maersk.com", booking_number="BKG1")
        add_email("E5", "noreply@maersk.com", vessel_name="MAERSK KOLKATA")
        link_repo.create_link(EmailShipmentLink(
            email_id="E4", shipment_id="S1", link_type=LinkType.BOOKING_NUMBER, link_confidence_score=90
        ))

    def test_counts_outcomes(self, service, inbox):
        summary = service.process_unlinked_emails()

        assert summary.processed == 3
        assert summary.linked == 1
        assert summary.candidates_created == 1
        assert summary.errors == 0

    def test_max_emails(self, service, inbox):
        summary = service.process_unlinked_emails(max_emails=1)

        assert summary.processed == 1
        assert summary.linked == 1

    def test_failures_are_counted(self, service, link_repo, inbox):
        link_repo.is_email_linked = Mock(side_effect=[RuntimeError("redis down"), False, False, False])

        summary = service.process_unlinked_emails()

        assert summary.errors == 1
        assert summary.processed == 4
        assert summary.linked == 1


class TestResync:

    def test_fills_empty_fields_and_status(self, service, shipment_store, link_repo, classification_repo,
                                           make_shipment, add_email):
        shipment_store.add(make_shipment("S1", booking_number="BKG1", status=ShipmentStatus.BOOKED))
        add_email("E1", "noreply@maersk.com", booking_number="BKG1", etd="2025-02-01", vessel_name="MAERSK KOLKATA")
        classification_repo.classifications["E1"] = StoredClassification(document_type=DocumentType.BILL_OF_LADING)
        link_repo.create_link(EmailShipmentLink(
            email_id="E1", shipment_id="S1", link_type=LinkType.BOOKING_NUMBER, link_confidence_score=95
        ))

        result = service.resync_shipment_from_linked_emails("S1")

        assert result.updated is True
        assert set(result.updated_fields) == {"vessel_name", "etd", "status"}
        shipment = shipment_store.find_by_id("S1")
        assert shipment.status == ShipmentStatus.IN_TRANSIT
        assert shipment.booking_number == "BKG1"

    def test_draft_falls_back_to_dates(self, service, shipment_store, link_repo, make_shipment, add_email):
        shipment_store.add(make_shipment("S1", status=ShipmentStatus.DRAFT))
        add_email("E1", "ops@forwarder-example.com", eta="2025-02-20")
        link_repo.create_link(EmailShipmentLink(
            email_id="E1", shipment_id="S1", link_type=LinkType.CONTAINER_NUMBER, link_confidence_score=90
        ))

        service.resync_shipment_from_linked_emails("S1")

        assert shipment_store.find_by_id("S1").status == ShipmentStatus.ARRIVED

    def test_missing_shipment(self, service):
        assert service.resync_shipment_from_linked_emails("missing").updated is False

    def test_resync_all(self, service, shipment_store, link_repo, make_shipment, add_email):
        shipment_store.add(make_shipment("S1"))
        shipment_store.add(make_shipment("S2"))
        shipment_store.add(make_shipment("S3"))
        add_email("E1", "noreply@maersk.com", vessel_name="MAERSK KOLKATA")
        link_repo.create_link(EmailShipmentLink(
            email_id="E1", shipment_id="S1", link_type=LinkType.BOOKING_NUMBER, link_confidence_score=90
        ))
        linked_email_ids = link_repo.find_linked_email_ids

        def find_linked(shipment_id):
            if shipment_id == "S3":
                raise RuntimeError("redis down")
            return linked_email_ids(shipment_id)

        link_repo.find_linked_email_ids = find_linked

        summary = service.resync_all_shipments(page_size=1)

        assert summary.processed == 3
        assert summary.updated == 1
        assert summary.errors == 1
        assert summary.fields_updated == {"vessel_name": 1}
