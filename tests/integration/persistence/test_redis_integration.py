"""Integration tests for the Redis adapters against a real server.

Run: docker-compose up redis
Tests are skipped if Redis is not reachable.
"""

from datetime import datetime, timezone

import pytest
from redis.exceptions import LockError

from shipment_intel.models.enums import LinkOutcome, LinkType, TriggerType
from shipment_intel.models.shipment_models import AuditEvent, EmailShipmentLink, LinkCandidate
from shipment_intel.models.workflow_models import TransitionRecord, WorkflowSnapshot
from shipment_intel.persistence.repository import (
    RedisAuditLog,
    RedisEnrichmentLock,
    RedisLinkRepository,
    RedisWorkflowStateStore,
)


LINKED_AT = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_link(email_id, shipment_id, minutes=0):
    return EmailShipmentLink(
        email_id=email_id,
        shipment_id=shipment_id,
        link_type=LinkType.BOOKING_NUMBER,
        link_identifier_value="262874542",
        link_confidence_score=98,
        created_at=LINKED_AT.replace(minute=minutes),
    )


def test_links_are_listed_per_shipment_oldest_first(real_redis_client, integration_settings):
    repository = RedisLinkRepository(real_redis_client, integration_settings)

    assert repository.create_link(make_link("E2", "S1", minutes=5))
    assert repository.create_link(make_link("E1", "S1", minutes=1))

    assert repository.find_linked_email_ids("S1") == ["E1", "E2"]
    assert repository.is_email_linked("E1") is True
    assert repository.is_email_linked("E9") is False


def test_relinking_moves_email_between_shipments(real_redis_client, integration_settings):
    repository = RedisLinkRepository(real_redis_client, integration_settings)
    repository.create_link(make_link("E1", "S1"))

    repository.create_link(make_link("E1", "S2"))

    assert repository.get_link("E1").shipment_id == "S2"
    assert repository.find_linked_email_ids("S1") == []
    assert repository.find_linked_email_ids("S2") == ["E1"]


def test_candidates_newest_first(real_redis_client, integration_settings):
    repository = RedisLinkRepository(real_redis_client, integration_settings)
    for email_id in ("E1", "E2"):
        repository.create_candidate(
            LinkCandidate(
                email_id=email_id,
                shipment_id="S1",
                link_type=LinkType.CONTAINER_NUMBER,
                confidence_score=65,
                action=LinkOutcome.SUGGESTED,
            )
        )

    assert [c.email_id for c in repository.get_candidates()] == ["E2", "E1"]


def test_audit_log_keeps_append_order(real_redis_client):
    audit_log = RedisAuditLog(real_redis_client)
    audit_log.append(AuditEvent(event_type="link_created", email_id="E1"))
    audit_log.append(AuditEvent(event_type="link_conflict", email_id="E2"))

    assert [e.event_type for e in audit_log.recent()] == ["link_created", "link_conflict"]


def test_workflow_store_round_trip(real_redis_client):
    store = RedisWorkflowStateStore(real_redis_client)
    snapshot = WorkflowSnapshot(current_state="booking_confirmed", reached_states=["booking_confirmed"])
    record = TransitionRecord(shipment_id="S1", to_state="booking_confirmed", triggered_by=TriggerType.DOCUMENT)

    store.save_transition(record, snapshot)

    assert store.get_snapshot("S1") == snapshot
    assert store.get_history("S1") == [record]
    assert store.get_snapshot("S2") == WorkflowSnapshot()


def test_enrichment_lock_is_exclusive_per_shipment(real_redis_client):
    locks = RedisEnrichmentLock(real_redis_client, timeout=5, blocking_timeout=0.1)

    with locks("S1"):
        with locks("S2"):
            pass
        with pytest.raises(LockError):
            with locks("S1"):
                pass
