"""Unit test fixtures (mocks and in-memory collaborators).

Provides mock objects and dict-backed implementations of the collaborator
interfaces for testing without Redis or an LLM server.
"""

from typing import Any, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from shipment_intel.linking.repositories import (
    AuditLog,
    ClassificationRepository,
    EmailRepository,
    LinkRepository,
    MilestoneRecorder,
    ShipmentEnrichmentWriter,
    ShipmentReader,
)
from shipment_intel.models.llm_models import LLMGenerationResponse
from shipment_intel.models.shipment_models import (
    AuditEvent,
    EmailRecord,
    EmailShipmentLink,
    EntityExtraction,
    LinkCandidate,
    Shipment,
    StoredClassification,
)
from shipment_intel.models.workflow_models import TransitionRecord, WorkflowSnapshot
from shipment_intel.workflow.state_machine import WorkflowStateStore


class InMemoryShipments(ShipmentReader, ShipmentEnrichmentWriter):
    """Shipment store with exact-match lookups; records every update call."""

    def __init__(self, shipments: Optional[list[Shipment]] = None):
        self.shipments: dict[str, Shipment] = {s.id: s for s in shipments or []}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.lookups: list[tuple[str, str]] = []

    def add(self, shipment: Shipment) -> Shipment:
        self.shipments[shipment.id] = shipment
        return shipment

    def find_by_id(self, shipment_id: str) -> Optional[Shipment]:
        return self.shipments.get(shipment_id)

    def find_by_booking_number(self, booking_number: str) -> Optional[Shipment]:
        self.lookups.append(("booking_number", booking_number))
        return next((s for s in self.shipments.values() if s.booking_number == booking_number), None)

    def find_by_bl_number(self, bl_number: str) -> Optional[Shipment]:
        self.lookups.append(("bl_number", bl_number))
        return next((s for s in self.shipments.values() if s.bl_number == bl_number), None)

    def find_by_container_number(self, container_number: str) -> Optional[Shipment]:
        self.lookups.append(("container_number", container_number))
        return next(
            (
                s for s in self.shipments.values()
                if s.container_number_primary == container_number or container_number in s.container_numbers
            ),
            None,
        )

    def list_shipments(self, limit: int, offset: int = 0) -> list[Shipment]:
        return list(self.shipments.values())[offset:offset + limit]

    def update_fields(self, shipment_id: str, updates: dict[str, Any]) -> None:
        self.updates.append((shipment_id, dict(updates)))
        self.shipments[shipment_id] = self.shipments[shipment_id].model_copy(update=updates)


class InMemoryEmails(EmailRepository):

    def __init__(self):
        self.emails: dict[str, EmailRecord] = {}
        self.entities: dict[str, list[EntityExtraction]] = {}

    def add(self, email: EmailRecord, entities: list[EntityExtraction]) -> None:
        self.emails[email.email_id] = email
        self.entities[email.email_id] = list(entities)

    def get_email(self, email_id: str) -> Optional[EmailRecord]:
        return self.emails.get(email_id)

    def get_entities(self, email_id: str) -> list[EntityExtraction]:
        return list(self.entities.get(email_id, []))

    def find_emails_with_identifiers(self, limit: int, offset: int = 0) -> list[str]:
        identifier_types = {"booking_number", "bl_number", "container_number"}
        ids = [
            email_id for email_id, entities in self.entities.items()
            if any(e.entity_type in identifier_types for e in entities)
        ]
        return ids[offset:offset + limit]

    def find_thread_emails(self, thread_id: str) -> list[EmailRecord]:
        return [email for email in self.emails.values() if email.thread_id == thread_id]


class InMemoryClassifications(ClassificationRepository):

    def __init__(self):
        self.classifications: dict[str, StoredClassification] = {}
        self.saved: dict[str, Any] = {}

    def get_classification(self, email_id: str) -> Optional[StoredClassification]:
        return self.classifications.get(email_id)

    def save_classification(self, email_id: str, result) -> None:
        self.saved[email_id] = result


class InMemoryLinks(LinkRepository):

    def __init__(self):
        self.links: dict[str, EmailShipmentLink] = {}
        self.candidates: list[LinkCandidate] = []

    def create_link(self, link: EmailShipmentLink) -> bool:
        self.links[link.email_id] = link
        return True

    def create_candidate(self, candidate: LinkCandidate) -> bool:
        self.candidates.append(candidate)
        return True

    def is_email_linked(self, email_id: str) -> bool:
        return email_id in self.links

    def find_linked_email_ids(self, shipment_id: str) -> list[str]:
        return [link.email_id for link in self.links.values() if link.shipment_id == shipment_id]


class InMemoryAuditLog(AuditLog):

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append(self, event: AuditEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


class InMemoryMilestones(MilestoneRecorder):

    def __init__(self):
        self.recorded: list[tuple[str, str, Optional[str]]] = []

    def record_milestone(self, shipment_id, milestone_code, email_id=None, notes=None) -> None:
        self.recorded.append((shipment_id, milestone_code, email_id))


class InMemoryWorkflowStore(WorkflowStateStore):

    def __init__(self):
        self.snapshots: dict[str, WorkflowSnapshot] = {}
        self.history: dict[str, list[TransitionRecord]] = {}

    def get_snapshot(self, shipment_id: str) -> WorkflowSnapshot:
        return self.snapshots.get(shipment_id, WorkflowSnapshot())

    def save_transition(self, record: TransitionRecord, snapshot: WorkflowSnapshot) -> None:
        self.snapshots[record.shipment_id] = snapshot
        self.history.setdefault(record.shipment_id, []).append(record)

    def get_history(self, shipment_id: str) -> list[TransitionRecord]:
        return list(self.history.get(shipment_id, []))


@pytest.fixture
def shipment_store():
    return InMemoryShipments()


@pytest.fixture
def email_repo():
    return InMemoryEmails()


@pytest.fixture
def classification_repo():
    return InMemoryClassifications()


@pytest.fixture
def link_repo():
    return InMemoryLinks()


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def milestones():
    return InMemoryMilestones()


@pytest.fixture
def workflow_store():
    return InMemoryWorkflowStore()


@pytest.fixture
def mock_redis():
    """Mock Redis client for unit tests (sync)."""
    mock = Mock()
    mock.set = Mock(return_value=True)
    mock.get = Mock(return_value=None)
    mock.lpush = Mock(return_value=1)
    mock.rpush = Mock(return_value=1)
    mock.lrange = Mock(return_value=[])
    mock.exists = Mock(return_value=0)
    mock.zadd = Mock(return_value=1)
    mock.zrange = Mock(return_value=[])
    mock.pipeline = Mock(return_value=Mock())
    return mock


@pytest.fixture
def mock_llm_response():
    """Well-formed model answer for the AI classification prompt."""
    return LLMGenerationResponse(
        content=(
            '{"sender_category": "carrier", "email_type": "arrival_update", '
            '"email_category": "status", "sentiment": "neutral", "confidence": 88, '
            '"reasoning": "Carrier arrival update for the vessel"}'
        ),
        model_version="qwen2.5:7b",
        finish_reason="stop",
        prompt_tokens=400,
        completion_tokens=60,
        latency_ms=900,
        raw_metadata={},
    )


@pytest.fixture
def mock_ollama_client(mock_llm_response):
    """Mock OllamaClient for unit tests."""
    mock = AsyncMock()
    mock.generate = AsyncMock(return_value=mock_llm_response)
    mock.health_check = AsyncMock(return_value=True)
    mock.list_models = AsyncMock(return_value=["qwen2.5:7b"])
    return mock
