"""
Collaborator interfaces consumed by the linking service.

Storage of emails, shipments and classifications is owned elsewhere; the core
only talks to these abstract classes. Shipment access is split into a
read-only `ShipmentReader` and a `ShipmentEnrichmentWriter` that can update
fields of an existing shipment but has no way to create one.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from shipment_intel.models.classification_models import ClassificationResult
from shipment_intel.models.shipment_models import (
    AuditEvent,
    EmailRecord,
    EmailShipmentLink,
    EntityExtraction,
    LinkCandidate,
    Shipment,
    StoredClassification,
)


class ShipmentReader(ABC):
    """Exact-match shipment lookups. Every method returns None when absent."""

    @abstractmethod
    def find_by_id(self, shipment_id: str) -> Optional[Shipment]:
        pass

    @abstractmethod
    def find_by_booking_number(self, booking_number: str) -> Optional[Shipment]:
        pass

    @abstractmethod
    def find_by_bl_number(self, bl_number: str) -> Optional[Shipment]:
        pass

    @abstractmethod
    def find_by_container_number(self, container_number: str) -> Optional[Shipment]:
        pass

    @abstractmethod
    def list_shipments(self, limit: int, offset: int = 0) -> list[Shipment]:
        """Page through all shipments (stable order)."""


class ShipmentEnrichmentWriter(ABC):
    """Field updates on an existing shipment. Last write wins."""

    @abstractmethod
    def update_fields(self, shipment_id: str, updates: dict[str, Any]) -> None:
        """
        Apply field updates to an existing shipment.

        Raises:
            Any storage error; callers treat it as a collaborator failure.
        """


class EmailRepository(ABC):
    """Stored emails and their upstream entity extractions."""

    @abstractmethod
    def get_email(self, email_id: str) -> Optional[EmailRecord]:
        pass

    @abstractmethod
    def get_entities(self, email_id: str) -> list[EntityExtraction]:
        """Email and attachment extractions, in extraction order."""

    @abstractmethod
    def find_emails_with_identifiers(self, limit: int, offset: int = 0) -> list[str]:
        """Ids of emails carrying at least one booking, BL or container entity."""

    def find_thread_emails(self, thread_id: str) -> list[EmailRecord]:
        """
        Every stored email of a thread, in any order.

        Stores without thread information keep this default, which turns
        thread-aware linking off.
        """
        return []


class ClassificationRepository(ABC):

    @abstractmethod
    def get_classification(self, email_id: str) -> Optional[StoredClassification]:
        pass

    @abstractmethod
    def save_classification(self, email_id: str, result: ClassificationResult) -> None:
        pass


class LinkRepository(ABC):
    """Email-shipment links and reviewable link candidates."""

    @abstractmethod
    def create_link(self, link: EmailShipmentLink) -> bool:
        """Upsert a link. Returns False if it could not be stored."""

    @abstractmethod
    def create_candidate(self, candidate: LinkCandidate) -> bool:
        pass

    @abstractmethod
    def is_email_linked(self, email_id: str) -> bool:
        pass

    @abstractmethod
    def find_linked_email_ids(self, shipment_id: str) -> list[str]:
        """All emails linked to a shipment, oldest link first."""


class AuditLog(ABC):

    @abstractmethod
    def append(self, event: AuditEvent) -> None:
        pass


class MilestoneRecorder(ABC):
    """Optional milestone tracking triggered on auto-link."""

    @abstractmethod
    def record_milestone(
        self,
        shipment_id: str,
        milestone_code: str,
        email_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        pass
