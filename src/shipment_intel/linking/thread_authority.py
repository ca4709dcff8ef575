"""
Thread-aware identifier selection.

Replies and forwards quote earlier mail, and quoted history often carries
identifiers of other shipments. For a response that belongs to a known
thread, the identifier of the thread authority (the first original email
with an identifier) decides the shipment instead of the response's own
extractions. Standalone emails, originals and threads without an authority
fall back to direct extraction.
"""

from datetime import timezone
from typing import Iterable, Optional

import structlog

from shipment_intel.classification.thread_context import strip_thread_prefixes
from shipment_intel.linking.confidence_scorer import IDENTIFIER_PRIORITY
from shipment_intel.linking.enrichment import (
    build_linking_keys,
    normalize_container_number,
    normalize_identifier,
)
from shipment_intel.linking.repositories import EmailRepository
from shipment_intel.models.enums import LinkStrategy, LinkType
from shipment_intel.models.shipment_models import (
    EmailRecord,
    EntityExtraction,
    LinkingKeys,
    MatchedIdentifier,
    ThreadAuthority,
)


logger = structlog.get_logger(__name__)

IDENTIFIER_ENTITY_TYPES = frozenset(t.value for t in IDENTIFIER_PRIORITY)


def is_response(email: EmailRecord) -> bool:
    """RE:/FW: (or localized) subject prefix present."""
    _, replies, forwards = strip_thread_prefixes(email.subject)
    return bool(replies or forwards)


def without_identifiers(entities: Iterable[EntityExtraction]) -> list[EntityExtraction]:
    """Drop booking, BL and container entities; they may be quoted from other shipments."""
    return [e for e in entities if e.entity_type not in IDENTIFIER_ENTITY_TYPES]


def best_identifier(entities: Iterable[EntityExtraction]) -> Optional[tuple[MatchedIdentifier, int]]:
    """
    Strongest identifier of one email: booking > BL > container, then entity
    confidence, then extraction order.

    Returns:
        (identifier, entity confidence), or None without identifiers
    """
    ranked = []
    for position, entity in enumerate(entities):
        if entity.entity_type not in IDENTIFIER_ENTITY_TYPES or not entity.value.strip():
            continue
        link_type = LinkType(entity.entity_type)
        if link_type == LinkType.CONTAINER_NUMBER:
            value = normalize_container_number(entity.value)
        else:
            value = normalize_identifier(entity.value)
        rank = (IDENTIFIER_PRIORITY.index(link_type), -entity.confidence, position)
        ranked.append((rank, MatchedIdentifier(link_type=link_type, value=value), entity.confidence))

    if not ranked:
        return None
    _, identifier, confidence = min(ranked, key=lambda item: item[0])
    return identifier, confidence


def _thread_order(email: EmailRecord) -> tuple:
    # originals first, then oldest first; undated last
    received = email.received_at
    if received is not None and received.tzinfo is None:
        received = received.replace(tzinfo=timezone.utc)
    timestamp = received.timestamp() if received is not None else float("inf")
    return is_response(email), timestamp, email.email_id


def keys_for_identifier(identifier: MatchedIdentifier) -> LinkingKeys:
    if identifier.link_type == LinkType.BOOKING_NUMBER:
        return LinkingKeys(booking_numbers=[identifier.value])
    if identifier.link_type == LinkType.BL_NUMBER:
        return LinkingKeys(bl_numbers=[identifier.value])
    return LinkingKeys(container_numbers=[identifier.value])


class ThreadAuthorityResolver:
    """Chooses the linking keys of an email, preferring its thread authority."""

    def __init__(self, email_repo: EmailRepository):
        self.email_repo = email_repo

    def get_thread_authority(self, thread_id: str) -> Optional[ThreadAuthority]:
        for email in sorted(self.email_repo.find_thread_emails(thread_id), key=_thread_order):
            best = best_identifier(self.email_repo.get_entities(email.email_id))
            if best is None:
                continue
            identifier, confidence = best
            return ThreadAuthority(
                thread_id=thread_id,
                authority_email_id=email.email_id,
                identifier=identifier,
                confidence=confidence,
            )
        return None

    def resolve(
        self,
        email: Optional[EmailRecord],
        entities: list[EntityExtraction],
    ) -> tuple[LinkingKeys, LinkStrategy, Optional[ThreadAuthority]]:
        if email is not None and email.thread_id and is_response(email):
            authority = self.get_thread_authority(email.thread_id)
            if authority is not None and authority.authority_email_id != email.email_id:
                logger.debug(
                    "Linking through thread authority",
                    thread_id=email.thread_id,
                    authority_email_id=authority.authority_email_id,
                    identifier=str(authority.identifier),
                )
                return keys_for_identifier(authority.identifier), LinkStrategy.THREAD_AUTHORITY, authority

        return build_linking_keys(entities), LinkStrategy.DIRECT_EXTRACTION, None
