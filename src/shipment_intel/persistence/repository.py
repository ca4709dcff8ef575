"""
Redis adapters for the linking and workflow collaborator interfaces.

Storage Strategy:
- Links: String per email, key = "shipment_intel:link:{email_id}" (JSON)
- Linked emails per shipment: Sorted set "shipment_intel:shipment:{shipment_id}:emails"
  (score = link timestamp, oldest first)
- Link suggestions: List "shipment_intel:link_candidates" (JSON, newest first)
  + String "shipment_intel:candidate:{email_id}:{shipment_id}"
- Audit log: List "shipment_intel:audit" (JSON, append order)
- Workflow: String "shipment_intel:workflow:{shipment_id}" (snapshot JSON)
  + List "shipment_intel:workflow:{shipment_id}:history"
- Enrichment locks: "shipment_intel:lock:shipment:{shipment_id}" (redis-py Lock)
- TTL: RESULT_TTL_SECONDS for links/suggestions (0 = no expiry)

None of these adapters can create a shipment.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from redis import Redis
from redis.lock import Lock

from shipment_intel.config import Settings
from shipment_intel.linking.repositories import AuditLog, LinkRepository
from shipment_intel.models.shipment_models import AuditEvent, EmailShipmentLink, LinkCandidate
from shipment_intel.models.workflow_models import TransitionRecord, WorkflowSnapshot
from shipment_intel.workflow.state_machine import WorkflowStateStore

logger = structlog.get_logger(__name__)

KEY_PREFIX = "shipment_intel"


def _timestamp(value: Optional[datetime]) -> float:
    return (value or datetime.now(timezone.utc)).timestamp()


class RedisLinkRepository(LinkRepository):
    """Email-shipment links and link suggestions."""

    LINK_PREFIX = f"{KEY_PREFIX}:link:"
    SHIPMENT_EMAILS_KEY = f"{KEY_PREFIX}:shipment:{{shipment_id}}:emails"
    CANDIDATES_KEY = f"{KEY_PREFIX}:link_candidates"
    CANDIDATE_PREFIX = f"{KEY_PREFIX}:candidate:"
    MAX_CANDIDATES = 10000

    def __init__(self, redis_client: Redis, settings: Settings):
        self.redis = redis_client
        self.settings = settings
        self.result_ttl = settings.RESULT_TTL_SECONDS

    def _shipment_emails_key(self, shipment_id: str) -> str:
        return self.SHIPMENT_EMAILS_KEY.format(shipment_id=shipment_id)

    def create_link(self, link: EmailShipmentLink) -> bool:
        """Upsert the link of `link.email_id`; an email links to one shipment."""
        try:
            link_key = f"{self.LINK_PREFIX}{link.email_id}"
            previous = self.get_link(link.email_id)

            pipe = self.redis.pipeline(transaction=True)
            if previous is not None and previous.shipment_id != link.shipment_id:
                pipe.zrem(self._shipment_emails_key(previous.shipment_id), link.email_id)
            if self.result_ttl > 0:
                pipe.setex(name=link_key, time=self.result_ttl, value=link.model_dump_json())
            else:
                pipe.set(name=link_key, value=link.model_dump_json())
            pipe.zadd(self._shipment_emails_key(link.shipment_id), {link.email_id: _timestamp(link.created_at)})
            pipe.execute()

            logger.info(
                "Saved email-shipment link",
                email_id=link.email_id,
                shipment_id=link.shipment_id,
                confidence=link.link_confidence_score,
                replaced_shipment_id=previous.shipment_id if previous else None
            )
            return True

        except Exception as e:
            logger.error(
                "Failed to save email-shipment link",
                email_id=link.email_id,
                shipment_id=link.shipment_id,
                error=str(e),
                exc_info=True
            )
            return False

    def get_link(self, email_id: str) -> Optional[EmailShipmentLink]:
        try:
            link_json = self.redis.get(f"{self.LINK_PREFIX}{email_id}")
            if link_json is None:
                return None
            return EmailShipmentLink.model_validate_json(link_json)
        except Exception as e:
            logger.error("Failed to retrieve link", email_id=email_id, error=str(e), exc_info=True)
            return None

    def create_candidate(self, candidate: LinkCandidate) -> bool:
        try:
            candidate_json = candidate.model_dump_json()
            candidate_key = f"{self.CANDIDATE_PREFIX}{candidate.email_id}:{candidate.shipment_id}"

            pipe = self.redis.pipeline(transaction=True)
            if self.result_ttl > 0:
                pipe.setex(name=candidate_key, time=self.result_ttl, value=candidate_json)
            else:
                pipe.set(name=candidate_key, value=candidate_json)
            pipe.lpush(self.CANDIDATES_KEY, candidate_json)
            pipe.ltrim(self.CANDIDATES_KEY, 0, self.MAX_CANDIDATES - 1)
            pipe.execute()

            logger.info(
                "Saved link suggestion",
                email_id=candidate.email_id,
                shipment_id=candidate.shipment_id,
                confidence=candidate.confidence_score
            )
            return True

        except Exception as e:
            logger.error(
                "Failed to save link suggestion",
                email_id=candidate.email_id,
                shipment_id=candidate.shipment_id,
                error=str(e),
                exc_info=True
            )
            return False

    def get_candidates(self, limit: int = 100) -> list[LinkCandidate]:
        """Most recent suggestions first, for operator review."""
        try:
            entries = self.redis.lrange(self.CANDIDATES_KEY, 0, limit - 1)
            return [LinkCandidate.model_validate_json(entry) for entry in entries]
        except Exception as e:
            logger.error("Failed to retrieve link suggestions", error=str(e), exc_info=True)
            return []

    def is_email_linked(self, email_id: str) -> bool:
        """
        Raises:
            redis.RedisError: lookup failure (callers must not treat it as "unlinked")
        """
        return bool(self.redis.exists(f"{self.LINK_PREFIX}{email_id}"))

    def find_linked_email_ids(self, shipment_id: str) -> list[str]:
        try:
            return list(self.redis.zrange(self._shipment_emails_key(shipment_id), 0, -1))
        except Exception as e:
            logger.error("Failed to list linked emails", shipment_id=shipment_id, error=str(e), exc_info=True)
            return []


class RedisAuditLog(AuditLog):
    """Append-only JSON audit list."""

    AUDIT_KEY = f"{KEY_PREFIX}:audit"
    MAX_ENTRIES = 100000

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    def append(self, event: AuditEvent) -> None:
        """
        Raises:
            redis.RedisError: the caller reports it as a collaborator failure
        """
        if event.created_at is None:
            event = event.model_copy(update={"created_at": datetime.now(timezone.utc)})
        pipe = self.redis.pipeline(transaction=True)
        pipe.rpush(self.AUDIT_KEY, event.model_dump_json())
        pipe.ltrim(self.AUDIT_KEY, -self.MAX_ENTRIES, -1)
        pipe.execute()
        logger.debug("Audit event appended", event_type=event.event_type, email_id=event.email_id)

    def recent(self, limit: int = 100) -> list[AuditEvent]:
        """Newest last, like the list itself."""
        try:
            entries = self.redis.lrange(self.AUDIT_KEY, -limit, -1)
            return [AuditEvent.model_validate_json(entry) for entry in entries]
        except Exception as e:
            logger.error("Failed to retrieve audit events", error=str(e), exc_info=True)
            return []


class RedisWorkflowStateStore(WorkflowStateStore):
    """
    Workflow position and history per shipment.

    Read errors propagate: an empty snapshot on failure would let an old
    state overwrite a later one.
    """

    SNAPSHOT_KEY = f"{KEY_PREFIX}:workflow:{{shipment_id}}"
    HISTORY_KEY = f"{KEY_PREFIX}:workflow:{{shipment_id}}:history"

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    def get_snapshot(self, shipment_id: str) -> WorkflowSnapshot:
        snapshot_json = self.redis.get(self.SNAPSHOT_KEY.format(shipment_id=shipment_id))
        if snapshot_json is None:
            return WorkflowSnapshot()
        return WorkflowSnapshot.model_validate_json(snapshot_json)

    def save_transition(self, record: TransitionRecord, snapshot: WorkflowSnapshot) -> None:
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(self.SNAPSHOT_KEY.format(shipment_id=record.shipment_id), snapshot.model_dump_json())
        pipe.rpush(self.HISTORY_KEY.format(shipment_id=record.shipment_id), record.model_dump_json())
        pipe.execute()
        logger.debug(
            "Workflow transition stored",
            shipment_id=record.shipment_id,
            to_state=record.to_state,
        )

    def get_history(self, shipment_id: str) -> list[TransitionRecord]:
        entries = self.redis.lrange(self.HISTORY_KEY.format(shipment_id=shipment_id), 0, -1)
        return [TransitionRecord.model_validate_json(entry) for entry in entries]


class RedisEnrichmentLock:
    """
    Per-shipment lock factory for ShipmentLinkingService(enrichment_lock=...).

    Calling it returns a redis-py Lock, usable as a context manager; entering
    raises redis.exceptions.LockError when not acquired within
    `blocking_timeout`.
    """

    LOCK_KEY = f"{KEY_PREFIX}:lock:shipment:{{shipment_id}}"

    def __init__(self, redis_client: Redis, timeout: int = 30, blocking_timeout: Optional[float] = None):
        self.redis = redis_client
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout if blocking_timeout is not None else timeout

    @classmethod
    def from_settings(cls, redis_client: Redis, settings: Settings) -> "RedisEnrichmentLock":
        return cls(redis_client, timeout=settings.ENRICHMENT_LOCK_TIMEOUT)

    def __call__(self, shipment_id: str) -> Lock:
        return self.redis.lock(
            self.LOCK_KEY.format(shipment_id=shipment_id),
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
