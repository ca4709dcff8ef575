"""Redis persistence adapters for links, audit events, workflow state and enrichment locks."""

from shipment_intel.persistence.redis_client import RedisClient, get_redis_client
from shipment_intel.persistence.repository import (
    RedisAuditLog,
    RedisEnrichmentLock,
    RedisLinkRepository,
    RedisWorkflowStateStore,
)

__all__ = [
    "RedisClient",
    "get_redis_client",
    "RedisAuditLog",
    "RedisEnrichmentLock",
    "RedisLinkRepository",
    "RedisWorkflowStateStore",
]
