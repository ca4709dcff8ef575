"""
Redis client with connection pooling for the persistence adapters.

One process-wide pool, created lazily from settings.
"""

from typing import Optional

import structlog
from redis import ConnectionPool, Redis

from shipment_intel.config import Settings

logger = structlog.get_logger(__name__)


class RedisClient:
    """Redis client factory sharing one connection pool."""

    _pool: Optional[ConnectionPool] = None

    @classmethod
    def get_client(cls, settings: Settings) -> Redis:
        """
        Get a Redis client backed by the shared pool.

        Args:
            settings: Application settings (REDIS_URL, REDIS_MAX_CONNECTIONS)
        """
        if cls._pool is None:
            cls._pool = ConnectionPool.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            logger.info("Initialized Redis connection pool", max_connections=settings.REDIS_MAX_CONNECTIONS)

        return Redis(connection_pool=cls._pool)

    @classmethod
    def close_pool(cls):
        """Disconnect the shared pool (shutdown)."""
        if cls._pool is not None:
            cls._pool.disconnect()
            cls._pool = None
            logger.info("Closed Redis connection pool")


def get_redis_client(settings: Settings) -> Redis:
    return RedisClient.get_client(settings)
