"""Integration test fixtures (service checks and prerequisites).

Integration tests are skipped if the required services are not running.
"""

import httpx
import pytest
import pytest_asyncio
from redis import Redis
from redis.exceptions import RedisError

from shipment_intel.llm.ollama_client import OllamaClient


@pytest.fixture(scope="session")
def check_ollama():
    """Skip unless Ollama answers at localhost:11434."""
    try:
        response = httpx.get("http://localhost:11434/api/tags", timeout=5)
        if response.status_code != 200:
            pytest.skip("Ollama not available (non-200 status)")
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")


@pytest.fixture(scope="session")
def check_redis():
    """Skip unless Redis answers at localhost:6379."""
    try:
        client = Redis.from_url("redis://localhost:6379/0")
        client.ping()
        client.close()
    except RedisError as e:
        pytest.skip(f"Redis not available: {e}")


@pytest_asyncio.fixture
async def real_ollama_client(check_ollama):
    client = OllamaClient(base_url="http://localhost:11434", timeout=60, max_retries=2)
    yield client
    await client.close()


@pytest.fixture
def real_redis_client(check_redis):
    """Redis client on database 15, flushed before and after each test."""
    client = Redis.from_url("redis://localhost:6379/15", decode_responses=True)
    client.flushdb()

    yield client

    client.flushdb()
    client.close()


@pytest.fixture
def integration_settings(test_settings):
    test_settings.OLLAMA_BASE_URL = "http://localhost:11434"
    test_settings.REDIS_URL = "redis://localhost:6379/15"
    test_settings.RESULT_TTL_SECONDS = 0
    test_settings.ENRICHMENT_LOCK_TIMEOUT = 5
    return test_settings
