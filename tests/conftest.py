"""Shared test fixtures and configuration for all tests.

This conftest.py provides settings and model factories used across the unit
test packages.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from shipment_intel.config import DEFAULT_TEMPLATES_DIR, Settings
from shipment_intel.models.email_models import EmailMessage
from shipment_intel.models.enums import EntityType, ShipmentStatus
from shipment_intel.models.shipment_models import EntityExtraction, Shipment


FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.AUTO_LINK_THRESHOLD = 90
    """
    return Settings(
        # === Application ===
        APP_NAME="Shipment Intelligence Core (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === AI Fallback ===
        AI_FALLBACK_ENABLED=True,
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="qwen2.5:7b",
        OLLAMA_TIMEOUT=5,
        AI_TIMEOUT_SECONDS=None,
        PROMPT_TEMPLATES_DIR=str(DEFAULT_TEMPLATES_DIR),

        # === Shipment Linking ===
        AUTO_LINK_THRESHOLD=85,
        SUGGESTION_THRESHOLD=60,
        CONFLICT_REQUIRES_REVIEW=False,
        LINK_BATCH_SIZE=2,
        LINK_MAX_EMAILS=100,

        # === Redis ===
        REDIS_URL="redis://localhost:6379/15",
        REDIS_MAX_CONNECTIONS=5,
        RESULT_TTL_SECONDS=0,

        # === Monitoring ===
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_email():
    """Factory fixture to create EmailMessage objects.

    Usage:
        def test_something(make_email):
            email = make_email(subject="Booking Confirmation", sender_email="noreply@maersk.com")
    """
    def _create(
        subject: str = "Test Subject",
        body_text: Optional[str] = "Test email body",
        sender_email: str = "ops@example.com",
        **kwargs,
    ) -> EmailMessage:
        kwargs.setdefault("email_id", "email-1")
        return EmailMessage(subject=subject, body_text=body_text, sender_email=sender_email, **kwargs)

    return _create


@pytest.fixture
def make_shipment():
    """Factory fixture to create Shipment objects with a creation date of FIXED_NOW."""
    def _create(shipment_id: str = "S1", **kwargs) -> Shipment:
        kwargs.setdefault("status", ShipmentStatus.BOOKED)
        kwargs.setdefault("created_at", FIXED_NOW)
        return Shipment(id=shipment_id, **kwargs)

    return _create


@pytest.fixture
def entity():
    """Factory fixture: entity("booking_number", "262874542")."""
    def _create(entity_type, value: str, normalized: Optional[str] = None) -> EntityExtraction:
        type_value = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        return EntityExtraction(entity_type=type_value, entity_value=value, entity_normalized=normalized)

    return _create
