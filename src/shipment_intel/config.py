"""
Configuration settings for the shipment intelligence core.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "llm" / "templates"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Shipment Intelligence Core"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Pattern Classification ===
    PATTERN_MIN_CONFIDENCE: int = 70  # Below this a pattern match is ignored
    MARKER_OPTIONAL_BOOST: int = 2  # Per optional marker present
    MARKER_CONFIDENCE_CAP: int = 99
    ATTACHMENT_CONFIDENCE: int = 95
    BODY_INDICATOR_CONFIDENCE: int = 85
    REPLY_SUBJECT_PENALTY: int = 15  # Subject-only email type match on a reply
    THREAD_DEDUP_CONFIDENCE: int = 70
    SENDER_MISMATCH_CONFIDENCE: int = 50

    # === AI Fallback (Ollama) ===
    AI_FALLBACK_ENABLED: bool = True
    OLLAMA_BASE_URL: str = "http://ollama:11434"
    OLLAMA_MODEL: str = "qwen2.5:7b"
    OLLAMA_TIMEOUT: int = 60  # seconds
    OLLAMA_MAX_RETRIES: int = 1  # attempts per call; 1 = no retry
    LLM_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 512
    AI_BODY_PREVIEW_LIMIT: int = 1000  # chars
    AI_DEFAULT_CONFIDENCE: int = 70
    AI_TIMEOUT_SECONDS: Optional[float] = None  # None = rely on client timeout
    PROMPT_TEMPLATES_DIR: str = str(DEFAULT_TEMPLATES_DIR)

    # === Shipment Linking ===
    AUTO_LINK_THRESHOLD: int = 85
    SUGGESTION_THRESHOLD: int = 60
    CONFLICT_REQUIRES_REVIEW: bool = False  # True = conflicts never auto-link
    THREAD_AWARE_LINKING: bool = True  # responses link through the thread authority
    LINK_BATCH_SIZE: int = 50
    LINK_MAX_EMAILS: int = 5000
    DIRECT_CARRIER_DOMAINS: list[str] = [
        "maersk", "hlag", "hapag", "cma-cgm", "cmacgm", "msc.com",
        "coscon", "cosco", "oocl", "one-line", "evergreen", "yangming",
        "hmm21", "zim.com", "paborlines", "namsung", "sinokor",
        "heung-a", "kmtc", "wanhai", "tslines", "sitc",
    ]
    INTERNAL_DOMAINS: list[str] = ["intoglo.com", "intoglo.in"]

    # === Redis ===
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50
    RESULT_TTL_SECONDS: int = 0  # 0 = keep link records forever
    ENRICHMENT_LOCK_TIMEOUT: int = 30  # seconds

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
