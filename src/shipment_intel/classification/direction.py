"""
Direction detection.

The orchestrator consumes a DirectionDetector; DomainDirectionDetector is the
default implementation: an email is outbound when its real author sits on an
internal domain.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import structlog

from shipment_intel.classification.matchers import SenderCategoryMatcher
from shipment_intel.classification.thread_context import extract_address
from shipment_intel.models.email_models import DirectionResult
from shipment_intel.models.enums import Direction, SenderCategory


logger = structlog.get_logger(__name__)


class DirectionDetector(ABC):
    """Resolves inbound/outbound and the true sender of an email."""

    @abstractmethod
    def detect(
        self,
        sender_email: str,
        subject: str,
        sender_name: Optional[str] = None,
        true_sender_email: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> DirectionResult:
        """
        Args:
            sender_email: From address
            subject: Raw subject
            sender_name: From display name
            true_sender_email: Sender resolved upstream after unwrapping forwards
            headers: Raw headers

        Returns:
            DirectionResult with direction, true sender and confidence
        """


class DomainDirectionDetector(DirectionDetector):
    """
    Direction from the domain of the true sender.

    True sender precedence: explicit true sender, X-Original-Sender header,
    From address.
    """

    RECOGNISED_CONFIDENCE = 90
    UNRECOGNISED_CONFIDENCE = 60

    def __init__(
        self,
        internal_domains: Sequence[str] = ("intoglo.com", "intoglo.in"),
        sender_matcher: Optional[SenderCategoryMatcher] = None,
    ):
        self.internal_domains = tuple(d.lower().lstrip("@") for d in internal_domains)
        self.sender_matcher = sender_matcher or SenderCategoryMatcher()

    def is_internal(self, address: str) -> bool:
        domain = address.rsplit("@", 1)[-1].lower()
        return any(domain == d or domain.endswith("." + d) for d in self.internal_domains)

    def detect(
        self,
        sender_email: str,
        subject: str,
        sender_name: Optional[str] = None,
        true_sender_email: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> DirectionResult:
        true_sender = (true_sender_email or "").strip().lower()
        if not true_sender:
            normalized = {k.lower(): v for k, v in (headers or {}).items()}
            true_sender = extract_address(normalized.get("x-original-sender", "")) or ""
        if not true_sender:
            true_sender = extract_address(sender_email) or (sender_email or "").strip().lower()

        direction = Direction.OUTBOUND if self.is_internal(true_sender) else Direction.INBOUND
        recognised = self.sender_matcher.match(true_sender) != SenderCategory.UNKNOWN
        confidence = self.RECOGNISED_CONFIDENCE if recognised else self.UNRECOGNISED_CONFIDENCE

        logger.debug(
            "Direction detected",
            true_sender=true_sender,
            direction=direction.value,
            confidence=confidence,
        )
        return DirectionResult(direction=direction, true_sender=true_sender, confidence=confidence)
