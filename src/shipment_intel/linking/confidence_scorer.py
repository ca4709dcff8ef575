"""
Link confidence scoring.

Score = identifier strength of the strongest matched identifier
      + sender authority adjustment
      + document fit bonus
      + time proximity adjustment
      + corroboration bonus per additional identifier type
clamped to 0-100.

Extra identifier types only add, so an email matching a shipment through N
identifier types never scores below the same email matching through one.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from shipment_intel.models.enums import DocumentType, EmailAuthority, LinkType


D = DocumentType

# Container numbers recirculate across shipments, hence the weakest signal
IDENTIFIER_BASE_SCORES = {
    LinkType.BOOKING_NUMBER: 90,
    LinkType.BL_NUMBER: 85,
    LinkType.CONTAINER_NUMBER: 70,
}

# Identifier priority for conflict tie-breaks and primary link type
IDENTIFIER_PRIORITY = (LinkType.BOOKING_NUMBER, LinkType.BL_NUMBER, LinkType.CONTAINER_NUMBER)

AUTHORITY_ADJUSTMENTS = {
    EmailAuthority.DIRECT_CARRIER: 8,
    EmailAuthority.INTERNAL: 3,
    EmailAuthority.THIRD_PARTY: -5,
}

# Documents that normally quote each identifier family
EXPECTED_DOCUMENTS = {
    LinkType.BOOKING_NUMBER: frozenset({
        D.BOOKING_CONFIRMATION, D.BOOKING_AMENDMENT, D.BOOKING_CANCELLATION,
        D.SHIPPING_INSTRUCTION, D.SI_DRAFT, D.SI_CONFIRMATION, D.SI_SUBMISSION,
        D.VGM_CONFIRMATION, D.VGM_SUBMISSION, D.VGM_REMINDER,
        D.CUTOFF_ADVISORY, D.RATE_CONFIRMATION, D.VESSEL_SCHEDULE,
    }),
    LinkType.BL_NUMBER: frozenset({
        D.BILL_OF_LADING, D.DRAFT_BL, D.HOUSE_BL, D.HBL_DRAFT, D.SOB_CONFIRMATION,
        D.ARRIVAL_NOTICE, D.DELIVERY_ORDER, D.CARGO_MANIFEST, D.ISF_FILING,
        D.ENTRY_SUMMARY, D.DRAFT_ENTRY, D.CUSTOMS_CLEARANCE, D.FREIGHT_INVOICE,
    }),
    LinkType.CONTAINER_NUMBER: frozenset({
        D.CONTAINER_RELEASE, D.PICKUP_NOTIFICATION, D.PICKUP_CONFIRMATION,
        D.DELIVERY_APPOINTMENT, D.PROOF_OF_DELIVERY, D.POD_CONFIRMATION,
        D.EMPTY_RETURN, D.GATE_IN_CONFIRMATION, D.WORK_ORDER, D.ARRIVAL_NOTICE,
    }),
}

DOCUMENT_FIT_BONUS = 5
ADDITIONAL_IDENTIFIER_BONUS = 5

# (max days apart, adjustment); beyond the last bucket: -15
TIME_PROXIMITY_BUCKETS = ((7, 3), (30, 0), (90, -5))
TIME_PROXIMITY_FLOOR = -15


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ConfidenceBreakdown:
    """Per-factor contributions, kept for reasoning strings and audit."""

    score: int
    primary_type: LinkType
    base: int
    authority: int = 0
    document_fit: int = 0
    time_proximity: int = 0
    corroboration: int = 0
    factors: list[str] = field(default_factory=list)

    def describe(self) -> str:
        return ", ".join(self.factors)


def primary_link_type(identifier_types: Iterable[LinkType]) -> Optional[LinkType]:
    """Strongest identifier family present, by booking > BL > container."""
    present = set(identifier_types)
    for link_type in IDENTIFIER_PRIORITY:
        if link_type in present:
            return link_type
    return None


class LinkConfidenceScorer:
    """Scores one email-to-shipment match."""

    def __init__(
        self,
        direct_carrier_domains: Iterable[str] = (),
        internal_domains: Iterable[str] = (),
    ):
        self.direct_carrier_domains = tuple(d.lower() for d in direct_carrier_domains)
        self.internal_domains = tuple(d.lower() for d in internal_domains)

    @classmethod
    def from_settings(cls, settings) -> "LinkConfidenceScorer":
        return cls(
            direct_carrier_domains=settings.DIRECT_CARRIER_DOMAINS,
            internal_domains=settings.INTERNAL_DOMAINS,
        )

    def email_authority(self, sender_email: Optional[str]) -> EmailAuthority:
        """Direct carrier domains match by substring (maersk.com, hlag.cloud ...)."""
        if not sender_email or "@" not in sender_email:
            return EmailAuthority.THIRD_PARTY
        domain = sender_email.rsplit("@", 1)[1].strip().lower().rstrip(">")
        if any(d in domain for d in self.direct_carrier_domains):
            return EmailAuthority.DIRECT_CARRIER
        if any(domain == d or domain.endswith("." + d) for d in self.internal_domains):
            return EmailAuthority.INTERNAL
        return EmailAuthority.THIRD_PARTY

    @staticmethod
    def time_proximity_adjustment(days_apart: Optional[int]) -> int:
        if days_apart is None:
            return 0
        for max_days, adjustment in TIME_PROXIMITY_BUCKETS:
            if days_apart <= max_days:
                return adjustment
        return TIME_PROXIMITY_FLOOR

    @staticmethod
    def days_between(first: Optional[datetime], second: Optional[datetime]) -> Optional[int]:
        """Whole days apart; naive values are taken as UTC."""
        if first is None or second is None:
            return None
        return abs(_as_utc(first) - _as_utc(second)).days

    def score(
        self,
        identifier_types: Iterable[LinkType],
        sender_email: Optional[str] = None,
        document_type: Optional[DocumentType] = None,
        email_received_at: Optional[datetime] = None,
        shipment_created_at: Optional[datetime] = None,
    ) -> ConfidenceBreakdown:
        types = {t for t in identifier_types if t in IDENTIFIER_BASE_SCORES}
        primary = primary_link_type(types)
        if primary is None:
            return ConfidenceBreakdown(score=0, primary_type=LinkType.ENTITY_MATCH, base=0,
                                       factors=["no identifiers"])

        base = IDENTIFIER_BASE_SCORES[primary]
        breakdown = ConfidenceBreakdown(score=0, primary_type=primary, base=base,
                                        factors=[f"{primary.value} match (+{base})"])

        authority = self.email_authority(sender_email)
        breakdown.authority = AUTHORITY_ADJUSTMENTS[authority]
        breakdown.factors.append(f"{authority.value} sender ({breakdown.authority:+d})")

        if document_type is not None and any(document_type in EXPECTED_DOCUMENTS[t] for t in types):
            breakdown.document_fit = DOCUMENT_FIT_BONUS
            breakdown.factors.append(f"{document_type.value} fits identifier (+{DOCUMENT_FIT_BONUS})")

        days = self.days_between(email_received_at, shipment_created_at)
        breakdown.time_proximity = self.time_proximity_adjustment(days)
        if days is not None:
            breakdown.factors.append(f"{days} days from shipment creation ({breakdown.time_proximity:+d})")

        extra = len(types) - 1
        if extra:
            breakdown.corroboration = extra * ADDITIONAL_IDENTIFIER_BONUS
            breakdown.factors.append(f"{extra} corroborating identifier type(s) (+{breakdown.corroboration})")

        total = (
            base
            + breakdown.authority
            + breakdown.document_fit
            + breakdown.time_proximity
            + breakdown.corroboration
        )
        breakdown.score = max(0, min(100, total))
        return breakdown
