"""
Deterministic email classification.

Components:
- ThreadContextExtractor: reply/forward structure and the original sender
- Matchers: document content, email content, email type, sender, sentiment
- DirectionDetector: inbound/outbound from the true sender
- ClassificationOrchestrator: composes all of the above (+ optional AI fallback)
"""

from shipment_intel.classification.direction import DirectionDetector, DomainDirectionDetector
from shipment_intel.classification.matchers import (
    DocumentContentMatcher,
    EmailContentMatcher,
    EmailTypeMatcher,
    SenderCategoryMatcher,
    SentimentMatcher,
)
from shipment_intel.classification.orchestrator import ClassificationOrchestrator
from shipment_intel.classification.thread_context import ThreadContextExtractor, strip_thread_prefixes

__all__ = [
    "ClassificationOrchestrator",
    "DirectionDetector",
    "DomainDirectionDetector",
    "DocumentContentMatcher",
    "EmailContentMatcher",
    "EmailTypeMatcher",
    "SenderCategoryMatcher",
    "SentimentMatcher",
    "ThreadContextExtractor",
    "strip_thread_prefixes",
]
