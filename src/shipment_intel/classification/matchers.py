"""
Pattern matchers.

Each matcher answers one question from one kind of evidence and returns a
small match object (or None when nothing clears the confidence floor):

- DocumentContentMatcher: document type from extracted attachment text
- EmailContentMatcher: document type from filenames, subject and body
- EmailTypeMatcher: communicative intent, optionally sender-restricted
- SenderCategoryMatcher: sending party from the address
- SentimentMatcher: weighted keyword sentiment

The rule tables live in classification.rules; matchers only evaluate them.
"""

from typing import Iterable, Optional, Sequence

import structlog

from shipment_intel.classification.markers import (
    best_marker_match,
    first_regex_match,
    has_marker,
    normalize_text,
)
from shipment_intel.classification.rules.document_rules import (
    ATTACHMENT_FILENAME_PATTERNS,
    DOCUMENT_CONTENT_RULES,
)
from shipment_intel.classification.rules.email_type_rules import EMAIL_TYPE_CONFIGS, EmailTypeConfig
from shipment_intel.classification.rules.sender_rules import SENDER_CATEGORY_PATTERNS
from shipment_intel.classification.rules.sentiment_rules import (
    ESCALATED_MIN_SCORE,
    NEGATIVE_MAX_SCORE,
    POSITIVE_MIN_SCORE,
    SENTIMENT_GROUPS,
    URGENT_MIN_SCORE,
)
from shipment_intel.classification.rules.subject_rules import BODY_INDICATORS, SUBJECT_PATTERNS
from shipment_intel.models.classification_models import DocumentMatch, EmailTypeMatch, SentimentResult
from shipment_intel.models.email_models import ThreadContext
from shipment_intel.models.enums import (
    DocumentSource,
    DocumentType,
    EmailType,
    SenderCategory,
    Sentiment,
)


logger = structlog.get_logger(__name__)


# Types a non-carrier reply can only have inherited from the thread
THREAD_INHERITED_TYPES = frozenset({DocumentType.BOOKING_CONFIRMATION, DocumentType.BOOKING_AMENDMENT})


class DocumentContentMatcher:
    """Classify extracted document text with the content marker table."""

    def __init__(
        self,
        min_confidence: int = 70,
        optional_boost: int = 2,
        confidence_cap: int = 99,
    ):
        self.min_confidence = min_confidence
        self.optional_boost = optional_boost
        self.confidence_cap = confidence_cap

    def match(self, document_text: Optional[str]) -> Optional[DocumentMatch]:
        hit = best_marker_match(
            DOCUMENT_CONTENT_RULES,
            document_text,
            self.min_confidence,
            self.optional_boost,
            self.confidence_cap,
        )
        if hit is None:
            return None

        return DocumentMatch(
            document_type=hit.key,
            confidence=hit.confidence,
            source=DocumentSource.PDF,
            matched_markers=hit.matched_markers,
        )


class EmailContentMatcher:
    """
    Classify the document type from the email itself.

    Priority: attachment filename, then (original emails only) subject, then
    fresh body. A reply or forward inherits its subject from the thread, so
    for those only the fresh body may classify.
    """

    def __init__(
        self,
        min_confidence: int = 70,
        attachment_confidence: int = 95,
        body_confidence: int = 85,
    ):
        self.min_confidence = min_confidence
        self.attachment_confidence = attachment_confidence
        self.body_confidence = body_confidence

    def match(
        self,
        thread_context: ThreadContext,
        attachment_filenames: Sequence[str] = (),
    ) -> Optional[DocumentMatch]:
        result = self.match_attachments(attachment_filenames)
        if result:
            return result

        if not thread_context.is_response:
            result = self.match_subject(thread_context.clean_subject)
            if result:
                return result

        return self.match_body(thread_context.fresh_body)

    def match_attachments(self, filenames: Sequence[str]) -> Optional[DocumentMatch]:
        if not filenames:
            return None
        for pattern, doc_type in ATTACHMENT_FILENAME_PATTERNS:
            for filename in filenames:
                if pattern.search(filename):
                    return DocumentMatch(
                        document_type=doc_type,
                        confidence=self.attachment_confidence,
                        source=DocumentSource.ATTACHMENT,
                        matched_pattern=f"Filename: {filename}",
                    )
        return None

    def match_subject(self, clean_subject: str) -> Optional[DocumentMatch]:
        found = first_regex_match(SUBJECT_PATTERNS, clean_subject, self.min_confidence)
        if found is None:
            return None
        doc_type, confidence, pattern = found
        return DocumentMatch(
            document_type=doc_type,
            confidence=confidence,
            source=DocumentSource.SUBJECT,
            matched_pattern=pattern,
        )

    def match_body(self, fresh_body: str) -> Optional[DocumentMatch]:
        if not fresh_body or self.body_confidence < self.min_confidence:
            return None
        for pattern, doc_type in BODY_INDICATORS:
            if pattern.search(fresh_body):
                return DocumentMatch(
                    document_type=doc_type,
                    confidence=self.body_confidence,
                    source=DocumentSource.BODY,
                    matched_pattern=pattern.pattern,
                )
        return None

    @staticmethod
    def should_skip_thread_reply(
        thread_context: ThreadContext,
        is_carrier_sender: bool,
        document_type: DocumentType,
    ) -> bool:
        """A non-carrier reply cannot be a booking confirmation/amendment itself."""
        return (
            thread_context.is_reply
            and not is_carrier_sender
            and document_type in THREAD_INHERITED_TYPES
        )


class EmailTypeMatcher:
    """
    Determine why an email was sent.

    Originals: subject rules first, then body rules. Replies/forwards: body
    first; a subject-only match is reduced by `reply_subject_penalty` since
    the subject may be inherited.
    """

    def __init__(
        self,
        min_confidence: int = 70,
        optional_boost: int = 2,
        confidence_cap: int = 99,
        reply_subject_penalty: int = 15,
        configs: Sequence[EmailTypeConfig] = EMAIL_TYPE_CONFIGS,
    ):
        self.min_confidence = min_confidence
        self.optional_boost = optional_boost
        self.confidence_cap = confidence_cap
        self.reply_subject_penalty = reply_subject_penalty
        self.configs = tuple(configs)
        self._categories = {c.email_type: c.category for c in self.configs}

    def _allowed_configs(self, sender_category: SenderCategory) -> list[EmailTypeConfig]:
        return [
            c for c in self.configs
            if c.sender_categories is None or sender_category in c.sender_categories
        ]

    def _best(self, configs, text, field) -> Optional[tuple[EmailType, int, list[str]]]:
        table = {c.email_type: getattr(c, field) for c in configs if getattr(c, field)}
        hit = best_marker_match(
            table, text, self.min_confidence, self.optional_boost, self.confidence_cap
        )
        if hit is None:
            return None
        return hit.key, hit.confidence, hit.matched_markers

    def _result(self, email_type, confidence, markers, source) -> EmailTypeMatch:
        return EmailTypeMatch(
            email_type=email_type,
            category=self._categories[email_type],
            confidence=confidence,
            source=source,
            matched_patterns=markers,
        )

    def match(
        self,
        thread_context: ThreadContext,
        sender_category: SenderCategory = SenderCategory.UNKNOWN,
    ) -> Optional[EmailTypeMatch]:
        configs = self._allowed_configs(sender_category)
        subject = thread_context.clean_subject
        body = thread_context.fresh_body

        if not thread_context.is_response:
            found = self._best(configs, subject, "subject_rules")
            if found:
                return self._result(*found, DocumentSource.SUBJECT)
            found = self._best(configs, body, "body_rules")
            if found:
                return self._result(*found, DocumentSource.BODY)
            return None

        found = self._best(configs, body, "body_rules")
        if found:
            return self._result(*found, DocumentSource.BODY)

        found = self._best(configs, subject, "subject_rules")
        if found:
            email_type, confidence, markers = found
            penalized = confidence - self.reply_subject_penalty
            if penalized >= self.min_confidence:
                return self._result(email_type, penalized, markers, DocumentSource.SUBJECT)
            logger.debug(
                "Inherited subject match dropped",
                email_type=email_type.value,
                confidence=confidence,
                penalized=penalized,
            )
        return None


class SenderCategoryMatcher:
    """
    Category of the sending party from its address; first pattern wins.

    Configured direct-carrier domains are checked before the pattern table and
    match by substring of the address domain, as the link scorer does.
    """

    def __init__(self, direct_carrier_domains: Iterable[str] = ()):
        self.direct_carrier_domains = tuple(d.strip().lower() for d in direct_carrier_domains if d.strip())

    def match(self, address: Optional[str]) -> SenderCategory:
        if not address:
            return SenderCategory.UNKNOWN
        lowered = address.strip().lower()
        if self.direct_carrier_domains and "@" in lowered:
            domain = lowered.rsplit("@", 1)[1].rstrip(">")
            if any(d in domain for d in self.direct_carrier_domains):
                return SenderCategory.CARRIER
        for category, patterns in SENDER_CATEGORY_PATTERNS:
            if any(p.search(lowered) for p in patterns):
                return category
        return SenderCategory.UNKNOWN

    def is_carrier(self, address: Optional[str]) -> bool:
        return self.match(address) == SenderCategory.CARRIER


class SentimentMatcher:
    """
    Weighted keyword sentiment over subject and body.

    score >= 8 -> urgent; >= 5 with an escalation keyword -> escalated;
    < -3 -> negative; > 3 -> positive; otherwise neutral.
    """

    def match(self, subject: Optional[str], body: Optional[str] = None) -> SentimentResult:
        texts = {"subject": normalize_text(subject), "body": normalize_text(body)}
        score = 0
        matched: list[str] = []
        escalation_hit = False

        for group in SENTIMENT_GROUPS:
            text = texts[group.field]
            if not text:
                continue
            for keyword in group.keywords:
                if has_marker(text, keyword):
                    score += group.weight
                    matched.append(f"{group.field}:{keyword}")
                    escalation_hit = escalation_hit or group.escalation

        if score >= URGENT_MIN_SCORE:
            sentiment = Sentiment.URGENT
        elif score >= ESCALATED_MIN_SCORE and escalation_hit:
            sentiment = Sentiment.ESCALATED
        elif score < NEGATIVE_MAX_SCORE:
            sentiment = Sentiment.NEGATIVE
        elif score > POSITIVE_MIN_SCORE:
            sentiment = Sentiment.POSITIVE
        else:
            sentiment = Sentiment.NEUTRAL

        return SentimentResult(sentiment=sentiment, score=score, matched_patterns=matched)
