"""
Classification orchestrator.

Pipeline for one email:
1. Thread context (once) and direction detection
2. Document type: document-content matcher, else email-content matcher,
   then thread de-duplication and sender-authority downgrades
3. Email type, independently of the document type
4. Sentiment, independently
5. Combine: workflow hint, urgency, manual-review flag

`classify_with_ai` additionally asks the AI classifier when the sender
category or email type stayed unresolved, and merges only improvements.
"""

import asyncio
from typing import Optional

import structlog

from shipment_intel.classification.direction import DirectionDetector, DomainDirectionDetector
from shipment_intel.classification.matchers import (
    DocumentContentMatcher,
    EmailContentMatcher,
    EmailTypeMatcher,
    SenderCategoryMatcher,
    SentimentMatcher,
)
from shipment_intel.classification.rules.document_rules import (
    ALWAYS_AUTHORIZED_SENDERS,
    DOCUMENT_ISSUERS,
    document_category,
)
from shipment_intel.classification.rules.email_type_rules import email_category
from shipment_intel.classification.thread_context import ThreadContextExtractor
from shipment_intel.config import Settings, settings as default_settings
from shipment_intel.llm.exceptions import AIUnavailableError
from shipment_intel.llm.text_utils import truncate_at_sentence_boundary
from shipment_intel.models.classification_models import (
    AIClassificationRequest,
    ClassificationResult,
    DocumentMatch,
    EmailTypeMatch,
)
from shipment_intel.models.email_models import DirectionResult, EmailMessage, ThreadContext
from shipment_intel.models.enums import (
    DocumentMethod,
    DocumentSource,
    DocumentType,
    EmailCategory,
    EmailType,
    SenderCategory,
    Sentiment,
)
from shipment_intel.monitoring.metrics import (
    ai_fallback_total,
    classification_downgrades_total,
    classification_manual_review_total,
    classifications_total,
    email_types_total,
)
from shipment_intel.workflow.transition_rules import workflow_hint


logger = structlog.get_logger(__name__)


URGENT_SENTIMENTS = frozenset({Sentiment.URGENT, Sentiment.ESCALATED})
URGENT_EMAIL_TYPES = frozenset({EmailType.URGENT_ACTION, EmailType.ESCALATION})


class ClassificationOrchestrator:
    """
    Composes the matchers into one ClassificationResult.

    All collaborators are injectable; defaults are built from settings. The
    AI classifier is optional: without it `classify_with_ai` returns the
    pattern-only result.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        thread_extractor: Optional[ThreadContextExtractor] = None,
        document_matcher: Optional[DocumentContentMatcher] = None,
        email_content_matcher: Optional[EmailContentMatcher] = None,
        email_type_matcher: Optional[EmailTypeMatcher] = None,
        sender_matcher: Optional[SenderCategoryMatcher] = None,
        sentiment_matcher: Optional[SentimentMatcher] = None,
        direction_detector: Optional[DirectionDetector] = None,
        ai_classifier=None,
    ):
        self.settings = settings or default_settings
        s = self.settings
        self.min_confidence = s.PATTERN_MIN_CONFIDENCE

        self.thread_extractor = thread_extractor or ThreadContextExtractor()
        self.document_matcher = document_matcher or DocumentContentMatcher(
            min_confidence=s.PATTERN_MIN_CONFIDENCE,
            optional_boost=s.MARKER_OPTIONAL_BOOST,
            confidence_cap=s.MARKER_CONFIDENCE_CAP,
        )
        self.email_content_matcher = email_content_matcher or EmailContentMatcher(
            min_confidence=s.PATTERN_MIN_CONFIDENCE,
            attachment_confidence=s.ATTACHMENT_CONFIDENCE,
            body_confidence=s.BODY_INDICATOR_CONFIDENCE,
        )
        self.email_type_matcher = email_type_matcher or EmailTypeMatcher(
            min_confidence=s.PATTERN_MIN_CONFIDENCE,
            optional_boost=s.MARKER_OPTIONAL_BOOST,
            confidence_cap=s.MARKER_CONFIDENCE_CAP,
            reply_subject_penalty=s.REPLY_SUBJECT_PENALTY,
        )
        self.sender_matcher = sender_matcher or SenderCategoryMatcher(
            direct_carrier_domains=s.DIRECT_CARRIER_DOMAINS,
        )
        self.sentiment_matcher = sentiment_matcher or SentimentMatcher()
        self.direction_detector = direction_detector or DomainDirectionDetector(
            internal_domains=s.INTERNAL_DOMAINS,
            sender_matcher=self.sender_matcher,
        )
        self.ai_classifier = ai_classifier

    # === Utilities ===

    def extract_thread_context(self, email: EmailMessage) -> ThreadContext:
        return self.thread_extractor.extract(
            subject=email.subject,
            body_text=email.body_text,
            sender_email=email.sender_email,
            sender_name=email.sender_name,
            headers=email.headers,
        )

    def detect_direction(self, email: EmailMessage) -> DirectionResult:
        return self.direction_detector.detect(
            sender_email=email.sender_email,
            subject=email.subject,
            sender_name=email.sender_name,
            true_sender_email=email.true_sender_email,
            headers=email.headers,
        )

    def classify_by_document_content(self, document_text: str) -> Optional[DocumentMatch]:
        """Document-content matcher only (reclassification of stored attachments)."""
        return self.document_matcher.match(document_text)

    def classify_email_type_only(
        self,
        subject: str,
        sender_email: str,
        body_text: Optional[str] = None,
    ) -> Optional[EmailTypeMatch]:
        thread_context = self.thread_extractor.extract(
            subject=subject, body_text=body_text, sender_email=sender_email
        )
        return self.email_type_matcher.match(thread_context, self.sender_matcher.match(sender_email))

    # === Pipeline ===

    def classify(self, email: EmailMessage) -> ClassificationResult:
        """Pattern-only classification. Never raises for unrecognised content."""
        thread_context = self.extract_thread_context(email)
        direction = self.detect_direction(email)
        sender_category = self.sender_matcher.match(direction.true_sender)

        document = self._classify_document(email, thread_context, sender_category)
        email_type = self._classify_email_type(thread_context, sender_category)
        sentiment = self.sentiment_matcher.match(thread_context.clean_subject, thread_context.fresh_body)

        is_urgent = sentiment.sentiment in URGENT_SENTIMENTS or email_type.email_type in URGENT_EMAIL_TYPES
        needs_review = self._needs_manual_review(
            document.document_type, document.confidence, email_type.email_type, email_type.confidence
        )

        result = ClassificationResult(
            document_type=document.document_type,
            document_confidence=document.confidence,
            document_method=self._document_method(document),
            document_source=document.source,
            document_matched_markers=document.matched_markers,
            document_matched_pattern=document.matched_pattern,
            document_category=document_category(document.document_type),
            email_type=email_type.email_type,
            email_category=email_type.category,
            email_type_confidence=email_type.confidence,
            email_matched_patterns=email_type.matched_patterns,
            sender_category=sender_category,
            sentiment=sentiment.sentiment,
            sentiment_score=sentiment.score,
            sentiment_patterns=sentiment.matched_patterns,
            direction=direction.direction,
            true_sender=direction.true_sender,
            direction_confidence=direction.confidence,
            workflow_hint=workflow_hint(document.document_type, direction.direction),
            thread_context=thread_context,
            is_thread_reply=thread_context.is_reply,
            is_urgent=is_urgent,
            needs_manual_review=needs_review,
        )

        classifications_total.labels(
            document_type=result.document_type.value, method=result.document_method.value
        ).inc()
        email_types_total.labels(email_type=result.email_type.value, category=result.email_category.value).inc()
        if needs_review:
            classification_manual_review_total.inc()

        logger.info(
            "Email classified",
            email_id=email.email_id,
            document_type=result.document_type.value,
            document_confidence=result.document_confidence,
            document_source=result.document_source.value,
            email_type=result.email_type.value,
            email_type_confidence=result.email_type_confidence,
            sender_category=sender_category.value,
            direction=result.direction.value,
            needs_manual_review=needs_review,
        )
        return result

    async def classify_with_ai(self, email: EmailMessage) -> ClassificationResult:
        """
        Pattern classification plus one AI call when sender category or email
        type stayed unresolved.

        AI unavailability (disabled, unconfigured, failing or timing out)
        degrades to the pattern-only result.
        """
        result = self.classify(email)

        needs_sender = result.sender_category == SenderCategory.UNKNOWN
        needs_email_type = (
            result.email_type == EmailType.UNKNOWN or result.email_type_confidence < self.min_confidence
        )
        if not needs_sender and not needs_email_type:
            return result

        if self.ai_classifier is None or not self.settings.AI_FALLBACK_ENABLED:
            ai_fallback_total.labels(outcome="unavailable").inc()
            logger.warning("AI fallback needed but not configured", email_id=email.email_id)
            return result

        request = AIClassificationRequest(
            subject=email.subject,
            sender=email.sender_email,
            true_sender=email.true_sender_email,
            body_preview=truncate_at_sentence_boundary(email.body_text or "", self.settings.AI_BODY_PREVIEW_LIMIT),
            attachment_filenames=email.attachment_filenames,
        )

        try:
            if self.settings.AI_TIMEOUT_SECONDS:
                ai_result = await asyncio.wait_for(
                    self.ai_classifier.classify(request), timeout=self.settings.AI_TIMEOUT_SECONDS
                )
            else:
                ai_result = await self.ai_classifier.classify(request)
        except (AIUnavailableError, asyncio.TimeoutError) as e:
            ai_fallback_total.labels(outcome="unavailable").inc()
            logger.warning(
                "AI classification unavailable, keeping pattern result",
                email_id=email.email_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return result

        updates: dict = {"used_ai_fallback": True, "ai_reasoning": ai_result.reasoning}

        if needs_sender and ai_result.sender_category != SenderCategory.UNKNOWN:
            updates["sender_category"] = ai_result.sender_category

        if (
            needs_email_type
            and ai_result.email_type != EmailType.UNKNOWN
            and ai_result.confidence > result.email_type_confidence
        ):
            updates["email_type"] = ai_result.email_type
            updates["email_category"] = (
                ai_result.email_category
                if ai_result.email_category != EmailCategory.UNKNOWN
                else email_category(ai_result.email_type)
            )
            updates["email_type_confidence"] = ai_result.confidence
            updates["email_matched_patterns"] = []

        if ai_result.sentiment in URGENT_SENTIMENTS and result.sentiment not in URGENT_SENTIMENTS:
            updates["sentiment"] = ai_result.sentiment

        merged = result.model_copy(update=updates)
        merged = merged.model_copy(
            update={
                "is_urgent": merged.sentiment in URGENT_SENTIMENTS or merged.email_type in URGENT_EMAIL_TYPES,
                "needs_manual_review": self._needs_manual_review(
                    merged.document_type,
                    merged.document_confidence,
                    merged.email_type,
                    merged.email_type_confidence,
                ),
            }
        )

        improved = sorted(k for k in updates if k not in ("used_ai_fallback", "ai_reasoning"))
        ai_fallback_total.labels(outcome="applied" if improved else "unchanged").inc()
        logger.info(
            "AI fallback merged",
            email_id=email.email_id,
            improved_fields=improved,
            ai_confidence=ai_result.confidence,
        )
        return merged

    # === Document type ===

    def _classify_document(
        self,
        email: EmailMessage,
        thread_context: ThreadContext,
        sender_category: SenderCategory,
    ) -> DocumentMatch:
        candidate = None
        if email.pdf_content:
            candidate = self.document_matcher.match(email.pdf_content)

        if candidate is None:
            found = self.email_content_matcher.match(thread_context, email.attachment_filenames)
            if found is not None and self.email_content_matcher.should_skip_thread_reply(
                thread_context, sender_category == SenderCategory.CARRIER, found.document_type
            ):
                classification_downgrades_total.labels(reason="thread_reply_guard").inc()
                logger.debug(
                    "Ignoring inherited booking type on non-carrier reply",
                    email_id=email.email_id,
                    document_type=found.document_type.value,
                )
                found = None
            candidate = found

        if candidate is None:
            return DocumentMatch(document_type=DocumentType.UNKNOWN, confidence=0, source=DocumentSource.UNKNOWN)

        if thread_context.is_response and candidate.document_type in email.thread_document_types:
            classification_downgrades_total.labels(reason="thread_duplicate").inc()
            logger.info(
                "Document type already seen in thread, downgrading",
                email_id=email.email_id,
                document_type=candidate.document_type.value,
            )
            return candidate.model_copy(
                update={
                    "document_type": DocumentType.GENERAL_CORRESPONDENCE,
                    "confidence": self.settings.THREAD_DEDUP_CONFIDENCE,
                    "matched_pattern": f"thread_dedup:{candidate.document_type.value}",
                }
            )

        if not self.is_authorized_issuer(candidate.document_type, sender_category):
            classification_downgrades_total.labels(reason="sender_not_authorized").inc()
            logger.info(
                "Sender not authorized to issue document type, downgrading",
                email_id=email.email_id,
                document_type=candidate.document_type.value,
                sender_category=sender_category.value,
            )
            return candidate.model_copy(
                update={
                    "document_type": DocumentType.GENERAL_CORRESPONDENCE,
                    "confidence": self.settings.SENDER_MISMATCH_CONFIDENCE,
                    "matched_pattern": f"sender_invalid:{candidate.document_type.value}:{sender_category.value}",
                }
            )

        return candidate

    @staticmethod
    def is_authorized_issuer(document_type: DocumentType, sender_category: SenderCategory) -> bool:
        """Document types without an issuer list may come from anyone."""
        if sender_category in ALWAYS_AUTHORIZED_SENDERS:
            return True
        issuers = DOCUMENT_ISSUERS.get(document_type)
        return issuers is None or sender_category in issuers

    @staticmethod
    def _document_method(document: DocumentMatch) -> DocumentMethod:
        if document.source == DocumentSource.PDF:
            return DocumentMethod.PDF_CONTENT
        if document.source == DocumentSource.UNKNOWN:
            return DocumentMethod.FALLBACK
        return DocumentMethod.EMAIL_CONTENT

    # === Email type ===

    def _classify_email_type(self, thread_context: ThreadContext, sender_category: SenderCategory) -> EmailTypeMatch:
        found = self.email_type_matcher.match(thread_context, sender_category)
        if found is not None and found.confidence >= self.min_confidence:
            return found

        # Unresolved replies are still conversation; unresolved originals are unknown
        fallback = EmailType.GENERAL_CORRESPONDENCE if thread_context.is_reply else EmailType.UNKNOWN
        return EmailTypeMatch(
            email_type=fallback,
            category=email_category(fallback),
            confidence=0,
            source=DocumentSource.UNKNOWN,
        )

    def _needs_manual_review(
        self,
        document_type: DocumentType,
        document_confidence: int,
        email_type: EmailType,
        email_type_confidence: int,
    ) -> bool:
        low_document = document_type == DocumentType.UNKNOWN or document_confidence < self.min_confidence
        low_email = email_type == EmailType.UNKNOWN or email_type_confidence < self.min_confidence
        return low_document and low_email
