"""
Shipment resolution and email-to-shipment linking.

Flow for one email:
1. Linking keys from the email's entity extractions, or for a response in a
   known thread, from the thread authority (no identifiers: stop, no lookup)
2. Exact lookup of every identifier value; shipment id -> matched identifiers
3. No shipment: stop (shipments are never created here). Several shipments:
   conflict, logged and resolved by identifier priority
4. Confidence score, then gate:
   - >= AUTO_LINK_THRESHOLD: link + backfill/cutoffs/status/milestone/workflow
   - >= SUGGESTION_THRESHOLD: reviewable suggestion, shipment untouched
   - below: nothing

Side effects after a link never change the link result; their failures are
reported in `side_effect_errors`.
"""

from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Optional

import structlog

from shipment_intel.config import Settings, settings as default_settings
from shipment_intel.linking.confidence_scorer import IDENTIFIER_PRIORITY, LinkConfidenceScorer
from shipment_intel.linking.enrichment import (
    ALL_FIELDS,
    BACKFILL_FIELDS,
    CUTOFF_FIELDS,
    build_field_updates,
    build_linking_keys,
)
from shipment_intel.linking.exceptions import CollaboratorFailure
from shipment_intel.linking.repositories import (
    AuditLog,
    ClassificationRepository,
    EmailRepository,
    LinkRepository,
    MilestoneRecorder,
    ShipmentEnrichmentWriter,
    ShipmentReader,
)
from shipment_intel.linking.status_inference import DOC_TYPE_TO_MILESTONE, determine_shipment_status
from shipment_intel.linking.thread_authority import ThreadAuthorityResolver, without_identifiers
from shipment_intel.logging_config import email_log_context
from shipment_intel.models.enums import DocumentType, LinkOutcome, LinkStrategy, LinkType, ShipmentStatus
from shipment_intel.models.shipment_models import (
    AuditEvent,
    BatchLinkingResult,
    EmailRecord,
    EmailShipmentLink,
    EntityExtraction,
    LinkCandidate,
    LinkingKeys,
    LinkingResult,
    MatchedIdentifier,
    ResyncAllResult,
    ResyncResult,
    Shipment,
    ShipmentMatch,
    StoredClassification,
    ThreadAuthority,
)
from shipment_intel.models.workflow_models import WorkflowTransitionInput
from shipment_intel.monitoring.metrics import (
    collaborator_failures_total,
    link_confidence,
    link_conflicts_total,
    link_outcomes_total,
)
from shipment_intel.workflow.state_machine import WorkflowStateMachine


logger = structlog.get_logger(__name__)


class ShipmentLinkingService:
    """
    Attaches emails to existing shipments.

    `enrichment_lock(shipment_id)` must return a context manager; it wraps
    every shipment field write so concurrent emails enriching the same
    shipment do not lose updates. Without one, writes are unguarded.
    """

    def __init__(
        self,
        shipment_reader: ShipmentReader,
        shipment_writer: ShipmentEnrichmentWriter,
        email_repo: EmailRepository,
        classification_repo: ClassificationRepository,
        link_repo: LinkRepository,
        audit_log: AuditLog,
        milestone_recorder: Optional[MilestoneRecorder] = None,
        workflow: Optional[WorkflowStateMachine] = None,
        scorer: Optional[LinkConfidenceScorer] = None,
        enrichment_lock: Optional[Callable[[str], ContextManager]] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        thread_resolver: Optional[ThreadAuthorityResolver] = None,
    ):
        self.settings = settings or default_settings
        self.shipment_reader = shipment_reader
        self.shipment_writer = shipment_writer
        self.email_repo = email_repo
        self.classification_repo = classification_repo
        self.link_repo = link_repo
        self.audit_log = audit_log
        self.milestone_recorder = milestone_recorder
        self.workflow = workflow
        self.scorer = scorer or LinkConfidenceScorer.from_settings(self.settings)
        self.enrichment_lock = enrichment_lock or (lambda shipment_id: nullcontext())
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.thread_resolver = thread_resolver or ThreadAuthorityResolver(email_repo)

        self.auto_link_threshold = self.settings.AUTO_LINK_THRESHOLD
        self.suggestion_threshold = self.settings.SUGGESTION_THRESHOLD

    # === Resolution ===

    def extract_linking_keys(self, email_id: str) -> tuple[LinkingKeys, list[EntityExtraction]]:
        entities = self.email_repo.get_entities(email_id)
        return build_linking_keys(entities), entities

    def resolve_linking_keys(
        self,
        email_id: str,
        email: Optional[EmailRecord],
    ) -> tuple[LinkingKeys, list[EntityExtraction], LinkStrategy, Optional[ThreadAuthority]]:
        """
        Linking keys plus the entities allowed to enrich the shipment.

        A response linked through its thread authority keeps none of its own
        identifiers; quoted history may name other shipments.
        """
        keys, entities = self.extract_linking_keys(email_id)
        if not self.settings.THREAD_AWARE_LINKING:
            return keys, entities, LinkStrategy.DIRECT_EXTRACTION, None

        thread_keys, strategy, authority = self.thread_resolver.resolve(email, entities)
        if strategy == LinkStrategy.THREAD_AUTHORITY:
            return thread_keys, without_identifiers(entities), strategy, authority
        return keys, entities, strategy, None

    def find_matching_shipments(self, keys: LinkingKeys) -> dict[str, ShipmentMatch]:
        """
        Look up every identifier value; insertion order follows identifier
        priority (booking, BL, container), then extraction order.
        """
        lookups = (
            (LinkType.BOOKING_NUMBER, keys.booking_numbers, self.shipment_reader.find_by_booking_number),
            (LinkType.BL_NUMBER, keys.bl_numbers, self.shipment_reader.find_by_bl_number),
            (LinkType.CONTAINER_NUMBER, keys.container_numbers, self.shipment_reader.find_by_container_number),
        )
        matches: dict[str, ShipmentMatch] = {}
        for link_type, values, find in lookups:
            for value in values:
                shipment = find(value)
                if shipment is None:
                    continue
                match = matches.setdefault(shipment.id, ShipmentMatch(shipment=shipment))
                match.matched_by.append(MatchedIdentifier(link_type=link_type, value=value))
        return matches

    @staticmethod
    def select_shipment(matches: dict[str, ShipmentMatch]) -> ShipmentMatch:
        """Deterministic pick: strongest identifier type, then first seen."""
        def rank(item: tuple[int, ShipmentMatch]) -> tuple[int, int]:
            position, match = item
            best = min(IDENTIFIER_PRIORITY.index(t) for t in match.identifier_types)
            return best, position

        return min(enumerate(matches.values()), key=rank)[1]

    # === Entry points ===

    def process_email(self, email_id: str) -> LinkingResult:
        """
        Link one email to a shipment.

        Never raises: primary-path failures come back as outcome ERROR with
        matched=False.
        """
        with email_log_context(email_id):
            try:
                result = self._process_email(email_id)
            except Exception as e:
                logger.error(
                    "Linking failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True
                )
                result = LinkingResult(
                    matched=False,
                    outcome=LinkOutcome.ERROR,
                    reasoning=f"Linking failed: {type(e).__name__}: {e}",
                )
        link_outcomes_total.labels(outcome=result.outcome.value).inc()
        return result

    def process_unlinked_emails(
        self,
        batch_size: Optional[int] = None,
        max_emails: Optional[int] = None,
    ) -> BatchLinkingResult:
        """
        Link every not-yet-linked email that carries identifiers.

        Sequential; one email's failure is counted and the batch continues.
        """
        batch_size = batch_size or self.settings.LINK_BATCH_SIZE
        max_emails = max_emails or self.settings.LINK_MAX_EMAILS
        summary = BatchLinkingResult()
        offset = 0

        logger.info("Batch linking started", batch_size=batch_size, max_emails=max_emails)

        while summary.processed < max_emails:
            email_ids = self.email_repo.find_emails_with_identifiers(limit=batch_size, offset=offset)
            if not email_ids:
                break
            offset += len(email_ids)

            for email_id in email_ids:
                if summary.processed >= max_emails:
                    break
                try:
                    if self.link_repo.is_email_linked(email_id):
                        continue
                except Exception as e:
                    logger.warning("Link lookup failed", email_id=email_id, error=str(e))
                    summary.processed += 1
                    summary.errors += 1
                    continue

                result = self.process_email(email_id)
                summary.processed += 1
                if result.outcome == LinkOutcome.AUTO_LINKED:
                    summary.linked += 1
                elif result.outcome == LinkOutcome.SUGGESTED:
                    summary.candidates_created += 1
                elif result.outcome == LinkOutcome.ERROR:
                    summary.errors += 1
                if result.conflict:
                    summary.conflicts += 1

            if len(email_ids) < batch_size:
                break

        logger.info("Batch linking completed", **summary.model_dump())
        return summary

    # === Primary path ===

    def _process_email(self, email_id: str) -> LinkingResult:
        email = self.email_repo.get_email(email_id)
        keys, entities, strategy, authority = self.resolve_linking_keys(email_id, email)
        authority_email_id = authority.authority_email_id if authority else None
        if not keys.has_identifiers():
            logger.debug("No linking identifiers")
            return LinkingResult(
                matched=False,
                outcome=LinkOutcome.NO_IDENTIFIERS,
                reasoning="No booking, BL or container number found",
            )

        matches = self.find_matching_shipments(keys)
        if not matches:
            logger.info("No shipment matches identifiers", identifiers=keys.describe())
            return LinkingResult(
                matched=False,
                outcome=LinkOutcome.NO_MATCHING_SHIPMENT,
                reasoning=f"No existing shipment for {keys.describe()}; entities kept for later resolution",
            )

        selected = self.select_shipment(matches)
        shipment = selected.shipment
        conflicting = [sid for sid in matches if sid != shipment.id]
        if conflicting:
            self._record_conflict(email_id, selected, matches)

        classification = self.classification_repo.get_classification(email_id)
        document_type = classification.document_type if classification else DocumentType.UNKNOWN
        sender = (email.true_sender_email or email.sender_email) if email else None

        breakdown = self.scorer.score(
            selected.identifier_types,
            sender_email=sender,
            document_type=document_type,
            email_received_at=email.received_at if email else None,
            shipment_created_at=shipment.created_at,
        )
        confidence = breakdown.score
        link_confidence.observe(confidence)
        primary = next(m for m in selected.matched_by if m.link_type == breakdown.primary_type)
        factors = breakdown.describe()
        if authority_email_id:
            factors += f", via thread authority {authority_email_id}"

        result = LinkingResult(
            matched=False,
            outcome=LinkOutcome.LOW_CONFIDENCE,
            shipment_id=shipment.id,
            confidence_score=confidence,
            link_type=primary.link_type,
            matched_value=primary.value,
            matched_identifiers=selected.matched_by,
            conflict=bool(conflicting),
            conflicting_shipment_ids=conflicting,
            link_strategy=strategy,
            authority_email_id=authority_email_id,
        )

        auto_link = confidence >= self.auto_link_threshold
        if auto_link and conflicting and self.settings.CONFLICT_REQUIRES_REVIEW:
            auto_link = False

        with email_log_context(email_id, shipment.id):
            if auto_link:
                return self._auto_link(email_id, shipment, entities, classification, result, factors)
            if confidence >= self.suggestion_threshold or (conflicting and self.settings.CONFLICT_REQUIRES_REVIEW):
                return self._suggest(email_id, result, factors)

            logger.info("Link confidence too low", confidence=confidence, factors=factors)
            return result.model_copy(update={
                "shipment_id": None,
                "reasoning": f"Confidence too low ({confidence}%) - no link created ({factors})",
            })

    def _record_conflict(self, email_id: str, selected: ShipmentMatch, matches: dict[str, ShipmentMatch]) -> None:
        candidates = {sid: [str(m) for m in match.matched_by] for sid, match in matches.items()}
        link_conflicts_total.inc()
        logger.warning(
            "Identifiers match multiple shipments",
            selected_shipment_id=selected.shipment.id,
            candidates=candidates,
        )
        event = AuditEvent(
            event_type="link_conflict",
            email_id=email_id,
            shipment_id=selected.shipment.id,
            details={"candidates": candidates, "resolution": "identifier_priority"},
            created_at=self.clock(),
        )
        try:
            self.audit_log.append(event)
        except Exception as e:
            # the conflict is already logged above
            logger.warning("Audit append failed", event_type=event.event_type, error=str(e))

    def _auto_link(
        self,
        email_id: str,
        shipment: Shipment,
        entities: list[EntityExtraction],
        classification: Optional[StoredClassification],
        result: LinkingResult,
        factors: str,
    ) -> LinkingResult:
        document_type = classification.document_type if classification else DocumentType.UNKNOWN
        link = EmailShipmentLink(
            email_id=email_id,
            shipment_id=shipment.id,
            document_type=document_type,
            link_type=result.link_type,
            link_identifier_value=result.matched_value,
            link_confidence_score=result.confidence_score,
            created_at=self.clock(),
        )
        if not self.link_repo.create_link(link):
            logger.error("Link could not be stored", confidence=result.confidence_score)
            return result.model_copy(update={
                "outcome": LinkOutcome.ERROR,
                "reasoning": "Link could not be stored",
            })

        errors: list[str] = []
        updated_fields: list[str] = []

        self._run_side_effect("audit_log", errors, lambda: self.audit_log.append(AuditEvent(
            event_type="link_created",
            email_id=email_id,
            shipment_id=shipment.id,
            details={
                "confidence": result.confidence_score,
                "link_type": result.link_type.value,
                "matched_value": result.matched_value,
                "conflicting_shipment_ids": result.conflicting_shipment_ids,
                "link_strategy": result.link_strategy.value,
                "authority_email_id": result.authority_email_id,
            },
            created_at=self.clock(),
        )))

        def enrich() -> None:
            with self.enrichment_lock(shipment.id):
                current = self.shipment_reader.find_by_id(shipment.id) or shipment
                backfilled = self._run_side_effect(
                    "enrichment", errors, lambda: self._write_updates(current, entities, BACKFILL_FIELDS)
                )
                propagated = self._run_side_effect(
                    "cutoff_propagation", errors, lambda: self._write_updates(current, entities, CUTOFF_FIELDS)
                )
                updated_fields.extend((backfilled or []) + (propagated or []))
                self._run_side_effect(
                    "status", errors, lambda: self._upgrade_status(shipment.id, document_type, updated_fields)
                )

        self._run_side_effect("enrichment_lock", errors, enrich)

        milestone = DOC_TYPE_TO_MILESTONE.get(document_type)
        if milestone and self.milestone_recorder is not None:
            self._run_side_effect("milestone", errors, lambda: self.milestone_recorder.record_milestone(
                shipment.id, milestone, email_id=email_id, notes=f"Auto-recorded from {document_type.value}"
            ))

        if self.workflow is not None and classification is not None:
            self._run_side_effect("workflow", errors, lambda: self.workflow.transition_from_classification(
                WorkflowTransitionInput(
                    shipment_id=shipment.id,
                    email_id=email_id,
                    document_type=classification.document_type,
                    email_type=classification.email_type,
                    direction=classification.direction,
                    sender_category=classification.sender_category,
                    subject=classification.subject,
                )
            ))

        logger.info(
            "Email auto-linked",
            confidence=result.confidence_score,
            link_type=result.link_type.value,
            updated_fields=updated_fields,
            side_effect_errors=len(errors),
        )
        return result.model_copy(update={
            "matched": True,
            "outcome": LinkOutcome.AUTO_LINKED,
            "reasoning": (
                f"Auto-linked with {result.confidence_score}% confidence via "
                f"{result.link_type.value} ({factors})"
            ),
            "updated_fields": updated_fields,
            "side_effect_errors": errors,
        })

    def _suggest(self, email_id: str, result: LinkingResult, factors: str) -> LinkingResult:
        reasoning = f"Matched on {result.link_type.value}: {result.matched_value} ({factors})"
        if result.conflict:
            reasoning += f"; also matched {', '.join(result.conflicting_shipment_ids)}"
        candidate = LinkCandidate(
            email_id=email_id,
            shipment_id=result.shipment_id,
            link_type=result.link_type,
            matched_value=result.matched_value,
            matched_identifiers=result.matched_identifiers,
            confidence_score=result.confidence_score,
            action=LinkOutcome.SUGGESTED,
            match_reasoning=reasoning,
            conflicting_shipment_ids=result.conflicting_shipment_ids,
            created_at=self.clock(),
        )
        if not self.link_repo.create_candidate(candidate):
            logger.error("Link suggestion could not be stored", confidence=result.confidence_score)
            return result.model_copy(update={
                "outcome": LinkOutcome.ERROR,
                "reasoning": "Link suggestion could not be stored",
            })

        errors: list[str] = []
        self._run_side_effect("audit_log", errors, lambda: self.audit_log.append(AuditEvent(
            event_type="link_suggested",
            email_id=email_id,
            shipment_id=result.shipment_id,
            details={"confidence": result.confidence_score, "reasoning": reasoning},
            created_at=self.clock(),
        )))

        logger.info("Link suggestion created", confidence=result.confidence_score)
        return result.model_copy(update={
            "outcome": LinkOutcome.SUGGESTED,
            "reasoning": (
                f"Created link suggestion ({result.confidence_score}% confidence) - requires manual review"
            ),
            "side_effect_errors": errors,
        })

    # === Side effects ===

    def _run_side_effect(self, collaborator: str, errors: list[str], action: Callable[[], Any]) -> Any:
        """Run `action`; a failure is logged, counted and reported, never raised."""
        try:
            return action()
        except Exception as e:
            failure = CollaboratorFailure(collaborator, str(e), details={"error_type": type(e).__name__})
            collaborator_failures_total.labels(collaborator=collaborator).inc()
            logger.warning(
                "Collaborator failed after link decision",
                collaborator=collaborator,
                error=str(e),
                error_type=type(e).__name__,
            )
            errors.append(str(failure))
            return None

    def _write_updates(self, shipment: Shipment, entities: list[EntityExtraction], fields) -> list[str]:
        updates = build_field_updates(shipment, entities, fields)
        if updates:
            self.shipment_writer.update_fields(shipment.id, updates)
        return list(updates)

    def _upgrade_status(self, shipment_id: str, document_type: DocumentType, updated_fields: list[str]) -> None:
        if self.update_shipment_status_from_document(shipment_id, document_type) is not None:
            updated_fields.append("status")

    def update_shipment_status_from_document(
        self,
        shipment_id: str,
        document_type: DocumentType,
    ) -> Optional[ShipmentStatus]:
        """
        Upgrade the shipment's status from one document; never downgrades.

        Returns the new status, or None when nothing changed (or the shipment
        does not exist).
        """
        shipment = self.shipment_reader.find_by_id(shipment_id)
        if shipment is None:
            return None
        status = determine_shipment_status(
            document_type, shipment.etd, shipment.eta, shipment.status, now=self.clock()
        )
        if status == shipment.status:
            return None

        self.shipment_writer.update_fields(shipment_id, {"status": status})
        logger.info(
            "Shipment status upgraded",
            shipment_id=shipment_id,
            previous_status=shipment.status.value,
            new_status=status.value,
            document_type=document_type.value,
        )
        return status

    # === Resync ===

    def resync_shipment_from_linked_emails(self, shipment_id: str) -> ResyncResult:
        """
        Re-derive empty fields from the union of every linked email.

        Fills only empty fields; status only moves forward.
        """
        with self.enrichment_lock(shipment_id):
            shipment = self.shipment_reader.find_by_id(shipment_id)
            if shipment is None:
                logger.warning("Resync skipped, shipment not found", shipment_id=shipment_id)
                return ResyncResult()

            email_ids = self.link_repo.find_linked_email_ids(shipment_id)
            entities: list[EntityExtraction] = []
            document_types: list[DocumentType] = []
            for email_id in email_ids:
                entities.extend(self.email_repo.get_entities(email_id))
                classification = self.classification_repo.get_classification(email_id)
                if classification is not None and classification.document_type != DocumentType.UNKNOWN:
                    document_types.append(classification.document_type)

            updates = build_field_updates(shipment, entities, ALL_FIELDS)

            etd = updates.get("etd", shipment.etd)
            eta = updates.get("eta", shipment.eta)
            now = self.clock()
            status = shipment.status
            for document_type in document_types:
                status = determine_shipment_status(document_type, etd, eta, status, now=now)
            if status == ShipmentStatus.DRAFT:
                status = determine_shipment_status(None, etd, eta, status, now=now)
            if status != shipment.status:
                updates["status"] = status

            if updates:
                self.shipment_writer.update_fields(shipment_id, updates)

        logger.info(
            "Shipment resynced from linked emails",
            shipment_id=shipment_id,
            linked_emails=len(email_ids),
            updated_fields=list(updates),
        )
        return ResyncResult(updated=bool(updates), updated_fields=list(updates))

    def resync_all_shipments(self, page_size: int = 100) -> ResyncAllResult:
        summary = ResyncAllResult()
        offset = 0
        while True:
            shipments = self.shipment_reader.list_shipments(limit=page_size, offset=offset)
            if not shipments:
                break
            offset += len(shipments)

            for shipment in shipments:
                summary.processed += 1
                try:
                    result = self.resync_shipment_from_linked_emails(shipment.id)
                except Exception as e:
                    summary.errors += 1
                    logger.warning(
                        "Resync failed",
                        shipment_id=shipment.id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue
                if result.updated:
                    summary.updated += 1
                    for field_name in result.updated_fields:
                        summary.fields_updated[field_name] = summary.fields_updated.get(field_name, 0) + 1

            if len(shipments) < page_size:
                break

        logger.info("Resync of all shipments completed", **summary.model_dump(exclude={"fields_updated"}))
        return summary

