"""
Dual-trigger workflow state machine.

Given the classification of an email linked to a shipment, decide which
workflow state (if any) the email moves the shipment to, then record it.

Decision steps:
1. Rules whose direction matches and whose document type OR email type
   (+ subject keyword, when the rule has any) matches
2. Drop rules the derived sender category may not trigger
3. Keep forward moves (higher order than the current state); parallel
   origin-track states may still advance their own track
4. Highest order wins; missing prerequisites are reported, not enforced
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from shipment_intel.models.classification_models import ClassificationResult
from shipment_intel.models.enums import DocumentType, EmailType, SenderCategory, ShipmentStatus, TriggerType
from shipment_intel.models.workflow_models import (
    TransitionRecord,
    WorkflowSnapshot,
    WorkflowTransitionInput,
    WorkflowTransitionResult,
    WorkflowTransitionRule,
)
from shipment_intel.monitoring.metrics import workflow_rejections_total, workflow_transitions_total
from shipment_intel.workflow.transition_rules import (
    DESTINATION_TRACK_STATES,
    ORIGIN_TRACK_STATES,
    WORKFLOW_TRANSITION_RULES,
    get_state_order,
    is_sender_authorized,
    subject_matches,
)

if TYPE_CHECKING:
    from shipment_intel.linking.repositories import ShipmentEnrichmentWriter, ShipmentReader


logger = structlog.get_logger(__name__)


class WorkflowStateStore(ABC):
    """Persistence of workflow position and transition history per shipment."""

    @abstractmethod
    def get_snapshot(self, shipment_id: str) -> WorkflowSnapshot:
        """Current position; an empty snapshot for shipments never transitioned."""

    @abstractmethod
    def save_transition(self, record: TransitionRecord, snapshot: WorkflowSnapshot) -> None:
        """Append `record` to the history and store `snapshot` as the new position."""

    @abstractmethod
    def get_history(self, shipment_id: str) -> list[TransitionRecord]:
        pass


class WorkflowStateMachine:
    """
    Applies workflow transitions from classification evidence.

    With a writer, the main workflow state/phase is mirrored onto the
    shipment. Status is only touched when `delivered` is reached, and only
    when a reader is supplied as well.
    """

    def __init__(
        self,
        store: WorkflowStateStore,
        shipment_reader: Optional["ShipmentReader"] = None,
        shipment_writer: Optional["ShipmentEnrichmentWriter"] = None,
        rules: tuple[WorkflowTransitionRule, ...] = WORKFLOW_TRANSITION_RULES,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.shipment_reader = shipment_reader
        self.shipment_writer = shipment_writer
        self.rules = rules
        self.clock = clock

    @staticmethod
    def is_sender_authorized(state: str, sender_category: SenderCategory) -> bool:
        return is_sender_authorized(state, sender_category)

    @staticmethod
    def input_from_classification(
        shipment_id: str,
        classification: ClassificationResult,
        email_id: Optional[str] = None,
    ) -> WorkflowTransitionInput:
        return WorkflowTransitionInput(
            shipment_id=shipment_id,
            email_id=email_id,
            document_type=classification.document_type,
            email_type=classification.email_type,
            direction=classification.direction,
            sender_category=classification.sender_category,
            subject=classification.thread_context.clean_subject,
        )

    def find_matching_rules(self, transition_input: WorkflowTransitionInput) -> list[WorkflowTransitionRule]:
        matches = []
        for rule in self.rules:
            if rule.direction != transition_input.direction:
                continue
            if self._document_matches(rule, transition_input.document_type) or self._email_matches(
                rule, transition_input.email_type, transition_input.subject
            ):
                matches.append(rule)
        return matches

    @staticmethod
    def _document_matches(rule: WorkflowTransitionRule, document_type: Optional[DocumentType]) -> bool:
        return document_type is not None and document_type in rule.document_types

    @staticmethod
    def _email_matches(rule: WorkflowTransitionRule, email_type: Optional[EmailType], subject: str) -> bool:
        return email_type is not None and email_type in rule.email_types and subject_matches(rule, subject)

    def _trigger_type(self, rule: WorkflowTransitionRule, transition_input: WorkflowTransitionInput) -> TriggerType:
        by_document = self._document_matches(rule, transition_input.document_type)
        by_email = self._email_matches(rule, transition_input.email_type, transition_input.subject)
        if by_document and by_email:
            return TriggerType.BOTH
        if by_document:
            return TriggerType.DOCUMENT
        return TriggerType.EMAIL

    @staticmethod
    def _track_of(state: str) -> Optional[str]:
        if state in ORIGIN_TRACK_STATES:
            return "origin"
        if state in DESTINATION_TRACK_STATES:
            return "destination"
        return None

    def _advances_track(self, rule: WorkflowTransitionRule, snapshot: WorkflowSnapshot) -> bool:
        track = self._track_of(rule.state)
        if track is None:
            return False
        track_state = snapshot.origin_state if track == "origin" else snapshot.destination_state
        return rule.order > get_state_order(track_state)

    def determine_transition(
        self,
        transition_input: WorkflowTransitionInput,
        snapshot: WorkflowSnapshot,
    ) -> WorkflowTransitionResult:
        """Pure decision; nothing is written."""
        current = snapshot.current_state
        matching = self.find_matching_rules(transition_input)

        if not matching:
            return WorkflowTransitionResult(
                success=False,
                previous_state=current,
                reason=(
                    f"No workflow rules match: document_type={_value(transition_input.document_type)}, "
                    f"email_type={_value(transition_input.email_type)}, "
                    f"direction={transition_input.direction.value}"
                ),
            )

        authorized = [r for r in matching if is_sender_authorized(r.state, transition_input.sender_category)]
        rejected = [r.state for r in matching if r not in authorized]

        if not authorized:
            required = sorted({c.value for r in matching for c in (r.allowed_senders or ())})
            return WorkflowTransitionResult(
                success=False,
                previous_state=current,
                rejected_states=rejected,
                reason=(
                    f"Sender '{transition_input.sender_category.value}' not authorized. "
                    f"Matched rules require: {', '.join(required)}"
                ),
            )

        current_order = get_state_order(current)
        forward = [r for r in authorized if r.order > current_order]
        track_only = [r for r in authorized if r.parallel and r not in forward and self._advances_track(r, snapshot)]

        if forward:
            target = max(forward, key=lambda r: r.order)
            main_state_updated = True
        elif track_only:
            target = max(track_only, key=lambda r: r.order)
            main_state_updated = False
        else:
            return WorkflowTransitionResult(
                success=False,
                previous_state=current,
                rejected_states=rejected,
                reason=(
                    f"No forward transition from {current or 'none'}. "
                    f"Matched states: {', '.join(r.state for r in authorized)}"
                ),
            )

        track = self._track_of(target.state)
        return WorkflowTransitionResult(
            success=True,
            previous_state=current,
            new_state=target.state,
            phase=target.phase,
            triggered_by=self._trigger_type(target, transition_input),
            reason=f"{target.label} via {transition_input.direction.value} evidence",
            missing_prerequisites=[p for p in target.prerequisites if p not in snapshot.reached_states],
            rejected_states=rejected,
            main_state_updated=main_state_updated,
            origin_state=target.state if track == "origin" else snapshot.origin_state,
            destination_state=target.state if track == "destination" else snapshot.destination_state,
        )

    def transition_from_classification(self, transition_input: WorkflowTransitionInput) -> WorkflowTransitionResult:
        """Decide, record the transition and its history entry, and upgrade status on delivery."""
        snapshot = self.store.get_snapshot(transition_input.shipment_id)
        result = self.determine_transition(transition_input, snapshot)

        if not result.success:
            workflow_rejections_total.labels(reason=_rejection_reason(result)).inc()
            logger.info(
                "Workflow transition skipped",
                shipment_id=transition_input.shipment_id,
                email_id=transition_input.email_id,
                current_state=snapshot.current_state,
                reason=result.reason,
            )
            return result

        reached = list(snapshot.reached_states)
        if result.new_state not in reached:
            reached.append(result.new_state)

        new_snapshot = WorkflowSnapshot(
            current_state=result.new_state if result.main_state_updated else snapshot.current_state,
            origin_state=result.origin_state,
            destination_state=result.destination_state,
            reached_states=reached,
        )
        record = TransitionRecord(
            shipment_id=transition_input.shipment_id,
            from_state=snapshot.current_state,
            to_state=result.new_state,
            triggered_by=result.triggered_by,
            document_type=transition_input.document_type,
            email_type=transition_input.email_type,
            email_id=transition_input.email_id,
            sender_category=transition_input.sender_category,
            created_at=self.clock(),
        )
        self.store.save_transition(record, new_snapshot)
        workflow_transitions_total.labels(
            to_state=result.new_state, triggered_by=result.triggered_by.value
        ).inc()

        logger.info(
            "Workflow transition applied",
            shipment_id=transition_input.shipment_id,
            email_id=transition_input.email_id,
            from_state=snapshot.current_state,
            to_state=result.new_state,
            triggered_by=result.triggered_by.value,
            main_state_updated=result.main_state_updated,
            missing_prerequisites=result.missing_prerequisites,
        )

        self._sync_shipment(transition_input.shipment_id, result)
        return result

    def _sync_shipment(self, shipment_id: str, result: WorkflowTransitionResult) -> None:
        """
        Mirror the main workflow state onto the shipment; `delivered` also upgrades status.

        Runs after the transition is stored, so failures here are logged and
        never undo or fail the transition.
        """
        if self.shipment_writer is None:
            return
        shipment = None
        if self.shipment_reader is not None:
            shipment = self.shipment_reader.find_by_id(shipment_id)
            if shipment is None:
                logger.warning("Workflow mirror skipped, shipment not found", shipment_id=shipment_id)
                return

        updates = {}
        if result.main_state_updated:
            updates["workflow_state"] = result.new_state
            updates["workflow_phase"] = result.phase.value

        if result.new_state == "delivered" and shipment is not None:
            status = ShipmentStatus.upgrade(shipment.status, ShipmentStatus.DELIVERED)
            if status != shipment.status:
                updates["status"] = status
                logger.info(
                    "Shipment marked delivered",
                    shipment_id=shipment_id,
                    previous_status=shipment.status.value
                )

        if not updates:
            return
        try:
            self.shipment_writer.update_fields(shipment_id, updates)
        except Exception as e:
            logger.error(
                "Failed to mirror workflow state onto shipment",
                shipment_id=shipment_id,
                updates=sorted(updates),
                error=str(e),
                exc_info=True,
            )


def _value(enum_value) -> str:
    return enum_value.value if enum_value is not None else "none"


def _rejection_reason(result: WorkflowTransitionResult) -> str:
    if result.reason.startswith("No workflow rules"):
        return "no_matching_rule"
    if result.reason.startswith("Sender"):
        return "sender_not_authorized"
    return "not_forward"
