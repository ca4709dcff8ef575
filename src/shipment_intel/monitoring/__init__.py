"""Monitoring and metrics instrumentation for the shipment intelligence core.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from shipment_intel.monitoring.metrics import (
    ai_fallback_total,
    classification_downgrades_total,
    classification_manual_review_total,
    classifications_total,
    collaborator_failures_total,
    email_types_total,
    link_confidence,
    link_conflicts_total,
    link_outcomes_total,
    llm_latency_seconds,
    llm_tokens_total,
    workflow_rejections_total,
    workflow_transitions_total,
)

__all__ = [
    "classifications_total",
    "email_types_total",
    "classification_manual_review_total",
    "classification_downgrades_total",
    "ai_fallback_total",
    "link_outcomes_total",
    "link_conflicts_total",
    "link_confidence",
    "collaborator_failures_total",
    "workflow_transitions_total",
    "workflow_rejections_total",
    "llm_latency_seconds",
    "llm_tokens_total",
]
