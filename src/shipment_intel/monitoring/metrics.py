"""Custom Prometheus metrics for the shipment intelligence core.

Metrics are registered in the default registry; the embedding service exposes
them at its /metrics endpoint. Alert rules should be configured for:
- classification_manual_review_total (high ratio indicates pattern coverage gaps)
- link_conflicts_total (identifier collisions between shipments)
- collaborator_failures_total (side effects silently failing)
- ai_fallback_total with outcome=unavailable (LLM backend down)
"""

from prometheus_client import Counter, Histogram

# === Classification Metrics ===

classifications_total = Counter(
    "classifications_total",
    "Total email classifications by document type and method",
    ["document_type", "method"],
)
"""
Classification counter.

Labels:
- document_type: booking_confirmation, arrival_notice, ..., unknown
- method: pdf_content, email_content, fallback

A rising share of method=fallback means neither matcher recognised the email.
"""

email_types_total = Counter(
    "email_types_total",
    "Total email type classifications by type and category",
    ["email_type", "category"],
)

classification_manual_review_total = Counter(
    "classification_manual_review_total",
    "Classifications where both document and email-type confidence were below threshold",
)
"""
Manual review flags.

Alert thresholds:
- WARN: > 20% of classifications
"""

classification_downgrades_total = Counter(
    "classification_downgrades_total",
    "Document classifications downgraded to general correspondence",
    ["reason"],
)
"""
Downgrade counter.

Labels:
- reason: thread_duplicate, sender_not_authorized, thread_reply_guard
"""

ai_fallback_total = Counter(
    "ai_fallback_total",
    "AI fallback attempts by outcome",
    ["outcome"],
)
"""
AI fallback counter.

Labels:
- outcome: applied (at least one field improved), unchanged, unavailable
"""

# === Linking Metrics ===

link_outcomes_total = Counter(
    "link_outcomes_total",
    "Linking attempts by outcome",
    ["outcome"],
)
"""
Link outcome counter.

Labels:
- outcome: auto_linked, suggested, low_confidence, no_identifiers,
  no_matching_shipment, error
"""

link_conflicts_total = Counter(
    "link_conflicts_total",
    "Emails whose identifiers resolved to more than one shipment",
)
"""
Conflict counter. Every increment has a matching WARNING log line and a
link_conflict audit event.
"""

link_confidence = Histogram(
    "link_confidence",
    "Link confidence score distribution",
    buckets=[40, 50, 60, 70, 80, 85, 90, 95, 100],
)
"""
Confidence histogram. Buckets align with the suggestion (60) and auto-link
(85) thresholds.
"""

collaborator_failures_total = Counter(
    "collaborator_failures_total",
    "Side-effect collaborator failures after a link decision",
    ["collaborator"],
)
"""
Collaborator failure counter.

Labels:
- collaborator: milestone, workflow, status, field_propagation, audit

Failures never fail the primary link; this counter is the only place they
become visible besides the logs.
"""

# === Workflow Metrics ===

workflow_transitions_total = Counter(
    "workflow_transitions_total",
    "Applied workflow transitions by target state and trigger",
    ["to_state", "triggered_by"],
)

workflow_rejections_total = Counter(
    "workflow_rejections_total",
    "Workflow transition attempts that were not applied",
    ["reason"],
)
"""
Rejection counter.

Labels:
- reason: no_matching_rule, sender_not_authorized, not_forward
"""

# === LLM Performance Metrics ===

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM generation latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
LLM generation latency histogram.

Labels:
- model: Model name (e.g., qwen2.5:7b)
- success: true (generation succeeded), false (generation failed)

Alert thresholds:
- WARN: p95 > 30s
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Token consumption counter.

Labels:
- model: Model name
- token_type: prompt (input tokens), completion (output tokens)
"""
