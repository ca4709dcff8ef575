"""
Shipment Intelligence Core for freight-forwarding email pipelines.

Turns inbound/outbound freight emails into operational state:
- Classification (document type, email intent, sender, sentiment, direction)
- Shipment resolution and linking by booking / BL / container number
- Dual-trigger workflow state machine and coarse status inference

Architecture: rule tables + pattern matchers, optional Ollama AI fallback,
collaborator interfaces with Redis adapters
"""

__version__ = "0.1.0"
