"""
Unit tests for the shipment intelligence core.

Test individual components in isolation:
- Classification (thread context, markers, matchers, direction, orchestrator)
- Shipment linking (confidence scoring, enrichment, status inference, service)
- Workflow state machine and transition rules
- LLM client, prompt builder and AI fallback
- Redis adapters (mocked client)
"""
