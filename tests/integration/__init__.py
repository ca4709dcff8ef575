"""
Integration tests for the shipment intelligence core.

Run against real external services and are skipped when they are absent:
- Ollama client and AI classification fallback
- Redis link, audit, workflow and lock adapters
"""
