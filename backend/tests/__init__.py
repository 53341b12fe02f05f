"""
Pytest test suite for the Perfect Webhook relay.

Test categories:
- Unit tests: registry, event log, forwarder and dispatcher with a fake n8n
- API tests: FastAPI routes through httpx ASGITransport
- Concurrency tests: interleaved upsert/cancel/fire on the same order code
"""
