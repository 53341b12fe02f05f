"""
Pytest configuration and shared fixtures for relay tests.

Provides a fake n8n endpoint (httpx.MockTransport), a controllable clock for
the PIX timers, a RelayService wired to both, and sample Perfect Pay payloads.
"""
import asyncio
import json
from typing import AsyncGenerator

import httpx
import pytest

from config import Settings
from services.relay import RelayService

N8N_TEST_URL = "http://n8n.test/webhook/relay"


# ── Fake n8n ─────────────────────────────────────────────────────────


class FakeN8n:
    """Records every forwarded request; can answer with any status or raise."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.response_json = {"message": "Workflow was started"}
        self.error: Exception | None = None
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.response_json)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def event_types(self) -> list[str]:
        return [p["event_type"] for p in self.payloads]


@pytest.fixture
def n8n() -> FakeN8n:
    return FakeN8n()


# ── Fake Clock ───────────────────────────────────────────────────────


class FakeClock:
    """
    Monotonic clock + sleep for PIX timers that only moves when advance() is called.

    Lets tests cover the 7-minute grace period without waiting for it.
    """

    def __init__(self):
        self.now = 0.0
        self._waiters: list[tuple[float, asyncio.Future]] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + delay, future))
        await future

    def tick(self, seconds: float) -> None:
        """Move time forward and wake due timers without yielding to the loop."""
        self.now += seconds
        for deadline, future in self._waiters:
            if deadline <= self.now and not future.done():
                future.set_result(None)
        self._waiters = [(d, f) for d, f in self._waiters if not f.done()]

    async def advance(self, seconds: float) -> None:
        """Let freshly armed timers start sleeping, move time forward, then let woken timers (and their forwards) run."""
        await settle()
        self.tick(seconds)
        await settle()


async def settle(rounds: int = 5) -> None:
    """Give scheduled tasks a few event loop turns to finish."""
    for _ in range(rounds):
        await asyncio.sleep(0.01)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ── Relay Fixtures ───────────────────────────────────────────────────


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        n8n_webhook_url=N8N_TEST_URL,
        pix_timeout_seconds=7 * 60,
        forward_timeout_seconds=15,
        log_retention_seconds=3600,
        environment="test",
        _env_file=None,
    )


@pytest.fixture
async def relay(test_settings, n8n, clock) -> AsyncGenerator[RelayService, None]:
    """RelayService with a fake n8n and a fake PIX clock."""
    service = RelayService(
        test_settings,
        transport=n8n.transport,
        clock=clock.monotonic,
        sleep=clock.sleep,
    )
    yield service
    await service.shutdown()


# ── Test Data Fixtures ────────────────────────────────────────────────


def make_notification(code: str = "ABC123", status: str = "pending", **extra) -> dict:
    """Build a Perfect Pay sale notification."""
    data = {
        "code": code,
        "sale_status_enum_key": status,
        "sale_amount": 49.90,
        "customer": {"full_name": "Jane Doe", "email": "jane@example.com"},
        "product": {"code": "PPPB1234", "name": "Online Course"},
        "payment_type_enum": 4,
        "billet_url": "",
        "token": "a1b2c3",
    }
    data.update(extra)
    return data


@pytest.fixture
def pending_notification() -> dict:
    return make_notification(status="pending")


@pytest.fixture
def approved_notification() -> dict:
    return make_notification(status="approved")
