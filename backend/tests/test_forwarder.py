"""
Tests for the n8n forwarder.

Tests: payload shape, headers, runtime URL, lenient HTTP error handling,
transport failures.
"""
import httpx
import pytest

from domain.constants import USER_AGENT
from services.event_log import EventLog
from services.forwarder import Forwarder, build_payload
from tests.conftest import N8N_TEST_URL, make_notification


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def forwarder(event_log, n8n):
    return Forwarder(event_log, get_url=lambda: N8N_TEST_URL, timeout=15, transport=n8n.transport)


class TestBuildPayload:

    @pytest.mark.unit
    def test_keeps_every_field_and_adds_metadata(self):
        data = make_notification(status="approved", affiliate={"code": "AFF1"})
        payload = build_payload(data, "approved")

        for key, value in data.items():
            assert payload[key] == value
        assert payload["event_type"] == "approved"
        assert payload["system_info"] == {"source": "perfect-webhook-system", "version": "2.0"}
        assert "processed_at" in payload

    @pytest.mark.unit
    def test_does_not_mutate_input(self):
        data = make_notification()
        build_payload(data, "pix_timeout")
        assert "event_type" not in data

    @pytest.mark.unit
    def test_rejects_unknown_event_type(self):
        with pytest.raises(ValueError):
            build_payload(make_notification(), "refunded")


class TestForward:

    @pytest.mark.unit
    async def test_posts_once_with_headers(self, forwarder, n8n):
        result = await forwarder.forward(make_notification(status="approved"), "approved")

        assert result.success is True
        assert result.http_status == 200
        assert result.data == {"message": "Workflow was started"}

        [request] = n8n.requests
        assert request.method == "POST"
        assert str(request.url) == N8N_TEST_URL
        assert request.headers["content-type"] == "application/json"
        assert request.headers["user-agent"] == USER_AGENT
        assert n8n.payloads[0]["event_type"] == "approved"

    @pytest.mark.unit
    async def test_logs_attempt_and_sent(self, forwarder, event_log):
        await forwarder.forward(make_notification(), "pix_timeout")

        entries = event_log.entries()
        assert [e.type for e in entries] == ["info", "webhook_sent"]
        sent = entries[1]
        assert sent.data["order_code"] == "ABC123"
        assert sent.data["event_type"] == "pix_timeout"
        assert sent.data["http_status"] == 200
        assert sent.data["http_error"] is False

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [400, 404, 500, 503])
    async def test_http_error_status_is_still_sent(self, forwarder, n8n, event_log, status_code):
        n8n.status_code = status_code

        result = await forwarder.forward(make_notification(), "approved")

        assert result.success is True
        assert result.http_status == status_code
        assert result.error is None
        assert event_log.count("webhook_sent") == 1
        assert event_log.count("error") == 0
        assert event_log.entries()[-1].data["http_error"] is True
        assert len(n8n.requests) == 1

    @pytest.mark.unit
    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ConnectTimeout("connect timed out"),
        httpx.ReadTimeout("read timed out"),
    ])
    async def test_transport_failure_returns_error(self, forwarder, n8n, event_log, error):
        n8n.error = error

        result = await forwarder.forward(make_notification(), "approved")

        assert result.success is False
        assert result.http_status is None
        assert result.error == str(error)
        assert event_log.count("error") == 1
        assert event_log.count("webhook_sent") == 0
        assert len(n8n.requests) == 1  # no retry

    @pytest.mark.unit
    async def test_invalid_url_returns_error(self, event_log):
        forwarder = Forwarder(event_log, get_url=lambda: "not a url")

        result = await forwarder.forward(make_notification(), "approved")

        assert result.success is False
        assert result.error

    @pytest.mark.unit
    async def test_url_read_on_every_call(self, event_log, n8n):
        urls = iter(["http://first.test/hook", "http://second.test/hook"])
        current = {"url": next(urls)}
        forwarder = Forwarder(event_log, get_url=lambda: current["url"], transport=n8n.transport)

        await forwarder.forward(make_notification(), "approved")
        current["url"] = next(urls)
        await forwarder.forward(make_notification(), "approved")

        assert [str(r.url) for r in n8n.requests] == ["http://first.test/hook", "http://second.test/hook"]

    @pytest.mark.unit
    async def test_non_json_response_body(self):
        forwarder = Forwarder(
            EventLog(),
            get_url=lambda: N8N_TEST_URL,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK")),
        )

        result = await forwarder.forward(make_notification(), "approved")

        assert result.success is True
        assert result.data == "OK"
