"""
Tests for the HTTP error notifier.

The alert endpoint is replaced by httpx.MockTransport so no network is used.
"""

import asyncio
import logging

import httpx

from messaging.notifier import HttpErrorNotifier, NotificationResult

URL = "https://alerts.example.com/orders"


def notifier_with(handler) -> HttpErrorNotifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpErrorNotifier(URL, timeout=0.5, client=client)


class TestHttpErrorNotifier:

    def test_posts_payload_as_body(self, notifier, alert_requests):
        """The full payload is the request body."""
        result = asyncio.run(notifier.notify('{"id": 3}', reason="processing failed"))

        assert result.success is True
        assert result.status_code == 202
        assert len(alert_requests) == 1
        request = alert_requests[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.content == b'{"id": 3}'
        assert request.headers["content-type"] == "application/json"

    def test_error_status_is_reported_not_raised(self):
        notifier = notifier_with(lambda request: httpx.Response(500))

        result = asyncio.run(notifier.notify("{}", reason="r"))

        assert result.success is False
        assert result.status_code == 500
        assert "HTTPStatusError" in result.error

    def test_timeout_is_reported_not_raised(self, caplog):
        """A slow alert endpoint never surfaces as an exception."""
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        notifier = notifier_with(slow)

        with caplog.at_level(logging.ERROR, logger="error_notifier"):
            result = asyncio.run(notifier.notify("{}", reason="r"))

        assert result.success is False
        assert result.status_code is None
        assert "ReadTimeout" in result.error
        assert any("ALERT FAILED" in record.message for record in caplog.records)

    def test_connection_error_is_reported_not_raised(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        result = asyncio.run(notifier_with(refuse).notify("{}", reason="r"))

        assert result.success is False

    def test_unparseable_url_is_reported_not_raised(self, alert_requests, alert_client):
        """httpx rejects the URL before any request is made."""
        notifier = HttpErrorNotifier("http://[::1/x", timeout=0.5, client=alert_client)

        result = asyncio.run(notifier.notify("{}", reason="r"))

        assert result.success is False
        assert "InvalidURL" in result.error
        assert alert_requests == []
        assert notifier.get_sent_count() == 1

    def test_no_retry_on_failure(self):
        """A failing endpoint is called exactly once per notification."""
        calls = []

        def failing(request):
            calls.append(request)
            return httpx.Response(503)

        asyncio.run(notifier_with(failing).notify("{}", reason="r"))

        assert len(calls) == 1

    def test_tracks_results(self, notifier):
        async def scenario():
            await notifier.notify("a", reason="first")
            await notifier.notify("b", reason="second")

        asyncio.run(scenario())

        assert notifier.get_sent_count() == 2
        assert [n.reason for n in notifier.get_successful_sends()] == ["first", "second"]


class TestNotificationResult:

    def test_str_success(self):
        result = NotificationResult(success=True, url=URL, body="{}", reason="boom")

        assert "✓" in str(result)
        assert URL in str(result)

    def test_str_failure(self):
        result = NotificationResult(success=False, url=URL, body="{}", reason="boom", error="x")

        assert "✗" in str(result)
