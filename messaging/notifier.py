"""
Operator alerting for failed order deliveries.

When an order message cannot be delivered or processed, the full serialized
order is POSTed to a configured endpoint (an email relay, a webhook...).

Design decisions:
- One request per failure, no retry: a broken alert endpoint must not turn
  into a storm of requests
- Never raises: HTTP errors, bad status codes, timeouts and unusable URLs
  are logged and returned as a failed NotificationResult
- Every result is tracked for test assertions
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx

logger = logging.getLogger("error_notifier")


@dataclass
class NotificationResult:
    """
    Result of a notification attempt.

    Captures success/failure and metadata for debugging and testing.
    """
    success: bool
    url: str
    body: str
    reason: str
    status_code: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"{status} ALERT to {self.url}: {self.reason}"


class HttpErrorNotifier:
    """
    Posts failed order payloads to an alerting endpoint.

    Example:
        notifier = HttpErrorNotifier("https://alerts.example.com/orders", timeout=5.0)
        await notifier.notify(order.to_payload(), reason="processing failed")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            url: Endpoint receiving the payload as the request body
            timeout: Seconds before the request is abandoned
            client: Shared client; a short-lived one is opened per call if omitted
        """
        self.url = url
        self.timeout = timeout
        self._client = client
        self.sent_notifications: list[NotificationResult] = []

    async def _post(self, client: httpx.AsyncClient, payload: str) -> httpx.Response:
        response = await client.post(
            self.url,
            content=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def notify(self, payload: str, reason: str) -> NotificationResult:
        """Send one alert carrying `payload`. Returns the outcome."""
        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except Exception as e:
            # httpx.InvalidURL is not an HTTPError; nothing may escape an alert
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            result = NotificationResult(
                success=False,
                url=self.url,
                body=payload,
                reason=reason,
                status_code=status_code,
                error=f"{type(e).__name__}: {e}",
            )
            logger.error(f"[ALERT FAILED] To: {self.url} | Reason: {reason} | Error: {result.error}")
        else:
            result = NotificationResult(
                success=True,
                url=self.url,
                body=payload,
                reason=reason,
                status_code=response.status_code,
            )
            logger.info(f"[ALERT] To: {self.url} | Reason: {reason}")

        self.sent_notifications.append(result)
        return result

    def get_sent_count(self) -> int:
        return len(self.sent_notifications)

    def get_successful_sends(self) -> list[NotificationResult]:
        return [n for n in self.sent_notifications if n.success]
